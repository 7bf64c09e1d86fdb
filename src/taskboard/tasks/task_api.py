# src/taskboard/tasks/task_api.py

"""
High-level helpers used by the host (console commands, bootstrap).

They tie the repository to the slot store and the file interchange:
- load_tasks / save_tasks: whole-collection persistence,
- export_tasks / import_tasks: spreadsheet round trips,
- board: the two display partitions.
"""

from __future__ import annotations

import logging
from datetime import date
from pathlib import Path

from ..core.state import AppState
from .normalize import tasks_from_records, tasks_to_records
from .tabular import DEFAULT_SHEET_NAME, ImportResult, default_export_name, import_tasks_file, write_tasks_file
from .task_models import Task
from .task_views import NO_FILTER, Board, TaskFilter, build_board

logger = logging.getLogger(__name__)


def save_tasks(state: AppState, tasks: list[Task] | None = None) -> None:
    records = tasks_to_records(state.repo.list_tasks() if tasks is None else tasks)
    state.store.save(state.slot, records)


def load_tasks(state: AppState) -> int:
    """
    Read the slot, migrate legacy records and swap them into the repository.

    Records that were migrated or dropped are written back once, so the slot
    holds the current shape afterwards.
    """
    raw = state.store.load(state.slot)
    tasks = tasks_from_records(raw)

    hook = state.repo.on_change
    state.repo.on_change = None
    try:
        state.repo.replace_all(tasks)
    finally:
        state.repo.on_change = hook

    if raw and tasks_to_records(tasks) != raw:
        save_tasks(state)
        logger.info("Normalized stored tasks in slot %r", state.slot)

    logger.info("Loaded %d task(s) from slot %r", len(tasks), state.slot)
    return len(tasks)


def attach_autosave(state: AppState) -> None:
    """Persist the whole collection after every repository mutation."""

    def _on_change(tasks: list[Task]) -> None:
        save_tasks(state, tasks)

    state.repo.on_change = _on_change


def board(
    state: AppState,
    pending_filter: TaskFilter = NO_FILTER,
    done_filter: TaskFilter = NO_FILTER,
) -> Board:
    return build_board(state.repo.list_tasks(), pending_filter, done_filter)


def export_tasks(state: AppState, path: str | Path | None = None, *, fmt: str | None = None) -> Path:
    """Write the whole collection; without a path, a dated file lands in export_dir."""
    if path is None:
        fmt = fmt or str(getattr(state.settings, "export_format", "xlsx"))
        export_dir = Path(getattr(state.settings, "export_dir", "."))
        path = export_dir / default_export_name(date.today(), fmt)
    sheet = str(getattr(state.settings, "sheet_name", DEFAULT_SHEET_NAME) or DEFAULT_SHEET_NAME)
    return write_tasks_file(state.repo.list_tasks(), path, sheet_name=sheet)


def import_tasks(state: AppState, path: str | Path, *, replace: bool = False) -> ImportResult:
    """
    Read a spreadsheet and merge (or replace) the collection.

    FileReadError propagates and leaves the collection untouched; bad rows are
    reported in the result. A file without a single valid row changes nothing,
    even with replace=True.
    """
    result = import_tasks_file(path)
    if result.tasks:
        state.repo.import_tasks(result.tasks, replace=replace)
    return result
