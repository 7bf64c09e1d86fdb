# src/taskboard/cli/bootstrap.py

"""
Composition root: settings -> local directories -> slot store -> repository.

The persisted list is loaded (and migrated) before autosave is switched on, so
startup itself never triggers a save unless a legacy slot needed rewriting.
"""

from __future__ import annotations

import logging

from ..config import get_settings
from ..core.ports import Clock, SlotStore as SlotStorePort
from ..core.state import AppState
from ..tasks.task_api import attach_autosave, load_tasks
from ..tasks.task_models import utc_now
from ..tasks.task_repo import TaskRepository
from ..tasks.task_store import SlotStore

logger = logging.getLogger(__name__)


def _ensure_local_dirs(settings) -> None:
    for d in (settings.data_dir, settings.store_db_path.parent, settings.export_dir):
        d.mkdir(parents=True, exist_ok=True)


def create_initial_state(
    *,
    settings=None,
    store: SlotStorePort | None = None,
    clock: Clock = utc_now,
) -> AppState:
    """
    Build a ready-to-use AppState.

    settings defaults to get_settings(); store defaults to the SQLite SlotStore
    at settings.store_db_path.
    """
    if settings is None:
        settings = get_settings()

    _ensure_local_dirs(settings)
    if store is None:
        store = SlotStore(settings.store_db_path)

    state = AppState(
        settings=settings,
        store=store,
        repo=TaskRepository(clock=clock),
        slot=settings.state_slot,
    )
    count = load_tasks(state)
    attach_autosave(state)
    logger.info("State ready: %d task(s) in slot %r", count, state.slot)
    return state
