# tests/conftest.py

from __future__ import annotations

from pathlib import Path
from types import SimpleNamespace

import pytest

from taskboard.core.state import AppState
from taskboard.tasks.task_api import attach_autosave
from taskboard.tasks.task_repo import TaskRepository
from taskboard.tasks.task_store import SlotStore

from .fakes import FakeClock, SequentialIds


@pytest.fixture()
def settings(tmp_path: Path) -> SimpleNamespace:
    """
    Minimal settings object compatible with AppState and the CLI helpers.

    We intentionally use a SimpleNamespace rather than importing real config,
    to keep unit tests isolated and deterministic.
    """
    return SimpleNamespace(
        app_name="taskboard-test",
        log_level="DEBUG",
        console_enabled=False,
        data_dir=tmp_path,
        store_db_path=tmp_path / "taskboard.sqlite3",
        export_dir=tmp_path / "exports",
        state_slot="tasks_v2",
        sheet_name="Tarefas",
        export_format="xlsx",
    )


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def repo(clock: FakeClock) -> TaskRepository:
    return TaskRepository(clock=clock, id_factory=SequentialIds())


@pytest.fixture()
def state(settings: SimpleNamespace, clock: FakeClock) -> AppState:
    """
    AppState wired like bootstrap does, but with a deterministic clock.

    NOTE: We keep the real SQLite SlotStore here because persistence after
    every mutation is part of what we want to test.
    """
    st = AppState(
        settings=settings,
        store=SlotStore(settings.store_db_path),
        repo=TaskRepository(clock=clock),
        slot=settings.state_slot,
    )
    attach_autosave(st)
    return st
