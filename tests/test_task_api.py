# tests/test_task_api.py

from __future__ import annotations

from pathlib import Path
from types import SimpleNamespace

import pytest

from taskboard.core.state import AppState
from taskboard.tasks import task_api
from taskboard.tasks.errors import FileReadError
from taskboard.tasks.task_models import PrimaryCategory, TaskDraft, TaskStatus
from taskboard.tasks.task_repo import TaskRepository
from taskboard.tasks.task_views import TaskFilter

from .fakes import FakeClock, InMemorySlotStore


def test_every_mutation_is_persisted(state: AppState) -> None:
    t = state.repo.create(TaskDraft(name="Order parts"))
    assert [r["name"] for r in state.store.load(state.slot)] == ["Order parts"]

    state.repo.toggle_completion(t.id)
    (rec,) = state.store.load(state.slot)
    assert rec["completed"] is True
    assert rec["status"] == TaskStatus.COMPLETED.value
    assert rec["completionDate"] is not None

    state.repo.delete(t.id)
    assert state.store.load(state.slot) == []


def test_load_migrates_legacy_slot_and_writes_back(settings: SimpleNamespace) -> None:
    store = InMemorySlotStore(
        {
            "tasks_v2": [
                {"id": "a", "name": "Legacy", "category": "Master List/PDM", "taskDate": "2023-01-02"},
                {"id": "b", "name": ""},
            ]
        }
    )
    state = AppState(settings=settings, store=store, repo=TaskRepository(clock=FakeClock()))

    assert task_api.load_tasks(state) == 1
    (task,) = state.repo.list_tasks()
    assert task.primary_category is PrimaryCategory.MASTER_LIST_PDM

    (rec,) = store.slots["tasks_v2"]
    assert "category" not in rec
    assert rec["primaryCategory"] == "Master List/PDM"
    assert store.saves == 1


def test_load_current_slot_does_not_rewrite(settings: SimpleNamespace) -> None:
    store = InMemorySlotStore()
    state = AppState(settings=settings, store=store, repo=TaskRepository(clock=FakeClock()))
    task_api.attach_autosave(state)
    state.repo.create(TaskDraft(name="A"))
    saves = store.saves

    fresh = AppState(settings=settings, store=store, repo=TaskRepository(clock=FakeClock()))
    assert task_api.load_tasks(fresh) == 1
    assert store.saves == saves


def test_board_partitions(state: AppState) -> None:
    a = state.repo.create(TaskDraft(name="A"))
    state.repo.create(TaskDraft(name="B", status=TaskStatus.COMPLETED))
    state.repo.toggle_today(a.id)

    b = task_api.board(state, TaskFilter(today_only=True))
    assert [t.name for t in b.pending] == ["A"]
    assert [t.name for t in b.done] == ["B"]


def test_export_then_import_merge_and_replace(state: AppState, tmp_path: Path) -> None:
    a = state.repo.create(TaskDraft(name="A"))
    state.repo.add_subtask(a.id, "Check stock")
    state.repo.create(TaskDraft(name="B"))

    path = task_api.export_tasks(state, tmp_path / "tasks.xlsx")
    assert path.exists()

    state.repo.delete(a.id)
    result = task_api.import_tasks(state, path)
    assert len(result.tasks) == 2
    assert sorted(t.name for t in state.repo.list_tasks()) == ["A", "B"]
    assert state.repo.get(a.id).subtasks[0].text == "Check stock"

    state.repo.create(TaskDraft(name="C"))
    task_api.import_tasks(state, path, replace=True)
    assert sorted(t.name for t in state.repo.list_tasks()) == ["A", "B"]
    assert len(state.store.load(state.slot)) == 2


def test_export_default_path(state: AppState) -> None:
    state.repo.create(TaskDraft(name="A"))
    path = task_api.export_tasks(state, fmt="csv")
    assert path.parent == state.settings.export_dir
    assert path.name.startswith("minhas_tarefas_") and path.suffix == ".csv"


def test_unreadable_import_adds_nothing(state: AppState, tmp_path: Path) -> None:
    state.repo.create(TaskDraft(name="Keep me"))
    bad = tmp_path / "bad.xlsx"
    bad.write_bytes(b"\x00\x01garbage")

    with pytest.raises(FileReadError):
        task_api.import_tasks(state, bad, replace=True)
    assert [t.name for t in state.repo.list_tasks()] == ["Keep me"]
