# tests/test_task_models.py

from __future__ import annotations

from datetime import UTC, datetime

import pytest

from taskboard.tasks.task_models import (
    Priority,
    PrimaryCategory,
    SecondaryCategory,
    Task,
    TaskStatus,
    reconcile,
)

NOW = datetime(2024, 3, 1, 12, 0, tzinfo=UTC)
EARLIER = datetime(2024, 2, 1, 8, 30, tzinfo=UTC)


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        (10, Priority.HIGH),
        ("10", Priority.HIGH),
        ("10.0", Priority.HIGH),
        ("10 - Alta", Priority.HIGH),
        ("Alta", Priority.HIGH),
        ("urgent", Priority.URGENT),
        (1000.0, Priority.LOW),
        (0, Priority.IMMEDIATE),
        ("7", Priority.NORMAL),
        ("abc", Priority.NORMAL),
        ("", Priority.NORMAL),
        (None, Priority.NORMAL),
        (True, Priority.NORMAL),
        ("inf", Priority.NORMAL),
        ("+inf", Priority.NORMAL),
        ("-inf", Priority.NORMAL),
        ("1e400", Priority.NORMAL),
        ("nan", Priority.NORMAL),
        (float("inf"), Priority.NORMAL),
        (float("nan"), Priority.NORMAL),
        (10**400, Priority.NORMAL),
    ],
)
def test_priority_parse(raw, expected) -> None:
    assert Priority.parse(raw) is expected


def test_priority_lookup_is_strict() -> None:
    assert Priority.lookup("10 - Alta") is Priority.HIGH
    assert Priority.lookup("baixa") is Priority.LOW
    assert Priority.lookup("foo") is None
    assert Priority.lookup("7") is None
    assert Priority.lookup("inf") is None
    assert Priority.lookup(None) is None


def test_priority_label() -> None:
    assert Priority.HIGH.label == "10 - Alta"
    assert Priority.IMMEDIATE.label == "0 - Imediato"


def test_status_parse_accepts_value_and_name() -> None:
    assert TaskStatus.parse("Aguardando") is TaskStatus.WAITING
    assert TaskStatus.parse("waiting") is TaskStatus.WAITING
    assert TaskStatus.parse("in_progress") is TaskStatus.IN_PROGRESS
    assert TaskStatus.parse("  concluída ") is TaskStatus.COMPLETED
    assert TaskStatus.parse("whatever") is TaskStatus.PENDING
    assert TaskStatus.lookup("whatever") is None
    assert TaskStatus.lookup(None) is None


def test_category_enums() -> None:
    assert len(SecondaryCategory) == 17
    assert SecondaryCategory.parse(None) is SecondaryCategory.GENERAL
    assert PrimaryCategory.parse("3d printing") is PrimaryCategory.PRINTING_3D
    assert PrimaryCategory.parse("nope") is PrimaryCategory.SAE
    assert PrimaryCategory.lookup("Projeto") is PrimaryCategory.PROJECT


def _task(**kw) -> Task:
    kw.setdefault("id", "t1")
    kw.setdefault("name", "Task")
    kw.setdefault("task_date", EARLIER)
    return Task(**kw)


def test_reconcile_derives_completed_from_status() -> None:
    t = reconcile(_task(status=TaskStatus.COMPLETED), now=NOW)
    assert t.completed is True
    assert t.completion_date == NOW

    t2 = reconcile(_task(status=TaskStatus.IN_PROGRESS), now=NOW)
    assert t2.completed is False
    assert t2.completion_date is None


def test_reconcile_keeps_existing_completion_date() -> None:
    t = reconcile(_task(status=TaskStatus.COMPLETED, completion_date=EARLIER), now=NOW)
    assert t.completion_date == EARLIER

    t2 = reconcile(_task(status=TaskStatus.COMPLETED), now=NOW, previous_completion=EARLIER)
    assert t2.completion_date == EARLIER


def test_reconcile_explicit_completed_overrides_status() -> None:
    t = reconcile(_task(status=TaskStatus.WAITING, parallel_action="x"), now=NOW, completed=True)
    assert t.status is TaskStatus.COMPLETED
    assert t.parallel_action == ""

    t2 = reconcile(
        _task(status=TaskStatus.COMPLETED, completed=True, completion_date=EARLIER),
        now=NOW,
        completed=False,
    )
    assert t2.status is TaskStatus.PENDING
    assert t2.completion_date is None


def test_reconcile_parallel_action_only_while_waiting() -> None:
    waiting = reconcile(_task(status=TaskStatus.WAITING, parallel_action="Draft email"), now=NOW)
    assert waiting.parallel_action == "Draft email"

    pending = reconcile(_task(status=TaskStatus.PENDING, parallel_action="Draft email"), now=NOW)
    assert pending.parallel_action == ""
