# src/taskboard/tasks/task_views.py

"""
Derived, read-only views over a task collection.

Everything here is pure: inputs are never mutated and every call recomputes
from the full collection (no caching).

Pending view order: today-flagged first, then priority (ascending), then
task_date (oldest first). Done view order: completion_date, newest first.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import UTC, date, datetime
from enum import Enum

from .task_models import Priority, PrimaryCategory, SecondaryCategory, Task, utc_now

logger = logging.getLogger(__name__)

_NO_COMPLETION = datetime.min.replace(tzinfo=UTC)


class DateField(str, Enum):
    CREATION = "creation"
    COMPLETION = "completion"

    def value_of(self, task: Task) -> datetime | None:
        if self is DateField.CREATION:
            return task.task_date
        return task.completion_date


@dataclass(frozen=True, slots=True)
class TaskFilter:
    """Active filters are ANDed together. None / False means "All"."""

    today_only: bool = False
    priority: Priority | None = None
    primary_category: PrimaryCategory | None = None
    secondary_category: SecondaryCategory | None = None
    start: date | None = None
    end: date | None = None

    @property
    def has_date_range(self) -> bool:
        return self.start is not None or self.end is not None


NO_FILTER = TaskFilter()


@dataclass(frozen=True, slots=True)
class Board:
    pending: list[Task]
    done: list[Task]


def _day(dt: datetime) -> date:
    if dt.tzinfo is not None:
        dt = dt.astimezone(UTC)
    return dt.date()


def partition(tasks: Iterable[Task]) -> tuple[list[Task], list[Task]]:
    pending: list[Task] = []
    done: list[Task] = []
    for t in tasks:
        (done if t.completed else pending).append(t)
    return pending, done


def _in_range(task: Task, flt: TaskFilter, date_field: DateField) -> bool:
    value = date_field.value_of(task)
    if value is None:
        return False
    day = _day(value)
    if flt.start is not None and day < flt.start:
        return False
    if flt.end is not None and day > flt.end:
        return False
    return True


def matches(task: Task, flt: TaskFilter, date_field: DateField = DateField.CREATION) -> bool:
    if flt.today_only and not task.is_today:
        return False
    if flt.priority is not None and task.priority != flt.priority:
        return False
    if flt.primary_category is not None and task.primary_category != flt.primary_category:
        return False
    if flt.secondary_category is not None and task.secondary_category != flt.secondary_category:
        return False
    if flt.has_date_range and not _in_range(task, flt, date_field):
        return False
    return True


def apply_filter(
    tasks: Iterable[Task],
    flt: TaskFilter = NO_FILTER,
    date_field: DateField = DateField.CREATION,
) -> list[Task]:
    return [t for t in tasks if matches(t, flt, date_field)]


def pending_sort_key(task: Task) -> tuple[bool, int, datetime]:
    return (not task.is_today, int(task.priority), task.task_date)


def sort_pending(tasks: Iterable[Task]) -> list[Task]:
    return sorted(tasks, key=pending_sort_key)


def _completion_key(task: Task) -> datetime:
    if task.completion_date is None:
        # Completed tasks always carry a completion date; this only shows up on bad data.
        logger.warning("Completed task without completion_date id=%s", task.id)
        return _NO_COMPLETION
    return task.completion_date


def sort_done(tasks: Iterable[Task]) -> list[Task]:
    return sorted(tasks, key=_completion_key, reverse=True)


def pending_view(tasks: Iterable[Task], flt: TaskFilter = NO_FILTER) -> list[Task]:
    pending, _ = partition(tasks)
    return sort_pending(apply_filter(pending, flt, DateField.CREATION))


def done_view(tasks: Iterable[Task], flt: TaskFilter = NO_FILTER) -> list[Task]:
    _, done = partition(tasks)
    return sort_done(apply_filter(done, flt, DateField.COMPLETION))


def build_board(
    tasks: Iterable[Task],
    pending_filter: TaskFilter = NO_FILTER,
    done_filter: TaskFilter = NO_FILTER,
) -> Board:
    snapshot = list(tasks)
    return Board(
        pending=pending_view(snapshot, pending_filter),
        done=done_view(snapshot, done_filter),
    )


def utc_today() -> date:
    """Calendar day in UTC, the same day boundary the date filters use."""
    return utc_now().date()


def is_overdue(task: Task, today: date | None = None) -> bool:
    if today is None:
        today = utc_today()
    if task.completed or task.due_date is None:
        return False
    return _day(task.due_date) < today


def subtask_progress(task: Task) -> tuple[int, int]:
    """(completed, total) subtasks."""
    total = len(task.subtasks)
    done = sum(1 for s in task.subtasks if s.completed)
    return done, total
