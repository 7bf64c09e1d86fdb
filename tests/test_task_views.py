# tests/test_task_views.py

from __future__ import annotations

from datetime import UTC, date, datetime, timedelta

from taskboard.tasks.task_models import (
    Priority,
    PrimaryCategory,
    SecondaryCategory,
    Subtask,
    Task,
    TaskStatus,
)
from taskboard.tasks.task_views import (
    DateField,
    TaskFilter,
    apply_filter,
    build_board,
    done_view,
    is_overdue,
    partition,
    pending_view,
    sort_done,
    sort_pending,
    subtask_progress,
    utc_today,
)

BASE = datetime(2024, 3, 1, 9, 0, tzinfo=UTC)


def make(
    task_id: str,
    *,
    priority: Priority = Priority.NORMAL,
    today: bool = False,
    created: datetime = BASE,
    completed_at: datetime | None = None,
    primary: PrimaryCategory = PrimaryCategory.SAE,
    secondary: SecondaryCategory = SecondaryCategory.GENERAL,
    due: datetime | None = None,
) -> Task:
    return Task(
        id=task_id,
        name=task_id.upper(),
        task_date=created,
        priority=priority,
        is_today=today,
        primary_category=primary,
        secondary_category=secondary,
        status=TaskStatus.COMPLETED if completed_at else TaskStatus.PENDING,
        completed=completed_at is not None,
        completion_date=completed_at,
        due_date=due,
    )


def ids(tasks: list[Task]) -> list[str]:
    return [t.id for t in tasks]


def test_partition_is_exhaustive_and_disjoint() -> None:
    tasks = [make("a"), make("b", completed_at=BASE), make("c")]
    pending, done = partition(tasks)
    assert ids(pending) == ["a", "c"]
    assert ids(done) == ["b"]


def test_today_flag_dominates_priority() -> None:
    low_today = make("low_today", priority=Priority.LOW, today=True)
    critical = make("critical", priority=Priority.IMMEDIATE)
    assert ids(sort_pending([critical, low_today])) == ["low_today", "critical"]


def test_priority_then_creation_date() -> None:
    tasks = [
        make("normal_old", created=BASE - timedelta(days=30)),
        make("high_new", priority=Priority.HIGH, created=BASE),
        make("normal_new", created=BASE),
        make("high_old", priority=Priority.HIGH, created=BASE - timedelta(days=1)),
    ]
    assert ids(sort_pending(tasks)) == ["high_old", "high_new", "normal_old", "normal_new"]


def test_done_sorted_by_completion_desc() -> None:
    tasks = [
        make("first", completed_at=BASE),
        make("third", completed_at=BASE + timedelta(hours=2)),
        make("second", completed_at=BASE + timedelta(hours=1)),
    ]
    ordered = sort_done(tasks)
    assert ids(ordered) == ["third", "second", "first"]
    stamps = [t.completion_date for t in ordered]
    assert all(a > b for a, b in zip(stamps, stamps[1:]))


def test_done_view_ignores_today_and_priority() -> None:
    tasks = [
        make("old_urgent", priority=Priority.IMMEDIATE, today=True, completed_at=BASE),
        make("recent_low", priority=Priority.LOW, completed_at=BASE + timedelta(days=1)),
    ]
    assert ids(done_view(tasks)) == ["recent_low", "old_urgent"]


def test_filter_conjunction_is_intersection() -> None:
    tasks = [
        make("a", priority=Priority.HIGH, primary=PrimaryCategory.SAE),
        make("b", priority=Priority.HIGH, primary=PrimaryCategory.PRINTING_3D),
        make("c", priority=Priority.NORMAL, primary=PrimaryCategory.SAE),
        make("d", priority=Priority.HIGH, primary=PrimaryCategory.SAE, secondary=SecondaryCategory.ESD),
    ]
    by_priority = set(ids(apply_filter(tasks, TaskFilter(priority=Priority.HIGH))))
    by_category = set(ids(apply_filter(tasks, TaskFilter(primary_category=PrimaryCategory.SAE))))
    both = set(
        ids(
            apply_filter(
                tasks,
                TaskFilter(priority=Priority.HIGH, primary_category=PrimaryCategory.SAE),
            )
        )
    )
    assert both == by_priority & by_category == {"a", "d"}

    only_esd = apply_filter(tasks, TaskFilter(secondary_category=SecondaryCategory.ESD))
    assert ids(only_esd) == ["d"]


def test_today_only_filter() -> None:
    tasks = [make("a", today=True), make("b")]
    assert ids(pending_view(tasks, TaskFilter(today_only=True))) == ["a"]


def test_date_range_is_inclusive_and_ignores_time() -> None:
    tasks = [
        make("before", created=datetime(2024, 2, 29, 23, 59, tzinfo=UTC)),
        make("start_late", created=datetime(2024, 3, 1, 23, 0, tzinfo=UTC)),
        make("end_early", created=datetime(2024, 3, 5, 0, 1, tzinfo=UTC)),
        make("after", created=datetime(2024, 3, 6, 0, 0, tzinfo=UTC)),
    ]
    flt = TaskFilter(start=date(2024, 3, 1), end=date(2024, 3, 5))
    assert set(ids(apply_filter(tasks, flt, DateField.CREATION))) == {"start_late", "end_early"}

    only_start = TaskFilter(start=date(2024, 3, 5))
    assert set(ids(apply_filter(tasks, only_start))) == {"end_early", "after"}


def test_date_range_uses_completion_date_for_done_view() -> None:
    tasks = [
        make("old_created", created=BASE - timedelta(days=60), completed_at=datetime(2024, 3, 2, 10, tzinfo=UTC)),
        make("new_created", created=datetime(2024, 3, 2, 8, tzinfo=UTC), completed_at=datetime(2024, 3, 9, tzinfo=UTC)),
    ]
    flt = TaskFilter(start=date(2024, 3, 2), end=date(2024, 3, 2))
    assert ids(done_view(tasks, flt)) == ["old_created"]


def test_missing_designated_date_never_passes_active_range() -> None:
    broken = make("broken")
    broken.completed = True
    broken.completion_date = None

    flt = TaskFilter(end=date(2030, 1, 1))
    assert apply_filter([broken], flt, DateField.COMPLETION) == []
    assert ids(apply_filter([broken], TaskFilter(), DateField.COMPLETION)) == ["broken"]


def test_views_do_not_mutate_input() -> None:
    tasks = [make("b", priority=Priority.LOW), make("a", priority=Priority.IMMEDIATE)]
    snapshot = list(tasks)
    board = build_board(tasks)
    assert tasks == snapshot
    assert ids(board.pending) == ["a", "b"]
    assert board.done == []


def test_is_overdue_and_subtask_progress() -> None:
    today = date(2024, 3, 10)
    late = make("late", due=datetime(2024, 3, 9, 23, tzinfo=UTC))
    due_today = make("due_today", due=datetime(2024, 3, 10, 8, tzinfo=UTC))
    late_but_done = make("done", due=datetime(2024, 3, 1, tzinfo=UTC), completed_at=BASE)

    assert is_overdue(late, today) is True
    assert is_overdue(due_today, today) is False
    assert is_overdue(late_but_done, today) is False
    assert is_overdue(make("no_due"), today) is False

    late.subtasks = [Subtask(id="s1", text="x", completed=True), Subtask(id="s2", text="y")]
    assert subtask_progress(late) == (1, 2)
    assert subtask_progress(due_today) == (0, 0)


def test_is_overdue_defaults_to_utc_day(monkeypatch) -> None:
    # 00:30 UTC on the 10th is still the 9th in any zone west of UTC
    monkeypatch.setattr(
        "taskboard.tasks.task_views.utc_now", lambda: datetime(2024, 3, 10, 0, 30, tzinfo=UTC)
    )
    assert utc_today() == date(2024, 3, 10)
    assert is_overdue(make("late", due=datetime(2024, 3, 9, 23, 0, tzinfo=UTC))) is True
    assert is_overdue(make("due_today", due=datetime(2024, 3, 10, 0, 10, tzinfo=UTC))) is False
