# src/taskboard/tasks/normalize.py

"""
Persisted record <-> Task.

Records are the JSON objects stored in the state slot (camelCase keys,
ISO-8601 timestamps). Older app versions wrote a single `category` field and
had no workflow fields or `isToday`; migrate_record() is the one place that
understands that shape.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from datetime import date, datetime
from typing import Any

from .errors import ValidationError
from .task_models import (
    Priority,
    PrimaryCategory,
    SecondaryCategory,
    Subtask,
    Task,
    TaskStatus,
    ensure_aware,
    new_id,
    reconcile,
    utc_now,
)

logger = logging.getLogger(__name__)

LEGACY_CATEGORY_KEY = "category"

RECORD_DEFAULTS: dict[str, Any] = {
    "description": "",
    "notes": "",
    "priority": int(Priority.NORMAL),
    "status": TaskStatus.PENDING.value,
    "lastAction": "",
    "nextAction": "",
    "parallelAction": "",
    "isToday": False,
    "primaryCategory": PrimaryCategory.SAE.value,
    "secondaryCategory": SecondaryCategory.GENERAL.value,
    "dueDate": None,
    "completionDate": None,
    "completed": False,
    "subtasks": [],
}


def _blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def migrate_record(raw: dict[str, Any]) -> dict[str, Any]:
    """
    Return a copy of `raw` in the current record shape.

    The legacy `category` value becomes primaryCategory when it names a primary
    category, else secondaryCategory when it names a secondary tag. Missing
    fields get their defaults. The legacy key itself is dropped.
    """
    rec = dict(raw)
    legacy = rec.pop(LEGACY_CATEGORY_KEY, None)

    if not _blank(legacy):
        primary = PrimaryCategory.lookup(legacy)
        secondary = SecondaryCategory.lookup(legacy)
        if _blank(rec.get("primaryCategory")) and primary is not None:
            rec["primaryCategory"] = primary.value
        elif _blank(rec.get("secondaryCategory")) and secondary is not None:
            rec["secondaryCategory"] = secondary.value
        else:
            logger.debug("Dropping unrecognized legacy category=%r", legacy)

    for key, default in RECORD_DEFAULTS.items():
        if key not in rec or rec[key] is None:
            rec[key] = list(default) if isinstance(default, list) else default
    return rec


def parse_timestamp(raw: Any) -> datetime | None:
    """ISO string / datetime / date -> aware datetime. Blank or unparsable -> None."""
    if raw is None:
        return None
    if isinstance(raw, datetime):
        return ensure_aware(raw)
    if isinstance(raw, date):
        return ensure_aware(datetime(raw.year, raw.month, raw.day))
    text = str(raw).strip()
    if not text:
        return None
    try:
        return ensure_aware(datetime.fromisoformat(text))
    except ValueError:
        logger.debug("Unparsable timestamp %r", raw)
        return None


def format_timestamp(dt: datetime | None) -> str | None:
    return dt.isoformat() if dt is not None else None


def parse_bool(raw: Any) -> bool:
    if isinstance(raw, bool):
        return raw
    if raw is None:
        return False
    if isinstance(raw, (int, float)):
        return raw == 1
    return str(raw).strip().casefold() in TRUE_TOKENS


TRUE_TOKENS = frozenset({"sim", "s", "yes", "y", "true", "1", "x", "verdadeiro"})


def subtasks_from_list(items: Any) -> list[Subtask]:
    """Lenient: non-dict entries and entries without text are skipped."""
    if not isinstance(items, list):
        return []
    out: list[Subtask] = []
    for item in items:
        if not isinstance(item, dict):
            continue
        text = str(item.get("text") or "").strip()
        if not text:
            continue
        sub_id = str(item.get("id") or "").strip() or new_id()
        out.append(Subtask(id=sub_id, text=text, completed=parse_bool(item.get("completed"))))
    return out


def subtasks_to_list(subtasks: Iterable[Subtask]) -> list[dict[str, Any]]:
    return [{"id": s.id, "text": s.text, "completed": s.completed} for s in subtasks]


def task_from_record(raw: dict[str, Any], *, now: datetime | None = None) -> Task:
    if not isinstance(raw, dict):
        raise ValidationError(f"task record must be an object, got {type(raw).__name__}")
    now = now or utc_now()
    rec = migrate_record(raw)

    name = str(rec.get("name") or "").strip()
    if not name:
        raise ValidationError("name is required")

    status = TaskStatus.parse(rec["status"])
    completed = parse_bool(rec["completed"]) or status is TaskStatus.COMPLETED

    task = Task(
        id=str(rec.get("id") or "").strip() or new_id(),
        name=name,
        description=str(rec["description"]),
        notes=str(rec["notes"]),
        priority=Priority.parse(rec["priority"]),
        status=status,
        last_action=str(rec["lastAction"]),
        next_action=str(rec["nextAction"]),
        parallel_action=str(rec["parallelAction"]),
        is_today=parse_bool(rec["isToday"]),
        primary_category=PrimaryCategory.parse(rec["primaryCategory"]),
        secondary_category=SecondaryCategory.parse(rec["secondaryCategory"]),
        task_date=parse_timestamp(rec.get("taskDate")) or now,
        due_date=parse_timestamp(rec["dueDate"]),
        completion_date=parse_timestamp(rec["completionDate"]),
        subtasks=subtasks_from_list(rec["subtasks"]),
    )
    return reconcile(task, now=now, completed=completed)


def task_to_record(task: Task) -> dict[str, Any]:
    return {
        "id": task.id,
        "name": task.name,
        "description": task.description,
        "notes": task.notes,
        "priority": int(task.priority),
        "status": task.status.value,
        "lastAction": task.last_action,
        "nextAction": task.next_action,
        "parallelAction": task.parallel_action,
        "isToday": task.is_today,
        "primaryCategory": task.primary_category.value,
        "secondaryCategory": task.secondary_category.value,
        "taskDate": format_timestamp(task.task_date),
        "dueDate": format_timestamp(task.due_date),
        "completionDate": format_timestamp(task.completion_date),
        "completed": task.completed,
        "subtasks": subtasks_to_list(task.subtasks),
    }


def tasks_from_records(raws: Iterable[Any], *, now: datetime | None = None) -> list[Task]:
    """
    Load a stored collection. Invalid records are logged and skipped; a repeated
    id keeps the first record.
    """
    now = now or utc_now()
    out: list[Task] = []
    seen: set[str] = set()
    for i, raw in enumerate(raws):
        try:
            task = task_from_record(raw, now=now)
        except ValidationError as e:
            logger.warning("Skipping stored task record #%d: %s", i, e)
            continue
        if task.id in seen:
            logger.warning("Skipping stored task record #%d: duplicate id %s", i, task.id)
            continue
        seen.add(task.id)
        out.append(task)
    return out


def tasks_to_records(tasks: Iterable[Task]) -> list[dict[str, Any]]:
    return [task_to_record(t) for t in tasks]
