# src/taskboard/tasks/task_repo.py

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Iterator
from datetime import datetime

from .errors import NotFoundError, ValidationError
from .task_models import Subtask, Task, TaskDraft, ensure_aware, new_id, reconcile, utc_now

logger = logging.getLogger(__name__)

ChangeHook = Callable[[list[Task]], None]


class TaskRepository:
    """
    In-memory ordered task collection (insertion order is kept).

    Every mutation:
    - validates before touching the collection (no partial writes),
    - funnels derived fields through task_models.reconcile(),
    - calls on_change(snapshot) afterwards so the host can persist.

    Not thread-safe: hosts with several threads serialize calls behind one lock
    (see AppState.lock).
    """

    def __init__(
        self,
        tasks: Iterable[Task] = (),
        *,
        clock: Callable[[], datetime] = utc_now,
        id_factory: Callable[[], str] = new_id,
        on_change: ChangeHook | None = None,
    ) -> None:
        self._clock = clock
        self._new_id = id_factory
        self._tasks: list[Task] = []
        self.on_change = on_change
        self._load(tasks)

    # ---- low-level helpers ----

    def _load(self, tasks: Iterable[Task]) -> None:
        loaded = list(tasks)
        seen: set[str] = set()
        for t in loaded:
            if t.id in seen:
                raise ValidationError(f"duplicate task id: {t.id}")
            seen.add(t.id)
        self._tasks = loaded

    def _index(self, task_id: str) -> int:
        for i, t in enumerate(self._tasks):
            if t.id == task_id:
                return i
        raise NotFoundError("task", task_id)

    def _changed(self) -> None:
        if self.on_change is not None:
            self.on_change(self.list_tasks())

    @staticmethod
    def _clean_name(draft: TaskDraft) -> str:
        name = (draft.name or "").strip()
        if not name:
            raise ValidationError("name is required")
        return name

    def _unique_id(self) -> str:
        taken = {t.id for t in self._tasks}
        task_id = self._new_id()
        while task_id in taken:
            task_id = self._new_id()
        return task_id

    def _build(self, task_id: str, draft: TaskDraft, now: datetime) -> Task:
        return Task(
            id=task_id,
            name=self._clean_name(draft),
            description=draft.description or "",
            notes=draft.notes or "",
            priority=draft.priority,
            status=draft.status,
            last_action=draft.last_action or "",
            next_action=draft.next_action or "",
            parallel_action=draft.parallel_action or "",
            is_today=bool(draft.is_today),
            primary_category=draft.primary_category,
            secondary_category=draft.secondary_category,
            task_date=ensure_aware(draft.task_date) if draft.task_date else now,
            due_date=ensure_aware(draft.due_date) if draft.due_date else None,
        )

    # ---- queries ----

    def __len__(self) -> int:
        return len(self._tasks)

    def __iter__(self) -> Iterator[Task]:
        return iter(self.list_tasks())

    def list_tasks(self) -> list[Task]:
        """Snapshot in insertion order (the list is new, tasks are shared)."""
        return list(self._tasks)

    def find(self, task_id: str) -> Task | None:
        for t in self._tasks:
            if t.id == task_id:
                return t
        return None

    def get(self, task_id: str) -> Task:
        return self._tasks[self._index(task_id)]

    def resolve(self, prefix: str) -> Task:
        """Look a task up by a unique id prefix (console convenience)."""
        key = (prefix or "").strip()
        if not key:
            raise NotFoundError("task", prefix)
        exact = self.find(key)
        if exact is not None:
            return exact
        matches = [t for t in self._tasks if t.id.startswith(key)]
        if len(matches) != 1:
            if matches:
                raise ValidationError(f"ambiguous task id prefix: {key}")
            raise NotFoundError("task", key)
        return matches[0]

    # ---- mutations ----

    def create(self, draft: TaskDraft) -> Task:
        now = self._clock()
        task = reconcile(self._build(self._unique_id(), draft, now), now=now)
        self._tasks.append(task)
        logger.debug(
            "Task created id=%s status=%s priority=%s", task.id, task.status.name, int(task.priority)
        )
        self._changed()
        return task

    def update(self, task_id: str, draft: TaskDraft) -> Task:
        idx = self._index(task_id)
        old = self._tasks[idx]
        now = self._clock()

        task = self._build(old.id, draft, now)
        task.subtasks = old.subtasks
        if draft.task_date is None:
            task.task_date = old.task_date
        reconcile(
            task,
            now=now,
            previous_completion=old.completion_date if old.completed else None,
        )

        self._tasks[idx] = task
        logger.debug("Task updated id=%s status=%s", task.id, task.status.name)
        self._changed()
        return task

    def toggle_completion(self, task_id: str) -> Task:
        """
        Flip completed. Status collapses to COMPLETED / PENDING, so an explicit
        IN_PROGRESS or WAITING status is dropped when a task is toggled.
        """
        task = self.get(task_id)
        reconcile(task, now=self._clock(), completed=not task.completed)
        logger.debug("Task toggled id=%s completed=%s", task.id, task.completed)
        self._changed()
        return task

    def toggle_today(self, task_id: str) -> Task:
        task = self.get(task_id)
        task.is_today = not task.is_today
        self._changed()
        return task

    def delete(self, task_id: str) -> Task:
        """Hard delete. Unknown ids raise NotFoundError, like every other mutation."""
        task = self._tasks.pop(self._index(task_id))
        logger.debug("Task deleted id=%s", task.id)
        self._changed()
        return task

    def add_subtask(self, task_id: str, text: str) -> Subtask | None:
        task = self.get(task_id)
        clean = (text or "").strip()
        if not clean:
            return None
        taken = {s.id for s in task.subtasks}
        sub_id = self._new_id()
        while sub_id in taken:
            sub_id = self._new_id()
        sub = Subtask(id=sub_id, text=clean, completed=False)
        task.subtasks.append(sub)
        self._changed()
        return sub

    def toggle_subtask(self, task_id: str, subtask_id: str) -> Subtask | None:
        task = self.find(task_id)
        if task is None:
            return None
        for sub in task.subtasks:
            if sub.id == subtask_id:
                sub.completed = not sub.completed
                self._changed()
                return sub
        return None

    # ---- bulk ----

    def replace_all(self, tasks: Iterable[Task]) -> None:
        """Swap the whole collection (used on load). Duplicate ids are rejected."""
        self._load(tasks)
        self._changed()

    def import_tasks(self, tasks: Iterable[Task], *, replace: bool = False) -> int:
        """
        Merge imported tasks by id (existing id -> overwritten in place, new id ->
        appended) or, with replace=True, make them the whole collection.

        Duplicate ids inside one batch: the last one wins.
        """
        batch: dict[str, Task] = {}
        for t in tasks:
            batch[t.id] = t
        imported = len(batch)

        if replace:
            self._tasks = list(batch.values())
        else:
            merged = [batch.pop(t.id, t) for t in self._tasks]
            merged.extend(batch.values())
            self._tasks = merged

        logger.info(
            "Imported %d task(s) replace=%s total=%d", imported, replace, len(self._tasks)
        )
        self._changed()
        return imported
