# src/taskboard/tasks/task_models.py

from __future__ import annotations

import math
import uuid
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import IntEnum, StrEnum
from typing import Any


def utc_now() -> datetime:
    return datetime.now(UTC)


def new_id() -> str:
    return str(uuid.uuid4())


class Priority(IntEnum):
    """
    Fixed priority ladder: lower value = more urgent.

    Values are persisted as plain integers (0, 1, 10, 100, 1000).
    """

    IMMEDIATE = 0
    URGENT = 1
    HIGH = 10
    NORMAL = 100
    LOW = 1000

    @property
    def label(self) -> str:
        return f"{self.value} - {_PRIORITY_LABELS[self]}"

    @classmethod
    def parse(cls, raw: Any, default: Priority | None = None) -> Priority:
        """Accept ints, numeric strings ("10", "10.0", "10 - Alta") and labels."""
        member = cls.lookup(raw)
        if member is not None:
            return member
        return cls.NORMAL if default is None else default

    @classmethod
    def lookup(cls, raw: Any) -> Priority | None:
        """Like parse(), but None for input that names no priority."""
        if isinstance(raw, cls):
            return raw
        if raw is None or isinstance(raw, bool):
            return None
        if isinstance(raw, (int, float)):
            return cls._from_number(raw)

        text = str(raw).strip()
        if not text:
            return None

        head = text.split("-", 1)[0].strip() if text[0].isdigit() else text
        try:
            return cls._from_number(float(head))
        except ValueError:
            pass

        key = text.lower()
        for member, label in _PRIORITY_LABELS.items():
            if key == label.lower() or key == member.name.lower():
                return member
        return None

    @classmethod
    def _from_number(cls, num: float) -> Priority | None:
        # inf, nan and fractions name no rung of the ladder
        if isinstance(num, float) and not (math.isfinite(num) and num.is_integer()):
            return None
        try:
            return cls(int(num))
        except ValueError:
            return None


_PRIORITY_LABELS = {
    Priority.IMMEDIATE: "Imediato",
    Priority.URGENT: "Urgente",
    Priority.HIGH: "Alta",
    Priority.NORMAL: "Normal",
    Priority.LOW: "Baixa",
}


class _ParsableStrEnum(StrEnum):
    """StrEnum with a tolerant parser: value, member name, or the default."""

    @classmethod
    def default(cls) -> Any:
        raise NotImplementedError

    @classmethod
    def lookup(cls, raw: Any) -> Any | None:
        """Like parse(), but None for unknown input instead of the default."""
        if isinstance(raw, cls):
            return raw
        if raw is None:
            return None
        key = str(raw).strip().casefold()
        if not key:
            return None
        for member in cls:
            if key in (member.value.casefold(), member.name.casefold()):
                return member
        return None

    @classmethod
    def parse(cls, raw: Any) -> Any:
        member = cls.lookup(raw)
        return cls.default() if member is None else member


class TaskStatus(_ParsableStrEnum):
    PENDING = "Pendente"
    IN_PROGRESS = "Executando"
    WAITING = "Aguardando"
    COMPLETED = "Concluída"

    @classmethod
    def default(cls) -> TaskStatus:
        return cls.PENDING


class PrimaryCategory(_ParsableStrEnum):
    SAE = "SAE"
    PRINTING_3D = "3D Printing"
    MASTER_LIST_PDM = "Master List/PDM"
    PROJECT = "Projeto"
    OTHER = "Outro"

    @classmethod
    def default(cls) -> PrimaryCategory:
        return cls.SAE


class SecondaryCategory(_ParsableStrEnum):
    GENERAL = "Geral"
    WATER = "Água"
    ANVISA = "Anvisa"
    GIFT_EVENT = "Brinde/Evento"
    CALIBRATION = "Calibração"
    LASER_CUTTING = "Corte a Laser"
    TECHNICAL_DRAWING = "Desenho Técnico"
    PACKAGING = "Embalagem"
    ESD = "ESD"
    ETO = "ETO"
    LASER_ENGRAVING = "Gravação a Laser"
    INVENTORY = "Inventário"
    MANUFACTURING = "Manufatura"
    MASTERS = "Mestrado"
    PARTICLES = "Partículas"
    LASER_WELDING = "Solda a Laser"
    VISIT = "Visita"

    @classmethod
    def default(cls) -> SecondaryCategory:
        return cls.GENERAL


@dataclass(slots=True)
class Subtask:
    id: str
    text: str
    completed: bool = False


@dataclass(slots=True)
class TaskDraft:
    """
    Caller-supplied task data (create / edit payload).

    Never carries id, completed or completion_date: those are derived.
    """

    name: str
    description: str = ""
    notes: str = ""
    priority: Priority = Priority.NORMAL
    status: TaskStatus = TaskStatus.PENDING
    last_action: str = ""
    next_action: str = ""
    parallel_action: str = ""
    is_today: bool = False
    primary_category: PrimaryCategory = PrimaryCategory.SAE
    secondary_category: SecondaryCategory = SecondaryCategory.GENERAL
    task_date: datetime | None = None
    due_date: datetime | None = None


@dataclass(slots=True)
class Task:
    id: str
    name: str
    task_date: datetime

    description: str = ""
    notes: str = ""

    priority: Priority = Priority.NORMAL
    status: TaskStatus = TaskStatus.PENDING
    last_action: str = ""
    next_action: str = ""
    parallel_action: str = ""
    is_today: bool = False

    primary_category: PrimaryCategory = PrimaryCategory.SAE
    secondary_category: SecondaryCategory = SecondaryCategory.GENERAL

    due_date: datetime | None = None
    completion_date: datetime | None = None
    completed: bool = False
    subtasks: list[Subtask] = field(default_factory=list)

    def to_draft(self) -> TaskDraft:
        return TaskDraft(
            name=self.name,
            description=self.description,
            notes=self.notes,
            priority=self.priority,
            status=self.status,
            last_action=self.last_action,
            next_action=self.next_action,
            parallel_action=self.parallel_action,
            is_today=self.is_today,
            primary_category=self.primary_category,
            secondary_category=self.secondary_category,
            task_date=self.task_date,
            due_date=self.due_date,
        )


def reconcile(
    task: Task,
    *,
    now: datetime,
    completed: bool | None = None,
    previous_completion: datetime | None = None,
) -> Task:
    """
    Bring the derived fields of `task` back in line (in place) and return it.

    - completed is taken from `completed` when given, else from status;
      status then follows completed (COMPLETED / PENDING collapse only when they disagree)
    - completion_date: kept from `previous_completion` or the task itself when
      already set, stamped with `now` otherwise; None when not completed
    - parallel_action is cleared unless status is WAITING

    Every mutation path (create, update, toggle, load, import) goes through here.
    """
    if completed is None:
        completed = task.status is TaskStatus.COMPLETED

    if completed:
        task.status = TaskStatus.COMPLETED
    elif task.status is TaskStatus.COMPLETED:
        task.status = TaskStatus.PENDING
    task.completed = completed

    if completed:
        task.completion_date = previous_completion or task.completion_date or now
    else:
        task.completion_date = None

    if task.status is not TaskStatus.WAITING:
        task.parallel_action = ""
    return task


def ensure_aware(dt: datetime) -> datetime:
    """Naive datetimes are treated as UTC."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=UTC)
    return dt
