# src/taskboard/tasks/errors.py

from __future__ import annotations

from pathlib import Path


class TaskError(Exception):
    """Base class for task-domain errors surfaced to the host."""


class ValidationError(TaskError, ValueError):
    """Caller-supplied task data failed a required-field check."""


class NotFoundError(TaskError, LookupError):
    def __init__(self, kind: str, item_id: str) -> None:
        super().__init__(f"{kind} not found: {item_id}")
        self.kind = kind
        self.item_id = item_id


class ImportRowError(TaskError, ValueError):
    """
    One row of an import batch could not be turned into a task.

    Collected by the importer (skip-and-continue), never raised out of a batch.
    """

    def __init__(self, row_number: int, reason: str) -> None:
        super().__init__(f"row {row_number}: {reason}")
        self.row_number = row_number
        self.reason = reason


class FileReadError(TaskError, OSError):
    """The import source is not a readable spreadsheet/CSV at all."""

    def __init__(self, path: str | Path, reason: str) -> None:
        super().__init__(f"cannot read {path}: {reason}")
        self.path = Path(path)
        self.reason = reason
