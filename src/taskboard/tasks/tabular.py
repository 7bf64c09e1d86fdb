# src/taskboard/tasks/tabular.py

"""
Spreadsheet / CSV interchange.

A task is flattened into one row of localized, text-oriented cells:
- booleans become "Sim" / "Não",
- timestamps become ISO-8601 strings,
- subtasks become a JSON array string in a single cell
  ([{"id": ..., "text": ..., "completed": true|false}, ...]).

Import is tolerant: each field is read from its localized column or from the
camelCase record key, older exports (no categories / workflow / "Fazer Hoje"
columns) import with defaults, and a bad row is skipped instead of aborting
the batch.
"""

from __future__ import annotations

import json
import logging
import math
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from datetime import date, datetime
from pathlib import Path
from typing import Any

import pandas as pd

from .errors import FileReadError, ImportRowError, ValidationError
from .normalize import (
    LEGACY_CATEGORY_KEY,
    format_timestamp,
    subtasks_from_list,
    subtasks_to_list,
    task_from_record,
)
from .task_models import Subtask, Task, utc_now

logger = logging.getLogger(__name__)

YES = "Sim"
NO = "Não"

DEFAULT_SHEET_NAME = "Tarefas"
SUPPORTED_FORMATS = ("xlsx", "csv")

# (localized column label, record key used as the fallback label)
COLUMNS: tuple[tuple[str, str], ...] = (
    ("ID", "id"),
    ("Nome", "name"),
    ("Descrição", "description"),
    ("Observações", "notes"),
    ("Prioridade", "priority"),
    ("Status", "status"),
    ("Categoria Primária", "primaryCategory"),
    ("Categoria Secundária", "secondaryCategory"),
    ("Última Ação", "lastAction"),
    ("Próxima Ação", "nextAction"),
    ("Ação Paralela", "parallelAction"),
    ("Fazer Hoje", "isToday"),
    ("Data Criação", "taskDate"),
    ("Data Vencimento", "dueDate"),
    ("Data Conclusão", "completionDate"),
    ("Concluída", "completed"),
    ("Subtarefas", "subtasks"),
)

COLUMN_LABELS: tuple[str, ...] = tuple(label for label, _ in COLUMNS)

_BOOL_KEYS = frozenset({"isToday", "completed"})


@dataclass(slots=True)
class ImportResult:
    tasks: list[Task] = field(default_factory=list)
    errors: list[ImportRowError] = field(default_factory=list)

    @property
    def skipped(self) -> int:
        return len(self.errors)


# ---- subtasks cell codec ----


def encode_subtasks(subtasks: Iterable[Subtask]) -> str:
    return json.dumps(subtasks_to_list(subtasks), ensure_ascii=False)


def _subtask_items(raw: Any) -> list[Any]:
    if isinstance(raw, list):
        return raw
    if raw is None:
        return []
    text = str(raw).strip()
    if not text:
        return []
    try:
        val = json.loads(text)
    except (TypeError, ValueError):
        logger.debug("Subtasks cell is not valid JSON; using no subtasks.")
        return []
    return val if isinstance(val, list) else []


def decode_subtasks(raw: Any) -> list[Subtask]:
    """JSON string or list -> subtasks. Anything undecodable -> []."""
    return subtasks_from_list(_subtask_items(raw))


# ---- rows ----


def _bool_token(value: bool) -> str:
    return YES if value else NO


def task_to_row(task: Task) -> dict[str, Any]:
    return {
        "ID": task.id,
        "Nome": task.name,
        "Descrição": task.description,
        "Observações": task.notes,
        "Prioridade": int(task.priority),
        "Status": task.status.value,
        "Categoria Primária": task.primary_category.value,
        "Categoria Secundária": task.secondary_category.value,
        "Última Ação": task.last_action,
        "Próxima Ação": task.next_action,
        "Ação Paralela": task.parallel_action,
        "Fazer Hoje": _bool_token(task.is_today),
        "Data Criação": format_timestamp(task.task_date),
        "Data Vencimento": format_timestamp(task.due_date),
        "Data Conclusão": format_timestamp(task.completion_date),
        "Concluída": _bool_token(task.completed),
        "Subtarefas": encode_subtasks(task.subtasks),
    }


def tasks_to_rows(tasks: Iterable[Task]) -> list[dict[str, Any]]:
    return [task_to_row(t) for t in tasks]


def _cell(value: Any) -> Any:
    if value is None:
        return None
    if isinstance(value, float) and math.isnan(value):
        return None
    if isinstance(value, str):
        value = value.strip()
        return value or None
    return value


def _pick(row: Mapping[str, Any], label: str, key: str) -> Any:
    """Localized column first, record key as the fallback; blank counts as absent."""
    value = _cell(row.get(label))
    if value is None:
        value = _cell(row.get(key))
    return value


def row_to_record(row: Mapping[str, Any]) -> dict[str, Any]:
    rec: dict[str, Any] = {}
    for label, key in COLUMNS:
        value = _pick(row, label, key)
        if value is None:
            continue
        if key == "subtasks":
            value = _subtask_items(value)
        elif key not in _BOOL_KEYS and not isinstance(value, (str, bool, int, float, datetime, date)):
            value = str(value)
        rec[key] = value

    legacy = _cell(row.get(LEGACY_CATEGORY_KEY))
    if legacy is not None:
        rec[LEGACY_CATEGORY_KEY] = legacy
    return rec


def row_to_task(row: Mapping[str, Any], *, now: datetime | None = None, row_number: int = 0) -> Task:
    """
    One imported row -> Task.

    Raises ImportRowError when the row has no usable name. A missing id gets a
    fresh one; a completed row without a completion date is stamped with `now`.
    """
    rec = row_to_record(row)
    if not str(rec.get("name") or "").strip():
        raise ImportRowError(row_number, "missing required column 'Nome'")
    try:
        return task_from_record(rec, now=now or utc_now())
    except ValidationError as e:
        raise ImportRowError(row_number, str(e)) from e


def rows_to_tasks(rows: Iterable[Mapping[str, Any]], *, now: datetime | None = None) -> ImportResult:
    """
    Convert rows, skipping the bad ones.

    Row numbers in errors follow spreadsheet numbering: the header is row 1,
    so the first data row is row 2.
    """
    now = now or utc_now()
    result = ImportResult()
    for i, row in enumerate(rows):
        row_number = i + 2
        try:
            result.tasks.append(row_to_task(row, now=now, row_number=row_number))
        except ImportRowError as e:
            logger.warning("Skipping import row: %s", e)
            result.errors.append(e)
    return result


# ---- files ----


def file_format(path: str | Path) -> str:
    fmt = Path(path).suffix.lower().lstrip(".")
    if fmt not in SUPPORTED_FORMATS:
        raise ValueError(f"unsupported file type {Path(path).suffix!r} (use .xlsx or .csv)")
    return fmt


def default_export_name(today: date, fmt: str = "xlsx") -> str:
    return f"minhas_tarefas_{today.isoformat()}.{fmt}"


def _keep_text_literal(ws: Any) -> None:
    """openpyxl turns any "=..." string into a formula; store those as plain text."""
    for row in ws.iter_rows():
        for cell in row:
            if isinstance(cell.value, str) and cell.value.startswith("="):
                cell.data_type = "s"


def write_tasks_file(
    tasks: Iterable[Task],
    path: str | Path,
    *,
    sheet_name: str = DEFAULT_SHEET_NAME,
) -> Path:
    """Write one row per task; the extension picks .xlsx (single sheet) or .csv."""
    path = Path(path)
    fmt = file_format(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    df = pd.DataFrame(tasks_to_rows(tasks), columns=list(COLUMN_LABELS))
    if fmt == "csv":
        df.to_csv(path, index=False, encoding="utf-8-sig")
    else:
        title = sheet_name[:31] or DEFAULT_SHEET_NAME
        with pd.ExcelWriter(path, engine="openpyxl") as writer:
            df.to_excel(writer, sheet_name=title, index=False)
            _keep_text_literal(writer.sheets[title])

    logger.info("Exported %d task(s) to %s", len(df), path)
    return path


def read_rows(path: str | Path) -> list[dict[str, Any]]:
    """
    Read the first sheet (xlsx) or the table (csv) with every cell as text.

    Raises FileReadError when the file is missing, of an unknown type, or
    cannot be parsed.
    """
    path = Path(path)
    try:
        fmt = file_format(path)
    except ValueError as e:
        raise FileReadError(path, str(e)) from e
    if not path.is_file():
        raise FileReadError(path, "file not found")

    try:
        if fmt == "csv":
            df = pd.read_csv(path, dtype=str, keep_default_na=False, encoding="utf-8-sig")
        else:
            df = pd.read_excel(path, sheet_name=0, dtype=str, keep_default_na=False, engine="openpyxl")
    except pd.errors.EmptyDataError:
        return []
    except Exception as e:
        raise FileReadError(path, f"{type(e).__name__}: {e}") from e

    df.columns = [str(c).strip() for c in df.columns]
    return df.to_dict(orient="records")


def import_tasks_file(path: str | Path, *, now: datetime | None = None) -> ImportResult:
    rows = read_rows(path)
    result = rows_to_tasks(rows, now=now)
    logger.info(
        "Import from %s: %d row(s), %d task(s), %d skipped",
        path,
        len(rows),
        len(result.tasks),
        result.skipped,
    )
    return result
