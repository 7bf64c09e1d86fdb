# src/taskboard/cli/commands.py

from __future__ import annotations

import contextlib
import inspect
import logging
from collections.abc import Callable
from datetime import date
from typing import cast

from ..core.state import AppState
from ..tasks import task_api
from ..tasks.errors import NotFoundError, TaskError, ValidationError
from ..tasks.normalize import parse_bool, parse_timestamp
from ..tasks.task_models import (
    Priority,
    PrimaryCategory,
    SecondaryCategory,
    Subtask,
    Task,
    TaskDraft,
    TaskStatus,
)
from ..tasks.task_views import TaskFilter, is_overdue, subtask_progress, utc_today

CommandEmitter = Callable[[str], None]
CommandHandler2 = Callable[[AppState, list[str]], str]
CommandHandler3 = Callable[[AppState, list[str], CommandEmitter | None], str]
CommandHandler = CommandHandler2 | CommandHandler3

logger = logging.getLogger(__name__)


class CommandRegistry:
    """Simple slash-command registry used by the console (/help, /add, ...)."""

    def __init__(self) -> None:
        self._handlers: dict[str, CommandHandler] = {}
        self._help: dict[str, str] = {}

    def register(
        self,
        name: str,
        handler: CommandHandler,
        help_text: str,
        aliases: list[str] | None = None,
    ) -> None:
        aliases = aliases or []
        key = name.lower()
        self._handlers[key] = handler
        self._help[key] = help_text
        for alias in aliases:
            self._handlers[alias.lower()] = handler

    def handle(
        self,
        state: AppState,
        line: str,
        emit: CommandEmitter | None = None,
    ) -> str | None:
        """
        Handle a string like "/command args".
        Returns a reply string or None if not a command.
        Task errors (validation, unknown id, unreadable file) become the reply.
        """
        if not line.startswith("/"):
            return None

        parts = line[1:].split()
        if not parts:
            return "Empty command. Use /help to list available commands."

        name = parts[0].lower()
        args = parts[1:]

        handler = self._handlers.get(name)
        if not handler:
            return f"Unknown command: /{name}. Use /help to list available commands."

        try:
            nparams = len(inspect.signature(handler).parameters)
        except (TypeError, ValueError):
            nparams = 3

        try:
            if nparams >= 3:
                h3 = cast(CommandHandler3, handler)
                return h3(state, args, emit)
            h2 = cast(CommandHandler2, handler)
            return h2(state, args)
        except TaskError as e:
            logger.debug("Command /%s failed: %s", name, e)
            return f"Error: {e}"

    def build_help(self) -> str:
        lines = ["Available commands:"]
        for name, help_text in self._help.items():
            lines.append(f"  /{name} - {help_text}")
        return "\n".join(lines)


registry = CommandRegistry()


# ---- argument parsing ----

_FIELD_ALIASES = {
    "desc": "description",
    "description": "description",
    "notes": "notes",
    "p": "priority",
    "priority": "priority",
    "st": "status",
    "status": "status",
    "last": "last_action",
    "next": "next_action",
    "parallel": "parallel_action",
    "today": "is_today",
    "cat": "primary_category",
    "primary": "primary_category",
    "tag": "secondary_category",
    "secondary": "secondary_category",
    "date": "task_date",
    "due": "due_date",
}


def split_segments(args: list[str]) -> list[str]:
    """'Order parts ; p=10 ; status=waiting' -> ['Order parts', 'p=10', 'status=waiting']"""
    return [seg.strip() for seg in " ".join(args).split(";") if seg.strip()]


def _field_value(field: str, raw: str) -> object:
    if field == "priority":
        prio = Priority.lookup(raw)
        if prio is None:
            raise ValidationError(f"unknown priority: {raw} (use 0, 1, 10, 100 or 1000)")
        return prio
    if field == "status":
        status = TaskStatus.lookup(raw)
        if status is None:
            raise ValidationError(f"unknown status: {raw}")
        return status
    if field == "primary_category":
        cat = PrimaryCategory.lookup(raw)
        if cat is None:
            raise ValidationError(f"unknown primary category: {raw}")
        return cat
    if field == "secondary_category":
        tag = SecondaryCategory.lookup(raw)
        if tag is None:
            raise ValidationError(f"unknown secondary category: {raw}")
        return tag
    if field == "is_today":
        return parse_bool(raw)
    if field in ("task_date", "due_date"):
        if not raw.strip():
            return None
        ts = parse_timestamp(raw)
        if ts is None:
            raise ValidationError(f"invalid date: {raw} (use YYYY-MM-DD)")
        return ts
    return raw


def apply_fields(draft: TaskDraft, segments: list[str]) -> TaskDraft:
    for seg in segments:
        key, sep, value = seg.partition("=")
        field = _FIELD_ALIASES.get(key.strip().lower())
        if not sep or field is None:
            raise ValidationError(f"bad field {seg!r}; expected key=value")
        setattr(draft, field, _field_value(field, value.strip()))
    return draft


def parse_filter(args: list[str]) -> TaskFilter:
    opts: dict[str, object] = {}
    for token in args:
        key, sep, value = token.partition("=")
        key = key.strip().lower()
        if not sep and key == "today":
            opts["today_only"] = True
        elif key in ("p", "priority"):
            opts["priority"] = _field_value("priority", value)
        elif key in ("cat", "primary"):
            opts["primary_category"] = _field_value("primary_category", value)
        elif key in ("tag", "secondary"):
            opts["secondary_category"] = _field_value("secondary_category", value)
        elif key in ("from", "start", "to", "end"):
            try:
                day = date.fromisoformat(value.strip())
            except ValueError as e:
                raise ValidationError(f"invalid date: {value} (use YYYY-MM-DD)") from e
            opts["start" if key in ("from", "start") else "end"] = day
        else:
            raise ValidationError(f"unknown filter {token!r}")
    return TaskFilter(**opts)  # type: ignore[arg-type]


def _pick_subtask(task: Task, ref: str) -> Subtask:
    if ref.isdigit():
        idx = int(ref) - 1
        if 0 <= idx < len(task.subtasks):
            return task.subtasks[idx]
    matches = [s for s in task.subtasks if s.id.startswith(ref)]
    if len(matches) == 1:
        return matches[0]
    raise NotFoundError("subtask", ref)


# ---- formatting ----


def format_task_line(task: Task, today: date) -> str:
    star = "*" if task.is_today else " "
    line = f"{task.id[:8]} {star} P{int(task.priority):<4} {task.status.value:<10} {task.name}"
    done, total = subtask_progress(task)
    if total:
        line += f" [{done}/{total}]"
    if task.due_date is not None:
        line += f" due {task.due_date.date().isoformat()}"
        if is_overdue(task, today):
            line += " OVERDUE"
    if task.completion_date is not None:
        line += f" done {task.completion_date.date().isoformat()}"
    return line


def format_task_details(task: Task) -> str:
    lines = [
        f"{task.name}  ({task.id})",
        f"  Status: {task.status.value}   Priority: {task.priority.label}   Today: {'yes' if task.is_today else 'no'}",
        f"  Category: {task.primary_category.value} / {task.secondary_category.value}",
        f"  Created: {task.task_date.isoformat()}",
    ]
    if task.due_date is not None:
        lines.append(f"  Due: {task.due_date.isoformat()}")
    if task.completion_date is not None:
        lines.append(f"  Completed: {task.completion_date.isoformat()}")
    for label, value in (
        ("Description", task.description),
        ("Notes", task.notes),
        ("Last action", task.last_action),
        ("Next action", task.next_action),
        ("Parallel action", task.parallel_action),
    ):
        if value:
            lines.append(f"  {label}: {value}")
    for i, sub in enumerate(task.subtasks, start=1):
        lines.append(f"  {i}. [{'x' if sub.completed else ' '}] {sub.text}")
    return "\n".join(lines)


# ---- handlers ----


def cmd_help(state: AppState, args: list[str]) -> str:
    return registry.build_help()


def cmd_status(state: AppState, args: list[str]) -> str:
    b = task_api.board(state)
    return (
        "Status:\n"
        f"  Pending: {len(b.pending)} (today: {sum(1 for t in b.pending if t.is_today)})\n"
        f"  Done: {len(b.done)}\n"
        f"  Store: {getattr(state.store, 'db_path', 'in memory')} [slot {state.slot}]"
    )


def cmd_add(state: AppState, args: list[str]) -> str:
    """/add <name> ; key=value ; ..."""
    segments = split_segments(args)
    if not segments:
        return "Usage: /add <name> ; p=10 ; status=waiting ; parallel=... ; due=YYYY-MM-DD"
    draft = apply_fields(TaskDraft(name=segments[0]), segments[1:])
    task = state.repo.create(draft)
    return f"Added {task.id[:8]}: {task.name}"


def cmd_edit(state: AppState, args: list[str]) -> str:
    """/edit <id> ; key=value ; ..."""
    if not args:
        return "Usage: /edit <id> ; key=value ; ... (name=... renames)"
    task = state.repo.resolve(args[0])
    draft = task.to_draft()
    fields: list[str] = []
    for seg in split_segments(args[1:]):
        key, sep, value = seg.partition("=")
        if sep and key.strip().lower() == "name":
            draft.name = value.strip()
        else:
            fields.append(seg)
    task = state.repo.update(task.id, apply_fields(draft, fields))
    return f"Updated {task.id[:8]}: {task.name} ({task.status.value})"


def cmd_list(state: AppState, args: list[str]) -> str:
    """/list [today] [p=10] [cat=SAE] [tag=ESD] [from=YYYY-MM-DD] [to=YYYY-MM-DD]"""
    flt = parse_filter(args)
    b = task_api.board(state, flt, flt)
    today = utc_today()
    lines = [f"To do / in progress ({len(b.pending)}):"]
    lines.extend(f"  {format_task_line(t, today)}" for t in b.pending)
    lines.append(f"Done ({len(b.done)}):")
    lines.extend(f"  {format_task_line(t, today)}" for t in b.done)
    return "\n".join(lines)


def cmd_show(state: AppState, args: list[str]) -> str:
    if not args:
        return "Usage: /show <id>"
    return format_task_details(state.repo.resolve(args[0]))


def cmd_done(state: AppState, args: list[str]) -> str:
    if not args:
        return "Usage: /done <id>"
    task = state.repo.toggle_completion(state.repo.resolve(args[0]).id)
    return f"{task.name}: {'completed' if task.completed else 'reopened'}."


def cmd_today(state: AppState, args: list[str]) -> str:
    if not args:
        return "Usage: /today <id>"
    task = state.repo.toggle_today(state.repo.resolve(args[0]).id)
    return f"{task.name}: {'on' if task.is_today else 'off'} today's list."


def cmd_delete(state: AppState, args: list[str]) -> str:
    if not args:
        return "Usage: /del <id>"
    task = state.repo.delete(state.repo.resolve(args[0]).id)
    return f"Deleted {task.id[:8]}: {task.name}"


def cmd_subtask(state: AppState, args: list[str]) -> str:
    if len(args) < 2:
        return "Usage: /sub <id> <text>"
    task = state.repo.resolve(args[0])
    sub = state.repo.add_subtask(task.id, " ".join(args[1:]))
    if sub is None:
        return "Subtask text is empty; nothing added."
    return f"{task.name}: added subtask {len(task.subtasks)}. {sub.text}"


def cmd_subtask_toggle(state: AppState, args: list[str]) -> str:
    if len(args) != 2:
        return "Usage: /subdone <id> <n | subtask-id>"
    task = state.repo.resolve(args[0])
    sub = _pick_subtask(task, args[1])
    state.repo.toggle_subtask(task.id, sub.id)
    return f"{task.name}: [{'x' if sub.completed else ' '}] {sub.text}"


def cmd_export(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    """/export [path.xlsx|path.csv|csv]"""
    target = args[0] if args else None
    fmt = None
    if target is not None and target.lower() in ("xlsx", "csv"):
        fmt, target = target.lower(), None
    if emit:
        with contextlib.suppress(Exception):
            emit(f"[EXPORT] Writing {len(state.repo)} task(s)...")
    try:
        path = task_api.export_tasks(state, target, fmt=fmt)
    except ValueError as e:
        return f"Error: {e}"
    return f"Exported {len(state.repo)} task(s) to {path}"


def cmd_import(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    """/import <path> [replace]"""
    if not args:
        return "Usage: /import <path.xlsx|path.csv> [replace]"
    replace = len(args) > 1 and args[1].lower() == "replace"
    if emit:
        with contextlib.suppress(Exception):
            emit(f"[IMPORT] Reading {args[0]}...")
    result = task_api.import_tasks(state, args[0], replace=replace)
    reply = f"Imported {len(result.tasks)} task(s) ({'replace' if replace else 'merge'})."
    if result.skipped:
        reply += f" Skipped {result.skipped} row(s):"
        reply += "".join(f"\n  {e}" for e in result.errors)
    return reply


registry.register("help", cmd_help, help_text="Show available commands.", aliases=["h", "?"])
registry.register("status", cmd_status, help_text="Show counts and storage location.")
registry.register("add", cmd_add, help_text="Add a task: /add <name> ; p=10 ; status=waiting ; due=YYYY-MM-DD")
registry.register("edit", cmd_edit, help_text="Edit a task: /edit <id> ; key=value ; ...")
registry.register("list", cmd_list, help_text="List tasks: /list [today] [p=..] [cat=..] [tag=..] [from=..] [to=..]", aliases=["ls"])
registry.register("show", cmd_show, help_text="Show one task: /show <id>")
registry.register("done", cmd_done, help_text="Toggle completion: /done <id>")
registry.register("today", cmd_today, help_text="Toggle today's focus flag: /today <id>")
registry.register("del", cmd_delete, help_text="Delete a task: /del <id>", aliases=["rm"])
registry.register("sub", cmd_subtask, help_text="Add a subtask: /sub <id> <text>")
registry.register("subdone", cmd_subtask_toggle, help_text="Toggle a subtask: /subdone <id> <n>")
registry.register("export", cmd_export, help_text="Export to spreadsheet: /export [path.xlsx|path.csv|csv]")
registry.register("import", cmd_import, help_text="Import a spreadsheet: /import <path> [replace]")
