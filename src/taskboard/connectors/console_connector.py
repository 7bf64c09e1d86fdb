# src/taskboard/connectors/console_connector.py

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import date, datetime

from ..cli.commands import registry as command_registry
from ..core.state import AppState
from ..tasks import task_api
from ..tasks.task_views import is_overdue, utc_today

logger = logging.getLogger(__name__)

EXIT_WORDS = ("/exit", "/quit", "/q")
PROMPT = "tasks> "


def _ts_local() -> str:
    return datetime.now().astimezone().strftime("%Y-%m-%d %H:%M:%S")


def startup_summary(state: AppState, today: date | None = None) -> str:
    """One-screen overview shown when the console opens."""
    today = today or utc_today()
    b = task_api.board(state)
    focus = [t for t in b.pending if t.is_today]
    overdue = [t for t in b.pending if is_overdue(t, today)]

    lines = [f"{len(b.pending)} pending, {len(b.done)} done."]
    if focus:
        lines.append("Today:")
        lines.extend(f"  - {t.name}" for t in focus)
    if overdue:
        lines.append(f"Overdue: {', '.join(t.name for t in overdue)}")
    return "\n".join(lines)


def run_console_loop(
    state: AppState,
    *,
    read: Callable[[str], str] = input,
    write: Callable[[str], None] = print,
) -> int:
    """
    Read slash commands until /exit or EOF. Returns the number of commands run.

    Every command runs under state.lock so another host thread never sees a
    half-applied mutation.
    """
    logger.info("Console started (%d task(s), slot %r).", len(state.repo), state.slot)
    write(f"[{_ts_local()}] {startup_summary(state)}")
    write("Use /help for commands, /exit to quit.")

    def emit(text: str) -> None:
        write(f"[{_ts_local()}] {text}")

    handled = 0
    while True:
        try:
            line = read(PROMPT).strip()
        except EOFError:
            logger.info("Console EOF received, exiting.")
            break
        except KeyboardInterrupt:
            logger.info("Console KeyboardInterrupt, exiting.")
            write("")
            break

        if not line:
            continue
        if line.lower() in EXIT_WORDS:
            break
        if not line.startswith("/"):
            write("Commands start with '/'. Try /help.")
            continue

        try:
            with state.lock:
                reply = command_registry.handle(state, line, emit=emit)
        except Exception:
            logger.exception("Command failed: %s", line)
            write("Something went wrong; details are in the log file.")
            continue

        handled += 1
        if reply:
            write(reply)

    logger.info("Console closed after %d command(s).", handled)
    return handled
