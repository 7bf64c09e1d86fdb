# src/taskboard/cli/main.py

"""
CLI entrypoint.

    taskboard                          interactive console
    taskboard -c "/add Buy paper" -c "/list today"
                                       run slash commands and exit

Flags override the TASKBOARD_* environment settings for this run only.
"""

from __future__ import annotations

import argparse
import logging
from collections.abc import Sequence

from ..cli.bootstrap import create_initial_state
from ..cli.commands import registry as command_registry
from ..config import LOG_LEVELS, get_settings
from ..connectors.console_connector import run_console_loop
from ..core.state import AppState
from ..logging_setup import setup_logging
from ..tasks.task_api import save_tasks

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="taskboard", description="Personal task board with spreadsheet import/export.")
    p.add_argument("--data-dir", help="Directory for the database, exports and log file.")
    p.add_argument("--slot", dest="state_slot", help="Storage slot holding the task list.")
    p.add_argument("--log-level", type=str.upper, choices=LOG_LEVELS, help="Console log level.")
    p.add_argument(
        "-c",
        "--command",
        dest="commands",
        action="append",
        default=[],
        metavar="'/cmd args'",
        help="Run a slash command and exit (repeatable).",
    )
    p.add_argument("--no-console", action="store_true", help="Load and save, but do not open the console.")
    return p


def run_commands(state: AppState, commands: Sequence[str]) -> int:
    """Run one-shot commands in order; exit status 1 if any of them failed."""
    status = 0
    for line in commands:
        line = line if line.startswith("/") else "/" + line
        with state.lock:
            reply = command_registry.handle(state, line, emit=print)
        if reply:
            print(reply)
        if reply is None or reply.startswith(("Error:", "Unknown command")):
            status = 1
    return status


def _shutdown(state: AppState) -> None:
    """Final save of the whole collection; failures are logged, not raised."""
    try:
        with state.lock:
            save_tasks(state)
    except Exception:
        logger.exception("Failed to save tasks on shutdown.")

    close = getattr(state.store, "close", None)
    if close is not None:
        close()


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    settings = get_settings().with_overrides(
        data_dir=args.data_dir,
        state_slot=args.state_slot,
        log_level=args.log_level,
    )

    log_file = setup_logging(
        log_dir=settings.data_dir,
        console_level=settings.log_level_no,
        console=not args.commands,
    )
    logger.info("Starting %s (log file %s)", settings.app_name, log_file)

    state = create_initial_state(settings=settings)

    status = 0
    try:
        if args.commands:
            status = run_commands(state, args.commands)
        elif settings.console_enabled and not args.no_console:
            run_console_loop(state)
        else:
            logger.info("Console disabled; nothing to run.")
    finally:
        _shutdown(state)
        logger.info("Bye.")
    return status


if __name__ == "__main__":
    raise SystemExit(main())
