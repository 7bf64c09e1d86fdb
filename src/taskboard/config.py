# src/taskboard/config.py

"""Centralized settings loaded from environment variables (+ optional .env).

Every value has a local default, so the board starts with no configuration at
all. Command-line flags are applied on top with Settings.with_overrides().
"""

from __future__ import annotations

import dataclasses
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from dotenv import load_dotenv

ENV_PREFIX = "TASKBOARD"

EXPORT_FORMATS = ("xlsx", "csv")
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")

# Excel limits sheet titles to 31 characters and forbids these.
_SHEET_FORBIDDEN = set('[]:*?/\\')


def _k(suffix: str) -> str:
    """Build env var name with the project prefix."""
    return f"{ENV_PREFIX}_{suffix}"


# Real environment variables win over .env entries.
load_dotenv(override=False)


def _env(name: str, default: str = "") -> str:
    v = os.getenv(name)
    return default if v is None or v.strip() == "" else v.strip()


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return raw.strip().lower() in {"1", "true", "yes", "y", "on"}


def _env_path(name: str, default: Path) -> Path:
    raw = _env(name)
    return Path(raw).expanduser() if raw else default


@dataclass(frozen=True, slots=True)
class Settings:
    app_name: str
    log_level: str

    # ---- Host ----
    console_enabled: bool

    # ---- Local data paths (ignored by git) ----
    data_dir: Path
    store_db_path: Path
    export_dir: Path

    # ---- Persistence / interchange ----
    # The slot name doubles as the schema generation marker of the stored list.
    state_slot: str = "tasks_v2"
    sheet_name: str = "Tarefas"
    export_format: str = "xlsx"

    def __post_init__(self) -> None:
        if self.log_level not in LOG_LEVELS:
            raise ValueError(f"{_k('LOG_LEVEL')} must be one of {', '.join(LOG_LEVELS)}, got {self.log_level!r}")
        if self.export_format not in EXPORT_FORMATS:
            raise ValueError(f"{_k('EXPORT_FORMAT')} must be xlsx or csv, got {self.export_format!r}")
        if not self.state_slot:
            raise ValueError(f"{_k('STATE_SLOT')} must not be empty")
        if len(self.sheet_name) > 31 or _SHEET_FORBIDDEN.intersection(self.sheet_name):
            raise ValueError(f"{_k('SHEET_NAME')} is not a valid worksheet title: {self.sheet_name!r}")

    @property
    def log_level_no(self) -> int:
        return logging.getLevelName(self.log_level)

    def with_overrides(self, **changes: Any) -> Settings:
        """
        Copy with the given fields replaced; None values are ignored.

        Moving data_dir also moves the store and export paths that were derived
        from it, unless they are overridden explicitly too.
        """
        changes = {k: v for k, v in changes.items() if v is not None}
        new_dir = changes.get("data_dir")
        if new_dir is not None:
            new_dir = Path(new_dir).expanduser()
            changes["data_dir"] = new_dir
            if self.store_db_path.parent == self.data_dir:
                changes.setdefault("store_db_path", new_dir / self.store_db_path.name)
            if self.export_dir.parent == self.data_dir:
                changes.setdefault("export_dir", new_dir / self.export_dir.name)
        if "log_level" in changes:
            changes["log_level"] = str(changes["log_level"]).upper()
        return dataclasses.replace(self, **changes)

    @staticmethod
    def from_env() -> Settings:
        data_dir = _env_path(_k("DATA_DIR"), Path(".local/taskboard"))

        return Settings(
            app_name=_env(_k("APP_NAME"), "taskboard"),
            log_level=_env(_k("LOG_LEVEL"), "INFO").upper(),
            console_enabled=_env_bool(_k("CONSOLE_ENABLED"), True),
            data_dir=data_dir,
            store_db_path=_env_path(_k("STORE_DB_PATH"), data_dir / "taskboard.sqlite3"),
            export_dir=_env_path(_k("EXPORT_DIR"), data_dir / "exports"),
            state_slot=_env(_k("STATE_SLOT"), "tasks_v2"),
            sheet_name=_env(_k("SHEET_NAME"), "Tarefas"),
            export_format=_env(_k("EXPORT_FORMAT"), "xlsx").lower(),
        )


SETTINGS = Settings.from_env()


def get_settings() -> Settings:
    return SETTINGS
