# src/taskboard/core/state.py

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import Any

from ..tasks.task_repo import TaskRepository
from .ports import SlotStore


@dataclass
class AppState:
    # Settings object (real Settings or a SimpleNamespace in tests).
    settings: Any

    store: SlotStore
    repo: TaskRepository
    slot: str = "tasks_v2"

    # Single writer: hosts with more than one thread take this around repo calls.
    lock: threading.RLock = field(default_factory=threading.RLock)
