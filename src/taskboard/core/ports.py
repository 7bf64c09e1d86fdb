# src/taskboard/core/ports.py

from __future__ import annotations

"""
Ports (interfaces) used by the core.

The task code depends on Protocols instead of concrete implementations,
so the persistence backend and the clock are swappable in tests.
"""

from datetime import datetime
from typing import Any, Protocol


class SlotStore(Protocol):
    """Named-slot persistence: load returns [] for an absent slot, save overwrites it."""

    def load(self, key: str) -> list[Any]: ...
    def save(self, key: str, records: list[Any]) -> None: ...


class Clock(Protocol):
    def __call__(self) -> datetime: ...
