# src/macaron_todo/core/ports.py

from __future__ import annotations

"""
Ports (interfaces) used by the core.

The store depends on Protocols instead of concrete implementations,
so persistence and time stay swappable and tests stay deterministic.
"""

from datetime import datetime
from typing import Protocol


class KeyValueStore(Protocol):
    """
    Durable whole-value storage addressed by string key.

    Values are opaque strings (the core writes JSON).
    Read failures raise PersistenceError; a missing key returns None.
    """

    def get(self, key: str) -> str | None: ...
    def set(self, key: str, value: str) -> None: ...
    def delete(self, key: str) -> None: ...


class Clock(Protocol):
    def now(self) -> datetime: ...


class SystemClock:
    """Wall clock in naive local time."""

    def now(self) -> datetime:
        return datetime.now()
