# tests/fakes.py

from __future__ import annotations

import itertools
from dataclasses import dataclass, field
from datetime import datetime, timedelta

from macaron_todo.storage.kv_store import PersistenceError


@dataclass(slots=True)
class FakeClock:
    """Deterministic clock; tests move it explicitly."""

    current: datetime

    def now(self) -> datetime:
        return self.current

    def advance(self, **kwargs: float) -> datetime:
        self.current = self.current + timedelta(**kwargs)
        return self.current


@dataclass(slots=True)
class MemoryKeyValueStore:
    """
    In-memory KeyValueStore.

    - Captures every write for assertions
    - Can be told to fail reads or writes
    """

    data: dict[str, str] = field(default_factory=dict)
    writes: list[str] = field(default_factory=list)
    fail_writes: bool = False
    fail_reads: bool = False

    def get(self, key: str) -> str | None:
        if self.fail_reads:
            raise PersistenceError(f"read failed key={key}")
        return self.data.get(key)

    def set(self, key: str, value: str) -> None:
        if self.fail_writes:
            raise PersistenceError(f"write failed key={key}")
        self.writes.append(key)
        self.data[key] = value

    def delete(self, key: str) -> None:
        self.data.pop(key, None)


def sequential_ids(prefix: str = "t"):
    """id_factory yielding t1, t2, ..."""
    counter = itertools.count(1)
    return lambda: f"{prefix}{next(counter)}"
