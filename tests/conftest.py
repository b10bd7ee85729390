# tests/conftest.py

from __future__ import annotations

from datetime import datetime
from pathlib import Path
from types import SimpleNamespace

import pytest

from macaron_todo.core.models import Priority, Task
from macaron_todo.core.state import AppState
from macaron_todo.core.store import TodoStore

from .fakes import FakeClock, MemoryKeyValueStore, sequential_ids

NOW = datetime(2024, 3, 15, 14, 30, 0)


@pytest.fixture()
def settings(tmp_path: Path) -> SimpleNamespace:
    """
    Minimal settings object compatible with AppState and the CLI.

    We intentionally use a SimpleNamespace rather than importing real config,
    to keep unit tests isolated and deterministic.
    """
    return SimpleNamespace(
        app_name="macaron-test",
        log_level="DEBUG",
        console_enabled=False,
        data_dir=tmp_path,
        store_db_path=tmp_path / "store.sqlite3",
        export_dir=tmp_path / "exports",
        streak_lookback_days=30,
        week_window_days=7,
        month_window_days=30,
        summary_on_exit=True,
    )


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock(NOW)


@pytest.fixture()
def kv() -> MemoryKeyValueStore:
    return MemoryKeyValueStore()


@pytest.fixture()
def store(kv: MemoryKeyValueStore, clock: FakeClock) -> TodoStore:
    return TodoStore(kv, clock=clock, id_factory=sequential_ids())


@pytest.fixture()
def state(settings: SimpleNamespace, kv: MemoryKeyValueStore, clock: FakeClock, store: TodoStore) -> AppState:
    return AppState(settings=settings, kv=kv, clock=clock, store=store)


def make_task(
    task_id: str,
    *,
    created_at: datetime = NOW,
    title: str = "",
    description: str = "",
    completed: bool = False,
    priority: Priority = Priority.MEDIUM,
    category: str = "work",
    tags: tuple[str, ...] = (),
    due_date: datetime | None = None,
    archived: bool = False,
) -> Task:
    """Task literal for pure-function tests (keeps the completed/archived invariants)."""
    return Task(
        id=task_id,
        title=title or f"task {task_id}",
        description=description,
        is_completed=completed,
        priority=priority,
        category=category,
        tags=tags,
        created_at=created_at,
        due_date=due_date,
        completed_at=created_at if completed else None,
        is_archived=archived,
        archived_at=created_at if archived else None,
    )
