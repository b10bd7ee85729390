# src/macaron_todo/cli/bootstrap.py

"""
CLI bootstrap helpers.

This module is the "composition root":
- loads settings once,
- ensures local (gitignored) directories exist,
- wires the key-value store, clock and TodoStore into AppState,
- performs the one-time startup load.
"""

from __future__ import annotations

import logging

from ..config import get_settings
from ..core.ports import Clock, SystemClock
from ..core.state import AppState
from ..core.store import TodoStore
from ..storage.kv_store import SqliteKeyValueStore

logger = logging.getLogger(__name__)


def _ensure_local_dirs(settings) -> None:
    settings.data_dir.mkdir(parents=True, exist_ok=True)
    settings.store_db_path.parent.mkdir(parents=True, exist_ok=True)
    settings.export_dir.mkdir(parents=True, exist_ok=True)


def create_initial_state(*, settings=None, clock: Clock | None = None) -> AppState:
    """
    Create AppState from the provided settings and load the persisted snapshot.

    Keeping settings injectable makes the app easier to test and avoids hidden global config reads.
    If settings is None, falls back to get_settings().
    Raises PersistenceError when stored data cannot be read.
    """
    if settings is None:
        settings = get_settings()

    _ensure_local_dirs(settings)

    clock = clock or SystemClock()
    kv = SqliteKeyValueStore(settings.store_db_path)
    store = TodoStore(kv, clock=clock)
    store.load_from_storage()

    return AppState(settings=settings, kv=kv, clock=clock, store=store)


def shutdown(state: AppState) -> None:
    """Best-effort shutdown (no exceptions should escape)."""
    if getattr(state.settings, "summary_on_exit", False):
        state.store.generate_daily_summary()
        if state.store.last_persist_error is not None:
            logger.warning("Daily summary could not be saved on exit.")

    close = getattr(state.kv, "close", None)
    if callable(close):
        close()
