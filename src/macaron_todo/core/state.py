# src/macaron_todo/core/state.py

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from .ports import Clock, KeyValueStore
from .store import TodoStore


@dataclass
class AppState:
    """
    Explicitly constructed container passed to whatever needs it (CLI, commands).

    Built once at startup by cli.bootstrap, torn down at shutdown.
    """

    settings: Any
    kv: KeyValueStore
    clock: Clock
    store: TodoStore
