# src/macaron_todo/core/store.py

from __future__ import annotations

import logging
import uuid
from collections.abc import Callable, Iterable
from datetime import datetime

from ..storage.codec import dumps_summaries, dumps_tasks, loads_summaries, loads_tasks
from ..storage.kv_store import PersistenceError
from . import reducer
from .models import DailySummary, Task, TaskDraft, build_task
from .ports import Clock, KeyValueStore, SystemClock
from .reducer import Snapshot

logger = logging.getLogger(__name__)

TASKS_KEY = "todos"
SUMMARIES_KEY = "dailySummaries"


def _new_task_id() -> str:
    return str(uuid.uuid4())


class TodoStore:
    """
    Single source of truth for tasks, categories and the daily-summary ledger.

    Every public transition:
    - runs to completion against the current snapshot,
    - swaps in the new snapshot,
    - writes both persisted keys in full,
    - returns the new snapshot.

    Persistence writes are fire-and-forget: a failed write is logged and kept in
    `last_persist_error`, the in-memory snapshot stays authoritative.
    """

    def __init__(
        self,
        kv: KeyValueStore,
        *,
        clock: Clock | None = None,
        id_factory: Callable[[], str] = _new_task_id,
    ) -> None:
        self._kv = kv
        self._clock = clock or SystemClock()
        self._id_factory = id_factory
        self._snapshot = Snapshot()
        self.last_persist_error: PersistenceError | None = None

    @property
    def snapshot(self) -> Snapshot:
        return self._snapshot

    @property
    def tasks(self) -> tuple[Task, ...]:
        return self._snapshot.tasks

    # ---- internals ----

    def _commit(self, new: Snapshot, action: str) -> Snapshot:
        self._snapshot = new
        logger.debug("Transition %s tasks=%d summaries=%d", action, len(new.tasks), len(new.summaries))
        self._persist()
        return new

    def _persist(self) -> None:
        snap = self._snapshot
        try:
            self._kv.set(TASKS_KEY, dumps_tasks(snap.tasks))
            self._kv.set(SUMMARIES_KEY, dumps_summaries(snap.summaries))
        except PersistenceError as e:
            logger.exception("Failed to persist snapshot.")
            self.last_persist_error = e
        else:
            self.last_persist_error = None

    # ---- startup ----

    def load_from_storage(self) -> Snapshot:
        """
        One-time startup load from durable storage.

        Missing keys mean a first run (empty collections). Read/decode failures raise
        PersistenceError: the caller decides whether that is fatal. Does not write back.
        """
        raw_tasks = self._kv.get(TASKS_KEY)
        raw_summaries = self._kv.get(SUMMARIES_KEY)
        tasks = loads_tasks(raw_tasks) if raw_tasks else []
        summaries = loads_summaries(raw_summaries) if raw_summaries else []
        self._snapshot = reducer.load(self._snapshot, tasks, summaries)
        logger.info("Loaded snapshot tasks=%d summaries=%d", len(tasks), len(summaries))
        return self._snapshot

    # ---- transitions ----

    def load(self, tasks: Iterable[Task], summaries: Iterable[DailySummary]) -> Snapshot:
        """Replace tasks and summaries wholesale. No validation."""
        return self._commit(reducer.load(self._snapshot, tasks, summaries), "load")

    def clear(self) -> Snapshot:
        return self._commit(reducer.load(self._snapshot, (), ()), "clear")

    def add(self, draft: TaskDraft) -> Snapshot:
        if not isinstance(draft, TaskDraft):
            raise ValueError("add() expects a TaskDraft")
        task = build_task(draft, task_id=self._id_factory(), now=self._clock.now())
        return self._commit(reducer.add_task(self._snapshot, task), "add")

    def toggle_completion(self, task_id: str) -> Snapshot:
        if self._snapshot.get_task(task_id) is None:
            logger.debug("toggle_completion: unknown id=%s", task_id)
        return self._commit(
            reducer.toggle_task(self._snapshot, task_id, now=self._clock.now()),
            "toggle_completion",
        )

    def update(self, task: Task) -> Snapshot:
        if self._snapshot.get_task(task.id) is None:
            logger.debug("update: unknown id=%s", task.id)
        return self._commit(reducer.update_task(self._snapshot, task, now=self._clock.now()), "update")

    def delete(self, task_id: str) -> Snapshot:
        return self._commit(reducer.delete_tasks(self._snapshot, [task_id]), "delete")

    def delete_many(self, ids: Iterable[str]) -> Snapshot:
        return self._commit(reducer.delete_tasks(self._snapshot, ids), "delete_many")

    def archive(self, ids: Iterable[str]) -> Snapshot:
        return self._commit(
            reducer.archive_tasks(self._snapshot, ids, now=self._clock.now()),
            "archive",
        )

    def unarchive(self, ids: Iterable[str]) -> Snapshot:
        return self._commit(reducer.unarchive_tasks(self._snapshot, ids), "unarchive")

    def move_category(self, ids: Iterable[str], category_id: str) -> Snapshot:
        return self._commit(reducer.move_category(self._snapshot, ids, category_id), "move_category")

    def import_merge(self, tasks: Iterable[Task]) -> Snapshot:
        before = len(self._snapshot.tasks)
        new = reducer.import_merge(self._snapshot, tasks)
        logger.info("Import merge added=%d", len(new.tasks) - before)
        return self._commit(new, "import_merge")

    def generate_daily_summary(self, now: datetime | None = None) -> Snapshot:
        if now is None:
            now = self._clock.now()
        return self._commit(reducer.generate_daily_summary(self._snapshot, now=now), "generate_daily_summary")
