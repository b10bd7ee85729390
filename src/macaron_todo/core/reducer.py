# src/macaron_todo/core/reducer.py

"""
Pure transitions over an immutable Snapshot.

Each function takes the current snapshot and returns a new one; nothing is mutated.
Unknown ids are ignored (the snapshot comes back equal, never an error).
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, replace
from datetime import datetime

from .models import DEFAULT_CATEGORIES, Category, DailySummary, Task, date_key, summarize_day


@dataclass(frozen=True, slots=True)
class Snapshot:
    tasks: tuple[Task, ...] = ()
    categories: tuple[Category, ...] = DEFAULT_CATEGORIES
    summaries: tuple[DailySummary, ...] = ()

    def get_task(self, task_id: str) -> Task | None:
        for t in self.tasks:
            if t.id == task_id:
                return t
        return None


def add_task(snap: Snapshot, task: Task) -> Snapshot:
    return replace(snap, tasks=(*snap.tasks, task))


def toggle_task(snap: Snapshot, task_id: str, *, now: datetime) -> Snapshot:
    if snap.get_task(task_id) is None:
        return snap

    def flip(t: Task) -> Task:
        done = not t.is_completed
        return replace(t, is_completed=done, completed_at=now if done else None)

    return replace(snap, tasks=tuple(flip(t) if t.id == task_id else t for t in snap.tasks))


def update_task(snap: Snapshot, task: Task, *, now: datetime) -> Snapshot:
    """
    Replace the task with the same id.

    created_at stays the stored value. completed_at and archived_at are brought in line
    with their flags: a flag set without a timestamp keeps the stored one, else gets now.
    """
    existing = snap.get_task(task.id)
    if existing is None:
        return snap

    completed_at = None
    if task.is_completed:
        completed_at = task.completed_at or existing.completed_at or now
    archived_at = None
    if task.is_archived:
        archived_at = task.archived_at or existing.archived_at or now

    fixed = replace(
        task,
        created_at=existing.created_at,
        completed_at=completed_at,
        archived_at=archived_at,
    )
    return replace(snap, tasks=tuple(fixed if t.id == task.id else t for t in snap.tasks))


def delete_tasks(snap: Snapshot, ids: Iterable[str]) -> Snapshot:
    drop = set(ids)
    return replace(snap, tasks=tuple(t for t in snap.tasks if t.id not in drop))


def archive_tasks(snap: Snapshot, ids: Iterable[str], *, now: datetime) -> Snapshot:
    hit = set(ids)
    return replace(
        snap,
        tasks=tuple(
            replace(t, is_archived=True, archived_at=now) if t.id in hit else t
            for t in snap.tasks
        ),
    )


def unarchive_tasks(snap: Snapshot, ids: Iterable[str]) -> Snapshot:
    hit = set(ids)
    return replace(
        snap,
        tasks=tuple(
            replace(t, is_archived=False, archived_at=None) if t.id in hit else t
            for t in snap.tasks
        ),
    )


def move_category(snap: Snapshot, ids: Iterable[str], category_id: str) -> Snapshot:
    # Soft reference: category_id is not checked against snap.categories.
    hit = set(ids)
    return replace(
        snap,
        tasks=tuple(replace(t, category=category_id) if t.id in hit else t for t in snap.tasks),
    )


def import_merge(snap: Snapshot, incoming: Iterable[Task]) -> Snapshot:
    """Append-only merge: an incoming task whose id already exists is dropped (existing wins)."""
    existing = {t.id for t in snap.tasks}
    fresh = tuple(t for t in incoming if t.id not in existing)
    return replace(snap, tasks=(*snap.tasks, *fresh))


def generate_daily_summary(snap: Snapshot, *, now: datetime) -> Snapshot:
    """
    Upsert the ledger entry for now's calendar day.

    Counts every task created that day, archived or not. A prior entry for the same
    date is replaced and the new one goes to the end.
    """
    day = date_key(now)
    day_tasks = [t for t in snap.tasks if date_key(t.created_at) == day]
    summary = summarize_day(day, day_tasks)
    kept = tuple(s for s in snap.summaries if s.date != day)
    return replace(snap, summaries=(*kept, summary))


def load(snap: Snapshot, tasks: Iterable[Task], summaries: Iterable[DailySummary]) -> Snapshot:
    return replace(snap, tasks=tuple(tasks), summaries=tuple(summaries))
