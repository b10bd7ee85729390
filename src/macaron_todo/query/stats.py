# src/macaron_todo/query/stats.py

"""
Statistics & aggregation engine.

Everything here is computed live from the task collection passed in. The persisted
summary ledger (TodoStore.generate_daily_summary) is a separate point-in-time record:
the two may disagree after deletions, and that is expected.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta

from ..core.models import (
    OTHER_CATEGORY_ID,
    Category,
    DailySummary,
    Task,
    completion_rate,
    date_key,
    find_category,
    summarize_day,
)
from .filters import is_overdue


@dataclass(frozen=True, slots=True)
class TodoStats:
    total: int
    completed: int
    pending: int
    today_total: int
    today_completed: int
    overdue: int
    completion_rate: float


@dataclass(frozen=True, slots=True)
class CategoryStat:
    id: str
    name: str
    total: int
    completed: int
    completion_rate: float


@dataclass(frozen=True, slots=True)
class WindowSummary:
    total: int
    completed: int
    completion_rate: float
    best_day: DailySummary | None


@dataclass(slots=True)
class KanbanColumn:
    category_id: str
    pending: list[Task] = field(default_factory=list)
    completed: list[Task] = field(default_factory=list)


def snapshot_stats(tasks: Sequence[Task], now: datetime) -> TodoStats:
    today = day_bucket(tasks, now.date())
    completed = sum(1 for t in tasks if t.is_completed)
    return TodoStats(
        total=len(tasks),
        completed=completed,
        pending=len(tasks) - completed,
        today_total=len(today),
        today_completed=sum(1 for t in today if t.is_completed),
        overdue=sum(1 for t in tasks if is_overdue(t, now)),
        completion_rate=completion_rate(completed, len(tasks)),
    )


def day_bucket(tasks: Sequence[Task], day: date | str) -> list[Task]:
    """Tasks whose created_at falls on the given local calendar day."""
    key = day if isinstance(day, str) else date_key(day)
    return [t for t in tasks if date_key(t.created_at) == key]


def rolling_history(tasks: Sequence[Task], now: datetime, window_days: int) -> list[DailySummary]:
    """
    One live summary per day for the last `window_days` days, oldest first,
    the last record being now's day.
    """
    if window_days <= 0:
        return []
    today = now.date()
    out: list[DailySummary] = []
    for offset in range(window_days - 1, -1, -1):
        day = date_key(today - timedelta(days=offset))
        out.append(summarize_day(day, day_bucket(tasks, day)))
    return out


def window_summary(history: Sequence[DailySummary]) -> WindowSummary:
    """Totals over a rolling history plus the day with the best completion rate."""
    total = sum(d.total for d in history)
    completed = sum(d.completed for d in history)
    best: DailySummary | None = history[0] if history else None
    for d in history:
        if best is not None and d.completion_rate > best.completion_rate:
            best = d
    return WindowSummary(
        total=total,
        completed=completed,
        completion_rate=completion_rate(completed, total),
        best_day=best,
    )


def category_breakdown(tasks: Sequence[Task], categories: Sequence[Category]) -> list[CategoryStat]:
    """
    Non-archived tasks grouped by their literal category id, in first-seen order.

    Unknown ids are NOT folded into "other": they get their own group named after the id.
    """
    groups: dict[str, list[Task]] = {}
    for t in tasks:
        if t.is_archived:
            continue
        groups.setdefault(t.category, []).append(t)

    out: list[CategoryStat] = []
    for cat_id, items in groups.items():
        cat = find_category(categories, cat_id)
        done = sum(1 for t in items if t.is_completed)
        out.append(
            CategoryStat(
                id=cat_id,
                name=cat.name if cat is not None else cat_id,
                total=len(items),
                completed=done,
                completion_rate=completion_rate(done, len(items)),
            )
        )
    return out


def completion_streak(tasks: Sequence[Task], now: datetime, max_lookback_days: int = 30) -> int:
    """
    Count consecutive qualifying days walking back from today.

    A day qualifies when it has tasks and at least half of them are completed.
    Days without tasks are skipped. The first failing day ends the walk, except
    today: a day still in progress counts whenever it has tasks and never ends the walk.
    """
    streak = 0
    today = now.date()
    for offset in range(max_lookback_days):
        day_tasks = day_bucket(tasks, today - timedelta(days=offset))
        if not day_tasks:
            continue
        done = sum(1 for t in day_tasks if t.is_completed)
        if done >= len(day_tasks) / 2 or offset == 0:
            streak += 1
        else:
            break
    return streak


def kanban_columns(tasks: Sequence[Task], categories: Sequence[Category]) -> dict[str, KanbanColumn]:
    """
    Board view: every known category (plus "other") gets a column even when empty;
    tasks with an unknown category id get a column of their own. Archived tasks are left out.
    """
    columns: dict[str, KanbanColumn] = {c.id: KanbanColumn(category_id=c.id) for c in categories}
    columns.setdefault(OTHER_CATEGORY_ID, KanbanColumn(category_id=OTHER_CATEGORY_ID))

    for t in tasks:
        if t.is_archived:
            continue
        col = columns.setdefault(t.category, KanbanColumn(category_id=t.category))
        (col.completed if t.is_completed else col.pending).append(t)
    return columns


def calendar_month(tasks: Sequence[Task], year: int, month: int) -> dict[str, list[Task]]:
    """
    Non-archived tasks created or due in the given month, keyed by day.

    A task lands on its due day when it has one, otherwise on its creation day.
    """

    def in_month(dt: datetime | None) -> bool:
        return dt is not None and dt.year == year and dt.month == month

    by_day: dict[str, list[Task]] = {}
    for t in tasks:
        if t.is_archived:
            continue
        if not (in_month(t.created_at) or in_month(t.due_date)):
            continue
        anchor = t.due_date or t.created_at
        by_day.setdefault(date_key(anchor), []).append(t)
    return by_day
