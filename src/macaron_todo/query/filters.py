# src/macaron_todo/query/filters.py

"""
Query & filter engine.

Pure functions over a task sequence: inputs are never mutated and every call returns
a freshly built list.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from enum import StrEnum

from ..core.models import Category, Task, date_key, find_category


class StatusFilter(StrEnum):
    ALL = "all"
    PENDING = "pending"
    COMPLETED = "completed"
    OVERDUE = "overdue"
    TODAY = "today"
    THIS_WEEK = "week"
    THIS_MONTH = "month"


@dataclass(frozen=True, slots=True)
class FilterCriteria:
    """
    All parts optional and AND-ed together.

    start/end bound created_at inclusively. A plain date as `end` covers that whole day.
    """

    query: str = ""
    start: datetime | date | None = None
    end: datetime | date | None = None
    status: StatusFilter = StatusFilter.ALL


def start_of_day(now: datetime) -> datetime:
    return datetime.combine(now.date(), time.min)


def is_overdue(task: Task, now: datetime) -> bool:
    """Completed tasks are never overdue, whatever their due date."""
    return not task.is_completed and task.due_date is not None and task.due_date < now


def completed_last(tasks: Iterable[Task]) -> list[Task]:
    """Incomplete first, then completed; stable within each group."""
    return sorted(tasks, key=lambda t: t.is_completed)


def _lower_bound(value: datetime | date) -> datetime:
    if isinstance(value, datetime):
        return value
    return datetime.combine(value, time.min)


def _upper_bound(value: datetime | date) -> datetime:
    if isinstance(value, datetime):
        return value
    return datetime.combine(value, time.max)


def _matches_status(task: Task, status: StatusFilter, now: datetime) -> bool:
    if status == StatusFilter.PENDING:
        return not task.is_completed
    if status == StatusFilter.COMPLETED:
        return task.is_completed
    if status == StatusFilter.OVERDUE:
        return is_overdue(task, now)
    if status == StatusFilter.TODAY:
        return task.created_at >= start_of_day(now)
    # Rolling windows, not calendar-aligned.
    if status == StatusFilter.THIS_WEEK:
        return task.created_at >= now - timedelta(days=7)
    if status == StatusFilter.THIS_MONTH:
        return task.created_at >= now - timedelta(days=30)
    return True


def filter_tasks(tasks: Sequence[Task], criteria: FilterCriteria, now: datetime) -> list[Task]:
    status = StatusFilter(criteria.status)
    q = criteria.query.lower() if criteria.query else ""
    lo = _lower_bound(criteria.start) if criteria.start is not None else None
    hi = _upper_bound(criteria.end) if criteria.end is not None else None

    out: list[Task] = []
    for t in tasks:
        # Free text covers title + description only; tags/category are for search_tasks().
        if q and q not in t.title.lower() and q not in t.description.lower():
            continue
        if lo is not None and t.created_at < lo:
            continue
        if hi is not None and t.created_at > hi:
            continue
        if not _matches_status(t, status, now):
            continue
        out.append(t)
    return completed_last(out)


def search_tasks(tasks: Sequence[Task], categories: Sequence[Category], query: str) -> list[Task]:
    """
    Free search over title, description, each tag and the category display name.

    Archived tasks are excluded. An empty/whitespace query returns nothing.
    A dangling category id has no display name to match.
    """
    if not query or not query.strip():
        return []
    q = query.lower()

    out: list[Task] = []
    for t in tasks:
        if t.is_archived:
            continue
        cat = find_category(categories, t.category)
        if (
            q in t.title.lower()
            or q in t.description.lower()
            or any(q in tag.lower() for tag in t.tags)
            or (cat is not None and q in cat.name.lower())
        ):
            out.append(t)
    return out


def today_tasks(tasks: Sequence[Task], now: datetime) -> list[Task]:
    """Tasks created on now's calendar day, incomplete first."""
    day = date_key(now)
    return completed_last(t for t in tasks if date_key(t.created_at) == day)


def status_counts(tasks: Sequence[Task], now: datetime) -> dict[StatusFilter, int]:
    return {
        status: sum(1 for t in tasks if _matches_status(t, status, now))
        for status in StatusFilter
    }
