# src/macaron_todo/storage/codec.py

"""
JSON codec for the persisted collections.

Field names follow the original camelCase persisted shape (isCompleted, createdAt, ...)
so previously saved data loads as-is. There is no schema version: loading trusts the
shape and only fills obvious gaps (missing keys get defaults, unknown enum values are
coerced and logged).
"""

from __future__ import annotations

import json
import logging
from datetime import datetime
from typing import Any

from ..core.models import DailySummary, Priority, RepeatKind, Task
from .kv_store import PersistenceError

logger = logging.getLogger(__name__)


def format_datetime(value: datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


def parse_datetime(raw: Any) -> datetime | None:
    """
    Parse an ISO-8601 timestamp into naive local time.

    Accepts the JS-style "2024-01-01T08:00:00.000Z" form as well. Empty/invalid -> None.
    """
    if raw is None or raw == "":
        return None
    if isinstance(raw, datetime):
        dt = raw
    else:
        s = str(raw).strip()
        if s.endswith("Z"):
            s = s[:-1] + "+00:00"
        try:
            dt = datetime.fromisoformat(s)
        except ValueError:
            logger.warning("Unparseable timestamp %r dropped", raw)
            return None
    if dt.tzinfo is not None:
        dt = dt.astimezone().replace(tzinfo=None)
    return dt


def task_to_dict(task: Task) -> dict[str, Any]:
    return {
        "id": task.id,
        "title": task.title,
        "description": task.description,
        "isCompleted": task.is_completed,
        "priority": task.priority.value,
        "category": task.category,
        "tags": list(task.tags),
        "createdAt": format_datetime(task.created_at),
        "dueDate": format_datetime(task.due_date),
        "reminderTime": format_datetime(task.reminder_time),
        "completedAt": format_datetime(task.completed_at),
        "isArchived": task.is_archived,
        "archivedAt": format_datetime(task.archived_at),
        "repeatType": task.repeat_type.value,
        "repeatEndDate": format_datetime(task.repeat_end_date),
    }


def task_from_dict(data: dict[str, Any]) -> Task:
    if "id" not in data:
        raise PersistenceError("persisted task has no id")
    created_at = parse_datetime(data.get("createdAt"))
    if created_at is None:
        raise PersistenceError(f"persisted task {data['id']!r} has no createdAt")
    tags = data.get("tags") or []
    return Task(
        id=str(data["id"]),
        title=str(data.get("title") or ""),
        description=str(data.get("description") or ""),
        is_completed=bool(data.get("isCompleted", False)),
        priority=Priority.from_raw(data.get("priority")),
        category=str(data.get("category") or ""),
        tags=tuple(str(t) for t in tags),
        created_at=created_at,
        due_date=parse_datetime(data.get("dueDate")),
        reminder_time=parse_datetime(data.get("reminderTime")),
        completed_at=parse_datetime(data.get("completedAt")),
        is_archived=bool(data.get("isArchived", False)),
        archived_at=parse_datetime(data.get("archivedAt")),
        repeat_type=RepeatKind.from_raw(data.get("repeatType")),
        repeat_end_date=parse_datetime(data.get("repeatEndDate")),
    )


def summary_to_dict(summary: DailySummary) -> dict[str, Any]:
    return {
        "date": summary.date,
        "total": summary.total,
        "completed": summary.completed,
        "completionRate": summary.completion_rate,
    }


def summary_from_dict(data: dict[str, Any]) -> DailySummary:
    if "date" not in data:
        raise PersistenceError("persisted summary has no date")
    return DailySummary(
        date=str(data["date"]),
        total=int(data.get("total") or 0),
        completed=int(data.get("completed") or 0),
        completion_rate=float(data.get("completionRate") or 0.0),
    )


def _decode_list(raw: str, what: str) -> list[dict[str, Any]]:
    try:
        val = json.loads(raw)
    except json.JSONDecodeError as e:
        raise PersistenceError(f"corrupt {what} payload: {e}") from e
    if not isinstance(val, list) or not all(isinstance(x, dict) for x in val):
        raise PersistenceError(f"{what} payload is not a list of objects")
    return val


def dumps_tasks(tasks: tuple[Task, ...] | list[Task]) -> str:
    return json.dumps([task_to_dict(t) for t in tasks], ensure_ascii=False)


def loads_tasks(raw: str) -> list[Task]:
    return [task_from_dict(d) for d in _decode_list(raw, "tasks")]


def dumps_summaries(summaries: tuple[DailySummary, ...] | list[DailySummary]) -> str:
    return json.dumps([summary_to_dict(s) for s in summaries], ensure_ascii=False)


def loads_summaries(raw: str) -> list[DailySummary]:
    return [summary_from_dict(d) for d in _decode_list(raw, "summaries")]
