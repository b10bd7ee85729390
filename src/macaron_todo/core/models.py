# src/macaron_todo/core/models.py

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, datetime
from enum import StrEnum

logger = logging.getLogger(__name__)


class Priority(StrEnum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"

    @classmethod
    def from_raw(cls, raw: str | None) -> Priority:
        """
        Lenient parse used where external data enters (persisted state, CSV import).

        Unknown values coerce to MEDIUM. Drafts use the strict constructor instead.
        """
        if not raw:
            return cls.MEDIUM
        try:
            return cls(str(raw).strip().lower())
        except ValueError:
            logger.warning("Unknown priority %r coerced to %s", raw, cls.MEDIUM.value)
            return cls.MEDIUM


class RepeatKind(StrEnum):
    """Informational only: no recurring instances are generated."""

    NONE = "none"
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"

    @classmethod
    def from_raw(cls, raw: str | None) -> RepeatKind:
        if not raw:
            return cls.NONE
        try:
            return cls(str(raw).strip().lower())
        except ValueError:
            logger.warning("Unknown repeat kind %r coerced to %s", raw, cls.NONE.value)
            return cls.NONE


@dataclass(frozen=True, slots=True)
class Category:
    id: str
    name: str
    color: str
    icon: str


OTHER_CATEGORY_ID = "other"

DEFAULT_CATEGORIES: tuple[Category, ...] = (
    Category(id="work", name="工作", color="#FFB7B2", icon="briefcase"),
    Category(id="life", name="生活", color="#B5EAD7", icon="home"),
    Category(id="study", name="学习", color="#C7CEEA", icon="book"),
    Category(id="health", name="健康", color="#FFDAC1", icon="heart"),
    Category(id=OTHER_CATEGORY_ID, name="其他", color="#E2F0CB", icon="more-horizontal"),
)


def find_category(categories: tuple[Category, ...] | list[Category], category_id: str) -> Category | None:
    """Exact lookup by id. Returns None for dangling references."""
    for cat in categories:
        if cat.id == category_id:
            return cat
    return None


def resolve_category(categories: tuple[Category, ...] | list[Category], category_id: str) -> Category:
    """
    Resolve a soft category reference for display.

    Dangling ids fall back to the "other" pseudo-category (the one from `categories`
    if present, else the built-in default).
    """
    cat = find_category(categories, category_id)
    if cat is not None:
        return cat
    other = find_category(categories, OTHER_CATEGORY_ID)
    if other is not None:
        return other
    return DEFAULT_CATEGORIES[-1]


@dataclass(frozen=True, slots=True)
class Task:
    """
    Immutable task record. Updates replace the whole value.

    Invariants kept by the store:
    - completed_at is set iff is_completed
    - archived_at is set iff is_archived
    - created_at never changes after creation
    """

    id: str
    title: str
    description: str
    is_completed: bool
    priority: Priority
    category: str
    tags: tuple[str, ...]
    created_at: datetime
    due_date: datetime | None = None
    reminder_time: datetime | None = None
    completed_at: datetime | None = None
    is_archived: bool = False
    archived_at: datetime | None = None
    repeat_type: RepeatKind = RepeatKind.NONE
    repeat_end_date: datetime | None = None


@dataclass(frozen=True, slots=True)
class TaskDraft:
    """
    Caller-supplied fields for a new task.

    Blank titles are accepted here; rejecting them is left to the presentation layer.
    Enum fields are strict: an unknown priority/repeat string raises ValueError.
    """

    title: str
    description: str = ""
    priority: Priority = Priority.MEDIUM
    category: str = OTHER_CATEGORY_ID
    tags: tuple[str, ...] = field(default_factory=tuple)
    due_date: datetime | None = None
    reminder_time: datetime | None = None
    repeat_type: RepeatKind = RepeatKind.NONE
    repeat_end_date: datetime | None = None

    def __post_init__(self) -> None:
        if not isinstance(self.title, str):
            raise ValueError("title must be a string")
        if not isinstance(self.description, str):
            raise ValueError("description must be a string")
        if not isinstance(self.category, str):
            raise ValueError("category must be a string")
        # Frozen dataclass: normalize via object.__setattr__.
        object.__setattr__(self, "priority", Priority(self.priority))
        object.__setattr__(self, "repeat_type", RepeatKind(self.repeat_type))
        object.__setattr__(self, "tags", tuple(str(t) for t in self.tags))


def build_task(draft: TaskDraft, *, task_id: str, now: datetime) -> Task:
    """Materialize a draft: the store supplies id and created_at; completion starts cleared."""
    return Task(
        id=task_id,
        title=draft.title,
        description=draft.description,
        is_completed=False,
        priority=draft.priority,
        category=draft.category,
        tags=draft.tags,
        created_at=now,
        due_date=draft.due_date,
        reminder_time=draft.reminder_time,
        completed_at=None,
        is_archived=False,
        archived_at=None,
        repeat_type=draft.repeat_type,
        repeat_end_date=draft.repeat_end_date,
    )


@dataclass(frozen=True, slots=True)
class DailySummary:
    date: str  # YYYY-MM-DD (local calendar day)
    total: int
    completed: int
    completion_rate: float  # 0..100


def date_key(value: datetime | date) -> str:
    """Local calendar-day key, e.g. "2024-01-31"."""
    if isinstance(value, datetime):
        value = value.date()
    return value.isoformat()


def completion_rate(completed: int, total: int) -> float:
    if total <= 0:
        return 0.0
    return completed / total * 100.0


def summarize_day(day: str, tasks: list[Task]) -> DailySummary:
    completed = sum(1 for t in tasks if t.is_completed)
    return DailySummary(
        date=day,
        total=len(tasks),
        completed=completed,
        completion_rate=completion_rate(completed, len(tasks)),
    )
