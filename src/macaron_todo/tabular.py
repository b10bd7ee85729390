# src/macaron_todo/tabular.py

"""
Lossy comma-delimited export and best-effort re-import.

Export writes title/description quoted (inner quotes doubled), everything else raw.
Tags, archive state, repeat settings and ids are not carried over.

Import uses a tolerant splitter: every quote character toggles an "inside quotes"
flag and commas split only outside quotes. Doubled quotes therefore collapse
(`"a""b"` reads back as `ab`); this matches what the exporter's counterpart has
always accepted.
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from datetime import datetime

from .core.models import Category, Priority, RepeatKind, Task
from .core.store import TodoStore

logger = logging.getLogger(__name__)

HEADERS = ("标题", "描述", "完成状态", "优先级", "分类", "截止日期", "提醒时间", "创建时间", "完成时间")
STATUS_DONE = "已完成"
STATUS_PENDING = "未完成"
DEFAULT_IMPORT_CATEGORY = "default"
MIN_FIELDS = 4

_DATETIME_FORMATS = ("%Y/%m/%d %H:%M:%S", "%Y/%m/%d %H:%M", "%Y-%m-%d %H:%M:%S", "%Y-%m-%dT%H:%M:%S")
_DATE_FORMATS = ("%Y/%m/%d", "%Y-%m-%d")


class ImportParseError(ValueError):
    """The import payload could not be read at all (e.g. wrong encoding)."""


@dataclass(frozen=True, slots=True)
class ImportReport:
    ok: bool
    imported: int
    message: str
    coerced_priorities: list[str] = field(default_factory=list)


# ---- locale formatting ----


def format_locale_date(value: datetime) -> str:
    return f"{value.year}/{value.month}/{value.day}"


def format_locale_datetime(value: datetime) -> str:
    return f"{format_locale_date(value)} {value:%H:%M:%S}"


def parse_locale_datetime(raw: str) -> datetime | None:
    """Parse what format_locale_date/format_locale_datetime produce (ISO accepted too)."""
    s = raw.strip()
    if not s:
        return None
    for fmt in (*_DATETIME_FORMATS, *_DATE_FORMATS):
        try:
            return datetime.strptime(s, fmt)
        except ValueError:
            continue
    try:
        return datetime.fromisoformat(s)
    except ValueError:
        logger.debug("Unparseable date field %r", raw)
        return None


def export_filename(now: datetime) -> str:
    return f"待办事项_{format_locale_date(now)}.csv"


# ---- export ----


def _quote(text: str) -> str:
    return '"' + text.replace('"', '""') + '"'


def export_csv(tasks: Sequence[Task], categories: Sequence[Category]) -> str:
    """
    Header plus one row per task, archived included.

    The category column shows the display name, or the raw id when it is dangling.
    """
    names = {c.id: c.name for c in categories}
    lines = [",".join(HEADERS)]
    for t in tasks:
        row = [
            _quote(t.title),
            _quote(t.description),
            STATUS_DONE if t.is_completed else STATUS_PENDING,
            t.priority.value,
            names.get(t.category) or t.category,
            format_locale_date(t.due_date) if t.due_date else "",
            format_locale_datetime(t.reminder_time) if t.reminder_time else "",
            format_locale_datetime(t.created_at),
            format_locale_datetime(t.completed_at) if t.completed_at else "",
        ]
        lines.append(",".join(row))
    return "\n".join(lines)


# ---- import ----


def parse_csv_line(line: str) -> list[str]:
    fields: list[str] = []
    buf: list[str] = []
    in_quotes = False
    for ch in line:
        if ch == '"':
            in_quotes = not in_quotes
        elif ch == "," and not in_quotes:
            fields.append("".join(buf).strip())
            buf = []
        else:
            buf.append(ch)
    fields.append("".join(buf).strip())
    return fields


def _field(fields: list[str], idx: int) -> str:
    return fields[idx] if idx < len(fields) else ""


def _category_id(raw: str, categories: Sequence[Category]) -> str:
    if not raw:
        return DEFAULT_IMPORT_CATEGORY
    for c in categories:
        if c.name == raw or c.id == raw:
            return c.id
    return raw


def parse_csv(
    text: str,
    *,
    categories: Sequence[Category],
    now: datetime,
    id_factory: Callable[[], str] | None = None,
    coerced: list[str] | None = None,
) -> list[Task]:
    """
    Rebuild tasks from exported text.

    Skips the header and blank lines; rows with fewer than 4 fields are dropped.
    Every row gets a fresh id, so imports never update existing tasks.
    Unknown priorities are coerced to medium and their raw text appended to `coerced`.
    """
    make_id = id_factory or (lambda: str(uuid.uuid4()))
    out: list[Task] = []
    for line in text.split("\n")[1:]:
        line = line.strip()
        if not line:
            continue
        fields = parse_csv_line(line)
        if len(fields) < MIN_FIELDS:
            continue

        raw_priority = fields[3]
        priority = Priority.from_raw(raw_priority)
        if priority.value != raw_priority.strip().lower() and coerced is not None:
            coerced.append(raw_priority)

        is_completed = fields[2] == STATUS_DONE
        created_at = parse_locale_datetime(_field(fields, 7)) or now
        completed_at = parse_locale_datetime(_field(fields, 8)) if is_completed else None
        if is_completed and completed_at is None:
            completed_at = now

        out.append(
            Task(
                id=make_id(),
                title=fields[0],
                description=fields[1],
                is_completed=is_completed,
                priority=priority,
                category=_category_id(_field(fields, 4), categories),
                tags=(),
                created_at=created_at,
                due_date=parse_locale_datetime(_field(fields, 5)),
                reminder_time=None,
                completed_at=completed_at,
                is_archived=False,
                archived_at=None,
                repeat_type=RepeatKind.NONE,
                repeat_end_date=None,
            )
        )
    return out


def import_csv_text(
    text: str,
    store: TodoStore,
    *,
    now: datetime,
    id_factory: Callable[[], str] | None = None,
) -> ImportReport:
    """Parse then merge. Nothing is committed unless the whole text parsed."""
    coerced: list[str] = []
    try:
        tasks = parse_csv(
            text,
            categories=store.snapshot.categories,
            now=now,
            id_factory=id_factory,
            coerced=coerced,
        )
    except (ValueError, IndexError):
        logger.exception("CSV import failed while parsing.")
        return ImportReport(ok=False, imported=0, message="导入失败，请检查文件格式")

    store.import_merge(tasks)
    if coerced:
        logger.warning("CSV import coerced %d unknown priorities: %s", len(coerced), coerced)
    return ImportReport(
        ok=True,
        imported=len(tasks),
        message=f"成功导入 {len(tasks)} 条待办事项",
        coerced_priorities=coerced,
    )


def decode_import_bytes(data: bytes) -> str:
    try:
        text = data.decode("utf-8-sig")
    except UnicodeDecodeError as e:
        raise ImportParseError(f"import file is not UTF-8: {e}") from e
    return text.replace("\r\n", "\n")


def import_csv_bytes(
    data: bytes,
    store: TodoStore,
    *,
    now: datetime,
    id_factory: Callable[[], str] | None = None,
) -> ImportReport:
    try:
        text = decode_import_bytes(data)
    except ImportParseError:
        logger.warning("CSV import rejected: undecodable payload (%d bytes)", len(data))
        return ImportReport(ok=False, imported=0, message="导入失败，请检查文件格式")
    return import_csv_text(text, store, now=now, id_factory=id_factory)
