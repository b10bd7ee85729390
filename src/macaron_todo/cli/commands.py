# src/macaron_todo/cli/commands.py

from __future__ import annotations

import inspect
import logging
from collections.abc import Callable
from dataclasses import replace
from datetime import datetime
from pathlib import Path
from typing import cast

from ..core.models import Priority, Task, TaskDraft, resolve_category
from ..core.state import AppState
from ..invites import InviteLedger, generate_invite_code, is_valid_invite_code
from ..query.filters import FilterCriteria, StatusFilter, filter_tasks, search_tasks, status_counts
from ..query.stats import (
    category_breakdown,
    completion_streak,
    rolling_history,
    snapshot_stats,
    window_summary,
)
from ..storage.kv_store import PersistenceError
from ..tabular import (
    export_csv,
    export_filename,
    format_locale_date,
    import_csv_bytes,
    parse_locale_datetime,
)

CommandEmitter = Callable[[str], None]
CommandHandler2 = Callable[[AppState, list[str]], str]
CommandHandler3 = Callable[[AppState, list[str], CommandEmitter | None], str]
CommandHandler = CommandHandler2 | CommandHandler3

logger = logging.getLogger(__name__)

ID_PREFIX_LEN = 8


class CommandRegistry:
    """Simple slash-command registry used by the console (/help, /add, ...)."""

    def __init__(self) -> None:
        self._handlers: dict[str, CommandHandler] = {}
        self._help: dict[str, str] = {}

    def register(
        self,
        name: str,
        handler: CommandHandler,
        help_text: str,
        aliases: list[str] | None = None,
    ) -> None:
        aliases = aliases or []
        key = name.lower()
        self._handlers[key] = handler
        self._help[key] = help_text
        for alias in aliases:
            self._handlers[alias.lower()] = handler

    def handle(self, state: AppState, line: str, emit: CommandEmitter | None = None) -> str | None:
        """
        Handle a string like "/command args".
        Returns a reply string or None if not a command.
        """
        if not line.startswith("/"):
            return None

        parts = line[1:].split()
        if not parts:
            return "Empty command. Use /help to list available commands."

        name = parts[0].lower()
        args = parts[1:]

        handler = self._handlers.get(name)
        if not handler:
            return f"Unknown command: /{name}. Use /help to list available commands."

        try:
            nparams = len(inspect.signature(handler).parameters)
        except (TypeError, ValueError):
            nparams = 3

        if nparams >= 3:
            h3 = cast(CommandHandler3, handler)
            return h3(state, args, emit)

        h2 = cast(CommandHandler2, handler)
        return h2(state, args)

    def build_help(self) -> str:
        lines = ["Available commands:"]
        for name, help_text in self._help.items():
            lines.append(f"  /{name} - {help_text}")
        return "\n".join(lines)


registry = CommandRegistry()


# ---- helpers ----


def _now(state: AppState) -> datetime:
    return state.clock.now()


def format_task(state: AppState, t: Task) -> str:
    box = "[x]" if t.is_completed else "[ ]"
    cat = resolve_category(state.store.snapshot.categories, t.category)
    parts = [f"{box} {t.id[:ID_PREFIX_LEN]} ({t.priority.value}) {t.title or '(untitled)'}", f"@{cat.name}"]
    if t.tags:
        parts.append(" ".join(f"#{tag}" for tag in t.tags))
    if t.due_date:
        parts.append(f"due:{format_locale_date(t.due_date)}")
    if t.is_archived:
        parts.append("(archived)")
    return "  ".join(parts)


def resolve_ids(state: AppState, refs: list[str]) -> tuple[list[str], list[str]]:
    """
    Map id prefixes to full ids. Returns (resolved, unmatched-or-ambiguous).

    Each id appears once in resolved, in first-mention order.
    """
    resolved: list[str] = []
    bad: list[str] = []
    for ref in refs:
        hits = [t.id for t in state.store.tasks if t.id.startswith(ref)]
        if len(hits) == 1:
            if hits[0] not in resolved:
                resolved.append(hits[0])
        else:
            bad.append(ref)
    return resolved, bad


def parse_add_args(args: list[str]) -> TaskDraft:
    """
    /add words... [!low|!medium|!high] [#tag] [@category] [due:YYYY-MM-DD]

    Raises ValueError for an unknown priority or unparseable due date.
    """
    title_words: list[str] = []
    priority = Priority.MEDIUM
    tags: list[str] = []
    category = "other"
    due: datetime | None = None

    for tok in args:
        if tok.startswith("!") and len(tok) > 1:
            priority = Priority(tok[1:].lower())
        elif tok.startswith("#") and len(tok) > 1:
            tags.append(tok[1:])
        elif tok.startswith("@") and len(tok) > 1:
            category = tok[1:]
        elif tok.startswith("due:"):
            due = parse_locale_datetime(tok[4:])
            if due is None:
                raise ValueError(f"bad due date: {tok[4:]}")
        else:
            title_words.append(tok)

    if not title_words:
        raise ValueError("title is empty")

    return TaskDraft(
        title=" ".join(title_words),
        priority=priority,
        category=category,
        tags=tuple(tags),
        due_date=due,
    )


def _persist_note(state: AppState) -> str:
    if state.store.last_persist_error is not None:
        return "\n(warning: changes are not saved to disk, see log)"
    return ""


# ---- handlers ----


def cmd_help(state: AppState, args: list[str]) -> str:
    return registry.build_help()


def cmd_add(state: AppState, args: list[str]) -> str:
    if not args:
        return "Usage: /add <title> [!low|!medium|!high] [#tag] [@category] [due:YYYY-MM-DD]"
    try:
        draft = parse_add_args(args)
    except ValueError as e:
        return f"Cannot add: {e}"
    snap = state.store.add(draft)
    return f"Added: {format_task(state, snap.tasks[-1])}{_persist_note(state)}"


def cmd_list(state: AppState, args: list[str]) -> str:
    """
    /list                 -> everything
    /list <status> [text] -> status in all|pending|completed|overdue|today|week|month
    """
    status = StatusFilter.ALL
    rest = list(args)
    if rest:
        try:
            status = StatusFilter(rest[0].lower())
            rest = rest[1:]
        except ValueError:
            pass
    criteria = FilterCriteria(query=" ".join(rest), status=status)
    items = filter_tasks(state.store.tasks, criteria, _now(state))
    if not items:
        return "No tasks."
    counts = status_counts(state.store.tasks, _now(state))
    header = f"{len(items)} task(s) shown ({status.value}: {counts[status]}):"
    return "\n".join([header, *(format_task(state, t) for t in items)])


def cmd_done(state: AppState, args: list[str]) -> str:
    ids, bad = resolve_ids(state, args)
    if not ids:
        return "Usage: /done <id-prefix>... (no matching task)"
    for task_id in ids:
        state.store.toggle_completion(task_id)
    lines = [format_task(state, t) for t in state.store.tasks if t.id in ids]
    if bad:
        lines.append(f"Not matched: {', '.join(bad)}")
    return "\n".join(lines) + _persist_note(state)


def cmd_edit(state: AppState, args: list[str]) -> str:
    if len(args) < 2:
        return "Usage: /edit <id-prefix> <new title>"
    ids, _ = resolve_ids(state, args[:1])
    if not ids:
        return f"No single task matches {args[0]!r}."
    task = state.store.snapshot.get_task(ids[0])
    if task is None:
        return f"No single task matches {args[0]!r}."
    state.store.update(replace(task, title=" ".join(args[1:])))
    updated = state.store.snapshot.get_task(ids[0])
    return f"Updated: {format_task(state, updated or task)}{_persist_note(state)}"


def cmd_rm(state: AppState, args: list[str]) -> str:
    ids, bad = resolve_ids(state, args)
    if not ids:
        return "Usage: /rm <id-prefix>... (no matching task)"
    state.store.delete_many(ids)
    msg = f"Deleted {len(ids)} task(s)."
    if bad:
        msg += f" Not matched: {', '.join(bad)}"
    return msg + _persist_note(state)


def cmd_archive(state: AppState, args: list[str]) -> str:
    ids, _ = resolve_ids(state, args)
    if not ids:
        return "Usage: /archive <id-prefix>..."
    state.store.archive(ids)
    return f"Archived {len(ids)} task(s).{_persist_note(state)}"


def cmd_unarchive(state: AppState, args: list[str]) -> str:
    ids, _ = resolve_ids(state, args)
    if not ids:
        return "Usage: /unarchive <id-prefix>..."
    state.store.unarchive(ids)
    return f"Unarchived {len(ids)} task(s).{_persist_note(state)}"


def cmd_move(state: AppState, args: list[str]) -> str:
    if len(args) < 2:
        return "Usage: /move <category-id> <id-prefix>..."
    category_id = args[0]
    ids, _ = resolve_ids(state, args[1:])
    if not ids:
        return "No matching task."
    state.store.move_category(ids, category_id)
    return f"Moved {len(ids)} task(s) to {category_id}.{_persist_note(state)}"


def cmd_search(state: AppState, args: list[str]) -> str:
    hits = search_tasks(state.store.tasks, state.store.snapshot.categories, " ".join(args))
    if not hits:
        return "Nothing found."
    return "\n".join(format_task(state, t) for t in hits)


def cmd_stats(state: AppState, args: list[str]) -> str:
    s = snapshot_stats(state.store.tasks, _now(state))
    return (
        "Stats:\n"
        f"  Total: {s.total} (completed {s.completed}, pending {s.pending})\n"
        f"  Today: {s.today_completed} / {s.today_total} completed\n"
        f"  Overdue: {s.overdue}\n"
        f"  Completion rate: {s.completion_rate:.0f}%"
    )


def cmd_history(state: AppState, args: list[str]) -> str:
    """
    /history        -> last week
    /history month  -> last month
    """
    month = bool(args) and args[0].lower() == "month"
    days = state.settings.month_window_days if month else state.settings.week_window_days
    history = rolling_history(state.store.tasks, _now(state), days)
    summary = window_summary(history)
    lines = [f"Last {days} day(s):"]
    for d in history:
        lines.append(f"  {d.date}  {d.completed}/{d.total}  {d.completion_rate:.0f}%")
    lines.append(f"  Total {summary.completed}/{summary.total} ({summary.completion_rate:.0f}%)")
    if summary.best_day is not None and summary.best_day.total > 0:
        lines.append(f"  Best day: {summary.best_day.date} ({summary.best_day.completion_rate:.0f}%)")
    return "\n".join(lines)


def cmd_categories(state: AppState, args: list[str]) -> str:
    rows = category_breakdown(state.store.tasks, state.store.snapshot.categories)
    if not rows:
        return "No active tasks."
    lines = ["By category:"]
    for r in rows:
        lines.append(f"  {r.name} ({r.id}): {r.completed}/{r.total}  {r.completion_rate:.0f}%")
    return "\n".join(lines)


def cmd_streak(state: AppState, args: list[str]) -> str:
    days = completion_streak(state.store.tasks, _now(state), state.settings.streak_lookback_days)
    return f"Current streak: {days} day(s)."


def cmd_summary(state: AppState, args: list[str]) -> str:
    snap = state.store.generate_daily_summary()
    lines = ["Daily summary ledger:"]
    for s in snap.summaries:
        lines.append(f"  {s.date}  {s.completed}/{s.total}  {s.completion_rate:.0f}%")
    return "\n".join(lines) + _persist_note(state)


def cmd_export(state: AppState, args: list[str]) -> str:
    """/export [path] -> write CSV (default: <export_dir>/<locale-date name>.csv)"""
    if args:
        path = Path(" ".join(args)).expanduser()
    else:
        path = Path(state.settings.export_dir) / export_filename(_now(state)).replace("/", "-")
    text = export_csv(state.store.tasks, state.store.snapshot.categories)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text, encoding="utf-8")
    except OSError:
        logger.exception("Export failed path=%s", path)
        return f"Export failed: cannot write {path}"
    logger.info("Exported %d task(s) to %s", len(state.store.tasks), path)
    return f"Exported {len(state.store.tasks)} task(s) to {path}"


def cmd_import(state: AppState, args: list[str]) -> str:
    if not args:
        return "Usage: /import <path>"
    path = Path(" ".join(args)).expanduser()
    try:
        data = path.read_bytes()
    except OSError:
        logger.exception("Import failed path=%s", path)
        return "导入失败，请检查文件格式"
    report = import_csv_bytes(data, state.store, now=_now(state))
    msg = report.message
    if report.coerced_priorities:
        msg += f"\n(unknown priorities set to medium: {', '.join(report.coerced_priorities)})"
    return msg + _persist_note(state)


def cmd_clear(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    """/clear confirm -> drop all tasks and the summary ledger"""
    if not args or args[0].lower() != "confirm":
        return "This deletes all tasks and summaries. Type /clear confirm to proceed."
    if emit:
        emit("Clearing all data...")
    state.store.clear()
    return f"All data cleared.{_persist_note(state)}"


def cmd_invite(state: AppState, args: list[str]) -> str:
    """
    /invite             -> generate a fresh code
    /invite use <code>  -> consume a code (single use)
    /invite check <code>
    """
    if not args:
        return f"Invite code: {generate_invite_code()}"
    if len(args) < 2 or args[0].lower() not in ("use", "check"):
        return "Usage: /invite | /invite use <code> | /invite check <code>"

    code = args[1].strip().upper()
    ledger = InviteLedger(state.kv)
    try:
        if args[0].lower() == "check":
            if not is_valid_invite_code(code):
                return f"{code} is not a valid invite code."
            return f"{code} is {'already used' if ledger.is_used(code) else 'unused'}."
        if ledger.mark_used(code):
            return f"Invite code {code} accepted."
    except PersistenceError:
        logger.exception("Invite ledger unavailable.")
        return "Invite ledger could not be read or saved, see log."
    return f"Invite code {code} is invalid or already used."


registry.register("help", cmd_help, help_text="Show available commands.", aliases=["h", "?"])
registry.register("add", cmd_add, help_text="Add a task: /add title [!high] [#tag] [@work] [due:2024-01-31].")
registry.register(
    "list",
    cmd_list,
    help_text="List tasks: /list [all|pending|completed|overdue|today|week|month] [text].",
    aliases=["ls"],
)
registry.register("done", cmd_done, help_text="Toggle completion: /done <id>...", aliases=["toggle"])
registry.register("edit", cmd_edit, help_text="Rename a task: /edit <id> <new title>.")
registry.register("rm", cmd_rm, help_text="Delete tasks: /rm <id>...", aliases=["del"])
registry.register("archive", cmd_archive, help_text="Archive tasks: /archive <id>...")
registry.register("unarchive", cmd_unarchive, help_text="Unarchive tasks: /unarchive <id>...")
registry.register("move", cmd_move, help_text="Move tasks to a category: /move <category> <id>...")
registry.register("search", cmd_search, help_text="Search title/description/tags/category: /search <text>.")
registry.register("stats", cmd_stats, help_text="Show current counters.")
registry.register("history", cmd_history, help_text="Per-day history: /history | /history month.")
registry.register("categories", cmd_categories, help_text="Completion by category.", aliases=["cats"])
registry.register("streak", cmd_streak, help_text="Show the completion streak.")
registry.register("summary", cmd_summary, help_text="Record today's summary and show the ledger.")
registry.register("export", cmd_export, help_text="Export CSV: /export [path].")
registry.register("import", cmd_import, help_text="Import CSV: /import <path>.")
registry.register("clear", cmd_clear, help_text="Delete everything: /clear confirm.")
registry.register("invite", cmd_invite, help_text="Invite codes: /invite | /invite use <code> | /invite check <code>.")
