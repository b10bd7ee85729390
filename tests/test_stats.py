# tests/test_stats.py

from __future__ import annotations

from datetime import date, datetime, timedelta

from macaron_todo.core.models import DEFAULT_CATEGORIES, DailySummary
from macaron_todo.query.stats import (
    calendar_month,
    category_breakdown,
    completion_streak,
    day_bucket,
    kanban_columns,
    rolling_history,
    snapshot_stats,
    window_summary,
)

from .conftest import NOW, make_task


def _days_ago(n: int, hour: int = 10) -> datetime:
    d = NOW.date() - timedelta(days=n)
    return datetime(d.year, d.month, d.day, hour)


def test_snapshot_stats_empty_has_zero_rate() -> None:
    s = snapshot_stats([], NOW)
    assert s.total == 0
    assert s.completion_rate == 0


def test_snapshot_stats_all_completed_is_100() -> None:
    tasks = [make_task("a", completed=True), make_task("b", completed=True)]
    assert snapshot_stats(tasks, NOW).completion_rate == 100


def test_snapshot_stats_counters() -> None:
    tasks = [
        make_task("a", completed=True),
        make_task("b"),
        make_task("c", created_at=_days_ago(2), due_date=NOW - timedelta(days=1)),
        make_task("d", created_at=_days_ago(2), due_date=NOW - timedelta(days=1), completed=True),
    ]
    s = snapshot_stats(tasks, NOW)
    assert (s.total, s.completed, s.pending) == (4, 2, 2)
    assert (s.today_total, s.today_completed) == (2, 1)
    assert s.overdue == 1
    assert s.completion_rate == 50.0


def test_day_bucket_uses_local_calendar_day() -> None:
    tasks = [
        make_task("late", created_at=datetime(2024, 3, 14, 23, 59)),
        make_task("early", created_at=datetime(2024, 3, 15, 0, 1)),
    ]
    assert [t.id for t in day_bucket(tasks, date(2024, 3, 15))] == ["early"]
    assert [t.id for t in day_bucket(tasks, "2024-03-14")] == ["late"]


def test_rolling_history_seven_days_oldest_first() -> None:
    tasks = [
        make_task("a", created_at=_days_ago(0), completed=True),
        make_task("b", created_at=_days_ago(0)),
        make_task("c", created_at=_days_ago(6)),
        make_task("d", created_at=_days_ago(7)),
    ]
    history = rolling_history(tasks, NOW, 7)

    assert len(history) == 7
    assert history[0].date == "2024-03-09"
    assert history[-1].date == "2024-03-15"
    assert [d.date for d in history] == sorted(d.date for d in history)
    assert history[-1] == DailySummary(date="2024-03-15", total=2, completed=1, completion_rate=50.0)
    assert history[0].total == 1
    assert sum(d.total for d in history) == 3


def test_rolling_history_thirty_days_and_empty_window() -> None:
    assert len(rolling_history([], NOW, 30)) == 30
    assert rolling_history([], NOW, 0) == []


def test_window_summary_best_day() -> None:
    history = [
        DailySummary("2024-03-13", 2, 1, 50.0),
        DailySummary("2024-03-14", 1, 1, 100.0),
        DailySummary("2024-03-15", 4, 4, 100.0),
    ]
    s = window_summary(history)
    assert (s.total, s.completed) == (7, 6)
    assert round(s.completion_rate, 2) == round(6 / 7 * 100, 2)
    assert s.best_day is not None and s.best_day.date == "2024-03-14"

    empty = window_summary([])
    assert empty.best_day is None and empty.completion_rate == 0


def test_category_breakdown_keeps_literal_unknown_ids() -> None:
    tasks = [
        make_task("a", category="work", completed=True),
        make_task("b", category="work"),
        make_task("c", category="nonexistent-cat"),
        make_task("d", category="life", archived=True),
    ]
    rows = category_breakdown(tasks, DEFAULT_CATEGORIES)

    assert [r.id for r in rows] == ["work", "nonexistent-cat"]
    work, ghost = rows
    assert (work.name, work.total, work.completed, work.completion_rate) == ("工作", 2, 1, 50.0)
    assert ghost.name == "nonexistent-cat"
    assert ghost.id != "other"


def test_streak_today_below_half_still_counts() -> None:
    tasks = [
        make_task("t1", created_at=_days_ago(0)),
        make_task("t2", created_at=_days_ago(0)),
        make_task("t3", created_at=_days_ago(0), completed=True),
    ]
    assert completion_streak(tasks, NOW, 30) == 1


def test_streak_today_in_progress_does_not_break_existing_streak() -> None:
    tasks = [
        make_task("t1", created_at=_days_ago(0)),
        make_task("y1", created_at=_days_ago(1), completed=True),
        make_task("z1", created_at=_days_ago(2), completed=True),
        make_task("w1", created_at=_days_ago(3)),
    ]
    assert completion_streak(tasks, NOW, 30) == 3


def test_streak_without_tasks_is_zero() -> None:
    assert completion_streak([], NOW, 30) == 0


def test_streak_empty_today_is_skipped() -> None:
    tasks = [make_task("y1", created_at=_days_ago(1))]
    assert completion_streak(tasks, NOW, 30) == 0


def test_streak_skips_empty_days_and_stops_at_first_break() -> None:
    tasks = [
        make_task("a", created_at=_days_ago(0), completed=True),
        # day 1 empty: skipped
        make_task("b1", created_at=_days_ago(2), completed=True),
        make_task("b2", created_at=_days_ago(2)),  # exactly half counts
        make_task("c", created_at=_days_ago(3)),  # break
        make_task("d", created_at=_days_ago(4), completed=True),
    ]
    assert completion_streak(tasks, NOW, 30) == 2


def test_streak_respects_lookback() -> None:
    tasks = [make_task(f"d{i}", created_at=_days_ago(i), completed=True) for i in range(10)]
    assert completion_streak(tasks, NOW, 5) == 5
    assert completion_streak(tasks, NOW, 30) == 10


def test_kanban_columns() -> None:
    tasks = [
        make_task("a", category="work"),
        make_task("b", category="work", completed=True),
        make_task("c", category="ghost"),
        make_task("d", category="life", archived=True),
    ]
    cols = kanban_columns(tasks, DEFAULT_CATEGORIES)

    assert set(cols) == {"work", "life", "study", "health", "other", "ghost"}
    assert [t.id for t in cols["work"].pending] == ["a"]
    assert [t.id for t in cols["work"].completed] == ["b"]
    assert cols["life"].pending == [] and cols["life"].completed == []
    assert [t.id for t in cols["ghost"].pending] == ["c"]


def test_calendar_month_groups_by_due_then_created() -> None:
    tasks = [
        make_task("due", created_at=datetime(2024, 2, 20), due_date=datetime(2024, 3, 3, 9)),
        make_task("created", created_at=datetime(2024, 3, 5, 8)),
        make_task("elsewhere", created_at=datetime(2024, 4, 1)),
        make_task("archived", created_at=datetime(2024, 3, 5), archived=True),
    ]
    by_day = calendar_month(tasks, 2024, 3)
    assert {k: [t.id for t in v] for k, v in by_day.items()} == {
        "2024-03-03": ["due"],
        "2024-03-05": ["created"],
    }
