# tests/test_commands.py

from __future__ import annotations

from datetime import datetime
from pathlib import Path

import pytest

from macaron_todo.cli.commands import CommandRegistry, parse_add_args, registry
from macaron_todo.core.models import Priority

from .fakes import FakeClock


def test_command_registry_routes_2_and_3_params(state) -> None:
    reg = CommandRegistry()
    called = {"h2": 0, "h3": 0}
    notes: list[str] = []

    def h2(state, args):
        called["h2"] += 1
        return "h2:" + ",".join(args)

    def h3(state, args, emit):
        called["h3"] += 1
        if emit is not None:
            emit("note")
        return "h3"

    reg.register("a", h2, "a", aliases=["alpha"])
    reg.register("b", h3, "b")

    assert reg.handle(state, "/a x y") == "h2:x,y"
    assert reg.handle(state, "/ALPHA") == "h2:"
    assert reg.handle(state, "/b", emit=notes.append) == "h3"
    assert called == {"h2": 2, "h3": 1}
    assert notes == ["note"]
    assert "/a - a" in reg.build_help()


def test_command_registry_unknown_and_non_command(state) -> None:
    reg = CommandRegistry()
    assert reg.handle(state, "hello") is None
    assert "Unknown command" in (reg.handle(state, "/nope") or "")
    assert "Empty command" in (reg.handle(state, "/") or "")


def test_parse_add_args_tokens() -> None:
    d = parse_add_args(["Buy", "milk", "!HIGH", "#errand", "@life", "due:2024-03-20"])
    assert d.title == "Buy milk"
    assert d.priority is Priority.HIGH
    assert d.tags == ("errand",)
    assert d.category == "life"
    assert d.due_date == datetime(2024, 3, 20)


@pytest.mark.parametrize("args", [["x", "!urgent"], ["x", "due:someday"], ["!high"]])
def test_parse_add_args_rejects_bad_input(args: list[str]) -> None:
    with pytest.raises(ValueError):
        parse_add_args(args)


def test_add_list_done_flow(state) -> None:
    out = registry.handle(state, "/add Buy milk !high #errand @life due:2024/3/20")
    assert out is not None and out.startswith("Added: [ ] t1 (high) Buy milk")
    assert "@生活" in out and "#errand" in out and "due:2024/3/20" in out

    registry.handle(state, "/add Call mom")
    listing = registry.handle(state, "/ls pending") or ""
    assert listing.splitlines()[0] == "2 task(s) shown (pending: 2):"

    done = registry.handle(state, "/done t1") or ""
    assert done.startswith("[x] t1")
    assert state.store.snapshot.get_task("t1").is_completed

    listing = registry.handle(state, "/list completed") or ""
    assert "Buy milk" in listing and "Call mom" not in listing


def test_add_without_title_is_refused(state) -> None:
    assert (registry.handle(state, "/add !high") or "").startswith("Cannot add")
    assert state.store.tasks == ()


def test_edit_archive_move_rm(state) -> None:
    registry.handle(state, "/add First")
    registry.handle(state, "/add Second")

    assert (registry.handle(state, "/edit t1 First task") or "").startswith("Updated: [ ] t1")
    assert state.store.snapshot.get_task("t1").title == "First task"

    registry.handle(state, "/archive t1")
    assert state.store.snapshot.get_task("t1").is_archived
    assert "First task" not in (registry.handle(state, "/search First") or "")
    registry.handle(state, "/unarchive t1")
    assert not state.store.snapshot.get_task("t1").is_archived

    registry.handle(state, "/move study t1 t2")
    assert {t.category for t in state.store.tasks} == {"study"}

    out = registry.handle(state, "/rm t2 zzz") or ""
    assert out.startswith("Deleted 1 task(s).")
    assert "zzz" in out
    assert [t.id for t in state.store.tasks] == ["t1"]


def test_stats_streak_history_summary(state, clock: FakeClock) -> None:
    registry.handle(state, "/add a")
    registry.handle(state, "/add b")
    registry.handle(state, "/done t1")

    stats = registry.handle(state, "/stats") or ""
    assert "Total: 2 (completed 1, pending 1)" in stats
    assert "Completion rate: 50%" in stats

    assert registry.handle(state, "/streak") == "Current streak: 1 day(s)."

    history = registry.handle(state, "/history") or ""
    assert history.splitlines()[0] == "Last 7 day(s):"
    assert (registry.handle(state, "/history month") or "").startswith("Last 30 day(s):")

    summary = registry.handle(state, "/summary") or ""
    assert "2024-03-15  1/2  50%" in summary
    clock.advance(days=1)
    registry.handle(state, "/summary")
    assert [s.date for s in state.store.snapshot.summaries] == ["2024-03-15", "2024-03-16"]


def test_export_then_import(state, tmp_path: Path) -> None:
    registry.handle(state, "/add Exported task !low @work")
    target = tmp_path / "out" / "todos.csv"

    out = registry.handle(state, f"/export {target}") or ""
    assert out == f"Exported 1 task(s) to {target}"
    assert target.read_text(encoding="utf-8").splitlines()[1].startswith('"Exported task"')

    assert registry.handle(state, f"/import {target}") == "成功导入 1 条待办事项"
    assert len(state.store.tasks) == 2
    assert state.store.tasks[1].priority is Priority.LOW


def test_export_default_path_uses_export_dir(state) -> None:
    out = registry.handle(state, "/export") or ""
    expected = Path(state.settings.export_dir) / "待办事项_2024-3-15.csv"
    assert out.endswith(str(expected))
    assert expected.exists()


def test_import_missing_file(state, tmp_path: Path) -> None:
    assert registry.handle(state, f"/import {tmp_path / 'missing.csv'}") == "导入失败，请检查文件格式"


def test_clear_requires_confirmation(state) -> None:
    registry.handle(state, "/add a")
    assert "confirm" in (registry.handle(state, "/clear") or "")
    assert len(state.store.tasks) == 1

    notes: list[str] = []
    assert (registry.handle(state, "/clear confirm", emit=notes.append) or "").startswith("All data cleared.")
    assert notes == ["Clearing all data..."]
    assert state.store.tasks == ()


def test_write_failure_is_surfaced(state, kv) -> None:
    kv.fail_writes = True
    out = registry.handle(state, "/add a") or ""
    assert "not saved" in out
    assert len(state.store.tasks) == 1


def test_done_with_repeated_refs_toggles_once(state) -> None:
    registry.handle(state, "/add a")

    out = registry.handle(state, "/done t1 t1") or ""

    assert state.store.snapshot.get_task("t1").is_completed
    assert out.startswith("[x] t1")


def test_invite_generate_use_and_check(state, kv) -> None:
    out = registry.handle(state, "/invite") or ""
    code = out.rsplit(" ", 1)[-1]
    assert out.startswith("Invite code: INV") and len(code) == 11

    assert registry.handle(state, f"/invite check {code}") == f"{code} is unused."
    assert registry.handle(state, f"/invite use {code.lower()}") == f"Invite code {code} accepted."
    assert registry.handle(state, f"/invite use {code}") == f"Invite code {code} is invalid or already used."
    assert registry.handle(state, f"/invite check {code}") == f"{code} is already used."
    assert registry.handle(state, "/invite check nope") == "NOPE is not a valid invite code."
    assert "todo_used_invites" in kv.data


def test_invite_with_corrupt_ledger(state, kv) -> None:
    kv.data["todo_used_invites"] = "{"
    assert "could not be read" in (registry.handle(state, "/invite use INVABCD1234") or "")
