# tests/test_commands.py

from __future__ import annotations

import json
from datetime import datetime, timedelta
from pathlib import Path

import pytest

from desk_todo.cli.commands import CommandRegistry, parse_due, registry
from desk_todo.reminders.reminder_scheduler import PendingReminder
from desk_todo.snapshot.snapshot_store import SNAPSHOT_FILENAME
from desk_todo.tasks.task_models import Priority


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

    reg.register("a", h2, "a")
    reg.register("b", h3, "b", aliases=["bee"])

    assert reg.handle(state, "/a x y") == "h2:x,y"
    assert reg.handle(state, "/BEE", emit=notes.append) == "h3"
    assert called == {"h2": 1, "h3": 1}
    assert notes == ["note"]


def test_command_registry_unknown_and_non_command(state) -> None:
    reg = CommandRegistry()
    assert reg.handle(state, "hello") is None
    assert "Unknown command" in (reg.handle(state, "/nope") or "")
    assert "Empty command" in (reg.handle(state, "/") or "")


def test_parse_due_formats() -> None:
    now = datetime(2024, 5, 15, 10, 20, 33).astimezone()

    assert parse_due("+30m", now) == now + timedelta(minutes=30)
    assert parse_due("+2h", now) == now + timedelta(hours=2)
    assert parse_due("+1d", now) == now + timedelta(days=1)

    day = parse_due("2024-06-01")
    assert (day.year, day.month, day.day, day.hour, day.minute) == (2024, 6, 1, 17, 0)
    assert day.tzinfo is not None

    exact = parse_due("2024-06-01   09:45")
    assert (exact.hour, exact.minute) == (9, 45)

    today = parse_due("18:05", now)
    assert (today.date(), today.hour, today.minute, today.second) == (now.date(), 18, 5, 0)

    with pytest.raises(ValueError):
        parse_due("next tuesday", now)


def test_add_list_done_unremind_flow(state) -> None:
    reply = registry.handle(state, "/add !Buy milk @ +2h")
    assert reply is not None and reply.startswith("Added: Buy milk (due ")

    (task,) = state.tasks.all_tasks()
    assert task.priority == Priority.IMPORTANT
    assert task.due_date is not None

    listing = registry.handle(state, "/list")
    assert listing is not None
    assert listing.startswith(" 1. [ ] ! Buy milk")
    assert "[reminder]" in listing
    assert state.last_listing == [task.id]

    done = registry.handle(state, "/done 1")
    assert done is not None and "/unremind 1" in done
    assert isinstance(state.tasks.reminders.state_of(task.id), PendingReminder)

    assert registry.handle(state, "/unremind 1") == "Reminder removed."
    assert not isinstance(state.tasks.reminders.state_of(task.id), PendingReminder)

    assert registry.handle(state, "/list") == "No tasks (incomplete)."
    assert registry.handle(state, "/undo " + str(task.id)[:8]) == "Reopened: Buy milk"


def test_edits_by_list_number(state) -> None:
    registry.handle(state, "/add Draft plan")
    registry.handle(state, "/list")

    assert registry.handle(state, "/edit 1 Final plan") == "Renamed: Final plan"
    assert (registry.handle(state, "/prio 1 important") or "").endswith("important")
    assert (registry.handle(state, "/note 1 check numbers") or "").startswith("Note updated")
    assert (registry.handle(state, "/due 1 2031-01-02 08:00") or "").startswith("Due date set")

    (task,) = state.tasks.all_tasks()
    assert task.title == "Final plan"
    assert task.priority == Priority.IMPORTANT
    assert task.note == "check numbers"
    assert task.due_date is not None

    assert (registry.handle(state, "/nodue 1") or "").startswith("Due date removed")
    assert state.tasks.get_task(task.id).due_date is None

    assert registry.handle(state, "/rm 1") == "Deleted: Final plan"
    assert state.tasks.all_tasks() == []
    assert state.last_listing == []


def test_bad_input_becomes_error_reply(state) -> None:
    assert (registry.handle(state, "/done 3") or "").startswith("Error: No task #3")
    assert (registry.handle(state, "/filter sometimes") or "").startswith("Error:")
    assert (registry.handle(state, "/add") or "").startswith("Usage")
    assert (registry.handle(state, "/due") or "").startswith("Error: Usage")
    assert (registry.handle(state, "/add x @ whenever") or "").startswith("Error: Cannot read due date")


def test_filter_sort_search_update_view(state) -> None:
    registry.handle(state, "/add beta @ 2031-01-02")
    registry.handle(state, "/add alpha @ 2031-01-01")

    listing = registry.handle(state, "/sort due desc") or ""
    assert listing.index("beta") < listing.index("alpha")
    assert state.view.ascending is False

    listing = registry.handle(state, "/search ALP") or ""
    assert "alpha" in listing and "beta" not in listing

    registry.handle(state, "/search")
    registry.handle(state, "/done 1")
    listing = registry.handle(state, "/filter completed") or ""
    assert "beta" in listing and "alpha" not in listing


def test_folder_and_attach(state, tmp_path: Path) -> None:
    registry.handle(state, "/add Taxes")
    registry.handle(state, "/list")
    assert (registry.handle(state, "/attach 1") or "").startswith("No storage folder yet")

    target = tmp_path / "docs"
    notes: list[str] = []
    reply = registry.handle(state, f"/folder {target}", emit=notes.append)
    assert reply is not None and "exported there" in reply
    assert notes and notes[0].startswith("Switching storage folder")
    assert registry.handle(state, "/folder") == f"Storage folder: {target}"

    registry.handle(state, "/list")
    attach = registry.handle(state, "/attach 1") or ""
    assert attach.startswith("Attachment folder: ")
    assert Path(attach.split(": ", 1)[1]).is_dir()

    state.run(state.tasks.flush())
    doc = json.loads((target / SNAPSHOT_FILENAME).read_text("utf-8"))
    assert [e["title"] for e in doc["tasks"]] == ["Taxes"]
    assert "attachmentPath" in doc["tasks"][0]


def test_report_command_uses_llm(state) -> None:
    notes: list[str] = []
    reply = registry.handle(state, "/report weekly", emit=notes.append)

    assert reply == "ok"
    assert notes == ["Generating weekly report..."]


def test_status_and_help(state) -> None:
    status = registry.handle(state, "/status") or ""
    assert "not set" in status
    assert "authorized" in status

    help_text = registry.handle(state, "/help") or ""
    for name in ("/add", "/done", "/unremind", "/folder", "/report"):
        assert name in help_text
