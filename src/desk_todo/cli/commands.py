# src/desk_todo/cli/commands.py

from __future__ import annotations

import inspect
import logging
import re
import uuid
from collections.abc import Callable
from dataclasses import replace
from datetime import datetime, timedelta
from typing import cast

from ..core.state import AppState
from ..reminders.reminder_scheduler import PendingReminder
from ..reports.report_service import ReportPeriod
from ..tasks.task_models import Priority, Task
from ..tasks.task_view import FilterOption, SortOption

CommandEmitter = Callable[[str], None]
CommandHandler2 = Callable[[AppState, list[str]], str]
CommandHandler3 = Callable[[AppState, list[str], CommandEmitter | None], str]
CommandHandler = CommandHandler2 | CommandHandler3

logger = logging.getLogger(__name__)


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

    def handle(
        self,
        state: AppState,
        line: str,
        emit: CommandEmitter | None = None,
    ) -> str | None:
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

        try:
            if nparams >= 3:
                h3 = cast(CommandHandler3, handler)
                return h3(state, args, emit)
            h2 = cast(CommandHandler2, handler)
            return h2(state, args)
        except (ValueError, LookupError) as e:
            return f"Error: {e}"

    def build_help(self) -> str:
        lines = ["Available commands:"]
        for name, help_text in self._help.items():
            lines.append(f"  /{name} - {help_text}")
        return "\n".join(lines)


registry = CommandRegistry()


# ---- parsing helpers ----

_RELATIVE_RE = re.compile(r"^\+(\d+)([mhd])$")
_DEFAULT_DUE_HOUR = 17


def parse_due(text: str, now: datetime | None = None) -> datetime:
    """
    Parse a due date typed on the console into an aware local datetime.

    Accepted: "+30m", "+2h", "+1d", "HH:MM" (today), "YYYY-MM-DD" (17:00),
    "YYYY-MM-DD HH:MM".
    """
    raw = " ".join(text.split())
    now = (now or datetime.now()).astimezone()

    m = _RELATIVE_RE.match(raw)
    if m:
        amount = int(m.group(1))
        unit = {"m": "minutes", "h": "hours", "d": "days"}[m.group(2)]
        return now + timedelta(**{unit: amount})

    for fmt in ("%Y-%m-%d %H:%M", "%Y-%m-%dT%H:%M"):
        try:
            return datetime.strptime(raw, fmt).astimezone()
        except ValueError:
            pass

    try:
        day = datetime.strptime(raw, "%Y-%m-%d")
        return day.replace(hour=_DEFAULT_DUE_HOUR).astimezone()
    except ValueError:
        pass

    try:
        t = datetime.strptime(raw, "%H:%M")
        return now.replace(hour=t.hour, minute=t.minute, second=0, microsecond=0)
    except ValueError:
        pass

    raise ValueError(f"Cannot read due date {text!r}. Use +2h, HH:MM, YYYY-MM-DD or 'YYYY-MM-DD HH:MM'.")


def resolve_task_ref(state: AppState, ref: str) -> uuid.UUID:
    """A task by its number in the last /list, or by a unique id prefix."""
    if ref.isdigit():
        idx = int(ref) - 1
        if 0 <= idx < len(state.last_listing):
            return state.last_listing[idx]
        raise ValueError(f"No task #{ref} in the last list. Use /list first.")

    prefix = ref.lower()
    matches = [t.id for t in state.tasks.all_tasks() if str(t.id).startswith(prefix)]
    if len(matches) == 1:
        return matches[0]
    if not matches:
        raise ValueError(f"No task matches {ref!r}.")
    raise ValueError(f"{ref!r} matches several tasks; use more characters.")


def _require_ref(args: list[str], usage: str) -> str:
    if not args:
        raise ValueError(f"Usage: {usage}")
    return args[0]


def _fmt_local(dt: datetime) -> str:
    return dt.astimezone().strftime("%Y-%m-%d %H:%M")


def format_task_line(state: AppState, index: int, task: Task) -> str:
    mark = "x" if task.is_completed else " "
    flag = "!" if task.priority == Priority.IMPORTANT else " "
    line = f"{index:>2}. [{mark}] {flag} {task.title}"
    if task.due_date is not None:
        line += f"  (due {_fmt_local(task.due_date)})"
    if task.is_completed and task.completed_at is not None:
        line += f"  (done {_fmt_local(task.completed_at)})"
    if isinstance(state.tasks.reminders.state_of(task.id), PendingReminder):
        line += "  [reminder]"
    return line


# ---- commands ----

def cmd_help(state: AppState, args: list[str]) -> str:
    return registry.build_help()


def cmd_status(state: AppState, args: list[str]) -> str:
    storage = state.preferences.storage_dir
    view = state.view
    models = ", ".join(list(getattr(state.settings, "llm_models", []) or []))
    reminders = state.tasks.reminders
    return (
        "Status:\n"
        f"  Storage folder: {storage if storage else '(not set, use /folder <path>)'}\n"
        f"  Tasks: {len(state.tasks.all_tasks())}\n"
        f"  Notifications: {'authorized' if reminders.is_authorized else 'not authorized'}, "
        f"{len(reminders.pending())} pending\n"
        f"  View: filter={view.filter_option.value} sort={view.sort_option.value} "
        f"{'asc' if view.ascending else 'desc'} search={view.search_text!r}\n"
        f"  Report models: {models}"
    )


def cmd_list(state: AppState, args: list[str]) -> str:
    tasks = state.tasks.list_tasks(state.view)
    state.last_listing = [t.id for t in tasks]
    if not tasks:
        return f"No tasks ({state.view.filter_option.value})."
    return "\n".join(format_task_line(state, i, t) for i, t in enumerate(tasks, start=1))


def cmd_add(state: AppState, args: list[str]) -> str:
    """
    /add [!]title [@ due]
    A leading "!" marks the task important.
    """
    text = " ".join(args).strip()
    if not text:
        return "Usage: /add [!]title [@ due]"

    due = None
    if " @ " in text:
        title_part, _, due_part = text.rpartition(" @ ")
        text = title_part.strip()
        due = parse_due(due_part.strip())

    priority = Priority.NORMAL
    if text.startswith("!"):
        priority = Priority.IMPORTANT
        text = text[1:].strip()

    task = state.run(state.tasks.add_task(text, priority=priority, due_date=due))
    msg = f"Added: {task.title}"
    if task.due_date is not None:
        msg += f" (due {_fmt_local(task.due_date)})"
    return msg


def cmd_filter(state: AppState, args: list[str]) -> str:
    if not args:
        return f"Filter is {state.view.filter_option.value}. Use /filter incomplete|completed|all."
    option = FilterOption(args[0].lower())
    state.view = replace(state.view, filter_option=option)
    return cmd_list(state, [])


_SORT_ALIASES = {
    "due": SortOption.DUE_DATE,
    "due_date": SortOption.DUE_DATE,
    "priority": SortOption.PRIORITY,
    "prio": SortOption.PRIORITY,
    "created": SortOption.CREATION_DATE,
    "creation_date": SortOption.CREATION_DATE,
}


def cmd_sort(state: AppState, args: list[str]) -> str:
    """
    /sort due|priority|created [asc|desc]
    """
    if not args:
        return "Usage: /sort due|priority|created [asc|desc]"
    option = _SORT_ALIASES.get(args[0].lower())
    if option is None:
        return "Usage: /sort due|priority|created [asc|desc]"
    ascending = state.view.ascending
    if len(args) > 1:
        ascending = args[1].lower() not in ("desc", "d", "down")
    state.view = replace(state.view, sort_option=option, ascending=ascending)
    return cmd_list(state, [])


def cmd_search(state: AppState, args: list[str]) -> str:
    state.view = replace(state.view, search_text=" ".join(args))
    return cmd_list(state, [])


def cmd_done(state: AppState, args: list[str]) -> str:
    ref = _require_ref(args, "/done <n>")
    result = state.run(state.tasks.complete(resolve_task_ref(state, ref)))
    msg = f"Completed: {result.task.title}"
    if result.reminder_pending:
        msg += f"\nIts due date has not passed yet; the reminder is kept. Use /unremind {ref} to remove it."
    return msg


def cmd_undo(state: AppState, args: list[str]) -> str:
    ref = _require_ref(args, "/undo <n>")
    task = state.run(state.tasks.reopen(resolve_task_ref(state, ref)))
    return f"Reopened: {task.title}"


def cmd_unremind(state: AppState, args: list[str]) -> str:
    ref = _require_ref(args, "/unremind <n>")
    task_id = resolve_task_ref(state, ref)
    state.run(state.tasks.cancel_reminder(task_id))
    return "Reminder removed."


def cmd_edit(state: AppState, args: list[str]) -> str:
    ref = _require_ref(args, "/edit <n> <new title>")
    task = state.run(state.tasks.update_task(resolve_task_ref(state, ref), title=" ".join(args[1:])))
    return f"Renamed: {task.title}"


def cmd_due(state: AppState, args: list[str]) -> str:
    ref = _require_ref(args, "/due <n> <when>")
    if len(args) < 2:
        return "Usage: /due <n> <when>"
    due = parse_due(" ".join(args[1:]))
    task = state.run(state.tasks.set_due_date(resolve_task_ref(state, ref), due))
    return f"Due date set: {task.title} -> {_fmt_local(due)}"


def cmd_nodue(state: AppState, args: list[str]) -> str:
    ref = _require_ref(args, "/nodue <n>")
    task = state.run(state.tasks.clear_due_date(resolve_task_ref(state, ref)))
    return f"Due date removed: {task.title}"


def cmd_prio(state: AppState, args: list[str]) -> str:
    ref = _require_ref(args, "/prio <n> normal|important")
    if len(args) < 2:
        return "Usage: /prio <n> normal|important"
    priority = Priority(args[1].lower())
    task = state.run(state.tasks.set_priority(resolve_task_ref(state, ref), priority))
    return f"Priority set: {task.title} -> {task.priority.value}"


def cmd_note(state: AppState, args: list[str]) -> str:
    ref = _require_ref(args, "/note <n> [text]")
    task = state.run(state.tasks.set_note(resolve_task_ref(state, ref), " ".join(args[1:])))
    return f"Note {'updated' if task.note else 'cleared'}: {task.title}"


def cmd_rm(state: AppState, args: list[str]) -> str:
    ref = _require_ref(args, "/rm <n>")
    task_id = resolve_task_ref(state, ref)
    title = state.tasks.get_task(task_id).title
    state.run(state.tasks.delete_task(task_id))
    state.last_listing = [tid for tid in state.last_listing if tid != task_id]
    return f"Deleted: {title}"


def cmd_attach(state: AppState, args: list[str]) -> str:
    ref = _require_ref(args, "/attach <n>")
    folder = state.run(state.tasks.open_attachment_folder(resolve_task_ref(state, ref)))
    if folder is None:
        return "No storage folder yet. Choose one with /folder <path>."
    return f"Attachment folder: {folder}"


def cmd_folder(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    """
    /folder          -> show the storage folder
    /folder <path>   -> switch to <path> (imports its task list if it has one)
    """
    if not args:
        current = state.preferences.storage_dir
        return f"Storage folder: {current}" if current else "No storage folder yet. Use /folder <path>."

    path = " ".join(args)
    if emit:
        emit(f"Switching storage folder to {path} ...")
    result = state.run(state.tasks.switch_storage_folder(path))
    state.last_listing = []
    if result.seeded:
        return f"Storage folder set to {result.storage_dir}. Current tasks were exported there."
    return f"Storage folder set to {result.storage_dir}. Loaded {result.imported} tasks from it."


def cmd_report(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    """
    /report weekly|monthly|yearly
    """
    if not args:
        return "Usage: /report weekly|monthly|yearly"
    period = ReportPeriod(args[0].lower())
    if emit:
        emit(f"Generating {period.label}...")
    outcome = state.run(state.reports.generate(period, state.tasks.all_tasks()))
    if outcome.error:
        return f"{outcome.error}\nRun /report {period.value} again to retry."
    return outcome.report


registry.register("help", cmd_help, help_text="Show available commands.", aliases=["h", "?"])
registry.register("status", cmd_status, help_text="Show storage folder, reminders and view settings.")
registry.register("list", cmd_list, help_text="List tasks with the current filter/sort/search.", aliases=["ls"])
registry.register("add", cmd_add, help_text="Add a task: /add [!]title [@ due].")
registry.register("filter", cmd_filter, help_text="Filter: /filter incomplete|completed|all.")
registry.register("sort", cmd_sort, help_text="Sort: /sort due|priority|created [asc|desc].")
registry.register("search", cmd_search, help_text="Search titles: /search text (empty clears).")
registry.register("done", cmd_done, help_text="Complete a task: /done <n>.")
registry.register("undo", cmd_undo, help_text="Reopen a completed task: /undo <n>.")
registry.register("unremind", cmd_unremind, help_text="Remove a task's reminder: /unremind <n>.")
registry.register("edit", cmd_edit, help_text="Rename a task: /edit <n> <title>.")
registry.register("due", cmd_due, help_text="Set due date: /due <n> +2h | HH:MM | YYYY-MM-DD [HH:MM].")
registry.register("nodue", cmd_nodue, help_text="Remove due date: /nodue <n>.")
registry.register("prio", cmd_prio, help_text="Set priority: /prio <n> normal|important.")
registry.register("note", cmd_note, help_text="Set or clear a note: /note <n> [text].")
registry.register("rm", cmd_rm, help_text="Delete a task: /rm <n>.", aliases=["del"])
registry.register("attach", cmd_attach, help_text="Create/show a task's attachment folder: /attach <n>.")
registry.register("folder", cmd_folder, help_text="Show or switch the storage folder: /folder [path].")
registry.register("report", cmd_report, help_text="Generate a report: /report weekly|monthly|yearly.")
