# src/desk_todo/tasks/task_view.py

"""
Sort/filter engine for the task list.

Pure functions: same inputs, same output, the input sequence is never touched.
Python's sort is stable, so tasks that compare equal keep their input order.
"""

from __future__ import annotations

import functools
import unicodedata
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime
from enum import StrEnum

from .task_models import Priority, Task


class FilterOption(StrEnum):
    INCOMPLETE = "incomplete"
    COMPLETED = "completed"
    ALL = "all"


class SortOption(StrEnum):
    DUE_DATE = "due_date"
    PRIORITY = "priority"
    CREATION_DATE = "creation_date"


@dataclass(slots=True, frozen=True)
class TaskView:
    """What the list shows. Defaults match a fresh window: open tasks, soonest due first."""

    filter_option: FilterOption = FilterOption.INCOMPLETE
    search_text: str = ""
    sort_option: SortOption = SortOption.DUE_DATE
    ascending: bool = True


def fold_text(text: str) -> str:
    """Case- and diacritic-insensitive form used for search matching."""
    decomposed = unicodedata.normalize("NFKD", text or "")
    stripped = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    return stripped.casefold()


def _matches_filter(task: Task, option: FilterOption) -> bool:
    if option == FilterOption.INCOMPLETE:
        return not task.is_completed
    if option == FilterOption.COMPLETED:
        return task.is_completed
    return True


def _cmp(a: datetime, b: datetime, ascending: bool) -> int:
    if a == b:
        return 0
    if ascending:
        return -1 if a < b else 1
    return -1 if a > b else 1


def _cmp_due(t1: Task, t2: Task, ascending: bool) -> int:
    # Undated tasks go last when ascending, first when descending.
    if t1.due_date is None and t2.due_date is None:
        return _cmp(t1.created_at, t2.created_at, ascending)
    if t1.due_date is None:
        return 1 if ascending else -1
    if t2.due_date is None:
        return -1 if ascending else 1
    return _cmp(t1.due_date, t2.due_date, ascending)


def _cmp_priority(t1: Task, t2: Task, ascending: bool) -> int:
    if t1.priority == t2.priority:
        return _cmp_due(t1, t2, ascending)
    # ascending: normal first; descending: important first
    first = Priority.NORMAL if ascending else Priority.IMPORTANT
    return -1 if t1.priority == first else 1


def _cmp_created(t1: Task, t2: Task, ascending: bool) -> int:
    return _cmp(t1.created_at, t2.created_at, ascending)


_COMPARATORS = {
    SortOption.DUE_DATE: _cmp_due,
    SortOption.PRIORITY: _cmp_priority,
    SortOption.CREATION_DATE: _cmp_created,
}


def filter_and_sort(
    tasks: Iterable[Task],
    *,
    filter_option: FilterOption = FilterOption.INCOMPLETE,
    search_text: str = "",
    sort_option: SortOption = SortOption.DUE_DATE,
    ascending: bool = True,
) -> list[Task]:
    """Filter by status, then by title search, then sort."""
    selected = [t for t in tasks if _matches_filter(t, filter_option)]

    needle = fold_text(search_text.strip()) if search_text else ""
    if needle:
        selected = [t for t in selected if needle in fold_text(t.title)]

    compare = _COMPARATORS[sort_option]
    key = functools.cmp_to_key(lambda a, b: compare(a, b, ascending))
    return sorted(selected, key=key)


def apply_view(tasks: Iterable[Task], view: TaskView) -> list[Task]:
    return filter_and_sort(
        tasks,
        filter_option=view.filter_option,
        search_text=view.search_text,
        sort_option=view.sort_option,
        ascending=view.ascending,
    )
