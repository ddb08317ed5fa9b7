# tests/test_task_view.py

from __future__ import annotations

import uuid
from datetime import datetime, timedelta, timezone

from desk_todo.tasks.task_models import Priority, Task
from desk_todo.tasks.task_view import (
    FilterOption,
    SortOption,
    TaskView,
    apply_view,
    filter_and_sort,
    fold_text,
)

BASE = datetime(2024, 5, 1, 9, 0, tzinfo=timezone.utc)


def make_task(
    title: str,
    *,
    created: int = 0,
    due: int | None = None,
    done: bool = False,
    priority: Priority = Priority.NORMAL,
) -> Task:
    """`created` and `due` are hour offsets from BASE."""
    return Task(
        id=uuid.uuid4(),
        title=title,
        is_completed=done,
        priority=priority,
        created_at=BASE + timedelta(hours=created),
        completed_at=BASE + timedelta(hours=created + 1) if done else None,
        due_date=BASE + timedelta(hours=due) if due is not None else None,
    )


def titles(tasks: list[Task]) -> list[str]:
    return [t.title for t in tasks]


def test_default_view_shows_open_tasks_soonest_due_first() -> None:
    tasks = [
        make_task("no due", created=1),
        make_task("later", created=2, due=48),
        make_task("done", created=3, due=1, done=True),
        make_task("soon", created=4, due=5),
    ]
    assert titles(apply_view(tasks, TaskView())) == ["soon", "later", "no due"]


def test_filter_options() -> None:
    tasks = [make_task("a", done=False), make_task("b", done=True, created=1)]

    assert titles(filter_and_sort(tasks, filter_option=FilterOption.INCOMPLETE)) == ["a"]
    assert titles(filter_and_sort(tasks, filter_option=FilterOption.COMPLETED)) == ["b"]
    assert sorted(titles(filter_and_sort(tasks, filter_option=FilterOption.ALL))) == ["a", "b"]


def test_search_ignores_case_and_diacritics() -> None:
    tasks = [make_task("Café order"), make_task("Tea", created=1)]

    assert titles(filter_and_sort(tasks, search_text="CAFE")) == ["Café order"]
    assert titles(filter_and_sort(tasks, search_text="café")) == ["Café order"]
    assert fold_text("Ärger") == "arger"


def test_blank_search_matches_everything() -> None:
    tasks = [make_task("a"), make_task("b", created=1)]
    assert len(filter_and_sort(tasks, search_text="   ")) == 2


def test_due_sort_ascending_puts_undated_last_by_creation() -> None:
    tasks = [
        make_task("undated-new", created=5),
        make_task("due-late", created=0, due=30),
        make_task("undated-old", created=1),
        make_task("due-early", created=2, due=10),
    ]
    result = filter_and_sort(tasks, sort_option=SortOption.DUE_DATE, ascending=True)
    assert titles(result) == ["due-early", "due-late", "undated-old", "undated-new"]


def test_due_sort_descending_puts_undated_first() -> None:
    tasks = [
        make_task("undated-old", created=1),
        make_task("due-early", created=2, due=10),
        make_task("undated-new", created=5),
        make_task("due-late", created=0, due=30),
    ]
    result = filter_and_sort(tasks, sort_option=SortOption.DUE_DATE, ascending=False)
    assert titles(result) == ["undated-new", "undated-old", "due-late", "due-early"]


def test_priority_sort_breaks_ties_by_due_date() -> None:
    tasks = [
        make_task("n-late", due=20),
        make_task("i-late", due=30, priority=Priority.IMPORTANT, created=1),
        make_task("n-early", due=5, created=2),
        make_task("i-early", due=3, priority=Priority.IMPORTANT, created=3),
    ]

    asc = filter_and_sort(tasks, sort_option=SortOption.PRIORITY, ascending=True)
    assert titles(asc) == ["n-early", "n-late", "i-early", "i-late"]

    desc = filter_and_sort(tasks, sort_option=SortOption.PRIORITY, ascending=False)
    assert titles(desc) == ["i-late", "i-early", "n-late", "n-early"]


def test_creation_sort_both_directions() -> None:
    tasks = [make_task("b", created=2), make_task("a", created=1), make_task("c", created=3)]

    assert titles(filter_and_sort(tasks, sort_option=SortOption.CREATION_DATE)) == ["a", "b", "c"]
    assert titles(
        filter_and_sort(tasks, sort_option=SortOption.CREATION_DATE, ascending=False)
    ) == ["c", "b", "a"]


def test_equal_keys_keep_input_order() -> None:
    first = make_task("first", created=0, due=10)
    second = make_task("second", created=0, due=10)

    assert titles(filter_and_sort([first, second])) == ["first", "second"]
    assert titles(filter_and_sort([second, first])) == ["second", "first"]


def test_input_list_is_not_modified() -> None:
    tasks = [make_task("b", created=2), make_task("a", created=1)]
    before = list(tasks)

    filter_and_sort(tasks, sort_option=SortOption.CREATION_DATE, filter_option=FilterOption.ALL)

    assert tasks == before


def test_empty_input_gives_empty_output() -> None:
    assert filter_and_sort([]) == []


def test_new_task_shows_under_incomplete_only() -> None:
    task = Task.create("Buy milk")

    assert filter_and_sort([task], filter_option=FilterOption.INCOMPLETE) == [task]
    assert filter_and_sort([task], filter_option=FilterOption.COMPLETED) == []


def test_dated_vs_undated_pair() -> None:
    dated = Task.create("dated", due_date=datetime(2024, 1, 10, tzinfo=timezone.utc))
    undated = Task.create("undated")

    assert filter_and_sort([undated, dated]) == [dated, undated]
    assert filter_and_sort([dated, undated], ascending=False) == [undated, dated]
