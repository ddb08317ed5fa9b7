# src/desk_todo/reports/report_service.py

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import StrEnum

from ..core.ports import LLMClient
from ..llm.client import friendly_llm_error_message
from ..tasks.task_models import Priority, Task, utc_now

logger = logging.getLogger(__name__)

NO_DATA_TEXT = "No tasks in this period."

REPORT_SYSTEM_PROMPT = """
You are a data analysis assistant that writes clean, well-structured reports.

Guidelines:
1. Use correct Markdown syntax throughout.
2. Tables must use standard Markdown table syntax.
3. Escape HTML tags and special characters where needed.
4. Prefer plain Markdown over HTML.
5. Produce a complete, readable report.
""".strip()


class ReportPeriod(StrEnum):
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    YEARLY = "yearly"

    @property
    def label(self) -> str:
        return {"weekly": "weekly report", "monthly": "monthly report", "yearly": "yearly report"}[self.value]


class ReportGenerationError(RuntimeError):
    """Network, HTTP or payload failure while generating a report."""


@dataclass(slots=True)
class ReportState:
    is_generating: bool = False
    report: str = ""
    error: str | None = None
    period: ReportPeriod | None = None


def report_window(
    period: ReportPeriod,
    now: datetime | None = None,
    *,
    first_weekday: int = 0,
) -> tuple[datetime, datetime]:
    """
    [start, end) for the period containing `now`, in local time.

    first_weekday uses datetime.weekday() numbering (0 = Monday).
    """
    local = (now or utc_now()).astimezone()
    midnight = local.replace(hour=0, minute=0, second=0, microsecond=0)

    if period == ReportPeriod.WEEKLY:
        start = midnight - timedelta(days=(local.weekday() - first_weekday) % 7)
        return start, start + timedelta(days=7)

    if period == ReportPeriod.MONTHLY:
        start = midnight.replace(day=1)
        if start.month == 12:
            end = start.replace(year=start.year + 1, month=1)
        else:
            end = start.replace(month=start.month + 1)
        return start, end

    start = midnight.replace(month=1, day=1)
    return start, start.replace(year=start.year + 1)


def tasks_in_window(tasks: Iterable[Task], start: datetime, end: datetime) -> list[Task]:
    """Tasks created, completed or due inside [start, end)."""
    out: list[Task] = []
    for task in tasks:
        stamps = (task.created_at, task.completed_at, task.due_date)
        if any(ts is not None and start <= ts < end for ts in stamps):
            out.append(task)
    return out


def _format_due(task: Task) -> str:
    if task.due_date is None:
        return "none"
    return task.due_date.astimezone().strftime("%Y-%m-%d %H:%M")


def render_tasks(tasks: Iterable[Task]) -> str:
    blocks: list[str] = []
    for task in tasks:
        lines = [
            f"- Title: {task.title}",
            f"  Status: {'Completed' if task.is_completed else 'Open'}",
            f"  Priority: {'Important' if task.priority == Priority.IMPORTANT else 'Normal'}",
            f"  Due: {_format_due(task)}",
        ]
        if task.note:
            lines.append(f"  Note: {task.note}")
        blocks.append("\n".join(lines))
    return "\n\n".join(blocks) if blocks else NO_DATA_TEXT


def build_prompt(period: ReportPeriod, tasks_block: str, *, language: str = "English") -> str:
    return f"""
As a task management assistant, write a {period.label} from the task data below.

{tasks_block}

The report must include:
1. The number of completed and open tasks
2. The completion rate
3. Task counts by priority
4. An analysis of work efficiency
5. Suggestions for improvement

Requirements:
- Show every task in a table with the columns: title, status, priority, due date
- Group statistics by title and by priority
- Describe suitable charts (completion pie chart, priority distribution)

Write the report in {language}, formatted as Markdown.
""".strip()


class ReportService:
    """
    Builds a report prompt from the task set and hands it to the LLM.

    The returned text is the report, unmodified apart from outer whitespace.
    No retries here: a failure lands in `state.error` and the caller may
    simply ask again. A newer request supersedes an older one still running.
    """

    def __init__(
        self,
        llm: LLMClient,
        *,
        language: str = "English",
        first_weekday: int = 0,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._llm = llm
        self._language = language
        self._first_weekday = first_weekday
        self._clock = clock
        self._generation = 0
        self.state = ReportState()

    def prepare_prompt(self, period: ReportPeriod, tasks: Iterable[Task]) -> str:
        start, end = report_window(period, self._clock(), first_weekday=self._first_weekday)
        selected = tasks_in_window(tasks, start, end)
        logger.debug("Report %s window=[%s, %s) tasks=%d", period.value, start, end, len(selected))
        return build_prompt(period, render_tasks(selected), language=self._language)

    def complete_prompt(self, prompt: str) -> str:
        """Blocking LLM call. Raises ReportGenerationError on any failure."""
        raw = ""
        try:
            for piece in self._llm.stream_chat([{"role": "user", "content": prompt}], REPORT_SYSTEM_PROMPT):
                raw += piece
        except Exception as e:
            logger.warning("Report generation failed: %s", e)
            raise ReportGenerationError(f"Failed to generate report: {friendly_llm_error_message(e)}") from e

        report = raw.strip()
        if not report:
            raise ReportGenerationError("Failed to generate report: the model returned no content.")
        return report

    def build_report(self, period: ReportPeriod, tasks: Iterable[Task]) -> str:
        return self.complete_prompt(self.prepare_prompt(period, tasks))

    async def generate(self, period: ReportPeriod, tasks: Iterable[Task]) -> ReportState:
        """Run a report off the event loop and record the outcome in `state`."""
        self._generation += 1
        generation = self._generation
        self.state = ReportState(is_generating=True, period=period)

        prompt = self.prepare_prompt(period, list(tasks))
        try:
            report = await asyncio.to_thread(self.complete_prompt, prompt)
            outcome = ReportState(report=report, period=period)
        except ReportGenerationError as e:
            outcome = ReportState(error=str(e), period=period)

        if generation == self._generation:
            self.state = outcome
        else:
            logger.debug("Report %s superseded by a newer request", period.value)
        logger.info("Report %s finished ok=%s", period.value, outcome.error is None)
        return outcome
