# src/desk_todo/core/ports.py

from __future__ import annotations

"""
Ports (interfaces) used by the services.

Services depend on Protocols instead of concrete implementations.
This keeps the notification backend, storage and LLM provider swappable and
makes testing easier.
"""

import uuid
from dataclasses import dataclass
from datetime import datetime
from typing import Awaitable, Iterable, Protocol

ChatMessage = dict[str, str]
# OpenAI-style chat messages: {"role": "...", "content": "..."}.


class LLMClient(Protocol):
    """Streaming chat completion client (OpenAI-compatible)."""
    def stream_chat(self, messages: list[ChatMessage], system_prompt: str) -> Iterable[str]: ...


@dataclass(slots=True, frozen=True)
class NotificationRequest:
    """A one-shot local notification, identified by `key`."""

    key: str
    fire_at: datetime
    title: str
    body: str


class NotificationCenter(Protocol):
    """
    Host notification subsystem.

    - request_authorization() returns whether notifications may be shown.
    - schedule() replaces nothing: callers cancel first when rescheduling.
      It returns False when the request was dropped (not authorized, or a
      fire time already in the past).
    - cancel() of an unknown key is a no-op.
    """

    def request_authorization(self) -> bool: ...
    def schedule(self, request: NotificationRequest) -> bool: ...
    def cancel(self, key: str) -> None: ...
    def pending_keys(self) -> list[str]: ...


class NotificationSink(Protocol):
    """Connector-side port: where a fired notification is shown."""

    def show(self, *, title: str, body: str) -> Awaitable[None]: ...


class TaskRepo(Protocol):
    def count_tasks(self) -> int: ...
    def add_task(self, task) -> None: ...
    def get_task(self, task_id: uuid.UUID): ...
    def list_tasks(self) -> list: ...
    def update_task(self, task) -> bool: ...
    def delete_task(self, task_id: uuid.UUID) -> bool: ...
    def replace_all(self, tasks: Iterable) -> int: ...
