# src/desk_todo/tasks/attachments.py

from __future__ import annotations

import logging
from pathlib import Path

from .task_models import Task

logger = logging.getLogger(__name__)

_UNSAFE_CHARS = '/\\:*?"<>|'
_SANITIZE_TABLE = str.maketrans({ch: "-" for ch in _UNSAFE_CHARS})


def sanitize_title(title: str) -> str:
    return (title or "").translate(_SANITIZE_TABLE)


def folder_name_for(task: Task) -> str:
    """`<YYYY-MM-DD>-<title>` using the local creation date."""
    date_str = task.created_at.astimezone().strftime("%Y-%m-%d")
    return f"{date_str}-{sanitize_title(task.title)}"


def create_task_folder(base_dir: Path | None, task: Task) -> Path | None:
    """
    Create (or reuse) the task's attachment folder under `base_dir`.

    Returns None when no storage folder is configured yet or the folder cannot
    be created.
    """
    if base_dir is None:
        return None

    folder = Path(base_dir) / folder_name_for(task)
    try:
        folder.mkdir(parents=True, exist_ok=True)
    except OSError:
        logger.exception("Failed to create attachment folder %s", folder)
        return None

    logger.debug("Attachment folder ready task_id=%s path=%s", task.id, folder)
    return folder
