# src/desk_todo/snapshot/export_queue.py

"""
Background snapshot export.

Every accepted mutation calls `request(base_dir)` and moves on. Per directory
there is at most one worker; requests that arrive while it is writing mark
the directory dirty, and the worker runs once more after the current write.
Each run reads the task set fresh, so the file always ends up reflecting the
latest state (last write wins) and a burst of N mutations costs at most two
writes.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from pathlib import Path

from ..tasks.task_models import Task
from .snapshot_store import SnapshotStore

logger = logging.getLogger(__name__)


class ExportQueue:
    def __init__(self, snapshot: SnapshotStore, load_tasks: Callable[[], list[Task]]) -> None:
        self._snapshot = snapshot
        self._load_tasks = load_tasks
        self._workers: dict[Path, asyncio.Task[None]] = {}
        self._dirty: set[Path] = set()
        self.exports_run = 0

    @staticmethod
    def _key(base_dir: str | Path) -> Path:
        return Path(base_dir).expanduser()

    def request(self, base_dir: str | Path | None) -> None:
        """Schedule an export of the current task set. Must run on the event loop."""
        if base_dir is None:
            return

        key = self._key(base_dir)
        worker = self._workers.get(key)
        if worker is not None and not worker.done():
            self._dirty.add(key)
            logger.debug("Export already running for %s; coalescing", key)
            return

        loop = asyncio.get_running_loop()
        self._workers[key] = loop.create_task(self._run(key), name=f"snapshot-export:{key}")

    def in_flight(self, base_dir: str | Path) -> bool:
        worker = self._workers.get(self._key(base_dir))
        return worker is not None and not worker.done()

    async def drain(self, base_dir: str | Path | None = None) -> None:
        """Wait until no export is running for `base_dir` (or for any directory)."""
        while True:
            if base_dir is None:
                pending = [w for w in self._workers.values() if not w.done()]
            else:
                worker = self._workers.get(self._key(base_dir))
                pending = [worker] if worker is not None and not worker.done() else []
            if not pending:
                return
            await asyncio.gather(*pending, return_exceptions=True)

    async def _run(self, key: Path) -> None:
        try:
            while True:
                self._dirty.discard(key)
                try:
                    await asyncio.to_thread(self._export_once, key)
                except Exception:
                    logger.exception("Snapshot export failed dir=%s", key)
                if key not in self._dirty:
                    break
        finally:
            if self._workers.get(key) is asyncio.current_task():
                del self._workers[key]

    def _export_once(self, key: Path) -> None:
        tasks = self._load_tasks()
        self._snapshot.export(tasks, key)
        self.exports_run += 1
