# src/desk_todo/core/preferences.py

from __future__ import annotations

import contextlib
import json
import logging
import os
from pathlib import Path

logger = logging.getLogger(__name__)


class Preferences:
    """
    User choices that outlive the process (currently: the storage folder).

    Stored as a small JSON file. No storage folder yet is a valid state:
    the app runs, exports are skipped, and the console asks for /folder.
    """

    def __init__(self, path: str | Path, *, default_storage_dir: str | Path | None = None) -> None:
        self._path = Path(path)
        self._storage_dir: Path | None = None
        self._load()
        if self._storage_dir is None and default_storage_dir is not None:
            self._storage_dir = Path(default_storage_dir).expanduser()

    @property
    def storage_dir(self) -> Path | None:
        return self._storage_dir

    @property
    def is_initialized(self) -> bool:
        return self._storage_dir is not None

    def set_storage_dir(self, path: str | Path) -> Path:
        self._storage_dir = Path(path).expanduser()
        self._save()
        return self._storage_dir

    def _load(self) -> None:
        if not self._path.exists():
            return
        try:
            data = json.loads(self._path.read_text("utf-8"))
        except Exception:
            logger.exception("Failed to load preferences from %s", self._path)
            return
        if not isinstance(data, dict):
            return
        raw = data.get("storage_dir")
        if isinstance(raw, str) and raw.strip():
            self._storage_dir = Path(raw)
            logger.info("Preferences loaded: storage_dir=%s", self._storage_dir)

    def _save(self) -> None:
        data = {"storage_dir": str(self._storage_dir) if self._storage_dir else None}
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            tmp = self._path.with_suffix(".tmp")
            tmp.write_text(json.dumps(data, ensure_ascii=False, indent=2), "utf-8")
            os.replace(tmp, self._path)
            with contextlib.suppress(Exception):
                os.chmod(self._path, 0o600)
            logger.info("Saved preferences to %s", self._path)
        except Exception:
            logger.exception("Failed to save preferences to %s", self._path)
