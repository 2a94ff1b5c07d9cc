# src/notion_mirror/sync/cursor_store.py

from __future__ import annotations

import logging
import os
from pathlib import Path

logger = logging.getLogger(__name__)


class CursorStore:
    """
    File-backed pagination cursor.

    The file holds a single opaque token. No file (or an empty one) means
    "no pass in progress": the next run starts a full resync.
    """

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> str | None:
        if not self._path.exists():
            return None
        token = self._path.read_text("utf-8").strip()
        return token or None

    def save(self, cursor: str) -> None:
        if not cursor or not cursor.strip():
            raise ValueError("cursor must be a non-empty string")
        self._path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self._path.with_suffix(".tmp")
        tmp.write_text(cursor.strip(), "utf-8")
        os.replace(tmp, self._path)
        logger.debug("Cursor saved %s...", cursor[:12])

    def clear(self) -> None:
        if self._path.exists():
            self._path.unlink()
            logger.debug("Cursor cleared path=%s", self._path)
