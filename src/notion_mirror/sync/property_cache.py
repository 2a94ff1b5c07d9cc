# src/notion_mirror/sync/property_cache.py

from __future__ import annotations

import json
import logging
import os
from pathlib import Path

from .models import PropertyMap

logger = logging.getLogger(__name__)


class PropertyCache:
    """
    Persistent name -> property id map.

    Stored as an ordered JSON list of {"name", "id"} objects. Once written it is
    never modified by a sync; a schema change on the remote side requires an
    explicit invalidate() (delete the file). Staleness is accepted, drift is not
    detected.
    """

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def exists(self) -> bool:
        return self._path.exists()

    def load(self) -> PropertyMap | None:
        if not self._path.exists():
            return None
        try:
            entries = json.loads(self._path.read_text("utf-8"))
        except (OSError, ValueError):
            logger.warning("Property cache unreadable, ignoring path=%s", self._path, exc_info=True)
            return None
        if not isinstance(entries, list):
            logger.warning("Property cache has unexpected shape, ignoring path=%s", self._path)
            return None

        out: PropertyMap = {}
        for e in entries:
            if not isinstance(e, dict):
                continue
            name, pid = e.get("name"), e.get("id")
            if isinstance(name, str) and isinstance(pid, str) and pid:
                out[name] = pid
        return out

    def save(self, mapping: PropertyMap) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        entries = [{"name": name, "id": pid} for name, pid in mapping.items()]
        tmp = self._path.with_suffix(".tmp")
        tmp.write_text(json.dumps(entries, ensure_ascii=False, indent=2), "utf-8")
        os.replace(tmp, self._path)
        logger.info("Saved %d properties to cache %s", len(entries), self._path)

    def invalidate(self) -> bool:
        if not self._path.exists():
            return False
        self._path.unlink()
        logger.info("Property cache invalidated path=%s", self._path)
        return True
