# src/notion_mirror/sync/manifest.py

from __future__ import annotations

import json
import logging
import os
from collections.abc import Iterable
from pathlib import Path

from .models import ListingEntry

logger = logging.getLogger(__name__)


def write_scan_manifest(path: str | Path, entries: Iterable[ListingEntry]) -> Path:
    """
    Write the ordered (id, title) list of a finished pass.

    For external auditing only; resume logic never reads it.
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    rows = [{"id": e.id, "title": e.title} for e in entries]
    tmp = path.with_suffix(".tmp")
    tmp.write_text(json.dumps(rows, ensure_ascii=False, indent=2), "utf-8")
    os.replace(tmp, path)
    logger.info("Saved scan manifest: %d entries to %s", len(rows), path)
    return path


def read_scan_manifest(path: str | Path) -> list[ListingEntry]:
    path = Path(path)
    if not path.exists():
        return []
    rows = json.loads(path.read_text("utf-8"))
    return [ListingEntry(id=r["id"], title=r.get("title")) for r in rows if isinstance(r, dict) and r.get("id")]
