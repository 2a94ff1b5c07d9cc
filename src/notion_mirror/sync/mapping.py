# src/notion_mirror/sync/mapping.py

"""
Detail payload -> canonical TaskRecord + relation edges.

The payload column keeps the complete detail response (keys sorted so that
the same remote state always produces the same bytes). Turning it into a
display object is the reader's job, not ours.
"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from typing import Any

from ..core.errors import MalformedResponseError
from .models import HydratedTask, RelationLink, SyncStatus, TaskRecord


def parse_notion_timestamp(raw: Any) -> int:
    """ISO-8601 timestamp ('2025-01-02T03:04:00.000Z') -> epoch milliseconds. 0 if absent."""
    if not raw:
        return 0
    try:
        dt = datetime.fromisoformat(str(raw).replace("Z", "+00:00"))
    except ValueError as e:
        raise MalformedResponseError(f"Unparseable timestamp: {raw!r}") from e
    if dt.tzinfo is None:
        # Offset-less values are UTC, independent of the host timezone.
        dt = dt.replace(tzinfo=timezone.utc)
    return int(dt.timestamp() * 1000)


def plain_title(prop: Any) -> str | None:
    """First plain_text fragment of a title property, if any."""
    if not isinstance(prop, dict):
        return None
    parts = prop.get("title")
    if not isinstance(parts, list) or not parts:
        return None
    first = parts[0]
    if not isinstance(first, dict):
        return None
    text = first.get("plain_text")
    return text if isinstance(text, str) and text else None


def to_task_record(page: dict[str, Any]) -> TaskRecord:
    page_id = page.get("id")
    if not isinstance(page_id, str) or not page_id:
        raise MalformedResponseError("Detail response has no 'id'")

    remote_ms = parse_notion_timestamp(page.get("last_edited_time"))
    payload = json.dumps(page, ensure_ascii=False, sort_keys=True, separators=(",", ":"))

    # A freshly mirrored row has no local edits: it was last modified locally
    # at the remote edit it mirrors. Keeps repeated runs byte-identical.
    return TaskRecord(
        client_id=page_id,
        remote_id=page_id,
        payload=payload,
        sync_status=SyncStatus.SYNCED,
        local_modified_at=remote_ms,
        remote_modified_at=remote_ms,
    )


def extract_relation_links(page: dict[str, Any]) -> list[RelationLink]:
    """Edges from every relation-typed property, deduplicated, in payload order."""
    page_id = page.get("id")
    props = page.get("properties") or {}
    if not isinstance(page_id, str) or not isinstance(props, dict):
        return []

    seen: set[str] = set()
    links: list[RelationLink] = []
    for prop in props.values():
        if not isinstance(prop, dict) or prop.get("type") != "relation":
            continue
        for rel in prop.get("relation") or []:
            rid = rel.get("id") if isinstance(rel, dict) else None
            if not isinstance(rid, str) or not rid or rid in seen:
                continue
            seen.add(rid)
            links.append(RelationLink(task_id=page_id, related_id=rid))
    return links


def hydrate_page(page: dict[str, Any], *, title_property: str | None = None,
                 fallback_title: str | None = None) -> HydratedTask:
    record = to_task_record(page)
    props = page.get("properties")
    title = None
    if title_property and isinstance(props, dict):
        title = plain_title(props.get(title_property))
    return HydratedTask(
        record=record,
        links=extract_relation_links(page),
        title=title or fallback_title,
    )
