# tests/fakes.py

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any

from notion_mirror.core.errors import AuthenticationError, NotFoundError, RemoteError, TransientRemoteError
from notion_mirror.sync.models import DatabaseSchema, DataSourceRef, ListingEntry, ListingPage

PROPERTY_IDS = {
    "Task": "title",
    "Status": "st%3A",
    "Due": "du%3B",
    "Priority": "pr%3C",
    "Projects": "pj%3D",
    "Blocked by": "bl%3E",
    "Notes": "no%3F",
}

_BASE_TIME = datetime(2025, 6, 1, 12, 0, tzinfo=timezone.utc)


def make_page(
    index: int,
    *,
    projects: list[str] | None = None,
    blocked_by: list[str] | None = None,
    status: str = "To Do",
) -> dict[str, Any]:
    """
    Notion-like page object. Higher index => older last_edited_time, so a list
    of make_page(0..n) is already in "last edited, descending" order.
    """
    edited = (_BASE_TIME - timedelta(minutes=index)).isoformat().replace("+00:00", ".000Z")
    return {
        "object": "page",
        "id": f"task-{index:03d}",
        "url": f"https://www.notion.so/task-{index:03d}",
        "last_edited_time": edited,
        "properties": {
            "Task": {
                "id": PROPERTY_IDS["Task"],
                "type": "title",
                "title": [{"plain_text": f"Task {index}"}],
            },
            "Status": {"id": PROPERTY_IDS["Status"], "type": "status", "status": {"name": status}},
            "Due": {"id": PROPERTY_IDS["Due"], "type": "date", "date": None},
            "Priority": {"id": PROPERTY_IDS["Priority"], "type": "select", "select": None},
            "Projects": {
                "id": PROPERTY_IDS["Projects"],
                "type": "relation",
                "relation": [{"id": p} for p in (projects or [])],
            },
            "Blocked by": {
                "id": PROPERTY_IDS["Blocked by"],
                "type": "relation",
                "relation": [{"id": b} for b in (blocked_by or [])],
            },
            "Notes": {"id": PROPERTY_IDS["Notes"], "type": "rich_text", "rich_text": []},
        },
    }


def make_pages(n: int) -> list[dict[str, Any]]:
    """n pages; every third relates to a project (listed twice to exercise dedup)."""
    pages = []
    for i in range(n):
        projects = [f"proj-{i % 4}", f"proj-{i % 4}"] if i % 3 == 0 else []
        pages.append(make_page(i, projects=projects))
    return pages


def expected_link_count(pages: list[dict[str, Any]]) -> int:
    pairs = set()
    for p in pages:
        for prop in p["properties"].values():
            if prop.get("type") == "relation":
                for rel in prop["relation"]:
                    pairs.add((p["id"], rel["id"]))
    return len(pairs)


class FakeNotionApi:
    """
    Deterministic in-memory Notion API.

    - cursors are stringified offsets into the record list
    - listing failures are scripted by 1-based call number
    - detail failures are scripted by page id
    - every call is captured for assertions
    """

    def __init__(
        self,
        pages: list[dict[str, Any]],
        *,
        properties: dict[str, str] | None = None,
        data_sources: list[DataSourceRef] | None = None,
        transient_on_calls: set[int] | None = None,
        fatal_on_calls: set[int] | None = None,
        missing_next_cursor: bool = False,
        failing_pages: set[str] | None = None,
        auth_failing_pages: set[str] | None = None,
    ) -> None:
        self.pages = list(pages)
        self.properties = dict(PROPERTY_IDS if properties is None else properties)
        self.data_sources = [DataSourceRef(id="ds-1", name="Tasks")] if data_sources is None else data_sources
        self.transient_on_calls = transient_on_calls or set()
        self.fatal_on_calls = fatal_on_calls or set()
        self.missing_next_cursor = missing_next_cursor
        self.failing_pages = failing_pages or set()
        self.auth_failing_pages = auth_failing_pages or set()

        self.query_calls: list[str | None] = []
        self.query_sources: list[str] = []
        self.retrieve_calls: list[tuple[str, list[str]]] = []
        self.schema_calls = 0
        self.schema_sources: list[str | None] = []

    def query_data_source(
        self,
        data_source_id: str,
        *,
        page_size: int,
        start_cursor: str | None = None,
        title_property: str | None = None,
    ) -> ListingPage:
        self.query_calls.append(start_cursor)
        self.query_sources.append(data_source_id)
        call_no = len(self.query_calls)
        if call_no in self.transient_on_calls:
            raise TransientRemoteError("Data source query failed (503)", status=503)
        if call_no in self.fatal_on_calls:
            raise RemoteError("Data source query failed (400, validation_error)", status=400)

        offset = int(start_cursor) if start_cursor else 0
        chunk = self.pages[offset: offset + page_size]
        end = offset + len(chunk)
        has_more = end < len(self.pages)
        entries = [
            ListingEntry(
                id=p["id"],
                title=p["properties"]["Task"]["title"][0]["plain_text"],
                last_edited_time=p["last_edited_time"],
            )
            for p in chunk
        ]
        next_cursor = str(end) if has_more and not self.missing_next_cursor else None
        return ListingPage(entries=entries, has_more=has_more, next_cursor=next_cursor)

    def retrieve_page(self, page_id: str, *, filter_properties: list[str] | None = None) -> dict[str, Any]:
        self.retrieve_calls.append((page_id, list(filter_properties or [])))
        if page_id in self.auth_failing_pages:
            raise AuthenticationError("Page failed (401, unauthorized)", status=401)
        if page_id in self.failing_pages:
            raise NotFoundError(f"Page {page_id} failed (404)", status=404)

        page = next((p for p in self.pages if p["id"] == page_id), None)
        if page is None:
            raise NotFoundError(f"Page {page_id} failed (404)", status=404)

        out = dict(page)
        if filter_properties:
            allowed = set(filter_properties)
            out["properties"] = {k: v for k, v in page["properties"].items() if v["id"] in allowed}
        return out

    def retrieve_schema(self, database_id: str, *, data_source_id: str | None = None) -> DatabaseSchema:
        self.schema_calls += 1
        self.schema_sources.append(data_source_id)
        return DatabaseSchema(properties=dict(self.properties), data_sources=list(self.data_sources))

    @property
    def hydrated_ids(self) -> list[str]:
        return [pid for pid, _ in self.retrieve_calls]


@dataclass
class FakeClock:
    """Monotonic clock whose sleep() just advances time."""

    now: float = 1000.0
    sleeps: list[float] = field(default_factory=list)

    def __call__(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


class MemoryCursorStore:
    """In-memory CursorRepo that records every save."""

    def __init__(self, cursor: str | None = None) -> None:
        self.cursor = cursor
        self.saved: list[str] = []
        self.cleared = 0

    def load(self) -> str | None:
        return self.cursor

    def save(self, cursor: str) -> None:
        self.saved.append(cursor)
        self.cursor = cursor

    def clear(self) -> None:
        self.cleared += 1
        self.cursor = None


class CountingLimiter:
    def __init__(self) -> None:
        self.calls = 0

    def wait(self) -> None:
        self.calls += 1


class MemoryPropertyCache:
    """PropertyCacheRepo with nothing beyond the port's methods."""

    def __init__(self, mapping: dict[str, str] | None = None) -> None:
        self.mapping = dict(mapping) if mapping is not None else None
        self.saves = 0

    def load(self) -> dict[str, str] | None:
        return None if self.mapping is None else dict(self.mapping)

    def save(self, mapping: dict[str, str]) -> None:
        self.saves += 1
        self.mapping = dict(mapping)

    def invalidate(self) -> bool:
        existed = self.mapping is not None
        self.mapping = None
        return existed
