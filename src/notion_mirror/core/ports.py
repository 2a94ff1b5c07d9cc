# src/notion_mirror/core/ports.py

from __future__ import annotations

"""
Ports (interfaces) used by the sync engine.

The orchestrator and hydrator depend on Protocols instead of concrete
implementations, so retry and resume behavior can be tested with in-memory
fakes (no network, no disk).
"""

from typing import Any, Callable, Protocol

from ..sync.models import DatabaseSchema, HydratedTask, ListingPage, PropertyMap, RelationLink, TaskRecord

Sleeper = Callable[[float], None]
Clock = Callable[[], float]


class NotionApi(Protocol):
    """Remote side: listing, per-record detail and schema endpoints."""

    def query_data_source(
            self,
            data_source_id: str,
            *,
            page_size: int,
            start_cursor: str | None = None,
            title_property: str | None = None,
    ) -> ListingPage: ...

    def retrieve_page(self, page_id: str, *, filter_properties: list[str] | None = None) -> dict[str, Any]: ...

    def retrieve_schema(self, database_id: str, *, data_source_id: str | None = None) -> DatabaseSchema: ...


class CursorRepo(Protocol):
    def load(self) -> str | None: ...
    def save(self, cursor: str) -> None: ...
    def clear(self) -> None: ...


class PropertyCacheRepo(Protocol):
    def load(self) -> PropertyMap | None: ...
    def save(self, mapping: PropertyMap) -> None: ...
    def invalidate(self) -> bool: ...


class MirrorRepo(Protocol):
    def clear_all(self) -> None: ...
    def upsert_task(self, record: TaskRecord) -> None: ...
    def insert_link(self, link: RelationLink) -> bool: ...
    def save_hydrated(self, task: HydratedTask) -> int: ...
    def count_tasks(self) -> int: ...
    def count_links(self) -> int: ...


class RateLimiter(Protocol):
    """Pacing policy. wait() blocks until the next call is allowed."""

    def wait(self) -> None: ...
