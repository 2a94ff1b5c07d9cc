# src/notion_mirror/sync/models.py

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from pathlib import Path

PropertyMap = dict[str, str]
# Human-readable property name -> stable Notion property id, in schema order.


class SyncStatus(StrEnum):
    """Row-level status. The sync engine only ever writes SYNCED."""

    SYNCED = "synced"
    PENDING = "pending"

    @classmethod
    def from_db(cls, raw: str | None) -> SyncStatus:
        if not raw:
            return cls.PENDING
        try:
            return cls(raw)
        except ValueError:
            return cls.PENDING


class SyncPhase(StrEnum):
    IDLE = "idle"
    FETCHING_PAGE = "fetching_page"
    HYDRATING = "hydrating"
    PERSISTING = "persisting"
    CHECKPOINTING = "checkpointing"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass(slots=True, frozen=True)
class ListingEntry:
    """Lightweight row from the listing endpoint."""

    id: str
    title: str | None = None
    last_edited_time: str | None = None


@dataclass(slots=True, frozen=True)
class ListingPage:
    entries: list[ListingEntry]
    has_more: bool
    next_cursor: str | None


@dataclass(slots=True, frozen=True)
class TaskRecord:
    client_id: str
    remote_id: str
    payload: str  # JSON snapshot of the detail response
    sync_status: SyncStatus
    local_modified_at: int  # epoch ms
    remote_modified_at: int  # epoch ms


@dataclass(slots=True, frozen=True)
class RelationLink:
    task_id: str
    related_id: str


@dataclass(slots=True, frozen=True)
class HydratedTask:
    record: TaskRecord
    links: list[RelationLink]
    title: str | None = None


@dataclass(slots=True, frozen=True)
class DataSourceRef:
    id: str
    name: str = ""


@dataclass(slots=True, frozen=True)
class DatabaseSchema:
    properties: PropertyMap
    data_sources: list[DataSourceRef]


@dataclass(slots=True)
class HydrationReport:
    requested: int = 0
    hydrated: int = 0
    failed: int = 0
    links: int = 0
    failed_ids: list[str] = field(default_factory=list)


@dataclass(slots=True)
class SyncResult:
    resumed: bool = False
    completed: bool = False
    pages: int = 0
    listed: int = 0
    hydrated: int = 0
    failed: int = 0
    retries: int = 0
    links_added: int = 0
    task_count: int = 0
    link_count: int = 0
    manifest_path: Path | None = None
