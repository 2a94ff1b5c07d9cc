# src/notion_mirror/sync/orchestrator.py

from __future__ import annotations

"""
Sync orchestrator.

Drives one run as an explicit state machine:

    idle -> fetching_page -> hydrating <-> persisting -> checkpointing
         -> (fetching_page | completed)

`failed` is reachable from every non-terminal state. `fetching_page ->
fetching_page` is the transient-retry edge: the same page is requested again
after a fixed delay and the cursor does not move.

Checkpoint rules:
- no cursor on start: clear the store, then list from the top,
- the page's next_cursor is written only after every record of the page
  has been persisted,
- the cursor file is deleted when the final page completes, so the next
  run is a fresh full resync.
"""

import logging
import time
from pathlib import Path

from ..core.errors import (
    InvalidTransitionError,
    MalformedResponseError,
    MissingDataSourceError,
    RetryBudgetExceededError,
    TransientRemoteError,
)
from ..core.ports import CursorRepo, MirrorRepo, NotionApi, PropertyCacheRepo, RateLimiter, Sleeper
from .hydrator import Hydrator
from .manifest import write_scan_manifest
from .models import DatabaseSchema, HydratedTask, ListingEntry, ListingPage, PropertyMap, SyncPhase, SyncResult
from .rate_limit import NoopLimiter

logger = logging.getLogger(__name__)

_TERMINAL = {SyncPhase.COMPLETED, SyncPhase.FAILED}

_ALLOWED: dict[SyncPhase, set[SyncPhase]] = {
    SyncPhase.IDLE: {SyncPhase.FETCHING_PAGE, SyncPhase.FAILED},
    SyncPhase.FETCHING_PAGE: {SyncPhase.FETCHING_PAGE, SyncPhase.HYDRATING, SyncPhase.FAILED},
    SyncPhase.HYDRATING: {SyncPhase.PERSISTING, SyncPhase.CHECKPOINTING, SyncPhase.FAILED},
    SyncPhase.PERSISTING: {SyncPhase.HYDRATING, SyncPhase.FAILED},
    SyncPhase.CHECKPOINTING: {SyncPhase.FETCHING_PAGE, SyncPhase.COMPLETED, SyncPhase.FAILED},
    SyncPhase.COMPLETED: set(),
    SyncPhase.FAILED: set(),
}


def select_data_source(schema: DatabaseSchema) -> str:
    """
    Pick the data source to mirror.

    Only the first declared source is used. Several sources are reported
    so the choice is visible; set NOTION_MIRROR_DATA_SOURCE_ID to pick another.
    """
    if not schema.data_sources:
        raise MissingDataSourceError("No data sources found for database")
    if len(schema.data_sources) > 1:
        logger.warning(
            "Database declares %d data sources (%s); mirroring only the first. "
            "Set NOTION_MIRROR_DATA_SOURCE_ID to choose explicitly.",
            len(schema.data_sources),
            ", ".join(f"{ds.name or '?'}={ds.id}" for ds in schema.data_sources),
        )
    return schema.data_sources[0].id


class SyncOrchestrator:
    def __init__(
        self,
        *,
        api: NotionApi,
        cursors: CursorRepo,
        property_cache: PropertyCacheRepo,
        store: MirrorRepo,
        hydrator: Hydrator,
        database_id: str,
        data_source_id: str | None = None,
        page_size: int = 20,
        title_property: str | None = None,
        retry_delay_seconds: float = 5.0,
        max_page_retries: int = 10,
        page_limiter: RateLimiter | None = None,
        manifest_path: str | Path | None = None,
        sleep: Sleeper = time.sleep,
    ) -> None:
        self._api = api
        self._cursors = cursors
        self._property_cache = property_cache
        self._store = store
        self._hydrator = hydrator
        self._database_id = database_id
        self._data_source_id = data_source_id
        self._page_size = int(page_size)
        self._title_property = title_property
        self._retry_delay = max(0.0, float(retry_delay_seconds))
        self._max_page_retries = max(0, int(max_page_retries))
        self._page_limiter = page_limiter or NoopLimiter()
        self._manifest_path = Path(manifest_path) if manifest_path else None
        self._sleep = sleep

        self._phase = SyncPhase.IDLE
        self._history: list[SyncPhase] = [SyncPhase.IDLE]
        self._schema: DatabaseSchema | None = None

    # ---- state machine ----

    @property
    def phase(self) -> SyncPhase:
        return self._phase

    @property
    def phase_history(self) -> list[SyncPhase]:
        return list(self._history)

    def _transition(self, new: SyncPhase) -> None:
        if new not in _ALLOWED[self._phase]:
            raise InvalidTransitionError(f"Illegal transition {self._phase.value} -> {new.value}")
        logger.debug("phase %s -> %s", self._phase.value, new.value)
        self._phase = new
        self._history.append(new)

    # ---- helpers ----

    def _fetch_schema(self) -> DatabaseSchema:
        # At most one schema call per run. Properties are read from the
        # configured data source when there is one.
        if self._schema is None:
            self._schema = self._api.retrieve_schema(self._database_id, data_source_id=self._data_source_id)
        return self._schema

    def _prepare(self) -> tuple[str, PropertyMap]:
        property_map = self._property_cache.load()
        if property_map is None:
            logger.info("Property cache missing - fetching schema...")
            property_map = dict(self._fetch_schema().properties)
            self._property_cache.save(property_map)
        data_source_id = self._data_source_id or select_data_source(self._fetch_schema())
        logger.info("Data source %s, %d cached properties", data_source_id, len(property_map))
        return data_source_id, property_map

    def _fetch_page(self, data_source_id: str, cursor: str | None, result: SyncResult) -> ListingPage:
        failures = 0
        while True:
            started = time.monotonic()
            try:
                page = self._api.query_data_source(
                    data_source_id,
                    page_size=self._page_size,
                    start_cursor=cursor,
                    title_property=self._title_property,
                )
            except TransientRemoteError as e:
                failures += 1
                if failures > self._max_page_retries:
                    raise RetryBudgetExceededError(
                        f"Page {result.pages + 1} still failing after {self._max_page_retries} retries: {e}"
                    ) from e
                result.retries += 1
                delay = max(self._retry_delay, e.retry_after or 0.0)
                logger.warning(
                    "Page %d: %s - waiting %.1fs and retrying (%d/%d)",
                    result.pages + 1,
                    e,
                    delay,
                    failures,
                    self._max_page_retries,
                )
                self._sleep(delay)
                self._transition(SyncPhase.FETCHING_PAGE)
                continue

            logger.info(
                "Page %d: %d results (%.2fs, page_size=%d, has_more=%s)",
                result.pages + 1,
                len(page.entries),
                time.monotonic() - started,
                self._page_size,
                page.has_more,
            )
            return page

    def _persist(self, task: HydratedTask) -> int:
        self._transition(SyncPhase.PERSISTING)
        added = self._store.save_hydrated(task)
        self._transition(SyncPhase.HYDRATING)
        return added

    # ---- public API ----

    def run(self) -> SyncResult:
        """
        Run until the remote reports no further pages.

        Raises on any non-retryable error; the cursor then still points at the
        last fully persisted page and the next run resumes from there.
        """
        if self._phase is not SyncPhase.IDLE:
            raise InvalidTransitionError(f"Orchestrator already used (phase={self._phase.value})")

        result = SyncResult()
        scanned: list[ListingEntry] = []

        try:
            cursor = self._cursors.load()
            if cursor is not None and self._store.count_tasks() == 0:
                # Resuming into an empty store would mirror only the tail pages.
                logger.warning("Cursor present but the store is empty; discarding cursor and starting a full resync")
                self._cursors.clear()
                cursor = None
            result.resumed = cursor is not None
            data_source_id, property_map = self._prepare()

            if cursor is None:
                self._store.clear_all()
            else:
                logger.info("Resuming from stored cursor: %s...", cursor[:12])

            while True:
                self._transition(SyncPhase.FETCHING_PAGE)
                page = self._fetch_page(data_source_id, cursor, result)
                result.pages += 1
                result.listed += len(page.entries)
                scanned.extend(page.entries)

                self._transition(SyncPhase.HYDRATING)
                report = self._hydrator.hydrate_batch(page.entries, property_map, self._persist)
                result.hydrated += report.hydrated
                result.failed += report.failed
                result.links_added += report.links
                logger.info("Hydrated %d/%d to SQLite", report.hydrated, report.requested)

                self._transition(SyncPhase.CHECKPOINTING)
                if page.has_more:
                    if not page.next_cursor:
                        raise MalformedResponseError("Listing reported has_more without next_cursor")
                    cursor = page.next_cursor
                    self._cursors.save(cursor)
                    self._page_limiter.wait()
                    continue

                self._cursors.clear()
                if self._manifest_path is not None:
                    result.manifest_path = write_scan_manifest(self._manifest_path, scanned)
                self._transition(SyncPhase.COMPLETED)
                break

        except Exception as e:
            if self._phase not in _TERMINAL:
                self._transition(SyncPhase.FAILED)
            logger.error(
                "Sync aborted in phase %s after %d page(s): %s",
                self._history[-2].value if len(self._history) > 1 else SyncPhase.IDLE.value,
                result.pages,
                e,
            )
            raise

        result.completed = True
        result.task_count = self._store.count_tasks()
        result.link_count = self._store.count_links()
        logger.info(
            "Sync complete: tasks=%d links=%d hydrated=%d failed=%d pages=%d retries=%d resumed=%s",
            result.task_count,
            result.link_count,
            result.hydrated,
            result.failed,
            result.pages,
            result.retries,
            result.resumed,
        )
        return result
