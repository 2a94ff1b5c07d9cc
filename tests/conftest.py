# tests/conftest.py

from __future__ import annotations

from collections.abc import Callable, Iterator
from pathlib import Path
from typing import Any

import pytest

from notion_mirror.sync.cursor_store import CursorStore
from notion_mirror.sync.hydrator import Hydrator
from notion_mirror.sync.orchestrator import SyncOrchestrator
from notion_mirror.sync.property_cache import PropertyCache
from notion_mirror.sync.store import MirrorStore

from .fakes import CountingLimiter, FakeClock

HYDRATE_FIELDS = ["Task", "Status", "Due", "Priority", "Projects"]


@pytest.fixture()
def store(tmp_path: Path) -> Iterator[MirrorStore]:
    """
    Real SQLite store in tmp_path.

    NOTE: the store is not faked because its idempotence and dedup
    guarantees are part of what we want to test.
    """
    s = MirrorStore(tmp_path / "mirror.sqlite3")
    yield s
    s.close()


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def make_orchestrator(tmp_path: Path, store: MirrorStore, clock: FakeClock) -> Callable[..., SyncOrchestrator]:
    """
    Factory wiring an orchestrator around a fake API.

    Cursor and property cache default to real files in tmp_path so that a
    second orchestrator built by the same test sees the first one's
    checkpoints, like a restarted process would.
    """

    def _make(api: Any, **overrides: Any) -> SyncOrchestrator:
        hydrator = Hydrator(
            api,
            field_names=overrides.pop("field_names", HYDRATE_FIELDS),
            title_property="Task",
            limiter=overrides.pop("record_limiter", CountingLimiter()),
        )
        kwargs: dict[str, Any] = dict(
            api=api,
            cursors=CursorStore(tmp_path / "task-cursor.txt"),
            property_cache=PropertyCache(tmp_path / "task-property-ids.json"),
            store=store,
            hydrator=hydrator,
            database_id="db-1",
            page_size=20,
            title_property="Task",
            retry_delay_seconds=5.0,
            max_page_retries=3,
            page_limiter=CountingLimiter(),
            manifest_path=tmp_path / "task-scan.json",
            sleep=clock.sleep,
        )
        kwargs.update(overrides)
        return SyncOrchestrator(**kwargs)

    return _make
