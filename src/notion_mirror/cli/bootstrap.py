# src/notion_mirror/cli/bootstrap.py

"""
CLI bootstrap helpers.

This module is the "composition root":
- loads settings once,
- ensures local (gitignored) directories exist,
- wires concrete implementations (HTTP client, cursor file, property cache,
  SQLite store, limiters) into a SyncOrchestrator.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass

from ..config import Settings, get_settings
from ..core.errors import ConfigError
from ..notion.client import NotionClient
from ..sync.cursor_store import CursorStore
from ..sync.hydrator import Hydrator
from ..sync.orchestrator import SyncOrchestrator
from ..sync.property_cache import PropertyCache
from ..sync.rate_limit import build_limiter
from ..sync.store import MirrorStore

logger = logging.getLogger(__name__)


@dataclass
class SyncEngine:
    settings: Settings
    client: NotionClient
    store: MirrorStore
    orchestrator: SyncOrchestrator

    def close(self) -> None:
        self.store.close()
        self.client.close()


def _ensure_local_dirs(settings: Settings) -> None:
    settings.data_dir.mkdir(parents=True, exist_ok=True)
    settings.db_path.parent.mkdir(parents=True, exist_ok=True)
    settings.cursor_path.parent.mkdir(parents=True, exist_ok=True)
    settings.property_cache_path.parent.mkdir(parents=True, exist_ok=True)
    settings.manifest_path.parent.mkdir(parents=True, exist_ok=True)


def create_engine(*, settings: Settings | None = None, transport=None) -> SyncEngine:
    """
    Build a ready-to-run engine from settings.

    Raises ConfigError before touching the network or disk if the API key or
    database id is missing.
    """
    if settings is None:
        settings = get_settings()

    if not settings.api_key:
        raise ConfigError("Notion API key is not set. Set NOTION_MIRROR_API_KEY in your .env.")
    if not settings.database_id:
        raise ConfigError("Notion database id is not set. Set NOTION_MIRROR_DATABASE_ID in your .env.")

    _ensure_local_dirs(settings)

    client = NotionClient.from_settings(settings, transport=transport)
    store = MirrorStore(settings.db_path)

    hydrator = Hydrator(
        client,
        field_names=settings.hydrate_fields,
        title_property=settings.title_property,
        limiter=build_limiter(settings.pacing, settings.hydrate_delay_seconds),
    )
    orchestrator = SyncOrchestrator(
        api=client,
        cursors=CursorStore(settings.cursor_path),
        property_cache=PropertyCache(settings.property_cache_path),
        store=store,
        hydrator=hydrator,
        database_id=settings.database_id,
        data_source_id=settings.data_source_id,
        page_size=settings.page_size,
        title_property=settings.title_property,
        retry_delay_seconds=settings.retry_delay_seconds,
        max_page_retries=settings.max_page_retries,
        page_limiter=build_limiter(settings.pacing, settings.page_delay_seconds),
        manifest_path=settings.manifest_path,
        sleep=time.sleep,
    )
    logger.info(
        "Engine ready database=%s page_size=%d pacing=%s fields=%s",
        settings.database_id,
        settings.page_size,
        settings.pacing,
        ", ".join(settings.hydrate_fields),
    )
    return SyncEngine(settings=settings, client=client, store=store, orchestrator=orchestrator)
