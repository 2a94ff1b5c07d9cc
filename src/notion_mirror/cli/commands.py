# src/notion_mirror/cli/commands.py

from __future__ import annotations

import logging
from collections.abc import Callable

from ..config import Settings
from ..core.errors import MirrorError
from ..sync.cursor_store import CursorStore
from ..sync.property_cache import PropertyCache
from ..sync.store import MirrorStore
from .bootstrap import create_engine

Emit = Callable[[str], None]
CommandHandler = Callable[[Settings, Emit], int]

logger = logging.getLogger(__name__)


def cmd_run(settings: Settings, emit: Emit) -> int:
    try:
        engine = create_engine(settings=settings)
    except MirrorError as e:
        logger.error("%s", e)
        return 1

    try:
        result = engine.orchestrator.run()
    except MirrorError as e:
        emit(f"Sync aborted: {e}")
        emit("Run again to resume from the last checkpoint.")
        return 1
    finally:
        engine.close()

    emit("=== Summary ===")
    emit(f"Tasks synced         : {result.task_count}")
    emit(f"Task relation links  : {result.link_count}")
    emit(f"Hydrated this run    : {result.hydrated}/{result.listed}")
    emit(f"Failed               : {result.failed}")
    emit(f"Pages / retries      : {result.pages} / {result.retries}")
    if result.resumed:
        emit("Resumed run finished - cursor file cleared.")
    if result.manifest_path is not None:
        emit(f"Scan manifest        : {result.manifest_path}")
    return 0


def cmd_status(settings: Settings, emit: Emit) -> int:
    cursor = CursorStore(settings.cursor_path).load()
    cache = PropertyCache(settings.property_cache_path)
    emit(f"Cursor         : {'in progress (' + cursor[:12] + '...)' if cursor else 'none (next run is a full resync)'}")
    emit(f"Property cache : {'present' if cache.exists() else 'missing'} ({cache.path})")
    if settings.db_path.exists():
        with MirrorStore(settings.db_path) as store:
            emit(f"Tasks          : {store.count_tasks()}")
            emit(f"Relation links : {store.count_links()}")
    else:
        emit(f"Store          : not created yet ({settings.db_path})")
    return 0


def cmd_reset_cursor(settings: Settings, emit: Emit) -> int:
    CursorStore(settings.cursor_path).clear()
    emit("Cursor cleared; the next run is a full resync.")
    return 0


def cmd_invalidate_cache(settings: Settings, emit: Emit) -> int:
    removed = PropertyCache(settings.property_cache_path).invalidate()
    emit("Property cache deleted." if removed else "Property cache was not present.")
    return 0


COMMANDS: dict[str, tuple[CommandHandler, str]] = {
    "run": (cmd_run, "Mirror the task database (resumes an interrupted pass)."),
    "status": (cmd_status, "Show cursor, cache and store state."),
    "reset-cursor": (cmd_reset_cursor, "Forget the in-progress pass; next run starts fresh."),
    "invalidate-cache": (cmd_invalidate_cache, "Delete the property cache after a schema change."),
}
