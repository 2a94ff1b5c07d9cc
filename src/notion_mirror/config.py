# src/notion_mirror/config.py

"""Centralized settings loaded from environment variables (+ optional .env).

Design goals:
- One Settings object for the whole app (normal "settings layer").
- No secrets required at import time: the API key and database id are only
  checked when a sync actually starts.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv

ENV_PREFIX = "NOTION_MIRROR"


def _k(suffix: str) -> str:
    """Build env var name with the project prefix."""
    return f"{ENV_PREFIX}_{suffix}"


# Local .env never overrides variables already set in the environment.
load_dotenv(override=False)


def _env(name: str, default: str = "") -> str:
    v = os.getenv(name)
    return default if v is None else v


def _first_env(*names: str, default: str | None = None) -> str | None:
    for n in names:
        v = os.getenv(n)
        if v is not None and v.strip() != "":
            return v
    return default


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _env_list(name: str, default: List[str]) -> List[str]:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return list(default)
    # Property names may contain spaces, so only commas separate items.
    return [p.strip() for p in raw.split(",") if p.strip()]


def _env_path(name: str, default: Path) -> Path:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return Path(raw).expanduser()


@dataclass(frozen=True, slots=True)
class Settings:
    # ---- App / logging ----
    app_name: str
    log_level: str

    # ---- Notion ----
    api_key: Optional[str]
    database_id: Optional[str]
    data_source_id: Optional[str]
    notion_version: str
    base_url: str
    connect_timeout_seconds: float
    read_timeout_seconds: float

    # ---- Field names (human-readable, resolved through the property cache) ----
    title_property: str
    status_property: str
    due_property: str
    priority_property: str
    project_relation_property: str
    extra_properties: List[str]

    # ---- Pacing / retry ----
    page_size: int
    hydrate_delay_seconds: float
    page_delay_seconds: float
    retry_delay_seconds: float
    max_page_retries: int
    pacing: str

    # ---- Local data paths (ignored by git) ----
    data_dir: Path
    db_path: Path
    cursor_path: Path
    property_cache_path: Path
    manifest_path: Path

    @property
    def hydrate_fields(self) -> List[str]:
        """Field names requested on every detail fetch, in a stable order."""
        names = [
            self.title_property,
            self.status_property,
            self.due_property,
            self.priority_property,
            self.project_relation_property,
            *self.extra_properties,
        ]
        out: List[str] = []
        for n in names:
            if n and n not in out:
                out.append(n)
        return out

    @staticmethod
    def from_env() -> "Settings":
        app_name = _env(_k("APP_NAME"), "notion-mirror")
        log_level = _env(_k("LOG_LEVEL"), "INFO")

        api_key = _first_env(_k("API_KEY"), "NOTION_API_KEY", default=None)
        database_id = _first_env(_k("DATABASE_ID"), "NOTION_DATABASE_ID", default=None)
        data_source_id = _first_env(_k("DATA_SOURCE_ID"), default=None)
        notion_version = _env(_k("NOTION_VERSION"), "2025-09-03")
        base_url = _env(_k("BASE_URL"), "https://api.notion.com/v1")

        data_dir = _env_path(_k("DATA_DIR"), Path(".local/notion-mirror"))

        return Settings(
            app_name=app_name,
            log_level=log_level,
            api_key=api_key.strip() if api_key else None,
            database_id=database_id.strip() if database_id else None,
            data_source_id=data_source_id.strip() if data_source_id else None,
            notion_version=notion_version,
            base_url=base_url,
            connect_timeout_seconds=_env_float(_k("CONNECT_TIMEOUT_SECONDS"), 5.0),
            # Large databases answer slowly; keep the read timeout generous.
            read_timeout_seconds=_env_float(_k("READ_TIMEOUT_SECONDS"), 120.0),
            title_property=_env(_k("TITLE_PROPERTY"), "Task"),
            status_property=_env(_k("STATUS_PROPERTY"), "Status"),
            due_property=_env(_k("DUE_PROPERTY"), "Due"),
            priority_property=_env(_k("PRIORITY_PROPERTY"), "Priority"),
            project_relation_property=_env(_k("PROJECT_RELATION_PROPERTY"), "Projects"),
            extra_properties=_env_list(_k("EXTRA_PROPERTIES"), []),
            page_size=max(1, min(100, _env_int(_k("PAGE_SIZE"), 20))),
            hydrate_delay_seconds=max(0.0, _env_float(_k("HYDRATE_DELAY_SECONDS"), 0.2)),
            page_delay_seconds=max(0.0, _env_float(_k("PAGE_DELAY_SECONDS"), 0.2)),
            retry_delay_seconds=max(0.0, _env_float(_k("RETRY_DELAY_SECONDS"), 5.0)),
            max_page_retries=max(0, _env_int(_k("MAX_PAGE_RETRIES"), 10)),
            pacing=_env(_k("PACING"), "interval").strip().lower(),
            data_dir=data_dir,
            db_path=_env_path(_k("DB_PATH"), data_dir / "notion-mirror.sqlite3"),
            cursor_path=_env_path(_k("CURSOR_PATH"), data_dir / "task-cursor.txt"),
            property_cache_path=_env_path(
                _k("PROPERTY_CACHE_PATH"), data_dir / "task-property-ids.json"
            ),
            manifest_path=_env_path(_k("MANIFEST_PATH"), data_dir / "task-scan.json"),
        )


_SETTINGS: Settings | None = None


def get_settings() -> Settings:
    global _SETTINGS
    if _SETTINGS is None:
        _SETTINGS = Settings.from_env()
    return _SETTINGS
