# tests/test_config.py

from __future__ import annotations

import os
from pathlib import Path

import pytest

from notion_mirror.config import Settings


@pytest.fixture()
def clean_env(monkeypatch: pytest.MonkeyPatch) -> pytest.MonkeyPatch:
    for name in list(os.environ):
        if name.startswith("NOTION_MIRROR_") or name in ("NOTION_API_KEY", "NOTION_DATABASE_ID"):
            monkeypatch.delenv(name, raising=False)
    return monkeypatch


def test_defaults_without_environment(clean_env: pytest.MonkeyPatch) -> None:
    s = Settings.from_env()

    assert s.api_key is None
    assert s.database_id is None
    assert s.page_size == 20
    assert s.hydrate_delay_seconds == 0.2
    assert s.retry_delay_seconds == 5.0
    assert s.max_page_retries == 10
    assert s.pacing == "interval"
    assert s.hydrate_fields == ["Task", "Status", "Due", "Priority", "Projects"]
    assert s.cursor_path == Path(".local/notion-mirror") / "task-cursor.txt"


def test_prefixed_and_plain_names(clean_env: pytest.MonkeyPatch) -> None:
    clean_env.setenv("NOTION_API_KEY", "plain-key")
    clean_env.setenv("NOTION_MIRROR_DATABASE_ID", " db-1 ")
    clean_env.setenv("NOTION_DATABASE_ID", "ignored")

    s = Settings.from_env()

    assert s.api_key == "plain-key"
    assert s.database_id == "db-1"


def test_numeric_values_are_clamped(clean_env: pytest.MonkeyPatch) -> None:
    clean_env.setenv("NOTION_MIRROR_PAGE_SIZE", "500")
    clean_env.setenv("NOTION_MIRROR_HYDRATE_DELAY_SECONDS", "-1")
    clean_env.setenv("NOTION_MIRROR_MAX_PAGE_RETRIES", "not-a-number")

    s = Settings.from_env()

    assert s.page_size == 100
    assert s.hydrate_delay_seconds == 0.0
    assert s.max_page_retries == 10


def test_extra_properties_keep_spaces_and_dedupe(clean_env: pytest.MonkeyPatch, tmp_path: Path) -> None:
    clean_env.setenv("NOTION_MIRROR_EXTRA_PROPERTIES", "Blocked by, Status ,Notes")
    clean_env.setenv("NOTION_MIRROR_DATA_DIR", str(tmp_path))

    s = Settings.from_env()

    assert s.extra_properties == ["Blocked by", "Status", "Notes"]
    assert s.hydrate_fields == ["Task", "Status", "Due", "Priority", "Projects", "Blocked by", "Notes"]
    assert s.db_path == tmp_path / "notion-mirror.sqlite3"
