# config.example.py

"""
Documentation-only module (safe to commit).

The real configuration is loaded from environment variables (optionally via a local .env file).
Do NOT commit real secrets. Keep the API key in .env (local, gitignored).

This file exists to make the repo self-documenting even without opening .env.example.
"""

ENV_VARS = {
    # App / logging
    "NOTION_MIRROR_APP_NAME": "App display name (default: notion-mirror).",
    "NOTION_MIRROR_LOG_LEVEL": "Console logging level (default: INFO). The log file always gets DEBUG.",
    # Notion
    "NOTION_MIRROR_API_KEY": "Notion integration token (NOTION_API_KEY is accepted too).",
    "NOTION_MIRROR_DATABASE_ID": "Task database id (NOTION_DATABASE_ID is accepted too).",
    "NOTION_MIRROR_DATA_SOURCE_ID": (
        "Optional data source id. Default: first data source declared by the database."
    ),
    "NOTION_MIRROR_NOTION_VERSION": "Notion-Version header (default: 2025-09-03).",
    "NOTION_MIRROR_BASE_URL": "API base URL (default: https://api.notion.com/v1).",
    "NOTION_MIRROR_CONNECT_TIMEOUT_SECONDS": "HTTP connect timeout (default: 5).",
    "NOTION_MIRROR_READ_TIMEOUT_SECONDS": "HTTP read timeout (default: 120).",
    # Field names
    "NOTION_MIRROR_TITLE_PROPERTY": "Title property name (default: Task).",
    "NOTION_MIRROR_STATUS_PROPERTY": "Status property name (default: Status).",
    "NOTION_MIRROR_DUE_PROPERTY": "Due date property name (default: Due).",
    "NOTION_MIRROR_PRIORITY_PROPERTY": "Priority property name (default: Priority).",
    "NOTION_MIRROR_PROJECT_RELATION_PROPERTY": "Project relation property name (default: Projects).",
    "NOTION_MIRROR_EXTRA_PROPERTIES": "Comma separated extra property names to hydrate.",
    # Pacing / retry
    "NOTION_MIRROR_PAGE_SIZE": "Listing page size, 1..100 (default: 20).",
    "NOTION_MIRROR_HYDRATE_DELAY_SECONDS": "Pacing after each hydrated record (default: 0.2).",
    "NOTION_MIRROR_PAGE_DELAY_SECONDS": "Pacing between listing pages (default: 0.2).",
    "NOTION_MIRROR_RETRY_DELAY_SECONDS": "Wait before retrying a page after 503/504 (default: 5).",
    "NOTION_MIRROR_MAX_PAGE_RETRIES": "Transient retries per page before giving up (default: 10).",
    "NOTION_MIRROR_PACING": "Pacing policy: interval | token_bucket | none (default: interval).",
    # Paths (gitignored)
    "NOTION_MIRROR_DATA_DIR": "Local data directory (default: .local/notion-mirror).",
    "NOTION_MIRROR_DB_PATH": "SQLite mirror path (default: <data_dir>/notion-mirror.sqlite3).",
    "NOTION_MIRROR_CURSOR_PATH": "Cursor file (default: <data_dir>/task-cursor.txt).",
    "NOTION_MIRROR_PROPERTY_CACHE_PATH": (
        "Property cache (default: <data_dir>/task-property-ids.json). Delete after schema changes."
    ),
    "NOTION_MIRROR_MANIFEST_PATH": "Scan manifest (default: <data_dir>/task-scan.json).",
}
