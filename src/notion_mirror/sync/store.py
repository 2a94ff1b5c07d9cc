# src/notion_mirror/sync/store.py

from __future__ import annotations

import contextlib
import logging
import sqlite3
from pathlib import Path
from typing import Any

from .models import HydratedTask, RelationLink, SyncStatus, TaskRecord

logger = logging.getLogger(__name__)

_UPSERT_TASK_SQL = """
    INSERT OR REPLACE INTO tasks (
        client_id, remote_id, payload,
        sync_status, local_modified_at, remote_modified_at
    ) VALUES (?, ?, ?, ?, ?, ?)
"""

_INSERT_LINK_SQL = """
    INSERT OR IGNORE INTO task_relation_links (task_id, related_id)
    VALUES (?, ?)
"""


class MirrorStore:
    """
    SQLite mirror of the remote task database.

    One connection is held for the life of a run, so the two write statements
    above are prepared once and reused from sqlite3's statement cache.

    The schema is migration-safe:
    - create tables if missing
    - use PRAGMA table_info to detect missing columns
    - add columns with ALTER TABLE only when needed
    """

    def __init__(self, db_path: str | Path = "notion-mirror.sqlite3") -> None:
        self._db_path = Path(db_path)
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._conn: sqlite3.Connection | None = None
        self._ensure_schema()
        logger.info(
            "MirrorStore ready db=%s tasks=%s links=%s",
            self._db_path,
            self.count_tasks(),
            self.count_links(),
        )

    def __enter__(self) -> MirrorStore:
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()

    @property
    def db_path(self) -> Path:
        return self._db_path

    def close(self) -> None:
        if self._conn is not None:
            self._conn.close()
            self._conn = None

    # ---- low-level helpers ----

    def _get_conn(self) -> sqlite3.Connection:
        if self._conn is None:
            conn = sqlite3.connect(str(self._db_path), timeout=30.0, cached_statements=16)
            conn.row_factory = sqlite3.Row
            with contextlib.suppress(sqlite3.DatabaseError):
                conn.execute("PRAGMA journal_mode=WAL")
            self._conn = conn
        return self._conn

    def _ensure_schema(self) -> None:
        conn = self._get_conn()
        with conn:
            cur = conn.cursor()
            cur.execute(
                """
                CREATE TABLE IF NOT EXISTS tasks (
                    client_id TEXT PRIMARY KEY,
                    remote_id TEXT,
                    payload TEXT NOT NULL,
                    sync_status TEXT NOT NULL DEFAULT 'pending',
                    local_modified_at INTEGER NOT NULL DEFAULT 0,
                    remote_modified_at INTEGER NOT NULL DEFAULT 0
                )
                """
            )
            cur.execute(
                """
                CREATE TABLE IF NOT EXISTS task_relation_links (
                    task_id TEXT NOT NULL,
                    related_id TEXT NOT NULL,
                    UNIQUE (task_id, related_id)
                )
                """
            )

            cur.execute("PRAGMA table_info(tasks)")
            cols = {row["name"] for row in cur.fetchall()}

            def add_col(name: str, decl: str) -> None:
                if name in cols:
                    return
                cur.execute(f"ALTER TABLE tasks ADD COLUMN {name} {decl}")
                logger.info("MirrorStore migration: added column %s", name)

            add_col("remote_id", "TEXT")
            add_col("sync_status", "TEXT NOT NULL DEFAULT 'pending'")
            add_col("local_modified_at", "INTEGER NOT NULL DEFAULT 0")
            add_col("remote_modified_at", "INTEGER NOT NULL DEFAULT 0")

            cur.execute("CREATE INDEX IF NOT EXISTS idx_tasks_remote ON tasks(remote_id)")
            cur.execute(
                "CREATE INDEX IF NOT EXISTS idx_links_related ON task_relation_links(related_id)"
            )

    @staticmethod
    def _row_to_record(row: sqlite3.Row) -> TaskRecord:
        return TaskRecord(
            client_id=str(row["client_id"]),
            remote_id=str(row["remote_id"] or row["client_id"]),
            payload=str(row["payload"]),
            sync_status=SyncStatus.from_db(row["sync_status"]),
            local_modified_at=int(row["local_modified_at"] or 0),
            remote_modified_at=int(row["remote_modified_at"] or 0),
        )

    @staticmethod
    def _record_params(record: TaskRecord) -> tuple[Any, ...]:
        if not record.client_id:
            raise ValueError("client_id is required")
        return (
            record.client_id,
            record.remote_id,
            record.payload,
            record.sync_status.value,
            int(record.local_modified_at),
            int(record.remote_modified_at),
        )

    # ---- writes ----

    def clear_all(self) -> None:
        """Delete every task and link in a single transaction."""
        conn = self._get_conn()
        with conn:
            conn.execute("DELETE FROM tasks")
            conn.execute("DELETE FROM task_relation_links")
        logger.info("Cleared existing tasks and links")

    def upsert_task(self, record: TaskRecord) -> None:
        conn = self._get_conn()
        with conn:
            conn.execute(_UPSERT_TASK_SQL, self._record_params(record))

    def insert_link(self, link: RelationLink) -> bool:
        """Returns True if the pair was new."""
        conn = self._get_conn()
        with conn:
            cur = conn.execute(_INSERT_LINK_SQL, (link.task_id, link.related_id))
        return cur.rowcount == 1

    def save_hydrated(self, task: HydratedTask) -> int:
        """
        Upsert one task and replace its links atomically.

        Edges stored earlier for this task but no longer present remotely are
        dropped. Returns the number of link rows that did not exist before.
        """
        conn = self._get_conn()
        task_id = task.record.client_id
        added = 0
        with conn:
            previous = {
                r[0]
                for r in conn.execute(
                    "SELECT related_id FROM task_relation_links WHERE task_id = ?", (task_id,)
                )
            }
            conn.execute(_UPSERT_TASK_SQL, self._record_params(task.record))
            conn.execute("DELETE FROM task_relation_links WHERE task_id = ?", (task_id,))
            for link in task.links:
                cur = conn.execute(_INSERT_LINK_SQL, (link.task_id, link.related_id))
                if cur.rowcount == 1 and link.related_id not in previous:
                    added += 1
        logger.debug(
            "Task saved id=%s links=%d added=%d", task.record.client_id, len(task.links), added
        )
        return added

    # ---- reads ----

    def count_tasks(self) -> int:
        (n,) = self._get_conn().execute("SELECT COUNT(*) FROM tasks").fetchone()
        return int(n)

    def count_links(self) -> int:
        (n,) = self._get_conn().execute("SELECT COUNT(*) FROM task_relation_links").fetchone()
        return int(n)

    def get_task(self, client_id: str) -> TaskRecord | None:
        row = (
            self._get_conn()
            .execute("SELECT * FROM tasks WHERE client_id = ?", (client_id,))
            .fetchone()
        )
        return self._row_to_record(row) if row else None

    def list_task_ids(self) -> list[str]:
        rows = self._get_conn().execute("SELECT client_id FROM tasks ORDER BY client_id").fetchall()
        return [str(r["client_id"]) for r in rows]

    def list_links(self, task_id: str | None = None) -> list[RelationLink]:
        conn = self._get_conn()
        if task_id is None:
            rows = conn.execute(
                "SELECT task_id, related_id FROM task_relation_links ORDER BY task_id, related_id"
            ).fetchall()
        else:
            rows = conn.execute(
                "SELECT task_id, related_id FROM task_relation_links "
                "WHERE task_id = ? ORDER BY related_id",
                (task_id,),
            ).fetchall()
        return [RelationLink(task_id=r["task_id"], related_id=r["related_id"]) for r in rows]

    def dump(self) -> tuple[list[tuple[Any, ...]], list[tuple[Any, ...]]]:
        """Deterministic snapshot of both tables (used to compare runs)."""
        conn = self._get_conn()
        tasks = [
            tuple(r)
            for r in conn.execute(
                "SELECT client_id, remote_id, payload, sync_status, "
                "local_modified_at, remote_modified_at FROM tasks ORDER BY client_id"
            ).fetchall()
        ]
        links = [
            tuple(r)
            for r in conn.execute(
                "SELECT task_id, related_id FROM task_relation_links ORDER BY task_id, related_id"
            ).fetchall()
        ]
        return tasks, links
