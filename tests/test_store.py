# tests/test_store.py

from __future__ import annotations

import sqlite3
from pathlib import Path

from notion_mirror.sync.models import HydratedTask, RelationLink, SyncStatus, TaskRecord
from notion_mirror.sync.store import MirrorStore


def _record(cid: str, payload: str = '{"a":1}', ts: int = 1000) -> TaskRecord:
    return TaskRecord(
        client_id=cid,
        remote_id=cid,
        payload=payload,
        sync_status=SyncStatus.SYNCED,
        local_modified_at=ts,
        remote_modified_at=ts,
    )


def test_upsert_replaces_on_same_id(store: MirrorStore) -> None:
    store.upsert_task(_record("t1", '{"v":1}', 1))
    store.upsert_task(_record("t1", '{"v":2}', 2))

    assert store.count_tasks() == 1
    rec = store.get_task("t1")
    assert rec is not None
    assert rec.payload == '{"v":2}'
    assert rec.remote_modified_at == 2
    assert rec.sync_status is SyncStatus.SYNCED


def test_same_relation_pair_is_stored_once(store: MirrorStore) -> None:
    assert store.insert_link(RelationLink("t1", "p1")) is True
    assert store.insert_link(RelationLink("t1", "p1")) is False
    assert store.insert_link(RelationLink("t1", "p2")) is True

    assert store.count_links() == 2
    assert store.list_links("t1") == [RelationLink("t1", "p1"), RelationLink("t1", "p2")]


def test_save_hydrated_counts_only_new_links(store: MirrorStore) -> None:
    task = HydratedTask(record=_record("t1"), links=[RelationLink("t1", "p1"), RelationLink("t1", "p2")])

    assert store.save_hydrated(task) == 2
    assert store.save_hydrated(task) == 0
    assert store.count_tasks() == 1
    assert store.count_links() == 2


def test_clear_all_empties_both_tables(store: MirrorStore) -> None:
    store.save_hydrated(HydratedTask(record=_record("t1"), links=[RelationLink("t1", "p1")]))

    store.clear_all()

    assert store.count_tasks() == 0
    assert store.count_links() == 0


def test_data_survives_reopen(tmp_path: Path) -> None:
    db = tmp_path / "mirror.sqlite3"
    with MirrorStore(db) as s:
        s.save_hydrated(HydratedTask(record=_record("t1"), links=[RelationLink("t1", "p1")]))

    with MirrorStore(db) as s2:
        assert s2.list_task_ids() == ["t1"]
        assert s2.count_links() == 1


def test_schema_migration_adds_missing_columns(tmp_path: Path) -> None:
    db = tmp_path / "old.sqlite3"
    conn = sqlite3.connect(db)
    conn.execute("CREATE TABLE tasks (client_id TEXT PRIMARY KEY, payload TEXT NOT NULL)")
    conn.execute("INSERT INTO tasks (client_id, payload) VALUES ('old', '{}')")
    conn.commit()
    conn.close()

    with MirrorStore(db) as s:
        rec = s.get_task("old")
        assert rec is not None
        assert rec.remote_id == "old"
        assert rec.sync_status is SyncStatus.PENDING
        s.upsert_task(_record("new"))
        assert s.count_tasks() == 2


def test_save_hydrated_replaces_previous_links(store: MirrorStore) -> None:
    store.save_hydrated(
        HydratedTask(record=_record("t1"), links=[RelationLink("t1", "p1"), RelationLink("t1", "p2")])
    )
    store.save_hydrated(HydratedTask(record=_record("t2"), links=[RelationLink("t2", "p1")]))

    added = store.save_hydrated(
        HydratedTask(record=_record("t1"), links=[RelationLink("t1", "p2"), RelationLink("t1", "p3")])
    )

    assert added == 1
    assert store.list_links("t1") == [RelationLink("t1", "p2"), RelationLink("t1", "p3")]
    assert store.list_links("t2") == [RelationLink("t2", "p1")]
