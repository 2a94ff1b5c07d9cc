"""
Sync subsystem.

Components:
- models.py: data structures (TaskRecord, RelationLink, SyncPhase, ...)
- cursor_store.py: file-backed pagination cursor
- property_cache.py: persisted property name -> id map
- store.py: SQLite mirror (tasks + relation links)
- mapping.py: detail payload -> TaskRecord + relation edges
- hydrator.py: per-record detail fetch with field allow-list and pacing
- rate_limit.py: pacing policies
- manifest.py: audit list written after a completed pass
- orchestrator.py: page loop, retry policy, checkpoints
"""
