"""One-way, resumable mirror of a Notion task database into SQLite."""

__version__ = "0.1.0"
