"""Storage utilities for the CRM agent tool pipeline."""

from .thought_store import ThoughtStore, SQLiteThoughtStore

__all__ = [
    "ThoughtStore",
    "SQLiteThoughtStore",
]
