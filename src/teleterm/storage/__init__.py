"""Persistence for teleterm.

Public API:
    KeyValueStore -- SQLite-backed string key-value store
    StorageError -- Raised when the database is unusable
"""

from teleterm.storage.kv import KeyValueStore, StorageError

__all__ = ["KeyValueStore", "StorageError"]
