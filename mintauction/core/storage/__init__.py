"""
Persistent Storage Module.

Provides SQLite-backed persistence for:
- The resumable auction state surface
- The observation log
"""

from mintauction.core.storage.sqlite_adapter import SQLiteAdapter
from mintauction.core.storage.storage_manager import StorageManager

__all__ = ["SQLiteAdapter", "StorageManager"]
