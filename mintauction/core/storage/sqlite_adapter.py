import json
import sqlite3
import threading
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from mintauction.utils.logger import get_logger

logger = get_logger("storage.sqlite")


class SQLiteAdapter:
    """
    SQLite backend for persistent storage.

    Provides:
    1. Auction state: one key/value row per field of the resumable
       state surface (values stored as text, amounts exceed INTEGER).
    2. Observation log: append-only, ordered by sequence number.
    """

    def __init__(self, db_path: Path):
        self.db_path = db_path
        self._conn_local = threading.local()

        if not db_path.parent.exists():
            db_path.parent.mkdir(parents=True, exist_ok=True)

        self._init_schema()

    def _get_conn(self) -> sqlite3.Connection:
        """Get or create connection for current thread."""
        if not hasattr(self._conn_local, "conn"):
            self._conn_local.conn = sqlite3.connect(
                self.db_path,
                timeout=30.0,
                check_same_thread=False
            )
            self._conn_local.conn.row_factory = sqlite3.Row
            self._conn_local.conn.execute("PRAGMA journal_mode=WAL;")
            self._conn_local.conn.execute("PRAGMA synchronous=NORMAL;")
        return self._conn_local.conn

    def _init_schema(self):
        """Initialize database schema."""
        conn = self._get_conn()
        with conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS auction_state (
                    key TEXT PRIMARY KEY,
                    value TEXT
                )
            """)

            conn.execute("""
                CREATE TABLE IF NOT EXISTS events (
                    seq INTEGER PRIMARY KEY AUTOINCREMENT,
                    name TEXT NOT NULL,
                    payload TEXT NOT NULL
                )
            """)
            conn.execute("CREATE INDEX IF NOT EXISTS idx_events_name ON events(name);")

    def close(self) -> None:
        if hasattr(self._conn_local, "conn"):
            self._conn_local.conn.close()
            del self._conn_local.conn

    # =========================================================================
    # Auction State
    # =========================================================================

    def save_state(self, values: Dict[str, Optional[str]]):
        """Replace all state rows in one transaction."""
        conn = self._get_conn()
        with conn:
            conn.executemany(
                "INSERT OR REPLACE INTO auction_state (key, value) VALUES (?, ?)",
                list(values.items())
            )

    def load_state(self) -> Dict[str, Optional[str]]:
        conn = self._get_conn()
        cursor = conn.execute("SELECT key, value FROM auction_state")
        return {row["key"]: row["value"] for row in cursor}

    # =========================================================================
    # Events
    # =========================================================================

    def append_events(self, events: List[Tuple[str, dict]]):
        """Append (name, payload) pairs atomically."""
        conn = self._get_conn()
        with conn:
            conn.executemany(
                "INSERT INTO events (name, payload) VALUES (?, ?)",
                [(name, json.dumps(payload, sort_keys=True)) for name, payload in events]
            )

    def get_events(self, limit: Optional[int] = None) -> List[Tuple[int, str, dict]]:
        """Get (seq, name, payload) ordered by seq; with `limit`, the latest N."""
        conn = self._get_conn()
        if limit is None:
            cursor = conn.execute("SELECT seq, name, payload FROM events ORDER BY seq ASC")
            rows = list(cursor)
        else:
            cursor = conn.execute(
                "SELECT seq, name, payload FROM events ORDER BY seq DESC LIMIT ?", (limit,)
            )
            rows = list(reversed(list(cursor)))
        return [(row["seq"], row["name"], json.loads(row["payload"])) for row in rows]

    def count_events(self) -> int:
        conn = self._get_conn()
        cursor = conn.execute("SELECT COUNT(*) as cnt FROM events")
        return cursor.fetchone()["cnt"]
