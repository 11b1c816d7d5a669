import json
from pathlib import Path
from typing import List, Optional, Tuple

from mintauction.core.events import Event, event_from_dict
from mintauction.core.storage.sqlite_adapter import SQLiteAdapter
from mintauction.utils.logger import get_logger

logger = get_logger("storage.manager")

# Fields of the resumable state surface, in storage order
STATE_KEYS = (
    "deadline",
    "high_bid",
    "high_bidder",
    "next_id",
    "cap",
    "issuance_open",
    "metadata_frozen",
    "base_uri",
    "pending_refunds",
)


class StorageManager:
    """
    Manages persistent storage for an auction.

    Coordinates data persistence using SQLite adapter.
    Handles:
    - Auction state snapshot (round, supply, collection flags)
    - Observation log
    """

    def __init__(self, data_dir: Path, db_name: str = "auction.db"):
        self.data_dir = Path(data_dir)
        self.db_path = self.data_dir / db_name
        self.adapter = SQLiteAdapter(self.db_path)

        logger.info(f"StorageManager initialized at {self.db_path}")

    # =========================================================================
    # Auction State
    # =========================================================================

    def save_auction_state(self, state: dict):
        """
        Persist a snapshot produced by AuctionSnapshot.to_dict().

        Booleans are stored as "1"/"0", mappings as JSON, everything
        else as text.
        """
        values = {}
        for key in STATE_KEYS:
            value = state.get(key)
            if isinstance(value, dict):
                value = json.dumps(value, sort_keys=True)
            elif isinstance(value, bool):
                value = "1" if value else "0"
            elif value is not None:
                value = str(value)
            values[key] = value
        self.adapter.save_state(values)

    def load_auction_state(self) -> Optional[dict]:
        """
        Load the last saved snapshot.

        Returns:
            dict accepted by AuctionSnapshot.from_dict(), or None if
            nothing was saved yet
        """
        rows = self.adapter.load_state()
        if not rows:
            return None
        missing = [k for k in STATE_KEYS if k not in rows and k != "pending_refunds"]
        if missing:
            raise ValueError(f"Stored auction state is missing {missing}")
        state = dict(rows)
        state["issuance_open"] = rows["issuance_open"] == "1"
        state["metadata_frozen"] = rows["metadata_frozen"] == "1"
        state["base_uri"] = rows["base_uri"] or ""
        state["pending_refunds"] = json.loads(rows.get("pending_refunds") or "{}")
        return state

    def has_state(self) -> bool:
        return bool(self.adapter.load_state())

    # =========================================================================
    # Events
    # =========================================================================

    def append_events(self, events: List[Event]):
        if events:
            self.adapter.append_events([(e.name, e.to_dict()) for e in events])

    def load_events(self, limit: Optional[int] = None) -> List[Tuple[int, Event]]:
        """Load (seq, event) pairs, oldest first."""
        return [
            (seq, event_from_dict(name, payload))
            for seq, name, payload in self.adapter.get_events(limit)
        ]

    def event_count(self) -> int:
        return self.adapter.count_events()

    def close(self) -> None:
        self.adapter.close()
