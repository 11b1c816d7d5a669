"""
AuctionRound - State of the one live round.

Lifecycle:
---------
    IDLE     deadline == 0, no bids held
    ACTIVE   deadline set, now < deadline, accepting bids
    EXPIRED  deadline set, now >= deadline, holding the winning bid
             until someone calls finalize()

A round is opened lazily by the first accepted bid and returns to IDLE
when it is finalized; the next bid opens the next round. Expiry is a
predicate on the clock, not an event, so an EXPIRED round stays
EXPIRED until finalize() runs.

The round itself only knows its three fields and the admission rules
that depend on them. AuctionEngine is the sole writer and adds the
guard, escrow, capacity check, refunds and issuance around it.
"""

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Dict, Optional, Tuple

from mintauction.core.errors import AlreadyHighestBidder, AuctionOver, BidTooLow
from mintauction.crypto import bytes_to_hex, hex_to_bytes, is_valid_address
from mintauction.utils.validation import checked_add


class RoundState(IntEnum):
    IDLE = 0
    ACTIVE = 1
    EXPIRED = 2


@dataclass
class AuctionRound:
    """
    Attributes:
        deadline: Unix time the round closes (0 = no round open)
        high_bid: Current leading amount (0 when idle)
        high_bidder: Current leader (None when idle)
    """
    deadline: int = 0
    high_bid: int = 0
    high_bidder: Optional[bytes] = None

    @property
    def is_open(self) -> bool:
        return self.deadline != 0

    def is_expired(self, now: int) -> bool:
        return self.deadline != 0 and now >= self.deadline

    def state(self, now: int) -> RoundState:
        if self.deadline == 0:
            return RoundState.IDLE
        if now < self.deadline:
            return RoundState.ACTIVE
        return RoundState.EXPIRED

    def time_left(self, now: int) -> int:
        if self.deadline == 0:
            return 0
        return max(0, self.deadline - now)

    def minimum_bid(self, min_increment: int) -> int:
        return checked_add(self.high_bid, min_increment)

    def check_bid(self, now: int, bidder: bytes, amount: int, min_increment: int) -> None:
        """
        Admission rules that depend only on round state.

        Raises:
            AuctionOver: the round expired and awaits finalize()
            BidTooLow: amount < high_bid + min_increment
            AlreadyHighestBidder: bidder already leads
        """
        if self.is_expired(now):
            raise AuctionOver("Round has ended; finalize it before bidding")
        minimum = self.minimum_bid(min_increment)
        if amount < minimum:
            raise BidTooLow(amount, minimum)
        if self.high_bidder is not None and bidder == self.high_bidder:
            raise AlreadyHighestBidder("Bidder already holds the high bid")

    def commit_bid(self, bidder: bytes, amount: int) -> Tuple[Optional[bytes], int]:
        """Install a new leader and return the (bidder, amount) it displaced."""
        previous = (self.high_bidder, self.high_bid)
        self.high_bid = amount
        self.high_bidder = bidder
        return previous

    def open(self, deadline: int) -> None:
        self.deadline = deadline

    def close(self) -> Tuple[bytes, int]:
        """Reset to IDLE and return the (winner, winning bid)."""
        winner, winning_bid = self.high_bidder, self.high_bid
        self.deadline = 0
        self.high_bid = 0
        self.high_bidder = None
        return winner, winning_bid

    # -- Stateful --

    def snapshot(self) -> Tuple[int, int, Optional[bytes]]:
        return self.deadline, self.high_bid, self.high_bidder

    def restore(self, snapshot: Tuple[int, int, Optional[bytes]]) -> None:
        self.deadline, self.high_bid, self.high_bidder = snapshot


@dataclass(frozen=True)
class AuctionSnapshot:
    """Everything needed to resume an auction after a restart."""
    deadline: int
    high_bid: int
    high_bidder: Optional[bytes]
    next_id: int
    cap: int
    issuance_open: bool
    metadata_frozen: bool
    base_uri: str
    # Only non-empty under the DEFERRED refund policy
    pending_refunds: Dict[bytes, int] = field(default_factory=dict)

    def to_dict(self) -> dict:
        # uint256 amounts do not fit JSON numbers / SQLite INTEGER
        return {
            "deadline": self.deadline,
            "high_bid": str(self.high_bid),
            "high_bidder": bytes_to_hex(self.high_bidder) if self.high_bidder else None,
            "next_id": self.next_id,
            "cap": self.cap,
            "issuance_open": self.issuance_open,
            "metadata_frozen": self.metadata_frozen,
            "base_uri": self.base_uri,
            "pending_refunds": {
                bytes_to_hex(bidder): str(amount)
                for bidder, amount in self.pending_refunds.items()
            },
        }

    @classmethod
    def from_dict(cls, data: dict) -> "AuctionSnapshot":
        bidder = data.get("high_bidder")
        return cls(
            deadline=int(data["deadline"]),
            high_bid=int(data["high_bid"]),
            high_bidder=_stored_address(bidder) if bidder else None,
            next_id=int(data["next_id"]),
            cap=int(data["cap"]),
            issuance_open=bool(data["issuance_open"]),
            metadata_frozen=bool(data["metadata_frozen"]),
            base_uri=data.get("base_uri", ""),
            pending_refunds={
                _stored_address(bidder): int(amount)
                for bidder, amount in (data.get("pending_refunds") or {}).items()
            },
        )


def _stored_address(text: str) -> bytes:
    if not is_valid_address(text):
        raise ValueError(f"Malformed address in stored state: {text!r}")
    return hex_to_bytes(text)
