"""
Supply - Capped, gapless token id issuance.

SupplyLedger tracks the next id to hand out and the cap. IssuanceGate
is the only thing allowed to advance it: it mints through the ownership
component first and moves the ledger only once the mint went through,
so a failed mint leaves no gap and no skipped id.

Ids are 1-based. After N issuances `next_id == start + N`. With a cap
of C the series is 1..C and the ledger is exhausted once C ids exist.
"""

from typing import Optional, Protocol, Tuple

from mintauction.core.errors import OutOfOrderIssuance, SupplyExhausted
from mintauction.crypto import short_address
from mintauction.utils.logger import get_logger
from mintauction.utils.validation import checked_add, require_amount

logger = get_logger("supply")


class MintAdapter(Protocol):
    """How IssuanceGate reaches the ownership component."""

    def create(self, token_id: int, owner: bytes) -> None:
        ...

    def is_issuance_open(self) -> bool:
        ...


# =============================================================================
# Supply Ledger
# =============================================================================


class SupplyLedger:
    """
    Next id and hard cap.

    Attributes:
        next_id: Next token id to issue
        cap: Maximum number of tokens ever issued (0 = unlimited)
        start_id: First id of the series
    """

    def __init__(self, next_id: int = 1, cap: int = 0, start_id: int = 1):
        require_amount(cap, "cap")
        if start_id < 1 or next_id < start_id:
            raise ValueError(f"Invalid id range: start={start_id}, next={next_id}")
        self.start_id = start_id
        self.next_id = next_id
        self.cap = cap

    @property
    def issued(self) -> int:
        return self.next_id - self.start_id

    def remaining(self) -> Optional[int]:
        """Ids left under the cap, or None when unlimited."""
        if self.cap == 0:
            return None
        return max(0, self.cap - self.issued)

    def remaining_capacity_exhausted(self) -> bool:
        return self.cap != 0 and self.issued >= self.cap

    def following_id(self) -> int:
        """Id after the current one; raises ArithmeticOverflow at the uint256 limit."""
        return checked_add(self.next_id, 1)

    def advance(self) -> int:
        """Consume the current id and return it."""
        issued_id = self.next_id
        self.next_id = self.following_id()
        return issued_id

    # -- Stateful --

    def snapshot(self) -> Tuple[int, int]:
        return self.next_id, self.cap

    def restore(self, snapshot: Tuple[int, int]) -> None:
        self.next_id, self.cap = snapshot

    def __repr__(self) -> str:
        return f"SupplyLedger(next_id={self.next_id}, cap={self.cap})"


# =============================================================================
# Issuance Gate
# =============================================================================


class IssuanceGate:
    """
    Enforces the cap before any mint.

    Presents the `Mintable` interface the auction engine consumes:
    create(id, owner), is_issuance_open(), remaining_capacity_exhausted(),
    next_id().
    """

    def __init__(self, ledger: SupplyLedger, adapter: MintAdapter):
        self.ledger = ledger
        self.adapter = adapter

    def next_id(self) -> int:
        return self.ledger.next_id

    def remaining_capacity_exhausted(self) -> bool:
        return self.ledger.remaining_capacity_exhausted()

    def is_issuance_open(self) -> bool:
        return self.adapter.is_issuance_open()

    def issue_next(self, recipient: bytes) -> int:
        """
        Mint the next id to `recipient` and advance the ledger.

        Returns:
            The id that was minted

        Raises:
            SupplyExhausted: the cap has been reached
        """
        if self.ledger.remaining_capacity_exhausted():
            raise SupplyExhausted(f"All {self.ledger.cap} tokens issued")

        token_id = self.ledger.next_id
        # Counter overflow must surface before the mint, not after
        self.ledger.following_id()
        # Mint first; the ledger only moves if the mint went through
        self.adapter.create(token_id, recipient)
        self.ledger.advance()

        logger.info(f"Issued token #{token_id} to {short_address(recipient)}")
        return token_id

    def create(self, token_id: int, owner: bytes) -> None:
        """Mint a specific id; only the next id in the series is accepted."""
        if token_id != self.ledger.next_id:
            raise OutOfOrderIssuance(
                f"Out-of-order issuance: requested #{token_id}, next is #{self.ledger.next_id}"
            )
        self.issue_next(owner)
