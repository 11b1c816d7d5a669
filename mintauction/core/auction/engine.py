"""
AuctionEngine - Repeating open-bid auction gating token issuance.

Conceptual Background:
---------------------
One token id is contested at a time. The first accepted bid opens a
round with a fresh deadline; bids must beat the high bid by a minimum
increment; the outbid party is refunded on the spot. Once the deadline
passes anyone may finalize: the winning bid goes to the proceeds sink
and the contested id is minted to the winner. The next bid opens the
next round, until the supply cap is reached.

Safety:
------
Both public mutating operations run under a reentrancy guard and
inside a Chain.atomic() scope, so a call either completes or leaves no
trace. Within a call the order is always checks, then state updates,
then value transfers out: a recipient's receive hook only ever sees
the auction in its new consistent shape, and cannot re-enter it.

Persistence:
-----------
With a StorageManager the engine writes its state surface and any new
observations after every successful bid/finalize, and resumes from
them on construction. Native balances live on the Chain, not in the
store: resuming onto a chain whose escrow cannot cover the stored high
bid and deferred refunds raises EscrowShortfall.
"""

from dataclasses import dataclass
from typing import Dict, List, Optional

from mintauction.core.auction.guard import ReentrancyGuard
from mintauction.core.auction.round import AuctionRound, AuctionSnapshot, RoundState
from mintauction.core.config import AuctionConfig, RefundPolicy
from mintauction.core.errors import (
    AuctionAlreadyFinalized,
    AuctionNotOver,
    EscrowShortfall,
    SupplyExhausted,
)
from mintauction.core.events import (
    AuctionAbandoned,
    AuctionExtended,
    AuctionSettled,
    AuctionStarted,
    BidAccepted,
    EventLog,
)
from mintauction.core.proceeds import ProceedsSink
from mintauction.core.state.chain import Chain
from mintauction.core.state.wrapped import WrappedValueAsset
from mintauction.core.storage.storage_manager import StorageManager
from mintauction.core.supply import IssuanceGate
from mintauction.core.transfer import TransferReceipt, ValueTransfer
from mintauction.crypto import short_address
from mintauction.utils.logger import get_logger
from mintauction.utils.validation import checked_add, require_address, require_amount

logger = get_logger("auction")


@dataclass(frozen=True)
class Settlement:
    """Outcome of one finalize() call."""
    winner: bytes
    amount: int
    token_id: Optional[int]     # None when the round was abandoned
    refunds: List[TransferReceipt]

    @property
    def abandoned(self) -> bool:
        return self.token_id is None


class AuctionEngine:
    """
    Composition root of the auction core.

    Attributes:
        address: Custodian address holding escrowed bids
        round: The live round (written only by bid/finalize)
        gate: Issuance gate (supply ledger + mint adapter)
        pending_refunds: Outbid amounts owed under the DEFERRED policy
    """

    def __init__(
        self,
        chain: Chain,
        config: AuctionConfig,
        gate: IssuanceGate,
        treasury: ProceedsSink,
        wrapped: WrappedValueAsset,
        events: Optional[EventLog] = None,
        storage_manager: Optional[StorageManager] = None,
        address: Optional[bytes] = None,
    ):
        config.validate()
        self.chain = chain
        self.config = config
        self.gate = gate
        self.treasury = treasury
        self.events = events if events is not None else EventLog()
        self.address = address or chain.deploy()

        self.round = AuctionRound()
        self.pending_refunds: Dict[bytes, int] = {}
        self.guard = ReentrancyGuard()
        self.transfer = ValueTransfer(
            chain,
            wrapped,
            custodian=self.address,
            gas_stipend=config.transfer_gas_stipend,
            events=self.events,
        )

        chain.register(self)
        chain.register(self.gate.ledger)
        chain.register(self.events)

        self.storage_manager = storage_manager
        self._persisted_events = 0
        if storage_manager:
            self._load_from_storage()

    # =========================================================================
    # State Access
    # =========================================================================

    @property
    def collection(self):
        """Ownership component behind the mint adapter."""
        return self.gate.adapter.collection

    def state(self) -> RoundState:
        return self.round.state(self.chain.now())

    def contested_token_id(self) -> int:
        """Id the current (or next) round is contesting."""
        return self.gate.next_id()

    def minimum_bid(self) -> int:
        return self.round.minimum_bid(self.config.min_increment)

    def escrow_balance(self) -> int:
        return self.chain.balance_of(self.address)

    # =========================================================================
    # Bidding
    # =========================================================================

    def bid(self, bidder: bytes, amount: int) -> None:
        """
        Place a bid of `amount` escrowed from `bidder`.

        Raises:
            AuctionOver: round expired, finalize first
            BidTooLow: below high bid + min increment
            AlreadyHighestBidder: bidder already leads
            SupplyExhausted: would open a round no token can be minted for
            InsufficientFunds: bidder cannot cover `amount`
            TransferFailure: refund of the previous leader failed
            ReentrantCall: called from inside another auction call
        """
        require_address(bidder)
        require_amount(amount)

        with self.guard, self.chain.atomic():
            now = self.chain.now()
            rnd = self.round
            rnd.check_bid(now, bidder, amount, self.config.min_increment)

            opening = not rnd.is_open
            if opening and self.gate.remaining_capacity_exhausted():
                raise SupplyExhausted("Supply cap reached; no further rounds")

            # Escrow the bid, then commit it
            self.chain.move(bidder, self.address, amount)
            previous_bidder, previous_amount = rnd.commit_bid(bidder, amount)

            if opening:
                rnd.open(checked_add(now, self.config.duration))
            elif self.config.time_buffer and rnd.deadline - now < self.config.time_buffer:
                rnd.deadline = checked_add(now, self.config.time_buffer)
                self.events.emit(AuctionExtended(deadline=rnd.deadline))

            # Interactions last
            if previous_bidder is not None and previous_amount > 0:
                self._settle_outbid(previous_bidder, previous_amount)

            self.events.emit(BidAccepted(bidder=bidder, amount=amount))
            if opening:
                self.events.emit(
                    AuctionStarted(deadline=rnd.deadline, contested_token_id=self.gate.next_id())
                )
                logger.info(
                    f"Round for token #{self.gate.next_id()} opened, ends at {rnd.deadline}"
                )

            logger.debug(f"Bid {amount} from {short_address(bidder)} accepted")

        self._persist()

    def _settle_outbid(self, bidder: bytes, amount: int) -> None:
        if self.config.refund_policy == RefundPolicy.IMMEDIATE:
            self.transfer.send(bidder, amount)
        else:
            self.pending_refunds[bidder] = checked_add(self.pending_refunds.get(bidder, 0), amount)

    # =========================================================================
    # Settlement
    # =========================================================================

    def finalize(self, caller: Optional[bytes] = None) -> Settlement:
        """
        Settle an expired round. Callable by anyone.

        Mints the contested id to the winner and routes the winning bid
        to the proceeds sink; if issuance is closed, refunds the winner
        instead.

        Raises:
            AuctionAlreadyFinalized: no round open
            AuctionNotOver: deadline not reached
            TransferFailure: a refund could not be delivered
            ReentrantCall: called from inside another auction call
        """
        with self.guard, self.chain.atomic():
            rnd = self.round
            if not rnd.is_open:
                raise AuctionAlreadyFinalized("No open round to finalize")
            if self.chain.now() < rnd.deadline:
                raise AuctionNotOver(f"Round ends at {rnd.deadline}")

            # Back to IDLE before any side effect
            winner, winning_bid = rnd.close()
            deferred = self.pending_refunds
            self.pending_refunds = {}

            refunds: List[TransferReceipt] = []
            if self.gate.is_issuance_open():
                contested = self.gate.next_id()
                self.treasury.pay(
                    self.address,
                    self.config.proceeds_project_id,
                    winning_bid,
                    beneficiary=winner,
                    memo=f"token #{contested}",
                )
                token_id = self.gate.issue_next(winner)
                self.events.emit(AuctionSettled(winner=winner, amount=winning_bid, token_id=token_id))
                logger.info(
                    f"Token #{token_id} won by {short_address(winner)} for {winning_bid}"
                    + (f" (settled by {short_address(caller)})" if caller else "")
                )
            else:
                token_id = None
                self.events.emit(AuctionAbandoned(winner=winner, amount=winning_bid))
                logger.warning(
                    f"Issuance closed; refunding {winning_bid} to {short_address(winner)}"
                )
                refunds.append(self.transfer.send(winner, winning_bid))

            for bidder, amount in deferred.items():
                refunds.append(self.transfer.send(bidder, amount))

        self._persist()
        return Settlement(winner=winner, amount=winning_bid, token_id=token_id, refunds=refunds)

    def withdraw_refund(self, bidder: bytes) -> TransferReceipt:
        """Pay out a DEFERRED refund before the round is finalized."""
        with self.guard, self.chain.atomic():
            amount = self.pending_refunds.pop(bidder, 0)
            receipt = self.transfer.send(bidder, amount)
        self._persist()
        return receipt

    # =========================================================================
    # Snapshot / Persistence
    # =========================================================================

    def snapshot_state(self) -> AuctionSnapshot:
        """The resumable state surface."""
        collection = self.collection
        return AuctionSnapshot(
            deadline=self.round.deadline,
            high_bid=self.round.high_bid,
            high_bidder=self.round.high_bidder,
            next_id=self.gate.ledger.next_id,
            cap=self.gate.ledger.cap,
            issuance_open=collection.issuance_open,
            metadata_frozen=collection.metadata_frozen,
            base_uri=collection.base_uri,
            pending_refunds=dict(self.pending_refunds),
        )

    def persist(self) -> None:
        """Write state and unsaved events (e.g. after admin changes)."""
        self._persist()

    def _persist(self) -> None:
        if not self.storage_manager:
            return
        self.storage_manager.save_auction_state(self.snapshot_state().to_dict())
        self.storage_manager.append_events(self.events.since(self._persisted_events))
        self._persisted_events = len(self.events)

    def _load_from_storage(self) -> None:
        data = self.storage_manager.load_auction_state()
        if data is None:
            return
        snap = AuctionSnapshot.from_dict(data)

        # Every escrowed wei the stored round owes must be on this chain
        owed = snap.high_bid + sum(snap.pending_refunds.values())
        held = self.escrow_balance()
        if held < owed:
            logger.error(f"Cannot resume: escrow holds {held}, stored state owes {owed}")
            raise EscrowShortfall(
                f"{short_address(self.address)} holds {held}, stored auction owes {owed}"
            )

        self.round.restore((snap.deadline, snap.high_bid, snap.high_bidder))
        self.gate.ledger.restore((snap.next_id, snap.cap))
        self.pending_refunds = dict(snap.pending_refunds)

        collection = self.collection
        collection.issuance_open = snap.issuance_open
        collection.metadata_frozen = snap.metadata_frozen
        collection.base_uri = snap.base_uri

        self._persisted_events = len(self.events)
        logger.info(
            f"Resumed auction: next_id={snap.next_id}, deadline={snap.deadline}, "
            f"high_bid={snap.high_bid}"
        )

    # -- Stateful --

    def snapshot(self):
        return self.round.snapshot(), dict(self.pending_refunds)

    def restore(self, snapshot) -> None:
        round_snapshot, pending = snapshot
        self.round.restore(round_snapshot)
        self.pending_refunds = dict(pending)

    # =========================================================================
    # Utility
    # =========================================================================

    def status(self) -> dict:
        now = self.chain.now()
        ledger = self.gate.ledger
        return {
            "state": self.round.state(now).name,
            "contested_token_id": self.gate.next_id(),
            "deadline": self.round.deadline,
            "time_left": self.round.time_left(now),
            "high_bid": self.round.high_bid,
            "high_bidder": self.round.high_bidder,
            "minimum_bid": self.minimum_bid(),
            "issued": ledger.issued,
            "cap": ledger.cap,
            "remaining": ledger.remaining(),
            "supply_exhausted": ledger.remaining_capacity_exhausted(),
            "issuance_open": self.gate.is_issuance_open(),
            "escrow": self.escrow_balance(),
            "pending_refunds": sum(self.pending_refunds.values()),
        }

    def __repr__(self) -> str:
        return (
            f"AuctionEngine(token=#{self.gate.next_id()}, state={self.state().name}, "
            f"high_bid={self.round.high_bid})"
        )
