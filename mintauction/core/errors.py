"""
Error taxonomy for mintauction.

Every failure is local to a single call and synchronous. Nothing is
retried by the system; the caller decides whether to call again. A
failed call leaves all state exactly as it was before the call.
"""


class AuctionError(Exception):
    """Base class for all mintauction errors."""


# =============================================================================
# Round lifecycle
# =============================================================================


class AuctionOver(AuctionError):
    """Bid on a round whose deadline has passed but which is not finalized."""


class AuctionNotOver(AuctionError):
    """Finalize called while the round is still accepting bids."""


class AuctionAlreadyFinalized(AuctionError):
    """Finalize called with no open round."""


class BidTooLow(AuctionError):
    """Bid does not exceed the current high bid by the minimum increment."""

    def __init__(self, amount: int, minimum: int):
        super().__init__(f"Bid {amount} below minimum {minimum}")
        self.amount = amount
        self.minimum = minimum


class AlreadyHighestBidder(AuctionError):
    """The current leader tried to outbid themselves."""


class ReentrantCall(AuctionError):
    """A guarded operation was entered while another one is in progress."""


# =============================================================================
# Issuance
# =============================================================================


class SupplyExhausted(AuctionError):
    """Every token id under the cap has been issued."""


class IssuanceClosed(AuctionError):
    """The ownership component is not accepting new tokens."""


class TokenAlreadyExists(AuctionError):
    """A mint targeted an id that already has an owner."""


class OutOfOrderIssuance(AuctionError):
    """A mint requested an id other than the next one in the series."""


class TokenNotFound(AuctionError):
    """Lookup of an id that was never minted."""


class MetadataImmutable(AuctionError):
    """Metadata change attempted after the metadata was frozen."""


class Unauthorized(AuctionError):
    """Caller lacks the role required for the operation."""


# =============================================================================
# Value movement
# =============================================================================


class TransferFailure(AuctionError):
    """Both the direct transfer and the wrapped-asset fallback failed."""


class InsufficientFunds(AuctionError):
    """An account tried to move more value than it holds."""


class EscrowShortfall(AuctionError):
    """Stored state owes more escrow than the custodian holds on resume."""


class OutOfGas(AuctionError):
    """A receive hook exceeded its gas allowance."""


class ProceedsRejected(AuctionError):
    """The proceeds sink refused a payment."""


class ArithmeticOverflow(AuctionError):
    """An amount or id computation left the uint256 range."""


# =============================================================================
# Configuration
# =============================================================================


class ConfigError(AuctionError):
    """Invalid configuration value."""
