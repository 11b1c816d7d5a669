"""
Auction Module.

Repeating open-bid auction that gates issuance of a capped token series:
- Round state machine (idle, active, expired)
- Bid admission and refund-on-outbid
- Finalize: proceeds routing and issuance, or refund when issuance is closed
"""

from mintauction.core.auction.round import AuctionRound, AuctionSnapshot, RoundState
from mintauction.core.auction.guard import ReentrancyGuard
from mintauction.core.auction.engine import AuctionEngine, Settlement
from mintauction.core.auction.deployment import Deployment, deploy_auction

__all__ = [
    "AuctionRound",
    "AuctionSnapshot",
    "RoundState",
    "ReentrancyGuard",
    "AuctionEngine",
    "Settlement",
    "Deployment",
    "deploy_auction",
]
