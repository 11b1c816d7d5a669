"""
Deployment - Wire a complete auction onto a Chain.

deploy_auction() builds every collaborator the engine needs, in the
order a real deployment would: wrapped asset, collection, treasury,
engine address, then the mint adapter that grants the engine (or its
delegate) the minter role.
"""

from dataclasses import dataclass
from typing import Optional

from mintauction.core.auction.engine import AuctionEngine
from mintauction.core.config import AuctionConfig
from mintauction.core.events import EventLog
from mintauction.core.proceeds import ProjectTreasury
from mintauction.core.state.chain import Chain
from mintauction.core.state.clock import Clock, ManualClock
from mintauction.core.state.wrapped import WrappedValueAsset
from mintauction.core.storage.storage_manager import StorageManager
from mintauction.core.supply import IssuanceGate, SupplyLedger
from mintauction.core.token.adapters import build_adapter
from mintauction.core.token.collection import TokenCollection
from mintauction.crypto import label_address
from mintauction.utils.logger import AuctionLogger, get_logger

logger = get_logger("deployment")


@dataclass
class Deployment:
    chain: Chain
    events: EventLog
    wrapped: WrappedValueAsset
    collection: TokenCollection
    treasury: ProjectTreasury
    ledger: SupplyLedger
    gate: IssuanceGate
    engine: AuctionEngine
    owner: bytes


def deploy_auction(
    config: Optional[AuctionConfig] = None,
    chain: Optional[Chain] = None,
    clock: Optional[Clock] = None,
    owner: Optional[bytes] = None,
    storage_manager: Optional[StorageManager] = None,
) -> Deployment:
    """
    Build and wire an auction.

    Args:
        config: Auction parameters (defaults if None)
        chain: Environment to deploy on; a new one on `clock` if None
        clock: Used only when creating the chain (ManualClock if None)
        owner: Collection owner / admin (a labelled address if None)
        storage_manager: Enables persistence and resume

    Returns:
        Deployment bundle
    """
    config = config or AuctionConfig()
    config.validate()
    chain = chain or Chain(clock or ManualClock())
    owner = owner or label_address("mintauction.owner")
    AuctionLogger.bind_clock(chain.clock)

    events = EventLog()
    wrapped = WrappedValueAsset(chain)
    collection = TokenCollection(chain, owner, events=events)
    treasury = ProjectTreasury(chain)
    treasury.add_project(config.proceeds_project_id)

    engine_address = chain.deploy()
    ledger = SupplyLedger(next_id=config.start_id, cap=config.supply_cap, start_id=config.start_id)
    adapter = build_adapter(config.mint_adapter, collection, engine_address)
    gate = IssuanceGate(ledger, adapter)

    engine = AuctionEngine(
        chain,
        config,
        gate,
        treasury,
        wrapped,
        events=events,
        storage_manager=storage_manager,
        address=engine_address,
    )

    logger.info(
        f"Auction deployed: cap={config.supply_cap or 'unlimited'}, "
        f"duration={config.duration}s, adapter={config.mint_adapter}"
    )
    return Deployment(
        chain=chain,
        events=events,
        wrapped=wrapped,
        collection=collection,
        treasury=treasury,
        ledger=ledger,
        gate=gate,
        engine=engine,
        owner=owner,
    )
