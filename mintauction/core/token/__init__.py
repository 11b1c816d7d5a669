"""Token ownership component and mint adapters"""
from mintauction.core.token.collection import TokenCollection
from mintauction.core.token.adapters import (
    DirectMintAdapter,
    DelegateMintAdapter,
    CapabilityMintAdapter,
    MinterDelegate,
    build_adapter,
)

__all__ = [
    "TokenCollection",
    "DirectMintAdapter",
    "DelegateMintAdapter",
    "CapabilityMintAdapter",
    "MinterDelegate",
    "build_adapter",
]
