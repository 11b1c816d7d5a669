"""
Mint adapters - How the issuance gate reaches a TokenCollection.

Deployments differ in who holds the collection's minter role:

- direct:      the auction engine itself is the minter
- delegate:    a MinterDelegate holds the role and forwards calls
               from the one operator it trusts
- capability:  the engine is the minter, and the adapter checks the
               collection's capabilities before every mint so a
               misconfigured deployment fails with a precise error

All three present the same two calls, create() and
is_issuance_open(), and are chosen once at construction.
"""

from typing import Dict, Type

from mintauction.core.errors import ConfigError, IssuanceClosed, Unauthorized
from mintauction.core.token.collection import TokenCollection
from mintauction.crypto import short_address
from mintauction.utils.logger import get_logger

logger = get_logger("token.adapters")


class DirectMintAdapter:
    """The operator holds the minter role and mints directly."""

    kind = "direct"

    def __init__(self, collection: TokenCollection, operator: bytes):
        self.collection = collection
        self.operator = operator

    def create(self, token_id: int, owner: bytes) -> None:
        self.collection.mint(self.operator, token_id, owner)

    def is_issuance_open(self) -> bool:
        return self.collection.is_issuance_open()


class MinterDelegate:
    """
    Contract account that holds the minter role on behalf of an operator.

    Lets the collection owner rotate the auction engine without touching
    the collection's minter: point the delegate at the new operator.
    """

    def __init__(self, collection: TokenCollection, admin: bytes):
        self.collection = collection
        self.address = collection.chain.deploy()
        self.admin = admin
        self.operator: bytes = bytes(20)

    def set_operator(self, caller: bytes, operator: bytes) -> None:
        if caller != self.admin:
            raise Unauthorized(f"{short_address(caller)} is not the delegate admin")
        self.operator = operator
        logger.info(f"Delegate operator set to {short_address(operator)}")

    def mint(self, caller: bytes, token_id: int, to: bytes) -> None:
        if caller != self.operator:
            raise Unauthorized(f"{short_address(caller)} is not the delegate operator")
        self.collection.mint(self.address, token_id, to)


class DelegateMintAdapter:
    """The operator mints through a MinterDelegate."""

    kind = "delegate"

    def __init__(self, delegate: MinterDelegate, operator: bytes):
        self.delegate = delegate
        self.operator = operator

    @property
    def collection(self) -> TokenCollection:
        return self.delegate.collection

    def create(self, token_id: int, owner: bytes) -> None:
        self.delegate.mint(self.operator, token_id, owner)

    def is_issuance_open(self) -> bool:
        return self.delegate.collection.is_issuance_open()


class CapabilityMintAdapter:
    """The operator mints directly after checking the collection allows it."""

    kind = "capability"

    def __init__(self, collection: TokenCollection, operator: bytes):
        self.collection = collection
        self.operator = operator

    def check(self) -> None:
        """Raise if a mint by the operator would be refused."""
        if self.collection.minter != self.operator:
            raise Unauthorized(
                f"Operator {short_address(self.operator)} does not hold the minter role"
            )
        if not self.collection.is_issuance_open():
            raise IssuanceClosed("Collection is not accepting new tokens")

    def create(self, token_id: int, owner: bytes) -> None:
        self.check()
        self.collection.mint(self.operator, token_id, owner)

    def is_issuance_open(self) -> bool:
        return self.collection.is_issuance_open()


ADAPTERS: Dict[str, Type] = {
    DirectMintAdapter.kind: DirectMintAdapter,
    DelegateMintAdapter.kind: DelegateMintAdapter,
    CapabilityMintAdapter.kind: CapabilityMintAdapter,
}


def build_adapter(kind: str, collection: TokenCollection, operator: bytes):
    """
    Wire `operator` to `collection` with the named adapter.

    Grants the minter role as the adapter requires, so the collection
    owner must be the one calling this (it acts as collection.owner).
    """
    if kind == DirectMintAdapter.kind or kind == CapabilityMintAdapter.kind:
        collection.set_minter(collection.owner, operator)
        return ADAPTERS[kind](collection, operator)
    if kind == DelegateMintAdapter.kind:
        delegate = MinterDelegate(collection, admin=collection.owner)
        collection.set_minter(collection.owner, delegate.address)
        delegate.set_operator(collection.owner, operator)
        return DelegateMintAdapter(delegate, operator)
    raise ConfigError(f"Unknown mint adapter: {kind!r} (expected one of {sorted(ADAPTERS)})")
