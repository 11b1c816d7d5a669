"""
TokenCollection - Reference ownership component for auctioned tokens.

A deliberately small NFT ownership registry: owners and balances,
an admin owner and a single minter role, an issuance on/off switch,
and a base URI that can be frozen for good. It exists so the auction
can run end to end in-process; anything beyond what the auction needs
(approvals, enumeration, royalties) is out of scope.
"""

from typing import Dict, List, Optional

from mintauction.core.errors import (
    IssuanceClosed,
    MetadataImmutable,
    TokenAlreadyExists,
    TokenNotFound,
    Unauthorized,
)
from mintauction.core.events import (
    BaseURIChanged,
    EventLog,
    MetadataFrozen,
    MinterChanged,
    TokenMinted,
)
from mintauction.core.state.chain import Chain
from mintauction.crypto import ZERO_ADDRESS, short_address
from mintauction.utils.logger import get_logger
from mintauction.utils.validation import require_address

logger = get_logger("token")


class TokenCollection:
    """
    Ownership registry with roles and metadata.

    Attributes:
        owner: Admin address (sets minter, metadata, issuance flag)
        minter: Only address allowed to mint
        issuance_open: Operator switch; minting is refused while False
        base_uri: Prefix for token_uri()
        metadata_frozen: Once True, base_uri can never change again
    """

    def __init__(
        self,
        chain: Chain,
        owner: bytes,
        name: str = "Auctioned Token",
        symbol: str = "AUCT",
        events: Optional[EventLog] = None,
    ):
        self.chain = chain
        self.address = chain.deploy()
        self.owner = require_address(owner)
        self.name = name
        self.symbol = symbol
        self.events = events if events is not None else EventLog()

        self.minter: bytes = ZERO_ADDRESS
        self.issuance_open = True
        self.base_uri = ""
        self.metadata_frozen = False

        self._owners: Dict[int, bytes] = {}
        self._balances: Dict[bytes, int] = {}

        chain.register(self)
        chain.register(self.events)

    # =========================================================================
    # Ownership
    # =========================================================================

    def exists(self, token_id: int) -> bool:
        return token_id in self._owners

    def owner_of(self, token_id: int) -> bytes:
        if token_id not in self._owners:
            raise TokenNotFound(f"Token #{token_id} does not exist")
        return self._owners[token_id]

    def balance_of(self, address: bytes) -> int:
        return self._balances.get(address, 0)

    @property
    def total_supply(self) -> int:
        return len(self._owners)

    def tokens_of(self, address: bytes) -> List[int]:
        return sorted(tid for tid, holder in self._owners.items() if holder == address)

    def transfer(self, caller: bytes, to: bytes, token_id: int) -> None:
        """Move a token. Only its current holder may do so."""
        require_address(to)
        holder = self.owner_of(token_id)
        if caller != holder:
            raise Unauthorized(f"{short_address(caller)} does not hold #{token_id}")
        self._owners[token_id] = to
        self._balances[holder] -= 1
        self._balances[to] = self._balances.get(to, 0) + 1

    def mint(self, caller: bytes, token_id: int, to: bytes) -> None:
        """
        Create `token_id` owned by `to`.

        Raises:
            Unauthorized: caller is not the minter
            IssuanceClosed: the operator switched issuance off
            TokenAlreadyExists: id already minted
        """
        require_address(to)
        if caller != self.minter or caller == ZERO_ADDRESS:
            raise Unauthorized(f"{short_address(caller)} is not the minter")
        if not self.issuance_open:
            raise IssuanceClosed("Issuance is closed")
        if token_id in self._owners:
            raise TokenAlreadyExists(f"Token #{token_id} already minted")

        self._owners[token_id] = to
        self._balances[to] = self._balances.get(to, 0) + 1
        self.events.emit(TokenMinted(token_id=token_id, owner=to))

    # =========================================================================
    # Roles
    # =========================================================================

    def _only_owner(self, caller: bytes) -> None:
        if caller != self.owner:
            raise Unauthorized(f"{short_address(caller)} is not the collection owner")

    def set_minter(self, caller: bytes, minter: bytes) -> None:
        self._only_owner(caller)
        self.minter = require_address(minter)
        self.events.emit(MinterChanged(address=minter))
        logger.info(f"Minter set to {short_address(minter)}")

    def set_issuance_open(self, caller: bytes, is_open: bool) -> None:
        self._only_owner(caller)
        self.issuance_open = bool(is_open)
        logger.info(f"Issuance {'opened' if is_open else 'closed'}")

    def is_issuance_open(self) -> bool:
        return self.issuance_open

    def transfer_ownership(self, caller: bytes, new_owner: bytes) -> None:
        self._only_owner(caller)
        self.owner = require_address(new_owner)

    # =========================================================================
    # Metadata
    # =========================================================================

    def set_base_uri(self, caller: bytes, uri: str) -> None:
        self._only_owner(caller)
        if self.metadata_frozen:
            raise MetadataImmutable("Metadata is frozen")
        self.base_uri = uri
        self.events.emit(BaseURIChanged(value=uri))

    def freeze_metadata(self, caller: bytes) -> None:
        self._only_owner(caller)
        if self.metadata_frozen:
            raise MetadataImmutable("Metadata is already frozen")
        self.metadata_frozen = True
        self.events.emit(MetadataFrozen())
        logger.info("Metadata frozen")

    def token_uri(self, token_id: int) -> str:
        self.owner_of(token_id)
        return f"{self.base_uri}{token_id}"

    # =========================================================================
    # Stateful
    # =========================================================================

    def snapshot(self) -> tuple:
        return (
            dict(self._owners),
            dict(self._balances),
            self.owner,
            self.minter,
            self.issuance_open,
            self.base_uri,
            self.metadata_frozen,
        )

    def restore(self, snapshot: tuple) -> None:
        owners, balances, self.owner, self.minter, self.issuance_open, self.base_uri, self.metadata_frozen = snapshot
        self._owners = dict(owners)
        self._balances = dict(balances)

    def __repr__(self) -> str:
        return f"TokenCollection({self.symbol}, supply={self.total_supply})"
