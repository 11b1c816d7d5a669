"""
Wrapped value asset - balance-based stand-in for native value.

A recipient that cannot take native value (its receive hook reverts or
burns too much gas) can still be paid in the wrapped asset: transfers
of it are plain balance updates and run no recipient code.
"""

from typing import Dict, Optional, Set, Tuple

from mintauction.core.errors import InsufficientFunds, TransferFailure
from mintauction.core.state.chain import Chain
from mintauction.crypto import short_address
from mintauction.utils.logger import get_logger
from mintauction.utils.validation import checked_add, checked_sub, require_amount

logger = get_logger("wrapped")

# Gas forwarded when unwrapping back to native value
WITHDRAW_GAS = 2_300


class WrappedValueAsset:
    """
    Fungible wrapper around the chain's native value.

    The native value backing all wrapped balances sits at this asset's
    own address, so `total_supply == chain.balance_of(address)`.
    """

    def __init__(self, chain: Chain, address: Optional[bytes] = None):
        self.chain = chain
        self.address = address or chain.deploy()
        self.balances: Dict[bytes, int] = {}
        # Recipients this asset refuses to credit (compliance freeze)
        self.denied: Set[bytes] = set()
        chain.register(self)

    def balance_of(self, address: bytes) -> int:
        return self.balances.get(address, 0)

    @property
    def total_supply(self) -> int:
        return sum(self.balances.values())

    def deposit(self, caller: bytes, amount: int) -> None:
        """Convert `amount` of caller's native value into wrapped balance."""
        require_amount(amount)
        self.chain.move(caller, self.address, amount)
        self.balances[caller] = checked_add(self.balance_of(caller), amount)

    def withdraw(self, caller: bytes, amount: int) -> None:
        """Burn wrapped balance and send the native value back."""
        require_amount(amount)
        available = self.balance_of(caller)
        if amount > available:
            raise InsufficientFunds(f"Wrapped balance {available} < {amount}")
        self.balances[caller] = checked_sub(available, amount)
        if not self.chain.call_value(self.address, caller, amount, gas=WITHDRAW_GAS):
            raise TransferFailure(f"Unwrap to {short_address(caller)} rejected")

    def transfer(self, caller: bytes, to: bytes, amount: int) -> bool:
        """
        Move wrapped balance between accounts.

        Returns:
            False when the caller is short or the recipient is denied
        """
        available = self.balance_of(caller)
        if amount > available or to in self.denied:
            return False
        self.balances[caller] = checked_sub(available, amount)
        self.balances[to] = checked_add(self.balance_of(to), amount)
        return True

    def deny(self, address: bytes) -> None:
        self.denied.add(address)

    def allow(self, address: bytes) -> None:
        self.denied.discard(address)

    # -- Stateful --

    def snapshot(self) -> Tuple[Dict[bytes, int], Set[bytes]]:
        return dict(self.balances), set(self.denied)

    def restore(self, snapshot: Tuple[Dict[bytes, int], Set[bytes]]) -> None:
        balances, denied = snapshot
        self.balances = dict(balances)
        self.denied = set(denied)
