"""
Chain - In-process execution environment for the auction.

Conceptual Background:
---------------------
The auction holds value on behalf of untrusted parties and pushes it
back out to them. Reasoning about that safely needs four things from
the environment:

1. **Native balances** keyed by 20-byte address
2. **Contract accounts** whose code (a receive hook) runs when they
   are sent value, under a bounded gas allowance
3. **All-or-nothing calls**: a call that fails leaves no trace
4. **A clock** for round deadlines

Atomicity:
---------
Every stateful component registers with the Chain. `Chain.atomic()`
snapshots all of them on entry and restores all of them if the block
raises. Scopes nest: a receive hook runs in its own scope inside the
caller's, so a reverting hook undoes only its own effects and the
value it was sent.
"""

from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterator, List, Optional, Protocol

from mintauction.core.errors import InsufficientFunds, OutOfGas
from mintauction.core.state.clock import Clock, SystemClock
from mintauction.crypto import contract_address, keccak256, short_address
from mintauction.utils.logger import get_logger
from mintauction.utils.validation import (
    checked_add,
    checked_sub,
    require_address,
    require_amount,
)

logger = get_logger("chain")

# Address that "deploys" every simulated contract
DEPLOYER = keccak256(b"mintauction.deployer")[-20:]


# =============================================================================
# Gas
# =============================================================================


class GasMeter:
    """Gas allowance for one receive hook invocation."""

    def __init__(self, limit: int):
        self.limit = limit
        self.used = 0

    @property
    def remaining(self) -> int:
        return max(0, self.limit - self.used)

    def consume(self, amount: int) -> None:
        self.used += amount
        if self.used > self.limit:
            raise OutOfGas(f"Used {self.used} of {self.limit} gas")


@dataclass
class ReceiveContext:
    """What a receive hook sees when value arrives."""
    chain: "Chain"
    sender: bytes
    recipient: bytes
    amount: int
    gas: GasMeter


ReceiveHook = Callable[[ReceiveContext], None]


class Stateful(Protocol):
    def snapshot(self) -> Any:
        ...

    def restore(self, snapshot: Any) -> None:
        ...


# =============================================================================
# Chain
# =============================================================================


class Chain:
    """
    Native value ledger with contract hooks and journaled scopes.

    Attributes:
        clock: Source of the current timestamp
        balances: address -> native balance
        hooks: address -> receive hook (contract accounts only)
    """

    def __init__(self, clock: Optional[Clock] = None):
        self.clock = clock or SystemClock()
        self.balances: Dict[bytes, int] = {}
        self.hooks: Dict[bytes, ReceiveHook] = {}
        self._participants: List[Stateful] = [self]
        self._nonce = 0
        self._depth = 0

    # =========================================================================
    # Environment
    # =========================================================================

    def now(self) -> int:
        return self.clock.now()

    def deploy(self) -> bytes:
        """Allocate a fresh contract address."""
        self._nonce += 1
        return contract_address(DEPLOYER, self._nonce)

    def register(self, participant: Stateful) -> None:
        """Include a component in every atomic() snapshot."""
        if participant not in self._participants:
            self._participants.append(participant)

    def register_hook(self, address: bytes, hook: ReceiveHook) -> None:
        """Turn `address` into a contract account that runs `hook` on receipt."""
        self.hooks[require_address(address)] = hook

    def is_contract(self, address: bytes) -> bool:
        return address in self.hooks

    @property
    def depth(self) -> int:
        """Number of atomic scopes currently open."""
        return self._depth

    # =========================================================================
    # Balances
    # =========================================================================

    def balance_of(self, address: bytes) -> int:
        return self.balances.get(address, 0)

    def fund(self, address: bytes, amount: int) -> None:
        """Credit value out of thin air (genesis allocation, faucets, tests)."""
        require_address(address)
        require_amount(amount)
        self.balances[address] = checked_add(self.balance_of(address), amount)

    def move(self, sender: bytes, to: bytes, amount: int) -> None:
        """Plain value move. Runs no recipient code."""
        require_address(to)
        require_amount(amount)
        available = self.balance_of(sender)
        if amount > available:
            raise InsufficientFunds(
                f"{short_address(sender)} has {available}, needs {amount}"
            )
        self.balances[sender] = checked_sub(available, amount)
        self.balances[to] = checked_add(self.balance_of(to), amount)

    def call_value(self, sender: bytes, to: bytes, amount: int, gas: int) -> bool:
        """
        Send value and run the recipient's receive hook with `gas`.

        Mirrors a low-level EVM call: any failure inside the recipient
        (revert, out of gas, reentry refused) undoes the move and the
        hook's effects and is reported as False, never raised. A sender
        that cannot cover `amount` is the caller's bug and does raise.

        Returns:
            True if the value was delivered
        """
        if amount > self.balance_of(sender):
            raise InsufficientFunds(
                f"{short_address(sender)} has {self.balance_of(sender)}, needs {amount}"
            )
        try:
            with self.atomic():
                self.move(sender, to, amount)
                hook = self.hooks.get(to)
                if hook is not None:
                    hook(ReceiveContext(self, sender, to, amount, GasMeter(gas)))
        except Exception as e:
            logger.debug(f"call_value to {short_address(to)} failed: {type(e).__name__}: {e}")
            return False
        return True

    # =========================================================================
    # Journaling
    # =========================================================================

    @contextmanager
    def atomic(self) -> Iterator[None]:
        """Run a block all-or-nothing across every registered component."""
        snapshots = [(p, p.snapshot()) for p in self._participants]
        self._depth += 1
        try:
            yield
        except BaseException:
            for participant, snap in reversed(snapshots):
                participant.restore(snap)
            raise
        finally:
            self._depth -= 1

    def snapshot(self) -> Dict[bytes, int]:
        return dict(self.balances)

    def restore(self, snapshot: Dict[bytes, int]) -> None:
        self.balances = dict(snapshot)

    def total_value(self) -> int:
        return sum(self.balances.values())
