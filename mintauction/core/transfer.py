"""
ValueTransfer - Push payment with a wrapped-asset fallback.

Refunds and prize payouts go out as a direct native transfer under a
small fixed gas stipend: enough for a trivial receive, too little for a
recipient to do meaningful work (such as calling back into the auction).
A recipient that rejects the transfer is paid in the wrapped asset
instead, which runs no recipient code. Only when both paths fail does
the enclosing call abort with TransferFailure.

Callers must invoke send() last, after their own state already has its
new shape (checks-effects-interactions).
"""

from dataclasses import dataclass
from enum import IntEnum
from typing import Optional

from mintauction.core.errors import TransferFailure
from mintauction.core.events import EventLog, TransferFellBack
from mintauction.core.state.chain import Chain
from mintauction.core.state.wrapped import WrappedValueAsset
from mintauction.crypto import short_address
from mintauction.utils.logger import get_logger
from mintauction.utils.validation import require_address, require_amount

logger = get_logger("transfer")

# Gas forwarded to the recipient on a direct transfer
DEFAULT_GAS_STIPEND = 30_000


class TransferMethod(IntEnum):
    NONE = 0        # amount was zero, nothing moved
    DIRECT = 1      # native value delivered
    WRAPPED = 2     # paid in the wrapped asset


@dataclass(frozen=True)
class TransferReceipt:
    recipient: bytes
    amount: int
    method: TransferMethod


class ValueTransfer:
    """
    Pays out value held by `custodian`.

    Attributes:
        chain: Native value ledger
        wrapped: Fallback asset
        custodian: Address whose native balance funds the payments
        gas_stipend: Gas forwarded to the recipient's receive hook
    """

    def __init__(
        self,
        chain: Chain,
        wrapped: WrappedValueAsset,
        custodian: bytes,
        gas_stipend: int = DEFAULT_GAS_STIPEND,
        events: Optional[EventLog] = None,
    ):
        self.chain = chain
        self.wrapped = wrapped
        self.custodian = custodian
        self.gas_stipend = gas_stipend
        self.events = events

    def send(self, recipient: bytes, amount: int) -> TransferReceipt:
        """
        Pay `amount` to `recipient`.

        Raises:
            TransferFailure: direct transfer and wrapped fallback both failed
        """
        require_address(recipient)
        require_amount(amount)
        if amount == 0:
            return TransferReceipt(recipient, 0, TransferMethod.NONE)

        if self.chain.call_value(self.custodian, recipient, amount, gas=self.gas_stipend):
            logger.debug(f"Sent {amount} to {short_address(recipient)}")
            return TransferReceipt(recipient, amount, TransferMethod.DIRECT)

        logger.warning(
            f"Direct transfer of {amount} to {short_address(recipient)} failed, "
            f"falling back to wrapped asset"
        )
        try:
            with self.chain.atomic():
                self.wrapped.deposit(self.custodian, amount)
                if not self.wrapped.transfer(self.custodian, recipient, amount):
                    raise TransferFailure(
                        f"Wrapped transfer of {amount} to {short_address(recipient)} rejected"
                    )
        except TransferFailure:
            logger.error(f"Both transfer paths to {short_address(recipient)} failed")
            raise
        except Exception as e:
            logger.error(f"Both transfer paths to {short_address(recipient)} failed")
            raise TransferFailure(f"Wrapped fallback failed: {e}") from e

        if self.events is not None:
            self.events.emit(TransferFellBack(recipient=recipient, amount=amount))
        return TransferReceipt(recipient, amount, TransferMethod.WRAPPED)
