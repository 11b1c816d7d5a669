"""
Proceeds - Where winning bids go.

The auction routes each winning bid to a ProceedsSink together with
the destination project it belongs to. ProjectTreasury is the in-process
reference sink: it takes custody of the value and books it against the
project. Payout, redemption and splitting are the treasury operator's
business and not modelled here.
"""

from dataclasses import dataclass
from typing import Dict, List, Protocol, Tuple

from mintauction.core.errors import ProceedsRejected
from mintauction.core.state.chain import Chain
from mintauction.crypto import short_address
from mintauction.utils.logger import get_logger
from mintauction.utils.validation import checked_add

logger = get_logger("proceeds")


class ProceedsSink(Protocol):
    def pay(
        self,
        payer: bytes,
        project_id: int,
        amount: int,
        beneficiary: bytes,
        memo: str = "",
    ) -> None:
        ...


@dataclass(frozen=True)
class Payment:
    project_id: int
    payer: bytes
    amount: int
    beneficiary: bytes
    memo: str


class ProjectTreasury:
    """
    Per-project custody of auction proceeds.

    Consumes a payment synchronously or raises; a raise inside the
    auction's atomic scope undoes the value move as well.
    """

    def __init__(self, chain: Chain):
        self.chain = chain
        self.address = chain.deploy()
        self.project_balances: Dict[int, int] = {}
        self.payments: List[Payment] = []
        chain.register(self)

    def add_project(self, project_id: int) -> None:
        if project_id <= 0:
            raise ValueError("Project ids start at 1")
        self.project_balances.setdefault(project_id, 0)

    def has_project(self, project_id: int) -> bool:
        return project_id in self.project_balances

    def balance_of_project(self, project_id: int) -> int:
        return self.project_balances.get(project_id, 0)

    def pay(
        self,
        payer: bytes,
        project_id: int,
        amount: int,
        beneficiary: bytes,
        memo: str = "",
    ) -> None:
        """
        Take `amount` from `payer` into the project's balance.

        Raises:
            ProceedsRejected: unknown project or nothing to pay
        """
        if project_id not in self.project_balances:
            raise ProceedsRejected(f"Unknown project {project_id}")
        if amount <= 0:
            raise ProceedsRejected("Payment amount must be positive")

        self.chain.move(payer, self.address, amount)
        self.project_balances[project_id] = checked_add(self.project_balances[project_id], amount)
        self.payments.append(Payment(project_id, payer, amount, beneficiary, memo))

        logger.info(
            f"Project {project_id} received {amount} (beneficiary {short_address(beneficiary)})"
        )

    # -- Stateful --

    def snapshot(self) -> Tuple[Dict[int, int], int]:
        return dict(self.project_balances), len(self.payments)

    def restore(self, snapshot: Tuple[Dict[int, int], int]) -> None:
        balances, payment_count = snapshot
        self.project_balances = dict(balances)
        del self.payments[payment_count:]
