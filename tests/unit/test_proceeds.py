"""
Unit tests for the proceeds sink.
"""

import pytest

from mintauction.core.errors import InsufficientFunds, ProceedsRejected
from mintauction.core.proceeds import Payment, ProjectTreasury
from mintauction.core.state import Chain, ManualClock
from mintauction.crypto import label_address

PAYER = label_address("payer")
WINNER = label_address("winner")


@pytest.fixture
def chain():
    chain = Chain(ManualClock())
    chain.fund(PAYER, 1_000)
    return chain


@pytest.fixture
def treasury(chain):
    treasury = ProjectTreasury(chain)
    treasury.add_project(1)
    return treasury


class TestProjectTreasury:
    """Tests for per-project custody."""

    def test_pay_books_against_project(self, chain, treasury):
        treasury.pay(PAYER, 1, 400, beneficiary=WINNER, memo="token #1")

        assert treasury.balance_of_project(1) == 400
        assert chain.balance_of(treasury.address) == 400
        assert chain.balance_of(PAYER) == 600
        assert treasury.payments == [Payment(1, PAYER, 400, WINNER, "token #1")]

    def test_unknown_project(self, chain, treasury):
        with pytest.raises(ProceedsRejected):
            treasury.pay(PAYER, 2, 400, beneficiary=WINNER)
        assert chain.balance_of(PAYER) == 1_000

    def test_zero_payment(self, treasury):
        with pytest.raises(ProceedsRejected):
            treasury.pay(PAYER, 1, 0, beneficiary=WINNER)

    def test_payer_short(self, treasury):
        with pytest.raises(InsufficientFunds):
            treasury.pay(PAYER, 1, 5_000, beneficiary=WINNER)
        assert treasury.balance_of_project(1) == 0

    def test_add_project(self, treasury):
        assert treasury.has_project(1)
        assert not treasury.has_project(9)
        with pytest.raises(ValueError):
            treasury.add_project(0)

    def test_rollback(self, chain, treasury):
        with pytest.raises(RuntimeError):
            with chain.atomic():
                treasury.pay(PAYER, 1, 400, beneficiary=WINNER)
                raise RuntimeError("abort")
        assert treasury.balance_of_project(1) == 0
        assert treasury.payments == []
        assert chain.balance_of(PAYER) == 1_000


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
