"""
Unit tests for the execution environment.

Tests cover:
- ManualClock
- Native balances and plain moves
- call_value with receive hooks and gas allowance
- Chain.atomic() rollback across registered components
- WrappedValueAsset deposit / withdraw / transfer
"""

import pytest

from mintauction.core.errors import InsufficientFunds, OutOfGas, TransferFailure
from mintauction.core.events import EventLog, MetadataFrozen
from mintauction.core.state import Chain, GasMeter, ManualClock, WrappedValueAsset
from mintauction.crypto import label_address


@pytest.fixture
def chain():
    return Chain(ManualClock(start=1000))


@pytest.fixture
def alice():
    return label_address("alice")


@pytest.fixture
def bob():
    return label_address("bob")


# =============================================================================
# Clock Tests
# =============================================================================


class TestManualClock:
    """Tests for the deterministic clock."""

    def test_advance(self):
        clock = ManualClock(start=100)
        assert clock.advance(50) == 150
        assert clock.now() == 150

    def test_cannot_go_backwards(self):
        clock = ManualClock(start=100)
        with pytest.raises(ValueError):
            clock.advance(-1)
        with pytest.raises(ValueError):
            clock.set(99)

    def test_set(self):
        clock = ManualClock(start=100)
        clock.set(500)
        assert clock.now() == 500

    def test_chain_reads_clock(self, chain):
        assert chain.now() == 1000
        chain.clock.advance(10)
        assert chain.now() == 1010


# =============================================================================
# Balance Tests
# =============================================================================


class TestBalances:
    """Tests for native value moves."""

    def test_fund_and_move(self, chain, alice, bob):
        chain.fund(alice, 100)
        chain.move(alice, bob, 40)
        assert chain.balance_of(alice) == 60
        assert chain.balance_of(bob) == 40
        assert chain.total_value() == 100

    def test_move_insufficient(self, chain, alice, bob):
        chain.fund(alice, 10)
        with pytest.raises(InsufficientFunds):
            chain.move(alice, bob, 11)
        assert chain.balance_of(alice) == 10

    def test_deploy_unique_addresses(self, chain):
        assert chain.deploy() != chain.deploy()


# =============================================================================
# call_value Tests
# =============================================================================


class TestCallValue:
    """Tests for value calls into contract accounts."""

    def test_plain_account_receives(self, chain, alice, bob):
        chain.fund(alice, 100)
        assert chain.call_value(alice, bob, 30, gas=2300)
        assert chain.balance_of(bob) == 30

    def test_hook_sees_context(self, chain, alice, bob):
        seen = []
        chain.register_hook(bob, lambda ctx: seen.append((ctx.sender, ctx.amount, ctx.gas.limit)))
        chain.fund(alice, 100)

        assert chain.call_value(alice, bob, 30, gas=5000)
        assert seen == [(alice, 30, 5000)]
        assert chain.is_contract(bob)

    def test_reverting_hook_undoes_move(self, chain, alice, bob):
        def revert(ctx):
            raise RuntimeError("no thanks")

        chain.register_hook(bob, revert)
        chain.fund(alice, 100)

        assert chain.call_value(alice, bob, 30, gas=5000) is False
        assert chain.balance_of(alice) == 100
        assert chain.balance_of(bob) == 0

    def test_out_of_gas_hook(self, chain, alice, bob):
        chain.register_hook(bob, lambda ctx: ctx.gas.consume(10_000))
        chain.fund(alice, 100)

        assert chain.call_value(alice, bob, 30, gas=2300) is False
        assert chain.call_value(alice, bob, 30, gas=20_000) is True

    def test_hook_side_effects_reverted(self, chain, alice, bob):
        """Value the hook forwarded before reverting comes back too."""
        carol = label_address("carol")

        def forward_then_revert(ctx):
            ctx.chain.move(ctx.recipient, carol, ctx.amount)
            raise RuntimeError("revert after forwarding")

        chain.register_hook(bob, forward_then_revert)
        chain.fund(alice, 100)

        assert chain.call_value(alice, bob, 30, gas=5000) is False
        assert chain.balance_of(carol) == 0
        assert chain.balance_of(alice) == 100

    def test_sender_short_raises(self, chain, alice, bob):
        with pytest.raises(InsufficientFunds):
            chain.call_value(alice, bob, 1, gas=2300)


class TestGasMeter:
    """Tests for the gas allowance."""

    def test_consume_within_limit(self):
        gas = GasMeter(2300)
        gas.consume(2300)
        assert gas.remaining == 0

    def test_consume_over_limit(self):
        gas = GasMeter(2300)
        with pytest.raises(OutOfGas):
            gas.consume(2301)


# =============================================================================
# Atomic Scope Tests
# =============================================================================


class TestAtomic:
    """Tests for journaled scopes."""

    def test_rollback_restores_registered_components(self, chain, alice, bob):
        events = EventLog()
        chain.register(events)
        chain.fund(alice, 100)

        with pytest.raises(RuntimeError):
            with chain.atomic():
                chain.move(alice, bob, 50)
                events.emit(MetadataFrozen())
                raise RuntimeError("abort")

        assert chain.balance_of(alice) == 100
        assert chain.balance_of(bob) == 0
        assert len(events) == 0

    def test_commit_keeps_changes(self, chain, alice, bob):
        chain.fund(alice, 100)
        with chain.atomic():
            chain.move(alice, bob, 50)
        assert chain.balance_of(bob) == 50

    def test_nested_inner_rollback_only(self, chain, alice, bob):
        chain.fund(alice, 100)
        with chain.atomic():
            chain.move(alice, bob, 10)
            with pytest.raises(RuntimeError):
                with chain.atomic():
                    chain.move(alice, bob, 20)
                    raise RuntimeError("inner")
            assert chain.depth == 1
        assert chain.balance_of(bob) == 10
        assert chain.depth == 0

    def test_register_is_idempotent(self, chain):
        events = EventLog()
        chain.register(events)
        chain.register(events)
        assert chain._participants.count(events) == 1


# =============================================================================
# Wrapped Asset Tests
# =============================================================================


class TestWrappedValueAsset:
    """Tests for the wrapped fallback asset."""

    def test_deposit_backs_supply(self, chain, alice):
        wrapped = WrappedValueAsset(chain)
        chain.fund(alice, 100)
        wrapped.deposit(alice, 60)

        assert wrapped.balance_of(alice) == 60
        assert wrapped.total_supply == 60
        assert chain.balance_of(wrapped.address) == 60
        assert chain.balance_of(alice) == 40

    def test_transfer(self, chain, alice, bob):
        wrapped = WrappedValueAsset(chain)
        chain.fund(alice, 100)
        wrapped.deposit(alice, 60)

        assert wrapped.transfer(alice, bob, 25)
        assert wrapped.balance_of(bob) == 25
        assert not wrapped.transfer(alice, bob, 1000)

    def test_denied_recipient(self, chain, alice, bob):
        wrapped = WrappedValueAsset(chain)
        chain.fund(alice, 100)
        wrapped.deposit(alice, 60)
        wrapped.deny(bob)

        assert not wrapped.transfer(alice, bob, 10)
        wrapped.allow(bob)
        assert wrapped.transfer(alice, bob, 10)

    def test_withdraw(self, chain, alice):
        wrapped = WrappedValueAsset(chain)
        chain.fund(alice, 100)
        wrapped.deposit(alice, 60)
        wrapped.withdraw(alice, 60)

        assert chain.balance_of(alice) == 100
        assert wrapped.total_supply == 0

    def test_withdraw_rejected_by_hook(self, chain, alice):
        wrapped = WrappedValueAsset(chain)
        chain.fund(alice, 100)
        wrapped.deposit(alice, 60)

        def revert(ctx):
            raise RuntimeError("no native value")

        chain.register_hook(alice, revert)
        with pytest.raises(TransferFailure):
            with chain.atomic():
                wrapped.withdraw(alice, 60)
        assert wrapped.balance_of(alice) == 60

    def test_withdraw_more_than_balance(self, chain, alice):
        wrapped = WrappedValueAsset(chain)
        with pytest.raises(InsufficientFunds):
            wrapped.withdraw(alice, 1)

    def test_rollback_covers_wrapped(self, chain, alice):
        wrapped = WrappedValueAsset(chain)
        chain.fund(alice, 100)
        with pytest.raises(RuntimeError):
            with chain.atomic():
                wrapped.deposit(alice, 60)
                raise RuntimeError("abort")
        assert wrapped.balance_of(alice) == 0
        assert chain.balance_of(alice) == 100


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
