"""
Unit tests for the round state machine, snapshot form and reentrancy guard.
"""

import pytest

from mintauction.core.auction import AuctionRound, AuctionSnapshot, ReentrancyGuard, RoundState
from mintauction.core.errors import AlreadyHighestBidder, AuctionOver, BidTooLow, ReentrantCall
from mintauction.crypto import label_address

ALICE = label_address("alice")
BOB = label_address("bob")
INC = 10


class TestAuctionRound:
    """Tests for AuctionRound."""

    def test_lifecycle(self):
        rnd = AuctionRound()
        assert rnd.state(100) == RoundState.IDLE

        rnd.commit_bid(ALICE, 50)
        rnd.open(200)
        assert rnd.state(100) == RoundState.ACTIVE
        assert rnd.state(199) == RoundState.ACTIVE
        assert rnd.state(200) == RoundState.EXPIRED

        assert rnd.close() == (ALICE, 50)
        assert rnd.state(300) == RoundState.IDLE
        assert rnd.high_bidder is None
        assert rnd.high_bid == 0

    def test_time_left(self):
        rnd = AuctionRound(deadline=200)
        assert rnd.time_left(150) == 50
        assert rnd.time_left(250) == 0
        assert AuctionRound().time_left(0) == 0

    def test_first_bid_needs_increment(self):
        rnd = AuctionRound()
        with pytest.raises(BidTooLow):
            rnd.check_bid(100, ALICE, 0, INC)
        rnd.check_bid(100, ALICE, INC, INC)

    def test_bid_at_high_bid_rejected(self):
        rnd = AuctionRound(deadline=200, high_bid=50, high_bidder=ALICE)
        with pytest.raises(BidTooLow) as exc:
            rnd.check_bid(100, BOB, 50, INC)
        assert exc.value.minimum == 60
        with pytest.raises(BidTooLow):
            rnd.check_bid(100, BOB, 59, INC)
        rnd.check_bid(100, BOB, 60, INC)

    def test_leader_cannot_outbid_self(self):
        rnd = AuctionRound(deadline=200, high_bid=50, high_bidder=ALICE)
        with pytest.raises(AlreadyHighestBidder):
            rnd.check_bid(100, ALICE, 100, INC)

    def test_expired_round_refuses_bids(self):
        rnd = AuctionRound(deadline=200, high_bid=50, high_bidder=ALICE)
        with pytest.raises(AuctionOver):
            rnd.check_bid(200, BOB, 1_000, INC)

    def test_expiry_checked_first(self):
        """A low bid on an expired round reports the round is over."""
        rnd = AuctionRound(deadline=200, high_bid=50, high_bidder=ALICE)
        with pytest.raises(AuctionOver):
            rnd.check_bid(500, ALICE, 1, INC)

    def test_commit_returns_displaced(self):
        rnd = AuctionRound()
        assert rnd.commit_bid(ALICE, 50) == (None, 0)
        assert rnd.commit_bid(BOB, 60) == (ALICE, 50)

    def test_snapshot_restore(self):
        rnd = AuctionRound(deadline=200, high_bid=50, high_bidder=ALICE)
        snap = rnd.snapshot()
        rnd.close()
        rnd.restore(snap)
        assert (rnd.deadline, rnd.high_bid, rnd.high_bidder) == (200, 50, ALICE)


class TestAuctionSnapshot:
    """Tests for the persisted state surface."""

    def test_dict_round_trip(self):
        snap = AuctionSnapshot(
            deadline=1_700_003_600,
            high_bid=2**200,
            high_bidder=ALICE,
            next_id=4,
            cap=10,
            issuance_open=True,
            metadata_frozen=False,
            base_uri="ipfs://meta/",
            pending_refunds={BOB: 5},
        )
        data = snap.to_dict()
        assert data["high_bid"] == str(2**200)
        assert data["high_bidder"].startswith("0x")
        assert AuctionSnapshot.from_dict(data) == snap

    def test_idle_has_no_bidder(self):
        snap = AuctionSnapshot(0, 0, None, 1, 0, True, False, "")
        assert snap.to_dict()["high_bidder"] is None
        assert AuctionSnapshot.from_dict(snap.to_dict()).high_bidder is None

    def test_malformed_stored_address(self):
        data = AuctionSnapshot(10, 5, ALICE, 1, 0, True, False, "").to_dict()
        data["high_bidder"] = data["high_bidder"][2:]
        with pytest.raises(ValueError, match="Malformed address"):
            AuctionSnapshot.from_dict(data)

        data = AuctionSnapshot(10, 5, ALICE, 1, 0, True, False, "").to_dict()
        data["pending_refunds"] = {"0x" + "ab" * 19: "1"}
        with pytest.raises(ValueError):
            AuctionSnapshot.from_dict(data)


class TestReentrancyGuard:
    """Tests for the guard."""

    def test_nested_entry_refused(self):
        guard = ReentrancyGuard()
        with guard:
            assert guard.locked
            with pytest.raises(ReentrantCall):
                with guard:
                    pass
        assert not guard.locked

    def test_released_on_exception(self):
        guard = ReentrancyGuard()
        with pytest.raises(RuntimeError):
            with guard:
                raise RuntimeError("boom")
        assert not guard.locked


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
