"""
Shared fixtures for mintauction tests.
"""

import pytest

from mintauction.core.auction import deploy_auction
from mintauction.core.config import AuctionConfig
from mintauction.core.state import ManualClock
from mintauction.crypto import label_address
from mintauction.utils.logger import AuctionLogger
from mintauction.utils.validation import to_wei

START_TIME = 1_700_000_000
STARTING_BALANCE = to_wei(100)


@pytest.fixture(autouse=True)
def _reset_logging():
    """Each test configures logging from scratch; drop per-test streams after."""
    AuctionLogger.reset()
    yield
    AuctionLogger.reset()


@pytest.fixture
def clock():
    return ManualClock(start=START_TIME)


@pytest.fixture
def config():
    return AuctionConfig(duration=3600, min_increment=to_wei("0.01"))


@pytest.fixture
def alice():
    return label_address("alice")


@pytest.fixture
def bob():
    return label_address("bob")


@pytest.fixture
def carol():
    return label_address("carol")


@pytest.fixture
def deployment(clock, config, alice, bob, carol):
    """Default auction with three funded bidders."""
    d = deploy_auction(config, clock=clock)
    for who in (alice, bob, carol):
        d.chain.fund(who, STARTING_BALANCE)
    return d


@pytest.fixture
def engine(deployment):
    return deployment.engine
