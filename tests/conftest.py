import pytest

from config import TrackerConfig
from lineage import Chain

DATA_ID = "order~clothing~iStore~15150"
ACTOR_ID = "notifier~billing~receipt~email"


@pytest.fixture
def config():
    # low difficulty keeps mining to a few dozen hashes per link
    return TrackerConfig(difficulty=4, max_attempts=100_000)


@pytest.fixture
def chain(config):
    c = Chain.genesis(DATA_ID, config)
    c.append("payment-validator", timestamp=1578071239)
    c.append("credit-card-transaction-processor", timestamp=1578071245)
    c.append(ACTOR_ID, timestamp=1578071300)
    return c
