"""
Pytest fixtures for the NoteLayer SDK tests.
"""
import time

import pytest

from notelayer_sdk._rate_limited_log import reset_rate_limits
from notelayer_sdk.account import AccountId
from notelayer_sdk.asset import FungibleAsset
from notelayer_sdk.config import NetworkConfig
from notelayer_sdk.ledger import InMemoryLedger
from notelayer_sdk.rng import DeterministicRng
from notelayer_sdk.tracker import ConfirmationTracker

# Constants for testing
TEST_RPC_URL = "https://rpc.example.com"
# network-storage fungible faucet
TEST_FAUCET_HEX = "0xd8e3fa793ea82360734ec91a98e798"
# public account with updatable code
TEST_ACCOUNT_HEX = "0x1a2b3c4d5e6f701000000000000000"
# private account with updatable code
TEST_OTHER_ACCOUNT_HEX = "0x2b3c4d5e6f70819000000000000100"
TEST_OWNER_HEX = "0x3c4d5e6f7081921000000000000200"
TEST_MAX_SUPPLY = 1_000_000
TEST_SERIAL_HEX = "0x" + "01" + "00" * 7 + "02" + "00" * 7 + "03" + "00" * 7 + "04" + "00" * 7


# Make time.sleep instantaneous so polling loops don't slow the suite down
@pytest.fixture(autouse=True)
def _fast_sleep(monkeypatch):
    monkeypatch.setattr(time, "sleep", lambda *_a, **_kw: None)


@pytest.fixture(autouse=True)
def _reset_module_state():
    """Forget rate-limited messages and cached network definitions between tests."""
    reset_rate_limits()
    NetworkConfig._networks_cache = None
    yield
    reset_rate_limits()
    NetworkConfig._networks_cache = None


class FakeClock:
    """Monotonic clock that only moves when ``sleep`` is called."""

    def __init__(self, start: float = 0.0):
        self.now = start
        self.sleeps = []

    def __call__(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


@pytest.fixture
def fake_clock():
    return FakeClock()


@pytest.fixture
def faucet_id():
    return AccountId.from_hex(TEST_FAUCET_HEX)


@pytest.fixture
def account_id():
    return AccountId.from_hex(TEST_ACCOUNT_HEX)


@pytest.fixture
def other_account_id():
    return AccountId.from_hex(TEST_OTHER_ACCOUNT_HEX)


@pytest.fixture
def owner_id():
    return AccountId.from_hex(TEST_OWNER_HEX)


@pytest.fixture
def rng():
    return DeterministicRng(seed=42)


@pytest.fixture
def asset(faucet_id):
    return FungibleAsset.new(faucet_id, 100)


@pytest.fixture
def ledger(faucet_id, owner_id):
    """In-memory ledger with the test faucet deployed."""
    ledger = InMemoryLedger()
    ledger.register_faucet(faucet_id, owner_id, TEST_MAX_SUPPLY)
    return ledger


@pytest.fixture
def tracker(ledger, fake_clock):
    return ConfirmationTracker(
        ledger,
        poll_interval=1.0,
        max_wait=30.0,
        not_found_retries=3,
        clock=fake_clock,
        sleep=fake_clock.sleep,
    )
