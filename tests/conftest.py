"""
Pytest configuration and shared fixtures.

Provides in-memory stand-ins for the hook's collaborators (market venue,
decryption oracle, yield venue) and sample campaign configs.
"""

from typing import Dict, List, Optional, Tuple
from unittest.mock import MagicMock

import pytest
from eth_utils import keccak

from liquidip_toolkit.config.models import (
    CampaignConfig,
    EncryptedCampaignConfig,
    EncryptedEpoch,
    EncryptedInput,
    EncryptedPosition,
    Epoch,
    Position,
)
from liquidip_toolkit.hooks.types import (
    BalanceDelta,
    CampaignBinding,
    PoolKey,
    PriceState,
    TradeParams,
)
from liquidip_toolkit.liquidity.tick_math import (
    amounts_for_liquidity,
    get_sqrt_price_at_tick,
    get_tick_at_sqrt_price,
)
from liquidip_toolkit.patents.registry import PatentStatus, StaticPatentVerifier
from liquidip_toolkit.shared.exceptions import YieldVenueError

CAMPAIGN_START = 1764806400
HOUR = 3600

LICENSE_TOKEN = "0x1111111111111111111111111111111111111111"
SETTLEMENT_TOKEN = "0x2222222222222222222222222222222222222222"
HOOK_ADDRESS = "0x3333333333333333333333333333333333333333"
TRADER = "0x4444444444444444444444444444444444444444"
OTHER_TRADER = "0x5555555555555555555555555555555555555555"
PATENT_ID = 42
CAMPAIGN_ID = 7
TICK_SPACING = 60


# =============================================================================
# FAKE COLLABORATORS
# =============================================================================


class FakeVenue:
    """
    Pool venue keeping per-range liquidity and a call log.

    Range deltas are priced with the real tick math. Trades move the price
    straight to their limit and pay out half the input, which is enough
    to follow balances through the hook. When ``hook`` is set, every trade
    calls back into ``hook.before_trade`` like a real venue would.
    """

    def __init__(self, tick: int = 0):
        self.price = PriceState(get_sqrt_price_at_tick(tick), tick)
        self.liquidity: Dict[Tuple[int, int], int] = {}
        self.calls: List[tuple] = []
        self.settled: Dict[str, int] = {}
        self.collected: List[Tuple[str, int, str]] = []
        self.hook = None
        self.callback_outcomes: List = []
        self.fail_on_place: Optional[Tuple[int, int]] = None

    def place_range(self, key, tick_lower, tick_upper, liquidity_delta):
        self.calls.append(("place_range", tick_lower, tick_upper, liquidity_delta))
        if self.fail_on_place == (tick_lower, tick_upper):
            raise RuntimeError(f"venue refused range [{tick_lower}, {tick_upper})")

        current = self.liquidity.get((tick_lower, tick_upper), 0)
        updated = current + liquidity_delta
        if updated < 0:
            raise ValueError("cannot remove more liquidity than deposited")
        if updated:
            self.liquidity[(tick_lower, tick_upper)] = updated
        else:
            self.liquidity.pop((tick_lower, tick_upper), None)

        amount0, amount1 = amounts_for_liquidity(
            self.price.sqrt_price_x96, tick_lower, tick_upper, abs(liquidity_delta)
        )
        if liquidity_delta > 0:
            return BalanceDelta(-amount0, -amount1)
        return BalanceDelta(amount0, amount1)

    def current_price(self, key):
        return self.price

    def execute_trade(self, key, zero_for_one, amount_specified, sqrt_price_limit_x96):
        self.calls.append(
            ("execute_trade", zero_for_one, amount_specified, sqrt_price_limit_x96)
        )
        if self.hook is not None:
            self.callback_outcomes.append(
                self.hook.before_trade(
                    key.pool_id,
                    self.hook.address,
                    TradeParams(zero_for_one, amount_specified, sqrt_price_limit_x96),
                )
            )
        if sqrt_price_limit_x96:
            self.price = PriceState(
                sqrt_price_limit_x96, get_tick_at_sqrt_price(sqrt_price_limit_x96)
            )
        amount_in = -amount_specified
        amount_out = amount_in // 2
        if zero_for_one:
            return BalanceDelta(-amount_in, amount_out)
        return BalanceDelta(amount_out, -amount_in)

    def settle_owed(self, asset, amount):
        self.calls.append(("settle_owed", asset, amount))
        self.settled[asset] = self.settled.get(asset, 0) + amount

    def collect_owed(self, asset, amount, recipient):
        self.calls.append(("collect_owed", asset, amount, recipient))
        self.collected.append((asset, amount, recipient))

    def calls_named(self, name: str) -> List[tuple]:
        return [c for c in self.calls if c[0] == name]

    def collected_by(self, recipient: str, asset: str) -> int:
        return sum(a for (s, a, r) in self.collected if r == recipient and s == asset)


class FakeOracle:
    """Decryption oracle that resolves only when told to."""

    def __init__(self, plaintexts: Optional[Dict[int, int]] = None):
        self.plaintexts: Dict[int, int] = dict(plaintexts or {})
        self.requested: List[int] = []
        self.resolved: Dict[int, int] = {}

    def request_decryption(self, handle):
        self.requested.append(handle)

    def is_resolved(self, handle):
        return handle in self.resolved

    def read_resolved(self, handle):
        return self.resolved[handle]

    def resolve(self, handle):
        self.resolved[handle] = self.plaintexts[handle]

    def resolve_requested(self):
        for handle in self.requested:
            self.resolve(handle)


class FakeYieldVenue:
    def __init__(self, withdraw_amount: int = 0):
        self.approvals: List[Tuple[str, int]] = []
        self.deposits: List[Tuple[int, str, int, int]] = []
        self.withdrawals: List[Tuple[int, str, str]] = []
        self.failures_left = 0
        self.withdraw_amount = withdraw_amount

    def approve(self, asset, amount):
        self.approvals.append((asset, amount))

    def deposit(self, campaign_id, asset, amount, value=0):
        if self.failures_left:
            self.failures_left -= 1
            raise YieldVenueError("vault paused")
        self.deposits.append((campaign_id, asset, amount, value))

    def withdraw(self, campaign_id, asset, recipient):
        self.withdrawals.append((campaign_id, asset, recipient))
        return self.withdraw_amount


# =============================================================================
# SAMPLE DATA
# =============================================================================


def encrypted_input(label: str, signature_length: int = 65) -> EncryptedInput:
    return EncryptedInput(
        ct_hash=keccak(text=label),
        security_zone=0,
        utype=4,
        signature=bytes((i * 7) % 256 for i in range(signature_length)),
    )


def int24_plaintext(tick: int) -> int:
    """Unsigned 24-bit form a decryption oracle returns for a tick."""
    return tick & 0xFFFFFF


@pytest.fixture
def pool_key() -> PoolKey:
    return PoolKey(
        currency0=LICENSE_TOKEN,
        currency1=SETTLEMENT_TOKEN,
        fee=3000,
        tick_spacing=TICK_SPACING,
        hooks=HOOK_ADDRESS,
    )


@pytest.fixture
def binding(pool_key) -> CampaignBinding:
    return CampaignBinding(
        pool_key=pool_key,
        license_token=LICENSE_TOKEN,
        campaign_id=CAMPAIGN_ID,
        patent_id=PATENT_ID,
    )


@pytest.fixture
def public_config() -> CampaignConfig:
    """Three one-hour epochs of ranges above the initial price."""
    return CampaignConfig(
        starting_time=CAMPAIGN_START,
        epochs=(
            Epoch(
                duration=HOUR,
                positions=(
                    Position(600, 1200, 10**18),
                    Position(1200, 1800, 2 * 10**18),
                ),
            ),
            Epoch(duration=HOUR, positions=(Position(1800, 2400, 10**18),)),
            Epoch(duration=HOUR, positions=(Position(2400, 3000, 5 * 10**17),)),
        ),
    )


@pytest.fixture
def encrypted_campaign() -> Tuple[EncryptedCampaignConfig, Dict[int, int]]:
    """
    Two one-hour encrypted epochs plus the plaintext behind every handle.

    Epoch 1 uses negative ticks to exercise sign extension.
    """
    plain = [
        [(600, 1200, 10**18), (1200, 1800, 10**18)],
        [(-1200, -600, 3 * 10**17)],
    ]
    plaintexts: Dict[int, int] = {}
    epochs = []
    for e, positions in enumerate(plain):
        encrypted_positions = []
        for p, (lower, upper, amount) in enumerate(positions):
            fields = []
            for name, value in (("lower", lower), ("upper", upper), ("amount", amount)):
                record = encrypted_input(f"e{e}p{p}{name}", signature_length=60 + p)
                plaintexts[record.handle] = (
                    int24_plaintext(value) if name != "amount" else value
                )
                fields.append(record)
            encrypted_positions.append(EncryptedPosition(*fields))
        epochs.append(EncryptedEpoch(duration=HOUR, positions=tuple(encrypted_positions)))

    config = EncryptedCampaignConfig(
        starting_time=CAMPAIGN_START,
        total_supply=23 * 10**17,
        epochs=tuple(epochs),
    )
    return config, plaintexts


@pytest.fixture
def venue() -> FakeVenue:
    return FakeVenue(tick=0)


@pytest.fixture
def yield_venue() -> FakeYieldVenue:
    return FakeYieldVenue()


@pytest.fixture
def verifier() -> StaticPatentVerifier:
    return StaticPatentVerifier({PATENT_ID: PatentStatus.VALID})


@pytest.fixture
def mock_web3_service():
    """Mock Web3Service for unit tests."""
    service = MagicMock()
    service.w3 = MagicMock()
    service.w3.eth.get_block.return_value = {
        "number": 21000000,
        "hash": "0x" + "ef" * 32,
        "timestamp": CAMPAIGN_START,
    }
    return service
