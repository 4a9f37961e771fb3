"""
Unit tests for the plaintext epoch liquidity hook.

The venue is an in-memory fake that records every call, so tests can check
the exact sequence of range updates an activation produces.
"""

from unittest.mock import MagicMock

import pytest

from conftest import (
    CAMPAIGN_ID,
    CAMPAIGN_START,
    HOOK_ADDRESS,
    HOUR,
    LICENSE_TOKEN,
    PATENT_ID,
    SETTLEMENT_TOKEN,
    TICK_SPACING,
    TRADER,
    FakeVenue,
)
from liquidip_toolkit.config.codec import encode_config
from liquidip_toolkit.config.models import CampaignConfig, Epoch, Position
from liquidip_toolkit.hooks.lifecycle import (
    EpochLiquidityHook,
    check_range,
    usable_tick_bounds,
)
from liquidip_toolkit.hooks.types import (
    CampaignBinding,
    PoolKey,
    PriceState,
    TradeAction,
    TradeParams,
)
from liquidip_toolkit.liquidity.tick_math import (
    amounts_for_liquidity,
    compute_liquidity,
    get_sqrt_price_at_tick,
)
from liquidip_toolkit.patents.registry import PatentStatus
from liquidip_toolkit.shared.constants import ZERO_ADDRESS
from liquidip_toolkit.shared.exceptions import (
    CampaignEnded,
    CampaignNotStarted,
    CampaignStillActive,
    ExactOutputNotSupported,
    InvalidTickRange,
    PatentBackingInvalid,
    PoolAlreadyInitialized,
    PoolNotInitialized,
    RedeemNotAllowed,
    TickNotAligned,
    TradeRejected,
    YieldVenueError,
)
from liquidip_toolkit.shared.retry import RetryConfig

BUY = TradeParams(zero_for_one=False, amount_specified=-1000)


@pytest.fixture
def hook(venue, yield_venue, verifier):
    return EpochLiquidityHook(
        venue,
        yield_venue,
        verifier,
        HOOK_ADDRESS,
        yield_retry=RetryConfig(max_attempts=2, base_delay=0),
    )


@pytest.fixture
def pool_id(hook, binding, public_config):
    hook.initialize_state(binding, encode_config(public_config))
    return binding.pool_id


def single_epoch(*positions) -> bytes:
    return encode_config(
        CampaignConfig(
            starting_time=CAMPAIGN_START,
            epochs=(Epoch(duration=HOUR, positions=tuple(positions)),),
        )
    )


class TestInitialization:
    def test_initialize_returns_validated_view(self, hook, binding, public_config):
        view = hook.initialize_state(binding, encode_config(public_config))
        assert view.is_validated
        assert hook.config(binding.pool_id) is view
        assert hook.state(binding.pool_id).applied_epochs == set()

    def test_second_initialize_rejected(self, hook, binding, public_config, pool_id):
        with pytest.raises(PoolAlreadyInitialized):
            hook.initialize_state(binding, encode_config(public_config))

    def test_unaligned_tick_rejected(self, hook, binding):
        with pytest.raises(TickNotAligned):
            hook.initialize_state(binding, single_epoch(Position(610, 1200, 1)))
        with pytest.raises(PoolNotInitialized):
            hook.state(binding.pool_id)

    def test_tick_outside_domain_rejected(self, hook, binding):
        with pytest.raises(InvalidTickRange):
            hook.initialize_state(binding, single_epoch(Position(0, 900000, 1)))

    def test_unknown_pool(self, hook, binding):
        with pytest.raises(PoolNotInitialized):
            hook.before_trade(binding.pool_id, TRADER, BUY, now=CAMPAIGN_START)


class TestRangeChecks:
    def test_empty_range(self):
        with pytest.raises(InvalidTickRange):
            check_range(600, 600, TICK_SPACING, 0, 0)

    def test_inverted_range(self):
        with pytest.raises(InvalidTickRange):
            check_range(1200, 600, TICK_SPACING, 0, 0)

    def test_usable_bounds_are_on_grid(self):
        lower, upper = usable_tick_bounds(TICK_SPACING)
        assert upper % TICK_SPACING == 0
        assert lower == -upper
        check_range(lower, upper, TICK_SPACING, 0, 0)


class TestTradeChecks:
    def test_before_start(self, hook, pool_id, venue):
        with pytest.raises(CampaignNotStarted):
            hook.before_trade(pool_id, TRADER, BUY, now=CAMPAIGN_START - 1)
        assert venue.calls == []

    def test_after_end(self, hook, pool_id, venue):
        with pytest.raises(CampaignEnded):
            hook.before_trade(pool_id, TRADER, BUY, now=CAMPAIGN_START + 3 * HOUR)
        assert venue.calls == []

    def test_redeem_rejected(self, hook, pool_id, venue):
        with pytest.raises(RedeemNotAllowed):
            hook.before_trade(
                pool_id, TRADER, TradeParams(True, -1000), now=CAMPAIGN_START
            )
        assert venue.calls == []

    def test_exact_output_rejected(self, hook, pool_id, venue):
        with pytest.raises(ExactOutputNotSupported):
            hook.before_trade(
                pool_id, TRADER, TradeParams(False, 1000), now=CAMPAIGN_START
            )
        assert venue.calls == []

    @pytest.mark.parametrize(
        "params,now",
        [
            (BUY, CAMPAIGN_START - 1),
            (BUY, CAMPAIGN_START + 3 * HOUR),
            (TradeParams(True, -1000), CAMPAIGN_START),
            (TradeParams(False, 1000), CAMPAIGN_START),
        ],
    )
    def test_rejections_share_a_base(self, hook, pool_id, params, now):
        with pytest.raises(TradeRejected):
            hook.before_trade(pool_id, TRADER, params, now=now)


class TestActivation:
    def test_first_trade_activates_epoch(self, hook, pool_id, venue):
        outcome = hook.before_trade(pool_id, TRADER, BUY, now=CAMPAIGN_START + 10)

        assert outcome.action is TradeAction.PROCEED
        assert outcome.epoch == 0
        assert outcome.activated
        state = hook.state(pool_id)
        assert state.applied_epochs == {0}
        assert [(p.tick_lower, p.tick_upper) for p in state.live_positions] == [
            (600, 1200),
            (1200, 1800),
        ]
        assert set(venue.liquidity) == {(600, 1200), (1200, 1800)}

    def test_anchor_moves_price_to_lowest_tick(self, hook, pool_id, venue):
        hook.before_trade(pool_id, TRADER, BUY, now=CAMPAIGN_START + 10)
        trade = venue.calls_named("execute_trade")[0]
        assert trade[1] is False
        assert trade[2] < 0
        assert trade[3] == get_sqrt_price_at_tick(600)
        assert venue.price.tick == 600

    def test_second_trade_same_epoch(self, hook, pool_id, venue):
        hook.before_trade(pool_id, TRADER, BUY, now=CAMPAIGN_START + 10)
        calls = len(venue.calls)
        outcome = hook.before_trade(pool_id, TRADER, BUY, now=CAMPAIGN_START + 20)
        assert outcome.action is TradeAction.PROCEED
        assert not outcome.activated
        assert len(venue.calls) == calls

    def test_withdraw_before_place(self, hook, pool_id, venue):
        hook.before_trade(pool_id, TRADER, BUY, now=CAMPAIGN_START + 10)
        before = len(venue.calls)

        outcome = hook.before_trade(pool_id, TRADER, BUY, now=CAMPAIGN_START + 90 * 60)

        assert outcome.epoch == 1
        assert outcome.activated
        places = [c for c in venue.calls[before:] if c[0] == "place_range"]
        first = compute_liquidity(600, 1200, 10**18, True)
        second = compute_liquidity(1200, 1800, 2 * 10**18, True)
        placed = compute_liquidity(1800, 2400, 10**18, True)
        assert places[0] == ("place_range", 600, 1200, -first)
        assert places[1] == ("place_range", 1200, 1800, -second)
        assert places[-1] == ("place_range", 1800, 2400, placed)
        assert set(venue.liquidity) == {(1800, 2400)}

        state = hook.state(pool_id)
        assert [(p.epoch, p.tick_lower) for p in state.live_positions] == [(1, 1800)]
        assert state.last_applied_epoch == 1
        assert state.unsold_inventory > 0

    def test_skipped_epoch_activates_directly(self, hook, pool_id, venue):
        outcome = hook.before_trade(pool_id, TRADER, BUY, now=CAMPAIGN_START + 2 * HOUR)
        assert outcome.epoch == 2
        assert hook.state(pool_id).applied_epochs == {2}
        assert set(venue.liquidity) == {(2400, 3000)}

    def test_older_epoch_not_reactivated(self, hook, pool_id, venue):
        hook.before_trade(pool_id, TRADER, BUY, now=CAMPAIGN_START + HOUR)
        calls = len(venue.calls)
        outcome = hook.before_trade(pool_id, TRADER, BUY, now=CAMPAIGN_START + 10)
        assert not outcome.activated
        assert len(venue.calls) == calls
        assert hook.state(pool_id).applied_epochs == {1}


class TestAnchorReentry:
    def test_anchor_trade_passes_through(self, hook, pool_id, venue):
        venue.hook = hook
        hook.before_trade(pool_id, TRADER, BUY, now=CAMPAIGN_START + 10)

        assert [o.action for o in venue.callback_outcomes] == [TradeAction.PASSTHROUGH]
        assert not hook.state(pool_id).anchor_in_progress

    def test_anchor_in_redeem_direction_passes_through(
        self, yield_venue, verifier, binding, public_config
    ):
        venue = FakeVenue(tick=3000)
        hook = EpochLiquidityHook(venue, yield_venue, verifier, HOOK_ADDRESS)
        venue.hook = hook
        hook.initialize_state(binding, encode_config(public_config))

        hook.before_trade(binding.pool_id, TRADER, BUY, now=CAMPAIGN_START + 10)

        trade = venue.calls_named("execute_trade")[0]
        assert trade[1] is True
        assert venue.callback_outcomes[0].action is TradeAction.PASSTHROUGH
        assert venue.price.tick == 600

    def test_no_anchor_when_price_already_there(
        self, yield_venue, verifier, binding, public_config
    ):
        venue = FakeVenue(tick=600)
        hook = EpochLiquidityHook(venue, yield_venue, verifier, HOOK_ADDRESS)
        hook.initialize_state(binding, encode_config(public_config))
        hook.before_trade(binding.pool_id, TRADER, BUY, now=CAMPAIGN_START + 10)
        assert venue.calls_named("execute_trade") == []


class TestAllOrNothing:
    def test_invalid_patent_changes_nothing(self, hook, pool_id, venue, verifier):
        verifier.set_status(PATENT_ID, PatentStatus.UNDER_ATTACK)
        with pytest.raises(PatentBackingInvalid):
            hook.before_trade(pool_id, TRADER, BUY, now=CAMPAIGN_START + 10)
        assert venue.calls == []
        assert hook.state(pool_id).applied_epochs == set()

    def test_venue_failure_leaves_state_unchanged(self, hook, pool_id, venue):
        hook.before_trade(pool_id, TRADER, BUY, now=CAMPAIGN_START + 10)
        before = hook.state(pool_id).to_payload()

        venue.fail_on_place = (1800, 2400)
        with pytest.raises(RuntimeError):
            hook.before_trade(pool_id, TRADER, BUY, now=CAMPAIGN_START + HOUR)

        state = hook.state(pool_id)
        assert state.to_payload() == before
        assert not state.anchor_in_progress


class TestProceeds:
    def _activate_with_proceeds(self, hook, pool_id, venue):
        hook.before_trade(pool_id, TRADER, BUY, now=CAMPAIGN_START + 10)
        # price inside [600, 1200) so withdrawing it returns settlement tokens
        venue.price = PriceState(get_sqrt_price_at_tick(900), 900)
        liquidity = compute_liquidity(600, 1200, 10**18, True)
        _, proceeds = amounts_for_liquidity(
            get_sqrt_price_at_tick(900), 600, 1200, liquidity
        )
        return proceeds

    def test_proceeds_flushed_after_activation(self, hook, pool_id, venue, yield_venue):
        proceeds = self._activate_with_proceeds(hook, pool_id, venue)
        deposits_before = len(yield_venue.deposits)

        hook.before_trade(pool_id, TRADER, BUY, now=CAMPAIGN_START + HOUR)

        assert hook.state(pool_id).pending_proceeds == {}
        new_deposits = yield_venue.deposits[deposits_before:]
        assert len(new_deposits) == 1
        campaign_id, asset, amount, value = new_deposits[0]
        assert (campaign_id, asset, value) == (CAMPAIGN_ID, SETTLEMENT_TOKEN, 0)
        assert amount >= proceeds > 0
        assert yield_venue.approvals[-1] == (SETTLEMENT_TOKEN, amount)

    def test_failed_deposit_stays_pending(self, hook, pool_id, venue, yield_venue):
        self._activate_with_proceeds(hook, pool_id, venue)
        yield_venue.failures_left = 1
        deposits_before = len(yield_venue.deposits)

        outcome = hook.before_trade(pool_id, TRADER, BUY, now=CAMPAIGN_START + HOUR)

        assert outcome.activated
        state = hook.state(pool_id)
        assert state.applied_epochs == {0, 1}
        pending = state.pending_proceeds[SETTLEMENT_TOKEN]
        assert pending > 0
        assert len(yield_venue.deposits) == deposits_before

        flushed = hook.flush_proceeds(pool_id)
        assert flushed == {SETTLEMENT_TOKEN: pending}
        assert state.pending_proceeds == {}

    def test_venue_revert_keeps_activation(self, hook, pool_id, venue, yield_venue):
        self._activate_with_proceeds(hook, pool_id, venue)
        yield_venue.deposit = MagicMock(
            side_effect=ValueError("execution reverted: vault paused")
        )

        outcome = hook.before_trade(pool_id, TRADER, BUY, now=CAMPAIGN_START + HOUR)

        assert outcome.activated
        state = hook.state(pool_id)
        assert state.applied_epochs == {0, 1}
        assert state.pending_proceeds[SETTLEMENT_TOKEN] > 0
        assert hook.flush_proceeds(pool_id) == {}
        assert yield_venue.deposit.call_count == 2

    def test_native_settlement_deposit_sends_value(self, venue, yield_venue, verifier):
        key = PoolKey(ZERO_ADDRESS, LICENSE_TOKEN, 3000, TICK_SPACING, HOOK_ADDRESS)
        binding = CampaignBinding(key, LICENSE_TOKEN, CAMPAIGN_ID, PATENT_ID)
        hook = EpochLiquidityHook(venue, yield_venue, verifier, HOOK_ADDRESS)
        hook.initialize_state(binding, single_epoch(Position(-1200, -600, 10**18)))
        hook.state(binding.pool_id).pending_proceeds[ZERO_ADDRESS] = 500

        assert hook.flush_proceeds(binding.pool_id) == {ZERO_ADDRESS: 500}
        assert yield_venue.approvals == []
        assert yield_venue.deposits == [(CAMPAIGN_ID, ZERO_ADDRESS, 500, 500)]


class TestWithdrawYield:
    def test_refused_while_active(self, hook, pool_id):
        with pytest.raises(CampaignStillActive):
            hook.withdraw_yield(pool_id, now=CAMPAIGN_START + HOUR)

    def test_after_end(self, hook, pool_id, yield_venue):
        yield_venue.withdraw_amount = 1234
        amount = hook.withdraw_yield(pool_id, now=CAMPAIGN_START + 3 * HOUR)

        assert amount == 1234
        assert yield_venue.withdrawals == [(CAMPAIGN_ID, SETTLEMENT_TOKEN, HOOK_ADDRESS)]
        assert hook.state(pool_id).yield_withdrawn == {SETTLEMENT_TOKEN: 1234}

    def test_retries_transient_failures(self, hook, pool_id, yield_venue):
        yield_venue.withdraw = MagicMock(side_effect=[YieldVenueError("busy"), 99])
        amount = hook.withdraw_yield(
            pool_id, now=CAMPAIGN_START + 3 * HOUR, recipient=TRADER
        )
        assert amount == 99
        assert yield_venue.withdraw.call_count == 2
        yield_venue.withdraw.assert_called_with(CAMPAIGN_ID, SETTLEMENT_TOKEN, TRADER)
