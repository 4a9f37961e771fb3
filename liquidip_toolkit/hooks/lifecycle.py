"""
Epoch liquidity hook: the position lifecycle of a plaintext campaign.

The hook sits in front of every trade on a campaign pool. Trades are only
allowed to buy the license token with exact input during the campaign.
The first trade of an epoch activates it:

1. re-check the patent backing the license token
2. withdraw every live range of earlier epochs, in epoch order
3. accrue settlement-asset proceeds and returned license tokens
4. anchor the price at the epoch's starting tick
5. place the epoch's ranges and pay for them
6. commit the new pool state, then flush proceeds to the yield venue

Steps 1-5 run against a staged copy of the pool state that replaces the
live one only once every venue call succeeded. The flush is best-effort;
a failed deposit stays pending for the next flush.
"""

import time
from typing import Dict, Optional, Sequence, Tuple

from eth_utils import to_checksum_address

from liquidip_toolkit.config.codec import CampaignConfigView, starting_tick_for
from liquidip_toolkit.config.models import Position
from liquidip_toolkit.epochs.scheduler import current_epoch, ensure_active
from liquidip_toolkit.hooks.interfaces import MarketVenue, PatentVerifier, YieldVenue
from liquidip_toolkit.hooks.state import LivePosition, PoolState
from liquidip_toolkit.hooks.types import (
    BalanceDelta,
    CampaignBinding,
    TradeAction,
    TradeOutcome,
    TradeParams,
)
from liquidip_toolkit.liquidity.tick_math import (
    MAX_TICK,
    MIN_TICK,
    align_to_grid,
    amount0_for_liquidity,
    amount1_for_liquidity,
    compute_liquidity,
    get_sqrt_price_at_tick,
    is_aligned,
)
from liquidip_toolkit.shared.constants import ZERO_ADDRESS, HookConstants
from liquidip_toolkit.shared.exceptions import (
    CampaignStillActive,
    ExactOutputNotSupported,
    InvalidTickRange,
    PatentBackingInvalid,
    PoolAlreadyInitialized,
    PoolNotInitialized,
    RedeemNotAllowed,
    RetryableException,
    TickNotAligned,
    YieldVenueError,
)
from liquidip_toolkit.shared.logging import get_logger
from liquidip_toolkit.shared.retry import YIELD_RETRY_CONFIG, RetryConfig

logger = get_logger(__name__)


def check_range(
    tick_lower: int, tick_upper: int, tick_spacing: int, epoch: int, position: int
) -> None:
    """Raise if a configured range is empty, out of bounds or off the grid."""
    if not MIN_TICK <= tick_lower < tick_upper <= MAX_TICK:
        raise InvalidTickRange(
            f"Position {position} of epoch {epoch} has invalid range "
            f"[{tick_lower}, {tick_upper})"
        )
    if not (is_aligned(tick_lower, tick_spacing) and is_aligned(tick_upper, tick_spacing)):
        raise TickNotAligned(
            f"Position {position} of epoch {epoch} range [{tick_lower}, "
            f"{tick_upper}) is not aligned to tick spacing {tick_spacing}"
        )


def usable_tick_bounds(tick_spacing: int) -> Tuple[int, int]:
    """Outermost ticks on the grid that stay inside the price domain."""
    upper = align_to_grid(MAX_TICK, tick_spacing)
    return -upper, upper


class EpochLiquidityHook:
    """
    Drives the epoch position lifecycle for any number of campaign pools.

    Args:
        venue: Market-making venue holding the pools
        yield_venue: Destination of settlement-asset proceeds
        patent_verifier: Confirms the license token is still backed
        address: The hook's own address (recipient of collected balances)
        anchor_liquidity: Liquidity used for the anchor maneuver
        yield_retry: Retry policy for yield withdrawals
    """

    VIEW_CLASS = CampaignConfigView

    def __init__(
        self,
        venue: MarketVenue,
        yield_venue: YieldVenue,
        patent_verifier: PatentVerifier,
        address: str,
        anchor_liquidity: Optional[int] = None,
        yield_retry: Optional[RetryConfig] = None,
    ):
        self.venue = venue
        self.yield_venue = yield_venue
        self.patent_verifier = patent_verifier
        self.address = to_checksum_address(address)
        self.anchor_liquidity = (
            anchor_liquidity
            if anchor_liquidity is not None
            else HookConstants.ANCHOR_LIQUIDITY
        )
        self.yield_retry = yield_retry or YIELD_RETRY_CONFIG

        self._bindings: Dict[bytes, CampaignBinding] = {}
        self._configs: Dict[bytes, CampaignConfigView] = {}
        self._states: Dict[bytes, PoolState] = {}

    # =========================================================================
    # SETUP / LOOKUP
    # =========================================================================

    def initialize_state(self, binding: CampaignBinding, raw_config: bytes):
        """
        Validate a campaign config and attach it to the binding's pool.

        Raises:
            PoolAlreadyInitialized: The pool already carries a campaign
            ConfigFormatError: The bytes break a format invariant
            InvalidTickRange, TickNotAligned: A range does not fit the pool
        """
        pool_id = bytes(binding.pool_id)
        if pool_id in self._configs:
            raise PoolAlreadyInitialized(
                f"Pool 0x{pool_id.hex()} already has a campaign config"
            )

        view = self.VIEW_CLASS(raw_config).validate()
        self._check_ranges(binding, view)

        state = PoolState()
        self._on_initialized(view, state)

        self._bindings[pool_id] = binding
        self._configs[pool_id] = view
        self._states[pool_id] = state

        logger.info(
            "Initialized campaign %s on pool 0x%s: %d epochs from %d to %d",
            binding.campaign_id,
            pool_id.hex(),
            view.num_epochs(),
            view.starting_time(),
            view.ending_time(),
        )
        return view

    def _check_ranges(self, binding: CampaignBinding, view) -> None:
        spacing = binding.pool_key.tick_spacing
        for epoch in range(view.num_epochs()):
            for index, position in enumerate(view.positions(epoch)):
                check_range(
                    position.tick_lower, position.tick_upper, spacing, epoch, index
                )

    def _on_initialized(self, view: CampaignConfigView, state: PoolState) -> None:
        """Runs on the fresh state before the pool is registered."""

    def _lookup(self, pool_id: bytes):
        pool_id = bytes(pool_id)
        if pool_id not in self._configs:
            raise PoolNotInitialized(f"Pool 0x{pool_id.hex()} has no campaign config")
        return self._bindings[pool_id], self._configs[pool_id], self._states[pool_id]

    def binding(self, pool_id: bytes) -> CampaignBinding:
        return self._lookup(pool_id)[0]

    def config(self, pool_id: bytes):
        return self._lookup(pool_id)[1]

    def state(self, pool_id: bytes) -> PoolState:
        return self._lookup(pool_id)[2]

    def current_epoch(self, pool_id: bytes, now: Optional[int] = None) -> int:
        return current_epoch(self.config(pool_id), self._now(now))

    @staticmethod
    def _now(now: Optional[int]) -> int:
        return int(time.time()) if now is None else int(now)

    def _commit(self, pool_id: bytes, staged: PoolState) -> None:
        self._states[bytes(pool_id)] = staged

    # =========================================================================
    # TRADE ENTRY POINT
    # =========================================================================

    def before_trade(
        self,
        pool_id: bytes,
        sender: str,
        params: TradeParams,
        now: Optional[int] = None,
    ) -> TradeOutcome:
        """
        Vet a trade and activate the current epoch if needed.

        Trades issued by the hook itself (anchor maneuver, replays) pass
        straight through without any check.
        """
        pool_id = bytes(pool_id)
        binding, view, state = self._lookup(pool_id)
        if state.hook_trade_in_progress:
            return TradeOutcome(action=TradeAction.PASSTHROUGH)

        epoch = self._check_trade(binding, view, params, self._now(now))
        activated = self._ensure_applied(pool_id, epoch)
        return TradeOutcome(action=TradeAction.PROCEED, epoch=epoch, activated=activated)

    def _check_trade(self, binding: CampaignBinding, view, params: TradeParams, now: int) -> int:
        ensure_active(view, now)
        if binding.is_redeem(params.zero_for_one):
            raise RedeemNotAllowed(
                f"Campaign {binding.campaign_id} only sells the license token"
            )
        if not params.is_exact_input:
            raise ExactOutputNotSupported(
                f"Trades must be exact input, got amount {params.amount_specified}"
            )
        return current_epoch(view, now)

    def _ensure_applied(self, pool_id: bytes, epoch: int) -> bool:
        state = self._states[pool_id]
        if state.is_applied(epoch):
            return False
        if state.last_applied_epoch is not None and epoch < state.last_applied_epoch:
            logger.warning(
                "Epoch %d of pool 0x%s is older than applied epoch %d, not activating",
                epoch,
                pool_id.hex(),
                state.last_applied_epoch,
            )
            return False
        self.activate_epoch(pool_id, epoch)
        return True

    # =========================================================================
    # ACTIVATION
    # =========================================================================

    def _epoch_positions(self, pool_id: bytes, epoch: int) -> Tuple[Position, ...]:
        return self._configs[pool_id].positions(epoch)

    def activate_epoch(self, pool_id: bytes, epoch: int) -> None:
        """
        Swap the live ranges over to ``epoch``.

        Raises:
            PatentBackingInvalid: Nothing was changed
        """
        pool_id = bytes(pool_id)
        binding, _, state = self._lookup(pool_id)
        positions = self._epoch_positions(pool_id, epoch)
        spacing = binding.pool_key.tick_spacing
        for index, position in enumerate(positions):
            check_range(position.tick_lower, position.tick_upper, spacing, epoch, index)
        self._check_patent(binding)

        staged = state.staged()
        if positions:
            self._withdraw_earlier(binding, staged, epoch)
            target = starting_tick_for(positions, binding.license_is_token0)
            self._anchor_to(pool_id, binding, staged, target)
            self._place_positions(binding, staged, epoch, positions)

        staged.applied_epochs.add(epoch)
        staged.last_applied_epoch = epoch
        self._commit(pool_id, staged)

        logger.info(
            "Activated epoch %d of campaign %s with %d positions",
            epoch,
            binding.campaign_id,
            len(positions),
        )
        if staged.pending_proceeds:
            self.flush_proceeds(pool_id)

    def _check_patent(self, binding: CampaignBinding) -> None:
        if not self.patent_verifier.is_valid(binding.patent_id):
            raise PatentBackingInvalid(
                f"Patent {binding.patent_id} no longer backs license token "
                f"{binding.license_token}"
            )

    def _withdraw_earlier(self, binding: CampaignBinding, staged: PoolState, epoch: int) -> None:
        key = binding.pool_key
        delta = BalanceDelta()
        remaining = []
        for live in sorted(staged.live_positions, key=lambda p: (p.epoch, p.index)):
            if live.epoch >= epoch:
                remaining.append(live)
                continue
            delta += self.venue.place_range(
                key, live.tick_lower, live.tick_upper, -live.liquidity
            )
            logger.debug(
                "Withdrew position %d of epoch %d [%d, %d)",
                live.index,
                live.epoch,
                live.tick_lower,
                live.tick_upper,
            )
        staged.live_positions = remaining
        self._settle(binding, staged, delta)

    def _place_positions(
        self,
        binding: CampaignBinding,
        staged: PoolState,
        epoch: int,
        positions: Sequence[Position],
    ) -> None:
        key = binding.pool_key
        delta = BalanceDelta()
        for index, position in enumerate(positions):
            liquidity = compute_liquidity(
                position.tick_lower,
                position.tick_upper,
                position.amount,
                binding.license_is_token0,
            )
            if liquidity == 0:
                logger.warning(
                    "Position %d of epoch %d is too small to carry liquidity", index, epoch
                )
                continue
            delta += self.venue.place_range(
                key, position.tick_lower, position.tick_upper, liquidity
            )
            staged.live_positions.append(
                LivePosition(
                    epoch=epoch,
                    index=index,
                    tick_lower=position.tick_lower,
                    tick_upper=position.tick_upper,
                    liquidity=liquidity,
                )
            )
        self._settle(binding, staged, delta)

    def _anchor_to(
        self, pool_id: bytes, binding: CampaignBinding, staged: PoolState, target_tick: int
    ) -> None:
        """
        Move the pool price to ``target_tick`` with a throwaway range.

        Deposits anchor liquidity over a grid range covering both the current
        and the target tick, trades exact input up to the target price, then
        withdraws the same liquidity.
        """
        key = binding.pool_key
        price = self.venue.current_price(key)
        target_sqrt = get_sqrt_price_at_tick(target_tick)
        if price.sqrt_price_x96 == target_sqrt:
            return

        zero_for_one = target_sqrt < price.sqrt_price_x96
        min_tick, max_tick = usable_tick_bounds(key.tick_spacing)
        lower = max(
            min_tick, align_to_grid(min(price.tick, target_tick), key.tick_spacing)
        )
        upper = min(
            max_tick,
            align_to_grid(max(price.tick, target_tick), key.tick_spacing)
            + key.tick_spacing,
        )
        liquidity = self.anchor_liquidity
        if zero_for_one:
            amount_in = amount0_for_liquidity(target_sqrt, price.sqrt_price_x96, liquidity)
        else:
            amount_in = amount1_for_liquidity(price.sqrt_price_x96, target_sqrt, liquidity)
        # rounding slack; the price limit stops the trade at the target
        amount_in += 1

        live = self._states[pool_id]
        live.anchor_in_progress = True
        try:
            delta = self.venue.place_range(key, lower, upper, liquidity)
            delta += self.venue.execute_trade(key, zero_for_one, -amount_in, target_sqrt)
            delta += self.venue.place_range(key, lower, upper, -liquidity)
        finally:
            live.anchor_in_progress = False

        logger.debug(
            "Anchored pool 0x%s from tick %d to %d", pool_id.hex(), price.tick, target_tick
        )
        self._settle(binding, staged, delta)

    # =========================================================================
    # BALANCES / PROCEEDS
    # =========================================================================

    def _settle(
        self,
        binding: CampaignBinding,
        staged: PoolState,
        delta: BalanceDelta,
        recipient: Optional[str] = None,
    ) -> None:
        """
        Net-settle a delta with the venue.

        Debts are paid; credits are collected to ``recipient``, or to the hook
        itself where they accrue as proceeds or unsold inventory.
        """
        key = binding.pool_key
        for is_token0, asset in ((True, key.currency0), (False, key.currency1)):
            amount = delta.of(is_token0)
            if amount < 0:
                self.venue.settle_owed(asset, -amount)
            elif amount > 0:
                self.venue.collect_owed(asset, amount, recipient or self.address)
                if recipient is None:
                    self._accrue(binding, staged, asset, amount)

    def _accrue(self, binding: CampaignBinding, staged: PoolState, asset: str, amount: int) -> None:
        if asset == binding.license_token:
            staged.unsold_inventory += amount
        else:
            staged.credit(staged.pending_proceeds, asset, amount)

    def flush_proceeds(self, pool_id: bytes) -> Dict[str, int]:
        """
        Deposit accrued proceeds into the yield venue.

        Returns what was deposited per asset. A failed deposit stays pending
        for the next flush and never raises, so a committed activation is
        never reported as failed.
        """
        pool_id = bytes(pool_id)
        binding, _, state = self._lookup(pool_id)
        flushed: Dict[str, int] = {}
        for asset, amount in list(state.pending_proceeds.items()):
            if amount <= 0:
                continue
            try:
                self._deposit(binding, asset, amount)
            except RetryableException as e:
                logger.warning(
                    "Yield deposit of %d %s for campaign %s failed, keeping it pending: %s",
                    amount,
                    asset,
                    binding.campaign_id,
                    e,
                )
                continue
            state.credit(state.pending_proceeds, asset, -amount)
            state.credit(state.deposited, asset, amount)
            flushed[asset] = amount
            logger.info(
                "Deposited %d %s for campaign %s", amount, asset, binding.campaign_id
            )
        return flushed

    def _deposit(self, binding: CampaignBinding, asset: str, amount: int) -> None:
        try:
            if asset == ZERO_ADDRESS:
                self.yield_venue.deposit(
                    binding.campaign_id, asset, amount, value=amount
                )
            else:
                self.yield_venue.approve(asset, amount)
                self.yield_venue.deposit(binding.campaign_id, asset, amount)
        except RetryableException:
            raise
        except Exception as e:
            # reverts surface as arbitrary errors from the venue client
            raise YieldVenueError(
                f"Yield venue rejected deposit of {amount} {asset} "
                f"for campaign {binding.campaign_id}: {e}"
            ) from e

    def withdraw_yield(
        self, pool_id: bytes, now: Optional[int] = None, recipient: Optional[str] = None
    ) -> int:
        """Redeem the campaign's deposits plus yield once it has ended."""
        pool_id = bytes(pool_id)
        binding, view, state = self._lookup(pool_id)
        now = self._now(now)
        if now < view.ending_time():
            raise CampaignStillActive(
                f"Campaign {binding.campaign_id} ends at {view.ending_time()}, now is {now}"
            )

        asset = binding.settlement_token
        amount = self.yield_retry.call(
            self.yield_venue.withdraw,
            binding.campaign_id,
            asset,
            recipient or self.address,
        )
        state.credit(state.yield_withdrawn, asset, amount)
        logger.info(
            "Withdrew %d %s of yield for campaign %s", amount, asset, binding.campaign_id
        )
        return amount
