"""
Epoch liquidity hook for encrypted campaigns.

Same lifecycle as the plaintext hook, except an epoch can only activate
once its ciphertexts resolved. Until then trades are deferred through the
DeferredTradeManager and replayed by the next trade after resolution.
"""

from typing import Optional, Tuple

from liquidip_toolkit.config.encrypted_codec import EncryptedCampaignConfigView
from liquidip_toolkit.config.models import Position
from liquidip_toolkit.hooks.deferred import DeferredTradeManager
from liquidip_toolkit.hooks.interfaces import (
    DecryptionOracle,
    MarketVenue,
    PatentVerifier,
    YieldVenue,
)
from liquidip_toolkit.hooks.lifecycle import EpochLiquidityHook
from liquidip_toolkit.hooks.state import PoolState
from liquidip_toolkit.hooks.types import (
    BalanceDelta,
    CampaignBinding,
    TradeAction,
    TradeOutcome,
    TradeParams,
)
from liquidip_toolkit.shared.logging import get_logger
from liquidip_toolkit.shared.retry import RetryConfig

logger = get_logger(__name__)


class EncryptedEpochLiquidityHook(EpochLiquidityHook):
    """
    Args:
        oracle: Decryption oracle polled for position fields
        trusted_caller: Only address allowed to push decryption results
            (defaults to the hook's own address)
        batch_atomic: Readiness probing mode, see DeferredTradeManager
    """

    VIEW_CLASS = EncryptedCampaignConfigView

    def __init__(
        self,
        venue: MarketVenue,
        yield_venue: YieldVenue,
        patent_verifier: PatentVerifier,
        oracle: DecryptionOracle,
        address: str,
        trusted_caller: Optional[str] = None,
        batch_atomic: Optional[bool] = None,
        anchor_liquidity: Optional[int] = None,
        yield_retry: Optional[RetryConfig] = None,
    ):
        super().__init__(
            venue,
            yield_venue,
            patent_verifier,
            address,
            anchor_liquidity=anchor_liquidity,
            yield_retry=yield_retry,
        )
        self.deferred = DeferredTradeManager(
            oracle, trusted_caller or address, batch_atomic=batch_atomic
        )

    # Ticks are ciphertexts until activation, which checks them instead
    def _check_ranges(self, binding: CampaignBinding, view) -> None:
        pass

    def _on_initialized(
        self, view: EncryptedCampaignConfigView, state: PoolState
    ) -> None:
        self.deferred.request_epoch(view, state, 0)

    def _epoch_positions(self, pool_id: bytes, epoch: int) -> Tuple[Position, ...]:
        return self.deferred.decrypted_positions(self._configs[pool_id], epoch)

    def activate_epoch(self, pool_id: bytes, epoch: int) -> None:
        super().activate_epoch(pool_id, epoch)
        pool_id = bytes(pool_id)
        # prefetch so the next epoch is likely resolved when it opens
        self.deferred.request_epoch(
            self._configs[pool_id], self._states[pool_id], epoch + 1
        )

    def on_decryption_result(self, caller: str, handle: int, plaintext: int) -> None:
        """Push-style oracle callback, restricted to the trusted caller."""
        self.deferred.on_decryption_result(caller, handle, plaintext)

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
        pool_id = bytes(pool_id)
        binding, view, state = self._lookup(pool_id)
        if state.hook_trade_in_progress:
            return TradeOutcome(action=TradeAction.PASSTHROUGH)

        epoch = self._check_trade(binding, view, params, self._now(now))
        self.deferred.request_epoch(view, state, epoch)

        replayed = False
        pending = state.pending_trade
        if pending is not None and self.deferred.is_epoch_ready(view, pending.epoch):
            self._replay_pending(pool_id)
            replayed = True

        state = self._states[pool_id]
        if state.is_applied(epoch):
            return TradeOutcome(
                action=TradeAction.PROCEED, epoch=epoch, replayed=replayed
            )
        if self.deferred.is_epoch_ready(view, epoch):
            activated = self._ensure_applied(pool_id, epoch)
            return TradeOutcome(
                action=TradeAction.PROCEED,
                epoch=epoch,
                activated=activated,
                replayed=replayed,
            )
        return self._defer(pool_id, binding, sender, params, epoch, replayed)

    def _defer(
        self,
        pool_id: bytes,
        binding: CampaignBinding,
        sender: str,
        params: TradeParams,
        epoch: int,
        replayed: bool,
    ) -> TradeOutcome:
        staged = self._states[pool_id].staged()
        pending = self.deferred.defer(
            staged, sender, params, epoch, binding.settlement_token
        )
        self.venue.collect_owed(pending.input_asset, pending.input_amount, self.address)
        staged.credit(staged.custody, pending.input_asset, pending.input_amount)
        self._commit(pool_id, staged)

        logger.info(
            "Deferred trade of %d %s from %s until epoch %d decrypts",
            pending.input_amount,
            pending.input_asset,
            sender,
            epoch,
        )
        return TradeOutcome(
            action=TradeAction.DEFERRED,
            epoch=epoch,
            replayed=replayed,
            specified_delta=pending.input_amount,
            unspecified_delta=0,
        )

    def _replay_pending(self, pool_id: bytes) -> None:
        """
        Execute the parked trade against the pool for its original sender.

        The pending trade's epoch is activated first unless a later epoch
        already is. The whole custodied input is paid in; the trade output
        and any unspent input go to the sender.
        """
        binding, _, state = self._lookup(pool_id)
        pending = state.pending_trade
        if not state.is_applied(pending.epoch):
            self._ensure_applied(pool_id, pending.epoch)
            state = self._states[pool_id]

        key = binding.pool_key
        input_is_token0 = pending.input_asset == key.currency0
        output_asset = key.currency1 if input_is_token0 else key.currency0

        state.replay_in_progress = True
        try:
            delta = self.venue.execute_trade(
                key,
                pending.zero_for_one,
                pending.amount_specified,
                pending.sqrt_price_limit_x96,
            )
        finally:
            state.replay_in_progress = False

        staged = state.staged()
        self.deferred.take_pending(staged)
        self.venue.settle_owed(pending.input_asset, pending.input_amount)
        staged.credit(staged.custody, pending.input_asset, -pending.input_amount)

        # custodied input now sits with the venue as a credit to the hook
        spent = -delta.of(input_is_token0)
        refund = pending.input_amount - spent
        output = delta.of(not input_is_token0)
        payout = BalanceDelta(
            amount0=refund if input_is_token0 else output,
            amount1=output if input_is_token0 else refund,
        )
        self._settle(binding, staged, payout, recipient=pending.sender)
        self._commit(pool_id, staged)

        logger.info(
            "Replayed deferred trade from %s: %d %s in, %d %s out",
            pending.sender,
            spent,
            pending.input_asset,
            output,
            output_asset,
        )
