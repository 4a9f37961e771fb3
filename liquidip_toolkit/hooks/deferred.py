"""
Deferred trades for encrypted campaigns.

Position fields of an encrypted campaign stay unusable until the decryption
oracle resolves them. Trades arriving in the meantime are accepted with
their input held by the hook, parked in a single per-pool slot, and replayed
by the first trade after resolution.

Per pool the slot moves NO_PENDING -> AWAITING_DECRYPTION -> RESOLVED and
back to NO_PENDING once the replay settled.
"""

from enum import Enum
from typing import Dict, List, Optional, Tuple

from eth_utils import to_checksum_address

from liquidip_toolkit.config.encrypted_codec import EncryptedCampaignConfigView
from liquidip_toolkit.config.models import Position
from liquidip_toolkit.hooks.interfaces import DecryptionOracle
from liquidip_toolkit.hooks.state import PendingTrade, PoolState
from liquidip_toolkit.hooks.types import TradeParams
from liquidip_toolkit.shared.constants import HookConstants
from liquidip_toolkit.shared.exceptions import (
    DecryptionNotReady,
    PendingTradeSlotOccupied,
    UnauthorizedCaller,
)
from liquidip_toolkit.shared.logging import get_logger

logger = get_logger(__name__)

_INT24_SIGN_BIT = 1 << 23
_INT24_MASK = (1 << 24) - 1


def to_signed_int24(value: int) -> int:
    """Interpret a decrypted 24-bit tick as two's complement."""
    value &= _INT24_MASK
    if value & _INT24_SIGN_BIT:
        return value - (1 << 24)
    return value


class DeferredStatus(Enum):
    NO_PENDING = "no_pending"
    AWAITING_DECRYPTION = "awaiting_decryption"
    RESOLVED = "resolved"


class DeferredTradeManager:
    """
    Decryption requests, readiness checks and the pending-trade slot.

    ``batch_atomic`` trusts the oracle to resolve every field requested for
    an epoch together, so readiness probes only the last field of the last
    position. Without it every field is checked.

    Results pushed through ``on_decryption_result`` are only accepted from
    ``trusted_caller`` and take precedence over polling the oracle.
    """

    def __init__(
        self,
        oracle: DecryptionOracle,
        trusted_caller: str,
        batch_atomic: Optional[bool] = None,
    ):
        self.oracle = oracle
        self.trusted_caller = to_checksum_address(trusted_caller)
        self.batch_atomic = (
            HookConstants.DECRYPTION_BATCH_ATOMIC if batch_atomic is None else batch_atomic
        )
        self._pushed: Dict[int, int] = {}

    # -------------------------------------------------------------------------
    # Decryption
    # -------------------------------------------------------------------------

    def request_epoch(
        self, view: EncryptedCampaignConfigView, state: PoolState, epoch: int
    ) -> bool:
        """Request every field of an epoch once. Returns False if nothing was sent."""
        if epoch in state.decryption_requested or not 0 <= epoch < view.num_epochs():
            return False

        requested = 0
        for position in view.positions(epoch):
            for field in position.fields:
                self.oracle.request_decryption(field.handle)
                requested += 1
        state.decryption_requested.add(epoch)
        logger.debug("Requested decryption of %d fields for epoch %d", requested, epoch)
        return True

    def _probe_handles(self, view: EncryptedCampaignConfigView, epoch: int) -> List[int]:
        count = view.num_positions(epoch)
        if count == 0:
            return []
        if self.batch_atomic:
            return [view.amount_allocated(epoch, count - 1).handle]
        return [
            field.handle
            for position in view.positions(epoch)
            for field in position.fields
        ]

    def is_resolved(self, handle: int) -> bool:
        return handle in self._pushed or self.oracle.is_resolved(handle)

    def is_epoch_ready(self, view: EncryptedCampaignConfigView, epoch: int) -> bool:
        return all(self.is_resolved(h) for h in self._probe_handles(view, epoch))

    def read(self, handle: int) -> int:
        if handle in self._pushed:
            return self._pushed[handle]
        if not self.oracle.is_resolved(handle):
            raise DecryptionNotReady(f"Handle {hex(handle)} is not resolved yet")
        return int(self.oracle.read_resolved(handle))

    def decrypted_positions(
        self, view: EncryptedCampaignConfigView, epoch: int
    ) -> Tuple[Position, ...]:
        return tuple(
            Position(
                tick_lower=to_signed_int24(self.read(position.tick_lower.handle)),
                tick_upper=to_signed_int24(self.read(position.tick_upper.handle)),
                amount=self.read(position.amount.handle),
            )
            for position in view.positions(epoch)
        )

    def on_decryption_result(self, caller: str, handle: int, plaintext: int) -> None:
        if to_checksum_address(caller) != self.trusted_caller:
            raise UnauthorizedCaller(
                f"{caller} may not deliver decryption results"
            )
        self._pushed[int(handle)] = int(plaintext)

    # -------------------------------------------------------------------------
    # Pending-trade slot
    # -------------------------------------------------------------------------

    def status(self, view: EncryptedCampaignConfigView, state: PoolState) -> DeferredStatus:
        if state.pending_trade is None:
            return DeferredStatus.NO_PENDING
        if self.is_epoch_ready(view, state.pending_trade.epoch):
            return DeferredStatus.RESOLVED
        return DeferredStatus.AWAITING_DECRYPTION

    def defer(
        self,
        state: PoolState,
        sender: str,
        params: TradeParams,
        epoch: int,
        input_asset: str,
    ) -> PendingTrade:
        """Park a trade in the slot; a second one is refused while it is occupied."""
        if state.pending_trade is not None:
            raise PendingTradeSlotOccupied(
                f"Trade from {state.pending_trade.sender} for epoch "
                f"{state.pending_trade.epoch} is still awaiting decryption"
            )
        pending = PendingTrade(
            sender=sender,
            zero_for_one=params.zero_for_one,
            amount_specified=params.amount_specified,
            sqrt_price_limit_x96=params.sqrt_price_limit_x96,
            epoch=epoch,
            input_asset=input_asset,
        )
        state.pending_trade = pending
        return pending

    def take_pending(self, state: PoolState) -> PendingTrade:
        pending = state.pending_trade
        if pending is None:
            raise ValueError("No pending trade to take")
        state.pending_trade = None
        return pending
