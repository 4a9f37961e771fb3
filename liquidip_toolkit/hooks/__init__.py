"""Epoch liquidity hooks and the types they exchange with their venues."""

from .deferred import DeferredStatus, DeferredTradeManager
from .encrypted_lifecycle import EncryptedEpochLiquidityHook
from .lifecycle import EpochLiquidityHook
from .state import LivePosition, PendingTrade, PoolState
from .types import (
    BalanceDelta,
    CampaignBinding,
    PoolKey,
    PriceState,
    TradeAction,
    TradeOutcome,
    TradeParams,
)

__all__ = [
    "BalanceDelta",
    "CampaignBinding",
    "DeferredStatus",
    "DeferredTradeManager",
    "EncryptedEpochLiquidityHook",
    "EpochLiquidityHook",
    "LivePosition",
    "PendingTrade",
    "PoolKey",
    "PoolState",
    "PriceState",
    "TradeAction",
    "TradeOutcome",
    "TradeParams",
]
