"""Per-pool mutable state of the epoch liquidity hook."""

import copy
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Set


@dataclass(frozen=True)
class LivePosition:
    """A configured range currently deposited in the venue."""

    epoch: int
    index: int
    tick_lower: int
    tick_upper: int
    liquidity: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "epoch": self.epoch,
            "index": self.index,
            "tick_lower": self.tick_lower,
            "tick_upper": self.tick_upper,
            "liquidity": str(self.liquidity),
        }


@dataclass(frozen=True)
class PendingTrade:
    """A trade accepted during an unresolved epoch, input held by the hook."""

    sender: str
    zero_for_one: bool
    amount_specified: int
    sqrt_price_limit_x96: int
    epoch: int
    input_asset: str

    @property
    def input_amount(self) -> int:
        return -self.amount_specified

    def to_dict(self) -> Dict[str, Any]:
        return {
            "sender": self.sender,
            "zero_for_one": self.zero_for_one,
            "amount_specified": str(self.amount_specified),
            "sqrt_price_limit_x96": str(self.sqrt_price_limit_x96),
            "epoch": self.epoch,
            "input_asset": self.input_asset,
        }


@dataclass
class PoolState:
    applied_epochs: Set[int] = field(default_factory=set)
    last_applied_epoch: Optional[int] = None
    live_positions: List[LivePosition] = field(default_factory=list)

    # Settlement-asset proceeds waiting for the yield venue, and what got there
    pending_proceeds: Dict[str, int] = field(default_factory=dict)
    deposited: Dict[str, int] = field(default_factory=dict)
    yield_withdrawn: Dict[str, int] = field(default_factory=dict)
    # License tokens returned by withdrawn ranges
    unsold_inventory: int = 0

    anchor_in_progress: bool = False
    replay_in_progress: bool = False

    # Private variant only
    decryption_requested: Set[int] = field(default_factory=set)
    pending_trade: Optional[PendingTrade] = None
    custody: Dict[str, int] = field(default_factory=dict)

    def is_applied(self, epoch: int) -> bool:
        return epoch in self.applied_epochs

    @property
    def hook_trade_in_progress(self) -> bool:
        return self.anchor_in_progress or self.replay_in_progress

    def staged(self) -> "PoolState":
        """Independent copy to mutate during an all-or-nothing transition."""
        return copy.deepcopy(self)

    def credit(self, ledger: Dict[str, int], asset: str, amount: int) -> None:
        ledger[asset] = ledger.get(asset, 0) + amount
        if ledger[asset] == 0:
            del ledger[asset]

    def to_payload(self) -> Dict[str, Any]:
        return {
            "applied_epochs": sorted(self.applied_epochs),
            "last_applied_epoch": self.last_applied_epoch,
            "live_positions": [p.to_dict() for p in self.live_positions],
            "pending_proceeds": {k: str(v) for k, v in self.pending_proceeds.items()},
            "deposited": {k: str(v) for k, v in self.deposited.items()},
            "yield_withdrawn": {k: str(v) for k, v in self.yield_withdrawn.items()},
            "unsold_inventory": str(self.unsold_inventory),
            "decryption_requested": sorted(self.decryption_requested),
            "pending_trade": (
                self.pending_trade.to_dict() if self.pending_trade else None
            ),
            "custody": {k: str(v) for k, v in self.custody.items()},
        }
