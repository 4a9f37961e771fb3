"""
Type definitions for the epoch liquidity hook.

Balance deltas are always seen from the hook's side: a negative component
is owed by the hook to the venue, a positive one is owed to the hook.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from eth_abi import encode
from eth_utils import is_address, keccak, to_checksum_address
from hexbytes import HexBytes

from liquidip_toolkit.shared.constants import ZERO_ADDRESS

# =============================================================================
# POOL IDENTITY
# =============================================================================


@dataclass(frozen=True)
class PoolKey:
    """Two-asset pool identity, currencies sorted by address."""

    currency0: str
    currency1: str
    fee: int  # uint24, hundredths of a bip
    tick_spacing: int
    hooks: str = ZERO_ADDRESS

    def __post_init__(self):
        for name in ("currency0", "currency1", "hooks"):
            value = getattr(self, name)
            if not is_address(value):
                raise ValueError(f"{name} is not a valid address: {value}")
            object.__setattr__(self, name, to_checksum_address(value))
        if int(self.currency0, 16) >= int(self.currency1, 16):
            raise ValueError("currency0 must sort strictly before currency1")
        if self.tick_spacing <= 0:
            raise ValueError(f"Tick spacing must be positive, got {self.tick_spacing}")

    @property
    def pool_id(self) -> HexBytes:
        """keccak256 of the ABI-encoded key, matching the venue's pool id."""
        return HexBytes(
            keccak(
                encode(
                    ["address", "address", "uint24", "int24", "address"],
                    [
                        self.currency0,
                        self.currency1,
                        self.fee,
                        self.tick_spacing,
                        self.hooks,
                    ],
                )
            )
        )


@dataclass(frozen=True)
class CampaignBinding:
    """Links a pool to the campaign selling a license token through it."""

    pool_key: PoolKey
    license_token: str
    campaign_id: int
    patent_id: int

    def __post_init__(self):
        token = to_checksum_address(self.license_token)
        if token not in (self.pool_key.currency0, self.pool_key.currency1):
            raise ValueError(f"License token {token} is not a currency of the pool")
        object.__setattr__(self, "license_token", token)

    @property
    def pool_id(self) -> HexBytes:
        return self.pool_key.pool_id

    @property
    def license_is_token0(self) -> bool:
        return self.license_token == self.pool_key.currency0

    @property
    def settlement_token(self) -> str:
        if self.license_is_token0:
            return self.pool_key.currency1
        return self.pool_key.currency0

    def is_redeem(self, zero_for_one: bool) -> bool:
        """True when a trade in this direction sells the license token."""
        return zero_for_one == self.license_is_token0


# =============================================================================
# VENUE VALUES
# =============================================================================


@dataclass(frozen=True)
class BalanceDelta:
    amount0: int = 0
    amount1: int = 0

    def __add__(self, other: "BalanceDelta") -> "BalanceDelta":
        return BalanceDelta(self.amount0 + other.amount0, self.amount1 + other.amount1)

    def of(self, is_token0: bool) -> int:
        return self.amount0 if is_token0 else self.amount1

    @property
    def is_zero(self) -> bool:
        return self.amount0 == 0 and self.amount1 == 0


@dataclass(frozen=True)
class PriceState:
    sqrt_price_x96: int
    tick: int


# =============================================================================
# TRADES
# =============================================================================


@dataclass(frozen=True)
class TradeParams:
    """
    A trade request as seen by the hook.

    ``amount_specified`` follows the venue convention: negative for exact
    input, positive for exact output.
    """

    zero_for_one: bool
    amount_specified: int
    sqrt_price_limit_x96: int = 0

    @property
    def is_exact_input(self) -> bool:
        return self.amount_specified < 0


class TradeAction(Enum):
    PASSTHROUGH = "passthrough"  # hook-initiated trade re-entering the hook
    PROCEED = "proceed"  # trade executes against live positions
    DEFERRED = "deferred"  # input custodied, settlement deferred


@dataclass(frozen=True)
class TradeOutcome:
    """
    What the hook decided for one trade.

    For deferred trades ``specified_delta`` reports the whole input as
    consumed and ``unspecified_delta`` is zero, so the trader ends up with
    no open claim against the venue.
    """

    action: TradeAction
    epoch: Optional[int] = None
    activated: bool = False
    replayed: bool = False
    specified_delta: int = 0
    unspecified_delta: int = 0
