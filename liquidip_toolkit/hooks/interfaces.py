"""Collaborators the hook drives but does not implement."""

from typing import Protocol

from liquidip_toolkit.hooks.types import BalanceDelta, PoolKey, PriceState


class MarketVenue(Protocol):
    def place_range(
        self, key: PoolKey, tick_lower: int, tick_upper: int, liquidity_delta: int
    ) -> BalanceDelta:
        """Add (positive delta) or remove (negative delta) range liquidity."""

    def current_price(self, key: PoolKey) -> PriceState:
        """Return the pool's current square-root price and tick."""

    def execute_trade(
        self,
        key: PoolKey,
        zero_for_one: bool,
        amount_specified: int,
        sqrt_price_limit_x96: int,
    ) -> BalanceDelta:
        """Trade on behalf of the hook and return the hook's balance delta."""

    def settle_owed(self, asset: str, amount: int) -> None:
        """Pay ``amount`` of ``asset`` owed by the hook to the venue."""

    def collect_owed(self, asset: str, amount: int, recipient: str) -> None:
        """Take ``amount`` of ``asset`` owed to the hook, sending it to ``recipient``."""


class DecryptionOracle(Protocol):
    def request_decryption(self, handle: int) -> None:
        """Fire-and-forget decryption request."""

    def is_resolved(self, handle: int) -> bool:
        """Non-blocking readiness check."""

    def read_resolved(self, handle: int) -> int:
        """Plaintext of a resolved handle."""


class YieldVenue(Protocol):
    def approve(self, asset: str, amount: int) -> None:
        """Allow the venue to pull ``amount`` of a non-native asset."""

    def deposit(self, campaign_id: int, asset: str, amount: int, value: int = 0) -> None:
        """Deposit proceeds for a campaign; native deposits pass ``value``."""

    def withdraw(self, campaign_id: int, asset: str, recipient: str) -> int:
        """Redeem principal plus yield, returning the amount sent."""


class PatentVerifier(Protocol):
    def is_valid(self, patent_id: int) -> bool:
        """Whether the patent still backs its license token."""
