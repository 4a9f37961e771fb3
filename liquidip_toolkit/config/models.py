"""
Type definitions for campaign configs.

Plain models that the codecs encode from and decode into. Nothing here
touches bytes; the binary layout lives in ``codec`` and ``encrypted_codec``.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Tuple

from hexbytes import HexBytes

# =============================================================================
# PLAINTEXT VARIANT
# =============================================================================


@dataclass(frozen=True)
class Position:
    """One concentrated-liquidity deposit of the license token."""

    tick_lower: int  # int24, on the pool's tick grid
    tick_upper: int  # int24, on the pool's tick grid
    amount: int  # uint128, license token units

    def to_dict(self) -> Dict[str, Any]:
        return {
            "tick_lower": self.tick_lower,
            "tick_upper": self.tick_upper,
            "amount": str(self.amount),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Position":
        return cls(
            tick_lower=int(data["tick_lower"]),
            tick_upper=int(data["tick_upper"]),
            amount=int(data["amount"]),
        )


@dataclass(frozen=True)
class Epoch:
    """A time window with a fixed set of positions."""

    duration: int  # seconds, uint32
    positions: Tuple[Position, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "duration": self.duration,
            "positions": [p.to_dict() for p in self.positions],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Epoch":
        return cls(
            duration=int(data["duration"]),
            positions=tuple(
                Position.from_dict(p) for p in data.get("positions", [])
            ),
        )


@dataclass(frozen=True)
class CampaignConfig:
    """
    Full plaintext campaign description.

    Total supply is not stored; it is the sum of every position amount.
    """

    starting_time: int  # unix seconds, uint64
    epochs: Tuple[Epoch, ...] = ()

    @property
    def ending_time(self) -> int:
        return self.starting_time + sum(e.duration for e in self.epochs)

    @property
    def total_tokens_to_sell(self) -> int:
        return sum(p.amount for e in self.epochs for p in e.positions)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "variant": "public",
            "starting_time": self.starting_time,
            "epochs": [e.to_dict() for e in self.epochs],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CampaignConfig":
        return cls(
            starting_time=int(data["starting_time"]),
            epochs=tuple(Epoch.from_dict(e) for e in data["epochs"]),
        )


# =============================================================================
# ENCRYPTED VARIANT
# =============================================================================


@dataclass(frozen=True)
class EncryptedInput:
    """
    One ciphertext record as submitted to the FHE coprocessor.

    ``ct_hash`` doubles as the handle the decryption oracle is asked about.
    """

    ct_hash: HexBytes  # 32 bytes
    security_zone: int  # uint8
    utype: int  # uint8
    signature: HexBytes = field(default_factory=lambda: HexBytes(b""))

    def __post_init__(self):
        object.__setattr__(self, "ct_hash", HexBytes(self.ct_hash))
        object.__setattr__(self, "signature", HexBytes(self.signature))

    @property
    def handle(self) -> int:
        return int.from_bytes(self.ct_hash, byteorder="big")

    @property
    def encoded_size(self) -> int:
        return 32 + 1 + 1 + 2 + len(self.signature)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "ct_hash": "0x" + bytes(self.ct_hash).hex(),
            "security_zone": self.security_zone,
            "utype": self.utype,
            "signature": "0x" + bytes(self.signature).hex(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "EncryptedInput":
        return cls(
            ct_hash=HexBytes(data["ct_hash"]),
            security_zone=int(data.get("security_zone", 0)),
            utype=int(data["utype"]),
            signature=HexBytes(data.get("signature", "0x")),
        )


@dataclass(frozen=True)
class EncryptedPosition:
    tick_lower: EncryptedInput
    tick_upper: EncryptedInput
    amount: EncryptedInput

    @property
    def fields(self) -> Tuple[EncryptedInput, EncryptedInput, EncryptedInput]:
        """Fields in wire (and decryption request) order."""
        return (self.tick_lower, self.tick_upper, self.amount)

    @property
    def encoded_size(self) -> int:
        return sum(f.encoded_size for f in self.fields)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "tick_lower": self.tick_lower.to_dict(),
            "tick_upper": self.tick_upper.to_dict(),
            "amount": self.amount.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "EncryptedPosition":
        return cls(
            tick_lower=EncryptedInput.from_dict(data["tick_lower"]),
            tick_upper=EncryptedInput.from_dict(data["tick_upper"]),
            amount=EncryptedInput.from_dict(data["amount"]),
        )


@dataclass(frozen=True)
class EncryptedEpoch:
    duration: int
    positions: Tuple[EncryptedPosition, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "duration": self.duration,
            "positions": [p.to_dict() for p in self.positions],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "EncryptedEpoch":
        return cls(
            duration=int(data["duration"]),
            positions=tuple(
                EncryptedPosition.from_dict(p)
                for p in data.get("positions", [])
            ),
        )


@dataclass(frozen=True)
class EncryptedCampaignConfig:
    """
    Campaign description whose position fields are ciphertexts.

    Amounts cannot be summed while encrypted, so total supply is carried
    explicitly in the header.
    """

    starting_time: int
    total_supply: int  # uint256
    epochs: Tuple[EncryptedEpoch, ...] = ()

    @property
    def ending_time(self) -> int:
        return self.starting_time + sum(e.duration for e in self.epochs)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "variant": "private",
            "starting_time": self.starting_time,
            "total_supply": str(self.total_supply),
            "epochs": [e.to_dict() for e in self.epochs],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "EncryptedCampaignConfig":
        return cls(
            starting_time=int(data["starting_time"]),
            total_supply=int(data["total_supply"]),
            epochs=tuple(EncryptedEpoch.from_dict(e) for e in data["epochs"]),
        )
