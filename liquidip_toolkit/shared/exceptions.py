"""
Exception hierarchy for the LiquidIP toolkit.

Exception Categories:
- RetryableException: Transient failures that may succeed on retry (RPC, yield venue)
- NonRetryableException: Permanent failures that won't benefit from retry (bad data)
- ConfigurationException: Startup/config errors that prevent operation

Domain exceptions are categorized:
- ConfigFormatError -> NonRetryableException (malformed campaign config bytes)
- TradeRejected -> NonRetryableException (timing/direction violations for one trade)
- PatentBackingInvalid -> NonRetryableException (activation refused)
- PatentRegistryError, YieldVenueError -> RetryableException (external calls)
"""

from typing import Optional


class RetryableException(Exception):
    """
    Base class for exceptions that may succeed on retry.

    Use for transient failures like:
    - RPC timeouts
    - Rate limiting
    - Yield venue deposit failures
    """

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NonRetryableException(Exception):
    """
    Base class for exceptions that won't benefit from retry.

    Use for permanent failures like:
    - Invalid input data
    - Malformed configs
    - Business logic violations
    """

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ConfigurationException(NonRetryableException):
    """
    Exception for configuration/startup errors.

    Use when:
    - Required environment variables are missing
    - Invalid configuration values
    - Missing required resources
    """

    pass


# =============================================================================
# CONFIG CODEC
# =============================================================================


class ConfigFormatError(NonRetryableException):
    """
    Base class for every campaign config validation or read failure.

    Carries the epoch, position and byte offset involved when known so
    callers can report exactly which invariant broke.
    """

    def __init__(
        self,
        message: str,
        epoch: Optional[int] = None,
        position: Optional[int] = None,
        offset: Optional[int] = None,
    ):
        super().__init__(message)
        self.epoch = epoch
        self.position = position
        self.offset = offset


class ConfigTooShort(ConfigFormatError):
    """Buffer is truncated before the header or offset table ends."""


class InvalidSignature(ConfigFormatError):
    """Magic bytes do not match the expected config variant."""


class UnsupportedVersion(ConfigFormatError):
    """Format version is not understood by this codec."""


class ZeroEpochs(ConfigFormatError):
    """Header declares no epochs."""


class EpochTableNotTight(ConfigFormatError):
    """Epoch 0 does not start immediately after the epoch offset table."""


class EpochOffsetsNotIncreasing(ConfigFormatError):
    """Epoch offsets are not strictly increasing."""


class EpochOffsetOutOfBounds(ConfigFormatError):
    """An epoch offset points past the end of the buffer."""


class EpochWindowTooSmall(ConfigFormatError):
    """An epoch window cannot hold its fixed header or position table."""


class ZeroPositions(ConfigFormatError):
    """An epoch declares no positions."""


class PositionPackingMismatch(ConfigFormatError):
    """Positions leave a gap, overlap, or do not fill the epoch window exactly."""


class PositionTableNotTight(ConfigFormatError):
    """The first position does not start immediately after the position table."""


class PositionOffsetsNotIncreasing(ConfigFormatError):
    """Position offsets inside an epoch are not strictly increasing."""


class PositionOffsetOutOfBounds(ConfigFormatError):
    """A position offset lies outside its epoch window."""


class CiphertextRecordOutOfBounds(ConfigFormatError):
    """A ciphertext record runs past its epoch window."""


class ConfigReadOutOfBounds(ConfigFormatError):
    """An accessor tried to read outside the buffer or outside the declared counts."""


class ConfigEncodingError(ConfigFormatError):
    """A model value cannot be represented in the binary format."""


# =============================================================================
# POOL / TRADE LIFECYCLE
# =============================================================================


class PoolAlreadyInitialized(NonRetryableException):
    """initialize_state was called twice for the same pool."""


class PoolNotInitialized(NonRetryableException):
    """A pool was used before initialize_state."""


class TickNotAligned(NonRetryableException):
    """A configured tick does not sit on the pool's tick grid."""


class InvalidTickRange(NonRetryableException):
    """A configured range is empty, inverted or outside the tick bounds."""


class TradeRejected(NonRetryableException):
    """Base class for trades refused without any state change."""


class CampaignNotStarted(TradeRejected):
    """Trade arrived before the campaign starting time."""


class CampaignEnded(TradeRejected):
    """Trade arrived at or after the end of the last epoch."""


class RedeemNotAllowed(TradeRejected):
    """Trade tried to sell the license token back into the pool."""


class ExactOutputNotSupported(TradeRejected):
    """Trade requested an exact output amount."""


class PatentBackingInvalid(NonRetryableException):
    """The license token's patent is no longer valid; activation aborted."""


class CampaignStillActive(NonRetryableException):
    """Yield was requested before the campaign ended."""


class PendingTradeSlotOccupied(NonRetryableException):
    """A trade needs deferral while another deferred trade is still pending."""


class UnauthorizedCaller(NonRetryableException):
    """Caller does not hold the capability required by the entry point."""


class DecryptionNotReady(NonRetryableException):
    """A ciphertext was read before the oracle resolved it."""


# =============================================================================
# EXTERNAL SERVICES
# =============================================================================


class YieldVenueError(RetryableException):
    """The yield venue rejected or failed a deposit/withdrawal."""


class PatentRegistryError(RetryableException):
    """The on-chain patent registry could not be read."""
