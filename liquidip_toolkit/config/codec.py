"""
Binary codec for plaintext campaign configs.

Layout (big-endian throughout)::

    header      magic "LQIP" (4) | version (1) | starting time uint64 | epoch count uint16
    table       one uint32 absolute offset per epoch, epoch 0 right after the table
    epoch       duration uint32 | position count uint8 | positions
    position    tick lower int24 | tick upper int24 | amount uint128   (22 bytes)

``CampaignConfigView`` reads fields straight out of the buffer. ``validate``
proves the whole layout once; every accessor still re-checks its own
offsets and raises ``ConfigReadOutOfBounds`` instead of reading garbage.
"""

from typing import List, Sequence, Tuple

from eth_abi.exceptions import EncodingError
from eth_abi.packed import encode_packed

from liquidip_toolkit.config.models import CampaignConfig, Epoch, Position
from liquidip_toolkit.shared.exceptions import (
    ConfigEncodingError,
    ConfigReadOutOfBounds,
    ConfigTooShort,
    EpochOffsetOutOfBounds,
    EpochOffsetsNotIncreasing,
    EpochTableNotTight,
    EpochWindowTooSmall,
    InvalidSignature,
    PositionPackingMismatch,
    UnsupportedVersion,
    ZeroEpochs,
    ZeroPositions,
)

MAGIC = b"LQIP"
FORMAT_VERSION = 1

# Header field offsets shared by both variants
MAGIC_OFFSET = 0
VERSION_OFFSET = 4
STARTING_TIME_OFFSET = 5
NUM_EPOCHS_OFFSET = 13
HEADER_SIZE = 15

EPOCH_OFFSET_SIZE = 4
EPOCH_HEADER_SIZE = 5  # duration uint32 + position count uint8
POSITION_SIZE = 22  # int24 + int24 + uint128

MAX_EPOCHS = 2**16 - 1
MAX_POSITIONS_PER_EPOCH = 2**8 - 1


class BaseConfigView:
    """
    Bounds-checked reader for the header, epoch table and epoch headers.

    Subclasses describe the variant (magic, header size) and validate the
    per-epoch payload.
    """

    MAGIC: bytes = MAGIC
    VERSION: int = FORMAT_VERSION
    HEADER_SIZE: int = HEADER_SIZE

    def __init__(self, data: bytes):
        self._data = bytes(data)
        self._validated = False

    @property
    def data(self) -> bytes:
        return self._data

    @property
    def is_validated(self) -> bool:
        return self._validated

    def __len__(self) -> int:
        return len(self._data)

    # -------------------------------------------------------------------------
    # Raw reads
    # -------------------------------------------------------------------------

    def _slice(self, offset: int, size: int, what: str) -> bytes:
        if offset < 0 or size < 0 or offset + size > len(self._data):
            raise ConfigReadOutOfBounds(
                f"Reading {what} at [{offset}, {offset + size}) exceeds "
                f"buffer of {len(self._data)} bytes",
                offset=offset,
            )
        return self._data[offset : offset + size]

    def _read_uint(self, offset: int, size: int, what: str) -> int:
        return int.from_bytes(self._slice(offset, size, what), byteorder="big")

    def _read_int(self, offset: int, size: int, what: str) -> int:
        return int.from_bytes(
            self._slice(offset, size, what), byteorder="big", signed=True
        )

    # -------------------------------------------------------------------------
    # Header accessors
    # -------------------------------------------------------------------------

    def starting_time(self) -> int:
        return self._read_uint(STARTING_TIME_OFFSET, 8, "starting time")

    def num_epochs(self) -> int:
        return self._read_uint(NUM_EPOCHS_OFFSET, 2, "epoch count")

    def _epoch_table_end(self) -> int:
        return self.HEADER_SIZE + EPOCH_OFFSET_SIZE * self.num_epochs()

    def _check_epoch_index(self, epoch: int) -> None:
        count = self.num_epochs()
        if not 0 <= epoch < count:
            raise ConfigReadOutOfBounds(
                f"Epoch {epoch} out of range (config has {count} epochs)",
                epoch=epoch,
            )

    def epoch_offset(self, epoch: int) -> int:
        self._check_epoch_index(epoch)
        return self._read_uint(
            self.HEADER_SIZE + EPOCH_OFFSET_SIZE * epoch,
            EPOCH_OFFSET_SIZE,
            f"offset of epoch {epoch}",
        )

    def epoch_window(self, epoch: int) -> Tuple[int, int]:
        """Absolute ``[start, end)`` byte range of an epoch."""
        start = self.epoch_offset(epoch)
        if epoch + 1 < self.num_epochs():
            end = self.epoch_offset(epoch + 1)
        else:
            end = len(self._data)

        if not self._epoch_table_end() <= start < end <= len(self._data):
            raise ConfigReadOutOfBounds(
                f"Epoch {epoch} window [{start}, {end}) is not inside the "
                f"payload region",
                epoch=epoch,
                offset=start,
            )
        if end - start < EPOCH_HEADER_SIZE:
            raise ConfigReadOutOfBounds(
                f"Epoch {epoch} window too small for its header",
                epoch=epoch,
                offset=start,
            )
        return start, end

    def duration_seconds(self, epoch: int) -> int:
        start, _ = self.epoch_window(epoch)
        return self._read_uint(start, 4, f"duration of epoch {epoch}")

    def num_positions(self, epoch: int) -> int:
        start, _ = self.epoch_window(epoch)
        return self._read_uint(start + 4, 1, f"position count of epoch {epoch}")

    def _check_position_index(self, epoch: int, position: int) -> None:
        count = self.num_positions(epoch)
        if not 0 <= position < count:
            raise ConfigReadOutOfBounds(
                f"Position {position} out of range (epoch {epoch} has "
                f"{count} positions)",
                epoch=epoch,
                position=position,
            )

    # -------------------------------------------------------------------------
    # Derived accessors
    # -------------------------------------------------------------------------

    def durations(self) -> List[int]:
        return [self.duration_seconds(e) for e in range(self.num_epochs())]

    def epoch_starting_time(self, epoch: int) -> int:
        self._check_epoch_index(epoch)
        return self.starting_time() + sum(
            self.duration_seconds(e) for e in range(epoch)
        )

    def ending_time(self) -> int:
        return self.starting_time() + sum(self.durations())

    # -------------------------------------------------------------------------
    # Validation
    # -------------------------------------------------------------------------

    def validate(self) -> "BaseConfigView":
        """
        Prove the buffer layout. Raises the ConfigFormatError subclass naming
        the first broken invariant; returns ``self`` on success. A view that
        already passed returns at once.
        """
        if self._validated:
            return self
        self._validate_header()
        self._validate_epoch_table()

        count = self.num_epochs()
        for epoch in range(count):
            start = self._read_uint(
                self.HEADER_SIZE + EPOCH_OFFSET_SIZE * epoch,
                EPOCH_OFFSET_SIZE,
                "epoch offset",
            )
            if epoch + 1 < count:
                end = self._read_uint(
                    self.HEADER_SIZE + EPOCH_OFFSET_SIZE * (epoch + 1),
                    EPOCH_OFFSET_SIZE,
                    "epoch offset",
                )
            else:
                end = len(self._data)

            if end - start < EPOCH_HEADER_SIZE:
                raise EpochWindowTooSmall(
                    f"Epoch {epoch} window is {end - start} bytes, header "
                    f"needs {EPOCH_HEADER_SIZE}",
                    epoch=epoch,
                    offset=start,
                )
            if self._data[start + 4] == 0:
                raise ZeroPositions(
                    f"Epoch {epoch} has no positions", epoch=epoch, offset=start
                )
            self._validate_epoch_payload(epoch, start, end)

        self._validated = True
        return self

    def _validate_header(self) -> None:
        size = len(self._data)
        if size < self.HEADER_SIZE:
            raise ConfigTooShort(
                f"Config is {size} bytes, header needs {self.HEADER_SIZE}",
                offset=size,
            )
        magic = self._data[MAGIC_OFFSET : MAGIC_OFFSET + len(self.MAGIC)]
        if magic != self.MAGIC:
            raise InvalidSignature(
                f"Bad signature {magic!r}, expected {self.MAGIC!r}",
                offset=MAGIC_OFFSET,
            )
        version = self._data[VERSION_OFFSET]
        if version != self.VERSION:
            raise UnsupportedVersion(
                f"Unsupported format version {version}, expected {self.VERSION}",
                offset=VERSION_OFFSET,
            )
        if self.num_epochs() == 0:
            raise ZeroEpochs("Config declares zero epochs", offset=NUM_EPOCHS_OFFSET)

        table_end = self._epoch_table_end()
        if table_end > size:
            raise ConfigTooShort(
                f"Epoch offset table ends at {table_end}, buffer is {size} bytes",
                offset=size,
            )

    def _validate_epoch_table(self) -> None:
        size = len(self._data)
        table_end = self._epoch_table_end()
        previous = None
        for epoch in range(self.num_epochs()):
            offset = self._read_uint(
                self.HEADER_SIZE + EPOCH_OFFSET_SIZE * epoch,
                EPOCH_OFFSET_SIZE,
                "epoch offset",
            )
            if epoch == 0 and offset != table_end:
                raise EpochTableNotTight(
                    f"Epoch 0 starts at {offset}, expected {table_end} "
                    f"(right after the offset table)",
                    epoch=0,
                    offset=offset,
                )
            if previous is not None and offset <= previous:
                raise EpochOffsetsNotIncreasing(
                    f"Epoch {epoch} offset {offset} is not after epoch "
                    f"{epoch - 1} offset {previous}",
                    epoch=epoch,
                    offset=offset,
                )
            if offset >= size:
                raise EpochOffsetOutOfBounds(
                    f"Epoch {epoch} offset {offset} is past the end of the "
                    f"{size}-byte buffer",
                    epoch=epoch,
                    offset=offset,
                )
            previous = offset

    def _validate_epoch_payload(self, epoch: int, start: int, end: int) -> None:
        raise NotImplementedError


class CampaignConfigView(BaseConfigView):
    """Random-access reader over a plaintext campaign config."""

    def _validate_epoch_payload(self, epoch: int, start: int, end: int) -> None:
        count = self._data[start + 4]
        expected = EPOCH_HEADER_SIZE + count * POSITION_SIZE
        if end - start != expected:
            raise PositionPackingMismatch(
                f"Epoch {epoch} window is {end - start} bytes but "
                f"{count} positions need exactly {expected}",
                epoch=epoch,
                offset=start,
            )

    def _position_offset(self, epoch: int, position: int) -> int:
        self._check_position_index(epoch, position)
        start, end = self.epoch_window(epoch)
        offset = start + EPOCH_HEADER_SIZE + position * POSITION_SIZE
        if offset + POSITION_SIZE > end:
            raise ConfigReadOutOfBounds(
                f"Position {position} of epoch {epoch} runs past the epoch window",
                epoch=epoch,
                position=position,
                offset=offset,
            )
        return offset

    def tick_lower(self, epoch: int, position: int) -> int:
        offset = self._position_offset(epoch, position)
        return self._read_int(offset, 3, "tick lower")

    def tick_upper(self, epoch: int, position: int) -> int:
        offset = self._position_offset(epoch, position)
        return self._read_int(offset + 3, 3, "tick upper")

    def amount_allocated(self, epoch: int, position: int) -> int:
        offset = self._position_offset(epoch, position)
        return self._read_uint(offset + 6, 16, "amount")

    def position(self, epoch: int, position: int) -> Position:
        return Position(
            tick_lower=self.tick_lower(epoch, position),
            tick_upper=self.tick_upper(epoch, position),
            amount=self.amount_allocated(epoch, position),
        )

    def positions(self, epoch: int) -> Tuple[Position, ...]:
        return tuple(
            self.position(epoch, p) for p in range(self.num_positions(epoch))
        )

    def total_tokens_to_sell(self) -> int:
        return sum(
            self.amount_allocated(e, p)
            for e in range(self.num_epochs())
            for p in range(self.num_positions(e))
        )

    def epoch_starting_tick(self, epoch: int, license_is_token0: bool = True) -> int:
        return starting_tick_for(self.positions(epoch), license_is_token0)

    def to_model(self) -> CampaignConfig:
        return CampaignConfig(
            starting_time=self.starting_time(),
            epochs=tuple(
                Epoch(duration=self.duration_seconds(e), positions=self.positions(e))
                for e in range(self.num_epochs())
            ),
        )


def starting_tick_for(positions: Sequence[Position], license_is_token0: bool) -> int:
    """
    Tick the market price is anchored to when an epoch opens.

    Single-sided license-token ranges sit on one side of the price: above it
    when the license token is currency0, below it otherwise. The anchor is
    the edge of the ranges closest to that side.
    """
    if not positions:
        raise ValueError("Epoch has no positions to anchor to")
    if license_is_token0:
        return min(p.tick_lower for p in positions)
    return max(p.tick_upper for p in positions)


def _pack(types: List[str], values: List, what: str) -> bytes:
    try:
        return encode_packed(types, values)
    except EncodingError as e:
        raise ConfigEncodingError(f"Cannot encode {what}: {e}") from e


def encode_header(
    magic: bytes, starting_time: int, num_epochs: int, version: int = FORMAT_VERSION
) -> bytes:
    if num_epochs > MAX_EPOCHS:
        raise ConfigEncodingError(
            f"{num_epochs} epochs exceed the maximum of {MAX_EPOCHS}"
        )
    return _pack(
        ["bytes4", "uint8", "uint64", "uint16"],
        [magic, version, starting_time, num_epochs],
        "header",
    )


def encode_offsets(offsets: Sequence[int], what: str) -> bytes:
    return _pack(["uint32"] * len(offsets), list(offsets), what)


def encode_epoch_header(duration: int, num_positions: int, epoch: int) -> bytes:
    if num_positions > MAX_POSITIONS_PER_EPOCH:
        raise ConfigEncodingError(
            f"Epoch {epoch} has {num_positions} positions, maximum is "
            f"{MAX_POSITIONS_PER_EPOCH}",
            epoch=epoch,
        )
    return _pack(
        ["uint32", "uint8"], [duration, num_positions], f"header of epoch {epoch}"
    )


def encode_config(config: CampaignConfig) -> bytes:
    """Serialize a plaintext campaign config."""
    num_epochs = len(config.epochs)
    header = encode_header(MAGIC, config.starting_time, num_epochs)

    cursor = HEADER_SIZE + EPOCH_OFFSET_SIZE * num_epochs
    offsets = []
    bodies = []
    for index, epoch in enumerate(config.epochs):
        offsets.append(cursor)
        body = encode_epoch_header(epoch.duration, len(epoch.positions), index)
        for p, position in enumerate(epoch.positions):
            body += _pack(
                ["int24", "int24", "uint128"],
                [position.tick_lower, position.tick_upper, position.amount],
                f"position {p} of epoch {index}",
            )
        bodies.append(body)
        cursor += len(body)

    return header + encode_offsets(offsets, "epoch offsets") + b"".join(bodies)


def decode_config(data: bytes) -> CampaignConfig:
    """Validate and fully decode a plaintext campaign config."""
    return CampaignConfigView(data).validate().to_model()
