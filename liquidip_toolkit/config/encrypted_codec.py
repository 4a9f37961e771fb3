"""
Binary codec for encrypted campaign configs.

Same shape as the plaintext format with three differences: the header
carries the total supply, each epoch carries a table of absolute position
offsets, and every position field is a variable-length ciphertext record::

    header      magic "LQIE" (4) | version (1) | starting time uint64 |
                epoch count uint16 | total supply uint256
    table       one uint32 absolute offset per epoch
    epoch       duration uint32 | position count uint8 |
                one uint32 absolute offset per position | positions
    position    record(tick lower) | record(tick upper) | record(amount)
    record      ct hash bytes32 | security zone uint8 | utype uint8 |
                signature length uint16 | signature
"""

from typing import List, Tuple

from hexbytes import HexBytes

from liquidip_toolkit.config.codec import (
    EPOCH_HEADER_SIZE,
    EPOCH_OFFSET_SIZE,
    FORMAT_VERSION,
    HEADER_SIZE,
    BaseConfigView,
    _pack,
    encode_epoch_header,
    encode_header,
    encode_offsets,
)
from liquidip_toolkit.config.models import (
    EncryptedCampaignConfig,
    EncryptedEpoch,
    EncryptedInput,
    EncryptedPosition,
)
from liquidip_toolkit.shared.exceptions import (
    CiphertextRecordOutOfBounds,
    ConfigEncodingError,
    ConfigReadOutOfBounds,
    EpochWindowTooSmall,
    PositionOffsetOutOfBounds,
    PositionOffsetsNotIncreasing,
    PositionPackingMismatch,
    PositionTableNotTight,
)

ENCRYPTED_MAGIC = b"LQIE"

TOTAL_SUPPLY_OFFSET = HEADER_SIZE
ENCRYPTED_HEADER_SIZE = HEADER_SIZE + 32

POSITION_OFFSET_SIZE = 4
RECORD_HEADER_SIZE = 36  # ct hash 32 + zone 1 + utype 1 + signature length 2
FIELDS_PER_POSITION = 3

FIELD_TICK_LOWER = 0
FIELD_TICK_UPPER = 1
FIELD_AMOUNT = 2


class EncryptedCampaignConfigView(BaseConfigView):
    """Random-access reader over an encrypted campaign config."""

    MAGIC = ENCRYPTED_MAGIC
    VERSION = FORMAT_VERSION
    HEADER_SIZE = ENCRYPTED_HEADER_SIZE

    def total_supply(self) -> int:
        return self._read_uint(TOTAL_SUPPLY_OFFSET, 32, "total supply")

    def total_tokens_to_sell(self) -> int:
        return self.total_supply()

    # -------------------------------------------------------------------------
    # Validation
    # -------------------------------------------------------------------------

    def _validate_epoch_payload(self, epoch: int, start: int, end: int) -> None:
        count = self._data[start + 4]
        table_end = start + EPOCH_HEADER_SIZE + POSITION_OFFSET_SIZE * count
        if table_end > end:
            raise EpochWindowTooSmall(
                f"Epoch {epoch} window [{start}, {end}) cannot hold a table "
                f"of {count} position offsets",
                epoch=epoch,
                offset=start,
            )

        cursor = table_end
        previous = None
        for position in range(count):
            offset = self._read_uint(
                start + EPOCH_HEADER_SIZE + POSITION_OFFSET_SIZE * position,
                POSITION_OFFSET_SIZE,
                "position offset",
            )
            if previous is not None and offset <= previous:
                raise PositionOffsetsNotIncreasing(
                    f"Position {position} offset {offset} is not after "
                    f"position {position - 1} offset {previous}",
                    epoch=epoch,
                    position=position,
                    offset=offset,
                )
            if not start <= offset < end:
                raise PositionOffsetOutOfBounds(
                    f"Position {position} offset {offset} lies outside epoch "
                    f"{epoch} window [{start}, {end})",
                    epoch=epoch,
                    position=position,
                    offset=offset,
                )
            if offset != cursor:
                error_cls = (
                    PositionTableNotTight if position == 0 else PositionPackingMismatch
                )
                raise error_cls(
                    f"Position {position} of epoch {epoch} starts at {offset}, "
                    f"expected {cursor}",
                    epoch=epoch,
                    position=position,
                    offset=offset,
                )
            cursor = self._walk_records(epoch, position, offset, end)
            previous = offset

        if cursor != end:
            raise PositionPackingMismatch(
                f"Epoch {epoch} records end at {cursor}, window ends at {end}",
                epoch=epoch,
                offset=cursor,
            )

    def _walk_records(self, epoch: int, position: int, offset: int, end: int) -> int:
        cursor = offset
        for _ in range(FIELDS_PER_POSITION):
            if cursor + RECORD_HEADER_SIZE > end:
                raise CiphertextRecordOutOfBounds(
                    f"Record header at {cursor} runs past epoch {epoch} end {end}",
                    epoch=epoch,
                    position=position,
                    offset=cursor,
                )
            signature_length = int.from_bytes(
                self._data[cursor + 34 : cursor + 36], byteorder="big"
            )
            record_end = cursor + RECORD_HEADER_SIZE + signature_length
            if record_end > end:
                raise CiphertextRecordOutOfBounds(
                    f"Record at {cursor} with {signature_length}-byte signature "
                    f"runs past epoch {epoch} end {end}",
                    epoch=epoch,
                    position=position,
                    offset=cursor,
                )
            cursor = record_end
        return cursor

    # -------------------------------------------------------------------------
    # Accessors
    # -------------------------------------------------------------------------

    def position_window(self, epoch: int, position: int) -> Tuple[int, int]:
        """Absolute ``[start, end)`` byte range of one position's records."""
        self._check_position_index(epoch, position)
        start, end = self.epoch_window(epoch)
        count = self.num_positions(epoch)
        table_end = start + EPOCH_HEADER_SIZE + POSITION_OFFSET_SIZE * count
        if table_end > end:
            raise ConfigReadOutOfBounds(
                f"Position table of epoch {epoch} runs past the epoch window",
                epoch=epoch,
                offset=start,
            )

        def offset_of(index: int) -> int:
            return self._read_uint(
                start + EPOCH_HEADER_SIZE + POSITION_OFFSET_SIZE * index,
                POSITION_OFFSET_SIZE,
                f"offset of position {index}",
            )

        position_start = offset_of(position)
        position_end = offset_of(position + 1) if position + 1 < count else end
        if not table_end <= position_start < position_end <= end:
            raise ConfigReadOutOfBounds(
                f"Position {position} window [{position_start}, {position_end}) "
                f"is not inside epoch {epoch} payload",
                epoch=epoch,
                position=position,
                offset=position_start,
            )
        return position_start, position_end

    def _field(self, epoch: int, position: int, index: int) -> EncryptedInput:
        cursor, position_end = self.position_window(epoch, position)
        for field_index in range(FIELDS_PER_POSITION):
            if cursor + RECORD_HEADER_SIZE > position_end:
                raise ConfigReadOutOfBounds(
                    f"Record {field_index} of position {position} runs past "
                    f"the position window",
                    epoch=epoch,
                    position=position,
                    offset=cursor,
                )
            signature_length = self._read_uint(cursor + 34, 2, "signature length")
            record_end = cursor + RECORD_HEADER_SIZE + signature_length
            if record_end > position_end:
                raise ConfigReadOutOfBounds(
                    f"Signature of record {field_index} of position {position} "
                    f"runs past the position window",
                    epoch=epoch,
                    position=position,
                    offset=cursor,
                )
            if field_index == index:
                return EncryptedInput(
                    ct_hash=HexBytes(self._slice(cursor, 32, "ct hash")),
                    security_zone=self._read_uint(cursor + 32, 1, "security zone"),
                    utype=self._read_uint(cursor + 33, 1, "utype"),
                    signature=HexBytes(
                        self._slice(cursor + 36, signature_length, "signature")
                    ),
                )
            cursor = record_end
        raise ConfigReadOutOfBounds(
            f"Field index {index} out of range", epoch=epoch, position=position
        )

    def tick_lower(self, epoch: int, position: int) -> EncryptedInput:
        return self._field(epoch, position, FIELD_TICK_LOWER)

    def tick_upper(self, epoch: int, position: int) -> EncryptedInput:
        return self._field(epoch, position, FIELD_TICK_UPPER)

    def amount_allocated(self, epoch: int, position: int) -> EncryptedInput:
        return self._field(epoch, position, FIELD_AMOUNT)

    def position(self, epoch: int, position: int) -> EncryptedPosition:
        return EncryptedPosition(
            tick_lower=self.tick_lower(epoch, position),
            tick_upper=self.tick_upper(epoch, position),
            amount=self.amount_allocated(epoch, position),
        )

    def positions(self, epoch: int) -> Tuple[EncryptedPosition, ...]:
        return tuple(
            self.position(epoch, p) for p in range(self.num_positions(epoch))
        )

    def to_model(self) -> EncryptedCampaignConfig:
        return EncryptedCampaignConfig(
            starting_time=self.starting_time(),
            total_supply=self.total_supply(),
            epochs=tuple(
                EncryptedEpoch(
                    duration=self.duration_seconds(e), positions=self.positions(e)
                )
                for e in range(self.num_epochs())
            ),
        )


def encode_record(record: EncryptedInput, what: str) -> bytes:
    if len(record.ct_hash) != 32:
        raise ConfigEncodingError(
            f"{what}: ct hash must be 32 bytes, got {len(record.ct_hash)}"
        )
    return _pack(
        ["bytes32", "uint8", "uint8", "uint16", "bytes"],
        [
            bytes(record.ct_hash),
            record.security_zone,
            record.utype,
            len(record.signature),
            bytes(record.signature),
        ],
        what,
    )


def encode_encrypted_config(config: EncryptedCampaignConfig) -> bytes:
    """Serialize an encrypted campaign config."""
    num_epochs = len(config.epochs)
    header = encode_header(ENCRYPTED_MAGIC, config.starting_time, num_epochs)
    header += _pack(["uint256"], [config.total_supply], "total supply")

    cursor = ENCRYPTED_HEADER_SIZE + EPOCH_OFFSET_SIZE * num_epochs
    epoch_offsets: List[int] = []
    bodies: List[bytes] = []
    for index, epoch in enumerate(config.epochs):
        epoch_offsets.append(cursor)
        epoch_header = encode_epoch_header(epoch.duration, len(epoch.positions), index)

        position_cursor = (
            cursor + len(epoch_header) + POSITION_OFFSET_SIZE * len(epoch.positions)
        )
        position_offsets = []
        records = b""
        for p, position in enumerate(epoch.positions):
            position_offsets.append(position_cursor)
            for name, record in zip(
                ("tick lower", "tick upper", "amount"), position.fields
            ):
                records += encode_record(
                    record, f"{name} of position {p} in epoch {index}"
                )
            position_cursor = cursor + len(epoch_header) + (
                POSITION_OFFSET_SIZE * len(epoch.positions)
            ) + len(records)

        body = (
            epoch_header
            + encode_offsets(position_offsets, f"position offsets of epoch {index}")
            + records
        )
        bodies.append(body)
        cursor += len(body)

    return header + encode_offsets(epoch_offsets, "epoch offsets") + b"".join(bodies)


def decode_encrypted_config(data: bytes) -> EncryptedCampaignConfig:
    """Validate and fully decode an encrypted campaign config."""
    return EncryptedCampaignConfigView(data).validate().to_model()
