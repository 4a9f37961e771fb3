"""Loading campaign configs from disk."""

import json
from pathlib import Path
from typing import Any, Dict, Union

from liquidip_toolkit.config.codec import MAGIC, CampaignConfigView
from liquidip_toolkit.config.encrypted_codec import (
    ENCRYPTED_MAGIC,
    EncryptedCampaignConfigView,
)
from liquidip_toolkit.shared.exceptions import InvalidSignature

ConfigView = Union[CampaignConfigView, EncryptedCampaignConfigView]


def load_json(file_path: str) -> Dict[str, Any]:
    with open(file_path, "r") as file:
        return json.load(file)


def read_config_bytes(file_path: str) -> bytes:
    """
    Read a config file holding either raw bytes or a 0x-prefixed hex string.
    """
    raw = Path(file_path).read_bytes()
    stripped = raw.strip()
    if stripped[:2].lower() == b"0x":
        return bytes.fromhex(stripped[2:].decode("ascii"))
    return raw


def open_config_view(data: bytes) -> ConfigView:
    """Pick the reader matching the buffer's magic bytes (not validated yet)."""
    magic = bytes(data[:4])
    if magic == MAGIC:
        return CampaignConfigView(data)
    if magic == ENCRYPTED_MAGIC:
        return EncryptedCampaignConfigView(data)
    raise InvalidSignature(
        f"Unknown config signature {magic!r}, expected {MAGIC!r} or "
        f"{ENCRYPTED_MAGIC!r}",
        offset=0,
    )
