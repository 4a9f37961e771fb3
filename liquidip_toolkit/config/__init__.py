"""Campaign config models and binary codecs."""

from .codec import (
    CampaignConfigView,
    decode_config,
    encode_config,
)
from .encrypted_codec import (
    EncryptedCampaignConfigView,
    decode_encrypted_config,
    encode_encrypted_config,
)
from .models import (
    CampaignConfig,
    EncryptedCampaignConfig,
    EncryptedEpoch,
    EncryptedInput,
    EncryptedPosition,
    Epoch,
    Position,
)

__all__ = [
    "CampaignConfig",
    "CampaignConfigView",
    "EncryptedCampaignConfig",
    "EncryptedCampaignConfigView",
    "EncryptedEpoch",
    "EncryptedInput",
    "EncryptedPosition",
    "Epoch",
    "Position",
    "decode_config",
    "decode_encrypted_config",
    "encode_config",
    "encode_encrypted_config",
]
