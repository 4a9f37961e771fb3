"""
LiquidIP toolkit: time-windowed liquidity provisioning for patent-license
token campaigns.

Modules:
    config: binary campaign config codecs (plaintext and encrypted)
    epochs: epoch scheduling
    liquidity: tick and liquidity math
    hooks: the epoch liquidity hooks and their collaborator interfaces
    patents: patent backing checks
"""

__version__ = "0.3.0"

from liquidip_toolkit.config import (
    CampaignConfig,
    CampaignConfigView,
    EncryptedCampaignConfig,
    EncryptedCampaignConfigView,
    decode_config,
    decode_encrypted_config,
    encode_config,
    encode_encrypted_config,
)
from liquidip_toolkit.hooks import (
    CampaignBinding,
    EncryptedEpochLiquidityHook,
    EpochLiquidityHook,
    PoolKey,
    TradeParams,
)

__all__ = [
    "CampaignBinding",
    "CampaignConfig",
    "CampaignConfigView",
    "EncryptedCampaignConfig",
    "EncryptedCampaignConfigView",
    "EncryptedEpochLiquidityHook",
    "EpochLiquidityHook",
    "PoolKey",
    "TradeParams",
    "decode_config",
    "decode_encrypted_config",
    "encode_config",
    "encode_encrypted_config",
]
