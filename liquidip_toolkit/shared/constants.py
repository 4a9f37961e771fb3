"""All environment-driven constants for the project"""

import os

from dotenv import load_dotenv

load_dotenv()

ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"


class GlobalConstants:
    """Global class constants for the project"""

    HOUR = 3600

    CHAIN_ID_TO_RPC = {
        1: os.getenv("ETHEREUM_MAINNET_RPC_URL") or None,
        8453: os.getenv("BASE_MAINNET_RPC_URL") or None,
        42161: os.getenv("ARBITRUM_MAINNET_RPC_URL") or None,
        11155111: os.getenv("SEPOLIA_RPC_URL") or None,
    }

    # Patent registry (ERC721 with verification status) per chain
    PATENT_REGISTRY = {
        1: os.getenv("ETHEREUM_PATENT_REGISTRY_ADDRESS") or None,
        8453: os.getenv("BASE_PATENT_REGISTRY_ADDRESS") or None,
        42161: os.getenv("ARBITRUM_PATENT_REGISTRY_ADDRESS") or None,
        11155111: os.getenv("SEPOLIA_PATENT_REGISTRY_ADDRESS") or None,
    }

    @staticmethod
    def get_rpc_url(chain_id: int) -> str:
        """Get RPC URL for specified chain"""
        chain_id = int(chain_id)
        if chain_id not in GlobalConstants.CHAIN_ID_TO_RPC:
            raise ValueError(f"Chain ID {chain_id} not supported")

        rpc_url = GlobalConstants.CHAIN_ID_TO_RPC[chain_id]
        if not rpc_url:
            raise ValueError(f"RPC URL not set for chain {chain_id}")

        return rpc_url

    @staticmethod
    def get_patent_registry(chain_id: int) -> str:
        """Get the patent registry address for specified chain"""
        chain_id = int(chain_id)
        address = GlobalConstants.PATENT_REGISTRY.get(chain_id)
        if not address:
            raise ValueError(f"Patent registry not set for chain {chain_id}")
        return address


class HookConstants:
    """Tunables of the epoch liquidity engine"""

    # Liquidity placed for the duration of an anchor maneuver
    ANCHOR_LIQUIDITY = int(os.getenv("LIQUIDIP_ANCHOR_LIQUIDITY", "1000"))

    # Readiness probe of encrypted epochs: last field only vs every field
    DECRYPTION_BATCH_ATOMIC = (
        os.getenv("LIQUIDIP_DECRYPTION_BATCH_ATOMIC", "true").lower()
        not in ("0", "false", "no")
    )
