from eth_utils import is_address, to_checksum_address

from liquidip_toolkit.shared.constants import GlobalConstants


def validate_eth_address(address: str, param_name: str = "address") -> str:
    """Validate and return checksum ethereum address"""
    if not address or not isinstance(address, str):
        raise ValueError(
            f"Invalid {param_name}: address must be a non-empty string"
        )
    if not is_address(address):
        raise ValueError(
            f"Invalid {param_name}: {address} is not a valid Ethereum address"
        )
    return to_checksum_address(address)


def validate_chain_id(chain_id: int) -> None:
    """Validate chain ID against the chains with an RPC slot"""
    valid_chain_ids = set(GlobalConstants.CHAIN_ID_TO_RPC)
    if chain_id not in valid_chain_ids:
        raise ValueError(
            f"Invalid chain_id: {chain_id}. Must be one of {sorted(valid_chain_ids)}"
        )


def validate_timestamp(timestamp: int) -> int:
    if timestamp < 0 or timestamp >= 2**64:
        raise ValueError(f"Invalid timestamp: {timestamp} does not fit in uint64")
    return timestamp
