"""
Patent backing checks.

Every license token is backed by a patent NFT in an on-chain registry that
stores the verifier network's latest verdict. Only a VALID patent may back
the activation of a new epoch.
"""

from enum import IntEnum
from typing import Dict, Optional

from eth_utils import to_checksum_address

from liquidip_toolkit.shared.constants import GlobalConstants
from liquidip_toolkit.shared.exceptions import PatentRegistryError
from liquidip_toolkit.shared.logging import get_logger
from liquidip_toolkit.shared.retry import RPC_RETRY_CONFIG, RetryConfig
from liquidip_toolkit.shared.services.web3_service import Web3Service

logger = get_logger(__name__)


class PatentStatus(IntEnum):
    """Verdict stored by the registry, uint8 on chain."""

    UNKNOWN = 0
    VALID = 1
    INVALID = 2
    UNDER_ATTACK = 3

    @classmethod
    def from_label(cls, label: str) -> "PatentStatus":
        """Parse a status label from patent metadata (case and space insensitive)."""
        try:
            return cls[label.strip().upper()]
        except KeyError:
            raise ValueError(f"Unknown patent status: {label}") from None


class PatentRegistryService:
    """
    Reads patent status from the on-chain registry.

    Example:
        >>> registry = PatentRegistryService(chain_id=8453)
        >>> registry.get_status(42)
        <PatentStatus.VALID: 1>
    """

    def __init__(
        self,
        chain_id: int,
        registry_address: Optional[str] = None,
        web3_service: Optional[Web3Service] = None,
        retry_config: Optional[RetryConfig] = None,
    ):
        self.chain_id = chain_id
        self.registry_address = to_checksum_address(
            registry_address or GlobalConstants.get_patent_registry(chain_id)
        )
        self.web3_service = web3_service or Web3Service.get_instance(chain_id)
        self.retry_config = retry_config or RPC_RETRY_CONFIG

    def _contract(self):
        return self.web3_service.get_contract(self.registry_address, "patent_registry")

    def _call(self, what: str, fn, *args):
        try:
            return self.retry_config.call(fn(*args).call, operation_name=what)
        except Exception as e:
            raise PatentRegistryError(
                f"Failed to read {what} from registry {self.registry_address} "
                f"on chain {self.chain_id}: {e}"
            ) from e

    def get_status(self, patent_id: int) -> PatentStatus:
        raw = self._call(
            f"status of patent {patent_id}",
            self._contract().functions.patentStatus,
            patent_id,
        )
        try:
            return PatentStatus(raw)
        except ValueError:
            logger.warning("Patent %s has unrecognized status %s", patent_id, raw)
            return PatentStatus.UNKNOWN

    def is_valid(self, patent_id: int) -> bool:
        status = self.get_status(patent_id)
        if status is not PatentStatus.VALID:
            logger.info("Patent %s is %s", patent_id, status.name)
        return status is PatentStatus.VALID

    def get_owner(self, patent_id: int) -> str:
        owner = self._call(
            f"owner of patent {patent_id}",
            self._contract().functions.ownerOf,
            patent_id,
        )
        return to_checksum_address(owner)

    def get_metadata_uri(self, patent_id: int) -> str:
        return self._call(
            f"metadata URI of patent {patent_id}",
            self._contract().functions.tokenURI,
            patent_id,
        )


class StaticPatentVerifier:
    """In-memory verdicts for offline tooling and tests."""

    def __init__(
        self,
        statuses: Optional[Dict[int, PatentStatus]] = None,
        default: PatentStatus = PatentStatus.UNKNOWN,
    ):
        self.statuses: Dict[int, PatentStatus] = dict(statuses or {})
        self.default = default

    def set_status(self, patent_id: int, status: PatentStatus) -> None:
        self.statuses[patent_id] = status

    def get_status(self, patent_id: int) -> PatentStatus:
        return self.statuses.get(patent_id, self.default)

    def is_valid(self, patent_id: int) -> bool:
        return self.get_status(patent_id) is PatentStatus.VALID
