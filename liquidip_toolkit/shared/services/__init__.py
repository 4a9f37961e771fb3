from liquidip_toolkit.shared.services.web3_service import Web3Service

__all__ = ["Web3Service"]
