from .registry import PatentRegistryService, PatentStatus, StaticPatentVerifier

__all__ = ["PatentRegistryService", "PatentStatus", "StaticPatentVerifier"]
