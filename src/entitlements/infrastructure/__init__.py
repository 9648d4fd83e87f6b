"""
Entitlement Infrastructure Layer
================================

Infrastructure implementations for entitlement resolution:
- Repositories: In-memory record/entitlement store
- External: Engine YAML config manager with hot reload
"""

from src.entitlements.infrastructure.repositories import InMemoryEntitlementRepository
from src.entitlements.infrastructure.external import (
    EngineConfig,
    EngineConfigManager,
    ConfigFileHandler,
)

__all__ = [
    "InMemoryEntitlementRepository",
    "EngineConfig",
    "EngineConfigManager",
    "ConfigFileHandler",
]
