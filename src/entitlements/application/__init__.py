"""
Entitlement Application Layer
=============================

Application layer for entitlement resolution.

Contains:
- Services: EntitlementResolver orchestrates loading, filtering and ranking
- DTOs: Data transfer objects for API serialization and the YAML seed

This layer depends on the domain layer and repository interfaces,
but not on concrete infrastructure implementations.
"""

from src.entitlements.application.dto import (
    ChildAssetDTO,
    TargetRecordDTO,
    EntitlementDTO,
    LocationDTO,
    ResolveRequest,
    ResolveResponse,
    ResolveAllResponse,
    EntitlementSeed,
)
from src.entitlements.application.services import (
    EntitlementResolver,
    ResolutionBatch,
    IEntitlementRepository,
    IFieldMappingProvider,
)

__all__ = [
    # DTOs
    "ChildAssetDTO",
    "TargetRecordDTO",
    "EntitlementDTO",
    "LocationDTO",
    "ResolveRequest",
    "ResolveResponse",
    "ResolveAllResponse",
    "EntitlementSeed",
    # Services
    "EntitlementResolver",
    "ResolutionBatch",
    # Repository Interfaces
    "IEntitlementRepository",
    "IFieldMappingProvider",
]
