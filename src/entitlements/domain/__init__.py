"""
Entitlement Domain Layer
========================

Domain layer for entitlement resolution.

Contains:
- Entities: TargetRecord, ChildAsset, CandidateEntitlement, EntitlementCriteria
- Value Objects: FieldMapping, MatchScore, FieldMappingEntry
- Domain Services: Stateless matching rules (EntitlementMatcher)

This layer has no dependencies on infrastructure - pure Python business logic.
"""

from src.entitlements.domain.entities import (
    TargetRecord,
    ChildAsset,
    CandidateEntitlement,
    EntitlementCriteria,
    record_kind_for,
)
from src.entitlements.domain.value_objects import (
    FieldMapping,
    FieldMappingEntry,
    MatchScore,
    EntitlementMatcher,
    field_value,
    entitlement_field_value,
    band_for_code,
    PRIORITY_RANKS,
)

__all__ = [
    # Entities
    "TargetRecord",
    "ChildAsset",
    "CandidateEntitlement",
    "EntitlementCriteria",
    "record_kind_for",
    # Value Objects & Services
    "FieldMapping",
    "FieldMappingEntry",
    "MatchScore",
    "EntitlementMatcher",
    "field_value",
    "entitlement_field_value",
    "band_for_code",
    "PRIORITY_RANKS",
]
