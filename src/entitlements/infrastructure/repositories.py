"""
Entitlement Infrastructure Repositories
=======================================

In-memory implementation of the record/entitlement repository interface.

The hosting platform owns the real record store and plugs its own
implementation of ``IEntitlementRepository`` into the resolver; this one
serves local runs, the HTTP surface and tests. It can be seeded from YAML.
"""

from pathlib import Path
from typing import Dict, Iterable, List, Optional, Set

import yaml
from pydantic import ValidationError

from src.core import RepositoryException
from src.entitlements.application import IEntitlementRepository, EntitlementSeed
from src.entitlements.domain import (
    TargetRecord, CandidateEntitlement, EntitlementCriteria, EntitlementMatcher
)
from src.shared.domain import LocationContext
from src.shared.infrastructure.logging import get_logger

logger = get_logger(__name__)


class InMemoryEntitlementRepository(IEntitlementRepository):
    """
    Dictionary-backed repository.

    Candidates are returned in insertion order, which is the order the
    resolver's first-seen tie-break relies on.
    """

    def __init__(
        self,
        records: Optional[Iterable[TargetRecord]] = None,
        entitlements: Optional[Iterable[CandidateEntitlement]] = None,
        locations: Optional[Iterable[LocationContext]] = None
    ):
        self._records: Dict[str, TargetRecord] = {}
        self._entitlements: List[CandidateEntitlement] = []
        self._locations: Dict[str, LocationContext] = {}

        for record in records or []:
            self.add_record(record)
        for entitlement in entitlements or []:
            self.add_entitlement(entitlement)
        for location in locations or []:
            self.add_location(location)

    @classmethod
    def from_yaml(cls, path: Path) -> "InMemoryEntitlementRepository":
        """Build a repository from a YAML seed file."""
        path = Path(path)
        if not path.exists():
            raise RepositoryException(f"Seed file not found: {path}")

        try:
            with open(path, "r") as f:
                data = yaml.safe_load(f) or {}
            seed = EntitlementSeed(**data)
        except (yaml.YAMLError, ValidationError, TypeError) as e:
            raise RepositoryException(f"Invalid seed file {path}: {e}") from e

        repository = cls(
            records=[r.to_entity() for r in seed.records],
            entitlements=[e.to_entity() for e in seed.entitlements],
            locations=[loc.to_entity() for loc in seed.locations],
        )
        logger.info(
            "Seeded in-memory entitlement repository",
            extra={
                "records": len(seed.records),
                "entitlements": len(seed.entitlements),
                "locations": len(seed.locations),
            }
        )
        return repository

    def add_record(self, record: TargetRecord) -> None:
        self._records[record.id] = record

    def add_entitlement(self, entitlement: CandidateEntitlement) -> None:
        self._entitlements.append(entitlement)

    def add_location(self, location: LocationContext) -> None:
        if not location.location_id:
            raise RepositoryException("Location context needs a location_id")
        self._locations[location.location_id] = location

    async def get_target_records(self, record_ids: Set[str]) -> List[TargetRecord]:
        """Get records by id; unknown ids are skipped."""
        return [self._records[rid] for rid in sorted(record_ids) if rid in self._records]

    async def get_candidate_entitlements(
        self,
        criteria: EntitlementCriteria
    ) -> List[CandidateEntitlement]:
        """Get approved, unexpired entitlements in scope for the criteria."""
        candidates = []
        for entitlement in self._entitlements:
            if not EntitlementMatcher.passes_status(entitlement):
                continue
            if entitlement.is_industry_standard:
                if not criteria.include_industry_standard:
                    continue
            elif entitlement.account_id not in criteria.account_ids:
                continue
            if (criteria.as_of and entitlement.end_date
                    and entitlement.end_date < criteria.as_of):
                continue
            if (criteria.latest_service_floor and entitlement.start_date
                    and entitlement.start_date > criteria.latest_service_floor):
                continue
            candidates.append(entitlement)
        return candidates

    async def get_location_contexts(self, location_ids: Set[str]) -> Dict[str, LocationContext]:
        """Get location contexts by id; unknown ids are skipped."""
        return {lid: self._locations[lid] for lid in location_ids if lid in self._locations}
