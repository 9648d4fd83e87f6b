"""
Entitlement Application Services
================================

Application services orchestrate business logic and coordinate between
domain entities and repositories.

Following SOLID principles:
- Single Responsibility: the resolver only matches; it never persists
- Dependency Inversion: depend on abstractions (repositories), not concrete implementations
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, Iterable, List, Optional, Set

from src.config import VALID_ENTITLEMENT_KINDS
from src.core import CalculationException
from src.entitlements.domain import (
    TargetRecord, CandidateEntitlement, EntitlementCriteria,
    FieldMapping, EntitlementMatcher
)
from src.shared.domain import LocationContext, to_local_time
from src.shared.infrastructure.logging import get_logger, log_latency

logger = get_logger(__name__)


# ========== Repository Interfaces (Dependency Inversion) ==========

class IEntitlementRepository(ABC):
    """Interface for record, entitlement and location data access."""

    @abstractmethod
    async def get_target_records(self, record_ids: Set[str]) -> List[TargetRecord]:
        """Batch-load records by id. Unknown ids are simply not returned."""

    @abstractmethod
    async def get_candidate_entitlements(
        self,
        criteria: EntitlementCriteria
    ) -> List[CandidateEntitlement]:
        """Load candidate entitlements, in a stable order."""

    @abstractmethod
    async def get_location_contexts(self, location_ids: Set[str]) -> Dict[str, LocationContext]:
        """Batch-load location time zone contexts."""


class IFieldMappingProvider(ABC):
    """Interface for field mapping configuration access."""

    @abstractmethod
    def get_field_mappings(self) -> List[FieldMapping]:
        """Get the current field mapping configuration."""


# ========== Application Services ==========

@dataclass
class ResolutionBatch:
    """Records of one resolution call and the candidates that survived filtering."""
    mappings: List[FieldMapping]
    records: List[TargetRecord]
    survivors: Dict[str, List[CandidateEntitlement]] = field(default_factory=dict)


class EntitlementResolver:
    """
    Matches records against candidate entitlements.

    Holds no state between calls; configuration and candidates are loaded
    fresh for every batch.
    """

    def __init__(
        self,
        repository: IEntitlementRepository,
        mapping_provider: IFieldMappingProvider
    ):
        self._repository = repository
        self._mapping_provider = mapping_provider

    async def resolve_prioritized(
        self,
        record_ids: Iterable[str],
        now: Optional[datetime] = None
    ) -> Dict[str, CandidateEntitlement]:
        """
        Select the single best entitlement for each record.

        Args:
            record_ids: Case or quote ids
            now: Evaluation instant (defaults to current UTC time)

        Returns:
            Dict mapping record id to its winning entitlement. Records that
            are unknown or have no surviving candidate are absent.

        Raises:
            ConfigurationException: if the field mapping configuration is
                missing or malformed
        """
        ids = {record_id for record_id in record_ids if record_id}
        if not ids:
            return {}

        with log_latency(logger, "resolve_prioritized", record_count=len(ids)):
            batch = await self._load_batch(ids, now)

            winners: Dict[str, CandidateEntitlement] = {}
            for record in batch.records:
                best = EntitlementMatcher.select_best(
                    record, batch.survivors.get(record.id, []), batch.mappings
                )
                if best is None:
                    logger.info(
                        "No entitlement matched record",
                        extra={"record_id": record.id}
                    )
                    continue

                entitlement, match = best
                winners[record.id] = entitlement
                logger.debug(
                    "Entitlement selected",
                    extra={
                        "record_id": record.id,
                        "entitlement_id": entitlement.id,
                        "priority_rank": match.priority_rank,
                        "customer_score": match.customer_score,
                        "service_score": match.service_score,
                        "transaction_score": match.transaction_score,
                    }
                )

        return winners

    async def resolve_all(
        self,
        record_ids: Iterable[str],
        now: Optional[datetime] = None
    ) -> Dict[str, Dict[str, List[CandidateEntitlement]]]:
        """
        List every valid entitlement per record, grouped by kind, unranked.

        Returns:
            Dict mapping record id to {"IndustryStandard": [...],
            "CustomerSpecific": [...]}. Unknown records are absent; a known
            record with no valid candidate maps to two empty lists.
        """
        ids = {record_id for record_id in record_ids if record_id}
        if not ids:
            return {}

        with log_latency(logger, "resolve_all", record_count=len(ids)):
            batch = await self._load_batch(ids, now)

            grouped: Dict[str, Dict[str, List[CandidateEntitlement]]] = {}
            for record in batch.records:
                groups: Dict[str, List[CandidateEntitlement]] = {
                    kind: [] for kind in VALID_ENTITLEMENT_KINDS
                }
                for candidate in batch.survivors.get(record.id, []):
                    groups[candidate.kind].append(candidate)
                grouped[record.id] = groups

        return grouped

    async def _load_batch(self, record_ids: Set[str], now: Optional[datetime]) -> ResolutionBatch:
        """Load configuration, records and candidates, then run the filter chain."""
        now = now or datetime.now(timezone.utc)
        today = now.astimezone(timezone.utc).date()

        mappings = EntitlementMatcher.validate_mappings(
            self._mapping_provider.get_field_mappings()
        )

        loaded = await self._repository.get_target_records(record_ids)
        records = []
        for record in loaded:
            if record.id not in record_ids:
                continue
            if record.kind is None:
                logger.warning(
                    "Skipping record with unrecognised id namespace",
                    extra={"record_id": record.id}
                )
                continue
            records.append(record)

        missing = record_ids - {record.id for record in records}
        if missing:
            logger.info(
                "Records not found",
                extra={"record_ids": sorted(missing)}
            )

        batch = ResolutionBatch(mappings=mappings, records=records)
        if not records:
            return batch

        criteria = EntitlementCriteria(
            account_ids=frozenset(r.account_id for r in records if r.account_id),
            include_industry_standard=True,
            latest_service_floor=max(r.service_floor_date for r in records),
            as_of=today,
        )
        candidates = await self._repository.get_candidate_entitlements(criteria)
        locations = await self._repository.get_location_contexts(
            {r.location_id for r in records if r.location_id}
        )

        for record in list(records):
            local_created = self._local_created(record, locations)
            if local_created is None:
                records.remove(record)
                continue
            batch.survivors[record.id] = [
                candidate for candidate in candidates
                if EntitlementMatcher.passes_filters(record, candidate, today, local_created)
            ]

        logger.info(
            "Entitlement candidates filtered",
            extra={
                "record_count": len(records),
                "candidate_count": len(candidates),
                "mapping_count": len(mappings),
            }
        )
        return batch

    @staticmethod
    def _local_created(
        record: TargetRecord,
        locations: Dict[str, LocationContext]
    ) -> Optional[datetime]:
        """Record creation time on the location's wall clock, None if unusable."""
        location = locations.get(record.location_id or "", LocationContext())
        try:
            return to_local_time(record.created_date, location.offset_at(record.created_date))
        except CalculationException as e:
            logger.warning(
                "Skipping record with unusable creation time or time zone",
                extra={"record_id": record.id, "error": e.message}
            )
            return None
