"""
SLA Application Services
=========================

Application services orchestrate business logic and coordinate between
domain calculators and external providers.

Following SOLID principles:
- Single Responsibility: SLAScheduler picks and runs a date strategy
- Dependency Inversion: Depend on abstractions (providers), not concrete implementations
"""

import asyncio
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone
from typing import Dict, Iterable, List, Mapping, Optional, Tuple

from src.config import settings, CalculationMethod, ProductFamily
from src.core import (
    ApplicationException, CapacityPlannerException, NoEntitlementError
)
from src.entitlements.domain import TargetRecord, ChildAsset, CandidateEntitlement
from src.shared.domain import (
    LocationContext,
    BusinessHoursCalendar,
    require_utc,
    to_local_time,
    end_of_day_utc,
    next_business_day,
)
from src.shared.infrastructure.logging import get_logger, log_latency
from src.sla.domain import ServiceDateResult, SLADateCalculator

logger = get_logger(__name__)


# ========== Provider Interfaces (Dependency Inversion) ==========

class IBusinessHoursProvider(ABC):
    """Interface for the organization's business-hours calendar."""

    @abstractmethod
    def get_business_hours(self) -> BusinessHoursCalendar:
        """Get the current business-hours calendar."""


class ICapacityPlanner(ABC):
    """Interface for the external capacity planning system."""

    @abstractmethod
    async def get_available_dates(self, baseline_id: str) -> List[date]:
        """
        Get the dates the planner can serve a baseline on.

        Raises:
            CapacityPlannerException: on any failed call
        """


# ========== Application Services ==========

@dataclass(frozen=True)
class CapacityOutcome:
    """Result of one capacity planner lookup within a batch."""
    dates: Tuple[date, ...] = ()
    error: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return bool(self.dates) and self.error is None


class SLAScheduler:
    """
    Service for service date and SLA timestamp commitments.

    Holds configuration only; every call works on the arguments it is
    given, so one instance can serve concurrent batches.
    """

    def __init__(
        self,
        calendar_provider: IBusinessHoursProvider,
        capacity_planner: Optional[ICapacityPlanner] = None,
        vendor_code: Optional[str] = None,
        default_cutoff_hour: Optional[int] = None,
        capacity_timeout_seconds: Optional[float] = None,
        batch_deadline_seconds: Optional[float] = None,
        max_concurrency: Optional[int] = None
    ):
        self._calendar_provider = calendar_provider
        self._capacity_planner = capacity_planner
        self._vendor_code = vendor_code or settings.capacity_vendor_code
        self._default_cutoff_hour = (
            default_cutoff_hour if default_cutoff_hour is not None
            else settings.default_cutoff_hour
        )
        self._timeout = capacity_timeout_seconds or settings.capacity_timeout_seconds
        self._batch_deadline = batch_deadline_seconds or settings.capacity_batch_deadline_seconds
        self._max_concurrency = max_concurrency or settings.capacity_max_concurrency

    async def calculate(
        self,
        record: TargetRecord,
        entitlement: Optional[CandidateEntitlement],
        location: Optional[LocationContext] = None,
        now: Optional[datetime] = None
    ) -> ServiceDateResult:
        """
        Calculate the service date for one record.

        Args:
            record: Case or quote being scheduled
            entitlement: Entitlement resolved for the record
            location: Time zone context of the record's location
            now: Evaluation instant, defaults to the current time

        Returns:
            ServiceDateResult; date calculation faults yield an ErrorFallback result

        Raises:
            NoEntitlementError: if no entitlement is given
            ConfigurationException: if the business-hours calendar is unavailable
        """
        if entitlement is None:
            raise NoEntitlementError(record.id)

        now = self._normalize_now(now)
        calendar = self._calendar_provider.get_business_hours()
        location = location or LocationContext()

        outcomes: Dict[str, CapacityOutcome] = {}
        asset = self._capacity_asset(record, entitlement)
        if asset is not None:
            outcomes = await self._fetch_capacity({asset.baseline_id})

        return self._calculate_guarded(record, entitlement, location, calendar, now, outcomes)

    async def calculate_batch(
        self,
        records: Iterable[TargetRecord],
        entitlements_by_record: Mapping[str, Optional[CandidateEntitlement]],
        locations_by_record: Mapping[str, LocationContext],
        now: Optional[datetime] = None
    ) -> Dict[str, ServiceDateResult]:
        """
        Calculate service dates for many records without side effects.

        The capacity planner is called at most once per unique baseline id,
        no matter how many records share it. Records without an entitlement
        are left out of the result.
        """
        now = self._normalize_now(now)
        calendar = self._calendar_provider.get_business_hours()

        scheduled: List[Tuple[TargetRecord, CandidateEntitlement]] = []
        for record in records:
            entitlement = entitlements_by_record.get(record.id)
            if entitlement is None:
                logger.warning(
                    "No entitlement for record, skipping service date",
                    extra={"record_id": record.id}
                )
                continue
            scheduled.append((record, entitlement))

        baseline_ids = set()
        for record, entitlement in scheduled:
            asset = self._capacity_asset(record, entitlement)
            if asset is not None:
                baseline_ids.add(asset.baseline_id)

        with log_latency(
            logger, "calculate_batch",
            record_count=len(scheduled), baseline_count=len(baseline_ids)
        ):
            outcomes = await self._fetch_capacity(baseline_ids)

            results: Dict[str, ServiceDateResult] = {}
            for record, entitlement in scheduled:
                location = locations_by_record.get(record.id) or LocationContext()
                results[record.id] = self._calculate_guarded(
                    record, entitlement, location, calendar, now, outcomes
                )

        fallbacks = [rid for rid, result in results.items() if result.is_fallback]
        if fallbacks:
            logger.warning(
                "Batch records used the error fallback date",
                extra={"record_ids": fallbacks, "fallback_count": len(fallbacks)}
            )
        return results

    # ========== Strategy selection ==========

    def uses_entitlement_only(
        self,
        record: TargetRecord,
        entitlement: CandidateEntitlement
    ) -> bool:
        """Gold standard, contractual and commercial requests skip the planner."""
        return (
            entitlement.gold_standard
            or entitlement.contractual
            or record.product_family == ProductFamily.COMMERCIAL
        )

    def _capacity_asset(
        self,
        record: TargetRecord,
        entitlement: CandidateEntitlement
    ) -> Optional[ChildAsset]:
        """Asset to look up in the capacity planner, or None for the entitlement path."""
        if self.uses_entitlement_only(record, entitlement):
            return None
        if not SLADateCalculator.is_capacity_eligible(record, self._vendor_code):
            return None
        return SLADateCalculator.resolve_capacity_baseline(record, self._vendor_code)

    # ========== Capacity planner calls ==========

    async def _fetch_capacity(self, baseline_ids: Iterable[str]) -> Dict[str, CapacityOutcome]:
        """
        Look up every baseline once, bounded by concurrency and a batch deadline.

        Calls that have not started when the deadline passes are skipped and
        reported as failed, so their records take the entitlement path.
        """
        baseline_ids = sorted(set(baseline_ids))
        if not baseline_ids:
            return {}

        if self._capacity_planner is None:
            return {
                baseline_id: CapacityOutcome(error="Capacity planner is not configured")
                for baseline_id in baseline_ids
            }

        loop = asyncio.get_running_loop()
        deadline = loop.time() + self._batch_deadline
        semaphore = asyncio.Semaphore(self._max_concurrency)

        async def fetch(baseline_id: str) -> Tuple[str, CapacityOutcome]:
            async with semaphore:
                remaining = deadline - loop.time()
                if remaining <= 0:
                    logger.warning(
                        "Capacity batch deadline reached, skipping call",
                        extra={"baseline_id": baseline_id}
                    )
                    return baseline_id, CapacityOutcome(
                        error="Capacity planner batch deadline reached"
                    )
                return baseline_id, await self._fetch_one(
                    baseline_id, min(self._timeout, remaining)
                )

        results = await asyncio.gather(*(fetch(b) for b in baseline_ids))
        return dict(results)

    async def _fetch_one(self, baseline_id: str, timeout: float) -> CapacityOutcome:
        """Single capacity call; every failure becomes a failed outcome."""
        try:
            dates = await asyncio.wait_for(
                self._capacity_planner.get_available_dates(baseline_id),
                timeout=timeout
            )
        except asyncio.TimeoutError:
            error = f"Capacity planner timed out after {timeout:.1f}s"
        except CapacityPlannerException as e:
            error = e.message
        except Exception as e:
            error = f"Capacity planner call failed: {e}"
        else:
            if dates:
                return CapacityOutcome(dates=tuple(sorted(set(dates))))
            error = "Capacity planner returned no dates"

        logger.warning(
            "Capacity planner lookup failed, using entitlement dates",
            extra={"baseline_id": baseline_id, "error": error}
        )
        return CapacityOutcome(error=error)

    # ========== Date calculation ==========

    def _calculate_guarded(
        self,
        record: TargetRecord,
        entitlement: CandidateEntitlement,
        location: LocationContext,
        calendar: BusinessHoursCalendar,
        now: datetime,
        outcomes: Mapping[str, CapacityOutcome]
    ) -> ServiceDateResult:
        """Run the selected strategy; any fault yields an ErrorFallback result."""
        try:
            result = self._calculate(record, entitlement, location, calendar, outcomes)
        except Exception as e:
            message = e.message if isinstance(e, ApplicationException) else repr(e)
            logger.error(
                "Service date calculation failed, using fallback date",
                extra={"record_id": record.id, "error": message}
            )
            return self._error_fallback(record, entitlement, location, calendar, now, message)

        logger.debug("Service date calculated", extra=result.to_dict())
        return result

    def _calculate(
        self,
        record: TargetRecord,
        entitlement: CandidateEntitlement,
        location: LocationContext,
        calendar: BusinessHoursCalendar,
        outcomes: Mapping[str, CapacityOutcome]
    ) -> ServiceDateResult:
        offset = location.offset_at(record.created_date)
        error_message = None

        asset = self._capacity_asset(record, entitlement)
        if asset is not None:
            outcome = outcomes.get(asset.baseline_id) or CapacityOutcome(
                error="Capacity planner was not called"
            )
            if outcome.succeeded:
                earliest = to_local_time(record.created_date, offset).date()
                chosen = SLADateCalculator.select_capacity_date(
                    outcome.dates,
                    asset.scheduled_service_dates,
                    earliest,
                    calendar,
                    entitlement.override_business_hours
                )
                if chosen is not None:
                    return ServiceDateResult(
                        service_date=chosen,
                        sla_timestamp=self._end_of_day(chosen, location, offset),
                        calculation_method=CalculationMethod.CAPACITY_PLANNER,
                        available_dates=outcome.dates,
                        record_id=record.id,
                    )
                error_message = (
                    f"No usable capacity planner date for baseline {asset.baseline_id}"
                )
            else:
                error_message = outcome.error

        service_date = SLADateCalculator.entitlement_service_date(
            record, entitlement, offset, calendar, self._default_cutoff_hour
        )
        return ServiceDateResult(
            service_date=service_date,
            sla_timestamp=self._end_of_day(service_date, location, offset),
            calculation_method=CalculationMethod.ENTITLEMENT_BASED,
            error_message=error_message,
            record_id=record.id,
        )

    def _error_fallback(
        self,
        record: TargetRecord,
        entitlement: Optional[CandidateEntitlement],
        location: LocationContext,
        calendar: BusinessHoursCalendar,
        now: datetime,
        message: str
    ) -> ServiceDateResult:
        """
        Tomorrow at end of day, rolled to a business day.

        Must not raise: inputs that broke the normal path are read
        tolerantly and a broken location falls back to UTC.
        """
        base = now
        created = getattr(record, "created_date", None)
        if isinstance(created, datetime) and created.tzinfo is not None:
            base = max(now, created.astimezone(timezone.utc))

        offset = self._safe_offset(location, base)
        service_date = to_local_time(base, offset).date() + timedelta(days=1)

        if not getattr(entitlement, "override_business_hours", False):
            try:
                service_date = next_business_day(service_date, calendar)
            except ApplicationException as e:
                logger.error(
                    "Fallback date could not be moved to a business day",
                    extra={"record_id": getattr(record, "id", None), "error": e.message}
                )

        return ServiceDateResult(
            service_date=service_date,
            sla_timestamp=end_of_day_utc(service_date, offset),
            calculation_method=CalculationMethod.ERROR_FALLBACK,
            error_message=message,
            record_id=getattr(record, "id", None),
        )

    @staticmethod
    def _safe_offset(location: LocationContext, instant: datetime) -> float:
        """Location offset, or UTC when it cannot be used."""
        try:
            offset = float(location.offset_at(instant))
            timezone(timedelta(hours=offset))
            return offset
        except Exception as e:
            logger.warning(
                "Unusable location offset, falling back to UTC",
                extra={"location_id": getattr(location, "location_id", None), "error": str(e)}
            )
            return 0.0

    @staticmethod
    def _end_of_day(service_date: date, location: LocationContext, offset: float) -> datetime:
        """23:59:59 local on the service date, using the offset in force on that day."""
        probe = end_of_day_utc(service_date, offset)
        return end_of_day_utc(service_date, location.offset_at(probe))

    @staticmethod
    def _normalize_now(now: Optional[datetime]) -> datetime:
        """Current instant in UTC; naive values are read as UTC."""
        if now is None:
            return datetime.now(timezone.utc)
        if now.tzinfo is None or now.utcoffset() is None:
            return now.replace(tzinfo=timezone.utc)
        return require_utc(now)
