"""
SLA Value Objects
==================

Stateless date arithmetic behind service date commitments.

Everything here is a pure function of its arguments: records, the
resolved entitlement, the location offset and the business-hours
calendar all arrive as parameters.
"""

import math
from datetime import date, datetime, time, timedelta, timezone
from typing import Iterable, List, Optional

from src.config import GuaranteeCategory, ProductFamily, VALID_GUARANTEE_CATEGORIES
from src.core import CalculationException, ValidationException
from src.entitlements.domain import TargetRecord, ChildAsset, CandidateEntitlement
from src.entitlements.domain.value_objects import is_blank
from src.shared.domain import (
    LocationContext,
    BusinessHoursCalendar,
    to_local_time,
    local_to_utc,
    next_business_day,
)

CAPACITY_DATE_FORMAT = "%m/%d/%Y"
HOURS_PER_DAY = 24

OVERRIDE_REQUIRED_MESSAGE = "Please fill SLA Override Reason and SLA Override Comment"


class SLADateCalculator:
    """
    Pure functions for service date calculations.

    Stateless utility class - all date commitment logic in one place.
    """

    @staticmethod
    def days_delta(category: Optional[str], value: Optional[float]) -> int:
        """
        Whole days granted by an entitlement's guarantee.

        Days are taken as-is, hours are floored to whole days. A missing
        category is read as Days.

        Raises:
            CalculationException: for a missing/negative value or an unknown category
        """
        if value is None:
            raise CalculationException("Entitlement has no guarantee value")
        if value < 0:
            raise CalculationException(
                f"Guarantee value must not be negative, got {value}"
            )

        category = category or GuaranteeCategory.DAYS
        if category not in VALID_GUARANTEE_CATEGORIES:
            raise CalculationException(
                f"Unknown guarantee category '{category}'",
                {"category": category}
            )
        if category == GuaranteeCategory.HOURS:
            return int(math.floor(value / HOURS_PER_DAY))
        return int(math.floor(value))

    @staticmethod
    def is_before_cutoff(local_datetime: datetime, cutoff_hour: int) -> bool:
        """True when the local wall-clock hour is strictly before the cutoff."""
        if not 0 <= cutoff_hour <= 23:
            raise CalculationException(f"Cutoff hour out of range: {cutoff_hour}")
        return local_datetime.hour < cutoff_hour

    @staticmethod
    def entitlement_service_date(
        record: TargetRecord,
        entitlement: CandidateEntitlement,
        utc_offset_hours: float,
        calendar: BusinessHoursCalendar,
        default_cutoff_hour: int
    ) -> date:
        """
        Service date from the entitlement guarantee.

        Local creation date + guaranteed days, one more day when the request
        came in at or after the cutoff hour, then rolled forward to a
        business day unless the entitlement overrides business hours.
        """
        local_created = to_local_time(record.created_date, utc_offset_hours)
        delta = SLADateCalculator.days_delta(
            entitlement.guarantee_category,
            entitlement.guarantee_value
        )
        cutoff_hour = entitlement.cutoff_hour
        if cutoff_hour is None:
            cutoff_hour = default_cutoff_hour

        service_date = local_created.date() + timedelta(days=delta)
        if not SLADateCalculator.is_before_cutoff(local_created, cutoff_hour):
            service_date += timedelta(days=1)

        if not entitlement.override_business_hours:
            service_date = next_business_day(service_date, calendar)
        return service_date

    @staticmethod
    def parse_capacity_date(value: str) -> date:
        """Parse a capacity planner date string (MM/DD/YYYY)."""
        if not isinstance(value, str):
            raise CalculationException(f"Capacity date is not a string: {value!r}")
        try:
            return datetime.strptime(value.strip(), CAPACITY_DATE_FORMAT).date()
        except ValueError as e:
            raise CalculationException(f"Invalid capacity date '{value}'") from e

    @staticmethod
    def select_capacity_date(
        available_dates: Iterable[date],
        scheduled_dates: Iterable[date],
        earliest: date,
        calendar: BusinessHoursCalendar,
        override_business_hours: bool = False
    ) -> Optional[date]:
        """
        Earliest offered date that is usable for the asset.

        A date is usable when it is on or after ``earliest``, no work order is
        already scheduled on it and, unless overridden, it is a business day.
        """
        taken = set(scheduled_dates)
        for candidate in sorted(set(available_dates)):
            if candidate < earliest or candidate in taken:
                continue
            if not override_business_hours and not calendar.is_within(candidate):
                continue
            return candidate
        return None

    @staticmethod
    def is_capacity_eligible(record: TargetRecord, vendor_code: str) -> bool:
        """Rolloff requests for the capacity vendor go to the capacity planner."""
        return (
            record.product_family == ProductFamily.ROLLOFF
            and record.vendor_parent_id == vendor_code
        )

    @staticmethod
    def resolve_capacity_baseline(
        record: TargetRecord,
        vendor_code: str
    ) -> Optional[ChildAsset]:
        """
        First child asset that can be looked up in the capacity planner.

        The asset must be self-service, have quantity 1, belong to the
        capacity vendor and carry a baseline id.
        """
        for asset in record.child_assets:
            if (asset.self_service
                    and asset.quantity == 1
                    and asset.vendor_parent_code == vendor_code
                    and not is_blank(asset.baseline_id)):
                return asset
        return None

    @staticmethod
    def requires_recalculation(old: TargetRecord, new: TargetRecord) -> bool:
        """
        Whether a stored service date for ``old`` is stale for ``new``.

        True when the product family, case type, location or asset changed.
        """
        return (
            old.product_family != new.product_family
            or old.transaction_type != new.transaction_type
            or old.location_id != new.location_id
            or old.asset_id != new.asset_id
        )

    @staticmethod
    def calculate_sla_datetime(
        service_date: date,
        service_time: time,
        location: LocationContext
    ) -> datetime:
        """Combine a chosen local date and time into a UTC SLA timestamp."""
        probe = datetime.combine(service_date, service_time, tzinfo=timezone.utc)
        return local_to_utc(service_date, service_time, location.offset_at(probe))

    @staticmethod
    def validate_service_date_override(
        selected_date: date,
        sla_timestamp: Optional[datetime],
        location: LocationContext,
        override_reason: Optional[str],
        override_comment: Optional[str],
        today: date
    ) -> bool:
        """
        Check a manually chosen service date against the SLA commitment.

        Choosing a date earlier than the SLA date, but not in the past,
        needs both an override reason and comment.

        Returns:
            True when the selection overrides the SLA date

        Raises:
            ValidationException: if an override lacks its reason or comment
        """
        if sla_timestamp is None:
            return False

        sla_local_date = to_local_time(
            sla_timestamp, location.offset_at(sla_timestamp)
        ).date()
        if not (today <= selected_date < sla_local_date):
            return False

        if is_blank(override_reason) or is_blank(override_comment):
            raise ValidationException(
                OVERRIDE_REQUIRED_MESSAGE,
                {
                    "selected_date": selected_date.isoformat(),
                    "sla_date": sla_local_date.isoformat(),
                }
            )
        return True


def parse_capacity_dates(values: Iterable[str]) -> List[date]:
    """Parse a list of capacity planner date strings."""
    return [SLADateCalculator.parse_capacity_date(v) for v in values]
