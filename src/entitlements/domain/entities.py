"""
Entitlement Domain Entities
===========================

Pure Python domain entities for entitlement resolution.

Records and entitlements are owned by the persistence layer; this engine
only reads them, so every entity here is frozen.
"""

from dataclasses import dataclass, field
from datetime import date, datetime, time
from typing import FrozenSet, Optional, Tuple

from src.config import (
    CASE_ID_PREFIX, QUOTE_ID_PREFIX,
    RecordKind, EntitlementKind, ApprovalStatus, EntitlementStatus,
    GuaranteeCategory
)


def record_kind_for(record_id: str) -> Optional[str]:
    """Derive the record kind from the id namespace, or None if unknown."""
    if not record_id:
        return None
    if record_id.startswith(CASE_ID_PREFIX):
        return RecordKind.CASE
    if record_id.startswith(QUOTE_ID_PREFIX):
        return RecordKind.QUOTE
    return None


@dataclass(frozen=True)
class ChildAsset:
    """
    Asset attached to a record.

    Carries the capacity-planner baseline and the dates of work orders
    already scheduled against the asset.
    """
    asset_id: str
    baseline_id: Optional[str] = None
    self_service: bool = False
    quantity: int = 0
    vendor_parent_code: Optional[str] = None
    scheduled_service_dates: Tuple[date, ...] = ()


@dataclass(frozen=True)
class TargetRecord:
    """
    A case or quote that needs an entitlement.

    The ``transaction_*`` attributes hold the case type/sub-type/reason for
    cases and the quote equivalents for quotes.
    """

    # Identity
    id: str
    account_id: Optional[str]
    location_id: Optional[str]
    created_date: datetime

    # Service identification
    material: Optional[str] = None
    equipment_size: Optional[str] = None
    service_schedule: Optional[str] = None
    service_type: Optional[str] = None

    # Transaction identification
    transaction_type: Optional[str] = None
    transaction_sub_type: Optional[str] = None
    transaction_reason: Optional[str] = None

    # Scheduling context
    product_family: Optional[str] = None
    vendor_parent_id: Optional[str] = None
    asset_id: Optional[str] = None
    minimum_service_date: Optional[date] = None
    child_assets: Tuple[ChildAsset, ...] = ()

    @property
    def kind(self) -> Optional[str]:
        """Record kind derived from the id namespace."""
        return record_kind_for(self.id)

    @property
    def service_floor_date(self) -> date:
        """Earliest date service may be requested for."""
        if self.minimum_service_date is not None:
            return self.minimum_service_date
        return self.created_date.date()


@dataclass(frozen=True)
class CandidateEntitlement:
    """
    Contractual service commitment that may apply to a record.

    ``account_id`` of None marks an industry-standard entitlement that
    applies to any account.
    """

    id: str
    name: str
    account_id: Optional[str] = None

    # Validity
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    approval_status: str = ApprovalStatus.APPROVED
    status: str = EntitlementStatus.ACTIVE

    # Guarantee
    guarantee_category: Optional[str] = GuaranteeCategory.DAYS
    guarantee_value: Optional[float] = None
    cutoff_hour: Optional[int] = None

    # Call-time / call-day restriction
    call_time_qualifier: Optional[str] = None
    call_time: Optional[time] = None
    call_days: Tuple[str, ...] = ()

    # Flags
    override_business_hours: bool = False
    gold_standard: bool = False
    contractual: bool = False

    # Comparison fields
    location_id: Optional[str] = None
    material: Optional[str] = None
    equipment_size: Optional[str] = None
    service_schedule: Optional[str] = None
    service_type: Optional[str] = None
    case_type: Optional[str] = None
    case_sub_type: Optional[str] = None
    case_reason: Optional[str] = None

    @property
    def kind(self) -> str:
        """Industry standard when no owning account is set."""
        if self.account_id:
            return EntitlementKind.CUSTOMER_SPECIFIC
        return EntitlementKind.INDUSTRY_STANDARD

    @property
    def is_industry_standard(self) -> bool:
        return self.kind == EntitlementKind.INDUSTRY_STANDARD


@dataclass(frozen=True)
class EntitlementCriteria:
    """Filter criteria handed to the repository when loading candidates."""
    account_ids: FrozenSet[str] = field(default_factory=frozenset)
    include_industry_standard: bool = True
    latest_service_floor: Optional[date] = None
    as_of: Optional[date] = None
