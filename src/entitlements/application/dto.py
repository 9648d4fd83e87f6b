"""
Entitlement Application DTOs
============================

Data Transfer Objects for the entitlement API layer and the YAML seed.

These Pydantic models handle serialization/deserialization and validation
and convert to the frozen domain entities.
"""

from datetime import date, datetime, time
from typing import Dict, List, Literal, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import BaseModel, Field, field_validator

from src.entitlements.domain import TargetRecord, ChildAsset, CandidateEntitlement
from src.shared.domain import LocationContext


# ========== Type Aliases for Literals ==========
GuaranteeCategoryStr = Literal["Days", "Hours"]
CallTimeQualifierStr = Literal["Before", "After"]
EntitlementKindStr = Literal["IndustryStandard", "CustomerSpecific"]


# ========== Entity DTOs ==========

class ChildAssetDTO(BaseModel):
    """DTO for an asset attached to a record."""
    asset_id: str = Field(..., min_length=1)
    baseline_id: Optional[str] = None
    self_service: bool = False
    quantity: int = Field(default=0, ge=0)
    vendor_parent_code: Optional[str] = None
    scheduled_service_dates: List[date] = Field(default_factory=list)

    def to_entity(self) -> ChildAsset:
        return ChildAsset(
            asset_id=self.asset_id,
            baseline_id=self.baseline_id,
            self_service=self.self_service,
            quantity=self.quantity,
            vendor_parent_code=self.vendor_parent_code,
            scheduled_service_dates=tuple(self.scheduled_service_dates),
        )


class TargetRecordDTO(BaseModel):
    """DTO for a case or quote."""
    id: str = Field(..., min_length=1, description="Case or quote id")
    account_id: Optional[str] = None
    location_id: Optional[str] = None
    created_date: datetime = Field(..., description="Creation timestamp (timezone-aware)")
    material: Optional[str] = None
    equipment_size: Optional[str] = None
    service_schedule: Optional[str] = None
    service_type: Optional[str] = None
    transaction_type: Optional[str] = Field(None, description="Case or quote type")
    transaction_sub_type: Optional[str] = None
    transaction_reason: Optional[str] = None
    product_family: Optional[str] = None
    vendor_parent_id: Optional[str] = None
    asset_id: Optional[str] = None
    minimum_service_date: Optional[date] = None
    child_assets: List[ChildAssetDTO] = Field(default_factory=list)

    @field_validator("created_date")
    @classmethod
    def validate_created_date(cls, v: datetime) -> datetime:
        """Reject naive timestamps."""
        if v.tzinfo is None or v.utcoffset() is None:
            raise ValueError("created_date must include a UTC offset")
        return v

    def to_entity(self) -> TargetRecord:
        return TargetRecord(
            id=self.id,
            account_id=self.account_id,
            location_id=self.location_id,
            created_date=self.created_date,
            material=self.material,
            equipment_size=self.equipment_size,
            service_schedule=self.service_schedule,
            service_type=self.service_type,
            transaction_type=self.transaction_type,
            transaction_sub_type=self.transaction_sub_type,
            transaction_reason=self.transaction_reason,
            product_family=self.product_family,
            vendor_parent_id=self.vendor_parent_id,
            asset_id=self.asset_id,
            minimum_service_date=self.minimum_service_date,
            child_assets=tuple(asset.to_entity() for asset in self.child_assets),
        )


class EntitlementDTO(BaseModel):
    """DTO for a candidate entitlement."""
    id: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)
    account_id: Optional[str] = Field(None, description="Null for industry standard")
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    approval_status: str = "Approved"
    status: str = "Active"
    guarantee_category: Optional[GuaranteeCategoryStr] = "Days"
    guarantee_value: Optional[float] = None
    cutoff_hour: Optional[int] = Field(None, ge=0, le=23)
    call_time_qualifier: Optional[CallTimeQualifierStr] = None
    call_time: Optional[time] = None
    call_days: List[str] = Field(default_factory=list)
    override_business_hours: bool = False
    gold_standard: bool = False
    contractual: bool = False
    location_id: Optional[str] = None
    material: Optional[str] = None
    equipment_size: Optional[str] = None
    service_schedule: Optional[str] = None
    service_type: Optional[str] = None
    case_type: Optional[str] = None
    case_sub_type: Optional[str] = None
    case_reason: Optional[str] = None

    @field_validator("call_time")
    @classmethod
    def validate_call_time(cls, v: Optional[time]) -> Optional[time]:
        """Call times are local wall-clock values and carry no offset."""
        if v is not None and v.tzinfo is not None:
            raise ValueError("call_time must not include a UTC offset")
        return v

    def to_entity(self) -> CandidateEntitlement:
        return CandidateEntitlement(
            id=self.id,
            name=self.name,
            account_id=self.account_id,
            start_date=self.start_date,
            end_date=self.end_date,
            approval_status=self.approval_status,
            status=self.status,
            guarantee_category=self.guarantee_category,
            guarantee_value=self.guarantee_value,
            cutoff_hour=self.cutoff_hour,
            call_time_qualifier=self.call_time_qualifier,
            call_time=self.call_time,
            call_days=tuple(self.call_days),
            override_business_hours=self.override_business_hours,
            gold_standard=self.gold_standard,
            contractual=self.contractual,
            location_id=self.location_id,
            material=self.material,
            equipment_size=self.equipment_size,
            service_schedule=self.service_schedule,
            service_type=self.service_type,
            case_type=self.case_type,
            case_sub_type=self.case_sub_type,
            case_reason=self.case_reason,
        )

    @classmethod
    def from_entity(cls, entitlement: CandidateEntitlement) -> "EntitlementDTO":
        return cls(
            id=entitlement.id,
            name=entitlement.name,
            account_id=entitlement.account_id,
            start_date=entitlement.start_date,
            end_date=entitlement.end_date,
            approval_status=entitlement.approval_status,
            status=entitlement.status,
            guarantee_category=entitlement.guarantee_category,
            guarantee_value=entitlement.guarantee_value,
            cutoff_hour=entitlement.cutoff_hour,
            call_time_qualifier=entitlement.call_time_qualifier,
            call_time=entitlement.call_time,
            call_days=list(entitlement.call_days),
            override_business_hours=entitlement.override_business_hours,
            gold_standard=entitlement.gold_standard,
            contractual=entitlement.contractual,
            location_id=entitlement.location_id,
            material=entitlement.material,
            equipment_size=entitlement.equipment_size,
            service_schedule=entitlement.service_schedule,
            service_type=entitlement.service_type,
            case_type=entitlement.case_type,
            case_sub_type=entitlement.case_sub_type,
            case_reason=entitlement.case_reason,
        )


class LocationDTO(BaseModel):
    """DTO for a location's time zone context."""
    location_id: Optional[str] = None
    utc_offset_hours: Optional[float] = Field(None, ge=-14, le=14)
    timezone_id: Optional[str] = None

    @field_validator("timezone_id")
    @classmethod
    def validate_timezone_id(cls, v: Optional[str]) -> Optional[str]:
        """Reject names that are not IANA time zones."""
        if v is None:
            return v
        try:
            ZoneInfo(v)
        except (ZoneInfoNotFoundError, ValueError, OSError):
            raise ValueError(f"Unknown time zone '{v}'")
        return v

    def to_entity(self) -> LocationContext:
        return LocationContext(
            location_id=self.location_id,
            utc_offset_hours=self.utc_offset_hours,
            timezone_id=self.timezone_id,
        )


# ========== Request DTOs ==========

class ResolveRequest(BaseModel):
    """Request model for entitlement resolution."""
    record_ids: List[str] = Field(default_factory=list, description="Case or quote ids")
    now: Optional[datetime] = Field(None, description="Evaluation instant, defaults to now")


# ========== Response DTOs ==========

class ResolveResponse(BaseModel):
    """Winning entitlement per record; unmatched records are absent."""
    entitlements: Dict[str, EntitlementDTO] = Field(default_factory=dict)
    unmatched: List[str] = Field(
        default_factory=list,
        description="Requested ids with no entitlement, for manual review"
    )


class ResolveAllResponse(BaseModel):
    """Every valid entitlement per record, grouped by kind."""
    records: Dict[str, Dict[EntitlementKindStr, List[EntitlementDTO]]] = Field(default_factory=dict)


class EntitlementSeed(BaseModel):
    """Shape of the YAML file that seeds the in-memory repository."""
    records: List[TargetRecordDTO] = Field(default_factory=list)
    entitlements: List[EntitlementDTO] = Field(default_factory=list)
    locations: List[LocationDTO] = Field(default_factory=list)
