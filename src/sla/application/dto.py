"""
SLA Application DTOs
=====================

Data Transfer Objects for SLA API layer.

These Pydantic models handle serialization/deserialization and validation
for API requests and responses. Record, entitlement and location payloads
reuse the entitlement DTOs.
"""

from pydantic import BaseModel, Field, field_validator
from typing import Dict, List, Optional, Literal
from datetime import date, datetime, time

from src.entitlements.application.dto import TargetRecordDTO, EntitlementDTO, LocationDTO
from src.sla.domain import ServiceDateResult


# ========== Type Aliases for Literals ==========
CalculationMethodStr = Literal[
    "EntitlementBased", "CapacityPlanner", "IndustryFallback", "ErrorFallback"
]


# ========== Request DTOs ==========

class CalculateRequest(BaseModel):
    """Request model for a single service date calculation."""
    record: TargetRecordDTO = Field(..., description="Case or quote to schedule")
    entitlement: Optional[EntitlementDTO] = Field(
        None,
        description="Resolved entitlement; required for a calculation"
    )
    location: Optional[LocationDTO] = Field(None, description="Location time zone context")
    now: Optional[datetime] = Field(None, description="Evaluation instant, defaults to now")


class CalculateBatchRequest(BaseModel):
    """Request model for a batch of service date calculations."""
    records: List[TargetRecordDTO] = Field(..., description="Cases or quotes to schedule")
    entitlements: Dict[str, EntitlementDTO] = Field(
        default_factory=dict,
        description="Resolved entitlement per record id"
    )
    locations: Dict[str, LocationDTO] = Field(
        default_factory=dict,
        description="Location context per record id"
    )
    now: Optional[datetime] = None


class ServiceDateOverrideRequest(BaseModel):
    """Request model for checking a manually selected service date."""
    selected_date: date = Field(..., description="Service date chosen by the user")
    sla_timestamp: Optional[datetime] = Field(None, description="Committed SLA timestamp")
    location: Optional[LocationDTO] = None
    override_reason: Optional[str] = None
    override_comment: Optional[str] = None
    today: Optional[date] = Field(None, description="Defaults to the current UTC date")

    @field_validator("sla_timestamp")
    @classmethod
    def validate_sla_timestamp(cls, v: Optional[datetime]) -> Optional[datetime]:
        """Reject naive timestamps."""
        if v is not None and (v.tzinfo is None or v.utcoffset() is None):
            raise ValueError("sla_timestamp must include a UTC offset")
        return v


class SLADateTimeRequest(BaseModel):
    """Request model for combining a chosen date and time into an SLA timestamp."""
    service_date: date
    service_time: time
    location: Optional[LocationDTO] = None


# ========== Response DTOs ==========

class ServiceDateResponse(BaseModel):
    """Response model for a service date commitment."""
    record_id: Optional[str] = None
    service_date: date
    sla_timestamp: datetime
    calculation_method: CalculationMethodStr
    available_dates: Optional[List[date]] = None
    error_message: Optional[str] = None

    @classmethod
    def from_result(cls, result: ServiceDateResult) -> "ServiceDateResponse":
        return cls(
            record_id=result.record_id,
            service_date=result.service_date,
            sla_timestamp=result.sla_timestamp,
            calculation_method=result.calculation_method,
            available_dates=(
                list(result.available_dates)
                if result.available_dates is not None else None
            ),
            error_message=result.error_message,
        )


class CalculateBatchResponse(BaseModel):
    """Response model for batch calculation."""
    results: Dict[str, ServiceDateResponse] = Field(default_factory=dict)
    skipped: List[str] = Field(
        default_factory=list,
        description="Record ids without an entitlement"
    )


class ServiceDateOverrideResponse(BaseModel):
    """Response model for service date override validation."""
    valid: bool = True
    override: bool = Field(..., description="True when the selection overrides the SLA date")


class SLADateTimeResponse(BaseModel):
    """Response model for a combined SLA timestamp."""
    sla_timestamp: datetime
