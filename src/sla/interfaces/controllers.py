"""
SLA Controllers (API Routes)
=============================

FastAPI routes for service date commitments.

Controllers are thin - they delegate to application services.
No route writes anywhere; callers persist the returned dates themselves.
"""

from datetime import datetime, timezone

from fastapi import APIRouter, Depends, Request

from src.sla.application import (
    SLAScheduler,
    CalculateRequest, CalculateBatchRequest,
    ServiceDateOverrideRequest, SLADateTimeRequest,
    ServiceDateResponse, CalculateBatchResponse,
    ServiceDateOverrideResponse, SLADateTimeResponse,
)
from src.sla.domain import SLADateCalculator
from src.shared.domain import LocationContext
from src.shared.infrastructure.logging import get_logger

logger = get_logger(__name__)
router = APIRouter(prefix="/sla", tags=["Service Dates"])


# ========== Example payloads for Swagger ==========

SERVICE_DATE_RESPONSE_EXAMPLE = {
    "record_id": "500000000000001",
    "service_date": "2025-01-08",
    "sla_timestamp": "2025-01-09T04:59:59Z",
    "calculation_method": "EntitlementBased",
    "available_dates": None,
    "error_message": None
}


# ========== Dependencies ==========

def get_scheduler(request: Request) -> SLAScheduler:
    """Get the SLA scheduler built at startup."""
    return request.app.state.sla_scheduler


# ========== Route Handlers ==========

@router.post(
    "/calculate",
    response_model=ServiceDateResponse,
    summary="Calculate the service date for one record",
    description="""
    Select a date strategy for the record and compute its service date and
    SLA timestamp.

    **Strategies**:
    - `EntitlementBased`: creation date + guarantee, cutoff hour, business days
    - `CapacityPlanner`: earliest free date offered for the record's baseline
    - `ErrorFallback`: tomorrow, rolled to a business day, when calculation fails

    Returns **409** when no entitlement is supplied.
    """,
    responses={
        200: {
            "description": "Service date calculated",
            "content": {
                "application/json": {
                    "example": SERVICE_DATE_RESPONSE_EXAMPLE
                }
            }
        },
        409: {"description": "No entitlement supplied for the record"}
    }
)
async def calculate_service_date(
    request: CalculateRequest,
    scheduler: SLAScheduler = Depends(get_scheduler)
):
    result = await scheduler.calculate(
        request.record.to_entity(),
        request.entitlement.to_entity() if request.entitlement else None,
        request.location.to_entity() if request.location else None,
        now=request.now
    )
    return ServiceDateResponse.from_result(result)


@router.post(
    "/calculate-batch",
    response_model=CalculateBatchResponse,
    summary="Calculate service dates for many records",
    description="""
    Batch variant of `/sla/calculate`. The capacity planner is called at most
    once per unique baseline id. Records without an entitlement are listed in
    `skipped`.
    """
)
async def calculate_service_dates(
    request: CalculateBatchRequest,
    scheduler: SLAScheduler = Depends(get_scheduler)
):
    records = [dto.to_entity() for dto in request.records]
    entitlements = {
        record_id: dto.to_entity() for record_id, dto in request.entitlements.items()
    }
    locations = {
        record_id: dto.to_entity() for record_id, dto in request.locations.items()
    }

    results = await scheduler.calculate_batch(records, entitlements, locations, now=request.now)

    return CalculateBatchResponse(
        results={
            record_id: ServiceDateResponse.from_result(result)
            for record_id, result in results.items()
        },
        skipped=[record.id for record in records if record.id not in results]
    )


@router.post(
    "/service-date/validate",
    response_model=ServiceDateOverrideResponse,
    summary="Validate a manually selected service date",
    description="""
    A selected date earlier than the SLA date (and not in the past) overrides
    the commitment and needs both an override reason and comment; otherwise
    the request fails with **422**.
    """
)
async def validate_service_date(request: ServiceDateOverrideRequest):
    location = request.location.to_entity() if request.location else LocationContext()
    today = request.today or datetime.now(timezone.utc).date()

    override = SLADateCalculator.validate_service_date_override(
        request.selected_date,
        request.sla_timestamp,
        location,
        request.override_reason,
        request.override_comment,
        today
    )
    if override:
        logger.info(
            "Service date overrides SLA date",
            extra={"selected_date": request.selected_date.isoformat()}
        )
    return ServiceDateOverrideResponse(override=override)


@router.post(
    "/sla-datetime",
    response_model=SLADateTimeResponse,
    summary="Combine a selected date and time into an SLA timestamp"
)
async def calculate_sla_datetime(request: SLADateTimeRequest):
    location = request.location.to_entity() if request.location else LocationContext()
    sla_timestamp = SLADateCalculator.calculate_sla_datetime(
        request.service_date,
        request.service_time,
        location
    )
    return SLADateTimeResponse(sla_timestamp=sla_timestamp)
