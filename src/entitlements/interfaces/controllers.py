"""
Entitlement Controllers (API Routes)
====================================

FastAPI routes for entitlement resolution.

Controllers are thin - they delegate to application services.
"""

from fastapi import APIRouter, Depends, Request

from src.entitlements.application import (
    EntitlementResolver,
    EntitlementDTO,
    ResolveRequest,
    ResolveResponse,
    ResolveAllResponse,
)
from src.shared.infrastructure.logging import get_logger

logger = get_logger(__name__)
router = APIRouter(prefix="/entitlements", tags=["Entitlements"])


# ========== Example payloads for Swagger ==========

RESOLVE_REQUEST_EXAMPLE = {
    "record_ids": ["500000000000001", "0Q0000000000001"],
    "now": "2025-01-06T15:00:00Z"
}


# ========== Dependencies ==========

def get_resolver(request: Request) -> EntitlementResolver:
    """Get the entitlement resolver built at startup."""
    return request.app.state.entitlement_resolver


# ========== Route Handlers ==========

@router.post(
    "/resolve",
    response_model=ResolveResponse,
    summary="Resolve the best entitlement per record",
    description="""
    Match each case (`500...`) or quote (`0Q0...`) against approved, active
    entitlements and return the most specific one.

    **Priority rank**: 0 (customer + service + transaction fields match)
    to 7 (nothing matches). Ties go to the higher customer, then service,
    then transaction score, then to the first candidate seen.

    Records with no surviving entitlement are listed in `unmatched` and need
    manual review.
    """,
    openapi_extra={
        "requestBody": {
            "content": {"application/json": {"example": RESOLVE_REQUEST_EXAMPLE}}
        }
    }
)
async def resolve_entitlements(
    request: ResolveRequest,
    resolver: EntitlementResolver = Depends(get_resolver)
):
    winners = await resolver.resolve_prioritized(request.record_ids, now=request.now)

    unmatched = sorted({rid for rid in request.record_ids if rid} - set(winners))
    if unmatched:
        logger.info(
            "Records without entitlement",
            extra={"record_ids": unmatched}
        )

    return ResolveResponse(
        entitlements={
            record_id: EntitlementDTO.from_entity(entitlement)
            for record_id, entitlement in winners.items()
        },
        unmatched=unmatched
    )


@router.post(
    "/resolve-all",
    response_model=ResolveAllResponse,
    summary="List every valid entitlement per record",
    description="""
    Apply the same filters as `/entitlements/resolve` but skip ranking.
    Candidates are grouped into `IndustryStandard` and `CustomerSpecific`.
    """
)
async def resolve_all_entitlements(
    request: ResolveRequest,
    resolver: EntitlementResolver = Depends(get_resolver)
):
    grouped = await resolver.resolve_all(request.record_ids, now=request.now)

    return ResolveAllResponse(
        records={
            record_id: {
                kind: [EntitlementDTO.from_entity(e) for e in entitlements]
                for kind, entitlements in groups.items()
            }
            for record_id, groups in grouped.items()
        }
    )
