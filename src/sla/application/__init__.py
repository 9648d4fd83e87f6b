"""
SLA Application Layer
======================

Application layer for service date commitments.

Contains:
- Services: SLAScheduler selects and runs a date strategy per record
- DTOs: Data transfer objects for API serialization

This layer depends on the domain layer and provider interfaces,
but not on concrete infrastructure implementations.
"""

from src.sla.application.dto import (
    CalculateRequest,
    CalculateBatchRequest,
    ServiceDateOverrideRequest,
    SLADateTimeRequest,
    ServiceDateResponse,
    CalculateBatchResponse,
    ServiceDateOverrideResponse,
    SLADateTimeResponse,
)
from src.sla.application.services import (
    SLAScheduler,
    CapacityOutcome,
    IBusinessHoursProvider,
    ICapacityPlanner,
)

__all__ = [
    # DTOs
    "CalculateRequest",
    "CalculateBatchRequest",
    "ServiceDateOverrideRequest",
    "SLADateTimeRequest",
    "ServiceDateResponse",
    "CalculateBatchResponse",
    "ServiceDateOverrideResponse",
    "SLADateTimeResponse",
    # Services
    "SLAScheduler",
    "CapacityOutcome",
    # Provider Interfaces
    "IBusinessHoursProvider",
    "ICapacityPlanner",
]
