"""
SLA Domain Layer
================

Domain layer for service date and SLA commitments.

Contains:
- Entities: ServiceDateResult
- Domain Services: Stateless date arithmetic (SLADateCalculator)

This layer has no dependencies on infrastructure - pure Python business logic.
"""

from src.sla.domain.entities import ServiceDateResult
from src.sla.domain.value_objects import (
    SLADateCalculator,
    parse_capacity_dates,
    CAPACITY_DATE_FORMAT,
    OVERRIDE_REQUIRED_MESSAGE,
)

__all__ = [
    "ServiceDateResult",
    "SLADateCalculator",
    "parse_capacity_dates",
    "CAPACITY_DATE_FORMAT",
    "OVERRIDE_REQUIRED_MESSAGE",
]
