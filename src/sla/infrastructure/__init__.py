"""
SLA Infrastructure Layer
========================

Infrastructure implementations for service date commitments:
- External: Capacity planner HTTP client
"""

from src.sla.infrastructure.external import CapacityPlannerClient

__all__ = [
    "CapacityPlannerClient",
]
