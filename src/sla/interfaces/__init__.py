"""
SLA Interfaces Layer
====================

API controllers for service date commitments.
"""

from src.sla.interfaces.controllers import router

__all__ = ["router"]
