"""
Entitlement Interfaces Layer
============================

API controllers for entitlement resolution.
"""

from src.entitlements.interfaces.controllers import router

__all__ = ["router"]
