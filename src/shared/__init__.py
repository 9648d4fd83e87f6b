"""
Shared Kernel Module
====================

This module contains shared infrastructure and domain elements used across
all bounded contexts (Entitlement Resolution and SLA Scheduling).

Architecture Pattern: Modular Monolith
- Each module (entitlements, sla) is a bounded context
- Shared kernel contains generic infrastructure and calendar arithmetic
- Domain models are extended within each module

DO NOT add entitlement matching or strategy selection to the shared kernel.
"""

__version__ = "1.0.0"
