"""
SLA Scheduling Module
=====================

Bounded Context for service date and SLA timestamp commitments.

Responsibilities:
- Choose between entitlement and capacity planner date strategies
- Apply cutoff hours, location time zones and business hours
- Call the capacity planner once per baseline with a bounded timeout
- Fall back to a safe business-day date when calculation fails
- Validate manual service date overrides
"""

__version__ = "1.0.0"
