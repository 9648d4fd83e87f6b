"""
Entitlement Resolution Module
=============================

Bounded Context for matching cases and quotes to service entitlements.

Responsibilities:
- Load field mappings and candidate entitlements per batch
- Filter candidates by status, validity window, call time and account scope
- Rank survivors by priority band and pick one entitlement per record
- List every valid alternative grouped by entitlement kind
- Hot-reload field mappings via watchdog
"""

__version__ = "1.0.0"
