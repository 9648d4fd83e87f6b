"""
Shared Domain Layer
===================

Calendar and time zone arithmetic shared by the entitlement and SLA modules.
"""

from src.shared.domain.calendar import (
    LocationContext,
    BusinessHoursCalendar,
    require_utc,
    to_local_time,
    local_to_utc,
    end_of_day_utc,
    next_business_day,
)

__all__ = [
    "LocationContext",
    "BusinessHoursCalendar",
    "require_utc",
    "to_local_time",
    "local_to_utc",
    "end_of_day_utc",
    "next_business_day",
]
