"""
Calendar and Time Zone Utilities
================================

Pure functions for business-hours and location time zone arithmetic.

All instants handed to these helpers are timezone-aware UTC datetimes.
Local wall-clock values are expressed with a fixed-offset ``tzinfo`` so
that ``.date()`` and ``.hour`` read as the location sees them.
"""

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone
from typing import List, Optional, Union
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from src.config import WEEKDAY_NAMES
from src.core import CalculationException

END_OF_DAY = time(23, 59, 59)

# Upper bound when searching for a business day; a valid calendar always
# has a working day within one week, holidays included.
MAX_BUSINESS_DAY_SEARCH = 366


@dataclass(frozen=True)
class LocationContext:
    """
    Time zone context of a service location.

    ``utc_offset_hours`` wins when present. Otherwise the offset is read
    from the IANA ``timezone_id`` at the instant being converted, so DST
    is honoured. With neither, the location is treated as UTC.
    """
    location_id: Optional[str] = None
    utc_offset_hours: Optional[float] = None
    timezone_id: Optional[str] = None

    def offset_at(self, instant: datetime) -> float:
        """Get the UTC offset in hours that applies at ``instant``."""
        if self.utc_offset_hours is not None:
            return float(self.utc_offset_hours)
        if self.timezone_id:
            try:
                zone = ZoneInfo(self.timezone_id)
            except (ZoneInfoNotFoundError, ValueError, OSError) as e:
                raise CalculationException(
                    f"Unknown time zone '{self.timezone_id}'",
                    {"location_id": self.location_id}
                ) from e
            offset = require_utc(instant).astimezone(zone).utcoffset()
            return offset.total_seconds() / 3600 if offset else 0.0
        return 0.0


class BusinessHoursCalendar(BaseModel):
    """
    Organization business-hours definition.

    Immutable; supplied by the caller and read-only for a whole batch.
    """
    model_config = ConfigDict(frozen=True)

    name: str = Field(default="Default", description="Calendar name")
    working_days: List[str] = Field(
        default_factory=lambda: WEEKDAY_NAMES[:5],
        description="Weekday names that are working days"
    )
    open_time: time = Field(default=time(8, 0), description="Local opening time")
    close_time: time = Field(default=time(17, 0), description="Local closing time")
    holidays: List[date] = Field(default_factory=list, description="Non-working dates")

    @field_validator("working_days")
    @classmethod
    def validate_working_days(cls, v: List[str]) -> List[str]:
        """Normalise weekday names and require at least one."""
        normalized = []
        for name in v:
            title = str(name).strip().title()
            if title not in WEEKDAY_NAMES:
                raise ValueError(f"Unknown weekday '{name}'")
            if title not in normalized:
                normalized.append(title)
        if not normalized:
            raise ValueError("Business hours need at least one working day")
        return normalized

    @model_validator(mode="after")
    def validate_window(self) -> "BusinessHoursCalendar":
        if self.open_time >= self.close_time:
            raise ValueError("open_time must be before close_time")
        return self

    def is_within(self, value: Union[date, datetime]) -> bool:
        """
        Check whether a date (or local datetime) falls in business hours.

        A plain date only needs to be a working, non-holiday day. A datetime
        must additionally fall inside the opening window.
        """
        day = value.date() if isinstance(value, datetime) else value
        if WEEKDAY_NAMES[day.weekday()] not in self.working_days:
            return False
        if day in self.holidays:
            return False
        if isinstance(value, datetime):
            return self.open_time <= value.time() < self.close_time
        return True


def require_utc(value: datetime) -> datetime:
    """Return ``value`` in UTC, rejecting naive datetimes."""
    if value.tzinfo is None or value.utcoffset() is None:
        raise CalculationException("Timestamps must be timezone-aware")
    return value.astimezone(timezone.utc)


def to_local_time(utc_datetime: datetime, utc_offset_hours: float) -> datetime:
    """Convert a UTC instant to the location's wall clock."""
    local_zone = timezone(timedelta(hours=utc_offset_hours))
    return require_utc(utc_datetime).astimezone(local_zone)


def local_to_utc(local_date: date, local_time: time, utc_offset_hours: float) -> datetime:
    """Convert a local wall-clock date and time to a UTC instant."""
    local_zone = timezone(timedelta(hours=utc_offset_hours))
    return datetime.combine(local_date, local_time, tzinfo=local_zone).astimezone(timezone.utc)


def end_of_day_utc(local_date: date, utc_offset_hours: float) -> datetime:
    """23:59:59 local on ``local_date``, expressed in UTC."""
    return local_to_utc(local_date, END_OF_DAY, utc_offset_hours)


def next_business_day(day: date, calendar: BusinessHoursCalendar) -> date:
    """
    First date on or after ``day`` that lies inside the calendar.

    Raises:
        CalculationException: if no business day exists within a year
    """
    candidate = day
    for _ in range(MAX_BUSINESS_DAY_SEARCH):
        if calendar.is_within(candidate):
            return candidate
        candidate += timedelta(days=1)
    raise CalculationException(
        f"No business day found within {MAX_BUSINESS_DAY_SEARCH} days of {day.isoformat()}",
        {"calendar": calendar.name}
    )
