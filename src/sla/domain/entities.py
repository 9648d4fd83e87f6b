"""
SLA Domain Entities
===================

Results produced by the SLA scheduler.
"""

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional, Tuple

from src.config import CalculationMethod, VALID_CALCULATION_METHODS
from src.core import CalculationException


@dataclass(frozen=True)
class ServiceDateResult:
    """
    Committed service date and SLA timestamp for one record.

    Created fresh per calculation and never mutated. ``available_dates`` is
    only set when the capacity planner path ran; ``error_message`` carries a
    diagnostic when any fallback was taken.
    """
    service_date: date
    sla_timestamp: datetime
    calculation_method: str
    available_dates: Optional[Tuple[date, ...]] = None
    error_message: Optional[str] = None
    record_id: Optional[str] = None

    def __post_init__(self):
        if self.calculation_method not in VALID_CALCULATION_METHODS:
            raise CalculationException(
                f"Unknown calculation method '{self.calculation_method}'"
            )

    @property
    def is_fallback(self) -> bool:
        return self.calculation_method == CalculationMethod.ERROR_FALLBACK

    def to_dict(self) -> dict:
        """Convert to a plain dictionary for logging."""
        return {
            "record_id": self.record_id,
            "service_date": self.service_date.isoformat(),
            "sla_timestamp": self.sla_timestamp.isoformat(),
            "calculation_method": self.calculation_method,
            "available_dates": (
                [d.isoformat() for d in self.available_dates]
                if self.available_dates is not None else None
            ),
            "error_message": self.error_message,
        }
