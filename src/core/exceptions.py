"""
Core Exceptions
================

Custom exceptions for the application following clean architecture principles.

These exceptions define domain-specific errors that can be caught and handled
appropriately at the application boundaries.
"""

from typing import Optional


class ApplicationException(Exception):
    """Base exception for all application errors."""

    def __init__(self, message: str, details: Optional[dict] = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)


class DomainException(ApplicationException):
    """Base exception for domain logic violations."""


class RepositoryException(ApplicationException):
    """Base exception for repository/data access errors."""


class ValidationException(ApplicationException):
    """Exception for validation errors."""


class ConfigurationException(ApplicationException):
    """Exception for configuration errors. Never recovered silently."""


class ExternalServiceException(ApplicationException):
    """Base exception for external service failures."""

    def __init__(
        self,
        service_name: str,
        message: str,
        details: Optional[dict] = None
    ):
        self.service_name = service_name
        super().__init__(f"{service_name}: {message}", details)


class CapacityPlannerException(ExternalServiceException):
    """Exception for capacity planner timeouts, bad statuses and bad payloads."""

    def __init__(self, message: str, details: Optional[dict] = None):
        super().__init__("Capacity Planner", message, details)


class NoEntitlementError(DomainException):
    """Raised when a date calculation is requested without an entitlement."""

    def __init__(self, record_id: str, details: Optional[dict] = None):
        self.record_id = record_id
        super().__init__(
            f"No entitlement supplied for record {record_id}",
            details or {"record_id": record_id}
        )


class CalculationException(DomainException):
    """Exception for malformed entitlement or record data during date math."""
