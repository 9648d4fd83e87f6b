"""
Configuration Module
====================

Application settings and configuration management using Pydantic.
"""

from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field, field_validator
from functools import lru_cache
from pathlib import Path
from typing import List, Optional


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Uses Pydantic for validation and type safety.
    """

    # ========== Application ==========
    app_name: str = Field(default="entitlement-service", description="Application name")
    app_version: str = Field(default="1.0.0", description="Application version")
    environment: str = Field(default="development", description="Environment name")
    log_level: str = Field(default="INFO", description="Root log level")

    # ========== Server ==========
    host: str = Field(default="0.0.0.0", description="Server host")
    port: int = Field(default=8000, description="Server port", ge=1, le=65535)

    # ========== Engine Configuration ==========
    engine_config_path: Path = Field(
        default=Path("entitlement_config.yaml"),
        description="Path to the YAML file holding field mappings and business hours"
    )
    entitlement_data_path: Optional[Path] = Field(
        default=None,
        description="Optional YAML seed for the in-memory record store"
    )
    default_cutoff_hour: int = Field(
        default=14,
        description="Local hour at or after which a request rolls to the next day",
        ge=0,
        le=23
    )

    # ========== Capacity Planner Integration ==========
    capacity_planner_url: Optional[str] = Field(
        default=None,
        description="Capacity planner endpoint; the baseline id is sent as a query parameter"
    )
    capacity_planner_api_key: Optional[str] = Field(
        default=None,
        description="Bearer token for the capacity planner"
    )
    capacity_timeout_seconds: float = Field(
        default=10.0,
        description="Timeout for a single capacity planner call",
        ge=0.1,
        le=120
    )
    capacity_batch_deadline_seconds: float = Field(
        default=60.0,
        description="Overall deadline for all capacity calls in one batch",
        ge=0.1
    )
    capacity_max_concurrency: int = Field(
        default=5,
        description="Maximum capacity planner calls in flight per batch",
        ge=1,
        le=50
    )
    capacity_dates_path: str = Field(
        default="availability.dates",
        description="Dotted path to the date list inside the capacity response"
    )
    capacity_vendor_code: str = Field(
        default="WM",
        description="Vendor parent code that routes Rolloff requests to the capacity planner"
    )

    # ========== CORS ==========
    cors_origins: List[str] = Field(
        default=["http://localhost:3000", "http://localhost:8080"],
        description="Allowed CORS origins"
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        """Ensure environment is one of allowed values."""
        allowed = {"development", "staging", "production", "test"}
        if v not in allowed:
            raise ValueError(f"environment must be one of {allowed}")
        return v


@lru_cache()
def get_settings() -> Settings:
    """Returns cached Settings instance."""
    return Settings()


# Global settings instance
settings = get_settings()


# ========== Constants ==========

CASE_ID_PREFIX = "500"
QUOTE_ID_PREFIX = "0Q0"


class RecordKind(str):
    """Kinds of records that can carry an entitlement."""
    CASE = "case"
    QUOTE = "quote"


class EntitlementKind(str):
    """Entitlement groupings for the alternatives view."""
    INDUSTRY_STANDARD = "IndustryStandard"
    CUSTOMER_SPECIFIC = "CustomerSpecific"


class ScoreBand(str):
    """Score categories derived from a field mapping's priority-band code."""
    CUSTOMER = "customer"         # 0x
    SERVICE = "service"           # 1x, 2x
    TRANSACTION = "transaction"   # 3x, 4x


class GuaranteeCategory(str):
    """Units of an entitlement's service guarantee."""
    DAYS = "Days"
    HOURS = "Hours"


class CallTimeQualifier(str):
    """Direction of an entitlement's call-time restriction."""
    BEFORE = "Before"
    AFTER = "After"


class ApprovalStatus(str):
    """Entitlement approval statuses."""
    APPROVED = "Approved"
    PENDING = "Pending"
    REJECTED = "Rejected"


class EntitlementStatus(str):
    """Entitlement lifecycle statuses."""
    ACTIVE = "Active"
    EXPIRED = "Expired"


class ProductFamily(str):
    """Product families that steer the date calculation strategy."""
    COMMERCIAL = "Commercial"
    ROLLOFF = "Rolloff"


class CalculationMethod(str):
    """How a service date was produced."""
    ENTITLEMENT_BASED = "EntitlementBased"
    CAPACITY_PLANNER = "CapacityPlanner"
    INDUSTRY_FALLBACK = "IndustryFallback"
    ERROR_FALLBACK = "ErrorFallback"


# ========== Lists for validation ==========

VALID_ENTITLEMENT_KINDS = [EntitlementKind.INDUSTRY_STANDARD, EntitlementKind.CUSTOMER_SPECIFIC]
VALID_GUARANTEE_CATEGORIES = [GuaranteeCategory.DAYS, GuaranteeCategory.HOURS]
VALID_CALL_TIME_QUALIFIERS = [CallTimeQualifier.BEFORE, CallTimeQualifier.AFTER]
VALID_CALCULATION_METHODS = [
    CalculationMethod.ENTITLEMENT_BASED, CalculationMethod.CAPACITY_PLANNER,
    CalculationMethod.INDUSTRY_FALLBACK, CalculationMethod.ERROR_FALLBACK
]
WEEKDAY_NAMES = [
    "Monday", "Tuesday", "Wednesday", "Thursday",
    "Friday", "Saturday", "Sunday"
]
