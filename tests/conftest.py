import asyncio
from datetime import date, datetime, timezone
from typing import List, Optional

import pytest

from src.core import CapacityPlannerException
from src.entitlements.application import IFieldMappingProvider
from src.entitlements.domain import (
    TargetRecord, ChildAsset, CandidateEntitlement, FieldMapping
)
from src.shared.domain import BusinessHoursCalendar, LocationContext
from src.sla.application import IBusinessHoursProvider, ICapacityPlanner

CASE_ID = "500000000000001"
QUOTE_ID = "0Q0000000000001"


class StaticMappingProvider(IFieldMappingProvider):
    def __init__(self, mappings: List[FieldMapping]):
        self.mappings = mappings

    def get_field_mappings(self) -> List[FieldMapping]:
        return self.mappings


class StaticBusinessHours(IBusinessHoursProvider):
    def __init__(self, calendar: BusinessHoursCalendar):
        self.calendar = calendar

    def get_business_hours(self) -> BusinessHoursCalendar:
        return self.calendar


class FakeCapacityPlanner(ICapacityPlanner):
    def __init__(
        self,
        dates: Optional[List[date]] = None,
        error: Optional[Exception] = None,
        delay: float = 0.0
    ):
        self.dates = dates or []
        self.error = error
        self.delay = delay
        self.calls: List[str] = []

    async def get_available_dates(self, baseline_id: str) -> List[date]:
        self.calls.append(baseline_id)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return list(self.dates)


@pytest.fixture
def make_record():
    def _make(**overrides) -> TargetRecord:
        values = dict(
            id=CASE_ID,
            account_id="ACC-1",
            location_id="LOC-1",
            created_date=datetime(2025, 1, 6, 10, 0, tzinfo=timezone.utc),
            material="Cardboard",
            equipment_size="20 Yard",
            service_schedule="Weekly",
            service_type="Pickup",
            transaction_type="Pickup",
            transaction_sub_type="Extra Pickup",
            transaction_reason="Overflow",
            product_family="Commercial",
        )
        values.update(overrides)
        return TargetRecord(**values)

    return _make


@pytest.fixture
def make_entitlement():
    def _make(**overrides) -> CandidateEntitlement:
        values = dict(
            id="ENT-1",
            name="Standard Pickup",
            account_id=None,
            guarantee_category="Days",
            guarantee_value=2,
        )
        values.update(overrides)
        return CandidateEntitlement(**values)

    return _make


@pytest.fixture
def rolloff_record(make_record):
    def _make(baseline_id: str = "BL-1", **overrides) -> TargetRecord:
        asset = ChildAsset(
            asset_id=overrides.pop("child_asset_id", "AS-1"),
            baseline_id=baseline_id,
            self_service=True,
            quantity=1,
            vendor_parent_code="WM",
            scheduled_service_dates=tuple(overrides.pop("scheduled", ())),
        )
        values = dict(
            product_family="Rolloff",
            vendor_parent_id="WM",
            asset_id="AS-1",
            child_assets=(asset,),
        )
        values.update(overrides)
        return make_record(**values)

    return _make


@pytest.fixture
def mappings() -> List[FieldMapping]:
    return [
        FieldMapping("Account", "00", "AccountId", "Account__c", "Account__c"),
        FieldMapping("Location", "01", "Location__c", "Site__c", "Location__c"),
        FieldMapping("Material", "10", "Material_Type__c", "Material__c", "Material_Type__c"),
        FieldMapping("Service Type", "21", "Service_Type__c", "Service_Type__c", "Service_Type__c"),
        FieldMapping("Case Type", "30", "Case_Type__c", "Quote_Type__c", "Case_Type__c"),
        FieldMapping("Case Reason", "40", "Case_Reason__c", "Quote_Reason__c", "Case_Reason__c"),
    ]


@pytest.fixture
def calendar() -> BusinessHoursCalendar:
    return BusinessHoursCalendar(holidays=[date(2025, 1, 1)])


@pytest.fixture
def eastern() -> LocationContext:
    return LocationContext(location_id="LOC-1", utc_offset_hours=-5)


@pytest.fixture
def now() -> datetime:
    return datetime(2025, 1, 6, 15, 0, tzinfo=timezone.utc)


@pytest.fixture
def engine_yaml(tmp_path):
    path = tmp_path / "entitlement_config.yaml"
    path.write_text(
        """
field_mappings:
  - label: Account
    band: "00"
    case_field: AccountId
    quote_field: Account__c
    entitlement_field: Account__c
  - label: Material
    band: "10"
    case_field: Material_Type__c
    quote_field: Material__c
    entitlement_field: Material_Type__c
  - label: Case Type
    band: "30"
    case_field: Case_Type__c
    quote_field: Quote_Type__c
    entitlement_field: Case_Type__c
business_hours:
  working_days: [Monday, Tuesday, Wednesday, Thursday, Friday]
  open_time: "08:00"
  close_time: "17:00"
  holidays: [2025-01-01]
"""
    )
    return path


@pytest.fixture
def fake_planner():
    def _make(**kwargs) -> FakeCapacityPlanner:
        return FakeCapacityPlanner(**kwargs)

    return _make


@pytest.fixture
def mapping_provider(mappings) -> StaticMappingProvider:
    return StaticMappingProvider(mappings)


@pytest.fixture
def business_hours(calendar) -> StaticBusinessHours:
    return StaticBusinessHours(calendar)


@pytest.fixture
def http_500_error() -> CapacityPlannerException:
    return CapacityPlannerException("Returned HTTP 500", {"status_code": 500})
