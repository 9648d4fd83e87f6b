from datetime import date, datetime, time, timezone

import pytest

from src.core import CalculationException, ValidationException
from src.entitlements.domain import ChildAsset
from src.shared.domain import LocationContext
from src.sla.domain import (
    OVERRIDE_REQUIRED_MESSAGE, SLADateCalculator, ServiceDateResult, parse_capacity_dates
)


# ========== Guarantee arithmetic ==========

@pytest.mark.parametrize("category, value, expected", [
    ("Days", 2, 2),
    ("Days", 2.9, 2),
    ("Hours", 48, 2),
    ("Hours", 49, 2),
    ("Hours", 23, 0),
    (None, 3, 3),
])
def test_days_delta(category, value, expected):
    assert SLADateCalculator.days_delta(category, value) == expected


@pytest.mark.parametrize("category, value", [
    ("Weeks", 1),
    ("Days", -1),
    ("Days", None),
])
def test_days_delta_rejects_malformed_guarantees(category, value):
    with pytest.raises(CalculationException):
        SLADateCalculator.days_delta(category, value)


def test_is_before_cutoff():
    assert SLADateCalculator.is_before_cutoff(datetime(2025, 1, 6, 13, 59), 14)
    assert not SLADateCalculator.is_before_cutoff(datetime(2025, 1, 6, 14, 0), 14)


# ========== Entitlement-based date ==========

def test_request_before_cutoff_gets_guaranteed_days(make_record, make_entitlement, calendar):
    record = make_record(created_date=datetime(2025, 1, 6, 10, 0, tzinfo=timezone.utc))
    entitlement = make_entitlement(guarantee_value=2, gold_standard=True)

    service_date = SLADateCalculator.entitlement_service_date(
        record, entitlement, -5, calendar, 14
    )

    assert service_date == date(2025, 1, 8)


def test_request_after_cutoff_gets_an_extra_day(make_record, make_entitlement, calendar):
    # 21:00Z is 16:00 at UTC-5
    record = make_record(created_date=datetime(2025, 1, 6, 21, 0, tzinfo=timezone.utc))
    entitlement = make_entitlement(guarantee_value=2, gold_standard=True)

    service_date = SLADateCalculator.entitlement_service_date(
        record, entitlement, -5, calendar, 14
    )

    assert service_date == date(2025, 1, 9)


def test_entitlement_cutoff_overrides_default(make_record, make_entitlement, calendar):
    record = make_record(created_date=datetime(2025, 1, 6, 16, 0, tzinfo=timezone.utc))
    entitlement = make_entitlement(guarantee_value=1, cutoff_hour=10)

    service_date = SLADateCalculator.entitlement_service_date(
        record, entitlement, -5, calendar, 14
    )

    assert service_date == date(2025, 1, 8)


def test_weekend_and_holiday_roll_forward(make_record, make_entitlement, calendar):
    friday = make_record(created_date=datetime(2025, 1, 10, 10, 0, tzinfo=timezone.utc))
    before_new_year = make_record(created_date=datetime(2024, 12, 30, 10, 0, tzinfo=timezone.utc))

    assert SLADateCalculator.entitlement_service_date(
        friday, make_entitlement(guarantee_value=1), -5, calendar, 14
    ) == date(2025, 1, 13)
    assert SLADateCalculator.entitlement_service_date(
        before_new_year, make_entitlement(guarantee_value=2), -5, calendar, 14
    ) == date(2025, 1, 2)


def test_override_keeps_non_business_day(make_record, make_entitlement, calendar):
    friday = make_record(created_date=datetime(2025, 1, 10, 10, 0, tzinfo=timezone.utc))
    entitlement = make_entitlement(guarantee_value=1, override_business_hours=True)

    assert SLADateCalculator.entitlement_service_date(
        friday, entitlement, -5, calendar, 14
    ) == date(2025, 1, 11)


# ========== Capacity planner helpers ==========

def test_parse_capacity_dates():
    assert parse_capacity_dates(["01/15/2025", " 01/16/2025"]) == [
        date(2025, 1, 15), date(2025, 1, 16)
    ]


@pytest.mark.parametrize("value", ["2025-01-15", "13/01/2025", 20250115, None])
def test_parse_capacity_dates_rejects_other_formats(value):
    with pytest.raises(CalculationException):
        parse_capacity_dates([value])


def test_select_capacity_date_skips_scheduled_and_early_dates(calendar):
    chosen = SLADateCalculator.select_capacity_date(
        [date(2025, 1, 16), date(2025, 1, 3), date(2025, 1, 15)],
        scheduled_dates=[date(2025, 1, 15)],
        earliest=date(2025, 1, 6),
        calendar=calendar,
    )

    assert chosen == date(2025, 1, 16)


def test_select_capacity_date_respects_business_hours(calendar):
    offered = [date(2025, 1, 18), date(2025, 1, 20)]

    assert SLADateCalculator.select_capacity_date(
        offered, (), date(2025, 1, 6), calendar
    ) == date(2025, 1, 20)
    assert SLADateCalculator.select_capacity_date(
        offered, (), date(2025, 1, 6), calendar, override_business_hours=True
    ) == date(2025, 1, 18)


def test_select_capacity_date_without_usable_dates(calendar):
    assert SLADateCalculator.select_capacity_date(
        [date(2025, 1, 15)], [date(2025, 1, 15)], date(2025, 1, 6), calendar
    ) is None


def test_capacity_eligibility(make_record):
    assert SLADateCalculator.is_capacity_eligible(
        make_record(product_family="Rolloff", vendor_parent_id="WM"), "WM"
    )
    assert not SLADateCalculator.is_capacity_eligible(
        make_record(product_family="Rolloff", vendor_parent_id="XX"), "WM"
    )
    assert not SLADateCalculator.is_capacity_eligible(
        make_record(product_family="Commercial", vendor_parent_id="WM"), "WM"
    )


def test_capacity_baseline_needs_every_asset_condition(make_record):
    def asset(**overrides):
        values = dict(
            asset_id="AS", baseline_id="BL-1", self_service=True,
            quantity=1, vendor_parent_code="WM",
        )
        values.update(overrides)
        return ChildAsset(**values)

    not_self_service = asset(asset_id="AS-1", self_service=False)
    two_units = asset(asset_id="AS-2", quantity=2)
    other_vendor = asset(asset_id="AS-3", vendor_parent_code="XX")
    no_baseline = asset(asset_id="AS-4", baseline_id="  ")
    usable = asset(asset_id="AS-5", baseline_id="BL-5")
    record = make_record(child_assets=(
        not_self_service, two_units, other_vendor, no_baseline, usable
    ))

    assert SLADateCalculator.resolve_capacity_baseline(record, "WM") == usable
    assert SLADateCalculator.resolve_capacity_baseline(
        make_record(child_assets=(two_units,)), "WM"
    ) is None


# ========== Recalculation ==========

@pytest.mark.parametrize("changes, expected", [
    ({}, False),
    ({"material": "Metal"}, False),
    ({"product_family": "Rolloff"}, True),
    ({"transaction_type": "Delivery"}, True),
    ({"location_id": "LOC-2"}, True),
    ({"asset_id": "AS-9"}, True),
])
def test_requires_recalculation(make_record, changes, expected):
    old = make_record(asset_id="AS-1")
    new = make_record(**{"asset_id": "AS-1", **changes})

    assert SLADateCalculator.requires_recalculation(old, new) is expected


# ========== Manual date selection ==========

def test_calculate_sla_datetime_uses_location_offset(eastern):
    assert SLADateCalculator.calculate_sla_datetime(
        date(2025, 1, 8), time(17, 0), eastern
    ) == datetime(2025, 1, 8, 22, 0, tzinfo=timezone.utc)


def test_calculate_sla_datetime_with_timezone_id():
    chicago = LocationContext("LOC-2", timezone_id="America/Chicago")

    assert SLADateCalculator.calculate_sla_datetime(
        date(2025, 7, 8), time(17, 0), chicago
    ) == datetime(2025, 7, 8, 22, 0, tzinfo=timezone.utc)


@pytest.fixture
def sla_timestamp():
    # 2025-01-10 23:59:59 at UTC-5
    return datetime(2025, 1, 11, 4, 59, 59, tzinfo=timezone.utc)


def test_early_service_date_needs_reason_and_comment(eastern, sla_timestamp):
    with pytest.raises(ValidationException) as exc_info:
        SLADateCalculator.validate_service_date_override(
            date(2025, 1, 8), sla_timestamp, eastern,
            override_reason="Customer request", override_comment=" ",
            today=date(2025, 1, 6),
        )

    assert exc_info.value.message == OVERRIDE_REQUIRED_MESSAGE


def test_early_service_date_with_reason_is_an_override(eastern, sla_timestamp):
    assert SLADateCalculator.validate_service_date_override(
        date(2025, 1, 8), sla_timestamp, eastern,
        override_reason="Customer request", override_comment="Called in",
        today=date(2025, 1, 6),
    ) is True


@pytest.mark.parametrize("selected", [date(2025, 1, 10), date(2025, 1, 14), date(2025, 1, 5)])
def test_dates_outside_override_window_need_nothing(eastern, sla_timestamp, selected):
    assert SLADateCalculator.validate_service_date_override(
        selected, sla_timestamp, eastern, None, None, today=date(2025, 1, 6)
    ) is False


def test_no_sla_timestamp_means_no_override(eastern):
    assert SLADateCalculator.validate_service_date_override(
        date(2025, 1, 8), None, eastern, None, None, today=date(2025, 1, 6)
    ) is False


# ========== Results ==========

def test_result_rejects_unknown_calculation_method():
    with pytest.raises(CalculationException):
        ServiceDateResult(
            service_date=date(2025, 1, 8),
            sla_timestamp=datetime(2025, 1, 9, 4, 59, 59, tzinfo=timezone.utc),
            calculation_method="Guesswork",
        )


def test_result_to_dict_and_fallback_flag():
    result = ServiceDateResult(
        service_date=date(2025, 1, 7),
        sla_timestamp=datetime(2025, 1, 8, 4, 59, 59, tzinfo=timezone.utc),
        calculation_method="ErrorFallback",
        error_message="Entitlement has no guarantee value",
        record_id="500000000000001",
    )

    assert result.is_fallback
    assert result.to_dict() == {
        "record_id": "500000000000001",
        "service_date": "2025-01-07",
        "sla_timestamp": "2025-01-08T04:59:59+00:00",
        "calculation_method": "ErrorFallback",
        "available_dates": None,
        "error_message": "Entitlement has no guarantee value",
    }
