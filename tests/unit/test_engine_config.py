from datetime import date

import pytest

from src.core import ConfigurationException, RepositoryException
from src.entitlements.domain import EntitlementCriteria
from src.entitlements.infrastructure import EngineConfigManager, InMemoryEntitlementRepository
from src.shared.domain import LocationContext


def test_load_builds_mappings_and_calendar(engine_yaml):
    manager = EngineConfigManager()
    manager.load(engine_yaml)

    mappings = manager.get_field_mappings()
    assert [m.label for m in mappings] == ["Account", "Material", "Case Type"]
    assert [m.band for m in mappings] == ["customer", "service", "transaction"]
    assert manager.get_business_hours().holidays == [date(2025, 1, 1)]
    assert manager.is_loaded


def test_missing_file_is_fatal(tmp_path):
    with pytest.raises(ConfigurationException):
        EngineConfigManager().load(tmp_path / "missing.yaml")


@pytest.mark.parametrize("content", [
    "field_mappings: []\n",
    "field_mappings: [\n",
    "- just\n- a list\n",
    "field_mappings:\n  - label: Bad\n    band: '99'\n    entitlement_field: Account__c\n",
    "",
])
def test_invalid_configuration_is_fatal(tmp_path, content):
    path = tmp_path / "entitlement_config.yaml"
    path.write_text(content)

    with pytest.raises(ConfigurationException):
        EngineConfigManager().load(path)


def test_config_before_load_raises():
    manager = EngineConfigManager()

    assert not manager.is_loaded
    with pytest.raises(ConfigurationException):
        manager.get_field_mappings()


def test_reload_picks_up_changes(engine_yaml):
    manager = EngineConfigManager()
    manager.load(engine_yaml)
    engine_yaml.write_text(
        "field_mappings:\n"
        "  - label: Location\n"
        "    band: 1\n"
        "    case_field: Location__c\n"
        "    quote_field: Site__c\n"
        "    entitlement_field: Location__c\n"
    )

    assert manager.reload() is True
    assert [m.band_code for m in manager.get_field_mappings()] == ["01"]


def test_failed_reload_keeps_previous_configuration(engine_yaml):
    manager = EngineConfigManager()
    manager.load(engine_yaml)
    engine_yaml.write_text("field_mappings: []\n")

    assert manager.reload() is False
    assert len(manager.get_field_mappings()) == 3


def test_reload_without_load_is_a_no_op():
    assert EngineConfigManager().reload() is False


def test_watching_starts_and_stops(engine_yaml):
    manager = EngineConfigManager()
    manager.load(engine_yaml)

    manager.start_watching()
    manager.stop_watching()
    manager.stop_watching()


@pytest.mark.asyncio
async def test_repository_seed_from_yaml(tmp_path):
    path = tmp_path / "seed.yaml"
    path.write_text(
        """
records:
  - id: "500000000000001"
    account_id: ACC-1
    location_id: LOC-1
    created_date: "2025-01-06T10:00:00Z"
    material: Cardboard
    child_assets:
      - asset_id: AS-1
        baseline_id: BL-1
        self_service: true
        quantity: 1
        vendor_parent_code: WM
entitlements:
  - id: ENT-1
    name: Industry Standard
    guarantee_category: Hours
    guarantee_value: 48
locations:
  - location_id: LOC-1
    utc_offset_hours: -5
"""
    )

    repository = InMemoryEntitlementRepository.from_yaml(path)

    records = await repository.get_target_records({"500000000000001", "500999999999999"})
    candidates = await repository.get_candidate_entitlements(EntitlementCriteria())
    locations = await repository.get_location_contexts({"LOC-1", "LOC-2"})

    assert [r.child_assets[0].baseline_id for r in records] == ["BL-1"]
    assert [c.is_industry_standard for c in candidates] == [True]
    assert locations["LOC-1"].utc_offset_hours == -5
    assert "LOC-2" not in locations


def test_repository_seed_errors(tmp_path):
    with pytest.raises(RepositoryException):
        InMemoryEntitlementRepository.from_yaml(tmp_path / "missing.yaml")

    naive = tmp_path / "naive.yaml"
    naive.write_text(
        "records:\n"
        "  - id: '500000000000001'\n"
        "    account_id: ACC-1\n"
        "    location_id: LOC-1\n"
        "    created_date: '2025-01-06T10:00:00'\n"
    )
    with pytest.raises(RepositoryException):
        InMemoryEntitlementRepository.from_yaml(naive)


@pytest.mark.asyncio
async def test_repository_add_methods(make_record, make_entitlement, eastern):
    repository = InMemoryEntitlementRepository()
    repository.add_record(make_record())
    repository.add_entitlement(make_entitlement())
    repository.add_location(eastern)

    assert [r.id for r in await repository.get_target_records({"500000000000001"})] == [
        "500000000000001"
    ]
    assert len(await repository.get_candidate_entitlements(EntitlementCriteria())) == 1
    assert set(await repository.get_location_contexts({"LOC-1"})) == {"LOC-1"}

    with pytest.raises(RepositoryException):
        repository.add_location(LocationContext(utc_offset_hours=-5))


@pytest.mark.parametrize("section", [
    "entitlements:\n"
    "  - id: ENT-1\n"
    "    name: Morning\n"
    "    call_time_qualifier: Before\n"
    "    call_time: '14:00:00Z'\n",
    "locations:\n"
    "  - location_id: LOC-1\n"
    "    timezone_id: Not/AZone\n",
])
def test_repository_seed_rejects_bad_times(tmp_path, section):
    path = tmp_path / "seed.yaml"
    path.write_text(section)

    with pytest.raises(RepositoryException):
        InMemoryEntitlementRepository.from_yaml(path)
