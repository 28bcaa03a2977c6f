from __future__ import annotations

from collections.abc import Generator
from datetime import date
from pathlib import Path

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.engine import Engine
from sqlmodel import SQLModel

from asset_ledger import main as app_main
from asset_ledger.domain.errors import AssetNotFound, MaintenanceRecordNotFound, ValidationError
from asset_ledger.domain.models import (
    Asset,
    AssetCreate,
    EquipmentKind,
    MaintenanceRecordCreate,
    MaintenanceRecordUpdate,
    MaintenanceType,
)
from asset_ledger.infra import db, events
from asset_ledger.services.ledger_facade import LedgerFacade


@pytest.fixture()
def ledger_engine(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> Engine:
    test_engine = db.build_engine(f"sqlite:///{tmp_path / 'maintenance_test.db'}")
    SQLModel.metadata.create_all(test_engine)
    monkeypatch.setattr(db, "engine", test_engine)
    monkeypatch.setattr(events, "engine", test_engine)
    return test_engine


@pytest.fixture()
def facade(ledger_engine: Engine) -> LedgerFacade:
    return LedgerFacade(clock=lambda: date(2026, 3, 1))


@pytest.fixture()
def maintenance_client(ledger_engine: Engine) -> Generator[TestClient, None, None]:
    client = TestClient(app_main.app)
    yield client
    client.close()


def _register(facade: LedgerFacade, tag: str) -> Asset:
    return facade.register_asset(
        AssetCreate(
            equipment=EquipmentKind.SERVER,
            model="PowerEdge R650",
            serial_number=f"SN-{tag}",
            asset_tag=tag,
            department="Infrastructure",
        )
    )


def _record(
    asset_id: str,
    performed: date,
    next_date: date | None = None,
    **extra: object,
) -> MaintenanceRecordCreate:
    return MaintenanceRecordCreate(
        asset_id=asset_id,
        maintenance_type=MaintenanceType.PREVENTIVE,
        date_performed=performed,
        technician_name="Tess",
        next_maintenance_date=next_date,
        **extra,
    )


def test_record_then_delete_resets_cache(facade: LedgerFacade) -> None:
    asset = _register(facade, "SRV-001")

    record = facade.record_maintenance(_record(asset.id, date(2026, 2, 1), date(2026, 8, 1)))

    snapshot = facade.get_asset(asset.id)
    assert snapshot.next_maintenance_date == date(2026, 8, 1)
    assert snapshot.last_maintenance_date == date(2026, 2, 1)

    deleted = facade.delete_maintenance(record.id)

    assert deleted.id == record.id
    snapshot = facade.get_asset(asset.id)
    assert snapshot.next_maintenance_date is None
    assert snapshot.last_maintenance_date is None


def test_delete_recomputes_from_newest_remaining_record(facade: LedgerFacade) -> None:
    asset = _register(facade, "SRV-002")
    older = facade.record_maintenance(_record(asset.id, date(2026, 1, 10), date(2026, 4, 10)))
    newer = facade.record_maintenance(_record(asset.id, date(2026, 2, 20), date(2026, 5, 20)))
    assert older.id != newer.id

    facade.delete_maintenance(newer.id)

    snapshot = facade.get_asset(asset.id)
    assert snapshot.last_maintenance_date == date(2026, 1, 10)
    assert snapshot.next_maintenance_date == date(2026, 4, 10)


def test_record_without_next_date_keeps_cache(facade: LedgerFacade) -> None:
    asset = _register(facade, "SRV-003")
    facade.record_maintenance(_record(asset.id, date(2026, 1, 10), date(2026, 4, 10)))

    facade.record_maintenance(_record(asset.id, date(2026, 2, 1), issues_found=True, parts_replaced="PSU"))

    snapshot = facade.get_asset(asset.id)
    assert snapshot.last_maintenance_date == date(2026, 1, 10)
    assert snapshot.next_maintenance_date == date(2026, 4, 10)


def test_latest_write_wins_even_for_backdated_record(facade: LedgerFacade) -> None:
    asset = _register(facade, "SRV-004")
    facade.record_maintenance(_record(asset.id, date(2026, 3, 1), date(2026, 9, 1)))

    facade.record_maintenance(_record(asset.id, date(2025, 12, 1), date(2026, 1, 15)))

    snapshot = facade.get_asset(asset.id)
    assert snapshot.next_maintenance_date == date(2026, 1, 15)

    reconciled = facade.reconcile_asset(asset.id)
    assert reconciled.last_maintenance_date == date(2026, 3, 1)
    assert reconciled.next_maintenance_date == date(2026, 9, 1)


@pytest.mark.parametrize(
    ("missing", "expected_field"),
    [
        ("asset_id", "asset_id"),
        ("maintenance_type", "maintenance_type"),
        ("date_performed", "date_performed"),
        ("technician_name", "technician_name"),
    ],
)
def test_record_requires_core_fields(facade: LedgerFacade, missing: str, expected_field: str) -> None:
    asset = _register(facade, f"SRV-REQ-{missing}")
    payload = _record(asset.id, date(2026, 1, 10)).model_copy(update={missing: None})

    with pytest.raises(ValidationError) as exc_info:
        facade.record_maintenance(payload)

    assert exc_info.value.field == expected_field
    records, total = facade.list_maintenance(asset_id=asset.id)
    assert records == []
    assert total == 0


def test_record_rejects_next_date_before_performed(facade: LedgerFacade) -> None:
    asset = _register(facade, "SRV-005")
    with pytest.raises(ValidationError) as exc_info:
        facade.record_maintenance(_record(asset.id, date(2026, 2, 1), date(2026, 1, 1)))
    assert exc_info.value.field == "next_maintenance_date"


def test_record_for_unknown_asset(facade: LedgerFacade) -> None:
    with pytest.raises(AssetNotFound):
        facade.record_maintenance(_record("missing-asset", date(2026, 2, 1)))


def test_update_overwrites_and_explicit_null_recomputes(facade: LedgerFacade) -> None:
    asset = _register(facade, "SRV-006")
    record = facade.record_maintenance(_record(asset.id, date(2026, 2, 1), date(2026, 8, 1)))

    updated = facade.update_maintenance(
        record.id,
        MaintenanceRecordUpdate(next_maintenance_date=date(2026, 6, 1), additional_comments="fan noise"),
    )

    assert updated.next_maintenance_date == date(2026, 6, 1)
    assert updated.additional_comments == "fan noise"
    assert facade.get_asset(asset.id).next_maintenance_date == date(2026, 6, 1)

    facade.update_maintenance(record.id, MaintenanceRecordUpdate(next_maintenance_date=None))

    snapshot = facade.get_asset(asset.id)
    assert snapshot.next_maintenance_date is None
    assert snapshot.last_maintenance_date == date(2026, 2, 1)


def test_update_rejects_moving_record_and_nulling_required(facade: LedgerFacade) -> None:
    first = _register(facade, "SRV-007")
    second = _register(facade, "SRV-008")
    record = facade.record_maintenance(_record(first.id, date(2026, 2, 1)))

    with pytest.raises(ValidationError) as moved:
        facade.update_maintenance(record.id, MaintenanceRecordUpdate(asset_id=second.id))
    assert moved.value.field == "asset_id"

    with pytest.raises(ValidationError) as nulled:
        facade.update_maintenance(record.id, MaintenanceRecordUpdate(technician_name=None))
    assert nulled.value.field == "technician_name"

    with pytest.raises(MaintenanceRecordNotFound):
        facade.update_maintenance("missing-record", MaintenanceRecordUpdate(additional_comments="x"))


def test_search_paging_and_upcoming(facade: LedgerFacade) -> None:
    asset = _register(facade, "SRV-009")
    facade.record_maintenance(_record(asset.id, date(2026, 1, 5), additional_comments="Replaced CPU fan"))
    facade.record_maintenance(_record(asset.id, date(2026, 1, 20), date(2026, 7, 20), software_updated="BIOS 2.1"))
    facade.record_maintenance(_record(asset.id, date(2026, 2, 3), date(2026, 3, 3)))

    records, total = facade.list_maintenance(asset_id=asset.id, limit=2)
    assert total == 3
    assert [item.date_performed for item in records] == [date(2026, 2, 3), date(2026, 1, 20)]

    matches, match_total = facade.list_maintenance(search="cpu FAN")
    assert match_total == 1
    assert matches[0].additional_comments == "Replaced CPU fan"

    ranged, ranged_total = facade.list_maintenance(start_date=date(2026, 1, 10), end_date=date(2026, 1, 31))
    assert ranged_total == 1
    assert ranged[0].software_updated == "BIOS 2.1"

    upcoming = facade.upcoming_maintenance(date(2026, 3, 1))
    assert [item.next_maintenance_date for item in upcoming] == [date(2026, 3, 3), date(2026, 7, 20)]


def test_maintenance_api_flow(maintenance_client: TestClient) -> None:
    asset_resp = maintenance_client.post(
        "/api/assets",
        json={
            "equipment": "Switch",
            "model": "Catalyst 9200",
            "serial_number": "SN-SW-1",
            "asset_tag": "SW-001",
            "department": "Network",
        },
    )
    assert asset_resp.status_code == 201
    asset_id = asset_resp.json()["id"]

    missing_field = maintenance_client.post(
        "/api/maintenance/records",
        json={"asset_id": asset_id, "maintenance_type": "Corrective", "date_performed": "2026-02-01"},
    )
    assert missing_field.status_code == 422
    assert missing_field.json()["detail"]["field"] == "technician_name"

    create_resp = maintenance_client.post(
        "/api/maintenance/records",
        json={
            "asset_id": asset_id,
            "maintenance_type": "Corrective",
            "date_performed": "2026-02-01",
            "technician_name": "Tess",
            "next_maintenance_date": "2026-05-01",
            "maintenance_interval": "Quarterly",
            "inspection": {"ports": "ok"},
        },
    )
    assert create_resp.status_code == 201
    record_id = create_resp.json()["id"]
    assert maintenance_client.get(f"/api/assets/{asset_id}").json()["next_maintenance_date"] == "2026-05-01"

    patch_resp = maintenance_client.patch(
        f"/api/maintenance/records/{record_id}",
        json={"next_maintenance_date": "2026-06-01"},
    )
    assert patch_resp.status_code == 200
    assert maintenance_client.get(f"/api/assets/{asset_id}").json()["next_maintenance_date"] == "2026-06-01"

    page = maintenance_client.get("/api/maintenance/records", params={"asset_id": asset_id})
    assert page.status_code == 200
    assert page.json()["total"] == 1

    delete_resp = maintenance_client.delete(f"/api/maintenance/records/{record_id}")
    assert delete_resp.status_code == 200
    assert maintenance_client.get(f"/api/assets/{asset_id}").json()["next_maintenance_date"] is None

    gone = maintenance_client.get(f"/api/maintenance/records/{record_id}")
    assert gone.status_code == 404
