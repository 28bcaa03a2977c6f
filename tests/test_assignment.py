from __future__ import annotations

from collections.abc import Generator
from datetime import date, timedelta
from pathlib import Path

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.engine import Engine
from sqlmodel import SQLModel

from asset_ledger import main as app_main
from asset_ledger.domain.errors import (
    AssetNotFound,
    ConflictError,
    InvalidTransitionError,
    UnknownAssigneeError,
    ValidationError,
)
from asset_ledger.domain.models import (
    Asset,
    AssetCreate,
    EquipmentKind,
    Personnel,
    PersonnelCreate,
    today_utc,
)
from asset_ledger.domain.state_machine import AssignmentStatus
from asset_ledger.infra import db, events
from asset_ledger.services.ledger_facade import LedgerFacade
from asset_ledger.services.personnel_service import PersonnelService

TODAY = date(2026, 3, 1)


@pytest.fixture()
def ledger_engine(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> Engine:
    test_engine = db.build_engine(f"sqlite:///{tmp_path / 'assignment_test.db'}")
    SQLModel.metadata.create_all(test_engine)
    monkeypatch.setattr(db, "engine", test_engine)
    monkeypatch.setattr(events, "engine", test_engine)
    return test_engine


@pytest.fixture()
def facade(ledger_engine: Engine) -> LedgerFacade:
    return LedgerFacade(clock=lambda: TODAY, damaged_is_terminal=False)


@pytest.fixture()
def assignment_client(ledger_engine: Engine) -> Generator[TestClient, None, None]:
    client = TestClient(app_main.app)
    yield client
    client.close()


def _register(facade: LedgerFacade, tag: str) -> Asset:
    return facade.register_asset(
        AssetCreate(
            equipment=EquipmentKind.IPAD,
            model="iPad Air",
            serial_number=f"SN-{tag}",
            asset_tag=tag,
            department="Sales",
        )
    )


def _person(full_name: str, email: str | None = None) -> Personnel:
    return PersonnelService().register_person(PersonnelCreate(full_name=full_name, email=email))


def test_assign_overdue_then_return(facade: LedgerFacade) -> None:
    asset = _register(facade, "IPAD-001")
    carol = _person("Carol")

    assignment = facade.assign(asset.id, carol.id, "Dave", expected_return_date=date(2026, 3, 15))
    assert assignment.status == AssignmentStatus.ACTIVE
    assert assignment.assignment_date == TODAY

    overdue = facade.update_assignment_status(assignment.id, AssignmentStatus.OVERDUE, "chased by email")
    assert overdue.status == AssignmentStatus.OVERDUE
    assert overdue.notes is not None
    assert overdue.notes.endswith("Status update notes: chased by email")

    returned = facade.return_asset(assignment.id, date(2026, 3, 20), "screen scratched")
    assert returned.status == AssignmentStatus.RETURNED
    assert returned.actual_return_date == date(2026, 3, 20)
    assert returned.notes is not None
    assert returned.notes.endswith("Return notes: screen scratched")


def test_assignment_never_touches_custody(facade: LedgerFacade) -> None:
    asset = _register(facade, "IPAD-002")
    carol = _person("Carol")

    facade.assign(asset.id, carol.id, "Dave")

    snapshot = facade.get_asset(asset.id)
    assert snapshot.holder_name is None
    assert facade.custody_history(asset.id) == []


def test_terminal_states_reject_transitions(facade: LedgerFacade) -> None:
    asset = _register(facade, "IPAD-003")
    carol = _person("Carol")
    assignment = facade.assign(asset.id, carol.id, "Dave")

    facade.update_assignment_status(assignment.id, AssignmentStatus.LOST)

    with pytest.raises(InvalidTransitionError):
        facade.return_asset(assignment.id, date(2026, 3, 2))
    with pytest.raises(InvalidTransitionError):
        facade.update_assignment_status(assignment.id, AssignmentStatus.ACTIVE)
    assert facade.get_assignment(assignment.id).status == AssignmentStatus.LOST


def test_returned_only_through_return_asset(facade: LedgerFacade) -> None:
    asset = _register(facade, "IPAD-004")
    carol = _person("Carol")
    assignment = facade.assign(asset.id, carol.id, "Dave")

    with pytest.raises(InvalidTransitionError):
        facade.update_assignment_status(assignment.id, AssignmentStatus.RETURNED)
    with pytest.raises(InvalidTransitionError):
        facade.update_assignment_status(assignment.id, AssignmentStatus.ACTIVE)

    facade.return_asset(assignment.id, TODAY)
    with pytest.raises(InvalidTransitionError):
        facade.return_asset(assignment.id, TODAY)


def test_damaged_terminal_is_configurable(ledger_engine: Engine) -> None:
    lenient = LedgerFacade(clock=lambda: TODAY, damaged_is_terminal=False)
    strict = LedgerFacade(clock=lambda: TODAY, damaged_is_terminal=True)
    carol = _person("Carol")

    first = lenient.assign(_register(lenient, "IPAD-005").id, carol.id, "Dave")
    lenient.update_assignment_status(first.id, AssignmentStatus.DAMAGED)
    repaired = lenient.update_assignment_status(first.id, AssignmentStatus.ACTIVE)
    assert repaired.status == AssignmentStatus.ACTIVE

    second = strict.assign(_register(strict, "IPAD-006").id, carol.id, "Dave")
    strict.update_assignment_status(second.id, AssignmentStatus.DAMAGED)
    with pytest.raises(InvalidTransitionError):
        strict.update_assignment_status(second.id, AssignmentStatus.ACTIVE)
    returned = strict.return_asset(second.id, TODAY)
    assert returned.status == AssignmentStatus.RETURNED


def test_assign_validation(facade: LedgerFacade) -> None:
    asset = _register(facade, "IPAD-007")
    carol = _person("Carol", "carol@example.com")

    with pytest.raises(UnknownAssigneeError):
        facade.assign(asset.id, "nobody", "Dave")
    with pytest.raises(AssetNotFound):
        facade.assign("missing-asset", carol.id, "Dave")
    with pytest.raises(ValidationError) as past_due:
        facade.assign(asset.id, carol.id, "Dave", expected_return_date=TODAY - timedelta(days=1))
    assert past_due.value.field == "expected_return_date"
    with pytest.raises(ValidationError) as no_assigner:
        facade.assign(asset.id, carol.id, " ")
    assert no_assigner.value.field == "assigned_by"

    PersonnelService().deactivate_person(carol.id)
    with pytest.raises(UnknownAssigneeError):
        facade.assign(asset.id, carol.id, "Dave")


def test_outstanding_assignment_blocks_reassign(facade: LedgerFacade) -> None:
    asset = _register(facade, "IPAD-008")
    carol = _person("Carol")
    erin = _person("Erin")
    first = facade.assign(asset.id, carol.id, "Dave")

    with pytest.raises(ConflictError):
        facade.assign(asset.id, erin.id, "Dave")

    facade.return_asset(first.id, TODAY)
    second = facade.assign(asset.id, erin.id, "Dave")
    assert second.status == AssignmentStatus.ACTIVE
    assert len(facade.list_assignments(asset_id=asset.id)) == 2
    assert [item.id for item in facade.list_assignments(status=AssignmentStatus.ACTIVE)] == [second.id]


def test_return_date_before_assignment_is_rejected(facade: LedgerFacade) -> None:
    asset = _register(facade, "IPAD-009")
    carol = _person("Carol")
    assignment = facade.assign(asset.id, carol.id, "Dave")

    with pytest.raises(ValidationError) as exc_info:
        facade.return_asset(assignment.id, TODAY - timedelta(days=3))
    assert exc_info.value.field == "actual_return_date"


def test_mark_overdue_moves_only_past_due_active(facade: LedgerFacade) -> None:
    carol = _person("Carol")
    due_soon = facade.assign(_register(facade, "IPAD-010").id, carol.id, "Dave", date(2026, 3, 5))
    due_later = facade.assign(_register(facade, "IPAD-011").id, carol.id, "Dave", date(2026, 4, 1))
    open_ended = facade.assign(_register(facade, "IPAD-012").id, carol.id, "Dave")

    marked = facade.mark_overdue(date(2026, 3, 10))

    assert [item.id for item in marked] == [due_soon.id]
    assert facade.get_assignment(due_soon.id).status == AssignmentStatus.OVERDUE
    assert facade.get_assignment(due_later.id).status == AssignmentStatus.ACTIVE
    assert facade.get_assignment(open_ended.id).status == AssignmentStatus.ACTIVE
    assert facade.mark_overdue(date(2026, 3, 10)) == []


def test_assignment_api_flow(assignment_client: TestClient) -> None:
    person_resp = assignment_client.post("/api/personnel", json={"full_name": "Carol", "email": "Carol@Example.com"})
    assert person_resp.status_code == 201
    assert person_resp.json()["email"] == "carol@example.com"
    carol_id = person_resp.json()["id"]

    duplicate = assignment_client.post("/api/personnel", json={"full_name": "Carol B", "email": "carol@example.com"})
    assert duplicate.status_code == 409

    asset_resp = assignment_client.post(
        "/api/assets",
        json={
            "equipment": "Phone",
            "model": "Pixel 8",
            "serial_number": "SN-PH-1",
            "asset_tag": "PH-001",
            "department": "Sales",
            "detail": {"os": "Android 15"},
        },
    )
    assert asset_resp.status_code == 201
    asset_id = asset_resp.json()["id"]

    unknown = assignment_client.post(
        "/api/assignments",
        json={"asset_id": asset_id, "assigned_to": "nobody", "assigned_by": "Dave"},
    )
    assert unknown.status_code == 422
    assert unknown.json()["detail"]["code"] == "UNKNOWN_ASSIGNEE"

    expected_return = (today_utc() + timedelta(days=14)).isoformat()
    create_resp = assignment_client.post(
        "/api/assignments",
        json={
            "asset_id": asset_id,
            "assigned_to": carol_id,
            "assigned_by": "Dave",
            "expected_return_date": expected_return,
        },
    )
    assert create_resp.status_code == 201
    assignment_id = create_resp.json()["id"]
    assert create_resp.json()["status"] == "Active"

    status_resp = assignment_client.post(
        f"/api/assignments/{assignment_id}/status",
        json={"status": "Overdue", "notes": "reminder sent"},
    )
    assert status_resp.status_code == 200
    assert status_resp.json()["status"] == "Overdue"

    bad_transition = assignment_client.post(
        f"/api/assignments/{assignment_id}/status",
        json={"status": "Returned"},
    )
    assert bad_transition.status_code == 409

    return_resp = assignment_client.post(
        f"/api/assignments/{assignment_id}/return",
        json={"actual_return_date": expected_return},
    )
    assert return_resp.status_code == 200
    assert return_resp.json()["status"] == "Returned"
    assert return_resp.json()["actual_return_date"] == expected_return

    listed = assignment_client.get("/api/assignments", params={"asset_id": asset_id})
    assert listed.status_code == 200
    assert [item["id"] for item in listed.json()] == [assignment_id]

    missing = assignment_client.get("/api/assignments/missing")
    assert missing.status_code == 404
