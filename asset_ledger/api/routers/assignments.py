from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, Query, status

from asset_ledger.api.deps import get_actor_id
from asset_ledger.api.errors import raise_http_error
from asset_ledger.domain.errors import LedgerError
from asset_ledger.domain.models import (
    AssignmentCreate,
    AssignmentRead,
    AssignmentReturnRequest,
    AssignmentStatusRequest,
    OverdueSweepRequest,
)
from asset_ledger.domain.state_machine import AssignmentStatus
from asset_ledger.services.ledger_facade import LedgerFacade

router = APIRouter()


def get_ledger_facade() -> LedgerFacade:
    return LedgerFacade()


Actor = Annotated[str | None, Depends(get_actor_id)]
Facade = Annotated[LedgerFacade, Depends(get_ledger_facade)]


@router.post("", response_model=AssignmentRead, status_code=status.HTTP_201_CREATED)
def assign_asset(payload: AssignmentCreate, facade: Facade) -> AssignmentRead:
    try:
        row = facade.assign(
            payload.asset_id,
            payload.assigned_to,
            payload.assigned_by,
            payload.expected_return_date,
            payload.notes,
        )
    except LedgerError as exc:
        raise_http_error(exc)
    return AssignmentRead.model_validate(row)


@router.get("", response_model=list[AssignmentRead])
def list_assignments(
    facade: Facade,
    asset_id: str | None = None,
    assigned_to: str | None = None,
    assignment_status: Annotated[AssignmentStatus | None, Query(alias="status")] = None,
) -> list[AssignmentRead]:
    rows = facade.list_assignments(asset_id=asset_id, assigned_to=assigned_to, status=assignment_status)
    return [AssignmentRead.model_validate(item) for item in rows]


@router.post("/mark-overdue", response_model=list[AssignmentRead])
def mark_overdue(payload: OverdueSweepRequest, actor_id: Actor, facade: Facade) -> list[AssignmentRead]:
    try:
        rows = facade.mark_overdue(payload.as_of, actor_id=actor_id)
    except LedgerError as exc:
        raise_http_error(exc)
    return [AssignmentRead.model_validate(item) for item in rows]


@router.get("/{assignment_id}", response_model=AssignmentRead)
def get_assignment(assignment_id: str, facade: Facade) -> AssignmentRead:
    try:
        row = facade.get_assignment(assignment_id)
    except LedgerError as exc:
        raise_http_error(exc)
    return AssignmentRead.model_validate(row)


@router.post("/{assignment_id}/status", response_model=AssignmentRead)
def update_assignment_status(
    assignment_id: str,
    payload: AssignmentStatusRequest,
    actor_id: Actor,
    facade: Facade,
) -> AssignmentRead:
    try:
        row = facade.update_assignment_status(assignment_id, payload.status, payload.notes, actor_id=actor_id)
    except LedgerError as exc:
        raise_http_error(exc)
    return AssignmentRead.model_validate(row)


@router.post("/{assignment_id}/return", response_model=AssignmentRead)
def return_asset(
    assignment_id: str,
    payload: AssignmentReturnRequest,
    actor_id: Actor,
    facade: Facade,
) -> AssignmentRead:
    try:
        row = facade.return_asset(
            assignment_id,
            payload.actual_return_date,
            payload.notes,
            actor_id=actor_id,
        )
    except LedgerError as exc:
        raise_http_error(exc)
    return AssignmentRead.model_validate(row)
