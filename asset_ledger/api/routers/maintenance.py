from __future__ import annotations

from datetime import date
from typing import Annotated

from fastapi import APIRouter, Depends, Query, status

from asset_ledger.api.deps import get_actor_id
from asset_ledger.api.errors import raise_http_error
from asset_ledger.domain.errors import LedgerError
from asset_ledger.domain.models import (
    MaintenanceRecordCreate,
    MaintenanceRecordPage,
    MaintenanceRecordRead,
    MaintenanceRecordUpdate,
    MaintenanceType,
)
from asset_ledger.services.ledger_facade import LedgerFacade

router = APIRouter()


def get_ledger_facade() -> LedgerFacade:
    return LedgerFacade()


Actor = Annotated[str | None, Depends(get_actor_id)]
Facade = Annotated[LedgerFacade, Depends(get_ledger_facade)]


@router.post("/records", response_model=MaintenanceRecordRead, status_code=status.HTTP_201_CREATED)
def record_maintenance(
    payload: MaintenanceRecordCreate,
    actor_id: Actor,
    facade: Facade,
) -> MaintenanceRecordRead:
    try:
        row = facade.record_maintenance(payload, actor_id=actor_id)
    except LedgerError as exc:
        raise_http_error(exc)
    return MaintenanceRecordRead.model_validate(row)


@router.get("/records", response_model=MaintenanceRecordPage)
def list_maintenance(
    facade: Facade,
    asset_id: str | None = None,
    technician_id: str | None = None,
    maintenance_type: MaintenanceType | None = None,
    start_date: date | None = None,
    end_date: date | None = None,
    search: str | None = None,
    limit: int = Query(default=100, ge=1, le=1000),
    offset: int = Query(default=0, ge=0),
) -> MaintenanceRecordPage:
    try:
        rows, total = facade.list_maintenance(
            asset_id=asset_id,
            technician_id=technician_id,
            maintenance_type=maintenance_type,
            start_date=start_date,
            end_date=end_date,
            search=search,
            limit=limit,
            offset=offset,
        )
    except LedgerError as exc:
        raise_http_error(exc)
    return MaintenanceRecordPage(
        records=[MaintenanceRecordRead.model_validate(item) for item in rows],
        total=total,
    )


@router.get("/upcoming", response_model=list[MaintenanceRecordRead])
def upcoming_maintenance(facade: Facade, as_of: date | None = None) -> list[MaintenanceRecordRead]:
    rows = facade.upcoming_maintenance(as_of)
    return [MaintenanceRecordRead.model_validate(item) for item in rows]


@router.get("/records/{record_id}", response_model=MaintenanceRecordRead)
def get_maintenance(record_id: str, facade: Facade) -> MaintenanceRecordRead:
    try:
        row = facade.get_maintenance(record_id)
    except LedgerError as exc:
        raise_http_error(exc)
    return MaintenanceRecordRead.model_validate(row)


@router.patch("/records/{record_id}", response_model=MaintenanceRecordRead)
def update_maintenance(
    record_id: str,
    payload: MaintenanceRecordUpdate,
    actor_id: Actor,
    facade: Facade,
) -> MaintenanceRecordRead:
    try:
        row = facade.update_maintenance(record_id, payload, actor_id=actor_id)
    except LedgerError as exc:
        raise_http_error(exc)
    return MaintenanceRecordRead.model_validate(row)


@router.delete("/records/{record_id}", response_model=MaintenanceRecordRead)
def delete_maintenance(record_id: str, actor_id: Actor, facade: Facade) -> MaintenanceRecordRead:
    try:
        row = facade.delete_maintenance(record_id, actor_id=actor_id)
    except LedgerError as exc:
        raise_http_error(exc)
    return MaintenanceRecordRead.model_validate(row)
