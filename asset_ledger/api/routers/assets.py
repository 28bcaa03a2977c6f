from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, Query, status

from asset_ledger.api.deps import get_actor_id
from asset_ledger.api.errors import raise_http_error
from asset_ledger.domain.capabilities import allowed_fields
from asset_ledger.domain.errors import LedgerError
from asset_ledger.domain.models import (
    AssetCreate,
    AssetRead,
    AssetStatus,
    CapabilityRead,
    EquipmentKind,
)
from asset_ledger.services.ledger_facade import LedgerFacade

router = APIRouter()


def get_ledger_facade() -> LedgerFacade:
    return LedgerFacade()


Actor = Annotated[str | None, Depends(get_actor_id)]
Facade = Annotated[LedgerFacade, Depends(get_ledger_facade)]


@router.post("", response_model=AssetRead, status_code=status.HTTP_201_CREATED)
def register_asset(payload: AssetCreate, actor_id: Actor, facade: Facade) -> AssetRead:
    try:
        row = facade.register_asset(payload, actor_id=actor_id)
    except LedgerError as exc:
        raise_http_error(exc)
    return AssetRead.model_validate(row)


@router.get("", response_model=list[AssetRead])
def list_assets(
    facade: Facade,
    equipment: EquipmentKind | None = None,
    asset_status: Annotated[AssetStatus | None, Query(alias="status")] = None,
    department: str | None = None,
    holder_name: str | None = None,
) -> list[AssetRead]:
    rows = facade.list_assets(
        equipment=equipment,
        status=asset_status,
        department=department,
        holder_name=holder_name,
    )
    return [AssetRead.model_validate(item) for item in rows]


@router.get("/capabilities/{equipment}", response_model=CapabilityRead)
def get_capabilities(equipment: EquipmentKind) -> CapabilityRead:
    return CapabilityRead(equipment=equipment, allowed_fields=allowed_fields(equipment))


@router.get("/{asset_id}", response_model=AssetRead)
def get_asset(asset_id: str, facade: Facade) -> AssetRead:
    try:
        row = facade.get_asset(asset_id)
    except LedgerError as exc:
        raise_http_error(exc)
    return AssetRead.model_validate(row)


@router.delete("/{asset_id}")
def delete_asset(asset_id: str, actor_id: Actor, facade: Facade) -> dict[str, object]:
    try:
        removed = facade.delete_asset(asset_id, actor_id=actor_id)
    except LedgerError as exc:
        raise_http_error(exc)
    return {"asset_id": asset_id, "removed": removed}


@router.post("/{asset_id}/reconcile", response_model=AssetRead)
def reconcile_asset(asset_id: str, facade: Facade) -> AssetRead:
    try:
        row = facade.reconcile_asset(asset_id)
    except LedgerError as exc:
        raise_http_error(exc)
    return AssetRead.model_validate(row)
