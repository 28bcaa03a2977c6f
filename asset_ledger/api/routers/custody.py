from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends

from asset_ledger.api.deps import get_actor_id
from asset_ledger.api.errors import raise_http_error
from asset_ledger.domain.errors import LedgerError
from asset_ledger.domain.models import CustodyIntervalRead, CustodyTransferRequest
from asset_ledger.services.ledger_facade import LedgerFacade

router = APIRouter()


def get_ledger_facade() -> LedgerFacade:
    return LedgerFacade()


Actor = Annotated[str | None, Depends(get_actor_id)]
Facade = Annotated[LedgerFacade, Depends(get_ledger_facade)]


@router.post("/{asset_id}/transfer", response_model=CustodyIntervalRead)
def transfer_custody(
    asset_id: str,
    payload: CustodyTransferRequest,
    actor_id: Actor,
    facade: Facade,
) -> CustodyIntervalRead:
    try:
        row = facade.transfer_custody(
            asset_id,
            payload.new_holder,
            payload.department,
            payload.reason,
            payload.occurred_at,
            expected_version=payload.expected_version,
            actor_id=actor_id,
        )
    except LedgerError as exc:
        raise_http_error(exc)
    return CustodyIntervalRead.model_validate(row)


@router.get("/{asset_id}/history", response_model=list[CustodyIntervalRead])
def custody_history(asset_id: str, facade: Facade) -> list[CustodyIntervalRead]:
    try:
        rows = facade.custody_history(asset_id)
    except LedgerError as exc:
        raise_http_error(exc)
    return [CustodyIntervalRead.model_validate(item) for item in rows]


@router.get("/{asset_id}/current", response_model=CustodyIntervalRead | None)
def current_custody(asset_id: str, facade: Facade) -> CustodyIntervalRead | None:
    try:
        row = facade.current_custody(asset_id)
    except LedgerError as exc:
        raise_http_error(exc)
    if row is None:
        return None
    return CustodyIntervalRead.model_validate(row)
