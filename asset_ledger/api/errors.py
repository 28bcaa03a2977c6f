from __future__ import annotations

from typing import Any, NoReturn

from fastapi import HTTPException

from asset_ledger.domain.errors import (
    ConcurrentModificationError,
    ConflictError,
    InvalidIntervalOrder,
    InvalidTransitionError,
    LedgerError,
    NoChangeError,
    NotFoundError,
    OperationTimeoutError,
    PartialWriteError,
    StoreError,
    UnknownAssigneeError,
    ValidationError,
)
from asset_ledger.infra.logging_config import get_logger

logger = get_logger("api.errors")

_STATUS_BY_ERROR: tuple[tuple[type[LedgerError], int], ...] = (
    (NotFoundError, 404),
    (ValidationError, 422),
    (UnknownAssigneeError, 422),
    (InvalidIntervalOrder, 422),
    (InvalidTransitionError, 409),
    (NoChangeError, 409),
    (ConcurrentModificationError, 409),
    (ConflictError, 409),
    (PartialWriteError, 503),
    (StoreError, 503),
    (OperationTimeoutError, 504),
)


def _detail(exc: LedgerError) -> dict[str, Any]:
    detail: dict[str, Any] = {"code": exc.code, "message": str(exc)}
    field = getattr(exc, "field", None)
    if field is not None:
        detail["field"] = field
    asset_id = getattr(exc, "asset_id", None)
    if asset_id is not None:
        detail["asset_id"] = asset_id
    return detail


def raise_http_error(exc: LedgerError) -> NoReturn:
    for error_type, status_code in _STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            if status_code >= 500:
                logger.error("ledger operation failed", exc_info=exc)
            raise HTTPException(status_code=status_code, detail=_detail(exc)) from exc
    raise exc
