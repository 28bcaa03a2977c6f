from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, status

from asset_ledger.api.errors import raise_http_error
from asset_ledger.domain.errors import LedgerError
from asset_ledger.domain.models import PersonnelCreate, PersonnelRead
from asset_ledger.services.personnel_service import PersonnelService

router = APIRouter()


def get_personnel_service() -> PersonnelService:
    return PersonnelService()


Service = Annotated[PersonnelService, Depends(get_personnel_service)]


@router.post("", response_model=PersonnelRead, status_code=status.HTTP_201_CREATED)
def register_person(payload: PersonnelCreate, service: Service) -> PersonnelRead:
    try:
        row = service.register_person(payload)
    except LedgerError as exc:
        raise_http_error(exc)
    return PersonnelRead.model_validate(row)


@router.get("", response_model=list[PersonnelRead])
def list_personnel(
    service: Service,
    active_only: bool = True,
    search: str | None = None,
) -> list[PersonnelRead]:
    rows = service.list_personnel(active_only=active_only, search=search)
    return [PersonnelRead.model_validate(item) for item in rows]


@router.get("/{person_id}", response_model=PersonnelRead)
def get_person(person_id: str, service: Service) -> PersonnelRead:
    try:
        row = service.get_person(person_id)
    except LedgerError as exc:
        raise_http_error(exc)
    return PersonnelRead.model_validate(row)


@router.post("/{person_id}/deactivate", response_model=PersonnelRead)
def deactivate_person(person_id: str, service: Service) -> PersonnelRead:
    try:
        row = service.deactivate_person(person_id)
    except LedgerError as exc:
        raise_http_error(exc)
    return PersonnelRead.model_validate(row)
