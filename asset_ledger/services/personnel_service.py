from __future__ import annotations

from sqlmodel import Session

from asset_ledger.domain.errors import ConflictError, PersonnelNotFound, ValidationError
from asset_ledger.domain.models import Personnel, PersonnelCreate
from asset_ledger.infra.db import new_session
from asset_ledger.infra.store import LedgerStore


class PersonnelService:
    def _session(self) -> Session:
        return new_session()

    def register_person(self, payload: PersonnelCreate) -> Personnel:
        if not payload.full_name.strip():
            raise ValidationError("full_name")
        person = Personnel(
            full_name=payload.full_name.strip(),
            email=payload.email.strip().lower() if payload.email else None,
            department=payload.department,
            designation=payload.designation,
        )
        with self._session() as session:
            store = LedgerStore(session)
            try:
                person = store.insert(person)
            except ConflictError as exc:
                session.rollback()
                raise ConflictError(f"email already registered: {person.email}") from exc
            session.commit()
        return person

    def get_person(self, person_id: str) -> Personnel:
        with self._session() as session:
            person = LedgerStore(session).get(Personnel, person_id)
        if person is None:
            raise PersonnelNotFound(person_id)
        return person

    def list_personnel(self, *, active_only: bool = True, search: str | None = None) -> list[Personnel]:
        filters = []
        if active_only:
            filters.append(Personnel.is_active.is_(True))  # type: ignore[attr-defined]
        if search is not None and search.strip():
            pattern = f"%{search.strip()}%"
            filters.append(Personnel.full_name.ilike(pattern) | Personnel.email.ilike(pattern))  # type: ignore[attr-defined,union-attr]
        with self._session() as session:
            return LedgerStore(session).find(
                Personnel,
                filters=filters,
                order_by=[Personnel.full_name.asc()],  # type: ignore[attr-defined]
            )

    def deactivate_person(self, person_id: str) -> Personnel:
        with self._session() as session:
            store = LedgerStore(session)
            person = store.update(Personnel, person_id, {"is_active": False})
            if person is None:
                raise PersonnelNotFound(person_id)
            session.commit()
        return person
