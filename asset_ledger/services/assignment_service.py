from __future__ import annotations

from datetime import date

from asset_ledger.domain.errors import (
    AssetNotFound,
    AssignmentNotFound,
    ConflictError,
    InvalidTransitionError,
    UnknownAssigneeError,
    ValidationError,
)
from asset_ledger.domain.models import Asset, Assignment, Personnel, today_utc
from asset_ledger.domain.state_machine import (
    OPEN_STATUSES,
    AssignmentStatus,
    can_return,
    can_transition,
)
from asset_ledger.infra.store import LedgerStore


def _append_note(existing: str | None, label: str, note: str | None) -> str | None:
    if note is None or not note.strip():
        return existing
    return f"{existing or ''}\n\n{label}: {note.strip()}"


class AssignmentStateMachine:
    def __init__(self, store: LedgerStore, *, damaged_is_terminal: bool = False) -> None:
        self._store = store
        self._damaged_is_terminal = damaged_is_terminal

    def _get_assignment(self, assignment_id: str) -> Assignment:
        assignment = self._store.get(Assignment, assignment_id, refresh=True)
        if assignment is None:
            raise AssignmentNotFound(assignment_id)
        return assignment

    def _resolve_assignee(self, assignee_id: str) -> Personnel:
        person = self._store.get(Personnel, assignee_id) if assignee_id.strip() else None
        if person is None or not person.is_active:
            raise UnknownAssigneeError(assignee_id)
        return person

    def assign(
        self,
        asset_id: str,
        assigned_to: str,
        assigned_by: str,
        expected_return_date: date | None = None,
        notes: str | None = None,
        *,
        today: date | None = None,
    ) -> Assignment:
        assignment_date = today or today_utc()
        if not assigned_by or not assigned_by.strip():
            raise ValidationError("assigned_by")
        person = self._resolve_assignee(assigned_to)
        if self._store.get(Asset, asset_id) is None:
            raise AssetNotFound(asset_id)
        if expected_return_date is not None and expected_return_date < assignment_date:
            raise ValidationError(
                "expected_return_date",
                "expected_return_date cannot precede the assignment date",
            )
        outstanding = self._store.first(
            Assignment,
            filters=[
                Assignment.asset_id == asset_id,
                Assignment.status.in_(list(OPEN_STATUSES)),  # type: ignore[attr-defined]
            ],
        )
        if outstanding is not None:
            raise ConflictError(f"asset {asset_id} is already lent out under assignment {outstanding.id}")

        assignment = Assignment(
            asset_id=asset_id,
            assigned_to=person.id,
            assigned_by=assigned_by.strip(),
            assignment_date=assignment_date,
            expected_return_date=expected_return_date,
            status=AssignmentStatus.ACTIVE,
            notes=notes,
        )
        return self._store.insert(assignment)

    def update_status(
        self,
        assignment_id: str,
        new_status: AssignmentStatus,
        notes: str | None = None,
    ) -> Assignment:
        assignment = self._get_assignment(assignment_id)
        if not can_transition(assignment.status, new_status, damaged_is_terminal=self._damaged_is_terminal):
            raise InvalidTransitionError(assignment.status, new_status)
        updated = self._store.update(
            Assignment,
            assignment.id,
            {
                "status": new_status,
                "notes": _append_note(assignment.notes, "Status update notes", notes),
            },
            expected_version=assignment.version,
        )
        return updated or assignment

    def return_asset(
        self,
        assignment_id: str,
        actual_return_date: date,
        notes: str | None = None,
    ) -> Assignment:
        assignment = self._get_assignment(assignment_id)
        if not can_return(assignment.status):
            raise InvalidTransitionError(assignment.status, AssignmentStatus.RETURNED)
        if actual_return_date < assignment.assignment_date:
            raise ValidationError(
                "actual_return_date",
                "actual_return_date cannot precede the assignment date",
            )
        updated = self._store.update(
            Assignment,
            assignment.id,
            {
                "status": AssignmentStatus.RETURNED,
                "actual_return_date": actual_return_date,
                "notes": _append_note(assignment.notes, "Return notes", notes),
            },
            expected_version=assignment.version,
        )
        return updated or assignment

    def mark_overdue(self, as_of: date) -> list[Assignment]:
        candidates = self._store.find(
            Assignment,
            filters=[
                Assignment.status == AssignmentStatus.ACTIVE,
                Assignment.expected_return_date.is_not(None),  # type: ignore[union-attr]
                Assignment.expected_return_date < as_of,  # type: ignore[operator]
            ],
            order_by=[Assignment.expected_return_date.asc()],  # type: ignore[union-attr]
        )
        marked: list[Assignment] = []
        for assignment in candidates:
            updated = self._store.update(
                Assignment,
                assignment.id,
                {"status": AssignmentStatus.OVERDUE},
                expected_version=assignment.version,
            )
            if updated is not None:
                marked.append(updated)
        return marked

    def get_assignment(self, assignment_id: str) -> Assignment:
        return self._get_assignment(assignment_id)

    def list_assignments(
        self,
        *,
        asset_id: str | None = None,
        assigned_to: str | None = None,
        status: AssignmentStatus | None = None,
    ) -> list[Assignment]:
        filters = []
        if asset_id is not None:
            filters.append(Assignment.asset_id == asset_id)
        if assigned_to is not None:
            filters.append(Assignment.assigned_to == assigned_to)
        if status is not None:
            filters.append(Assignment.status == status)
        return self._store.find(
            Assignment,
            filters=filters,
            order_by=[Assignment.assignment_date.desc(), Assignment.created_at.desc()],  # type: ignore[attr-defined]
        )
