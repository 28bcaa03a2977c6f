from __future__ import annotations

from datetime import date


class LedgerError(Exception):
    code: str = "LEDGER_ERROR"


class NotFoundError(LedgerError):
    code = "NOT_FOUND"


class AssetNotFound(NotFoundError):
    code = "ASSET_NOT_FOUND"

    def __init__(self, asset_id: str) -> None:
        self.asset_id = asset_id
        super().__init__(f"asset not found: {asset_id}")


class AssignmentNotFound(NotFoundError):
    code = "ASSIGNMENT_NOT_FOUND"

    def __init__(self, assignment_id: str) -> None:
        self.assignment_id = assignment_id
        super().__init__(f"assignment not found: {assignment_id}")


class MaintenanceRecordNotFound(NotFoundError):
    code = "MAINTENANCE_RECORD_NOT_FOUND"

    def __init__(self, record_id: str) -> None:
        self.record_id = record_id
        super().__init__(f"maintenance record not found: {record_id}")


class PersonnelNotFound(NotFoundError):
    code = "PERSONNEL_NOT_FOUND"

    def __init__(self, personnel_id: str) -> None:
        self.personnel_id = personnel_id
        super().__init__(f"personnel not found: {personnel_id}")


class ValidationError(LedgerError):
    code = "VALIDATION_ERROR"

    def __init__(self, field: str, message: str | None = None) -> None:
        self.field = field
        super().__init__(message or f"{field} is required")


class InvalidIntervalOrder(LedgerError):
    code = "INVALID_INTERVAL_ORDER"

    def __init__(self, interval_id: str, from_date: date, to_date: date) -> None:
        self.interval_id = interval_id
        self.from_date = from_date
        self.to_date = to_date
        super().__init__(
            f"custody interval {interval_id} starts {from_date.isoformat()} "
            f"and cannot close on {to_date.isoformat()}"
        )


class NoChangeError(LedgerError):
    code = "NO_CHANGE"

    def __init__(self, asset_id: str, message: str = "custody transfer changes nothing") -> None:
        self.asset_id = asset_id
        super().__init__(message)


class InvalidTransitionError(LedgerError):
    code = "INVALID_TRANSITION"

    def __init__(self, current: str, requested: str) -> None:
        self.current = current
        self.requested = requested
        super().__init__(f"assignment cannot move from {current} to {requested}")


class UnknownAssigneeError(LedgerError):
    code = "UNKNOWN_ASSIGNEE"

    def __init__(self, assignee: str) -> None:
        self.assignee = assignee
        super().__init__(f"assignee does not resolve to a known person: {assignee}")


class ConflictError(LedgerError):
    code = "CONFLICT"


class ConcurrentModificationError(LedgerError):
    code = "CONCURRENT_MODIFICATION"

    def __init__(self, entity: str, entity_id: str, expected_version: int | None = None) -> None:
        self.entity = entity
        self.entity_id = entity_id
        self.expected_version = expected_version
        super().__init__(f"{entity} {entity_id} was modified concurrently")


class PartialWriteError(LedgerError):
    """The outcome of a commit is unknown; callers must re-read and reconcile."""

    code = "PARTIAL_WRITE"

    def __init__(self, operation: str, asset_id: str | None) -> None:
        self.operation = operation
        self.asset_id = asset_id
        super().__init__(f"{operation} could not confirm its commit for asset {asset_id}")


class OperationTimeoutError(LedgerError):
    code = "OPERATION_TIMEOUT"

    def __init__(self, operation: str) -> None:
        self.operation = operation
        super().__init__(f"{operation} exceeded its deadline and was rolled back")


class StoreError(LedgerError):
    code = "STORE_ERROR"
