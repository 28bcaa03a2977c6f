from __future__ import annotations

from collections.abc import Callable
from contextlib import AbstractContextManager, nullcontext
from dataclasses import dataclass, field
from datetime import date
from typing import Any, TypeVar

from sqlalchemy.exc import DBAPIError, IntegrityError, SQLAlchemyError
from sqlmodel import Session

from asset_ledger.domain.errors import (
    ConcurrentModificationError,
    ConflictError,
    PartialWriteError,
    StoreError,
)
from asset_ledger.domain.models import (
    Asset,
    AssetCreate,
    AssetStatus,
    Assignment,
    CustodyInterval,
    EquipmentKind,
    MaintenanceRecord,
    MaintenanceRecordCreate,
    MaintenanceRecordUpdate,
    MaintenanceType,
    today_utc,
)
from asset_ledger.domain.state_machine import AssignmentStatus
from asset_ledger.infra import settings
from asset_ledger.infra.db import new_session
from asset_ledger.infra.events import event_bus
from asset_ledger.infra.logging_config import get_logger
from asset_ledger.infra.redis_state import asset_lock
from asset_ledger.infra.store import Deadline, LedgerStore
from asset_ledger.services.asset_service import AssetService
from asset_ledger.services.assignment_service import AssignmentStateMachine
from asset_ledger.services.custody_ledger import CustodyLedger
from asset_ledger.services.history_store import HistoryStore
from asset_ledger.services.maintenance_scheduler import MaintenanceScheduler

T = TypeVar("T")

logger = get_logger("services.ledger_facade")


@dataclass
class LedgerUnit:
    store: LedgerStore
    history: HistoryStore
    custody: CustodyLedger
    maintenance: MaintenanceScheduler
    assignments: AssignmentStateMachine
    assets: AssetService
    touched_assets: list[str] = field(default_factory=list)


def _iso(value: date | None) -> str | None:
    return value.isoformat() if value is not None else None


class LedgerFacade:
    def __init__(
        self,
        *,
        max_conflict_retries: int | None = None,
        damaged_is_terminal: bool | None = None,
        default_timeout_s: float | None = None,
        clock: Callable[[], date] = today_utc,
    ) -> None:
        self._max_conflict_retries = (
            settings.MAX_CONFLICT_RETRIES if max_conflict_retries is None else max_conflict_retries
        )
        self._damaged_is_terminal = (
            settings.DAMAGED_IS_TERMINAL if damaged_is_terminal is None else damaged_is_terminal
        )
        self._default_timeout_s = settings.DEFAULT_TIMEOUT_S if default_timeout_s is None else default_timeout_s
        self._clock = clock

    def _session(self) -> Session:
        return new_session()

    def _build_unit(self, session: Session, deadline: Deadline) -> LedgerUnit:
        store = LedgerStore(session, deadline)
        history = HistoryStore(store)
        custody = CustodyLedger(store, history)
        return LedgerUnit(
            store=store,
            history=history,
            custody=custody,
            maintenance=MaintenanceScheduler(store, history),
            assignments=AssignmentStateMachine(store, damaged_is_terminal=self._damaged_is_terminal),
            assets=AssetService(store, history, custody),
        )

    def _deadline(self, operation: str, timeout_s: float | None) -> Deadline:
        return Deadline(timeout_s if timeout_s is not None else self._default_timeout_s, operation=operation)

    def _lock(self, asset_id: str | None, deadline: Deadline) -> AbstractContextManager[None]:
        if asset_id is None:
            return nullcontext()
        return asset_lock(asset_id, blocking_timeout=deadline.remaining)

    def _run(
        self,
        operation: str,
        work: Callable[[LedgerUnit], T],
        *,
        asset_id: str | None = None,
        timeout_s: float | None = None,
        retry_conflicts: bool = True,
    ) -> T:
        deadline = self._deadline(operation, timeout_s)
        attempts = 1 + (self._max_conflict_retries if retry_conflicts else 0)
        attempt = 1
        while True:
            try:
                return self._run_once(operation, work, deadline, asset_id)
            except ConcurrentModificationError as exc:
                if attempt >= attempts:
                    raise
                logger.warning(
                    "retrying after concurrent modification",
                    extra={"operation": operation, "attempt": attempt, "entity_id": exc.entity_id},
                )
                attempt += 1

    def _run_once(
        self,
        operation: str,
        work: Callable[[LedgerUnit], T],
        deadline: Deadline,
        asset_id: str | None,
    ) -> T:
        with self._lock(asset_id, deadline), self._session() as session:
            unit = self._build_unit(session, deadline)
            if asset_id is not None:
                unit.touched_assets.append(asset_id)
            try:
                result = work(unit)
                deadline.check()
            except Exception:
                session.rollback()
                raise
            try:
                session.commit()
            except IntegrityError as exc:
                session.rollback()
                raise ConflictError(str(exc.orig)) from exc
            except DBAPIError as exc:
                session.rollback()
                subject = unit.touched_assets[0] if unit.touched_assets else None
                logger.error(
                    "commit outcome unknown",
                    exc_info=True,
                    extra={"operation": operation, "asset_id": subject},
                )
                raise PartialWriteError(operation, subject) from exc
            except SQLAlchemyError as exc:
                session.rollback()
                raise StoreError(str(exc)) from exc
        logger.info("ledger operation committed", extra={"operation": operation, "asset_id": asset_id})
        return result

    def _read(self, work: Callable[[LedgerUnit], T], *, timeout_s: float | None = None) -> T:
        deadline = self._deadline("ledger read", timeout_s)
        with self._session() as session:
            return work(self._build_unit(session, deadline))

    def _publish(self, event_type: str, payload: dict[str, Any], actor_id: str | None) -> None:
        try:
            event_bus.publish_dict(event_type, payload, actor_id=actor_id)
        except SQLAlchemyError:
            logger.error(
                "event publish failed after commit",
                exc_info=True,
                extra={"event_type": event_type, "asset_id": payload.get("asset_id")},
            )

    # assets

    def register_asset(
        self,
        payload: AssetCreate,
        *,
        actor_id: str | None = None,
        timeout_s: float | None = None,
    ) -> Asset:
        asset = self._run(
            "register_asset",
            lambda unit: unit.assets.register_asset(payload, today=self._clock()),
            timeout_s=timeout_s,
        )
        self._publish(
            "asset.registered",
            {
                "asset_id": asset.id,
                "asset_tag": asset.asset_tag,
                "equipment": asset.equipment,
                "holder_name": asset.holder_name,
            },
            actor_id,
        )
        return asset

    def get_asset(self, asset_id: str) -> Asset:
        return self._read(lambda unit: unit.assets.get_asset(asset_id))

    def list_assets(
        self,
        *,
        equipment: EquipmentKind | None = None,
        status: AssetStatus | None = None,
        department: str | None = None,
        holder_name: str | None = None,
    ) -> list[Asset]:
        return self._read(
            lambda unit: unit.assets.list_assets(
                equipment=equipment,
                status=status,
                department=department,
                holder_name=holder_name,
            )
        )

    def delete_asset(
        self,
        asset_id: str,
        *,
        actor_id: str | None = None,
        timeout_s: float | None = None,
    ) -> dict[str, int]:
        removed = self._run(
            "delete_asset",
            lambda unit: unit.assets.delete_asset(asset_id),
            asset_id=asset_id,
            timeout_s=timeout_s,
        )
        self._publish("asset.deleted", {"asset_id": asset_id, **removed}, actor_id)
        return removed

    def reconcile_asset(self, asset_id: str, *, timeout_s: float | None = None) -> Asset:
        def _work(unit: LedgerUnit) -> Asset:
            unit.custody.reconcile_holder(asset_id)
            return unit.maintenance.recompute_cache(asset_id)

        return self._run("reconcile_asset", _work, asset_id=asset_id, timeout_s=timeout_s)

    # custody

    def transfer_custody(
        self,
        asset_id: str,
        new_holder: str | None,
        department: str,
        reason: str = "",
        occurred_at: date | None = None,
        *,
        expected_version: int | None = None,
        actor_id: str | None = None,
        timeout_s: float | None = None,
    ) -> CustodyInterval:
        when = occurred_at or self._clock()
        interval = self._run(
            "transfer_custody",
            lambda unit: unit.custody.transfer_custody(
                asset_id,
                new_holder,
                department,
                reason,
                when,
                expected_version=expected_version,
            ),
            asset_id=asset_id,
            timeout_s=timeout_s,
            retry_conflicts=False,
        )
        self._publish(
            "custody.transferred",
            {
                "asset_id": asset_id,
                "interval_id": interval.id,
                "holder_name": new_holder,
                "department": department,
                "occurred_at": when.isoformat(),
            },
            actor_id,
        )
        return interval

    def custody_history(self, asset_id: str) -> list[CustodyInterval]:
        return self._read(lambda unit: unit.custody.custody_history(asset_id))

    def current_custody(self, asset_id: str) -> CustodyInterval | None:
        return self._read(lambda unit: unit.custody.current_custody(asset_id))

    # maintenance

    def record_maintenance(
        self,
        payload: MaintenanceRecordCreate,
        *,
        actor_id: str | None = None,
        timeout_s: float | None = None,
    ) -> MaintenanceRecord:
        record = self._run(
            "record_maintenance",
            lambda unit: unit.maintenance.record_maintenance(payload),
            asset_id=payload.asset_id,
            timeout_s=timeout_s,
        )
        self._publish(
            "maintenance.recorded",
            {
                "record_id": record.id,
                "asset_id": record.asset_id,
                "maintenance_type": record.maintenance_type,
                "date_performed": _iso(record.date_performed),
                "next_maintenance_date": _iso(record.next_maintenance_date),
            },
            actor_id,
        )
        return record

    def update_maintenance(
        self,
        record_id: str,
        patch: MaintenanceRecordUpdate,
        *,
        actor_id: str | None = None,
        timeout_s: float | None = None,
    ) -> MaintenanceRecord:
        def _work(unit: LedgerUnit) -> MaintenanceRecord:
            record = unit.maintenance.get_record(record_id)
            unit.touched_assets.append(record.asset_id)
            return unit.maintenance.update_maintenance(record_id, patch)

        record = self._run("update_maintenance", _work, timeout_s=timeout_s)
        self._publish(
            "maintenance.updated",
            {
                "record_id": record.id,
                "asset_id": record.asset_id,
                "fields": sorted(patch.model_fields_set),
            },
            actor_id,
        )
        return record

    def delete_maintenance(
        self,
        record_id: str,
        *,
        actor_id: str | None = None,
        timeout_s: float | None = None,
    ) -> MaintenanceRecord:
        def _work(unit: LedgerUnit) -> MaintenanceRecord:
            record = unit.maintenance.get_record(record_id)
            unit.touched_assets.append(record.asset_id)
            return unit.maintenance.delete_maintenance(record_id)

        record = self._run("delete_maintenance", _work, timeout_s=timeout_s)
        self._publish(
            "maintenance.deleted",
            {"record_id": record.id, "asset_id": record.asset_id},
            actor_id,
        )
        return record

    def get_maintenance(self, record_id: str) -> MaintenanceRecord:
        return self._read(lambda unit: unit.maintenance.get_record(record_id))

    def list_maintenance(
        self,
        *,
        asset_id: str | None = None,
        technician_id: str | None = None,
        maintenance_type: MaintenanceType | None = None,
        start_date: date | None = None,
        end_date: date | None = None,
        search: str | None = None,
        limit: int = 100,
        offset: int = 0,
    ) -> tuple[list[MaintenanceRecord], int]:
        return self._read(
            lambda unit: unit.maintenance.list_maintenance(
                asset_id=asset_id,
                technician_id=technician_id,
                maintenance_type=maintenance_type,
                start_date=start_date,
                end_date=end_date,
                search=search,
                limit=limit,
                offset=offset,
            )
        )

    def upcoming_maintenance(self, as_of: date | None = None) -> list[MaintenanceRecord]:
        cutoff = as_of or self._clock()
        return self._read(lambda unit: unit.maintenance.upcoming_maintenance(cutoff))

    # assignments

    def assign(
        self,
        asset_id: str,
        assigned_to: str,
        assigned_by: str,
        expected_return_date: date | None = None,
        notes: str | None = None,
        *,
        timeout_s: float | None = None,
    ) -> Assignment:
        today = self._clock()
        assignment = self._run(
            "assign",
            lambda unit: unit.assignments.assign(
                asset_id,
                assigned_to,
                assigned_by,
                expected_return_date,
                notes,
                today=today,
            ),
            timeout_s=timeout_s,
        )
        self._publish(
            "assignment.created",
            {
                "assignment_id": assignment.id,
                "asset_id": assignment.asset_id,
                "assigned_to": assignment.assigned_to,
                "expected_return_date": _iso(assignment.expected_return_date),
            },
            assigned_by,
        )
        return assignment

    def update_assignment_status(
        self,
        assignment_id: str,
        new_status: AssignmentStatus,
        notes: str | None = None,
        *,
        actor_id: str | None = None,
        timeout_s: float | None = None,
    ) -> Assignment:
        previous: dict[str, AssignmentStatus] = {}

        def _work(unit: LedgerUnit) -> Assignment:
            previous["status"] = unit.assignments.get_assignment(assignment_id).status
            return unit.assignments.update_status(assignment_id, new_status, notes)

        assignment = self._run("update_assignment_status", _work, timeout_s=timeout_s)
        self._publish(
            "assignment.status_changed",
            {
                "assignment_id": assignment.id,
                "asset_id": assignment.asset_id,
                "from_status": previous.get("status"),
                "to_status": assignment.status,
            },
            actor_id,
        )
        return assignment

    def return_asset(
        self,
        assignment_id: str,
        actual_return_date: date,
        notes: str | None = None,
        *,
        actor_id: str | None = None,
        timeout_s: float | None = None,
    ) -> Assignment:
        assignment = self._run(
            "return_asset",
            lambda unit: unit.assignments.return_asset(assignment_id, actual_return_date, notes),
            timeout_s=timeout_s,
        )
        self._publish(
            "assignment.returned",
            {
                "assignment_id": assignment.id,
                "asset_id": assignment.asset_id,
                "actual_return_date": _iso(assignment.actual_return_date),
            },
            actor_id,
        )
        return assignment

    def mark_overdue(
        self,
        as_of: date | None = None,
        *,
        actor_id: str | None = None,
        timeout_s: float | None = None,
    ) -> list[Assignment]:
        cutoff = as_of or self._clock()
        marked = self._run(
            "mark_overdue",
            lambda unit: unit.assignments.mark_overdue(cutoff),
            timeout_s=timeout_s,
        )
        for assignment in marked:
            self._publish(
                "assignment.status_changed",
                {
                    "assignment_id": assignment.id,
                    "asset_id": assignment.asset_id,
                    "from_status": AssignmentStatus.ACTIVE,
                    "to_status": assignment.status,
                },
                actor_id,
            )
        return marked

    def get_assignment(self, assignment_id: str) -> Assignment:
        return self._read(lambda unit: unit.assignments.get_assignment(assignment_id))

    def list_assignments(
        self,
        *,
        asset_id: str | None = None,
        assigned_to: str | None = None,
        status: AssignmentStatus | None = None,
    ) -> list[Assignment]:
        return self._read(
            lambda unit: unit.assignments.list_assignments(
                asset_id=asset_id,
                assigned_to=assigned_to,
                status=status,
            )
        )
