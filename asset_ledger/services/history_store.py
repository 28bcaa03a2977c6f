from __future__ import annotations

from datetime import date
from typing import Any

from sqlalchemy import or_

from asset_ledger.domain.models import CustodyInterval, MaintenanceRecord, MaintenanceType
from asset_ledger.infra.store import LedgerStore


class HistoryStore:
    def __init__(self, store: LedgerStore) -> None:
        self._store = store

    # custody log

    def open_interval(self, asset_id: str) -> CustodyInterval | None:
        return self._store.first(
            CustodyInterval,
            filters=[CustodyInterval.asset_id == asset_id, CustodyInterval.to_date.is_(None)],  # type: ignore[union-attr]
            order_by=[CustodyInterval.from_date.desc(), CustodyInterval.created_at.desc()],  # type: ignore[attr-defined]
        )

    def open_intervals(self, asset_id: str) -> list[CustodyInterval]:
        return self._store.find(
            CustodyInterval,
            filters=[CustodyInterval.asset_id == asset_id, CustodyInterval.to_date.is_(None)],  # type: ignore[union-attr]
        )

    def list_intervals(self, asset_id: str) -> list[CustodyInterval]:
        return self._store.find(
            CustodyInterval,
            filters=[CustodyInterval.asset_id == asset_id],
            order_by=[CustodyInterval.from_date.desc(), CustodyInterval.created_at.desc()],  # type: ignore[attr-defined]
        )

    def append_interval(
        self,
        *,
        asset_id: str,
        holder_name: str | None,
        department: str | None,
        from_date: date,
        reason: str,
    ) -> CustodyInterval:
        interval = CustodyInterval(
            asset_id=asset_id,
            holder_name=holder_name,
            department=department,
            from_date=from_date,
            to_date=None,
            reason=reason,
        )
        return self._store.insert(interval)

    def close_interval(self, interval_id: str, to_date: date) -> CustodyInterval | None:
        return self._store.update(
            CustodyInterval,
            interval_id,
            {"to_date": to_date},
            filters=[CustodyInterval.to_date.is_(None)],  # type: ignore[union-attr]
        )

    def delete_intervals(self, asset_id: str) -> int:
        return self._store.delete_where(CustodyInterval, [CustodyInterval.asset_id == asset_id])

    # maintenance log

    def get_maintenance(self, record_id: str) -> MaintenanceRecord | None:
        return self._store.get(MaintenanceRecord, record_id)

    def latest_maintenance(self, asset_id: str) -> MaintenanceRecord | None:
        return self._store.first(
            MaintenanceRecord,
            filters=[MaintenanceRecord.asset_id == asset_id],
            order_by=[MaintenanceRecord.date_performed.desc(), MaintenanceRecord.created_at.desc()],  # type: ignore[attr-defined]
        )

    def insert_maintenance(self, record: MaintenanceRecord) -> MaintenanceRecord:
        return self._store.insert(record)

    def update_maintenance(self, record_id: str, patch: dict[str, Any]) -> MaintenanceRecord | None:
        return self._store.update(MaintenanceRecord, record_id, patch)

    def delete_maintenance(self, record_id: str) -> bool:
        return self._store.delete(MaintenanceRecord, record_id)

    def delete_maintenance_for_asset(self, asset_id: str) -> int:
        return self._store.delete_where(MaintenanceRecord, [MaintenanceRecord.asset_id == asset_id])

    def search_maintenance(
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
        filters: list[Any] = []
        if asset_id is not None:
            filters.append(MaintenanceRecord.asset_id == asset_id)
        if technician_id is not None:
            filters.append(MaintenanceRecord.technician_id == technician_id)
        if maintenance_type is not None:
            filters.append(MaintenanceRecord.maintenance_type == maintenance_type)
        if start_date is not None:
            filters.append(MaintenanceRecord.date_performed >= start_date)
        if end_date is not None:
            filters.append(MaintenanceRecord.date_performed <= end_date)
        if search is not None and search.strip():
            pattern = f"%{search.strip()}%"
            filters.append(
                or_(
                    MaintenanceRecord.technician_name.ilike(pattern),  # type: ignore[attr-defined]
                    MaintenanceRecord.additional_comments.ilike(pattern),  # type: ignore[union-attr]
                    MaintenanceRecord.parts_replaced.ilike(pattern),  # type: ignore[union-attr]
                    MaintenanceRecord.software_updated.ilike(pattern),  # type: ignore[union-attr]
                )
            )
        total = self._store.count(MaintenanceRecord, filters)
        rows = self._store.find(
            MaintenanceRecord,
            filters=filters,
            order_by=[MaintenanceRecord.date_performed.desc(), MaintenanceRecord.created_at.desc()],  # type: ignore[attr-defined]
            limit=limit,
            offset=offset,
        )
        return rows, total

    def upcoming_maintenance(self, as_of: date) -> list[MaintenanceRecord]:
        return self._store.find(
            MaintenanceRecord,
            filters=[MaintenanceRecord.next_maintenance_date >= as_of],  # type: ignore[operator]
            order_by=[MaintenanceRecord.next_maintenance_date.asc()],  # type: ignore[union-attr]
        )
