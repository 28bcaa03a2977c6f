from __future__ import annotations

from datetime import date

from asset_ledger.domain.errors import AssetNotFound, MaintenanceRecordNotFound, ValidationError
from asset_ledger.domain.models import (
    Asset,
    MaintenanceRecord,
    MaintenanceRecordCreate,
    MaintenanceRecordUpdate,
    MaintenanceType,
)
from asset_ledger.infra.store import LedgerStore
from asset_ledger.services.history_store import HistoryStore

REQUIRED_FIELDS = ("asset_id", "maintenance_type", "date_performed", "technician_name")


class MaintenanceScheduler:
    def __init__(self, store: LedgerStore, history: HistoryStore) -> None:
        self._store = store
        self._history = history

    def _get_asset(self, asset_id: str) -> Asset:
        asset = self._store.get(Asset, asset_id, refresh=True)
        if asset is None:
            raise AssetNotFound(asset_id)
        return asset

    def _get_record(self, record_id: str) -> MaintenanceRecord:
        record = self._history.get_maintenance(record_id)
        if record is None:
            raise MaintenanceRecordNotFound(record_id)
        return record

    def record_maintenance(self, payload: MaintenanceRecordCreate) -> MaintenanceRecord:
        for field in REQUIRED_FIELDS:
            value = getattr(payload, field)
            if value is None or (isinstance(value, str) and not value.strip()):
                raise ValidationError(field)
        asset = self._get_asset(str(payload.asset_id))
        next_date = payload.next_maintenance_date
        if next_date is not None and payload.date_performed is not None and next_date < payload.date_performed:
            raise ValidationError(
                "next_maintenance_date",
                "next_maintenance_date cannot precede date_performed",
            )

        record = self._history.insert_maintenance(MaintenanceRecord(**payload.model_dump()))
        if record.next_maintenance_date is not None:
            self._store.update(
                Asset,
                asset.id,
                {
                    "last_maintenance_date": record.date_performed,
                    "next_maintenance_date": record.next_maintenance_date,
                },
                expected_version=asset.version,
            )
        return record

    def update_maintenance(self, record_id: str, patch: MaintenanceRecordUpdate) -> MaintenanceRecord:
        record = self._get_record(record_id)
        changes = patch.model_dump(exclude_unset=True)
        if "asset_id" in changes and changes["asset_id"] != record.asset_id:
            raise ValidationError("asset_id", "maintenance records cannot move between assets")
        changes.pop("asset_id", None)
        for field in REQUIRED_FIELDS:
            if field in changes and changes[field] is None:
                raise ValidationError(field)
        for flag in ("issues_found", "followup_required"):
            if flag in changes and changes[flag] is None:
                changes.pop(flag)
        if "inspection" in changes and changes["inspection"] is None:
            changes["inspection"] = {}
        if not changes:
            return record

        asset = self._get_asset(record.asset_id)
        updated = self._history.update_maintenance(record_id, changes)
        if updated is None:
            raise MaintenanceRecordNotFound(record_id)
        if "next_maintenance_date" in changes:
            if changes["next_maintenance_date"] is None:
                self._recompute(asset)
            else:
                self._store.update(
                    Asset,
                    asset.id,
                    {"next_maintenance_date": changes["next_maintenance_date"]},
                    expected_version=asset.version,
                )
        return updated

    def delete_maintenance(self, record_id: str) -> MaintenanceRecord:
        record = self._get_record(record_id)
        asset = self._get_asset(record.asset_id)
        if not self._history.delete_maintenance(record_id):
            raise MaintenanceRecordNotFound(record_id)
        self._recompute(asset)
        return record

    def recompute_cache(self, asset_id: str) -> Asset:
        return self._recompute(self._get_asset(asset_id))

    def _recompute(self, asset: Asset) -> Asset:
        latest = self._history.latest_maintenance(asset.id)
        patch = {
            "last_maintenance_date": latest.date_performed if latest is not None else None,
            "next_maintenance_date": latest.next_maintenance_date if latest is not None else None,
        }
        updated = self._store.update(Asset, asset.id, patch, expected_version=asset.version)
        return updated or asset

    def get_record(self, record_id: str) -> MaintenanceRecord:
        return self._get_record(record_id)

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
        if asset_id is not None:
            self._get_asset(asset_id)
        return self._history.search_maintenance(
            asset_id=asset_id,
            technician_id=technician_id,
            maintenance_type=maintenance_type,
            start_date=start_date,
            end_date=end_date,
            search=search,
            limit=limit,
            offset=offset,
        )

    def upcoming_maintenance(self, as_of: date) -> list[MaintenanceRecord]:
        return self._history.upcoming_maintenance(as_of)
