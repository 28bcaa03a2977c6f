from __future__ import annotations

from datetime import date

from asset_ledger.domain.capabilities import disallowed_fields
from asset_ledger.domain.errors import AssetNotFound, ConflictError, ValidationError
from asset_ledger.domain.models import (
    Asset,
    AssetCreate,
    AssetStatus,
    Assignment,
    EquipmentKind,
)
from asset_ledger.infra.store import LedgerStore
from asset_ledger.services.custody_ledger import CustodyLedger, next_asset_status
from asset_ledger.services.history_store import HistoryStore


class AssetService:
    def __init__(self, store: LedgerStore, history: HistoryStore, custody: CustodyLedger) -> None:
        self._store = store
        self._history = history
        self._custody = custody

    def _get_asset(self, asset_id: str) -> Asset:
        asset = self._store.get(Asset, asset_id, refresh=True)
        if asset is None:
            raise AssetNotFound(asset_id)
        return asset

    def register_asset(self, payload: AssetCreate, *, today: date) -> Asset:
        for field in ("model", "serial_number", "asset_tag", "department"):
            if not getattr(payload, field).strip():
                raise ValidationError(field)
        rejected = disallowed_fields(payload.equipment, payload.detail)
        if rejected:
            raise ValidationError(
                "detail",
                f"fields not applicable to {payload.equipment}: {', '.join(rejected)}",
            )
        holder = payload.holder_name.strip() if payload.holder_name and payload.holder_name.strip() else None
        asset = Asset(
            equipment=payload.equipment,
            model=payload.model.strip(),
            serial_number=payload.serial_number.strip(),
            asset_tag=payload.asset_tag.strip(),
            department=payload.department.strip(),
            location=payload.location,
            holder_name=holder,
            status=next_asset_status(payload.status, holder),
            detail=dict(payload.detail),
        )
        try:
            asset = self._store.insert(asset)
        except ConflictError as exc:
            raise ConflictError(f"asset tag already exists: {asset.asset_tag}") from exc
        if holder is not None:
            reason = payload.custody_reason.strip() if payload.custody_reason else ""
            self._custody.open_initial_interval(
                asset,
                holder,
                f"Initial assignment: {reason}" if reason else "Initial assignment",
                today,
            )
        return asset

    def get_asset(self, asset_id: str) -> Asset:
        return self._get_asset(asset_id)

    def list_assets(
        self,
        *,
        equipment: EquipmentKind | None = None,
        status: AssetStatus | None = None,
        department: str | None = None,
        holder_name: str | None = None,
    ) -> list[Asset]:
        filters = []
        if equipment is not None:
            filters.append(Asset.equipment == equipment)
        if status is not None:
            filters.append(Asset.status == status)
        if department is not None:
            filters.append(Asset.department == department)
        if holder_name is not None:
            filters.append(Asset.holder_name == holder_name)
        return self._store.find(Asset, filters=filters, order_by=[Asset.asset_tag.asc()])  # type: ignore[attr-defined]

    def delete_asset(self, asset_id: str) -> dict[str, int]:
        asset = self._get_asset(asset_id)
        if self._store.count(Assignment, [Assignment.asset_id == asset_id]) > 0:
            raise ConflictError(f"asset {asset_id} has assignment history and cannot be deleted")
        removed = {
            "custody_intervals": self._history.delete_intervals(asset_id),
            "maintenance_records": self._history.delete_maintenance_for_asset(asset_id),
        }
        self._store.delete(Asset, asset.id)
        return removed
