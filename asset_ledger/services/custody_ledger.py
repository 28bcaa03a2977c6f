from __future__ import annotations

from datetime import date

from asset_ledger.domain.errors import (
    AssetNotFound,
    ConcurrentModificationError,
    ConflictError,
    InvalidIntervalOrder,
    NoChangeError,
    ValidationError,
)
from asset_ledger.domain.models import Asset, AssetStatus, CustodyInterval
from asset_ledger.infra.store import LedgerStore
from asset_ledger.services.history_store import HistoryStore

_ASSIGNABLE_STATUSES = {AssetStatus.AVAILABLE, AssetStatus.SERVICEABLE, AssetStatus.IN_STORAGE}


def _clean(value: str | None) -> str | None:
    if value is None:
        return None
    stripped = value.strip()
    return stripped or None


def next_asset_status(current: AssetStatus, holder_name: str | None) -> AssetStatus:
    if holder_name is not None and current in _ASSIGNABLE_STATUSES:
        return AssetStatus.ASSIGNED
    if holder_name is None and current == AssetStatus.ASSIGNED:
        return AssetStatus.AVAILABLE
    return current


class CustodyLedger:
    def __init__(self, store: LedgerStore, history: HistoryStore) -> None:
        self._store = store
        self._history = history

    def _get_asset(self, asset_id: str) -> Asset:
        asset = self._store.get(Asset, asset_id, refresh=True)
        if asset is None:
            raise AssetNotFound(asset_id)
        return asset

    def _ensure_changes(
        self,
        asset: Asset,
        current: CustodyInterval | None,
        new_holder: str | None,
        department: str,
        reason: str,
    ) -> None:
        if current is None:
            if new_holder is None:
                raise NoChangeError(asset.id, "asset has no holder to release")
            return
        if new_holder != current.holder_name:
            return
        current_department = current.department or asset.department
        if department != current_department:
            return
        if reason and reason != current.reason:
            return
        raise NoChangeError(asset.id, f"asset is already held by {new_holder} in {department}")

    def transfer_custody(
        self,
        asset_id: str,
        new_holder: str | None,
        department: str,
        reason: str,
        occurred_at: date,
        *,
        expected_version: int | None = None,
    ) -> CustodyInterval:
        asset = self._get_asset(asset_id)
        read_version = asset.version if expected_version is None else expected_version
        holder = _clean(new_holder)
        target_department = _clean(department)
        if target_department is None:
            raise ValidationError("department")
        clean_reason = _clean(reason) or ""

        current = self._history.open_interval(asset_id)
        self._ensure_changes(asset, current, holder, target_department, clean_reason)

        closed: CustodyInterval | None = None
        if current is not None:
            if occurred_at < current.from_date:
                raise InvalidIntervalOrder(current.id, current.from_date, occurred_at)
            closed = self._history.close_interval(current.id, occurred_at)
            if closed is None:
                raise ConcurrentModificationError("asset", asset_id, read_version)

        opened: CustodyInterval | None = None
        if holder is not None:
            try:
                opened = self._history.append_interval(
                    asset_id=asset_id,
                    holder_name=holder,
                    department=target_department,
                    from_date=occurred_at,
                    reason=clean_reason,
                )
            except ConflictError as exc:
                raise ConcurrentModificationError("asset", asset_id, read_version) from exc

        self._store.update(
            Asset,
            asset_id,
            {
                "holder_name": holder,
                "department": target_department,
                "status": next_asset_status(asset.status, holder),
            },
            expected_version=read_version,
        )
        if opened is not None:
            return opened
        return closed  # type: ignore[return-value]

    def open_initial_interval(
        self,
        asset: Asset,
        holder_name: str,
        reason: str,
        occurred_at: date,
    ) -> CustodyInterval:
        return self._history.append_interval(
            asset_id=asset.id,
            holder_name=holder_name,
            department=asset.department,
            from_date=occurred_at,
            reason=reason,
        )

    def custody_history(self, asset_id: str) -> list[CustodyInterval]:
        self._get_asset(asset_id)
        return self._history.list_intervals(asset_id)

    def current_custody(self, asset_id: str) -> CustodyInterval | None:
        self._get_asset(asset_id)
        return self._history.open_interval(asset_id)

    def reconcile_holder(self, asset_id: str) -> Asset:
        asset = self._get_asset(asset_id)
        current = self._history.open_interval(asset_id)
        holder = current.holder_name if current is not None else None
        patch: dict[str, object] = {
            "holder_name": holder,
            "status": next_asset_status(asset.status, holder),
        }
        if current is not None and current.department:
            patch["department"] = current.department
        updated = self._store.update(Asset, asset_id, patch, expected_version=asset.version)
        return updated or asset
