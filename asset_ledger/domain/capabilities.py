from __future__ import annotations

from asset_ledger.domain.models import EquipmentKind

# Optional asset fields that apply to each equipment kind.
CAPABILITY_TABLE: dict[EquipmentKind, tuple[str, ...]] = {
    EquipmentKind.LAPTOP: ("pc_name", "oe_tag", "os", "ram", "storage", "user", "designation"),
    EquipmentKind.DESKTOP: ("pc_name", "oe_tag", "os", "ram", "storage", "user", "designation"),
    EquipmentKind.PRINTER: (),
    EquipmentKind.SWITCH: (),
    EquipmentKind.SERVER: ("pc_name", "os", "ram", "storage"),
    EquipmentKind.LICENSE: (),
    EquipmentKind.PHONE: ("os", "storage", "user", "designation"),
    EquipmentKind.IPAD: ("os", "storage", "user", "designation"),
    EquipmentKind.OTHER: (),
}


def allowed_fields(kind: EquipmentKind) -> tuple[str, ...]:
    return CAPABILITY_TABLE.get(kind, ())


def disallowed_fields(kind: EquipmentKind, detail: dict[str, object]) -> list[str]:
    allowed = set(allowed_fields(kind))
    return sorted(key for key in detail if key not in allowed)
