from __future__ import annotations

from asset_ledger.domain.capabilities import CAPABILITY_TABLE, allowed_fields, disallowed_fields
from asset_ledger.domain.models import EquipmentKind


def test_every_kind_has_an_entry() -> None:
    assert set(CAPABILITY_TABLE) == set(EquipmentKind)


def test_laptop_and_printer_fields() -> None:
    assert "pc_name" in allowed_fields(EquipmentKind.LAPTOP)
    assert allowed_fields(EquipmentKind.PRINTER) == ()
    assert disallowed_fields(EquipmentKind.LAPTOP, {"ram": "8GB", "os": "Linux"}) == []
    assert disallowed_fields(EquipmentKind.PRINTER, {"user": "x", "os": "y"}) == ["os", "user"]
