from __future__ import annotations

from pathlib import Path

import pytest
import sqlalchemy as sa
from sqlmodel import SQLModel

from asset_ledger.domain import models  # noqa: F401
from asset_ledger.infra import db, migrate


def test_upgrade_head_matches_models(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    url = f"sqlite:///{tmp_path / 'migrated.db'}"
    monkeypatch.setattr(db, "DATABASE_URL", url)

    migrate.run_upgrade()

    engine = sa.create_engine(url)
    try:
        inspector = sa.inspect(engine)
        tables = set(inspector.get_table_names())
        for table in SQLModel.metadata.sorted_tables:
            assert table.name in tables
            migrated_columns = {column["name"] for column in inspector.get_columns(table.name)}
            assert migrated_columns == set(table.c.keys()), table.name
        index_names = {index["name"] for index in inspector.get_indexes("custody_intervals")}
        assert "uq_custody_intervals_open_per_asset" in index_names
    finally:
        engine.dispose()
