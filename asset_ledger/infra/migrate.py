from __future__ import annotations

import sys
from pathlib import Path

from alembic import command
from alembic.config import Config

ROOT = Path(__file__).resolve().parents[2]


def build_config() -> Config:
    config = Config(str(ROOT / "alembic.ini"))
    config.set_main_option("script_location", str(ROOT / "infra" / "migrations"))
    return config


def run_upgrade(revision: str = "head") -> None:
    command.upgrade(build_config(), revision)


if __name__ == "__main__":
    run_upgrade(sys.argv[1] if len(sys.argv) > 1 else "head")
