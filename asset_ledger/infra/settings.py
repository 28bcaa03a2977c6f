from __future__ import annotations

import os


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def _env_float(name: str) -> float | None:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return None
    return float(raw)


MAX_CONFLICT_RETRIES = int(os.getenv("LEDGER_MAX_CONFLICT_RETRIES", "3"))
DEFAULT_TIMEOUT_S = _env_float("LEDGER_DEFAULT_TIMEOUT_S")
DAMAGED_IS_TERMINAL = _env_bool("LEDGER_DAMAGED_IS_TERMINAL", False)
ASSET_LOCK_BACKEND = os.getenv("LEDGER_ASSET_LOCK_BACKEND", "none").strip().lower()
LOG_LEVEL = os.getenv("LEDGER_LOG_LEVEL", "INFO").upper()
LOG_JSON = _env_bool("LEDGER_LOG_JSON", True)
