from __future__ import annotations

import os
from collections.abc import Iterator
from contextlib import contextmanager
from functools import lru_cache

from redis import Redis
from redis.exceptions import LockError

from asset_ledger.domain.errors import ConcurrentModificationError
from asset_ledger.infra import settings
from asset_ledger.infra.logging_config import get_logger

REDIS_URL = os.getenv("REDIS_URL", "redis://redis:6379/0")
ASSET_LOCK_PREFIX = "ledger:asset:"
ASSET_LOCK_TTL_S = 30.0

logger = get_logger("infra.redis_state")


@lru_cache(maxsize=1)
def get_redis() -> Redis:
    return Redis.from_url(REDIS_URL, decode_responses=True)


def check_redis_ready() -> bool:
    if settings.ASSET_LOCK_BACKEND != "redis":
        return True
    try:
        return bool(get_redis().ping())
    except Exception:
        return False


@contextmanager
def asset_lock(asset_id: str, *, blocking_timeout: float | None = None) -> Iterator[None]:
    if settings.ASSET_LOCK_BACKEND != "redis":
        yield
        return
    lock = get_redis().lock(
        f"{ASSET_LOCK_PREFIX}{asset_id}",
        timeout=ASSET_LOCK_TTL_S,
        blocking_timeout=blocking_timeout,
    )
    if not lock.acquire():
        raise ConcurrentModificationError("asset", asset_id)
    try:
        yield
    finally:
        try:
            lock.release()
        except LockError:
            logger.warning("asset lock expired before release", extra={"asset_id": asset_id})
