from __future__ import annotations

from fastapi import FastAPI, HTTPException

from asset_ledger.api.routers import assets, assignments, custody, maintenance, personnel
from asset_ledger.infra.db import check_db_ready
from asset_ledger.infra.logging_config import configure_logging
from asset_ledger.infra.redis_state import check_redis_ready

configure_logging()

app = FastAPI(
    title="asset-ledger",
    description="Custody, maintenance and lending ledger for IT equipment.",
    version="0.1.0",
)

app.include_router(assets.router, prefix="/api/assets", tags=["assets"])
app.include_router(custody.router, prefix="/api/custody", tags=["custody"])
app.include_router(maintenance.router, prefix="/api/maintenance", tags=["maintenance"])
app.include_router(assignments.router, prefix="/api/assignments", tags=["assignments"])
app.include_router(personnel.router, prefix="/api/personnel", tags=["personnel"])


@app.get("/healthz")
def healthz() -> dict[str, str]:
    return {"status": "ok"}


@app.get("/readyz")
def readyz() -> dict[str, object]:
    db_ok = check_db_ready()
    redis_ok = check_redis_ready()
    checks = {
        "db": "ok" if db_ok else "fail",
        "redis": "ok" if redis_ok else "fail",
    }
    if not (db_ok and redis_ok):
        raise HTTPException(
            status_code=503,
            detail={"status": "not_ready", "checks": checks},
        )
    return {"status": "ready", "checks": checks}
