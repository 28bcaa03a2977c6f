from __future__ import annotations

import asyncio
import os
import time
from datetime import date, timedelta
from uuid import uuid4

import httpx


def _assert_status(response: httpx.Response, expected: int | tuple[int, ...]) -> None:
    expected_codes = (expected,) if isinstance(expected, int) else expected
    if response.status_code not in expected_codes:
        raise RuntimeError(
            f"{response.request.method} {response.request.url} expected {expected_codes}, "
            f"got {response.status_code}: {response.text}"
        )


async def _wait_ok(client: httpx.AsyncClient, path: str, timeout_seconds: float = 60.0) -> None:
    deadline = time.monotonic() + timeout_seconds
    last_status = "n/a"
    last_body = ""
    while time.monotonic() < deadline:
        try:
            response = await client.get(path)
            if response.status_code == 200:
                return
            last_status = str(response.status_code)
            last_body = response.text
        except httpx.HTTPError as exc:
            last_status = "http_error"
            last_body = str(exc)
        await asyncio.sleep(1.0)
    raise RuntimeError(f"timeout waiting for {path}, last_status={last_status}, detail={last_body}")


async def _run() -> None:
    base_url = os.getenv("APP_BASE_URL", "http://app:8000").rstrip("/")
    run_id = uuid4().hex[:8]
    today = date.today()
    actor = {"X-Actor-Id": f"smoke-{run_id}"}

    timeout = httpx.Timeout(20.0)
    async with httpx.AsyncClient(base_url=base_url, timeout=timeout) as client:
        await _wait_ok(client, "/healthz")
        await _wait_ok(client, "/readyz")

        asset_resp = await client.post(
            "/api/assets",
            json={
                "equipment": "Laptop",
                "model": "ThinkPad T14",
                "serial_number": f"SN-{run_id}",
                "asset_tag": f"SMOKE-{run_id}",
                "department": "IT",
                "detail": {"os": "Windows 11", "ram": "16GB"},
            },
            headers=actor,
        )
        _assert_status(asset_resp, 201)
        asset_id = asset_resp.json()["id"]

        transfer_resp = await client.post(
            f"/api/custody/{asset_id}/transfer",
            json={"new_holder": f"holder-{run_id}", "department": "IT", "reason": "smoke"},
            headers=actor,
        )
        _assert_status(transfer_resp, 200)
        if transfer_resp.json().get("to") is not None:
            raise RuntimeError("new custody interval should be open")

        repeat_resp = await client.post(
            f"/api/custody/{asset_id}/transfer",
            json={"new_holder": f"holder-{run_id}", "department": "IT"},
            headers=actor,
        )
        _assert_status(repeat_resp, 409)

        record_resp = await client.post(
            "/api/maintenance/records",
            json={
                "asset_id": asset_id,
                "maintenance_type": "Preventive",
                "date_performed": today.isoformat(),
                "technician_name": "smoke-tech",
                "next_maintenance_date": (today + timedelta(days=90)).isoformat(),
            },
            headers=actor,
        )
        _assert_status(record_resp, 201)
        record_id = record_resp.json()["id"]

        asset_after = await client.get(f"/api/assets/{asset_id}")
        _assert_status(asset_after, 200)
        if asset_after.json()["next_maintenance_date"] != (today + timedelta(days=90)).isoformat():
            raise RuntimeError("maintenance cache did not follow the new record")

        delete_record = await client.delete(f"/api/maintenance/records/{record_id}", headers=actor)
        _assert_status(delete_record, 200)

        return_resp = await client.post(
            f"/api/custody/{asset_id}/transfer",
            json={"new_holder": None, "department": "IT", "reason": "smoke done"},
            headers=actor,
        )
        _assert_status(return_resp, 200)

        delete_asset = await client.delete(f"/api/assets/{asset_id}", headers=actor)
        _assert_status(delete_asset, 200)
        _assert_status(await client.get(f"/api/assets/{asset_id}"), 404)

    print("verify_smoke: healthz/readyz + asset intake + custody + maintenance cache ok")


def main() -> None:
    asyncio.run(_run())


if __name__ == "__main__":
    main()
