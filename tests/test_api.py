"""
Integration tests for the REST API endpoints.

Uses an in-memory SQLite database through the real repositories; only the
DB session and Redis client dependencies are overridden.
"""

from __future__ import annotations

from decimal import Decimal

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from dispatch.api.app import create_app
from dispatch.api.dependencies import get_db, get_redis_client
from dispatch.api.middleware import limiter

TRIP_BODY = {
    "full_name": "Kevin Njoroge",
    "phone_number": "+254722100200",
    "business_type": "Farmer",
    "load_description": "Fertiliser, 2 tonnes",
    "pickup_location": "Nakuru Depot",
    "dropoff_location": "Eldoret Farmers Store",
    "pickup_time": "2026-03-02T08:30:00Z",
}


# ── Fixture ───────────────────────────────────────────────────────────


@pytest_asyncio.fixture
async def client(session_factory, redis_mock):
    """AsyncClient backed by SQLite and a mocked Redis."""

    async def _test_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    async def _test_redis():
        return redis_mock

    limiter.reset()
    app = create_app()
    app.dependency_overrides[get_db] = _test_db
    app.dependency_overrides[get_redis_client] = _test_redis

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


async def _create(client: AsyncClient, **overrides) -> dict:
    resp = await client.post("/api/v1/trips", json={**TRIP_BODY, **overrides})
    assert resp.status_code == 201
    return resp.json()


async def _complete(client: AsyncClient, driver_id: str, fare: int) -> str:
    trip_id = (await _create(client))["id"]
    resp = await client.post(
        f"/api/v1/trips/{trip_id}/assign",
        json={"driver_id": driver_id, "agreed_fare": fare},
    )
    assert resp.status_code == 200
    for _ in range(2):
        resp = await client.post(f"/api/v1/trips/{trip_id}/advance", json={})
        assert resp.status_code == 200
    return trip_id


# ── Tests ─────────────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_health(client: AsyncClient):
    resp = await client.get("/api/v1/admin/health")
    assert resp.status_code == 200
    assert resp.json()["status"] == "ok"


@pytest.mark.asyncio
async def test_create_trip_returns_201(client: AsyncClient):
    data = await _create(client)
    assert data["status"] == "Pending"
    assert data["id"] is not None
    assert data["version"] == 1
    assert data["agreed_fare"] is None
    assert data["customer"]["phone_number"] == "+254722100200"
    assert data["driver"] is None


@pytest.mark.asyncio
async def test_create_trip_missing_field(client: AsyncClient):
    body = {k: v for k, v in TRIP_BODY.items() if k != "pickup_time"}
    resp = await client.post("/api/v1/trips", json=body)
    assert resp.status_code == 422


@pytest.mark.asyncio
async def test_create_trip_blank_location(client: AsyncClient):
    resp = await client.post("/api/v1/trips", json={**TRIP_BODY, "pickup_location": "  "})
    assert resp.status_code == 422
    assert "pickup_location" in resp.json()["detail"]


@pytest.mark.asyncio
async def test_get_trip(client: AsyncClient):
    trip_id = (await _create(client))["id"]
    resp = await client.get(f"/api/v1/trips/{trip_id}")
    assert resp.status_code == 200
    assert resp.json()["id"] == trip_id


@pytest.mark.asyncio
async def test_get_trip_not_found(client: AsyncClient):
    resp = await client.get("/api/v1/trips/does-not-exist")
    assert resp.status_code == 404
    assert "not found" in resp.json()["detail"]


@pytest.mark.asyncio
async def test_assign_and_advance(client: AsyncClient, drivers):
    trip_id = (await _create(client))["id"]

    resp = await client.post(
        f"/api/v1/trips/{trip_id}/assign",
        json={"driver_id": drivers["wanjiru"], "agreed_fare": "18000", "expected_version": 1},
    )
    assert resp.status_code == 200
    data = resp.json()
    assert data["status"] == "Confirmed"
    assert data["driver"]["full_name"] == "Grace Wanjiru"
    assert Decimal(data["agreed_fare"]) == Decimal("18000")
    assert Decimal(data["platform_commission"]) == Decimal("2160")

    resp = await client.post(
        f"/api/v1/trips/{trip_id}/advance", json={"target": "In Progress"}
    )
    assert resp.status_code == 200
    assert resp.json()["status"] == "In Progress"


@pytest.mark.asyncio
async def test_assign_zero_fare_is_422(client: AsyncClient, drivers):
    trip_id = (await _create(client))["id"]
    resp = await client.post(
        f"/api/v1/trips/{trip_id}/assign",
        json={"driver_id": drivers["wanjiru"], "agreed_fare": 0},
    )
    assert resp.status_code == 422
    assert resp.json()["detail"] == "agreed_fare must be greater than zero"


@pytest.mark.asyncio
async def test_advance_pending_is_409(client: AsyncClient):
    trip_id = (await _create(client))["id"]
    resp = await client.post(f"/api/v1/trips/{trip_id}/advance", json={})
    assert resp.status_code == 409


@pytest.mark.asyncio
async def test_stale_version_is_409(client: AsyncClient, drivers):
    trip_id = (await _create(client))["id"]
    await client.post(
        f"/api/v1/trips/{trip_id}/assign",
        json={"driver_id": drivers["kamau"], "agreed_fare": 5000},
    )
    resp = await client.post(
        f"/api/v1/trips/{trip_id}/assign",
        json={"driver_id": drivers["wanjiru"], "agreed_fare": 6000, "expected_version": 1},
    )
    assert resp.status_code == 409


@pytest.mark.asyncio
async def test_verification_outcomes(client: AsyncClient, drivers):
    trip_id = await _complete(client, drivers["kamau"], 5000)

    resp = await client.post(
        f"/api/v1/trips/{trip_id}/verification", json={"customer_amount": 5000}
    )
    assert resp.status_code == 200
    assert resp.json()["outcome"] is None

    resp = await client.post(
        f"/api/v1/trips/{trip_id}/verification", json={"driver_amount": 4500}
    )
    body = resp.json()
    assert body["outcome"] == "VERIFICATION_MISMATCH"
    assert body["message"].startswith("Discrepancy detected!")

    resp = await client.get("/api/v1/admin/audit-log", params={"record_id": trip_id})
    assert resp.status_code == 200
    assert resp.json()[0]["action"] == "VERIFICATION_MISMATCH"


@pytest.mark.asyncio
async def test_verification_needs_an_amount(client: AsyncClient):
    trip_id = (await _create(client))["id"]
    resp = await client.post(f"/api/v1/trips/{trip_id}/verification", json={})
    assert resp.status_code == 422


@pytest.mark.asyncio
async def test_board_has_four_columns(client: AsyncClient):
    await _create(client)
    resp = await client.get("/api/v1/trips")
    assert resp.status_code == 200
    columns = resp.json()
    assert [c["status"] for c in columns] == [
        "Pending",
        "Confirmed",
        "In Progress",
        "Completed",
    ]
    assert len(columns[0]["trips"]) == 1


@pytest.mark.asyncio
async def test_correct_customer(client: AsyncClient):
    customer_id = (await _create(client))["customer_id"]
    resp = await client.patch(
        f"/api/v1/customers/{customer_id}", json={"full_name": "Kevin N. Njoroge"}
    )
    assert resp.status_code == 200
    assert resp.json()["full_name"] == "Kevin N. Njoroge"
    assert resp.json()["business_type"] == "Farmer"

    resp = await client.patch("/api/v1/customers/unknown", json={"full_name": "X"})
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_driver_roster(client: AsyncClient, drivers):
    resp = await client.get("/api/v1/drivers")
    assert resp.status_code == 200
    assert [d["reliability_score"] for d in resp.json()] == [100, 90, 75]

    resp = await client.get("/api/v1/drivers", params={"corridor": "Nairobi - Mombasa"})
    assert {d["id"] for d in resp.json()} == {drivers["kamau"], drivers["wanjiru"]}


@pytest.mark.asyncio
async def test_tracking(client: AsyncClient, drivers):
    trip_id = (await _create(client))["id"]
    resp = await client.get(f"/api/v1/track/{trip_id}")
    assert resp.status_code == 200
    data = resp.json()
    assert data["status_label"] == "Finding Driver"
    assert data["driver_name"] is None
    assert [s["state"] for s in data["timeline"]] == [
        "current",
        "upcoming",
        "upcoming",
        "upcoming",
    ]

    resp = await client.get("/api/v1/track/unknown")
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_statements_and_settle(client: AsyncClient, drivers):
    await _complete(client, drivers["kamau"], 10000)
    await _complete(client, drivers["kamau"], 5000)
    await _complete(client, drivers["wanjiru"], 20000)

    resp = await client.get("/api/v1/reconciliation/statements")
    assert resp.status_code == 200
    data = resp.json()
    assert data["currency"] == "KSh"
    assert Decimal(data["outstanding_total"]) == Decimal("4200")
    first, second = data["statements"]
    assert first["driver_id"] == drivers["wanjiru"]
    assert Decimal(first["total_commission"]) == Decimal("2400")
    assert Decimal(second["total_fare"]) == Decimal("15000")
    assert len(second["trip_ids"]) == 2

    body = {"driver_id": drivers["kamau"], "trip_ids": second["trip_ids"]}
    resp = await client.post("/api/v1/reconciliation/settle", json=body)
    assert resp.status_code == 200
    assert resp.json()["message"] == "Balance settled successfully"
    assert Decimal(resp.json()["total_commission"]) == Decimal("1800")

    resp = await client.post("/api/v1/reconciliation/settle", json=body)
    assert resp.status_code == 200
    assert resp.json()["settled_trip_ids"] == []
    assert sorted(resp.json()["already_settled_trip_ids"]) == sorted(body["trip_ids"])

    data = (await client.get("/api/v1/reconciliation/statements")).json()
    assert [s["driver_id"] for s in data["statements"]] == [drivers["wanjiru"]]


@pytest.mark.asyncio
async def test_settle_foreign_trip_is_422(client: AsyncClient, drivers):
    theirs = await _complete(client, drivers["wanjiru"], 20000)
    resp = await client.post(
        "/api/v1/reconciliation/settle",
        json={"driver_id": drivers["kamau"], "trip_ids": [theirs]},
    )
    assert resp.status_code == 422


@pytest.mark.asyncio
async def test_settle_while_locked_is_409(client: AsyncClient, drivers, redis_mock):
    trip_id = await _complete(client, drivers["kamau"], 10000)
    redis_mock.set.return_value = False
    resp = await client.post(
        "/api/v1/reconciliation/settle",
        json={"driver_id": drivers["kamau"], "trip_ids": [trip_id]},
    )
    assert resp.status_code == 409


@pytest.mark.asyncio
async def test_settle_requires_trip_ids(client: AsyncClient):
    resp = await client.post(
        "/api/v1/reconciliation/settle", json={"driver_id": "x", "trip_ids": []}
    )
    assert resp.status_code == 422


@pytest.mark.asyncio
async def test_oversized_fare_is_422(client: AsyncClient, drivers):
    trip_id = (await _create(client))["id"]
    resp = await client.post(
        f"/api/v1/trips/{trip_id}/assign",
        json={"driver_id": drivers["wanjiru"], "agreed_fare": 1e30},
    )
    assert resp.status_code == 422

    resp = await client.post(
        f"/api/v1/trips/{trip_id}/verification", json={"customer_amount": "100.004"}
    )
    assert resp.status_code == 422
    assert "two decimal places" in resp.json()["detail"]
