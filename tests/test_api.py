"""Tests for the repository JSON API."""

from __future__ import annotations

import httpx
import pytest
from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from ecaytracker.db import crud
from ecaytracker.db.database import Base, get_db
from ecaytracker.main import app


@pytest.fixture()
async def session_factory():
    engine = create_async_engine("sqlite+aiosqlite:///:memory:", poolclass=StaticPool)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    await engine.dispose()


@pytest.fixture()
async def client(session_factory):
    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as c:
        yield c
    app.dependency_overrides.clear()


async def _seed(session_factory, *rows):
    async with session_factory() as db:
        for i, (make, price, mileage) in enumerate(rows):
            await crud.upsert_listing(db, {
                "external_id": str(700 + i),
                "url": f"https://ecaytrade.com/advert/{700 + i}",
                "title": f"2019 {make}",
                "make": make,
                "model": "X",
                "year": 2019,
                "mileage": mileage,
                "price": price,
                "currency": "KYD",
            })


class TestListingsEndpoint:
    async def test_empty_is_list_not_null(self, client):
        resp = await client.get("/api/listings")
        assert resp.status_code == 200
        assert resp.json() == {"data": [], "error": None}

    async def test_returns_active_listings(self, client, session_factory):
        await _seed(session_factory, ("Toyota", 12000.0, 50000), ("Honda", 9000.0, None))
        body = (await client.get("/api/listings")).json()
        assert body["error"] is None
        assert {l["make"] for l in body["data"]} == {"Toyota", "Honda"}
        honda = next(l for l in body["data"] if l["make"] == "Honda")
        assert honda["mileage"] is None

    async def test_database_error_envelope(self, client, monkeypatch):
        async def broken(db):
            raise OperationalError("SELECT", {}, Exception("db down"))

        monkeypatch.setattr("ecaytracker.api.routes_listings.get_active_listings", broken)
        resp = await client.get("/api/listings")
        assert resp.status_code == 500
        assert resp.json()["data"] is None
        assert "db down" in resp.json()["error"]


class TestStatsEndpoint:
    async def test_stats(self, client, session_factory):
        await _seed(session_factory, ("Toyota", 10000.0, 20000), ("Toyota", 20000.0, 40000), ("Kia", 30000.0, None))
        body = (await client.get("/api/stats")).json()
        assert body["error"] is None
        stats = body["data"]
        assert stats["total_listings"] == 3
        assert stats["median_price"] == 20000
        assert stats["avg_mileage"] == 30000
        assert stats["top_brands"][0] == {"name": "Toyota", "count": 2, "avg_price": 15000}

    async def test_empty_stats(self, client):
        stats = (await client.get("/api/stats")).json()["data"]
        assert stats["total_listings"] == 0
        assert stats["year_distribution"] == []


class TestHealth:
    async def test_ok(self, client):
        assert (await client.get("/health")).json() == {"status": "ok"}
