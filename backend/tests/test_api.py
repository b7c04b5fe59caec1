"""Tests for API Endpoints."""
import asyncio

import pytest
from httpx import AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from app.models import User
from app.services.orchestrator import RefreshOrchestrator
from app.services.user_clock import utcnow

from conftest import add_daily_metrics, steps_then_sleep_series


@pytest.mark.asyncio
class TestUserAPI:
    """Tests for User endpoints."""

    async def test_create_user(self, client: AsyncClient):
        response = await client.post(
            "/api/v1/users",
            json={
                "email": "newuser@example.com",
                "timezone": "Europe/Berlin",
            },
        )
        assert response.status_code == 201
        data = response.json()
        assert data["email"] == "newuser@example.com"
        assert data["timezone"] == "Europe/Berlin"

    async def test_create_user_duplicate_email(self, client: AsyncClient, test_user: User):
        response = await client.post(
            "/api/v1/users",
            json={"email": test_user.email},
        )
        assert response.status_code == 400
        assert "already registered" in response.json()["detail"]

    async def test_create_user_unknown_timezone(self, client: AsyncClient):
        response = await client.post(
            "/api/v1/users",
            json={"email": "tz@example.com", "timezone": "Mars/Olympus"},
        )
        assert response.status_code == 400

    async def test_get_user(self, client: AsyncClient, test_user: User):
        response = await client.get(f"/api/v1/users/{test_user.id}")
        assert response.status_code == 200
        data = response.json()
        assert data["email"] == test_user.email

    async def test_update_timezone(self, client: AsyncClient, test_user: User):
        response = await client.patch("/api/v1/users/me", json={"timezone": "Asia/Tokyo"})
        assert response.status_code == 200
        assert response.json()["timezone"] == "Asia/Tokyo"


@pytest.mark.asyncio
class TestMetricsAPI:
    """Tests for daily metrics ingestion."""

    async def test_ingest_schedules_refresh(
        self, client: AsyncClient, test_user: User, orchestrator: RefreshOrchestrator
    ):
        response = await client.post(
            "/api/v1/metrics",
            json={
                "date": utcnow().date().isoformat(),
                "steps": 9500,
                "sleep_duration_minutes": 440,
                "source": "garmin",
            },
        )
        assert response.status_code == 202
        data = response.json()
        assert data["accepted"] is True
        assert data["created"] is True
        assert data["record"]["steps"] == 9500
        assert data["record"]["data_sources"] == ["garmin"]
        assert len(data["refresh_scheduled"]) == 2

        await orchestrator.drain()
        baselines = (await client.get("/api/v1/baselines")).json()["baselines"]
        assert {b["metric_type"] for b in baselines} == {"steps", "sleep_hours"}

    async def test_same_day_is_merged(
        self, client: AsyncClient, test_user: User, orchestrator: RefreshOrchestrator
    ):
        day = utcnow().date().isoformat()
        await client.post("/api/v1/metrics", json={"date": day, "steps": 9000, "source": "garmin"})
        response = await client.post(
            "/api/v1/metrics", json={"date": day, "hrv": 62.5, "source": "oura"}
        )
        await orchestrator.drain()

        assert response.status_code == 202
        data = response.json()
        assert data["created"] is False
        assert data["record"]["steps"] == 9000
        assert data["record"]["hrv"] == 62.5
        assert data["record"]["data_sources"] == ["garmin", "oura"]

    async def test_ingest_does_not_wait_for_refresh(
        self, client: AsyncClient, test_user: User, orchestrator: RefreshOrchestrator, monkeypatch
    ):
        class SlowBaselineService:
            def __init__(self, db):
                pass

            async def update_baselines_if_needed(self, user_id):
                await asyncio.sleep(0.5)
                return True

        monkeypatch.setattr("app.services.orchestrator.BaselineService", SlowBaselineService)

        response = await client.post(
            "/api/v1/metrics", json={"date": utcnow().date().isoformat(), "steps": 8000}
        )
        assert response.status_code == 202
        assert orchestrator.in_flight >= 1
        await orchestrator.drain()

    async def test_ingest_rejects_invalid_values(self, client: AsyncClient, test_user: User):
        response = await client.post(
            "/api/v1/metrics", json={"date": utcnow().date().isoformat(), "steps": -5}
        )
        assert response.status_code == 422

    async def test_unknown_user(self, client: AsyncClient, test_user: User):
        response = await client.post(
            "/api/v1/metrics?user_id=999",
            json={"date": utcnow().date().isoformat(), "steps": 8000},
        )
        assert response.status_code == 401

    async def test_list_metrics(
        self, client: AsyncClient, db_session: AsyncSession, test_user: User
    ):
        await add_daily_metrics(db_session, test_user.id, utcnow().date(), {"steps": [8000] * 10})

        response = await client.get("/api/v1/metrics?days=7")
        assert response.status_code == 200
        data = response.json()
        assert data["total"] == 7
        assert data["metrics"][0]["date"] == utcnow().date().isoformat()


@pytest.mark.asyncio
class TestBaselineAPI:
    """Tests for baseline endpoints."""

    async def test_no_baselines_yet(self, client: AsyncClient, test_user: User):
        response = await client.get("/api/v1/baselines")
        assert response.status_code == 200
        assert response.json()["baselines"] is None

    async def test_dry_run_does_not_store(
        self, client: AsyncClient, db_session: AsyncSession, test_user: User
    ):
        await add_daily_metrics(db_session, test_user.id, utcnow().date(), {"hrv": [50.0, 54.0]})

        response = await client.post("/api/v1/baselines/compute", json={"dry_run": True})
        assert response.status_code == 200
        data = response.json()
        assert data["saved"] is False
        assert data["baselines"][0]["avg_7day"] == 52.0

        assert (await client.get("/api/v1/baselines")).json()["baselines"] is None

    async def test_compute_and_gate(
        self, client: AsyncClient, db_session: AsyncSession, test_user: User
    ):
        await add_daily_metrics(db_session, test_user.id, utcnow().date(), {"steps": [8000, 10000]})

        first = (await client.post("/api/v1/baselines/compute")).json()
        assert first["saved"] is True
        assert first["baselines"][0]["avg_7day"] == 9000.0

        second = (await client.post("/api/v1/baselines/compute")).json()
        assert second["saved"] is False
        assert second["message"] == "Baselines already computed today"

        forced = (await client.post("/api/v1/baselines/compute", json={"force": True})).json()
        assert forced["saved"] is True


@pytest.mark.asyncio
class TestPatternAPI:
    """Tests for pattern endpoints."""

    async def test_detect_and_list(
        self, client: AsyncClient, db_session: AsyncSession, test_user: User
    ):
        await add_daily_metrics(db_session, test_user.id, utcnow().date(), steps_then_sleep_series(20))

        response = await client.post("/api/v1/patterns/detect")
        assert response.status_code == 200
        assert response.json()["saved"] is True

        listed = (await client.get("/api/v1/patterns")).json()
        assert listed["total"] == 1
        pattern = listed["patterns"][0]
        assert pattern["metric_a"] == "steps"
        assert pattern["metric_b"] == "sleep_hours"
        assert pattern["time_lag_days"] == 1
        assert pattern["direction"] == "negative"
        assert pattern["description"] == "You tend to sleep less the day after high-step days"

    async def test_detect_dry_run(
        self, client: AsyncClient, db_session: AsyncSession, test_user: User
    ):
        await add_daily_metrics(db_session, test_user.id, utcnow().date(), steps_then_sleep_series(20))

        response = await client.post("/api/v1/patterns/detect", json={"dry_run": True})
        assert len(response.json()["patterns"]) == 1

        assert (await client.get("/api/v1/patterns")).json()["total"] == 0

    async def test_insufficient_data_returns_empty(self, client: AsyncClient, test_user: User):
        response = await client.post("/api/v1/patterns/detect")
        assert response.status_code == 200
        assert response.json()["patterns"] == []


@pytest.mark.asyncio
class TestHealthEndpoint:
    """Tests for health check endpoint."""

    async def test_health_check(self, client: AsyncClient):
        response = await client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"
