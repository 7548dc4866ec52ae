"""
Tests for health check endpoints and probe helpers.
"""

import asyncio

import pytest

from shared.utils.health import HealthStatus, aggregate_health_checks, health_check_with_timeout


class TestHealthEndpoints:
    """Test health check API endpoints."""

    def test_health_check(self, client):
        """Basic health check should return healthy status."""
        response = client.get("/api/health")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["service"] == "rest-api"
        assert data["environment"] == "test"

    def test_detailed_health_all_up(self, client):
        """Database and (fake) Redis both answer."""
        response = client.get("/api/health/detailed")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["dependencies"]["database"]["status"] == "healthy"
        assert data["dependencies"]["redis"]["status"] == "healthy"

    def test_detailed_health_redis_down(self, client, monkeypatch):
        """A failing dependency degrades the report and returns 503."""

        async def broken_pool():
            raise ConnectionError("redis unreachable")

        monkeypatch.setattr("rest_api.routers.public.health.get_redis_pool", broken_pool)
        response = client.get("/api/health/detailed")
        assert response.status_code == 503
        data = response.json()
        assert data["status"] == "degraded"
        assert data["dependencies"]["redis"]["status"] == "unhealthy"
        assert "redis unreachable" in data["dependencies"]["redis"]["error"]

    def test_security_headers_present(self, client):
        response = client.get("/api/health")
        assert response.headers["X-Content-Type-Options"] == "nosniff"
        assert "X-Request-ID" in response.headers


class TestHealthHelpers:
    """Test the probe decorator and aggregation."""

    @pytest.mark.asyncio
    async def test_probe_details_are_merged(self):
        @health_check_with_timeout(timeout=1.0, component="cache")
        async def probe():
            return {"keys": 3}

        result = await probe()
        assert result.status == HealthStatus.HEALTHY
        assert result.to_dict()["keys"] == 3
        assert "latency_ms" in result.to_dict()

    @pytest.mark.asyncio
    async def test_probe_timeout_is_unhealthy(self):
        @health_check_with_timeout(timeout=0.01, component="slow")
        async def probe():
            await asyncio.sleep(1)

        result = await probe()
        assert result.status == HealthStatus.UNHEALTHY
        assert result.error.startswith("timeout")

    @pytest.mark.asyncio
    async def test_aggregate_reports_degraded(self):
        @health_check_with_timeout(component="ok")
        async def ok():
            return None

        @health_check_with_timeout(component="bad")
        async def bad():
            raise RuntimeError("boom")

        report = await aggregate_health_checks([ok(), bad()])
        assert report["status"] == "degraded"
        assert report["components"]["ok"]["status"] == "healthy"
        assert report["components"]["bad"]["error"] == "boom"
