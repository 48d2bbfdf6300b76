"""
Unit tests for the Gamepasses proxy service.
"""

import json
import logging

import pytest
from fastapi.testclient import TestClient

from service_gamepasses.app.main import GamepassProxyService, create_app
from shared.config import ServiceConfig
from shared.test_helpers import FakeRobloxApi, RobloxPayloadFactory


class TestGamepassProxyService:
    """Test cases for GamepassProxyService."""

    @pytest.fixture
    def api(self):
        """Fake Roblox API: user 42 owns two games with three passes."""
        return FakeRobloxApi(
            games={42: [100, 200], 7: []},
            passes={100: [[1, 2]], 200: [[3]]},
            missing_icons=[2],
        )

    @pytest.fixture
    def config(self):
        return ServiceConfig(rate_limit_max_requests=5)

    @pytest.fixture
    def service(self, api, config):
        """Create GamepassProxyService wired to the fake API."""
        return GamepassProxyService(config, transport=api.transport())

    @pytest.fixture
    def client(self, service):
        """Create test client."""
        return TestClient(service.app)

    def test_root_endpoint(self, client):
        """Test root endpoint."""
        response = client.get("/")

        assert response.status_code == 200
        assert response.json() == {
            "name": "Roblox Gamepasses API",
            "status": "Running",
            "endpoints": {"gamepasses": "/gamepasses/:userId"},
        }

    def test_root_is_not_rate_limited(self, client):
        """Test the info route does not consume the caller's budget."""
        for _ in range(10):
            assert client.get("/").status_code == 200

        assert client.get("/gamepasses/42").status_code == 200

    def test_health_endpoint(self, client):
        """Test health endpoint."""
        response = client.get("/health")

        assert response.status_code == 200
        data = response.json()
        assert data["service"] == "gamepasses"
        assert data["status"] == "ok"
        assert data["details"]["cache"]["entries"] == 0

    def test_gamepasses_success(self, client, api):
        """Test the flattened, enriched list is returned in order."""
        response = client.get("/gamepasses/42")

        assert response.status_code == 200
        assert response.json() == [
            {"id": 1, "name": "Pass 1", "price": 25, "iconImageUrl": RobloxPayloadFactory.icon_url(1)},
            {"id": 2, "name": "Pass 2", "price": 25, "iconImageUrl": ""},
            {"id": 3, "name": "Pass 3", "price": 25, "iconImageUrl": RobloxPayloadFactory.icon_url(3)},
        ]
        assert response.headers["X-Cache"] == "MISS"
        assert response.headers["X-RateLimit-Limit"] == "5"
        assert response.headers["X-RateLimit-Remaining"] == "4"
        assert "X-Request-ID" in response.headers

    def test_gamepasses_served_from_cache(self, client, api):
        """Test a repeat request is answered without upstream calls."""
        first = client.get("/gamepasses/42")
        upstream_calls = len(api.requests)

        second = client.get("/gamepasses/42")

        assert second.status_code == 200
        assert second.json() == first.json()
        assert second.headers["X-Cache"] == "HIT"
        assert len(api.requests) == upstream_calls

    def test_user_without_games(self, client, api):
        """Test a user with no public games gets an empty array."""
        response = client.get("/gamepasses/7")

        assert response.status_code == 200
        assert response.json() == []
        assert api.calls("game_pass_icons") == []

    @pytest.mark.parametrize("user_id", ["abc", "12abc", "-1", "1.5", "%20"])
    def test_invalid_user_id(self, client, api, service, user_id):
        """Test non-numeric ids are rejected without upstream or cache work."""
        response = client.get(f"/gamepasses/{user_id}")

        assert response.status_code == 400
        assert response.json() == {"error": "Invalid userId provided."}
        assert api.requests == []
        assert service.cache.stats()["misses"] == 0

    def test_rate_limited(self, client, api):
        """Test the caller is cut off once the budget is spent."""
        for _ in range(5):
            assert client.get("/gamepasses/42").status_code == 200

        response = client.get("/gamepasses/42")

        assert response.status_code == 429
        assert response.json() == {"error": "Too many requests, please try again later."}
        assert int(response.headers["Retry-After"]) > 0

    def test_rate_limit_runs_before_pipeline(self, client, api):
        """Test a denied request issues no upstream calls."""
        for _ in range(5):
            client.get("/gamepasses/abc")

        response = client.get("/gamepasses/42")

        assert response.status_code == 429
        assert api.requests == []

    def test_rate_limit_per_forwarded_client(self, client):
        """Test distinct X-Forwarded-For callers have separate budgets."""
        for _ in range(5):
            client.get("/gamepasses/42", headers={"X-Forwarded-For": "203.0.113.1"})

        blocked = client.get("/gamepasses/42", headers={"X-Forwarded-For": "203.0.113.1"})
        other = client.get("/gamepasses/42", headers={"X-Forwarded-For": "203.0.113.2"})

        assert blocked.status_code == 429
        assert other.status_code == 200

    def test_rotating_forwarded_prefix_does_not_reset_budget(self, client):
        """Test caller-supplied X-Forwarded-For entries cannot buy a fresh budget."""
        statuses = [
            client.get(
                "/gamepasses/42",
                headers={"X-Forwarded-For": f"10.0.0.{index}, 203.0.113.1"},
            ).status_code
            for index in range(7)
        ]

        assert statuses == [200] * 5 + [429] * 2

    def test_very_long_user_id(self, client, api):
        """Test ids longer than int conversion allows are handled as ordinary ids."""
        response = client.get("/gamepasses/" + "0" * 5000 + "42")

        assert response.status_code == 200
        assert [item["id"] for item in response.json()] == [1, 2, 3]

    def test_unhandled_error_is_counted_and_correlated(self, service, caplog):
        """Test an unexpected failure becomes a 500 that is still measured and logged."""

        @service.app.get("/explode")
        async def explode():
            raise RuntimeError("boom")

        caplog.set_level(logging.INFO)
        client = TestClient(service.app, raise_server_exceptions=False)

        response = client.get("/explode", headers={"X-Request-ID": "req-explode"})

        assert response.status_code == 500
        assert response.json() == {"error": "Internal server error"}
        registry = service.metrics.registry
        assert registry.get_sample_value(
            "http_requests_total", {"method": "GET", "endpoint": "/explode", "status_code": "500"}
        ) == 1

        events = [json.loads(record.getMessage()) for record in caplog.records if record.name == "gamepasses.service"]
        failure = next(event for event in events if event["event"] == "Unhandled exception")
        assert failure["request_id"] == "req-explode"
        assert any(event["event"] == "HTTP request" and event["status_code"] == 500 for event in events)

    def test_upstream_forbidden(self, client, api):
        """Test a 403 upstream maps to the forbidden message."""
        api.failures["owner_games"] = 403

        response = client.get("/gamepasses/42")

        assert response.status_code == 502
        assert response.json() == {"error": "Access to Roblox API forbidden."}

    def test_upstream_failure(self, client, api):
        """Test other upstream errors map to the generic message."""
        api.failures["game_pass_icons"] = 500

        response = client.get("/gamepasses/42")

        assert response.status_code == 502
        assert response.json() == {"error": "Failed to fetch data from Roblox."}

    def test_failed_pagination_is_not_cached(self, client, api, service):
        """Test a failing page leaves nothing cached and the next call retries upstream."""
        api.failures[("game_passes", 200)] = 500

        assert client.get("/gamepasses/42").status_code == 502
        assert len(service.cache) == 0

        del api.failures[("game_passes", 200)]
        response = client.get("/gamepasses/42")

        assert response.status_code == 200
        assert response.headers["X-Cache"] == "MISS"
        assert [item["id"] for item in response.json()] == [1, 2, 3]

    def test_metrics_endpoint(self, client):
        """Test Prometheus exposition includes service series."""
        client.get("/gamepasses/42")

        response = client.get("/metrics")

        assert response.status_code == 200
        assert "upstream_requests_total" in response.text
        assert "cache_misses_total" in response.text

    def test_create_app_exposes_service(self, api):
        """Test the app factory exposes the service on app state."""
        app = create_app(ServiceConfig(), transport=api.transport())

        assert isinstance(app.state.gamepass_service, GamepassProxyService)


class TestServiceConfig:
    """Test cases for configuration loading."""

    def test_defaults(self, monkeypatch):
        """Test defaults when nothing is set."""
        for name in ("PORT", "ACCESS_PORT", "ACCESS_CACHE_TTL_SECONDS", "ACCESS_RATE_LIMIT_MAX_REQUESTS"):
            monkeypatch.delenv(name, raising=False)

        config = ServiceConfig()

        assert config.port == 3000
        assert config.cache_ttl_seconds == 300
        assert config.rate_limit_window_seconds == 900
        assert config.rate_limit_max_requests == 100

    def test_port_from_environment(self, monkeypatch):
        """Test PORT overrides the default listener port."""
        monkeypatch.setenv("PORT", "8123")

        assert ServiceConfig().port == 8123
