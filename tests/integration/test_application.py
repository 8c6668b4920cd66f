"""
Integration tests for application wiring: health endpoint, lifespan and the
global exception handlers.
"""

from unittest.mock import AsyncMock

import pytest
from fastapi.testclient import TestClient

from devflow_auth.adapters.api.dependencies import get_rate_limit_repository
from devflow_auth.core.application import create_application
from devflow_auth.core.exceptions import AuthDelegateError, ConfigurationError
from devflow_auth.core.gatekeeper import AuthGatekeeper
from devflow_auth.domain.rate_limiting import InMemorySlidingWindowRepository, RateLimitRepository

pytestmark = pytest.mark.integration


class TestHealth:
    def test_reports_memory_store(self, client):
        response = client.get("/api/health")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "ok"
        assert body["env"] == "test"
        assert body["services"]["rate_limit_store"]["backend"] == "memory"

    def test_degraded_when_store_is_down(self, app, client):
        repository = AsyncMock(spec=RateLimitRepository)
        repository.health_check.return_value = {"status": "unhealthy", "backend": "redis", "error": "timeout"}
        app.dependency_overrides[get_rate_limit_repository] = lambda: repository

        response = client.get("/api/health")

        assert response.status_code == 200
        assert response.json()["status"] == "degraded"


class TestLifespan:
    def test_startup_builds_pipeline(self):
        app = create_application()

        with TestClient(app) as client:
            assert isinstance(app.state.gatekeeper, AuthGatekeeper)
            assert isinstance(app.state.rate_limit_repository, InMemorySlidingWindowRepository)
            assert client.get("/api/health").json()["services"]["rate_limit_store"]["backend"] == "memory"

        assert app.state.gatekeeper.delegate.client.is_closed is True

    def test_routes_unavailable_before_startup(self):
        client = TestClient(create_application(), headers={"user-agent": "Mozilla/5.0"})

        assert client.get("/api/auth/session").status_code == 503


class TestExceptionHandlers:
    @pytest.fixture
    def raising_client(self):
        app = create_application()

        @app.get("/raise/delegate")
        async def raise_delegate():
            raise AuthDelegateError("upstream at 10.0.0.5 refused")

        @app.get("/raise/config")
        async def raise_config():
            raise ConfigurationError("bad RATE_LIMIT_AUTH")

        return TestClient(app)

    def test_delegate_error_is_bad_gateway(self, raising_client):
        response = raising_client.get("/raise/delegate")

        assert response.status_code == 502
        assert response.json() == {"detail": "Authentication service unavailable"}

    def test_other_errors_are_generic(self, raising_client):
        response = raising_client.get("/raise/config")

        assert response.status_code == 500
        assert response.json() == {"detail": "Internal Server Error"}
