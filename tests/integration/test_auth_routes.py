"""
Integration tests for the ``/api/auth`` routes.

Requests go through the real FastAPI application, router and dependency
wiring; only the gatekeeper is swapped for the fixture built around a fake
auth delegate.
"""

import pytest

from devflow_auth.core.gatekeeper import SECURITY_HEADERS
from tests.utils.http_helpers import SITE_ORIGIN

pytestmark = pytest.mark.integration


class TestAuthRoutes:
    def test_get_session_is_delegated(self, client, delegate):
        response = client.get("/api/auth/session")

        assert response.status_code == 200
        assert response.json() == {"user": None}
        assert response.headers["X-Auth-Handler"] == "fake"
        assert response.headers["X-RateLimit-Remaining"] == "9"
        for name, value in SECURITY_HEADERS.items():
            assert response.headers[name] == value
        assert delegate.calls == [("GET", "/api/auth/session")]

    def test_segments_reach_the_log(self, client, request_logger):
        client.get("/api/auth/signin/github")

        kwargs = request_logger.info.call_args_list[0].kwargs
        assert kwargs["provider"] == "signin"
        assert kwargs["action"] == "github"

    def test_post_from_site_origin(self, client, delegate):
        response = client.post(
            "/api/auth/callback/credentials",
            data={"email": "ada@example.com", "password": "secret"},
            headers={"origin": SITE_ORIGIN},
        )

        assert response.status_code == 200
        assert delegate.calls == [("POST", "/api/auth/callback/credentials")]

    def test_post_from_foreign_origin_is_forbidden(self, client, delegate):
        response = client.post("/api/auth/signout", headers={"origin": "https://phish.example"})

        assert response.status_code == 403
        assert response.text == "Forbidden"
        assert delegate.calls == []

    def test_scripted_client_is_forbidden(self, client):
        response = client.get("/api/auth/session", headers={"user-agent": "python-httpx/0.27"})

        assert response.status_code == 403

    def test_sql_injection_in_path_is_forbidden(self, client, delegate):
        response = client.get("/api/auth/signin/union+select")

        assert response.status_code == 403
        assert delegate.calls == []

    def test_preflight(self, client, request_logger, delegate):
        response = client.options("/api/auth/session", headers={"user-agent": "curl/8.0"})

        assert response.status_code == 200
        assert response.headers["Access-Control-Allow-Origin"] == SITE_ORIGIN
        assert response.headers["Access-Control-Allow-Credentials"] == "true"
        assert request_logger.mock_calls == []
        assert delegate.calls == []

    def test_other_methods_are_not_routed(self, client):
        assert client.put("/api/auth/session").status_code == 405

    def test_eleventh_request_is_throttled(self, client):
        for _ in range(10):
            assert client.get("/api/auth/session").status_code == 200

        response = client.get("/api/auth/session")

        assert response.status_code == 429
        assert response.text == "Too Many Requests"
        assert response.headers["Retry-After"] == "60"
        assert response.headers["X-RateLimit-Remaining"] == "0"


class TestUnavailableDelegate:
    def test_delegate_failure_is_a_generic_500(self, client, delegate, mocker):
        mocker.patch.object(delegate, "get", side_effect=RuntimeError("db password is hunter2"))

        response = client.get("/api/auth/session")

        assert response.status_code == 500
        assert response.text == "Internal Server Error"
        assert "hunter2" not in response.text
        assert response.headers["content-type"] == "application/json"
