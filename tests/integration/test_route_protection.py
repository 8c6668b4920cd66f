"""Integration tests for the protected page redirect middleware."""

import pytest

pytestmark = pytest.mark.integration


class TestRouteProtection:
    def test_dashboard_without_session_redirects_to_signin(self, client):
        response = client.get("/dashboard", follow_redirects=False)

        assert response.status_code == 307
        assert response.headers["location"] == "http://testserver/signin"

    def test_nested_page_redirect_drops_query(self, client):
        response = client.get("/dashboard/questions/42?tab=answers", follow_redirects=False)

        assert response.status_code == 307
        assert response.headers["location"] == "http://testserver/signin"

    @pytest.mark.parametrize(
        "cookie",
        [
            "authjs.session-token=abc",
            "__Secure-authjs.session-token=abc",
            "next-auth.session-token=abc",
        ],
    )
    def test_session_cookie_lets_request_through(self, client, cookie):
        response = client.get("/dashboard", headers={"cookie": cookie}, follow_redirects=False)

        # No page is mounted here, so passing the middleware ends in a 404.
        assert response.status_code == 404

    def test_empty_session_cookie_is_not_a_session(self, client):
        response = client.get("/dashboard", headers={"cookie": "authjs.session-token="}, follow_redirects=False)

        assert response.status_code == 307

    def test_similar_prefix_is_not_protected(self, client):
        assert client.get("/dashboards", follow_redirects=False).status_code == 404

    @pytest.mark.parametrize("path", ["/", "/questions", "/_next/static/chunk.js", "/favicon.ico"])
    def test_public_paths_are_untouched(self, client, path):
        assert client.get(path, follow_redirects=False).status_code != 307

    def test_api_routes_are_excluded(self, client):
        response = client.get("/api/auth/session", follow_redirects=False)

        assert response.status_code == 200

    def test_redirect_is_logged(self, client, mocker):
        log = mocker.patch("devflow_auth.core.middleware.logger")

        client.get("/dashboard", follow_redirects=False)

        log.info.assert_called_once_with("protected_page_redirect", pathname="/dashboard", to="/signin")
