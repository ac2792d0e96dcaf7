"""Tests for the route guard."""

import pytest

from portal.core.config import Config, RouteConfig
from portal.core.errors import SessionLookupError
from portal.core.middleware import (
    RouteAction,
    RouteDecision,
    evaluate_route,
    is_passthrough,
    strip_locale,
)


class TestStripLocale:
    @pytest.mark.parametrize(
        "path, expected",
        [
            ("/en/apps", "/apps"),
            ("/th/dashboard/reports", "/dashboard/reports"),
            ("/en", "/"),
            ("/apps", "/apps"),
            ("/english/apps", "/english/apps"),
            ("/", "/"),
        ],
    )
    def test_strip(self, path, expected):
        assert strip_locale(path) == expected

    def test_custom_locales(self):
        assert strip_locale("/de/apps", ("de",)) == "/apps"
        assert strip_locale("/en/apps", ("de",)) == "/en/apps"


class TestEvaluateRoute:
    def test_signed_in_user_leaves_sign_in(self):
        assert evaluate_route("/auth/sign-in", True) == RouteDecision.redirect("/apps")

    def test_signed_in_user_leaves_sign_up(self):
        assert evaluate_route("/th/auth/sign-up", True) == RouteDecision.redirect("/apps")

    def test_anonymous_protected_path(self):
        assert evaluate_route("/apps/settings", False) == RouteDecision.redirect("/auth/sign-in")

    def test_locale_stripped_before_matching(self):
        assert evaluate_route("/en/dashboard", False) == RouteDecision.redirect("/auth/sign-in")

    def test_anonymous_root_allowed(self):
        assert evaluate_route("/", False).action is RouteAction.ALLOW

    def test_anonymous_sign_in_allowed(self):
        assert evaluate_route("/auth/sign-in", False) == RouteDecision.allow()

    def test_signed_in_protected_allowed(self):
        assert evaluate_route("/apps/settings", True) == RouteDecision.allow()

    def test_prefix_must_match_whole_segment(self):
        assert evaluate_route("/applications", False) == RouteDecision.allow()

    def test_custom_config(self):
        config = RouteConfig(sign_in_path="/login", landing_path="/home", protected_prefixes=("/admin",))

        assert evaluate_route("/admin/users", False, config) == RouteDecision.redirect("/login")
        assert evaluate_route("/login", True, config) == RouteDecision.redirect("/home")
        assert evaluate_route("/apps", False, config) == RouteDecision.allow()


class TestPassthrough:
    @pytest.mark.parametrize("path", ["/api/auth/session", "/_next/static/app.js", "/favicon.ico", "/static/logo.svg"])
    def test_passthrough_paths(self, path):
        assert is_passthrough(path, RouteConfig())

    @pytest.mark.parametrize("path", ["/", "/apps", "/apis", "/auth/sign-in", "/apps/report.v2", "/en/dashboard/export.csv"])
    def test_guarded_paths(self, path):
        assert not is_passthrough(path, RouteConfig())


class TestRouteGuardMiddleware:
    def test_anonymous_redirected_to_sign_in(self, client):
        response = client.get("/apps/settings", follow_redirects=False)

        assert response.status_code == 307
        assert response.headers["location"] == "/auth/sign-in"

    def test_anonymous_localized_dashboard(self, client):
        response = client.get("/en/dashboard", follow_redirects=False)

        assert response.status_code == 307
        assert response.headers["location"] == "/auth/sign-in"

    def test_anonymous_root_allowed(self, client):
        response = client.get("/", follow_redirects=False)

        assert response.status_code == 200

    def test_signed_in_user_redirected_from_sign_in(self, signed_in_client):
        response = signed_in_client.get("/auth/sign-in", follow_redirects=False)

        assert response.status_code == 307
        assert response.headers["location"] == "/apps"

    def test_signed_in_user_reaches_protected_route(self, signed_in_client):
        response = signed_in_client.get("/apps/settings")

        assert response.status_code == 200
        assert response.json()["section"] == "apps/settings"
        assert response.json()["user"]["email"] == "user@example.com"

    def test_unknown_session_id_is_anonymous(self, client):
        client.cookies.set(Config.SESSION_COOKIE_NAME, "forged")

        response = client.get("/dashboard", follow_redirects=False)

        assert response.status_code == 307

    def test_lookup_failure_fails_closed(self, signed_in_client, store, monkeypatch):
        async def unavailable(session_id):
            raise SessionLookupError()

        monkeypatch.setattr(store, "get", unavailable)

        response = signed_in_client.get("/apps", follow_redirects=False)

        assert response.status_code == 307
        assert response.headers["location"] == "/auth/sign-in"

    def test_lookup_failure_still_serves_sign_in(self, signed_in_client, store, monkeypatch):
        async def unavailable(session_id):
            raise SessionLookupError()

        monkeypatch.setattr(store, "get", unavailable)

        response = signed_in_client.get("/auth/sign-in", follow_redirects=False)

        assert response.status_code == 200

    def test_dotted_protected_path_redirects_anonymous(self, client):
        response = client.get("/apps/report.v2", follow_redirects=False)

        assert response.status_code == 307
        assert response.headers["location"] == "/auth/sign-in"

    def test_dotted_protected_path_allows_signed_in(self, signed_in_client):
        response = signed_in_client.get("/apps/report.v2")

        assert response.status_code == 200
        assert response.json()["section"] == "apps/report.v2"

    def test_store_outage_fails_closed(self, signed_in_client, store, monkeypatch):
        async def unreachable(session_id):
            raise ConnectionError("store unreachable")

        monkeypatch.setattr(store, "get", unreachable)

        response = signed_in_client.get("/dashboard", follow_redirects=False)

        assert response.status_code == 307
        assert response.headers["location"] == "/auth/sign-in"
