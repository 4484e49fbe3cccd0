"""Tests for the application factory, the MCP bearer guard and Google sign-in routes."""

import httpx
import pytest
from fastapi import Request
from fastapi.testclient import TestClient

from invitedesk.api.serve import create_app
from invitedesk.config import Settings
from invitedesk.integrations.google_oauth import GoogleOAuthManager
from invitedesk.integrations.token_store import TokenStore
from invitedesk.mcp.tools import ToolContext

BASE = "https://invites.example"


def _settings(**overrides):
    return Settings(base_url=BASE, **overrides)


@pytest.fixture
def app():
    return create_app(_settings())


@pytest.fixture
def oauth_server(app):
    return app.state.oauth_server


@pytest.fixture
def client(app):
    return TestClient(app)


# ---------------------------------------------------------------------------
# App factory
# ---------------------------------------------------------------------------


class TestAppFactory:
    def test_health(self, client):
        resp = client.get("/health")
        assert resp.status_code == 200
        assert resp.json()["status"] == "ok"

    def test_state(self, app):
        assert app.state.settings.base_url == BASE
        assert app.state.google_oauth is None
        assert isinstance(app.state.tool_context, ToolContext)
        assert not app.state.tool_context.demo_active

    def test_demo_mode(self):
        app = create_app(_settings(demo_mode=True))
        assert app.state.tool_context.demo_active

    def test_google_configured(self):
        app = create_app(
            _settings(google_oauth_client_id="gid", google_oauth_client_secret="gsecret")
        )
        assert isinstance(app.state.google_oauth, GoogleOAuthManager)

    def test_routes_registered(self, app):
        paths = {getattr(r, "path", None) for r in app.routes}
        assert "/mcp" in paths
        assert "/oauth/token" in paths
        assert "/.well-known/oauth-authorization-server" in paths
        assert "/auth/google/callback" in paths

    def test_oauth_client_from_settings(self):
        client = TestClient(
            create_app(
                _settings(oauth_client_id="custom-client", oauth_client_secret="custom-secret")
            )
        )

        resp = client.post(
            "/oauth/token",
            data={
                "grant_type": "client_credentials",
                "client_id": "custom-client",
                "client_secret": "custom-secret",
            },
        )
        assert resp.status_code == 200
        token = resp.json()["access_token"]

        builtin = client.post(
            "/oauth/token",
            data={
                "grant_type": "client_credentials",
                "client_id": "chatgpt-mcp-client",
                "client_secret": "chatgpt-mcp-secret-key-2024",
            },
        )
        assert builtin.status_code == 401

        guarded = client.post(
            "/mcp/messages/", headers={"Authorization": f"Bearer {token}"}, json={}
        )
        assert guarded.status_code == 400

    def test_each_app_owns_its_tokens(self, oauth_server):
        token = oauth_server.generate_access_token("chatgpt-mcp-client")
        other = TestClient(create_app(_settings()))
        resp = other.post("/mcp/messages/", headers={"Authorization": f"Bearer {token}"}, json={})
        assert resp.status_code == 401


# ---------------------------------------------------------------------------
# MCP bearer guard
# ---------------------------------------------------------------------------


class TestMCPAuth:
    def test_missing_token(self, client):
        resp = client.get("/mcp")
        assert resp.status_code == 401
        assert resp.json()["error"] == "invalid_token"
        assert resp.headers["WWW-Authenticate"] == (
            f'Bearer resource_metadata="{BASE}/.well-known/oauth-protected-resource"'
        )

    def test_invalid_token_on_messages(self, client):
        resp = client.post(
            "/mcp/messages/", headers={"Authorization": "Bearer nope"}, json={}
        )
        assert resp.status_code == 401

    def test_valid_token_passes_guard(self, client, oauth_server):
        token = oauth_server.generate_access_token("chatgpt-mcp-client")
        resp = client.post(
            "/mcp/messages/", headers={"Authorization": f"Bearer {token}"}, json={}
        )
        # Past the guard, the transport rejects the missing session id
        assert resp.status_code == 400

    def test_guard_records_token_client(self, app, oauth_server):
        async def whoami(request: Request):
            return {"client": request.state.oauth_client_id}

        app.add_api_route("/mcp/whoami", whoami)
        token = oauth_server.generate_access_token("chatgpt-mcp-client", scope="calendar")

        resp = TestClient(app).get("/mcp/whoami", headers={"Authorization": f"Bearer {token}"})

        assert resp.json() == {"client": "chatgpt-mcp-client"}

    def test_guard_disabled(self):
        client = TestClient(create_app(_settings(require_mcp_auth=False)))
        assert client.post("/mcp/messages/", json={}).status_code == 400

    def test_other_paths_unguarded(self, client):
        assert client.get("/health").status_code == 200
        assert client.get("/.well-known/oauth-protected-resource").status_code == 200

    def test_preflight_is_not_guarded(self, client):
        resp = client.options(
            "/mcp",
            headers={
                "Origin": "https://chatgpt.com",
                "Access-Control-Request-Method": "GET",
            },
        )
        assert resp.status_code == 200
        assert resp.headers["access-control-allow-origin"] == "https://chatgpt.com"


# ---------------------------------------------------------------------------
# Google sign-in
# ---------------------------------------------------------------------------


def _google_handler(request):
    if request.url.path == "/token":
        return httpx.Response(200, json={"access_token": "at", "refresh_token": "rt"})
    return httpx.Response(200, json={"email": "me@example.com"})


class TestGoogleSignIn:
    def test_unconfigured(self, client):
        assert client.get("/auth/google").status_code == 503
        assert client.get("/auth/google/callback?code=x").status_code == 503

    def test_redirects_to_google(self, app, client, tmp_path):
        app.state.google_oauth = GoogleOAuthManager("gid", "gsecret", TokenStore(tmp_path))
        resp = client.get("/auth/google?user_id=u1", follow_redirects=False)
        assert resp.status_code == 307
        location = resp.headers["location"]
        assert location.startswith("https://accounts.google.com/")
        assert "state=u1" in location

    def test_callback_stores_tokens(self, app, client, tmp_path):
        store = TokenStore(tmp_path)
        app.state.google_oauth = GoogleOAuthManager(
            "gid", "gsecret", store, transport=httpx.MockTransport(_google_handler)
        )

        resp = client.get("/auth/google/callback?code=abc&state=u1")

        assert resp.status_code == 200
        assert "Calendar connected" in resp.text
        assert "me@example.com" in resp.text
        assert store.load("u1").email == "me@example.com"

    def test_callback_error(self, app, client, tmp_path):
        app.state.google_oauth = GoogleOAuthManager("gid", "gsecret", TokenStore(tmp_path))
        resp = client.get("/auth/google/callback?error=access_denied")
        assert resp.status_code == 400
        assert "access_denied" in resp.text

    def test_callback_exchange_failure(self, app, client, tmp_path):
        app.state.google_oauth = GoogleOAuthManager(
            "gid",
            "gsecret",
            TokenStore(tmp_path),
            transport=httpx.MockTransport(lambda r: httpx.Response(400)),
        )
        resp = client.get("/auth/google/callback?code=bad")
        assert resp.status_code == 502
