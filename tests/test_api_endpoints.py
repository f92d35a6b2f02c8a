"""Integration tests for API endpoints.

These tests verify API endpoints work correctly end-to-end.
"""

from urllib.parse import parse_qs, urlparse

from calgate.auth.jwt import create_session_token
from calgate.auth.dependencies import SESSION_COOKIE


def _connect(test_client, provider_type="zoom_video", key=None):
    return test_client.post("/viewer/integrations/connect", json={"type": provider_type, "key": key or {}})


class TestUserExistsEndpoint:
    """Test GET /api/user/exists."""

    def test_unknown_handle(self, test_client):
        response = test_client.get("/api/user/exists", params={"user": "ghost"})
        assert response.status_code == 400
        assert response.json() == {"message": "User not found"}

    def test_incomplete_onboarding_looks_like_unknown(self, test_client, user_repository, user_factory):
        user_repository.create_or_update(user_factory("alice-id", "alice", completed_onboarding=False))
        response = test_client.get("/api/user/exists", params={"user": "alice"})
        assert response.status_code == 400
        assert response.json() == {"message": "User not found"}

    def test_onboarded_user(self, test_client, user_repository, user_factory):
        user_repository.create_or_update(user_factory("bob-id", "bob", completed_onboarding=True))
        response = test_client.get("/api/user/exists", params={"user": "bob"})
        assert response.status_code == 200
        assert response.json() == {"message": "User is found"}

    def test_missing_query_param(self, test_client):
        response = test_client.get("/api/user/exists")
        assert response.status_code == 400
        assert response.json() == {"message": "User not found"}

    def test_other_verbs_are_accepted(self, test_client):
        response = test_client.post("/api/user/exists", params={"user": "tester"})
        assert response.status_code == 200

    def test_cors_any_origin(self, test_client):
        response = test_client.get(
            "/api/user/exists",
            params={"user": "tester"},
            headers={"Origin": "https://embed.example.org"},
        )
        assert response.headers["access-control-allow-origin"] == "*"

    def test_cors_preflight(self, test_client):
        response = test_client.options(
            "/api/user/exists",
            headers={
                "Origin": "https://embed.example.org",
                "Access-Control-Request-Method": "DELETE",
            },
        )
        assert response.status_code == 200
        allowed = response.headers["access-control-allow-methods"]
        for method in ("GET", "HEAD", "PUT", "PATCH", "POST", "DELETE"):
            assert method in allowed


class TestViewerEndpoints:
    """Test viewer queries and mutations."""

    def test_me(self, test_client, test_user_id):
        response = test_client.get("/viewer/me")
        assert response.status_code == 200
        data = response.json()
        assert data["id"] == test_user_id
        assert data["completed_onboarding"] is True
        for field in ("credentials", "time_zone", "buffer_time", "availability", "start_time", "end_time", "selected_calendars"):
            assert field in data

    def test_integrations_empty(self, test_client):
        response = test_client.get("/viewer/integrations")
        assert response.status_code == 200
        data = response.json()
        assert data["conferencing"]["num_active"] == 0
        assert data["payment"]["num_active"] == 0
        assert [i["type"] for i in data["conferencing"]["items"]] == ["zoom_video", "daily_video"]

    def test_connect_then_integrations_reflect_credential(self, test_client):
        response = _connect(test_client, "zoom_video", {"access_token": "test_access_token_value"})
        assert response.status_code == 201
        body = response.json()
        assert body["action"] == "connect"
        assert body["refresh"] == ["viewer.integrations"]

        data = test_client.get("/viewer/integrations").json()
        zoom = data["conferencing"]["items"][0]
        assert zoom["credential_ids"] == [body["credential_id"]]
        assert zoom["state"]["kind"] == "connected"
        assert data["conferencing"]["num_active"] == 1

    def test_connect_daily_video_rejected(self, test_client):
        response = _connect(test_client, "daily_video")
        assert response.status_code == 409
        data = test_client.get("/viewer/integrations").json()
        assert data["conferencing"]["num_active"] == 0

    def test_connect_not_installed_rejected(self, test_client):
        response = _connect(test_client, "office365_calendar")
        assert response.status_code == 409

    def test_credential_key_not_exposed(self, test_client):
        _connect(test_client, "stripe_payment", {"stripe_user_id": "acct_secret"})
        assert "acct_secret" not in test_client.get("/viewer/integrations").text
        assert "acct_secret" not in test_client.get("/viewer/me").text

    def test_disconnect(self, test_client):
        credential_id = _connect(test_client, "stripe_payment").json()["credential_id"]

        response = test_client.post("/viewer/integrations/disconnect", json={"id": credential_id})
        assert response.status_code == 200
        assert response.json()["refresh"] == ["viewer.integrations"]

        data = test_client.get("/viewer/integrations").json()
        assert data["payment"]["num_active"] == 0

    def test_disconnect_unknown_credential(self, test_client):
        _connect(test_client, "zoom_video")
        response = test_client.post("/viewer/integrations/disconnect", json={"id": 9999})
        assert response.status_code == 404
        data = test_client.get("/viewer/integrations").json()
        assert data["conferencing"]["num_active"] == 1

    def test_disconnect_other_users_credential(self, test_client, credential_repository, user_repository, user_factory):
        user_repository.create_or_update(user_factory("other", "other"))
        theirs = credential_repository.create("other", "zoom_video", {})
        response = test_client.post("/viewer/integrations/disconnect", json={"id": theirs.id})
        assert response.status_code == 404
        assert credential_repository.get("other", theirs.id) is not None

    def test_authorize_url(self, test_client):
        response = test_client.get("/viewer/integrations/zoom_video/authorize-url")
        assert response.status_code == 200
        assert response.json()["url"] == "/api/integrations/zoom_video/add"

    def test_repeated_reads_identical(self, test_client):
        _connect(test_client, "zoom_video")
        _connect(test_client, "apple_calendar")
        assert test_client.get("/viewer/integrations").json() == test_client.get("/viewer/integrations").json()


class TestAuthentication:
    """Test session handling on viewer endpoints."""

    def test_viewer_requires_session(self, anonymous_client):
        response = anonymous_client.get("/viewer/me")
        assert response.status_code == 401

    def test_bearer_session(self, anonymous_client, test_user_id):
        token = create_session_token(test_user_id)
        response = anonymous_client.get("/viewer/me", headers={"Authorization": f"Bearer {token}"})
        assert response.status_code == 200
        assert response.json()["id"] == test_user_id

    def test_invalid_token(self, anonymous_client):
        response = anonymous_client.get("/viewer/me", headers={"Authorization": "Bearer not-a-token"})
        assert response.status_code == 401

    def test_expired_token(self, anonymous_client, test_user_id, monkeypatch):
        from calgate.auth import jwt as session_jwt

        monkeypatch.setattr(session_jwt, "JWT_EXPIRATION_HOURS", -1)
        token = create_session_token(test_user_id)
        response = anonymous_client.get("/viewer/me", headers={"Authorization": f"Bearer {token}"})
        assert response.status_code == 401


class TestIntegrationsPage:
    """Test the gated integrations page."""

    def test_no_session_redirects_to_login(self, anonymous_client):
        response = anonymous_client.get("/integrations?tab=payment", follow_redirects=False)
        assert response.status_code == 302
        location = urlparse(response.headers["location"])
        assert location.path == "/auth/login"
        assert parse_qs(location.query)["callbackUrl"] == ["/integrations?tab=payment"]

    def test_incomplete_onboarding_redirects(self, anonymous_client, user_repository, user_factory):
        user_repository.create_or_update(user_factory("alice-id", "alice", completed_onboarding=False))
        anonymous_client.cookies.set(SESSION_COOKIE, create_session_token("alice-id"))
        response = anonymous_client.get("/integrations", follow_redirects=False)
        assert response.status_code == 302
        assert response.headers["location"] == "/getting-started"

    def test_session_for_deleted_user_redirects_to_login(self, anonymous_client):
        anonymous_client.cookies.set(SESSION_COOKIE, create_session_token("gone"))
        response = anonymous_client.get("/integrations", follow_redirects=False)
        assert response.status_code == 302
        assert urlparse(response.headers["location"]).path == "/auth/login"

    def test_onboarded_user_sees_page(self, anonymous_client, credential_repository, test_user_id):
        credential_repository.create(test_user_id, "zoom_video", {})
        anonymous_client.cookies.set(SESSION_COOKIE, create_session_token(test_user_id))
        response = anonymous_client.get("/integrations", follow_redirects=False)
        assert response.status_code == 200
        assert "Disconnect" in response.text
        assert "Not installed" in response.text
        assert "Installed" in response.text
        assert "(1 connected)" in response.text

    def test_connect_button_quotes_provider_type(self, anonymous_client, test_user_id):
        anonymous_client.cookies.set(SESSION_COOKIE, create_session_token(test_user_id))
        response = anonymous_client.get("/integrations", follow_redirects=False)
        assert response.status_code == 200
        assert 'onclick="connect(&quot;zoom_video&quot;)"' in response.text

    def test_viewer_fetch_failure_shows_retry(self, anonymous_client, test_user_id, monkeypatch):
        from calgate.database.user_repository import UserRepository

        calls = []

        def failing_get(self, user_id):
            calls.append(user_id)
            raise RuntimeError("database unavailable")

        monkeypatch.setattr(UserRepository, "get", failing_get)
        anonymous_client.cookies.set(SESSION_COOKIE, create_session_token(test_user_id))
        response = anonymous_client.get("/integrations", follow_redirects=False)

        assert response.status_code == 503
        assert "Try again" in response.text
        assert len(calls) == 4

    def test_integrations_load_failure_shows_retry(self, anonymous_client, test_user_id, monkeypatch):
        from calgate.database.credential_repository import CredentialRepository

        def failing_list(self, user_id):
            raise RuntimeError("database unavailable")

        monkeypatch.setattr(CredentialRepository, "list_for_user", failing_list)
        anonymous_client.cookies.set(SESSION_COOKIE, create_session_token(test_user_id))
        response = anonymous_client.get("/integrations", follow_redirects=False)

        assert response.status_code == 503
        assert "Could not load integrations" in response.text
        assert "Try again" in response.text


def test_health(test_client):
    response = test_client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"
