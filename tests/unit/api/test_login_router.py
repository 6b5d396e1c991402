"""End-to-end tests for the HTTP surface with a fake WeChat endpoint."""

import httpx
from sqlmodel import select

from tests.fixtures.core import VALIDITY_SECONDS
from wxauth.entities.core.user import UserTable


def _login(client, code: str):
    return client.post("/api/auth/login", json={"code": code})


class TestLoginEndpoint:
    def test_successful_login_returns_token_envelope(self, client, fake_wechat, token_codec):
        fake_wechat.register("abc123", {"openid": "wx-1", "session_key": "sk-1", "errcode": 0})

        response = _login(client, "abc123")

        assert response.status_code == 200
        body = response.json()
        assert body["code"] == 200
        assert body["message"] == "Success"
        principal = token_codec.verify(body["data"])
        assert principal.name == "wx-1"
        assert principal.authorities == ("USER",)

    def test_repeated_login_keeps_a_single_user(self, client, fake_wechat, db_service):
        fake_wechat.register("code-1", {"openid": "wx-1", "session_key": "sk-1"})
        fake_wechat.register("code-2", {"openid": "wx-1", "session_key": "sk-2"})

        assert _login(client, "code-1").status_code == 200
        assert _login(client, "code-2").status_code == 200

        with db_service.session_scope() as session:
            rows = session.exec(select(UserTable)).all()
        assert [row.openid for row in rows] == ["wx-1"]

    def test_rejected_code_returns_406_and_writes_nothing(
        self, client, fake_wechat, db_service
    ):
        fake_wechat.register("bad", {"errcode": 40029, "errmsg": "invalid code"})

        response = _login(client, "bad")

        assert response.status_code == 406
        assert response.json() == {"code": 406, "message": "invalid code", "data": None}
        with db_service.session_scope() as session:
            assert session.exec(select(UserTable)).all() == []

    def test_provider_outage_returns_406(self, client, fake_wechat):
        fake_wechat.register_error("abc123", httpx.ConnectTimeout("timed out"))

        response = _login(client, "abc123")

        assert response.status_code == 406
        assert response.json()["code"] == 406

    def test_missing_code_returns_400(self, client, fake_wechat):
        response = client.post("/api/auth/login", json={})

        assert response.status_code == 400
        assert response.json()["code"] == 400
        assert response.json()["data"] is None
        assert fake_wechat.requests == []

    def test_empty_code_returns_400(self, client, fake_wechat):
        response = _login(client, "")

        assert response.status_code == 400
        assert fake_wechat.requests == []

    def test_expired_token_on_login_route_is_rejected(
        self, client, fake_wechat, token_codec, clock
    ):
        fake_wechat.register("abc123", {"openid": "wx-1", "session_key": "sk-1"})
        token = _login(client, "abc123").json()["data"]
        clock.advance(VALIDITY_SECONDS + 1)

        response = client.post(
            "/api/auth/login",
            json={"code": "abc123"},
            headers={"Authorization": f"Bearer {token}"},
        )

        # A presented credential is always checked, even on the login route.
        assert response.status_code == 401


class TestProfileEndpoint:
    def test_me_returns_principal_from_token(self, client, fake_wechat):
        fake_wechat.register("abc123", {"openid": "wx-1", "session_key": "sk-1"})
        token = _login(client, "abc123").json()["data"]

        response = client.get("/api/app/me", headers={"Authorization": f"Bearer {token}"})

        assert response.status_code == 200
        assert response.json() == {
            "code": 200,
            "message": "Success",
            "data": {"name": "wx-1", "authorities": ["USER"]},
        }

    def test_me_requires_authentication(self, client):
        response = client.get("/api/app/me")

        assert response.status_code == 401
        assert response.json()["code"] == 401

    def test_me_with_expired_token_is_rejected(self, client, token_codec, clock):
        from wxauth.core.models.principal import AuthenticatedPrincipal

        token = token_codec.issue(AuthenticatedPrincipal(name="wx-1", authorities=["USER"]))
        clock.advance(VALIDITY_SECONDS + 1)

        response = client.get("/api/app/me", headers={"Authorization": f"Bearer {token}"})

        assert response.status_code == 401
        assert response.json()["message"] == "Token expired"


class TestHealthEndpoints:
    def test_health(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    def test_ready(self, client):
        response = client.get("/ready")

        assert response.status_code == 200
        assert response.json()["checks"]["database"]["status"] == "healthy"

    def test_security_headers_and_request_id(self, client):
        response = client.get("/health", headers={"X-Request-ID": "req-1"})

        assert response.headers["X-Content-Type-Options"] == "nosniff"
        assert response.headers["X-Request-ID"] == "req-1"

    def test_unknown_route_uses_envelope(self, client):
        response = client.get("/nope")

        assert response.status_code == 404
        assert response.json() == {"code": 404, "message": "Not Found", "data": None}

    def test_internal_value_error_does_not_leak_detail(self, client):
        from wxauth.entities.core.user import LocalUser

        def build_invalid_user():
            LocalUser.model_validate({"id": "not-a-number"})

        client.app.add_api_route("/broken", build_invalid_user)

        response = client.get("/broken")

        assert response.status_code == 400
        assert response.json() == {"code": 400, "message": "Request failed", "data": None}
