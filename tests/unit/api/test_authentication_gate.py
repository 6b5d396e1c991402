"""Tests for the bearer token gate."""

from unittest.mock import Mock

import pytest
from fastapi import Depends, FastAPI
from fastapi.testclient import TestClient

from tests.fixtures.core import VALIDITY_SECONDS
from wxauth.api.http.deps import get_optional_principal, require_authority
from wxauth.api.http.middleware.authentication import (
    BearerAuthenticationMiddleware,
    authenticate_authorization_header,
)
from wxauth.core.exceptions import TokenExpired, TokenInvalid
from wxauth.core.models.principal import AuthenticatedPrincipal


@pytest.fixture
def user_principal() -> AuthenticatedPrincipal:
    return AuthenticatedPrincipal(name="wx-1", authorities=["USER"])


class TestAuthenticateAuthorizationHeader:
    def test_missing_header_is_anonymous(self, token_codec):
        assert authenticate_authorization_header(None, token_codec) is None

    def test_other_scheme_is_anonymous(self, token_codec):
        assert authenticate_authorization_header("Basic dXNlcjpwYXNz", token_codec) is None

    def test_valid_bearer_token_yields_principal(self, token_codec, user_principal):
        header = f"Bearer {token_codec.issue(user_principal)}"

        assert authenticate_authorization_header(header, token_codec) == user_principal

    def test_empty_bearer_token_is_invalid(self, token_codec):
        with pytest.raises(TokenInvalid):
            authenticate_authorization_header("Bearer ", token_codec)

    def test_garbage_bearer_token_is_invalid(self, token_codec):
        with pytest.raises(TokenInvalid):
            authenticate_authorization_header("Bearer abc.def.ghi", token_codec)

    def test_custom_prefix(self, token_codec, user_principal):
        header = f"Token {token_codec.issue(user_principal)}"

        assert authenticate_authorization_header(header, token_codec, "Token ") == (
            user_principal
        )
        assert authenticate_authorization_header(header, token_codec) is None


@pytest.fixture
def handler_spy() -> Mock:
    return Mock()


@pytest.fixture
def gated_client(token_codec, handler_spy) -> TestClient:
    """Minimal app with the gate in front of a single spying handler."""
    app = FastAPI()
    app.state.app_dependencies = Mock(token_codec=token_codec)
    app.add_middleware(BearerAuthenticationMiddleware)

    @app.get("/whoami")
    async def whoami(principal=Depends(get_optional_principal)):
        handler_spy(principal)
        if principal is None:
            return {"principal": None}
        return {"principal": principal.name, "authorities": list(principal.authorities)}

    @app.get("/admin", dependencies=[Depends(require_authority("ADMIN"))])
    async def admin():
        handler_spy("admin")
        return {"ok": True}

    return TestClient(app)


class TestBearerAuthenticationMiddleware:
    def test_request_without_header_passes_through_anonymously(
        self, gated_client, handler_spy
    ):
        response = gated_client.get("/whoami")

        assert response.status_code == 200
        assert response.json() == {"principal": None}
        handler_spy.assert_called_once_with(None)

    def test_non_bearer_header_passes_through(self, gated_client, handler_spy):
        response = gated_client.get("/whoami", headers={"Authorization": "Basic abc"})

        assert response.status_code == 200
        handler_spy.assert_called_once_with(None)

    def test_valid_token_attaches_principal(
        self, gated_client, handler_spy, token_codec, user_principal
    ):
        token = token_codec.issue(user_principal)

        response = gated_client.get("/whoami", headers={"Authorization": f"Bearer {token}"})

        assert response.status_code == 200
        assert response.json() == {"principal": "wx-1", "authorities": ["USER"]}
        handler_spy.assert_called_once_with(user_principal)

    def test_expired_token_is_rejected_before_handler(
        self, gated_client, handler_spy, token_codec, clock, user_principal
    ):
        token = token_codec.issue(user_principal)
        clock.advance(VALIDITY_SECONDS + 1)

        response = gated_client.get("/whoami", headers={"Authorization": f"Bearer {token}"})

        assert response.status_code == 401
        assert response.json() == {"code": 401, "message": "Token expired", "data": None}
        assert response.headers["WWW-Authenticate"] == "Bearer"
        handler_spy.assert_not_called()

    def test_tampered_token_is_rejected_before_handler(
        self, gated_client, handler_spy, token_codec, user_principal
    ):
        token = token_codec.issue(user_principal)
        tampered = token[:-1] + ("A" if token[-1] != "A" else "B")

        response = gated_client.get(
            "/whoami", headers={"Authorization": f"Bearer {tampered}"}
        )

        assert response.status_code == 401
        assert response.json()["code"] == 401
        handler_spy.assert_not_called()

    def test_principal_does_not_leak_between_requests(
        self, gated_client, handler_spy, token_codec, user_principal
    ):
        token = token_codec.issue(user_principal)
        gated_client.get("/whoami", headers={"Authorization": f"Bearer {token}"})

        response = gated_client.get("/whoami")

        assert response.json() == {"principal": None}

    def test_each_request_verifies_its_token_once(
        self, gated_client, token_codec, user_principal, monkeypatch
    ):
        token = token_codec.issue(user_principal)
        verify = Mock(wraps=token_codec.verify)
        monkeypatch.setattr(token_codec, "verify", verify)
        headers = {"Authorization": f"Bearer {token}"}

        first = gated_client.get("/whoami", headers=headers)
        second = gated_client.get("/whoami", headers=headers)

        assert first.status_code == second.status_code == 200
        assert verify.call_count == 2
        verify.assert_called_with(token)

    def test_missing_authority_is_forbidden(
        self, gated_client, handler_spy, token_codec, user_principal
    ):
        token = token_codec.issue(user_principal)

        response = gated_client.get("/admin", headers={"Authorization": f"Bearer {token}"})

        assert response.status_code == 403
        handler_spy.assert_not_called()

    def test_authority_check_requires_authentication(self, gated_client, handler_spy):
        response = gated_client.get("/admin")

        assert response.status_code == 401
        handler_spy.assert_not_called()

    def test_granted_authority_reaches_handler(self, gated_client, handler_spy, token_codec):
        admin = AuthenticatedPrincipal(name="wx-9", authorities=["USER", "ADMIN"])
        token = token_codec.issue(admin)

        response = gated_client.get("/admin", headers={"Authorization": f"Bearer {token}"})

        assert response.status_code == 200
        handler_spy.assert_called_once_with("admin")


def test_token_errors_carry_unauthorized_status():
    assert TokenExpired("Token expired").status_code == 401
    assert TokenInvalid("Invalid token").status_code == 401
