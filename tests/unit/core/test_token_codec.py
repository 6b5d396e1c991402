"""Unit tests for bearer token issuance and verification."""

import base64
import json

import pytest

from tests.fixtures.core import FIXED_NOW, VALIDITY_SECONDS
from wxauth.core.exceptions import ErrorKind, TokenExpired, TokenInvalid
from wxauth.core.models.principal import AuthenticatedPrincipal
from wxauth.core.services.jwt.token_codec import TokenCodecService


def _b64(data: dict) -> str:
    raw = json.dumps(data, separators=(",", ":")).encode("utf-8")
    return base64.urlsafe_b64encode(raw).rstrip(b"=").decode("ascii")


def _segments(token: str) -> list[str]:
    return token.split(".")


def _decode_segment(segment: str) -> dict:
    padded = segment + "=" * (-len(segment) % 4)
    return json.loads(base64.urlsafe_b64decode(padded))


@pytest.fixture
def principal() -> AuthenticatedPrincipal:
    return AuthenticatedPrincipal(name="wx-1", authorities=["USER"])


class TestIssue:
    def test_token_is_three_segment_compact_jws(self, token_codec, principal):
        token = token_codec.issue(principal)

        header, payload, signature = _segments(token)
        assert _decode_segment(header) == {"alg": "HS256", "typ": "JWT"}
        assert signature

    def test_payload_carries_name_authorities_and_window(self, token_codec, principal):
        claims = _decode_segment(_segments(token_codec.issue(principal))[1])

        assert claims == {
            "name": "wx-1",
            "authorities": ["USER"],
            "iat": FIXED_NOW,
            "exp": FIXED_NOW + VALIDITY_SECONDS,
        }

    def test_same_principal_and_time_yield_same_token(self, token_codec, principal):
        assert token_codec.issue(principal) == token_codec.issue(principal)

    def test_different_time_yields_different_token(self, token_codec, clock, principal):
        first = token_codec.issue(principal)
        clock.advance(1)
        assert token_codec.issue(principal) != first

    def test_authority_order_is_preserved(self, token_codec):
        principal = AuthenticatedPrincipal(name="wx-2", authorities=["ADMIN", "USER"])
        claims = _decode_segment(_segments(token_codec.issue(principal))[1])
        assert claims["authorities"] == ["ADMIN", "USER"]


class TestVerify:
    def test_round_trip_returns_same_principal(self, token_codec, principal):
        verified = token_codec.verify(token_codec.issue(principal))

        assert verified == principal
        assert verified.authorities == ("USER",)

    def test_valid_until_exact_expiry(self, token_codec, clock, principal):
        token = token_codec.issue(principal)
        clock.advance(VALIDITY_SECONDS)

        assert token_codec.verify(token).name == "wx-1"

    def test_expired_after_validity_window(self, token_codec, clock, principal):
        token = token_codec.issue(principal)
        clock.advance(VALIDITY_SECONDS + 1)

        with pytest.raises(TokenExpired) as exc_info:
            token_codec.verify(token)
        assert exc_info.value.kind is ErrorKind.TOKEN_EXPIRED
        assert exc_info.value.status_code == 401

    def test_every_signature_character_is_checked(self, token_codec, principal):
        token = token_codec.issue(principal)
        header, payload, signature = _segments(token)

        for index, char in enumerate(signature):
            replacement = "A" if char != "A" else "B"
            tampered_sig = signature[:index] + replacement + signature[index + 1 :]
            with pytest.raises(TokenInvalid):
                token_codec.verify(f"{header}.{payload}.{tampered_sig}")

    def test_tampered_payload_is_rejected(self, token_codec, principal):
        header, _, signature = _segments(token_codec.issue(principal))
        forged = _b64(
            {
                "name": "wx-1",
                "authorities": ["ADMIN"],
                "iat": FIXED_NOW,
                "exp": FIXED_NOW + VALIDITY_SECONDS,
            }
        )

        with pytest.raises(TokenInvalid):
            token_codec.verify(f"{header}.{forged}.{signature}")

    def test_token_signed_with_other_key_is_rejected(self, clock, principal):
        other = TokenCodecService(
            "another-signing-secret-0123456789abcdef", VALIDITY_SECONDS, clock=clock
        )
        mine = TokenCodecService(
            "test-signing-secret-0123456789abcdef", VALIDITY_SECONDS, clock=clock
        )

        with pytest.raises(TokenInvalid):
            mine.verify(other.issue(principal))

    def test_alg_none_is_rejected(self, token_codec):
        header = _b64({"alg": "none", "typ": "JWT"})
        payload = _b64(
            {"name": "wx-1", "authorities": ["USER"], "iat": FIXED_NOW, "exp": FIXED_NOW + 60}
        )

        with pytest.raises(TokenInvalid):
            token_codec.verify(f"{header}.{payload}.")

    def test_other_hmac_algorithm_is_rejected(self, clock, signing_secret, principal):
        hs512 = TokenCodecService(
            signing_secret, VALIDITY_SECONDS, algorithm="HS512", clock=clock
        )
        hs256 = TokenCodecService(signing_secret, VALIDITY_SECONDS, clock=clock)

        with pytest.raises(TokenInvalid):
            hs256.verify(hs512.issue(principal))

    @pytest.mark.parametrize(
        "token",
        ["", "not-a-token", "a.b", "a.b.c.d", "ééé.ééé.ééé", "x" * 5000],
    )
    def test_malformed_tokens_are_invalid(self, token_codec, token):
        with pytest.raises(TokenInvalid):
            token_codec.verify(token)

    def test_missing_exp_claim_is_invalid(self, token_codec, signing_secret):
        from authlib.jose import JsonWebToken

        token = JsonWebToken(["HS256"]).encode(
            {"alg": "HS256", "typ": "JWT"},
            {"name": "wx-1", "authorities": ["USER"], "iat": FIXED_NOW},
            signing_secret,
        )

        with pytest.raises(TokenInvalid):
            token_codec.verify(token.decode("ascii"))

    def test_missing_authorities_claim_is_invalid(self, token_codec, signing_secret):
        from authlib.jose import JsonWebToken

        token = JsonWebToken(["HS256"]).encode(
            {"alg": "HS256", "typ": "JWT"},
            {"name": "wx-1", "iat": FIXED_NOW, "exp": FIXED_NOW + 60},
            signing_secret,
        )

        with pytest.raises(TokenInvalid):
            token_codec.verify(token.decode("ascii"))


class TestConstruction:
    def test_empty_secret_is_rejected(self):
        with pytest.raises(ValueError):
            TokenCodecService("", VALIDITY_SECONDS)

    @pytest.mark.parametrize("validity", [0, -5])
    def test_non_positive_validity_is_rejected(self, signing_secret, validity):
        with pytest.raises(ValueError):
            TokenCodecService(signing_secret, validity)
