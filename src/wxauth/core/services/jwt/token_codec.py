"""Bearer token issuance and verification."""

from __future__ import annotations

import time
from collections.abc import Callable
from typing import Any

from authlib.jose import JsonWebToken
from authlib.jose.errors import ExpiredTokenError, JoseError
from loguru import logger
from pydantic import ValidationError

from wxauth.core.exceptions import TokenExpired, TokenInvalid
from wxauth.core.models.principal import AuthenticatedPrincipal
from wxauth.core.services.jwt.jwt_utils import preview_jwt
from wxauth.runtime.config.config_data import JWTConfig
from wxauth.runtime.context import get_config

Clock = Callable[[], float]


class TokenCodecService:
    """Creates and verifies HMAC-signed, time-bounded tokens.

    The payload is ``{"name", "authorities", "iat", "exp"}``. No nonce or
    ``jti`` is added, so the same principal issued at the same second yields
    the same token.
    """

    def __init__(
        self,
        secret: str,
        validity_seconds: int,
        algorithm: str = "HS256",
        clock: Clock = time.time,
    ) -> None:
        if not secret:
            raise ValueError("JWT signing secret not configured")
        if validity_seconds <= 0:
            raise ValueError("Token validity must be a positive number of seconds")
        self._secret = secret
        self._validity_seconds = validity_seconds
        self._algorithm = algorithm
        self._clock = clock
        self._jwt = JsonWebToken([algorithm])

    @classmethod
    def from_config(
        cls, config: JWTConfig | None = None, clock: Clock = time.time
    ) -> TokenCodecService:
        cfg = config or get_config().jwt
        return cls(
            secret=cfg.signing_secret,
            validity_seconds=cfg.validity_seconds,
            algorithm=cfg.algorithm,
            clock=clock,
        )

    @property
    def validity_seconds(self) -> int:
        return self._validity_seconds

    def issue(self, principal: AuthenticatedPrincipal) -> str:
        """Sign a token for ``principal`` valid from now for the configured window."""
        now = int(self._clock())
        header = {"alg": self._algorithm, "typ": "JWT"}
        payload = {
            "name": principal.name,
            "authorities": list(principal.authorities),
            "iat": now,
            "exp": now + self._validity_seconds,
        }
        token = self._jwt.encode(header, payload, self._secret)
        logger.bind(name=principal.name, exp=payload["exp"]).debug("token.issued")
        return token.decode("ascii") if isinstance(token, bytes) else token

    def verify(self, token: str) -> AuthenticatedPrincipal:
        """Verify signature and expiry and rebuild the principal from claims.

        Raises:
            TokenInvalid: malformed token, wrong algorithm, bad signature or
                missing claims.
            TokenExpired: the current time is past ``exp``.
        """
        preview = preview_jwt(token)
        if preview.alg != self._algorithm:
            raise TokenInvalid("Disallowed token algorithm")

        now = int(self._clock())
        try:
            claims = self._jwt.decode(
                token,
                self._secret,
                claims_options={
                    "exp": {"essential": True},
                    "iat": {"essential": True},
                },
            )
            claims.validate(now=now, leeway=0)
        except ExpiredTokenError as exc:
            raise TokenExpired("Token expired") from exc
        except (JoseError, ValueError) as exc:
            raise TokenInvalid(f"Invalid token: {exc}") from exc

        exp = claims.get("exp")
        if not isinstance(exp, int) or isinstance(exp, bool):
            raise TokenInvalid("Invalid token: exp must be an integer timestamp")
        if now > exp:
            raise TokenExpired("Token expired")

        return self._principal_from_claims(claims)

    @staticmethod
    def _principal_from_claims(claims: dict[str, Any]) -> AuthenticatedPrincipal:
        name = claims.get("name")
        authorities = claims.get("authorities")
        if not isinstance(name, str) or not name:
            raise TokenInvalid("Invalid token: missing name claim")
        if not isinstance(authorities, list):
            raise TokenInvalid("Invalid token: missing authorities claim")
        try:
            return AuthenticatedPrincipal(name=name, authorities=authorities)
        except ValidationError as exc:
            raise TokenInvalid("Invalid token: malformed authorities claim") from exc
