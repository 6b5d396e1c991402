"""Typed failures raised by the authentication core.

Every failure carries an ``ErrorKind`` tag and the envelope code it maps to at
the HTTP boundary. Nothing here is retried; callers either handle a specific
kind or let it propagate to the exception handlers in ``wxauth.api.http``.
"""

from __future__ import annotations

from enum import StrEnum
from typing import ClassVar


class ErrorKind(StrEnum):
    PROVIDER_UNAVAILABLE = "provider_unavailable"
    PROVIDER_REJECTED = "provider_rejected"
    PROVIDER_RESPONSE_EMPTY = "provider_response_empty"
    USER_CREATION_FAILED = "user_creation_failed"
    TOKEN_INVALID = "token_invalid"
    TOKEN_EXPIRED = "token_expired"


class AuthServiceError(Exception):
    """Base class for failures that surface as a response envelope."""

    kind: ClassVar[ErrorKind]
    status_code: ClassVar[int] = 400

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ProviderError(AuthServiceError):
    """The WeChat login exchange failed."""

    status_code = 406


class ProviderUnavailable(ProviderError):
    """Transport, timeout or HTTP-level failure talking to the provider."""

    kind = ErrorKind.PROVIDER_UNAVAILABLE


class ProviderRejected(ProviderError):
    """The provider answered with a non-zero ``errcode``."""

    kind = ErrorKind.PROVIDER_REJECTED

    def __init__(self, message: str, provider_code: int | None = None) -> None:
        super().__init__(message)
        self.provider_code = provider_code


class ProviderResponseEmpty(ProviderError):
    """The provider call succeeded but returned no usable identity."""

    kind = ErrorKind.PROVIDER_RESPONSE_EMPTY


class UserCreationFailed(AuthServiceError):
    """A freshly inserted user could not be read back from the store."""

    kind = ErrorKind.USER_CREATION_FAILED
    status_code = 406


class TokenError(AuthServiceError):
    """A presented bearer token was rejected."""

    status_code = 401


class TokenInvalid(TokenError):
    kind = ErrorKind.TOKEN_INVALID


class TokenExpired(TokenError):
    kind = ErrorKind.TOKEN_EXPIRED
