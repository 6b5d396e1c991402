from .authentication import (
    BearerAuthenticationMiddleware,
    authenticate_authorization_header,
)

__all__ = ["BearerAuthenticationMiddleware", "authenticate_authorization_header"]
