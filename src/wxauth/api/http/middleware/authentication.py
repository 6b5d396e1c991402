"""Bearer token gate run before every request handler."""

from fastapi import Request
from loguru import logger
from starlette.middleware.base import BaseHTTPMiddleware

from wxauth.api.http.responses import failure_response
from wxauth.core.exceptions import TokenError, TokenInvalid
from wxauth.core.models.principal import AuthenticatedPrincipal
from wxauth.core.services.jwt.token_codec import TokenCodecService
from wxauth.runtime.context import get_config


def authenticate_authorization_header(
    header: str | None, codec: TokenCodecService, prefix: str = "Bearer "
) -> AuthenticatedPrincipal | None:
    """Resolve the principal carried by an ``Authorization`` header value.

    Returns ``None`` when the header is absent or uses another scheme; such
    requests continue anonymously. A header with the bearer prefix must carry
    a valid token, otherwise ``TokenError`` is raised.
    """
    if not header or not header.startswith(prefix):
        return None
    token = header[len(prefix):].strip()
    if not token:
        raise TokenInvalid("Invalid token: empty bearer token")
    return codec.verify(token)


class BearerAuthenticationMiddleware(BaseHTTPMiddleware):
    """Attach ``request.state.principal`` or reject the request with 401.

    The principal is scoped to the request; nothing is stored between
    requests and the user store is never consulted.
    """

    async def dispatch(self, request: Request, call_next):
        request.state.principal = None
        codec: TokenCodecService = request.app.state.app_dependencies.token_codec
        prefix = get_config().jwt.bearer_prefix
        try:
            principal = authenticate_authorization_header(
                request.headers.get("Authorization"), codec, prefix
            )
        except TokenError as exc:
            logger.bind(error_kind=str(exc.kind)).info("auth.token_rejected")
            return failure_response(
                exc.status_code,
                exc.message,
                headers={"WWW-Authenticate": "Bearer"},
            )

        if principal is not None:
            request.state.principal = principal
            with logger.contextualize(principal=principal.name):
                return await call_next(request)
        return await call_next(request)
