"""FastAPI dependency implementations."""

from __future__ import annotations

from collections.abc import Iterator

from fastapi import Depends, HTTPException, Request
from sqlmodel import Session

from wxauth.api.http.app_data import ApplicationDependencies
from wxauth.core.models.principal import AuthenticatedPrincipal
from wxauth.core.services import (
    DbSessionService,
    LoginService,
    TokenCodecService,
    WeChatGatewayService,
)


def get_app_dependencies(request: Request) -> ApplicationDependencies:
    return request.app.state.app_dependencies


def get_database_service(request: Request) -> DbSessionService:
    """Get the database service instance."""
    return get_app_dependencies(request).database_service


def get_db_session(
    database_service: DbSessionService = Depends(get_database_service),
) -> Iterator[Session]:
    """Yield a request-scoped database session."""
    session = database_service.get_session()
    try:
        yield session
    finally:
        session.close()


def get_token_codec(request: Request) -> TokenCodecService:
    """Get the token codec instance."""
    return get_app_dependencies(request).token_codec


def get_wechat_gateway(request: Request) -> WeChatGatewayService:
    """Get the WeChat gateway instance."""
    return get_app_dependencies(request).wechat_gateway


def get_login_service(
    gateway: WeChatGatewayService = Depends(get_wechat_gateway),
    token_codec: TokenCodecService = Depends(get_token_codec),
    db_session: Session = Depends(get_db_session),
) -> LoginService:
    return LoginService(gateway, token_codec, db_session)


def get_optional_principal(request: Request) -> AuthenticatedPrincipal | None:
    """Principal attached by the bearer gate, or ``None`` for anonymous calls."""
    return getattr(request.state, "principal", None)


def require_principal(
    principal: AuthenticatedPrincipal | None = Depends(get_optional_principal),
) -> AuthenticatedPrincipal:
    if principal is None:
        raise HTTPException(
            status_code=401,
            detail="Authentication required",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return principal


def require_authority(required_authority: str):
    """Create a dependency that requires a specific authority on the principal."""

    async def dep(
        principal: AuthenticatedPrincipal = Depends(require_principal),
    ) -> AuthenticatedPrincipal:
        if not principal.has_authority(required_authority):
            raise HTTPException(
                status_code=403,
                detail=f"Missing required authority: {required_authority}",
            )
        return principal

    return dep
