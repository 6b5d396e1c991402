"""Login endpoint exchanging a mini-program code for a bearer token."""

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from wxauth.api.http.deps import get_login_service
from wxauth.api.http.responses import RestResponse
from wxauth.core.services import LoginService

router = APIRouter(prefix="/api/auth", tags=["auth"])


class LoginRequest(BaseModel):
    code: str = Field(min_length=1, description="Login code from wx.login")


@router.post("/login", response_model=RestResponse[str])
async def login(
    body: LoginRequest,
    login_service: LoginService = Depends(get_login_service),
) -> RestResponse[str]:
    """Exchange ``code`` for a signed token.

    Provider and user-store failures are rendered by the application's
    exception handlers as ``406`` envelopes.
    """
    token = await login_service.login(body.code)
    return RestResponse[str].success(token)
