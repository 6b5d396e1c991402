"""Endpoints for the currently authenticated principal."""

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from wxauth.api.http.deps import require_principal
from wxauth.api.http.responses import RestResponse
from wxauth.core.models.principal import AuthenticatedPrincipal

router = APIRouter(prefix="/api/app", tags=["app"])


class PrincipalView(BaseModel):
    name: str
    authorities: list[str]


@router.get("/me", response_model=RestResponse[PrincipalView])
async def me(
    principal: AuthenticatedPrincipal = Depends(require_principal),
) -> RestResponse[PrincipalView]:
    return RestResponse[PrincipalView].success(
        PrincipalView(name=principal.name, authorities=list(principal.authorities))
    )
