"""Uniform ``{code, message, data}`` response envelope."""

from typing import Generic, TypeVar

from pydantic import BaseModel
from starlette.responses import JSONResponse

T = TypeVar("T")

SUCCESS_MESSAGE = "Success"


class RestResponse(BaseModel, Generic[T]):
    code: int
    message: str
    data: T | None = None

    @classmethod
    def success(cls, data: T | None = None) -> "RestResponse[T]":
        return cls(code=200, message=SUCCESS_MESSAGE, data=data)

    @classmethod
    def failure(cls, code: int, message: str) -> "RestResponse[None]":
        return RestResponse[None](code=code, message=message, data=None)


def failure_response(
    code: int, message: str, headers: dict[str, str] | None = None
) -> JSONResponse:
    """Render a failure envelope; the HTTP status mirrors the envelope code."""
    body = RestResponse.failure(code, message)
    return JSONResponse(status_code=code, content=body.model_dump(), headers=headers)
