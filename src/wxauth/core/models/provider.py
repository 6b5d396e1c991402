from pydantic import BaseModel, ConfigDict, Field


class ProviderIdentity(BaseModel):
    """Result of the WeChat ``jscode2session`` exchange.

    Field aliases follow the provider payload. A successful exchange has no
    (or a zero) ``errcode`` and carries both ``openid`` and ``session_key``.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    external_id: str | None = Field(default=None, alias="openid")
    session_secret: str | None = Field(default=None, alias="session_key", repr=False)
    error_code: int | None = Field(default=None, alias="errcode")
    error_message: str | None = Field(default=None, alias="errmsg")

    @property
    def is_error(self) -> bool:
        return bool(self.error_code)

    @property
    def is_complete(self) -> bool:
        return bool(self.external_id) and bool(self.session_secret)
