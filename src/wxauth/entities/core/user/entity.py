"""User domain entity."""

from pydantic import BaseModel, Field


class LocalUser(BaseModel):
    """A locally registered mini-program user.

    ``external_id`` is the WeChat openid and is unique across all users.
    ``authorities`` is never empty for a freshly inserted user.
    """

    id: int = Field(description="Surrogate key assigned by the store")
    external_id: str = Field(description="Provider-assigned openid")
    session_secret: str = Field(
        default="", repr=False, description="Provider session key from registration"
    )
    display_name: str | None = Field(default=None, description="Nickname")
    avatar_ref: str | None = Field(default=None, description="Avatar URL")
    authorities: list[str] = Field(default_factory=list)
