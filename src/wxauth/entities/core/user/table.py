"""User database table model."""

from sqlmodel import Field, SQLModel

DEFAULT_AUTHORITY = "USER"


class UserTable(SQLModel, table=True):
    """Database persistence model for WeChat users.

    Authorities are stored as a comma separated string so a single column
    round-trips the ordered list.
    """

    __tablename__ = "wechat_users"

    id: int | None = Field(default=None, primary_key=True)
    openid: str = Field(unique=True, index=True, nullable=False)
    session_key: str = Field(default="", nullable=False)
    nickname: str | None = None
    avatar_url: str | None = None
    auth: str = Field(default=DEFAULT_AUTHORITY, nullable=False)
