"""Core services exports."""

from .database.db_session import DbSessionService
from .jwt.token_codec import TokenCodecService
from .login_service import LoginService
from .wechat.gateway import WeChatGatewayService

__all__ = [
    "DbSessionService",
    "LoginService",
    "TokenCodecService",
    "WeChatGatewayService",
]
