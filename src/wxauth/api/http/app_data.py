from dataclasses import dataclass

from wxauth.core.services import (
    DbSessionService,
    TokenCodecService,
    WeChatGatewayService,
)
from wxauth.runtime.config.config_data import ConfigData
from wxauth.runtime.context import get_config


@dataclass
class ApplicationDependencies:
    token_codec: TokenCodecService
    wechat_gateway: WeChatGatewayService
    database_service: DbSessionService


def build_dependencies(config: ConfigData | None = None) -> ApplicationDependencies:
    """Build the process-wide services from configuration."""
    cfg = config or get_config()
    return ApplicationDependencies(
        token_codec=TokenCodecService.from_config(cfg.jwt),
        wechat_gateway=WeChatGatewayService.from_config(cfg.wechat),
        database_service=DbSessionService(cfg.database),
    )
