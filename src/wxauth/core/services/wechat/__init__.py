"""WeChat identity provider package."""

from .gateway import WeChatGatewayService

__all__ = ["WeChatGatewayService"]
