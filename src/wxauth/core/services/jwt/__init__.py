"""Token codec package."""

from .jwt_utils import preview_jwt
from .token_codec import TokenCodecService

__all__ = ["TokenCodecService", "preview_jwt"]
