"""WeChat ``jscode2session`` client used by the login flow."""

from __future__ import annotations

import httpx
from loguru import logger
from pydantic import ValidationError

from wxauth.core.exceptions import (
    ProviderRejected,
    ProviderResponseEmpty,
    ProviderUnavailable,
)
from wxauth.core.models.provider import ProviderIdentity
from wxauth.runtime.config.config_data import WeChatConfig
from wxauth.runtime.context import get_config


class WeChatGatewayService:
    """Exchanges a one-time mini-program login code for a provider identity.

    One request per call, no retries. Connect and read timeouts come from
    ``WeChatConfig``; a timeout is reported as ``ProviderUnavailable``.
    """

    def __init__(
        self,
        config: WeChatConfig,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        if not config.appid or not config.secret:
            logger.warning("WeChat appid/secret not configured; logins will fail")
        self._config = config
        self._transport = transport

    @classmethod
    def from_config(
        cls,
        config: WeChatConfig | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> WeChatGatewayService:
        return cls(config or get_config().wechat, transport=transport)

    def build_session_params(self, code: str) -> dict[str, str]:
        return {
            "appid": self._config.appid,
            "secret": self._config.secret,
            "js_code": code,
            "grant_type": "authorization_code",
        }

    async def exchange(self, code: str) -> ProviderIdentity:
        """Call ``jscode2session`` for ``code``.

        Args:
            code: One-time login code returned by ``wx.login`` on the client

        Returns:
            Identity with a non-empty openid and session key

        Raises:
            ValueError: If ``code`` is empty
            ProviderUnavailable: Missing credentials, transport failure,
                timeout or non-2xx status
            ProviderRejected: The provider returned a non-zero errcode
            ProviderResponseEmpty: No usable body came back
        """
        if not code:
            raise ValueError("Login code must not be empty")
        if not self._config.appid or not self._config.secret:
            raise ProviderUnavailable("WeChat appid/secret not configured")

        timeout = httpx.Timeout(
            self._config.read_timeout, connect=self._config.connect_timeout
        )
        try:
            async with httpx.AsyncClient(
                timeout=timeout, transport=self._transport
            ) as client:
                response = await client.get(
                    self._config.session_url, params=self.build_session_params(code)
                )
                response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            # The request URL carries the app secret; log the status only.
            status = exc.response.status_code
            logger.warning("WeChat code2session returned HTTP {}", status)
            raise ProviderUnavailable(f"HTTP request fail: status {status}") from exc
        except httpx.TimeoutException as exc:
            logger.warning("WeChat code2session timed out: {}", type(exc).__name__)
            raise ProviderUnavailable("HTTP request fail: timed out") from exc
        except httpx.HTTPError as exc:
            logger.warning("WeChat code2session transport error: {}", type(exc).__name__)
            raise ProviderUnavailable(
                f"HTTP request fail: {type(exc).__name__}"
            ) from exc

        identity = self._parse_identity(response)
        logger.bind(openid=identity.external_id).debug("wechat.session.exchanged")
        return identity

    @staticmethod
    def _parse_identity(response: httpx.Response) -> ProviderIdentity:
        # WeChat labels its JSON body text/plain, so parse regardless of type.
        if not response.content or not response.content.strip():
            raise ProviderResponseEmpty("WeChat interface returns empty response")
        try:
            payload = response.json()
        except ValueError as exc:
            raise ProviderResponseEmpty(
                "WeChat interface returned a non-JSON response"
            ) from exc
        if not isinstance(payload, dict):
            raise ProviderResponseEmpty("WeChat interface returned an unexpected payload")

        try:
            identity = ProviderIdentity.model_validate(payload)
        except ValidationError as exc:
            raise ProviderResponseEmpty(
                "WeChat interface returned an unexpected payload"
            ) from exc

        if identity.is_error:
            logger.info(
                "WeChat code2session rejected code: errcode={} errmsg={}",
                identity.error_code,
                identity.error_message,
            )
            raise ProviderRejected(
                identity.error_message or f"WeChat error {identity.error_code}",
                provider_code=identity.error_code,
            )
        if not identity.is_complete:
            raise ProviderResponseEmpty(
                "WeChat interface response is missing openid or session_key"
            )
        return identity
