from loguru import logger
from sqlmodel import Session

from wxauth.core.exceptions import UserCreationFailed
from wxauth.core.models.principal import AuthenticatedPrincipal
from wxauth.core.services.jwt.token_codec import TokenCodecService
from wxauth.core.services.wechat.gateway import WeChatGatewayService
from wxauth.entities.core.user.repository import UserRepository


class LoginService:
    def __init__(
        self,
        gateway: WeChatGatewayService,
        token_codec: TokenCodecService,
        db_session: Session,
    ):
        self._gateway = gateway
        self._token_codec = token_codec
        self._user_repo = UserRepository(db_session)
        self._db_session = db_session

    async def login(self, code: str) -> str:
        """Exchange a mini-program login code for a signed bearer token.

        First login registers the user with the default authority. Later
        logins reuse the existing row; the stored session key is not updated.

        Args:
            code: One-time login code from ``wx.login``

        Returns:
            Signed token whose principal name is the user's openid

        Raises:
            ProviderError: The code exchange failed; nothing was written
            UserCreationFailed: The user could not be inserted or read back
        """
        identity = await self._gateway.exchange(code)
        external_id = identity.external_id

        try:
            user_id = self._user_repo.find_id_by_external_id(external_id)
            if user_id is None:
                user_id = self._user_repo.insert_or_fetch(
                    external_id, identity.session_secret
                )
                if user_id is None:
                    raise UserCreationFailed("User creation failed")
                logger.bind(openid=external_id, user_id=user_id).info("user.registered")

            user = self._user_repo.find_by_id(user_id)
            if user is None:
                raise UserCreationFailed("User creation failed")
            self._db_session.commit()
        except Exception:
            self._db_session.rollback()
            raise

        principal = AuthenticatedPrincipal(
            name=user.external_id, authorities=user.authorities
        )
        token = self._token_codec.issue(principal)
        logger.bind(openid=external_id, user_id=user.id).info("user.logged_in")
        return token
