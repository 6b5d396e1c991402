from collections.abc import Iterable

from loguru import logger
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from wxauth.core.models.principal import unique_authorities
from wxauth.entities.core.user.entity import LocalUser
from wxauth.entities.core.user.table import DEFAULT_AUTHORITY, UserTable


def parse_authorities(raw: str | None) -> list[str]:
    """Split the stored comma separated authorities column."""
    if not raw:
        return []
    return list(unique_authorities(raw.split(",")))


def format_authorities(authorities: Iterable[str]) -> str:
    return ",".join(unique_authorities(authorities))


class UserRepository:
    """Data-access layer for WeChat users.

    The repository never commits; the caller owns the transaction.
    """

    def __init__(self, session: Session) -> None:
        self._session = session

    def find_id_by_external_id(self, external_id: str) -> int | None:
        statement = select(UserTable.id).where(UserTable.openid == external_id)
        return self._session.exec(statement).first()

    def find_by_id(self, user_id: int) -> LocalUser | None:
        row = self._session.get(UserTable, user_id)
        if row is None:
            return None
        return self._to_entity(row)

    def find_by_external_id(self, external_id: str) -> LocalUser | None:
        statement = select(UserTable).where(UserTable.openid == external_id)
        row = self._session.exec(statement).first()
        if row is None:
            return None
        return self._to_entity(row)

    def insert(self, external_id: str, session_secret: str) -> int:
        """Insert a new user with the default authority and return its id.

        Raises:
            IntegrityError: ``external_id`` is already registered
        """
        row = UserTable(
            openid=external_id, session_key=session_secret, auth=DEFAULT_AUTHORITY
        )
        self._session.add(row)
        self._session.flush()
        return row.id

    def insert_or_fetch(self, external_id: str, session_secret: str) -> int | None:
        """Insert the user, or return the existing id if a concurrent insert won.

        The insert runs inside a savepoint so a unique-constraint violation
        leaves the outer transaction usable.
        """
        try:
            with self._session.begin_nested():
                return self.insert(external_id, session_secret)
        except IntegrityError:
            logger.info("User {} already registered, reusing existing row", external_id)
        return self.find_id_by_external_id(external_id)

    @staticmethod
    def _to_entity(row: UserTable) -> LocalUser:
        return LocalUser(
            id=row.id,
            external_id=row.openid,
            session_secret=row.session_key,
            display_name=row.nickname,
            avatar_ref=row.avatar_url,
            authorities=parse_authorities(row.auth),
        )
