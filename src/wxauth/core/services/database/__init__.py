"""Database engine and session management."""

from .db_session import DbSessionService

__all__ = ["DbSessionService"]
