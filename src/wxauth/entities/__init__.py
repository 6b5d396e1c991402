"""Domain entities and their persistence models."""

from wxauth.entities.core.user import LocalUser, UserRepository, UserTable

__all__ = ["LocalUser", "UserRepository", "UserTable"]
