"""Entity package: User."""

from .entity import LocalUser
from .repository import UserRepository, format_authorities, parse_authorities
from .table import UserTable

__all__ = [
    "LocalUser",
    "UserRepository",
    "UserTable",
    "format_authorities",
    "parse_authorities",
]
