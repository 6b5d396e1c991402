"""Core value types."""

from .principal import AuthenticatedPrincipal, unique_authorities
from .provider import ProviderIdentity

__all__ = ["AuthenticatedPrincipal", "ProviderIdentity", "unique_authorities"]
