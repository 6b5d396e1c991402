"""Authenticated principal reconstructed from a verified token."""

from collections.abc import Iterable

from pydantic import BaseModel, ConfigDict, Field, field_validator


def unique_authorities(values: Iterable[str]) -> tuple[str, ...]:
    """Drop blanks and duplicates while keeping first-seen order."""
    seen: set[str] = set()
    ordered: list[str] = []
    for value in values:
        item = value.strip()
        if item and item not in seen:
            seen.add(item)
            ordered.append(item)
    return tuple(ordered)


class AuthenticatedPrincipal(BaseModel):
    """Identity attached to a single request.

    ``name`` is the WeChat openid the token was issued for. The principal is
    never persisted and is not re-checked against the user store.
    """

    model_config = ConfigDict(frozen=True)

    name: str = Field(min_length=1)
    authorities: tuple[str, ...] = ()

    @field_validator("authorities", mode="before")
    @classmethod
    def _normalize_authorities(cls, value: object) -> tuple[str, ...]:
        if isinstance(value, str):
            value = [value]
        if not isinstance(value, (list, tuple, set, frozenset)):
            raise ValueError("authorities must be a list of strings")
        if not all(isinstance(item, str) for item in value):
            raise ValueError("authorities must be a list of strings")
        return unique_authorities(value)

    def has_authority(self, authority: str) -> bool:
        return authority in self.authorities
