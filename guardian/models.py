"""Data models shared by the broker and its collaborators."""

from __future__ import annotations

from enum import Enum
from typing import Any, FrozenSet, Optional

from pydantic import BaseModel, ConfigDict, Field, SecretStr, field_validator

from .constants import ENDUSER_GROUP, MAX_USERNAME_LENGTH


def is_valid_username(username: Optional[str]) -> bool:
    """Return ``True`` if ``username`` maps onto exactly one key path."""
    if not username or len(username) > MAX_USERNAME_LENGTH:
        return False
    if username in (".", ".."):
        return False
    return not any(ch == "/" or ch.isspace() for ch in username)


class AccountStatus(str, Enum):
    """Outcome of asking the identity provider whether an account exists."""

    PRESENT = "present"
    ABSENT = "absent"
    UNKNOWN = "unknown"  # the directory could not be consulted


class UserRecord(BaseModel):
    """Directory entry for an enrolled end user."""

    model_config = ConfigDict(frozen=True)

    username: str
    policies: FrozenSet[str] = frozenset()
    groups: FrozenSet[str] = frozenset({ENDUSER_GROUP})

    @field_validator("username")
    @classmethod
    def _check_username(cls, value: str) -> str:
        if not is_valid_username(value):
            raise ValueError("username must be a single non-empty path segment")
        return value

    @field_validator("groups")
    @classmethod
    def _check_groups(cls, value: FrozenSet[str]) -> FrozenSet[str]:
        if ENDUSER_GROUP not in value:
            raise ValueError(f"groups must include {ENDUSER_GROUP!r}")
        return value


class KeyRecord(BaseModel):
    """A user's custody key as persisted in the key store.

    ``private_key_hex`` is a :class:`~pydantic.SecretStr` so that printing,
    logging or serializing the record never reveals it.
    """

    model_config = ConfigDict(frozen=True)

    private_key_hex: SecretStr
    public_address_hex: str

    def to_document(self) -> dict[str, str]:
        """Return the storable form of the record."""
        return {
            "privKeyHex": self.private_key_hex.get_secret_value(),
            "publicAddressHex": self.public_address_hex,
        }

    @classmethod
    def from_document(cls, document: dict[str, Any]) -> "KeyRecord":
        return cls(
            private_key_hex=document["privKeyHex"],
            public_address_hex=document["publicAddressHex"],
        )


class TokenMetadata(BaseModel):
    """Metadata attached to a session token by the key store's auth layer."""

    username: Optional[str] = None
    policies: list[str] = Field(default_factory=list)
    ttl: Optional[int] = None


class AuthorityGrant(BaseModel):
    """Service token issued by the service authority."""

    token: str
    lease_duration: Optional[int] = None
    policies: list[str] = Field(default_factory=list)
