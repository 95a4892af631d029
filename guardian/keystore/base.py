"""Capability interfaces for key custody storage."""

from __future__ import annotations

from typing import Any, Optional, Protocol, Tuple

from ..constants import DEFAULT_KEY_PREFIX
from ..models import TokenMetadata, is_valid_username

Record = dict[str, Any]


def key_path(username: str, prefix: str = DEFAULT_KEY_PREFIX) -> str:
    """Return the storage path of ``username``'s key record."""
    if not is_valid_username(username):
        raise ValueError("username must be a single non-empty path segment")
    return f"{prefix}/{username}"


class KeyStore(Protocol):
    """Protocol for key record storage backends."""

    async def get(self, path: str) -> Optional[Record]:
        """Return the record stored at ``path`` or ``None``."""

    async def put(self, path: str, record: Record) -> None:
        """Create or replace the record at ``path``."""

    async def create_if_absent(self, path: str, record: Record) -> Tuple[Record, bool]:
        """Atomically store ``record`` unless ``path`` is taken.

        Returns the record now stored at ``path`` and whether this call
        created it.
        """


class TokenLookup(Protocol):
    """Resolves session tokens issued by the identity provider."""

    async def lookup_token(self, token: str) -> Optional[TokenMetadata]:
        """Return the token's metadata, or ``None`` if it is not valid."""
