"""Identity provider capability interface."""

from __future__ import annotations

from typing import Optional, Protocol

from ..models import AccountStatus, UserRecord


class IdentityProvider(Protocol):
    """Protocol for delegated end-user authentication backends."""

    async def login(self, username: str, password: str) -> Optional[str]:
        """Return a session token, or ``None`` if the provider rejects the login.

        Unknown users and wrong passwords must both produce ``None``;
        transport failures raise :class:`~guardian.errors.UpstreamError`.
        """

    async def user_exists(self, username: str) -> AccountStatus:
        """Report whether ``username`` has a directory record."""

    async def create_user(self, record: UserRecord) -> None:
        """Create or update the directory record for ``record.username``."""
