"""Service authority capability interface."""

from __future__ import annotations

from typing import Protocol

from ..models import AuthorityGrant


class ServiceAuthority(Protocol):
    """Issues service tokens in exchange for a pre-shared secret id."""

    async def exchange(self, secret_id: str, role_id: str) -> AuthorityGrant:
        """Exchange ``secret_id`` for a service token.

        Raises:
            InvalidSecret: the authority rejected the secret.
            AuthorityUnavailable: the authority could not be reached.
            MalformedAuthResponse: success without usable token data.
        """
