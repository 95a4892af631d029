"""In-memory service authority for tests and local development."""

from __future__ import annotations

import hmac
import secrets
from typing import Iterable

from ..errors import InvalidSecret
from ..models import AuthorityGrant
from .base import ServiceAuthority


class InMemoryServiceAuthority(ServiceAuthority):
    """Accepts a fixed set of secret ids for a single role."""

    def __init__(self, secret_ids: Iterable[str] = (), role_id: str = "") -> None:
        self._secret_ids = set(secret_ids)
        self._role_id = role_id
        self.issued: list[str] = []

    def add_secret_id(self, secret_id: str) -> None:
        self._secret_ids.add(secret_id)

    async def exchange(self, secret_id: str, role_id: str) -> AuthorityGrant:
        if self._role_id and not hmac.compare_digest(role_id, self._role_id):
            raise InvalidSecret(f"role {role_id!r} is not registered")
        if not any(hmac.compare_digest(secret_id, known) for known in self._secret_ids):
            raise InvalidSecret("secret id rejected by the service authority")
        token = f"hvs.{secrets.token_urlsafe(24)}"
        self.issued.append(token)
        return AuthorityGrant(token=token, lease_duration=3600, policies=["guardian"])
