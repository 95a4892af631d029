"""In-memory identity provider for tests and local development."""

from __future__ import annotations

import hashlib
import hmac
import os
from typing import Dict, Optional

from ..keystore.inmemory import InMemoryTokenStore
from ..models import AccountStatus, UserRecord
from .base import IdentityProvider


def _hash_password(password: str, salt: bytes) -> bytes:
    return hashlib.pbkdf2_hmac("sha256", password.encode(), salt, 10_000)


class InMemoryIdentityProvider(IdentityProvider):
    """Keeps IdP accounts and directory records in local memory.

    ``accounts`` plays the role of the upstream IdP (who may log in);
    ``users`` are the directory records the broker creates on enrollment.
    Successful logins issue tokens through the shared ``tokens`` registry.
    """

    _DUMMY_SALT = b"\x00" * 16

    def __init__(self, tokens: InMemoryTokenStore) -> None:
        self._tokens = tokens
        self._accounts: Dict[str, tuple[bytes, bytes]] = {}
        self.users: Dict[str, UserRecord] = {}
        self.create_calls = 0

    def register_account(self, username: str, password: str) -> None:
        salt = os.urandom(16)
        self._accounts[username] = (salt, _hash_password(password, salt))

    async def login(self, username: str, password: str) -> Optional[str]:
        salt, expected = self._accounts.get(username, (self._DUMMY_SALT, b""))
        # Hash even for unknown users so both rejections cost the same.
        candidate = _hash_password(password, salt)
        if not expected or not hmac.compare_digest(candidate, expected):
            return None
        record = self.users.get(username)
        policies = sorted(record.policies) if record else []
        return self._tokens.issue(username, policies=policies)

    async def user_exists(self, username: str) -> AccountStatus:
        return AccountStatus.PRESENT if username in self.users else AccountStatus.ABSENT

    async def create_user(self, record: UserRecord) -> None:
        self.create_calls += 1
        self.users[record.username] = record
