"""Identity provider backed by Vault's Okta auth method."""

from __future__ import annotations

import asyncio
import logging
from typing import Optional
from urllib.parse import urlparse

from ..errors import UpstreamError
from ..models import AccountStatus, UserRecord
from ..vault import VaultClient, VaultError, segment
from .base import IdentityProvider

logger = logging.getLogger(__name__)


def split_okta_url(okta_url: str) -> tuple[str, str]:
    """Split an Okta org URL into Vault's ``(org_name, base_url)`` pair.

    ``https://acme.okta.com`` becomes ``("acme", "okta.com")``.
    """
    host = urlparse(okta_url).hostname if "://" in okta_url else okta_url.split("/")[0]
    if not host or "." not in host:
        raise ValueError(f"not an Okta org URL: {okta_url!r}")
    org_name, base_url = host.split(".", 1)
    return org_name, base_url


class VaultOktaIdentityProvider(IdentityProvider):
    """Delegates logins to Okta through Vault and keeps user mappings there.

    Logins are sent without the broker's service token, so the session token
    Vault returns carries only the end user's own policies. Directory reads
    and writes use the service token.
    """

    def __init__(
        self,
        client: VaultClient,
        mount: str = "okta",
        okta_url: Optional[str] = None,
        okta_token: Optional[str] = None,
    ) -> None:
        self._client = client
        self._mount = mount.strip("/")
        self._okta_url = okta_url
        self._okta_token = okta_token
        self._configured = False
        self._configure_lock = asyncio.Lock()

    async def login(self, username: str, password: str) -> Optional[str]:
        try:
            body = await self._client.write(
                f"auth/{self._mount}/login/{segment(username)}",
                {"password": password},
                authenticated=False,
            )
        except VaultError as exc:
            if exc.status in (400, 401, 403):
                return None
            raise
        token = (body.get("auth") or {}).get("client_token")
        if not token:
            raise UpstreamError("vault-okta", "login succeeded without a client token")
        return token

    async def user_exists(self, username: str) -> AccountStatus:
        try:
            body = await self._client.read(f"auth/{self._mount}/users/{segment(username)}")
        except UpstreamError as exc:
            logger.warning(f"Okta user lookup for {username} failed: {exc.message}")
            return AccountStatus.UNKNOWN
        return AccountStatus.ABSENT if body is None else AccountStatus.PRESENT

    async def create_user(self, record: UserRecord) -> None:
        await self._ensure_configured()
        await self._client.write(
            f"auth/{self._mount}/users/{segment(record.username)}",
            {"groups": sorted(record.groups), "policies": sorted(record.policies)},
        )

    async def _ensure_configured(self) -> None:
        """Point the Okta mount at the configured org before the first write."""
        if self._configured or not (self._okta_url and self._okta_token):
            return
        async with self._configure_lock:
            if self._configured:
                return
            org_name, base_url = split_okta_url(self._okta_url)
            await self._client.write(
                f"auth/{self._mount}/config",
                {"org_name": org_name, "base_url": base_url, "api_token": self._okta_token},
            )
            self._configured = True
            logger.info(f"Configured Okta auth mount {self._mount} for org {org_name}")
