"""Service authority backed by Vault's AppRole auth method."""

from __future__ import annotations

import logging
from typing import Optional

from pydantic import ValidationError

from ..errors import AuthorityUnavailable, InvalidSecret, MalformedAuthResponse, UpstreamError
from ..models import AuthorityGrant
from ..vault import VaultClient, VaultError
from .base import ServiceAuthority

logger = logging.getLogger(__name__)


class VaultAppRoleAuthority(ServiceAuthority):
    """Exchanges AppRole secret ids for Vault tokens.

    ``bootstrap_token`` is the persisted guardian token; when set it is sent
    with the login request, otherwise the request is unauthenticated.
    """

    def __init__(
        self,
        client: VaultClient,
        mount: str = "approle",
        bootstrap_token: Optional[str] = None,
    ) -> None:
        self._client = client
        self._mount = mount.strip("/")
        self._bootstrap_token = bootstrap_token

    async def exchange(self, secret_id: str, role_id: str) -> AuthorityGrant:
        try:
            body = await self._client.write(
                f"auth/{self._mount}/login",
                {"role_id": role_id, "secret_id": secret_id},
                authenticated=False,
                token=self._bootstrap_token,
            )
        except VaultError as exc:
            if exc.status is not None and 400 <= exc.status < 500:
                raise InvalidSecret(f"AppRole login rejected (HTTP {exc.status})") from exc
            raise AuthorityUnavailable(f"AppRole login failed: {exc.message}") from exc
        except UpstreamError as exc:
            raise AuthorityUnavailable(f"AppRole login failed: {exc.message}") from exc

        auth = body.get("auth")
        if not auth or not auth.get("client_token"):
            raise MalformedAuthResponse("no auth info returned by AppRole login")
        try:
            return AuthorityGrant(
                token=auth["client_token"],
                lease_duration=auth.get("lease_duration"),
                policies=list(auth.get("policies") or []),
            )
        except ValidationError as exc:
            raise MalformedAuthResponse("AppRole auth payload has unexpected shape") from exc
