"""Broker-wide authorization state."""

from __future__ import annotations

import asyncio
import logging
import threading
from enum import Enum
from typing import Optional

from .authority import ServiceAuthority
from .config import GuardianConfig
from .errors import (
    AuthorityUnavailable,
    MalformedAuthResponse,
    ServiceNotAuthorized,
    UpstreamError,
)
from .models import AuthorityGrant
from .utils.retry import call_upstream

logger = logging.getLogger(__name__)

_UNSET = object()


class AuthState(str, Enum):
    UNAUTHORIZED = "unauthorized"
    AUTHORIZED = "authorized"


class GuardianSession:
    """Holds the service token that admits the broker to its collaborators.

    The token starts unset and is only ever replaced by the grant of a
    successful exchange with the service authority. Exchanges are
    serialized; readers never wait on an in-flight exchange and see either
    the previous token or the new one.
    """

    def __init__(self, config: GuardianConfig, authority: ServiceAuthority) -> None:
        self.config = config
        self._authority = authority
        self._service_token: object = _UNSET
        self._state_lock = threading.Lock()
        self._exchange_lock = asyncio.Lock()

    # ------------------------------------------------------------------
    # Readers
    @property
    def state(self) -> AuthState:
        with self._state_lock:
            return AuthState.UNAUTHORIZED if self._service_token is _UNSET else AuthState.AUTHORIZED

    def is_authorized(self) -> bool:
        return self.state is AuthState.AUTHORIZED

    def service_token(self) -> Optional[str]:
        """Return the current service token, or ``None`` while unset."""
        with self._state_lock:
            token = self._service_token
        return None if token is _UNSET else token  # type: ignore[return-value]

    def require_authorized(self) -> None:
        if not self.is_authorized():
            raise ServiceNotAuthorized()

    # ------------------------------------------------------------------
    # Transition
    async def exchange_secret(self, secret_id: str) -> AuthorityGrant:
        """Exchange ``secret_id`` and install the resulting service token.

        Nothing is installed unless the authority returns a usable grant.
        """
        async with self._exchange_lock:
            try:
                grant = await call_upstream(
                    "service_authority",
                    "exchange",
                    lambda: self._authority.exchange(secret_id, self.config.role_id),
                    timeout=self.config.timeouts.upstream,
                )
            except UpstreamError as exc:
                raise AuthorityUnavailable(f"service authority failed: {exc.message}") from exc
            if not isinstance(grant, AuthorityGrant) or not grant.token:
                raise MalformedAuthResponse("service authority returned no token")
            self._install(grant)
            return grant

    def _install(self, grant: AuthorityGrant) -> None:
        with self._state_lock:
            replaced = self._service_token is not _UNSET
            self._service_token = grant.token
        logger.info(
            f"Service token {'replaced' if replaced else 'installed'}"
            f" (lease={grant.lease_duration}s, policies={grant.policies})"
        )
