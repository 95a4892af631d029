"""The ``login`` operation."""

from __future__ import annotations

import logging

from ..config import GuardianConfig
from ..errors import (
    DirectoryLookupFailed,
    IdentityProviderUnavailable,
    InvalidCredentials,
    UpstreamError,
)
from ..identity import IdentityProvider
from ..models import AccountStatus, is_valid_username
from ..session import GuardianSession
from ..utils import call_upstream
from .provisioning import Provisioner

logger = logging.getLogger(__name__)


class LoginHandler:
    """Authenticates end users through the identity provider.

    A first successful login doubles as enrollment. Every credential
    failure, whatever its cause, surfaces as the same
    :class:`~guardian.errors.InvalidCredentials`.
    """

    def __init__(
        self,
        config: GuardianConfig,
        session: GuardianSession,
        identity: IdentityProvider,
        provisioner: Provisioner,
    ) -> None:
        self._config = config
        self._session = session
        self._identity = identity
        self._provisioner = provisioner

    async def login(self, username: str, password: str) -> str:
        self._session.require_authorized()
        if not is_valid_username(username) or not isinstance(password, str) or not password:
            raise InvalidCredentials()

        try:
            token = await call_upstream(
                "identity_provider",
                "login",
                lambda: self._identity.login(username, password),
                timeout=self._config.timeouts.upstream,
            )
        except UpstreamError as exc:
            raise IdentityProviderUnavailable(f"identity provider login failed: {exc.message}") from exc
        if not token:
            logger.info(f"Login rejected for {username}")
            raise InvalidCredentials()

        status = await self._account_status(username)
        if status is AccountStatus.ABSENT:
            address = await self._provisioner.provision_user(username)
            logger.info(f"First login for {username}, provisioned {address}")
        elif status is AccountStatus.PRESENT:
            # A directory record without a key is an enrollment cut short.
            await self._provisioner.provision_user(username, registered=True)
        else:
            raise DirectoryLookupFailed(f"could not determine whether {username} is enrolled")

        logger.info(f"User {username} logged in")
        return token

    async def _account_status(self, username: str) -> AccountStatus:
        try:
            status = await call_upstream(
                "identity_provider",
                "user_exists",
                lambda: self._identity.user_exists(username),
                timeout=self._config.timeouts.upstream,
                retry_on_timeout=True,
                backoff=self._config.timeouts.retry_backoff,
            )
        except UpstreamError as exc:
            logger.warning(f"Directory lookup for {username} failed: {exc.message}")
            return AccountStatus.UNKNOWN
        return AccountStatus(status)
