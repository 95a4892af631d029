"""The ``authorize`` operation."""

from __future__ import annotations

import logging

from ..errors import AuthorizationError, InvalidSecret
from ..session import GuardianSession

logger = logging.getLogger(__name__)


class AuthorizationHandler:
    """Admits the calling service by exchanging its secret id."""

    def __init__(self, session: GuardianSession) -> None:
        self._session = session

    async def authorize(self, secret_id: str) -> None:
        if not isinstance(secret_id, str) or not secret_id.strip():
            raise InvalidSecret("secret_id must be a non-empty string")
        try:
            await self._session.exchange_secret(secret_id)
        except AuthorizationError as exc:
            logger.warning(f"Authorization failed: {exc.code}")
            raise
        logger.info("Broker authorized by the service authority")
