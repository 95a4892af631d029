"""The ``get-address`` and ``sign`` operations."""

from __future__ import annotations

import asyncio
import logging

from pydantic import ValidationError

from ..config import GuardianConfig
from ..errors import (
    InvalidDigestEncoding,
    InvalidToken,
    KeyStoreUnavailable,
    NoKeyProvisioned,
    SignatureFailed,
    UnsupportedAddressIndex,
    UpstreamError,
    UpstreamTimeout,
)
from ..keystore import KeyStore, TokenLookup, key_path
from ..models import KeyRecord, is_valid_username
from ..session import GuardianSession
from ..signing import SigningPrimitive, parse_digest
from ..utils import call_upstream

logger = logging.getLogger(__name__)


class SigningHandler:
    """Signs digests with the key of the session token's owner.

    The private key is read from the key store, handed to the signing
    primitive and dropped; it is never part of a return value, log line or
    error.
    """

    def __init__(
        self,
        config: GuardianConfig,
        session: GuardianSession,
        keystore: KeyStore,
        tokens: TokenLookup,
        primitive: SigningPrimitive,
    ) -> None:
        self._config = config
        self._session = session
        self._keystore = keystore
        self._tokens = tokens
        self._primitive = primitive

    async def get_address(self, session_token: str) -> str:
        username, record = await self._resolve(session_token)
        logger.debug(f"Resolved address for {username}")
        return record.public_address_hex

    async def sign(self, session_token: str, raw_digest_hex: str, address_index: int = 0) -> str:
        # Argument checks run before any upstream call so they fail the same
        # way for every token.
        if isinstance(address_index, bool) or not isinstance(address_index, int):
            raise UnsupportedAddressIndex("address_index must be an integer")
        if address_index != 0:
            raise UnsupportedAddressIndex(
                f"address_index {address_index} is not supported, only 0 is"
            )
        try:
            digest = parse_digest(raw_digest_hex)
        except ValueError as exc:
            raise InvalidDigestEncoding(str(exc)) from None

        username, record = await self._resolve(session_token)
        try:
            signature = await call_upstream(
                "signing_primitive",
                "sign",
                lambda: asyncio.to_thread(
                    self._primitive.sign,
                    record.private_key_hex.get_secret_value(),
                    digest.hex(),
                ),
                timeout=self._config.timeouts.upstream,
            )
        except UpstreamTimeout:
            raise
        except Exception as exc:
            logger.error(f"Signing failed for {username}: {type(exc).__name__}")
            raise SignatureFailed(f"could not sign digest for {username}") from None

        logger.info(f"Signed digest for {username}")
        return signature

    # ------------------------------------------------------------------
    async def _resolve(self, session_token: str) -> tuple[str, KeyRecord]:
        self._session.require_authorized()
        if not isinstance(session_token, str) or not session_token:
            raise InvalidToken("session token is missing")

        try:
            metadata = await call_upstream(
                "token_lookup",
                "lookup_token",
                lambda: self._tokens.lookup_token(session_token),
                timeout=self._config.timeouts.upstream,
                retry_on_timeout=True,
                backoff=self._config.timeouts.retry_backoff,
            )
        except UpstreamError as exc:
            raise InvalidToken(f"session token lookup failed: {exc.message}") from exc
        if metadata is None:
            raise InvalidToken("session token is not valid")
        username = metadata.username
        if not is_valid_username(username):
            raise InvalidToken("session token carries no username")

        path = key_path(username, self._config.backends.key_prefix)
        try:
            document = await call_upstream(
                "keystore",
                "get",
                lambda: self._keystore.get(path),
                timeout=self._config.timeouts.upstream,
                retry_on_timeout=True,
                backoff=self._config.timeouts.retry_backoff,
            )
        except UpstreamError as exc:
            raise KeyStoreUnavailable(f"could not read key record for {username}: {exc.message}") from exc
        if document is None:
            raise NoKeyProvisioned(f"no key has been provisioned for {username}")
        try:
            return username, KeyRecord.from_document(document)
        except (KeyError, TypeError, ValidationError):
            raise KeyStoreUnavailable(f"key record for {username} is malformed") from None
