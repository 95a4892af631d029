"""First-login enrollment: directory record plus signing key."""

from __future__ import annotations

import asyncio
import logging
from typing import Optional

from pydantic import ValidationError

from ..config import GuardianConfig
from ..errors import (
    DirectoryRegistrationFailed,
    KeyPersistenceFailed,
    ProvisioningError,
    UpstreamError,
    UpstreamTimeout,
)
from ..identity import IdentityProvider
from ..keystore import KeyStore, key_path
from ..models import KeyRecord, UserRecord
from ..signing import SigningPrimitive
from ..utils import KeyedLocks, call_upstream

logger = logging.getLogger(__name__)


class Provisioner:
    """Enrolls users on first login.

    Enrollment for one username is serialized in-process by a keyed lock and
    across processes by the key store's ``create_if_absent``. Whoever loses
    either race returns the address already on record instead of writing a
    second key.
    """

    def __init__(
        self,
        config: GuardianConfig,
        keystore: KeyStore,
        identity: IdentityProvider,
        primitive: SigningPrimitive,
    ) -> None:
        self._config = config
        self._keystore = keystore
        self._identity = identity
        self._primitive = primitive
        self._locks = KeyedLocks()

    async def provision_user(self, username: str, registered: bool = False) -> str:
        """Return the address of ``username``, enrolling the user if needed.

        ``registered`` skips the directory write for a user the identity
        provider already knows, leaving only the key to be created.
        """
        try:
            path = key_path(username, self._config.backends.key_prefix)
        except ValueError as exc:
            raise ProvisioningError(str(exc)) from None

        async with self._locks.hold(username):
            existing = await self._read_existing(username, path)
            if existing is not None:
                logger.info(f"User {username} already has a key record, skipping enrollment")
                return existing.public_address_hex

            if not registered:
                await self._register(username)
            record = await self._generate(username)
            stored = await self._persist(username, path, record)
            logger.info(f"Enrolled user {username} with address {stored.public_address_hex}")
            return stored.public_address_hex

    # ------------------------------------------------------------------
    async def _read_existing(self, username: str, path: str) -> Optional[KeyRecord]:
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
            raise ProvisioningError(f"could not check key record for {username}: {exc.message}") from exc
        if document is None:
            return None
        return self._decode(username, document)

    async def _register(self, username: str) -> None:
        record = UserRecord(username=username)
        try:
            await call_upstream(
                "identity_provider",
                "create_user",
                lambda: self._identity.create_user(record),
                timeout=self._config.timeouts.upstream,
            )
        except UpstreamTimeout:
            raise
        except Exception as exc:
            logger.error(f"Directory registration failed for {username}: {type(exc).__name__}")
            raise DirectoryRegistrationFailed(
                f"could not register {username} with the identity provider"
            ) from exc

    async def _generate(self, username: str) -> KeyRecord:
        try:
            private_key_hex, address = await call_upstream(
                "signing_primitive",
                "generate_keypair",
                lambda: asyncio.to_thread(self._primitive.generate_keypair),
                timeout=self._config.timeouts.upstream,
            )
            return KeyRecord(private_key_hex=private_key_hex, public_address_hex=address)
        except UpstreamTimeout:
            raise
        except Exception:
            logger.error(f"Key generation failed for {username}")
            raise ProvisioningError(f"could not generate a key for {username}") from None

    async def _persist(self, username: str, path: str, record: KeyRecord) -> KeyRecord:
        # The generated key only ever leaves this frame inside the write below.
        try:
            document, created = await call_upstream(
                "keystore",
                "create_if_absent",
                lambda: self._keystore.create_if_absent(path, record.to_document()),
                timeout=self._config.timeouts.upstream,
            )
        except UpstreamTimeout:
            raise
        except Exception as exc:
            detail = exc.message if isinstance(exc, UpstreamError) else type(exc).__name__
            logger.error(f"Persisting key record for {username} failed: {detail}")
            raise KeyPersistenceFailed(
                f"could not persist key record for {username}: {detail}"
            ) from None
        if not created:
            logger.info(f"Concurrent enrollment of {username} won the race, discarding new key")
        return self._decode(username, document)

    @staticmethod
    def _decode(username: str, document: dict) -> KeyRecord:
        try:
            return KeyRecord.from_document(document)
        except (KeyError, TypeError, ValidationError):
            raise KeyPersistenceFailed(f"key record for {username} is malformed") from None
