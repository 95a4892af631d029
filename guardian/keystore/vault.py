"""Vault-backed key store (KV version 2) and token lookup."""

from __future__ import annotations

import logging
from typing import Optional, Tuple

from ..models import TokenMetadata
from ..vault import VaultClient, VaultError, segment
from .base import KeyStore, Record, TokenLookup

logger = logging.getLogger(__name__)


class VaultKeyStore(KeyStore):
    """Store key records in a KV v2 secrets engine.

    ``create_if_absent`` relies on check-and-set with ``cas=0``, which Vault
    only accepts when the path has never been written.
    """

    def __init__(self, client: VaultClient, mount: str = "secrets") -> None:
        self._client = client
        self._mount = mount.strip("/")

    def _data_path(self, path: str) -> str:
        return f"{self._mount}/data/" + "/".join(segment(p) for p in path.split("/"))

    async def get(self, path: str) -> Optional[Record]:
        body = await self._client.read(self._data_path(path))
        if body is None:
            return None
        data = (body.get("data") or {}).get("data")
        return dict(data) if data else None

    async def put(self, path: str, record: Record) -> None:
        await self._client.write(self._data_path(path), {"data": record})

    async def create_if_absent(self, path: str, record: Record) -> Tuple[Record, bool]:
        try:
            await self._client.write(
                self._data_path(path), {"options": {"cas": 0}, "data": record}
            )
            return dict(record), True
        except VaultError as exc:
            if exc.status != 400 or not any("check-and-set" in e for e in exc.errors):
                raise
        logger.info(f"Key record at {path} already exists, reading it back")
        existing = await self.get(path)
        if existing is None:
            # Soft-deleted versions still block cas=0.
            raise VaultError(409, [f"{path} exists but has no readable version"])
        return existing, False


class VaultTokenLookup(TokenLookup):
    """Resolve session tokens through ``auth/token/lookup``."""

    def __init__(self, client: VaultClient) -> None:
        self._client = client

    async def lookup_token(self, token: str) -> Optional[TokenMetadata]:
        try:
            body = await self._client.write("auth/token/lookup", {"token": token})
        except VaultError as exc:
            # Vault answers 403 for unknown or expired tokens.
            if exc.status in (400, 403):
                return None
            raise
        data = body.get("data") or {}
        meta = data.get("meta") or {}
        return TokenMetadata(
            username=meta.get("username"),
            policies=list(data.get("policies") or []),
            ttl=data.get("ttl"),
        )
