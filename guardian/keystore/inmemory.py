"""In-memory key store and session token registry."""

from __future__ import annotations

import asyncio
import copy
import secrets
from typing import Dict, Iterable, Optional, Tuple

from ..models import TokenMetadata
from .base import KeyStore, Record, TokenLookup


class InMemoryKeyStore(KeyStore):
    """Store key records in local memory.

    Useful for tests or when no durable store is configured. Data is not
    persisted across process restarts.
    """

    def __init__(self) -> None:
        self._records: Dict[str, Record] = {}
        self._lock = asyncio.Lock()

    async def get(self, path: str) -> Optional[Record]:
        record = self._records.get(path)
        return copy.deepcopy(record) if record is not None else None

    async def put(self, path: str, record: Record) -> None:
        async with self._lock:
            self._records[path] = copy.deepcopy(record)

    async def create_if_absent(self, path: str, record: Record) -> Tuple[Record, bool]:
        async with self._lock:
            existing = self._records.get(path)
            if existing is not None:
                return copy.deepcopy(existing), False
            self._records[path] = copy.deepcopy(record)
            return copy.deepcopy(record), True

    def paths(self) -> list[str]:
        return sorted(self._records)


class InMemoryTokenStore(TokenLookup):
    """Issues and resolves opaque session tokens."""

    def __init__(self) -> None:
        self._tokens: Dict[str, TokenMetadata] = {}

    def issue(self, username: str, policies: Iterable[str] = (), ttl: Optional[int] = None) -> str:
        token = f"s.{secrets.token_urlsafe(24)}"
        self._tokens[token] = TokenMetadata(username=username, policies=list(policies), ttl=ttl)
        return token

    def issue_raw(self, metadata: TokenMetadata) -> str:
        """Register a token with arbitrary metadata."""
        token = f"s.{secrets.token_urlsafe(24)}"
        self._tokens[token] = metadata
        return token

    def revoke(self, token: str) -> None:
        self._tokens.pop(token, None)

    async def lookup_token(self, token: str) -> Optional[TokenMetadata]:
        metadata = self._tokens.get(token)
        return metadata.model_copy() if metadata is not None else None
