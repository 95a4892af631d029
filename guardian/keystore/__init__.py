"""Key custody storage for Guardian."""

from __future__ import annotations

from typing import Optional

from ..config import GuardianConfig, load_config
from ..vault import VaultClient
from .base import KeyStore, Record, TokenLookup, key_path
from .inmemory import InMemoryKeyStore, InMemoryTokenStore
from .sqlite import SQLiteKeyStore
from .vault import VaultKeyStore, VaultTokenLookup


def get_keystore(
    config: Optional[GuardianConfig] = None, vault: Optional[VaultClient] = None
) -> KeyStore:
    """Factory function to obtain the configured key store.

    The ``vault`` backend needs a :class:`VaultClient`, normally the one the
    broker shares between its collaborators.
    """

    config = config or load_config()
    backend = config.backends.keystore

    if backend == "inmemory":
        return InMemoryKeyStore()
    elif backend == "sqlite":
        return SQLiteKeyStore(config.backends.sqlite_path)
    elif backend == "vault":
        if vault is None:
            raise ValueError("vault key store requires a VaultClient")
        return VaultKeyStore(vault, mount=config.vault.kv_mount)
    else:
        raise ValueError(f"Unsupported key store backend: {backend}")


__all__ = [
    "KeyStore",
    "TokenLookup",
    "Record",
    "key_path",
    "InMemoryKeyStore",
    "InMemoryTokenStore",
    "SQLiteKeyStore",
    "VaultKeyStore",
    "VaultTokenLookup",
    "get_keystore",
]
