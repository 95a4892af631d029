"""Identity provider backends."""

from __future__ import annotations

from typing import Optional

from ..config import GuardianConfig, load_config
from ..keystore.inmemory import InMemoryTokenStore
from ..vault import VaultClient
from .base import IdentityProvider
from .inmemory import InMemoryIdentityProvider
from .vault_okta import VaultOktaIdentityProvider, split_okta_url


def get_identity_provider(
    config: Optional[GuardianConfig] = None,
    vault: Optional[VaultClient] = None,
    tokens: Optional[InMemoryTokenStore] = None,
) -> IdentityProvider:
    """Factory function to get the configured identity provider."""

    config = config or load_config()
    backend = config.backends.identity

    if backend == "inmemory":
        return InMemoryIdentityProvider(tokens or InMemoryTokenStore())
    elif backend == "vault-okta":
        if vault is None:
            raise ValueError("vault-okta identity provider requires a VaultClient")
        okta_token = config.idp_api_token.get_secret_value() if config.idp_api_token else None
        return VaultOktaIdentityProvider(
            vault,
            mount=config.vault.okta_mount,
            okta_url=config.idp_base_url,
            okta_token=okta_token,
        )
    else:
        raise ValueError(f"Unsupported identity backend: {backend}")


__all__ = [
    "IdentityProvider",
    "InMemoryIdentityProvider",
    "VaultOktaIdentityProvider",
    "get_identity_provider",
    "split_okta_url",
]
