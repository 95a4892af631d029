"""Service authority backends."""

from __future__ import annotations

from typing import Optional

from ..config import GuardianConfig, load_config
from ..vault import VaultClient
from .base import ServiceAuthority
from .inmemory import InMemoryServiceAuthority
from .vault_approle import VaultAppRoleAuthority


def get_service_authority(
    config: Optional[GuardianConfig] = None, vault: Optional[VaultClient] = None
) -> ServiceAuthority:
    """Factory function to get the configured service authority."""

    config = config or load_config()
    backend = config.backends.authority

    if backend == "inmemory":
        return InMemoryServiceAuthority(
            (s.get_secret_value() for s in config.inmemory.secret_ids),
            role_id=config.role_id,
        )
    elif backend == "vault-approle":
        if vault is None:
            raise ValueError("vault-approle authority requires a VaultClient")
        token = config.service_authority_token
        return VaultAppRoleAuthority(
            vault,
            mount=config.vault.approle_mount,
            bootstrap_token=token.get_secret_value() if token else None,
        )
    else:
        raise ValueError(f"Unsupported service authority backend: {backend}")


__all__ = [
    "ServiceAuthority",
    "InMemoryServiceAuthority",
    "VaultAppRoleAuthority",
    "get_service_authority",
]
