from __future__ import annotations

import os
from typing import Any, Literal, Optional

import yaml
from pydantic import BaseModel, ConfigDict, Field, SecretStr

from .constants import DEFAULT_KEY_PREFIX, ROLE_ID


class VaultConfig(BaseModel):
    """Connection settings for the Vault-backed collaborators."""

    model_config = ConfigDict(frozen=True)

    address: str = "http://127.0.0.1:8200"
    namespace: Optional[str] = None
    kv_mount: str = "secrets"
    okta_mount: str = "okta"
    approle_mount: str = "approle"


class BackendConfig(BaseModel):
    """Selects the concrete collaborator implementations."""

    model_config = ConfigDict(frozen=True)

    keystore: Literal["inmemory", "sqlite", "vault"] = "inmemory"
    identity: Literal["inmemory", "vault-okta"] = "inmemory"
    authority: Literal["inmemory", "vault-approle"] = "inmemory"
    sqlite_path: str = "guardian.db"
    key_prefix: str = DEFAULT_KEY_PREFIX


class TimeoutConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    upstream: float = Field(default=10.0, gt=0)
    retry_backoff: float = Field(default=0.1, ge=0)


class InMemoryConfig(BaseModel):
    """Development-only settings for the in-memory collaborators."""

    model_config = ConfigDict(frozen=True)

    secret_ids: list[SecretStr] = Field(default_factory=list)


class GuardianConfig(BaseModel):
    """Top-level configuration, immutable once loaded.

    The persisted keys ``guardian_token``, ``okta_url`` and ``okta_token``
    populate ``service_authority_token``, ``idp_base_url`` and
    ``idp_api_token``.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    service_authority_token: Optional[SecretStr] = Field(
        default=None, alias="guardian_token"
    )
    idp_base_url: Optional[str] = Field(default=None, alias="okta_url")
    idp_api_token: Optional[SecretStr] = Field(default=None, alias="okta_token")
    role_id: str = ROLE_ID
    backends: BackendConfig = BackendConfig()
    vault: VaultConfig = VaultConfig()
    timeouts: TimeoutConfig = TimeoutConfig()
    inmemory: InMemoryConfig = InMemoryConfig()

    def masked(self) -> dict[str, Any]:
        """Return the configuration as plain data with secrets masked."""
        # SecretStr fields serialize as '**********'.
        return self.model_dump(mode="json", by_alias=True)


_ENV_OVERRIDES = {
    "GUARDIAN_TOKEN": ("guardian_token",),
    "GUARDIAN_OKTA_URL": ("okta_url",),
    "GUARDIAN_OKTA_TOKEN": ("okta_token",),
    "GUARDIAN_VAULT_ADDR": ("vault", "address"),
}


def load_config(path: Optional[str] = None) -> GuardianConfig:
    """Load configuration from YAML file.

    Args:
        path: Optional path to config file. Falls back to GUARDIAN_CONFIG env
            variable or 'guardian.yaml' in the current directory.
    """

    config_path = path or os.getenv("GUARDIAN_CONFIG", "guardian.yaml")
    data: dict[str, Any] = {}
    if os.path.exists(config_path):
        with open(config_path) as f:
            data = yaml.safe_load(f) or {}

    # Overrides are merged before construction since the model is frozen.
    for env_name, keys in _ENV_OVERRIDES.items():
        value = os.getenv(env_name)
        if not value:
            continue
        target = data
        for key in keys[:-1]:
            target = target.setdefault(key, {})
        target[keys[-1]] = value

    return GuardianConfig(**data)
