"""Guardian broker: the operation surface exposed to calling services."""

from __future__ import annotations

import logging
from typing import Optional

from .authority import ServiceAuthority, get_service_authority
from .config import GuardianConfig, load_config
from .handlers import AuthorizationHandler, LoginHandler, Provisioner, SigningHandler
from .identity import IdentityProvider, get_identity_provider
from .keystore import InMemoryTokenStore, KeyStore, TokenLookup, VaultTokenLookup, get_keystore
from .session import GuardianSession
from .signing import Secp256k1Primitive, SigningPrimitive
from .vault import VaultClient

logger = logging.getLogger(__name__)


class GuardianBroker:
    """Wires the session and handlers around a set of collaborators."""

    def __init__(
        self,
        config: GuardianConfig,
        keystore: KeyStore,
        tokens: TokenLookup,
        identity: IdentityProvider,
        authority: ServiceAuthority,
        primitive: Optional[SigningPrimitive] = None,
        vault: Optional[VaultClient] = None,
    ) -> None:
        self.config = config
        self.keystore = keystore
        self.tokens = tokens
        self.identity = identity
        self.authority = authority
        self.primitive = primitive or Secp256k1Primitive()
        self._vault = vault

        self.session = GuardianSession(config, authority)
        self.provisioner = Provisioner(config, keystore, identity, self.primitive)
        self._authorization = AuthorizationHandler(self.session)
        self._login = LoginHandler(config, self.session, identity, self.provisioner)
        self._signing = SigningHandler(config, self.session, keystore, tokens, self.primitive)

    async def authorize(self, secret_id: str) -> None:
        await self._authorization.authorize(secret_id)

    async def login(self, username: str, password: str) -> str:
        return await self._login.login(username, password)

    async def provision_user(self, username: str) -> str:
        return await self.provisioner.provision_user(username)

    async def get_address(self, session_token: str) -> str:
        return await self._signing.get_address(session_token)

    async def sign(self, session_token: str, raw_digest_hex: str, address_index: int = 0) -> str:
        return await self._signing.sign(session_token, raw_digest_hex, address_index)

    async def aclose(self) -> None:
        if self._vault is not None:
            await self._vault.aclose()


def build_broker(config: Optional[GuardianConfig] = None) -> GuardianBroker:
    """Build a broker from configuration.

    Vault-backed collaborators share one :class:`VaultClient` whose token is
    read from the broker's session on every request.
    """

    config = config or load_config()
    backends = config.backends
    uses_vault = (
        backends.keystore == "vault"
        or backends.identity == "vault-okta"
        or backends.authority == "vault-approle"
    )

    holder: dict[str, GuardianSession] = {}
    vault: Optional[VaultClient] = None
    if uses_vault:
        vault = VaultClient(
            config.vault.address,
            token_source=lambda: holder["session"].service_token() if "session" in holder else None,
            namespace=config.vault.namespace,
        )

    tokens: TokenLookup
    token_store: Optional[InMemoryTokenStore] = None
    if backends.identity == "vault-okta":
        tokens = VaultTokenLookup(vault)  # type: ignore[arg-type]
    else:
        token_store = InMemoryTokenStore()
        tokens = token_store

    broker = GuardianBroker(
        config,
        keystore=get_keystore(config, vault=vault),
        tokens=tokens,
        identity=get_identity_provider(config, vault=vault, tokens=token_store),
        authority=get_service_authority(config, vault=vault),
        vault=vault,
    )
    holder["session"] = broker.session
    logger.info(
        f"Guardian broker ready (keystore={backends.keystore}, "
        f"identity={backends.identity}, authority={backends.authority})"
    )
    return broker
