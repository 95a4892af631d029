"""Guardian: Ethereum signing broker for IdP-authenticated end users."""

from .backend import GuardianBackend, Operation
from .broker import GuardianBroker, build_broker
from .config import GuardianConfig, load_config
from .errors import GuardianError
from .models import AccountStatus, KeyRecord, TokenMetadata, UserRecord
from .session import AuthState, GuardianSession

__version__ = "0.1.0"
__all__ = [
    "AccountStatus",
    "AuthState",
    "GuardianBackend",
    "GuardianBroker",
    "GuardianConfig",
    "GuardianError",
    "GuardianSession",
    "KeyRecord",
    "Operation",
    "TokenMetadata",
    "UserRecord",
    "build_broker",
    "load_config",
]
