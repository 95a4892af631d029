"""Operation handlers of the broker."""

from .authorize import AuthorizationHandler
from .login import LoginHandler
from .provisioning import Provisioner
from .signing import SigningHandler

__all__ = ["AuthorizationHandler", "LoginHandler", "Provisioner", "SigningHandler"]
