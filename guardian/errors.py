"""Error taxonomy raised by the broker.

Every error carries a stable ``code`` for callers and a ``retryable`` flag.
Messages are written for operators: they name usernames, paths and upstream
systems but never include tokens, passwords or key material.
"""

from __future__ import annotations

from typing import Optional


class GuardianError(Exception):
    """Base class for all broker errors."""

    code = "guardian_error"
    retryable = False

    def __init__(self, message: str = "") -> None:
        super().__init__(message or self.code)
        self.message = message or self.code

    def to_dict(self) -> dict:
        return {"code": self.code, "message": self.message, "retryable": self.retryable}


class UpstreamError(GuardianError):
    """A collaborator failed at the transport or protocol level.

    Raised by concrete collaborators; handlers wrap it into the specific
    error of the operation being performed.
    """

    code = "upstream_error"

    def __init__(
        self, collaborator: str, message: str, status: Optional[int] = None
    ) -> None:
        super().__init__(f"{collaborator}: {message}")
        self.collaborator = collaborator
        self.status = status


class UpstreamTimeout(GuardianError):
    code = "upstream_timeout"
    retryable = True

    def __init__(self, collaborator: str, operation: str, timeout: float) -> None:
        super().__init__(
            f"{collaborator} did not answer {operation} within {timeout:g}s"
        )
        self.collaborator = collaborator
        self.operation = operation
        self.timeout = timeout


# ----------------------------------------------------------------------
# authorize


class AuthorizationError(GuardianError):
    code = "authorization_error"


class InvalidSecret(AuthorizationError):
    code = "invalid_secret"


class AuthorityUnavailable(AuthorizationError):
    code = "authority_unavailable"
    retryable = True


class MalformedAuthResponse(AuthorizationError):
    code = "malformed_auth_response"


# ----------------------------------------------------------------------
# login / enrollment


class LoginError(GuardianError):
    code = "login_error"


class ServiceNotAuthorized(LoginError):
    code = "service_not_authorized"

    def __init__(self, message: str = "") -> None:
        super().__init__(message or "broker has not been authorized by the service authority")


class InvalidCredentials(LoginError):
    code = "invalid_credentials"

    def __init__(self, message: str = "") -> None:
        # One fixed message for unknown users and wrong passwords alike.
        super().__init__("invalid username or password")


class IdentityProviderUnavailable(LoginError):
    code = "identity_provider_unavailable"
    retryable = True


class DirectoryLookupFailed(LoginError):
    code = "directory_lookup_failed"
    retryable = True


class ProvisioningError(LoginError):
    code = "provisioning_error"


class DirectoryRegistrationFailed(ProvisioningError):
    code = "directory_registration_failed"


class KeyPersistenceFailed(ProvisioningError):
    code = "key_persistence_failed"


# ----------------------------------------------------------------------
# get-address / sign


class ResolutionError(GuardianError):
    code = "resolution_error"


class SigningError(GuardianError):
    code = "signing_error"


class InvalidToken(ResolutionError, SigningError):
    code = "invalid_token"


class NoKeyProvisioned(ResolutionError, SigningError):
    code = "no_key_provisioned"


class KeyStoreUnavailable(ResolutionError, SigningError):
    code = "keystore_unavailable"
    retryable = True


class UnsupportedAddressIndex(SigningError):
    code = "unsupported_address_index"


class InvalidDigestEncoding(SigningError):
    code = "invalid_digest_encoding"


class SignatureFailed(SigningError):
    code = "signature_failed"


# ----------------------------------------------------------------------
# request routing


class InvalidRequest(GuardianError):
    code = "invalid_request"


class UnsupportedOperation(GuardianError):
    code = "unsupported_operation"


__all__ = [
    "GuardianError",
    "UpstreamError",
    "UpstreamTimeout",
    "AuthorizationError",
    "InvalidSecret",
    "AuthorityUnavailable",
    "MalformedAuthResponse",
    "LoginError",
    "ServiceNotAuthorized",
    "InvalidCredentials",
    "IdentityProviderUnavailable",
    "DirectoryLookupFailed",
    "ProvisioningError",
    "DirectoryRegistrationFailed",
    "KeyPersistenceFailed",
    "ResolutionError",
    "SigningError",
    "InvalidToken",
    "NoKeyProvisioned",
    "KeyStoreUnavailable",
    "UnsupportedAddressIndex",
    "InvalidDigestEncoding",
    "SignatureFailed",
    "InvalidRequest",
    "UnsupportedOperation",
]
