"""Request routing from ``(operation, path, data)`` onto the broker."""

from __future__ import annotations

import logging
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, Optional, Tuple, Type

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, SecretStr, StrictInt, ValidationError

from .broker import GuardianBroker
from .errors import InvalidRequest, UnsupportedOperation

logger = logging.getLogger(__name__)


class Operation(str, Enum):
    CREATE = "create"
    UPDATE = "update"
    READ = "read"


class _Request(BaseModel):
    model_config = ConfigDict(extra="forbid", hide_input_in_errors=True)


class AuthorizeRequest(_Request):
    secret_id: SecretStr = Field(description="SecretID of the Guardian AppRole.")


class LoginRequest(_Request):
    username: str = Field(
        validation_alias=AliasChoices("username", "okta_username"),
        description="Username of the IdP account, probably an email address.",
    )
    password: SecretStr = Field(
        validation_alias=AliasChoices("password", "okta_password"),
        description="Password for the associated IdP account.",
    )


class AddressRequest(_Request):
    session_token: SecretStr = Field(description="Session token returned by login.")


class SignRequest(AddressRequest):
    raw_data: str = Field(
        description="Hashed transaction data to sign, hex encoded, 0x prefix optional."
    )
    address_index: StrictInt = Field(
        default=0, description="Index of the generated address to use."
    )


Handler = Callable[[GuardianBroker, Any], Awaitable[Dict[str, Any]]]


async def _authorize(broker: GuardianBroker, req: AuthorizeRequest) -> Dict[str, Any]:
    await broker.authorize(req.secret_id.get_secret_value())
    return {}


async def _login(broker: GuardianBroker, req: LoginRequest) -> Dict[str, Any]:
    token = await broker.login(req.username, req.password.get_secret_value())
    return {"session_token": token}


async def _address(broker: GuardianBroker, req: AddressRequest) -> Dict[str, Any]:
    address = await broker.get_address(req.session_token.get_secret_value())
    return {"address": address}


async def _sign(broker: GuardianBroker, req: SignRequest) -> Dict[str, Any]:
    signature = await broker.sign(
        req.session_token.get_secret_value(), req.raw_data, req.address_index
    )
    return {"signature": signature}


ROUTES: Dict[Tuple[str, Operation], Tuple[Type[_Request], Handler]] = {
    ("authorize", Operation.CREATE): (AuthorizeRequest, _authorize),
    ("authorize", Operation.UPDATE): (AuthorizeRequest, _authorize),
    ("login", Operation.UPDATE): (LoginRequest, _login),
    ("sign", Operation.CREATE): (SignRequest, _sign),
    ("sign", Operation.UPDATE): (SignRequest, _sign),
    ("sign", Operation.READ): (AddressRequest, _address),
}


class GuardianBackend:
    """Dispatches host requests to the broker.

    Errors raised by the broker propagate unchanged; the host transport is
    responsible for rendering them.
    """

    def __init__(self, broker: GuardianBroker) -> None:
        self.broker = broker

    async def handle(
        self, operation: Operation | str, path: str, data: Optional[Dict[str, Any]] = None
    ) -> Dict[str, Any]:
        try:
            op = Operation(operation)
        except ValueError:
            raise UnsupportedOperation(f"unknown operation {operation!r}") from None
        route = ROUTES.get((path.strip("/"), op))
        if route is None:
            raise UnsupportedOperation(f"{op.value} is not supported on path {path!r}")

        model, handler = route
        try:
            request = model.model_validate(data or {})
        except ValidationError as exc:
            fields = sorted({".".join(str(p) for p in err["loc"]) or "body" for err in exc.errors()})
            raise InvalidRequest(f"invalid fields for {path}: {', '.join(fields)}") from None

        logger.debug(f"Handling {op.value} {path}")
        return await handler(self.broker, request)
