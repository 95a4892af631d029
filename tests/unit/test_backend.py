"""Routing of host requests onto broker operations."""

import pytest

from guardian.backend import ROUTES, GuardianBackend, Operation
from guardian.errors import InvalidCredentials, InvalidRequest, ServiceNotAuthorized, UnsupportedOperation
from guardian.signing import recover_address


@pytest.fixture
def backend(broker):
    return GuardianBackend(broker)


def test_route_table():
    assert set(ROUTES) == {
        ("authorize", Operation.CREATE),
        ("authorize", Operation.UPDATE),
        ("login", Operation.UPDATE),
        ("sign", Operation.CREATE),
        ("sign", Operation.UPDATE),
        ("sign", Operation.READ),
    }


@pytest.mark.asyncio
async def test_full_flow_through_backend(backend):
    assert await backend.handle("update", "authorize", {"secret_id": "s1"}) == {}

    login = await backend.handle("update", "login", {"okta_username": "alice", "okta_password": "pw1"})
    token = login["session_token"]

    address = await backend.handle(Operation.READ, "sign", {"session_token": token})
    signed = await backend.handle("create", "/sign/", {"session_token": token, "raw_data": "0xdeadbeef"})

    assert set(signed) == {"signature"}
    assert recover_address("deadbeef", signed["signature"]) == address["address"]


@pytest.mark.asyncio
async def test_login_accepts_plain_field_names(backend):
    await backend.handle("create", "authorize", {"secret_id": "s1"})
    response = await backend.handle("update", "login", {"username": "bob", "password": "pw2"})
    assert response["session_token"]


@pytest.mark.asyncio
async def test_broker_errors_propagate(backend):
    with pytest.raises(ServiceNotAuthorized):
        await backend.handle("update", "login", {"username": "bob", "password": "pw2"})

    await backend.handle("update", "authorize", {"secret_id": "s1"})
    with pytest.raises(InvalidCredentials):
        await backend.handle("update", "login", {"username": "bob", "password": "nope"})


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "operation, path",
    [("read", "login"), ("read", "authorize"), ("delete", "sign"), ("update", "keys")],
)
async def test_unsupported_operations(backend, operation, path):
    with pytest.raises(UnsupportedOperation):
        await backend.handle(operation, path, {})


@pytest.mark.asyncio
async def test_invalid_request_names_fields_but_not_values(backend):
    with pytest.raises(InvalidRequest) as exc_info:
        await backend.handle("update", "login", {"username": "alice", "password": "hunter2", "extra": "x"})

    message = str(exc_info.value)
    assert "extra" in message
    assert "hunter2" not in message


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "data",
    [
        {},
        {"session_token": "t"},
        {"session_token": "t", "raw_data": "aa", "address_index": "0"},
        {"session_token": "t", "raw_data": "aa", "address_index": True},
    ],
)
async def test_invalid_sign_requests(backend, data):
    with pytest.raises(InvalidRequest):
        await backend.handle("update", "sign", data)
