"""End-to-end broker scenarios over the in-memory and SQLite backends."""

import logging

import pytest

from guardian.backend import GuardianBackend
from guardian.broker import build_broker
from guardian.config import GuardianConfig
from guardian.errors import GuardianError, InvalidCredentials, InvalidToken
from guardian.signing import verify_signature


@pytest.mark.asyncio
async def test_alice_enrolls_and_signs(broker):
    await broker.authorize("s1")
    token = await broker.login("alice", "pw1")

    assert broker.keystore.paths() == ["secrets/alice"]
    address = await broker.get_address(token)
    stored = await broker.keystore.get("secrets/alice")
    assert stored["publicAddressHex"] == address

    signature = await broker.sign(token, "deadbeef")
    assert verify_signature("deadbeef", signature, address)


@pytest.mark.asyncio
async def test_bob_and_ghost_get_the_same_error(broker):
    await broker.authorize("s1")
    await broker.login("bob", "pw2")

    errors = []
    for username, password in (("bob", "wrong"), ("ghost", "anything")):
        with pytest.raises(InvalidCredentials) as exc_info:
            await broker.login(username, password)
        errors.append(exc_info.value.to_dict())

    assert errors[0] == errors[1]
    assert broker.keystore.paths() == ["secrets/bob"]


@pytest.mark.asyncio
async def test_stale_token_never_falls_back(broker):
    await broker.authorize("s1")
    alice = await broker.login("alice", "pw1")
    bob = await broker.login("bob", "pw2")
    bob_address = await broker.get_address(bob)
    broker.tokens.revoke(alice)

    with pytest.raises(InvalidToken):
        await broker.sign(alice, "deadbeef")
    # Other users are unaffected.
    assert verify_signature("deadbeef", await broker.sign(bob, "deadbeef"), bob_address)


@pytest.mark.asyncio
async def test_key_material_never_leaves_the_broker(broker, caplog):
    caplog.set_level(logging.DEBUG)
    backend = GuardianBackend(broker)
    responses = [await backend.handle("update", "authorize", {"secret_id": "s1"})]
    login = await backend.handle("update", "login", {"username": "alice", "password": "pw1"})
    token = login["session_token"]
    responses.append(login)
    responses.append(await backend.handle("read", "sign", {"session_token": token}))
    responses.append(await backend.handle("update", "sign", {"session_token": token, "raw_data": "ab" * 32}))

    failures = []
    for data in (
        {"session_token": token, "raw_data": "xyz"},
        {"session_token": token, "raw_data": "ab", "address_index": 2},
        {"session_token": "s.stale", "raw_data": "ab"},
    ):
        try:
            await backend.handle("update", "sign", data)
        except GuardianError as exc:
            failures.append(str(exc.to_dict()))

    private_key = (await broker.keystore.get("secrets/alice"))["privKeyHex"]
    assert len(failures) == 3
    assert all(private_key not in str(response) for response in responses)
    assert all(private_key not in failure for failure in failures)
    assert all(private_key not in record.getMessage() for record in caplog.records)
    assert all("pw1" not in record.getMessage() for record in caplog.records)
    assert all(token not in record.getMessage() for record in caplog.records)


@pytest.mark.asyncio
async def test_sqlite_keys_survive_a_restart(tmp_path):
    config = GuardianConfig(
        backends={"keystore": "sqlite", "sqlite_path": str(tmp_path / "keys.db")},
        inmemory={"secret_ids": ["s1"]},
    )

    first = build_broker(config)
    first.identity.register_account("carol", "pw3")
    await first.authorize("s1")
    address = await first.get_address(await first.login("carol", "pw3"))
    first.keystore.close()

    # A new process has an empty directory but the key store remembers carol.
    second = build_broker(config)
    second.identity.register_account("carol", "pw3")
    await second.authorize("s1")
    token = await second.login("carol", "pw3")

    assert await second.get_address(token) == address
    assert second.keystore.count("secrets/") == 1
    second.keystore.close()
