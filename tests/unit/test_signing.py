"""Address resolution and digest signing."""

import pytest

from guardian.errors import (
    InvalidDigestEncoding,
    InvalidToken,
    KeyStoreUnavailable,
    NoKeyProvisioned,
    ResolutionError,
    SignatureFailed,
    ServiceNotAuthorized,
    SigningError,
    UnsupportedAddressIndex,
)
from guardian.models import TokenMetadata
from guardian.signing import recover_address, verify_signature


async def _logged_in(broker, username="alice", password="pw1"):
    await broker.authorize("s1")
    return await broker.login(username, password)


@pytest.mark.asyncio
async def test_sign_round_trips_against_address(broker):
    token = await _logged_in(broker)
    address = await broker.get_address(token)
    digest = "ab" * 32

    signature = await broker.sign(token, digest)

    assert signature.startswith("0x") and len(signature) == 2 + 130
    assert recover_address(digest, signature) == address
    assert verify_signature(digest, signature, address.lower())


@pytest.mark.asyncio
async def test_signing_is_deterministic(broker):
    token = await _logged_in(broker)
    assert await broker.sign(token, "0x" + "11" * 32) == await broker.sign(token, "11" * 32)


@pytest.mark.asyncio
async def test_short_digest_is_left_padded(broker):
    token = await _logged_in(broker)
    signature = await broker.sign(token, "deadbeef")
    assert recover_address("00" * 28 + "deadbeef", signature) == await broker.get_address(token)


@pytest.mark.asyncio
@pytest.mark.parametrize("index", [1, -1, 7, True, "0", 0.0])
async def test_unsupported_address_index_is_never_coerced(broker, index):
    token = await _logged_in(broker)
    with pytest.raises(UnsupportedAddressIndex):
        await broker.sign(token, "deadbeef", address_index=index)


@pytest.mark.asyncio
async def test_address_index_is_checked_before_the_token(broker):
    with pytest.raises(UnsupportedAddressIndex):
        await broker.sign("not-a-token", "deadbeef", address_index=1)


@pytest.mark.asyncio
@pytest.mark.parametrize("digest", ["", "0x", "abc", "zz" * 4, "ab" * 33, "de ad", None])
async def test_malformed_digest(broker, digest):
    token = await _logged_in(broker)
    with pytest.raises(InvalidDigestEncoding):
        await broker.sign(token, digest)


@pytest.mark.asyncio
async def test_revoked_token_is_invalid(broker):
    token = await _logged_in(broker)
    broker.tokens.revoke(token)

    with pytest.raises(InvalidToken):
        await broker.sign(token, "deadbeef")
    with pytest.raises(InvalidToken):
        await broker.get_address(token)


@pytest.mark.asyncio
@pytest.mark.parametrize("token", ["", "s.unknown", None])
async def test_unknown_tokens_are_invalid(broker, token):
    await broker.authorize("s1")
    with pytest.raises(InvalidToken):
        await broker.get_address(token)


@pytest.mark.asyncio
async def test_token_without_username_never_defaults(broker):
    await _logged_in(broker)
    anonymous = broker.tokens.issue_raw(TokenMetadata(username=None, policies=["default"]))

    with pytest.raises(InvalidToken):
        await broker.get_address(anonymous)


@pytest.mark.asyncio
async def test_missing_key_record_is_reported(broker):
    await broker.authorize("s1")
    token = broker.tokens.issue("zoe")

    with pytest.raises(NoKeyProvisioned) as exc_info:
        await broker.get_address(token)
    assert isinstance(exc_info.value, ResolutionError)
    assert isinstance(exc_info.value, SigningError)


@pytest.mark.asyncio
async def test_malformed_key_record(broker):
    await broker.authorize("s1")
    token = broker.tokens.issue("zoe")
    await broker.keystore.put("secrets/zoe", {"publicAddressHex": "0x0"})

    with pytest.raises(KeyStoreUnavailable):
        await broker.sign(token, "deadbeef")


@pytest.mark.asyncio
async def test_primitive_failure_hides_key(broker):
    token = await _logged_in(broker)
    document = await broker.keystore.get("secrets/alice")

    def explode(private_key_hex, digest_hex):
        raise RuntimeError(f"bad key {private_key_hex}")

    broker.primitive.sign = explode
    with pytest.raises(SignatureFailed) as exc_info:
        await broker.sign(token, "deadbeef")

    assert document["privKeyHex"] not in str(exc_info.value)
    assert exc_info.value.__cause__ is None


@pytest.mark.asyncio
async def test_unauthorized_broker_refuses_to_resolve(broker):
    address = await broker.provision_user("zoe")
    token = broker.tokens.issue("zoe")
    assert not broker.session.is_authorized()

    with pytest.raises(ServiceNotAuthorized):
        await broker.sign(token, "deadbeef")
    with pytest.raises(ServiceNotAuthorized):
        await broker.get_address(token)

    await broker.authorize("s1")
    assert await broker.get_address(token) == address
