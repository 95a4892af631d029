"""secp256k1 signing with Ethereum addresses, via ``eth-keys``."""

from __future__ import annotations

import secrets
from typing import Tuple

from eth_keys import keys
from eth_keys.exceptions import BadSignature, ValidationError

from ..constants import DIGEST_SIZE
from .base import SigningPrimitive


def _strip_0x(value: str) -> str:
    return value[2:] if value[:2].lower() == "0x" else value


def parse_digest(raw_digest_hex: str) -> bytes:
    """Decode a caller-supplied digest into exactly 32 bytes.

    An optional ``0x`` prefix is accepted. Shorter digests are left-padded
    with zero bytes, which leaves their integer value unchanged.

    Raises:
        ValueError: the input is not non-empty, even-length hex of at most
            32 bytes.
    """
    if not isinstance(raw_digest_hex, str):
        raise ValueError("digest must be a hex string")
    body = _strip_0x(raw_digest_hex.strip())
    if not body or len(body) % 2:
        raise ValueError("digest must be a non-empty, even-length hex string")
    try:
        digest = bytes.fromhex(body)
    except ValueError:
        raise ValueError("digest contains non-hexadecimal characters") from None
    if len(digest) > DIGEST_SIZE:
        raise ValueError(f"digest is longer than {DIGEST_SIZE} bytes")
    return digest.rjust(DIGEST_SIZE, b"\x00")


def recover_address(digest_hex: str, signature_hex: str) -> str:
    """Return the checksummed address that produced ``signature_hex``.

    Raises:
        ValueError: malformed digest or signature.
    """
    digest = parse_digest(digest_hex)
    try:
        signature = keys.Signature(bytes.fromhex(_strip_0x(signature_hex)))
        public_key = signature.recover_public_key_from_msg_hash(digest)
    except (ValueError, ValidationError, BadSignature) as exc:
        raise ValueError("signature could not be decoded") from exc
    return public_key.to_checksum_address()


def verify_signature(digest_hex: str, signature_hex: str, address: str) -> bool:
    try:
        recovered = recover_address(digest_hex, signature_hex)
    except ValueError:
        return False
    return recovered.lower() == address.lower()


class Secp256k1Primitive(SigningPrimitive):
    """Generates secp256k1 keys and signs digests deterministically (RFC 6979).

    Signatures are encoded as ``0x`` + ``r || s || v`` (65 bytes) with
    ``v`` in ``{0, 1}``.
    """

    def generate_keypair(self) -> Tuple[str, str]:
        while True:
            try:
                private_key = keys.PrivateKey(secrets.token_bytes(32))
                break
            except ValidationError:  # pragma: no cover - scalar outside the curve order
                continue
        return private_key.to_bytes().hex(), private_key.public_key.to_checksum_address()

    def address_of(self, private_key_hex: str) -> str:
        return keys.PrivateKey(bytes.fromhex(_strip_0x(private_key_hex))).public_key.to_checksum_address()

    def sign(self, private_key_hex: str, digest_hex: str) -> str:
        private_key = keys.PrivateKey(bytes.fromhex(_strip_0x(private_key_hex)))
        signature = private_key.sign_msg_hash(parse_digest(digest_hex))
        return "0x" + signature.to_bytes().hex()
