"""Signing primitive capability interface."""

from __future__ import annotations

from typing import Protocol, Tuple


class SigningPrimitive(Protocol):
    def generate_keypair(self) -> Tuple[str, str]:
        """Return ``(private_key_hex, public_address_hex)`` for a fresh key."""

    def sign(self, private_key_hex: str, digest_hex: str) -> str:
        """Sign a 32-byte digest and return the signature as hex."""
