from .base import SigningPrimitive
from .secp256k1 import Secp256k1Primitive, parse_digest, recover_address, verify_signature

__all__ = [
    "SigningPrimitive",
    "Secp256k1Primitive",
    "parse_digest",
    "recover_address",
    "verify_signature",
]
