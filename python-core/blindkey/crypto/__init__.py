"""
Blindkey cryptographic primitives.

Modules:
    ecc: P-256 scalar and point arithmetic (key pairs, blinding, ECDH)
    kdf: HKDF-SHA256 extract/expand with the intermediate PRK exposed
    mac: HMAC-SHA256 sign/verify adapter for derived single-show keys
    encoding: 0x-hex wire format helpers
    random: Injectable random sources (OS CSPRNG, deterministic streams)
    errors: CryptoError hierarchy

Usage:
    >>> from blindkey.crypto import generate_key_pair, ecdh, hkdf_derive
    >>> v, V = generate_key_pair()
    >>> d, D = generate_key_pair()
    >>> shared = ecdh(d, V)
    >>> prk, okm = hkdf_derive(shared.x_bytes, "", "HS256 signature key", 32)
"""

from .errors import (
    CryptoError,
    InvalidScalarError,
    InvalidPointError,
    MalformedEncodingError,
    InvalidLengthError,
    ProtocolError,
    KeyMismatchError,
)
from .random import RandomSource, SecureRandom, DeterministicRandom
from .encoding import bytes_to_hex, hex_to_bytes, int_to_hex, hex_to_int
from .ecc import (
    CURVE_NAME,
    CURVE_ORDER,
    Scalar,
    Point,
    KeyPair,
    generate_scalar,
    scalar_to_public_point,
    scalar_mul,
    encode_point,
    decode_point,
    generate_key_pair,
    public_point,
    scalar_multiply,
    ecdh,
)
from .kdf import HkdfSha256, HkdfResult, hkdf_derive, HASH_LEN, MAX_OUTPUT_LEN
from .mac import HmacSigner, hmac_sign, hmac_verify

__all__ = [
    # Errors
    "CryptoError",
    "InvalidScalarError",
    "InvalidPointError",
    "MalformedEncodingError",
    "InvalidLengthError",
    "ProtocolError",
    "KeyMismatchError",
    # Randomness
    "RandomSource",
    "SecureRandom",
    "DeterministicRandom",
    # Wire format
    "bytes_to_hex",
    "hex_to_bytes",
    "int_to_hex",
    "hex_to_int",
    # Elliptic curve engine
    "CURVE_NAME",
    "CURVE_ORDER",
    "Scalar",
    "Point",
    "KeyPair",
    "generate_scalar",
    "scalar_to_public_point",
    "scalar_mul",
    "encode_point",
    "decode_point",
    "generate_key_pair",
    "public_point",
    "scalar_multiply",
    "ecdh",
    # Key derivation
    "HkdfSha256",
    "HkdfResult",
    "hkdf_derive",
    "HASH_LEN",
    "MAX_OUTPUT_LEN",
    # Signing
    "HmacSigner",
    "hmac_sign",
    "hmac_verify",
]
