#!/usr/bin/env python3
"""
Blindkey Key Derivation Module

HKDF-SHA256 (RFC 5869) extract-then-expand, used to turn the x coordinate of
a shared ECDH point into a single-show HMAC key.

Unlike a one-call HKDF, this module keeps the two stages separate so that the
intermediate pseudorandom key (PRK) can be shown next to the output keying
material (OKM) when the exchange is walked through step by step.

Key Derivation Features:
- extract(salt, ikm): PRK = HMAC-SHA256(salt or HashLen zero bytes, ikm)
- expand(prk, info, length): T(i) = HMAC(prk, T(i-1) || info || i), truncated
- derive(ikm, salt, info, length): both stages, returning PRK and OKM
- Strings for salt and info are UTF-8 encoded before use

Security Considerations:
- An empty salt is replaced by HashLen (32) zero bytes. For SHA-256 this is
  exactly what RFC 5869 prescribes; the hash is fixed for this reason.
- Output length is bounded by 255 * HashLen = 8160 bytes.
- derive() is a pure function: no randomness, no state.

Example Usage:
    >>> from blindkey.crypto.kdf import hkdf_derive
    >>> prk, okm = hkdf_derive(shared_point.x_bytes, "", "HS256 signature key", 32)

Dependencies:
- cryptography: HMAC-SHA256 for extract, HKDFExpand for expand

Author: Blindkey Development Team
Version: 1.0.0
"""

import logging
from dataclasses import dataclass
from typing import Tuple, Union

from cryptography.hazmat.primitives import hashes, hmac
from cryptography.hazmat.primitives.kdf.hkdf import HKDFExpand

from .encoding import bytes_to_hex
from .errors import InvalidLengthError, MalformedEncodingError

logger = logging.getLogger(__name__)

# SHA-256 output length in bytes
HASH_LEN = 32

# RFC 5869 section 2.3: L <= 255 * HashLen
MAX_OUTPUT_LEN = 255 * HASH_LEN

DEFAULT_OUTPUT_LEN = 32

BytesOrText = Union[bytes, bytearray, str]


@dataclass(frozen=True)
class HkdfResult:
    """
    Result of an HKDF derivation.

    Attributes:
        prk: Pseudorandom key from the extract stage (32 bytes)
        okm: Output keying material from the expand stage
    """

    prk: bytes
    okm: bytes

    @property
    def prk_hex(self) -> str:
        return bytes_to_hex(self.prk)

    @property
    def okm_hex(self) -> str:
        return bytes_to_hex(self.okm)

    def __iter__(self):
        yield self.prk
        yield self.okm


def _as_bytes(value: BytesOrText, name: str) -> bytes:
    if isinstance(value, str):
        return value.encode("utf-8")
    if isinstance(value, (bytes, bytearray)):
        return bytes(value)
    raise MalformedEncodingError(f"{name} must be bytes or str, got {type(value).__name__}")


def _hmac_sha256(key: bytes, data: bytes) -> bytes:
    mac = hmac.HMAC(key, hashes.SHA256())
    mac.update(data)
    return mac.finalize()


class HkdfSha256:
    """
    HKDF with HMAC-SHA256.

    The class carries no key material; it exists so that callers can hold
    one object for the whole exchange and so the hash length is stated in
    one place.

    Usage:
        >>> kdf = HkdfSha256()
        >>> prk = kdf.extract(b"", ikm)
        >>> okm = kdf.expand(prk, b"HS256 signature key", 32)
    """

    hash_len = HASH_LEN
    max_length = MAX_OUTPUT_LEN

    def extract(self, salt: BytesOrText, ikm: BytesOrText) -> bytes:
        """
        HKDF-Extract.

        Args:
            salt: Optional salt; empty means HashLen zero bytes
            ikm: Input keying material

        Returns:
            32-byte pseudorandom key
        """
        salt_bytes = _as_bytes(salt, "salt")
        ikm_bytes = _as_bytes(ikm, "ikm")
        if not salt_bytes:
            salt_bytes = bytes(self.hash_len)
        return _hmac_sha256(salt_bytes, ikm_bytes)

    def expand(self, prk: bytes, info: BytesOrText, length: int = DEFAULT_OUTPUT_LEN) -> bytes:
        """
        HKDF-Expand.

        Args:
            prk: Pseudorandom key, normally the output of extract()
            info: Context string binding the key to its use
            length: Number of output bytes, 1 to 8160

        Returns:
            ``length`` bytes of output keying material

        Raises:
            InvalidLengthError: If length is outside [1, 255 * HashLen]
        """
        if isinstance(length, bool) or not isinstance(length, int):
            raise InvalidLengthError(f"Length must be an int, got {type(length).__name__}")
        if length < 1 or length > self.max_length:
            raise InvalidLengthError(
                f"HKDF output length must be between 1 and {self.max_length}, got {length}",
                details={"length": length, "max": self.max_length},
            )
        prk_bytes = _as_bytes(prk, "prk")
        info_bytes = _as_bytes(info, "info")
        return HKDFExpand(hashes.SHA256(), length, info_bytes).derive(prk_bytes)

    def derive(
        self,
        ikm: BytesOrText,
        salt: BytesOrText = b"",
        info: BytesOrText = b"",
        length: int = DEFAULT_OUTPUT_LEN,
    ) -> HkdfResult:
        """Extract then expand, keeping the intermediate PRK."""
        prk = self.extract(salt, ikm)
        okm = self.expand(prk, info, length)
        logger.debug(f"HKDF derived {length} bytes")
        return HkdfResult(prk=prk, okm=okm)


_default_kdf = HkdfSha256()


def extract(salt: BytesOrText, ikm: BytesOrText) -> bytes:
    return _default_kdf.extract(salt, ikm)


def expand(prk: bytes, info: BytesOrText, length: int = DEFAULT_OUTPUT_LEN) -> bytes:
    return _default_kdf.expand(prk, info, length)


def derive(
    ikm: BytesOrText,
    salt: BytesOrText = b"",
    info: BytesOrText = b"",
    length: int = DEFAULT_OUTPUT_LEN,
) -> HkdfResult:
    return _default_kdf.derive(ikm, salt, info, length)


def hkdf_derive(
    ikm: BytesOrText,
    salt: BytesOrText = b"",
    info: BytesOrText = b"",
    length: int = DEFAULT_OUTPUT_LEN,
) -> Tuple[bytes, bytes]:
    """
    Module-level HKDF returning ``(prk, okm)``.

    Args:
        ikm: Input keying material (the shared point's x coordinate)
        salt: Salt bytes or text; empty selects the zero salt
        info: Context bytes or text
        length: Output length in bytes

    Returns:
        Tuple of (prk, okm)
    """
    result = derive(ikm, salt, info, length)
    return result.prk, result.okm
