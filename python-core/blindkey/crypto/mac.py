"""
HMAC-SHA256 signing adapter.

Signs and verifies caller-supplied bytes with a derived single-show key. The
adapter knows nothing about token envelopes: whoever builds a JWT (or any
other format) hands over the signing input and gets raw signature bytes back.

Verification distinguishes two outcomes:
    - a wrong signature returns False (an expected, common result)
    - unusable input (wrong types, empty key) raises MalformedEncodingError
"""

import logging
from typing import Union

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives import hashes, hmac

from .errors import MalformedEncodingError

logger = logging.getLogger(__name__)

# HMAC-SHA256 tag length in bytes
SIGNATURE_LEN = 32

BytesLike = Union[bytes, bytearray]


def _check_bytes(value, name: str) -> bytes:
    if not isinstance(value, (bytes, bytearray)):
        raise MalformedEncodingError(f"{name} must be bytes, got {type(value).__name__}")
    return bytes(value)


def _check_key(key) -> bytes:
    key = _check_bytes(key, "key")
    if not key:
        raise MalformedEncodingError("HMAC key must not be empty")
    return key


def hmac_sign(key: BytesLike, payload: BytesLike) -> bytes:
    """
    Compute HMAC-SHA256(key, payload).

    Raises:
        MalformedEncodingError: If key or payload is not bytes, or key is empty
    """
    mac = hmac.HMAC(_check_key(key), hashes.SHA256())
    mac.update(_check_bytes(payload, "payload"))
    return mac.finalize()


def hmac_verify(key: BytesLike, payload: BytesLike, signature: BytesLike) -> bool:
    """
    Check an HMAC-SHA256 signature in constant time.

    Returns:
        True if the signature matches, False otherwise (including a
        signature of the wrong length)

    Raises:
        MalformedEncodingError: If any argument is not bytes, or key is empty
    """
    key = _check_key(key)
    payload = _check_bytes(payload, "payload")
    signature = _check_bytes(signature, "signature")

    mac = hmac.HMAC(key, hashes.SHA256())
    mac.update(payload)
    try:
        mac.verify(signature)
    except InvalidSignature:
        logger.debug("HMAC signature mismatch")
        return False
    return True


class HmacSigner:
    """
    Binds a derived key to sign/verify calls.

    Example:
        >>> signer = HmacSigner(producer_key)
        >>> sig = signer.sign(b"header.payload")
        >>> HmacSigner(validator_key).verify(b"header.payload", sig)
        True
    """

    def __init__(self, key: BytesLike):
        self._key = _check_key(key)

    def sign(self, payload: BytesLike) -> bytes:
        return hmac_sign(self._key, payload)

    def verify(self, payload: BytesLike, signature: BytesLike) -> bool:
        return hmac_verify(self._key, payload, signature)
