#!/usr/bin/env python3
"""
Blindkey ECC - P-256 scalar and point arithmetic

This module is the elliptic-curve engine behind the blinded exchange. It
works on a single named curve, NIST P-256 (secp256r1), and offers exactly the
operations the protocol needs:

- Scalar generation: uniform draws in [1, n-1] by rejection sampling
- Public key derivation: s * G
- Scalar multiplication: s * P for an arbitrary curve point (blinding, ECDH)
- Point serialization: uncompressed SEC1 encoding (0x04 || x || y)

The whole protocol rests on one algebraic identity:

    d * (b * V) == b * (d * V) == (d * b mod n) * V

so the arithmetic is delegated to the ``ecdsa`` package (Jacobian coordinate
arithmetic on NIST256p) rather than written by hand. ``cryptography`` is used
when a key pair has to be handed to code that expects a standard private key
object.

P-256 has cofactor 1, so any point that satisfies the curve equation is in the
prime-order subgroup and no extra subgroup check is needed.

Author: Blindkey Development Team
Version: 1.0.0
"""

# ============================================================================
# Import Statements
# ============================================================================

import hashlib
import logging
from dataclasses import dataclass, field
from functools import cached_property
from typing import Dict, Iterator, Optional, Union

from cryptography.hazmat.primitives.asymmetric import ec
from ecdsa import NIST256p
from ecdsa.ellipticcurve import INFINITY, PointJacobi

from .encoding import FIELD_BYTES, bytes_to_hex, hex_to_bytes, int_to_hex
from .errors import InvalidPointError, InvalidScalarError, MalformedEncodingError
from .random import RandomSource, default_random

logger = logging.getLogger(__name__)

# ============================================================================
# Module-Level Constants
# ============================================================================

CURVE_NAME = "P-256"

_CURVE = NIST256p.curve
_GENERATOR = NIST256p.generator

# Group order n and field prime p of P-256
CURVE_ORDER = NIST256p.order
FIELD_PRIME = _CURVE.p()

# Length of a serialized scalar (256 bits / 8 = 32 bytes)
SCALAR_LEN = FIELD_BYTES

# Uncompressed SEC1 encoding: 1 tag byte + 32 bytes x + 32 bytes y
UNCOMPRESSED_TAG = 0x04
UNCOMPRESSED_POINT_LEN = 1 + 2 * FIELD_BYTES

# Consecutive rejected draws tolerated before generate_scalar gives up.
# A single rejection has probability about 2^-32 with a working RNG.
DEFAULT_MAX_ATTEMPTS = 64


# ============================================================================
# Value Types
# ============================================================================


@dataclass(frozen=True)
class Scalar:
    """
    An integer in [1, n-1], used as a private key or a blinding factor.

    Scalars serialize to exactly 32 big-endian bytes. The repr hides the
    value so that scalars do not leak into logs or tracebacks.

    Raises:
        InvalidScalarError: On construction with zero or a value >= n
    """

    value: int = field(repr=False)

    def __post_init__(self):
        if isinstance(self.value, bool) or not isinstance(self.value, int):
            raise InvalidScalarError(f"Scalar must be an int, got {type(self.value).__name__}")
        if self.value == 0:
            raise InvalidScalarError("Scalar must be nonzero")
        if not 0 < self.value < CURVE_ORDER:
            raise InvalidScalarError("Scalar must lie in [1, n-1]")

    def __repr__(self) -> str:
        return "Scalar(<redacted>)"

    @classmethod
    def from_bytes(cls, data: bytes) -> "Scalar":
        """Build a scalar from up to 32 big-endian bytes."""
        if not isinstance(data, (bytes, bytearray)):
            raise InvalidScalarError(f"Expected bytes, got {type(data).__name__}")
        if not 0 < len(data) <= SCALAR_LEN:
            raise InvalidScalarError(
                f"Scalar must be 1 to {SCALAR_LEN} bytes, got {len(data)}",
                details={"length": len(data)},
            )
        return cls(int.from_bytes(bytes(data), "big"))

    @classmethod
    def from_hex(cls, text: str) -> "Scalar":
        """Parse a ``0x`` hex scalar such as ``"0x01"`` or a full 64-digit value."""
        try:
            data = hex_to_bytes(text)
        except MalformedEncodingError as e:
            raise InvalidScalarError(f"Malformed scalar hex: {e.message}") from e
        # Leading zero bytes beyond the 32-byte width are harmless padding
        stripped = data.lstrip(b"\x00")
        if len(stripped) > SCALAR_LEN:
            raise InvalidScalarError("Scalar hex is wider than 32 bytes")
        return cls(int.from_bytes(data, "big"))

    def to_bytes(self) -> bytes:
        return self.value.to_bytes(SCALAR_LEN, "big")

    def hex(self) -> str:
        return int_to_hex(self.value)

    def multiply(self, other: "Scalar") -> "Scalar":
        """Product modulo n. Never zero, since n is prime and both factors are nonzero."""
        return Scalar((self.value * other.value) % CURVE_ORDER)


@dataclass(frozen=True)
class Point:
    """
    An affine point on P-256, never the point at infinity.

    Coordinates are plain integers internally and 32-byte big-endian values
    on the wire. Construction validates field range and the curve equation.

    Attributes:
        x: Affine x coordinate
        y: Affine y coordinate

    Example:
        >>> g = scalar_to_public_point(1)
        >>> decode_point(g.encode()) == g
        True
    """

    x: int
    y: int

    def __post_init__(self):
        for name, coord in (("x", self.x), ("y", self.y)):
            if isinstance(coord, bool) or not isinstance(coord, int):
                raise InvalidPointError(f"Coordinate {name} must be an int")
            if not 0 <= coord < FIELD_PRIME:
                raise InvalidPointError(f"Coordinate {name} is outside the field")
        if not _CURVE.contains_point(self.x, self.y):
            raise InvalidPointError("Point does not lie on P-256")

    @property
    def x_bytes(self) -> bytes:
        """The x coordinate as 32 bytes; this is the IKM fed to HKDF."""
        return self.x.to_bytes(FIELD_BYTES, "big")

    @property
    def y_bytes(self) -> bytes:
        return self.y.to_bytes(FIELD_BYTES, "big")

    def encode(self) -> bytes:
        return encode_point(self)

    def hex(self) -> str:
        """Uncompressed encoding as a single ``0x04...`` hex string."""
        return bytes_to_hex(self.encode())

    def to_hex_dict(self) -> Dict[str, str]:
        """Coordinate form used by the display layer: ``{"x": "0x..", "y": "0x.."}``."""
        return {"x": int_to_hex(self.x), "y": int_to_hex(self.y)}

    @classmethod
    def from_hex_dict(cls, coords: Dict[str, str]) -> "Point":
        """Inverse of to_hex_dict. Each coordinate must be exactly 32 bytes."""
        try:
            x = hex_to_bytes(coords["x"])
            y = hex_to_bytes(coords["y"])
        except (KeyError, TypeError) as e:
            raise MalformedEncodingError(f"Point coordinates missing: {e}") from e
        if len(x) != FIELD_BYTES or len(y) != FIELD_BYTES:
            raise MalformedEncodingError("Each coordinate must be 32 bytes")
        return decode_point(bytes([UNCOMPRESSED_TAG]) + x + y)

    def fingerprint(self) -> str:
        """Short SHA-256 based identifier, safe to log."""
        return hashlib.sha256(self.encode()).hexdigest()[:16]

    def _to_jacobian(self) -> PointJacobi:
        return PointJacobi(_CURVE, self.x, self.y, 1, CURVE_ORDER)


ScalarLike = Union[Scalar, int, bytes, bytearray, str]
PointLike = Union[Point, bytes, bytearray, str, Dict[str, str]]


@dataclass(frozen=True)
class KeyPair:
    """
    A private scalar and its derived public point.

    The public point is always computed as ``private * G``; it is never
    supplied separately, so the two can not drift apart.

    Attributes:
        private: The secret scalar (keep confidential)
        public: The derived point, safe to publish

    A KeyPair unpacks as ``(private, public)``.
    """

    private: Scalar

    @cached_property
    def public(self) -> Point:
        return scalar_to_public_point(self.private)

    def __iter__(self) -> Iterator:
        yield self.private
        yield self.public

    def __repr__(self) -> str:
        return f"KeyPair(public={self.public.fingerprint()})"

    @classmethod
    def from_scalar(cls, scalar: ScalarLike) -> "KeyPair":
        """Import a caller-chosen private scalar (the HSM import path)."""
        return cls(coerce_scalar(scalar))

    @classmethod
    def generate(cls, rng: Optional[RandomSource] = None) -> "KeyPair":
        return cls(generate_scalar(rng))

    @classmethod
    def from_private_key(cls, key: ec.EllipticCurvePrivateKey) -> "KeyPair":
        """Import a ``cryptography`` P-256 private key object."""
        if not isinstance(key.curve, ec.SECP256R1):
            raise InvalidScalarError(f"Only P-256 keys are supported, got {key.curve.name}")
        return cls(Scalar(key.private_numbers().private_value))

    def to_private_key(self) -> ec.EllipticCurvePrivateKey:
        """Export as a ``cryptography`` private key object."""
        return ec.derive_private_key(self.private.value, ec.SECP256R1())


# ============================================================================
# Boundary Conversion
# ============================================================================


def coerce_scalar(value: ScalarLike) -> Scalar:
    """
    Convert any accepted scalar representation to a Scalar.

    Accepts a Scalar, an int, 1 to 32 big-endian bytes, or a ``0x`` hex string.

    Raises:
        InvalidScalarError: If the value is zero, out of range or malformed
    """
    if isinstance(value, Scalar):
        return value
    if isinstance(value, (bytes, bytearray)):
        return Scalar.from_bytes(value)
    if isinstance(value, str):
        return Scalar.from_hex(value)
    return Scalar(value)


def coerce_point(value: PointLike) -> Point:
    """
    Convert any accepted point representation to a Point.

    Accepts a Point, 65 uncompressed bytes, a ``0x04...`` hex string, or a
    ``{"x": .., "y": ..}`` coordinate dictionary.
    """
    if isinstance(value, Point):
        return value
    if isinstance(value, (bytes, bytearray)):
        return decode_point(value)
    if isinstance(value, str):
        return decode_point(hex_to_bytes(value))
    if isinstance(value, dict):
        return Point.from_hex_dict(value)
    raise InvalidPointError(f"Cannot interpret {type(value).__name__} as a point")


# ============================================================================
# Engine Operations
# ============================================================================


def generate_scalar(rng: Optional[RandomSource] = None, max_attempts: int = DEFAULT_MAX_ATTEMPTS) -> Scalar:
    """
    Draw a uniformly random scalar in [1, n-1].

    Each attempt reads 32 bytes from ``rng``. A draw that is zero or not
    below n is discarded and redrawn (rejection sampling), which keeps the
    distribution exactly uniform instead of reducing modulo n.

    Args:
        rng: Random source; defaults to the OS CSPRNG
        max_attempts: Number of draws before giving up

    Returns:
        A fresh Scalar

    Raises:
        InvalidScalarError: If every draw was rejected (a broken RNG)
    """
    source = rng or default_random()
    for attempt in range(1, max_attempts + 1):
        candidate = int.from_bytes(source.random_bytes(SCALAR_LEN), "big")
        if 0 < candidate < CURVE_ORDER:
            if attempt > 1:
                logger.debug(f"Scalar accepted after {attempt} draws")
            return Scalar(candidate)
        logger.debug(f"Rejected out-of-range scalar draw {attempt}/{max_attempts}")
    logger.warning(f"Random source produced {max_attempts} unusable scalars in a row")
    raise InvalidScalarError(
        f"No valid scalar after {max_attempts} draws",
        details={"attempts": max_attempts},
    )


def _multiply(scalar: Scalar, base: PointJacobi) -> Point:
    result = base * scalar.value
    if isinstance(result, PointJacobi):
        result = result.to_affine()
    if result is INFINITY or result.x() is None:
        raise InvalidPointError("Scalar multiplication produced the point at infinity")
    return Point(result.x(), result.y())


def scalar_to_public_point(scalar: ScalarLike) -> Point:
    """
    Compute ``scalar * G``.

    Raises:
        InvalidScalarError: If the scalar is zero or otherwise invalid
    """
    return _multiply(coerce_scalar(scalar), _GENERATOR)


def scalar_mul(scalar: ScalarLike, point: PointLike) -> Point:
    """
    Compute ``scalar * point``.

    This is the primitive behind blinding (``b * V``) and ECDH (``d * B``).

    Raises:
        InvalidScalarError: If the scalar is zero or otherwise invalid
        InvalidPointError: If the point is off the curve or the result is infinity
        MalformedEncodingError: If an encoded point can not be decoded
    """
    s = coerce_scalar(scalar)
    p = coerce_point(point)
    return _multiply(s, p._to_jacobian())


def encode_point(point: Point) -> bytes:
    """Serialize as uncompressed SEC1: ``0x04 || x || y`` (65 bytes)."""
    return bytes([UNCOMPRESSED_TAG]) + point.x_bytes + point.y_bytes


def decode_point(data: Union[bytes, bytearray]) -> Point:
    """
    Parse an uncompressed SEC1 point.

    Raises:
        MalformedEncodingError: If the length is not 65, the tag is not 0x04,
            or the coordinates do not describe a point on P-256
    """
    if not isinstance(data, (bytes, bytearray)):
        raise MalformedEncodingError(f"Expected bytes, got {type(data).__name__}")
    if len(data) != UNCOMPRESSED_POINT_LEN:
        raise MalformedEncodingError(
            f"Uncompressed point must be {UNCOMPRESSED_POINT_LEN} bytes, got {len(data)}",
            details={"length": len(data)},
        )
    if data[0] != UNCOMPRESSED_TAG:
        raise MalformedEncodingError(
            f"Unsupported point tag 0x{data[0]:02x}",
            details={"tag": data[0]},
        )
    x = int.from_bytes(bytes(data[1:1 + FIELD_BYTES]), "big")
    y = int.from_bytes(bytes(data[1 + FIELD_BYTES:]), "big")
    try:
        return Point(x, y)
    except InvalidPointError as e:
        raise MalformedEncodingError(f"Encoded point rejected: {e.message}") from e


# ============================================================================
# Module-Level Utility Functions
# ============================================================================


def generate_key_pair(rng: Optional[RandomSource] = None) -> KeyPair:
    """
    Generate a fresh key pair.

    Example:
        >>> private, public = generate_key_pair()
    """
    return KeyPair.generate(rng)


def public_point(scalar: ScalarLike) -> Point:
    """Alias of scalar_to_public_point."""
    return scalar_to_public_point(scalar)


def scalar_multiply(scalar: ScalarLike, point: PointLike) -> Point:
    """Alias of scalar_mul."""
    return scalar_mul(scalar, point)


def ecdh(private_scalar: ScalarLike, peer_point: PointLike) -> Point:
    """
    Elliptic-curve Diffie-Hellman: ``private_scalar * peer_point``.

    Unlike most ECDH APIs this returns the full shared point rather than
    only its x coordinate, because the exchange reuses shared points as
    inputs to further multiplications.
    """
    return scalar_mul(private_scalar, peer_point)
