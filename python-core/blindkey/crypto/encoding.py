"""
Hex wire format helpers.

Values cross the boundary to the display layer as lowercase hex strings with
a literal ``0x`` prefix. Scalars and coordinates are always zero-padded to 32
bytes. Arithmetic never operates on these strings; they are converted here
and nowhere else.
"""

import binascii
from typing import Union

from .errors import MalformedEncodingError

# Width of a P-256 scalar or field element in bytes
FIELD_BYTES = 32

HEX_PREFIX = "0x"


def bytes_to_hex(data: Union[bytes, bytearray]) -> str:
    """Encode bytes as ``0x`` followed by lowercase hex digits."""
    return HEX_PREFIX + binascii.hexlify(bytes(data)).decode("ascii")


def hex_to_bytes(text: str) -> bytes:
    """
    Decode a hex string, with or without the ``0x`` prefix.

    Args:
        text: Hex string such as ``"0x04ab..."`` or ``"04ab..."``

    Returns:
        The decoded bytes

    Raises:
        MalformedEncodingError: If the text is not a string, has odd length,
            or contains characters outside ``[0-9a-fA-F]``
    """
    if not isinstance(text, str):
        raise MalformedEncodingError(f"Expected hex string, got {type(text).__name__}")
    digits = text[2:] if text[:2].lower() == HEX_PREFIX else text
    if len(digits) % 2:
        raise MalformedEncodingError(
            f"Hex string has odd length {len(digits)}",
            details={"length": len(digits)},
        )
    try:
        return binascii.unhexlify(digits)
    except (binascii.Error, ValueError) as e:
        raise MalformedEncodingError(f"Invalid hex digits: {e}") from e


def int_to_hex(value: int, length: int = FIELD_BYTES) -> str:
    """Render a non-negative integer as a zero-padded ``0x`` hex string."""
    if value < 0:
        raise MalformedEncodingError("Cannot encode a negative integer")
    try:
        return bytes_to_hex(value.to_bytes(length, "big"))
    except OverflowError as e:
        raise MalformedEncodingError(f"Integer does not fit in {length} bytes") from e


def hex_to_int(text: str) -> int:
    """Parse a ``0x`` hex string as a big-endian unsigned integer."""
    return int.from_bytes(hex_to_bytes(text), "big")
