"""
Blindkey Error Hierarchy

All failures raised by the blindkey primitives and the exchange orchestration
derive from CryptoError. Every subclass carries a fixed numeric code so that a
front end can tell "the computation failed" apart from "the signature did not
match" (the latter is reported as a boolean, never as an exception).

Error Codes:
    1001: InvalidScalarError     - zero, out-of-range or unparsable scalar
    1002: InvalidPointError      - point off the curve or at infinity
    1003: MalformedEncodingError - bad hex, bad point bytes, bad adapter input
    1004: InvalidLengthError     - HKDF output length outside the RFC bound
    1100: ProtocolError          - exchange step called without its inputs
    1101: KeyMismatchError       - producer and validator keys differ

Author: Blindkey Development Team
Version: 1.0.0
"""

from typing import Optional, Dict, Any


class CryptoError(Exception):
    """
    Base exception for blindkey errors.

    Attributes:
        message: Human-readable description of the error
        code: Integer error code for programmatic identification
        details: Optional dictionary with extra context (never secrets)
    """

    code = 1000

    def __init__(self, message: str, code: Optional[int] = None, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code
        self.details = details or {}

    def __str__(self) -> str:
        return f"{type(self).__name__}: {self.message} (Code: {self.code})"


class InvalidScalarError(CryptoError):
    """Raised when a scalar is zero, not below the group order, or unparsable."""

    code = 1001

    def __init__(self, message: str = "Invalid scalar", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, details=details)


class InvalidPointError(CryptoError):
    """
    Raised when a point is not a usable group element.

    This covers input points that do not satisfy the curve equation as well
    as arithmetic results that land on the point at infinity. The latter must
    abort the exchange; an all-zero shared secret is never handed to HKDF.
    """

    code = 1002

    def __init__(self, message: str = "Invalid point", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, details=details)


class MalformedEncodingError(CryptoError):
    """Raised when hex text or a byte encoding cannot be decoded."""

    code = 1003

    def __init__(self, message: str = "Malformed encoding", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, details=details)


class InvalidLengthError(CryptoError):
    """Raised when an HKDF output length is below 1 or above 255 * HashLen."""

    code = 1004

    def __init__(self, message: str = "Invalid output length", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, details=details)


class ProtocolError(CryptoError):
    """Raised when an exchange step is invoked before the artifacts it consumes exist."""

    code = 1100

    def __init__(self, message: str = "Protocol step out of order", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, details=details)


class KeyMismatchError(ProtocolError):
    """Raised by the exchange when the producer and validator derived different keys."""

    code = 1101

    def __init__(self, message: str = "Producer and validator keys differ", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, details=details)
