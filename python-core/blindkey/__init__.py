"""
Blindkey Python Core Package

Derives single-show HMAC signing keys from an HSM-held P-256 private key by
multiplicative blinding, ECDH and HKDF-SHA256, so that a producer and an
independent validator reach the same key without the HSM key ever meeting
the per-transaction secret.

Subpackages:
    crypto: EC engine, HKDF, HMAC adapter, wire encoding, errors
    exchange: Blinded producer/validator orchestration

Version: 1.0.0
"""

from . import crypto
from . import exchange
from .config import ExchangeConfig
from .crypto import (
    CryptoError,
    generate_key_pair,
    public_point,
    scalar_multiply,
    ecdh,
    hkdf_derive,
    hmac_sign,
    hmac_verify,
)
from .exchange import BlindedExchange, BlindedExchangeState, SimulatedHsm

__all__ = [
    "crypto",
    "exchange",
    "ExchangeConfig",
    "CryptoError",
    "generate_key_pair",
    "public_point",
    "scalar_multiply",
    "ecdh",
    "hkdf_derive",
    "hmac_sign",
    "hmac_verify",
    "BlindedExchange",
    "BlindedExchangeState",
    "SimulatedHsm",
]

__version__ = "1.0.0"
