"""
Exchange configuration.

HKDF parameters must be identical on the producer and validator side, so they
live in one value that both roles are built from.
"""

import os
from dataclasses import asdict, dataclass
from typing import Any, Dict, Mapping, Optional

from .crypto.kdf import MAX_OUTPUT_LEN

DEFAULT_HKDF_INFO = "HS256 signature key"

ENV_PREFIX = "BLINDKEY_"


@dataclass(frozen=True)
class ExchangeConfig:
    """
    Configuration for a blinded exchange.

    Attributes:
        hkdf_salt: HKDF salt text; empty selects the all-zero salt
        hkdf_info: HKDF info text binding the key to HMAC signing
        key_length: Derived HMAC key length in bytes
        max_scalar_attempts: Rejected draws tolerated per scalar generation
    """

    hkdf_salt: str = ""
    hkdf_info: str = DEFAULT_HKDF_INFO
    key_length: int = 32
    max_scalar_attempts: int = 64

    def __post_init__(self):
        if not isinstance(self.hkdf_salt, str) or not isinstance(self.hkdf_info, str):
            raise ValueError("hkdf_salt and hkdf_info must be strings")
        for name in ("key_length", "max_scalar_attempts"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int):
                raise ValueError(f"{name} must be an int, got {type(value).__name__}")
        if not 1 <= self.key_length <= MAX_OUTPUT_LEN:
            raise ValueError(f"key_length must be between 1 and {MAX_OUTPUT_LEN}, got {self.key_length}")
        if self.max_scalar_attempts < 1:
            raise ValueError(f"max_scalar_attempts must be at least 1, got {self.max_scalar_attempts}")

    @classmethod
    def default(cls) -> "ExchangeConfig":
        """Get default configuration."""
        return cls()

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ExchangeConfig":
        """Create configuration from a dictionary, ignoring unknown keys."""
        known = {name: data[name] for name in cls.__dataclass_fields__ if name in data}
        return cls(**known)

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None, prefix: str = ENV_PREFIX) -> "ExchangeConfig":
        """
        Read configuration from environment variables.

        Recognized variables (with the default prefix): BLINDKEY_HKDF_SALT,
        BLINDKEY_HKDF_INFO, BLINDKEY_KEY_LENGTH, BLINDKEY_MAX_SCALAR_ATTEMPTS.
        Unset variables keep their defaults.
        """
        env = os.environ if environ is None else environ
        data: Dict[str, Any] = {}
        for name, spec in cls.__dataclass_fields__.items():
            raw = env.get(prefix + name.upper())
            if raw is None:
                continue
            if spec.type in (int, "int"):
                try:
                    data[name] = int(raw)
                except ValueError as e:
                    raise ValueError(f"{prefix}{name.upper()} must be an integer, got {raw!r}") from e
            else:
                data[name] = raw
        return cls(**data)
