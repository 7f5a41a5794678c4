"""
Immutable record of one blinded exchange.

Each orchestration step returns a new BlindedExchangeState. Replacing an
input (a new blind, new keys) clears every artifact computed from it, so a
state never mixes values from two different runs. Resetting an exchange is
simply dropping the value.
"""

import hmac
from dataclasses import dataclass, field, fields, replace
from typing import Any, Dict, Optional

from ..crypto.ecc import KeyPair, Point, Scalar
from ..crypto.encoding import bytes_to_hex

# artifact -> artifacts it is computed from
_DEPENDS_ON = {
    "blinded_validator_key": ("validator", "blind"),
    "hsm_shared_point": ("producer", "blinded_validator_key"),
    "hsm_prk": ("hsm_shared_point",),
    "producer_key": ("hsm_shared_point",),
    "db_point": ("producer", "blind"),
    "validator_shared_point": ("validator", "db_point"),
    "validator_prk": ("validator_shared_point",),
    "validator_key": ("validator_shared_point",),
    "signature": ("producer_key", "payload"),
}

_SECRET_FIELDS = ("blind", "hsm_prk", "producer_key", "validator_prk", "validator_key")


@dataclass(frozen=True)
class BlindedExchangeState:
    """
    Artifacts accumulated during one producer/validator run.

    Attributes:
        producer: Producer key pair (d, dG); the scalar stays inside the HSM
        validator: Validator key pair (v, V = vG)
        blind: Single-show blind scalar b
        blinded_validator_key: B = b * V
        hsm_shared_point: S_p = d * B, computed by the HSM
        hsm_prk: HKDF PRK on the producer side
        producer_key: K_p, HKDF output from S_p.x
        db_point: D = d * (b * G), sent to the validator
        validator_shared_point: S_v = v * D
        validator_prk: HKDF PRK on the validator side
        validator_key: K_v, HKDF output from S_v.x
        payload: Bytes signed with K_p
        signature: HMAC-SHA256 of payload under K_p
    """

    producer: Optional[KeyPair] = None
    validator: Optional[KeyPair] = None
    blind: Optional[Scalar] = None
    blinded_validator_key: Optional[Point] = None
    hsm_shared_point: Optional[Point] = None
    hsm_prk: Optional[bytes] = field(default=None, repr=False)
    producer_key: Optional[bytes] = field(default=None, repr=False)
    db_point: Optional[Point] = None
    validator_shared_point: Optional[Point] = None
    validator_prk: Optional[bytes] = field(default=None, repr=False)
    validator_key: Optional[bytes] = field(default=None, repr=False)
    payload: Optional[bytes] = None
    signature: Optional[bytes] = None

    def advance(self, **changes) -> "BlindedExchangeState":
        """
        Return a copy with ``changes`` applied and stale artifacts cleared.

        Any artifact that depends, directly or transitively, on a changed
        field is reset to None unless it is itself part of ``changes``.
        """
        stale = set()
        frontier = set(changes)
        while frontier:
            frontier = {
                name for name, deps in _DEPENDS_ON.items()
                if name not in stale and name not in changes and frontier.intersection(deps)
            }
            stale |= frontier
        updates: Dict[str, Any] = {name: None for name in stale}
        updates.update(changes)
        return replace(self, **updates)

    @property
    def shared_points_match(self) -> bool:
        return (
            self.hsm_shared_point is not None
            and self.hsm_shared_point == self.validator_shared_point
        )

    @property
    def keys_match(self) -> bool:
        """True once both sides derived a key and the keys are identical."""
        if self.producer_key is None or self.validator_key is None:
            return False
        return hmac.compare_digest(self.producer_key, self.validator_key)

    def to_dict(self, include_secrets: bool = False) -> Dict[str, Any]:
        """
        Render the state in the 0x-hex wire form used by the display layer.

        Points become ``{"x": .., "y": ..}`` dictionaries, byte strings and
        scalars become ``0x`` hex. Private scalars, the blind, PRKs and derived
        keys are only included when ``include_secrets`` is set.
        """
        out: Dict[str, Any] = {}
        for f in fields(self):
            value = getattr(self, f.name)
            if f.name in _SECRET_FIELDS and not include_secrets:
                continue
            if value is None:
                out[f.name] = None
            elif isinstance(value, KeyPair):
                entry = {"public": value.public.to_hex_dict()}
                if include_secrets:
                    entry["private"] = value.private.hex()
                out[f.name] = entry
            elif isinstance(value, Point):
                out[f.name] = value.to_hex_dict()
            elif isinstance(value, Scalar):
                out[f.name] = value.hex()
            else:
                out[f.name] = bytes_to_hex(value)
        out["shared_points_match"] = self.shared_points_match
        out["keys_match"] = self.keys_match
        return out
