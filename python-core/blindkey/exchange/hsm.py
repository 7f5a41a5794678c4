"""
In-memory stand-in for the producer's hardware security module.

A real HSM never releases its private key; it only answers ECDH requests.
SimulatedHsm mirrors that surface: it is built from a caller-chosen scalar
(or generates one) and afterwards exposes only the public point and the
results of multiplications by the held scalar.
"""

import logging
from typing import Optional, Tuple

from ..crypto.ecc import KeyPair, Point, PointLike, ScalarLike, ecdh, scalar_to_public_point
from ..crypto.kdf import BytesOrText, HkdfResult, HkdfSha256
from ..crypto.random import RandomSource

logger = logging.getLogger(__name__)


class SimulatedHsm:
    """
    Holds the producer scalar d and performs d * P on request.

    Example:
        >>> hsm = SimulatedHsm.import_scalar("0x01")
        >>> hsm.ecdh(peer_point) == peer_point
        True
    """

    def __init__(self, key_pair: KeyPair):
        self.__key_pair = key_pair
        logger.debug(f"HSM loaded key {key_pair.public.fingerprint()}")

    @classmethod
    def generate(cls, rng: Optional[RandomSource] = None) -> "SimulatedHsm":
        return cls(KeyPair.generate(rng))

    @classmethod
    def import_scalar(cls, scalar: ScalarLike) -> "SimulatedHsm":
        """Load an explicit private scalar, as a key ceremony would."""
        return cls(KeyPair.from_scalar(scalar))

    @property
    def public_point(self) -> Point:
        return self.__key_pair.public

    def ecdh(self, peer: PointLike) -> Point:
        """Return d * peer."""
        return ecdh(self.__key_pair.private, peer)

    def blind_generator(self, blind: ScalarLike) -> Point:
        """
        Return D = d * (b * G).

        The blind is first lifted to the point b * G, so the HSM only ever
        performs an ordinary ECDH and never learns b as a scalar operand.
        """
        return self.ecdh(scalar_to_public_point(blind))

    def derive_key(
        self,
        peer: PointLike,
        salt: BytesOrText,
        info: BytesOrText,
        length: int,
        kdf: Optional[HkdfSha256] = None,
    ) -> Tuple[Point, HkdfResult]:
        """ECDH against ``peer`` followed by HKDF over the shared x coordinate."""
        shared = self.ecdh(peer)
        result = (kdf or HkdfSha256()).derive(shared.x_bytes, salt, info, length)
        return shared, result
