#!/usr/bin/env python3
"""
Blindkey Exchange - blinded ECDH-HKDF producer/validator handshake

This module sequences the primitives in ``blindkey.crypto`` into the
single-show key exchange. The producer's long-term scalar d lives in an HSM
and is never combined with the per-transaction blind outside of an ordinary
ECDH call; the validator holds scalar v.

Protocol Steps:
1. Validator publishes V = v * G
2. Producer draws a fresh blind b and computes B = b * V
3. HSM computes S_p = d * B (= dbv * G); K_p = HKDF(S_p.x, salt, info)
4. HSM computes D = d * (b * G) (= db * G) and sends it to the validator
5. Validator computes S_v = v * D (= vdb * G); K_v = HKDF(S_v.x, salt, info)
6. The exchange succeeds iff K_p == K_v

Step 6 holds because scalar multiplication commutes: dbv * G == vdb * G.

Single-Show Keys:
The blind b must be fresh for every use. blind_validator_key() draws a new
one on each call unless one is passed in explicitly; passing the same blind
twice derives the same key twice. There is no session store, so preventing
reuse across sessions is the caller's responsibility.

Failure Policy:
Arithmetic and decoding errors (InvalidScalarError, InvalidPointError,
MalformedEncodingError) are raised to the caller unchanged and abort the step.
Calling a step before its inputs exist raises ProtocolError. A key mismatch is
reported by confirm() as KeyMismatchError; signature verification reports a
mismatch as False.

Author: Blindkey Development Team
Version: 1.0.0
"""

import logging
from typing import Optional, Union

from ..config import ExchangeConfig
from ..crypto.ecc import KeyPair, Point, ScalarLike, coerce_scalar, ecdh, generate_scalar, scalar_mul
from ..crypto.errors import KeyMismatchError, ProtocolError
from ..crypto.kdf import HkdfSha256
from ..crypto.mac import hmac_sign, hmac_verify
from ..crypto.random import RandomSource, default_random
from .hsm import SimulatedHsm
from .state import BlindedExchangeState

logger = logging.getLogger(__name__)

KeyPairLike = Union[KeyPair, ScalarLike]


class BlindedExchange:
    """
    Orchestrates the blinded producer/validator exchange.

    The object holds configuration and collaborators only. Every step takes a
    BlindedExchangeState and returns a new one, so several exchanges can run
    through one BlindedExchange concurrently.

    Attributes:
        config: HKDF salt/info and key length shared by both roles
        rng: Random source for key pairs and blinds

    Example:
        >>> exchange = BlindedExchange()
        >>> state = exchange.run(payload=b"header.claims")
        >>> exchange.verify(state)
        True
    """

    def __init__(
        self,
        config: Optional[ExchangeConfig] = None,
        rng: Optional[RandomSource] = None,
        kdf: Optional[HkdfSha256] = None,
    ):
        self.config = config or ExchangeConfig.default()
        self.rng = rng or default_random()
        self._kdf = kdf or HkdfSha256()

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _require(state: BlindedExchangeState, step: str, *names: str) -> None:
        missing = [name for name in names if getattr(state, name) is None]
        if missing:
            raise ProtocolError(
                f"{step} needs {', '.join(missing)}",
                details={"step": step, "missing": missing},
            )

    def _key_pair(self, value: Optional[KeyPairLike]) -> KeyPair:
        if value is None:
            return KeyPair(generate_scalar(self.rng, self.config.max_scalar_attempts))
        if isinstance(value, KeyPair):
            return value
        return KeyPair.from_scalar(value)

    def _derive(self, shared: Point):
        return self._kdf.derive(
            shared.x_bytes,
            self.config.hkdf_salt,
            self.config.hkdf_info,
            self.config.key_length,
        )

    # ------------------------------------------------------------------
    # Steps
    # ------------------------------------------------------------------

    def start(
        self,
        producer: Optional[KeyPairLike] = None,
        validator: Optional[KeyPairLike] = None,
    ) -> BlindedExchangeState:
        """
        Create a state holding the producer and validator key pairs.

        Either role may be given as a KeyPair or an explicit scalar; missing
        roles get freshly generated keys.
        """
        state = BlindedExchangeState(
            producer=self._key_pair(producer),
            validator=self._key_pair(validator),
        )
        logger.debug(
            f"Exchange started: producer={state.producer.public.fingerprint()} "
            f"validator={state.validator.public.fingerprint()}"
        )
        return state

    def publish_validator_key(self, state: BlindedExchangeState) -> Point:
        """Step 1: the validator's public point V = v * G."""
        self._require(state, "publish_validator_key", "validator")
        return state.validator.public

    def blind_validator_key(
        self,
        state: BlindedExchangeState,
        blind: Optional[ScalarLike] = None,
    ) -> BlindedExchangeState:
        """
        Step 2: draw blind b and compute B = b * V.

        A new blind is generated unless one is supplied. Replacing the blind
        clears every artifact derived from the previous one.
        """
        self._require(state, "blind_validator_key", "validator")
        if blind is None:
            b = generate_scalar(self.rng, self.config.max_scalar_attempts)
        else:
            b = coerce_scalar(blind)
        blinded = scalar_mul(b, self.publish_validator_key(state))
        logger.debug(f"Blinded validator key {blinded.fingerprint()}")
        return state.advance(blind=b, blinded_validator_key=blinded)

    def derive_producer_key(self, state: BlindedExchangeState) -> BlindedExchangeState:
        """Step 3: HSM computes S_p = d * B and HKDF derives K_p from S_p.x."""
        self._require(state, "derive_producer_key", "producer", "blinded_validator_key")
        hsm = SimulatedHsm(state.producer)
        shared, result = hsm.derive_key(
            state.blinded_validator_key,
            self.config.hkdf_salt,
            self.config.hkdf_info,
            self.config.key_length,
            kdf=self._kdf,
        )
        logger.debug(f"Producer shared point {shared.fingerprint()}")
        return state.advance(hsm_shared_point=shared, hsm_prk=result.prk, producer_key=result.okm)

    def compute_db_point(self, state: BlindedExchangeState) -> BlindedExchangeState:
        """Step 4: HSM computes D = d * (b * G) for the validator."""
        self._require(state, "compute_db_point", "producer", "blind")
        db_point = SimulatedHsm(state.producer).blind_generator(state.blind)
        logger.debug(f"[db]G point {db_point.fingerprint()}")
        return state.advance(db_point=db_point)

    def derive_validator_key(self, state: BlindedExchangeState) -> BlindedExchangeState:
        """Step 5: validator computes S_v = v * D and HKDF derives K_v from S_v.x."""
        self._require(state, "derive_validator_key", "validator", "db_point")
        shared = ecdh(state.validator.private, state.db_point)
        result = self._derive(shared)
        logger.debug(f"Validator shared point {shared.fingerprint()}")
        return state.advance(
            validator_shared_point=shared,
            validator_prk=result.prk,
            validator_key=result.okm,
        )

    def confirm(self, state: BlindedExchangeState) -> BlindedExchangeState:
        """
        Step 6: check that both sides hold the same key.

        Raises:
            ProtocolError: If either key has not been derived yet
            KeyMismatchError: If the keys differ
        """
        self._require(state, "confirm", "producer_key", "validator_key")
        if not state.keys_match:
            logger.warning("Producer and validator derived different keys")
            raise KeyMismatchError(
                details={"shared_points_match": state.shared_points_match},
            )
        logger.info("Blinded exchange complete: producer and validator keys match")
        return state

    def sign(self, state: BlindedExchangeState, payload: bytes) -> BlindedExchangeState:
        """Sign ``payload`` with the producer's single-show key K_p."""
        self._require(state, "sign", "producer_key")
        signature = hmac_sign(state.producer_key, payload)
        return state.advance(payload=bytes(payload), signature=signature)

    def verify(
        self,
        state: BlindedExchangeState,
        payload: Optional[bytes] = None,
        signature: Optional[bytes] = None,
    ) -> bool:
        """
        Verify a signature with the validator's key K_v.

        ``payload`` and ``signature`` default to the ones stored by sign().

        Returns:
            True if the signature is valid under K_v, False otherwise
        """
        self._require(state, "verify", "validator_key")
        payload = state.payload if payload is None else payload
        signature = state.signature if signature is None else signature
        if payload is None or signature is None:
            raise ProtocolError("verify needs a payload and a signature", details={"step": "verify"})
        valid = hmac_verify(state.validator_key, payload, signature)
        if not valid:
            logger.info("Signature rejected by validator key")
        return valid

    def run(
        self,
        producer: Optional[KeyPairLike] = None,
        validator: Optional[KeyPairLike] = None,
        blind: Optional[ScalarLike] = None,
        payload: Optional[bytes] = None,
    ) -> BlindedExchangeState:
        """
        Run every step and confirm the keys match.

        If ``payload`` is given it is also signed with K_p.

        Raises:
            KeyMismatchError: If the two sides disagree
        """
        state = self.start(producer, validator)
        state = self.blind_validator_key(state, blind)
        state = self.derive_producer_key(state)
        state = self.compute_db_point(state)
        state = self.derive_validator_key(state)
        state = self.confirm(state)
        if payload is not None:
            state = self.sign(state, payload)
        return state
