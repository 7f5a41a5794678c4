"""
Unit Tests for the Blinded Exchange

This module tests each orchestration step, the immutable state record, and
the simulated HSM.
"""

import pytest
import sys
from pathlib import Path

# Add python-core to path
sys.path.insert(0, str(Path(__file__).parent.parent.parent / 'python-core'))

from blindkey.config import ExchangeConfig
from blindkey.crypto.ecc import KeyPair, Scalar, ecdh, scalar_mul, scalar_to_public_point
from blindkey.crypto.errors import (
    InvalidScalarError,
    KeyMismatchError,
    MalformedEncodingError,
    ProtocolError,
)
from blindkey.crypto.kdf import hkdf_derive
from blindkey.exchange import BlindedExchange, BlindedExchangeState, SimulatedHsm


class TestSimulatedHsm:
    """Test cases for SimulatedHsm."""

    def test_public_point(self):
        hsm = SimulatedHsm.import_scalar(7)
        assert hsm.public_point == scalar_to_public_point(7)

    def test_ecdh(self):
        hsm = SimulatedHsm.import_scalar(7)
        peer = scalar_to_public_point(5)
        assert hsm.ecdh(peer) == scalar_to_public_point(35)

    def test_blind_generator(self):
        hsm = SimulatedHsm.import_scalar(7)
        assert hsm.blind_generator(3) == scalar_to_public_point(21)

    def test_scalar_not_exposed(self):
        hsm = SimulatedHsm.import_scalar(7)
        public_values = [getattr(hsm, name) for name in dir(hsm) if not name.startswith("_")]
        assert not any(isinstance(value, (Scalar, KeyPair)) for value in public_values)

    def test_derive_key(self):
        hsm = SimulatedHsm.import_scalar(7)
        shared, result = hsm.derive_key(scalar_to_public_point(2), "", "info", 32)
        assert shared == scalar_to_public_point(14)
        assert (result.prk, result.okm) == hkdf_derive(shared.x_bytes, "", "info", 32)

    def test_generate(self, rng):
        assert SimulatedHsm.generate(rng).public_point is not None


class TestBlindedExchangeState:
    """Test cases for BlindedExchangeState."""

    def test_new_blind_clears_downstream(self, exchange):
        state = exchange.run(producer=1, validator=2, blind=3, payload=b"x")
        fresh = state.advance(blind=Scalar(4))
        assert fresh.producer == state.producer
        assert fresh.validator == state.validator
        for name in (
            "blinded_validator_key",
            "hsm_shared_point",
            "hsm_prk",
            "producer_key",
            "db_point",
            "validator_shared_point",
            "validator_key",
            "signature",
        ):
            assert getattr(fresh, name) is None, name
        assert fresh.payload == b"x"

    def test_db_point_survives_producer_key_update(self, exchange):
        """Artifacts on an independent branch are kept."""
        state = exchange.start(1, 2)
        state = exchange.blind_validator_key(state, 3)
        state = exchange.compute_db_point(state)
        state = exchange.derive_producer_key(state)
        assert state.db_point is not None
        assert state.producer_key is not None

    def test_state_is_immutable(self):
        state = BlindedExchangeState()
        with pytest.raises(AttributeError):
            state.blind = Scalar(1)

    def test_keys_match_requires_both(self):
        assert not BlindedExchangeState(producer_key=b"k").keys_match

    def test_to_dict_hides_secrets_by_default(self, exchange):
        state = exchange.run(producer=1, validator=2, blind=3)
        public = state.to_dict()
        assert "producer_key" not in public
        assert "blind" not in public
        assert "private" not in public["producer"]
        assert public["keys_match"] is True

    def test_to_dict_with_secrets(self, exchange):
        state = exchange.run(producer=1, validator=2, blind=3)
        full = state.to_dict(include_secrets=True)
        assert full["blind"] == "0x" + "00" * 31 + "03"
        assert full["producer"]["private"] == "0x" + "00" * 31 + "01"
        assert full["producer_key"] == full["validator_key"]
        assert full["db_point"] == scalar_to_public_point(3).to_hex_dict()

    def test_repr_hides_keys(self, exchange):
        state = exchange.run()
        assert state.producer_key.hex() not in repr(state)


class TestBlindedExchange:
    """Test cases for the step-by-step orchestration."""

    def test_fixed_vector_steps(self, exchange):
        state = exchange.start(producer=1, validator=2)
        assert exchange.publish_validator_key(state) == scalar_to_public_point(2)

        state = exchange.blind_validator_key(state, blind=3)
        assert state.blinded_validator_key == scalar_to_public_point(6)

        state = exchange.derive_producer_key(state)
        assert state.hsm_shared_point == scalar_to_public_point(6)

        state = exchange.compute_db_point(state)
        assert state.db_point == scalar_to_public_point(3)

        state = exchange.derive_validator_key(state)
        assert state.validator_shared_point == state.hsm_shared_point
        assert state.producer_key == state.validator_key
        assert exchange.confirm(state) is state

    def test_keys_use_configured_hkdf(self, rng):
        config = ExchangeConfig(hkdf_salt="salt", hkdf_info="test-info", key_length=48)
        state = BlindedExchange(config, rng=rng).run()
        _, expected = hkdf_derive(state.hsm_shared_point.x_bytes, "salt", "test-info", 48)
        assert state.producer_key == expected
        assert len(state.validator_key) == 48

    def test_blind_is_fresh_each_call(self, exchange):
        state = exchange.start()
        first = exchange.blind_validator_key(state)
        second = exchange.blind_validator_key(state)
        assert first.blind != second.blind
        assert first.blinded_validator_key != second.blinded_validator_key

    def test_fresh_blind_gives_fresh_key(self, exchange):
        first = exchange.run(producer=5, validator=6)
        second = exchange.run(producer=5, validator=6)
        assert first.producer_key != second.producer_key

    def test_same_blind_gives_same_key(self, exchange):
        first = exchange.run(producer=5, validator=6, blind=7)
        second = exchange.run(producer=5, validator=6, blind=7)
        assert first.producer_key == second.producer_key

    def test_step_out_of_order(self, exchange):
        state = exchange.start()
        with pytest.raises(ProtocolError) as info:
            exchange.derive_producer_key(state)
        assert "blinded_validator_key" in info.value.details["missing"]

    def test_validator_step_needs_db_point(self, exchange):
        state = exchange.blind_validator_key(exchange.start())
        with pytest.raises(ProtocolError):
            exchange.derive_validator_key(state)

    def test_confirm_needs_both_keys(self, exchange):
        with pytest.raises(ProtocolError):
            exchange.confirm(BlindedExchangeState())

    def test_confirm_detects_mismatch(self, exchange):
        state = exchange.run()
        tampered = state.advance(validator_key=bytes(32))
        with pytest.raises(KeyMismatchError):
            exchange.confirm(tampered)

    def test_wrong_validator_scalar_mismatches(self, exchange):
        """A validator holding a different scalar derives a different key."""
        state = exchange.run(producer=1, validator=2, blind=3)
        impostor = state.advance(validator=KeyPair.from_scalar(4))
        impostor = exchange.derive_validator_key(impostor.advance(db_point=state.db_point))
        with pytest.raises(KeyMismatchError):
            exchange.confirm(impostor.advance(
                hsm_shared_point=state.hsm_shared_point,
                producer_key=state.producer_key,
            ))

    def test_zero_blind_fails(self, exchange):
        state = exchange.start()
        with pytest.raises(InvalidScalarError):
            exchange.blind_validator_key(state, blind=0)

    def test_malformed_blind_fails(self, exchange):
        with pytest.raises(InvalidScalarError):
            exchange.blind_validator_key(exchange.start(), blind="0xnothex")

    def test_sign_and_verify(self, exchange):
        state = exchange.run(payload=b"header.claims")
        assert exchange.verify(state) is True

    def test_verify_tampered_signature(self, exchange):
        state = exchange.run(payload=b"header.claims")
        signature = bytearray(state.signature)
        signature[0] ^= 0x01
        assert exchange.verify(state, signature=bytes(signature)) is False

    def test_verify_other_payload(self, exchange):
        state = exchange.run(payload=b"header.claims")
        assert exchange.verify(state, payload=b"header.other") is False

    def test_verify_without_signature(self, exchange):
        with pytest.raises(ProtocolError):
            exchange.verify(exchange.run())

    def test_sign_rejects_text_payload(self, exchange):
        with pytest.raises(MalformedEncodingError):
            exchange.sign(exchange.run(), "text")

    def test_sign_before_key(self, exchange):
        with pytest.raises(ProtocolError):
            exchange.sign(exchange.start(), b"x")

    def test_key_pairs_accepted(self, exchange, rng):
        producer, validator = KeyPair.generate(rng), KeyPair.generate(rng)
        state = exchange.run(producer=producer, validator=validator)
        assert state.producer is producer
        expected = ecdh(validator.private, scalar_mul(state.blind, producer.public))
        assert state.validator_shared_point == expected
