"""
Unit Tests for Wire Encoding and Random Sources
"""

import pytest
import sys
from pathlib import Path

# Add python-core to path
sys.path.insert(0, str(Path(__file__).parent.parent.parent / 'python-core'))

from blindkey.crypto.encoding import bytes_to_hex, hex_to_bytes, hex_to_int, int_to_hex
from blindkey.crypto.errors import MalformedEncodingError
from blindkey.crypto.random import DeterministicRandom, SecureRandom


class TestHex:
    """Test cases for 0x-hex helpers."""

    def test_prefix_and_lowercase(self):
        assert bytes_to_hex(b"\xab\x01") == "0xab01"

    def test_empty(self):
        assert bytes_to_hex(b"") == "0x"
        assert hex_to_bytes("0x") == b""

    def test_prefix_optional(self):
        assert hex_to_bytes("ab01") == hex_to_bytes("0xab01") == b"\xab\x01"

    def test_uppercase_accepted(self):
        assert hex_to_bytes("0XAB01") == b"\xab\x01"

    def test_odd_length_rejected(self):
        with pytest.raises(MalformedEncodingError):
            hex_to_bytes("0xabc")

    def test_non_hex_rejected(self):
        with pytest.raises(MalformedEncodingError):
            hex_to_bytes("0xgg")

    def test_non_ascii_rejected(self):
        with pytest.raises(MalformedEncodingError):
            hex_to_bytes("0xéé")

    def test_non_string_rejected(self):
        with pytest.raises(MalformedEncodingError):
            hex_to_bytes(b"ab")

    def test_round_trip(self):
        data = bytes(range(256))
        assert hex_to_bytes(bytes_to_hex(data)) == data

    def test_int_is_zero_padded(self):
        assert int_to_hex(1) == "0x" + "00" * 31 + "01"
        assert hex_to_int(int_to_hex(1)) == 1

    def test_int_overflow_rejected(self):
        with pytest.raises(MalformedEncodingError):
            int_to_hex(2 ** 256)

    def test_negative_int_rejected(self):
        with pytest.raises(MalformedEncodingError):
            int_to_hex(-1)


class TestRandomSources:
    """Test cases for injectable random sources."""

    def test_secure_random_length(self):
        assert len(SecureRandom().random_bytes(48)) == 48

    def test_secure_random_varies(self):
        rng = SecureRandom()
        assert rng.random_bytes(32) != rng.random_bytes(32)

    def test_deterministic_same_seed(self):
        assert DeterministicRandom("x").random_bytes(100) == DeterministicRandom(b"x").random_bytes(100)

    def test_deterministic_stream_is_contiguous(self):
        """Reading in pieces yields the same stream as one read."""
        whole = DeterministicRandom(b"seed").random_bytes(70)
        rng = DeterministicRandom(b"seed")
        pieces = rng.random_bytes(10) + rng.random_bytes(33) + rng.random_bytes(27)
        assert pieces == whole

    def test_deterministic_different_seeds(self):
        assert DeterministicRandom(b"a").random_bytes(32) != DeterministicRandom(b"b").random_bytes(32)

    def test_scripted_replays_then_falls_back(self, scripted_random):
        rng = scripted_random([b"\x01" * 4], fallback=DeterministicRandom(b"f"))
        assert rng.random_bytes(4) == b"\x01" * 4
        assert rng.random_bytes(4) == DeterministicRandom(b"f").random_bytes(4)

    def test_scripted_exhausted(self, scripted_random):
        with pytest.raises(RuntimeError):
            scripted_random([]).random_bytes(4)

    def test_scripted_length_mismatch(self, scripted_random):
        with pytest.raises(ValueError):
            scripted_random([b"\x01"]).random_bytes(4)
