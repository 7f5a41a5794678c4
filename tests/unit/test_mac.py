"""
Unit Tests for the HMAC Signing Adapter

This module tests signing, verification, and the split between a failed
verification (False) and unusable input (MalformedEncodingError).
"""

import hashlib
import hmac
import pytest
import sys
from pathlib import Path

# Add python-core to path
sys.path.insert(0, str(Path(__file__).parent.parent.parent / 'python-core'))

from blindkey.crypto.errors import MalformedEncodingError
from blindkey.crypto.mac import SIGNATURE_LEN, HmacSigner, hmac_sign, hmac_verify

KEY = bytes(range(32))
PAYLOAD = b'eyJhbGciOiJIUzI1NiJ9.eyJzdWIiOiJ1c2VyMTIzIn0'


class TestHmacSign:
    """Test cases for hmac_sign."""

    def test_matches_stdlib_hmac(self):
        assert hmac_sign(KEY, PAYLOAD) == hmac.new(KEY, PAYLOAD, hashlib.sha256).digest()

    def test_length(self):
        assert len(hmac_sign(KEY, b"")) == SIGNATURE_LEN

    def test_empty_key_rejected(self):
        with pytest.raises(MalformedEncodingError):
            hmac_sign(b"", PAYLOAD)

    def test_text_payload_rejected(self):
        with pytest.raises(MalformedEncodingError):
            hmac_sign(KEY, "not bytes")


class TestHmacVerify:
    """Test cases for hmac_verify."""

    def test_valid_signature(self):
        assert hmac_verify(KEY, PAYLOAD, hmac_sign(KEY, PAYLOAD)) is True

    @pytest.mark.parametrize("index", [0, 15, 31])
    def test_flipped_byte_rejected(self, index):
        signature = bytearray(hmac_sign(KEY, PAYLOAD))
        signature[index] ^= 0x80
        assert hmac_verify(KEY, PAYLOAD, bytes(signature)) is False

    def test_other_key_rejected(self):
        other = bytes(31) + b"\x01"
        assert hmac_verify(other, PAYLOAD, hmac_sign(KEY, PAYLOAD)) is False

    def test_other_payload_rejected(self):
        assert hmac_verify(KEY, PAYLOAD + b"x", hmac_sign(KEY, PAYLOAD)) is False

    def test_truncated_signature_rejected(self):
        """A short signature is a mismatch, not an error."""
        assert hmac_verify(KEY, PAYLOAD, hmac_sign(KEY, PAYLOAD)[:16]) is False

    def test_malformed_signature_raises(self):
        with pytest.raises(MalformedEncodingError):
            hmac_verify(KEY, PAYLOAD, "0xdeadbeef")

    def test_malformed_payload_raises(self):
        with pytest.raises(MalformedEncodingError):
            hmac_verify(KEY, None, hmac_sign(KEY, PAYLOAD))


class TestHmacSigner:
    """Test cases for HmacSigner."""

    def test_sign_verify(self):
        signer = HmacSigner(KEY)
        assert signer.verify(PAYLOAD, signer.sign(PAYLOAD))

    def test_empty_key_rejected_at_construction(self):
        with pytest.raises(MalformedEncodingError):
            HmacSigner(b"")
