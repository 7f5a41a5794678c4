"""
Random sources for scalar generation.

The exchange never reaches for a global RNG directly. Every function that
needs randomness accepts a RandomSource, so production code uses the OS
CSPRNG while tests can plug in a reproducible stream.
"""

import secrets
import threading
from abc import ABC, abstractmethod
from typing import Union

from cryptography.hazmat.primitives import hashes, hmac


class RandomSource(ABC):
    """Capability that fills buffers with random bytes."""

    @abstractmethod
    def fill_random(self, buf: bytearray) -> None:
        """Overwrite every byte of ``buf`` with fresh random data."""

    def random_bytes(self, length: int) -> bytes:
        """Return ``length`` random bytes."""
        buf = bytearray(length)
        self.fill_random(buf)
        return bytes(buf)


class SecureRandom(RandomSource):
    """
    Operating system CSPRNG backed by the ``secrets`` module.

    ``secrets.token_bytes`` is safe to call from any thread, so a single
    instance may be shared by concurrent exchanges without locking.
    """

    def fill_random(self, buf: bytearray) -> None:
        buf[:] = secrets.token_bytes(len(buf))


class DeterministicRandom(RandomSource):
    """
    Reproducible byte stream for tests and documented vectors.

    Output block ``i`` is HMAC-SHA256(seed, i) with ``i`` as an 8-byte
    big-endian counter. NOT suitable for generating real keys.

    Example:
        >>> rng = DeterministicRandom(b"vector-1")
        >>> rng.random_bytes(32) == DeterministicRandom(b"vector-1").random_bytes(32)
        True
    """

    def __init__(self, seed: Union[bytes, str]):
        if isinstance(seed, str):
            seed = seed.encode("utf-8")
        self._seed = bytes(seed)
        self._counter = 0
        self._pending = b""
        self._lock = threading.Lock()

    def _next_block(self) -> bytes:
        mac = hmac.HMAC(self._seed, hashes.SHA256())
        mac.update(self._counter.to_bytes(8, "big"))
        self._counter += 1
        return mac.finalize()

    def fill_random(self, buf: bytearray) -> None:
        with self._lock:
            while len(self._pending) < len(buf):
                self._pending += self._next_block()
            buf[:] = self._pending[:len(buf)]
            self._pending = self._pending[len(buf):]


_default_source = SecureRandom()


def default_random() -> RandomSource:
    """Return the process-wide CSPRNG source."""
    return _default_source
