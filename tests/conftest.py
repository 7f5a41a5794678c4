# Blindkey Test Configuration
# This file contains test settings and fixtures

import importlib.util
import os
import sys

import pytest

# Add python-core to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'python-core'))

from blindkey.config import ExchangeConfig
from blindkey.crypto.random import DeterministicRandom, RandomSource
from blindkey.exchange import BlindedExchange


@pytest.fixture(scope="session")
def project_root():
    """Return the project root directory."""
    return os.path.dirname(os.path.dirname(os.path.abspath(__file__)))


class ScriptedRandom(RandomSource):
    """
    Replays a fixed list of byte strings, one per fill_random call.

    Forces the rejection path of scalar generation, for example an all-zero
    draw followed by a valid one.
    """

    def __init__(self, draws, fallback=None):
        self._draws = list(draws)
        self._fallback = fallback

    def fill_random(self, buf):
        if not self._draws:
            if self._fallback is None:
                raise RuntimeError("ScriptedRandom exhausted")
            self._fallback.fill_random(buf)
            return
        draw = self._draws.pop(0)
        if len(draw) != len(buf):
            raise ValueError(f"Scripted draw is {len(draw)} bytes, caller asked for {len(buf)}")
        buf[:] = draw


@pytest.fixture
def rng():
    """Reproducible random source."""
    return DeterministicRandom(b"blindkey-tests")


@pytest.fixture
def scripted_random():
    """Factory for random sources that replay given draws."""
    return ScriptedRandom


@pytest.fixture
def exchange(rng):
    """Exchange with default configuration and a deterministic random source."""
    return BlindedExchange(ExchangeConfig.default(), rng=rng)


@pytest.fixture
def fixed_scalars():
    """The d=1, v=2, b=3 vectors used by the walkthrough tests."""
    return {"d": 0x01, "v": 0x02, "b": 0x03}


@pytest.fixture(scope="session")
def cli_module(project_root):
    """Load python-cli/main.py as a module."""
    path = os.path.join(project_root, 'python-cli', 'main.py')
    spec = importlib.util.spec_from_file_location("blindkey_cli_main", path)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module
