"""
Blinded producer/validator exchange.

Modules:
    blinding: BlindedExchange step-by-step orchestration
    hsm: SimulatedHsm holding the producer scalar
    state: BlindedExchangeState immutable artifact record
"""

from .blinding import BlindedExchange
from .hsm import SimulatedHsm
from .state import BlindedExchangeState

__all__ = ["BlindedExchange", "SimulatedHsm", "BlindedExchangeState"]
