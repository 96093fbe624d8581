"""
HE backends for the comparison bridge.

Simulation backends are always available; the OpenFHE backend is imported
lazily and only needed for real scheme-switching runs.
"""

from .base import ArithmeticBackend, EncodingSwitchingBackend, SchemeSwitchingBackend
from .ciphertexts import (
    ArithmeticCiphertext,
    BooleanCiphertext,
    LWECiphertext,
    LiftedBooleanCiphertext,
    divide_mod_by_p,
)
from .simulated import (
    DEFAULT_NOISE_STD,
    SimulatedBGVBackend,
    SimulatedCKKSBackend,
    SimulatedFHEWBackend,
)
from .stats import OperationStats

__all__ = [
    'ArithmeticBackend',
    'ArithmeticCiphertext',
    'BooleanCiphertext',
    'DEFAULT_NOISE_STD',
    'EncodingSwitchingBackend',
    'LWECiphertext',
    'LiftedBooleanCiphertext',
    'OperationStats',
    'SchemeSwitchingBackend',
    'SimulatedBGVBackend',
    'SimulatedCKKSBackend',
    'SimulatedFHEWBackend',
    'divide_mod_by_p',
]
