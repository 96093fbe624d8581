"""
Backend Interfaces

A context is assembled from one arithmetic backend (CKKS or BGV) and one
switching backend matching the bridge strategy. Simulated and real backends
implement the same protocols so drivers never see the difference.
"""

from typing import Protocol, Sequence, Tuple

import numpy as np

from .ciphertexts import ArithmeticCiphertext, LWECiphertext


class ArithmeticBackend(Protocol):
    """Interface for packed SIMD arithmetic (CKKS or BGV)."""

    def encrypt(self, values: np.ndarray) -> ArithmeticCiphertext: ...
    def decrypt(self, ct: ArithmeticCiphertext) -> np.ndarray: ...
    def add(self, ct1: ArithmeticCiphertext, ct2: ArithmeticCiphertext) -> ArithmeticCiphertext: ...
    def sub(self, ct1: ArithmeticCiphertext, ct2: ArithmeticCiphertext) -> ArithmeticCiphertext: ...
    def mul(self, ct1: ArithmeticCiphertext, ct2: ArithmeticCiphertext) -> ArithmeticCiphertext: ...
    def negate(self, ct: ArithmeticCiphertext) -> ArithmeticCiphertext: ...
    def add_scalar(self, ct: ArithmeticCiphertext, scalar: float) -> ArithmeticCiphertext: ...
    def mul_scalar(self, ct: ArithmeticCiphertext, scalar: float) -> ArithmeticCiphertext: ...
    def sum_slots(self, ct: ArithmeticCiphertext) -> ArithmeticCiphertext: ...
    def remaining_levels(self, ct: ArithmeticCiphertext) -> int: ...


class SchemeSwitchingBackend(Protocol):
    """Interface for CKKS <-> FHEW switching and FHEW sign evaluation."""

    def ckks_to_fhew(self, ct: ArithmeticCiphertext, num_values: int) -> Tuple[LWECiphertext, ...]: ...
    def eval_sign(self, lwe: LWECiphertext) -> LWECiphertext: ...
    def fhew_to_ckks(self, lwes: Sequence[LWECiphertext], num_values: int) -> ArithmeticCiphertext: ...
    def decrypt_lwe(self, lwe: LWECiphertext) -> int: ...


class EncodingSwitchingBackend(Protocol):
    """Interface for BGV comparison at base p and lifting back to p^r."""

    def compare_at_base(self, ct: ArithmeticCiphertext) -> ArithmeticCiphertext: ...
    def divide_mod_by_p(self, ct: ArithmeticCiphertext) -> ArithmeticCiphertext: ...
    def lift_to_full(self, ct: ArithmeticCiphertext) -> ArithmeticCiphertext: ...
