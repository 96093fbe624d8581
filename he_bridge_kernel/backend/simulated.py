"""
Simulation Backends

Numpy models of the three schemes the bridge touches:
  - CKKS: approximate float lanes, Gaussian encoding noise, one level per
    multiplication (rescale folded in)
  - FHEW: one integer message per lane modulo pLWE, sign evaluated through a
    lookup table as programmable bootstrapping would
  - BGV: integer lanes at plaintext modulus p^r with a plaintext-modulus
    label that divide_mod_by_p shrinks without touching the payload

Like the real libraries, these backends never raise on noise exhaustion: an
operation on a ciphertext without enough remaining levels silently returns
garbage lanes.
"""

from typing import Optional, Sequence, Tuple
import logging
import math

import numpy as np

from ..errors import DimensionMismatch, ParameterError
from ..params.resolver import (
    ArithmeticScheme,
    CKKS_TO_FHEW_DEPTH,
    FHEW_TO_CKKS_DEPTH,
    ParameterSet,
)
from .ciphertexts import ArithmeticCiphertext, LWECiphertext, divide_mod_by_p

logger = logging.getLogger(__name__)

# Encoding noise per CKKS operation at scale 2^40
DEFAULT_NOISE_STD = 2.0 ** -30

# Magnitude of lanes returned once the modulus chain is exhausted
GARBAGE_MAGNITUDE = 2.0 ** 20


# =============================================================================
# CKKS
# =============================================================================

class SimulatedCKKSBackend:
    """Simulated CKKS backend for testing."""

    def __init__(
        self,
        params: ParameterSet,
        rng: Optional[np.random.Generator] = None,
        noise_std: float = DEFAULT_NOISE_STD,
    ):
        self.params = params
        self.slot_count = params.slot_count
        self.noise_std = noise_std
        self._rng = rng if rng is not None else np.random.default_rng()

    def _noise(self) -> np.ndarray:
        if self.noise_std <= 0:
            return np.zeros(self.slot_count)
        return self._rng.normal(0.0, self.noise_std, self.slot_count)

    def _garbage(self) -> np.ndarray:
        return self._rng.uniform(-1.0, 1.0, self.slot_count) * GARBAGE_MAGNITUDE

    def wrap(self, values: np.ndarray, level: int) -> ArithmeticCiphertext:
        """Build a ciphertext around lane values already padded to slot_count."""
        if level < 0:
            values = self._garbage()
        return ArithmeticCiphertext(
            data=None,
            scheme=ArithmeticScheme.CKKS,
            slot_count=self.slot_count,
            level=level,
            plaintext_modulus=None,
            noise_bound=self.noise_std,
            _plaintext=np.asarray(values, dtype=np.float64) + self._noise(),
        )

    def encrypt(self, values: np.ndarray) -> ArithmeticCiphertext:
        """Simulate encryption (pad and add encoding noise)."""
        padded = np.zeros(self.slot_count, dtype=np.float64)
        padded[:len(values)] = values
        return self.wrap(padded, self.params.multiplicative_depth)

    def decrypt(self, ct: ArithmeticCiphertext) -> np.ndarray:
        """Simulate decryption (return stored lanes)."""
        if ct._plaintext is None:
            raise ValueError("Cannot decrypt: no plaintext in simulation mode")
        return ct._plaintext.copy()

    def add(self, ct1: ArithmeticCiphertext, ct2: ArithmeticCiphertext) -> ArithmeticCiphertext:
        return self.wrap(ct1._plaintext + ct2._plaintext, min(ct1.level, ct2.level))

    def sub(self, ct1: ArithmeticCiphertext, ct2: ArithmeticCiphertext) -> ArithmeticCiphertext:
        return self.wrap(ct1._plaintext - ct2._plaintext, min(ct1.level, ct2.level))

    def mul(self, ct1: ArithmeticCiphertext, ct2: ArithmeticCiphertext) -> ArithmeticCiphertext:
        """Multiply and rescale; consumes one level."""
        return self.wrap(ct1._plaintext * ct2._plaintext, min(ct1.level, ct2.level) - 1)

    def negate(self, ct: ArithmeticCiphertext) -> ArithmeticCiphertext:
        return self.wrap(-ct._plaintext, ct.level)

    def add_scalar(self, ct: ArithmeticCiphertext, scalar: float) -> ArithmeticCiphertext:
        return self.wrap(ct._plaintext + scalar, ct.level)

    def mul_scalar(self, ct: ArithmeticCiphertext, scalar: float) -> ArithmeticCiphertext:
        """Scalar products are encoded at the working scale and rescaled."""
        return self.wrap(ct._plaintext * scalar, ct.level - 1)

    def sum_slots(self, ct: ArithmeticCiphertext) -> ArithmeticCiphertext:
        """Rotate-and-sum: every lane receives the total."""
        total = float(np.sum(ct._plaintext))
        return self.wrap(np.full(self.slot_count, total), ct.level)

    def remaining_levels(self, ct: ArithmeticCiphertext) -> int:
        return ct.level


# =============================================================================
# FHEW
# =============================================================================

class SimulatedFHEWBackend:
    """
    Simulated CKKS <-> FHEW scheme switching.

    The quantizer and sign table are supplied by the caller so the same
    rounding rule is used on every path into the small scheme.
    """

    def __init__(self, params: ParameterSet, ckks: SimulatedCKKSBackend, quantizer, sign_lut):
        self.params = params
        self.ckks = ckks
        self.quantizer = quantizer
        self.sign_lut = sign_lut
        self.ciphertext_modulus = 1 << params.fhew_log_q
        self.plaintext_modulus = params.fhew_plaintext_modulus

    def _lwe(self, message: int, plaintext_modulus: Optional[int] = None) -> LWECiphertext:
        return LWECiphertext(
            data=None,
            ciphertext_modulus=self.ciphertext_modulus,
            plaintext_modulus=plaintext_modulus or self.plaintext_modulus,
            _message=int(message),
        )

    def ckks_to_fhew(self, ct: ArithmeticCiphertext, num_values: int) -> Tuple[LWECiphertext, ...]:
        """Slots-to-coefficients, modulus switch and key switch into LWE."""
        if ct.level < CKKS_TO_FHEW_DEPTH:
            messages = self.ckks._rng.integers(0, self.plaintext_modulus, num_values)
        else:
            messages = self.quantizer.quantize_array(ct._plaintext[:num_values])
        return tuple(self._lwe(m) for m in messages)

    def eval_sign(self, lwe: LWECiphertext) -> LWECiphertext:
        """Programmable bootstrap of the sign table; output is a bit."""
        return self._lwe(self.sign_lut.evaluate(lwe._message), plaintext_modulus=2)

    def fhew_to_ckks(self, lwes: Sequence[LWECiphertext], num_values: int) -> ArithmeticCiphertext:
        """Repack per-lane bits into a fresh CKKS ciphertext."""
        if len(lwes) != num_values:
            raise DimensionMismatch(
                f"FHEW->CKKS expected {num_values} LWE ciphertexts, got {len(lwes)}"
            )
        if num_values > self.ckks.slot_count:
            raise DimensionMismatch(
                f"Cannot pack {num_values} values into {self.ckks.slot_count} slots"
            )
        bits = np.zeros(self.ckks.slot_count, dtype=np.float64)
        bits[:num_values] = [lwe._message for lwe in lwes]
        return self.ckks.wrap(bits, self.params.multiplicative_depth - FHEW_TO_CKKS_DEPTH)

    def decrypt_lwe(self, lwe: LWECiphertext) -> int:
        return int(lwe._message)


# =============================================================================
# BGV
# =============================================================================

class SimulatedBGVBackend:
    """
    Simulated BGV with plaintext space p^r.

    The payload is always held modulo p^r; a ciphertext labelled p^k decrypts
    to the base-p digits above position r-k, which is what reinterpreting the
    same ciphertext modulo a smaller power of p yields.
    """

    def __init__(self, params: ParameterSet, rng: Optional[np.random.Generator] = None):
        self.params = params
        self.slot_count = params.slot_count
        self.p = params.bgv_p
        self.r = params.bgv_r
        self.modulus = params.plaintext_modulus
        self.comparison_depth = math.ceil(math.log2(self.p)) * (self.r - 1) + 1
        self._rng = rng if rng is not None else np.random.default_rng()

    def _garbage(self) -> np.ndarray:
        return self._rng.integers(0, self.modulus, self.slot_count, dtype=np.int64)

    def wrap(
        self,
        payload: np.ndarray,
        level: int,
        plaintext_modulus: Optional[int] = None,
        noise_bound: float = 1.0,
    ) -> ArithmeticCiphertext:
        if level < 0:
            payload = self._garbage()
        return ArithmeticCiphertext(
            data=None,
            scheme=ArithmeticScheme.BGV,
            slot_count=self.slot_count,
            level=level,
            plaintext_modulus=plaintext_modulus or self.modulus,
            noise_bound=noise_bound,
            _plaintext=np.mod(np.asarray(payload, dtype=np.int64), self.modulus),
        )

    def _check_labels(self, ct1: ArithmeticCiphertext, ct2: ArithmeticCiphertext) -> None:
        if ct1.plaintext_modulus != ct2.plaintext_modulus:
            raise DimensionMismatch(
                f"Plaintext moduli differ: {ct1.plaintext_modulus} vs {ct2.plaintext_modulus}"
            )

    def encrypt(self, values: np.ndarray) -> ArithmeticCiphertext:
        payload = np.zeros(self.slot_count, dtype=np.int64)
        payload[:len(values)] = np.round(np.asarray(values, dtype=np.float64)).astype(np.int64)
        out_of_range = int(np.count_nonzero(np.abs(payload) > self.params.comparison_bound))
        if out_of_range:
            logger.warning(
                f"{out_of_range} value(s) exceed the comparison bound "
                f"{self.params.comparison_bound}; they wrap modulo {self.modulus}"
            )
        return self.wrap(payload, self.params.multiplicative_depth)

    def decrypt(self, ct: ArithmeticCiphertext) -> np.ndarray:
        """Centered lanes modulo the ciphertext's plaintext-modulus label."""
        if ct._plaintext is None:
            raise ValueError("Cannot decrypt: no plaintext in simulation mode")
        label = ct.plaintext_modulus
        factor = self.modulus // label
        messages = np.mod(ct._plaintext // factor, label)
        return np.where(messages > label // 2, messages - label, messages)

    def add(self, ct1: ArithmeticCiphertext, ct2: ArithmeticCiphertext) -> ArithmeticCiphertext:
        self._check_labels(ct1, ct2)
        return self.wrap(
            ct1._plaintext + ct2._plaintext, min(ct1.level, ct2.level),
            ct1.plaintext_modulus, ct1.noise_bound + ct2.noise_bound,
        )

    def sub(self, ct1: ArithmeticCiphertext, ct2: ArithmeticCiphertext) -> ArithmeticCiphertext:
        self._check_labels(ct1, ct2)
        return self.wrap(
            ct1._plaintext - ct2._plaintext, min(ct1.level, ct2.level),
            ct1.plaintext_modulus, ct1.noise_bound + ct2.noise_bound,
        )

    def mul(self, ct1: ArithmeticCiphertext, ct2: ArithmeticCiphertext) -> ArithmeticCiphertext:
        """Multiply and modulus-switch; consumes one level."""
        self._check_labels(ct1, ct2)
        return self.wrap(
            ct1._plaintext * ct2._plaintext, min(ct1.level, ct2.level) - 1,
            ct1.plaintext_modulus, ct1.noise_bound * ct2.noise_bound,
        )

    def negate(self, ct: ArithmeticCiphertext) -> ArithmeticCiphertext:
        return self.wrap(-ct._plaintext, ct.level, ct.plaintext_modulus, ct.noise_bound)

    def add_scalar(self, ct: ArithmeticCiphertext, scalar: float) -> ArithmeticCiphertext:
        factor = self.modulus // ct.plaintext_modulus
        return self.wrap(
            ct._plaintext + int(round(scalar)) * factor, ct.level,
            ct.plaintext_modulus, ct.noise_bound,
        )

    def mul_scalar(self, ct: ArithmeticCiphertext, scalar: float) -> ArithmeticCiphertext:
        """Integer constants multiply without a level."""
        k = int(round(scalar))
        return self.wrap(
            ct._plaintext * k, ct.level, ct.plaintext_modulus, ct.noise_bound * max(1, abs(k)),
        )

    def sum_slots(self, ct: ArithmeticCiphertext) -> ArithmeticCiphertext:
        total = int(np.sum(ct._plaintext)) % self.modulus
        return self.wrap(
            np.full(self.slot_count, total, dtype=np.int64), ct.level,
            ct.plaintext_modulus, ct.noise_bound * self.slot_count,
        )

    def remaining_levels(self, ct: ArithmeticCiphertext) -> int:
        return ct.level

    # -------------------------------------------------------------------------
    # Encoding switching
    # -------------------------------------------------------------------------

    def compare_at_base(self, ct: ArithmeticCiphertext) -> ArithmeticCiphertext:
        """
        Sign test at modulus p.

        Digit extraction leaves the bit in the top base-p digit, so the result
        holds bit * p^(r-1) modulo p^r.
        """
        if ct.plaintext_modulus != self.modulus:
            raise DimensionMismatch(
                f"Comparison expects plaintext modulus {self.modulus}, "
                f"got {ct.plaintext_modulus}"
            )
        bits = (self.decrypt(ct) > 0).astype(np.int64)
        return self.wrap(
            bits * self.p ** (self.r - 1), ct.level - self.comparison_depth,
            self.modulus, ct.noise_bound * self.p,
        )

    def divide_mod_by_p(self, ct: ArithmeticCiphertext) -> ArithmeticCiphertext:
        return divide_mod_by_p(ct, self.p)

    def lift_to_full(self, ct: ArithmeticCiphertext) -> ArithmeticCiphertext:
        """Re-express a bit held modulo p as the integer 0/1 modulo p^r."""
        if ct.plaintext_modulus != self.p:
            raise ParameterError(
                f"Lifting expects a ciphertext reduced to modulus p={self.p}, "
                f"got {ct.plaintext_modulus}"
            )
        bits = self.decrypt(ct)
        return self.wrap(bits, ct.level - 1, self.modulus, 1.0)
