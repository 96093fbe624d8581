"""
Encoding-switching bridge: BGV at p^r -> sign at p -> back to p^r.

The comparison circuit runs at the small modulus p and leaves its bit in the
top base-p digit (bit * p^(r-1)). Lifting reinterprets the ciphertext modulo
successively smaller powers of p until only that digit remains, then
re-expresses the bit as a full-precision 0/1.
"""

import logging

from ..backend.ciphertexts import ArithmeticCiphertext, BooleanCiphertext
from ..params.resolver import BridgeStrategy
from .base import ComparisonBridge

logger = logging.getLogger(__name__)


class EncodingSwitchBridge(ComparisonBridge):
    """Comparison through BGV plaintext-modulus switching."""

    strategy = BridgeStrategy.ENCODING_SWITCHING

    def _compare(self, diff: ArithmeticCiphertext) -> BooleanCiphertext:
        reduced = self._guarded(
            "Base-p comparison", self.context.switching.compare_at_base, diff
        )
        return BooleanCiphertext(
            strategy=self.strategy,
            slot_count=diff.slot_count,
            data=reduced,
            scale_exponent=self.params.bgv_r - 1,
        )

    def _lift(self, b: BooleanCiphertext) -> ArithmeticCiphertext:
        switching = self.context.switching
        ct = b.data
        for _ in range(b.scale_exponent):
            ct = switching.divide_mod_by_p(ct)
        logger.debug(
            f"Reduced plaintext modulus to {ct.plaintext_modulus} after "
            f"{b.scale_exponent} division(s) by p={self.params.bgv_p}"
        )
        return self._guarded("Lift to p^r", switching.lift_to_full, ct)
