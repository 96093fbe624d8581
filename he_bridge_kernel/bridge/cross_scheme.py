"""
Scheme-switching bridge: CKKS -> FHEW sign -> CKKS.

The CKKS difference is switched into one LWE ciphertext per lane, FHEW
evaluates the sign by programmable bootstrapping, and the bits are packed
back into a fresh CKKS ciphertext. FHEW's sign test returns 1 for negative
messages, so the difference is negated first: [-diff < 0] == [diff > 0], and
a zero difference yields 0.
"""

from ..backend.ciphertexts import ArithmeticCiphertext, BooleanCiphertext
from ..errors import DimensionMismatch
from ..params.resolver import BridgeStrategy
from .base import ComparisonBridge


class CrossSchemeBridge(ComparisonBridge):
    """Comparison through CKKS <-> FHEW scheme switching."""

    strategy = BridgeStrategy.SCHEME_SWITCHING

    def _compare(self, diff: ArithmeticCiphertext) -> BooleanCiphertext:
        switching = self.context.switching
        num_values = self.context.slot_count

        negated = self.context.negate(diff)
        lwes = self._guarded("CKKS->FHEW switch", switching.ckks_to_fhew, negated, num_values)
        self.stats.record("scheme_switches")

        signs = tuple(self._guarded("FHEW sign", switching.eval_sign, lwe) for lwe in lwes)
        self.stats.record("bootstraps", len(signs))

        return BooleanCiphertext(
            strategy=self.strategy,
            slot_count=num_values,
            data=signs,
            scale_exponent=0,
        )

    def _lift(self, b: BooleanCiphertext) -> ArithmeticCiphertext:
        lanes = b.lanes
        if len(lanes) != b.slot_count:
            raise DimensionMismatch(
                f"Boolean carries {len(lanes)} LWE ciphertexts for {b.slot_count} lanes"
            )
        result = self._guarded(
            "FHEW->CKKS switch", self.context.switching.fhew_to_ckks, lanes, b.slot_count
        )
        self.stats.record("scheme_switches")
        return result

    def decrypt_bits(self, b: BooleanCiphertext):
        """Decrypt each lane of a boolean without lifting it."""
        return [self.context.switching.decrypt_lwe(lwe) for lwe in b.lanes]
