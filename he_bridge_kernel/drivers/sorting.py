"""
Encrypted rank sort.

    rank_i = sum_{j != i} [x_i > x_j]            n(n-1) comparisons
    out_k  = sum_i x_i * [rank_i == k]           [r == k] = [r-k >= 0] * [k-r >= 0]

Each element is its own ciphertext; SIMD lanes carry independent arrays of
the same length. Equal elements share a rank, so with duplicates some
output positions receive the sum of the tied elements and others stay 0.
"""

from typing import Any, Dict, List, Sequence
import logging

from ..backend.ciphertexts import ArithmeticCiphertext
from ..params.resolver import FHEW_TO_CKKS_DEPTH, ParameterSet
from .base import Driver, DriverResult

logger = logging.getLogger(__name__)


def required_depth(params: ParameterSet) -> int:
    """Rank comparisons, equality comparisons, indicator product, placement product."""
    if params.lift_resets_level:
        return FHEW_TO_CKKS_DEPTH + 2
    return 2 * params.bridge_depth + 2


class RankSorter(Driver):
    """Oblivious sort by counting smaller elements."""

    name = "rank_sort"

    def ranks(self, elements: Sequence[ArithmeticCiphertext]) -> List[ArithmeticCiphertext]:
        """Encrypted number of strictly smaller elements, per element."""
        ctx = self.context
        n = len(elements)
        ranks = []
        for i in range(n):
            bits = [
                self.bridge.compare_lifted(ctx.sub(elements[i], elements[j]))
                for j in range(n) if j != i
            ]
            ranks.append(ctx.add_many(bits) if bits else ctx.encrypt_broadcast(0))
        return ranks

    def equals(self, value: ArithmeticCiphertext, k: int) -> ArithmeticCiphertext:
        """Arithmetic [value == k] for integer-valued lanes."""
        ctx = self.context
        at_least = self.bridge.greater_equal(ctx.add_scalar(value, -k))
        at_most = self.bridge.greater_equal(ctx.add_scalar(ctx.negate(value), k))
        return ctx.mul(at_least, at_most)

    def sort(self, elements: Sequence[ArithmeticCiphertext]) -> DriverResult:
        """
        Args:
            elements: One ciphertext per array position

        Returns:
            DriverResult whose output is the list of sorted-position
            ciphertexts and whose intermediates hold the encrypted ranks.
        """
        n = len(elements)
        if n == 0:
            raise ValueError("Cannot sort an empty sequence")
        self.check_depth(required_depth(self.context.params))

        ctx = self.context
        holder: Dict[str, Any] = {}
        with self.measured(holder):
            ranks = self.ranks(elements)
            indicators = [[self.equals(ranks[i], k) for k in range(n)] for i in range(n)]
            placed = []
            for k in range(n):
                contributions = [ctx.mul(elements[i], indicators[i][k]) for i in range(n)]
                placed.append(ctx.add_many(contributions))

        logger.debug(f"Sorted {n} elements, output level {placed[0].level}")
        return DriverResult(output=placed, intermediates={'ranks': ranks}, **holder)

    evaluate = sort
