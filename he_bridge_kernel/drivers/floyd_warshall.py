"""
Encrypted Floyd-Warshall all-pairs shortest paths.

For every pivot k and pair (i, j):

    candidate = D[i,k] + D[k,j]
    shorter   = [D[i,j] - candidate > 0]
    D[i,j]    = select(shorter, candidate, D[i,j])
    P[i,j]    = select(shorter, k, P[i,j])        (optional)

Pairs in the pivot row or column are skipped: with D[k,k] = 0 their
candidate equals the current value. Missing edges carry a finite
"infinity" small enough that the sum of two of them is still compared
exactly. SIMD lanes carry independent graphs of the same size.
"""

from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple
import logging

import numpy as np

from ..backend.ciphertexts import ArithmeticCiphertext
from ..context import Context
from ..errors import DimensionMismatch, ParameterError
from ..params.resolver import FHEW_TO_CKKS_DEPTH, SELECT_DEPTH, ParameterSet
from .base import Driver, DriverResult

logger = logging.getLogger(__name__)

Matrix = List[List[ArithmeticCiphertext]]


def default_infinity(params: ParameterSet) -> int:
    return params.comparison_bound // 2


def check_infinity(params: ParameterSet, infinity: int) -> None:
    """
    Raises:
        ParameterError: If two infinite edges would overflow the comparison range.
    """
    if 2 * infinity > params.comparison_bound:
        raise ParameterError(
            f"infinity={infinity} too large: 2*infinity must not exceed the "
            f"comparison bound {params.comparison_bound}"
        )


def adjacency_matrix(
    n: int,
    edges: Iterable[Tuple[int, int, int]],
    infinity: int,
    directed: bool = True,
) -> np.ndarray:
    """Dense weight matrix: 0 on the diagonal, ``infinity`` where no edge exists."""
    weights = np.full((n, n), infinity, dtype=np.int64)
    np.fill_diagonal(weights, 0)
    for u, v, w in edges:
        weights[u, v] = min(weights[u, v], w)
        if not directed:
            weights[v, u] = min(weights[v, u], w)
    return weights


def encrypt_matrix(context: Context, weights: np.ndarray) -> Matrix:
    """Encrypt each entry in every slot; 3-D input puts one graph per lane."""
    weights = np.asarray(weights)
    n = weights.shape[0]
    if weights.ndim == 2:
        return [[context.encrypt_broadcast(float(weights[i, j])) for j in range(n)] for i in range(n)]
    # (n, n, lanes)
    return [[context.encrypt(weights[i, j]) for j in range(n)] for i in range(n)]


def required_depth(params: ParameterSet, n: int) -> int:
    """One compare and one select per pivot, n pivots."""
    if params.lift_resets_level:
        return FHEW_TO_CKKS_DEPTH + SELECT_DEPTH * n
    return n * (params.bridge_depth + SELECT_DEPTH)


class FloydWarshall(Driver):
    """Oblivious all-pairs shortest paths over an encrypted weight matrix."""

    name = "floyd_warshall"

    def evaluate(
        self,
        distances: Sequence[Sequence[ArithmeticCiphertext]],
        track_predecessors: bool = False,
    ) -> DriverResult:
        """
        Args:
            distances: n x n matrix of ciphertexts
            track_predecessors: Also maintain the last improving pivot per pair

        Returns:
            DriverResult whose output is the shortest-distance matrix and
            whose intermediates hold ``predecessors`` when requested.
        """
        n = len(distances)
        if any(len(row) != n for row in distances):
            raise DimensionMismatch("Distance matrix must be square")
        self.check_depth(required_depth(self.context.params, n))

        ctx = self.context
        dist: Matrix = [list(row) for row in distances]
        pred: Optional[Matrix] = None
        pivots: List[ArithmeticCiphertext] = []
        if track_predecessors:
            pred = [[ctx.encrypt_broadcast(i) for _ in range(n)] for i in range(n)]
            pivots = [ctx.encrypt_broadcast(k) for k in range(n)]

        holder: Dict[str, Any] = {}
        with self.measured(holder):
            for k in range(n):
                for i in range(n):
                    if i == k:
                        continue
                    for j in range(n):
                        if j == k:
                            continue
                        candidate = ctx.add(dist[i][k], dist[k][j])
                        shorter = self.bridge.compare_lifted(ctx.sub(dist[i][j], candidate))
                        dist[i][j] = self.selector(shorter, candidate, dist[i][j])
                        if pred is not None:
                            pred[i][j] = self.selector(shorter, pivots[k], pred[i][j])
                logger.debug(f"Pivot {k} of {n} done")

        intermediates = {'predecessors': pred} if pred is not None else {}
        return DriverResult(output=dist, intermediates=intermediates, **holder)
