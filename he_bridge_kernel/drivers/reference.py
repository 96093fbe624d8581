"""
Plaintext reference implementations of the drivers.

Encrypted runs are checked against these; noise exhaustion is otherwise
invisible.
"""

from typing import Dict, List, Optional, Sequence, Tuple

import numpy as np


def plaintext_decision_tree(
    thresholds: Sequence[float],
    leaf_values: Sequence[float],
    features: Sequence[float],
    feature_index: Optional[Sequence[int]] = None,
) -> float:
    """Walk a complete level-order tree; go right when feature > threshold."""
    num_internal = len(thresholds)
    if feature_index is None:
        feature_index = list(range(num_internal))
    node = 0
    while node < num_internal:
        goes_right = features[feature_index[node]] > thresholds[node]
        node = 2 * node + (2 if goes_right else 1)
    return leaf_values[node - num_internal]


def plaintext_ranks(values: Sequence[float]) -> List[int]:
    """rank_i = number of elements strictly smaller than values[i]."""
    return [sum(1 for y in values if y < x) for x in values]


def plaintext_rank_sort(values: Sequence[float]) -> List[float]:
    """
    Place each element at its rank; colliding ranks add up and leave zeros.

    Equals ``sorted(values)`` when all values are distinct.
    """
    ranks = plaintext_ranks(values)
    out = [0.0] * len(values)
    for value, rank in zip(values, ranks):
        out[rank] += value
    return out


def plaintext_floyd_warshall(
    weights: np.ndarray,
    track_predecessors: bool = True,
) -> Tuple[np.ndarray, Optional[np.ndarray]]:
    """
    All-pairs shortest paths.

    Returns the distance matrix and, if requested, the matrix of the last
    intermediate vertex improving each pair (initialised to the row index).
    """
    dist = np.array(weights, dtype=np.float64)
    n = dist.shape[0]
    pred = np.tile(np.arange(n).reshape(n, 1), (1, n)) if track_predecessors else None
    for k in range(n):
        for i in range(n):
            for j in range(n):
                candidate = dist[i, k] + dist[k, j]
                if candidate < dist[i, j]:
                    dist[i, j] = candidate
                    if pred is not None:
                        pred[i, j] = k
    return dist, pred


def plaintext_range_mask(
    columns: Dict[str, np.ndarray],
    predicates: Sequence[Tuple[str, float, float]],
) -> np.ndarray:
    """1 where every (column, lo, hi) holds with inclusive bounds."""
    mask = None
    for column, lo, hi in predicates:
        values = np.asarray(columns[column])
        hit = ((values >= lo) & (values <= hi)).astype(np.int64)
        mask = hit if mask is None else mask * hit
    return mask


def plaintext_employee_query(
    salary: np.ndarray,
    hours: np.ndarray,
    bonus: np.ndarray,
) -> Dict[str, float]:
    """salary*hours in [5000, 6000] and salary+bonus in [700, 800]."""
    salary = np.asarray(salary, dtype=np.int64)
    columns = {
        'pay': salary * np.asarray(hours, dtype=np.int64),
        'compensation': salary + np.asarray(bonus, dtype=np.int64),
    }
    mask = plaintext_range_mask(columns, [('pay', 5000, 6000), ('compensation', 700, 800)])
    return {
        'count': float(np.sum(mask)),
        'salary_sum': float(np.sum(mask * salary)),
    }


def plaintext_linear_then_compare(a, b, c) -> np.ndarray:
    return (np.asarray(a) * np.asarray(b) > np.asarray(c)).astype(np.int64)


def plaintext_compare_then_linear(a, b, c) -> np.ndarray:
    return (np.asarray(a) > np.asarray(b)).astype(np.int64) * np.asarray(c)


def plaintext_product_compare(a, b, c, d) -> np.ndarray:
    return (np.asarray(a) * np.asarray(b) > np.asarray(c) * np.asarray(d)).astype(np.int64)
