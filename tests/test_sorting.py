"""
Tests for encrypted rank sort.
"""

import numpy as np
import pytest

from he_bridge_kernel.drivers import RankSorter
from he_bridge_kernel.drivers.reference import plaintext_rank_sort, plaintext_ranks
from he_bridge_kernel.drivers.sorting import required_depth
from he_bridge_kernel.params import BridgeStrategy, resolve

from conftest import SLOTS, build_stack, decrypt_int


def sort_stack(strategy, seed=0):
    base = resolve(8, SLOTS, strategy=strategy)
    return build_stack(strategy, depth=required_depth(base), seed=seed)


class TestReference:

    def test_ranks(self):
        assert plaintext_ranks([7, 2, 9, 4]) == [2, 0, 3, 1]

    def test_rank_sort_distinct(self):
        assert plaintext_rank_sort([7, 2, 9, 4]) == [2, 4, 7, 9]

    def test_rank_sort_duplicates_collide(self):
        # Both 5s get rank 1; position 2 stays empty
        assert plaintext_rank_sort([5, 1, 5]) == [1, 10, 0]


class TestRankSort:

    def test_ranks_and_sorted_output(self, strategy):
        _, context, bridge = sort_stack(strategy)
        elements = [context.encrypt_broadcast(v) for v in [7, 2, 9, 4]]
        result = RankSorter(context, bridge).sort(elements)

        ranks = [decrypt_int(context, r, 1)[0] for r in result.intermediates['ranks']]
        assert ranks == [2, 0, 3, 1]
        placed = [decrypt_int(context, ct, 1)[0] for ct in result.output]
        assert placed == [2, 4, 7, 9]

    def test_independent_arrays_per_lane(self, strategy):
        _, context, bridge = sort_stack(strategy, seed=1)
        rng = np.random.default_rng(1)
        n = 4
        # Distinct values within each lane
        arrays = np.stack([rng.permutation(60)[:n] for _ in range(SLOTS)])
        elements = [context.encrypt(arrays[:, i]) for i in range(n)]
        result = RankSorter(context, bridge).sort(elements)

        placed = np.stack([decrypt_int(context, ct) for ct in result.output], axis=1)
        np.testing.assert_array_equal(placed, np.sort(arrays, axis=1))

    def test_duplicates_collide(self, strategy):
        _, context, bridge = sort_stack(strategy)
        elements = [context.encrypt_broadcast(v) for v in [5, 1, 5]]
        result = RankSorter(context, bridge).sort(elements)
        placed = [decrypt_int(context, ct, 1)[0] for ct in result.output]
        assert placed == plaintext_rank_sort([5, 1, 5])

    def test_comparison_count(self):
        _, context, bridge = sort_stack(BridgeStrategy.SCHEME_SWITCHING)
        n = 3
        elements = [context.encrypt_broadcast(v) for v in [3, 1, 2]]
        result = RankSorter(context, bridge).sort(elements)
        # n(n-1) rank comparisons plus two per equality test
        assert result.comparisons == n * (n - 1) + 2 * n * n

    def test_single_element(self, context, bridge):
        result = RankSorter(context, bridge).sort([context.encrypt_broadcast(6)])
        assert decrypt_int(context, result.output[0], 1)[0] == 6

    def test_empty_rejected(self, context, bridge):
        with pytest.raises(ValueError):
            RankSorter(context, bridge).sort([])


class TestEquals:

    def test_equality_indicator(self, strategy):
        _, context, bridge = sort_stack(strategy)
        sorter = RankSorter(context, bridge)
        value = context.encrypt([0, 1, 2, 3])
        np.testing.assert_array_equal(decrypt_int(context, sorter.equals(value, 2), 4), [0, 0, 1, 0])


class TestProvisioning:

    def test_required_depth(self):
        assert required_depth(resolve(8, SLOTS)) == 11
        es = resolve(8, SLOTS, strategy=BridgeStrategy.ENCODING_SWITCHING)
        assert required_depth(es) == 2 * es.bridge_depth + 2
