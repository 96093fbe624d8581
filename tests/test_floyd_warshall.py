"""
Tests for encrypted Floyd-Warshall.
"""

import numpy as np
import pytest

from he_bridge_kernel.drivers import (
    FloydWarshall,
    adjacency_matrix,
    check_infinity,
    default_infinity,
    encrypt_matrix,
)
from he_bridge_kernel.drivers.floyd_warshall import required_depth
from he_bridge_kernel.drivers.reference import plaintext_floyd_warshall
from he_bridge_kernel.errors import DimensionMismatch, ParameterError
from he_bridge_kernel.params import BridgeStrategy, resolve

from conftest import SLOTS, build_stack, decrypt_int

EDGES = [(0, 1, 5), (1, 2, 3), (2, 3, 1), (0, 3, 10)]


def graph_stack(strategy, n, seed=0):
    base = resolve(8, SLOTS, strategy=strategy)
    return build_stack(strategy, depth=required_depth(base, n), seed=seed)


def decrypt_matrix(context, matrix):
    return np.array([[decrypt_int(context, ct, 1)[0] for ct in row] for row in matrix])


class TestAdjacency:

    def test_directed(self):
        weights = adjacency_matrix(3, [(0, 1, 4)], infinity=50)
        np.testing.assert_array_equal(weights, [[0, 4, 50], [50, 0, 50], [50, 50, 0]])

    def test_undirected_keeps_lightest(self):
        weights = adjacency_matrix(2, [(0, 1, 4), (1, 0, 2)], infinity=50, directed=False)
        np.testing.assert_array_equal(weights, [[0, 2], [2, 0]])

    def test_infinity_bounds(self):
        params = resolve(8, SLOTS)
        inf = default_infinity(params)
        check_infinity(params, inf)
        with pytest.raises(ParameterError):
            check_infinity(params, params.comparison_bound // 2 + 1)


class TestShortestPaths:

    def test_four_vertex_chain(self, strategy):
        params, context, bridge = graph_stack(strategy, 4)
        weights = adjacency_matrix(4, EDGES, default_infinity(params))
        result = FloydWarshall(context, bridge).evaluate(encrypt_matrix(context, weights))

        dist = decrypt_matrix(context, result.output)
        assert dist[0][3] == 9
        expected, _ = plaintext_floyd_warshall(weights, track_predecessors=False)
        np.testing.assert_array_equal(dist, expected)

    def test_predecessors(self, strategy):
        params, context, bridge = graph_stack(strategy, 4)
        weights = adjacency_matrix(4, EDGES, default_infinity(params))
        result = FloydWarshall(context, bridge).evaluate(
            encrypt_matrix(context, weights), track_predecessors=True
        )

        pred = decrypt_matrix(context, result.intermediates['predecessors'])
        _, expected = plaintext_floyd_warshall(weights)
        np.testing.assert_array_equal(pred, expected)
        assert pred[0][3] == 2

    def test_graphs_in_lanes(self):
        strategy = BridgeStrategy.SCHEME_SWITCHING
        params, context, bridge = graph_stack(strategy, 3, seed=2)
        rng = np.random.default_rng(2)
        inf = default_infinity(params)
        graphs = []
        for _ in range(SLOTS):
            edges = [(u, v, int(rng.integers(1, 20))) for u in range(3) for v in range(3)
                     if u != v and rng.random() < 0.6]
            graphs.append(adjacency_matrix(3, edges, inf))
        stacked = np.stack(graphs, axis=-1)

        result = FloydWarshall(context, bridge).evaluate(encrypt_matrix(context, stacked))
        for lane, weights in enumerate(graphs):
            expected, _ = plaintext_floyd_warshall(weights, track_predecessors=False)
            got = np.array([[decrypt_int(context, ct)[lane] for ct in row] for row in result.output])
            np.testing.assert_array_equal(got, expected)

    def test_comparisons_skip_pivot_row_and_column(self):
        n = 4
        params, context, bridge = graph_stack(BridgeStrategy.SCHEME_SWITCHING, n)
        weights = adjacency_matrix(n, EDGES, default_infinity(params))
        result = FloydWarshall(context, bridge).evaluate(encrypt_matrix(context, weights))
        assert result.comparisons == n * (n - 1) * (n - 1)

    def test_non_square_rejected(self, context, bridge):
        row = [context.encrypt_broadcast(0)] * 2
        with pytest.raises(DimensionMismatch):
            FloydWarshall(context, bridge).evaluate([row, row[:1]])


class TestProvisioning:

    def test_required_depth(self):
        assert required_depth(resolve(8, SLOTS), 4) == 9 + 2 * 4
        es = resolve(8, SLOTS, strategy=BridgeStrategy.ENCODING_SWITCHING)
        assert required_depth(es, 4) == 4 * (es.bridge_depth + 2)

    def test_default_chain_warns(self, caplog):
        params, context, bridge = build_stack(BridgeStrategy.SCHEME_SWITCHING)
        weights = adjacency_matrix(2, [(0, 1, 3)], default_infinity(params))
        FloydWarshall(context, bridge).evaluate(encrypt_matrix(context, weights))
        assert required_depth(params, 2) > params.multiplicative_depth
        assert "Depth overflow" in caplog.text
