"""
Tests for encrypted decision-tree inference.
"""

import numpy as np
import pytest

from he_bridge_kernel.drivers import (
    DecisionTree,
    DecisionTreeEvaluator,
    encrypt_features,
    encrypt_tree,
)
from he_bridge_kernel.drivers.decision_tree import required_depth
from he_bridge_kernel.drivers.reference import plaintext_decision_tree
from he_bridge_kernel.params import BridgeStrategy

from conftest import SLOTS, build_stack, decrypt_int


def random_tree(rng, depth):
    return DecisionTree(
        depth=depth,
        thresholds=rng.integers(0, 50, (1 << depth) - 1).tolist(),
        leaf_values=rng.integers(0, 100, 1 << depth).tolist(),
    )


class TestDecisionTreeModel:

    def test_path(self):
        tree = DecisionTree(depth=2, thresholds=[5, 3, 8], leaf_values=[10, 20, 30, 40])
        assert tree.path(0) == [(0, False), (1, False)]
        assert tree.path(3) == [(0, True), (2, True)]

    def test_default_feature_index(self):
        tree = DecisionTree(depth=2, thresholds=[5, 3, 8], leaf_values=[10, 20, 30, 40])
        assert tree.feature_index == [0, 1, 2]
        assert tree.num_features == 3

    def test_wrong_threshold_count(self):
        with pytest.raises(ValueError):
            DecisionTree(depth=2, thresholds=[5, 3], leaf_values=[10, 20, 30, 40])

    def test_wrong_leaf_count(self):
        with pytest.raises(ValueError):
            DecisionTree(depth=2, thresholds=[5, 3, 8], leaf_values=[10, 20, 30])

    def test_wrong_feature_index_length(self):
        with pytest.raises(ValueError):
            DecisionTree(depth=1, thresholds=[5], leaf_values=[1, 2], feature_index=[0, 1])

    def test_zero_depth(self):
        with pytest.raises(ValueError):
            DecisionTree(depth=0, thresholds=[], leaf_values=[1])

    def test_reference_walk(self):
        assert plaintext_decision_tree([5, 3, 8], [10, 20, 30, 40], [6, 1, 9]) == 40
        assert plaintext_decision_tree([5, 3, 8], [10, 20, 30, 40], [4, 1, 9]) == 10
        assert plaintext_decision_tree([5, 3, 8], [10, 20, 30, 40], [4, 7, 0]) == 20


class TestEncryptedInference:

    def test_depth_two_example(self, context, bridge):
        tree = DecisionTree(depth=2, thresholds=[5, 3, 8], leaf_values=[10, 20, 30, 40])
        result = DecisionTreeEvaluator(context, bridge).evaluate(
            encrypt_tree(context, tree), encrypt_features(context, [6, 1, 9])
        )
        np.testing.assert_array_equal(decrypt_int(context, result.output), np.full(SLOTS, 40))
        assert len(result.intermediates['decisions']) == 3
        assert result.comparisons == 3

    def test_samples_in_lanes(self, context, bridge):
        tree = DecisionTree(depth=2, thresholds=[5, 3, 8], leaf_values=[10, 20, 30, 40])
        samples = np.array([[6, 1, 9], [4, 1, 9], [4, 7, 0], [6, 1, 2]])
        features = encrypt_features(context, [samples[:, f] for f in range(3)])
        result = DecisionTreeEvaluator(context, bridge).evaluate(encrypt_tree(context, tree), features)
        expected = [plaintext_decision_tree([5, 3, 8], [10, 20, 30, 40], s) for s in samples]
        np.testing.assert_array_equal(decrypt_int(context, result.output, 4), expected)

    def test_shared_feature(self, context, bridge):
        tree = DecisionTree(
            depth=2, thresholds=[10, 5, 20], leaf_values=[1, 2, 3, 4], feature_index=[0, 0, 0],
        )
        result = DecisionTreeEvaluator(context, bridge).evaluate(
            encrypt_tree(context, tree), encrypt_features(context, [[3, 7, 15, 25]])
        )
        np.testing.assert_array_equal(decrypt_int(context, result.output, 4), [1, 2, 3, 4])

    @pytest.mark.parametrize("seed", range(10))
    def test_random_trees_match_reference(self, strategy, seed):
        params, context, bridge = build_stack(strategy, seed=seed)
        rng = np.random.default_rng(seed)
        depth = 3
        tree = random_tree(rng, depth)
        samples = rng.integers(0, 50, (SLOTS, tree.num_features))
        assert required_depth(params, depth) <= params.multiplicative_depth

        features = encrypt_features(context, [samples[:, f] for f in range(tree.num_features)])
        result = DecisionTreeEvaluator(context, bridge).evaluate(encrypt_tree(context, tree), features)

        expected = [
            plaintext_decision_tree(tree.thresholds, tree.leaf_values, s) for s in samples
        ]
        np.testing.assert_array_equal(decrypt_int(context, result.output), expected)

    def test_too_few_features(self, context, bridge):
        tree = DecisionTree(depth=2, thresholds=[5, 3, 8], leaf_values=[10, 20, 30, 40])
        with pytest.raises(ValueError):
            DecisionTreeEvaluator(context, bridge).evaluate(
                encrypt_tree(context, tree), encrypt_features(context, [6, 1])
            )


class TestProvisioning:

    def test_required_depth(self):
        ss_params, _, _ = build_stack(BridgeStrategy.SCHEME_SWITCHING)
        es_params, _, _ = build_stack(BridgeStrategy.ENCODING_SWITCHING)
        assert required_depth(ss_params, 2) == 11
        assert required_depth(es_params, 2) == es_params.bridge_depth + 2

    def test_under_provisioned_tree_is_silently_wrong(self, caplog):
        # A depth-4 tree needs one level more than the default chain
        params, context, bridge = build_stack(BridgeStrategy.SCHEME_SWITCHING)
        rng = np.random.default_rng(3)
        tree = random_tree(rng, 4)
        assert required_depth(params, 4) > params.multiplicative_depth

        samples = rng.integers(0, 50, (SLOTS, tree.num_features))
        features = encrypt_features(context, [samples[:, f] for f in range(tree.num_features)])
        result = DecisionTreeEvaluator(context, bridge).evaluate(encrypt_tree(context, tree), features)

        expected = [plaintext_decision_tree(tree.thresholds, tree.leaf_values, s) for s in samples]
        assert "Depth overflow" in caplog.text
        assert not np.array_equal(decrypt_int(context, result.output), expected)
