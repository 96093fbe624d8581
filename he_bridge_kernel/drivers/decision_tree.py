"""
Encrypted decision-tree inference.

The tree is complete and stored level-order: node c has children 2c+1 (left)
and 2c+2 (right), internal nodes come first, leaves last. Every internal node
is compared, then each leaf's path indicator is the product of the decisions
along its path, and the prediction is the sum of indicator * leaf value.

SIMD lanes carry independent samples: lane b of every feature ciphertext
belongs to sample b, and the output's lane b is that sample's prediction.
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence
import logging

import numpy as np

from ..backend.ciphertexts import ArithmeticCiphertext
from ..context import Context
from ..params.resolver import FHEW_TO_CKKS_DEPTH, ParameterSet
from .base import Driver, DriverResult

logger = logging.getLogger(__name__)


@dataclass
class DecisionTree:
    """Plaintext model description."""
    depth: int
    thresholds: List[float]
    leaf_values: List[float]
    feature_index: Optional[List[int]] = None  # Feature compared at each internal node

    def __post_init__(self):
        if self.depth < 1:
            raise ValueError(f"Tree depth must be >= 1, got {self.depth}")
        if len(self.thresholds) != self.num_internal:
            raise ValueError(
                f"Depth {self.depth} tree needs {self.num_internal} thresholds, "
                f"got {len(self.thresholds)}"
            )
        if len(self.leaf_values) != self.num_leaves:
            raise ValueError(
                f"Depth {self.depth} tree needs {self.num_leaves} leaves, "
                f"got {len(self.leaf_values)}"
            )
        if self.feature_index is None:
            self.feature_index = list(range(self.num_internal))
        elif len(self.feature_index) != self.num_internal:
            raise ValueError(
                f"feature_index must name one feature per internal node "
                f"({self.num_internal}), got {len(self.feature_index)}"
            )

    @property
    def num_internal(self) -> int:
        return (1 << self.depth) - 1

    @property
    def num_leaves(self) -> int:
        return 1 << self.depth

    @property
    def num_features(self) -> int:
        return max(self.feature_index) + 1

    def path(self, leaf: int) -> List[tuple]:
        """(node, goes_right) pairs from the root to ``leaf``."""
        steps = []
        node = 0
        for level in range(self.depth):
            goes_right = (leaf >> (self.depth - 1 - level)) & 1
            steps.append((node, bool(goes_right)))
            node = 2 * node + 1 + goes_right
        return steps


@dataclass
class EncryptedTree:
    """Model with thresholds and leaf values encrypted in every slot."""
    depth: int
    thresholds: List[ArithmeticCiphertext]
    leaf_values: List[ArithmeticCiphertext]
    feature_index: List[int]
    plain: DecisionTree


def encrypt_tree(context: Context, tree: DecisionTree) -> EncryptedTree:
    """Encrypt a model so neither thresholds nor leaves are visible to the evaluator."""
    return EncryptedTree(
        depth=tree.depth,
        thresholds=[context.encrypt_broadcast(t) for t in tree.thresholds],
        leaf_values=[context.encrypt_broadcast(v) for v in tree.leaf_values],
        feature_index=list(tree.feature_index),
        plain=tree,
    )


def encrypt_features(context: Context, features: Sequence[Any]) -> List[ArithmeticCiphertext]:
    """One ciphertext per feature; scalars fill every slot, arrays fill one lane per sample."""
    encrypted = []
    for value in features:
        if np.ndim(value) == 0:
            encrypted.append(context.encrypt_broadcast(float(value)))
        else:
            encrypted.append(context.encrypt(value))
    return encrypted


def required_depth(params: ParameterSet, tree_depth: int) -> int:
    """Levels for one round of comparisons plus a depth-d path product and leaf product."""
    if params.lift_resets_level:
        return FHEW_TO_CKKS_DEPTH + tree_depth
    return params.bridge_depth + tree_depth


class DecisionTreeEvaluator(Driver):
    """Oblivious evaluation: every node is compared, every leaf is weighed."""

    name = "decision_tree"

    def evaluate(
        self,
        tree: EncryptedTree,
        features: Sequence[ArithmeticCiphertext],
    ) -> DriverResult:
        """
        Args:
            tree: Encrypted model from ``encrypt_tree``
            features: One ciphertext per feature index used by the tree

        Returns:
            DriverResult whose output holds the prediction in every sample lane
            and whose intermediates hold the lifted node decisions.
        """
        if len(features) < tree.plain.num_features:
            raise ValueError(
                f"Tree reads {tree.plain.num_features} features, got {len(features)}"
            )
        self.check_depth(required_depth(self.context.params, tree.depth))

        ctx = self.context
        holder: Dict[str, Any] = {}
        with self.measured(holder):
            decisions = []
            for node in range(tree.plain.num_internal):
                feature = features[tree.feature_index[node]]
                decisions.append(
                    self.bridge.compare_lifted(ctx.sub(feature, tree.thresholds[node]))
                )

            complements: Dict[int, ArithmeticCiphertext] = {}

            def branch(node: int, goes_right: bool) -> ArithmeticCiphertext:
                if goes_right:
                    return decisions[node]
                if node not in complements:
                    complements[node] = ctx.add_scalar(ctx.negate(decisions[node]), 1)
                return complements[node]

            weighted = []
            for leaf in range(tree.plain.num_leaves):
                steps = tree.plain.path(leaf)
                indicator = branch(*steps[0])
                for node, goes_right in steps[1:]:
                    indicator = ctx.mul(indicator, branch(node, goes_right))
                weighted.append(ctx.mul(indicator, tree.leaf_values[leaf]))

            prediction = ctx.add_many(weighted)

        logger.debug(f"Evaluated depth-{tree.depth} tree, output level {prediction.level}")
        return DriverResult(
            output=prediction,
            intermediates={'decisions': decisions},
            **holder,
        )
