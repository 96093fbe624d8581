"""Shared fixtures: small simulated contexts for both bridge strategies."""

import numpy as np
import pytest

from he_bridge_kernel.bridge import ComparisonBridge
from he_bridge_kernel.context import ContextManager
from he_bridge_kernel.params import BridgeStrategy, resolve

SLOTS = 8

STRATEGIES = [BridgeStrategy.SCHEME_SWITCHING, BridgeStrategy.ENCODING_SWITCHING]


def build_stack(strategy, bit_width=8, slot_count=SLOTS, depth=None, seed=0):
    """Params, context and bridge; ``depth`` raises the chain when given."""
    params = resolve(bit_width, slot_count, strategy=strategy)
    if depth is not None and depth > params.multiplicative_depth:
        params = params.with_depth(depth)
    context = ContextManager.build(params, seed=seed)
    return params, context, ComparisonBridge.create(context)


def decrypt_int(context, ct, length=None):
    """Decrypt and round to integers (CKKS lanes are approximate)."""
    return np.rint(context.decrypt(ct, length)).astype(np.int64)


@pytest.fixture(params=STRATEGIES, ids=lambda s: s.value)
def strategy(request):
    return request.param


@pytest.fixture
def stack(strategy):
    return build_stack(strategy)


@pytest.fixture
def context(stack):
    return stack[1]


@pytest.fixture
def bridge(stack):
    return stack[2]
