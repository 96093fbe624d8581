"""
Tests for the OpenFHE backend.

The end-to-end tests need the openfhe bindings and are skipped without them.
"""

import sys

import numpy as np
import pytest

from he_bridge_kernel.backend import openfhe_backend
from he_bridge_kernel.context import BackendType, ContextManager
from he_bridge_kernel.errors import BackendNotAvailableError
from he_bridge_kernel.params import resolve


class TestAvailability:

    def test_missing_bindings_raise(self, monkeypatch):
        monkeypatch.setitem(sys.modules, "openfhe", None)
        assert not openfhe_backend.is_available()
        with pytest.raises(BackendNotAvailableError):
            ContextManager.build(resolve(8, 8), backend=BackendType.OPENFHE)


@pytest.mark.openfhe
class TestOpenFHEBridge:

    @pytest.fixture(scope="class")
    def openfhe_stack(self):
        pytest.importorskip("openfhe")
        from he_bridge_kernel.bridge import ComparisonBridge

        context = ContextManager.build(resolve(8, 8), backend=BackendType.OPENFHE)
        return context, ComparisonBridge.create(context)

    def test_round_trip(self, openfhe_stack):
        context, _ = openfhe_stack
        ct = context.encrypt([1.0, -2.0, 3.0])
        np.testing.assert_allclose(context.decrypt(ct, 3), [1.0, -2.0, 3.0], atol=1e-3)

    def test_compare(self, openfhe_stack):
        context, bridge = openfhe_stack
        a = context.encrypt([5, 3, 7, 0])
        b = context.encrypt([3, 3, 8, -4])
        mask = bridge.compare_lifted(context.sub(a, b))
        np.testing.assert_array_equal(np.rint(context.decrypt(mask, 4)), [1, 0, 0, 1])
