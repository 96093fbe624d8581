"""Tests for oblivious select."""

import numpy as np
import pytest

from he_bridge_kernel.errors import DimensionMismatch
from he_bridge_kernel.select import ObliviousSelect, select

from conftest import SLOTS, build_stack, decrypt_int


class TestSelect:

    def test_lane_wise_max(self, context, bridge):
        a = context.encrypt([7, 2, 9, 4])
        b = context.encrypt([4, 2, 1, 8])
        mask = bridge.compare_lifted(context.sub(a, b))
        larger = select(context, mask, a, b)
        np.testing.assert_array_equal(decrypt_int(context, larger, 4), [7, 2, 9, 8])

    def test_all_true_takes_first(self, context, bridge):
        mask = bridge.compare_lifted(context.encrypt_broadcast(1))
        result = select(context, mask, context.encrypt_broadcast(11), context.encrypt_broadcast(22))
        np.testing.assert_array_equal(decrypt_int(context, result), np.full(SLOTS, 11))

    def test_all_false_takes_second(self, context, bridge):
        mask = bridge.compare_lifted(context.encrypt_broadcast(-1))
        result = select(context, mask, context.encrypt_broadcast(11), context.encrypt_broadcast(22))
        np.testing.assert_array_equal(decrypt_int(context, result), np.full(SLOTS, 22))

    def test_records_select_and_products(self, context, bridge):
        mask = bridge.compare_lifted(context.encrypt([1]))
        context.reset_stats()
        select(context, mask, context.encrypt([1]), context.encrypt([2]))
        assert context.stats.selects == 1
        assert context.stats.multiplications == 2

    def test_consumes_levels(self, stack):
        params, context, bridge = stack
        mask = bridge.compare_lifted(context.encrypt([1]))
        result = select(context, mask, context.encrypt([1]), context.encrypt([2]))
        assert result.level == mask.level - 1
        assert result.level >= 0

    def test_bound_helper(self, context, bridge):
        chooser = ObliviousSelect(context)
        mask = bridge.compare_lifted(context.encrypt([-3]))
        result = chooser(mask, context.encrypt([5]), context.encrypt([6]))
        assert decrypt_int(context, result, 1)[0] == 6


class TestSelectErrors:

    def test_unlifted_mask_rejected(self, context, bridge):
        raw = bridge.compare(context.encrypt([1]))
        with pytest.raises(TypeError):
            select(context, raw, context.encrypt([1]), context.encrypt([2]))

    def test_plain_ciphertext_mask_rejected(self, context):
        with pytest.raises(TypeError):
            select(context, context.encrypt([1]), context.encrypt([1]), context.encrypt([2]))

    def test_slot_mismatch(self, strategy, context, bridge):
        _, other, _ = build_stack(strategy, slot_count=SLOTS * 2)
        mask = bridge.compare_lifted(context.encrypt([1]))
        with pytest.raises(DimensionMismatch):
            select(context, mask, context.encrypt([1]), other.encrypt([2]))
