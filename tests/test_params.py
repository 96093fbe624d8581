"""
Tests for the Parameter Resolver

Tests cover:
1. Bit-width tables for both strategies
2. Depth formula and comparison bounds
3. Validation failures
4. Depth verification and serialization
"""

import pytest

from he_bridge_kernel.errors import ParameterError
from he_bridge_kernel.params import (
    BIT_WIDTH_PROFILES,
    BitWidthProfile,
    BridgeStrategy,
    FHEW_TO_CKKS_DEPTH,
    ParameterResolver,
    ParameterSet,
    SELECT_DEPTH,
    encoding_switch_depth,
    euler_phi,
    resolve,
    supported_bit_widths,
    verify_depth,
)
from he_bridge_kernel.params.resolver import MAX_MODULUS_BITS, SPECIAL_PRIME_BITS


class TestBitWidthTable:
    """Fixed small-scheme mappings per bit width."""

    @pytest.mark.parametrize("bits,log_q,p_lwe", [
        (6, 15, 128),
        (8, 17, 512),
        (12, 21, 8192),
        (16, 25, 131072),
    ])
    def test_fhew_parameters(self, bits, log_q, p_lwe):
        params = resolve(bits, 128)
        assert params.fhew_log_q == log_q
        assert params.fhew_plaintext_modulus == p_lwe
        # Full difference range must be representable
        assert params.fhew_plaintext_modulus >= 2 ** (bits + 1)

    @pytest.mark.parametrize("bits,p,r,m", [
        (6, 3, 5, 16151),
        (8, 17, 3, 13201),
        (12, 67, 3, 31159),
        (16, 257, 3, 77641),
    ])
    def test_bgv_parameters(self, bits, p, r, m):
        params = resolve(bits, 128, strategy=BridgeStrategy.ENCODING_SWITCHING)
        assert (params.bgv_p, params.bgv_r, params.bgv_m) == (p, r, m)
        assert params.plaintext_modulus == p ** r
        # Every difference of two in-range operands keeps its sign
        assert params.comparison_bound >= 2 ** bits - 1

    def test_supported_bit_widths(self):
        assert supported_bit_widths() == (6, 8, 12, 16)

    @pytest.mark.parametrize("bits", [0, 4, 7, 10, 32])
    def test_unsupported_bit_width_raises(self, bits):
        with pytest.raises(ParameterError):
            resolve(bits, 128)

    def test_parameter_error_is_value_error(self):
        with pytest.raises(ValueError):
            resolve(5, 128)


class TestDepth:
    """Modulus chain sizing."""

    def test_scheme_switching_default_depth(self):
        params = resolve(8, 128)
        assert params.multiplicative_depth == 1 + FHEW_TO_CKKS_DEPTH + SELECT_DEPTH
        assert params.bridge_depth == FHEW_TO_CKKS_DEPTH

    def test_encoding_switching_default_depth(self):
        params = resolve(8, 128, strategy=BridgeStrategy.ENCODING_SWITCHING)
        # ceil(log2 17) * (3 - 1) + 1 + 1
        assert params.bridge_depth == 12
        assert params.multiplicative_depth == 1 + 12 + SELECT_DEPTH

    def test_encoding_switch_depth_grows_with_r(self):
        assert encoding_switch_depth(3, 5) == 2 * 4 + 2
        assert encoding_switch_depth(257, 3) == 9 * 2 + 2

    def test_extra_depth(self):
        base = resolve(8, 128)
        deeper = resolve(8, 128, extra_depth=3)
        assert deeper.multiplicative_depth == base.multiplicative_depth + 3

    def test_with_depth_returns_copy(self):
        params = resolve(8, 128)
        deeper = params.with_depth(20)
        assert deeper.multiplicative_depth == 20
        assert params.multiplicative_depth == 12
        assert deeper.bit_width == params.bit_width

    def test_ring_dimension_grows_with_depth(self):
        params = resolve(8, 128)
        assert params.ring_dimension >= 2 ** 14
        assert params.with_depth(30).ring_dimension > params.ring_dimension

    def test_ring_dimension_covers_modulus_chain(self):
        params = resolve(8, 128).with_depth(20)
        assert params.total_modulus_bits == params.first_mod_size + 20 * 40 + SPECIAL_PRIME_BITS
        assert MAX_MODULUS_BITS[params.ring_dimension] >= params.total_modulus_bits
        smaller = params.ring_dimension // 2
        assert MAX_MODULUS_BITS[smaller] < params.total_modulus_bits

    def test_too_deep_raises(self):
        with pytest.raises(ParameterError):
            resolve(8, 128).with_depth(200)

    def test_scheme_switching_needs_levels_after_switch(self):
        with pytest.raises(ParameterError):
            resolve(8, 128).with_depth(FHEW_TO_CKKS_DEPTH)

    def test_lifted_level(self):
        ss = resolve(8, 128)
        assert ss.lifted_level(5) == ss.multiplicative_depth - FHEW_TO_CKKS_DEPTH
        es = resolve(8, 128, strategy=BridgeStrategy.ENCODING_SWITCHING)
        assert es.lifted_level(10) == 10 - es.bridge_depth


class TestComparisonBound:

    def test_scheme_switching_bound(self):
        assert resolve(8, 128).comparison_bound == 255
        assert resolve(16, 128).comparison_bound == 65535

    def test_encoding_switching_bound(self):
        params = resolve(8, 128, strategy=BridgeStrategy.ENCODING_SWITCHING)
        assert params.comparison_bound == (4913 - 1) // 2


class TestValidation:

    @pytest.mark.parametrize("slots", [0, 3, 100])
    def test_slot_count_must_be_power_of_two(self, slots):
        with pytest.raises(ParameterError):
            resolve(8, slots)

    def test_slot_count_bounded_by_ring(self):
        with pytest.raises(ParameterError):
            resolve(8, 1 << 17)

    def test_plaintext_space_must_hold_differences(self, monkeypatch):
        # 17^2 = 289 holds 8-bit values but not their differences
        monkeypatch.setitem(
            BIT_WIDTH_PROFILES, 8,
            BitWidthProfile(8, fhew_log_q=17, bgv_p=17, bgv_r=2, bgv_m=13201, bgv_bits=256),
        )
        params = ParameterSet(8, 128, BridgeStrategy.ENCODING_SWITCHING, multiplicative_depth=10)
        with pytest.raises(ParameterError, match="differences"):
            params.validate()

    def test_encoding_ring_dimension_is_phi_m(self):
        params = resolve(8, 128, strategy=BridgeStrategy.ENCODING_SWITCHING)
        assert params.ring_dimension == euler_phi(13201)

    def test_euler_phi(self):
        assert euler_phi(1) == 1
        assert euler_phi(9) == 6
        assert euler_phi(13) == 12
        assert euler_phi(36) == 12


class TestResolver:

    def test_resolver_caches(self):
        resolver = ParameterResolver()
        assert resolver.resolve(8, 64) is resolver.resolve(8, 64)

    def test_parameter_set_is_immutable(self):
        params = resolve(8, 64)
        with pytest.raises(AttributeError):
            params.bit_width = 12

    def test_round_trip_dict(self):
        params = resolve(12, 64, strategy=BridgeStrategy.ENCODING_SWITCHING, extra_depth=2)
        restored = ParameterSet.from_dict(params.to_dict())
        assert restored == params


class TestVerifyDepth:

    def test_fits(self):
        params = resolve(8, 128)
        compat = verify_depth(params, params.multiplicative_depth)
        assert compat.compatible
        assert compat.error_message is None

    def test_overflow(self):
        params = resolve(8, 128)
        compat = verify_depth(params, params.multiplicative_depth + 1)
        assert not compat.compatible
        assert "Depth overflow" in compat.error_message
