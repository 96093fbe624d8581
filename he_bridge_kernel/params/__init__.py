"""
Parameter resolution for the comparison bridge.

Maps an integer bit width to arithmetic-scheme and small-scheme parameters
sized so that a full compare/lift/select round trip fits the modulus chain.
"""

from .resolver import (
    ArithmeticScheme,
    BIT_WIDTH_PROFILES,
    BitWidthProfile,
    BridgeStrategy,
    CKKS_SCALE_MOD_SIZE,
    DepthCompatibility,
    FHEW_BETA,
    FHEW_TO_CKKS_DEPTH,
    PRE_BRIDGE_DEPTH,
    ParameterResolver,
    ParameterSet,
    SELECT_DEPTH,
    default_depth,
    encoding_switch_depth,
    euler_phi,
    resolve,
    supported_bit_widths,
    verify_depth,
)

__all__ = [
    'ArithmeticScheme',
    'BIT_WIDTH_PROFILES',
    'BitWidthProfile',
    'BridgeStrategy',
    'CKKS_SCALE_MOD_SIZE',
    'DepthCompatibility',
    'FHEW_BETA',
    'FHEW_TO_CKKS_DEPTH',
    'PRE_BRIDGE_DEPTH',
    'ParameterResolver',
    'ParameterSet',
    'SELECT_DEPTH',
    'default_depth',
    'encoding_switch_depth',
    'euler_phi',
    'resolve',
    'supported_bit_widths',
    'verify_depth',
]
