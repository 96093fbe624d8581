"""
Comparison bridge between arithmetic HE and a sign-capable representation.

Two strategies:
  - CrossSchemeBridge: CKKS -> FHEW sign -> CKKS (scheme switching)
  - EncodingSwitchBridge: BGV p^r -> sign at p -> p^r (encoding switching)
"""

from ..params.resolver import BridgeStrategy
from .base import ComparisonBridge
from .cross_scheme import CrossSchemeBridge
from .encoding_switch import EncodingSwitchBridge
from .lut import SignLUT
from .quantizer import SignQuantizer

__all__ = [
    'BridgeStrategy',
    'ComparisonBridge',
    'CrossSchemeBridge',
    'EncodingSwitchBridge',
    'SignLUT',
    'SignQuantizer',
]
