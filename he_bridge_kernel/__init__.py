"""
HE Bridge Kernel

Comparison over homomorphically encrypted integers. Arithmetic schemes (CKKS,
BGV) add and multiply packed integers cheaply but cannot test a sign; the
kernel bridges into a representation that can and brings the result back as
an arithmetic 0/1 usable by oblivious select.

Key Features:
  - Parameter resolution for 6/8/12/16-bit integers
  - Two bridge strategies: CKKS <-> FHEW scheme switching and BGV
    plaintext-modulus (encoding) switching
  - Oblivious select on lifted comparison masks
  - Encrypted decision trees, rank sort, Floyd-Warshall and range filters

Quick Start:
    from he_bridge_kernel import resolve, ContextManager, ComparisonBridge, select

    params = resolve(8, 128)
    context = ContextManager.build(params)
    bridge = ComparisonBridge.create(context)

    a = context.encrypt([7, 2, 9])
    b = context.encrypt([4, 2, 1])
    mask = bridge.compare_lifted(context.sub(a, b))    # [a > b]
    larger = select(context, mask, a, b)                # max(a, b)
"""

from .bridge import ComparisonBridge, CrossSchemeBridge, EncodingSwitchBridge
from .config import BridgeStack, KernelConfig, create_bridge_stack
from .context import BackendType, Context, ContextManager, build_context
from .errors import (
    BackendNotAvailableError,
    BridgeExecutionError,
    BridgeKernelError,
    DimensionMismatch,
    ParameterError,
)
from .params import BridgeStrategy, ParameterSet, resolve, verify_depth
from .select import ObliviousSelect, select

__version__ = '0.1.0'

# Version info
VERSION_INFO = {
    'version': __version__,
    'bit_widths': [6, 8, 12, 16],
    'strategies': ['SCHEME_SWITCHING', 'ENCODING_SWITCHING'],
    'backends': ['SIMULATION', 'OPENFHE'],
}

__all__ = [
    'BackendNotAvailableError',
    'BackendType',
    'BridgeExecutionError',
    'BridgeKernelError',
    'BridgeStack',
    'BridgeStrategy',
    'ComparisonBridge',
    'Context',
    'ContextManager',
    'CrossSchemeBridge',
    'DimensionMismatch',
    'EncodingSwitchBridge',
    'KernelConfig',
    'ObliviousSelect',
    'ParameterError',
    'ParameterSet',
    'build_context',
    'create_bridge_stack',
    'resolve',
    'select',
    'verify_depth',
]
