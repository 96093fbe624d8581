"""
Error taxonomy for the comparison-bridge kernel.

- ParameterError: unsupported bit width or a violated plaintext-modulus
  precondition. Raised at setup, never retried.
- DimensionMismatch: slot counts, schemes or lane layouts disagree between
  ciphertexts combined by a bridge, select or linear operation. Indicates a
  driver bug.
- BridgeExecutionError: an underlying backend call failed inside compare/lift.
- BackendNotAvailableError: a real HE backend was requested but its library
  is not installed.

Noise-budget exhaustion has no exception: the libraries return wrong values
silently, so it can only be caught by comparing against plaintext references.
"""


class BridgeKernelError(Exception):
    """Base class for all kernel errors."""
    pass


class ParameterError(BridgeKernelError, ValueError):
    """Raised when a parameter set cannot be resolved or a modulus precondition fails."""
    pass


class DimensionMismatch(BridgeKernelError):
    """Raised when ciphertext lane layouts disagree."""
    pass


class BridgeExecutionError(BridgeKernelError):
    """Raised when a backend primitive fails during compare or lift."""
    pass


class BackendNotAvailableError(BridgeKernelError):
    """Raised when a requested HE backend library is not installed."""
    pass
