"""
Kernel Configuration.

Reads backend, strategy and sizing defaults from the environment and builds
the parameter set, context and bridge in one call.
"""

import logging
import os
from dataclasses import dataclass, field
from typing import NamedTuple, Optional

from .bridge.base import ComparisonBridge
from .context import BackendType, Context, ContextManager
from .errors import ParameterError
from .params.resolver import BridgeStrategy, ParameterSet, resolve

logger = logging.getLogger(__name__)


def _optional_int(name: str) -> Optional[int]:
    value = os.getenv(name)
    return int(value) if value not in (None, "") else None


def _optional_float(name: str) -> Optional[float]:
    value = os.getenv(name)
    return float(value) if value not in (None, "") else None


@dataclass
class KernelConfig:
    """Configuration for building a bridge stack."""

    # Backend: 'simulation' or 'openfhe'
    backend: str = field(
        default_factory=lambda: os.getenv("HE_BRIDGE_BACKEND", "simulation")
    )

    # Strategy: 'scheme_switching' or 'encoding_switching'
    strategy: str = field(
        default_factory=lambda: os.getenv("HE_BRIDGE_STRATEGY", "scheme_switching")
    )

    # Sizing
    bit_width: int = field(
        default_factory=lambda: int(os.getenv("HE_BRIDGE_BIT_WIDTH", "8"))
    )
    slot_count: int = field(
        default_factory=lambda: int(os.getenv("HE_BRIDGE_SLOT_COUNT", "128"))
    )
    extra_depth: int = 0

    # Simulation settings
    seed: Optional[int] = field(default_factory=lambda: _optional_int("HE_BRIDGE_SEED"))
    noise_std: Optional[float] = field(
        default_factory=lambda: _optional_float("HE_BRIDGE_NOISE_STD")
    )

    log_level: str = field(default_factory=lambda: os.getenv("HE_BRIDGE_LOG_LEVEL", "INFO"))

    @classmethod
    def from_env(cls) -> "KernelConfig":
        """Create config from environment variables."""
        return cls()

    @property
    def backend_type(self) -> BackendType:
        try:
            return BackendType(self.backend.lower())
        except ValueError as e:
            raise ParameterError(
                f"Unknown backend '{self.backend}'. "
                f"Valid: {[b.value for b in BackendType]}"
            ) from e

    @property
    def bridge_strategy(self) -> BridgeStrategy:
        try:
            return BridgeStrategy(self.strategy.lower())
        except ValueError as e:
            raise ParameterError(
                f"Unknown strategy '{self.strategy}'. "
                f"Valid: {[s.value for s in BridgeStrategy]}"
            ) from e


class BridgeStack(NamedTuple):
    params: ParameterSet
    context: Context
    bridge: ComparisonBridge


def create_bridge_stack(
    config: Optional[KernelConfig] = None,
    *,
    required_depth: Optional[int] = None,
) -> BridgeStack:
    """
    Resolve parameters, build the context and select the bridge.

    Args:
        config: Kernel configuration. If None, reads from environment.
        required_depth: Driver chain to provision instead of the default depth

    Raises:
        ParameterError: If the configuration cannot be resolved.
        BackendNotAvailableError: If the configured backend is not installed.
    """
    if config is None:
        config = KernelConfig.from_env()

    params = resolve(
        config.bit_width,
        config.slot_count,
        strategy=config.bridge_strategy,
        extra_depth=config.extra_depth,
    )
    if required_depth is not None and required_depth > params.multiplicative_depth:
        params = params.with_depth(required_depth)

    context = ContextManager.build(
        params,
        backend=config.backend_type,
        seed=config.seed,
        noise_std=config.noise_std,
    )
    bridge = ComparisonBridge.create(context)
    logger.info(
        f"Bridge stack ready: {config.backend_type.value}/{params.strategy.value}, "
        f"{params.bit_width}-bit, depth {params.multiplicative_depth}"
    )
    return BridgeStack(params=params, context=context, bridge=bridge)
