"""Shared plumbing for the algorithm drivers."""

from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, Optional
import logging
import time

from ..backend.stats import OperationStats
from ..bridge.base import ComparisonBridge
from ..context import Context
from ..errors import ParameterError
from ..params.resolver import verify_depth
from ..select import ObliviousSelect

logger = logging.getLogger(__name__)


@dataclass
class DriverResult:
    """Encrypted output of one driver run plus its cost."""
    # Encrypted output (ciphertext, or nested lists of ciphertexts)
    output: Any

    # Secondary encrypted outputs (ranks, predecessors, masks)
    intermediates: Dict[str, Any] = field(default_factory=dict)

    # Timing
    total_time_ms: float = 0.0

    # Operation counts issued during the run
    operations: OperationStats = field(default_factory=OperationStats)

    @property
    def comparisons(self) -> int:
        return self.operations.comparisons

    @property
    def multiplications(self) -> int:
        return self.operations.multiplications

    def to_dict(self) -> Dict[str, Any]:
        return {
            **self.operations.to_dict(),
            'total_time_ms': self.total_time_ms,
        }


class Driver:
    """Base class: one context, one bridge, one select."""

    name = "driver"

    def __init__(self, context: Context, bridge: Optional[ComparisonBridge] = None):
        self.context = context
        self.bridge = bridge or ComparisonBridge.create(context)
        self.selector = ObliviousSelect(context)

    def check_depth(self, required: int, strict: bool = False) -> bool:
        """
        Check the chain against the modulus before running it.

        The backends do not detect exhaustion themselves, so an
        under-provisioned run only logs a warning unless ``strict``.

        Raises:
            ParameterError: If ``strict`` and ``required`` exceeds the depth.
        """
        compat = verify_depth(self.context.params, required)
        if compat.compatible:
            return True
        if strict:
            raise ParameterError(f"{self.name}: {compat.error_message}")
        logger.warning(f"{self.name}: {compat.error_message} Results will be unreliable.")
        return False

    @contextmanager
    def measured(self, result_holder: Dict[str, Any]) -> Iterator[None]:
        """Record elapsed time and the operations issued inside the block."""
        before = self.context.stats.snapshot()
        start = time.perf_counter()
        yield
        result_holder['total_time_ms'] = (time.perf_counter() - start) * 1000
        result_holder['operations'] = self.context.stats.snapshot() - before
        logger.debug(
            f"{self.name}: {result_holder['operations'].comparisons} comparisons, "
            f"{result_holder['operations'].multiplications} multiplications in "
            f"{result_holder['total_time_ms']:.2f} ms"
        )
