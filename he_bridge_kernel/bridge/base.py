"""
Comparison Bridge

Arithmetic schemes cannot evaluate a sign test; the bridge borrows one from
a scheme that can and hands the bit back as an arithmetic 0/1:

    compare(diff) -> BooleanCiphertext            [diff > 0] per lane
    lift(b)       -> LiftedBooleanCiphertext      same bit, arithmetic domain

The strategy (scheme switching or encoding switching) is fixed per parameter
set; ``ComparisonBridge.create`` selects the implementation once.
"""

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Callable, Optional, TypeVar
import logging

from ..backend.ciphertexts import (
    ArithmeticCiphertext,
    BooleanCiphertext,
    LiftedBooleanCiphertext,
)
from ..errors import BridgeExecutionError, BridgeKernelError, DimensionMismatch, ParameterError
from ..params.resolver import BridgeStrategy

if TYPE_CHECKING:
    from ..context import Context

logger = logging.getLogger(__name__)

T = TypeVar("T")


class ComparisonBridge(ABC):
    """Abstract comparison bridge bound to one context."""

    strategy: BridgeStrategy

    def __init__(self, context: 'Context'):
        if context.params.strategy != self.strategy:
            raise ParameterError(
                f"{type(self).__name__} implements {self.strategy.value}, but the "
                f"context was built for {context.params.strategy.value}"
            )
        self.context = context
        self.params = context.params
        self.stats = context.stats

    # -------------------------------------------------------------------------
    # Strategy hooks
    # -------------------------------------------------------------------------

    @abstractmethod
    def _compare(self, diff: ArithmeticCiphertext) -> BooleanCiphertext:
        """Strategy-specific sign test."""

    @abstractmethod
    def _lift(self, b: BooleanCiphertext) -> ArithmeticCiphertext:
        """Strategy-specific return to the arithmetic domain."""

    # -------------------------------------------------------------------------
    # Public operations
    # -------------------------------------------------------------------------

    def compare(self, diff: ArithmeticCiphertext) -> BooleanCiphertext:
        """
        Encrypted [diff > 0] for every lane.

        Exact while |diff| <= params.comparison_bound; larger differences
        wrap and the returned bit is meaningless.

        Raises:
            DimensionMismatch: If ``diff`` does not belong to this context.
            BridgeExecutionError: If a backend primitive fails.
        """
        self.context.check_ciphertext(diff)
        with self.stats.timed("compare_time_ms"):
            result = self._compare(diff)
        self.stats.record("comparisons")
        logger.debug(
            f"compare[{self.strategy.value}]: level {diff.level}, "
            f"{result.slot_count} lanes"
        )
        return result

    def lift(self, b) -> LiftedBooleanCiphertext:
        """
        Return a comparison bit to the arithmetic domain as 0/1.

        Already-lifted values pass through unchanged.

        Raises:
            TypeError: If ``b`` is not a boolean from this bridge's strategy.
            DimensionMismatch: If ``b`` has the wrong number of lanes.
        """
        if isinstance(b, LiftedBooleanCiphertext):
            return b
        if not isinstance(b, BooleanCiphertext):
            raise TypeError(f"lift expects a BooleanCiphertext, got {type(b).__name__}")
        if b.strategy != self.strategy:
            raise TypeError(
                f"Cannot lift a {b.strategy.value} boolean with a "
                f"{self.strategy.value} bridge"
            )
        if b.slot_count != self.context.slot_count:
            raise DimensionMismatch(
                f"Boolean has {b.slot_count} lanes, context has {self.context.slot_count}"
            )

        with self.stats.timed("lift_time_ms"):
            lifted = self._lift(b)
        self.stats.record("lifts")
        logger.debug(f"lift[{self.strategy.value}]: result level {lifted.level}")
        return LiftedBooleanCiphertext.from_ciphertext(lifted)

    def compare_lifted(self, diff: ArithmeticCiphertext) -> LiftedBooleanCiphertext:
        """compare followed by lift: arithmetic [diff > 0]."""
        return self.lift(self.compare(diff))

    def greater_equal(self, diff: ArithmeticCiphertext) -> LiftedBooleanCiphertext:
        """Arithmetic [diff >= 0] for integer-valued lanes."""
        return self.compare_lifted(self.context.add_scalar(diff, 1))

    def less_than(self, diff: ArithmeticCiphertext) -> LiftedBooleanCiphertext:
        """Arithmetic [diff < 0] for integer-valued lanes."""
        return self.compare_lifted(self.context.negate(diff))

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    def _guarded(self, operation: str, fn: Callable[..., T], *args) -> T:
        """Run a backend primitive, wrapping foreign failures."""
        try:
            return fn(*args)
        except BridgeKernelError:
            raise
        except Exception as e:
            logger.error(f"{operation} failed: {e}")
            raise BridgeExecutionError(f"{operation} failed: {e}") from e

    @staticmethod
    def create(context: 'Context', strategy: Optional[BridgeStrategy] = None) -> 'ComparisonBridge':
        """
        Select the bridge implementation for ``context``.

        Args:
            context: Context the bridge operates on
            strategy: Override; defaults to the context's parameter strategy

        Raises:
            ParameterError: If the strategy does not match the context.
        """
        from .cross_scheme import CrossSchemeBridge
        from .encoding_switch import EncodingSwitchBridge

        strategy = strategy or context.params.strategy
        if strategy == BridgeStrategy.SCHEME_SWITCHING:
            return CrossSchemeBridge(context)
        return EncodingSwitchBridge(context)
