"""
Micro-workloads that isolate where the comparison sits in a circuit.

    linear_then_compare:  [(a * b) > c]
    compare_then_linear:  [a > b] * c
    product_compare:      [(a * b) > (c * d)]
"""

from enum import Enum
from typing import Any, Dict, Optional
import logging

from ..backend.ciphertexts import ArithmeticCiphertext
from ..bridge.base import ComparisonBridge
from ..context import Context
from .base import Driver, DriverResult

logger = logging.getLogger(__name__)


class Workload(Enum):
    LINEAR_THEN_COMPARE = "linear_then_compare"
    COMPARE_THEN_LINEAR = "compare_then_linear"
    PRODUCT_COMPARE = "product_compare"


class WorkloadRunner(Driver):
    """Runs one micro-workload and reports its cost."""

    name = "workload"

    def linear_then_compare(
        self, a: ArithmeticCiphertext, b: ArithmeticCiphertext, c: ArithmeticCiphertext,
    ) -> DriverResult:
        ctx = self.context
        holder: Dict[str, Any] = {}
        with self.measured(holder):
            out = self.bridge.compare_lifted(ctx.sub(ctx.mul(a, b), c))
        return DriverResult(output=out, **holder)

    def compare_then_linear(
        self, a: ArithmeticCiphertext, b: ArithmeticCiphertext, c: ArithmeticCiphertext,
    ) -> DriverResult:
        ctx = self.context
        holder: Dict[str, Any] = {}
        with self.measured(holder):
            out = ctx.mul(self.bridge.compare_lifted(ctx.sub(a, b)), c)
        return DriverResult(output=out, **holder)

    def product_compare(
        self,
        a: ArithmeticCiphertext,
        b: ArithmeticCiphertext,
        c: ArithmeticCiphertext,
        d: ArithmeticCiphertext,
    ) -> DriverResult:
        ctx = self.context
        holder: Dict[str, Any] = {}
        with self.measured(holder):
            out = self.bridge.compare_lifted(ctx.sub(ctx.mul(a, b), ctx.mul(c, d)))
        return DriverResult(output=out, **holder)

    def run(self, workload: Workload, *operands: ArithmeticCiphertext) -> DriverResult:
        handlers = {
            Workload.LINEAR_THEN_COMPARE: (self.linear_then_compare, 3),
            Workload.COMPARE_THEN_LINEAR: (self.compare_then_linear, 3),
            Workload.PRODUCT_COMPARE: (self.product_compare, 4),
        }
        handler, arity = handlers[workload]
        if len(operands) != arity:
            raise ValueError(f"{workload.value} takes {arity} operands, got {len(operands)}")
        logger.debug(f"Running {workload.value}")
        return handler(*operands)


def run_workload(
    context: Context,
    workload: Workload,
    *operands: ArithmeticCiphertext,
    bridge: Optional[ComparisonBridge] = None,
) -> DriverResult:
    return WorkloadRunner(context, bridge).run(workload, *operands)
