"""
Encrypted range-predicate filter and aggregation.

Each SIMD lane is one database row; each column is one ciphertext. A
predicate lo <= v <= hi on an integer-valued expression becomes

    [v - lo >= 0] * [hi - v >= 0]

and a conjunction is the product of its predicates' masks. The resulting
0/1 mask can weight a column before rotate-and-sum aggregation. Padding
lanes past the last row are zeroed by a row-validity vector first, since a
range containing 0 would otherwise select them.
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Sequence
import logging

import numpy as np

from ..backend.ciphertexts import ArithmeticCiphertext, LiftedBooleanCiphertext
from ..context import Context
from ..params.resolver import FHEW_TO_CKKS_DEPTH, ParameterSet
from .base import Driver, DriverResult

logger = logging.getLogger(__name__)

# Rows per ciphertext batch in the employee query
EMPLOYEE_BATCH_ROWS = 128


@dataclass(frozen=True)
class RangePredicate:
    """Inclusive bounds on one (possibly derived) column."""
    column: str
    lo: int
    hi: int

    def __post_init__(self):
        if self.lo > self.hi:
            raise ValueError(f"Empty range for {self.column}: [{self.lo}, {self.hi}]")


def required_depth(
    params: ParameterSet,
    num_predicates: int = 1,
    expression_depth: int = 0,
    aggregate: bool = True,
) -> int:
    """
    Expression products, one comparison round, the AND tree and the
    aggregation product. ``RangeFilter.evaluate`` always computes the count.
    """
    combine = 1 + max(0, num_predicates - 1) + (1 if aggregate else 0)
    if params.lift_resets_level:
        return max(expression_depth + 1, FHEW_TO_CKKS_DEPTH) + combine
    return expression_depth + params.bridge_depth + combine


class RangeFilter(Driver):
    """Oblivious conjunctive range filter over encrypted columns."""

    name = "range_filter"

    def membership(self, values: ArithmeticCiphertext, predicate: RangePredicate) -> ArithmeticCiphertext:
        """Lane-wise [lo <= values <= hi]."""
        ctx = self.context
        above_lo = self.bridge.greater_equal(ctx.add_scalar(values, -predicate.lo))
        below_hi = self.bridge.greater_equal(ctx.add_scalar(ctx.negate(values), predicate.hi))
        return ctx.mul(above_lo, below_hi)

    def mask(
        self,
        columns: Mapping[str, ArithmeticCiphertext],
        predicates: Sequence[RangePredicate],
    ) -> LiftedBooleanCiphertext:
        """Conjunction of all predicates; a product of 0/1 lanes is still 0/1."""
        if not predicates:
            raise ValueError("At least one predicate is required")
        missing = [p.column for p in predicates if p.column not in columns]
        if missing:
            raise KeyError(f"Unknown column(s): {missing}")

        masks = [self.membership(columns[p.column], p) for p in predicates]
        combined = masks[0]
        for m in masks[1:]:
            combined = self.context.mul(combined, m)
        return LiftedBooleanCiphertext.from_ciphertext(combined)

    def row_validity(self, num_rows: Optional[int] = None) -> ArithmeticCiphertext:
        """1 in the first ``num_rows`` lanes, 0 in padding lanes."""
        slots = self.context.params.slot_count
        if num_rows is None:
            num_rows = slots
        if not 0 < num_rows <= slots:
            raise ValueError(f"num_rows={num_rows} must be in [1, {slots}]")
        return self.context.encrypt(np.ones(num_rows))

    def masked_sum(
        self,
        mask: ArithmeticCiphertext,
        column: ArithmeticCiphertext,
        valid: Optional[ArithmeticCiphertext] = None,
    ) -> ArithmeticCiphertext:
        """Sum of ``column`` over selected rows, in every slot."""
        if valid is None:
            valid = self.row_validity()
        # column * valid stays above the mask's level
        return self.context.sum_slots(self.context.mul(mask, self.context.mul(column, valid)))

    def masked_count(
        self,
        mask: ArithmeticCiphertext,
        valid: Optional[ArithmeticCiphertext] = None,
    ) -> ArithmeticCiphertext:
        """Number of selected rows, in every slot."""
        if valid is None:
            valid = self.row_validity()
        return self.context.sum_slots(self.context.mul(mask, valid))

    def evaluate(
        self,
        columns: Mapping[str, ArithmeticCiphertext],
        predicates: Sequence[RangePredicate],
        aggregate: Optional[str] = None,
        expression_depth: int = 0,
        num_rows: Optional[int] = None,
    ) -> DriverResult:
        """
        Args:
            columns: Column name -> ciphertext (one row per lane)
            predicates: Conjunction of inclusive range predicates
            aggregate: Column to sum over the selected rows, if any
            expression_depth: Levels already consumed by derived columns
            num_rows: Real rows in the batch; later lanes are padding.
                Defaults to every slot.

        Returns:
            DriverResult whose output is the row mask; intermediates hold
            ``count`` and, when requested, ``sum``.
        """
        self.check_depth(
            required_depth(self.context.params, len(predicates), expression_depth, aggregate=True)
        )
        holder: Dict[str, Any] = {}
        intermediates: Dict[str, Any] = {}
        with self.measured(holder):
            row_mask = self.mask(columns, predicates)
            valid = self.row_validity(num_rows)
            intermediates['count'] = self.masked_count(row_mask, valid)
            if aggregate is not None:
                intermediates['sum'] = self.masked_sum(row_mask, columns[aggregate], valid)
        return DriverResult(output=row_mask, intermediates=intermediates, **holder)


# =============================================================================
# EMPLOYEE QUERY
# =============================================================================

EMPLOYEE_PREDICATES = (
    RangePredicate('pay', 5000, 6000),
    RangePredicate('compensation', 700, 800),
)


def employee_query_depth(params: ParameterSet) -> int:
    return required_depth(params, len(EMPLOYEE_PREDICATES), expression_depth=1, aggregate=True)


def generate_employee_rows(
    num_rows: int = EMPLOYEE_BATCH_ROWS,
    seed: Optional[int] = None,
) -> Dict[str, np.ndarray]:
    """Random salary/hours/bonus columns sized so some rows match the query."""
    rng = np.random.default_rng(seed)
    return {
        'salary': rng.integers(50, 151, num_rows),
        'hours': rng.integers(30, 61, num_rows),
        'bonus': rng.integers(500, 751, num_rows),
    }


def run_employee_query(
    context: Context,
    salary: ArithmeticCiphertext,
    hours: ArithmeticCiphertext,
    bonus: ArithmeticCiphertext,
    bridge=None,
    num_rows: Optional[int] = None,
) -> DriverResult:
    """
    salary*hours in [5000, 6000] and salary+bonus in [700, 800].

    Returns the filter result with the matching-row count and salary sum.
    """
    derived = {
        'salary': salary,
        'pay': context.mul(salary, hours),
        'compensation': context.add(salary, bonus),
    }
    return RangeFilter(context, bridge).evaluate(
        derived, EMPLOYEE_PREDICATES, aggregate='salary', expression_depth=1, num_rows=num_rows,
    )


def decrypt_rows(context: Context, ct: ArithmeticCiphertext, num_rows: int) -> List[int]:
    """Decrypt and round the first ``num_rows`` lanes."""
    return [int(round(v)) for v in context.decrypt(ct, num_rows)]
