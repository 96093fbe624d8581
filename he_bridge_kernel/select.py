"""
Oblivious Select

    select(mask, a, b) = mask * a + (1 - mask) * b

Both branches are always computed; only a lifted 0/1 mask may drive the
choice, since a raw comparison output is not in the arithmetic domain.
"""

from .backend.ciphertexts import ArithmeticCiphertext, LiftedBooleanCiphertext
from .context import Context
from .errors import DimensionMismatch


def select(
    context: Context,
    mask: LiftedBooleanCiphertext,
    on_true: ArithmeticCiphertext,
    on_false: ArithmeticCiphertext,
) -> ArithmeticCiphertext:
    """
    Lane-wise ``on_true`` where mask is 1, ``on_false`` where it is 0.

    Costs two ciphertext products, evaluated side by side.

    Raises:
        TypeError: If ``mask`` has not been lifted.
        DimensionMismatch: If slot counts differ.
    """
    if not isinstance(mask, LiftedBooleanCiphertext):
        raise TypeError(
            f"select requires a lifted mask (LiftedBooleanCiphertext), "
            f"got {type(mask).__name__}"
        )
    if not (mask.slot_count == on_true.slot_count == on_false.slot_count):
        raise DimensionMismatch(
            f"select operands have {mask.slot_count}/{on_true.slot_count}/"
            f"{on_false.slot_count} slots"
        )

    inverse = context.add_scalar(context.negate(mask), 1)
    taken = context.mul(mask, on_true)
    kept = context.mul(inverse, on_false)
    context.stats.record("selects")
    return context.add(taken, kept)


class ObliviousSelect:
    """Select bound to one context."""

    def __init__(self, context: Context):
        self.context = context

    def select(
        self,
        mask: LiftedBooleanCiphertext,
        on_true: ArithmeticCiphertext,
        on_false: ArithmeticCiphertext,
    ) -> ArithmeticCiphertext:
        return select(self.context, mask, on_true, on_false)

    __call__ = select
