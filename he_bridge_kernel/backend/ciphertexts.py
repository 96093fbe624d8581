"""
Ciphertext handles shared by all backends.

Every handle is immutable: operations return new handles. The simulation
backends keep the underlying message in ``_plaintext`` (or ``_message`` for
LWE) while real backends keep the library object in ``data``.
"""

from dataclasses import dataclass, fields, replace
from typing import Any, Optional, Tuple

import numpy as np

from ..errors import ParameterError
from ..params.resolver import ArithmeticScheme, BridgeStrategy


@dataclass(frozen=True, eq=False)
class ArithmeticCiphertext:
    """Packed SIMD ciphertext in CKKS or BGV."""
    data: Any  # Backend ciphertext object (None in simulation)
    scheme: ArithmeticScheme
    slot_count: int
    level: int  # Remaining multiplicative levels
    plaintext_modulus: Optional[int] = None  # BGV label; None for CKKS
    noise_bound: float = 0.0

    # For simulation mode
    _plaintext: Optional[np.ndarray] = None

    @property
    def is_empty(self) -> bool:
        return self.data is None and self._plaintext is None


@dataclass(frozen=True, eq=False)
class LiftedBooleanCiphertext(ArithmeticCiphertext):
    """Arithmetic ciphertext whose lanes are known to hold 0/1."""

    @classmethod
    def from_ciphertext(cls, ct: ArithmeticCiphertext) -> 'LiftedBooleanCiphertext':
        return cls(**{f.name: getattr(ct, f.name) for f in fields(ArithmeticCiphertext)})


@dataclass(frozen=True, eq=False)
class LWECiphertext:
    """Single-lane small-scheme ciphertext (FHEW)."""
    data: Any
    ciphertext_modulus: int
    plaintext_modulus: int

    # For simulation mode
    _message: Optional[int] = None


@dataclass(frozen=True, eq=False)
class BooleanCiphertext:
    """
    Comparison output in the small or reduced-modulus domain.

    For scheme switching ``data`` is a tuple of per-lane LWE ciphertexts.
    For encoding switching ``data`` is a BGV ciphertext holding
    ``bit * p**scale_exponent`` at the full plaintext modulus.
    """
    strategy: BridgeStrategy
    slot_count: int
    data: Any
    scale_exponent: int = 0

    @property
    def lanes(self) -> Tuple[LWECiphertext, ...]:
        return tuple(self.data)


def divide_mod_by_p(ct: ArithmeticCiphertext, p: int) -> ArithmeticCiphertext:
    """
    Reinterpret a ciphertext modulo p^(k-1) instead of p^k.

    Pure metadata transform: the encrypted payload is untouched, only the
    plaintext-modulus label and the noise bound shrink by a factor p. An
    empty ciphertext is returned unchanged.

    Raises:
        ParameterError: If the label is not a multiple of p strictly greater than p.
    """
    if ct.is_empty:
        return ct

    label = ct.plaintext_modulus
    if label is None or label % p != 0 or label <= p:
        raise ParameterError(
            f"divide_mod_by_p requires a plaintext modulus that is a multiple of "
            f"p={p} and greater than p, got {label}"
        )

    return replace(
        ct,
        plaintext_modulus=label // p,
        noise_bound=ct.noise_bound / p,
    )
