"""
Sign Quantizer for CKKS -> FHEW switching

CKKS lanes carry approximate reals; the FHEW side needs an exact integer
modulo the LWE plaintext modulus pLWE. The quantizer scales, rounds to the
integer grid and reduces into [0, pLWE). Values outside the signed range
[-(pLWE/2 - 1), pLWE/2 - 1] wrap around and their sign is lost.
"""

from dataclasses import dataclass, field
import logging
import threading

import numpy as np

logger = logging.getLogger(__name__)


@dataclass
class SignQuantizer:
    """
    Maps CKKS reals to LWE messages modulo pLWE.

    - scale: multiplier applied before rounding (1.0 for integer inputs)
    - error_threshold: rounding error above which a warning is logged
    """
    plaintext_modulus: int
    scale: float = 1.0
    error_threshold: float = 0.25

    # Guards the running error statistics; one quantizer serves a whole context
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)

    def __post_init__(self):
        if self.plaintext_modulus < 4 or self.plaintext_modulus % 2 != 0:
            raise ValueError(
                f"plaintext_modulus must be an even integer >= 4, got {self.plaintext_modulus}"
            )
        self.max_abs = self.plaintext_modulus // 2 - 1
        self.max_error_seen = 0.0
        self.out_of_range_count = 0

    def quantize_array(self, values: np.ndarray) -> np.ndarray:
        """Round scaled values and reduce modulo pLWE."""
        scaled = np.asarray(values, dtype=np.float64) * self.scale
        rounded = np.round(scaled)

        max_error = float(np.max(np.abs(scaled - rounded))) if scaled.size else 0.0
        out_of_range = int(np.count_nonzero(np.abs(rounded) > self.max_abs))
        with self._lock:
            self.max_error_seen = max(self.max_error_seen, max_error)
            self.out_of_range_count += out_of_range

        if max_error > self.error_threshold:
            logger.warning(
                f"High quantization error before sign evaluation: {max_error:.4f} "
                f"(threshold {self.error_threshold})"
            )

        if out_of_range:
            logger.warning(
                f"{out_of_range} value(s) exceed the comparison bound "
                f"{self.max_abs}; their sign wraps modulo {self.plaintext_modulus}"
            )

        return np.mod(rounded.astype(np.int64), self.plaintext_modulus)
