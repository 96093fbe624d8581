"""
Lookup tables evaluated by programmable bootstrapping on LWE messages.

Messages live in Z_pLWE. The upper half [pLWE/2, pLWE) represents negative
values, so the sign test is a step function over the table index.
"""

from dataclasses import dataclass

import numpy as np


@dataclass
class SignLUT:
    """Table over Z_modulus evaluated per lane during bootstrapping."""
    name: str
    entries: np.ndarray
    modulus: int

    @classmethod
    def negative_lut(cls, modulus: int) -> 'SignLUT':
        """1 for messages encoding a negative value, 0 otherwise."""
        half = modulus // 2
        entries = (np.arange(modulus) >= half).astype(np.int64)
        return cls(name="negative", entries=entries, modulus=modulus)

    def evaluate(self, message: int) -> int:
        return int(self.entries[int(message) % self.modulus])
