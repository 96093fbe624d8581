"""
Context Manager

A Context bundles one parameter set with the key material of its backends:
the arithmetic scheme that carries packed integers (CKKS or BGV) and the
switching backend that the comparison bridge drives. It is built once and
never mutated afterwards; only its telemetry counters change, under a lock.

Every linear operation a driver issues goes through the context so that
slot and scheme mismatches are caught before they reach a backend.
"""

from enum import Enum
from typing import Any, Optional, Sequence, Union
import logging

import numpy as np

from .backend.base import ArithmeticBackend
from .backend.ciphertexts import ArithmeticCiphertext
from .backend.simulated import (
    DEFAULT_NOISE_STD,
    SimulatedBGVBackend,
    SimulatedCKKSBackend,
    SimulatedFHEWBackend,
)
from .backend.stats import OperationStats
from .bridge.lut import SignLUT
from .bridge.quantizer import SignQuantizer
from .errors import DimensionMismatch, ParameterError
from .params.resolver import ArithmeticScheme, BridgeStrategy, ParameterSet

logger = logging.getLogger(__name__)


class BackendType(Enum):
    """Backend implementation selection."""
    SIMULATION = "simulation"
    OPENFHE = "openfhe"


class Context:
    """Key material and arithmetic for one parameter set."""

    def __init__(
        self,
        params: ParameterSet,
        backend_type: BackendType,
        arithmetic: ArithmeticBackend,
        switching: Any,
    ):
        self._params = params
        self._backend_type = backend_type
        self._arithmetic = arithmetic
        self._switching = switching
        self._stats = OperationStats()

    @property
    def params(self) -> ParameterSet:
        return self._params

    @property
    def backend_type(self) -> BackendType:
        return self._backend_type

    @property
    def arithmetic(self) -> ArithmeticBackend:
        return self._arithmetic

    @property
    def switching(self) -> Any:
        """SchemeSwitchingBackend or EncodingSwitchingBackend, per strategy."""
        return self._switching

    @property
    def stats(self) -> OperationStats:
        return self._stats

    @property
    def slot_count(self) -> int:
        return self._params.slot_count

    @property
    def scheme(self) -> ArithmeticScheme:
        return self._params.arithmetic_scheme

    def reset_stats(self) -> None:
        self._stats.reset()

    # -------------------------------------------------------------------------
    # Validation
    # -------------------------------------------------------------------------

    def check_ciphertext(self, ct: ArithmeticCiphertext) -> None:
        """Raise DimensionMismatch if ``ct`` was not produced for this context."""
        if ct.scheme != self.scheme:
            raise DimensionMismatch(
                f"Ciphertext scheme {ct.scheme.value} does not match context "
                f"scheme {self.scheme.value}"
            )
        if ct.slot_count != self.slot_count:
            raise DimensionMismatch(
                f"Ciphertext has {ct.slot_count} slots, context has {self.slot_count}"
            )

    def _check_pair(self, ct1: ArithmeticCiphertext, ct2: ArithmeticCiphertext) -> None:
        if ct1.slot_count != ct2.slot_count:
            raise DimensionMismatch(
                f"Slot counts differ: {ct1.slot_count} vs {ct2.slot_count}"
            )
        if ct1.scheme != ct2.scheme:
            raise DimensionMismatch(
                f"Schemes differ: {ct1.scheme.value} vs {ct2.scheme.value}"
            )
        self.check_ciphertext(ct1)

    # -------------------------------------------------------------------------
    # Encryption
    # -------------------------------------------------------------------------

    def encrypt(self, values: Union[Sequence[float], np.ndarray]) -> ArithmeticCiphertext:
        """
        Encrypt up to ``slot_count`` values; unused slots are zero.

        Raises:
            DimensionMismatch: If more values than slots are given.
        """
        values = np.atleast_1d(np.asarray(values, dtype=np.float64))
        if values.ndim != 1 or values.shape[0] > self.slot_count:
            raise DimensionMismatch(
                f"Cannot encrypt {values.shape} values into {self.slot_count} slots"
            )
        with self._stats.timed("encrypt_time_ms"):
            ct = self._arithmetic.encrypt(values)
        self._stats.record("encryptions")
        return ct

    def encrypt_broadcast(self, value: float) -> ArithmeticCiphertext:
        """Encrypt ``value`` in every slot."""
        return self.encrypt(np.full(self.slot_count, value, dtype=np.float64))

    def decrypt(self, ct: ArithmeticCiphertext, length: Optional[int] = None) -> np.ndarray:
        """Decrypt to slot values; BGV returns centered integers, CKKS reals."""
        self.check_ciphertext(ct)
        with self._stats.timed("decrypt_time_ms"):
            values = self._arithmetic.decrypt(ct)
        self._stats.record("decryptions")
        if length is not None:
            values = values[:length]
        return values

    # -------------------------------------------------------------------------
    # Linear arithmetic
    # -------------------------------------------------------------------------

    def add(self, ct1: ArithmeticCiphertext, ct2: ArithmeticCiphertext) -> ArithmeticCiphertext:
        self._check_pair(ct1, ct2)
        with self._stats.timed("arithmetic_time_ms"):
            result = self._arithmetic.add(ct1, ct2)
        self._stats.record("additions")
        return result

    def sub(self, ct1: ArithmeticCiphertext, ct2: ArithmeticCiphertext) -> ArithmeticCiphertext:
        self._check_pair(ct1, ct2)
        with self._stats.timed("arithmetic_time_ms"):
            result = self._arithmetic.sub(ct1, ct2)
        self._stats.record("additions")
        return result

    def mul(self, ct1: ArithmeticCiphertext, ct2: ArithmeticCiphertext) -> ArithmeticCiphertext:
        """Ciphertext product; consumes one level."""
        self._check_pair(ct1, ct2)
        with self._stats.timed("arithmetic_time_ms"):
            result = self._arithmetic.mul(ct1, ct2)
        self._stats.record("multiplications")
        return result

    def negate(self, ct: ArithmeticCiphertext) -> ArithmeticCiphertext:
        self.check_ciphertext(ct)
        with self._stats.timed("arithmetic_time_ms"):
            return self._arithmetic.negate(ct)

    def add_scalar(self, ct: ArithmeticCiphertext, scalar: float) -> ArithmeticCiphertext:
        self.check_ciphertext(ct)
        with self._stats.timed("arithmetic_time_ms"):
            result = self._arithmetic.add_scalar(ct, scalar)
        self._stats.record("additions")
        return result

    def mul_scalar(self, ct: ArithmeticCiphertext, scalar: float) -> ArithmeticCiphertext:
        self.check_ciphertext(ct)
        with self._stats.timed("arithmetic_time_ms"):
            result = self._arithmetic.mul_scalar(ct, scalar)
        self._stats.record("multiplications")
        return result

    def sum_slots(self, ct: ArithmeticCiphertext) -> ArithmeticCiphertext:
        """Rotate-and-sum: every slot receives the sum of all slots."""
        self.check_ciphertext(ct)
        with self._stats.timed("arithmetic_time_ms"):
            result = self._arithmetic.sum_slots(ct)
        self._stats.record("additions")
        return result

    def add_many(self, cts: Sequence[ArithmeticCiphertext]) -> ArithmeticCiphertext:
        """Sum a non-empty sequence of ciphertexts."""
        if not cts:
            raise ValueError("add_many needs at least one ciphertext")
        total = cts[0]
        for ct in cts[1:]:
            total = self.add(total, ct)
        return total

    def remaining_levels(self, ct: ArithmeticCiphertext) -> int:
        return self._arithmetic.remaining_levels(ct)


class ContextManager:
    """Builds contexts: key generation happens here and nowhere else."""

    @staticmethod
    def build(
        params: ParameterSet,
        *,
        backend: BackendType = BackendType.SIMULATION,
        seed: Optional[int] = None,
        noise_std: Optional[float] = None,
    ) -> Context:
        """
        Generate key material for ``params``.

        Args:
            params: Resolved parameter set
            backend: SIMULATION (default) or OPENFHE
            seed: Seed for the simulation noise generator
            noise_std: CKKS encoding noise per operation (simulation only)

        Raises:
            ParameterError: If the parameter set is invalid or the backend
                cannot run the requested strategy.
            BackendNotAvailableError: If OPENFHE is requested without openfhe.
        """
        params.validate()

        if backend == BackendType.OPENFHE:
            if params.strategy != BridgeStrategy.SCHEME_SWITCHING:
                raise ParameterError(
                    "The OpenFHE backend implements scheme switching only; "
                    "encoding switching runs in simulation"
                )
            from .backend.openfhe_backend import (
                OpenFHECKKSBackend,
                OpenFHESession,
                OpenFHESwitchingBackend,
            )
            session = OpenFHESession.setup(params)
            arithmetic = OpenFHECKKSBackend(session)
            switching = OpenFHESwitchingBackend(session, arithmetic)
        else:
            rng = np.random.default_rng(seed)
            if params.strategy == BridgeStrategy.SCHEME_SWITCHING:
                arithmetic = SimulatedCKKSBackend(
                    params, rng,
                    noise_std=DEFAULT_NOISE_STD if noise_std is None else noise_std,
                )
                switching = SimulatedFHEWBackend(
                    params,
                    arithmetic,
                    quantizer=SignQuantizer(params.fhew_plaintext_modulus),
                    sign_lut=SignLUT.negative_lut(params.fhew_plaintext_modulus),
                )
            else:
                arithmetic = SimulatedBGVBackend(params, rng)
                switching = arithmetic

        logger.info(
            f"Built {backend.value} context: strategy={params.strategy.value}, "
            f"bits={params.bit_width}, slots={params.slot_count}, "
            f"depth={params.multiplicative_depth}, ring_dim={params.ring_dimension}"
        )
        return Context(params, backend, arithmetic, switching)


def build_context(
    params: ParameterSet,
    *,
    backend: BackendType = BackendType.SIMULATION,
    seed: Optional[int] = None,
    noise_std: Optional[float] = None,
) -> Context:
    """Build a context for ``params``; see ``ContextManager.build``."""
    return ContextManager.build(params, backend=backend, seed=seed, noise_std=noise_std)
