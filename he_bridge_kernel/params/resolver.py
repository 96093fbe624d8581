"""
Parameter Resolver for the Comparison Bridge Kernel

Maps a requested integer bit width to a concrete, immutable parameter set:
  - arithmetic-scheme modulus chain (depth, scaling/first modulus sizes)
  - ring dimension and SIMD slot count
  - small-scheme parameters (FHEW ciphertext modulus and plaintext modulus
    for scheme switching, BGV p/r/m for encoding switching)

The default depth covers the minimum chain every driver needs: one
multiplication, one bridge round trip, one select. Drivers that need a
longer chain call ``ParameterSet.with_depth`` with their own
``required_depth``.
"""

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Dict, Optional, Tuple
import math

from ..errors import ParameterError


class BridgeStrategy(Enum):
    """Realization of the comparison bridge, chosen once per parameter set."""
    SCHEME_SWITCHING = "scheme_switching"      # CKKS -> FHEW sign -> CKKS
    ENCODING_SWITCHING = "encoding_switching"  # BGV p^r -> p -> p^r


class ArithmeticScheme(Enum):
    """Scheme used for the linear part of the circuit."""
    CKKS = "ckks"
    BGV = "bgv"


# Levels consumed before the first comparison (e.g. a*b before compare)
PRE_BRIDGE_DEPTH = 1

# Levels provisioned for one oblivious select (two products)
SELECT_DEPTH = 2

# CKKS input must keep this many levels for the slots-to-coefficients step
CKKS_TO_FHEW_DEPTH = 1

# Depth of the modular-reduction polynomial run inside FHEW -> CKKS
FHEW_TO_CKKS_DEPTH = 9

# FHEW gadget base used to derive the LWE plaintext modulus
FHEW_BETA = 128

CKKS_SCALE_MOD_SIZE = 40
MIN_CKKS_RING_DIMENSION = 1 << 14

# Maximum total modulus bits for 128-bit classic security, per ring dimension
MAX_MODULUS_BITS = {
    4096: 109,
    8192: 218,
    16384: 438,
    32768: 881,
    65536: 1770,
    131072: 3540,
}

# Largest ciphertext modulus prime used as special prime for key switching
SPECIAL_PRIME_BITS = 60


@dataclass(frozen=True)
class BitWidthProfile:
    """Fixed small-scheme mapping for one supported bit width."""
    bit_width: int
    fhew_log_q: int
    bgv_p: int
    bgv_r: int
    bgv_m: int
    bgv_bits: int


# p^r must hold every difference of two b-bit operands, [-(2^b - 1), 2^b - 1]
BIT_WIDTH_PROFILES: Dict[int, BitWidthProfile] = {
    6: BitWidthProfile(6, fhew_log_q=15, bgv_p=3, bgv_r=5, bgv_m=16151, bgv_bits=320),
    8: BitWidthProfile(8, fhew_log_q=17, bgv_p=17, bgv_r=3, bgv_m=13201, bgv_bits=256),
    12: BitWidthProfile(12, fhew_log_q=21, bgv_p=67, bgv_r=3, bgv_m=31159, bgv_bits=690),
    16: BitWidthProfile(16, fhew_log_q=25, bgv_p=257, bgv_r=3, bgv_m=77641, bgv_bits=1000),
}


def supported_bit_widths() -> Tuple[int, ...]:
    """Bit widths with a parameter mapping."""
    return tuple(sorted(BIT_WIDTH_PROFILES))


def euler_phi(m: int) -> int:
    """Euler's totient, used for the BGV ring dimension phi(m)."""
    result = m
    n = m
    d = 2
    while d * d <= n:
        if n % d == 0:
            while n % d == 0:
                n //= d
            result -= result // d
        d += 1
    if n > 1:
        result -= result // n
    return result


def encoding_switch_depth(p: int, r: int) -> int:
    """
    Depth of the reduced-modulus comparison circuit plus the lifting step.

    Digit extraction at base p costs ceil(log2 p) levels per extracted
    digit; r - 1 digits are removed, plus one level for the final
    sign test and one for the lifting polynomial.
    """
    return math.ceil(math.log2(p)) * (r - 1) + 2


@dataclass(frozen=True)
class ParameterSet:
    """
    Immutable parameter set for one bit width and slot count.

    Created once per requested bit width; never mutated. Derived fields
    are computed in ``__post_init__`` the same way for every strategy so
    a parameter set can be serialized and rebuilt exactly.
    """

    bit_width: int
    slot_count: int
    strategy: BridgeStrategy
    multiplicative_depth: int

    # CKKS modulus chain
    scale_mod_size: int = CKKS_SCALE_MOD_SIZE
    first_mod_size: int = field(init=False)
    ring_dimension: int = field(init=False)

    # FHEW small scheme (scheme switching)
    fhew_log_q: int = field(init=False)
    fhew_plaintext_modulus: int = field(init=False)

    # BGV plaintext space p^r (encoding switching)
    bgv_p: int = field(init=False)
    bgv_r: int = field(init=False)
    bgv_m: int = field(init=False)
    bgv_bits: int = field(init=False)

    def __post_init__(self):
        profile = BIT_WIDTH_PROFILES.get(self.bit_width)
        if profile is None:
            raise ParameterError(
                f"Unsupported bit width {self.bit_width}; "
                f"supported: {list(supported_bit_widths())}"
            )
        object.__setattr__(self, 'first_mod_size', self.scale_mod_size + self.bit_width)
        object.__setattr__(self, 'fhew_log_q', profile.fhew_log_q)
        object.__setattr__(
            self, 'fhew_plaintext_modulus', (1 << profile.fhew_log_q) // (2 * FHEW_BETA)
        )
        object.__setattr__(self, 'bgv_p', profile.bgv_p)
        object.__setattr__(self, 'bgv_r', profile.bgv_r)
        object.__setattr__(self, 'bgv_m', profile.bgv_m)
        object.__setattr__(self, 'bgv_bits', profile.bgv_bits)
        object.__setattr__(self, 'ring_dimension', self._select_ring_dimension())

    # -------------------------------------------------------------------------
    # Derived properties
    # -------------------------------------------------------------------------

    @property
    def arithmetic_scheme(self) -> ArithmeticScheme:
        if self.strategy == BridgeStrategy.ENCODING_SWITCHING:
            return ArithmeticScheme.BGV
        return ArithmeticScheme.CKKS

    @property
    def plaintext_modulus(self) -> int:
        """Full BGV plaintext space p^r."""
        return self.bgv_p ** self.bgv_r

    @property
    def bridge_depth(self) -> int:
        """
        Levels one compare/lift round trip costs.

        Scheme switching: the lifted ciphertext is freshly produced at
        ``multiplicative_depth - FHEW_TO_CKKS_DEPTH``. Encoding switching:
        the round trip consumes levels from the compared ciphertext.
        """
        if self.strategy == BridgeStrategy.SCHEME_SWITCHING:
            return FHEW_TO_CKKS_DEPTH
        return encoding_switch_depth(self.bgv_p, self.bgv_r)

    @property
    def lift_resets_level(self) -> bool:
        return self.strategy == BridgeStrategy.SCHEME_SWITCHING

    @property
    def comparison_bound(self) -> int:
        """Largest |diff| whose sign the bridge decides exactly."""
        if self.strategy == BridgeStrategy.SCHEME_SWITCHING:
            return self.fhew_plaintext_modulus // 2 - 1
        return (self.plaintext_modulus - 1) // 2

    @property
    def total_modulus_bits(self) -> int:
        """CKKS chain size: first modulus, one scaling prime per level, special prime."""
        return (
            self.first_mod_size
            + self.multiplicative_depth * self.scale_mod_size
            + SPECIAL_PRIME_BITS
        )

    def lifted_level(self, input_level: int) -> int:
        """Remaining levels of a lifted boolean compared from ``input_level``."""
        if self.lift_resets_level:
            return self.multiplicative_depth - FHEW_TO_CKKS_DEPTH
        return input_level - self.bridge_depth

    def _select_ring_dimension(self) -> int:
        if self.strategy == BridgeStrategy.ENCODING_SWITCHING:
            return euler_phi(self.bgv_m)
        needed_bits = self.total_modulus_bits
        for n in sorted(MAX_MODULUS_BITS):
            if n < MIN_CKKS_RING_DIMENSION or n < 2 * self.slot_count:
                continue
            if MAX_MODULUS_BITS[n] >= needed_bits:
                return n
        raise ParameterError(
            f"Depth {self.multiplicative_depth} needs {needed_bits} modulus bits, "
            f"more than any supported ring dimension allows at 128-bit security"
        )

    # -------------------------------------------------------------------------
    # Validation / copies
    # -------------------------------------------------------------------------

    def validate(self) -> None:
        """
        Check sizing rules for the small scheme and slot layout.

        Raises:
            ParameterError: If the parameter set cannot carry the requested
                bit width or slot count.
        """
        if self.slot_count < 1 or self.slot_count & (self.slot_count - 1) != 0:
            raise ParameterError(
                f"slot_count={self.slot_count} must be a positive power of 2"
            )
        if self.multiplicative_depth < 1:
            raise ParameterError(
                f"multiplicative_depth={self.multiplicative_depth} must be at least 1"
            )

        if self.strategy == BridgeStrategy.SCHEME_SWITCHING:
            if self.slot_count > self.ring_dimension // 2:
                raise ParameterError(
                    f"slot_count={self.slot_count} exceeds ring_dimension/2 "
                    f"({self.ring_dimension // 2})"
                )
            if self.fhew_plaintext_modulus < (1 << (self.bit_width + 1)):
                raise ParameterError(
                    f"FHEW plaintext modulus {self.fhew_plaintext_modulus} cannot "
                    f"represent {self.bit_width}-bit differences"
                )
            if self.multiplicative_depth <= FHEW_TO_CKKS_DEPTH:
                raise ParameterError(
                    f"multiplicative_depth={self.multiplicative_depth} leaves no levels "
                    f"after FHEW->CKKS switching (needs > {FHEW_TO_CKKS_DEPTH})"
                )
        else:
            if self.plaintext_modulus < (1 << (self.bit_width + 1)):
                raise ParameterError(
                    f"Plaintext space {self.bgv_p}^{self.bgv_r} cannot represent "
                    f"{self.bit_width}-bit differences"
                )
            if self.bgv_r < 2:
                raise ParameterError(
                    f"Encoding switching needs r >= 2, got r={self.bgv_r}"
                )
            if self.slot_count > self.ring_dimension:
                raise ParameterError(
                    f"slot_count={self.slot_count} exceeds phi(m)={self.ring_dimension}"
                )

    def with_depth(self, depth: int) -> 'ParameterSet':
        """Return a copy with a different modulus-chain depth."""
        params = replace(self, multiplicative_depth=depth)
        params.validate()
        return params

    def to_dict(self) -> dict:
        """Serialize to dictionary for artifact emission."""
        return {
            'bit_width': self.bit_width,
            'slot_count': self.slot_count,
            'strategy': self.strategy.value,
            'multiplicative_depth': self.multiplicative_depth,
            'scale_mod_size': self.scale_mod_size,
            'first_mod_size': self.first_mod_size,
            'ring_dimension': self.ring_dimension,
            'fhew_log_q': self.fhew_log_q,
            'fhew_plaintext_modulus': self.fhew_plaintext_modulus,
            'bgv_p': self.bgv_p,
            'bgv_r': self.bgv_r,
            'bgv_m': self.bgv_m,
            'comparison_bound': self.comparison_bound,
        }

    @classmethod
    def from_dict(cls, d: dict) -> 'ParameterSet':
        """Deserialize from dictionary."""
        return cls(
            bit_width=d['bit_width'],
            slot_count=d['slot_count'],
            strategy=BridgeStrategy(d['strategy']),
            multiplicative_depth=d['multiplicative_depth'],
            scale_mod_size=d.get('scale_mod_size', CKKS_SCALE_MOD_SIZE),
        )


# =============================================================================
# RESOLUTION
# =============================================================================

def default_depth(strategy: BridgeStrategy, bit_width: int, extra_depth: int = 0) -> int:
    """One multiplication, one bridge round trip, one select, plus extra."""
    profile = BIT_WIDTH_PROFILES.get(bit_width)
    if profile is None:
        raise ParameterError(
            f"Unsupported bit width {bit_width}; supported: {list(supported_bit_widths())}"
        )
    if strategy == BridgeStrategy.SCHEME_SWITCHING:
        bridge = FHEW_TO_CKKS_DEPTH
    else:
        bridge = encoding_switch_depth(profile.bgv_p, profile.bgv_r)
    return PRE_BRIDGE_DEPTH + bridge + SELECT_DEPTH + max(0, extra_depth)


class ParameterResolver:
    """Resolves bit widths to parameter sets, caching one set per request."""

    def __init__(self):
        self._cache: Dict[Tuple[int, int, BridgeStrategy, int], ParameterSet] = {}

    def resolve(
        self,
        bit_width: int,
        slot_count: int,
        *,
        strategy: BridgeStrategy = BridgeStrategy.SCHEME_SWITCHING,
        extra_depth: int = 0,
    ) -> ParameterSet:
        """
        Resolve a bit width and slot count to a parameter set.

        Args:
            bit_width: Requested integer bit width (6, 8, 12 or 16)
            slot_count: Number of SIMD lanes per ciphertext
            strategy: Bridge realization the parameters are sized for
            extra_depth: Additional levels beyond the minimum chain

        Returns:
            Validated ParameterSet.

        Raises:
            ParameterError: If the bit width has no mapping or sizing fails.
        """
        key = (bit_width, slot_count, strategy, extra_depth)
        cached = self._cache.get(key)
        if cached is not None:
            return cached

        params = ParameterSet(
            bit_width=bit_width,
            slot_count=slot_count,
            strategy=strategy,
            multiplicative_depth=default_depth(strategy, bit_width, extra_depth),
        )
        params.validate()
        self._cache[key] = params
        return params


_default_resolver = ParameterResolver()


def resolve(
    bit_width: int,
    slot_count: int,
    *,
    strategy: BridgeStrategy = BridgeStrategy.SCHEME_SWITCHING,
    extra_depth: int = 0,
) -> ParameterSet:
    """Resolve parameters with the process-wide resolver cache."""
    return _default_resolver.resolve(
        bit_width, slot_count, strategy=strategy, extra_depth=extra_depth
    )


# =============================================================================
# DEPTH VERIFICATION
# =============================================================================

@dataclass
class DepthCompatibility:
    """Result of checking a driver's chain against a parameter set."""
    compatible: bool
    required_depth: int
    available_depth: int
    error_message: Optional[str] = None


def verify_depth(params: ParameterSet, required_depth: int) -> DepthCompatibility:
    """
    Verify that a driver's worst-case multiplicative chain fits.

    Noise exhaustion is silent in the underlying libraries, so this check is
    the only guard short of comparing against a plaintext reference.
    """
    if required_depth <= params.multiplicative_depth:
        return DepthCompatibility(
            compatible=True,
            required_depth=required_depth,
            available_depth=params.multiplicative_depth,
        )
    return DepthCompatibility(
        compatible=False,
        required_depth=required_depth,
        available_depth=params.multiplicative_depth,
        error_message=(
            f"Depth overflow: need {required_depth}, have "
            f"{params.multiplicative_depth}. Provision with params.with_depth()."
        ),
    )
