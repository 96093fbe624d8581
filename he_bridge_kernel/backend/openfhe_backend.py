"""
OpenFHE Backend (CKKS + FHEW scheme switching)

Real backend for the scheme-switching bridge through the ``openfhe`` Python
bindings. The crypto context is set up once per parameter set with the
scheme-switching keys in both directions and the comparison precompute.

There are no Python bindings for HElib, so encoding switching is only
available in simulation.
"""

from dataclasses import dataclass
from typing import Any, Sequence, Tuple
import logging

import numpy as np

from ..errors import BackendNotAvailableError
from ..params.resolver import ArithmeticScheme, ParameterSet
from .ciphertexts import ArithmeticCiphertext, LWECiphertext

logger = logging.getLogger(__name__)

# Scale applied by EvalCompareSwitchPrecompute; inputs are already integers
SIGN_SCALE = 1.0

# FHEW sign output is a bit encoded with plaintext modulus 4
SIGN_OUTPUT_MODULUS = 4


def _import_openfhe():
    try:
        import openfhe
    except ImportError as e:
        raise BackendNotAvailableError(
            "OpenFHE backend requested but the 'openfhe' package is not installed. "
            "Install with: pip install he-bridge-kernel[openfhe]"
        ) from e
    return openfhe


def is_available() -> bool:
    """Check whether the openfhe bindings can be imported."""
    try:
        _import_openfhe()
    except BackendNotAvailableError:
        return False
    return True


@dataclass
class OpenFHESession:
    """Crypto contexts and keys shared by the arithmetic and switching backends."""
    cc: Any
    keys: Any
    cc_lwe: Any
    fhew_secret_key: Any
    lwe_plaintext_modulus: int
    params: ParameterSet

    @classmethod
    def setup(cls, params: ParameterSet) -> 'OpenFHESession':
        """
        Generate the CKKS context, FHEW context and all switching keys.

        Raises:
            BackendNotAvailableError: If openfhe is not installed.
        """
        fhe = _import_openfhe()

        parameters = fhe.CCParamsCKKSRNS()
        parameters.SetMultiplicativeDepth(params.multiplicative_depth)
        parameters.SetScalingModSize(params.scale_mod_size)
        parameters.SetFirstModSize(params.first_mod_size)
        parameters.SetBatchSize(params.slot_count)
        parameters.SetSecurityLevel(fhe.SecurityLevel.HEStd_128_classic)

        cc = fhe.GenCryptoContext(parameters)
        for feature in (
            fhe.PKESchemeFeature.PKE,
            fhe.PKESchemeFeature.KEYSWITCH,
            fhe.PKESchemeFeature.LEVELEDSHE,
            fhe.PKESchemeFeature.ADVANCEDSHE,
            fhe.PKESchemeFeature.SCHEMESWITCH,
        ):
            cc.Enable(feature)

        keys = cc.KeyGen()

        switch_params = fhe.SchSwchParams()
        switch_params.SetSecurityLevelCKKS(fhe.SecurityLevel.HEStd_128_classic)
        switch_params.SetSecurityLevelFHEW(fhe.BINFHE_PARAMSET.STD128)
        switch_params.SetCtxtModSizeFHEWLargePrec(params.fhew_log_q)
        switch_params.SetNumSlotsCKKS(params.slot_count)
        switch_params.SetNumValues(params.slot_count)

        fhew_secret_key = cc.EvalSchemeSwitchingSetup(switch_params)
        cc.EvalSchemeSwitchingKeyGen(keys, fhew_secret_key)
        cc_lwe = cc.GetBinCCForSchemeSwitch()

        cc.EvalFHEWtoCKKSSetup(cc_lwe, params.slot_count, params.fhew_log_q)
        cc.EvalFHEWtoCKKSKeyGen(keys, fhew_secret_key)

        modulus_lwe = 1 << params.fhew_log_q
        beta = int(cc_lwe.GetBeta())
        p_lwe = modulus_lwe // (2 * beta)
        if p_lwe != params.fhew_plaintext_modulus:
            logger.warning(
                f"OpenFHE derived pLWE={p_lwe} (beta={beta}), parameter set assumed "
                f"{params.fhew_plaintext_modulus}"
            )
        cc.EvalCompareSwitchPrecompute(p_lwe, SIGN_SCALE)
        cc.EvalSumKeyGen(keys.secretKey)

        logger.info(
            f"OpenFHE context ready: ring_dim={cc.GetRingDimension()}, "
            f"slots={params.slot_count}, depth={params.multiplicative_depth}, "
            f"logQ={params.fhew_log_q}, pLWE={p_lwe}"
        )
        return cls(
            cc=cc,
            keys=keys,
            cc_lwe=cc_lwe,
            fhew_secret_key=fhew_secret_key,
            lwe_plaintext_modulus=p_lwe,
            params=params,
        )


class OpenFHECKKSBackend:
    """Packed CKKS arithmetic on an OpenFHE crypto context."""

    def __init__(self, session: OpenFHESession):
        self.session = session
        self.cc = session.cc
        self.keys = session.keys
        self.slot_count = session.params.slot_count
        self.depth = session.params.multiplicative_depth

    def _wrap(self, ct: Any) -> ArithmeticCiphertext:
        return ArithmeticCiphertext(
            data=ct,
            scheme=ArithmeticScheme.CKKS,
            slot_count=self.slot_count,
            level=self.depth - ct.GetLevel(),
        )

    def encrypt(self, values: np.ndarray) -> ArithmeticCiphertext:
        padded = np.zeros(self.slot_count, dtype=np.float64)
        padded[:len(values)] = values
        ptxt = self.cc.MakeCKKSPackedPlaintext(padded.tolist(), 1, 0, None, self.slot_count)
        return self._wrap(self.cc.Encrypt(self.keys.publicKey, ptxt))

    def decrypt(self, ct: ArithmeticCiphertext) -> np.ndarray:
        ptxt = self.cc.Decrypt(ct.data, self.keys.secretKey)
        ptxt.SetLength(self.slot_count)
        return np.array(ptxt.GetRealPackedValue(), dtype=np.float64)

    def add(self, ct1: ArithmeticCiphertext, ct2: ArithmeticCiphertext) -> ArithmeticCiphertext:
        return self._wrap(self.cc.EvalAdd(ct1.data, ct2.data))

    def sub(self, ct1: ArithmeticCiphertext, ct2: ArithmeticCiphertext) -> ArithmeticCiphertext:
        return self._wrap(self.cc.EvalSub(ct1.data, ct2.data))

    def mul(self, ct1: ArithmeticCiphertext, ct2: ArithmeticCiphertext) -> ArithmeticCiphertext:
        return self._wrap(self.cc.EvalMult(ct1.data, ct2.data))

    def negate(self, ct: ArithmeticCiphertext) -> ArithmeticCiphertext:
        return self._wrap(self.cc.EvalNegate(ct.data))

    def add_scalar(self, ct: ArithmeticCiphertext, scalar: float) -> ArithmeticCiphertext:
        return self._wrap(self.cc.EvalAdd(ct.data, float(scalar)))

    def mul_scalar(self, ct: ArithmeticCiphertext, scalar: float) -> ArithmeticCiphertext:
        return self._wrap(self.cc.EvalMult(ct.data, float(scalar)))

    def sum_slots(self, ct: ArithmeticCiphertext) -> ArithmeticCiphertext:
        return self._wrap(self.cc.EvalSum(ct.data, self.slot_count))

    def remaining_levels(self, ct: ArithmeticCiphertext) -> int:
        return self.depth - ct.data.GetLevel()


class OpenFHESwitchingBackend:
    """CKKS -> FHEW -> CKKS round trip with FHEW sign evaluation."""

    def __init__(self, session: OpenFHESession, ckks: OpenFHECKKSBackend):
        self.session = session
        self.cc = session.cc
        self.cc_lwe = session.cc_lwe
        self.ckks = ckks
        self.ciphertext_modulus = 1 << session.params.fhew_log_q

    def _lwe(self, ct: Any, plaintext_modulus: int) -> LWECiphertext:
        return LWECiphertext(
            data=ct,
            ciphertext_modulus=self.ciphertext_modulus,
            plaintext_modulus=plaintext_modulus,
        )

    def ckks_to_fhew(self, ct: ArithmeticCiphertext, num_values: int) -> Tuple[LWECiphertext, ...]:
        lwes = self.cc.EvalCKKStoFHEW(ct.data, num_values)
        return tuple(self._lwe(lwe, self.session.lwe_plaintext_modulus) for lwe in lwes)

    def eval_sign(self, lwe: LWECiphertext) -> LWECiphertext:
        return self._lwe(self.cc_lwe.EvalSign(lwe.data), SIGN_OUTPUT_MODULUS)

    def fhew_to_ckks(self, lwes: Sequence[LWECiphertext], num_values: int) -> ArithmeticCiphertext:
        ct = self.cc.EvalFHEWtoCKKS([lwe.data for lwe in lwes], num_values, self.ckks.slot_count)
        return self.ckks._wrap(ct)

    def decrypt_lwe(self, lwe: LWECiphertext) -> int:
        return int(self.cc_lwe.Decrypt(self.session.fhew_secret_key, lwe.data, lwe.plaintext_modulus))
