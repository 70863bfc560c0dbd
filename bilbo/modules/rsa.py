import random
from dataclasses import dataclass, replace
from typing import Optional, Tuple

import gmpy2

from ..core.keycodec import decode
from ..core.material import PublicKeyMaterial, PrivateKeyMaterial
from ..errors import (
    ConfigError,
    EngineSpentError,
    FactorizationFailed,
    InvalidKeyMaterial,
)
from ..utils.helpers import bit_band, ceil_isqrt, exact_sqrt, is_probable_prime

# 3 * 5, smallest product of two odd primes
MIN_MODULUS = 15
WEAK_ROUNDS = 1000
DEFAULT_MAX_ITERATIONS = 1_000_000
DEFAULT_PROGRESS_INTERVAL = 10_000


@dataclass
class PickLockConfig:
    """Configuration for a single picklock attempt."""
    max_iterations: int = DEFAULT_MAX_ITERATIONS  # strong strategy only
    progress_interval: int = DEFAULT_PROGRESS_INTERVAL
    seed: Optional[int] = None


def derive_private(public, p, q):
    """
    Builds the private key for `public` from its factors p and q.
    Raises InvalidKeyMaterial if the factors do not match the modulus, are
    equal (perfect square modulus) or e has no inverse modulo phi.
    """
    p, q = int(p), int(q)
    if p > q:
        p, q = q, p
    if p <= 1 or p * q != public.modulus:
        raise InvalidKeyMaterial(f"{p} * {q} does not reproduce the modulus")
    if p == q:
        raise InvalidKeyMaterial(
            f"modulus is the perfect square {p}^2, not a two prime RSA key, no private key can be exported"
        )

    phi = (p - 1) * (q - 1)
    if gmpy2.gcd(public.exponent, phi) != 1:
        raise InvalidKeyMaterial(
            f"public exponent {public.exponent} is not invertible modulo phi(n), key is inconsistent"
        )
    d = int(gmpy2.invert(public.exponent, phi))
    if (d * public.exponent) % phi != 1:
        raise InvalidKeyMaterial("derived private exponent fails e*d = 1 (mod phi)")

    return PrivateKeyMaterial(
        modulus=public.modulus,
        public_exponent=public.exponent,
        private_exponent=d,
        prime_p=p,
        prime_q=q,
    )


class PickLock:
    """
    Recovers an RSA private key from its public half when the primes
    were generated badly.

    Two strategies:
    - weak: Fermat search near sqrt(n), for p and q close together.
    - strong: random probing of odd candidates of about half the modulus
      width, for keys whose factors were squeezed into a small band.

    An instance runs exactly one attempt.
    """
    def __init__(self, public: PublicKeyMaterial, config: Optional[PickLockConfig] = None):
        self._check_material(public)
        self.public = public
        self.config = replace(config) if config else PickLockConfig()
        if self.config.max_iterations <= 0:
            raise ConfigError(f"iteration bound must be positive, got {self.config.max_iterations}")
        self._spent = False

    @classmethod
    def from_pem(cls, text: str, config: Optional[PickLockConfig] = None) -> 'PickLock':
        """Builds an engine straight from key text."""
        return cls(decode(text), config)

    @staticmethod
    def _check_material(public):
        n, e = public.modulus, public.exponent
        if n < MIN_MODULUS:
            raise InvalidKeyMaterial(f"modulus {n} is too small to hold two primes")
        if n % 2 == 0:
            raise InvalidKeyMaterial("modulus is even")
        if is_probable_prime(n):
            raise InvalidKeyMaterial("modulus is prime, nothing to factor")
        if not 1 < e < n:
            raise InvalidKeyMaterial(f"public exponent {e} is out of range (1, n)")
        if e % 2 == 0:
            raise InvalidKeyMaterial(f"public exponent {e} is even")

    def set_iteration_bound(self, n: int) -> None:
        """Overrides the strong strategy iteration bound."""
        self._ensure_unused()
        if n <= 0:
            raise ConfigError(f"iteration bound must be positive, got {n}")
        self.config.max_iterations = int(n)

    def _ensure_unused(self):
        if self._spent:
            raise EngineSpentError("this picklock already ran, build a new one")

    def _consume(self):
        self._ensure_unused()
        self._spent = True

    def factor_weak(self) -> Tuple[int, int]:
        """
        Fermat factorization capped at WEAK_ROUNDS rounds, whatever the config.
        Succeeds iff (p + q) / 2 - ceil(sqrt(n)) < WEAK_ROUNDS.
        """
        self._consume()
        n = self.public.modulus
        a0 = ceil_isqrt(n)

        for rnd in range(WEAK_ROUNDS):
            a = a0 + rnd
            b = exact_sqrt(a * a - n)
            if b is None:
                continue
            p, q = a - b, a + b
            if p > 1 and q > 1 and p * q == n:
                return p, q

        raise FactorizationFailed(
            f"Fermat search gave up after {WEAK_ROUNDS} rounds, p and q are too far apart"
        )

    def factor_strong(self, verbose: bool = False) -> Tuple[int, int]:
        """
        Monte Carlo probe: draws random odd numbers whose bit length is
        within one bit of half the modulus width and tests divisibility.
        Returns the factors on an exact division only.
        """
        self._consume()
        n = self.public.modulus
        band = bit_band(n)
        rng = random.Random(self.config.seed)
        interval = max(1, self.config.progress_interval)

        for iteration in range(1, self.config.max_iterations + 1):
            h = rng.choice(band)
            candidate = rng.getrandbits(h) | (1 << (h - 1)) | 1
            if 1 < candidate < n and n % candidate == 0:
                if verbose:
                    print(f"[+] Divisor found after {iteration} candidates")
                return candidate, n // candidate
            if verbose and iteration % interval == 0:
                print(f"[*] Checked {iteration} candidates of {band[0]}-{band[-1]} bits...")

        raise FactorizationFailed(
            f"no divisor among {self.config.max_iterations} random candidates of {band[0]}-{band[-1]} bits"
        )

    def try_lock_pick_weak_private(self) -> PrivateKeyMaterial:
        p, q = self.factor_weak()
        return derive_private(self.public, p, q)

    def try_lock_pick_strong_private(self, verbose: bool = False) -> PrivateKeyMaterial:
        p, q = self.factor_strong(verbose)
        return derive_private(self.public, p, q)
