"""
RSA key material records shared by the key codec and the picklock engine.
"""

from dataclasses import dataclass

import gmpy2


@dataclass(frozen=True)
class PublicKeyMaterial:
    """Public half of an RSA key: modulus n and public exponent e."""
    modulus: int
    exponent: int


@dataclass(frozen=True)
class PrivateKeyMaterial:
    """
    Complete RSA private key recovered from the factors of the modulus.
    Factors are kept in ascending order.
    """
    modulus: int
    public_exponent: int
    private_exponent: int
    prime_p: int
    prime_q: int

    # CRT parameters, derived on demand
    @property
    def exponent_p(self) -> int:
        return self.private_exponent % (self.prime_p - 1)

    @property
    def exponent_q(self) -> int:
        return self.private_exponent % (self.prime_q - 1)

    @property
    def coefficient(self) -> int:
        return int(gmpy2.invert(self.prime_q, self.prime_p))

    def public(self) -> PublicKeyMaterial:
        return PublicKeyMaterial(self.modulus, self.public_exponent)
