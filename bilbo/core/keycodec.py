"""
Textual RSA key codec.

Decoding accepts anything pycryptodome's RSA.import_key understands
(PEM, DER, OpenSSH); encoding always emits PEM.
"""

from enum import Enum
from Crypto.PublicKey import RSA

from ..errors import DecodeError, EncodeError
from .material import PublicKeyMaterial, PrivateKeyMaterial


class KeyType(Enum):
    PRIVATE = "private"
    PUBLIC = "public"


def decode(text):
    """
    Parses key text (str, or bytes for DER) and returns its modulus
    and public exponent.
    A private key is accepted too; only n and e are kept.
    """
    if not text or not text.strip():
        raise DecodeError("empty key text")
    try:
        key = RSA.import_key(text)
    except (ValueError, IndexError, TypeError) as err:
        raise DecodeError(f"not a valid RSA key: {err}") from err

    n = int(key.n)
    e = int(key.e)
    if n <= 0 or e <= 0:
        raise DecodeError("key lacks modulus or public exponent")
    return PublicKeyMaterial(modulus=n, exponent=e)


def encode(material, kind=KeyType.PRIVATE):
    """
    Serializes key material as PEM.
    KeyType.PRIVATE gives a PKCS#1 'RSA PRIVATE KEY' block,
    KeyType.PUBLIC a SubjectPublicKeyInfo 'PUBLIC KEY' block.
    """
    if kind is KeyType.PRIVATE:
        if not isinstance(material, PrivateKeyMaterial):
            raise EncodeError("private encoding needs the private exponent and both factors")
        components = (
            material.modulus,
            material.public_exponent,
            material.private_exponent,
            material.prime_p,
            material.prime_q,
        )
    elif kind is KeyType.PUBLIC:
        if isinstance(material, PrivateKeyMaterial):
            material = material.public()
        components = (material.modulus, material.exponent)
    else:
        raise EncodeError(f"unknown key type {kind!r}")

    try:
        key = RSA.construct(tuple(int(c) for c in components))
        pem = key.export_key(format="PEM", pkcs=1)
    except ValueError as err:
        raise EncodeError(f"key material rejected: {err}") from err
    return pem.decode()
