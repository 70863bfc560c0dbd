from .material import PublicKeyMaterial, PrivateKeyMaterial
from .keycodec import KeyType, decode, encode
from .connection import IcmpConnection

__all__ = [
    'PublicKeyMaterial',
    'PrivateKeyMaterial',
    'KeyType',
    'decode',
    'encode',
    'IcmpConnection',
]
