"""
Message smuggling over ICMP echo requests.

Useful when a proxy drops everything but ping: the data is sliced into
small chunks and each chunk rides in the payload of one echo request.
Encrypted mode uses AES-128-CBC; the IV is handed back to the caller so
it can be sent in clear at the end of the transfer.
"""

from dataclasses import dataclass

from Crypto.Cipher import AES
from Crypto.Random import get_random_bytes
from Crypto.Util.Padding import pad

from ..core.connection import IcmpConnection
from ..errors import InvalidInputError

KEY_SIZE = 16


@dataclass
class SmugglerConfig:
    """Transport settings for the ping smuggler."""
    chunk_size: int = 24
    ttl: int = 64
    delay: float = 0.0
    timeout: float = 1.0


def chunks(data, size):
    """Splits `data` into consecutive slices of at most `size` bytes."""
    if size <= 0:
        raise InvalidInputError(f"chunk size must be positive, got {size}")
    return [data[i:i + size] for i in range(0, len(data), size)]


def ping_plain(host, data, config=None, connection=None):
    """
    Sends `data` to `host` in chunk_size slices, one echo request each.
    Returns the number of packets sent.
    """
    config = config or SmugglerConfig()
    if isinstance(data, str):
        data = data.encode()

    owned = connection is None
    if owned:
        connection = IcmpConnection(host, ttl=config.ttl, timeout=config.timeout, delay=config.delay)
        connection.connect()

    sent = 0
    try:
        for piece in chunks(data, config.chunk_size):
            connection.send(piece)
            sent += 1
    finally:
        if owned:
            connection.close()
    return sent


def encrypt(data, key):
    """AES-128-CBC with PKCS#7 padding. Returns (iv, ciphertext)."""
    if len(key) != KEY_SIZE:
        raise InvalidInputError(f"incorrect key size, expected {KEY_SIZE} bytes, got {len(key)} bytes")
    if isinstance(data, str):
        data = data.encode()
    iv = get_random_bytes(AES.block_size)
    cipher = AES.new(bytes(key), AES.MODE_CBC, iv=iv)
    return iv, cipher.encrypt(pad(data, AES.block_size))


def ping_cipher(host, data, key, config=None, connection=None):
    """
    Encrypts `data` with `key` and sends the ciphertext via ping_plain.
    Returns the IV; sending it is left to the caller.
    """
    iv, ciphertext = encrypt(data, key)
    ping_plain(host, ciphertext, config, connection)
    return iv
