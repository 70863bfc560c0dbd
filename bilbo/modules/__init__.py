from .rsa import PickLock, PickLockConfig, derive_private
from .entropy import Shannon, EntropyReport, scan
from .smuggler import SmugglerConfig, ping_plain, ping_cipher

__all__ = [
    'PickLock',
    'PickLockConfig',
    'derive_private',
    'Shannon',
    'EntropyReport',
    'scan',
    'SmugglerConfig',
    'ping_plain',
    'ping_cipher',
]
