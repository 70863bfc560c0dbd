"""
Error types raised by bilbo.

Library code raises these; only the command line layer catches them.
File system problems are left as the built-in OSError family.
"""


class BilboError(Exception):
    """Base class for every error bilbo reports."""


class DecodeError(BilboError):
    """Key text is not a well formed RSA key or lacks n / e."""


class EncodeError(BilboError):
    """Key material could not be serialized."""


class InvalidInputError(BilboError):
    """A required argument is missing or malformed."""


class InvalidDataError(InvalidInputError):
    """An argument is present but outside of its accepted range."""


class InvalidKeyMaterial(BilboError):
    """Modulus / exponent fail sanity checks or derivation is inconsistent."""


class ConfigError(BilboError):
    """Rejected engine configuration, e.g. a zero iteration bound."""


class FactorizationFailed(BilboError):
    """
    The chosen strategy exhausted its bound without finding factors.
    This is the expected outcome for keys that are not vulnerable.
    """


class EngineSpentError(BilboError):
    """A PickLock instance was asked to run a second attempt."""
