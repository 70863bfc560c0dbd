"""
bilbo - a small offensive security toolkit.

RSA picklock for badly generated keys, Shannon entropy scanner and a
ping based message smuggler.
"""

__version__ = "0.1.0"
