from .helpers import exact_sqrt, ceil_isqrt, is_probable_prime, bit_band

__all__ = ['exact_sqrt', 'ceil_isqrt', 'is_probable_prime', 'bit_band']
