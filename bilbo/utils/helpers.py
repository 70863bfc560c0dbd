import gmpy2


def exact_sqrt(n):
    """Returns the integer square root of n if n is a perfect square, else None."""
    if n < 0:
        return None
    root = gmpy2.isqrt(n)
    if root * root != n:
        return None
    return int(root)


def ceil_isqrt(n):
    """Smallest integer a with a*a >= n."""
    root = gmpy2.isqrt(n)
    if root * root < n:
        root += 1
    return int(root)


def is_probable_prime(n):
    """Primality check backed by gmpy2 (Miller-Rabin, 25 rounds)."""
    if n < 2:
        return False
    return bool(gmpy2.is_prime(n, 25))


def bit_band(n, slack=1):
    """
    Bit lengths a balanced factor of n can have: half the modulus
    width plus or minus `slack` bits. Non positive widths are dropped.
    """
    half = n.bit_length() // 2
    return [h for h in range(half - slack, half + slack + 1) if h > 0]
