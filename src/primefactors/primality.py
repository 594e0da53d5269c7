# -----------------------------------------------------------------------------
#  primality.py
#  Deterministic primality test over the prime cache
# -----------------------------------------------------------------------------

from __future__ import annotations

from math import isqrt

from primefactors.sieve import PrimeCache, default_cache
from primefactors.utility import check_native, require_int


def is_prime(value: int, cache: PrimeCache | None = None) -> bool:
    """
    Exact primality test.

    Small values are answered by binary search in the cache. Larger values
    are trial-divided by cached primes up to isqrt(value), after growing the
    cache far enough when value exceeds the square of its largest prime.
    """
    value = check_native(require_int(value))
    if value < 2:
        return False

    cache = cache if cache is not None else default_cache()
    if value <= cache.bound:
        return cache.index_of(value) >= 0

    root = isqrt(value)
    if value > cache.largest ** 2:
        cache.ensure_bound(root)

    for p in cache.snapshot():
        if p > root:
            return True  # no prime factor <= sqrt(value)
        if value % p == 0:
            return value == p
    return True
