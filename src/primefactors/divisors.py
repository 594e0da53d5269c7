# -----------------------------------------------------------------------------
#  divisors.py
#  Divisor counting, odometer enumeration and perfection classification
# -----------------------------------------------------------------------------
#
#  A proper divisor is less than the number itself, and 1 is the first proper
#  divisor of every number. The proper divisors of 28 are 1, 2, 4, 7, 14;
#  they add up to 28, so 28 is a perfect number.

from __future__ import annotations

from collections.abc import Iterable, Iterator
from enum import Enum

from primefactors.factors import PrimeFactors, canonical_exponents, factor, value_of
from primefactors.sieve import PrimeCache, default_cache
from primefactors.utility import NativeOverflowError, native_max


class Perfection(Enum):
    DEFICIENT = -1
    PERFECT = 0
    ABUNDANT = 1

    @property
    def label(self) -> str:
        return self.name.lower()

    def __str__(self) -> str:
        return self.label


DivisorSource = int | PrimeFactors | Iterable[int]


def _exponents(x: DivisorSource, cache: PrimeCache | None) -> tuple[int, ...]:
    """Accept an int, a PrimeFactors or an exponent sequence."""
    if isinstance(x, PrimeFactors):
        return x.exponents
    if isinstance(x, int) and not isinstance(x, bool):
        return factor(x, cache)
    return canonical_exponents(x)


def count_divisors(x: DivisorSource, cache: PrimeCache | None = None) -> int:
    """
    Number of divisors, including 1 and the number itself: the product of
    (exponent + 1) over all prime powers.
    """
    exps = _exponents(x, cache)
    value_of(exps, cache)  # the number itself must be representable
    hi = native_max()
    count = 1
    for e in exps:
        count *= e + 1
        if count > hi:
            raise NativeOverflowError(f"divisor count exceeds {hi}.")
    return count


def divisors(x: DivisorSource, cache: PrimeCache | None = None) -> Iterator[int]:
    """
    Iterate over all divisors, starting with 1.

    Mixed-radix odometer over the prime exponents: the lowest prime position
    that is below its maximum is bumped and the running product multiplied
    by that prime; positions at their maximum roll back to zero (dividing
    the product by p^max) and the scan moves on. Every divisor comes out
    exactly once, e.g. 28 = 2^2 * 7 gives 1, 2, 4, 7, 14, 28. The order is
    deterministic but not sorted in general.
    """
    exps = _exponents(x, cache)
    cache = cache if cache is not None else default_cache()
    value_of(exps, cache)  # overflow check before yielding anything

    # Compress to the primes with a positive exponent.
    positions = [i for i, e in enumerate(exps) if e > 0]
    primes = [cache.prime_at(i) for i in positions]
    maxexp = [exps[i] for i in positions]
    maxpow = []
    for p, m in zip(primes, maxexp):
        pw = 1
        for _ in range(m):
            pw *= p
        maxpow.append(pw)
    return _odometer(primes, maxexp, maxpow)


def _odometer(primes: list[int], maxexp: list[int], maxpow: list[int]) -> Iterator[int]:
    count = len(primes)
    exponent = [0] * count  # prime exponents in the current divisor
    divisor = 1
    yield divisor

    i = 0
    while i < count:
        if exponent[i] < maxexp[i]:
            exponent[i] += 1
            divisor *= primes[i]
            yield divisor
            i = 0  # restart the scan from the lowest prime
            continue
        # reduce exponent to zero and carry into the next position
        exponent[i] = 0
        divisor //= maxpow[i]
        i += 1


def proper_divisors(x: DivisorSource, cache: PrimeCache | None = None) -> Iterator[int]:
    """All divisors except the number itself, in enumeration order."""
    exps = _exponents(x, cache)
    value = value_of(exps, cache)
    return (d for d in divisors(exps, cache) if d != value)


def divisor_sum(x: DivisorSource, cache: PrimeCache | None = None) -> int:
    """σ(n): sum of all divisors, by enumeration."""
    return sum(divisors(x, cache))


def classify_perfection(x: DivisorSource, cache: PrimeCache | None = None) -> Perfection:
    """
    Deficient if the proper divisors add up to less than the number,
    perfect if they add up to it exactly, abundant otherwise. Stops as soon
    as the running sum passes the number.
    """
    exps = _exponents(x, cache)
    value = value_of(exps, cache)
    total = 0
    for d in proper_divisors(exps, cache):
        total += d
        if total > value:
            return Perfection.ABUNDANT
    return Perfection.DEFICIENT if total < value else Perfection.PERFECT
