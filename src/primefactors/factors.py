# -----------------------------------------------------------------------------
#  factors.py
#  Canonical prime-power factorizations: construction, algebra and ordering
# -----------------------------------------------------------------------------

from __future__ import annotations

from collections.abc import Iterable, Iterator, Sequence
from functools import total_ordering
from math import isqrt

from primefactors.fmt import format_factorization
from primefactors.primality import is_prime
from primefactors.sieve import PrimeCache, default_cache
from primefactors.utility import (
    DomainError,
    NativeOverflowError,
    NotADivisorError,
    check_native,
    native_max,
    require_int,
)


def _cache(cache: PrimeCache | None) -> PrimeCache:
    return cache if cache is not None else default_cache()


def _trim(powers: Sequence[int]) -> tuple[int, ...]:
    """Drop trailing zero exponents (canonical minimal-length form)."""
    length = len(powers)
    while length > 0 and powers[length - 1] == 0:
        length -= 1
    return tuple(powers[:length])


def canonical_exponents(exponents: Iterable[int]) -> tuple[int, ...]:
    """Validate an exponent sequence and return it trimmed, as a tuple."""
    out: list[int] = []
    for i, e in enumerate(exponents):
        e = require_int(e, label=f"exponent #{i}")
        if e < 0:
            raise DomainError(f"exponent #{i} is negative ({e}); exponents must be >= 0.")
        out.append(e)
    return _trim(out)


def factor(value: int, cache: PrimeCache | None = None) -> tuple[int, ...]:
    """
    Factor a number into an array of prime powers based on the cached primes.
    For example, 28 = 2^2 * 7^1 and the primes start off (2, 3, 5, 7, ...),
    so the result is (2, 0, 1).

    Whenever the cache runs out with a cofactor > 1 left, the cache is grown
    (to the cofactor itself if it is prime, else to its square root) and the
    factorization restarts from the original value. Each retry raises the
    cache bound, so the loop terminates.
    """
    original = check_native(require_int(value))
    if original < 1:
        raise DomainError(f"Value to factor must not be less than 1 (got {original}).")

    cache = _cache(cache)
    while True:
        rest = original
        powers: list[int] = []
        for p in cache.snapshot():
            if rest == 1:
                break
            power = 0
            while rest % p == 0:
                rest //= p
                power += 1
            powers.append(power)

        if rest == 1:
            return _trim(powers)

        if is_prime(rest, cache):
            cache.ensure_bound(rest)
        else:
            cache.ensure_bound(isqrt(rest))


def value_of(exponents: Iterable[int], cache: PrimeCache | None = None) -> int:
    """
    Given the prime powers of a value, return the value: (2, 0, 0, 1) gives
    2^2 * 3^0 * 5^0 * 7^1 = 28. Uses repeated multiplication, and raises
    NativeOverflowError as soon as the product leaves the native range.
    """
    exps = canonical_exponents(exponents)
    cache = _cache(cache)
    hi = native_max()
    value = 1
    for i, e in enumerate(exps):
        if e == 0:
            continue
        p = cache.prime_at(i)
        for _ in range(e):
            value *= p
            if value > hi:
                raise NativeOverflowError(
                    f"value of {format_factorization(_pairs(exps, cache))} exceeds {hi}."
                )
    return value


def _pairs(exps: Sequence[int], cache: PrimeCache) -> dict[int, int]:
    return {cache.prime_at(i): e for i, e in enumerate(exps) if e}


@total_ordering
class PrimeFactors:
    """
    Immutable representation of a positive integer as powers of the
    consecutive primes 2, 3, 5, 7, ... The exponent tuple never ends in 0.

    Multiplying, dividing and raising to a power work on exponents and
    return new instances. The ordering looks at the highest prime factor
    first, then its power, then the next highest prime factor, and so on.
    """

    __slots__ = ("_cache", "_exponents")

    def __init__(self, value: int = 1, cache: PrimeCache | None = None):
        self._cache = _cache(cache)
        self._exponents = factor(value, self._cache)

    @classmethod
    def from_exponents(cls, exponents: Iterable[int], cache: PrimeCache | None = None) -> PrimeFactors:
        """Build from an exponent sequence; trailing zeros are allowed."""
        obj = cls.__new__(cls)
        obj._cache = _cache(cache)
        obj._exponents = canonical_exponents(exponents)
        return obj

    # --- accessors ------------------------------------------------------------

    @property
    def exponents(self) -> tuple[int, ...]:
        return self._exponents

    def __getitem__(self, index: int) -> int:
        if index < 0:
            raise IndexError("exponent index must be non-negative")
        return self._exponents[index] if index < len(self._exponents) else 0

    def __len__(self) -> int:
        return len(self._exponents)

    def __bool__(self) -> bool:
        return True  # the empty factorization still represents 1

    def items(self) -> Iterator[tuple[int, int]]:
        """Yield (prime, exponent) for every prime that divides the value."""
        for i, e in enumerate(self._exponents):
            if e:
                yield self._cache.prime_at(i), e

    def value(self) -> int:
        return value_of(self._exponents, self._cache)

    def __int__(self) -> int:
        return self.value()

    # --- algebra --------------------------------------------------------------

    def _combine(self, other: PrimeFactors, sign: int) -> list[int]:
        size = max(len(self), len(other))
        return [self[i] + sign * other[i] for i in range(size)]

    def multiply(self, other: PrimeFactors) -> PrimeFactors:
        return PrimeFactors.from_exponents(self._combine(other, 1), self._cache)

    def divide(self, other: PrimeFactors) -> PrimeFactors:
        """Exact division; raises NotADivisorError if other does not divide self."""
        result = self._combine(other, -1)
        if any(e < 0 for e in result):
            raise NotADivisorError(f"{other} does not divide {self}.")
        return PrimeFactors.from_exponents(result, self._cache)

    def power(self, k: int) -> PrimeFactors:
        k = require_int(k, label="power")
        if k < 0:
            raise DomainError(f"power must be non-negative (got {k}).")
        return PrimeFactors.from_exponents([e * k for e in self._exponents], self._cache)

    def divides(self, other: PrimeFactors) -> bool:
        return len(self) <= len(other) and all(e <= other[i] for i, e in enumerate(self._exponents))

    def __mul__(self, other):
        if not isinstance(other, PrimeFactors):
            return NotImplemented
        return self.multiply(other)

    def __truediv__(self, other):
        if not isinstance(other, PrimeFactors):
            return NotImplemented
        return self.divide(other)

    def __pow__(self, k):
        if isinstance(k, bool) or not isinstance(k, int):
            return NotImplemented
        return self.power(k)

    # --- ordering -------------------------------------------------------------

    def compare(self, other: PrimeFactors) -> int:
        """Negative, zero or positive as self is below, equal to or above other."""
        if len(self) != len(other):
            return len(self) - len(other)
        for a, b in zip(reversed(self._exponents), reversed(other._exponents)):
            if a != b:
                return a - b
        return 0

    def __eq__(self, other):
        if not isinstance(other, PrimeFactors):
            return NotImplemented
        return self._exponents == other._exponents

    def __lt__(self, other):
        if not isinstance(other, PrimeFactors):
            return NotImplemented
        return self.compare(other) < 0

    def __hash__(self) -> int:
        return hash(self._exponents)

    # --- display --------------------------------------------------------------

    def __str__(self) -> str:
        return format_factorization(dict(self.items()))

    def __repr__(self) -> str:
        return f"PrimeFactors.from_exponents({list(self._exponents)!r})"
