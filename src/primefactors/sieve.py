# -----------------------------------------------------------------------------
#  sieve.py
#  Growable prime cache built on a bytearray sieve of Eratosthenes
# -----------------------------------------------------------------------------

from __future__ import annotations

import threading
from bisect import bisect_left
from itertools import compress

from primefactors.runtime import CFG_INT
from primefactors.utility import SieveLimitError

DEFAULT_INITIAL_BOUND = 10_000
DEFAULT_GROWTH_FACTOR = 2
DEFAULT_MAX_BOUND = 400_000_000        # bytes of sieve memory, one per integer
_BLOCK = 64                            # working range granularity


def _sieve_flags(N: int) -> bytearray:
    """
    Simple bytearray sieve up to N (inclusive). Nonzero means 'prime'.
    O(N log log N) time, O(N) bytes.
    """
    if N < 2:
        return bytearray(2)
    flags = bytearray(b"\x01") * (N + 1)
    flags[0:2] = b"\x00\x00"
    p = 2
    while p * p <= N:
        if flags[p]:
            start = p * p
            flags[start:N + 1:p] = b"\x00" * (((N - start) // p) + 1)
        p += 1
    return flags


def max_bound() -> int:
    """Largest range the cache may sieve (profile SIEVE.MAX_BOUND)."""
    return CFG_INT("SIEVE.MAX_BOUND", DEFAULT_MAX_BOUND, minimum=_BLOCK)


def _sieve_range(bound: int, *, past_bound: bool = True) -> tuple[int, list[int]]:
    """
    Return (limit, primes) where primes are all primes <= limit and
    limit >= bound. The working range is rounded up to a whole block.

    With past_bound the range is doubled until it also reaches a prime
    >= bound. Without it a single pass suffices, and the rounding never
    takes the range past SIEVE.MAX_BOUND when bound itself is within it.
    """
    bound = max(int(bound), 2)
    ceiling = max_bound()
    limit = -(-bound // _BLOCK) * _BLOCK
    if not past_bound and bound <= ceiling:
        limit = min(limit, ceiling)
    while True:
        if limit > ceiling:
            raise SieveLimitError(
                f"sieving up to {limit} exceeds SIEVE.MAX_BOUND ({ceiling})."
            )
        primes = list(compress(range(limit + 1), _sieve_flags(limit)))
        if not past_bound or primes[-1] >= bound:
            return limit, primes
        limit *= 2


def sieve(bound: int) -> list[int]:
    """
    All primes <= bound, in ascending order.

    The result may run past `bound`: its last element is always >= bound.
    Degenerate bounds (< 2) give the minimal sequence rather than an error.
    """
    return _sieve_range(bound)[1]


class PrimeCache:
    """
    Ordered tuple of every prime up to `bound`, grown in place on demand.

    The contents only ever grow, and each new tuple extends the previous one
    as a prefix. Growth happens under a lock; readers grab the current tuple,
    which is immutable, so they always see a consistent snapshot.
    """

    def __init__(self, initial_bound: int | None = None):
        self._initial_bound = initial_bound
        self._bound = 0
        self._primes: tuple[int, ...] = ()
        self._lock = threading.Lock()

    # --- snapshots ------------------------------------------------------------

    def snapshot(self) -> tuple[int, ...]:
        """Current primes as an immutable tuple (initialising lazily)."""
        primes = self._primes
        if primes:
            return primes
        with self._lock:
            if not self._primes:
                initial = self._initial_bound
                if initial is None:
                    initial = CFG_INT("SIEVE.INITIAL_BOUND", DEFAULT_INITIAL_BOUND)
                self._bound, primes_list = _sieve_range(min(initial, max_bound()), past_bound=False)
                self._primes = tuple(primes_list)
            return self._primes

    def primes(self) -> list[int]:
        """Independent copy of the cached primes; never triggers growth."""
        return list(self.snapshot())

    @property
    def bound(self) -> int:
        """Every prime <= bound is in the cache."""
        self.snapshot()
        return self._bound

    @property
    def largest(self) -> int:
        return self.snapshot()[-1]

    def __len__(self) -> int:
        return len(self.snapshot())

    def __contains__(self, value: object) -> bool:
        return isinstance(value, int) and self.index_of(value) >= 0

    def __repr__(self) -> str:
        return f"PrimeCache(bound={self._bound}, count={len(self._primes)})"

    # --- lookups --------------------------------------------------------------

    def index_of(self, p: int) -> int:
        """Position of p in the cache, or -1 if p is not a cached prime."""
        primes = self.snapshot()
        i = bisect_left(primes, p)
        return i if i < len(primes) and primes[i] == p else -1

    def prime_at(self, index: int) -> int:
        """The index-th prime (0 -> 2), growing the cache as needed."""
        if index < 0:
            raise IndexError("prime index must be non-negative")
        while len(self.snapshot()) <= index:
            self.ensure_bound(self.bound + 1)
        return self._primes[index]

    # --- growth ---------------------------------------------------------------

    def ensure_bound(self, n: int) -> None:
        """Grow the cache until it holds every prime <= n."""
        if n <= self.bound:
            return
        with self._lock:
            old_bound, old = self._bound, self._primes
            if n <= old_bound:
                return  # another thread already grew past n
            factor = CFG_INT("SIEVE.GROWTH_FACTOR", DEFAULT_GROWTH_FACTOR, minimum=1)
            target = max(n, old_bound * factor)
            if target > max_bound() >= n:
                target = max(n, max_bound() // _BLOCK * _BLOCK)
            limit, primes = _sieve_range(target, past_bound=False)
            if tuple(primes[:len(old)]) != old:
                raise RuntimeError("sieve growth produced a non-extending prime sequence")
            self._primes = tuple(primes)
            self._bound = limit


# --- process-wide default cache ------------------------------------------------

_DEFAULT_CACHE = PrimeCache()


def default_cache() -> PrimeCache:
    return _DEFAULT_CACHE


def current_primes() -> list[int]:
    return _DEFAULT_CACHE.primes()


def ensure_bound(n: int) -> None:
    _DEFAULT_CACHE.ensure_bound(n)
