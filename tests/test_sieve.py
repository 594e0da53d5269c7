# tests/test_sieve.py
"""
Tests for the prime cache and the sieve behind it.

Run: pytest -v
"""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor

import pytest
from sympy import isprime, primerange

from primefactors.runtime import APPLY, Runtime, _current_runtime
from primefactors.sieve import PrimeCache, current_primes, default_cache, sieve
from primefactors.utility import SieveLimitError


@pytest.fixture(autouse=True)
def fresh_runtime():
    token = _current_runtime.set(Runtime())
    yield
    _current_runtime.reset(token)


# ---------- sieve() -----------------------------------------------------------


def test_all_primes_and_only_primes():
    primes = sieve(10_000)
    assert primes == list(primerange(2, primes[-1] + 1))
    assert primes[:len(current_primes())] == current_primes()[:len(primes)]


@pytest.mark.parametrize("bound", [2, 3, 5, 24, 64, 100, 127, 1000, 7919])
def test_includes_request(bound):
    primes = sieve(bound)
    assert primes[-1] >= bound
    assert all(isprime(p) for p in primes)


@pytest.mark.parametrize("bound", [-10, 0, 1])
def test_degenerate_bounds_give_minimal_sequence(bound):
    primes = sieve(bound)
    assert primes[0] == 2
    assert primes == list(primerange(2, primes[-1] + 1))


def test_sieve_is_sorted_and_unique():
    primes = sieve(5000)
    assert primes == sorted(set(primes))


# ---------- PrimeCache --------------------------------------------------------


def test_lazy_initialisation_and_copy_semantics():
    cache = PrimeCache(initial_bound=100)
    primes = cache.primes()
    assert primes[:5] == [2, 3, 5, 7, 11]
    assert cache.bound >= 100
    primes.append(4)
    primes[0] = 99
    assert cache.primes()[0] == 2
    assert 4 not in cache.primes()


def test_initial_bound_from_profile():
    APPLY({"SIEVE": {"INITIAL_BOUND": 500}})
    cache = PrimeCache()
    assert 499 in cache
    assert cache.bound >= 500


def test_ensure_bound_grows_monotonically():
    cache = PrimeCache(initial_bound=50)
    before = cache.snapshot()
    cache.ensure_bound(10_007)
    after = cache.snapshot()
    assert cache.bound >= 10_007
    assert 10_007 in cache
    assert after[:len(before)] == before
    assert list(after) == list(primerange(2, cache.bound + 1))


def test_ensure_bound_below_current_bound_is_a_no_op():
    cache = PrimeCache(initial_bound=1000)
    snap = cache.snapshot()
    cache.ensure_bound(10)
    cache.ensure_bound(cache.bound)
    assert cache.snapshot() is snap


def test_growth_factor_from_profile():
    APPLY({"SIEVE": {"GROWTH_FACTOR": 10}})
    cache = PrimeCache(initial_bound=100)
    old = cache.bound
    cache.ensure_bound(old + 1)
    assert cache.bound >= 10 * old


def test_index_of_and_prime_at():
    cache = PrimeCache(initial_bound=30)
    assert cache.index_of(2) == 0
    assert cache.index_of(29) == 9
    assert cache.index_of(27) == -1
    assert cache.prime_at(0) == 2
    # the 1000th prime forces the cache to grow
    assert cache.prime_at(999) == 7919
    assert len(cache) >= 1000
    with pytest.raises(IndexError):
        cache.prime_at(-1)


def test_concurrent_growth_keeps_the_cache_consistent():
    cache = PrimeCache(initial_bound=10)
    targets = [100, 5000, 250, 20_000, 1234, 19_999, 7, 15_000] * 4
    with ThreadPoolExecutor(max_workers=8) as pool:
        list(pool.map(cache.ensure_bound, targets))
    primes = cache.primes()
    assert cache.bound >= 20_000
    assert primes == sorted(set(primes))
    assert primes == list(primerange(2, cache.bound + 1))


def test_sieve_limit_is_reported():
    APPLY({"SIEVE": {"MAX_BOUND": 4096}})
    cache = PrimeCache(initial_bound=100)
    with pytest.raises(SieveLimitError):
        cache.ensure_bound(100_000)
    # a failed growth leaves the cache untouched
    assert cache.primes() == list(primerange(2, cache.bound + 1))


@pytest.mark.parametrize("ceiling,n", [(4096, 4094), (4096, 4096), (4000, 3990), (4000, 4000)])
def test_growth_reaches_every_bound_up_to_the_limit(ceiling, n):
    APPLY({"SIEVE": {"MAX_BOUND": ceiling}})
    cache = PrimeCache(initial_bound=100)
    cache.ensure_bound(n)
    assert n <= cache.bound <= ceiling
    assert cache.primes() == list(primerange(2, cache.bound + 1))
    with pytest.raises(SieveLimitError):
        cache.ensure_bound(ceiling + 1)


def test_initial_bound_is_clamped_to_the_limit():
    APPLY({"SIEVE": {"MAX_BOUND": 4000}})
    cache = PrimeCache(initial_bound=3999)
    assert cache.bound == 4000
    assert cache.largest == 3989
    assert PrimeCache(initial_bound=100_000).bound == 4000


def test_default_cache_is_shared():
    assert default_cache() is default_cache()
    assert current_primes() == default_cache().primes()
