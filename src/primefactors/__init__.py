from __future__ import annotations

from importlib.metadata import PackageNotFoundError
from importlib.metadata import version as _pkg_version

# Version
try:
    __version__ = _pkg_version("primefactors")
except PackageNotFoundError:
    __version__ = "0+unknown"

# Public API re-exports
from .divisors import (
    Perfection,
    classify_perfection,
    count_divisors,
    divisor_sum,
    divisors,
    proper_divisors,
)
from .factors import PrimeFactors, factor, value_of
from .primality import is_prime
from .runtime import APPLY, CFG
from .sieve import PrimeCache, current_primes, default_cache, ensure_bound, max_bound, sieve
from .utility import (
    DomainError,
    NativeOverflowError,
    NotADivisorError,
    SieveLimitError,
    UserInputError,
)

__all__ = [
    "APPLY",
    "CFG",
    "DomainError",
    "NativeOverflowError",
    "NotADivisorError",
    "Perfection",
    "PrimeCache",
    "PrimeFactors",
    "SieveLimitError",
    "UserInputError",
    "__version__",
    "classify_perfection",
    "count_divisors",
    "current_primes",
    "default_cache",
    "divisor_sum",
    "divisors",
    "ensure_bound",
    "factor",
    "is_prime",
    "max_bound",
    "proper_divisors",
    "sieve",
    "value_of",
]
