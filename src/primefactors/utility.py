# -----------------------------------------------------------------------------
#  Utility functions
# -----------------------------------------------------------------------------

from __future__ import annotations

import os
import re
import sys

from primefactors.runtime import CFG_INT

DEFAULT_INT_BITS = 64


class UserInputError(Exception):
    pass


class DomainError(UserInputError, ValueError):
    """An argument outside the domain of the operation (e.g. factor(0))."""


class NotADivisorError(DomainError):
    pass


class NativeOverflowError(UserInputError, OverflowError):
    """A result that does not fit the native signed integer range."""


class SieveLimitError(UserInputError, MemoryError):
    """Growing the prime cache would pass the configured SIEVE.MAX_BOUND."""


def native_bits() -> int:
    """Width of the native signed integer type (profile LIMITS.INT_BITS)."""
    return CFG_INT("LIMITS.INT_BITS", DEFAULT_INT_BITS, minimum=8)


def native_max() -> int:
    return (1 << (native_bits() - 1)) - 1


def check_native(x: int, label: str = "value") -> int:
    """Return x unchanged, or raise NativeOverflowError if it does not fit."""
    hi = native_max()
    if x > hi or x < -hi - 1:
        raise NativeOverflowError(
            f"{label} exceeds the {native_bits()}-bit integer range (max {hi})."
        )
    return x


def require_int(x: object, label: str = "value") -> int:
    # bool is an int subclass, but True is not a number anyone means to factor
    if isinstance(x, bool) or not isinstance(x, int):
        raise DomainError(f"{label} must be an integer, got {typename(x)}.")
    return x


_INT_RE = re.compile(r"^[+-]?\d[\d_]*$")


def parse_int(token: str) -> int:
    """Parse a decimal integer token (underscores allowed) into a native int."""
    s = (token or "").strip()
    if not _INT_RE.match(s) or s.endswith("_"):
        raise UserInputError(f"Invalid integer: '{token}'")
    return check_native(int(s.replace("_", "")), label=f"'{token}'")


def clear_screen() -> None:
    """Clear the terminal before the REPL banner (scrollback included on POSIX)."""
    if os.name == "nt":
        os.system("cls")
        return
    sys.stdout.write("\033[3J\033[H\033[2J")
    sys.stdout.flush()


def typename(v: object) -> str:
    return type(v).__name__


def flatten_dotted(d: dict, prefix: str = "") -> dict[str, object]:
    out: dict[str, object] = {}
    for k, v in (d or {}).items():
        key = f"{prefix}.{k}" if prefix else str(k)
        if isinstance(v, dict):
            out.update(flatten_dotted(v, key))
        else:
            out[key] = v
    return out
