# src/primefactors/fmt.py
from __future__ import annotations

import re
from collections.abc import Iterable, Mapping

from colorama import Fore, Style

from primefactors.runtime import CFG, CFG_INT

# Single source of truth for ANSI stripping
ANSI_RE = re.compile(r"\x1b\[[0-9;]*m")


def strip_ansi(s: str | None) -> str:
    return ANSI_RE.sub("", s or "")


def format_factorization(fac: Mapping[int, int]) -> str:
    """
    Turn {p: e, ...} into a tidy string like: 2^3 × 3 × 5^2
    """
    sign = str(CFG("FORMATTING.MULTIPLY_SIGN", "×"))
    parts: list[str] = []
    for p, e in sorted(fac.items()):
        parts.append(f"{p}^{e}" if e > 1 else f"{p}")
    return f" {sign} ".join(parts) if parts else "1"


def format_int_sequence(seq: Iterable[int], *, limit: int | None = None, ellipsis: str = "…") -> str:
    """
    Space-separated integers. With a limit, at most `limit` items are shown
    and the rest is summarised as '… (+k more)'.
    """
    if limit is None:
        limit = CFG_INT("FORMATTING.MAX_LIST_ITEMS", -1)
    items = list(seq)
    if 0 <= limit < len(items):
        shown = items[:limit]
        rest = len(items) - len(shown)
        return " ".join(str(x) for x in shown) + f" {ellipsis} (+{rest} more)"
    return " ".join(str(x) for x in items)


def format_bool(value: bool) -> str:
    color = Fore.GREEN if value else Fore.RED
    return f"{color}{value}{Style.RESET_ALL}"


def format_duration(seconds: float) -> str:
    """Command timings: 850 µs, 12.4 ms, 3.215 s, 2:05.300 (m:ss.mmm)."""
    if seconds < 1e-3:
        return f"{seconds * 1e6:.0f} µs"
    if seconds < 1:
        return f"{seconds * 1e3:.1f} ms"
    if seconds < 60:
        return f"{seconds:.3f} s"
    minutes, rest = divmod(seconds, 60)
    return f"{int(minutes)}:{rest:06.3f}"
