# src/primefactors/commands.py
"""
Command interpreter behind the REPL: a registry of named commands working on
integer arguments, plus a session that dispatches lines and keeps a history.
"""

from __future__ import annotations

import inspect
import sys
import time
from bisect import bisect_right
from collections import OrderedDict, deque
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from typing import Any, NamedTuple

from colorama import Style

from primefactors.divisors import (
    Perfection,
    classify_perfection,
    count_divisors,
    divisor_sum,
    divisors,
    proper_divisors,
)
from primefactors.factors import PrimeFactors
from primefactors.fmt import format_bool, format_int_sequence
from primefactors.primality import is_prime
from primefactors.runtime import CFG_INT
from primefactors.sieve import PrimeCache, default_cache, max_bound
from primefactors.utility import UserInputError, check_native, native_max, parse_int

DEFAULT_HISTORY_ITEMS = 100
DEFAULT_REPEAT = 100


class UnknownCommandError(UserInputError):
    pass


class HistoryItem(NamedTuple):
    args: tuple[str, ...]
    result: str
    timestamp: float

    @property
    def command(self) -> str:
        return self.args[0].lower() if self.args else ""

    def __str__(self) -> str:
        return " ".join(self.args) + " => " + self.result


@dataclass
class Command:
    name: str
    aliases: tuple[str, ...]
    func: Callable[[Session, list[str]], Any]
    usage: str
    description: str
    min_args: int


# ---------- Decorator (only tags the function; no side effects) ----------


def command(name: str, *aliases: str, usage: str = "", description: str = "", min_args: int = 0):
    def deco(fn):
        fn.__is_command__ = True
        fn.command_name = name
        fn.aliases = aliases
        fn.usage = usage or name
        fn.description = description
        fn.min_args = min_args
        return fn
    return deco


def _is_command(obj) -> bool:
    return callable(obj) and getattr(obj, "__is_command__", False)


def discover_commands(module=None) -> OrderedDict[str, Command]:
    """Map lower-cased command names and aliases to Command records."""
    mod = module or sys.modules[__name__]
    out: OrderedDict[str, Command] = OrderedDict()
    tagged = [o for _, o in inspect.getmembers(mod) if _is_command(o)]
    for fn in sorted(tagged, key=lambda f: f.command_name.lower()):
        cmd = Command(
            name=fn.command_name,
            aliases=tuple(fn.aliases),
            func=fn,
            usage=fn.usage,
            description=fn.description,
            min_args=fn.min_args,
        )
        for key in (cmd.name, *cmd.aliases):
            out[key.lower()] = cmd
    return out


# ---------- Display ---------------------------------------------------------


def show(obj: Any) -> str:
    """Convert a command result to display text."""
    if obj is None:
        return ""
    if isinstance(obj, bool):
        return format_bool(obj)
    if isinstance(obj, Perfection):
        return obj.label
    if isinstance(obj, PrimeFactors):
        return f"{obj}  {Style.DIM}{list(obj.exponents)}{Style.RESET_ALL}"
    if isinstance(obj, str):
        return obj
    if isinstance(obj, Iterable):
        items = list(obj)
        if all(isinstance(i, HistoryItem) for i in items):
            return "\n".join(str(i) for i in items)
        return format_int_sequence(items)
    return str(obj)


def limits_note() -> str:
    """The active numeric limits, for the banner and the command list."""
    return (f"Numbers up to {native_max()}; factoring works while every prime factor"
            f" is <= {max_bound()} (SIEVE.MAX_BOUND).")


# ---------- Session ---------------------------------------------------------


class Session:
    """
    One interpreter session: the prime cache the commands use and the
    history of commands run so far (bounded by HISTORY.MAX_ITEMS).
    """

    def __init__(self, cache: PrimeCache | None = None, history_limit: int | None = None):
        self.cache = cache if cache is not None else default_cache()
        if history_limit is None:
            history_limit = CFG_INT("HISTORY.MAX_ITEMS", DEFAULT_HISTORY_ITEMS, minimum=1)
        self.history: deque[HistoryItem] = deque(maxlen=max(history_limit, 1))
        self.commands = discover_commands()

    def command_names(self) -> list[str]:
        return sorted({c.name for c in self.commands.values()})

    def execute(self, args: list[str]) -> Any:
        """
        Run one tokenized command and record it. Errors raised by the command
        are recorded as its result and then re-raised.
        """
        if not args:
            return None
        cmd = self.commands.get(args[0].lower())
        if cmd is None:
            raise UnknownCommandError(
                f"Unknown command ({args[0]}). [{', '.join(self.command_names())}]"
            )
        try:
            if len(args) - 1 < cmd.min_args:
                raise UserInputError(f"Usage: {cmd.usage}")
            result = cmd.func(self, list(args[1:]))
            if inspect.isgenerator(result):
                result = list(result)
        except UserInputError as e:
            self._record(args, str(e))
            raise
        self._record(args, show(result))
        return result

    def invoke(self, line: str) -> str:
        """Run a command line and return its display text (or the error message)."""
        if not line or not line.strip():
            return ""
        try:
            return show(self.execute(line.split()))
        except UserInputError as e:
            return str(e)

    def _record(self, args: list[str], shown: str) -> None:
        self.history.append(HistoryItem(tuple(args), shown, time.time()))

    def clear_history(self) -> int:
        count = len(self.history)
        self.history.clear()
        return count


# ---------- Commands --------------------------------------------------------


def _ints(args: list[str], count: int) -> list[int]:
    return [parse_int(a) for a in args[:count]]


@command("isPrime", usage="isPrime <n>", description="Is n a prime number?", min_args=1)
def cmd_is_prime(session: Session, args: list[str]) -> bool:
    return is_prime(parse_int(args[0]), session.cache)


@command("factor", usage="factor <n>", description="Prime factorization of n (n >= 1).", min_args=1)
def cmd_factor(session: Session, args: list[str]) -> PrimeFactors:
    return PrimeFactors(parse_int(args[0]), session.cache)


@command("divisors", usage="divisors <n>", description="All divisors of n, in enumeration order.", min_args=1)
def cmd_divisors(session: Session, args: list[str]):
    return divisors(parse_int(args[0]), session.cache)


@command("properDivisors", usage="properDivisors <n>", description="Divisors of n other than n.", min_args=1)
def cmd_proper_divisors(session: Session, args: list[str]):
    return proper_divisors(parse_int(args[0]), session.cache)


@command("countDivisors", usage="countDivisors <n>", description="Number of divisors of n.", min_args=1)
def cmd_count_divisors(session: Session, args: list[str]) -> int:
    return count_divisors(parse_int(args[0]), session.cache)


@command("perfection", usage="perfection <n>", description="deficient, perfect or abundant.", min_args=1)
def cmd_perfection(session: Session, args: list[str]) -> Perfection:
    return classify_perfection(parse_int(args[0]), session.cache)


@command("sigma", usage="sigma <n>", description="Sum of all divisors of n.", min_args=1)
def cmd_sigma(session: Session, args: list[str]) -> int:
    return check_native(divisor_sum(parse_int(args[0]), session.cache), label="sigma")


@command("primes", usage="primes <n>", description="All primes up to n.", min_args=1)
def cmd_primes(session: Session, args: list[str]) -> list[int]:
    n = parse_int(args[0])
    if n < 2:
        return []
    session.cache.ensure_bound(n)
    primes = session.cache.snapshot()
    return list(primes[:bisect_right(primes, n)])


@command("multiply", usage="multiply <a> <b>", description="a × b, computed on factorizations.", min_args=2)
def cmd_multiply(session: Session, args: list[str]) -> int:
    a, b = (PrimeFactors(x, session.cache) for x in _ints(args, 2))
    return (a * b).value()


@command("divide", usage="divide <a> <b>", description="a / b when b divides a exactly.", min_args=2)
def cmd_divide(session: Session, args: list[str]) -> int:
    a, b = (PrimeFactors(x, session.cache) for x in _ints(args, 2))
    return (a / b).value()


@command("power", usage="power <a> <k>", description="a raised to the k-th power.", min_args=2)
def cmd_power(session: Session, args: list[str]) -> int:
    a, k = _ints(args, 2)
    return (PrimeFactors(a, session.cache) ** k).value()


@command("compare", usage="compare <a> <b>", description="Order of a and b by factorization.", min_args=2)
def cmd_compare(session: Session, args: list[str]) -> str:
    a, b = _ints(args, 2)
    c = PrimeFactors(a, session.cache).compare(PrimeFactors(b, session.cache))
    sym = "<" if c < 0 else (">" if c > 0 else "=")
    return f"{a} {sym} {b}"


@command("times", usage="times <k> <command...>", description="Run a command k times; show the last result.",
         min_args=2)
def cmd_times(session: Session, args: list[str]) -> Any:
    k = parse_int(args[0])
    if k < 0:
        raise UserInputError(f"times: repeat count must be >= 0 (got {k}).")
    return _repeat(session, k, args[1:])


@command("repeat", usage="repeat <command...>", description="Run a command HISTORY.DEFAULT_REPEAT times.",
         min_args=1)
def cmd_repeat(session: Session, args: list[str]) -> Any:
    return _repeat(session, CFG_INT("HISTORY.DEFAULT_REPEAT", DEFAULT_REPEAT, minimum=0), args)


def _repeat(session: Session, k: int, args: list[str]) -> Any:
    last = None
    for _ in range(k):
        last = session.execute(args)
    return last


@command("history", usage="history", description="Commands run in this session.")
def cmd_history(session: Session, args: list[str]) -> list[HistoryItem]:
    return [item for item in session.history if item.command != "history"]


@command("clear", usage="clear", description="Forget the session history.")
def cmd_clear(session: Session, args: list[str]) -> str:
    return f"Cleared {session.clear_history()} history items."


@command("help", "h", usage="help", description="List the commands.")
def cmd_help(session: Session, args: list[str]) -> str:
    seen: dict[str, Command] = {}
    for cmd in session.commands.values():
        seen.setdefault(cmd.name, cmd)
    width = max(len(c.usage) for c in seen.values())
    lines = [f"  {c.usage:<{width}}  {c.description}" for c in sorted(seen.values(), key=lambda c: c.name.lower())]
    lines.append("")
    lines.append(limits_note())
    return "\n".join(lines)
