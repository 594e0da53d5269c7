# src/primefactors/cli.py

"""
primefactors - primes, factorizations and divisors from the command line

usage: primefactors -h

    primefactors factor 45360          run one command and exit
    primefactors                       interactive session (x to exit)
"""

from __future__ import annotations

import argparse
import faulthandler
import os
import sys
import textwrap
import threading
import time
import traceback
from collections.abc import Callable

from colorama import Fore, Style
from colorama import init as colorama_init

import primefactors.config as CONFIG
from primefactors import __version__ as _ver
from primefactors.commands import Session, limits_note, show
from primefactors.fmt import format_duration
from primefactors.output_manager import OutputManager, validate_output_setting
from primefactors.runtime import APPLY, CFG, ensure_runtime_deps
from primefactors.runtime import current as _rt_current
from primefactors.utility import UserInputError, clear_screen, flatten_dotted, typename
from primefactors.workspace import ensure_workspace_seeded, workspace_dir

PROMPT = "\n> "
_EXIT_WORDS = frozenset({"x", "q", "quit", "exit"})

EXIT_OK = 0
EXIT_UNEXPECTED = 1
EXIT_USER_ERROR = 2
EXIT_INTERRUPTED = 130


# ---- diagnostics ----

def _debug(msg: str) -> None:
    if _rt_current().debug:
        print(f"[debug] {msg}", file=sys.stderr)


def _print_user_error(msg: str) -> None:
    """One red 'Error:' line on stderr, no traceback."""
    if not msg.startswith("Error:"):
        msg = f"{Fore.RED}Error:{Style.RESET_ALL} {msg}"
    print(msg, file=sys.stderr)


def _dump_exception(banner: str, exc_type, exc, tb) -> None:
    sys.stderr.write(f"\n[{banner}]\n")
    traceback.print_exception(exc_type, exc, tb, file=sys.stderr)
    sys.stderr.flush()


def _install_loud_error_handlers() -> None:
    """--debug: fault handler plus full tracebacks from every thread."""
    faulthandler.enable()
    sys.excepthook = lambda t, e, tb: _dump_exception("UNCAUGHT EXCEPTION", t, e, tb)
    threading.excepthook = lambda a: _dump_exception(
        "UNCAUGHT THREAD EXCEPTION", a.exc_type, a.exc_value, a.exc_traceback
    )


def _configure_text_streams() -> None:
    # '×' must survive pipes on consoles with a legacy code page
    if os.environ.get("PYTHONIOENCODING") or sys.stdout.isatty():
        return
    enc = (getattr(sys.stdout, "encoding", "") or "").lower().replace("-", "")
    if enc in ("utf8", "utf_8"):
        return
    for stream in (sys.stdout, sys.stderr):
        reconfigure = getattr(stream, "reconfigure", None)
        if reconfigure is not None:
            reconfigure(encoding="utf-8", errors="replace")


# ---- profiles ----

def _select_profile_name(explicit: str | None) -> str:
    """--profile, else the profile used last time, else 'default'."""
    if explicit:
        return explicit
    last = CONFIG.read_current_profile()
    return last if last and CONFIG.has_profile(last) else "default"


def _apply_profile(name: str, *, debug: bool = False) -> None:
    selected = CONFIG.load_settings(name)
    APPLY(selected)
    rt = _rt_current()
    rt.debug = rt.debug or debug  # --debug wins over the profile
    if not rt.debug:
        return
    _debug(f"active profile: {selected.name} ({selected._source})")
    flat = flatten_dotted(selected.as_dict())
    for key in sorted(flat, key=str.lower):
        print(f"        {key:.<40} {flat[key]!r} ({typename(flat[key])})", file=sys.stderr)


# ---- argparse ----

def _build_parser() -> argparse.ArgumentParser:
    epilog = textwrap.dedent("""\
    commands (case-insensitive):
      isPrime n, factor n, divisors n, properDivisors n, countDivisors n,
      perfection n, sigma n, primes n, multiply a b, divide a b, power a k,
      compare a b, times k <command>, repeat <command>, history, clear, help

    interactive only:
      profile [name]   show or switch the active profile
      profiles         list available profiles
      where            show the workspace path
      x                exit
    """)
    p = argparse.ArgumentParser(
        prog="primefactors",
        description="Primes, prime factorizations and divisors",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=epilog,
    )
    p.add_argument("command", nargs="*", help="a command to run once; omit for an interactive session")
    p.add_argument("--profile", default=None, help="profile name from <workspace>/profiles")
    p.add_argument("--output", default=None, help="also append results to this file")
    p.add_argument("--quiet", action="store_true", help="do not print results (only write --output)")
    p.add_argument("--debug", action="store_true", help="show timings, cache growth and tracebacks")
    p.add_argument("--version", action="version", version=f"%(prog)s {_ver}")
    return p


# ---- main ----

def main(argv=None) -> int:
    """Entry point: friendly errors become exit codes, tracebacks only with --debug."""
    argv = sys.argv[1:] if argv is None else list(argv)
    try:
        return _main_impl(argv)
    except UserInputError as e:
        _print_user_error(str(e))
        return EXIT_USER_ERROR
    except KeyboardInterrupt:
        print("Aborted by user.", file=sys.stderr)
        return EXIT_INTERRUPTED
    except Exception as e:
        if "--debug" in argv:
            raise
        print(f"Unexpected error: {e.__class__.__name__}: {e}", file=sys.stderr)
        print("Run with --debug for a full traceback.", file=sys.stderr)
        return EXIT_UNEXPECTED


def _main_impl(argv: list[str]) -> int:
    colorama_init(autoreset=True)
    _configure_text_streams()

    args = _build_parser().parse_args(argv)
    _rt_current().debug = args.debug
    if args.debug:
        _install_loud_error_handlers()
    if not ensure_runtime_deps(strict=True):
        return EXIT_UNEXPECTED

    ensure_workspace_seeded()
    if args.profile and not CONFIG.has_profile(args.profile):
        names = ", ".join(n for n, _ in CONFIG.list_profiles_with_descriptions())
        raise UserInputError(f"Unknown profile: '{args.profile}'. Available profiles: {names}")
    profile_name = _select_profile_name(args.profile)
    _apply_profile(profile_name, debug=args.debug)

    target = args.output if args.output is not None else CFG("OUTPUT.OUTPUT_FILE")
    try:
        validate_output_setting(target)
    except ValueError as e:
        print(f"Fatal error in --output: {e}", file=sys.stderr)
        return EXIT_UNEXPECTED

    session = Session()
    with OutputManager(output_file=target, quiet=args.quiet) as om:
        if args.command:
            om.write(show(_run_timed(session, args.command)))
        else:
            _Repl(session, om, profile_name, debug=args.debug).run()
    return EXIT_OK


def _run_timed(session: Session, args: list[str]):
    """Execute one command; in debug mode trace time and cache growth."""
    before = session.cache.bound
    t0 = time.perf_counter()
    try:
        return session.execute(args)
    finally:
        _debug(f"{args[0]}: {format_duration(time.perf_counter() - t0)}")
        after = session.cache.bound
        if after != before:
            _debug(f"prime cache grew: bound {before} -> {after} ({len(session.cache)} primes)")


# ---- interactive session ----

class _Repl:
    """Read-eval-print loop over a Session, plus a few profile/workspace words."""

    def __init__(self, session: Session, om: OutputManager, profile_name: str, *, debug: bool = False):
        self.session = session
        self.om = om
        self.profile_name = profile_name
        self.debug = debug
        self.builtins: dict[str, Callable[[list[str]], None]] = {
            "where": self._where,
            "profiles": self._profiles,
            "profile": self._profile,
        }

    def run(self) -> None:
        if not _rt_current().debug:
            clear_screen()
        print(f"{Fore.YELLOW}{Style.BRIGHT}primefactors v{_ver}{Style.RESET_ALL}")
        print("Type a command or 'x' to exit. 'help' lists the commands.")
        print(limits_note())
        while True:
            try:
                line = input(PROMPT).strip()
            except (EOFError, KeyboardInterrupt):
                print()
                return
            if line.lower() in _EXIT_WORDS:
                return
            if line:
                self.handle(line.split())

    def handle(self, parts: list[str]) -> None:
        builtin = self.builtins.get(parts[0].lower())
        if builtin is not None:
            builtin(parts[1:])
            return
        try:
            self.om.write(show(_run_timed(self.session, parts)))
        except UserInputError as e:
            _print_user_error(str(e))
        except Exception as e:
            if _rt_current().debug:
                traceback.print_exc()
            else:
                _print_user_error(f"{e.__class__.__name__}: {e}")

    def _where(self, args: list[str]) -> None:
        print(f"Workspace: {workspace_dir()}")

    def _profiles(self, args: list[str]) -> None:
        for name, desc in CONFIG.list_profiles_with_descriptions():
            marker = "*" if name == self.profile_name else " "
            print(f" {marker} {name:<20} {desc}")

    def _profile(self, args: list[str]) -> None:
        if not args:
            print(f"Active profile: {self.profile_name}")
            return
        try:
            _apply_profile(args[0], debug=self.debug)
        except UserInputError as e:
            _print_user_error(str(e))
            return
        CONFIG.write_current_profile(args[0])
        self.profile_name = args[0]
        print(f"Applied profile: {self.profile_name}")


if __name__ == "__main__":
    raise SystemExit(main())
