# tests/test_config_cli.py
"""
Tests for profiles, the workspace and the command-line entry point.

Every test gets its own workspace via PRIMEFACTORS_HOME.

Run: pytest -v
"""

from __future__ import annotations

import builtins
from pathlib import Path

import pytest

import primefactors.config as CONFIG
from primefactors.cli import _run_timed, main
from primefactors.commands import Session
from primefactors.fmt import strip_ansi
from primefactors.output_manager import OutputManager, resolve_output_path, validate_output_setting
from primefactors.runtime import APPLY, CFG, Runtime, _current_runtime
from primefactors.runtime import current as rt_current
from primefactors.sieve import PrimeCache
from primefactors.utility import UserInputError, native_max
from primefactors.workspace import ensure_workspace_seeded, seed_workspace, workspace_dir


@pytest.fixture(autouse=True)
def fresh_runtime():
    token = _current_runtime.set(Runtime())
    yield
    _current_runtime.reset(token)


@pytest.fixture(autouse=True)
def home(tmp_path, monkeypatch):
    monkeypatch.setenv("PRIMEFACTORS_HOME", str(tmp_path))
    return tmp_path


def _write_profile(home, name: str, text: str) -> None:
    ensure_workspace_seeded()
    (home / "profiles" / f"{name}.toml").write_text(text, encoding="utf-8")


def _feed(monkeypatch, lines):
    it = iter(lines)

    def fake_input(prompt=""):
        try:
            return next(it)
        except StopIteration:
            raise EOFError from None
    monkeypatch.setattr(builtins, "input", fake_input)


# ---------- workspace ---------------------------------------------------------


def test_workspace_follows_the_environment(home):
    assert workspace_dir() == home.resolve()


def test_seeding_copies_the_default_profile_once(home):
    root, copied = seed_workspace()
    assert root == home.resolve()
    assert copied["profiles"] == 1
    assert (home / "profiles" / "default.toml").is_file()
    _, again = seed_workspace()
    assert again["profiles"] == 0
    _, forced = seed_workspace(overwrite=True)
    assert forced["profiles"] == 1


def test_seeding_keeps_user_edits(home):
    _write_profile(home, "default", '[SIEVE]\nINITIAL_BOUND = 50\n')
    _, seeded, _ = ensure_workspace_seeded()
    assert not seeded
    assert CONFIG.load_settings("default").data == {"SIEVE": {"INITIAL_BOUND": 50}}


# ---------- profiles ----------------------------------------------------------


def test_default_profile_loads():
    ensure_workspace_seeded()
    s = CONFIG.load_settings("default")
    assert s.name == "default"
    assert s.description.startswith("64-bit integers")
    assert "_PROFILE_" not in s.data
    assert s.data["SIEVE"]["INITIAL_BOUND"] == 10_000
    assert s.data["LIMITS"]["INT_BITS"] == 64
    assert s.data["FORMATTING"]["MULTIPLY_SIGN"] == "×"
    APPLY(s)
    assert CFG("HISTORY.MAX_ITEMS") == 100
    assert CFG("NO.SUCH_KEY", "fallback") == "fallback"
    assert rt_current().profile_name == "default"


def test_missing_profile_is_a_user_error():
    ensure_workspace_seeded()
    with pytest.raises(UserInputError, match="not found"):
        CONFIG.load_settings("nope")


def test_broken_profile_reports_the_position(home):
    _write_profile(home, "broken", "[SIEVE\nINITIAL_BOUND = 1\n")
    with pytest.raises(UserInputError, match="line 1"):
        CONFIG.load_settings("broken")


def test_profile_sections_must_be_tables(home):
    _write_profile(home, "flat", "INT_BITS = 32\n")
    with pytest.raises(UserInputError, match="must be a \\[section\\]"):
        CONFIG.load_settings("flat")


def test_profile_values_are_type_checked(home):
    _write_profile(home, "typo", "[LIMITS]\nINT_BITS = \"64\"\n")
    with pytest.raises(UserInputError, match="LIMITS.INT_BITS must be int"):
        CONFIG.load_settings("typo")
    _write_profile(home, "flag", "[BEHAVIOUR]\nDEBUG = 1\n")
    with pytest.raises(UserInputError, match="BEHAVIOUR.DEBUG must be bool"):
        CONFIG.load_settings("flag")
    _write_profile(home, "extra", "[LIMITS]\nINT_BITS = 32\nFUTURE_KEY = \"kept\"\n")
    assert CONFIG.load_settings("extra").data["LIMITS"]["FUTURE_KEY"] == "kept"


def test_profile_listing(home):
    _write_profile(home, "small", '[_PROFILE_]\ndescription = "32-bit   ints"\n[LIMITS]\nINT_BITS = 32\n')
    _write_profile(home, "broken", "[oops\n")
    listing = dict(CONFIG.list_profiles_with_descriptions())
    assert listing["small"] == "32-bit ints"
    assert listing["broken"] == "(unreadable)"
    assert "default" in listing


def test_profile_changes_the_native_range(home):
    _write_profile(home, "small", "[LIMITS]\nINT_BITS = 32\n")
    APPLY(CONFIG.load_settings("small"))
    assert native_max() == 2**31 - 1


def test_debug_setting_from_profile(home):
    _write_profile(home, "loud", "[BEHAVIOUR]\nDEBUG = true\n")
    APPLY(CONFIG.load_settings("loud"))
    assert rt_current().debug is True


def test_current_profile_round_trip():
    assert CONFIG.read_current_profile() is None
    CONFIG.write_current_profile("small.toml")
    assert CONFIG.read_current_profile() == "small"


# ---------- output ------------------------------------------------------------


def test_output_settings():
    assert validate_output_setting(None) is None
    assert validate_output_setting("  ") is None
    assert validate_output_setting("run.log") == "run.log"
    with pytest.raises(ValueError):
        validate_output_setting("logs/")
    assert resolve_output_path("a/../b.log", "/ws") == Path("/ws/b.log")
    assert resolve_output_path("/var/x.log", "/ws") == Path("/var/x.log")
    assert resolve_output_path("~/x.log", "/ws") == Path.home() / "x.log"


def test_output_manager_appends_plain_text(home, capsys):
    with OutputManager(output_file="logs/run.log", quiet=True) as om:
        om.write("\x1b[32mTrue\x1b[0m")
        assert om.getvalue() == "\x1b[32mTrue\x1b[0m\n"
        assert om.path == home.resolve() / "logs" / "run.log"
    assert capsys.readouterr().out == ""
    assert (home / "logs" / "run.log").read_text(encoding="utf-8") == "True\n\n"


# ---------- command line ------------------------------------------------------


def test_one_shot_command(capsys):
    assert main(["factor", "28"]) == 0
    assert "2^2 × 7" in strip_ansi(capsys.readouterr().out)


def test_one_shot_user_error_exit_code(capsys):
    assert main(["factor", "0"]) == 2
    err = strip_ansi(capsys.readouterr().err)
    assert "Error:" in err and "less than 1" in err


def test_unknown_command_exit_code(capsys):
    assert main(["frobnicate"]) == 2
    assert "Unknown command (frobnicate)" in capsys.readouterr().err


def test_unknown_profile_exit_code(capsys):
    assert main(["--profile", "nope", "factor", "2"]) == 2
    assert "Unknown profile: 'nope'" in capsys.readouterr().err


def test_profile_option_applies_settings(home, capsys):
    _write_profile(home, "narrow", "[LIMITS]\nINT_BITS = 16\n")
    assert main(["--profile", "narrow", "factor", "40000"]) == 2
    assert "16-bit" in capsys.readouterr().err


def test_output_file_and_quiet(home, capsys):
    assert main(["--output", "out.log", "--quiet", "divisors", "28"]) == 0
    assert capsys.readouterr().out == ""
    assert (home / "out.log").read_text(encoding="utf-8").startswith("1 2 4 7 14 28\n")


def test_repl_session(home, monkeypatch, capsys):
    _feed(monkeypatch, ["factor 28", "bogus 1", "", "where", "profiles", "sigma 6", "history", "x"])
    assert main([]) == 0
    captured = capsys.readouterr()
    out, err = strip_ansi(captured.out), strip_ansi(captured.err)
    assert "2^2 × 7" in out
    assert "Unknown command (bogus)" in err
    assert f"Workspace: {home.resolve()}" in out
    assert "* default" in out
    assert "sigma 6 => 12" in out


def test_repl_banner_states_the_factoring_ceiling(home, monkeypatch, capsys):
    _write_profile(home, "capped", "[SIEVE]\nMAX_BOUND = 4096\n")
    _feed(monkeypatch, ["x"])
    assert main(["--profile", "capped"]) == 0
    out = strip_ansi(capsys.readouterr().out)
    assert f"Numbers up to {2**63 - 1};" in out
    assert "prime factor is <= 4096 (SIEVE.MAX_BOUND)" in out


def test_repl_switches_profiles(home, monkeypatch, capsys):
    _write_profile(home, "tiny", "[LIMITS]\nINT_BITS = 16\n")
    _feed(monkeypatch, ["profile", "profile missing", "profile tiny", "factor 40000"])
    assert main([]) == 0
    captured = capsys.readouterr()
    assert "Active profile: default" in captured.out
    assert "Applied profile: tiny" in captured.out
    assert "not found" in captured.err
    assert "16-bit" in captured.err
    assert CONFIG.read_current_profile() == "tiny"


def test_run_timed_traces_in_debug_mode(capsys):
    rt_current().debug = True
    session = Session(cache=PrimeCache(initial_bound=100))
    assert _run_timed(session, ["primes", "5000"])[-1] == 4999
    err = capsys.readouterr().err
    assert "[debug] primes:" in err
    assert "prime cache grew" in err


def test_run_timed_is_silent_by_default(capsys):
    session = Session(cache=PrimeCache(initial_bound=100))
    _run_timed(session, ["isPrime", "7"])
    assert capsys.readouterr().err == ""
