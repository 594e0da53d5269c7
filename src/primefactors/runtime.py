# runtime.py
"""
Per-context settings for the active profile.

The CLI loads a profile and APPLYs it; everything else reads settings with
CFG("SECTION.KEY", default) so that library use without any profile still
works from the defaults coded at each call site.
"""

from __future__ import annotations

from collections.abc import Mapping
from contextvars import ContextVar
from dataclasses import dataclass, field
from importlib.util import find_spec
from typing import Any

from colorama import Fore, Style

_MISSING = object()


@dataclass
class Runtime:
    profile_name: str = "default"
    settings: dict[str, Any] = field(default_factory=dict)
    debug: bool = False  # [debug] traces and full tracebacks

    def apply(self, settings: Any) -> None:
        """Replace the settings with a profile (Settings or plain mapping)."""
        data = settings.as_dict() if callable(getattr(settings, "as_dict", None)) else settings
        if not isinstance(data, Mapping):
            raise TypeError(f"cannot apply settings of type {type(settings).__name__}")
        self.settings = {k: dict(v) if isinstance(v, Mapping) else v for k, v in data.items()}
        self.profile_name = str(getattr(settings, "name", None) or "default")

        dbg = self.get("BEHAVIOUR.DEBUG")
        if isinstance(dbg, bool):
            self.debug = dbg

    def get(self, key: str, default: Any = None) -> Any:
        """Dotted lookup, e.g. 'SIEVE.INITIAL_BOUND'."""
        node: Any = self.settings
        for part in (key or "").split("."):
            if not isinstance(node, Mapping) or part not in node:
                return default
            node = node[part]
        return node if key else default

    def get_int(self, key: str, default: int, *, minimum: int | None = None) -> int:
        """
        Integer setting; falls back to `default` when the value is missing,
        not an integer or below `minimum`.
        """
        value = self.get(key, _MISSING)
        if isinstance(value, bool) or not isinstance(value, int):
            return default
        if minimum is not None and value < minimum:
            return default
        return value


# --- Context management ---

_current_runtime: ContextVar[Runtime | None] = ContextVar("primefactors_runtime", default=None)


def current() -> Runtime:
    rt = _current_runtime.get()
    if rt is None:
        rt = Runtime()
        _current_runtime.set(rt)
    return rt


def APPLY(settings: Any) -> None:
    current().apply(settings)


def CFG(key: str, default: Any = None) -> Any:
    return current().get(key, default)


def CFG_INT(key: str, default: int, *, minimum: int | None = None) -> int:
    return current().get_int(key, default, minimum=minimum)


# ---- Dependency check --------------------------------------------------------

def ensure_runtime_deps(strict: bool = True) -> bool:
    """
    Profiles are TOML; Python < 3.11 has no tomllib and needs tomli.
    find_spec() only looks, nothing gets imported here.
    """
    if find_spec("tomllib") is not None or find_spec("tomli") is not None:
        return True

    print(
        f"{Fore.RED}{Style.BRIGHT}\nMissing dependency:{Style.RESET_ALL} tomli"
        f"\nInstall with: {Fore.YELLOW}pip install tomli{Style.RESET_ALL}"
    )
    return not strict
