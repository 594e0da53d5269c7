# config.py
"""
Profiles: TOML files in <workspace>/profiles/<name>.toml.

A profile has one table per settings section ([SIEVE], [LIMITS], ...) and an
optional [_PROFILE_] table with a name and a one-line description. Known keys
are type-checked on load so that a typo shows up as a friendly error instead
of a silently ignored value.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

try:
    import tomllib as toml
except ModuleNotFoundError:
    import tomli as toml  # type: ignore

from primefactors.utility import UserInputError
from primefactors.workspace import ensure_workspace_seeded, workspace_dir

_META = "_PROFILE_"
_CURRENT = ".current"

# Expected types of the settings the program reads. Unknown keys are kept
# as they are; they may belong to a newer version.
_SCHEMA: dict[str, dict[str, type]] = {
    "SIEVE": {"INITIAL_BOUND": int, "GROWTH_FACTOR": int, "MAX_BOUND": int},
    "LIMITS": {"INT_BITS": int},
    "HISTORY": {"MAX_ITEMS": int, "DEFAULT_REPEAT": int},
    "FORMATTING": {"MULTIPLY_SIGN": str, "MAX_LIST_ITEMS": int},
    "OUTPUT": {"OUTPUT_FILE": str},
    "BEHAVIOUR": {"DEBUG": bool},
}


@dataclass
class Settings:
    """A loaded profile. as_dict() feeds runtime.apply()."""
    data: dict[str, Any]
    name: str
    description: str = "(no description)"
    _source: Path | None = field(default=None, repr=False)

    def as_dict(self) -> dict[str, Any]:
        return self.data


def _profiles_dir() -> Path:
    return workspace_dir() / "profiles"


def _profile_path(name: str) -> Path:
    return _profiles_dir() / f"{_strip_suffix(name)}.toml"


def _strip_suffix(name: str) -> str:
    nm = (name or "").strip()
    return nm[:-5] if nm.lower().endswith(".toml") else nm


def _describe_decode_error(e: Exception) -> str:
    # tomllib puts the position in the message; newer versions also expose it
    lineno, colno = getattr(e, "lineno", None), getattr(e, "colno", None)
    msg = getattr(e, "msg", None) or str(e)
    if lineno is None or f"line {lineno}" in msg:
        return msg
    return f"{msg} (at line {lineno}, column {colno})"


def _read_profile(path: Path) -> dict[str, Any]:
    try:
        with path.open("rb") as fh:
            return toml.load(fh)
    except toml.TOMLDecodeError as e:
        raise UserInputError(f"{path.name}: {_describe_decode_error(e)}") from None
    except OSError as e:
        raise UserInputError(f"cannot read {path}: {e.strerror or e}") from None


def _check_types(data: dict[str, Any], filename: str) -> None:
    for section, body in data.items():
        if not isinstance(body, dict):
            raise UserInputError(f"{filename}: '{section}' must be a [section], not a plain value.")
        for key, expected in _SCHEMA.get(section, {}).items():
            if key not in body:
                continue
            value = body[key]
            # bool is an int, but DEBUG = 1 or INT_BITS = true are mistakes
            ok = isinstance(value, expected) and (expected is bool or not isinstance(value, bool))
            if not ok:
                raise UserInputError(
                    f"{filename}: {section}.{key} must be {expected.__name__}, "
                    f"got {value!r}."
                )


def _to_settings(raw: dict[str, Any], path: Path) -> Settings:
    meta = raw.get(_META) or {}
    data = {k: v for k, v in raw.items() if k != _META}
    description = " ".join(str(meta.get("description") or "").split())
    return Settings(
        data=data,
        name=str(meta.get("name") or path.stem),
        description=description or "(no description)",
        _source=path,
    )


# --- Public API ------------------------------------------------------------


def list_profiles_with_descriptions() -> list[tuple[str, str]]:
    """[(name, description), ...] sorted by name; broken files are listed as '(unreadable)'."""
    ensure_workspace_seeded()
    out: list[tuple[str, str]] = []
    for path in _profiles_dir().glob("*.toml"):
        try:
            s = _to_settings(_read_profile(path), path)
        except UserInputError:
            out.append((path.stem, "(unreadable)"))
        else:
            out.append((s.name, s.description))
    return sorted(out, key=lambda t: t[0].lower())


def has_profile(name: str) -> bool:
    return bool(name) and _profile_path(name).is_file()


def load_settings(name: str | None) -> Settings:
    """Read, type-check and return the named profile ('default' if empty)."""
    path = _profile_path(name or "default")
    if not path.is_file():
        raise UserInputError(f"Profile '{path.stem}' not found at {path}")
    raw = _read_profile(path)
    settings = _to_settings(raw, path)
    _check_types(settings.data, path.name)
    return settings


# --- Last used profile -----------------------------------------------------


def read_current_profile() -> str | None:
    try:
        text = (_profiles_dir() / _CURRENT).read_text(encoding="utf-8")
    except OSError:
        return None
    return _strip_suffix(text) or None


def write_current_profile(name: str) -> None:
    pdir = _profiles_dir()
    pdir.mkdir(parents=True, exist_ok=True)
    (pdir / _CURRENT).write_text(_strip_suffix(name), encoding="utf-8")
