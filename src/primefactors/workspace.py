# workspace.py
"""
The user workspace holds editable profiles (and the log file, if one is
configured with a relative path). The packaged profiles are copied into it on
first run; files the user already has are never replaced unless asked to.
"""

from __future__ import annotations

import os
from importlib.resources import files as pkg_files
from pathlib import Path

SUBDIRS = ("profiles",)
_ENV = "PRIMEFACTORS_HOME"


def workspace_dir() -> Path:
    env = os.environ.get(_ENV)
    base = Path(env).expanduser() if env else Path.home() / "Documents" / "Primefactors"
    return base.resolve()


def _packaged_files(sub: str):
    """Packaged *.toml resources of one workspace subdirectory."""
    ref = pkg_files("primefactors") / sub
    if not ref.is_dir():
        return []
    # editor backups and hidden files are not samples
    return [
        r for r in ref.iterdir()
        if r.is_file() and r.name.endswith(".toml") and not r.name.startswith(".")
    ]


def seed_workspace(*, overwrite: bool = False) -> tuple[Path, dict[str, int]]:
    """
    Copy the packaged samples into the workspace.

    overwrite=False copies only missing files, overwrite=True replaces them.
    Returns (workspace_path, {subdir: files_copied}).
    """
    root = workspace_dir()
    copied: dict[str, int] = {}
    for sub in SUBDIRS:
        dest = root / sub
        dest.mkdir(parents=True, exist_ok=True)
        count = 0
        for res in _packaged_files(sub):
            target = dest / res.name
            if overwrite or not target.exists():
                target.write_bytes(res.read_bytes())
                count += 1
        copied[sub] = count
    return root, copied


def ensure_workspace_seeded() -> tuple[Path, bool, dict[str, int]]:
    """Seed missing files; returns (root, anything_copied, per-subdir counts)."""
    root, copied = seed_workspace(overwrite=False)
    return root, any(copied.values()), copied
