# output_manager.py
"""Results go to the screen and, optionally, to an append-only log file."""

from __future__ import annotations

import os
from pathlib import Path

from primefactors.fmt import strip_ansi
from primefactors.workspace import workspace_dir


def resolve_output_path(path: str, workspace_root: str | Path) -> Path:
    """'~' is expanded; relative paths land inside the workspace."""
    if not path:
        raise ValueError("Output path is empty")
    p = Path(path).expanduser()
    if not p.is_absolute():
        p = Path(workspace_root) / p
    return Path(os.path.normpath(p))


def validate_output_setting(output_file: str | None) -> str | None:
    """None/'' means screen only. Directories are rejected: results go to one log file."""
    s = str(output_file or "").strip()
    if not s:
        return None
    if s.endswith(("/", "\\")) or s in (".", ".."):
        raise ValueError(f"'{output_file}' is a directory; give a file name such as 'session.log'.")
    return s


class OutputManager:
    """
    Print results and mirror them, without colour codes, into a log file.

        with OutputManager(output_file="logs/session.log") as om:
            om.write("factor 28 => 2^2 × 7")

    quiet=True suppresses the screen copy. Closing appends a blank line so
    that successive runs stay apart in the log.
    """

    def __init__(self, output_file: str | None = None, quiet: bool = False):
        self.quiet = quiet
        self._buffer: list[str] = []
        self._path: Path | None = None

        target = validate_output_setting(output_file)
        if target:
            self._path = resolve_output_path(target, workspace_dir())
            self._path.parent.mkdir(parents=True, exist_ok=True)

    @property
    def path(self) -> Path | None:
        return self._path

    def write(self, *args, sep: str = " ", end: str = "\n") -> None:
        text = sep.join(str(a) for a in args) + end
        self._buffer.append(text)
        if not self.quiet:
            print(text, end="")
        if self._path is not None:
            with self._path.open("a", encoding="utf-8") as fh:
                fh.write(strip_ansi(text))

    def getvalue(self) -> str:
        """Everything written so far, colour codes included."""
        return "".join(self._buffer)

    def close(self) -> None:
        if self._path is not None and self._buffer:
            with self._path.open("a", encoding="utf-8") as fh:
                fh.write("\n")
        self._buffer.clear()

    def __enter__(self) -> OutputManager:
        return self

    def __exit__(self, *exc) -> None:
        self.close()
