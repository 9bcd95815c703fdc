"""Resolution of paths relative to the running program's directory."""

from __future__ import annotations

import os
import sys
from pathlib import Path


def _program_dir() -> Path:
    program = sys.argv[0] if sys.argv else ""
    if not program or program == "-c":
        return Path.cwd()
    return Path(program).resolve().parent


def full_path(relative_path: str | os.PathLike[str]) -> str:
    """Prefix ``relative_path`` with the directory of the running program."""
    return str(_program_dir()) + os.sep + os.fspath(relative_path)