"""Helpers shared by the commit resolver services.

Logging follows the run log convention: every message is printed to stdout
and, when a log file has been configured, appended to it as well.  Temporary
files are handed out through ``temp_path()`` so the file is removed on every
exit path of the ``with`` block.
"""

from __future__ import annotations

import os
import tempfile
import traceback
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

# === Logging ===
_log_path: Path | None = None


def configure_log(path: str | os.PathLike | None) -> Path | None:
    """Set (or clear, with ``None``) the file that ``write_log`` appends to."""
    global _log_path
    if path is None:
        _log_path = None
        return None
    _log_path = Path(path).expanduser()
    _log_path.parent.mkdir(parents=True, exist_ok=True)
    return _log_path


def write_log(message) -> None:
    """Print a message and append it to the configured log file."""
    if message is None:
        return
    print(message, flush=True)
    if _log_path is not None:
        with open(_log_path, "a", encoding="utf-8") as f:
            f.write(str(message) + "\n")


# === Temp files ===

def new_temp_file(suffix: str = "") -> Path:
    """Create an empty temp file and return its path."""
    fd, name = tempfile.mkstemp(prefix="commitresolver_", suffix=suffix)
    os.close(fd)
    return Path(name)


def remove_file(path: Path, quiet: bool = False) -> bool:
    """Delete ``path``, reporting failures unless ``quiet`` is set.

    Returns True when the file is gone afterwards.  A failed deletion never
    raises: the temp directory is cleared by the environment eventually.
    """
    try:
        Path(path).unlink(missing_ok=True)
        return True
    except OSError:
        if not quiet:
            write_log(f"[!] ERROR: Failed to delete file {path}")
            write_log(traceback.format_exc().rstrip())
        return False


@contextmanager
def temp_path(suffix: str = "", quiet: bool = False) -> Iterator[Path]:
    """Yield a fresh temp file path and remove the file when the block exits."""
    path = new_temp_file(suffix)
    try:
        yield path
    finally:
        remove_file(path, quiet=quiet)
