"""Filesystem helpers: atomic installs, path collapsing, removal, symlinks."""

from __future__ import annotations

import contextlib
import logging
import os
import re
import tempfile
from pathlib import Path

logger = logging.getLogger(__name__)

# ``C:/`` or ``C:\`` at the start of a path written on Windows.
_DRIVE_PATH = re.compile(r"^[A-Za-z]:[/\\]")


# ---------------------------------------------------------------------------
# Atomic writes
# ---------------------------------------------------------------------------


def write_atomic(path: Path, content: str) -> None:
    """Install *content* at *path* through a temporary file and ``os.replace``.

    A reader never observes a half-written file: it sees either the old
    contents or the new ones.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=path.parent)
    try:
        with os.fdopen(fd, "w", encoding="utf-8", newline="\n") as fh:
            fh.write(content)
            fh.flush()
            os.fsync(fh.fileno())
        os.replace(tmp_name, path)
    except BaseException:
        with contextlib.suppress(OSError):
            os.unlink(tmp_name)
        raise


def write_if_changed(path: Path, content: str) -> bool:
    """Atomically install *content* at *path* unless it already holds it.

    Leaving an identical file untouched keeps its timestamp, so the build
    executor does not see a spurious change.  Returns True when written.
    """
    try:
        current = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError):
        current = None
    if current == content:
        return False
    write_atomic(path, content)
    logger.debug("Wrote %s", path)
    return True


# ---------------------------------------------------------------------------
# Paths
# ---------------------------------------------------------------------------


def is_full_path(path: str) -> bool:
    """Return True for POSIX absolute paths and Windows drive paths."""
    return path.startswith("/") or bool(_DRIVE_PATH.match(path))


def collapse_full_path(path: str, base: Path) -> str:
    """Return *path* as a normalized absolute path, relative ones taken from *base*."""
    if is_full_path(path):
        if _DRIVE_PATH.match(path):
            return path.replace("\\", "/")
        return os.path.normpath(path)
    return os.path.normpath(os.path.join(str(base), path))


def relative_to_dir(path: Path, directory: Path) -> str | None:
    """Return *path* relative to *directory* in POSIX form, or None if outside."""
    try:
        return path.relative_to(directory).as_posix()
    except ValueError:
        return None


# ---------------------------------------------------------------------------
# Removal and symlinks
# ---------------------------------------------------------------------------


def remove_file(path: Path) -> bool:
    """Remove *path* if it exists.  Returns True when a file was removed."""
    try:
        path.unlink()
    except FileNotFoundError:
        return False
    return True


def replace_symlink(link_path: Path, points_to: str) -> None:
    """Point *link_path* at *points_to*, replacing any existing file there."""
    remove_file(link_path)
    link_path.symlink_to(points_to)
