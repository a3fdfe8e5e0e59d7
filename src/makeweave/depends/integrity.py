"""Dependency-record integrity checker.

Validates a persisted record against the filesystem before the build
trusts it.  When a dependee has disappeared (a header was deleted or
renamed) the depender is deleted so the build recreates it, and the
record is reset to empty so the next build rescans.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING

from makeweave.depends.record import (
    record_file_name,
    unescape_make_path,
    write_empty_record,
)
from makeweave.infrastructure.fileio import collapse_full_path, remove_file

if TYPE_CHECKING:
    from collections.abc import Iterable

logger = logging.getLogger(__name__)


@dataclass
class IntegrityResult:
    """Outcome of checking one artifact's record."""

    artifact: str
    regenerate: bool = False
    missing: list[str] = field(default_factory=list)  # dependees not found
    removed: list[str] = field(default_factory=list)  # dependers deleted
    warnings: list[str] = field(default_factory=list)


def parse_record_line(line: str) -> tuple[str, str] | None:
    """Split a record line into ``(depender, dependee)``.

    Returns None for blank lines, comments and lines without a separator.
    The separator search starts at offset 2 so a Windows drive letter
    (``C:/...``) is not taken for it.
    """
    line = line.lstrip()
    if not line or line.startswith("#"):
        return None
    if len(line) < 2:
        return None
    pos = line.find(":", 2)
    if pos < 0:
        return None
    depender = unescape_make_path(line[:pos].strip())
    dependee = unescape_make_path(line[pos + 1 :].strip())
    if not depender or not dependee:
        return None
    return depender, dependee


def check_dependencies(directory: Path, artifact: str) -> IntegrityResult:
    """Check the record of *artifact* (relative to *directory*).

    Never raises for missing files: an unreadable record, or any recorded
    dependee that no longer exists, resets the record to empty.
    """
    result = IntegrityResult(artifact=artifact)
    record_path = directory / record_file_name(artifact)
    try:
        with record_path.open(encoding="utf-8", errors="replace") as fh:
            lines = fh.readlines()
    except OSError:
        logger.debug("No readable dependency record for %s", artifact)
        result.regenerate = True
        lines = []

    for line in lines:
        pair = parse_record_line(line)
        if pair is None:
            continue
        depender, dependee = pair
        dependee_path = collapse_full_path(dependee, directory)
        if os.path.exists(dependee_path):
            continue

        result.regenerate = True
        if dependee not in result.missing:
            result.missing.append(dependee)
        depender_path = Path(collapse_full_path(depender, directory))
        try:
            if remove_file(depender_path):
                result.removed.append(depender)
                logger.info("Removed %s: dependency %s is gone", depender, dependee)
        except OSError as exc:
            result.warnings.append(f"Cannot remove {depender}: {exc}")
            logger.warning("Cannot remove %s: %s", depender, exc)

    if result.regenerate:
        write_empty_record(directory, artifact)
    return result


def prepare_record(directory: Path, artifact: str) -> IntegrityResult:
    """Make sure *artifact* has a usable record before rules include it.

    An existing record is checked; a missing one is created empty.
    """
    if (directory / record_file_name(artifact)).exists():
        return check_dependencies(directory, artifact)
    write_empty_record(directory, artifact)
    return IntegrityResult(artifact=artifact, regenerate=True)


def check_listed(directory: Path, artifacts: Iterable[str]) -> list[IntegrityResult]:
    """Check every artifact in *artifacts* relative to *directory*."""
    return [check_dependencies(directory, artifact) for artifact in artifacts]
