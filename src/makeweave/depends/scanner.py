"""Transitive ``#include`` dependency scanner.

A lightweight textual scan, not a preprocessor: conditionals and macros
are ignored, so every include line counts.  Includes that cannot be found
on the search path are dropped without error because generated headers
may not exist yet; the next scan picks them up.
"""

from __future__ import annotations

import logging
import os
import re
from collections import deque
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING

from makeweave.depends.record import DependencyRecord, write_record
from makeweave.infrastructure.fileio import collapse_full_path, is_full_path

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

logger = logging.getLogger(__name__)

_INCLUDE_LINE = re.compile(r"""^[ \t]*#[ \t]*include[ \t]*[<"]([^">]+)[">]""")

# Languages the include scanner understands.
SCAN_LANGUAGES: frozenset[str] = frozenset({"C", "CXX"})


class ScanError(Exception):
    """Raised when asked to scan a language the scanner does not support."""


@dataclass
class IncludeWalk:
    """Outcome of one breadth-first include traversal."""

    source: str
    scanned: list[str] = field(default_factory=list)  # in visiting order
    dependencies: set[str] = field(default_factory=set)
    unresolved: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class ScanRequest:
    """Everything needed to scan one object's source."""

    language: str
    object_path: str
    source_path: str
    include_dirs: tuple[str, ...] = ()


# ---------------------------------------------------------------------------
# Traversal
# ---------------------------------------------------------------------------


def _resolve(name: str, include_dirs: Sequence[str]) -> str | None:
    if is_full_path(name):
        return os.path.normpath(name)
    for include_dir in include_dirs:
        candidate = os.path.join(include_dir, name)
        if os.path.isfile(candidate):
            return os.path.normpath(candidate)
    return None


def _include_names(path: str) -> list[str] | None:
    """Return the include names in *path*, or None when it cannot be read."""
    try:
        with open(path, encoding="utf-8", errors="replace") as fh:
            return [m.group(1) for line in fh if (m := _INCLUDE_LINE.match(line))]
    except OSError as exc:
        logger.debug("Cannot read %s: %s", path, exc)
        return None


def walk_includes(source_path: str, include_dirs: Sequence[str]) -> IncludeWalk:
    """Breadth-first traversal of the include graph rooted at *source_path*.

    *source_path* must be absolute.  ``encountered`` stops a name from being
    queued twice and ``scanned`` stops an absolute file from being read
    twice, so include cycles terminate.
    """
    walk = IncludeWalk(source=os.path.normpath(source_path))
    encountered: set[str] = {source_path}
    scanned: set[str] = set()
    unscanned: deque[str] = deque([source_path])

    while unscanned:
        name = unscanned.popleft()
        full = _resolve(name, include_dirs)
        if full is None:
            walk.unresolved.append(name)
            logger.debug("Include '%s' not found on the search path", name)
            continue
        if full in scanned:
            continue
        scanned.add(full)

        includes = _include_names(full)
        if includes is None:
            continue
        walk.scanned.append(full)
        if full != walk.source:
            walk.dependencies.add(full)
        for include in includes:
            if include not in encountered:
                encountered.add(include)
                unscanned.append(include)

    return walk


def scan_dependencies(
    object_path: str, source_path: str, include_dirs: Sequence[str]
) -> DependencyRecord:
    """Scan *source_path* and return the dependency record of *object_path*.

    Every resolvable, readable file transitively included by the source is
    a dependee; the source itself is not.  Dependees are absolute and
    sorted, so identical inputs give an identical record.
    """
    walk = walk_includes(source_path, include_dirs)
    return DependencyRecord(owner=object_path, dependees=tuple(sorted(walk.dependencies)))


# ---------------------------------------------------------------------------
# Scan subcommand entry points
# ---------------------------------------------------------------------------


def run_scan(request: ScanRequest, directory: Path) -> DependencyRecord:
    """Scan one request and install its record below *directory*.

    Relative source and include paths are taken from *directory*, the
    binary directory the build executor runs the scan in.

    Raises :class:`ScanError` for languages outside :data:`SCAN_LANGUAGES`.
    """
    if request.language not in SCAN_LANGUAGES:
        msg = f"Cannot scan dependencies for language '{request.language}'"
        raise ScanError(msg)

    source = collapse_full_path(request.source_path, directory)
    include_dirs = [collapse_full_path(inc, directory) for inc in request.include_dirs]
    record = scan_dependencies(request.object_path, source, include_dirs)
    if write_record(record, directory):
        logger.info("Updated dependencies of %s", request.object_path)
    return record


def scan_many(
    requests: Iterable[ScanRequest], directory: Path, workers: int = 1
) -> list[DependencyRecord]:
    """Run independent scans, in parallel when *workers* > 1.

    Each request reads its own sources and writes its own record, so no
    coordination is needed between workers.  Records are returned in
    request order.  The first failure is re-raised after all scans finish.
    """
    pending = list(requests)
    if workers <= 1 or len(pending) <= 1:
        return [run_scan(request, directory) for request in pending]

    results: dict[int, DependencyRecord] = {}
    first_error: BaseException | None = None
    with ThreadPoolExecutor(max_workers=workers) as pool:
        futures = {
            pool.submit(run_scan, request, directory): idx
            for idx, request in enumerate(pending)
        }
        for future in as_completed(futures):
            try:
                results[futures[future]] = future.result()
            except (ScanError, OSError) as exc:
                logger.warning("Dependency scan failed: %s", exc)
                if first_error is None:
                    first_error = exc
    if first_error is not None:
        raise first_error
    return [results[idx] for idx in range(len(pending))]
