"""Persisted dependency records.

A record for artifact ``X`` is two files next to ``X``:

- ``X.depends``: the mark file.  Its presence and timestamp say the
  record is current.
- ``X.depends.make``: the make-readable record, ``X: dependee`` lines for
  the artifact and ``X.depends: dependee`` lines for the mark.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from makeweave.infrastructure.fileio import remove_file, write_atomic, write_if_changed

if TYPE_CHECKING:
    from pathlib import Path

MARK_SUFFIX = ".depends"
RECORD_SUFFIX = ".depends.make"


def mark_file_name(artifact: str) -> str:
    return f"{artifact}{MARK_SUFFIX}"


def record_file_name(artifact: str) -> str:
    return f"{artifact}{RECORD_SUFFIX}"


def escape_make_path(path: str) -> str:
    return path.replace(" ", "\\ ")


def unescape_make_path(path: str) -> str:
    return path.replace("\\ ", " ")


@dataclass(frozen=True)
class DependencyRecord:
    """The dependees of one derived artifact, sorted for reproducibility."""

    owner: str
    dependees: tuple[str, ...] = ()

    @property
    def mark_file(self) -> str:
        return mark_file_name(self.owner)

    @property
    def record_file(self) -> str:
        return record_file_name(self.owner)

    def render(self) -> str:
        owner = escape_make_path(self.owner)
        mark = escape_make_path(self.mark_file)
        lines = [f"# Dependencies for {owner}"]
        lines.extend(f"{owner}: {escape_make_path(dep)}" for dep in self.dependees)
        lines.append("")
        lines.append(f"# Dependencies for {mark}")
        lines.extend(f"{mark}: {escape_make_path(dep)}" for dep in self.dependees)
        return "\n".join(lines) + "\n"


def render_empty_record(artifact: str) -> str:
    return (
        f"# Empty dependencies file for {artifact}.\n"
        "# This may be replaced when dependencies are built.\n"
    )


def write_record(record: DependencyRecord, directory: Path) -> bool:
    """Install *record* below *directory* and refresh its mark file.

    The record is only rewritten when its content changed; the mark file is
    always rewritten so its timestamp reflects this scan.  Returns True when
    the record file changed.
    """
    changed = write_if_changed(directory / record.record_file, record.render())
    write_atomic(directory / record.mark_file, f"Dependencies updated for {record.owner}\n")
    return changed


def write_empty_record(directory: Path, artifact: str) -> None:
    """Reset *artifact* to the dependency-less state.

    Removes the mark file so the next build rescans, and leaves a record
    holding only header comments.
    """
    remove_file(directory / mark_file_name(artifact))
    write_if_changed(directory / record_file_name(artifact), render_empty_record(artifact))
