"""Build-system check: is a directory's generated makefile still current?

Run by the ``check_build_system`` rule before every build.  Reads the
build-state file written at generation time, compares input and output
timestamps, and runs the dependency-integrity check on every registered
artifact.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from makeweave.depends.integrity import IntegrityResult, check_listed

logger = logging.getLogger(__name__)


@dataclass
class CheckResult:
    """Outcome of checking one directory's build system."""

    state_file: Path
    project_file: Path | None = None
    binary_dir: Path | None = None
    needs_regeneration: bool = False
    reasons: list[str] = field(default_factory=list)
    integrity: list[IntegrityResult] = field(default_factory=list)

    @property
    def records_reset(self) -> int:
        return sum(1 for item in self.integrity if item.regenerate)


def read_build_state(state_file: Path) -> dict[str, Any]:
    """Load the build-state mapping.

    Raises ``ValueError`` when the file is not a YAML mapping and ``OSError``
    when it cannot be read.
    """
    with state_file.open("r", encoding="utf-8") as fh:
        try:
            data = yaml.safe_load(fh)
        except yaml.YAMLError as exc:
            msg = f"{state_file}: invalid YAML: {exc}"
            raise ValueError(msg) from exc
    if not isinstance(data, dict):
        msg = f"{state_file}: build state must be a YAML mapping"
        raise ValueError(msg)
    return data


def _paths(data: dict[str, Any], key: str) -> list[Path]:
    return [Path(str(item)) for item in data.get(key) or []]


def _mtime(path: Path) -> float | None:
    try:
        return path.stat().st_mtime
    except OSError:
        return None


def check_build_system(state_file: Path) -> CheckResult:
    """Decide whether *state_file*'s directory must be regenerated.

    Regeneration is needed when an output is missing, an input is missing,
    or an input is newer than the last generation pass.  The integrity check runs
    either way, relative to the state file's directory.
    """
    data = read_build_state(state_file)
    result = CheckResult(state_file=state_file)
    if data.get("project_file"):
        result.project_file = Path(str(data["project_file"]))
    if data.get("binary_dir"):
        result.binary_dir = Path(str(data["binary_dir"]))

    outputs = _paths(data, "makefile_outputs")
    if not outputs:
        result.reasons.append("no outputs recorded")
    for output in outputs:
        if _mtime(output) is None:
            result.reasons.append(f"missing output {output}")

    # Every generation pass touches the state file, so its timestamp is that
    # of the last pass even when no output changed.
    stamp = _mtime(state_file) or 0.0
    for source in _paths(data, "makefile_depends"):
        mtime = _mtime(source)
        if mtime is None:
            result.reasons.append(f"missing input {source}")
        elif mtime > stamp:
            result.reasons.append(f"{source} is newer than the generated makefile")

    result.needs_regeneration = bool(result.reasons)
    for reason in result.reasons:
        logger.info("Regeneration needed: %s", reason)

    artifacts = [str(item) for item in data.get("depends_check") or []]
    result.integrity = check_listed(state_file.parent, artifacts)
    return result
