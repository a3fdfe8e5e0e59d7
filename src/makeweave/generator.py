"""Generation orchestrator: project model in, rule files and records out.

For each directory: build the target graph, prepare each artifact's
dependency record, write the object and target rule files, then the main
rule file and the build-state file.  Failures are collected per unit so a
broken target never stops the rest of the pass.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from typing import TYPE_CHECKING

from makeweave.depends.integrity import prepare_record
from makeweave.depends.scanner import SCAN_LANGUAGES, ScanError, ScanRequest, scan_many
from makeweave.graph.builder import TargetGraphBuilder
from makeweave.graph.context import GenerationContext
from makeweave.model.definitions import ConfigurationError
from makeweave.rules.writer import RuleFileWriter

if TYPE_CHECKING:
    from makeweave.graph.builder import ObjectUnit, TargetUnit
    from makeweave.model.targets import Directory, Project

logger = logging.getLogger(__name__)


@dataclass
class GenerationResult:
    """Summary of a generation pass."""

    directories: int = 0
    targets: int = 0
    objects: int = 0
    files_written: int = 0
    files_unchanged: int = 0
    records_reset: int = 0
    remote_targets: int = 0
    scanned: int = 0
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors

    def count_file(self, changed: bool) -> None:
        if changed:
            self.files_written += 1
        else:
            self.files_unchanged += 1


# ---------------------------------------------------------------------------
# Per-unit steps
# ---------------------------------------------------------------------------


def _prepare(context: GenerationContext, result: GenerationResult, artifact: str) -> None:
    outcome = prepare_record(context.binary_dir, artifact)
    if outcome.regenerate:
        result.records_reset += 1
    result.warnings.extend(outcome.warnings)


def _generate_object(
    context: GenerationContext,
    writer: RuleFileWriter,
    unit: TargetUnit,
    obj: ObjectUnit,
    result: GenerationResult,
) -> bool:
    """Write *obj*'s rule file; return False when it could not be written."""
    context.register_check_depend(obj.object_path)
    try:
        (context.binary_dir / obj.object_path).parent.mkdir(parents=True, exist_ok=True)
        _prepare(context, result, obj.object_path)
        result.count_file(writer.write_object_rule_file(unit, obj))
    except (ConfigurationError, OSError) as exc:
        context.record_error(f"object '{obj.object_path}'", exc)
        return False
    result.objects += 1
    return True


def _generate_target(
    context: GenerationContext,
    writer: RuleFileWriter,
    unit: TargetUnit,
    result: GenerationResult,
) -> TargetUnit | None:
    """Write *unit*'s rule files and return the unit as written.

    Objects whose rule file could not be written are left out of the
    returned unit, so nothing includes a file that does not exist.  Returns
    None when the target rule file itself could not be written.
    """
    try:
        (context.binary_dir / unit.target_dir).mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        context.record_error(f"target '{unit.name}'", exc)
        return None

    written = [obj for obj in unit.objects if _generate_object(context, writer, unit, obj, result)]
    if len(written) != len(unit.objects):
        unit = replace(unit, objects=tuple(written))

    try:
        _prepare(context, result, unit.record_base)
        result.count_file(writer.write_target_rule_file(unit))
    except (ConfigurationError, OSError) as exc:
        context.record_error(f"target '{unit.name}'", exc)
        return None
    result.targets += 1
    return unit


def scan_requests(context: GenerationContext, units: list[TargetUnit]) -> list[ScanRequest]:
    """Build one scan request per scannable object of *units*."""
    include_dirs = tuple(str(path) for path in context.directory.include_directories)
    return [
        ScanRequest(
            language=obj.language,
            object_path=obj.object_path,
            source_path=str(obj.source.path),
            include_dirs=include_dirs,
        )
        for unit in units
        for obj in unit.objects
        if obj.language in SCAN_LANGUAGES
    ]


# ---------------------------------------------------------------------------
# Passes
# ---------------------------------------------------------------------------


def generate_directory(
    project: Project,
    directory: Directory,
    result: GenerationResult | None = None,
    *,
    scan_depends: bool = False,
    jobs: int = 1,
) -> GenerationContext:
    """Generate every rule file of *directory* and return the pass context.

    Errors end up in ``context.errors`` and, when given, in *result*.
    """
    if result is None:
        result = GenerationResult()
    context = GenerationContext.for_directory(project, directory)

    try:
        directory.binary_dir.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        context.record_error("binary directory", exc)
        result.errors.extend(context.errors)
        return context

    writer = RuleFileWriter(context)
    units = []
    for unit in TargetGraphBuilder(context).build():
        written = _generate_target(context, writer, unit, result)
        if written is not None:
            units.append(written)

    try:
        result.count_file(writer.write_main_makefile(units))
        result.count_file(writer.write_build_state())
    except (ConfigurationError, OSError) as exc:
        context.record_error("main rule file", exc)

    if scan_depends:
        try:
            records = scan_many(scan_requests(context, units), directory.binary_dir, jobs)
        except (ScanError, OSError) as exc:
            context.record_error("dependency scan", exc)
        else:
            result.scanned += len(records)

    result.directories += 1
    result.remote_targets += len(context.remote_targets)
    result.errors.extend(context.errors)
    result.warnings.extend(context.warnings)
    logger.info(
        "Generated %s: %d targets, %d remote references",
        directory.binary_dir,
        len(units),
        len(context.remote_targets),
    )
    return context


def generate(project: Project, *, scan_depends: bool = False, jobs: int = 1) -> GenerationResult:
    """Run a generation pass over every directory of *project*."""
    result = GenerationResult()
    for directory in project.directories:
        generate_directory(project, directory, result, scan_depends=scan_depends, jobs=jobs)
    return result
