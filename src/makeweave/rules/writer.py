"""Rule-file rendering and installation.

Every file is rendered to a string first and then installed with
:func:`~makeweave.infrastructure.fileio.write_if_changed`, so unchanged
rule files keep their timestamps and an interrupted run never leaves a
partial file behind.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING

import yaml

from makeweave import __version__
from makeweave.depends.record import record_file_name
from makeweave.graph.builder import (
    ALL_BUILD,
    ALL_DEPENDS,
    aggregate_depends,
    aggregate_requires,
)
from makeweave.graph.context import BUILD_STATE_FILE, RuleDialect
from makeweave.graph.remote import jump_and_build_commands
from makeweave.infrastructure.fileio import write_if_changed
from makeweave.model.definitions import expand_list
from makeweave.model.targets import CACHE_FILE_NAME
from makeweave.rules.commands import (
    TOOL_COMMAND,
    compile_commands,
    link_commands,
    scan_command,
)

if TYPE_CHECKING:
    from makeweave.graph.builder import ObjectUnit, TargetUnit
    from makeweave.graph.context import GenerationContext

logger = logging.getLogger(__name__)

DIVIDER = "#" + "=" * 77
CHECK_BUILD_SYSTEM = "check_build_system"


# ---------------------------------------------------------------------------
# Rules
# ---------------------------------------------------------------------------


@dataclass
class MakeRule:
    """One rule: target, dependencies, recipe and optional status echoes."""

    target: str
    depends: list[str] = field(default_factory=list)
    commands: list[str] = field(default_factory=list)
    comment: str | None = None
    pre_echo: str | None = None
    post_echo: str | None = None


def render_rule(rule: MakeRule, dialect: RuleDialect | None = None) -> str:
    """Render *rule* in the executor's syntax.

    Each dependency gets its own ``target: dep`` line so no line grows
    with the dependency count.  A rule without dependencies renders as a
    bare ``target:`` line, and its commands always run.
    """
    if not rule.target:
        msg = "Rule has no target"
        raise ValueError(msg)
    if dialect is None:
        dialect = RuleDialect.from_name("unix")

    lines: list[str] = []
    if rule.comment is not None:
        lines.extend(f"# {line}" for line in rule.comment.split("\n"))

    target = dialect.make_path(rule.target)
    # A one-letter target would read as a drive letter on Windows.
    space = " " if len(target) == 1 else ""
    if not rule.depends:
        lines.append(f"{target}{space}:")
    else:
        lines.extend(f"{target}{space}: {dialect.make_path(dep)}" for dep in rule.depends)

    for idx, command in enumerate(rule.commands):
        if idx == 0 and rule.pre_echo:
            lines.append(f"\t{dialect.echo(rule.pre_echo)}")
        lines.append(f"\t{command}")
    if rule.post_echo:
        lines.append(f"\t{dialect.echo(rule.post_echo)}")
    return "\n".join(lines) + "\n\n"


# ---------------------------------------------------------------------------
# Writer
# ---------------------------------------------------------------------------


class RuleFileWriter:
    """Renders and installs the rule files of one directory."""

    def __init__(self, context: GenerationContext) -> None:
        self._context = context
        self._dialect = context.dialect

    # -- pieces ----------------------------------------------------------------

    def disclaimer(self) -> str:
        return (
            "# makeweave generated file: DO NOT EDIT!\n"
            f'# Generated by the "{self._dialect.name}" rule dialect, '
            f"makeweave version {__version__}\n\n"
        )

    def include(self, path: str) -> str:
        return f"{self._dialect.include_directive} {self._dialect.make_path(path)}\n"

    def render_rules(self, rules: list[MakeRule]) -> str:
        return "".join(render_rule(rule, self._dialect) for rule in rules)

    def _section(self, title: str) -> str:
        return f"{DIVIDER}\n{title}\n\n"

    def _full_path(self, relative: str) -> Path:
        return self._context.binary_dir / relative

    # -- object rule files -----------------------------------------------------

    def object_depends(self, obj: ObjectUnit) -> list[str]:
        """Dependencies known at generation time, shared by scan and compile."""
        context = self._context
        depends = [context.relative_path(obj.source.path)]
        for dep in expand_list(_as_list_text(obj.source.get_property("OBJECT_DEPENDS"))):
            path = Path(dep)
            if not path.is_absolute():
                path = context.source_dir / path
            depends.append(context.relative_path(path))
        depends.append(obj.rule_file)
        return depends

    def object_rules(self, unit: TargetUnit, obj: ObjectUnit) -> list[MakeRule]:
        depends = self.object_depends(obj)
        scan = MakeRule(
            target=obj.depends_marker,
            depends=list(depends),
            commands=[scan_command(self._context, obj)],
            pre_echo=f"Scanning {obj.language} dependencies of {obj.object_path}...",
        )
        build = MakeRule(
            target=obj.object_path,
            depends=list(depends),
            commands=compile_commands(self._context, unit, obj),
            pre_echo=f"Building {obj.language} object {obj.object_path}...",
        )
        return [scan, build]

    def render_object_rule_file(self, unit: TargetUnit, obj: ObjectUnit) -> str:
        parts = [
            self.disclaimer(),
            f"# Rule file for object file {obj.object_path}.\n\n",
            "# Include any dependencies generated for this rule.\n",
            self.include(record_file_name(obj.object_path)),
            "\n",
            self.render_rules(self.object_rules(unit, obj)),
        ]
        return "".join(parts)

    def write_object_rule_file(self, unit: TargetUnit, obj: ObjectUnit) -> bool:
        content = self.render_object_rule_file(unit, obj)
        return write_if_changed(self._full_path(obj.rule_file), content)

    # -- target rule files -----------------------------------------------------

    def link_rule_depends(self, unit: TargetUnit) -> list[str]:
        depends = [obj.object_path for obj in unit.objects]
        depends.extend(unit.link_depends)
        depends.append(unit.rule_file)
        return depends

    def target_rules(self, unit: TargetUnit) -> list[MakeRule]:
        depends_rule = MakeRule(
            target=unit.depends_marker,
            depends=[obj.depends_marker for obj in unit.objects] + [unit.rule_file],
            post_echo=f"Built dependencies for {unit.name}.",
        )
        link_rule = MakeRule(
            target=unit.output_path,
            depends=self.link_rule_depends(unit),
            commands=link_commands(self._context, unit),
            pre_echo=f"Linking {unit.link_language} {unit.kind.label} {unit.output_path}...",
        )
        requires_rule = MakeRule(
            target=unit.requires_marker,
            depends=[unit.output_path],
            comment=f"Requirements for target {unit.name}",
        )
        return [depends_rule, link_rule, requires_rule]

    def render_target_rule_file(self, unit: TargetUnit) -> str:
        parts = [
            self.disclaimer(),
            f"# Rule file for target {unit.name}.\n\n",
            "# Include any dependencies generated for this rule.\n",
            self.include(record_file_name(unit.record_base)),
            "\n",
        ]
        if unit.objects:
            parts.append("# Include make rules for object files.\n")
            parts.extend(self.include(obj.rule_file) for obj in unit.objects)
            parts.append("\n")
        parts.append(self.render_rules(self.target_rules(unit)))
        return "".join(parts)

    def write_target_rule_file(self, unit: TargetUnit) -> bool:
        content = self.render_target_rule_file(unit)
        return write_if_changed(self._full_path(unit.rule_file), content)

    # -- main rule file --------------------------------------------------------

    def make_variables(self) -> str:
        context = self._context
        definitions = context.definitions
        tool = definitions.get_required("MAKEWEAVE_COMMAND")
        lines = [self._section("# Set environment variables for the build.")]
        if self._dialect.windows_shell:
            lines.append('!IF "$(OS)" == "Windows_NT"\nNULL=\n!ELSE\nNULL=nul\n!ENDIF\n')
        else:
            lines.append("# The shell in which to execute make rules.\nSHELL = /bin/sh\n\n")
        lines.append(f"# The makeweave executable.\nMAKEWEAVE_COMMAND = {tool}\n\n")
        lines.append(f"# The command to remove a file.\nRM = {TOOL_COMMAND} remove -f\n\n")
        edit = definitions.get("EDIT_COMMAND")
        if edit:
            lines.append(f"# The program to use to edit the cache.\nEDIT_COMMAND = {edit}\n\n")

        def var(comment: str, name: str, path: Path) -> str:
            value = context.shell_path(context.relative_path(path))
            return f"# {comment}\n{name} = {value}\n\n"

        project = context.project
        lines.append(
            var(
                "The project file this makefile was generated from.",
                "MAKEWEAVE_PROJECT_FILE",
                project.project_file,
            )
        )
        lines.append(
            var(
                "The source directory corresponding to this makefile.",
                "MAKEWEAVE_CURRENT_SOURCE",
                context.source_dir,
            )
        )
        lines.append(
            var(
                "The build directory corresponding to this makefile.",
                "MAKEWEAVE_CURRENT_BINARY",
                context.binary_dir,
            )
        )
        lines.append(
            var(
                "The top-level source directory of the project.",
                "MAKEWEAVE_SOURCE_DIR",
                project.source_dir,
            )
        )
        lines.append(
            var(
                "The top-level build directory of the project.",
                "MAKEWEAVE_BINARY_DIR",
                project.binary_dir,
            )
        )
        return "".join(lines)

    def special_rules_top(self) -> list[MakeRule]:
        context = self._context
        binary = context.binary_dir.as_posix()
        regenerate = (
            f"{TOOL_COMMAND} generate --project $(MAKEWEAVE_PROJECT_FILE) "
            "-B$(MAKEWEAVE_BINARY_DIR)"
        )
        rules = [
            # Must stay first: make without arguments builds the first rule.
            MakeRule(
                target="all",
                depends=[CHECK_BUILD_SYSTEM],
                commands=[
                    context.recursive_make_call(ALL_DEPENDS),
                    context.recursive_make_call(ALL_BUILD),
                ],
                comment="Default target executed when no arguments are given to make.",
                pre_echo=f"Entering directory {binary}",
                post_echo=f"Finished directory {binary}",
            ),
            MakeRule(
                target=CHECK_BUILD_SYSTEM,
                commands=[f"@{TOOL_COMMAND} check-build-system {BUILD_STATE_FILE}"],
                comment="Special rule to check the build system integrity.",
                pre_echo="Checking build system integrity...",
            ),
            MakeRule(
                target="rebuild_cache",
                commands=[regenerate],
                comment="Special rule to regenerate the build system using make.",
                pre_echo="Running makeweave to regenerate build system...",
            ),
        ]
        if context.definitions.get("EDIT_COMMAND"):
            rules.append(
                MakeRule(
                    target="edit_cache",
                    commands=[f"$(EDIT_COMMAND) $(MAKEWEAVE_BINARY_DIR)/{CACHE_FILE_NAME}"],
                    comment="Special rule to run the cache editor using make.",
                    pre_echo="Running cache editor...",
                )
            )
        else:
            rules.append(
                MakeRule(
                    target="edit_cache",
                    commands=[f"{TOOL_COMMAND} edit-cache -B$(MAKEWEAVE_BINARY_DIR)"],
                    comment="Special rule to run the cache editor using make.",
                    pre_echo="Running interactive cache editor...",
                )
            )
        return rules

    def aggregate_rules(self, units: list[TargetUnit]) -> list[MakeRule]:
        return [
            MakeRule(
                target=ALL_DEPENDS,
                depends=aggregate_depends(units),
                comment="Main dependencies target for this directory.",
            ),
            MakeRule(
                target=ALL_BUILD,
                depends=aggregate_requires(units),
                comment="Main build target for this directory.",
            ),
        ]

    def jump_and_build_rules(self) -> list[MakeRule]:
        context = self._context
        here = context.binary_dir.as_posix()
        rules = []
        for name in sorted(context.remote_targets):
            ref = context.remote_targets[name]
            there = ref.directory.binary_dir.as_posix()
            rules.append(
                MakeRule(
                    target=ref.file_path,
                    commands=jump_and_build_commands(context, ref),
                    pre_echo=f"Jumping to {there} to build {name}...",
                    post_echo=f"Returning to {here}...",
                )
            )
        return rules

    def special_rules_bottom(self) -> list[MakeRule]:
        rules = []
        if not self._context.verbose_makefile:
            rules.append(
                MakeRule(
                    target="$(VERBOSE).SILENT",
                    comment="Suppress display of executed commands.",
                )
            )
        rules.append(
            MakeRule(
                target=".SUFFIXES",
                depends=[".hpux_make_must_have_this_dependency_here"],
                comment="Disable some common implicit rules to speed things up.",
            )
        )
        return rules

    def render_main_makefile(self, units: list[TargetUnit]) -> str:
        parts = [
            self.disclaimer(),
            self.make_variables(),
            self._section("# Special targets provided by makeweave."),
            self.render_rules(self.special_rules_top()),
            self._section("# Main rules for this directory."),
            self.render_rules(self.aggregate_rules(units)),
        ]
        if units:
            parts.append(self._section("# Include rule files for each target in this directory."))
            parts.extend(self.include(unit.rule_file) for unit in units)
            parts.append("\n")
        jump_rules = self.jump_and_build_rules()
        if jump_rules:
            parts.append(
                self._section(
                    "# Targets to make sure needed libraries exist.\n"
                    "# These will jump to other directories to build targets."
                )
            )
            parts.append(self.render_rules(jump_rules))
        parts.append(self._section("# Special targets to cleanup operation of make."))
        parts.append(self.render_rules(self.special_rules_bottom()))
        return "".join(parts)

    def write_main_makefile(self, units: list[TargetUnit]) -> bool:
        content = self.render_main_makefile(units)
        return write_if_changed(self._full_path(self._dialect.makefile_name), content)

    # -- build state -----------------------------------------------------------

    def render_build_state(self) -> str:
        """Render the inputs, outputs and integrity-check list of this directory."""
        context = self._context
        project = context.project
        state = {
            "project_file": project.project_file.as_posix(),
            "binary_dir": project.binary_dir.as_posix(),
            "makefile_depends": sorted({path.as_posix() for path in project.list_files}),
            "makefile_outputs": [self._full_path(self._dialect.makefile_name).as_posix()],
            "depends_check": sorted(context.check_depend_files),
        }
        body = yaml.safe_dump(state, sort_keys=False, default_flow_style=False)
        return self.disclaimer() + body

    def write_build_state(self) -> bool:
        """Install the build-state file and touch it even when unchanged.

        Its timestamp marks the last generation pass for the build-system check.
        """
        path = self._full_path(BUILD_STATE_FILE)
        changed = write_if_changed(path, self.render_build_state())
        if not changed:
            os.utime(path)
        return changed


def _as_list_text(value: object) -> str:
    if value is None:
        return ""
    if isinstance(value, (list, tuple)):
        return ";".join(str(item) for item in value)
    return str(value)
