"""Per-pass generation context.

One :class:`GenerationContext` is created for each directory generated.
It carries the options derived once for the pass (rule dialect, jump
strategy, silent flag, makeflags passthrough) and the accumulators the
pass fills in while walking the project model: the artifacts registered
for the dependency-integrity check, the remote target map and the
per-unit errors.  It is not shared with scanning worker threads.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from makeweave.graph.remote import JumpStrategy
from makeweave.infrastructure.fileio import relative_to_dir

if TYPE_CHECKING:
    from pathlib import Path

    from makeweave.graph.remote import RemoteTargetRef
    from makeweave.model.definitions import Definitions
    from makeweave.model.targets import Directory, Project

logger = logging.getLogger(__name__)

MAIN_MAKEFILE = "Makefile2"
BUILD_STATE_FILE = "Makefile2.state.yml"

# Characters that force quoting of a path on a POSIX shell command line.
_SHELL_SPECIAL = re.compile(r"[^A-Za-z0-9_./+:=@%,-]")


# ---------------------------------------------------------------------------
# Rule dialect
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class RuleDialect:
    """Syntax differences between the supported make executors."""

    name: str  # "unix" | "nmake"
    include_directive: str
    windows_shell: bool
    jump_strategy: JumpStrategy
    makefile_name: str = MAIN_MAKEFILE

    @classmethod
    def from_name(cls, name: str) -> RuleDialect:
        if name == "nmake":
            return cls(
                name="nmake",
                include_directive="!include",
                windows_shell=True,
                jump_strategy=JumpStrategy.DISCRETE,
            )
        return cls(
            name="unix",
            include_directive="include",
            windows_shell=False,
            jump_strategy=JumpStrategy.CHAINED,
        )

    def make_path(self, path: str) -> str:
        """Render *path* as a rule target or dependency."""
        if self.windows_shell:
            path = path.replace("/", "\\")
            return f'"{path}"' if " " in path else path
        return path.replace(" ", "\\ ")

    def shell_path(self, path: str) -> str:
        """Render *path* as a command-line argument."""
        if self.windows_shell:
            path = path.replace("/", "\\")
            return f'"{path}"' if " " in path else path
        if path and not _SHELL_SPECIAL.search(path):
            return path
        return "'" + path.replace("'", "'\\''") + "'"

    def echo(self, text: str) -> str:
        """Return the command that prints *text* as a status line."""
        if self.windows_shell:
            return f"@echo {text}"
        escaped = text.replace("\\", "\\\\").replace('"', '\\"').replace("$", "$$")
        return f'@echo "{escaped}"'


# ---------------------------------------------------------------------------
# Context
# ---------------------------------------------------------------------------


@dataclass
class GenerationContext:
    """Options and accumulators for generating one directory."""

    project: Project
    directory: Directory
    dialect: RuleDialect
    silent_flag: str = ""
    pass_makeflags: bool = False
    verbose_makefile: bool = False
    check_depend_files: set[str] = field(default_factory=set)
    remote_targets: dict[str, RemoteTargetRef] = field(default_factory=dict)
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    @classmethod
    def for_directory(cls, project: Project, directory: Directory) -> GenerationContext:
        """Derive the pass options from the project definitions."""
        definitions = project.definitions
        return cls(
            project=project,
            directory=directory,
            dialect=RuleDialect.from_name(definitions.get_safe("RULE_DIALECT")),
            silent_flag=definitions.get_safe("MAKE_SILENT_FLAG"),
            pass_makeflags=definitions.is_on("PASS_MAKEFLAGS"),
            verbose_makefile=definitions.is_on("VERBOSE_MAKEFILE"),
        )

    # -- shortcuts -------------------------------------------------------------

    @property
    def definitions(self) -> Definitions:
        return self.project.definitions

    @property
    def binary_dir(self) -> Path:
        return self.directory.binary_dir

    @property
    def source_dir(self) -> Path:
        return self.directory.source_dir

    @property
    def jump_strategy(self) -> JumpStrategy:
        return self.dialect.jump_strategy

    # -- paths -----------------------------------------------------------------

    def relative_path(self, path: Path) -> str:
        """Return *path* relative to the binary dir, or absolute when outside it."""
        rel = relative_to_dir(path, self.binary_dir)
        if rel is None:
            return path.as_posix()
        return rel or "."

    def make_path(self, path: str) -> str:
        return self.dialect.make_path(path)

    def shell_path(self, path: str) -> str:
        return self.dialect.shell_path(path)

    def recursive_make_call(self, target: str) -> str:
        """Return ``$(MAKE) -f Makefile2 [silent] [-$(MAKEFLAGS)] <target>``."""
        parts = [
            self.definitions.get("MAKE_PROGRAM") or "$(MAKE)",
            "-f",
            self.dialect.makefile_name,
        ]
        if self.silent_flag:
            parts.append(self.silent_flag)
        if self.pass_makeflags:
            # nmake does not pass its flags to sub-makes by itself.
            parts.append("-$(MAKEFLAGS)")
        parts.append(self.make_path(target))
        return " ".join(parts)

    # -- accumulators ----------------------------------------------------------

    def register_check_depend(self, artifact: str) -> None:
        """Register *artifact* for the dependency-integrity check."""
        self.check_depend_files.add(artifact)

    def register_remote(self, ref: RemoteTargetRef) -> RemoteTargetRef:
        """Record *ref*, keeping the first reference for each target name."""
        existing = self.remote_targets.get(ref.name)
        if existing is not None:
            return existing
        logger.debug("Remote target %s in %s", ref.name, ref.directory.binary_dir)
        self.remote_targets[ref.name] = ref
        return ref

    def record_error(self, unit: str, exc: Exception) -> None:
        message = f"{self.directory.path or '.'}: {unit}: {exc}"
        logger.warning("%s", message)
        self.errors.append(message)
