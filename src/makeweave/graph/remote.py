"""Cross-directory link dependencies and jump-and-build commands.

A target that links a library built in another directory cannot depend on
that library's rules directly.  Instead the coordinator records a
:class:`RemoteTargetRef` and the main rule file gets one rule per remote
library that changes into the owning directory and builds it there.
"""

from __future__ import annotations

import enum
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

from makeweave.graph.naming import get_full_target_name
from makeweave.infrastructure.fileio import is_full_path

if TYPE_CHECKING:
    from makeweave.graph.context import GenerationContext
    from makeweave.model.targets import Directory, Target

logger = logging.getLogger(__name__)


class JumpStrategy(enum.Enum):
    """How a jump-and-build recipe is spread over command lines."""

    # One ``cd dir && make ... && make ...`` line, for executors that start
    # every command line in the original directory.
    CHAINED = "chained"
    # Separate ``cd``/build/``cd back`` lines, for executors that keep the
    # working directory between the lines of one rule.
    DISCRETE = "discrete"


@dataclass(frozen=True)
class RemoteTargetRef:
    """A library target whose output lives in another directory."""

    name: str
    directory: Directory
    file_path: str  # rendered relative to the referencing binary dir

    @property
    def depends_marker(self) -> str:
        return f"{self.name}.dir/{self.name}.depends"

    @property
    def requires_marker(self) -> str:
        return f"{self.name}.requires"


# ---------------------------------------------------------------------------
# Coordinator
# ---------------------------------------------------------------------------


class CrossDirectoryCoordinator:
    """Resolves link-library references for one generation pass."""

    def __init__(self, context: GenerationContext) -> None:
        self._context = context

    def library_output_dir(self, directory: Directory) -> Path:
        """Return the directory where *directory*'s libraries are written.

        ``LIBRARY_OUTPUT_PATH`` applies project-wide; a relative value is
        taken from the top binary directory.
        """
        configured = self._context.definitions.get("LIBRARY_OUTPUT_PATH")
        if configured:
            path = Path(configured)
            if not path.is_absolute():
                path = self._context.project.binary_dir / path
            return path
        return directory.binary_dir

    def library_file(self, target: Target, directory: Directory) -> Path:
        """Return the absolute path other rules depend on for *target*."""
        name = get_full_target_name(target, self._context.definitions)
        return self.library_output_dir(directory) / name

    def append_lib_depend(self, depends: list[str], name: str) -> None:
        """Append the dependency implied by linking library *name*.

        Project libraries in the current directory contribute their output
        file.  Project libraries elsewhere contribute their output file and
        register a :class:`RemoteTargetRef`.  Other references depend on
        the named file only when it is an existing full path; linker flags
        and system libraries contribute nothing.
        """
        if name.startswith("-"):
            return

        found = self._context.project.find_target(name)
        if found is None:
            if is_full_path(name) and Path(name).exists():
                depends.append(self._context.relative_path(Path(name)))
            else:
                logger.debug("Link library '%s' is not a project target, no dependency", name)
            return

        target, directory = found
        if not target.kind.is_library:
            logger.debug("Link library '%s' names a %s, no dependency", name, target.kind.label)
            return

        path = self._context.relative_path(self.library_file(target, directory))
        if directory.path == self._context.directory.path:
            depends.append(path)
            return

        ref = self._context.register_remote(
            RemoteTargetRef(name=target.name, directory=directory, file_path=path)
        )
        depends.append(ref.file_path)


# ---------------------------------------------------------------------------
# Jump-and-build commands
# ---------------------------------------------------------------------------


def jump_and_build_commands(context: GenerationContext, ref: RemoteTargetRef) -> list[str]:
    """Return the recipe that builds *ref* inside its own directory.

    The recipe enters the remote binary directory, runs its build-system
    check, its dependency aggregate for the target, then its requires
    aggregate for the target, and returns to the current directory.
    """
    here = context.binary_dir
    there = ref.directory.binary_dir
    dest = context.shell_path(os.path.relpath(there, here))
    steps = [
        context.recursive_make_call("check_build_system"),
        context.recursive_make_call(ref.depends_marker),
        context.recursive_make_call(ref.requires_marker),
    ]

    if context.jump_strategy is JumpStrategy.DISCRETE:
        back = context.shell_path(os.path.relpath(here, there))
        return [f"cd {dest}", *steps, f"cd {back}"]

    # The next command line starts in the original directory again.
    return [" && ".join([f"cd {dest}", *steps])]
