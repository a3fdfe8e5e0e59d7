"""Project model: targets, their sources, and the directories that own them."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from makeweave.model.definitions import is_on

if TYPE_CHECKING:
    from pathlib import Path

    from makeweave.model.definitions import Definitions


class TargetKind(enum.Enum):
    """Buildable target kinds."""

    EXECUTABLE = "executable"
    STATIC_LIBRARY = "static_library"
    SHARED_LIBRARY = "shared_library"
    MODULE_LIBRARY = "module_library"

    @property
    def is_library(self) -> bool:
        return self is not TargetKind.EXECUTABLE

    @property
    def is_shared(self) -> bool:
        """True for kinds whose objects are compiled position-independent."""
        return self in (TargetKind.SHARED_LIBRARY, TargetKind.MODULE_LIBRARY)

    @property
    def label(self) -> str:
        """Human-readable kind used in build status echoes."""
        return _KIND_LABELS[self]


_KIND_LABELS: dict[TargetKind, str] = {
    TargetKind.EXECUTABLE: "executable",
    TargetKind.STATIC_LIBRARY: "static library",
    TargetKind.SHARED_LIBRARY: "shared library",
    TargetKind.MODULE_LIBRARY: "shared module",
}


@dataclass(frozen=True)
class SourceFile:
    """A source file listed by a target."""

    path: Path  # absolute
    properties: dict[str, Any] = field(default_factory=dict, compare=False)
    header_only: bool = False
    custom_command: bool = False

    @property
    def extension(self) -> str:
        """Extension without the leading dot (``""`` when there is none)."""
        return self.path.suffix[1:]

    def get_property(self, name: str) -> Any:
        return self.properties.get(name)


@dataclass(frozen=True)
class Target:
    """A build target as described by the project file."""

    name: str
    kind: TargetKind
    sources: tuple[SourceFile, ...] = ()
    link_libraries: tuple[str, ...] = ()
    linker_language: str | None = None
    properties: dict[str, Any] = field(default_factory=dict, compare=False)
    in_all: bool = True

    def get_property(self, name: str) -> str | None:
        value = self.properties.get(name)
        if value is None:
            return None
        return str(value)

    def get_property_as_bool(self, name: str) -> bool:
        return is_on(self.properties.get(name))


@dataclass(frozen=True)
class Directory:
    """One source directory and the binary directory it generates into."""

    path: str  # relative to the project source dir; "" for the top
    source_dir: Path
    binary_dir: Path
    include_directories: tuple[Path, ...] = ()
    targets: tuple[Target, ...] = ()


@dataclass
class Project:
    """A loaded project: configuration plus every directory's targets."""

    name: str
    project_file: Path
    source_dir: Path
    binary_dir: Path
    platform: str
    definitions: Definitions
    directories: list[Directory] = field(default_factory=list)
    list_files: list[Path] = field(default_factory=list)

    @property
    def cache_file(self) -> Path:
        return self.binary_dir / CACHE_FILE_NAME

    def find_target(self, name: str) -> tuple[Target, Directory] | None:
        """Return the target called *name* and its owning directory."""
        for directory in self.directories:
            for target in directory.targets:
                if target.name == name:
                    return target, directory
        return None


PROJECT_FILE_NAME = "makeweave.yml"
CACHE_FILE_NAME = "MakeweaveCache.yml"
