"""Target graph builder: turns a directory's targets into build units.

Each buildable target becomes a :class:`TargetUnit` holding one
:class:`ObjectUnit` per eligible source.  A source is eligible when it is
not header-only, has no custom build step, and its extension is not in an
ignore list.  Failures are confined to the unit that caused them: an
object with an unknown language is skipped, a target whose link command
cannot be determined is skipped, and both are recorded on the context.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

from makeweave.graph.naming import LibraryNames, get_executable_path, get_library_names
from makeweave.graph.remote import CrossDirectoryCoordinator
from makeweave.infrastructure.fileio import relative_to_dir
from makeweave.model.definitions import ConfigurationError
from makeweave.model.languages import LanguageTable
from makeweave.model.targets import SourceFile, Target, TargetKind

if TYPE_CHECKING:
    from makeweave.graph.context import GenerationContext

logger = logging.getLogger(__name__)

# Link command template per target kind (``<LANG>_<suffix>``).
LINK_TEMPLATES: dict[TargetKind, str] = {
    TargetKind.EXECUTABLE: "LINK_EXECUTABLE",
    TargetKind.STATIC_LIBRARY: "CREATE_STATIC_LIBRARY",
    TargetKind.SHARED_LIBRARY: "CREATE_SHARED_LIBRARY",
    TargetKind.MODULE_LIBRARY: "CREATE_SHARED_MODULE",
}

# Aggregate markers of the main rule file.
ALL_DEPENDS = "all.depends"
ALL_BUILD = "all.build"


# ---------------------------------------------------------------------------
# Units
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ObjectUnit:
    """One object file compiled from one source of a target."""

    target_name: str
    source: SourceFile
    language: str
    object_path: str  # relative to the directory's binary dir

    @property
    def rule_file(self) -> str:
        return f"{self.object_path}.make"

    @property
    def depends_marker(self) -> str:
        """Mark file proving the object's dependency record is current."""
        return f"{self.object_path}.depends"


@dataclass(frozen=True)
class TargetUnit:
    """A target ready for rule generation."""

    target: Target
    objects: tuple[ObjectUnit, ...]
    link_language: str
    output_path: str  # the file other rules depend on, relative to binary dir
    output_dir: str  # prefix for library file names ("" or ending in "/")
    library_names: LibraryNames | None
    link_depends: tuple[str, ...]  # files the link step depends on

    @property
    def name(self) -> str:
        return self.target.name

    @property
    def kind(self) -> TargetKind:
        return self.target.kind

    @property
    def target_dir(self) -> str:
        return f"{self.name}.dir"

    @property
    def rule_file(self) -> str:
        return f"{self.target_dir}/{self.name}.make"

    @property
    def record_base(self) -> str:
        """Artifact name of the target's own dependency record."""
        return f"{self.target_dir}/{self.name}"

    @property
    def depends_marker(self) -> str:
        return f"{self.target_dir}/{self.name}.depends"

    @property
    def requires_marker(self) -> str:
        return f"{self.name}.requires"

    def library_path(self, name: str) -> str:
        return f"{self.output_dir}{name}"


# ---------------------------------------------------------------------------
# Object naming
# ---------------------------------------------------------------------------


def make_safe_object_name(name: str) -> str:
    """Make *name* usable as a path below the target directory."""
    name = name.lstrip("/")
    name = name.replace(":", "_")
    name = name.replace("../", "__/")
    return name.replace(" ", "_")


def _disambiguate(name: str, taken: set[str]) -> str:
    if name not in taken:
        return name
    stem, dot, ext = name.rpartition(".")
    if not dot:
        stem, ext = name, ""
    counter = 2
    while True:
        candidate = f"{stem}_{counter}.{ext}" if dot else f"{stem}_{counter}"
        if candidate not in taken:
            return candidate
        counter += 1


# ---------------------------------------------------------------------------
# Builder
# ---------------------------------------------------------------------------


class TargetGraphBuilder:
    """Builds the :class:`TargetUnit` list for the context's directory."""

    def __init__(self, context: GenerationContext) -> None:
        self._context = context
        self._definitions = context.definitions
        self._languages = LanguageTable(context.definitions)
        self._coordinator = CrossDirectoryCoordinator(context)

    def build(self) -> list[TargetUnit]:
        """Return one unit per target that could be generated.

        Per-unit :class:`ConfigurationError` failures are recorded on the
        context and the remaining targets are still built.
        """
        units: list[TargetUnit] = []
        for target in self._context.directory.targets:
            try:
                units.append(self.build_target(target))
            except ConfigurationError as exc:
                self._context.record_error(f"target '{target.name}'", exc)
        return units

    def build_target(self, target: Target) -> TargetUnit:
        objects = self.build_objects(target)
        language = self.linker_language(target, objects)
        self._definitions.get_required(f"{language}_{LINK_TEMPLATES[target.kind]}")

        library_names: LibraryNames | None = None
        if target.kind is TargetKind.EXECUTABLE:
            output_dir = self._executable_output_dir()
            output_path = get_executable_path(target, self._definitions, output_dir)
        else:
            output_dir = self._library_output_dir()
            library_names = get_library_names(target, self._definitions, language)
            output_path = f"{output_dir}{library_names.link_name}"

        return TargetUnit(
            target=target,
            objects=tuple(objects),
            link_language=language,
            output_path=output_path,
            output_dir=output_dir,
            library_names=library_names,
            link_depends=tuple(self.link_depends(target)),
        )

    # -- objects ---------------------------------------------------------------

    def build_objects(self, target: Target) -> list[ObjectUnit]:
        objects: list[ObjectUnit] = []
        taken: set[str] = set()
        for source in target.sources:
            if not self.is_eligible(source):
                logger.debug("No object for %s in target %s", source.path, target.name)
                continue
            try:
                unit = self.build_object(target, source, taken)
            except ConfigurationError as exc:
                self._context.record_error(f"object for '{source.path.name}'", exc)
                continue
            taken.add(unit.object_path)
            objects.append(unit)
        return objects

    def is_eligible(self, source: SourceFile) -> bool:
        if source.header_only or source.custom_command:
            return False
        return not self._languages.is_ignored(source.extension)

    def build_object(self, target: Target, source: SourceFile, taken: set[str]) -> ObjectUnit:
        """Create the object unit for *source*.

        Raises :class:`ConfigurationError` when the source language is unknown
        or the language has no compile command.
        """
        language = self._languages.language_for(source.extension)
        if language is None:
            msg = f"Cannot determine the language of source '{source.path}'"
            raise ConfigurationError(msg)
        self._definitions.get_required(f"{language}_COMPILE_OBJECT")

        name = self.object_file_name(source, language)
        name = _disambiguate(f"{target.name}.dir/{name}", taken)
        return ObjectUnit(
            target_name=target.name,
            source=source,
            language=language,
            object_path=name,
        )

    def object_file_name(self, source: SourceFile, language: str) -> str:
        """Return the safe object name for *source*, without the target dir.

        Sources under the current source or binary directory keep their
        relative path; others use just the file name.
        """
        stem = source.path.with_suffix("")
        rel = relative_to_dir(stem, self._context.source_dir)
        if rel is None:
            rel = relative_to_dir(stem, self._context.binary_dir)
        if rel is None:
            rel = stem.name
        return make_safe_object_name(rel + self._languages.output_extension(language))

    # -- linking ---------------------------------------------------------------

    def linker_language(self, target: Target, objects: list[ObjectUnit]) -> str:
        """Return the language used to link *target*.

        Uses the explicit ``linker_language`` when set, otherwise a preferred
        linker language among the objects, otherwise the first object's.
        """
        if target.linker_language:
            return target.linker_language
        languages = [obj.language for obj in objects]
        for language in languages:
            if self._languages.is_preferred_linker(language):
                return language
        if languages:
            return languages[0]
        msg = f"Cannot determine the linker language of target '{target.name}'"
        raise ConfigurationError(msg)

    def link_depends(self, target: Target) -> list[str]:
        """Return the file dependencies implied by *target*'s link libraries.

        Static libraries are archives and do not depend on what they link.
        A library never depends on itself, and each library counts once.
        """
        depends: list[str] = []
        if target.kind is TargetKind.STATIC_LIBRARY:
            return depends
        emitted = {target.name}
        for lib in target.link_libraries:
            if lib in emitted:
                continue
            emitted.add(lib)
            self._coordinator.append_lib_depend(depends, lib)
        return depends

    def _library_output_dir(self) -> str:
        path = self._coordinator.library_output_dir(self._context.directory)
        return self._output_prefix(path)

    def _executable_output_dir(self) -> str:
        configured = self._definitions.get("EXECUTABLE_OUTPUT_PATH")
        if not configured:
            return ""
        path = Path(configured)
        if not path.is_absolute():
            path = self._context.project.binary_dir / path
        return self._output_prefix(path)

    def _output_prefix(self, path: Path) -> str:
        rel = self._context.relative_path(path)
        if rel == ".":
            return ""
        return rel.rstrip("/") + "/"


# ---------------------------------------------------------------------------
# Aggregates
# ---------------------------------------------------------------------------


def aggregate_depends(units: list[TargetUnit]) -> list[str]:
    """Dependencies of ``all.depends``: every default target's depends marker."""
    return [unit.depends_marker for unit in units if unit.target.in_all]


def aggregate_requires(units: list[TargetUnit]) -> list[str]:
    """Dependencies of ``all.build``: every default target's requires marker."""
    return [unit.requires_marker for unit in units if unit.target.in_all]

