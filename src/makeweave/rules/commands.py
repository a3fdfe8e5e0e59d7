"""Flags and command lines for the generated rules.

Command templates come from the definitions and use ``<PLACEHOLDER>``
tokens.  A template may hold several commands separated by ``;``.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from makeweave.graph.builder import LINK_TEMPLATES
from makeweave.graph.naming import library_removal_names
from makeweave.graph.remote import CrossDirectoryCoordinator
from makeweave.infrastructure.fileio import is_full_path
from makeweave.model.definitions import append_flags, expand_list
from makeweave.model.targets import TargetKind

if TYPE_CHECKING:
    from makeweave.graph.builder import ObjectUnit, TargetUnit
    from makeweave.graph.context import GenerationContext

# An empty value also swallows the single space before its placeholder.
_PLACEHOLDER = re.compile(
    r"( ?)<(SOURCE|OBJECT|OBJECTS|OBJECTS_QUOTED|TARGET|TARGET_BASE|TARGET_SONAME"
    r"|LINK_LIBRARIES|FLAGS|LINK_FLAGS)>"
)
_NOT_IDENTIFIER = re.compile(r"[^A-Za-z0-9_]")

TOOL_COMMAND = "$(MAKEWEAVE_COMMAND)"
SCAN_SUBCOMMAND = "depends"


@dataclass
class RuleVariables:
    """Values substituted into a command template."""

    values: dict[str, str] = field(default_factory=dict)

    def expand(self, template: str) -> list[str]:
        """Expand *template* into one or more command lines."""

        def _sub(match: re.Match[str]) -> str:
            value = self.values.get(match.group(2))
            if value is None:
                return match.group(0)
            if not value:
                return ""
            return f"{match.group(1)}{value}"

        commands = []
        for part in expand_list(template):
            command = _PLACEHOLDER.sub(_sub, part).strip()
            if command:
                commands.append(command)
        return commands


def make_c_identifier(text: str) -> str:
    """Replace characters not allowed in a C identifier with ``_``."""
    ident = _NOT_IDENTIFIER.sub("_", text)
    if ident[:1].isdigit():
        ident = f"_{ident}"
    return ident


# ---------------------------------------------------------------------------
# Compiling
# ---------------------------------------------------------------------------


def include_flags(context: GenerationContext, language: str) -> str:
    flag = context.definitions.get(f"INCLUDE_FLAG_{language}") or "-I"
    flags = ""
    for include_dir in context.directory.include_directories:
        flags = append_flags(flags, f"{flag}{context.shell_path(include_dir.as_posix())}")
    return flags


def compile_flags(context: GenerationContext, unit: TargetUnit, obj: ObjectUnit) -> str:
    """Return the ``<FLAGS>`` value for compiling *obj*."""
    definitions = context.definitions
    flags = ""
    if unit.kind.is_shared:
        export = unit.target.get_property("DEFINE_SYMBOL") or f"{unit.name}_EXPORTS"
        flags = append_flags(flags, f"-D{make_c_identifier(export)}")
    flags = append_flags(flags, unit.target.get_property("COMPILE_FLAGS"))
    source_flags = obj.source.get_property("COMPILE_FLAGS")
    if source_flags is not None:
        flags = append_flags(flags, str(source_flags))
    flags = definitions.add_language_flags(flags, obj.language)
    flags = definitions.add_shared_flags(flags, obj.language, shared=unit.kind.is_shared)
    return append_flags(flags, include_flags(context, obj.language))


def compile_commands(context: GenerationContext, unit: TargetUnit, obj: ObjectUnit) -> list[str]:
    """Return the commands compiling *obj*.

    Raises :class:`~makeweave.model.definitions.ConfigurationError` when the
    language has no ``<LANG>_COMPILE_OBJECT`` template.
    """
    template = context.definitions.get_required(f"{obj.language}_COMPILE_OBJECT")
    variables = RuleVariables(
        {
            "SOURCE": context.shell_path(context.relative_path(obj.source.path)),
            "OBJECT": context.shell_path(obj.object_path),
            "FLAGS": compile_flags(context, unit, obj),
        }
    )
    return variables.expand(template)


def scan_command(context: GenerationContext, obj: ObjectUnit) -> str:
    """Return the command that rescans *obj*'s include dependencies."""
    parts = [
        TOOL_COMMAND,
        SCAN_SUBCOMMAND,
        obj.language,
        context.shell_path(obj.object_path),
        context.shell_path(context.relative_path(obj.source.path)),
    ]
    parts.extend(
        f"-I{context.shell_path(include_dir.as_posix())}"
        for include_dir in context.directory.include_directories
    )
    return " ".join(parts)


# ---------------------------------------------------------------------------
# Linking
# ---------------------------------------------------------------------------


def _objects(context: GenerationContext, unit: TargetUnit) -> tuple[str, str]:
    paths = [obj.object_path for obj in unit.objects]
    plain = " ".join(context.shell_path(path) for path in paths)
    quoted = " ".join(f'"{path}"' for path in paths)
    return plain, quoted


def link_libraries(context: GenerationContext, unit: TargetUnit) -> str:
    """Return the ``<LINK_LIBRARIES>`` value for *unit*.

    Project libraries are named by their output file, full paths and flags
    are passed through, and anything else gets ``LINK_LIBRARY_FLAG``.
    """
    definitions = context.definitions
    lib_flag = definitions.get("LINK_LIBRARY_FLAG")
    if lib_flag is None:
        lib_flag = "-l"
    lib_suffix = definitions.get_safe("LINK_LIBRARY_SUFFIX")
    coordinator = CrossDirectoryCoordinator(context)

    parts: list[str] = []
    seen = {unit.name}
    for lib in unit.target.link_libraries:
        if lib in seen:
            continue
        seen.add(lib)
        found = context.project.find_target(lib)
        if found is not None and found[0].kind.is_library:
            path = coordinator.library_file(found[0], found[1])
            parts.append(context.shell_path(context.relative_path(path)))
        elif lib.startswith("-"):
            parts.append(lib)
        elif is_full_path(lib):
            parts.append(context.shell_path(lib))
        else:
            if lib_suffix and not lib.endswith(lib_suffix):
                lib = f"{lib}{lib_suffix}"
            parts.append(f"{lib_flag}{lib}")
    return " ".join(parts)


def _executable_link_flags(context: GenerationContext, unit: TargetUnit) -> str:
    definitions = context.definitions
    flags = definitions.add_config_variable_flags("", "EXE_LINKER_FLAGS")
    if unit.target.get_property_as_bool("WIN32_EXECUTABLE"):
        flags = append_flags(flags, definitions.get("CREATE_WIN32_EXE"))
    else:
        flags = append_flags(flags, definitions.get("CREATE_CONSOLE_EXE"))
    language = unit.link_language
    flags = append_flags(flags, definitions.get(f"SHARED_LIBRARY_LINK_{language}_FLAGS"))
    return append_flags(flags, unit.target.get_property("LINK_FLAGS"))


def _library_link_flags(context: GenerationContext, unit: TargetUnit) -> str:
    definitions = context.definitions
    target = unit.target
    if unit.kind is TargetKind.STATIC_LIBRARY:
        return target.get_property("STATIC_LIBRARY_FLAGS") or ""

    flags = target.get_property("LINK_FLAGS") or ""
    if unit.kind is TargetKind.MODULE_LIBRARY:
        return definitions.add_config_variable_flags(flags, "MODULE_LINKER_FLAGS")

    flags = definitions.add_config_variable_flags(flags, "SHARED_LINKER_FLAGS")
    if definitions.is_on("WIN32"):
        def_flag = definitions.get_safe("LINK_DEF_FILE_FLAG")
        for source in target.sources:
            if source.extension == "def":
                path = context.shell_path(context.relative_path(source.path))
                flags = append_flags(flags, f"{def_flag}{path}")
    return flags


def _link_template(context: GenerationContext, unit: TargetUnit) -> str:
    suffix = LINK_TEMPLATES[unit.kind]
    return context.definitions.get_required(f"{unit.link_language}_{suffix}")


def executable_link_commands(context: GenerationContext, unit: TargetUnit) -> list[str]:
    definitions = context.definitions
    flags = definitions.add_language_flags("", unit.link_language)
    flags = definitions.add_shared_flags(flags, unit.link_language, shared=True)
    objects, objects_quoted = _objects(context, unit)
    variables = RuleVariables(
        {
            "OBJECTS": objects,
            "OBJECTS_QUOTED": objects_quoted,
            "TARGET": context.shell_path(unit.output_path),
            "TARGET_BASE": context.shell_path(unit.output_path),
            "LINK_LIBRARIES": link_libraries(context, unit),
            "FLAGS": flags,
            "LINK_FLAGS": _executable_link_flags(context, unit),
        }
    )
    return variables.expand(_link_template(context, unit))


def library_link_commands(context: GenerationContext, unit: TargetUnit) -> list[str]:
    """Return remove, create and symlink commands for a library *unit*.

    Only the distinct names among real, SO and link name are removed, and
    the symlink step is omitted when the link name is the real name.
    """
    names = unit.library_names
    if names is None:
        msg = f"{unit.name} is not a library"
        raise ValueError(msg)

    def full(name: str) -> str:
        return context.shell_path(unit.library_path(name))

    removal = " ".join(full(name) for name in library_removal_names(names))
    commands = [f"$(RM) {removal}"]

    objects, objects_quoted = _objects(context, unit)
    variables = RuleVariables(
        {
            "OBJECTS": objects,
            "OBJECTS_QUOTED": objects_quoted,
            "TARGET": full(names.real_name),
            "TARGET_BASE": full(names.base_name),
            "TARGET_SONAME": names.so_name,
            "LINK_LIBRARIES": link_libraries(context, unit),
            "FLAGS": "",
            "LINK_FLAGS": _library_link_flags(context, unit),
        }
    )
    commands.extend(variables.expand(_link_template(context, unit)))

    if names.link_name != names.real_name:
        commands.append(
            f"{TOOL_COMMAND} symlink-library "
            f"{full(names.real_name)} {full(names.so_name)} {full(names.link_name)}"
        )
    return commands


def link_commands(context: GenerationContext, unit: TargetUnit) -> list[str]:
    if unit.kind is TargetKind.EXECUTABLE:
        return executable_link_commands(context, unit)
    return library_link_commands(context, unit)
