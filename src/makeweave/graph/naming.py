"""Library and executable naming policy.

Maps a target and the platform definitions to its on-disk file names.
Shared and module libraries on platforms with a soname flag get up to
three names that form a symlink chain::

    real name  <-  SO name  <-  link name
    libfoo.so.1.2   libfoo.so.1   libfoo.so
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from makeweave.model.targets import TargetKind

if TYPE_CHECKING:
    from makeweave.model.definitions import Definitions
    from makeweave.model.targets import Target

# Definition prefix for each kind's ``<PREFIX>_PREFIX`` / ``<PREFIX>_SUFFIX``.
_KIND_VARIABLES: dict[TargetKind, str] = {
    TargetKind.STATIC_LIBRARY: "STATIC_LIBRARY",
    TargetKind.SHARED_LIBRARY: "SHARED_LIBRARY",
    TargetKind.MODULE_LIBRARY: "SHARED_MODULE",
}


@dataclass(frozen=True)
class LibraryNames:
    """The four file names of one library target."""

    link_name: str  # what other rules depend on
    so_name: str
    real_name: str  # the file the linker writes
    base_name: str  # unversioned, without suffix

    @property
    def is_versioned(self) -> bool:
        return len({self.link_name, self.so_name, self.real_name}) > 1


def _prefix_suffix(target: Target, definitions: Definitions) -> tuple[str, str]:
    if target.kind is TargetKind.EXECUTABLE:
        prefix = ""
        suffix = definitions.get_safe("EXECUTABLE_SUFFIX")
    else:
        var = _KIND_VARIABLES[target.kind]
        prefix = definitions.get_safe(f"{var}_PREFIX")
        suffix = definitions.get_safe(f"{var}_SUFFIX")
    # Target properties override the platform conventions.
    prefix_prop = target.get_property("PREFIX")
    suffix_prop = target.get_property("SUFFIX")
    if prefix_prop is not None:
        prefix = prefix_prop
    if suffix_prop is not None:
        suffix = suffix_prop
    return prefix, suffix


def _output_name(target: Target) -> str:
    return target.get_property("OUTPUT_NAME") or target.name


def get_full_target_name(target: Target, definitions: Definitions) -> str:
    """Return ``<prefix><name><suffix>`` for *target*."""
    prefix, suffix = _prefix_suffix(target, definitions)
    return f"{prefix}{_output_name(target)}{suffix}"


def get_base_target_name(target: Target, definitions: Definitions) -> str:
    """Return ``<prefix><name>``, the unversioned name without suffix."""
    prefix, _ = _prefix_suffix(target, definitions)
    return f"{prefix}{_output_name(target)}"


def _versioning_enabled(target: Target, definitions: Definitions, language: str) -> bool:
    if not target.kind.is_shared:
        return False
    return bool(definitions.get(f"SHARED_LIBRARY_SONAME_{language}_FLAG"))


def _versioned(name: str, base_name: str, suffix: str, version: str | None, style: str) -> str:
    if not version:
        return name
    if style == "infix":
        return f"{base_name}.{version}{suffix}"
    return f"{name}.{version}"


def get_library_names(
    target: Target, definitions: Definitions, language: str = "C"
) -> LibraryNames:
    """Compute the link, SO, real and base names of a library *target*.

    Versioned names are only produced for shared and module libraries, and
    only when the platform defines ``SHARED_LIBRARY_SONAME_<language>_FLAG``.
    ``SOVERSION`` defaults to ``VERSION`` when only the latter is set.
    """
    prefix, suffix = _prefix_suffix(target, definitions)
    base_name = f"{prefix}{_output_name(target)}"
    name = f"{base_name}{suffix}"

    version: str | None = None
    soversion: str | None = None
    if _versioning_enabled(target, definitions, language):
        version = target.get_property("VERSION") or None
        soversion = target.get_property("SOVERSION") or None
        if version and not soversion:
            soversion = version

    style = definitions.get_safe("VERSIONED_NAME_STYLE") or "suffix"
    so_name = _versioned(name, base_name, suffix, soversion, style)
    real_name = _versioned(name, base_name, suffix, version or soversion, style)
    return LibraryNames(
        link_name=name,
        so_name=so_name,
        real_name=real_name,
        base_name=base_name,
    )


def get_executable_path(
    target: Target, definitions: Definitions, output_dir: str = ""
) -> str:
    """Return the path of an executable relative to its binary directory.

    *output_dir* is a prefix ending in ``/`` (or empty).  On Apple platforms
    a ``MACOSX_BUNDLE`` target lands in ``<name>.app/Contents/MacOS/``.
    """
    path = output_dir
    if definitions.is_on("APPLE") and target.get_property_as_bool("MACOSX_BUNDLE"):
        path = f"{path}{target.name}.app/Contents/MacOS/"
    return f"{path}{get_full_target_name(target, definitions)}"


def library_removal_names(names: LibraryNames) -> list[str]:
    """Return the distinct library file names to delete before relinking."""
    removal = [names.real_name]
    if names.so_name != names.real_name:
        removal.append(names.so_name)
    if names.link_name not in (names.so_name, names.real_name):
        removal.append(names.link_name)
    return removal


def library_symlink_chain(names: LibraryNames) -> list[tuple[str, str]]:
    """Return ``(link, points_to)`` pairs forming ``real <- so <- link``.

    A name is never linked to itself.
    """
    pairs: list[tuple[str, str]] = []
    if names.so_name != names.real_name:
        pairs.append((names.so_name, names.real_name))
    if names.link_name not in (names.so_name, names.real_name):
        pairs.append((names.link_name, names.so_name))
    return pairs
