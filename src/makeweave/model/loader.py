"""Project file parser: reads ``makeweave.yml`` and the build-tree cache.

Validates the schema and returns a :class:`~makeweave.model.targets.Project`.
Schema problems raise :class:`ProjectError` naming the offending key.
"""

from __future__ import annotations

import logging
import shutil
import sys
from pathlib import Path
from typing import Any

import yaml

from makeweave.model.definitions import Definitions, is_on
from makeweave.model.platform import PRESETS
from makeweave.model.targets import (
    CACHE_FILE_NAME,
    Directory,
    Project,
    SourceFile,
    Target,
    TargetKind,
)

logger = logging.getLogger(__name__)

SUPPORTED_SCHEMA_VERSIONS: frozenset[int] = frozenset({1})
_VALID_KINDS: frozenset[str] = frozenset(kind.value for kind in TargetKind)


class ProjectError(ValueError):
    """Raised when the project or cache file is malformed."""


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _read_mapping(path: Path, label: str) -> dict[str, Any]:
    try:
        with path.open("r", encoding="utf-8") as fh:
            data = yaml.safe_load(fh)
    except yaml.YAMLError as exc:
        msg = f"{label}: invalid YAML: {exc}"
        raise ProjectError(msg) from exc
    if data is None:
        return {}
    if not isinstance(data, dict):
        msg = f"{label} must be a YAML mapping"
        raise ProjectError(msg)
    return data


def _string_list(value: Any, where: str) -> list[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if not isinstance(value, list) or not all(isinstance(v, (str, int, float)) for v in value):
        msg = f"{where} must be a list of strings"
        raise ProjectError(msg)
    return [str(v) for v in value]


def _mapping(value: Any, where: str) -> dict[str, Any]:
    if value is None:
        return {}
    if not isinstance(value, dict):
        msg = f"{where} must be a mapping"
        raise ProjectError(msg)
    return value


def default_tool_command() -> str:
    """Return the command line that re-invokes this tool from generated rules."""
    exe = shutil.which("makeweave")
    if exe:
        return exe
    return f"{sys.executable} -m makeweave"


def load_cache(path: Path) -> dict[str, Any]:
    """Read the build-tree cache file; a missing file yields no overrides."""
    if not path.is_file():
        return {}
    return _read_mapping(path, CACHE_FILE_NAME)


# ---------------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------------


def _parse_target(data: Any, label: str, source_dir: Path) -> Target:
    if not isinstance(data, dict):
        msg = f"{label} must be a mapping"
        raise ProjectError(msg)

    name = data.get("name")
    if not isinstance(name, str) or not name.strip():
        msg = f"{label} missing required 'name' field"
        raise ProjectError(msg)

    kind_raw = data.get("kind")
    if kind_raw not in _VALID_KINDS:
        msg = (
            f"{label} ('{name}') has invalid kind '{kind_raw}', "
            f"must be one of {sorted(_VALID_KINDS)}"
        )
        raise ProjectError(msg)
    kind = TargetKind(kind_raw)

    header_only = set(_string_list(data.get("header_only"), f"{label}.header_only"))
    custom = set(_string_list(data.get("custom_command"), f"{label}.custom_command"))
    source_props = _mapping(data.get("source_properties"), f"{label}.source_properties")

    sources: list[SourceFile] = []
    for rel in _string_list(data.get("sources"), f"{label}.sources"):
        props = _mapping(source_props.get(rel), f"{label}.source_properties.{rel}")
        sources.append(
            SourceFile(
                path=(source_dir / rel).resolve() if not Path(rel).is_absolute() else Path(rel),
                properties=dict(props),
                header_only=rel in header_only or is_on(props.get("HEADER_FILE_ONLY")),
                custom_command=rel in custom,
            )
        )

    linker_language = data.get("linker_language")
    if linker_language is not None and not isinstance(linker_language, str):
        msg = f"{label}.linker_language must be a string"
        raise ProjectError(msg)

    return Target(
        name=name,
        kind=kind,
        sources=tuple(sources),
        link_libraries=tuple(_string_list(data.get("link_libraries"), f"{label}.link_libraries")),
        linker_language=linker_language,
        properties=dict(_mapping(data.get("properties"), f"{label}.properties")),
        in_all=bool(data.get("in_all", True)),
    )


def _parse_directory(
    data: Any, idx: int, source_root: Path, binary_root: Path
) -> Directory:
    label = f"makeweave.yml: directory at index {idx}"
    if not isinstance(data, dict):
        msg = f"{label} must be a mapping"
        raise ProjectError(msg)

    rel = str(data.get("path", "") or "").strip("/")
    if rel == ".":
        rel = ""
    source_dir = (source_root / rel).resolve() if rel else source_root
    binary_dir = (binary_root / rel) if rel else binary_root

    include_dirs = tuple(
        Path(inc) if Path(inc).is_absolute() else (source_dir / inc).resolve()
        for inc in _string_list(data.get("include_directories"), f"{label}.include_directories")
    )

    targets_data = data.get("targets") or []
    if not isinstance(targets_data, list):
        msg = f"{label}: 'targets' must be a list"
        raise ProjectError(msg)

    targets = tuple(
        _parse_target(t, f"{label}, target at index {t_idx}", source_dir)
        for t_idx, t in enumerate(targets_data)
    )
    return Directory(
        path=rel,
        source_dir=source_dir,
        binary_dir=binary_dir,
        include_directories=include_dirs,
        targets=targets,
    )


def load_project(project_file: Path, binary_dir: Path | None = None) -> Project:
    """Parse *project_file* and return a validated :class:`Project`.

    *binary_dir* overrides the file's ``binary_dir`` key.  Definitions are
    layered: platform preset, then ``definitions:``, then the cache file in
    the top binary directory.

    Raises :class:`ProjectError` on schema errors.
    """
    project_file = project_file.resolve()
    data = _read_mapping(project_file, "makeweave.yml")

    version = data.get("version")
    if version is None:
        msg = "makeweave.yml: missing required 'version' field"
        raise ProjectError(msg)
    if version not in SUPPORTED_SCHEMA_VERSIONS:
        expected = sorted(SUPPORTED_SCHEMA_VERSIONS)
        msg = f"makeweave.yml: unsupported version {version}, expected one of {expected}"
        raise ProjectError(msg)

    platform = str(data.get("platform", "unix"))
    if platform not in PRESETS:
        msg = f"makeweave.yml: unknown platform '{platform}', must be one of {sorted(PRESETS)}"
        raise ProjectError(msg)

    source_root = project_file.parent
    if binary_dir is None:
        binary_dir = source_root / str(data.get("binary_dir", "build"))
    binary_root = binary_dir.resolve()

    directories_data = data.get("directories") or []
    if not isinstance(directories_data, list):
        msg = "makeweave.yml: 'directories' must be a list"
        raise ProjectError(msg)

    directories: list[Directory] = []
    seen_paths: set[str] = set()
    seen_targets: set[str] = set()
    for idx, dir_data in enumerate(directories_data):
        directory = _parse_directory(dir_data, idx, source_root, binary_root)
        if directory.path in seen_paths:
            msg = f"makeweave.yml: Duplicate directory '{directory.path or '.'}'"
            raise ProjectError(msg)
        seen_paths.add(directory.path)
        for target in directory.targets:
            if target.name in seen_targets:
                msg = f"makeweave.yml: Duplicate target name '{target.name}'"
                raise ProjectError(msg)
            seen_targets.add(target.name)
        directories.append(directory)

    cache_path = binary_root / CACHE_FILE_NAME
    cache = load_cache(cache_path)
    definitions = Definitions(
        PRESETS[platform].definitions,
        {"MAKEWEAVE_COMMAND": default_tool_command()},
        _mapping(data.get("definitions"), "makeweave.yml: definitions"),
        cache,
    )

    list_files = [project_file]
    if cache_path.is_file():
        list_files.append(cache_path)

    logger.debug(
        "Loaded project %s: %d directories, %d targets",
        project_file,
        len(directories),
        len(seen_targets),
    )
    return Project(
        name=str(data.get("name") or source_root.name),
        project_file=project_file,
        source_dir=source_root,
        binary_dir=binary_root,
        platform=platform,
        definitions=definitions,
        directories=directories,
        list_files=list_files,
    )
