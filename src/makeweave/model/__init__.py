"""Project model: targets, configuration lookup, platform presets, loader."""

from makeweave.model.definitions import (
    ConfigurationError,
    Definitions,
    append_flags,
    expand_list,
    is_on,
)
from makeweave.model.languages import LanguageTable
from makeweave.model.loader import ProjectError, load_cache, load_project
from makeweave.model.platform import PRESETS, PlatformPreset, get_preset
from makeweave.model.targets import (
    CACHE_FILE_NAME,
    PROJECT_FILE_NAME,
    Directory,
    Project,
    SourceFile,
    Target,
    TargetKind,
)

__all__ = [
    "CACHE_FILE_NAME",
    "PRESETS",
    "PROJECT_FILE_NAME",
    "ConfigurationError",
    "Definitions",
    "Directory",
    "LanguageTable",
    "PlatformPreset",
    "Project",
    "ProjectError",
    "SourceFile",
    "Target",
    "TargetKind",
    "append_flags",
    "expand_list",
    "get_preset",
    "is_on",
    "load_cache",
    "load_project",
]
