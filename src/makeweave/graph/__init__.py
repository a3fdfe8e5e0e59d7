"""Build graph: naming policy, build units, cross-directory references."""

from makeweave.graph.builder import (
    ALL_BUILD,
    ALL_DEPENDS,
    ObjectUnit,
    TargetGraphBuilder,
    TargetUnit,
    aggregate_depends,
    aggregate_requires,
    make_safe_object_name,
)
from makeweave.graph.context import GenerationContext, RuleDialect
from makeweave.graph.naming import (
    LibraryNames,
    get_base_target_name,
    get_executable_path,
    get_full_target_name,
    get_library_names,
    library_removal_names,
    library_symlink_chain,
)
from makeweave.graph.remote import (
    CrossDirectoryCoordinator,
    JumpStrategy,
    RemoteTargetRef,
    jump_and_build_commands,
)

__all__ = [
    "ALL_BUILD",
    "ALL_DEPENDS",
    "CrossDirectoryCoordinator",
    "GenerationContext",
    "JumpStrategy",
    "LibraryNames",
    "ObjectUnit",
    "RemoteTargetRef",
    "RuleDialect",
    "TargetGraphBuilder",
    "TargetUnit",
    "aggregate_depends",
    "aggregate_requires",
    "get_base_target_name",
    "get_executable_path",
    "get_full_target_name",
    "get_library_names",
    "jump_and_build_commands",
    "library_removal_names",
    "library_symlink_chain",
    "make_safe_object_name",
]
