"""Infrastructure: atomic file installs, path helpers, build-system check.

Note: ``makeweave.infrastructure.check`` is not re-exported here because it
depends on the dependency-tracking package, which itself imports
:mod:`makeweave.infrastructure.fileio`.  Import it directly::

    from makeweave.infrastructure.check import check_build_system
"""

from makeweave.infrastructure.fileio import (
    collapse_full_path,
    is_full_path,
    relative_to_dir,
    remove_file,
    replace_symlink,
    write_atomic,
    write_if_changed,
)

__all__ = [
    "collapse_full_path",
    "is_full_path",
    "relative_to_dir",
    "remove_file",
    "replace_symlink",
    "write_atomic",
    "write_if_changed",
]
