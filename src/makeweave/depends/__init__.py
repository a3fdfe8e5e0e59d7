"""Dependency tracking: include scanner, persisted records, integrity checks."""

from makeweave.depends.integrity import (
    IntegrityResult,
    check_dependencies,
    check_listed,
    parse_record_line,
    prepare_record,
)
from makeweave.depends.record import (
    DependencyRecord,
    mark_file_name,
    record_file_name,
    render_empty_record,
    write_empty_record,
    write_record,
)
from makeweave.depends.scanner import (
    SCAN_LANGUAGES,
    IncludeWalk,
    ScanError,
    ScanRequest,
    run_scan,
    scan_dependencies,
    scan_many,
    walk_includes,
)

__all__ = [
    "SCAN_LANGUAGES",
    "DependencyRecord",
    "IncludeWalk",
    "IntegrityResult",
    "ScanError",
    "ScanRequest",
    "check_dependencies",
    "check_listed",
    "mark_file_name",
    "parse_record_line",
    "prepare_record",
    "record_file_name",
    "render_empty_record",
    "run_scan",
    "scan_dependencies",
    "scan_many",
    "walk_includes",
    "write_empty_record",
    "write_record",
]
