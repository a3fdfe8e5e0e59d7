"""Tests for makeweave.depends.scanner: transitive include scanning."""

from __future__ import annotations

import os
from typing import TYPE_CHECKING

import pytest

from makeweave.depends.scanner import (
    ScanError,
    ScanRequest,
    run_scan,
    scan_dependencies,
    scan_many,
    walk_includes,
)

if TYPE_CHECKING:
    from pathlib import Path


@pytest.fixture()
def tree(tmp_path: Path) -> Path:
    """main.c -> a.h <-> b.h (a cycle), plus an include that cannot be found."""
    src = tmp_path / "src"
    inc = tmp_path / "inc"
    src.mkdir()
    inc.mkdir()
    (src / "main.c").write_text(
        '#include "a.h"\n'
        "  #  include <b.h>\n"
        '#include "missing.h"\n'
        '// #include "commented.h"\n'
        "int main(void) { return 0; }\n"
    )
    (inc / "a.h").write_text('#include "b.h"\n')
    (inc / "b.h").write_text('#include "a.h"\n')
    (inc / "commented.h").write_text("")
    return tmp_path


class TestWalkIncludes:
    def test_cycle_terminates(self, tree: Path) -> None:
        walk = walk_includes(str(tree / "src" / "main.c"), [str(tree / "inc")])
        assert walk.dependencies == {str(tree / "inc" / "a.h"), str(tree / "inc" / "b.h")}
        assert walk.scanned[0] == str(tree / "src" / "main.c")
        assert len(walk.scanned) == 3

    def test_unresolved_dropped(self, tree: Path) -> None:
        walk = walk_includes(str(tree / "src" / "main.c"), [str(tree / "inc")])
        assert walk.unresolved == ["missing.h"]

    def test_search_path_order(self, tree: Path) -> None:
        shadow = tree / "shadow"
        shadow.mkdir()
        (shadow / "a.h").write_text("")
        walk = walk_includes(str(tree / "src" / "main.c"), [str(shadow), str(tree / "inc")])
        assert str(shadow / "a.h") in walk.dependencies
        assert str(tree / "inc" / "a.h") not in walk.dependencies


class TestScanDependencies:
    def test_record_is_sorted(self, tree: Path) -> None:
        record = scan_dependencies("main.o", str(tree / "src" / "main.c"), [str(tree / "inc")])
        assert record.owner == "main.o"
        assert record.dependees == (str(tree / "inc" / "a.h"), str(tree / "inc" / "b.h"))

    def test_source_not_a_dependee(self, tree: Path) -> None:
        record = scan_dependencies("main.o", str(tree / "src" / "main.c"), [str(tree / "inc")])
        assert str(tree / "src" / "main.c") not in record.dependees


class TestRunScan:
    def test_writes_record_and_mark(self, tree: Path) -> None:
        request = ScanRequest("C", "main.o", "src/main.c", ("inc",))
        run_scan(request, tree)

        record = (tree / "main.o.depends.make").read_text()
        assert f"main.o: {tree / 'inc' / 'a.h'}\n" in record
        assert f"main.o.depends: {tree / 'inc' / 'b.h'}\n" in record
        assert (tree / "main.o.depends").read_text() == "Dependencies updated for main.o\n"

    def test_rescan_leaves_record_untouched(self, tree: Path) -> None:
        request = ScanRequest("CXX", "main.o", "src/main.c", ("inc",))
        run_scan(request, tree)
        record_path = tree / "main.o.depends.make"
        before = record_path.read_text()
        os.utime(record_path, (1_000_000, 1_000_000))

        run_scan(request, tree)

        assert record_path.read_text() == before
        assert record_path.stat().st_mtime == 1_000_000

    def test_unsupported_language(self, tree: Path) -> None:
        request = ScanRequest("Fortran", "main.o", "src/main.c")
        with pytest.raises(ScanError, match="Fortran"):
            run_scan(request, tree)
        assert not (tree / "main.o.depends.make").exists()


class TestScanMany:
    def test_parallel_results_in_request_order(self, tree: Path) -> None:
        for name in ("one", "two", "three"):
            (tree / "src" / f"{name}.c").write_text('#include "a.h"\n')
        requests = [
            ScanRequest("C", f"{name}.o", f"src/{name}.c", ("inc",))
            for name in ("one", "two", "three")
        ]

        records = scan_many(requests, tree, workers=3)

        assert [r.owner for r in records] == ["one.o", "two.o", "three.o"]
        assert all((tree / f"{name}.o.depends").exists() for name in ("one", "two", "three"))

    def test_failure_reraised(self, tree: Path) -> None:
        requests = [
            ScanRequest("C", "main.o", "src/main.c", ("inc",)),
            ScanRequest("Java", "Main.class", "src/Main.java"),
        ]
        with pytest.raises(ScanError):
            scan_many(requests, tree, workers=2)
        assert (tree / "main.o.depends").exists()
