"""Integration tests for makeweave.generator: full generation passes."""

from __future__ import annotations

from typing import TYPE_CHECKING

from makeweave.depends.record import render_empty_record
from makeweave.generator import generate, generate_directory
from makeweave.model.loader import load_project

if TYPE_CHECKING:
    from collections.abc import Callable
    from pathlib import Path


def _snapshot(root: Path) -> dict[str, bytes]:
    return {
        path.relative_to(root).as_posix(): path.read_bytes()
        for path in sorted(root.rglob("*"))
        if path.is_file()
    }


class TestGenerateMylib:
    def test_files_written(self, mylib_project: Path) -> None:
        project = load_project(mylib_project)

        result = generate(project)

        assert result.ok, result.errors
        assert result.directories == 1
        assert result.targets == 1
        assert result.objects == 2
        assert result.records_reset == 3
        binary = project.binary_dir
        for rel in (
            "Makefile2",
            "Makefile2.state.yml",
            "mylib.dir/mylib.make",
            "mylib.dir/src/a.o.make",
            "mylib.dir/src/b.o.make",
        ):
            assert (binary / rel).is_file(), rel
        assert (binary / "mylib.dir/src/a.o.depends.make").read_text() == render_empty_record(
            "mylib.dir/src/a.o"
        )
        assert (binary / "mylib.dir/mylib.depends.make").read_text() == render_empty_record(
            "mylib.dir/mylib"
        )

    def test_second_pass_is_byte_identical(self, mylib_project: Path) -> None:
        project = load_project(mylib_project)
        generate(project)
        before = _snapshot(project.binary_dir)

        result = generate(load_project(mylib_project))

        assert _snapshot(project.binary_dir) == before
        assert result.files_written == 0
        assert result.files_unchanged == 5
        assert result.records_reset == 0

    def test_scan_depends(self, mylib_project: Path) -> None:
        project = load_project(mylib_project)

        result = generate(project, scan_depends=True, jobs=2)

        assert result.ok, result.errors
        assert result.scanned == 2
        header = (mylib_project.parent / "src" / "a.h").resolve()
        record = (project.binary_dir / "mylib.dir/src/a.o.depends.make").read_text()
        assert f"mylib.dir/src/a.o: {header}\n" in record
        assert (project.binary_dir / "mylib.dir/src/a.o.depends").exists()


class TestGenerateTwoDirectories:
    def test_app_and_library(self, app_project: Path) -> None:
        project = load_project(app_project)

        result = generate(project)

        assert result.ok, result.errors
        assert result.directories == 2
        assert result.targets == 2
        assert result.remote_targets == 1
        assert (project.binary_dir / "lib" / "Makefile2").is_file()
        assert (project.binary_dir / "lib" / "foo.dir" / "foo.make").is_file()

    def test_generate_directory_context(self, app_project: Path) -> None:
        project = load_project(app_project)

        context = generate_directory(project, project.directories[0])

        assert list(context.remote_targets) == ["foo"]
        assert context.check_depend_files == {"app.dir/main.o"}


class TestErrorIsolation:
    def test_bad_target_does_not_stop_pass(self, make_project: Callable[..., Path]) -> None:
        project_file = make_project(
            {
                "directories": [
                    {
                        "targets": [
                            {"name": "broken", "kind": "executable", "sources": ["x.f90"]},
                            {"name": "good", "kind": "executable", "sources": ["main.c"]},
                        ]
                    }
                ]
            }
        )
        project = load_project(project_file)

        result = generate(project)

        assert not result.ok
        assert len(result.errors) == 2
        assert all(err.startswith(".: ") for err in result.errors)
        assert result.targets == 1
        assert (project.binary_dir / "good.dir" / "good.make").is_file()
        assert not (project.binary_dir / "broken.dir").exists()
        assert "good.dir/good.make" in (project.binary_dir / "Makefile2").read_text()

    def test_unwritable_target_rule_file_not_included(
        self, make_project: Callable[..., Path]
    ) -> None:
        project_file = make_project(
            {
                "directories": [
                    {
                        "targets": [
                            {"name": "good", "kind": "executable", "sources": ["main.c"]},
                            {"name": "bad", "kind": "executable", "sources": ["bad.c"]},
                        ]
                    }
                ]
            }
        )
        project = load_project(project_file)
        (project.binary_dir / "bad.dir" / "bad.make").mkdir(parents=True)

        result = generate(project)

        assert len(result.errors) == 1
        assert "target 'bad'" in result.errors[0]
        assert result.targets == 1
        makefile = (project.binary_dir / "Makefile2").read_text()
        assert "include good.dir/good.make\n" in makefile
        assert "bad.dir/bad.make" not in makefile
        assert "bad.dir/bad.depends" not in makefile
        assert "bad.requires" not in makefile

    def test_unwritable_object_rule_file_not_included(self, mylib_project: Path) -> None:
        project = load_project(mylib_project)
        binary = project.binary_dir
        (binary / "mylib.dir" / "src" / "b.o.make").mkdir(parents=True)

        result = generate(project)

        assert len(result.errors) == 1
        assert "mylib.dir/src/b.o" in result.errors[0]
        assert result.objects == 1
        assert result.targets == 1
        rules = (binary / "mylib.dir" / "mylib.make").read_text()
        assert "include mylib.dir/src/a.o.make\n" in rules
        assert "mylib.dir/src/b.o" not in rules
        assert "include mylib.dir/mylib.make\n" in (binary / "Makefile2").read_text()
