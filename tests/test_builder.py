"""Tests for makeweave.graph.builder: build units and object naming."""

from __future__ import annotations

from typing import TYPE_CHECKING

from makeweave.graph.builder import (
    TargetGraphBuilder,
    aggregate_depends,
    aggregate_requires,
    make_safe_object_name,
)
from makeweave.graph.context import GenerationContext
from makeweave.model.loader import load_project
from makeweave.model.targets import TargetKind

if TYPE_CHECKING:
    from collections.abc import Callable
    from pathlib import Path


def _context(project_file: Path, index: int = 0) -> GenerationContext:
    project = load_project(project_file)
    return GenerationContext.for_directory(project, project.directories[index])


def _targets(*targets: dict[str, object], **extra: object) -> dict[str, object]:
    return {"directories": [{"path": "", "targets": list(targets)}], **extra}


class TestMakeSafeObjectName:
    def test_parent_dirs(self) -> None:
        assert make_safe_object_name("../gen/x.o") == "__/gen/x.o"

    def test_drive_and_absolute(self) -> None:
        assert make_safe_object_name("C:/x.o") == "C_/x.o"
        assert make_safe_object_name("/abs/p q.o") == "abs/p_q.o"


class TestBuildObjects:
    def test_mylib_objects(self, mylib_project: Path) -> None:
        context = _context(mylib_project)
        units = TargetGraphBuilder(context).build()

        assert len(units) == 1
        unit = units[0]
        assert unit.kind is TargetKind.STATIC_LIBRARY
        assert [obj.object_path for obj in unit.objects] == [
            "mylib.dir/src/a.o",
            "mylib.dir/src/b.o",
        ]
        assert [obj.language for obj in unit.objects] == ["C", "C"]
        assert unit.objects[0].rule_file == "mylib.dir/src/a.o.make"
        assert unit.objects[0].depends_marker == "mylib.dir/src/a.o.depends"
        assert unit.output_path == "libmylib.a"
        assert unit.link_depends == ()
        assert context.errors == []

    def test_ineligible_sources_skipped(self, make_project: Callable[..., Path]) -> None:
        target = {
            "name": "t",
            "kind": "executable",
            "sources": ["main.c", "gen.c", "table.c", "t.def"],
            "header_only": ["gen.c"],
            "custom_command": ["table.c"],
        }
        context = _context(make_project(_targets(target)))
        (unit,) = TargetGraphBuilder(context).build()
        assert [obj.object_path for obj in unit.objects] == ["t.dir/main.o"]

    def test_header_file_only_off_keeps_object(self, make_project: Callable[..., Path]) -> None:
        target = {
            "name": "t",
            "kind": "executable",
            "sources": ["a.c"],
            "source_properties": {"a.c": {"HEADER_FILE_ONLY": "OFF"}},
        }
        context = _context(make_project(_targets(target)))

        (unit,) = TargetGraphBuilder(context).build()

        assert [obj.object_path for obj in unit.objects] == ["t.dir/a.o"]
        assert context.errors == []

    def test_unknown_language_skips_object(self, make_project: Callable[..., Path]) -> None:
        target = {"name": "t", "kind": "executable", "sources": ["main.c", "solve.f90"]}
        context = _context(make_project(_targets(target)))

        units = TargetGraphBuilder(context).build()

        assert [obj.object_path for obj in units[0].objects] == ["t.dir/main.o"]
        assert len(context.errors) == 1
        assert "Cannot determine the language" in context.errors[0]
        assert "solve.f90" in context.errors[0]

    def test_colliding_names_are_unique(self, make_project: Callable[..., Path]) -> None:
        target = {"name": "t", "kind": "executable", "sources": ["a.c", "a.cpp", "a.cc"]}
        context = _context(make_project(_targets(target)))
        (unit,) = TargetGraphBuilder(context).build()
        assert [obj.object_path for obj in unit.objects] == [
            "t.dir/a.o",
            "t.dir/a_2.o",
            "t.dir/a_3.o",
        ]

    def test_source_outside_tree_uses_file_name(
        self, make_project: Callable[..., Path], tmp_path: Path
    ) -> None:
        outside = tmp_path / "elsewhere" / "gen.c"
        target = {"name": "t", "kind": "executable", "sources": [str(outside)]}
        context = _context(make_project(_targets(target)))
        (unit,) = TargetGraphBuilder(context).build()
        assert unit.objects[0].object_path == "t.dir/gen.o"

    def test_windows_object_extension(self, make_project: Callable[..., Path]) -> None:
        target = {"name": "t", "kind": "executable", "sources": ["main.c"]}
        context = _context(make_project(_targets(target, platform="windows")))
        (unit,) = TargetGraphBuilder(context).build()
        assert unit.objects[0].object_path == "t.dir/main.obj"
        assert unit.output_path == "t.exe"


class TestLinkerLanguage:
    def test_preferred_language_wins(self, make_project: Callable[..., Path]) -> None:
        target = {"name": "t", "kind": "executable", "sources": ["a.c", "b.cpp"]}
        (unit,) = TargetGraphBuilder(_context(make_project(_targets(target)))).build()
        assert unit.link_language == "CXX"

    def test_explicit_language(self, make_project: Callable[..., Path]) -> None:
        target = {
            "name": "t",
            "kind": "executable",
            "sources": ["a.c", "b.cpp"],
            "linker_language": "C",
        }
        (unit,) = TargetGraphBuilder(_context(make_project(_targets(target)))).build()
        assert unit.link_language == "C"

    def test_no_objects_skips_target(self, make_project: Callable[..., Path]) -> None:
        good = {"name": "good", "kind": "executable", "sources": ["main.c"]}
        empty = {"name": "empty", "kind": "static_library", "sources": ["only.h"]}
        context = _context(make_project(_targets(empty, good)))

        units = TargetGraphBuilder(context).build()

        assert [unit.name for unit in units] == ["good"]
        assert len(context.errors) == 1
        assert "Cannot determine the linker language of target 'empty'" in context.errors[0]

    def test_missing_link_template(self, make_project: Callable[..., Path]) -> None:
        target = {"name": "t", "kind": "static_library", "sources": ["a.c"]}
        project_file = make_project(
            _targets(target, definitions={"C_CREATE_STATIC_LIBRARY": ""})
        )
        context = _context(project_file)

        assert TargetGraphBuilder(context).build() == []
        assert "C_CREATE_STATIC_LIBRARY" in context.errors[0]


class TestOutputs:
    def test_library_output_path(self, make_project: Callable[..., Path]) -> None:
        target = {"name": "m", "kind": "static_library", "sources": ["a.c"]}
        context = _context(
            make_project(_targets(target, definitions={"LIBRARY_OUTPUT_PATH": "lib"}))
        )
        (unit,) = TargetGraphBuilder(context).build()
        assert unit.output_dir == "lib/"
        assert unit.output_path == "lib/libm.a"
        assert unit.library_path("libm.a") == "lib/libm.a"

    def test_executable_output_path(self, make_project: Callable[..., Path]) -> None:
        target = {"name": "t", "kind": "executable", "sources": ["main.c"]}
        context = _context(
            make_project(_targets(target, definitions={"EXECUTABLE_OUTPUT_PATH": "bin"}))
        )
        (unit,) = TargetGraphBuilder(context).build()
        assert unit.output_path == "bin/t"

    def test_versioned_library_depends_on_link_name(self, app_project: Path) -> None:
        (unit,) = TargetGraphBuilder(_context(app_project, 1)).build()
        assert unit.output_path == "libfoo.so"
        assert unit.library_names is not None
        assert unit.library_names.real_name == "libfoo.so.1.2"

    def test_static_library_has_no_link_depends(self, make_project: Callable[..., Path]) -> None:
        targets = (
            {"name": "base", "kind": "static_library", "sources": ["base.c"]},
            {
                "name": "top",
                "kind": "static_library",
                "sources": ["top.c"],
                "link_libraries": ["base"],
            },
        )
        units = TargetGraphBuilder(_context(make_project(_targets(*targets)))).build()
        assert units[1].link_depends == ()


class TestAggregates:
    def test_only_default_targets(self, make_project: Callable[..., Path]) -> None:
        targets = (
            {"name": "app", "kind": "executable", "sources": ["main.c"]},
            {"name": "extra", "kind": "executable", "sources": ["x.c"], "in_all": False},
        )
        units = TargetGraphBuilder(_context(make_project(_targets(*targets)))).build()

        assert aggregate_depends(units) == ["app.dir/app.depends"]
        assert aggregate_requires(units) == ["app.requires"]
