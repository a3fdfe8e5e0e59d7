"""Tests for makeweave.graph.naming: library and executable file names."""

from __future__ import annotations

from makeweave.graph.naming import (
    LibraryNames,
    get_base_target_name,
    get_executable_path,
    get_full_target_name,
    get_library_names,
    library_removal_names,
    library_symlink_chain,
)
from makeweave.model.definitions import Definitions
from makeweave.model.platform import get_preset
from makeweave.model.targets import Target, TargetKind


def _defs(platform: str = "unix") -> Definitions:
    return Definitions(get_preset(platform).definitions)


def _lib(kind: TargetKind = TargetKind.SHARED_LIBRARY, **props: object) -> Target:
    return Target(name="foo", kind=kind, properties=dict(props))


class TestFullNames:
    def test_static_library(self) -> None:
        target = _lib(TargetKind.STATIC_LIBRARY)
        assert get_full_target_name(target, _defs()) == "libfoo.a"
        assert get_base_target_name(target, _defs()) == "libfoo"

    def test_windows_names(self) -> None:
        assert get_full_target_name(_lib(), _defs("windows")) == "foo.dll"
        assert get_full_target_name(_lib(TargetKind.STATIC_LIBRARY), _defs("windows")) == "foo.lib"

    def test_prefix_suffix_properties(self) -> None:
        target = _lib(TargetKind.MODULE_LIBRARY, PREFIX="", SUFFIX=".plugin")
        assert get_full_target_name(target, _defs()) == "foo.plugin"

    def test_output_name(self) -> None:
        target = _lib(TargetKind.STATIC_LIBRARY, OUTPUT_NAME="bar")
        assert get_full_target_name(target, _defs()) == "libbar.a"


class TestLibraryNames:
    def test_unversioned(self) -> None:
        names = get_library_names(_lib(), _defs())
        assert names == LibraryNames("libfoo.so", "libfoo.so", "libfoo.so", "libfoo")
        assert not names.is_versioned

    def test_version_and_soversion(self) -> None:
        names = get_library_names(_lib(VERSION="1.2", SOVERSION="1"), _defs())
        assert names.link_name == "libfoo.so"
        assert names.so_name == "libfoo.so.1"
        assert names.real_name == "libfoo.so.1.2"
        assert names.is_versioned

    def test_soversion_defaults_to_version(self) -> None:
        names = get_library_names(_lib(VERSION="1.2"), _defs())
        assert names.so_name == "libfoo.so.1.2"
        assert names.real_name == "libfoo.so.1.2"

    def test_darwin_infix_style(self) -> None:
        names = get_library_names(_lib(VERSION="1.2", SOVERSION="1"), _defs("darwin"))
        assert names.link_name == "libfoo.dylib"
        assert names.so_name == "libfoo.1.dylib"
        assert names.real_name == "libfoo.1.2.dylib"

    def test_no_soname_flag_no_versioning(self) -> None:
        names = get_library_names(_lib(VERSION="1.2", SOVERSION="1"), _defs("windows"))
        assert names.so_name == names.real_name == names.link_name == "foo.dll"

    def test_static_library_ignores_version(self) -> None:
        target = _lib(TargetKind.STATIC_LIBRARY, VERSION="1.2")
        names = get_library_names(target, _defs())
        assert names.real_name == "libfoo.a"


class TestExecutablePath:
    def test_unix(self) -> None:
        target = Target(name="app", kind=TargetKind.EXECUTABLE)
        assert get_executable_path(target, _defs()) == "app"
        assert get_executable_path(target, _defs(), "bin/") == "bin/app"

    def test_windows(self) -> None:
        target = Target(name="app", kind=TargetKind.EXECUTABLE)
        assert get_executable_path(target, _defs("windows")) == "app.exe"

    def test_darwin_bundle(self) -> None:
        target = Target(name="app", kind=TargetKind.EXECUTABLE, properties={"MACOSX_BUNDLE": "ON"})
        assert get_executable_path(target, _defs("darwin")) == "app.app/Contents/MacOS/app"
        assert get_executable_path(target, _defs("unix")) == "app"


class TestSymlinkChain:
    def test_full_chain(self) -> None:
        names = get_library_names(_lib(VERSION="1.2", SOVERSION="1"), _defs())
        assert library_removal_names(names) == ["libfoo.so.1.2", "libfoo.so.1", "libfoo.so"]
        assert library_symlink_chain(names) == [
            ("libfoo.so.1", "libfoo.so.1.2"),
            ("libfoo.so", "libfoo.so.1"),
        ]

    def test_so_name_equals_real_name(self) -> None:
        names = get_library_names(_lib(VERSION="1.2"), _defs())
        assert library_removal_names(names) == ["libfoo.so.1.2", "libfoo.so"]
        assert library_symlink_chain(names) == [("libfoo.so", "libfoo.so.1.2")]

    def test_unversioned_has_no_links(self) -> None:
        names = get_library_names(_lib(), _defs())
        assert library_removal_names(names) == ["libfoo.so"]
        assert library_symlink_chain(names) == []
