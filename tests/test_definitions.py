"""Tests for makeweave.model.definitions and makeweave.model.languages."""

from __future__ import annotations

import pytest

from makeweave.model.definitions import (
    ConfigurationError,
    Definitions,
    append_flags,
    expand_list,
    is_on,
)
from makeweave.model.languages import LanguageTable
from makeweave.model.platform import get_preset


class TestValueHelpers:
    @pytest.mark.parametrize("value", ["ON", "on", "YES", "true", "Y", "1", "2.5", True])
    def test_is_on_true(self, value: object) -> None:
        assert is_on(value)

    @pytest.mark.parametrize("value", ["OFF", "0", "", None, "banana", False])
    def test_is_on_false(self, value: object) -> None:
        assert not is_on(value)

    def test_expand_list_drops_empty_items(self) -> None:
        assert expand_list("a;;b;") == ["a", "b"]
        assert expand_list(None) == []

    def test_append_flags(self) -> None:
        assert append_flags("", "-O2") == "-O2"
        assert append_flags("-g", "-O2") == "-g -O2"
        assert append_flags("-g", None) == "-g"


class TestDefinitions:
    def test_later_layer_wins(self) -> None:
        defs = Definitions({"A": "1", "B": "x"}, {"A": "2"})
        assert defs.get("A") == "2"
        assert defs.get("B") == "x"
        assert "B" in defs
        assert defs.get("C") is None

    def test_values_are_strings(self) -> None:
        defs = Definitions({"LIST": ["a", "b"], "FLAG": True, "NUM": 3})
        assert defs.get("LIST") == "a;b"
        assert defs.get("FLAG") == "ON"
        assert defs.get("NUM") == "3"

    def test_get_safe_unset(self) -> None:
        assert Definitions().get_safe("MISSING") == ""

    def test_get_required_missing(self) -> None:
        with pytest.raises(ConfigurationError, match="Missing required definition 'X'"):
            Definitions().get_required("X")

    def test_get_required_empty(self) -> None:
        with pytest.raises(ConfigurationError):
            Definitions({"X": ""}).get_required("X")

    def test_language_flags_with_build_type(self) -> None:
        defs = Definitions({"C_FLAGS": "-Wall", "C_FLAGS_DEBUG": "-g", "BUILD_TYPE": "Debug"})
        assert defs.add_language_flags("", "C") == "-Wall -g"

    def test_language_flags_without_build_type(self) -> None:
        defs = Definitions({"C_FLAGS": "-Wall", "C_FLAGS_DEBUG": "-g"})
        assert defs.add_language_flags("-I.", "C") == "-I. -Wall"

    def test_shared_flags(self) -> None:
        defs = Definitions({"SHARED_LIBRARY_C_FLAGS": "-fPIC"})
        assert defs.add_shared_flags("", "C", shared=True) == "-fPIC"
        assert defs.add_shared_flags("", "C", shared=False) == ""

    def test_shared_build_flags(self) -> None:
        defs = Definitions({"BUILD_SHARED_LIBS": "ON", "SHARED_BUILD_C_FLAGS": "-DSHARED"})
        assert defs.add_shared_flags("", "C", shared=False) == "-DSHARED"


class TestLanguageTable:
    def test_unix_extensions(self) -> None:
        table = LanguageTable(Definitions(get_preset("unix").definitions))
        assert table.languages == ["C", "CXX"]
        assert table.language_for("c") == "C"
        assert table.language_for("cpp") == "CXX"
        assert table.language_for("C") == "CXX"
        assert table.language_for("f90") is None

    def test_ignored_extensions(self) -> None:
        table = LanguageTable(Definitions(get_preset("unix").definitions))
        assert table.is_ignored("h")
        assert table.is_ignored("hpp")
        assert not table.is_ignored("c")

    def test_output_extension(self) -> None:
        assert LanguageTable(Definitions(get_preset("unix").definitions)).output_extension(
            "C"
        ) == ".o"
        assert LanguageTable(Definitions(get_preset("windows").definitions)).output_extension(
            "C"
        ) == ".obj"
        assert LanguageTable(Definitions()).output_extension("C") == ".o"

    def test_preferred_linker(self) -> None:
        table = LanguageTable(Definitions(get_preset("unix").definitions))
        assert table.is_preferred_linker("CXX")
        assert not table.is_preferred_linker("C")

    def test_first_language_claims_extension(self) -> None:
        defs = Definitions(
            {
                "ENABLED_LANGUAGES": "C;CXX",
                "C_SOURCE_FILE_EXTENSIONS": "c;inc",
                "CXX_SOURCE_FILE_EXTENSIONS": "cpp;inc",
            }
        )
        assert LanguageTable(defs).language_for("inc") == "C"
