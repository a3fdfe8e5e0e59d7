"""Shared test fixtures for makeweave."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import pytest
import yaml

if TYPE_CHECKING:
    from collections.abc import Callable
    from pathlib import Path


@pytest.fixture()
def make_project(tmp_path: Path) -> Callable[..., Path]:
    """Return a factory writing ``proj/makeweave.yml`` plus source files."""

    def _make(data: dict[str, Any], files: dict[str, str] | None = None) -> Path:
        root = tmp_path / "proj"
        root.mkdir(exist_ok=True)
        for rel, text in (files or {}).items():
            path = root / rel
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(text)
        project_file = root / "makeweave.yml"
        project_file.write_text(yaml.safe_dump({"version": 1, **data}, sort_keys=False))
        return project_file

    return _make


@pytest.fixture()
def mylib_project(make_project: Callable[..., Path]) -> Path:
    """A static library with two C sources and one header."""
    return make_project(
        {
            "name": "mylib",
            "directories": [
                {
                    "path": "",
                    "include_directories": ["src"],
                    "targets": [
                        {
                            "name": "mylib",
                            "kind": "static_library",
                            "sources": ["src/a.c", "src/b.c", "src/a.h"],
                        }
                    ],
                }
            ],
        },
        {
            "src/a.c": '#include "a.h"\nint a_value(void) { return A; }\n',
            "src/b.c": "int b_value(void) { return 2; }\n",
            "src/a.h": "#define A 1\n",
        },
    )


@pytest.fixture()
def app_project(make_project: Callable[..., Path]) -> Path:
    """An executable in the top directory linking a versioned library in ``lib``."""
    return make_project(
        {
            "name": "app",
            "directories": [
                {
                    "path": "",
                    "targets": [
                        {
                            "name": "app",
                            "kind": "executable",
                            "sources": ["main.c"],
                            "link_libraries": ["foo", "m"],
                        }
                    ],
                },
                {
                    "path": "lib",
                    "include_directories": ["."],
                    "targets": [
                        {
                            "name": "foo",
                            "kind": "shared_library",
                            "sources": ["foo.c"],
                            "properties": {"VERSION": "1.2", "SOVERSION": "1"},
                        }
                    ],
                },
            ],
        },
        {
            "main.c": "int main(void) { return 0; }\n",
            "lib/foo.c": '#include "foo.h"\nint foo(void) { return 0; }\n',
            "lib/foo.h": "int foo(void);\n",
        },
    )
