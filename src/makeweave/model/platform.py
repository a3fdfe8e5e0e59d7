"""Platform presets: default definitions for each supported host platform.

Each preset supplies the language extension tables, object and library
naming conventions, command templates and rule-file dialect.  Project
``definitions:`` and the build-tree cache are layered on top.
"""

from __future__ import annotations

from dataclasses import dataclass, field

# ---------------------------------------------------------------------------
# Shared tables
# ---------------------------------------------------------------------------

_LANGUAGE_TABLES: dict[str, str] = {
    "ENABLED_LANGUAGES": "C;CXX",
    "C_SOURCE_FILE_EXTENSIONS": "c",
    "CXX_SOURCE_FILE_EXTENSIONS": "C;M;c++;cc;cpp;cxx;m;mm",
    "C_IGNORE_EXTENSIONS": "h;H;o;O;obj;OBJ;def;DEF;rc;RC",
    "CXX_IGNORE_EXTENSIONS": "inl;h;hh;hpp;hxx;HPP;H;o;O;obj;OBJ;def;DEF;rc;RC",
    "C_LINKER_PREFERENCE": "None",
    "CXX_LINKER_PREFERENCE": "Preferred",
}

_UNIX_COMMON: dict[str, str] = {
    **_LANGUAGE_TABLES,
    "RULE_DIALECT": "unix",
    "MAKE_PROGRAM": "$(MAKE)",
    "C_OUTPUT_EXTENSION": ".o",
    "CXX_OUTPUT_EXTENSION": ".o",
    "INCLUDE_FLAG_C": "-I",
    "INCLUDE_FLAG_CXX": "-I",
    "LINK_LIBRARY_FLAG": "-l",
    "STATIC_LIBRARY_PREFIX": "lib",
    "STATIC_LIBRARY_SUFFIX": ".a",
    "SHARED_LIBRARY_PREFIX": "lib",
    "SHARED_MODULE_PREFIX": "lib",
    "EXECUTABLE_SUFFIX": "",
    "SHARED_LIBRARY_C_FLAGS": "-fPIC",
    "SHARED_LIBRARY_CXX_FLAGS": "-fPIC",
    "C_COMPILE_OBJECT": "cc <FLAGS> -o <OBJECT> -c <SOURCE>",
    "CXX_COMPILE_OBJECT": "c++ <FLAGS> -o <OBJECT> -c <SOURCE>",
    "C_LINK_EXECUTABLE": "cc <FLAGS> <LINK_FLAGS> <OBJECTS> -o <TARGET> <LINK_LIBRARIES>",
    "CXX_LINK_EXECUTABLE": "c++ <FLAGS> <LINK_FLAGS> <OBJECTS> -o <TARGET> <LINK_LIBRARIES>",
    "C_CREATE_STATIC_LIBRARY": "ar cr <TARGET> <LINK_FLAGS> <OBJECTS>;ranlib <TARGET>",
    "CXX_CREATE_STATIC_LIBRARY": "ar cr <TARGET> <LINK_FLAGS> <OBJECTS>;ranlib <TARGET>",
}


@dataclass(frozen=True)
class PlatformPreset:
    """Named set of default definitions."""

    name: str
    description: str
    definitions: dict[str, str] = field(default_factory=dict)


# ---------------------------------------------------------------------------
# Built-in presets
# ---------------------------------------------------------------------------

UNIX = PlatformPreset(
    name="unix",
    description="ELF toolchains driven by a POSIX make and /bin/sh.",
    definitions={
        **_UNIX_COMMON,
        "SHARED_LIBRARY_SUFFIX": ".so",
        "SHARED_MODULE_SUFFIX": ".so",
        "SHARED_LIBRARY_SONAME_C_FLAG": "-Wl,-soname,",
        "SHARED_LIBRARY_SONAME_CXX_FLAG": "-Wl,-soname,",
        "VERSIONED_NAME_STYLE": "suffix",
        "C_CREATE_SHARED_LIBRARY": (
            "cc <LINK_FLAGS> -shared -Wl,-soname,<TARGET_SONAME> -o <TARGET> <OBJECTS>"
            " <LINK_LIBRARIES>"
        ),
        "CXX_CREATE_SHARED_LIBRARY": (
            "c++ <LINK_FLAGS> -shared -Wl,-soname,<TARGET_SONAME> -o <TARGET> <OBJECTS>"
            " <LINK_LIBRARIES>"
        ),
        "C_CREATE_SHARED_MODULE": "cc <LINK_FLAGS> -shared -o <TARGET> <OBJECTS> <LINK_LIBRARIES>",
        "CXX_CREATE_SHARED_MODULE": (
            "c++ <LINK_FLAGS> -shared -o <TARGET> <OBJECTS> <LINK_LIBRARIES>"
        ),
    },
)

DARWIN = PlatformPreset(
    name="darwin",
    description="Mach-O toolchains: versioned dylibs and application bundles.",
    definitions={
        **_UNIX_COMMON,
        "APPLE": "1",
        "SHARED_LIBRARY_SUFFIX": ".dylib",
        "SHARED_MODULE_SUFFIX": ".so",
        "SHARED_LIBRARY_SONAME_C_FLAG": "-install_name ",
        "SHARED_LIBRARY_SONAME_CXX_FLAG": "-install_name ",
        "VERSIONED_NAME_STYLE": "infix",
        "C_CREATE_SHARED_LIBRARY": (
            "cc <LINK_FLAGS> -dynamiclib -install_name <TARGET_SONAME> -o <TARGET> <OBJECTS>"
            " <LINK_LIBRARIES>"
        ),
        "CXX_CREATE_SHARED_LIBRARY": (
            "c++ <LINK_FLAGS> -dynamiclib -install_name <TARGET_SONAME> -o <TARGET> <OBJECTS>"
            " <LINK_LIBRARIES>"
        ),
        "C_CREATE_SHARED_MODULE": (
            "cc <LINK_FLAGS> -bundle -o <TARGET> <OBJECTS> <LINK_LIBRARIES>"
        ),
        "CXX_CREATE_SHARED_MODULE": (
            "c++ <LINK_FLAGS> -bundle -o <TARGET> <OBJECTS> <LINK_LIBRARIES>"
        ),
    },
)

WINDOWS = PlatformPreset(
    name="windows",
    description="MSVC toolchain driven by nmake.",
    definitions={
        **_LANGUAGE_TABLES,
        "WIN32": "1",
        "RULE_DIALECT": "nmake",
        "MAKE_PROGRAM": "$(MAKE)",
        "MAKE_SILENT_FLAG": "/nologo",
        "PASS_MAKEFLAGS": "ON",
        "C_OUTPUT_EXTENSION": ".obj",
        "CXX_OUTPUT_EXTENSION": ".obj",
        "INCLUDE_FLAG_C": "-I",
        "INCLUDE_FLAG_CXX": "-I",
        "LINK_LIBRARY_FLAG": "",
        "LINK_LIBRARY_SUFFIX": ".lib",
        "LINK_DEF_FILE_FLAG": "/DEF:",
        "STATIC_LIBRARY_PREFIX": "",
        "STATIC_LIBRARY_SUFFIX": ".lib",
        "SHARED_LIBRARY_PREFIX": "",
        "SHARED_LIBRARY_SUFFIX": ".dll",
        "SHARED_MODULE_PREFIX": "",
        "SHARED_MODULE_SUFFIX": ".dll",
        "EXECUTABLE_SUFFIX": ".exe",
        "CREATE_WIN32_EXE": "/subsystem:windows",
        "CREATE_CONSOLE_EXE": "/subsystem:console",
        "C_COMPILE_OBJECT": "cl /nologo <FLAGS> /Fo<OBJECT> -c <SOURCE>",
        "CXX_COMPILE_OBJECT": "cl /nologo /TP <FLAGS> /Fo<OBJECT> -c <SOURCE>",
        "C_LINK_EXECUTABLE": (
            "link /nologo <OBJECTS> /out:<TARGET> <LINK_FLAGS> <LINK_LIBRARIES>"
        ),
        "CXX_LINK_EXECUTABLE": (
            "link /nologo <OBJECTS> /out:<TARGET> <LINK_FLAGS> <LINK_LIBRARIES>"
        ),
        "C_CREATE_STATIC_LIBRARY": "lib /nologo <LINK_FLAGS> /out:<TARGET> <OBJECTS>",
        "CXX_CREATE_STATIC_LIBRARY": "lib /nologo <LINK_FLAGS> /out:<TARGET> <OBJECTS>",
        "C_CREATE_SHARED_LIBRARY": (
            "link /nologo /dll /out:<TARGET> <LINK_FLAGS> <OBJECTS> <LINK_LIBRARIES>"
        ),
        "CXX_CREATE_SHARED_LIBRARY": (
            "link /nologo /dll /out:<TARGET> <LINK_FLAGS> <OBJECTS> <LINK_LIBRARIES>"
        ),
        "C_CREATE_SHARED_MODULE": (
            "link /nologo /dll /out:<TARGET> <LINK_FLAGS> <OBJECTS> <LINK_LIBRARIES>"
        ),
        "CXX_CREATE_SHARED_MODULE": (
            "link /nologo /dll /out:<TARGET> <LINK_FLAGS> <OBJECTS> <LINK_LIBRARIES>"
        ),
    },
)

PRESETS: dict[str, PlatformPreset] = {
    "unix": UNIX,
    "darwin": DARWIN,
    "windows": WINDOWS,
}


def get_preset(name: str) -> PlatformPreset:
    """Return the preset called *name*.

    Raises ``KeyError`` for an unknown platform.
    """
    return PRESETS[name]
