"""Layered key/value configuration lookup and flag-string helpers."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Mapping

# Values treated as true by :func:`is_on` (compared upper-case).
_TRUE_VALUES: frozenset[str] = frozenset({"1", "ON", "YES", "TRUE", "Y"})


class ConfigurationError(Exception):
    """Raised when a build unit cannot be generated from the configuration."""


# ---------------------------------------------------------------------------
# Value helpers
# ---------------------------------------------------------------------------


def is_on(value: object) -> bool:
    """Return True for ``1``, ``ON``, ``YES``, ``TRUE``, ``Y`` or a non-zero number."""
    if value is None:
        return False
    if isinstance(value, bool):
        return value
    text = str(value).strip().upper()
    if text in _TRUE_VALUES:
        return True
    try:
        return float(text) != 0
    except ValueError:
        return False


def expand_list(value: str | None) -> list[str]:
    """Split a ``;``-separated list, dropping empty elements."""
    if not value:
        return []
    return [item for item in value.split(";") if item]


def append_flags(flags: str, new_flags: str | None) -> str:
    """Append *new_flags* to *flags*, separated by a single space."""
    if not new_flags:
        return flags
    if flags:
        return f"{flags} {new_flags}"
    return new_flags


def _to_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "ON" if value else "OFF"
    if isinstance(value, (list, tuple)):
        return ";".join(_to_text(item) for item in value)
    return str(value)


# ---------------------------------------------------------------------------
# Definitions
# ---------------------------------------------------------------------------


class Definitions:
    """Merged configuration lookup.

    Layers are applied in order, so later layers override earlier ones.
    All values are stored as strings; lists are joined with ``;``.
    """

    def __init__(self, *layers: Mapping[str, Any]) -> None:
        self._values: dict[str, str] = {}
        for layer in layers:
            self.update(layer)

    def update(self, layer: Mapping[str, Any]) -> None:
        for key, value in layer.items():
            self._values[str(key)] = _to_text(value)

    def __contains__(self, name: object) -> bool:
        return name in self._values

    def get(self, name: str) -> str | None:
        return self._values.get(name)

    def get_safe(self, name: str) -> str:
        """Return the value of *name*, or an empty string when unset."""
        return self._values.get(name, "")

    def get_required(self, name: str) -> str:
        """Return the value of *name*.

        Raises :class:`ConfigurationError` when the variable is unset or empty.
        """
        value = self._values.get(name)
        if not value:
            msg = f"Missing required definition '{name}'"
            raise ConfigurationError(msg)
        return value

    def is_on(self, name: str) -> bool:
        return is_on(self._values.get(name))

    # -- flags ---------------------------------------------------------------

    def add_config_variable_flags(self, flags: str, var: str) -> str:
        """Append *var* and its build-type variant ``<var>_<BUILD_TYPE>``."""
        flags = append_flags(flags, self.get(var))
        build_type = self.get_safe("BUILD_TYPE").upper()
        if build_type:
            flags = append_flags(flags, self.get(f"{var}_{build_type}"))
        return flags

    def add_language_flags(self, flags: str, language: str) -> str:
        return self.add_config_variable_flags(flags, f"{language}_FLAGS")

    def add_shared_flags(self, flags: str, language: str, *, shared: bool) -> str:
        """Append the position-independent flags needed by shared objects."""
        if shared:
            flags = append_flags(flags, self.get(f"SHARED_LIBRARY_{language}_FLAGS"))
        if self.is_on("BUILD_SHARED_LIBS"):
            flags = append_flags(flags, self.get(f"SHARED_BUILD_{language}_FLAGS"))
        return flags
