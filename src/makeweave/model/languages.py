"""Source-extension to language lookup."""

from __future__ import annotations

from typing import TYPE_CHECKING

from makeweave.model.definitions import expand_list

if TYPE_CHECKING:
    from makeweave.model.definitions import Definitions


class LanguageTable:
    """Maps source extensions to enabled languages.

    Built from ``ENABLED_LANGUAGES`` and the per-language
    ``<LANG>_SOURCE_FILE_EXTENSIONS`` / ``<LANG>_IGNORE_EXTENSIONS`` lists.
    Extensions are matched case-sensitively, so ``.C`` is C++ while ``.c``
    is C.
    """

    def __init__(self, definitions: Definitions) -> None:
        self._definitions = definitions
        self._by_extension: dict[str, str] = {}
        self._ignored: set[str] = set()
        self.languages: list[str] = expand_list(definitions.get("ENABLED_LANGUAGES"))
        for language in self.languages:
            for ext in expand_list(definitions.get(f"{language}_SOURCE_FILE_EXTENSIONS")):
                # First enabled language claiming an extension wins.
                self._by_extension.setdefault(ext, language)
            self._ignored.update(expand_list(definitions.get(f"{language}_IGNORE_EXTENSIONS")))

    def language_for(self, extension: str) -> str | None:
        return self._by_extension.get(extension)

    def is_ignored(self, extension: str) -> bool:
        return extension in self._ignored

    def output_extension(self, language: str) -> str:
        return self._definitions.get(f"{language}_OUTPUT_EXTENSION") or ".o"

    def is_preferred_linker(self, language: str) -> bool:
        return self._definitions.get_safe(f"{language}_LINKER_PREFERENCE") == "Preferred"
