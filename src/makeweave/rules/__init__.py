"""Rule generation: command lines and rule-file rendering."""

from makeweave.rules.commands import (
    RuleVariables,
    compile_commands,
    compile_flags,
    link_commands,
    link_libraries,
    make_c_identifier,
    scan_command,
)
from makeweave.rules.writer import DIVIDER, MakeRule, RuleFileWriter, render_rule

__all__ = [
    "DIVIDER",
    "MakeRule",
    "RuleFileWriter",
    "RuleVariables",
    "compile_commands",
    "compile_flags",
    "link_commands",
    "link_libraries",
    "make_c_identifier",
    "render_rule",
    "scan_command",
]
