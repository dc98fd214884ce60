"""
macrodown - Bracket macros for line-oriented documents

Extends a markdown-like parser with [name props]content[/name] block tags and
[name props] inline tags mapped to caller-supplied handlers.
"""

__version__ = "1.0.0"

from .lib import (
    Parser,
    Compiler,
    MacroRegistry,
    TagScanner,
    Report,
    props_parse,
    diagnostics_collect,
    builtins_register,
    LOG,
    state_connectToLogger,
)
from .models import Node, Position

__all__ = [
    "Parser",
    "Compiler",
    "MacroRegistry",
    "TagScanner",
    "Report",
    "props_parse",
    "diagnostics_collect",
    "builtins_register",
    "Node",
    "Position",
    "LOG",
    "state_connectToLogger",
    "__version__",
]
