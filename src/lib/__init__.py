"""
macrodown - Bracket macros for line-oriented documents

Core: property parser, tag scanner, macro registry and diagnostics,
plus the host parser and HTML compiler they plug into.
"""

__version__ = "1.0.0"

from .props import props_parse
from .registry import MacroRegistry, DuplicateMacroError, InvalidHandlerError, RegistryFrozenError
from .scanner import TagScanner
from .parser import Parser
from .diagnostics import Report, Message, diagnostics_collect
from .compiler import Compiler
from .macros import builtins_register, macroFile_load, MacroFileError
from .log import LOG, state_connectToLogger

__all__ = [
    "props_parse",
    "MacroRegistry",
    "DuplicateMacroError",
    "InvalidHandlerError",
    "RegistryFrozenError",
    "TagScanner",
    "Parser",
    "Report",
    "Message",
    "diagnostics_collect",
    "Compiler",
    "builtins_register",
    "macroFile_load",
    "MacroFileError",
    "LOG",
    "state_connectToLogger",
    "__version__",
]
