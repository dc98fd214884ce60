"""
Models package for macrodown

Contains data structures and type definitions for scanning and parsing.
"""

from .state import ProgramState, pipeline
from .node import Node, Position, BAD_NODE_TYPE
from .macro import (
    MacroDefinition,
    MacroContext,
    TagMatch,
    BlockScanState,
    PropState,
    CharClass,
    PropertyMap,
    ScanOutcome,
    ScanResult,
    NO_MATCH,
)

__all__ = [
    "ProgramState",
    "pipeline",
    "Node",
    "Position",
    "BAD_NODE_TYPE",
    "MacroDefinition",
    "MacroContext",
    "TagMatch",
    "BlockScanState",
    "PropState",
    "CharClass",
    "PropertyMap",
    "ScanOutcome",
    "ScanResult",
    "NO_MATCH",
]
