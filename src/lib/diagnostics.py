"""
Diagnostics for parsed documents

Unclosed block macros are not raised as exceptions while parsing. The scanner
leaves a BadMacroNode in the tree instead, and parsing carries on after the
opening tag. diagnostics_collect() walks the finished tree and reports every
such node, with its position, as a fatal message. Callers decide how strict
to be with `report.fatal`.
"""

from dataclasses import dataclass, field
from typing import Iterator, List, Optional

from ..models.node import Node, Position
from .log import LOG


@dataclass(frozen=True)
class Message:
    """
    One diagnostic

    Attributes:
        text: Human-readable message (e.g. "Unclosed macro: note")
        position: Source position the message refers to
        fatal: Whether the problem should fail document processing
    """
    text: str
    position: Position
    fatal: bool = False

    def format(self, source: str = "") -> str:
        """
        Render as a compiler-style line

        Example:
            >>> Message("Unclosed macro: note", Position(3, 1), fatal=True).format("doc.md")
            'doc.md:3:1: error: Unclosed macro: note'
        """
        severity = "error" if self.fatal else "warning"
        prefix = f"{source}:" if source else ""
        return f"{prefix}{self.position.line}:{self.position.column}: {severity}: {self.text}"


@dataclass
class Report:
    """
    Message sink collecting diagnostics for one document

    Attributes:
        source: Name of the document, used when formatting messages
        messages: Messages in the order they were reported
    """
    source: str = ""
    messages: List[Message] = field(default_factory=list)

    def message(self, text: str, position: Optional[Position], fatal: bool = False) -> Message:
        """Record a message; a missing position is reported as 1:1"""
        entry = Message(text=text, position=position or Position(), fatal=fatal)
        self.messages.append(entry)
        return entry

    @property
    def fatal(self) -> bool:
        return any(entry.fatal for entry in self.messages)

    def lines_format(self) -> List[str]:
        return [entry.format(self.source) for entry in self.messages]

    def __iter__(self) -> Iterator[Message]:
        return iter(self.messages)

    def __len__(self) -> int:
        return len(self.messages)


def diagnostics_collect(tree: Node, report: Report) -> int:
    """
    Report every BadMacroNode in a tree

    Args:
        tree: Root of a parsed document
        report: Sink receiving one fatal message per bad node

    Returns:
        Number of messages reported
    """
    count = 0
    for node in tree.walk():
        if not node.is_bad:
            continue
        entry = report.message(node.message, node.position, fatal=True)
        LOG(f"Diagnostic {entry.format(report.source)}", level=2)
        count += 1
    return count
