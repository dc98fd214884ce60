"""
Document tree models

The host parser builds a tree of Node objects; macro handlers return Nodes
that get spliced into it, and the compiler renders it to HTML.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


BAD_NODE_TYPE = "BadMacroNode"


@dataclass(frozen=True)
class Position:
    """
    1-based source location of a node

    Attributes:
        line: Line number in the source document
        column: Column number in the source document
    """
    line: int = 1
    column: int = 1

    def lines_advance(self, count: int) -> "Position":
        """Position `count` lines below this one, same column"""
        return Position(line=self.line + count, column=self.column)

    def __str__(self) -> str:
        return f"{self.line}:{self.column}"


@dataclass
class Node:
    """
    A node in the document tree

    Attributes:
        type: Node type ("root", "paragraph", "heading", "list", "listItem",
              "code", "text", "html", "element" or BadMacroNode)
        value: Literal text for leaf nodes (text, html, code)
        children: Child nodes in document order
        data: Extra per-type data (heading depth, element tag/properties,
              code language, bad-node message)
        position: Start position in the source, set by the host parser

    Example:
        Node.element("div", [Node.text("Hey dude")], className="note")
    """
    type: str
    value: Optional[str] = None
    children: List["Node"] = field(default_factory=list)
    data: Dict[str, Any] = field(default_factory=dict)
    position: Optional[Position] = None

    @classmethod
    def text(cls, value: str) -> "Node":
        return cls(type="text", value=value)

    @classmethod
    def html(cls, value: str) -> "Node":
        return cls(type="html", value=value)

    @classmethod
    def element(cls, tag: str, children: Optional[List["Node"]] = None, **properties: str) -> "Node":
        """Generic HTML element node; `className` maps to the class attribute"""
        return cls(
            type="element",
            children=list(children or []),
            data={"tag": tag, "properties": properties},
        )

    @classmethod
    def bad(cls, message: str) -> "Node":
        """
        Synthetic node marking a structural problem in the document

        Diagnostics later reports it as a fatal message at the node's position.
        """
        return cls(type=BAD_NODE_TYPE, data={"message": message})

    @property
    def is_bad(self) -> bool:
        return self.type == BAD_NODE_TYPE

    @property
    def message(self) -> str:
        return self.data.get("message", "")

    def walk(self):
        """Depth-first, document-order iteration over this node and descendants"""
        yield self
        for child in self.children:
            yield from child.walk()
