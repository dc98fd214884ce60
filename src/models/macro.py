"""
Macro-specific data models

Type-safe structures passed between the registry, the tag scanner and the
property parser.
"""

from enum import Enum
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Tuple, TYPE_CHECKING

from .node import Node, Position

if TYPE_CHECKING:
    from ..lib.parser import Parser


PropertyMap = Dict[str, str]


@dataclass(frozen=True)
class MacroDefinition:
    """
    A registered macro

    Attributes:
        name: Tag name, unique within a registry
        handler: Callable invoked when the tag is recognised.
                 inline: handler(properties, context) -> Optional[Node]
                 block:  handler(content, properties, context) -> Optional[Node]
        inline: True for `[name props]` tags with no body or closing tag
    """
    name: str
    handler: Callable[..., Optional[Node]]
    inline: bool = False


@dataclass(frozen=True)
class TagMatch:
    """
    One recognised opening delimiter

    Attributes:
        text: The full matched text, trailing newline included
        indent: Leading indent ("" or exactly two spaces) that must also
                prefix the closing tag and every body line
        name: Macro name
        props: Raw property text between the name and the closing bracket
        inline: Whether the resolved macro is inline

    Example:
        For "  [note title=Hi]\\n":
        TagMatch(text="  [note title=Hi]\\n", indent="  ", name="note",
                 props=" title=Hi", inline=False)
    """
    text: str
    indent: str
    name: str
    props: str
    inline: bool = False

    @property
    def closing_tag(self) -> str:
        return f"{self.indent}[/{self.name}]"

    @property
    def opening_prefix(self) -> str:
        return f"{self.indent}[{self.name}"


@dataclass
class BlockScanState:
    """
    Accumulator for the line-by-line search for a closing tag

    Attributes:
        consumed: Every visited line, verbatim (opening and closing included)
        body: Content lines with the indent stripped
        closed: Whether the closing tag was found
    """
    consumed: List[str] = field(default_factory=list)
    body: List[str] = field(default_factory=list)
    closed: bool = False

    @property
    def span(self) -> str:
        return "\n".join(self.consumed)

    @property
    def content(self) -> str:
        return "\n".join(self.body)


class CharClass(Enum):
    """Character classes the property parser treats specially"""
    NONE = ""
    QUOTE = '"'
    COMMA = ","
    EQUAL = "="
    SPACE = " "
    OTHER = "other"

    @classmethod
    def of(cls, char: Optional[str]) -> "CharClass":
        if not char:
            return cls.NONE
        try:
            return cls(char)
        except ValueError:
            return cls.OTHER


# Immutable linked list, newest item first: (item, rest), or None when empty
Chain = Optional[Tuple[Any, Any]]


def chain_items(chain: Chain) -> List[Any]:
    """Items of a chain in insertion order"""
    items = []
    while chain is not None:
        item, chain = chain
        items.append(item)
    items.reverse()
    return items


@dataclass(frozen=True)
class PropState:
    """
    Immutable state threaded through the property-parser fold

    Attributes:
        slot: Accumulator slot receiving literal characters ("key" or "value")
        quoted: Inside a quoted value
        previous: Class of the previous character
        key_chars: Pending key characters
        value_chars: Pending value characters
        pair_chain: Committed (key, value) pairs
    """
    slot: str = "key"
    quoted: bool = False
    previous: CharClass = CharClass.NONE
    key_chars: Chain = None
    value_chars: Chain = None
    pair_chain: Chain = None

    @property
    def key(self) -> str:
        return "".join(chain_items(self.key_chars))

    @property
    def value(self) -> str:
        return "".join(chain_items(self.value_chars))

    @property
    def pairs(self) -> Tuple[Tuple[str, str], ...]:
        return tuple(chain_items(self.pair_chain))


class ScanOutcome(Enum):
    """What a single scan attempt decided"""
    NO_MATCH = "no_match"    # leave the text for other block rules
    REPLACED = "replaced"    # span consumed, handler node spliced in
    CONSUMED = "consumed"    # span consumed, nothing inserted
    BAD = "bad"              # opening delimiter consumed, BadMacroNode inserted


@dataclass(frozen=True)
class ScanResult:
    """
    Result of TagScanner.scan()

    Attributes:
        outcome: See ScanOutcome
        consumed: Exact source text the host must advance past
                  ("" for NO_MATCH)
        node: Node to splice into the tree, if any
    """
    outcome: ScanOutcome
    consumed: str = ""
    node: Optional[Node] = None

    @property
    def matched(self) -> bool:
        return self.outcome is not ScanOutcome.NO_MATCH

    @property
    def line_count(self) -> int:
        """Number of source lines the consumed span covers"""
        if not self.consumed:
            return 0
        return self.consumed.count("\n", 0, len(self.consumed) - 1) + 1


NO_MATCH = ScanResult(outcome=ScanOutcome.NO_MATCH)


@dataclass
class MacroContext:
    """
    Payload handed to every macro handler

    Attributes:
        parser: Host parser; block handlers may call
                parser.tokenize_block(content, context.now()) to parse their
                content as a document fragment
        span: Source text bound to this match
        start: Position of the opening tag

    Example:
        def note(content, props, context):
            children = context.parser.tokenize_block(content, context.now())
            return Node.element("div", children, className="note")
    """
    parser: Optional["Parser"]
    span: str
    start: Position = field(default_factory=Position)

    def now(self) -> Position:
        return self.start

    def consume(self, node: Optional[Node] = None) -> ScanResult:
        """
        Consume the bound span, inserting `node` when one is given

        Raises:
            TypeError: node is neither None nor a Node
        """
        if node is None:
            return ScanResult(outcome=ScanOutcome.CONSUMED, consumed=self.span)
        if not isinstance(node, Node):
            raise TypeError(
                f"Macro handlers must return a Node or None, got {type(node).__name__}"
            )
        if node.position is None:
            node.position = self.start
        outcome = ScanOutcome.BAD if node.is_bad else ScanOutcome.REPLACED
        return ScanResult(outcome=outcome, consumed=self.span, node=node)

    @staticmethod
    def bad_node(message: str) -> Node:
        return Node.bad(message)
