"""
Line-oriented document parser with [macro] support

Transforms a markdown-like source document into a tree of Node objects.

At every block start the parser tries its block rules in order:

    fenced code  ->  heading  ->  list  ->  macro  ->  paragraph

The macro rule delegates to TagScanner. When the scanner does not match,
the line falls through to the paragraph rule, so unregistered [tags] stay
in the output as literal text.

Key features:
- Line and column tracking for every node (used by diagnostics)
- List items are dedented and parsed recursively, so two-space-indented
  macros work inside them
- tokenize_block() is public so macro handlers can parse their own content

Example:
    >>> registry = MacroRegistry().register("note", lambda c, p, ctx: Node.text(c))
    >>> tree = Parser("Hello\\n\\n[note]\\nHey dude\\n[/note]", registry=registry).parse()
    >>> [child.type for child in tree.children]
    ['paragraph', 'text']
"""

import re
from typing import Callable, List, Optional, Sequence, Tuple

from ..config import appsettings, AppSettings
from ..models.node import Node, Position
from .registry import MacroRegistry
from .scanner import TagScanner, outcome_describe
from .log import LOG


FENCE_PATTERN = re.compile(r'^(`{3,})[ \t]*([^`]*)$')
HEADING_PATTERN = re.compile(r'^(#{1,6})(?:[ \t]+(.*?))?[ \t#]*$')
LIST_MARKER_PATTERN = re.compile(r'^[-*][ \t]+')

# A block rule gets (lines, index, position of lines[index]) and returns the
# number of lines it consumed (0 when it does not apply) and the node to
# insert, if any
BlockRule = Callable[[Sequence[str], int, Position], Tuple[int, Optional[Node]]]


class Parser:
    """
    Parser for markdown-like documents with [macro] tags

    Handles:
    - Paragraphs, ATX headings, fenced code, bullet lists
    - Block and inline macros registered in a MacroRegistry
    - Unclosed block macros (kept in the tree as BadMacroNodes)
    """

    def __init__(
        self,
        source: str,
        registry: Optional[MacroRegistry] = None,
        settings: Optional[AppSettings] = None,
    ) -> None:
        """
        Initialize parser with source text

        Args:
            source: Raw document text
            registry: Macros to recognise; an empty registry if not given
            settings: AppSettings; defaults to the appsettings singleton

        Attributes:
            source: Source text being parsed
            registry: MacroRegistry, frozen once parse() starts
            scanner: TagScanner bound to this parser
            block_rules: Ordered block rules tried at each block start
        """
        self.source = source
        self.registry = registry if registry is not None else MacroRegistry()
        self.settings = settings or appsettings
        self.scanner = TagScanner(self.registry, parser=self, settings=self.settings)
        self.block_rules: List[BlockRule] = [
            self.fence_tokenize,
            self.heading_tokenize,
            self.list_tokenize,
            self.macro_tokenize,
            self.paragraph_tokenize,
        ]

    def parse(self) -> Node:
        """
        Parse the source into a document tree

        Returns:
            Root Node whose children are the top-level blocks. Empty or
            whitespace-only source gives a root with no children.
        """
        self.registry.freeze()

        source = self.source.replace('\r\n', '\n')
        start = Position(line=1, column=1)
        root = Node(type="root", children=self.tokenize_block(source, start), position=start)

        LOG(f"Parsed {len(root.children)} top-level blocks", level=2)
        return root

    def tokenize_block(self, text: str, start: Position) -> List[Node]:
        """
        Parse text as a sequence of blocks

        Args:
            text: Document fragment
            start: Source position of text[0]

        Returns:
            Block nodes in document order
        """
        lines = text.split('\n')
        nodes: List[Node] = []
        index = 0

        while index < len(lines):
            if not lines[index].strip():
                index += 1
                continue

            here = Position(line=start.line + index, column=start.column)
            used, node = self.block_tokenize(lines, index, here)
            if node is not None:
                nodes.append(node)
            index += used

        return nodes

    def block_tokenize(
        self, lines: Sequence[str], index: int, start: Position
    ) -> Tuple[int, Optional[Node]]:
        """Run the block rules in order; the first that consumes lines wins"""
        for rule in self.block_rules:
            used, node = rule(lines, index, start)
            if used:
                return used, node

        # The paragraph rule accepts any non-blank line
        raise AssertionError(f"No block rule consumed line {start.line}")

    def fence_tokenize(
        self, lines: Sequence[str], index: int, start: Position
    ) -> Tuple[int, Optional[Node]]:
        """
        Fenced code block: ``` with an optional info string

        An unclosed fence runs to the end of the input.
        """
        fence = FENCE_PATTERN.match(lines[index])
        if not fence:
            return 0, None

        marker = fence.group(1)
        info = fence.group(2).strip()
        body: List[str] = []
        end = index + 1

        while end < len(lines):
            line = lines[end]
            end += 1
            if line.strip().startswith(marker) and not line.strip().strip('`'):
                break
            body.append(line)

        node = Node(
            type="code",
            value='\n'.join(body),
            data={"lang": info.split()[0] if info else None},
            position=start,
        )
        return end - index, node

    def heading_tokenize(
        self, lines: Sequence[str], index: int, start: Position
    ) -> Tuple[int, Optional[Node]]:
        """ATX heading: one to six # followed by the heading text"""
        heading = HEADING_PATTERN.match(lines[index])
        if not heading:
            return 0, None

        children = [Node.text(heading.group(2))] if heading.group(2) else []
        node = Node(
            type="heading",
            children=children,
            data={"depth": len(heading.group(1))},
            position=start,
        )
        return 1, node

    def list_tokenize(
        self, lines: Sequence[str], index: int, start: Position
    ) -> Tuple[int, Optional[Node]]:
        """
        Bullet list: items start with "- " or "* " at column 0

        Item bodies are the marker line plus every following line indented by
        at least two spaces (blank lines included when the list continues
        after them). Bodies are dedented by two columns and parsed
        recursively.
        """
        if not LIST_MARKER_PATTERN.match(lines[index]):
            return 0, None

        items: List[Tuple[int, List[str]]] = []
        end = index

        while end < len(lines):
            line = lines[end]
            marker = LIST_MARKER_PATTERN.match(line)
            if marker:
                items.append((end - index, [line[marker.end():]]))
            elif line.startswith('  '):
                items[-1][1].append(line[2:])
            elif not line.strip() and self.list_continues(lines, end):
                items[-1][1].append('')
            else:
                break
            end += 1

        children = []
        for offset, body in items:
            item_start = Position(line=start.line + offset, column=start.column + 2)
            children.append(Node(
                type="listItem",
                children=self.tokenize_block('\n'.join(body), item_start),
                position=Position(line=start.line + offset, column=start.column),
            ))

        return end - index, Node(type="list", children=children, position=start)

    def list_continues(self, lines: Sequence[str], index: int) -> bool:
        """Whether the list goes on after the blank line at lines[index]"""
        for following in range(index + 1, len(lines)):
            line = lines[following]
            if not line.strip():
                continue
            return line.startswith('  ') or bool(LIST_MARKER_PATTERN.match(line))
        return False

    def macro_tokenize(
        self, lines: Sequence[str], index: int, start: Position
    ) -> Tuple[int, Optional[Node]]:
        """Delegate to the tag scanner"""
        result = self.scanner.lines_scan(lines, index, start=start)
        if result.matched:
            LOG(f"Line {start.line}: {outcome_describe(result)}", level=3)
        return result.line_count, result.node

    def paragraph_tokenize(
        self, lines: Sequence[str], index: int, start: Position
    ) -> Tuple[int, Optional[Node]]:
        """
        Paragraph: consecutive non-blank lines

        Fences, headings and list markers interrupt a paragraph. Macro tags
        do not: a tag on a continuation line is paragraph text.
        """
        body = [lines[index].strip()]
        end = index + 1

        while end < len(lines):
            line = lines[end]
            if not line.strip() or self.interrupt_is(line):
                break
            body.append(line.strip())
            end += 1

        node = Node(type="paragraph", children=[Node.text('\n'.join(body))], position=start)
        return end - index, node

    def interrupt_is(self, line: str) -> bool:
        """Check if a line starts a block that ends the current paragraph"""
        return bool(
            FENCE_PATTERN.match(line)
            or HEADING_PATTERN.match(line)
            or LIST_MARKER_PATTERN.match(line)
        )
