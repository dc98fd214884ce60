"""
Tag scanner for [macro] syntax

Decides, for the text remaining at a block start, whether a macro begins
there and how much of the text it consumes.

Two tag forms are recognised:

    [name props]            inline: the opening delimiter is the whole tag
    [name props]            block: everything up to a line that is exactly
    content                 the closing tag, at the same indentation
    [/name]

The opening delimiter may be indented by exactly two spaces. The same two
spaces must then prefix the closing tag, and are stripped from every body
line. This is what lets block macros live inside list items.

`[name](url)` is a link, never a macro.

Example:
    >>> registry = MacroRegistry().register("note", lambda c, p, ctx: Node.text(c))
    >>> result = TagScanner(registry).scan("[note]\\nHey dude\\n[/note]\\nrest")
    >>> result.outcome, result.consumed, result.node.value
    (<ScanOutcome.REPLACED: 'replaced'>, '[note]\\nHey dude\\n[/note]', 'Hey dude')
"""

import re
from typing import Any, Optional, Sequence

from ..config import appsettings, AppSettings
from ..models.node import Node, Position
from ..models.macro import (
    BlockScanState,
    MacroContext,
    MacroDefinition,
    NO_MATCH,
    ScanOutcome,
    ScanResult,
    TagMatch,
)
from .props import props_parse
from .registry import MacroRegistry
from .log import LOG


# Optional two-space indent, [name, optional property text, ] not followed by (
# Names are ASCII word characters; a non-ASCII letter ends the name
MACRO_PATTERN = re.compile(r'^( {2})?\[(\w+)(.*)?\](?!\()\n?', re.ASCII)


class TagScanner:
    """
    Recognises macro tags at the start of a text buffer

    The scanner holds no per-scan state; every call to scan() is independent.

    Args:
        registry: Macros to recognise; unknown names are left alone
        parser: Host parser handed to macro handlers through MacroContext
        settings: AppSettings (block_max_lines); defaults to appsettings
    """

    def __init__(
        self,
        registry: MacroRegistry,
        parser: Optional[Any] = None,
        settings: Optional[AppSettings] = None,
    ) -> None:
        self.registry = registry
        self.parser = parser
        self.settings = settings or appsettings

    def tag_match(self, text: str) -> Optional[TagMatch]:
        """
        Match an opening delimiter at offset 0 of text

        Only the syntax is checked here; the registry is not consulted.

        Returns:
            TagMatch (with inline=False), or None when text does not start
            with a tag

        Example:
            >>> TagScanner(MacroRegistry()).tag_match("  [note a=1]\\nbody")
            TagMatch(text='  [note a=1]\\n', indent='  ', name='note', props=' a=1', inline=False)
        """
        # Cheap check first; most lines do not start with a tag
        if not text.startswith(("[", "  [")):
            return None

        match = MACRO_PATTERN.match(text)
        if not match:
            return None

        return TagMatch(
            text=match.group(0),
            indent=match.group(1) or '',
            name=match.group(2).strip(),
            props=match.group(3) or '',
        )

    def scan(
        self, text: str, silent: bool = False, start: Optional[Position] = None
    ) -> ScanResult:
        """
        Try to recognise a macro at the start of text

        Args:
            text: All unconsumed text from the current line start to the end
                  of the input
            silent: Look ahead only; a silent scan never commits and always
                    returns NO_MATCH
            start: Source position of text[0], used for node positions and
                   MacroContext.now()

        Returns:
            ScanResult. For anything but NO_MATCH the caller must advance
            past exactly result.consumed and insert result.node if set.
        """
        if silent or self.tag_match(text) is None:
            return NO_MATCH
        return self.lines_scan(text.split('\n'), 0, start=start)

    def lines_scan(
        self, lines: Sequence[str], index: int, start: Optional[Position] = None
    ) -> ScanResult:
        """
        Same as scan(), for text already split into lines

        The text scanned is lines[index:], read only as far as needed.
        """
        line = lines[index]
        match = self.tag_match(line + '\n' if index + 1 < len(lines) else line)
        if match is None:
            return NO_MATCH

        definition = self.registry.resolve(match.name)
        if definition is None:
            LOG(f"Ignoring unregistered tag [{match.name}]", level=3)
            return NO_MATCH

        start = start or Position()
        if definition.inline:
            return self.inline_process(match, definition, start)
        return self.block_process(lines, index, match, definition, start)

    def inline_process(
        self, match: TagMatch, definition: MacroDefinition, start: Position
    ) -> ScanResult:
        """Invoke an inline handler; the opening delimiter is the whole span"""
        context = MacroContext(parser=self.parser, span=match.text, start=start)
        props = props_parse(match.props)

        LOG(f"Inline macro [{match.name}] at {start} with {props}", level=2)
        return self.result_make(context, definition.handler(props, context))

    def block_scan(self, lines: Sequence[str], index: int, match: TagMatch) -> BlockScanState:
        """
        Walk lines from lines[index] looking for the closing tag

        Every visited line is kept verbatim in `consumed`. Lines other than
        the closing tag and re-occurrences of the opening tag go to `body`
        with the indent stripped. The scan stops at the closing tag, the end
        of the input, or after settings.block_max_lines lines.

        Args:
            lines: Source lines; lines[index] holds the opening delimiter
            index: Line of the opening delimiter
            match: The opening delimiter

        Returns:
            BlockScanState; `closed` is False when no closing tag was found
        """
        state = BlockScanState()
        closing = match.closing_tag
        opening = match.opening_prefix

        for position in range(index, len(lines)):
            line = lines[position]
            state.consumed.append(line)

            if line == closing:
                state.closed = True
                break

            if not line.startswith(opening):
                if match.indent and line.startswith(match.indent):
                    line = line[len(match.indent):]
                state.body.append(line)

            if self.settings.lineCap_reached(len(state.consumed)):
                LOG(
                    f"Gave up looking for {closing} after {len(state.consumed)} lines",
                    level=2,
                )
                break

        return state

    def block_process(
        self,
        lines: Sequence[str],
        index: int,
        match: TagMatch,
        definition: MacroDefinition,
        start: Position,
    ) -> ScanResult:
        """
        Scan a block body and invoke the handler

        An unclosed block consumes only its opening delimiter and yields a
        BadMacroNode; the lines after it are left for the host parser.
        """
        state = self.block_scan(lines, index, match)

        if not state.closed:
            LOG(f"Unclosed macro [{match.name}] at {start}", level=2)
            context = MacroContext(parser=self.parser, span=match.text, start=start)
            return context.consume(context.bad_node(f"Unclosed macro: {match.name}"))

        context = MacroContext(parser=self.parser, span=state.span, start=start)
        props = props_parse(match.props)

        LOG(
            f"Block macro [{match.name}] at {start}: {len(state.consumed)} lines, props {props}",
            level=2,
        )
        return self.result_make(context, definition.handler(state.content, props, context))

    @staticmethod
    def result_make(context: MacroContext, returned: Any) -> ScanResult:
        """
        Turn a handler's return value into the scan result

        Handlers may return a Node, None, or the result of context.consume();
        the latter is unwrapped so the span is always the one bound to
        `context`. Anything else raises TypeError.
        """
        if isinstance(returned, ScanResult):
            returned = returned.node
        return context.consume(returned)


def outcome_describe(result: ScanResult) -> str:
    """Short human-readable form of a scan result, for trace logging"""
    if result.outcome is ScanOutcome.NO_MATCH:
        return "no match"
    lines = result.consumed.count('\n') + 1
    node = result.node.type if isinstance(result.node, Node) else "nothing"
    return f"{result.outcome.value}: {lines} line(s) -> {node}"
