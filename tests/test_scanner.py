"""
Tag scanner tests

Tests the scanner on its own, without the host parser:
- Opening delimiter recognition and the link guard
- Inline and block forms, replacement vs. deletion
- Unclosed blocks and indentation rules
"""

import pytest

from macrodown.config import AppSettings
from macrodown.lib.registry import MacroRegistry
from macrodown.lib.scanner import TagScanner
from macrodown.models.macro import ScanOutcome, MacroContext
from macrodown.models.node import Node, Position


class Recorder:
    """Block handler recording its calls and returning a fixed result"""

    def __init__(self, result=None):
        self.calls = []
        self.result = result

    def __call__(self, *args):
        self.calls.append(args)
        return self.result


def scanner_make(**macros):
    """TagScanner over a registry of name=(handler, inline) pairs"""
    registry = MacroRegistry()
    for name, (handler, inline) in macros.items():
        registry.register(name, handler, inline=inline)
    return TagScanner(registry)


class TestTagMatch:
    """Test opening-delimiter recognition"""

    def test_plain_tag(self):
        """Name, empty props, trailing newline included"""
        match = scanner_make().tag_match("[note]\nbody")
        assert match.text == "[note]\n"
        assert match.indent == ""
        assert match.name == "note"
        assert match.props == ""

    def test_tag_with_props(self):
        """Props keep their leading space"""
        match = scanner_make().tag_match("[note title=hi, color=grey]")
        assert match.name == "note"
        assert match.props == " title=hi, color=grey"

    def test_two_space_indent(self):
        """Exactly two leading spaces are captured"""
        match = scanner_make().tag_match("  [note]\n")
        assert match.indent == "  "
        assert match.closing_tag == "  [/note]"

    def test_other_indents_do_not_match(self):
        """One or three spaces of indent do not match"""
        scanner = scanner_make()
        assert scanner.tag_match(" [note]") is None
        assert scanner.tag_match("   [note]") is None

    def test_link_is_not_a_tag(self):
        """[name](url) is link syntax"""
        assert scanner_make().tag_match("[note](hello)") is None

    def test_text_before_bracket(self):
        """The tag must start the text"""
        assert scanner_make().tag_match("see [note]") is None

    def test_name_must_follow_bracket(self):
        """The name starts right after the bracket"""
        assert scanner_make().tag_match("[ note]") is None

    def test_name_stops_at_non_word_character(self):
        """Anything after the word characters is property text"""
        match = scanner_make().tag_match("[not-e]")
        assert match.name == "not"
        assert match.props == "-e"

    def test_name_is_ascii_only(self):
        """A non-ASCII letter ends the name like any other non-word character"""
        match = scanner_make().tag_match("[caf\u00e9]")
        assert match.name == "caf"
        assert match.props == "\u00e9"

    def test_only_first_line_is_checked(self):
        """A tag further down the text does not match"""
        assert scanner_make().tag_match("text\n[note]") is None


class TestNoMatch:
    """Test the cases that leave the text alone"""

    def test_unregistered_name(self):
        """Unknown macro syntax is not an error"""
        result = scanner_make().scan("[unknown]\nHey\n[/unknown]")
        assert result.outcome is ScanOutcome.NO_MATCH
        assert result.consumed == ""
        assert result.node is None

    def test_silent_scan(self):
        """A silent scan never commits or calls the handler"""
        handler = Recorder(Node.text("x"))
        result = scanner_make(note=(handler, False)).scan("[note]\nHey\n[/note]", silent=True)
        assert result.outcome is ScanOutcome.NO_MATCH
        assert handler.calls == []

    def test_link_never_calls_handler(self):
        """The link guard runs before the handler"""
        def explode(*args):
            raise AssertionError("Never expected to be called")

        result = scanner_make(note=(explode, False)).scan("[note](hello)")
        assert result.matched is False


class TestInline:
    """Test inline macros"""

    def test_inline_replaced(self):
        """Handler node replaces the tag; only the tag line is consumed"""
        handler = Recorder(Node.text("http://facebook.com"))
        scanner = scanner_make(codepen=(handler, True))
        result = scanner.scan("[codepen src=http://facebook.com]\n\nContent after pen")

        assert result.outcome is ScanOutcome.REPLACED
        assert result.consumed == "[codepen src=http://facebook.com]\n"
        assert result.node.value == "http://facebook.com"

        props, context = handler.calls[0]
        assert props == {'src': 'http://facebook.com'}
        assert isinstance(context, MacroContext)

    def test_inline_no_body_scan(self):
        """A closing tag after an inline macro is not looked for"""
        handler = Recorder(None)
        scanner = scanner_make(codepen=(handler, True))
        result = scanner.scan("[codepen]\nbody\n[/codepen]")

        assert result.outcome is ScanOutcome.CONSUMED
        assert result.consumed == "[codepen]\n"
        assert result.node is None

    def test_inline_last_line(self):
        """Inline tag without a trailing newline"""
        handler = Recorder(None)
        result = scanner_make(codepen=(handler, True)).scan("[codepen src=foo]")
        assert result.consumed == "[codepen src=foo]"
        assert handler.calls[0][0] == {'src': 'foo'}

    def test_inline_empty_props(self):
        """No property text gives an empty dict"""
        handler = Recorder(None)
        scanner_make(toc=(handler, True)).scan("[toc]")
        assert handler.calls[0][0] == {}


class TestBlock:
    """Test block macros"""

    def test_block_replaced(self):
        """Whole span consumed, handler gets content and props"""
        handler = Recorder(Node.text("done"))
        scanner = scanner_make(alert=(handler, False))
        result = scanner.scan("[alert]\nHey dude\n[/alert]\n\nafter")

        assert result.outcome is ScanOutcome.REPLACED
        assert result.consumed == "[alert]\nHey dude\n[/alert]"
        content, props, context = handler.calls[0]
        assert content == "Hey dude"
        assert props == {}
        assert context.span == result.consumed

    def test_block_deleted(self):
        """A handler returning None deletes the span"""
        handler = Recorder(None)
        result = scanner_make(alert=(handler, False)).scan("[alert]\nHey dude\n[/alert]")

        assert result.outcome is ScanOutcome.CONSUMED
        assert result.consumed == "[alert]\nHey dude\n[/alert]"
        assert result.node is None

    def test_multiline_content(self):
        """Body lines joined with newlines, blank lines kept"""
        handler = Recorder(None)
        scanner_make(note=(handler, False)).scan("[note]\none\n\ntwo\n[/note]")
        assert handler.calls[0][0] == "one\n\ntwo"

    def test_content_is_not_trimmed(self):
        """Indentation inside an unindented block is content"""
        handler = Recorder(None)
        scanner = scanner_make(note=(handler, False))
        scanner.scan("[note title=hello world, color=grey]\n  Hey dude\n[/note]")

        content, props, context = handler.calls[0]
        assert content == "  Hey dude"
        assert props == {'title': 'helloworld', 'color': 'grey'}

    def test_opening_line_repeats_are_skipped(self):
        """Lines starting with the opening tag text are not content"""
        handler = Recorder(None)
        scanner_make(note=(handler, False)).scan("[note]\n[notes here]\nkept\n[/note]")
        assert handler.calls[0][0] == "kept"

    def test_empty_block(self):
        """Opening tag directly followed by the closing tag"""
        handler = Recorder(None)
        result = scanner_make(note=(handler, False)).scan("[note]\n[/note]")
        assert result.outcome is ScanOutcome.CONSUMED
        assert handler.calls[0][0] == ""

    def test_context_position(self):
        """MacroContext.now() is the start position given to scan()"""
        handler = Recorder(Node.text("x"))
        scanner = scanner_make(note=(handler, False))
        result = scanner.scan("[note]\n[/note]", start=Position(line=7, column=1))

        assert handler.calls[0][2].now() == Position(line=7, column=1)
        assert result.node.position == Position(line=7, column=1)


class TestUnclosed:
    """Test blocks without a closing tag"""

    def test_unclosed_block(self):
        """Bad node, only the opening delimiter consumed, handler not called"""
        handler = Recorder(Node.text("x"))
        result = scanner_make(note=(handler, False)).scan("[note]\nHey dude")

        assert result.outcome is ScanOutcome.BAD
        assert result.consumed == "[note]\n"
        assert result.node.is_bad
        assert result.node.message == "Unclosed macro: note"
        assert handler.calls == []

    def test_wrong_closing_name(self):
        """A different closing tag does not close the block"""
        result = scanner_make(note=(Recorder(), False)).scan("[note]\nbody\n[/alert]")
        assert result.outcome is ScanOutcome.BAD

    def test_line_cap(self):
        """The closing tag must appear within block_max_lines lines"""
        registry = MacroRegistry().register('note', Recorder())
        scanner = TagScanner(registry, settings=AppSettings(block_max_lines=3))

        assert scanner.scan("[note]\na\n[/note]").outcome is ScanOutcome.CONSUMED
        assert scanner.scan("[note]\na\nb\n[/note]").outcome is ScanOutcome.BAD


class TestIndentation:
    """Test the two-space indent discipline"""

    def test_indented_block(self):
        """Indent stripped from body lines; closing tag must carry it"""
        handler = Recorder(None)
        scanner = scanner_make(note=(handler, False))
        result = scanner.scan("  [note]\n  Hey dude\n  [/note]\nrest")

        assert result.outcome is ScanOutcome.CONSUMED
        assert result.consumed == "  [note]\n  Hey dude\n  [/note]"
        assert handler.calls[0][0] == "Hey dude"

    def test_unindented_close_does_not_match(self):
        """A closing tag at another indentation is content"""
        handler = Recorder(None)
        result = scanner_make(note=(handler, False)).scan("  [note]\n  Hey dude\n[/note]")

        assert result.outcome is ScanOutcome.BAD
        assert result.consumed == "  [note]\n"

    def test_indented_close_in_unindented_block(self):
        """An indented closing tag is content of an unindented block"""
        handler = Recorder(None)
        result = scanner_make(note=(handler, False)).scan("[note]\n  [/note]\n[/note]")

        assert result.outcome is ScanOutcome.CONSUMED
        assert handler.calls[0][0] == "  [/note]"

    def test_deeper_lines_keep_extra_indent(self):
        """Only the captured indent is stripped"""
        handler = Recorder(None)
        scanner_make(note=(handler, False)).scan("  [note]\n    deeper\n  [/note]")
        assert handler.calls[0][0] == "  deeper"


class TestHandlerBadNode:
    """Test handlers returning bad nodes through the context"""

    def test_bad_node_from_context(self):
        """context.bad_node() results are reported as BAD"""
        def handler(props, context):
            return context.bad_node("Missing src")

        result = scanner_make(embed=(handler, True)).scan("[embed]")
        assert result.outcome is ScanOutcome.BAD
        assert result.node.message == "Missing src"
        assert result.consumed == "[embed]"

    def test_handler_errors_propagate(self):
        """Handler exceptions are not swallowed"""
        def handler(props, context):
            raise RuntimeError("boom")

        with pytest.raises(RuntimeError, match="boom"):
            scanner_make(embed=(handler, True)).scan("[embed]")


class TestHandlerReturnValues:
    """Test what handlers may hand back"""

    @pytest.mark.parametrize("returned", [{"type": "NoteNode"}, "text", 42])
    def test_block_handler_non_node(self, returned):
        """Anything but a Node or None is rejected"""
        scanner = scanner_make(note=(Recorder(returned), False))
        with pytest.raises(TypeError, match="must return a Node or None"):
            scanner.scan("[note]\nbody\n[/note]")

    def test_inline_handler_non_node(self):
        scanner = scanner_make(embed=(lambda props, context: {"src": "x"}, True))
        with pytest.raises(TypeError, match="got dict"):
            scanner.scan("[embed]")

    def test_consume_result_unwrapped(self):
        """Returning context.consume() deletes the span"""
        scanner = scanner_make(note=(lambda c, p, context: context.consume(), False))
        result = scanner.scan("[note]\nbody\n[/note]\nafter")

        assert result.outcome is ScanOutcome.CONSUMED
        assert result.node is None
        assert result.consumed == "[note]\nbody\n[/note]"

    def test_consume_with_node_unwrapped(self):
        """Returning context.consume(node) splices the node itself"""
        def handler(content, props, context):
            return context.consume(Node.text(content))

        result = scanner_make(note=(handler, False)).scan("[note]\nbody\n[/note]")

        assert result.outcome is ScanOutcome.REPLACED
        assert isinstance(result.node, Node)
        assert result.node.value == "body"


class TestLinesScan:
    """Test scanning text that is already split into lines"""

    def test_scan_from_index(self):
        """Only lines from the index on are part of the macro"""
        handler = Recorder(Node.text("x"))
        lines = ["intro", "[note]", "body", "[/note]", "after"]
        result = scanner_make(note=(handler, False)).lines_scan(lines, 1, start=Position(2, 1))

        assert result.consumed == "[note]\nbody\n[/note]"
        assert result.line_count == 3
        assert handler.calls[0][0] == "body"
        assert result.node.position == Position(line=2, column=1)

    def test_inline_line_count(self):
        """An inline tag covers its own line, newline included"""
        scanner = scanner_make(toc=(lambda props, context: None, True))
        result = scanner.lines_scan(["[toc]", "", "text"], 0)

        assert result.consumed == "[toc]\n"
        assert result.line_count == 1

    def test_no_match_on_text_line(self):
        result = scanner_make(note=(Recorder(), False)).lines_scan(["intro", "[note]"], 0)
        assert result.outcome is ScanOutcome.NO_MATCH
        assert result.line_count == 0
