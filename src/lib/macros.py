"""
Stock macro implementations for macrodown

Each stock macro is a plain handler function registered under one or more
names. None of them is active unless registered with builtins_register() or
through a YAML macro file (macroFile_load()).

Block handlers take (content, props, context); inline handlers take
(props, context). See MacroContext for what the context carries.
"""

from pathlib import Path
from typing import Callable, Dict, Iterable, NamedTuple, Optional

import yaml
from pygments import highlight
from pygments.lexers import get_lexer_by_name, TextLexer
from pygments.lexer import Lexer
from pygments.formatters import HtmlFormatter
from pygments.util import ClassNotFound

from ..models.macro import MacroContext, PropertyMap
from ..models.node import Node
from .lexer import MacroLexer
from .registry import MacroRegistry
from .log import LOG


class MacroFileError(Exception):
    """Raised when a YAML macro file is missing or malformed"""
    pass


class StockMacro(NamedTuple):
    """A stock handler and the form it is registered with"""
    factory: Callable[[str], Callable]
    inline: bool
    description: str


def admonition_make(kind: str) -> Callable:
    """
    Build a block handler rendering its content inside a styled div

    The content is parsed as a document fragment through the host parser, so
    lists, headings and even other macros work inside it. A `title` property
    adds a title paragraph.
    """

    def admonition_handler(content: str, props: PropertyMap, context: MacroContext) -> Node:
        if context.parser is not None:
            children = context.parser.tokenize_block(content, context.now().lines_advance(1))
        else:
            children = [Node(type="paragraph", children=[Node.text(content)])]

        title = props.get('title')
        if title:
            children.insert(0, Node.element('p', [Node.text(title)], className='macro-title'))

        return Node.element('div', children, className=f'macro-{kind}')

    return admonition_handler


def code_make(kind: str) -> Callable:
    """Build a block handler for Pygments-highlighted code; `lang` selects the lexer"""

    def code_handler(content: str, props: PropertyMap, context: MacroContext) -> Node:
        language = props.get('lang', '')

        lexer: Lexer
        try:
            if language.lower() in MacroLexer.aliases:
                lexer = MacroLexer()
            else:
                lexer = get_lexer_by_name(language)
        except ClassNotFound:
            LOG(f"No lexer for '{language}', using plain text", level=2)
            lexer = TextLexer()

        formatter = HtmlFormatter(style='default', noclasses=True)
        return Node.html(highlight(content, lexer, formatter).rstrip('\n'))

    return code_handler


def comment_make(kind: str) -> Callable:
    """Build a block handler that drops its whole span from the output"""

    def comment_handler(content: str, props: PropertyMap, context: MacroContext) -> None:
        LOG(f"Dropping [{kind}] block at {context.now()}", level=3)
        return None

    return comment_handler


def embed_make(kind: str) -> Callable:
    """
    Build an inline handler producing an <iframe> from the `src` property

    `width` and `height` properties are passed through. A missing `src`
    produces a BadMacroNode, reported later by diagnostics.
    """

    def embed_handler(props: PropertyMap, context: MacroContext) -> Node:
        src = props.get('src')
        if not src:
            return context.bad_node(f"Missing src for macro: {kind}")

        return Node.element(
            'iframe',
            src=src,
            width=props.get('width'),
            height=props.get('height'),
            className=f'macro-{kind}',
        )

    return embed_handler


STOCK_MACROS: Dict[str, StockMacro] = {
    'note': StockMacro(admonition_make, False, 'Note box with parsed content'),
    'tip': StockMacro(admonition_make, False, 'Tip box with parsed content'),
    'warning': StockMacro(admonition_make, False, 'Warning box with parsed content'),
    'alert': StockMacro(admonition_make, False, 'Alert box with parsed content'),
    'code': StockMacro(code_make, False, 'Syntax highlighted code, lang=<lexer>'),
    'comment': StockMacro(comment_make, False, 'Removed from the output'),
    'embed': StockMacro(embed_make, True, 'Embedded iframe, src=<url>'),
    'codepen': StockMacro(embed_make, True, 'Embedded pen, src=<url>'),
    'youtube': StockMacro(embed_make, True, 'Embedded video, src=<url>'),
}


def builtins_register(
    registry: MacroRegistry, names: Optional[Iterable[str]] = None
) -> MacroRegistry:
    """
    Register stock macros under their own names

    Args:
        registry: Registry to populate
        names: Subset of STOCK_MACROS to register; all of them by default

    Returns:
        The registry, for chaining

    Raises:
        KeyError: If a name is not a stock macro
        DuplicateMacroError: If a name is already registered
    """
    for name in (names if names is not None else STOCK_MACROS):
        stock = STOCK_MACROS[name]
        registry.register(name, stock.factory(name), inline=stock.inline)
    return registry


def macroFile_load(path: Path, registry: MacroRegistry) -> MacroRegistry:
    """
    Register stock handlers under custom names from a YAML file

    File format:
        macros:
          hint:
            kind: tip          # any STOCK_MACROS name
          video:
            kind: youtube

    Args:
        path: YAML file
        registry: Registry to populate

    Returns:
        The registry, for chaining

    Raises:
        MacroFileError: If the file is missing, not valid YAML, or names an
                        unknown kind
    """
    if not path.exists():
        raise MacroFileError(f"Macro file not found: {path}")

    try:
        config = yaml.safe_load(path.read_text(encoding='utf-8')) or {}
    except yaml.YAMLError as e:
        raise MacroFileError(f"Invalid YAML in {path}: {e}") from e

    macros = config.get('macros') if isinstance(config, dict) else None
    if not isinstance(macros, dict):
        raise MacroFileError(f"{path} must contain a 'macros' mapping")

    for name, entry in macros.items():
        entry = entry or {}
        if not isinstance(entry, dict):
            raise MacroFileError(f"Entry for '{name}' in {path} must be a mapping")

        kind = entry.get('kind', name)
        if kind not in STOCK_MACROS:
            raise MacroFileError(
                f"Unknown macro kind '{kind}' for '{name}' in {path}. "
                f"Available: {', '.join(sorted(STOCK_MACROS))}"
            )

        stock = STOCK_MACROS[kind]
        registry.register(str(name), stock.factory(str(name)), inline=stock.inline)
        LOG(f"Macro '{name}' -> {kind}", level=2)

    return registry
