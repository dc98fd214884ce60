"""
Custom Pygments lexer for macro markup

Highlights [macro] tags when a document shows macrodown source, e.g. in a
`[code lang=macrodown]` block.

Token types:
- Name.Tag: Macro names in opening and closing tags
- Punctuation: Brackets, the closing-tag slash, commas
- Name.Attribute: Property keys
- Operator: The = between key and value
- String: Quoted property values
- Literal: Bare property values
- Text: Everything outside tags
"""

import re

from pygments.lexer import RegexLexer, bygroups
from pygments.token import (
    Text,
    Punctuation,
    Name,
    String,
    Literal,
    Operator,
)


class MacroLexer(RegexLexer):
    """
    Lexer for macrodown [macro] markup

    Example:
        [note title="Hi", color=grey]

    Tokens:
        [ → Punctuation
        note → Name.Tag
        title → Name.Attribute
        = → Operator
        "Hi" → String
        grey → Literal
        ] → Punctuation
    """

    name = 'Macrodown'
    aliases = ['macrodown', 'macro']
    filenames = []
    # Tag names match the parser: ASCII word characters only
    flags = re.MULTILINE | re.ASCII

    tokens = {
        'root': [
            # Closing tag
            (r'(\[)(/)(\w+)(\])', bygroups(Punctuation, Punctuation, Name.Tag, Punctuation)),

            # Opening tag; links ([text](url)) are left as text
            (r'(\[)(\w+)(?=[^\]\n]*\](?!\())', bygroups(Punctuation, Name.Tag), 'props'),

            (r'[^\[]+', Text),
            (r'\[', Text),
        ],

        'props': [
            (r'\]', Punctuation, '#pop'),
            (r'(\w[\w-]*)(=)', bygroups(Name.Attribute, Operator)),
            (r'"[^"\n]*"', String),
            (r',', Punctuation),
            (r'[ \t]+', Text),
            (r'[^\s,="\]]+', Literal),
            (r'.', Text),
        ],
    }
