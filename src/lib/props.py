"""
Property parser for macro tags

Turns the free-form text trailing a macro name into a key/value dict:

    [note title="Read me", color=grey]
          ^^^^^^^^^^^^^^^^^^^^^^^^^^^^ -> {"title": "Read me", "color": "grey"}

The parser is a fold over the characters of the property text. Each step
receives an immutable PropState and returns the next one. Four characters are
special: the double quote, comma, equals sign and space. Everything else is
literal.

Parsing never fails. Malformed text degrades to partial or empty results.

Example:
    >>> props_parse('name="virk=nice", age=22')
    {'name': 'virk=nice', 'age': '22'}
"""

from dataclasses import replace
from functools import reduce
from itertools import zip_longest
from typing import Dict, Optional, Tuple

from ..models.macro import CharClass, PropState, PropertyMap


def pair_commit(state: PropState) -> PropState:
    """
    Move the pending key/value pair into the committed pairs

    A pending pair with an empty key is dropped (trailing comma, empty input).
    Both accumulator slots are reset and the next characters go to the key.
    """
    pair_chain = state.pair_chain
    key = state.key
    if key:
        pair_chain = ((key, state.value), pair_chain)
    return replace(state, slot="key", key_chars=None, value_chars=None, pair_chain=pair_chain)


def char_append(state: PropState, char: str) -> PropState:
    """Append a literal character to whichever slot is currently active"""
    if state.slot == "key":
        return replace(state, key_chars=(char, state.key_chars))
    return replace(state, value_chars=(char, state.value_chars))


def char_step(state: PropState, chars: Tuple[str, Optional[str]]) -> PropState:
    """
    Advance the parser by one character

    Args:
        state: State after the previous character
        chars: (current character, next character or None at end of input)

    Returns:
        State after this character, with `previous` set to its class

    Rules, first match wins:
        1. closing quote: quote while quoted, followed by end/space/comma
        2. any character while quoted is literal
        3. opening quote: quote right after a space or equals sign
        4. space is skipped
        5. equals switches to the value slot
        6. comma commits the pair
        7. anything else is literal
    """
    char, upcoming = chars
    char_class = CharClass.of(char)
    next_class = CharClass.of(upcoming)

    if char_class is CharClass.QUOTE and state.quoted and \
            next_class in (CharClass.NONE, CharClass.SPACE, CharClass.COMMA):
        state = replace(state, quoted=False)
    elif state.quoted:
        state = char_append(state, char)
    elif char_class is CharClass.QUOTE and state.previous in (CharClass.SPACE, CharClass.EQUAL):
        state = replace(state, quoted=True)
    elif char_class is CharClass.SPACE:
        pass
    elif char_class is CharClass.EQUAL:
        state = replace(state, slot="value")
    elif char_class is CharClass.COMMA:
        state = pair_commit(state)
    else:
        state = char_append(state, char)

    return replace(state, previous=char_class)


def props_parse(raw: Optional[str]) -> PropertyMap:
    """
    Parse macro property text into a dict

    Args:
        raw: Text between the macro name and the closing bracket
             (e.g. ' title="Hello world", color=grey'). None or "" give {}.

    Returns:
        Dict of key -> value strings. A repeated key keeps its last value.

    Example:
        >>> props_parse('name=virk,age=22')
        {'name': 'virk', 'age': '22'}
        >>> props_parse('name="virk="nice"", age=22')
        {'name': 'virk="nice"', 'age': '22'}
    """
    if not raw:
        return {}

    steps = zip_longest(raw, raw[1:])
    final = pair_commit(reduce(char_step, steps, PropState()))

    result: Dict[str, str] = {}
    for key, value in final.pairs:
        result[key] = value
    return result
