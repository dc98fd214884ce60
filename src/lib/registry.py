"""
Registry of macro definitions

Maps macro names to MacroDefinition objects. The tag scanner consults it to
decide whether a bracketed tag is a macro at all: an unregistered name is not
an error, the text is simply left for the rest of the parser.
"""

from typing import Callable, Dict, Iterator, List, Optional

from ..models.macro import MacroDefinition
from .log import LOG


class DuplicateMacroError(ValueError):
    """Raised when a macro name is registered twice"""
    pass


class InvalidHandlerError(TypeError):
    """Raised when a macro handler is not callable"""
    pass


class RegistryFrozenError(RuntimeError):
    """Raised when registering after parsing has started"""
    pass


class MacroRegistry:
    """
    Registry of macro definitions

    Populated before parsing, read-only while scanning. The host parser
    calls freeze() when it starts, after which register() fails.

    Example:
        registry = MacroRegistry()
        registry.register("note", note_handler).register("embed", embed_handler, inline=True)
    """

    def __init__(self) -> None:
        self.definitions: Dict[str, MacroDefinition] = {}
        self.frozen = False

    def register(
        self, name: str, handler: Callable, inline: bool = False
    ) -> "MacroRegistry":
        """
        Register a macro

        Args:
            name: Tag name, made of word characters
            handler: Block form: handler(content, properties, context)
                     Inline form: handler(properties, context)
            inline: True for tags with no body and no closing tag

        Returns:
            The registry itself, for chaining

        Raises:
            ValueError: If name is empty
            DuplicateMacroError: If name is already registered
            InvalidHandlerError: If handler is not callable
            RegistryFrozenError: If parsing has already started
        """
        if self.frozen:
            raise RegistryFrozenError(
                f"Cannot register the macro {name} once parsing has started"
            )

        if not name:
            raise ValueError("register expects a non-empty macro name")

        if name in self.definitions:
            raise DuplicateMacroError(
                f"Cannot redefine the macro {name}. One already exists"
            )

        if not callable(handler):
            raise InvalidHandlerError("register expects 2nd argument to be a function")

        self.definitions[name] = MacroDefinition(name=name, handler=handler, inline=bool(inline))
        LOG(f"Registered {'inline' if inline else 'block'} macro '{name}'", level=3)
        return self

    def resolve(self, name: str) -> Optional[MacroDefinition]:
        """
        Look up a macro by name

        Returns:
            MacroDefinition, or None when the name is not registered
        """
        return self.definitions.get(name)

    def freeze(self) -> None:
        """Make the registry read-only; idempotent"""
        if not self.frozen:
            LOG(f"Registry frozen with {len(self.definitions)} macros", level=3)
        self.frozen = True

    def names(self) -> List[str]:
        """Registered names, in registration order"""
        return list(self.definitions)

    def __contains__(self, name: object) -> bool:
        return name in self.definitions

    def __len__(self) -> int:
        return len(self.definitions)

    def __iter__(self) -> Iterator[MacroDefinition]:
        return iter(self.definitions.values())
