"""
Loguru-backed logging gated by the active ProgramState's verbosity.

The CLI binds its ProgramState once with state_connectToLogger(); library
code (scanner, registry, parser, compiler) then calls LOG() without having
to carry the state around. Outside a CLI run nothing is bound and LOG() is
silent unless MACRODOWN_DEBUG_MODE is set.

Usage:
    from macrodown.lib.log import LOG, state_connectToLogger

    state_connectToLogger(state)
    LOG("Parsed 12 blocks", level=2)
    LOG("No closing tag for [note] after 40 lines", level=3)
"""

from loguru import logger
from typing import Any, Optional
from contextvars import ContextVar
import sys

from ..config import appsettings

_program_state: ContextVar[Optional[Any]] = ContextVar('program_state', default=None)

logger_format = (
    "<green>{time:HH:mm:ss}</green> │ "
    "<level>{level: <5}</level> │ "
    "<cyan>{module: <12}</cyan>:"
    "<cyan>{function: <20}</cyan> ║ "
    "<level>{message}</level>"
)

logger.remove()
logger.add(sys.stderr, format=logger_format, level="DEBUG")


def state_connectToLogger(state: Any) -> None:
    """
    Bind a ProgramState to the current logging context.

    Args:
        state: Object with an integer `verbosity` attribute
    """
    _program_state.set(state)


def verbosity_get() -> int:
    """Verbosity of the bound state; 3 in debug mode, 0 when nothing is bound"""
    state = _program_state.get()
    if state is not None and hasattr(state, 'verbosity'):
        return state.verbosity
    return 3 if appsettings.debug_mode else 0


def LOG(message: str, level: int = 1, **kwargs: Any) -> None:
    """
    Log message if the current verbosity allows.

    Args:
        message: Log message to display
        level: Minimum verbosity level required (1=normal, 2=verbose, 3=trace)
        **kwargs: Additional loguru arguments
    """
    if verbosity_get() >= level:
        logger.opt(depth=1).debug(message, **kwargs)


def WARN(message: str, **kwargs: Any) -> None:
    """Warnings are shown at every verbosity above zero"""
    if verbosity_get() >= 1:
        logger.opt(depth=1).warning(message, **kwargs)
