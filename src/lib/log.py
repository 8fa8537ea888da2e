"""
Verbosity-gated logging on loguru.

Parse calls are silent by default. A pipeline stage publishes its state
(ParseState for the library, ProgramState for the command line) with
state_connectToLogger(); LOG() then emits only messages whose level is at
or below that state's ``verbosity``. The state lives in a ContextVar, so
concurrent parses in different asyncio tasks keep separate verbosities.

Levels:
    1  pipeline stages ("Tokenized 14 block token(s)")
    2  recoverable problems and stream snapshots
    3  tokenizer trace

Example:
    >>> state = ParseState.state_createFromOptions("# Hi", ParseOptions(verbosity=2))
    >>> state_connectToLogger(state)
    >>> LOG("shown", level=2)
    >>> LOG("hidden", level=3)
"""

import sys
from contextvars import ContextVar
from typing import Any, Optional

from loguru import logger

_parse_state: ContextVar[Optional[Any]] = ContextVar("mdcstream_state", default=None)

logger_format = (
    "<green>{time:HH:mm:ss}</green> │ "
    "<level>{level: <5}</level> │ "
    "<cyan>{module}.{function}</cyan>:<cyan>{line}</cyan> ║ "
    "<level>{message}</level>"
)

logger.remove()
logger.add(sys.stderr, format=logger_format, level="DEBUG")


def state_connectToLogger(state: Any) -> None:
    """
    Make ``state.verbosity`` the threshold for LOG() in the current context.

    Args:
        state: Any object with an integer ``verbosity`` attribute
    """
    _parse_state.set(state)


def LOG(message: str, level: int = 1, **kwargs: Any) -> None:
    """
    Emit a debug record when the connected state is verbose enough.

    Args:
        message: Text to log
        level: Verbosity needed to see the message (1-3)
        **kwargs: Passed to loguru for message formatting
    """
    state = _parse_state.get()
    if getattr(state, "verbosity", 0) >= level:
        logger.opt(depth=1).debug(message, **kwargs)
