"""
mdcstream library modules

Tokenizer rules, tree conversion, auto-close, stringify engine and the
parse/stream pipelines.
"""

from .autoclose import auto_close
from .compiler import Compiler, render_html, render_markdown, to_html, to_markdown
from .converter import Converter, apply_auto_unwrap
from .handlers import HandlerRegistry
from .highlight import HighlighterContext
from .log import LOG, state_connectToLogger
from .parser import parse, parse_async
from .plugins import highlight_plugin, security_plugin, summary_plugin, task_list_plugin
from .stream import parse_stream, parse_stream_incremental
from .toc import generate_toc

__all__ = [
    "auto_close",
    "Compiler",
    "render_html",
    "render_markdown",
    "to_html",
    "to_markdown",
    "Converter",
    "apply_auto_unwrap",
    "HandlerRegistry",
    "HighlighterContext",
    "LOG",
    "state_connectToLogger",
    "parse",
    "parse_async",
    "highlight_plugin",
    "security_plugin",
    "summary_plugin",
    "task_list_plugin",
    "parse_stream",
    "parse_stream_incremental",
    "generate_toc",
]
