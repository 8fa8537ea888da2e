"""
mdcstream - MDC (Markdown + Components) parser and renderer

Parses MDC source into a component tree, repairs partial input while it
streams in, and renders trees back to MDC or to HTML.
"""

__version__ = "1.0.0"

from .lib import (
    LOG,
    apply_auto_unwrap,
    auto_close,
    generate_toc,
    highlight_plugin,
    parse,
    parse_async,
    parse_stream,
    parse_stream_incremental,
    render_html,
    render_markdown,
    security_plugin,
    state_connectToLogger,
    summary_plugin,
    task_list_plugin,
)
from .models import (
    Element,
    HighlightOptions,
    ParseOptions,
    ParseResult,
    ParseState,
    Plugin,
    StreamSnapshot,
    Toc,
    TocLink,
    Tree,
    visit,
)

__all__ = [
    "parse",
    "parse_async",
    "parse_stream",
    "parse_stream_incremental",
    "render_html",
    "render_markdown",
    "auto_close",
    "apply_auto_unwrap",
    "generate_toc",
    "task_list_plugin",
    "summary_plugin",
    "security_plugin",
    "highlight_plugin",
    "Element",
    "Tree",
    "visit",
    "ParseOptions",
    "ParseState",
    "ParseResult",
    "StreamSnapshot",
    "HighlightOptions",
    "Plugin",
    "Toc",
    "TocLink",
    "LOG",
    "state_connectToLogger",
    "__version__",
]
