"""
Models package for mdcstream

Contains the tree types, parse results and pipeline state for the
library and the command line.
"""

from .ast import Element, Node, Tree, text_content, visit
from .handlers import HandlerCategory, HandlerSpec
from .parser import ComponentFrame, MarkerFrame, ParseResult, StreamSnapshot, Toc, TocLink
from .state import HighlightOptions, ParseOptions, ParseState, Plugin, ProgramState, pipeline

__all__ = [
    "Element",
    "Node",
    "Tree",
    "text_content",
    "visit",
    "HandlerCategory",
    "HandlerSpec",
    "ComponentFrame",
    "MarkerFrame",
    "ParseResult",
    "StreamSnapshot",
    "Toc",
    "TocLink",
    "HighlightOptions",
    "ParseOptions",
    "ParseState",
    "Plugin",
    "ProgramState",
    "pipeline",
]
