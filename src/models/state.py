"""
Parse state model and pipeline helper

Defines the ParseState dataclass for the functional pipeline pattern, the
per-call ParseOptions, the Plugin extension point, the ProgramState used by
the command line, and the pipeline() helper for composing stages.
"""

import dataclasses
from argparse import Namespace
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Type, TypeVar, Union, TYPE_CHECKING

from ..config import appsettings
from .ast import Tree
from .parser import ParseResult

if TYPE_CHECKING:
    from ..lib.highlight import HighlighterContext


PS = TypeVar("PS", bound="ParseState")
S = TypeVar("S")


@dataclass
class HighlightOptions:
    """
    Syntax highlighting configuration for parse_async()

    Attributes:
        context: Lexer cache; pass the same context to several calls to
                 reuse lexers, or leave None for a per-call cache
        languages: Optional allow-list of language names; others are left
                   as plain code
    """
    context: Optional["HighlighterContext"] = None
    languages: Optional[List[str]] = None


@dataclass
class Plugin:
    """
    Parse extension point

    A plugin contributes markdown-it-py plugins registered on the tokenizer,
    a ``pre`` hook run before tokenizing (may rewrite ``state.markdown``),
    and a ``post`` hook run after the tree is built (may rewrite
    ``state.tree``). Hooks may be coroutines; those need parse_async().

    Attributes:
        name: Plugin name for logging
        markdown_it_plugins: Callables passed to MarkdownIt.use()
        pre: Hook called with the ParseState before tokenizing
        post: Hook called with the ParseState after tree construction
    """
    name: str = "plugin"
    markdown_it_plugins: List[Callable[..., Any]] = field(default_factory=list)
    pre: Optional[Callable[["ParseState"], Any]] = None
    post: Optional[Callable[["ParseState"], Any]] = None


@dataclass
class ParseOptions:
    """
    Options for one parse call (read-only input)

    Attributes:
        auto_unwrap: Collapse single-paragraph container components
        auto_close: Run the auto-close engine before tokenizing
        plugins: Extra plugins, run after the built-in ones
        highlight: Enable Pygments highlighting (parse_async only);
                   True for defaults or a HighlightOptions
        verbosity: LOG() verbosity for this call
    """
    auto_unwrap: bool = field(default_factory=lambda: appsettings.auto_unwrap)
    auto_close: bool = field(default_factory=lambda: appsettings.auto_close)
    plugins: List[Plugin] = field(default_factory=list)
    highlight: Union[bool, HighlightOptions, None] = None
    verbosity: int = field(default_factory=lambda: appsettings.verbosity)


@dataclass
class ParseState:
    """
    Central state container for the parse pipeline (state bus pattern).

    Pipeline stages and their state additions:
        - Initial: markdown, options, verbosity
        - source_autoClose: markdown (repaired)
        - hooks_pre: markdown (plugin rewrites)
        - frontmatter_extract: content, data
        - source_tokenize: tokens
        - tokens_convert: tree
        - hooks_post: tree, excerpt (plugin rewrites)

    Attributes:
        markdown: Source text being parsed
        options: Options for this call
        verbosity: Logging verbosity level (0-3)
        content: Source text with frontmatter removed
        data: Frontmatter data
        tokens: markdown-it-py block tokens
        tree: Parsed tree
        excerpt: Excerpt tree filled by the summary plugin
    """

    markdown: str = field(default="")
    options: ParseOptions = field(default_factory=ParseOptions)
    verbosity: int = field(default=0)

    # Pipeline state
    content: str = field(default="")
    data: Dict[str, Any] = field(default_factory=dict)
    tokens: List[Any] = field(default_factory=list)  # List[Token] at runtime
    tree: Optional[Tree] = field(default=None)
    excerpt: Optional[Tree] = field(default=None)

    @classmethod
    def state_createFromOptions(cls, markdown: str, options: Optional[ParseOptions] = None) -> "ParseState":
        """
        Create the initial ParseState for a source string.

        Args:
            markdown: Source text
            options: Parse options (defaults from appsettings)

        Returns:
            ParseState ready for the first pipeline stage
        """
        options = options or ParseOptions()
        return cls(markdown=markdown, options=options, verbosity=options.verbosity)

    def copy(self: PS) -> PS:
        """
        Creates a shallow copy of the ParseState instance.

        Returns:
            A new ParseState instance.
        """
        return type(self)(**self.__dict__)


@dataclass
class ProgramState:
    """
    State container for the command line pipeline (state bus pattern).

    Pipeline stages and their state additions:
        - Initial: inputFile, outputFile, to, stream, chunkSize, highlight, verbosity
        - source_read: source
        - document_parse: result
        - output_render: output
        - output_write: (no additions, terminal stage)

    Attributes:
        inputFile: Source path, or "-" for stdin
        outputFile: Destination path, or "-" for stdout
        to: Output format ("html", "mdc" or "json")
        stream: Parse incrementally, chunk by chunk
        chunkSize: Bytes per chunk when streaming
        highlight: Highlight code blocks with Pygments
        verbosity: Logging verbosity level (0-3)
        source: Raw source bytes
        result: Parse result
        output: Rendered document
    """

    # CLI arguments
    inputFile: str = field(default="-")
    outputFile: str = field(default="-")
    to: str = field(default="html")
    stream: bool = field(default=False)
    chunkSize: int = field(default=64)
    highlight: bool = field(default=False)
    verbosity: int = field(default=0)

    # Pipeline state
    source: bytes = field(default=b"")
    result: Optional[ParseResult] = field(default=None)
    output: str = field(default="")

    @classmethod
    def state_createFromNamespace(cls: Type["ProgramState"], options: Namespace) -> "ProgramState":
        """
        Create ProgramState from an argparse Namespace.

        Options without a matching field are ignored.
        """
        valid_fields = {f.name for f in dataclasses.fields(cls)}
        return cls(**{k: v for k, v in vars(options).items() if k in valid_fields})

    @property
    def inputPath(self) -> Optional[Path]:
        return None if self.inputFile == "-" else Path(self.inputFile)

    def copy(self) -> "ProgramState":
        """
        Creates a shallow copy of the ProgramState instance.

        Returns:
            A new ProgramState instance.
        """
        return type(self)(**self.__dict__)


def pipeline(initial_state: S, *stages: Callable[[S], S]) -> S:
    """
    Execute a functional pipeline of state transformations.

    Each stage is a function (state) -> state that receives
    the output of the previous stage and returns a new state.

    Args:
        initial_state: Starting ParseState or ProgramState
        *stages: Variable number of stage functions to execute in order

    Returns:
        Final state after all transformations

    Example:
        final_state = pipeline(
            initial_state,
            source_autoClose,
            frontmatter_extract,
            source_tokenize,
            tokens_convert,
        )

    This is equivalent to:
        tokens_convert(source_tokenize(frontmatter_extract(source_autoClose(initial_state))))

    But reads left-to-right instead of inside-out.
    """
    from functools import reduce
    return reduce(lambda state, stage: stage(state), stages, initial_state)
