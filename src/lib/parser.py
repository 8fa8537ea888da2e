"""
MDC parse pipeline

Turns MDC source into a ParseResult through a chain of state-bus stages:

    source_autoClose -> hooks_pre -> frontmatter_extract -> source_tokenize
        -> tokens_convert -> hooks_post

Each stage receives a ParseState, copies it, adds its own fields and
returns the copy. parse() runs the chain synchronously; parse_async()
awaits coroutine plugin hooks and can highlight code blocks.

Example:
    >>> result = parse('---\\ntitle: Hi\\n---\\n::alert{type="info"}\\nHello\\n::')
    >>> result.data
    {'title': 'Hi'}
    >>> result.body.value[0]
    Element(tag='alert', attrs={'type': 'info'}, children=['Hello'])
"""

import inspect
from typing import Any, Callable, List, Optional

from ..models.ast import Tree
from ..models.parser import ParseResult
from ..models.state import HighlightOptions, ParseOptions, ParseState, Plugin, pipeline
from .autoclose import auto_close
from .converter import Converter, apply_auto_unwrap
from .frontmatter import parse_frontmatter
from .highlight import tree_highlight
from .log import LOG, state_connectToLogger
from .plugins import plugins_builtin
from .tokenizer import markdown_create
from .toc import generate_toc, tocOptions_fromData


def plugins_all(state: ParseState) -> List[Plugin]:
    """Built-in plugins followed by the caller's plugins"""
    return plugins_builtin() + list(state.options.plugins)


def source_autoClose(inputstate: ParseState) -> ParseState:
    """
    Repair unclosed syntax when auto-close is enabled.

    Returns:
        ParseState with ``markdown`` closed
    """
    state = inputstate.copy()
    state_connectToLogger(state)
    if state.options.auto_close:
        closed = auto_close(state.markdown)
        if closed != state.markdown:
            LOG(f"Auto-closed source ({len(state.markdown)} -> {len(closed)} chars)", level=2)
        state.markdown = closed
    return state


def hook_call(plugin: Plugin, hook: Optional[Callable[[ParseState], Any]], state: ParseState) -> None:
    """
    Run a synchronous plugin hook.

    Raises:
        TypeError: If the hook returns an awaitable
    """
    if hook is None:
        return
    result = hook(state)
    if inspect.isawaitable(result):
        if inspect.iscoroutine(result):
            result.close()
        raise TypeError(f"Plugin '{plugin.name}' has an async hook; use parse_async()")


def hooks_pre(inputstate: ParseState) -> ParseState:
    """Run every plugin ``pre`` hook; hooks may rewrite ``markdown``"""
    state = inputstate.copy()
    state_connectToLogger(state)
    for plugin in plugins_all(state):
        hook_call(plugin, plugin.pre, state)
    return state


def frontmatter_extract(inputstate: ParseState) -> ParseState:
    """
    Split the frontmatter from the source.

    Returns:
        ParseState with ``content`` and ``data``

    Raises:
        yaml.YAMLError: On malformed frontmatter YAML
    """
    state = inputstate.copy()
    state_connectToLogger(state)
    state.content, state.data = parse_frontmatter(state.markdown)
    if state.data:
        LOG(f"Frontmatter keys: {', '.join(map(str, state.data))}", level=2)
    return state


def source_tokenize(inputstate: ParseState) -> ParseState:
    """
    Tokenize the content with markdown-it-py and the MDC rules.

    Returns:
        ParseState with ``tokens``
    """
    state = inputstate.copy()
    state_connectToLogger(state)
    extensions = [extension for plugin in plugins_all(state) for extension in plugin.markdown_it_plugins]
    md = markdown_create(extensions)
    state.tokens = md.parse(state.content)
    LOG(f"Tokenized {len(state.tokens)} block token(s)", level=1)
    return state


def tokens_convert(inputstate: ParseState) -> ParseState:
    """
    Convert tokens into the tree, then auto-unwrap top-level containers.

    Top-level text nodes (raw HTML blocks) are dropped.

    Returns:
        ParseState with ``tree``
    """
    state = inputstate.copy()
    state_connectToLogger(state)
    nodes = Converter().convert(state.tokens)
    if state.options.auto_unwrap:
        nodes = [apply_auto_unwrap(node) for node in nodes]
    state.tree = Tree(value=[node for node in nodes if not isinstance(node, str)])
    LOG(f"Converted {len(state.tree.value)} top-level node(s)", level=1)
    return state


def hooks_post(inputstate: ParseState) -> ParseState:
    """Run every plugin ``post`` hook; hooks may rewrite ``tree`` and ``excerpt``"""
    state = inputstate.copy()
    state_connectToLogger(state)
    for plugin in plugins_all(state):
        hook_call(plugin, plugin.post, state)
    return state


def result_build(state: ParseState) -> ParseResult:
    """Assemble the ParseResult, computing the table of contents"""
    tree = state.tree if state.tree is not None else Tree()
    return ParseResult(
        body=tree,
        data=state.data,
        excerpt=state.excerpt,
        toc=generate_toc(tree, **tocOptions_fromData(state.data)),
    )


def parse(source: str, options: Optional[ParseOptions] = None) -> ParseResult:
    """
    Parse MDC source.

    Args:
        source: MDC text (possibly partial when auto-close is enabled)
        options: Parse options (defaults from appsettings)

    Returns:
        ParseResult with body, data, excerpt and toc

    Raises:
        yaml.YAMLError: On malformed frontmatter YAML
        TypeError: If a plugin hook is a coroutine
    """
    state = ParseState.state_createFromOptions(source, options)
    state_connectToLogger(state)
    LOG(f"Parsing {len(source)} characters", level=1)
    final = pipeline(
        state,
        source_autoClose,
        hooks_pre,
        frontmatter_extract,
        source_tokenize,
        tokens_convert,
        hooks_post,
    )
    return result_build(final)


async def hooksAsync_run(state: ParseState, stage: str) -> None:
    """Run the ``pre`` or ``post`` hooks, awaiting coroutine results"""
    for plugin in plugins_all(state):
        hook = plugin.pre if stage == "pre" else plugin.post
        if hook is None:
            continue
        result = hook(state)
        if inspect.isawaitable(result):
            await result


async def parse_async(source: str, options: Optional[ParseOptions] = None) -> ParseResult:
    """
    Parse MDC source, awaiting async plugin hooks.

    When ``options.highlight`` is set, code blocks with a language are
    highlighted with Pygments after the post hooks.

    Args:
        source: MDC text
        options: Parse options

    Returns:
        ParseResult with body, data, excerpt and toc
    """
    state = ParseState.state_createFromOptions(source, options)
    state_connectToLogger(state)
    LOG(f"Parsing {len(source)} characters (async)", level=1)

    state = source_autoClose(state)
    await hooksAsync_run(state, "pre")
    state = pipeline(state, frontmatter_extract, source_tokenize, tokens_convert)
    await hooksAsync_run(state, "post")

    highlight = state.options.highlight
    if highlight and state.tree is not None:
        settings = highlight if isinstance(highlight, HighlightOptions) else HighlightOptions()
        tree_highlight(state.tree, settings)
        if state.excerpt is not None:
            tree_highlight(state.excerpt, settings)

    return result_build(state)
