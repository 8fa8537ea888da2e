"""
Compiler for MDC trees to MDC source or HTML

Walks a parsed Tree and produces either MDC markdown (through the
HandlerRegistry) or HTML (generic element rendering with optional
caller-supplied component renderers).

Example:
    >>> tree = parse('::alert{type="info"}\\nHello\\n::').body
    >>> render_markdown(tree)
    '::alert{type="info"}\\nHello\\n::'
    >>> render_html(tree)
    '<alert type="info">Hello</alert>'
"""

import html
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Union

from ..models.ast import Element, Node, Tree
from .attributes import attributes_toHTML
from .frontmatter import render_frontmatter
from .handlers import HandlerRegistry
from .log import LOG


FORMAT_MARKDOWN = "markdown/mdc"
FORMAT_HTML = "text/html"

VOID_TAGS = frozenset({
    "area", "base", "br", "col", "embed", "hr", "img", "input",
    "link", "meta", "source", "track", "wbr",
})

Renderer = Callable[[str, Dict[str, Any], List[Node], "RenderContext"], str]


@dataclass
class ListContext:
    """
    Innermost list being stringified

    Attributes:
        active: True while inside a list
        ordered: Ordered (``1.``) or bullet (``-``) markers
        counter: Number of the next ordered item
    """
    active: bool = False
    ordered: bool = False
    counter: int = 1


@dataclass
class StringifyState:
    """
    State threaded through markdown handlers

    Attributes:
        block_separator: Text appended after every block
        list: Innermost list context
        node_depth: Component nesting depth; block fences use depth + 2 colons
    """
    block_separator: str = "\n\n"
    list: ListContext = field(default_factory=ListContext)
    node_depth: int = 0

    def list_open(self, ordered: bool, start: Any = 1) -> ListContext:
        """New list context for a nested or top-level list"""
        counter = start if isinstance(start, int) and not isinstance(start, bool) else 1
        return ListContext(active=True, ordered=ordered, counter=counter)


@dataclass
class RenderContext:
    """
    Passed to HTML component renderers

    Attributes:
        render: Renders a list of child nodes with the same options
        data: Caller data (e.g. frontmatter)
    """
    render: Callable[[List[Node]], str]
    data: Dict[str, Any] = field(default_factory=dict)


class Compiler:
    """
    Compiles a Tree to MDC markdown or HTML

    One Compiler handles one stringify call; it owns the StringifyState.
    """

    def __init__(
        self,
        format: str = FORMAT_MARKDOWN,
        components: Optional[Dict[str, Renderer]] = None,
        data: Optional[Dict[str, Any]] = None,
    ) -> None:
        """
        Initialize compiler

        Args:
            format: FORMAT_MARKDOWN or FORMAT_HTML
            components: HTML renderers keyed by tag
            data: Caller data passed to HTML renderers
        """
        if format not in (FORMAT_MARKDOWN, FORMAT_HTML):
            raise ValueError(f"Unknown stringify format: {format}")
        self.format = format
        self.components = components or {}
        self.data = data or {}
        self.registry = HandlerRegistry()
        self.state = StringifyState()

    def compile(self, tree: Union[Tree, List[Node]]) -> str:
        """
        Compile a whole tree

        Args:
            tree: Tree or list of top-level nodes

        Returns:
            MDC source or HTML text
        """
        nodes = tree.value if isinstance(tree, Tree) else tree
        LOG(f"Stringifying {len(nodes)} top-level node(s) as {self.format}", level=2)
        if self.format == FORMAT_HTML:
            return "\n".join(self.html_compile(node) for node in nodes)
        return "".join(self.node_compile(node) for node in nodes)

    def node_compile(self, node: Node, parent: Optional[Element] = None) -> str:
        """
        Compile one node to MDC source

        Args:
            node: Text or element
            parent: Immediate parent element (None at top level)

        Returns:
            MDC source for the node
        """
        if isinstance(node, str):
            return node
        return self.registry.get(node.tag)(node, self, parent)

    def html_compile(self, node: Node) -> str:
        """
        Compile one node to HTML

        Text is escaped. Tags with a registered renderer are delegated to
        it; everything else renders as a literal element.
        """
        if isinstance(node, str):
            return html.escape(node, quote=False)

        renderer = self.components.get(node.tag)
        if renderer is not None:
            context = RenderContext(render=self.children_toHTML, data=self.data)
            return renderer(node.tag, dict(node.attrs), list(node.children), context)

        attrs = attributes_toHTML(node.attrs)
        if node.tag in VOID_TAGS:
            return f"<{node.tag}{attrs}>"
        return f"<{node.tag}{attrs}>{self.children_toHTML(node.children)}</{node.tag}>"

    def children_toHTML(self, children: List[Node]) -> str:
        return "".join(self.html_compile(child) for child in children)


def to_markdown(tree: Union[Tree, List[Node]]) -> str:
    """Stringify a tree to MDC source"""
    return Compiler(FORMAT_MARKDOWN).compile(tree)


def to_html(
    tree: Union[Tree, List[Node]],
    components: Optional[Dict[str, Renderer]] = None,
    data: Optional[Dict[str, Any]] = None,
) -> str:
    """Stringify a tree to HTML"""
    return Compiler(FORMAT_HTML, components=components, data=data).compile(tree)


def render_markdown(tree: Union[Tree, List[Node]], data: Optional[Dict[str, Any]] = None) -> str:
    """
    Render a tree as an MDC document

    Args:
        tree: Parsed tree
        data: Frontmatter data; a YAML frontmatter block is prefixed when
              non-empty

    Returns:
        MDC source without trailing whitespace
    """
    return render_frontmatter(data or {}, to_markdown(tree))


def render_html(
    tree: Union[Tree, List[Node]],
    components: Optional[Dict[str, Renderer]] = None,
    data: Optional[Dict[str, Any]] = None,
) -> str:
    """
    Render a tree as HTML

    Args:
        tree: Parsed tree
        components: Renderers ``renderer(tag, attrs, children, context)``
                    keyed by tag; ``context.render(children)`` renders
                    nested nodes and ``context.data`` is ``data``
        data: Caller data for component renderers

    Returns:
        HTML text without surrounding whitespace
    """
    return to_html(tree, components=components, data=data).strip()
