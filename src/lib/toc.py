"""
Table of contents generation

Collects ``h2``..``h6`` headings from a parsed tree, searching component
children down to ``search_depth`` levels, and nests deeper headings under
the preceding shallower one.

Example:
    >>> toc = generate_toc(parse("## A\\n\\n### B\\n\\n## C").body)
    >>> [link.text for link in toc.links], [c.text for c in toc.links[0].children]
    (['A', 'C'], ['B'])
"""

from typing import Any, Dict, List, Optional

from ..config import appsettings
from ..models.ast import Element, Node, Tree, text_content
from ..models.parser import Toc, TocLink
from .log import LOG


TOC_TAGS: List[str] = ["h2", "h3", "h4", "h5", "h6"]


def tocTags_get(depth: int) -> List[str]:
    """Heading tags included for a toc depth (1 = h2 only)"""
    if depth < 1 or depth > 5:
        LOG(f"toc.depth is set to {depth}; it should be between 1 and 5", level=1)
        depth = 1
    return TOC_TAGS[:depth]


def nodes_flatten(nodes: List[Node], max_depth: int, current_depth: int = 0) -> List[Node]:
    """
    Flatten nodes and their descendants in document order.

    Children are expanded while ``current_depth < max_depth``.
    """
    if current_depth >= max_depth:
        return list(nodes)

    result: List[Node] = []
    for node in nodes:
        result.append(node)
        if isinstance(node, Element) and node.children:
            result.extend(nodes_flatten(node.children, max_depth, current_depth + 1))
    return result


def headers_nest(headers: List[TocLink]) -> List[TocLink]:
    """Nest each link under the closest preceding link of lower depth"""
    if len(headers) <= 1:
        return headers

    toc: List[TocLink] = []
    parent: Optional[TocLink] = None
    for header in headers:
        if parent is None or header.depth <= parent.depth:
            header.children = []
            parent = header
            toc.append(header)
        else:
            parent.children.append(header)

    for header in toc:
        if header.children:
            header.children = headers_nest(header.children)
    return toc


def generate_flat_toc(tree: Tree, depth: int = 2, search_depth: int = 2, title: str = "") -> Toc:
    """
    Build a table of contents without nesting.

    Args:
        tree: Parsed tree
        depth: Number of heading levels to include, starting at h2
        search_depth: How many levels of element children are searched
        title: TOC title

    Returns:
        Toc whose links are in document order
    """
    tags = tocTags_get(depth)
    links: List[TocLink] = []
    for node in nodes_flatten(tree.value, search_depth):
        if isinstance(node, Element) and node.tag in tags:
            links.append(TocLink(
                id=str(node.attrs.get("id", "")),
                depth=int(node.tag[1]),
                text=text_content(node),
            ))
    return Toc(title=title, depth=depth, search_depth=search_depth, links=links)


def generate_toc(tree: Tree,
                 depth: Optional[int] = None,
                 search_depth: Optional[int] = None,
                 title: str = "") -> Toc:
    """
    Build a nested table of contents.

    Args:
        tree: Parsed tree
        depth: Heading levels to include (default appsettings.toc_depth)
        search_depth: Child search depth (default appsettings.toc_search_depth)
        title: TOC title

    Returns:
        Toc with nested links
    """
    toc = generate_flat_toc(
        tree,
        depth=appsettings.toc_depth if depth is None else depth,
        search_depth=appsettings.toc_search_depth if search_depth is None else search_depth,
        title=title,
    )
    toc.links = headers_nest(toc.links)
    return toc


def tocOptions_fromData(data: Dict[str, Any]) -> Dict[str, Any]:
    """
    Read toc options from frontmatter.

    ``toc`` may be a mapping with ``depth``, ``searchDepth`` and ``title``;
    otherwise top-level ``depth``/``searchDepth``/``title`` keys are used.
    Missing or non-integer values fall back to appsettings.
    """
    source = data.get("toc") if isinstance(data.get("toc"), dict) else data

    def integer(key: str, default: int) -> int:
        value = source.get(key)
        return value if isinstance(value, int) and not isinstance(value, bool) and value else default

    title = source.get("title") if isinstance(data.get("toc"), dict) else data.get("title")
    return {
        "depth": integer("depth", appsettings.toc_depth),
        "search_depth": integer("searchDepth", appsettings.toc_search_depth),
        "title": title if isinstance(title, str) else "",
    }
