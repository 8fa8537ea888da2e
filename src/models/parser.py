"""
Parser-specific data models

Type-safe structures for parser operations and return values.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .ast import Tree


@dataclass
class ComponentFrame:
    """
    An open block component seen by the auto-close engine

    Pushed when a ``::name`` line is scanned and popped when a bare colon
    line of the same depth closes it.

    Attributes:
        depth: Number of colons on the opening line
        name: Component name (identifier run after the colons)
        indent: Leading whitespace of the opening line, reused for closers
        has_yaml_props: A ``---`` props fence is open for this component

    Example:
        For the line "  :::card{.wide}":
        ComponentFrame(depth=3, name="card", indent="  ")
    """
    depth: int
    name: str
    indent: str = ""
    has_yaml_props: bool = False


@dataclass
class MarkerFrame:
    """
    An inline marker left open on the line being closed

    Attributes:
        marker: One of ``* _ ~ ` $ [ (``
        count: Run length still owed a closer (paren depth for ``(``)
    """
    marker: str
    count: int = 1


@dataclass
class TocLink:
    """
    One entry of a table of contents

    Attributes:
        id: Heading id (slug) used as the anchor
        depth: Heading level (2 for h2 ...)
        text: Heading text content
        children: Nested entries for deeper headings
    """
    id: str
    depth: int
    text: str
    children: List["TocLink"] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {"id": self.id, "depth": self.depth, "text": self.text}
        if self.children:
            result["children"] = [child.to_dict() for child in self.children]
        return result


@dataclass
class Toc:
    """
    Table of contents of a document

    Attributes:
        title: TOC title (from frontmatter toc.title, else "")
        depth: Deepest nesting level included, relative to h2
        search_depth: How deep component children are searched for headings
        links: Top-level entries
    """
    title: str = ""
    depth: int = 2
    search_depth: int = 2
    links: List[TocLink] = field(default_factory=list)


@dataclass
class ParseResult:
    """
    Result of parsing one complete document

    Attributes:
        body: The parsed tree
        data: Frontmatter data (empty dict when there is none)
        excerpt: Tree of the content before the summary delimiter, if any
        toc: Table of contents
    """
    body: Tree
    data: Dict[str, Any] = field(default_factory=dict)
    excerpt: Optional[Tree] = None
    toc: Optional[Toc] = None


@dataclass
class StreamSnapshot:
    """
    One result of incremental stream parsing

    Attributes:
        chunk: The text chunk that produced this snapshot ("" for the final one)
        body: Tree of the accumulated text (auto-closed while incomplete)
        data: Frontmatter data known so far
        is_complete: True only on the final snapshot
        excerpt: Excerpt tree, if a summary delimiter was seen
        toc: Table of contents, only on the final snapshot
    """
    chunk: str
    body: Tree
    data: Dict[str, Any] = field(default_factory=dict)
    is_complete: bool = False
    excerpt: Optional[Tree] = None
    toc: Optional[Toc] = None
