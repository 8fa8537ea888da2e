"""
MDC tree model

Defines the node types produced by the converter and consumed by the
stringify engine, plus a few small tree utilities.

A node is either a plain ``str`` (text) or an ``Element``. A parsed
document is a ``Tree``: an ordered list of top-level nodes tagged with
the ``"mdc"`` discriminant. There is no synthetic root element.

Example:
    >>> tree = Tree(value=[Element("p", {}, ["Hello ", Element("strong", {}, ["world"])])])
    >>> text_content(tree.value[0])
    'Hello world'
"""

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Union


AttrValue = Union[str, bool, int, float, Dict[str, Any], List[Any]]


@dataclass
class Element:
    """
    A tagged element with attributes and ordered children

    Attributes:
        tag: Element name, either an HTML tag ("p", "strong") or a
             component name ("alert", "u-page-section")
        attrs: Attribute map, insertion ordered. Keys prefixed with ":"
               are dynamic/boolean attributes (":disabled" -> "true").
        children: Child nodes (str or Element)
    """
    tag: str
    attrs: Dict[str, AttrValue] = field(default_factory=dict)
    children: List["Node"] = field(default_factory=list)

    def to_list(self) -> List[Any]:
        """
        Convert to the compact ``[tag, attrs, *children]`` form

        Returns:
            Nested list structure suitable for JSON serialization

        Example:
            >>> Element("p", {}, ["hi"]).to_list()
            ['p', {}, 'hi']
        """
        return [self.tag, dict(self.attrs)] + [node_toList(child) for child in self.children]


Node = Union[str, Element]


@dataclass
class Tree:
    """
    A parsed MDC document

    Attributes:
        value: Top-level nodes in document order
        type: Discriminant identifying the tree kind (always "mdc")
    """
    value: List[Node] = field(default_factory=list)
    type: str = "mdc"

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to ``{"type": "mdc", "value": [...]}``"""
        return {"type": self.type, "value": [node_toList(node) for node in self.value]}


def node_toList(node: Node) -> Any:
    """Convert a node to its compact list form (text stays a string)"""
    if isinstance(node, Element):
        return node.to_list()
    return node


def text_content(node: Union[Node, List[Node]]) -> str:
    """
    Concatenate all text below a node

    Args:
        node: A node or a list of nodes

    Returns:
        The text content, in document order
    """
    if isinstance(node, str):
        return node
    if isinstance(node, list):
        return "".join(text_content(child) for child in node)
    return "".join(text_content(child) for child in node.children)


def visit(
    tree: Tree,
    checker: Callable[[Node], bool],
    visitor: Callable[[Node], Optional[Union[Node, bool]]],
) -> None:
    """
    Walk the tree depth-first and replace matching nodes in place

    For each node where ``checker(node)`` is true, ``visitor(node)`` is
    called. Returning a node replaces the original (whole-subtree
    replacement), returning ``False`` removes it, and returning ``None``
    keeps it unchanged. Children of matched nodes are still visited.

    Args:
        tree: Tree to walk
        checker: Predicate selecting the nodes to visit
        visitor: Callback producing the replacement

    Example:
        >>> visit(tree, lambda n: isinstance(n, Element) and n.tag == "img",
        ...       lambda n: False)   # strip all images
    """

    def children_walk(children: List[Node]) -> None:
        index = 0
        while index < len(children):
            child = children[index]
            if checker(child):
                replacement = visitor(child)
                if replacement is False:
                    del children[index]
                    continue
                if replacement is not None and replacement is not True:
                    children[index] = replacement
                    child = replacement
            if isinstance(child, Element):
                children_walk(child.children)
            index += 1

    children_walk(tree.value)
