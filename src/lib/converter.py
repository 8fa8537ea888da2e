"""
Token stream to MDC tree conversion

Walks the flat markdown-it-py token stream with an index cursor and builds
``Element``/text nodes. Every open token is matched with its own close
token by counting nesting depth on that token type only; the enclosed
slice is converted recursively and the cursor resumes after the close.

Key behaviours:
- ``{attrs}`` tokens trailing a closed element merge into its attributes
  (``**bold**{.cls}`` -> strong with class "cls")
- headings get a slug ``id`` from their text
- a list item's single paragraph is unwrapped into the item
- unknown or unmatched tokens are skipped, never raised on

Example:
    >>> nodes = Converter().convert(markdown_create().parse("# Hello *you*"))
    >>> nodes[0]
    Element(tag='h1', attrs={'id': 'hello-you'}, children=['Hello ', Element(tag='em', attrs={}, children=['you'])])
"""

from typing import Any, Dict, List, Optional, Sequence

from markdown_it.token import Token

from ..config import appsettings
from ..models.ast import Element, Node, text_content
from .log import LOG


# Open token type -> tree tag (None: use token.tag)
BLOCK_TAGS: Dict[str, Optional[str]] = {
    "paragraph_open": "p",
    "heading_open": None,
    "bullet_list_open": "ul",
    "ordered_list_open": "ol",
    "list_item_open": "li",
    "blockquote_open": "blockquote",
    "table_open": "table",
    "thead_open": "thead",
    "tbody_open": "tbody",
    "tr_open": "tr",
    "th_open": "th",
    "td_open": "td",
    "strong_open": "strong",
    "em_open": "em",
    "s_open": "del",
    "link_open": "a",
    "mdc_block_open": None,
    "mdc_block_slot_open": "template",
    "mdc_inline_component_open": None,
    "mdc_inline_span_open": "span",
}

# Token attributes carried over to the element
KEPT_ATTRS = ("class", "start", "style", "href", "title")


class Slugger:
    """
    Heading id generator with per-document collision handling

    Example:
        >>> slugger = Slugger()
        >>> slugger.slug("Hello World"), slugger.slug("Hello World")
        ('hello-world', 'hello-world-1')
    """

    def __init__(self) -> None:
        self.seen: Dict[str, int] = {}

    def slug(self, text: str) -> str:
        chars: List[str] = []
        for ch in text.strip().lower():
            if ch.isalnum() or ch in "_-":
                chars.append(ch)
            elif ch.isspace():
                chars.append("-")
        base = "".join(chars)
        if base and base[0].isdigit():
            base = "_" + base

        slug = base
        while slug in self.seen:
            self.seen[base] += 1
            slug = f"{base}-{self.seen[base]}"
        self.seen[slug] = 0
        return slug


def fenceInfo_parse(info: str) -> Dict[str, Any]:
    """
    Split a fence info string into pre attributes.

    Recognizes ``lang [filename] {1,3-4} meta...``.

    Example:
        >>> fenceInfo_parse("ts [app.ts] {2} twoslash")
        {'language': 'ts', 'filename': 'app.ts', 'highlights': [2], 'meta': 'twoslash'}
    """
    info = info.strip()
    attrs: Dict[str, Any] = {}
    if not info:
        return attrs

    pos = 0
    while pos < len(info) and not info[pos].isspace() and info[pos] not in "[{":
        pos += 1
    if pos:
        attrs["language"] = info[:pos]
    rest = info[pos:].strip()

    if rest.startswith("["):
        close = rest.find("]")
        if close > 0:
            attrs["filename"] = rest[1:close].replace("\\", "")
            rest = rest[close + 1:].strip()

    if rest.startswith("{"):
        close = rest.find("}")
        if close > 0:
            highlights: List[int] = []
            for part in rest[1:close].split(","):
                bounds = part.strip().split("-")
                if all(bound.strip().isdigit() for bound in bounds):
                    first, last = int(bounds[0]), int(bounds[-1])
                    highlights.extend(range(first, last + 1))
            attrs["highlights"] = highlights
            rest = rest[close + 1:].strip()

    if rest:
        attrs["meta"] = rest
    return attrs


class Converter:
    """
    Converts markdown-it-py tokens into MDC tree nodes

    One Converter handles one document; it owns the heading slugger.
    """

    def __init__(self) -> None:
        self.slugger = Slugger()

    def convert(self, tokens: Sequence[Token]) -> List[Node]:
        """
        Convert a whole token stream.

        Args:
            tokens: Block level tokens from MarkdownIt.parse()

        Returns:
            Top-level nodes
        """
        return self.nodes_convert(tokens, 0, len(tokens))

    def close_find(self, tokens: Sequence[Token], start: int, end: int) -> int:
        """
        Find the close token matching the open token at ``start``.

        Returns:
            Index of the matching close token, or -1 when unmatched
        """
        base = tokens[start].type[: -len("_open")]
        close_type = base + "_close"
        depth = 0
        for index in range(start, end):
            kind = tokens[index].type
            if kind == tokens[start].type:
                depth += 1
            elif kind == close_type:
                depth -= 1
                if depth == 0:
                    return index
        return -1

    def props_merge(self, node: Optional[Node], tokens: Sequence[Token], index: int, end: int) -> int:
        """
        Merge ``mdc_inline_props`` tokens following a node into its attrs.

        Whitespace-only text tokens between the node and the props are
        skipped when props follow; otherwise the cursor is left alone.

        Returns:
            Index of the first unconsumed token
        """
        if not isinstance(node, Element):
            return index
        cursor = index
        while cursor < end and tokens[cursor].type == "text" and not tokens[cursor].content.strip():
            cursor += 1
        if cursor < end and tokens[cursor].type == "mdc_inline_props":
            attrs = tokens[cursor].meta.get("attrs", {})
            if "class" in attrs and "class" in node.attrs:
                attrs = dict(attrs, **{"class": f"{node.attrs['class']} {attrs['class']}"})
            node.attrs.update(attrs)
            return cursor + 1
        return index

    def nodes_convert(self, tokens: Sequence[Token], start: int, end: int) -> List[Node]:
        """
        Convert the tokens in ``[start, end)`` into a list of nodes.

        Adjacent text nodes are merged.
        """
        nodes: List[Node] = []
        index = start
        while index < end:
            token = tokens[index]

            if token.nesting == 1:
                close = self.close_find(tokens, index, end)
                if close < 0:
                    LOG(f"Skipping unmatched token {token.type}", level=2)
                    index += 1
                    continue
                converted = self.block_convert(token, tokens, index + 1, close)
                index = self.props_merge(converted, tokens, close + 1, end)
                if isinstance(converted, list):
                    nodes.extend(converted)
                elif converted is not None:
                    nodes.append(converted)
                continue

            if token.nesting == -1:
                LOG(f"Skipping stray token {token.type}", level=2)
                index += 1
                continue

            leaf = self.leaf_convert(token)
            index = self.props_merge(leaf, tokens, index + 1, end)
            if isinstance(leaf, list):
                nodes.extend(leaf)
            elif leaf is not None:
                nodes.append(leaf)

        return nodes_mergeText(nodes)

    def block_convert(self, token: Token, tokens: Sequence[Token], start: int, end: int) -> Any:
        """Convert an open/close pair enclosing tokens[start:end]"""
        if token.type not in BLOCK_TAGS:
            LOG(f"Skipping unknown token {token.type}", level=2)
            return None

        children = self.nodes_convert(tokens, start, end)

        # tight list paragraphs carry no element of their own
        if token.type == "paragraph_open" and token.hidden:
            return children

        tag = BLOCK_TAGS[token.type] or token.tag
        attrs = self.attrs_collect(token)
        element = Element(tag, attrs, children)

        if token.type == "heading_open":
            element.attrs = dict({"id": self.slugger.slug(text_content(children))}, **attrs)
        elif token.type == "list_item_open":
            listItem_unwrap(element)

        return element

    def attrs_collect(self, token: Token) -> Dict[str, Any]:
        attrs: Dict[str, Any] = {}
        for key in KEPT_ATTRS:
            value = token.attrs.get(key) if token.attrs else None
            if value is None or value == "":
                continue
            attrs[key] = int(value) if key == "start" else value
        attrs.update(token.meta.get("attrs", {}) if token.meta else {})
        return attrs

    def leaf_convert(self, token: Token) -> Any:
        """Convert a token without nesting"""
        kind = token.type

        if kind == "inline":
            return self.nodes_convert(token.children or [], 0, len(token.children or []))
        if kind == "text":
            return token.content
        if kind == "softbreak":
            return "\n"
        if kind == "hardbreak":
            return Element("br")
        if kind == "code_inline":
            return Element("code", {}, [token.content])
        if kind == "fence":
            return self.fence_convert(token)
        if kind == "code_block":
            return Element("pre", {}, [Element("code", {}, [token.content.rstrip("\n")])])
        if kind == "hr":
            return Element("hr")
        if kind == "image":
            return self.image_convert(token)
        if kind == "mdc_inline_component":
            return Element(token.tag, dict(token.meta.get("attrs", {})))
        if kind in ("html_block", "html_inline"):
            if token.content.strip().startswith("<!--"):
                return None
            return token.content.rstrip("\n") if kind == "html_block" else token.content

        LOG(f"Skipping unknown token {kind}", level=2)
        return None

    def fence_convert(self, token: Token) -> Element:
        attrs = fenceInfo_parse(token.info)
        code_attrs: Dict[str, Any] = {}
        if "language" in attrs:
            code_attrs["class"] = f"language-{attrs['language']}"
        content = token.content[:-1] if token.content.endswith("\n") else token.content
        return Element("pre", attrs, [Element("code", code_attrs, [content])])

    def image_convert(self, token: Token) -> Element:
        alt = "".join(child.content for child in token.children) if token.children else token.content
        attrs: Dict[str, Any] = {"src": token.attrs.get("src", ""), "alt": alt}
        if token.attrs.get("title"):
            attrs["title"] = token.attrs["title"]
        return Element("img", attrs)


def nodes_mergeText(nodes: List[Node]) -> List[Node]:
    """Merge adjacent text nodes and drop empty ones"""
    merged: List[Node] = []
    for node in nodes:
        if isinstance(node, str):
            if not node:
                continue
            if merged and isinstance(merged[-1], str):
                merged[-1] = merged[-1] + node
                continue
        merged.append(node)
    return merged


def listItem_unwrap(item: Element) -> None:
    """Replace a list item's single paragraph child with its children"""
    paragraphs = [child for child in item.children if isinstance(child, Element) and child.tag == "p"]
    others = [child for child in item.children
              if not (isinstance(child, str) and not child.strip()) and not any(child is p for p in paragraphs)]
    if len(paragraphs) == 1 and not others:
        item.children = list(paragraphs[0].children)


def apply_auto_unwrap(node: Node, container_tags: Optional[Sequence[str]] = None) -> Node:
    """
    Collapse a container component's single paragraph into its children.

    Unwraps only when, ignoring whitespace-only text, the element has
    exactly one ``p`` child and no table, list, pre/code or template
    child. Returns the node unchanged otherwise. Idempotent.

    Args:
        node: A top-level node
        container_tags: Tags eligible for unwrapping (defaults to
                        appsettings.container_tags)

    Returns:
        The unwrapped element (a new Element) or the original node

    Example:
        >>> apply_auto_unwrap(Element("alert", {}, [Element("p", {}, ["Hi"])]))
        Element(tag='alert', attrs={}, children=['Hi'])
    """
    tags = appsettings.container_tags if container_tags is None else container_tags
    if not isinstance(node, Element) or node.tag not in tags:
        return node

    children = [child for child in node.children if not (isinstance(child, str) and not child.strip())]
    paragraphs = [child for child in children if isinstance(child, Element) and child.tag == "p"]
    blockers = [child for child in children
                if isinstance(child, Element) and child.tag in ("table", "ul", "ol", "pre", "code", "template")]
    if len(paragraphs) != 1 or blockers:
        return node

    unwrapped: List[Node] = []
    for child in children:
        if child is paragraphs[0]:
            unwrapped.extend(child.children)
        else:
            unwrapped.append(child)
    return Element(node.tag, dict(node.attrs), unwrapped)
