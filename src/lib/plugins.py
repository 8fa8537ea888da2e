"""
Built-in parse plugins

- task_list_plugin: ``[ ]``/``[x]`` list item checkboxes (always enabled)
- summary_plugin: excerpt of the content before a delimiter comment
  (always enabled)
- security_plugin: drops unwanted tags and unsafe attributes
- highlight_plugin: Pygments highlighting of code blocks

A plugin is a ``Plugin`` dataclass; see ``mdcstream.models.state``.
"""

from typing import Any, Dict, Iterable, List, Optional

from ..config import appsettings
from ..models.ast import Element, Node, Tree, visit
from ..models.state import HighlightOptions, ParseState, Plugin
from .converter import Converter, apply_auto_unwrap
from .highlight import tree_highlight
from .log import LOG
from .tokenizer import taskList_plugin


# Attributes whose values are URLs
URL_ATTRS = ("href", "src", "action", "formaction", "poster", "xlink:href")
UNSAFE_SCHEMES = ("javascript:", "vbscript:", "data:text/html")


def task_list_plugin() -> Plugin:
    """Checkbox inputs for task list items"""
    return Plugin(name="task-list", markdown_it_plugins=[taskList_plugin])


def summary_plugin(delimiter: Optional[str] = None) -> Plugin:
    """
    Excerpt extraction.

    The excerpt is the tree of every block before the first HTML block
    containing ``delimiter`` (default appsettings.summary_delimiter).
    """
    marker = delimiter or appsettings.summary_delimiter

    def post(state: ParseState) -> None:
        index = next((i for i, token in enumerate(state.tokens)
                      if token.type == "html_block" and marker in token.content), -1)
        if index < 0:
            return
        nodes: List[Node] = Converter().convert(state.tokens[:index])
        if state.options.auto_unwrap:
            nodes = [apply_auto_unwrap(node) for node in nodes]
        state.excerpt = Tree(value=[node for node in nodes if isinstance(node, Element)])
        LOG(f"Excerpt with {len(state.excerpt.value)} node(s)", level=2)

    return Plugin(name="summary", post=post)


def props_validate(attrs: Dict[str, Any]) -> Dict[str, Any]:
    """
    Remove event handler attributes and script URLs.

    Args:
        attrs: Element attributes

    Returns:
        A filtered copy
    """
    safe: Dict[str, Any] = {}
    for key, value in attrs.items():
        name = key.lstrip(":").lower()
        if name.startswith("on"):
            LOG(f"Dropping event handler attribute '{key}'", level=2)
            continue
        if name in URL_ATTRS and isinstance(value, str):
            compact = "".join(value.split()).lower()
            if compact.startswith(UNSAFE_SCHEMES):
                LOG(f"Dropping unsafe URL in '{key}'", level=2)
                continue
        safe[key] = value
    return safe


def security_plugin(drop: Iterable[str] = ()) -> Plugin:
    """
    Sanitize the parsed tree.

    Args:
        drop: Tags removed together with their subtree (e.g. ``["script"]``)
    """
    drop_tags = set(drop)

    def post(state: ParseState) -> None:
        if state.tree is None:
            return

        def visitor(node: Node) -> Any:
            assert isinstance(node, Element)
            if node.tag in drop_tags:
                return False
            if node.attrs:
                node.attrs = props_validate(node.attrs)
            return None

        visit(state.tree, lambda node: isinstance(node, Element), visitor)

    return Plugin(name="security", post=post)


def highlight_plugin(options: Optional[HighlightOptions] = None) -> Plugin:
    """Pygments highlighting as a post hook"""
    settings = options or HighlightOptions()

    def post(state: ParseState) -> None:
        if state.tree is not None:
            tree_highlight(state.tree, settings)

    return Plugin(name="highlight", post=post)


def plugins_builtin() -> List[Plugin]:
    """Plugins every parse runs before the caller's ones"""
    return [task_list_plugin(), summary_plugin()]
