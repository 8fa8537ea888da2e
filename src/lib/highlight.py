"""
Syntax highlighting of code blocks with Pygments

Turns the text of ``pre > code`` elements into ``span`` elements carrying
Pygments' short CSS class names (``k``, ``s2``, ``nf`` ...). The spans are
plain tree nodes, so both the HTML and the MDC renderers handle them.

Lexers are cached on an explicit HighlighterContext owned by the caller
instead of a module level cache.

Example:
    >>> context = HighlighterContext()
    >>> tree_highlight(tree, HighlightOptions(context=context))
    >>> css = context.css_get("monokai")   # stylesheet for the classes
"""

from typing import Any, Dict, List, Optional

from pygments.formatters import HtmlFormatter
from pygments.lexer import Lexer
from pygments.lexers import TextLexer, get_lexer_by_name
from pygments.token import STANDARD_TYPES
from pygments.util import ClassNotFound

from ..models.ast import Element, Node, Tree, text_content
from ..models.state import HighlightOptions
from .lexer import MDCLexer
from .log import LOG


class HighlighterContext:
    """
    Lexer cache with an explicit lifecycle

    Create one per application (or per request), pass it through
    HighlightOptions, and call reset() to drop cached lexers.
    """

    def __init__(self) -> None:
        self.lexers: Dict[str, Lexer] = {}

    def lexer_get(self, language: str) -> Lexer:
        """
        Get (and cache) the lexer for a language name.

        Unknown languages fall back to the plain text lexer.
        """
        key = language.lower()
        if key not in self.lexers:
            lexer: Lexer
            try:
                if key in MDCLexer.aliases:
                    lexer = MDCLexer()
                else:
                    lexer = get_lexer_by_name(key)
            except ClassNotFound:
                LOG(f"No lexer for '{language}', using plain text", level=2)
                lexer = TextLexer()
            self.lexers[key] = lexer
        return self.lexers[key]

    def css_get(self, style: str = "default", selector: str = ".highlight") -> str:
        """Stylesheet for the emitted span classes"""
        return HtmlFormatter(style=style).get_style_defs(selector)

    def reset(self) -> None:
        """Drop all cached lexers"""
        self.lexers.clear()


def tokenClass_get(ttype: Any) -> str:
    """
    Short CSS class for a Pygments token type.

    Walks up the token hierarchy until a type with a standard class is found.
    """
    while ttype not in STANDARD_TYPES:
        ttype = ttype.parent
    return STANDARD_TYPES[ttype]


def code_highlight(code: str, language: str, context: HighlighterContext) -> List[Node]:
    """
    Highlight source text into a list of nodes.

    Args:
        code: Source text
        language: Language name or alias
        context: Lexer cache

    Returns:
        Text and ``span`` nodes; adjacent tokens of the same class are merged
    """
    tokens = list(context.lexer_get(language).get_tokens(code))
    # Pygments always ends with a newline; the code text does not
    if tokens and not code.endswith("\n") and tokens[-1][1].endswith("\n"):
        tokens[-1] = (tokens[-1][0], tokens[-1][1][:-1])

    nodes: List[Node] = []
    last_class: Optional[str] = None
    for ttype, value in tokens:
        if not value:
            continue
        css = tokenClass_get(ttype)
        if not css:
            if nodes and isinstance(nodes[-1], str):
                nodes[-1] += value
            else:
                nodes.append(value)
            last_class = None
        elif css == last_class and isinstance(nodes[-1], Element):
            nodes[-1].children[0] = str(nodes[-1].children[0]) + value
        else:
            nodes.append(Element("span", {"class": css}, [value]))
            last_class = css
    return nodes


def tree_highlight(tree: Tree, options: HighlightOptions) -> int:
    """
    Highlight every ``pre`` element with a language in place.

    Args:
        tree: Parsed tree
        options: Highlight settings; a fresh context is created when none
                 is given

    Returns:
        Number of highlighted code blocks
    """
    context = options.context or HighlighterContext()
    count = 0

    def walk(children: List[Node]) -> None:
        nonlocal count
        for child in children:
            if not isinstance(child, Element):
                continue
            language = child.attrs.get("language")
            if child.tag == "pre" and isinstance(language, str):
                if options.languages is not None and language not in options.languages:
                    continue
                for code in child.children:
                    if isinstance(code, Element) and code.tag == "code":
                        code.children = code_highlight(text_content(code), language, context)
                child.attrs["class"] = "highlight"
                count += 1
                continue
            walk(child.children)

    walk(tree.value)
    LOG(f"Highlighted {count} code block(s)", level=1)
    return count
