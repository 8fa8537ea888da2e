"""
Syntax highlighting tests
"""

import asyncio

from pygments.token import Keyword, Token

from mdcstream.lib.highlight import HighlighterContext, code_highlight, tokenClass_get, tree_highlight
from mdcstream.lib.lexer import MDCLexer
from mdcstream.lib.parser import parse, parse_async
from mdcstream.models.ast import Element, text_content
from mdcstream.models.state import HighlightOptions, ParseOptions


class TestHighlighterContext:
    """Test the lexer cache"""

    def test_lexers_cached(self):
        """Lexers are cached per lowercased name"""
        context = HighlighterContext()
        assert context.lexer_get("python") is context.lexer_get("Python")

    def test_unknown_language_is_text(self):
        """Unknown languages fall back to plain text"""
        context = HighlighterContext()
        assert context.lexer_get("no-such-language").name == "Text only"

    def test_mdc_lexer(self):
        """The mdc name maps to the MDC lexer"""
        assert isinstance(HighlighterContext().lexer_get("mdc"), MDCLexer)

    def test_reset(self):
        """reset() empties the cache"""
        context = HighlighterContext()
        context.lexer_get("python")
        context.reset()
        assert context.lexers == {}

    def test_css(self):
        """Stylesheet rules use the highlight class"""
        assert ".highlight .k" in HighlighterContext().css_get()


class TestCodeHighlight:
    """Test code to span conversion"""

    def test_token_class(self):
        """Token types map to short CSS classes"""
        assert tokenClass_get(Keyword) == "k"
        assert tokenClass_get(Token) == ""

    def test_text_preserved(self):
        """Highlighting never changes the code text"""
        code = "def f(x):\n    return x + 1"
        nodes = code_highlight(code, "python", HighlighterContext())
        assert text_content(nodes) == code

    def test_keyword_span(self):
        """Keywords become classed spans"""
        nodes = code_highlight("def f(): pass", "python", HighlighterContext())
        assert Element("span", {"class": "k"}, ["def"]) in nodes


class TestTreeHighlight:
    """Test highlighting in a tree"""

    def test_only_pre_with_language(self):
        """Fences without a language are left alone"""
        tree = parse("```\nplain\n```\n\n```python\nx = 1\n```").body
        assert tree_highlight(tree, HighlightOptions()) == 1
        assert tree.value[0].children[0].children == ["plain"]

    def test_language_allow_list(self):
        """Languages outside the allow list are skipped"""
        tree = parse("```python\nx = 1\n```").body
        assert tree_highlight(tree, HighlightOptions(languages=["js"])) == 0

    def test_shared_context(self):
        """A caller-supplied context receives the lexers"""
        context = HighlighterContext()
        tree_highlight(parse("```python\nx = 1\n```").body, HighlightOptions(context=context))
        assert "python" in context.lexers

    def test_parse_async_highlight(self):
        """parse_async highlights when asked"""
        result = asyncio.run(parse_async("```python\nx = 1\n```", ParseOptions(highlight=True)))
        pre = result.body.value[0]
        assert pre.attrs["class"] == "highlight"
        assert text_content(pre) == "x = 1"


class TestMDCLexer:
    """Test the lexer for mdc fences"""

    def test_component_fence(self):
        """Component fences and inline components are classed"""
        nodes = code_highlight('::alert{type="info"}\nHi :badge\n::', "mdc", HighlighterContext())
        assert Element("span", {"class": "kd"}, ["::alert"]) in nodes
        assert Element("span", {"class": "nf"}, [":badge"]) in nodes
        assert Element("span", {"class": "na"}, ["type"]) in nodes
