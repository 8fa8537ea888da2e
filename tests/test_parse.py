"""
Parse pipeline tests

Tests MDC tokenizing and tree conversion end to end through parse():
components, slots, props, inline syntax, lists, tables and plugins.
"""

import asyncio

import pytest
import yaml

from mdcstream.lib.parser import parse, parse_async
from mdcstream.models.ast import Element, Tree
from mdcstream.models.state import ParseOptions, Plugin


def body(source, **options):
    """Top-level nodes of a parsed source"""
    return parse(source, ParseOptions(**options) if options else None).body.value


class TestBlockComponents:
    """Test ::component blocks"""

    def test_alert_unwrapped(self):
        """A container with one paragraph is unwrapped"""
        assert body('::alert{type="info"}\nHello\n::')[0] == Element("alert", {"type": "info"}, ["Hello"])

    def test_auto_unwrap_disabled(self):
        """The paragraph stays when auto-unwrap is off"""
        assert body('::alert\nHello\n::', auto_unwrap=False)[0] == \
            Element("alert", {}, [Element("p", {}, ["Hello"])])

    def test_two_paragraphs_kept(self):
        """Two paragraphs are not unwrapped"""
        node = body("::alert\nOne\n\nTwo\n::")[0]
        assert node.children == [Element("p", {}, ["One"]), Element("p", {}, ["Two"])]

    def test_nested_components(self):
        """Deeper colon fences nest"""
        node = body(":::parent\n::child\ncontent\n::\n:::")[0]
        assert node == Element("parent", {}, [Element("child", {}, [Element("p", {}, ["content"])])])

    def test_unclosed_component_auto_closed(self):
        """A partial component still parses"""
        assert body("::alert\nStreaming")[0] == Element("alert", {}, ["Streaming"])

    def test_slots(self):
        """#name lines split the body into templates"""
        node = body("::card\n#title\nCard title\n#default\nBody\n::")[0]
        assert node.tag == "card"
        assert node.children == [
            Element("template", {"name": "title"}, [Element("p", {}, ["Card title"])]),
            Element("template", {"name": "default"}, [Element("p", {}, ["Body"])]),
        ]

    def test_slot_paragraph_stops_at_next_slot(self):
        """A paragraph does not run on lazily into the following slot"""
        node = body("::card\nIntro\n#a\nOne\n#b\nTwo\nlines\n::")[0]
        assert node.children == [
            Element("p", {}, ["Intro"]),
            Element("template", {"name": "a"}, [Element("p", {}, ["One"])]),
            Element("template", {"name": "b"}, [Element("p", {}, ["Two\nlines"])]),
        ]

    def test_yaml_props(self):
        """A props fence adds structured attributes"""
        node = body("::alert\n---\ntype: warning\nitems:\n  - a\n---\nBody\n::")[0]
        assert node == Element("alert", {"type": "warning", "items": ["a"]}, ["Body"])

    def test_invalid_yaml_props_ignored(self):
        """Bad props YAML does not fail the parse"""
        node = body("::alert\n---\ntype: [x\n---\nBody\n::")[0]
        assert node.tag == "alert"
        assert node.attrs == {}

    def test_code_fence_inside_component(self):
        """Colons inside fenced code do not close the component"""
        node = body("::card\n```\n::\n```\n::")[0]
        assert node.tag == "card"
        assert node.children[0].tag == "pre"


class TestInlineSyntax:
    """Test inline components, spans and trailing attributes"""

    def test_inline_component(self):
        """:name[content]{attrs}"""
        assert body('Hello :badge[new]{color="green"}')[0] == Element("p", {}, [
            "Hello ", Element("badge", {"color": "green"}, ["new"]),
        ])

    def test_self_closing_inline_component(self):
        """:name{attrs} without content"""
        assert body('Use :icon{name="x"} here')[0] == Element("p", {}, [
            "Use ", Element("icon", {"name": "x"}), " here",
        ])

    def test_span(self):
        """[content]{attrs}"""
        assert body("[text]{.red}")[0] == Element("p", {}, [Element("span", {"class": "red"}, ["text"])])

    def test_strong_with_attributes(self):
        """Attributes after emphasis attach to it"""
        assert body("**bold**{.cls}")[0] == Element("p", {}, [Element("strong", {"class": "cls"}, ["bold"])])

    def test_code_with_attributes(self):
        """Attributes after inline code attach to it"""
        assert body("`x`{.lang}")[0] == Element("p", {}, [Element("code", {"class": "lang"}, ["x"])])

    def test_link_with_attributes(self):
        """Link attributes merge with href"""
        assert body("[docs](/docs){target=_blank}")[0] == Element("p", {}, [
            Element("a", {"href": "/docs", "target": "_blank"}, ["docs"]),
        ])

    def test_time_is_not_component(self):
        """A colon after a word is text"""
        assert body("at 10:30")[0] == Element("p", {}, ["at 10:30"])


class TestMarkdown:
    """Test plain markdown conversion"""

    def test_heading_slug(self):
        """Headings get a slug id"""
        assert body("# Hello World")[0] == Element("h1", {"id": "hello-world"}, ["Hello World"])

    def test_duplicate_heading_slugs(self):
        """Repeated headings get numbered ids"""
        nodes = body("## A\n\n## A")
        assert [node.attrs["id"] for node in nodes] == ["a", "a-1"]

    def test_tight_list(self):
        """Tight list items hold their text directly"""
        assert body("- a\n- b")[0] == Element("ul", {}, [Element("li", {}, ["a"]), Element("li", {}, ["b"])])

    def test_ordered_list_start(self):
        """Ordered lists keep a start number"""
        assert body("3. a\n4. b")[0].attrs == {"start": 3}

    def test_task_list(self):
        """[x] and [ ] become checkboxes"""
        node = body("- [x] done\n- [ ] todo")[0]
        assert node.attrs == {"class": "contains-task-list"}
        first, second = node.children
        assert first == Element("li", {"class": "task-list-item"}, [
            Element("input", {"class": "task-list-item-checkbox", "type": "checkbox",
                              ":disabled": "true", ":checked": "true"}),
            " done",
        ])
        assert ":checked" not in second.children[0].attrs

    def test_code_fence(self):
        """Fence info becomes pre attributes"""
        assert body("```js [app.js] {1}\nconst a = 1\n```")[0] == Element(
            "pre",
            {"language": "js", "filename": "app.js", "highlights": [1]},
            [Element("code", {"class": "language-js"}, ["const a = 1"])],
        )

    def test_table(self):
        """GFM tables with alignment"""
        node = body("| a | b |\n| --- | :-: |\n| 1 | 2 |")[0]
        thead, tbody = node.children
        assert thead == Element("thead", {}, [Element("tr", {}, [
            Element("th", {}, ["a"]),
            Element("th", {"style": "text-align:center"}, ["b"]),
        ])])
        assert tbody.children[0].children[0] == Element("td", {}, ["1"])

    def test_html_dropped_at_top_level(self):
        """Raw HTML blocks and comments do not become nodes"""
        assert body("<div>x</div>\n\n<!-- note -->\n\nText") == [Element("p", {}, ["Text"])]

    def test_hard_break(self):
        """Backslash line ends become br"""
        assert body("a\\\nb")[0] == Element("p", {}, ["a", Element("br"), "b"])

    def test_empty_source(self):
        """Empty input parses to nothing"""
        result = parse("")
        assert result.body == Tree()
        assert result.data == {}
        assert result.excerpt is None

    def test_partial_bold_auto_closed(self):
        """Unclosed emphasis becomes an element"""
        assert body("**bold")[0] == Element("p", {}, [Element("strong", {}, ["bold"])])


class TestFrontmatterAndExcerpt:
    """Test data, excerpt and toc on the result"""

    def test_frontmatter_data(self):
        """Frontmatter is decoded and removed from the body"""
        result = parse("---\ntitle: Hi\n---\n# Body")
        assert result.data == {"title": "Hi"}
        assert result.body.value == [Element("h1", {"id": "body"}, ["Body"])]

    def test_malformed_frontmatter_raises(self):
        """Malformed YAML propagates"""
        with pytest.raises(yaml.YAMLError):
            parse("---\ntitle: [x\n---\nBody")

    def test_excerpt(self):
        """Content before the more comment is the excerpt"""
        result = parse("Intro\n\n<!-- more -->\n\nRest")
        assert result.excerpt == Tree(value=[Element("p", {}, ["Intro"])])
        assert len(result.body.value) == 2

    def test_no_excerpt(self):
        """No delimiter, no excerpt"""
        assert parse("Intro\n\nRest").excerpt is None

    def test_toc_on_result(self):
        """The result carries a table of contents"""
        toc = parse("## One\n\n### Two").toc
        assert [link.id for link in toc.links] == ["one"]
        assert [link.id for link in toc.links[0].children] == ["two"]


class TestPlugins:
    """Test pre/post hooks"""

    def test_pre_hook_rewrites_source(self):
        """pre hooks see and may replace the markdown"""
        def pre(state):
            state.markdown = state.markdown.replace("world", "there")

        result = parse("Hello world", ParseOptions(plugins=[Plugin(pre=pre)]))
        assert result.body.value[0] == Element("p", {}, ["Hello there"])

    def test_post_hook_rewrites_tree(self):
        """post hooks may replace the tree"""
        def post(state):
            state.tree = Tree(value=[Element("hr")])

        assert parse("Text", ParseOptions(plugins=[Plugin(post=post)])).body.value == [Element("hr")]

    def test_async_hook_needs_parse_async(self):
        """parse() refuses coroutine hooks"""
        async def post(state):
            return None

        with pytest.raises(TypeError):
            parse("Text", ParseOptions(plugins=[Plugin(name="slow", post=post)]))

    def test_parse_async_awaits_hooks(self):
        """parse_async() awaits coroutine hooks"""
        seen = []

        async def post(state):
            seen.append(len(state.tree.value))

        result = asyncio.run(parse_async("One\n\nTwo", ParseOptions(plugins=[Plugin(post=post)])))
        assert seen == [2]
        assert len(result.body.value) == 2

    def test_markdown_it_plugin(self):
        """markdown-it plugins are applied to the tokenizer"""
        def disable_headings(md):
            md.disable("heading")

        nodes = parse("# Not a heading", ParseOptions(plugins=[Plugin(markdown_it_plugins=[disable_headings])])).body.value
        assert nodes == [Element("p", {}, ["# Not a heading"])]
