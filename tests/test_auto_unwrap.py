"""
Auto-unwrap tests

Tests collapsing a container component's single paragraph into its
children, and the converter helpers around it.
"""

from mdcstream.lib.converter import Slugger, apply_auto_unwrap, fenceInfo_parse, listItem_unwrap, nodes_mergeText
from mdcstream.models.ast import Element


def p(*children):
    return Element("p", {}, list(children))


class TestApplyAutoUnwrap:
    """Test container unwrapping"""

    def test_single_paragraph(self):
        """A lone paragraph is replaced by its children"""
        node = Element("alert", {"type": "info"}, [p("Hello ", Element("strong", {}, ["you"]))])
        assert apply_auto_unwrap(node) == Element("alert", {"type": "info"}, ["Hello ", Element("strong", {}, ["you"])])

    def test_whitespace_text_ignored(self):
        """Whitespace-only text around the paragraph is dropped"""
        node = Element("alert", {}, ["\n", p("Hi"), "  "])
        assert apply_auto_unwrap(node).children == ["Hi"]

    def test_two_paragraphs(self):
        """Two paragraphs leave the node untouched"""
        node = Element("alert", {}, [p("a"), p("b")])
        assert apply_auto_unwrap(node) is node

    def test_paragraph_and_list(self):
        """A list next to the paragraph blocks unwrapping"""
        node = Element("alert", {}, [p("a"), Element("ul", {}, [Element("li", {}, ["x"])])])
        assert apply_auto_unwrap(node) is node

    def test_not_a_container(self):
        """Tags outside the container set are kept"""
        node = Element("section", {}, [p("a")])
        assert apply_auto_unwrap(node) is node

    def test_custom_container_tags(self):
        """Callers may pass their own container tags"""
        node = Element("section", {}, [p("a")])
        assert apply_auto_unwrap(node, ["section"]).children == ["a"]

    def test_text_node(self):
        """Text nodes pass through"""
        assert apply_auto_unwrap("text") == "text"

    def test_idempotent(self):
        """Unwrapping twice equals unwrapping once"""
        once = apply_auto_unwrap(Element("note", {}, [p("x")]))
        assert apply_auto_unwrap(once) == once

    def test_input_not_mutated(self):
        """The input element is not modified"""
        node = Element("note", {}, [p("x")])
        apply_auto_unwrap(node)
        assert node.children == [p("x")]


class TestConverterHelpers:
    """Test slugs, fence info and text merging"""

    def test_slugger(self):
        """Slugs are lowercased, deduplicated and never start with a digit"""
        slugger = Slugger()
        assert slugger.slug("Hello, World!") == "hello-world"
        assert slugger.slug("Hello World") == "hello-world-1"
        assert slugger.slug("2024 plans") == "_2024-plans"

    def test_fence_info(self):
        """Language, filename, highlight ranges and meta"""
        assert fenceInfo_parse("ts [app.ts] {2,4-5} twoslash") == {
            "language": "ts", "filename": "app.ts", "highlights": [2, 4, 5], "meta": "twoslash",
        }
        assert fenceInfo_parse("") == {}
        assert fenceInfo_parse("[only.txt]") == {"filename": "only.txt"}

    def test_merge_text(self):
        """Adjacent text nodes merge and empty ones vanish"""
        assert nodes_mergeText(["a", "", "b", Element("br"), "c"]) == ["ab", Element("br"), "c"]

    def test_list_item_unwrap(self):
        """A tight list item holds its text directly"""
        item = Element("li", {}, [p("one")])
        listItem_unwrap(item)
        assert item.children == ["one"]

    def test_list_item_with_sublist_kept(self):
        """A paragraph next to a sublist stays"""
        item = Element("li", {}, [p("one"), Element("ul")])
        listItem_unwrap(item)
        assert item.children[0] == p("one")
