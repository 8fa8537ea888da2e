"""
Table of contents tests
"""

from mdcstream.lib.parser import parse
from mdcstream.lib.toc import generate_flat_toc, generate_toc, tocOptions_fromData, tocTags_get
from mdcstream.models.ast import Element, Tree


def tree_of(source):
    return parse(source).body


class TestTocTags:
    """Test depth to tag mapping"""

    def test_depths(self):
        """Each depth adds one heading level below h2"""
        assert tocTags_get(1) == ["h2"]
        assert tocTags_get(3) == ["h2", "h3", "h4"]
        assert tocTags_get(5) == ["h2", "h3", "h4", "h5", "h6"]

    def test_out_of_range_falls_back(self):
        """Invalid depths include h2 only"""
        assert tocTags_get(0) == ["h2"]
        assert tocTags_get(9) == ["h2"]


class TestGenerateToc:
    """Test toc construction"""

    def test_nesting(self):
        """Deeper headings nest under the previous shallower one"""
        toc = generate_toc(tree_of("## A\n\n### B\n\n## C"))
        assert [link.text for link in toc.links] == ["A", "C"]
        assert [link.text for link in toc.links[0].children] == ["B"]
        assert toc.links[1].children == []

    def test_h1_excluded(self):
        """The document title is not listed"""
        toc = generate_toc(tree_of("# Title\n\n## Section"))
        assert [link.id for link in toc.links] == ["section"]

    def test_depth_limits_levels(self):
        """depth=1 keeps only h2"""
        toc = generate_toc(tree_of("## A\n\n### B"), depth=1)
        assert [link.text for link in toc.links] == ["A"]
        assert toc.links[0].children == []

    def test_headings_inside_components(self):
        """Component children are searched"""
        toc = generate_toc(tree_of("::section\n## Inside\n::"))
        assert [link.id for link in toc.links] == ["inside"]

    def test_search_depth(self):
        """search_depth bounds how deep headings are found"""
        tree = Tree(value=[Element("a", {}, [Element("b", {}, [Element("h2", {"id": "deep"}, ["Deep"])])])])
        assert generate_toc(tree, search_depth=1).links == []
        assert [link.id for link in generate_toc(tree, search_depth=2).links] == ["deep"]

    def test_flat(self):
        """The flat toc lists headings in document order"""
        toc = generate_flat_toc(tree_of("## A\n\n### B"), depth=2)
        assert [(link.text, link.depth) for link in toc.links] == [("A", 2), ("B", 3)]

    def test_empty(self):
        """No headings, no links"""
        toc = generate_toc(Tree())
        assert toc.links == []
        assert toc.title == ""

    def test_to_dict(self):
        """Links serialize with their children"""
        toc = generate_toc(tree_of("## A\n\n### B"))
        assert toc.links[0].to_dict() == {
            "id": "a", "depth": 2, "text": "A",
            "children": [{"id": "b", "depth": 3, "text": "B"}],
        }


class TestTocOptions:
    """Test toc options read from frontmatter"""

    def test_toc_mapping(self):
        """A toc mapping in the data sets the options"""
        assert tocOptions_fromData({"toc": {"depth": 3, "searchDepth": 1, "title": "Contents"}}) == {
            "depth": 3, "search_depth": 1, "title": "Contents",
        }

    def test_top_level_keys(self):
        """depth and title may sit at the top level"""
        assert tocOptions_fromData({"depth": 4, "title": "Page"}) == {
            "depth": 4, "search_depth": 2, "title": "Page",
        }

    def test_invalid_values_use_defaults(self):
        """Values of the wrong type fall back to defaults"""
        assert tocOptions_fromData({"toc": {"depth": "deep", "searchDepth": True}}) == {
            "depth": 2, "search_depth": 2, "title": "",
        }

    def test_parse_uses_frontmatter(self):
        """parse() applies toc options from the document"""
        toc = parse("---\ntoc:\n  depth: 1\n  title: On this page\n---\n## A\n\n### B").toc
        assert toc.title == "On this page"
        assert toc.depth == 1
        assert [link.text for link in toc.links] == ["A"]
        assert toc.links[0].children == []
