"""
Frontmatter tests

Tests splitting YAML frontmatter off a document and rendering it back.
"""

import pytest
import yaml

from mdcstream.lib.frontmatter import parse_frontmatter, render_frontmatter, yaml_dump, yaml_load


class TestParseFrontmatter:
    """Test frontmatter extraction"""

    def test_simple(self):
        """A single key is decoded and the rest returned"""
        content, data = parse_frontmatter("---\ntitle: Hello World\n---\nContent here")
        assert data == {"title": "Hello World"}
        assert content.strip() == "Content here"

    def test_multiple_fields_keep_dates_as_strings(self):
        """Dates are not turned into date objects"""
        content, data = parse_frontmatter(
            "---\ntitle: My Post\nauthor: John Doe\ndate: 2024-01-15\ndraft: false\n---\n# Heading"
        )
        assert data == {"title": "My Post", "author": "John Doe", "date": "2024-01-15", "draft": False}
        assert content.strip() == "# Heading"

    def test_nested_values(self):
        """Mappings and sequences are decoded"""
        _, data = parse_frontmatter(
            "---\ntitle: Nested\nmeta:\n  description: A description\n"
            "  keywords:\n    - one\n    - two\n---\nContent"
        )
        assert data == {"title": "Nested", "meta": {"description": "A description", "keywords": ["one", "two"]}}

    def test_scalars(self):
        """Numbers, booleans and null keep their types"""
        _, data = parse_frontmatter(
            "---\ncount: 42\nprice: 19.99\nnegative: -5\npublished: true\ndescription: null\n---\nContent"
        )
        assert data == {"count": 42, "price": 19.99, "negative": -5, "published": True, "description": None}

    def test_quoted_special_characters(self):
        """Quoted values may contain colons and apostrophes"""
        _, data = parse_frontmatter("---\ntitle: \"Hello: World\"\ndescription: \"It's a test\"\n---\nContent")
        assert data["title"] == "Hello: World"
        assert data["description"] == "It's a test"

    def test_no_frontmatter(self):
        """Documents without a leading fence are unchanged"""
        source = "# Just Markdown\nNo frontmatter here."
        assert parse_frontmatter(source) == (source, {})

    def test_fence_not_at_start(self):
        """A fence after the first line is not frontmatter"""
        source = "Some text\n---\ntitle: Not Frontmatter\n---"
        assert parse_frontmatter(source) == (source, {})

    def test_unclosed(self):
        """An unclosed block is left in the content"""
        source = "---\ntitle: Unclosed"
        assert parse_frontmatter(source) == (source, {})

    def test_empty_block(self):
        """An empty block is stripped and gives no data"""
        assert parse_frontmatter("---\n---\nContent") == ("\nContent", {})
        assert parse_frontmatter("---\n---") == ("", {})

    def test_crlf(self):
        """Windows line endings are accepted"""
        content, data = parse_frontmatter("---\r\ntitle: Windows\r\n---\r\n\r\nContent")
        assert data == {"title": "Windows"}
        assert content.strip() == "Content"

    def test_non_mapping_ignored(self):
        """A YAML scalar or list is not frontmatter data"""
        _, data = parse_frontmatter("---\n- a\n- b\n---\nContent")
        assert data == {}

    def test_malformed_yaml_raises(self):
        """Malformed YAML propagates"""
        with pytest.raises(yaml.YAMLError):
            parse_frontmatter("---\ntitle: [unclosed\n---\nContent")

    def test_content_preserved(self):
        """Everything after the closing fence is kept"""
        content, _ = parse_frontmatter(
            "---\ntitle: Test\n---\n# Heading\nParagraph with **bold** and *italic*.\n- List item 1"
        )
        assert content == "\n# Heading\nParagraph with **bold** and *italic*.\n- List item 1"


class TestRenderFrontmatter:
    """Test frontmatter rendering"""

    def test_render_with_content(self):
        """Data is written as a fenced YAML block before the content"""
        result = render_frontmatter({"title": "Hello World"}, "Content here")
        assert result == "---\ntitle: Hello World\n---\n\nContent here"

    @pytest.mark.parametrize("data", [{}, None])
    def test_empty_data(self, data):
        """No block is written without data"""
        assert render_frontmatter(data, "Just content") == "Just content"

    def test_nested_round_trip(self):
        """Rendered frontmatter parses back to the same data"""
        data = {"title": "Test", "meta": {"description": "A description"}, "tags": ["a", "b"], "date": "2024-01-15"}
        content, parsed = parse_frontmatter(render_frontmatter(data, "Body"))
        assert parsed == data
        assert content.strip() == "Body"

    def test_key_order_kept(self):
        """Keys are written in insertion order"""
        assert yaml_dump({"b": 1, "a": 2}) == "b: 1\na: 2\n"

    def test_dynamic_keys_unquoted(self):
        """Keys starting with ':' are written bare and load back"""
        text = yaml_dump({":open": "true"})
        assert text.startswith(":open:")
        assert yaml_load(text) == {":open": "true"}
