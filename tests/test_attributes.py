"""
Attribute syntax tests

Tests parsing of {...} attribute blocks, the brace/bracket scanners and
serialization to MDC, HTML and YAML props.
"""

from mdcstream.lib.attributes import (
    attributes_parse,
    attributes_split,
    attributes_toHTML,
    attributes_toMDC,
    attributes_toYAML,
    brace_findMatching,
    bracket_findMatching,
)


class TestAttributesParse:
    """Test attribute block parsing"""

    def test_id_and_classes(self):
        """Shorthand id and classes"""
        assert attributes_parse("#intro .note .wide") == {"id": "intro", "class": "note wide"}

    def test_quoted_values(self):
        """Double, single and bare values"""
        assert attributes_parse('a="one" b=\'two\' c=three') == {"a": "one", "b": "two", "c": "three"}

    def test_boolean_flag(self):
        """A bare name is a dynamic true flag"""
        assert attributes_parse("open") == {":open": "true"}
        assert attributes_parse(":open") == {":open": "true"}

    def test_dynamic_value(self):
        """Prefixed keys keep their prefix"""
        assert attributes_parse(':count="3"') == {":count": "3"}

    def test_escaped_quote(self):
        """Backslash escapes inside quoted values"""
        assert attributes_parse('title="say \\"hi\\""') == {"title": 'say "hi"'}

    def test_class_key_merges_with_shorthand(self):
        """class= and .class add up"""
        assert attributes_parse('.a class="b c"') == {"class": "a b c"}

    def test_values_stay_strings(self):
        """Numbers in braces are not converted"""
        assert attributes_parse("size=3") == {"size": "3"}

    def test_malformed_fragments_skipped(self):
        """Stray quotes and equals signs do not raise"""
        assert attributes_parse('= "x" type="info"') == {":x": "true", "type": "info"}

    def test_empty(self):
        """Empty block gives no attributes"""
        assert attributes_parse("") == {}
        assert attributes_parse("   ") == {}


class TestScanners:
    """Test brace and bracket matching"""

    def test_brace_skips_quoted(self):
        """Braces inside quotes do not count"""
        assert brace_findMatching('{a="}"} tail', 0) == 6

    def test_brace_unclosed(self):
        """Unclosed braces give -1"""
        assert brace_findMatching('{a="b"', 0) == -1

    def test_brace_stops_at_blank_line(self):
        """Attribute blocks do not span paragraphs"""
        assert brace_findMatching("{a\n\nb}", 0) == -1

    def test_bracket_nested(self):
        """Nested brackets are balanced"""
        assert bracket_findMatching("[a [b] c] d", 0) == 8

    def test_bracket_skips_code(self):
        """Brackets inside code spans do not count"""
        assert bracket_findMatching("[a `]` b]", 0) == 8

    def test_attributes_split(self):
        """A block at the position is parsed and skipped"""
        assert attributes_split("x{.a} rest", 1) == ({"class": "a"}, 5)
        assert attributes_split("x rest", 1) == ({}, 1)


class TestSerialization:
    """Test attribute serialization"""

    def test_to_mdc(self):
        """Shorthand forms, flags and quoted values"""
        attrs = {"id": "x", "class": "a b", ":open": "true", "type": "info"}
        assert attributes_toMDC(attrs) == '{#x .a .b open type="info"}'

    def test_to_mdc_empty(self):
        """No attributes, no block"""
        assert attributes_toMDC({}) == ""

    def test_to_mdc_escapes_quotes(self):
        """Quotes in values are escaped"""
        assert attributes_toMDC({"title": 'say "hi"'}) == '{title="say \\"hi\\""}'

    def test_to_mdc_structured_as_json(self):
        """Structured values are JSON strings"""
        assert attributes_toMDC({"items": [1, 2]}) == '{items="[1,2]"}'

    def test_mdc_round_trip(self):
        """Serialized attributes parse back to the same map"""
        attrs = {"id": "x", "class": "a b", ":open": "true", "type": 'say "hi"'}
        serialized = attributes_toMDC(attrs)
        assert attributes_parse(serialized[1:-1]) == attrs

    def test_to_html(self):
        """Flags are bare, false flags dropped, values escaped"""
        attrs = {"class": "a", ":disabled": "true", ":hidden": "false", "title": "<b>"}
        assert attributes_toHTML(attrs) == ' class="a" disabled title="&lt;b&gt;"'

    def test_to_yaml(self):
        """YAML props are fenced"""
        assert attributes_toYAML({"type": "info", "items": ["a"]}) == "---\ntype: info\nitems:\n- a\n---"
