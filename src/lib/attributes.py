"""
MDC attribute syntax

Parses the ``{...}`` attribute blocks that follow components, spans and
inline markup, and serializes attribute maps back to MDC, HTML and YAML
props form.

Recognized attribute forms:
    #id              -> {"id": "id"}
    .a .b            -> {"class": "a b"}
    key="value"      -> {"key": "value"}   (also 'value' and bare value)
    :key="value"     -> {":key": "value"}  (dynamic attribute)
    flag             -> {":flag": "true"}  (boolean attribute)

Scanning is done with an explicit index cursor; malformed fragments are
skipped rather than raising.
"""

import html
import json
from typing import Any, Dict, List, Tuple

from ..models.ast import AttrValue
from .frontmatter import yaml_dump


_SEPARATORS = " \t\n\r"


def brace_findMatching(text: str, start: int, end: int = -1) -> int:
    """
    Find the ``}`` closing the ``{`` at ``start``.

    Quoted strings and backslash escapes are skipped, so a brace inside
    ``title="{x}"`` does not count.

    Args:
        text: Source text
        start: Index of the opening brace
        end: Exclusive scan limit (defaults to len(text))

    Returns:
        Index of the matching closing brace, or -1 if unclosed

    Example:
        >>> brace_findMatching('{a="}"} tail', 0)
        6
    """
    limit = len(text) if end < 0 else end
    depth = 0
    quote = ""
    pos = start
    while pos < limit:
        ch = text[pos]
        if ch == "\\":
            pos += 2
            continue
        if quote:
            if ch == quote:
                quote = ""
        elif ch in ("'", '"'):
            quote = ch
        elif ch == "{":
            depth += 1
        elif ch == "}":
            depth -= 1
            if depth == 0:
                return pos
        elif ch == "\n" and depth == 1 and pos > start and text[pos - 1] == "\n":
            # attribute blocks never span a blank line
            return -1
        pos += 1
    return -1


def bracket_findMatching(text: str, start: int, end: int = -1) -> int:
    """
    Find the ``]`` closing the ``[`` at ``start``.

    Nested brackets, backslash escapes and backtick code spans are
    honoured.

    Returns:
        Index of the matching closing bracket, or -1 if unclosed
    """
    limit = len(text) if end < 0 else end
    depth = 0
    pos = start
    while pos < limit:
        ch = text[pos]
        if ch == "\\":
            pos += 2
            continue
        if ch == "`":
            run = pos
            while run < limit and text[run] == "`":
                run += 1
            fence = text[pos:run]
            close = text.find(fence, run, limit)
            pos = run if close == -1 else close + len(fence)
            continue
        if ch == "[":
            depth += 1
        elif ch == "]":
            depth -= 1
            if depth == 0:
                return pos
        pos += 1
    return -1


def _value_read(text: str, pos: int) -> Tuple[str, int]:
    """Read a quoted or bare attribute value starting at pos"""
    if pos < len(text) and text[pos] in ("'", '"'):
        quote = text[pos]
        pos += 1
        chars: List[str] = []
        while pos < len(text) and text[pos] != quote:
            if text[pos] == "\\" and pos + 1 < len(text):
                pos += 1
            chars.append(text[pos])
            pos += 1
        return "".join(chars), pos + 1

    start = pos
    while pos < len(text) and text[pos] not in _SEPARATORS:
        pos += 1
    return text[start:pos], pos


def _name_read(text: str, pos: int, stop: str) -> Tuple[str, int]:
    start = pos
    while pos < len(text) and text[pos] not in _SEPARATORS and text[pos] not in stop:
        pos += 1
    return text[start:pos], pos


def attributes_parse(content: str) -> Dict[str, AttrValue]:
    """
    Parse the inside of an attribute block.

    Args:
        content: Text between ``{`` and ``}``

    Returns:
        Attribute map in source order. Repeated classes are joined with a
        space; other repeated keys keep the last value.

    Example:
        >>> attributes_parse('#intro .note .wide type="info" open')
        {'id': 'intro', 'class': 'note wide', 'type': 'info', ':open': 'true'}
    """
    attrs: Dict[str, AttrValue] = {}
    classes: List[str] = []
    pos = 0
    length = len(content)

    while pos < length:
        ch = content[pos]
        if ch in _SEPARATORS:
            pos += 1
            continue

        if ch == "#":
            name, pos = _name_read(content, pos + 1, ".#")
            if name:
                attrs["id"] = name
            continue

        if ch == ".":
            name, pos = _name_read(content, pos + 1, ".#")
            if name:
                classes.append(name)
                attrs["class"] = " ".join(classes)
            continue

        key, pos = _name_read(content, pos, "=\"'")
        if not key:
            # stray quote or '='
            pos += 1
            continue

        if pos < length and content[pos] == "=":
            value, pos = _value_read(content, pos + 1)
            if key == "class":
                classes.extend(value.split())
                attrs["class"] = " ".join(classes)
            else:
                attrs[key] = value
        else:
            flag = key if key.startswith(":") else ":" + key
            attrs[flag] = "true"

    return attrs


def attributes_split(text: str, pos: int) -> Tuple[Dict[str, AttrValue], int]:
    """
    Parse an attribute block starting at ``pos`` if one is there.

    Returns:
        (attributes, index after the block). When there is no well-formed
        block at pos, returns ({}, pos).
    """
    if pos >= len(text) or text[pos] != "{":
        return {}, pos
    close = brace_findMatching(text, pos)
    if close < 0:
        return {}, pos
    return attributes_parse(text[pos + 1:close]), close + 1


def value_isStructured(value: Any) -> bool:
    """True for dict/list values (only produced by YAML props)"""
    return isinstance(value, (dict, list))


def _value_quote(value: Any) -> str:
    if value_isStructured(value):
        value = json.dumps(value, separators=(",", ":"), ensure_ascii=False)
    elif isinstance(value, bool):
        value = "true" if value else "false"
    return '"' + str(value).replace("\\", "\\\\").replace('"', '\\"') + '"'


def attributes_toMDC(attrs: Dict[str, AttrValue]) -> str:
    """
    Serialize attributes to MDC ``{...}`` syntax.

    Returns:
        The attribute block, or "" when attrs is empty

    Example:
        >>> attributes_toMDC({"id": "x", "class": "a b", ":open": "true", "type": "info"})
        '{#x .a .b open type="info"}'
    """
    parts: List[str] = []
    for key, value in attrs.items():
        if key.startswith(":") and value in ("true", True):
            parts.append(key[1:])
        elif key == "id" and isinstance(value, str) and value and not any(c in value for c in _SEPARATORS):
            parts.append(f"#{value}")
        elif key == "class" and isinstance(value, str) and value.strip():
            parts.append(" ".join(f".{name}" for name in value.split()))
        else:
            parts.append(f"{key}={_value_quote(value)}")
    return "{" + " ".join(parts) + "}" if parts else ""


def attributes_toHTML(attrs: Dict[str, AttrValue]) -> str:
    """
    Serialize attributes for an HTML start tag.

    Dynamic ``:key`` attributes lose their prefix; boolean true values
    render as bare names and false values are omitted.

    Returns:
        Space-prefixed attribute string ("" when there is nothing to emit)
    """
    parts: List[str] = []
    for key, value in attrs.items():
        name = key[1:] if key.startswith(":") else key
        if value is True or (key.startswith(":") and value == "true"):
            parts.append(name)
            continue
        if value is False or (key.startswith(":") and value == "false"):
            continue
        if value_isStructured(value):
            value = json.dumps(value, separators=(",", ":"), ensure_ascii=False)
        parts.append(f'{name}="{html.escape(str(value), quote=True)}"')
    return "".join(" " + part for part in parts)


def attributes_toYAML(attrs: Dict[str, AttrValue]) -> str:
    """Serialize attributes as a ``---`` fenced YAML props block"""
    return "---\n" + yaml_dump(dict(attrs)).strip() + "\n---"
