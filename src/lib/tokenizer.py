"""
MDC syntax rules for markdown-it-py

Extends the CommonMark tokenizer with the MDC constructs. The rules emit
plain markdown-it tokens; attributes travel in ``token.meta["attrs"]``
and the converter turns the token stream into a tree.

Token types:
    mdc_block_open / mdc_block_close        ::name{attrs} ... ::
    mdc_block_slot_open / _close            #slot lines inside a block
    mdc_inline_component                    :name or :name{attrs}
    mdc_inline_component_open / _close      :name[content]{attrs}
    mdc_inline_span_open / _close           [content]{attrs}
    mdc_inline_props                        {attrs} after inline markup

Example:
    >>> md = markdown_create()
    >>> [t.type for t in md.parse("::alert\\nHi\\n::")]
    ['mdc_block_open', 'paragraph_open', 'inline', 'paragraph_close', 'mdc_block_close']
"""

import textwrap
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple

import yaml
from markdown_it import MarkdownIt
from markdown_it.rules_block import StateBlock
from markdown_it.rules_core import StateCore
from markdown_it.rules_inline import StateInline
from markdown_it.token import Token

from ..config import appsettings
from .attributes import attributes_parse, brace_findMatching, bracket_findMatching
from .frontmatter import yaml_load
from .log import LOG


def _isNameStart(ch: str) -> bool:
    return ch.isalpha() or ch == "$"


def _isNameChar(ch: str) -> bool:
    return ch.isalnum() or ch in "$.-_"


def name_scan(text: str, pos: int) -> int:
    """
    Scan a component name starting at pos.

    Returns:
        Index after the name, or pos when no name starts there
    """
    if pos >= len(text) or not _isNameStart(text[pos]):
        return pos
    end = pos + 1
    while end < len(text) and _isNameChar(text[end]):
        end += 1
    # a trailing '.' or '-' belongs to the surrounding text
    while end > pos + 1 and text[end - 1] in ".-":
        end -= 1
    return end


def _line(state: StateBlock, line: int) -> str:
    """Line content after its indentation"""
    return state.src[state.bMarks[line] + state.tShift[line]:state.eMarks[line]]


def _colons(text: str) -> int:
    count = 0
    while count < len(text) and text[count] == ":":
        count += 1
    return count


def _fence_marker(text: str) -> str:
    for marker in ("```", "~~~"):
        if text.startswith(marker):
            return marker
    return ""


def componentOpen_parse(text: str) -> Optional[Tuple[int, str, Dict[str, Any]]]:
    """
    Parse a block component opening line (without indentation).

    Returns:
        (colon count, name, attributes), or None when the line is not an
        opening line

    Example:
        >>> componentOpen_parse('::alert{type="info"}')
        (2, 'alert', {'type': 'info'})
    """
    colons = _colons(text)
    if colons < 2:
        return None
    name_end = name_scan(text, colons)
    if name_end == colons:
        return None
    name = text[colons:name_end]
    rest = text[name_end:]
    attrs: Dict[str, Any] = {}
    if rest.startswith("{"):
        close = brace_findMatching(rest, 0)
        if close < 0:
            close = len(rest)
        attrs = attributes_parse(rest[1:close])
        rest = rest[close + 1:]
    if rest.strip():
        return None
    return colons, name, attrs


def componentClose_find(state: StateBlock, startLine: int, endLine: int, colons: int) -> int:
    """
    Find the line closing a block component.

    Nested openings with the same colon count are balanced, and lines
    inside fenced code are ignored.

    Returns:
        The closing line index, or -1 when the component is unclosed
    """
    depth = 0
    fence = ""
    line = startLine + 1
    while line < endLine:
        if state.bMarks[line] + state.tShift[line] < state.eMarks[line] and state.sCount[line] < state.blkIndent:
            return -1
        text = _line(state, line).rstrip()
        marker = _fence_marker(text)
        if fence:
            if marker == fence and not text.strip("`~"):
                fence = ""
        elif marker:
            fence = marker
        elif _colons(text) == colons:
            if len(text) == colons:
                if depth == 0:
                    return line
                depth -= 1
            elif name_scan(text, colons) > colons:
                depth += 1
        line += 1
    return -1


def props_find(state: StateBlock, line: int, endLine: int) -> Tuple[Dict[str, Any], int]:
    """
    Read a YAML props fence directly after a component opening line.

    Args:
        line: First line after the opening line
        endLine: Exclusive end of the component body

    Returns:
        (props, first body line). Invalid YAML is logged and ignored.
    """
    if line >= endLine or _line(state, line).rstrip() != "---":
        return {}, line

    close = line + 1
    while close < endLine and _line(state, close).rstrip() != "---":
        close += 1
    if close >= endLine:
        return {}, line

    raw = "\n".join(state.src[state.bMarks[l]:state.eMarks[l]] for l in range(line + 1, close))
    try:
        props = yaml_load(textwrap.dedent(raw))
    except yaml.YAMLError as error:
        LOG(f"Ignoring invalid YAML props at line {line + 1}: {error}", level=2)
        return {}, close + 1
    if not isinstance(props, dict):
        return {}, close + 1
    return props, close + 1


def slots_find(state: StateBlock, startLine: int, endLine: int) -> List[Tuple[str, int]]:
    """
    Locate ``#slot`` lines at the component's own nesting level.

    Returns:
        List of (slot name, line index) in document order
    """
    slots: List[Tuple[str, int]] = []
    nested: List[int] = []
    fence = ""
    for line in range(startLine, endLine):
        text = _line(state, line).rstrip()
        marker = _fence_marker(text)
        if fence:
            if marker == fence and not text.strip("`~"):
                fence = ""
            continue
        if marker:
            fence = marker
            continue
        colons = _colons(text)
        if colons >= 2:
            if len(text) == colons:
                if nested and nested[-1] == colons:
                    nested.pop()
            elif name_scan(text, colons) > colons:
                nested.append(colons)
            continue
        if not nested and text.startswith("#") and name_scan(text, 1) == len(text) > 1:
            slots.append((text[1:], line))
    return slots


def _body_tokenize(state: StateBlock, startLine: int, endLine: int) -> None:
    """Tokenize one region of a component body"""
    if startLine >= endLine:
        return
    # paragraphs continue lazily up to lineMax, so a slot must not see past its end
    old_line_max = state.lineMax
    state.lineMax = endLine
    state.md.block.tokenize(state, startLine, endLine)
    state.lineMax = old_line_max


def block_component(state: StateBlock, startLine: int, endLine: int, silent: bool) -> bool:
    """Block rule for ``::name{attrs}`` ... ``::`` components"""
    if state.sCount[startLine] - state.blkIndent >= 4:
        return False

    opening = componentOpen_parse(_line(state, startLine).rstrip())
    if opening is None:
        return False
    colons, name, attrs = opening

    if silent:
        return True

    close = componentClose_find(state, startLine, endLine, colons)
    body_end = close if close >= 0 else endLine

    props, body_start = props_find(state, startLine + 1, body_end)
    attrs.update(props)
    LOG(f"block component '{name}' at line {startLine + 1}", level=3)

    old_parent = state.parentType
    old_line_max = state.lineMax
    state.parentType = "mdc_block"
    # keep lazy paragraph continuation from running past the closing line
    state.lineMax = body_end

    token = state.push("mdc_block_open", name, 1)
    token.markup = ":" * colons
    token.meta = {"attrs": attrs}
    token.map = [startLine, body_end]

    slots = slots_find(state, body_start, body_end)
    _body_tokenize(state, body_start, slots[0][1] if slots else body_end)
    for index, (slot, line) in enumerate(slots):
        slot_end = slots[index + 1][1] if index + 1 < len(slots) else body_end
        token = state.push("mdc_block_slot_open", "template", 1)
        token.meta = {"attrs": {"name": slot}}
        token.map = [line, slot_end]
        _body_tokenize(state, line + 1, slot_end)
        state.push("mdc_block_slot_close", "template", -1)

    token = state.push("mdc_block_close", name, -1)
    token.markup = ":" * colons

    state.parentType = old_parent
    state.lineMax = old_line_max
    state.line = close + 1 if close >= 0 else endLine
    return True


def inline_component(state: StateInline, silent: bool) -> bool:
    """Inline rule for ``:name``, ``:name{attrs}`` and ``:name[content]{attrs}``"""
    pos = state.pos
    src = state.src
    maximum = state.posMax
    if src[pos] != ":":
        return False
    if pos > 0 and (src[pos - 1].isalnum() or src[pos - 1] == ":"):
        return False

    name_end = name_scan(src[:maximum], pos + 1)
    if name_end == pos + 1:
        return False
    name = src[pos + 1:name_end]
    cursor = name_end

    content: Optional[Tuple[int, int]] = None
    if cursor < maximum and src[cursor] == "[":
        close = bracket_findMatching(src, cursor, maximum)
        if close < 0:
            return False
        content = (cursor + 1, close)
        cursor = close + 1

    attrs: Dict[str, Any] = {}
    if cursor < maximum and src[cursor] == "{":
        close = brace_findMatching(src, cursor, maximum)
        if close < 0:
            return False
        attrs = attributes_parse(src[cursor + 1:close])
        cursor = close + 1
    elif content is None and cursor < maximum and src[cursor] == ":":
        return False

    if silent:
        state.pos = cursor
        return True

    if content is None:
        token = state.push("mdc_inline_component", name, 0)
        token.meta = {"attrs": attrs}
    else:
        token = state.push("mdc_inline_component_open", name, 1)
        token.meta = {"attrs": attrs}
        state.pos, state.posMax = content
        state.md.inline.tokenize(state)
        state.push("mdc_inline_component_close", name, -1)

    state.pos = cursor
    state.posMax = maximum
    return True


def inline_span(state: StateInline, silent: bool) -> bool:
    """Inline rule for generic spans ``[content]{attrs}``"""
    pos = state.pos
    src = state.src
    maximum = state.posMax
    if src[pos] != "[":
        return False

    close = bracket_findMatching(src, pos, maximum)
    if close < 0 or close + 1 >= maximum or src[close + 1] != "{":
        return False
    brace = brace_findMatching(src, close + 1, maximum)
    if brace < 0:
        return False

    if not silent:
        token = state.push("mdc_inline_span_open", "span", 1)
        token.meta = {"attrs": attributes_parse(src[close + 2:brace])}
        state.pos, state.posMax = pos + 1, close
        state.md.inline.tokenize(state)
        state.push("mdc_inline_span_close", "span", -1)
        state.posMax = maximum

    state.pos = brace + 1
    return True


def inline_props(state: StateInline, silent: bool) -> bool:
    """Inline rule for ``{attrs}`` trailing strong, em, code, links and images"""
    pos = state.pos
    if state.src[pos] != "{" or state.pending or not state.tokens:
        return False
    if state.tokens[-1].type in ("softbreak", "hardbreak"):
        return False

    close = brace_findMatching(state.src, pos, state.posMax)
    if close < 0:
        return False

    if not silent:
        token = state.push("mdc_inline_props", "", 0)
        token.meta = {"attrs": attributes_parse(state.src[pos + 1:close])}
    state.pos = close + 1
    return True


def mdc_plugin(md: MarkdownIt) -> None:
    """
    Register the MDC block and inline rules.

    Example:
        >>> md = MarkdownIt("commonmark").use(mdc_plugin)
    """
    md.block.ruler.before(
        "fence",
        "mdc_block_component",
        block_component,
        {"alt": ["paragraph", "reference", "blockquote", "list"]},
    )
    md.inline.ruler.before("link", "mdc_inline_component", inline_component)
    md.inline.ruler.before("link", "mdc_inline_span", inline_span)
    md.inline.ruler.before("link", "mdc_inline_props", inline_props)


_TASK_MARKERS = {"[ ]": False, "[x]": True, "[X]": True}


def taskList_rule(state: StateCore) -> None:
    """
    Core rule turning ``[ ]`` / ``[x]`` list item prefixes into checkboxes.

    The list item gets class ``task-list-item`` and its list
    ``contains-task-list``; an ``input`` component is inserted before the
    item text.
    """
    tokens = state.tokens
    for index in range(2, len(tokens)):
        token = tokens[index]
        if token.type != "inline" or tokens[index - 1].type != "paragraph_open":
            continue
        item = tokens[index - 2]
        if item.type != "list_item_open" or not token.children:
            continue
        first = token.children[0]
        marker = first.content[:3]
        if first.type != "text" or marker not in _TASK_MARKERS or first.content[3:4] not in ("", " "):
            continue

        attrs: Dict[str, Any] = {"class": "task-list-item-checkbox", "type": "checkbox"}
        if not appsettings.task_list_enabled:
            attrs[":disabled"] = "true"
        if _TASK_MARKERS[marker]:
            attrs[":checked"] = "true"

        checkbox = Token("mdc_inline_component", "input", 0)
        checkbox.meta = {"attrs": attrs}
        first.content = first.content[3:]
        token.children.insert(0, checkbox)

        item.attrs["class"] = "task-list-item"
        for back in range(index - 3, -1, -1):
            candidate = tokens[back]
            if candidate.type in ("bullet_list_open", "ordered_list_open") and candidate.level == item.level - 1:
                candidate.attrs["class"] = "contains-task-list"
                break


def taskList_plugin(md: MarkdownIt) -> None:
    """Register the task list core rule"""
    md.core.ruler.after("inline", "mdc_task_list", taskList_rule)


def markdown_create(plugins: Iterable[Callable[[MarkdownIt], None]] = ()) -> MarkdownIt:
    """
    Build a markdown-it-py instance with GFM tables, strikethrough and MDC.

    Args:
        plugins: Extra markdown-it plugins, applied after the MDC rules

    Returns:
        Configured MarkdownIt instance
    """
    md = MarkdownIt("commonmark", {"html": True}).enable(["table", "strikethrough"])
    md.use(mdc_plugin)
    for plugin in plugins:
        md.use(plugin)
    return md
