"""
Auto-close engine for partial MDC documents

Completes syntactically unclosed markup so that a document that is still
arriving (streamed from a model or a slow download) parses into a sensible
tree at every step.

The engine works in three passes, all done with explicit index scanning:

1. Document scan: tracks frontmatter, ``$$`` math blocks, the trailing
   table block and a stack of open block components.
2. Last line scan: closes every inline marker (``*``, ``**``, ``~~``,
   `` ` ``, ``$``, ``[``, ``(`` ...) left open on the final line, innermost
   first. A dangling attribute brace in an MDC document is closed before
   the inline markers.
3. Structural repairs: tables, frontmatter, math and component closers.

The transform is idempotent: ``auto_close(auto_close(s)) == auto_close(s)``
and well-formed input is returned unchanged.

Example:
    >>> auto_close(":::parent\\n::child\\ncontent")
    ':::parent\\n::child\\ncontent\\n::\\n:::'
"""

from typing import List, Optional, Tuple

from ..models.parser import ComponentFrame, MarkerFrame
from .attributes import brace_findMatching


def _isNameStart(ch: str) -> bool:
    return ("a" <= ch <= "z") or ("A" <= ch <= "Z") or ch == "$"


def _isNameChar(ch: str) -> bool:
    return _isNameStart(ch) or ("0" <= ch <= "9") or ch in ".-_"


def _isWordChar(ch: str) -> bool:
    return ch.isalnum()


def auto_close(markdown: str) -> str:
    """
    Close unclosed markdown and MDC syntax.

    Args:
        markdown: Possibly partial document text

    Returns:
        Text that parses without dangling constructs. Already closed
        input is returned byte-for-byte unchanged.

    Example:
        >>> auto_close("*italic")
        '*italic*'
        >>> auto_close("---\\ntitle: Test")
        '---\\ntitle: Test\\n---'
    """
    if not markdown:
        return markdown

    lines = markdown.split("\n")
    in_frontmatter, in_math, table_start, stack = document_scan(lines)

    last = len(lines) - 1
    if not in_frontmatter and not in_math and lines[last].strip() != "$$":
        # the brace goes first so inline closers never land inside it
        if "::" in markdown:
            lines[last] += attributeBrace_close(lines[last])
        if componentLine_scan(lines[last]) is None:
            lines[last] = inlineMarkers_close(lines[last])

    if table_start != -1:
        lines[table_start:] = table_complete(lines[table_start:])

    result = "\n".join(lines)

    if in_frontmatter:
        tail = lines[last].strip()
        if tail in ("-", "--"):
            result += "-" * (3 - len(tail))
        else:
            result += "---" if result.endswith("\n") else "\n---"

    if in_math:
        result += "$$" if result.endswith("\n") else "\n$$"

    if "::" in markdown:
        if stack:
            top = stack[-1]
            tail = result[result.rfind("\n") + 1:].strip()
            if top.has_yaml_props and tail in ("-", "--"):
                result += "-" * (3 - len(tail))
                top.has_yaml_props = False

            closers: List[str] = []
            while stack:
                frame = stack.pop()
                if frame.has_yaml_props:
                    closers.append(frame.indent + "---")
                closers.append(frame.indent + ":" * frame.depth)
            result += "\n" + "\n".join(closers)

    return result


def document_scan(lines: List[str]) -> Tuple[bool, bool, int, List[ComponentFrame]]:
    """
    Pass 1: collect block level state for the whole document.

    Args:
        lines: Document split on "\\n"

    Returns:
        (in_frontmatter, in_math, table_start, open component stack).
        table_start is the index of the first line of the trailing run of
        ``|`` lines, or -1.
    """
    in_frontmatter = False
    in_math = False
    table_start = -1
    stack: List[ComponentFrame] = []

    for idx, line in enumerate(lines):
        trimmed = line.strip()

        # Frontmatter only opens on the very first line
        if idx == 0 and trimmed == "---":
            in_frontmatter = True
            continue
        if in_frontmatter:
            if trimmed == "---":
                in_frontmatter = False
            continue

        if trimmed == "$$":
            in_math = not in_math
            continue

        # YAML props fence of the innermost open component
        if trimmed == "---" and stack:
            stack[-1].has_yaml_props = not stack[-1].has_yaml_props
            continue

        if trimmed.startswith("|"):
            if table_start == -1:
                table_start = idx
        else:
            table_start = -1

        if trimmed.startswith("::"):
            frame = componentLine_scan(line)
            if frame is not None:
                stack.append(frame)
            elif trimmed == ":" * len(trimmed) and stack and stack[-1].depth == len(trimmed):
                stack.pop()

    return in_frontmatter, in_math, table_start, stack


def componentLine_scan(line: str) -> Optional[ComponentFrame]:
    """
    Recognize a block component opening line.

    Returns:
        A ComponentFrame for ``<indent>::name...`` lines, None otherwise
    """
    indent_end = 0
    while indent_end < len(line) and line[indent_end] in " \t":
        indent_end += 1
    trimmed = line.strip()

    colons = 0
    while colons < len(trimmed) and trimmed[colons] == ":":
        colons += 1
    if colons < 2 or colons >= len(trimmed) or not _isNameStart(trimmed[colons]):
        return None

    name_end = colons
    while name_end < len(trimmed) and _isNameChar(trimmed[name_end]):
        name_end += 1

    return ComponentFrame(
        depth=colons,
        name=trimmed[colons:name_end],
        indent=line[:indent_end],
    )


def attributeBrace_close(final_line: str) -> str:
    """
    Return the characters needed to close an open ``{`` on the last line.

    Scans backward for the nearest ``{``; a ``}`` found first means the
    line is balanced. Unterminated quotes inside the block are closed
    before the brace.

    Example:
        >>> attributeBrace_close('::alert{type="info')
        '"}'
    """
    open_at = -1
    for pos in range(len(final_line) - 1, -1, -1):
        if final_line[pos] == "}":
            break
        if final_line[pos] == "{":
            open_at = pos
            break
    if open_at < 0:
        return ""

    double = single = 0
    props = final_line[open_at + 1:]
    pos = 0
    while pos < len(props):
        if props[pos] == "\\":
            pos += 2
            continue
        if props[pos] == '"':
            double += 1
        elif props[pos] == "'":
            single += 1
        pos += 1

    suffix = ""
    if double % 2 == 1:
        suffix += '"'
    if single % 2 == 1:
        suffix += "'"
    return suffix + "}"


# A dangling ` or $ run followed only by these is text, not an opener.
# The set holds whitespace and every closer this pass appends after one.
_CLOSER_TAIL = " \t*_~])"


def _run_length(line: str, pos: int) -> int:
    end = pos
    while end < len(line) and line[end] == line[pos]:
        end += 1
    return end - pos


def codeSpan_findClose(line: str, start: int, run: int) -> int:
    """Index of the next backtick run of exactly ``run`` characters, or -1"""
    pos = start
    while pos < len(line):
        if line[pos] != "`":
            pos += 1
            continue
        length = _run_length(line, pos)
        if length == run:
            return pos
        pos += length
    return -1


def linkTarget_findClose(line: str, start: int) -> Tuple[int, int]:
    """
    Find the ``)`` ending the link target opened at ``start``.

    Returns:
        (index of the closing paren or -1, parens still open at line end)
    """
    depth = 0
    for pos in range(start, len(line)):
        if line[pos] == "(":
            depth += 1
        elif line[pos] == ")":
            depth -= 1
            if depth == 0:
                return pos, 0
    return -1, depth


def emphasis_close(stack: List[MarkerFrame], marker: str, run: int) -> int:
    """
    Spend a closing run of ``marker`` on the open frames.

    Frames above a closed one stay literal text and are dropped. An open
    ``[`` bounds the search, as emphasis cannot cross a link label.

    Returns:
        Characters of the run left over
    """
    index = len(stack) - 1
    while run and index >= 0 and stack[index].marker != "[":
        frame = stack[index]
        if frame.marker == marker:
            taken = min(run, frame.count)
            frame.count -= taken
            run -= taken
            del stack[index + (1 if frame.count else 0):]
        index -= 1
    return run


def inlineMarkers_scan(line: str) -> List[MarkerFrame]:
    """
    Scan a line left to right and return the markers still open at its end.

    Code spans, inline math, link targets and ``{...}`` blocks are matched
    as units and skipped. Emphasis runs open when followed by a non-space
    and close when preceded by one (or when they end the line); an ``_``
    between two word characters is text. An unclosed code span, math span
    or link target ends the scan, since the rest of the line is its body.

    Example:
        >>> [(f.marker, f.count) for f in inlineMarkers_scan("**a [b `c")]
        [('*', 2), ('[', 1), ('`', 1)]
    """
    stack: List[MarkerFrame] = []
    length = len(line)
    pos = 0
    while pos < length:
        ch = line[pos]

        if ch == "`" or ch == "$":
            if ch == "`":
                run = _run_length(line, pos)
                close = codeSpan_findClose(line, pos + run, run)
            else:
                run = 2 if line.startswith("$$", pos) else 1
                close = line.find(ch * run, pos + run)
            if close >= 0:
                pos = close + run
                continue
            if all(rest in _CLOSER_TAIL for rest in line[pos + run:]):
                pos += run
                continue
            stack.append(MarkerFrame(ch, run))
            break

        if ch == "{":
            close = brace_findMatching(line, pos)
            pos = close + 1 if close >= 0 else pos + 1
            continue

        if ch == "[":
            stack.append(MarkerFrame("["))
            pos += 1
            continue

        if ch == "]":
            pos += 1
            opener = -1
            for index in range(len(stack) - 1, -1, -1):
                if stack[index].marker == "[":
                    opener = index
                    break
            if opener < 0:
                continue
            del stack[opener:]
            if pos < length and line[pos] == "(":
                close, depth = linkTarget_findClose(line, pos)
                if close < 0:
                    stack.append(MarkerFrame("(", depth))
                    break
                pos = close + 1
            continue

        if ch in "*_~":
            run = _run_length(line, pos)
            before = line[pos - 1] if pos > 0 else ""
            after = line[pos + run] if pos + run < length else ""
            pos += run
            if ch == "_" and _isWordChar(before) and _isWordChar(after):
                continue
            if before and (not before.isspace() or not after):
                run = emphasis_close(stack, ch, run)
            if run and after and not after.isspace() and (ch != "~" or run >= 2):
                stack.append(MarkerFrame(ch, run))
            continue

        pos += 1

    return stack


def inlineMarkers_close(line: str) -> str:
    """
    Pass 2: close the inline markers left open on a single line.

    Every open marker is closed, innermost first, so the closed line
    scans as balanced. Before an emphasis closer one trailing run of
    spaces or tabs is dropped; code spans keep theirs. A code or math
    closer that would merge with a trailing backtick or dollar is set off
    by a space.

    Args:
        line: The last line of the document

    Returns:
        The line with its closers appended

    Example:
        >>> inlineMarkers_close("Some text with **bold")
        'Some text with **bold**'
        >>> inlineMarkers_close("`code ")
        '`code `'
        >>> inlineMarkers_close("**see [docs")
        '**see [docs]**'
    """
    stack = inlineMarkers_scan(line)
    if not stack:
        return line

    if stack[-1].marker in "*_~":
        line = line.rstrip(" \t")

    suffix = ""
    for frame in reversed(stack):
        if frame.marker == "[":
            suffix += "]"
        elif frame.marker == "(":
            suffix += ")" * frame.count
        else:
            closer = frame.marker * frame.count
            if frame.marker in "`$" and line.endswith(frame.marker):
                closer = " " + closer
            suffix += closer
    return line + suffix


def _cells_split(row: str) -> Tuple[List[str], bool]:
    """
    Split a table row into raw cells on unescaped pipes.

    Returns:
        (cells, terminated). Cells keep their surrounding spaces;
        terminated is True when the row ends with a closing pipe.
    """
    body = row.strip()
    if body.startswith("|"):
        body = body[1:]

    cells: List[str] = []
    current: List[str] = []
    terminated = False
    pos = 0
    while pos < len(body):
        ch = body[pos]
        if ch == "\\" and pos + 1 < len(body):
            current.append(body[pos:pos + 2])
            pos += 2
            continue
        if ch == "|":
            cells.append("".join(current))
            current = []
            terminated = True
        else:
            current.append(ch)
            if ch not in " \t":
                terminated = False
        pos += 1

    if current and not terminated:
        cells.append("".join(current))
    return cells, terminated


def _delimiterCell_is(cell: str) -> bool:
    text = cell.strip()
    if not text:
        return False
    for ch in text:
        if ch not in ":-":
            return False
    return "-" in text and ":" not in text[1:-1]


def _delimiterLike_is(row: str) -> bool:
    for ch in row.strip():
        if ch not in "|:- \t":
            return False
    return True


def table_complete(rows: List[str]) -> List[str]:
    """
    Complete a trailing table block so it parses as a GFM table.

    Rules:
        - an unterminated last row gets its closing pipe; its last cell is
          padded to the width of the same cell in the previous content row
        - a missing delimiter row is synthesized from the header's column
          count; a partial one has its cells completed (``:`` -> ``:-``)
          and missing cells filled with ``---``
        - rows that are already well formed are never modified

    Args:
        rows: Consecutive lines starting with ``|``

    Returns:
        The completed rows (may contain one extra synthesized row)

    Example:
        >>> table_complete(["| Month    | Savings"])
        ['| Month    | Savings |', '| --- | --- |']
    """
    rows = list(rows)
    last = len(rows) - 1

    cells, terminated = _cells_split(rows[last])
    if not terminated and not (last == 1 and _delimiterLike_is(rows[last])):
        rows[last] = rowTerminator_add(rows, last, cells)

    header_cells, _ = _cells_split(rows[0])
    columns = max(len(header_cells), 1)
    indent = rows[0][:len(rows[0]) - len(rows[0].lstrip())]

    if len(rows) == 1:
        rows.append(indent + "| " + " | ".join(["---"] * columns) + " |")
        return rows

    if _delimiterLike_is(rows[1]):
        delim_cells, delim_terminated = _cells_split(rows[1])
        complete = (delim_terminated and len(delim_cells) == columns
                    and all(_delimiterCell_is(cell) for cell in delim_cells))
        if not complete:
            fixed: List[str] = []
            for cell in delim_cells[:columns]:
                text = cell.strip()
                if not text or text == ":":
                    text = ":-" if text == ":" else "---"
                fixed.append(text)
            fixed.extend(["---"] * (columns - len(fixed)))
            rows[1] = indent + "| " + " | ".join(fixed) + " |"
    else:
        rows.insert(1, indent + "| " + " | ".join(["---"] * columns) + " |")

    return rows


def rowTerminator_add(rows: List[str], index: int, cells: List[str]) -> str:
    """Close an unterminated row, padding its last cell to the row above"""
    row = rows[index].rstrip("\n")
    if not cells:
        return row + " |"

    reference: List[str] = []
    for previous in range(index - 1, -1, -1):
        if not _delimiterLike_is(rows[previous]):
            reference, _ = _cells_split(rows[previous])
            break

    column = len(cells) - 1
    last_cell = cells[column]
    if column < len(reference) and len(last_cell) < len(reference[column]):
        row += " " * (len(reference[column]) - len(last_cell))
    if not row.endswith((" ", "\t")):
        row += " "
    return row + "|"
