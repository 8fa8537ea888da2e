"""
Frontmatter and YAML helpers

Splits a leading ``---`` delimited YAML block off a document and renders
it back. Also hosts the YAML load/dump pair shared with component props.

Dates and times are kept as the strings written in the source
(``date: 2024-01-15`` stays ``"2024-01-15"``), so the data round-trips
through render_frontmatter() unchanged.
"""

from typing import Any, Dict, Tuple

import yaml


class DataLoader(yaml.SafeLoader):
    """SafeLoader without the implicit timestamp resolver"""


DataLoader.yaml_implicit_resolvers = {
    first: [(tag, regexp) for tag, regexp in resolvers if tag != "tag:yaml.org,2002:timestamp"]
    for first, resolvers in yaml.SafeLoader.yaml_implicit_resolvers.items()
}


def yaml_load(text: str) -> Any:
    """
    Decode YAML text with the document data loader.

    Raises:
        yaml.YAMLError: On malformed input
    """
    return yaml.load(text, Loader=DataLoader)


def yaml_dump(data: Dict[str, Any]) -> str:
    """
    Encode a mapping as block-style YAML, preserving key order.

    Keys starting with ":" (dynamic attributes) are emitted unquoted so
    that they read the same way they are written in MDC props.

    Example:
        >>> yaml_dump({"title": "Hi", ":open": "true"})
        "title: Hi\\n:open: 'true'\\n"
    """
    text = yaml.safe_dump(data, sort_keys=False, allow_unicode=True, default_flow_style=False)
    lines = []
    for line in text.split("\n"):
        for quote in ("'", '"'):
            if line.startswith(quote + ":"):
                end = line.find(quote + ":", 1)
                if end > 0:
                    line = line[1:end] + line[end + 1:]
                break
        lines.append(line)
    return "\n".join(lines)


def parse_frontmatter(content: str) -> Tuple[str, Dict[str, Any]]:
    """
    Split frontmatter from document content.

    Args:
        content: Full document text

    Returns:
        (remaining content, frontmatter data). When there is no closed
        frontmatter block the content is returned unchanged with empty data.
        An empty block (``---\\n---``) is stripped and gives empty data.

    Raises:
        yaml.YAMLError: When the frontmatter block holds malformed YAML

    Example:
        >>> parse_frontmatter("---\\ntitle: Hi\\n---\\n# Body")
        ('\\n# Body', {'title': 'Hi'})
    """
    if not content.startswith("---") or content[3:4] not in ("\n", "\r"):
        return content, {}

    end = content.find("\n---", 3)
    if end == -1:
        return content, {}

    block = content[3:end].strip("\r\n")
    data = yaml_load(block) if block.strip() else {}
    if not isinstance(data, dict):
        data = {}

    remaining = content[end + 4:]
    if remaining.startswith("\r"):
        remaining = remaining[1:]
    return remaining, data


def render_frontmatter(data: Dict[str, Any], content: str) -> str:
    """
    Prefix content with a frontmatter block.

    Args:
        data: Frontmatter mapping; when empty or None no block is written
        content: Document body

    Returns:
        Rendered document
    """
    if not data:
        return content.strip()
    return "---\n" + yaml_dump(data).strip() + "\n---\n\n" + content.strip()
