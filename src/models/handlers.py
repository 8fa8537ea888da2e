"""
Stringify handler specification models

Describes the per-tag handlers of the MDC stringify engine for registry
management and lookup.
"""

from enum import Enum
from dataclasses import dataclass, field
from typing import Callable, List


class HandlerCategory(Enum):
    """
    Categories of stringify handlers

    Used for organization and listing.
    """
    BLOCK = "block"           # p, h1-h6, blockquote, pre, hr
    INLINE = "inline"         # a, img, code, em, strong, del, br
    LIST = "list"             # ul, ol, li, input
    TABLE = "table"           # table and its sections
    COMPONENT = "component"   # template slots and user components


@dataclass
class HandlerSpec:
    """
    Specification for a stringify handler

    Attributes:
        name: Tag handled
        category: Category for organization
        description: Human-readable description
        handler: Stringify function (node, compiler, parent) -> str
        examples: Example MDC output
        aliases: Other tags handled by the same function
    """
    name: str
    category: HandlerCategory
    description: str
    handler: Callable
    examples: List[str] = field(default_factory=list)
    aliases: List[str] = field(default_factory=list)

    def matches(self, tag: str) -> bool:
        """
        Check if this spec handles a tag

        Args:
            tag: Element tag

        Returns:
            True if the tag is the spec name or one of its aliases
        """
        return tag == self.name or tag in self.aliases
