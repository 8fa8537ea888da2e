"""
MDC markdown handlers

Each handler turns one tree element back into MDC source text. Handlers
receive the element, the running Compiler (for recursion and the
StringifyState) and the immediate parent element.
"""

from typing import Any, Callable, Dict, List, Optional

from ..config import appsettings
from ..models.ast import Element, Node, text_content
from ..models.handlers import HandlerCategory, HandlerSpec
from .attributes import attributes_toMDC, attributes_toYAML, value_isStructured


Handler = Callable[[Element, Any, Optional[Element]], str]


def indent(text: str, width: int = 2, first: bool = True) -> str:
    """Indent non-empty lines by width spaces"""
    lines = text.split("\n")
    return "\n".join(
        line if not line or (index == 0 and not first) else " " * width + line
        for index, line in enumerate(lines)
    )


def _attrs_without(node: Element, *keys: str) -> str:
    rest = {key: value for key, value in node.attrs.items() if key not in keys}
    return attributes_toMDC(rest)


def _whitespace_is(node: Node) -> bool:
    return isinstance(node, str) and not node.strip()


class HandlerRegistry:
    """
    Registry of stringify handler specifications

    Maps tags to HandlerSpec objects. Tags without a handler are rendered
    by the generic component handler.
    """

    def __init__(self) -> None:
        """Initialize the registry and register all built-in handlers"""
        self.specs: Dict[str, HandlerSpec] = {}
        self.blockHandlers_register()
        self.inlineHandlers_register()
        self.listHandlers_register()
        self.tableHandlers_register()
        self.componentHandlers_register()

    def register(self, spec: HandlerSpec) -> None:
        """Register a handler specification"""
        self.specs[spec.name] = spec
        for alias in spec.aliases:
            self.specs[alias] = spec

    def get(self, tag: str) -> Handler:
        """
        Get the handler for a tag

        Args:
            tag: Element tag

        Returns:
            The registered handler, or the generic component handler
        """
        if tag in self.specs:
            return self.specs[tag].handler
        return self.specs["component"].handler

    def spec_get(self, tag: str) -> Optional[HandlerSpec]:
        """Get the full handler specification for a tag"""
        return self.specs.get(tag)

    def handlers_listByCategory(self, category: HandlerCategory) -> List[HandlerSpec]:
        """Get all distinct handler specs in a category"""
        seen: List[HandlerSpec] = []
        for spec in self.specs.values():
            if spec.category == category and spec not in seen:
                seen.append(spec)
        return seen

    def blockHandlers_register(self) -> None:
        """Register paragraph, heading, quote, code block and rule handlers"""

        def p_handler(node: Element, compiler: Any, parent: Optional[Element]) -> str:
            content = "".join(compiler.node_compile(child, node) for child in node.children)
            return content + compiler.state.block_separator

        def heading_handler(node: Element, compiler: Any, parent: Optional[Element]) -> str:
            level = int(node.tag[1])
            content = "".join(compiler.node_compile(child, node) for child in node.children)
            return "#" * level + " " + content.strip() + compiler.state.block_separator

        def blockquote_handler(node: Element, compiler: Any, parent: Optional[Element]) -> str:
            content = "".join(compiler.node_compile(child, node) for child in node.children).strip()
            lines = [f"> {line}" if line else ">" for line in content.split("\n")]
            return "\n".join(lines) + compiler.state.block_separator

        def pre_handler(node: Element, compiler: Any, parent: Optional[Element]) -> str:
            code = text_content(node)
            info: List[str] = []
            if node.attrs.get("language"):
                info.append(str(node.attrs["language"]))
            if node.attrs.get("filename"):
                info.append(f"[{node.attrs['filename']}]")
            if node.attrs.get("highlights"):
                info.append("{" + ",".join(str(line) for line in node.attrs["highlights"]) + "}")
            if node.attrs.get("meta"):
                info.append(str(node.attrs["meta"]))
            fence = "```"
            while fence in code:
                fence += "`"
            return f"{fence}{' '.join(info)}\n{code}\n{fence}" + compiler.state.block_separator

        def hr_handler(node: Element, compiler: Any, parent: Optional[Element]) -> str:
            return "---" + compiler.state.block_separator

        self.register(HandlerSpec(
            name="p",
            category=HandlerCategory.BLOCK,
            description="Paragraph",
            handler=p_handler,
            examples=["Some *text*"],
        ))
        self.register(HandlerSpec(
            name="h1",
            category=HandlerCategory.BLOCK,
            description="ATX heading; the id is regenerated on parse",
            handler=heading_handler,
            aliases=["h2", "h3", "h4", "h5", "h6"],
            examples=["## Section"],
        ))
        self.register(HandlerSpec(
            name="blockquote",
            category=HandlerCategory.BLOCK,
            description="Quoted block, every line prefixed with '> '",
            handler=blockquote_handler,
            examples=["> quoted"],
        ))
        self.register(HandlerSpec(
            name="pre",
            category=HandlerCategory.BLOCK,
            description="Fenced code block with language, filename, highlights and meta",
            handler=pre_handler,
            examples=["```ts [app.ts] {2}\nconst a = 1\n```"],
        ))
        self.register(HandlerSpec(
            name="hr",
            category=HandlerCategory.BLOCK,
            description="Thematic break",
            handler=hr_handler,
            examples=["---"],
        ))

    def inlineHandlers_register(self) -> None:
        """Register inline formatting handlers"""

        def wrapper_make(marker: str) -> Handler:
            """Factory for marker-wrapped inline formatting"""
            def handler(node: Element, compiler: Any, parent: Optional[Element]) -> str:
                content = "".join(compiler.node_compile(child, node) for child in node.children).strip()
                return f"{marker}{content}{marker}{attributes_toMDC(node.attrs)}"
            return handler

        def a_handler(node: Element, compiler: Any, parent: Optional[Element]) -> str:
            content = "".join(compiler.node_compile(child, node) for child in node.children)
            title = node.attrs.get("title")
            target = str(node.attrs.get("href", ""))
            if title:
                target += ' "' + str(title).replace('"', '\\"') + '"'
            return f"[{content}]({target})" + _attrs_without(node, "href", "title")

        def img_handler(node: Element, compiler: Any, parent: Optional[Element]) -> str:
            target = str(node.attrs.get("src", ""))
            title = node.attrs.get("title")
            if title:
                target += ' "' + str(title).replace('"', '\\"') + '"'
            return f"![{node.attrs.get('alt', '')}]({target})" + _attrs_without(node, "src", "alt", "title")

        def code_handler(node: Element, compiler: Any, parent: Optional[Element]) -> str:
            content = text_content(node)
            if "`" in content:
                return f"`` {content} ``" + attributes_toMDC(node.attrs)
            return f"`{content}`" + attributes_toMDC(node.attrs)

        def br_handler(node: Element, compiler: Any, parent: Optional[Element]) -> str:
            return "\\\n"

        for name, marker, description in (
            ("strong", "**", "Strong emphasis"),
            ("em", "*", "Emphasis"),
            ("del", "~~", "Strikethrough"),
        ):
            self.register(HandlerSpec(
                name=name,
                category=HandlerCategory.INLINE,
                description=description,
                handler=wrapper_make(marker),
                examples=[f"{marker}text{marker}{{.cls}}"],
            ))

        self.register(HandlerSpec(
            name="a",
            category=HandlerCategory.INLINE,
            description="Link with optional title and extra attributes",
            handler=a_handler,
            examples=['[docs](/docs "Docs"){target="_blank"}'],
        ))
        self.register(HandlerSpec(
            name="img",
            category=HandlerCategory.INLINE,
            description="Image",
            handler=img_handler,
            examples=["![alt](/logo.png)"],
        ))
        self.register(HandlerSpec(
            name="code",
            category=HandlerCategory.INLINE,
            description="Inline code span",
            handler=code_handler,
            examples=["`code`{.lang}"],
        ))
        self.register(HandlerSpec(
            name="br",
            category=HandlerCategory.INLINE,
            description="Hard line break",
            handler=br_handler,
        ))

    def listHandlers_register(self) -> None:
        """Register list handlers"""

        def list_handler(node: Element, compiler: Any, parent: Optional[Element]) -> str:
            previous = compiler.state.list
            compiler.state.list = compiler.state.list_open(
                ordered=node.tag == "ol",
                start=node.attrs.get("start", 1),
            )
            items = "".join(
                compiler.node_compile(child, node) for child in node.children if not _whitespace_is(child)
            ).rstrip("\n")
            compiler.state.list = previous
            if previous.active:
                return "\n" + items
            return items + compiler.state.block_separator

        def li_handler(node: Element, compiler: Any, parent: Optional[Element]) -> str:
            context = compiler.state.list
            if context.ordered:
                prefix = f"{context.counter}. "
            else:
                prefix = "- "
            context.counter += 1

            content = "".join(compiler.node_compile(child, node) for child in node.children).strip()
            return prefix + indent(content, len(prefix), first=False) + "\n"

        def input_handler(node: Element, compiler: Any, parent: Optional[Element]) -> str:
            if node.attrs.get("type") == "checkbox":
                checked = node.attrs.get(":checked", node.attrs.get("checked"))
                return "[x]" if checked in ("true", True) else "[ ]"
            return compiler.registry.get("component")(node, compiler, parent)

        self.register(HandlerSpec(
            name="ul",
            category=HandlerCategory.LIST,
            description="Bullet or ordered list; nested lists follow their item",
            handler=list_handler,
            aliases=["ol"],
            examples=["- one\n- two", "1. one\n2. two"],
        ))
        self.register(HandlerSpec(
            name="li",
            category=HandlerCategory.LIST,
            description="List item; continuation lines indented to the marker width",
            handler=li_handler,
        ))
        self.register(HandlerSpec(
            name="input",
            category=HandlerCategory.LIST,
            description="Task list checkbox",
            handler=input_handler,
            examples=["- [x] done"],
        ))

    def tableHandlers_register(self) -> None:
        """Register the GFM table handler"""

        def cell_compile(cell: Element, compiler: Any) -> str:
            content = "".join(compiler.node_compile(child, cell) for child in cell.children)
            return content.replace("\n", " ").replace("|", "\\|").strip()

        def alignment_get(cell: Element) -> str:
            style = str(cell.attrs.get("style", "")).replace(" ", "")
            if "text-align:center" in style:
                return ":---:"
            if "text-align:right" in style:
                return "---:"
            if "text-align:left" in style:
                return ":---"
            return "---"

        def table_handler(node: Element, compiler: Any, parent: Optional[Element]) -> str:
            rows: List[Element] = []
            for section in node.children:
                if isinstance(section, Element):
                    if section.tag == "tr":
                        rows.append(section)
                    else:
                        rows.extend(row for row in section.children
                                    if isinstance(row, Element) and row.tag == "tr")
            if not rows:
                return ""

            lines: List[str] = []
            for index, row in enumerate(rows):
                cells = [cell for cell in row.children if isinstance(cell, Element)]
                lines.append("| " + " | ".join(cell_compile(cell, compiler) for cell in cells) + " |")
                if index == 0:
                    lines.append("| " + " | ".join(alignment_get(cell) for cell in cells) + " |")
            return "\n".join(lines) + compiler.state.block_separator

        self.register(HandlerSpec(
            name="table",
            category=HandlerCategory.TABLE,
            description="GFM pipe table; the first row is the header",
            handler=table_handler,
            examples=["| a | b |\n| --- | --- |\n| 1 | 2 |"],
        ))

    def componentHandlers_register(self) -> None:
        """Register slot templates and the generic component handler"""

        def template_handler(node: Element, compiler: Any, parent: Optional[Element]) -> str:
            content = "".join(compiler.node_compile(child, node) for child in node.children).strip()
            return f"#{node.attrs.get('name', 'default')}\n{content}" + compiler.state.block_separator

        def component_handler(node: Element, compiler: Any, parent: Optional[Element]) -> str:
            """
            Render a user component in inline or block form.

            Decision order: structured attrs force block; text-only
            children are inline; a parent whose children are all elements
            forces block; inside a paragraph always inline; a text sibling
            makes it inline. Top-level components are always blocks.
            """
            state = compiler.state
            structured = any(value_isStructured(value) for value in node.attrs.values())

            inline = all(isinstance(child, str) for child in node.children)
            if structured:
                inline = False
            if parent is not None and len(parent.children) > 1 \
                    and all(isinstance(child, Element) for child in parent.children):
                inline = False
            if parent is not None and parent.tag == "p":
                inline = True
            if not inline and parent is not None and any(isinstance(child, str) for child in parent.children):
                inline = True
            if parent is None:
                inline = False

            state.node_depth += 1
            content = "".join(compiler.node_compile(child, node) for child in node.children).rstrip()
            state.node_depth -= 1

            attrs = attributes_toMDC(node.attrs)
            if node.tag == "span":
                return f"[{content}]{attrs}"
            if inline:
                return f":{node.tag}" + (f"[{content}]" if content else "") + attrs

            fence = ":" * (state.node_depth + 2)
            if len(attrs) > appsettings.yaml_props_threshold or structured:
                result = f"{fence}{node.tag}\n{attributes_toYAML(node.attrs)}" \
                    + (f"\n{content}" if content else "") + f"\n{fence}"
            else:
                result = f"{fence}{node.tag}{attrs}\n{content}\n{fence}"
            return result + state.block_separator

        self.register(HandlerSpec(
            name="template",
            category=HandlerCategory.COMPONENT,
            description="Named slot of a block component",
            handler=template_handler,
            examples=["#title\nSlot content"],
        ))
        self.register(HandlerSpec(
            name="component",
            category=HandlerCategory.COMPONENT,
            description="Any other tag, as an inline or block component",
            handler=component_handler,
            examples=['::alert{type="info"}\nHello\n::', ':badge[new]{color="green"}'],
        ))
