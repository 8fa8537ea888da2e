"""
Custom Pygments lexer for MDC syntax highlighting

Highlights MDC sources embedded in documents (```mdc fences), so that
documentation about components can show component markup.

Token types:
- Keyword.Declaration: Block component fences (::alert, ::)
- Name.Function: Inline components (:badge)
- Name.Decorator: Slot markers (#title)
- Punctuation: Braces and brackets around attributes/content
- Name.Attribute / Literal.String: Attribute names and values
- Comment.Preproc: YAML props and frontmatter fences (---)
"""

from pygments.lexer import RegexLexer, bygroups
from pygments.token import (
    Text,
    Punctuation,
    Name,
    String,
    Keyword,
    Literal,
    Comment,
    Generic,
)


class MDCLexer(RegexLexer):
    """
    Lexer for MDC (Markdown + Components)

    Highlights component syntax on top of a light markdown layer.

    Example:
        ::alert{type="info"}
        Hello :badge[new]{color="green"}
        ::

    Tokens:
        ::alert → Keyword.Declaration
        { → Punctuation
        type → Name.Attribute
        "info" → Literal.String
        :badge → Name.Function
    """

    name = 'MDC'
    aliases = ['mdc', 'comark']
    filenames = ['*.mdc']

    tokens = {
        'root': [
            # HTML comments
            (r'<!--.*?-->', Comment),

            # Frontmatter / YAML props fences
            (r'^\s*---\s*$', Comment.Preproc),

            # Block component open/close lines
            (r'^(\s*)(:{2,}[a-zA-Z$][\w$.-]*)',
             bygroups(Text, Keyword.Declaration)),
            (r'^(\s*)(:{2,})(\s*)$', bygroups(Text, Keyword.Declaration, Text)),

            # Named slots
            (r'^(\s*)(#[a-zA-Z$][\w$.-]*)(\s*)$', bygroups(Text, Name.Decorator, Text)),

            # Headings
            (r'^#{1,6} .*$', Generic.Heading),

            # Inline components
            (r'(?<![\w:]):[a-zA-Z$][\w$.-]*', Name.Function),

            # Attribute blocks
            (r'\{', Punctuation, 'attributes'),

            # Span / component content brackets
            (r'[\[\]]', Punctuation),

            # Emphasis and code
            (r'\*\*[^*\n]+\*\*', Generic.Strong),
            (r'\*[^*\n]+\*', Generic.Emph),
            (r'`[^`\n]+`', String.Backtick),

            # Everything else is text
            (r'[^:{\[\]*`<#\-\n]+', Text),
            (r'\n', Text),
            (r'.', Text),
        ],

        'attributes': [
            (r'\}', Punctuation, '#pop'),
            (r'\s+', Text),

            # Shorthand id / class
            (r'[#.][\w-]+', Name.Attribute),

            # key="value", key='value', key=value
            (r'(:?[\w-]+)(=)("(?:\\.|[^"\\])*"|\'(?:\\.|[^\'\\])*\'|[^\s}]+)',
             bygroups(Name.Attribute, Punctuation, Literal.String)),

            # Boolean flags
            (r':?[\w-]+', Name.Attribute),
            (r'.', Text),
        ],
    }

