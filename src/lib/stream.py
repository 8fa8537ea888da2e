"""
Streaming parse

parse_stream() drains a chunk source and parses once.
parse_stream_incremental() reparses the accumulated text after every chunk
and yields a StreamSnapshot each time, so a renderer can show partial
documents while they arrive. Intermediate parses run on auto-closed text;
the final snapshot parses the text exactly as received.

A chunk source is any sync or async iterable of ``str`` or ``bytes``.
Bytes are decoded as UTF-8 with an incremental decoder, so multi-byte
characters split across chunks are handled.

Example:
    >>> async def chunks():
    ...     for chunk in ["# Hello", " World\\n\\n", "Paragraph text"]:
    ...         yield chunk
    >>> async def collect():
    ...     return [s async for s in parse_stream_incremental(chunks())]
    >>> snapshots = asyncio.run(collect())
    >>> len(snapshots), snapshots[-1].is_complete
    (4, True)
"""

import codecs
from typing import Any, AsyncIterable, AsyncIterator, Dict, Iterable, Optional, Tuple, Union

import yaml

from ..models.ast import Tree
from ..models.parser import ParseResult, StreamSnapshot
from ..models.state import ParseOptions
from .autoclose import auto_close
from .frontmatter import parse_frontmatter
from .log import LOG
from .parser import parse


Chunk = Union[str, bytes, bytearray]
ChunkSource = Union[AsyncIterable[Chunk], Iterable[Chunk]]


class ChunkDecoder:
    """Turns str/bytes chunks into text, keeping split UTF-8 sequences"""

    def __init__(self) -> None:
        self.decoder = codecs.getincrementaldecoder("utf-8")()

    def decode(self, chunk: Chunk) -> str:
        if isinstance(chunk, str):
            return chunk
        return self.decoder.decode(bytes(chunk))

    def flush(self) -> str:
        return self.decoder.decode(b"", final=True)


async def chunks_iterate(source: ChunkSource) -> AsyncIterator[Chunk]:
    """Iterate a sync or async chunk source asynchronously"""
    if hasattr(source, "__aiter__"):
        async for chunk in source:  # type: ignore[union-attr]
            yield chunk
    else:
        for chunk in source:  # type: ignore[union-attr]
            yield chunk


def options_forSnapshot(options: Optional[ParseOptions]) -> ParseOptions:
    """Copy of the options with auto-close disabled (applied by the stream)"""
    base = options or ParseOptions()
    return ParseOptions(
        auto_unwrap=base.auto_unwrap,
        auto_close=False,
        plugins=list(base.plugins),
        highlight=base.highlight,
        verbosity=base.verbosity,
    )


async def parse_stream(source: ChunkSource, options: Optional[ParseOptions] = None) -> ParseResult:
    """
    Read a whole chunk source, then parse it.

    Args:
        source: Sync or async iterable of str/bytes chunks
        options: Parse options

    Returns:
        ParseResult of the complete text

    Raises:
        Whatever the source raises while being read
    """
    decoder = ChunkDecoder()
    parts = []
    async for chunk in chunks_iterate(source):
        parts.append(decoder.decode(chunk))
    parts.append(decoder.flush())
    return parse("".join(parts), options)


async def parse_stream_incremental(
    source: ChunkSource,
    options: Optional[ParseOptions] = None,
) -> AsyncIterator[StreamSnapshot]:
    """
    Parse a chunk source incrementally.

    Yields one snapshot per chunk (``is_complete`` False) followed by a
    final snapshot with ``chunk == ""``, ``is_complete`` True and the table
    of contents.

    Frontmatter is re-extracted after each chunk until it first succeeds;
    its data is then cached for the remaining intermediate snapshots. Until
    then the text is all frontmatter, so those snapshots have an empty
    body. This keeps the top-level node count from ever decreasing.

    Args:
        source: Sync or async iterable of str/bytes chunks
        options: Parse options

    Yields:
        StreamSnapshot for every chunk, then the final one

    Raises:
        yaml.YAMLError: If the complete document has malformed frontmatter
    """
    snapshot_options = options_forSnapshot(options)
    decoder = ChunkDecoder()
    accumulated = ""
    frontmatter_parsed = False
    frontmatter_data: Dict[str, Any] = {}

    async for raw in chunks_iterate(source):
        chunk = decoder.decode(raw)
        accumulated += chunk

        if not frontmatter_parsed:
            frontmatter_parsed, frontmatter_data = frontmatter_try(accumulated)

        if frontmatter_parsed:
            result = parse(auto_close(accumulated), snapshot_options)
            body, excerpt = result.body, result.excerpt
        else:
            # everything received so far belongs to the frontmatter
            LOG("Frontmatter still incomplete", level=2)
            body, excerpt = Tree(), None

        yield StreamSnapshot(
            chunk=chunk,
            body=body,
            data=frontmatter_data,
            is_complete=False,
            excerpt=excerpt,
        )

    accumulated += decoder.flush()
    final = parse(accumulated, snapshot_options)
    yield StreamSnapshot(
        chunk="",
        body=final.body,
        data=final.data,
        is_complete=True,
        excerpt=final.excerpt,
        toc=final.toc,
    )


def frontmatter_try(text: str) -> Tuple[bool, Dict[str, Any]]:
    """
    Attempt frontmatter extraction on a partial document.

    Returns:
        (parsed, data). ``parsed`` is True once the frontmatter block is
        complete and valid, or when the text cannot start one.
    """
    if not text.startswith("---"):
        # a document shorter than the fence may still become one
        return len(text) >= 3 or not "---".startswith(text), {}
    if text[3:4] not in ("", "\n", "\r"):
        return True, {}
    try:
        remaining, data = parse_frontmatter(text)
    except yaml.YAMLError:
        return False, {}
    if remaining is text:
        return False, {}
    return True, data
