#!/usr/bin/env python3
"""
mdcstream - MDC (Markdown + Components) command line

Parses an MDC document and writes it as HTML, normalized MDC or the JSON
tree. With --stream the document is fed to the incremental parser in
byte chunks, the way a network response would arrive.

Usage:
    mdcstream page.md                       # HTML to stdout
    mdcstream page.md --to mdc -o out.md    # normalized MDC
    cat page.md | mdcstream - --to json     # tree as JSON
    mdcstream page.md --stream -vv          # log every snapshot
"""

import asyncio
import json
import sys
from argparse import ArgumentDefaultsHelpFormatter, ArgumentParser, Namespace
from pathlib import Path
from typing import Iterator, List, Optional

import yaml

from . import __version__
from .lib import (
    LOG,
    highlight_plugin,
    parse,
    parse_stream_incremental,
    render_html,
    render_markdown,
    state_connectToLogger,
)
from .models import ParseOptions, ParseResult, ProgramState, pipeline


FORMATS = ("html", "mdc", "json")

parser = ArgumentParser(
    description="mdcstream - MDC parser and renderer",
    formatter_class=ArgumentDefaultsHelpFormatter,
)

parser.add_argument("inputFile", type=str, help="Input MDC file, or '-' for stdin")

parser.add_argument(
    "-o", "--outputFile", default="-", type=str, help="Output file, or '-' for stdout"
)

parser.add_argument("--to", default="html", choices=FORMATS, help="Output format")

parser.add_argument(
    "--stream", action="store_true", help="Parse incrementally in byte chunks"
)

parser.add_argument(
    "--chunkSize", default=64, type=int, help="Chunk size in bytes for --stream"
)

parser.add_argument(
    "--highlight", action="store_true", help="Highlight code blocks with Pygments"
)

parser.add_argument(
    "-v",
    "--verbosity",
    action="count",
    default=0,
    help="Increase output verbosity (can be repeated: -v, -vv, -vvv)",
)

parser.add_argument("-V", "--version", action="version", version=f"%(prog)s {__version__}")


def source_read(inputstate: ProgramState) -> ProgramState:
    """
    Read the source document.

    Returns:
        ProgramState with ``source`` (raw bytes)

    Exits:
        1 if the input file cannot be read
    """
    state = inputstate.copy()
    path = state.inputPath
    try:
        state.source = sys.stdin.buffer.read() if path is None else path.read_bytes()
    except OSError as e:
        print(f"Error reading input file: {e}", file=sys.stderr)
        sys.exit(1)
    LOG(f"Read {len(state.source)} bytes from {path or 'stdin'}", level=1)
    return state


def chunks_split(source: bytes, size: int) -> Iterator[bytes]:
    """Split bytes into fixed-size chunks"""
    for start in range(0, len(source), max(size, 1)):
        yield source[start:start + max(size, 1)]


async def stream_parse(state: ProgramState, options: ParseOptions) -> ParseResult:
    """Run the incremental parser, logging each snapshot"""
    count = 0
    async for snapshot in parse_stream_incremental(chunks_split(state.source, state.chunkSize), options):
        count += 1
        LOG(f"Snapshot {count}: {len(snapshot.body.value)} node(s), complete={snapshot.is_complete}", level=2)
        if snapshot.is_complete:
            return ParseResult(body=snapshot.body, data=snapshot.data, excerpt=snapshot.excerpt, toc=snapshot.toc)
    raise RuntimeError("Stream ended without a final snapshot")


def document_parse(inputstate: ProgramState) -> ProgramState:
    """
    Parse the source, whole or streamed.

    Returns:
        ProgramState with ``result``

    Exits:
        1 on malformed frontmatter or undecodable input
    """
    state = inputstate.copy()
    plugins = [highlight_plugin()] if state.highlight else []
    options = ParseOptions(verbosity=state.verbosity, plugins=plugins)
    try:
        if state.stream:
            state.result = asyncio.run(stream_parse(state, options))
        else:
            state.result = parse(state.source.decode("utf-8"), options)
    except (yaml.YAMLError, UnicodeDecodeError) as e:
        print(f"Parse error: {e}", file=sys.stderr)
        sys.exit(1)
    # parsing reconnects the logger to its own ParseState
    state_connectToLogger(state)
    LOG(f"Parsed {len(state.result.body.value)} top-level node(s)", level=1)
    return state


def output_render(inputstate: ProgramState) -> ProgramState:
    """
    Render the parse result in the requested format.

    Returns:
        ProgramState with ``output``
    """
    state = inputstate.copy()
    result = state.result
    assert result is not None
    if state.to == "mdc":
        state.output = render_markdown(result.body, result.data)
    elif state.to == "json":
        document = {"data": result.data, "body": result.body.to_dict()}
        if result.toc is not None:
            document["toc"] = [link.to_dict() for link in result.toc.links]
        state.output = json.dumps(document, indent=2, ensure_ascii=False)
    else:
        state.output = render_html(result.body, data=result.data)
    LOG(f"Rendered {len(state.output)} characters of {state.to}", level=1)
    return state


def output_write(inputstate: ProgramState) -> ProgramState:
    """
    Write the rendered document (terminal stage).

    Exits:
        1 if the output file cannot be written
    """
    state = inputstate.copy()
    if state.outputFile == "-":
        sys.stdout.write(state.output + "\n")
        return state
    try:
        Path(state.outputFile).write_text(state.output + "\n", encoding="utf-8")
    except OSError as e:
        print(f"Error writing output file: {e}", file=sys.stderr)
        sys.exit(1)
    LOG(f"Output: {state.outputFile}", level=1)
    return state


def main(argv: Optional[List[str]] = None) -> None:
    """
    Main entry point.

    Runs source_read -> document_parse -> output_render -> output_write.

    Args:
        argv: Command line arguments (defaults to sys.argv)
    """
    options: Namespace = parser.parse_args(argv)
    state: ProgramState = ProgramState.state_createFromNamespace(options)
    state_connectToLogger(state)
    pipeline(state, source_read, document_parse, output_render, output_write)


if __name__ == "__main__":
    main()
