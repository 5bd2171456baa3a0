"""Find references to a symbol, grouped by file with surrounding context."""

import logging
from pathlib import Path
from typing import Optional

from ..config import DEFAULT_CONTEXT_LINES
from ..errors import BackendError, BackendQueryError, FileOpenError, FileReadError
from ..lsp.backend import Backend
from ..protocol import Location, SymbolMatch, uri_to_path
from .formatting import BANNER, format_lines_with_ranges, format_position_label
from .line_ranges import merge_ranges
from .outcome import Outcome, collect
from .symbol_matcher import find_matches

logger = logging.getLogger(__name__)


async def find_references(
    backend: Backend,
    symbol_name: str,
    context_lines: int = DEFAULT_CONTEXT_LINES,
    log: Optional[logging.Logger] = None,
) -> str:
    """Find all references to every symbol matching a name.

    A failure to open a symbol's file skips that symbol. A failure of the
    references request itself aborts the whole call.

    Args:
        backend: Language server backend
        symbol_name: Symbol name, optionally qualified
        context_lines: Lines of context shown around each reference
        log: Logger for skipped matches

    Returns:
        One block per referencing file, or
        "No references found for symbol: <symbol_name>"

    Raises:
        BackendQueryError: symbol search or references request failed
        ResultParseError: a backend payload could not be decoded
    """
    if context_lines < 0:
        raise ValueError(f"context_lines must be >= 0, got {context_lines}")

    log = log or logger

    matches = await find_matches(backend, symbol_name, log=log)

    outcomes = []
    for match in matches:
        outcomes.append(await _references_for_match(backend, match, context_lines))

    all_references = [block for blocks in collect(outcomes, log) for block in blocks]

    if not all_references:
        return f"No references found for symbol: {symbol_name}"

    return "\n".join(all_references)


async def _references_for_match(
    backend: Backend,
    match: SymbolMatch,
    context_lines: int,
) -> Outcome[list[str]]:
    """Render one block per file referencing a single match."""
    location = match.location

    # The declaring file is usually open already, but may not be
    try:
        await backend.open_file(location.path)
    except (BackendError, OSError) as e:
        return Outcome.failure(FileOpenError(f"Error opening file {location.path}: {e}"))

    try:
        refs = await backend.references(
            location.uri, location.range.start, include_declaration=False
        )
    except BackendError as e:
        raise BackendQueryError(f"failed to get references: {e}") from e

    refs_by_file = group_by_file(refs)

    blocks = []
    for uri in sorted(refs_by_file):
        blocks.append(format_file_references(uri, refs_by_file[uri], context_lines))

    return Outcome.success(blocks)


def group_by_file(refs: list[Location]) -> dict[str, list[Location]]:
    """Group locations by URI, keeping backend order within each file."""
    refs_by_file: dict[str, list[Location]] = {}
    for ref in refs:
        refs_by_file.setdefault(ref.uri, []).append(ref)
    return refs_by_file


def format_file_references(uri: str, file_refs: list[Location], context_lines: int) -> str:
    """Render the header and merged context lines for one file."""
    file_path = uri_to_path(uri)
    file_info = f"{BANNER}{file_path}\nReferences in File: {len(file_refs)}\n"

    try:
        content = read_source(file_path)
    except FileReadError as e:
        return file_info + f"\nError reading file: {e}"

    lines = content.split("\n")

    loc_strings = [format_position_label(ref) for ref in file_refs]
    points = [ref.range.start.line + 1 for ref in file_refs]
    line_ranges = merge_ranges(points, len(lines), context_lines)

    output = file_info
    if loc_strings:
        output += "At: " + ", ".join(loc_strings) + "\n"

    output += "\n" + format_lines_with_ranges(lines, line_ranges)
    return output


def read_source(file_path: str) -> str:
    try:
        return Path(file_path).read_text(encoding="utf-8", errors="replace")
    except OSError as e:
        raise FileReadError(str(e)) from e
