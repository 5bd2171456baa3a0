"""Read the full source definition of a symbol."""

import logging
from typing import Optional

from ..errors import BackendError, DefinitionExpandError, FileOpenError
from ..lsp.backend import Backend
from ..protocol import SymbolMatch
from .formatting import BANNER, add_line_numbers, format_definition_header
from .outcome import Outcome, collect
from .symbol_matcher import find_matches

logger = logging.getLogger(__name__)


async def read_definition(
    backend: Backend,
    symbol_name: str,
    log: Optional[logging.Logger] = None,
) -> str:
    """Get the full definition of every symbol matching a name.

    Ambiguous names yield one block per match (overloads, multiple
    declarations), in the order the backend returned them.

    Args:
        backend: Language server backend
        symbol_name: Symbol name, optionally qualified (e.g. "Foo::bar")
        log: Logger for skipped matches

    Returns:
        Concatenated definition blocks, or "<symbol_name> not found"
    """
    log = log or logger

    matches = await find_matches(backend, symbol_name, log=log)

    outcomes = []
    for match in matches:
        outcomes.append(await _resolve_match(backend, match))

    definitions = collect(outcomes, log)

    if not definitions:
        return f"{symbol_name} not found"

    return "".join(definitions)


async def _resolve_match(backend: Backend, match: SymbolMatch) -> Outcome[str]:
    """Open the match's file, expand it, and render one definition block."""
    path = match.location.path

    try:
        await backend.open_file(path)
    except (BackendError, OSError) as e:
        return Outcome.failure(FileOpenError(f"Error opening file {path}: {e}"))

    try:
        text, location = await backend.get_full_definition(match.location)
    except DefinitionExpandError as e:
        return Outcome.failure(e)
    except (BackendError, OSError) as e:
        return Outcome.failure(
            DefinitionExpandError(f"Error getting definition of {match.name}: {e}")
        )

    header = format_definition_header(match, location)
    body = add_line_numbers(text, location.range.start.line + 1)
    return Outcome.success(BANNER + header + body + "\n")
