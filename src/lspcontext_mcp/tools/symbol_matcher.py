"""Find candidate symbols for a free-text name."""

import logging
from typing import Optional

from ..errors import BackendError, BackendQueryError
from ..lsp.backend import Backend
from ..protocol import MatchShape, SymbolMatch

logger = logging.getLogger(__name__)


async def find_matches(
    backend: Backend,
    query: str,
    log: Optional[logging.Logger] = None,
) -> list[SymbolMatch]:
    """Query the backend for symbols named ``query``.

    Qualified names such as ``Type::member`` are passed through as-is: the
    backend resolves them into name + container pairs. Only minimal matches
    are filtered, by exact name, to drop unrelated fuzzy hits.

    Raises:
        BackendQueryError: the symbol request failed
        ResultParseError: the result payload could not be decoded
    """
    log = log or logger

    try:
        result_set = await backend.symbol(query)
    except BackendError as e:
        raise BackendQueryError(f"failed to fetch symbol: {e}") from e

    matches = []
    for match in result_set.results():
        if match.shape is MatchShape.MINIMAL and match.name != query:
            continue
        log.debug("Found symbol: %s", match.name)
        matches.append(match)

    return matches
