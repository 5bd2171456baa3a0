"""Capabilities the tools need from a language server backend."""

from typing import Protocol

from ..protocol import Location, Position, SymbolResultSet


class Backend(Protocol):
    """A source-analysis backend.

    Implementations raise BackendError when an operation fails and honour
    asyncio cancellation on every call.
    """

    async def symbol(self, query: str) -> SymbolResultSet:
        """Workspace symbol search."""
        ...

    async def open_file(self, path: str) -> None:
        """Register a file with the backend. Opening twice is a no-op."""
        ...

    async def references(
        self,
        uri: str,
        position: Position,
        include_declaration: bool = False,
    ) -> list[Location]:
        ...

    async def get_full_definition(self, location: Location) -> tuple[str, Location]:
        """Expand a point location to the full definition's text and range."""
        ...
