"""Symbol match variants returned by workspace/symbol."""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional

from ..errors import ResultParseError
from .types import Location, decode_location, symbol_kind_name


class MatchShape(Enum):
    """Which representation the backend used for a match."""
    INDEXED = "indexed"          # SymbolInformation: kind always meaningful
    LIGHTWEIGHT = "lightweight"  # WorkspaceSymbol: kind shown only with a container
    MINIMAL = "minimal"          # name + location only


@dataclass(frozen=True)
class SymbolMatch:
    """A candidate symbol from a name-based search."""
    shape: MatchShape
    name: str
    location: Location
    kind: Optional[int] = None
    container_name: Optional[str] = None

    def kind_label(self) -> Optional[str]:
        """Kind to display, or None when the backend gave no useful kind."""
        if self.shape is MatchShape.INDEXED:
            return symbol_kind_name(self.kind) if self.kind is not None else None
        if self.shape is MatchShape.LIGHTWEIGHT:
            if self.container_name and self.kind is not None:
                return symbol_kind_name(self.kind)
            return None
        return None

    def container_label(self) -> Optional[str]:
        if self.shape is MatchShape.MINIMAL:
            return None
        return self.container_name or None


def decode_symbol(data: Any) -> SymbolMatch:
    """Decode one workspace/symbol item into a SymbolMatch.

    Items carrying ``data`` or a range-less location are WorkspaceSymbols
    (lightweight); items with a ``kind`` are SymbolInformation (indexed);
    anything else is minimal. An item with no name, kind or data decodes as
    a minimal match named "".
    """
    if not isinstance(data, dict):
        raise ResultParseError(f"Symbol must be an object, got {type(data).__name__}")

    name = data.get("name")
    nameless = name is None and "kind" not in data and "data" not in data
    if nameless:
        name = ""
    if not isinstance(name, str):
        raise ResultParseError(f"Symbol without name: {data!r}")

    raw_location = data.get("location")
    location = decode_location(raw_location)

    kind = data.get("kind")
    if kind is not None and not isinstance(kind, int):
        raise ResultParseError(f"Invalid symbol kind: {kind!r}")

    container = data.get("containerName")
    if container is not None and not isinstance(container, str):
        raise ResultParseError(f"Invalid containerName: {container!r}")

    if nameless:
        # Never equal to a query, so the exact-name filter drops it
        shape = MatchShape.MINIMAL
    elif "data" in data or "range" not in raw_location:
        shape = MatchShape.LIGHTWEIGHT
    elif kind is not None:
        shape = MatchShape.INDEXED
    else:
        shape = MatchShape.MINIMAL

    return SymbolMatch(
        shape=shape,
        name=name,
        location=location,
        kind=kind,
        container_name=container,
    )


class SymbolResultSet:
    """Raw workspace/symbol payload, decoded lazily."""

    def __init__(self, payload: Any):
        self.payload = payload

    def results(self) -> list[SymbolMatch]:
        """Decode every item. Raises ResultParseError on malformed payloads."""
        if self.payload is None:
            return []
        if not isinstance(self.payload, list):
            raise ResultParseError(
                f"workspace/symbol returned {type(self.payload).__name__}, expected a list"
            )
        return [decode_symbol(item) for item in self.payload]
