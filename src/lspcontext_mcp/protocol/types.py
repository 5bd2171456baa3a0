"""LSP location types and their decoding from JSON payloads."""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any
from urllib.parse import unquote, urlparse

from ..errors import ResultParseError


# LSP SymbolKind -> display name
SYMBOL_KIND_NAMES = {
    1: "File",
    2: "Module",
    3: "Namespace",
    4: "Package",
    5: "Class",
    6: "Method",
    7: "Property",
    8: "Field",
    9: "Constructor",
    10: "Enum",
    11: "Interface",
    12: "Function",
    13: "Variable",
    14: "Constant",
    15: "String",
    16: "Number",
    17: "Boolean",
    18: "Array",
    19: "Object",
    20: "Key",
    21: "Null",
    22: "EnumMember",
    23: "Struct",
    24: "Event",
    25: "Operator",
    26: "TypeParameter",
}


def symbol_kind_name(kind: int) -> str:
    return SYMBOL_KIND_NAMES.get(kind, "Unknown")


@dataclass(frozen=True, order=True)
class Position:
    """Zero-based line/character position."""
    line: int
    character: int

    def to_dict(self) -> dict:
        return {"line": self.line, "character": self.character}


@dataclass(frozen=True)
class Range:
    """Span between two positions. Invariant: start <= end."""
    start: Position
    end: Position

    def contains(self, position: Position) -> bool:
        return self.start <= position <= self.end

    def to_dict(self) -> dict:
        return {"start": self.start.to_dict(), "end": self.end.to_dict()}


ZERO_RANGE = Range(Position(0, 0), Position(0, 0))


@dataclass(frozen=True)
class Location:
    """A range inside a document identified by a file:// URI."""
    uri: str
    range: Range = field(default=ZERO_RANGE)

    @property
    def path(self) -> str:
        """Absolute filesystem path, without the file:// prefix."""
        return uri_to_path(self.uri)


def path_to_uri(path: str) -> str:
    """Convert a filesystem path to a file:// URI."""
    return Path(path).expanduser().resolve().as_uri()


def uri_to_path(uri: str) -> str:
    """Convert a file:// URI to a filesystem path.

    Non-file URIs are returned unchanged.
    """
    parsed = urlparse(uri)
    if parsed.scheme != "file":
        return uri
    return unquote(parsed.path)


def decode_position(data: Any) -> Position:
    if not isinstance(data, dict):
        raise ResultParseError(f"Position must be an object, got {type(data).__name__}")
    line = data.get("line")
    character = data.get("character")
    if not isinstance(line, int) or not isinstance(character, int):
        raise ResultParseError(f"Invalid position: {data!r}")
    return Position(line, character)


def decode_range(data: Any) -> Range:
    if not isinstance(data, dict):
        raise ResultParseError(f"Range must be an object, got {type(data).__name__}")
    start = decode_position(data.get("start"))
    end = decode_position(data.get("end"))
    if end < start:
        raise ResultParseError(f"Range end precedes start: {data!r}")
    return Range(start, end)


def decode_location(data: Any) -> Location:
    """Decode an LSP Location. A missing range decodes as ZERO_RANGE."""
    if not isinstance(data, dict):
        raise ResultParseError(f"Location must be an object, got {type(data).__name__}")
    uri = data.get("uri")
    if not isinstance(uri, str) or not uri:
        raise ResultParseError(f"Location without uri: {data!r}")
    if "range" not in data:
        return Location(uri)
    return Location(uri, decode_range(data["range"]))


def decode_locations(data: Any) -> list[Location]:
    """Decode a textDocument/references result. null means no references."""
    if data is None:
        return []
    if not isinstance(data, list):
        raise ResultParseError(f"Expected a list of locations, got {type(data).__name__}")
    return [decode_location(item) for item in data]
