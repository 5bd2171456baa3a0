"""Protocol package: LSP locations and symbol match variants."""

from .types import (
    Position,
    Range,
    Location,
    ZERO_RANGE,
    SYMBOL_KIND_NAMES,
    symbol_kind_name,
    path_to_uri,
    uri_to_path,
    decode_position,
    decode_range,
    decode_location,
    decode_locations,
)
from .symbols import MatchShape, SymbolMatch, SymbolResultSet, decode_symbol

__all__ = [
    "Position",
    "Range",
    "Location",
    "ZERO_RANGE",
    "SYMBOL_KIND_NAMES",
    "symbol_kind_name",
    "path_to_uri",
    "uri_to_path",
    "decode_position",
    "decode_range",
    "decode_location",
    "decode_locations",
    "MatchShape",
    "SymbolMatch",
    "SymbolResultSet",
    "decode_symbol",
]
