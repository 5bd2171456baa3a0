"""Locate the definition enclosing a point using tree-sitter."""

from typing import Optional
from tree_sitter_language_pack import get_parser

from ..protocol import Position, Range
from .languages import LANGUAGE_REGISTRY


# Nodes that wrap a definition and belong to its full span
WRAPPER_NODE_TYPES = {"decorated_definition", "template_declaration"}


def find_enclosing_definition(
    content: str,
    language: str,
    line: int,
    character: int,
) -> Optional[Range]:
    """Find the innermost definition containing a point.

    Args:
        content: Raw source code
        language: Language name (must be in LANGUAGE_REGISTRY)
        line: Zero-based line
        character: Zero-based column in characters

    Returns:
        Zero-based Range of the definition, or None if no definition
        node contains the point.
    """
    if language not in LANGUAGE_REGISTRY:
        return None

    lines = content.split("\n")
    if line < 0 or line >= len(lines):
        return None

    spec = LANGUAGE_REGISTRY[language]
    source_bytes = content.encode("utf-8")

    parser = get_parser(spec.ts_language)
    tree = parser.parse(source_bytes)

    # tree-sitter columns are byte offsets within the line
    column = len(lines[line][:max(character, 0)].encode("utf-8"))
    node = tree.root_node.descendant_for_point_range((line, column), (line, column))

    while node is not None and node.type not in spec.definition_node_types:
        node = node.parent

    if node is None:
        return None

    if node.parent is not None and node.parent.type in WRAPPER_NODE_TYPES:
        node = node.parent

    return Range(
        start=_point_to_position(node.start_point, lines),
        end=_point_to_position(node.end_point, lines),
    )


def _point_to_position(point, lines: list[str]) -> Position:
    """Convert a tree-sitter (row, byte column) point to a character Position."""
    row, byte_column = point[0], point[1]
    if row >= len(lines):
        return Position(row, 0)
    line_bytes = lines[row].encode("utf-8")
    return Position(row, len(line_bytes[:byte_column].decode("utf-8", errors="ignore")))
