"""Render symbol locations and numbered source lines as text blocks."""

from ..protocol import Location, SymbolMatch
from .line_ranges import DisplayRange


BANNER = "---\n\n"


def format_range(location: Location) -> str:
    """Render a range as 1-based "L<line>:C<col> - L<line>:C<col>"."""
    start = location.range.start
    end = location.range.end
    return (
        f"L{start.line + 1}:C{start.character + 1} - "
        f"L{end.line + 1}:C{end.character + 1}"
    )


def format_position_label(location: Location) -> str:
    """Render a location's start as 1-based "L<line>:C<col>"."""
    start = location.range.start
    return f"L{start.line + 1}:C{start.character + 1}"


def format_definition_header(match: SymbolMatch, location: Location) -> str:
    """Header block for a resolved definition.

    Kind and container lines appear only when the backend supplied them.
    """
    lines = [
        f"Symbol: {match.name}",
        f"File: {location.path}",
    ]

    kind = match.kind_label()
    if kind:
        lines.append(f"Kind: {kind}")

    container = match.container_label()
    if container:
        lines.append(f"Container Name: {container}")

    lines.append(f"Range: {format_range(location)}")
    return "\n".join(lines) + "\n\n"


def add_line_numbers(text: str, start_line: int) -> str:
    """Prefix each line with its number, right-aligned to the widest one."""
    lines = text.split("\n")
    width = len(str(start_line + len(lines) - 1))
    return "\n".join(
        f"{start_line + i:>{width}}|{line}" for i, line in enumerate(lines)
    )


def format_lines_with_ranges(lines: list[str], ranges: list[DisplayRange]) -> str:
    """Render the 1-based ranges of lines with absolute line numbers.

    Gaps between ranges are marked with a "..." line.
    """
    out = []
    previous_end = None

    for display_range in ranges:
        if previous_end is not None and display_range.start_line > previous_end + 1:
            out.append("...\n")
        for number in range(display_range.start_line, display_range.end_line + 1):
            if 1 <= number <= len(lines):
                out.append(f"{number}|{lines[number - 1]}\n")
        previous_end = display_range.end_line

    return "".join(out)
