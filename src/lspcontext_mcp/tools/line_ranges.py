"""Merge reference lines into minimal display ranges."""

from typing import Iterable, NamedTuple


class DisplayRange(NamedTuple):
    """Inclusive 1-based line interval."""
    start_line: int
    end_line: int


def merge_ranges(points: Iterable[int], total_lines: int, context: int) -> list[DisplayRange]:
    """Compute sorted, non-overlapping display ranges around points.

    Each 1-based point line L yields the window [L - context, L + context]
    clamped to [1, total_lines]. Windows that overlap or touch are merged.

    Args:
        points: 1-based line numbers, in any order, duplicates allowed
        total_lines: Number of lines in the file
        context: Lines of context on each side of a point (>= 0)

    Returns:
        Sorted list of merged DisplayRange values
    """
    if context < 0:
        raise ValueError(f"context must be >= 0, got {context}")
    if total_lines <= 0:
        return []

    windows = []
    for line in points:
        start = max(line - context, 1)
        end = min(line + context, total_lines)
        # Points far outside the file clamp to an empty window
        if start <= end:
            windows.append(DisplayRange(start, end))

    return merge_display_ranges(windows)


def merge_display_ranges(ranges: Iterable[DisplayRange]) -> list[DisplayRange]:
    """Greedily merge overlapping or adjacent ranges. Idempotent."""
    merged: list[DisplayRange] = []

    for current in sorted(ranges):
        if merged and current.start_line <= merged[-1].end_line + 1:
            last = merged[-1]
            merged[-1] = DisplayRange(last.start_line, max(last.end_line, current.end_line))
        else:
            merged.append(DisplayRange(current.start_line, current.end_line))

    return merged
