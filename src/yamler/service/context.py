"""Source-line windows around a target line."""

from __future__ import annotations

from yamler.models.document import ContextLine, split_lines

DEFAULT_WINDOW = 4


def context_lines(
    full_text: str, line_number: int, window_size: int = DEFAULT_WINDOW
) -> list[ContextLine]:
    """Return the lines within *window_size* of *line_number* (0-based).

    Out-of-range targets are clamped onto the first or last line rather than
    rejected, since locator line numbers are best effort.
    """
    lines = split_lines(full_text)
    last = len(lines) - 1
    target = min(max(line_number, 0), last)
    window = max(window_size, 0)
    start = max(0, target - window)
    end = min(last, target + window)
    return [
        ContextLine(line_number=i + 1, content=lines[i], is_target=i == target)
        for i in range(start, end + 1)
    ]
