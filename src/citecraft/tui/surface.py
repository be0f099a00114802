"""TextAreaSurface — adapts a Textual TextArea to :class:`EditingSurface`.

TextArea reports selections as ``(row, column)`` locations; the editing
sessions work on absolute string offsets.
"""

from __future__ import annotations

from typing import Optional, Tuple

from textual.widgets import TextArea


def location_to_offset(text: str, location: Tuple[int, int]) -> int:
    """Absolute offset of a ``(row, column)`` location in *text*."""
    row, column = location
    lines = text.split("\n")
    row = max(0, min(row, len(lines) - 1))
    offset = sum(len(line) + 1 for line in lines[:row])
    return offset + max(0, min(column, len(lines[row])))


def offset_to_location(text: str, offset: int) -> Tuple[int, int]:
    """``(row, column)`` of an absolute offset in *text*."""
    offset = max(0, min(offset, len(text)))
    before = text[:offset]
    row = before.count("\n")
    column = offset - (before.rfind("\n") + 1)
    return row, column


class TextAreaSurface:
    """EditingSurface backed by a TextArea widget."""

    def __init__(self, area: TextArea) -> None:
        self.area = area

    def get_text(self) -> str:
        return self.area.text

    def get_selection_offsets(self) -> Optional[Tuple[int, int]]:
        selection = self.area.selection
        if selection is None:
            return None
        text = self.area.text
        start = location_to_offset(text, selection.start)
        end = location_to_offset(text, selection.end)
        return (start, end) if start <= end else (end, start)

    def replace_range(self, start: int, end: int, text: str) -> None:
        current = self.area.text
        self.area.replace(
            text,
            offset_to_location(current, start),
            offset_to_location(current, end),
        )
