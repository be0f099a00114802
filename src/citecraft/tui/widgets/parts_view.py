"""Parts view — the template's top-level parts as a selectable list."""

from __future__ import annotations

from typing import Sequence

from rich.text import Text
from textual.widgets import SelectionList
from textual.widgets.selection_list import Selection

from citecraft.template.addends import Addend, addend_kind

_KIND_STYLES = {
    "literal": "dim",
    "variable": "bold cyan",
    "expression": "bold magenta",
}


class PartsView(SelectionList[int]):
    """One checkable row per part; checked rows can be wrapped."""

    DEFAULT_CSS = """
    PartsView {
        height: 1fr;
        border: round $primary-darken-1;
    }
    """

    def show_parts(self, parts: Sequence[Addend], selected: set[int]) -> None:
        self.clear_options()
        self.add_options([
            Selection(self._label(i, part), i, i in selected)
            for i, part in enumerate(parts)
        ])

    @staticmethod
    def _label(index: int, part: Addend) -> Text:
        kind = addend_kind(part)
        label = Text(f"{index:>2} ")
        label.append(f"{kind:<10}", style=_KIND_STYLES[kind])
        label.append(repr(part.display))
        return label
