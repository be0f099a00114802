"""CombosScreen — modal listing the template rendered for every argument subset."""

from __future__ import annotations

from rich.markup import escape
from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal, Vertical, VerticalScroll
from textual.screen import ModalScreen
from textual.widgets import Button, Static

from citecraft.lab import ComboRow


class CombosScreen(ModalScreen[None]):
    """Read-only table of combination rows."""

    DEFAULT_CSS = """
    CombosScreen {
        align: center middle;
    }

    #combos-container {
        width: 90%;
        height: 90%;
        border: thick $primary;
        background: $surface;
        padding: 1 2;
    }

    #combos-title {
        text-style: bold;
        color: $primary;
        margin-bottom: 1;
    }

    #combos-rows {
        height: 1fr;
    }

    .combo-advisory {
        color: $warning;
        text-style: italic;
    }

    #combos-buttons {
        height: auto;
        align: center middle;
    }
    """

    BINDINGS = [
        Binding("escape", "close", "Close", show=True),
    ]

    def __init__(self, rows: list[ComboRow], total: int, **kwargs) -> None:
        super().__init__(**kwargs)
        self._rows = rows
        self._total = total

    def compose(self) -> ComposeResult:
        with Vertical(id="combos-container"):
            shown = len([r for r in self._rows if not r.advisory])
            yield Static(
                f"🧮 Combinations — showing {shown} of {self._total}",
                id="combos-title",
            )
            with VerticalScroll(id="combos-rows"):
                if not self._rows:
                    yield Static("[dim]No arguments selected.[/dim]", markup=True)
                for row in self._rows:
                    if row.advisory:
                        yield Static(escape(row.output), classes="combo-advisory combo-row")
                    else:
                        yield Static(
                            f"[bold]{escape(row.label)}[/bold]  →  {escape(row.output)}",
                            classes="combo-row",
                            markup=True,
                        )
            with Horizontal(id="combos-buttons"):
                yield Button("Close", id="btn-close", variant="primary")

    def on_button_pressed(self, event: Button.Pressed) -> None:
        if event.button.id == "btn-close":
            self.action_close()

    def action_close(self) -> None:
        self.dismiss(None)
