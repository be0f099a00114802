"""Preview widget — the compiled template and its rendered citation."""

from __future__ import annotations

from rich.markup import escape
from textual.widgets import Static

from citecraft.lab import CombinationLab


class PreviewPane(Static):
    """Shows the current compiled template and the renderer's output.

    Rendering uses every argument's own name as its value, so the preview
    reads like ``Smith, Year.`` until real data is plugged in.
    """

    DEFAULT_CSS = """
    PreviewPane {
        height: auto;
        min-height: 5;
        border: round $primary-darken-1;
        padding: 1;
    }
    """

    def __init__(self, lab: CombinationLab, **kwargs) -> None:
        super().__init__("", markup=True, **kwargs)
        self._lab = lab
        self.rendered = ""

    def on_mount(self) -> None:
        self.refresh_preview()

    def refresh_preview(self) -> None:
        lab = self._lab
        if not lab.template:
            self.rendered = ""
            self.update("[dim italic]Nothing to preview yet — type a citation.[/dim italic]")
            return
        self.rendered = lab.result
        args = ", ".join(lab.arg_names) or "(none)"
        self.update(
            f"[bold]Template[/bold]  {escape(lab.template)}\n"
            f"[bold]Arguments[/bold] {escape(args)}\n"
            f"[bold green]{escape(self.rendered)}[/bold green]"
        )
