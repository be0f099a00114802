"""Message log widget — shows what each toolbar action did."""

from __future__ import annotations

from rich.markup import escape
from textual.widgets import RichLog


class MessageLog(RichLog):
    """Scrollable log of edits and rejected selections."""

    DEFAULT_CSS = """
    MessageLog {
        height: 8;
        border: round $primary-darken-1;
        padding: 0 1;
    }
    """

    _ACTION_ICONS = {
        "literal": "📝",
        "variable": "🔤",
        "wrap": "🧩",
        "undo": "↩️",
        "fold": "📁",
        "unfold": "📂",
        "expr": "🟡",
        "send": "📤",
        "copy": "📋",
    }

    def __init__(self, **kwargs) -> None:
        super().__init__(markup=True, **kwargs)
        self.messages: list[str] = []

    def add_action(self, action: str, text: str) -> None:
        icon = self._ACTION_ICONS.get(action, "⚪")
        self.messages.append(text)
        self.write(f"{icon} [bold]{action}[/bold]: {escape(text[:200])}")

    def add_error(self, text: str) -> None:
        self.messages.append(text)
        self.write(f"❌ [bold red]{escape(text)}[/bold red]")

    def add_info(self, text: str) -> None:
        self.messages.append(text)
        self.write(f"ℹ️  [dim]{escape(text)}[/dim]")
