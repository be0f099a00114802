"""citecraft TUI — main Textual application.

Launch with:
    citecraft --ui
    citecraft "Smith J. Title. 2020." --ui

Two tabs share one preview:

  - *Builder* — type a citation, highlight spans and convert them to
    variables or literals, check adjacent parts and wrap them into an
    expression.
  - *Visual* — mark spans as expressions directly, fold finished spans
    into ``[*]`` and send the compiled template to the preview.
"""

from __future__ import annotations

from typing import List, Optional

from rich.markup import escape
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal, Vertical
from textual.theme import Theme
from textual.widgets import (
    Button,
    Footer,
    Header,
    SelectionList,
    Static,
    TabbedContent,
    TabPane,
    TextArea,
)

from citecraft.config import CiteCraftConfig
from citecraft.editor import TemplateEditor, VisualEditor
from citecraft.lab import CombinationLab
from citecraft.renderers import Renderer, resolve_renderer
from citecraft.sync import TemplateSync
from citecraft.template.segments import EXPR
from citecraft.tui.screens.combos import CombosScreen
from citecraft.tui.surface import TextAreaSurface
from citecraft.tui.widgets.message_log import MessageLog
from citecraft.tui.widgets.parts_view import PartsView
from citecraft.tui.widgets.preview import PreviewPane

CITECRAFT_THEME = Theme(
    name="citecraft-ink",
    primary="#5FA8D3",       # ink blue
    secondary="#CAE9FF",     # pale blue
    accent="#1B4965",        # deep blue
    warning="#FFB347",
    error="#FF6B6B",
    success="#62B6CB",
    foreground="#EDF2F4",
    background="#0D1B2A",
    surface="#1B263B",
    panel="#243447",
    dark=True,
)


class CiteCraftApp(App):
    """Interactive citation template builder."""

    TITLE = "citecraft"
    CSS_PATH = "theme.tcss"

    BINDINGS = [
        Binding("ctrl+c", "quit", "Quit", show=True),
        Binding("f2", "to_literal", "Literal", show=True, priority=True),
        Binding("f3", "to_variable", "Variable", show=True, priority=True),
        Binding("f4", "wrap_selection", "Wrap", show=True, priority=True),
        Binding("f5", "undo", "Undo", show=True, priority=True),
        Binding("f6", "clear_selection", "Clear sel.", show=True, priority=True),
        Binding("f7", "show_combos", "Combos", show=True, priority=True),
        Binding("f8", "fold", "Fold", show=True, priority=True),
        Binding("f9", "unfold", "Unfold", show=True, priority=True),
    ]

    def __init__(
        self,
        seed_text: str = "",
        config: Optional[CiteCraftConfig] = None,
        renderer: Optional[Renderer] = None,
        **kwargs,
    ) -> None:
        super().__init__(**kwargs)
        self.register_theme(CITECRAFT_THEME)
        self.theme = "citecraft-ink"
        self.config = config or CiteCraftConfig()
        self._seed_text = seed_text
        self.sync = TemplateSync()
        self.lab = CombinationLab(
            renderer or resolve_renderer(self.config.renderer),
            sync=self.sync,
            max_combinations=self.config.max_combinations,
            overflow=self.config.overflow,
            sample_budget=self.config.sample_budget,
            seed=self.config.sample_seed,
        )
        self.editor = TemplateEditor(sync=self.sync, history_limit=self.config.history_limit)
        self.editor.apply_text_input(seed_text)
        self.visual = VisualEditor(seed_text=seed_text, on_apply=self._on_visual_apply)

    def compose(self) -> ComposeResult:
        yield Header()

        with Horizontal(id="main-container"):
            with Vertical(id="left-panel"):
                with TabbedContent(id="tabs"):
                    with TabPane("Builder", id="tab-builder"):
                        yield TextArea(self._seed_text, id="template-editor")
                        with Horizontal(classes="action-bar"):
                            yield Button("Literal", id="btn-literal")
                            yield Button("Variable", id="btn-variable", variant="primary")
                            yield Button("Wrap", id="btn-wrap", variant="success")
                            yield Button("Undo", id="btn-undo")
                            yield Button("Strip [ ]", id="btn-brackets")
                            yield Button("Lock", id="btn-lock")
                            yield Button("Copy", id="btn-copy")
                        yield PartsView(id="parts-view")
                        yield Static("", id="compiled-output", classes="output-line")
                    with TabPane("Visual", id="tab-visual"):
                        yield TextArea(self._seed_text, id="visual-editor")
                        with Horizontal(classes="action-bar"):
                            yield Button("Expr", id="btn-expr", variant="primary")
                            yield Button("Literal", id="btn-lit")
                            yield Button("Fold", id="btn-fold")
                            yield Button("Unfold", id="btn-unfold")
                            yield Button("Clear", id="btn-clear", variant="error")
                            yield Button("Send", id="btn-send", variant="success")
                        yield Static("", id="visual-segments", markup=True)
                        yield Static("", id="fold-table", markup=True)
                        yield Static("", id="visual-compiled", classes="output-line")

            with Vertical(id="right-panel"):
                yield Static("[bold]Preview[/bold]", markup=True)
                yield PreviewPane(self.lab, id="preview-pane")
                yield Button("🧮 Combinations", id="btn-combos")
                yield MessageLog(id="message-log")

        yield Footer()

    def on_mount(self) -> None:
        self.editor.surface = TextAreaSurface(self.query_one("#template-editor", TextArea))
        self.visual.surface = TextAreaSurface(self.query_one("#visual-editor", TextArea))
        self._refresh_builder()
        self._refresh_visual()

    # ── Event handlers ────────────────────────────────────────────

    def on_text_area_changed(self, event: TextArea.Changed) -> None:
        area = event.text_area
        if area.id == "template-editor":
            if area.text == self.editor.text_input:
                return
            self.editor.handle_text_input(area.text)
            self._refresh_builder()
        elif area.id == "visual-editor":
            if area.text == self.visual.buffer:
                return
            if not self.visual.on_input_text(area.text) and self.visual.error:
                self._log().add_error(self.visual.error)
            self._refresh_visual()

    def on_selection_list_selected_changed(self, event: SelectionList.SelectedChanged) -> None:
        self.editor.set_selection(event.selection_list.selected)

    def on_button_pressed(self, event: Button.Pressed) -> None:
        handlers = {
            "btn-literal": self.action_to_literal,
            "btn-variable": self.action_to_variable,
            "btn-wrap": self.action_wrap_selection,
            "btn-undo": self.action_undo,
            "btn-brackets": self.action_strip_brackets,
            "btn-lock": self.action_toggle_lock,
            "btn-copy": self.action_copy_output,
            "btn-expr": self.action_mark_expr,
            "btn-lit": self.action_mark_literal,
            "btn-fold": self.action_fold,
            "btn-unfold": self.action_unfold,
            "btn-clear": self.action_clear_visual,
            "btn-send": self.action_send_to_preview,
            "btn-combos": self.action_show_combos,
        }
        handler = handlers.get(event.button.id or "")
        if handler is not None:
            handler()

    # ── Builder actions ───────────────────────────────────────────

    def action_to_literal(self) -> None:
        self._builder_result("literal", self.editor.convert_selection_to_literal())

    def action_to_variable(self) -> None:
        self._builder_result("variable", self.editor.convert_selection_to_variable())

    def action_wrap_selection(self) -> None:
        if not self.editor.can_wrap_selection():
            self._log().add_error("Check two or more adjacent parts to wrap them.")
            return
        self._builder_result("wrap", self.editor.wrap_selection())

    def action_undo(self) -> None:
        if self.editor.undo_last_change():
            self._builder_result("undo", True)
        else:
            self._log().add_info("Nothing to undo.")

    def action_clear_selection(self) -> None:
        self.editor.clear_selection()
        self._refresh_builder()

    def action_strip_brackets(self) -> None:
        self.editor.remove_brackets_from_input()
        self._refresh_builder()

    def action_toggle_lock(self) -> None:
        self.editor.toggle_input_lock()
        area = self.query_one("#template-editor", TextArea)
        area.read_only = self.editor.input_locked
        self._log().add_info("Input locked." if self.editor.input_locked else "Input unlocked.")

    def action_copy_output(self) -> None:
        if self.editor.copy_output(self.copy_to_clipboard):
            self._log().add_action("copy", self.editor.output)
        elif self.editor.error:
            self._log().add_error(self.editor.error)

    def _builder_result(self, action: str, ok: bool) -> None:
        if ok:
            self._log().add_action(action, self.editor.output)
        elif self.editor.error:
            self._log().add_error(self.editor.error)
        self._refresh_builder()

    # ── Visual actions ────────────────────────────────────────────

    def action_mark_expr(self) -> None:
        self._visual_result("expr", self.visual.to_expr())

    def action_mark_literal(self) -> None:
        self._visual_result("literal", self.visual.to_lit())

    def action_fold(self) -> None:
        self._visual_result("fold", self.visual.fold())

    def action_unfold(self) -> None:
        self._visual_result("unfold", self.visual.unfold())

    def action_clear_visual(self) -> None:
        self.visual.clear_all()
        self._refresh_visual()

    def action_send_to_preview(self) -> None:
        template, _ = self.visual.send_to_builder()
        self._log().add_action("send", template or "(empty)")

    def _on_visual_apply(self, template: str, arg_names: List[str]) -> None:
        self.sync.set_data(arg_names, template)
        self._refresh_preview()

    def _visual_result(self, action: str, ok: bool) -> None:
        if ok:
            self._log().add_action(action, self.visual.compiled_template or "(empty)")
        elif self.visual.error:
            self._log().add_error(self.visual.error)
        self._refresh_visual()

    # ── Lab ───────────────────────────────────────────────────────

    def action_show_combos(self) -> None:
        rows = self.lab.compute_combo_rows()
        self.push_screen(CombosScreen(rows, self.lab.combo_count))

    # ── Refresh helpers ───────────────────────────────────────────

    def _log(self) -> MessageLog:
        return self.query_one("#message-log", MessageLog)

    def _refresh_builder(self) -> None:
        self.query_one("#parts-view", PartsView).show_parts(
            self.editor.parts, self.editor.selected_indices,
        )
        output = self.editor.output
        self.query_one("#compiled-output", Static).update(
            escape(output) if output else "(no parts yet)"
        )
        self._refresh_preview()

    def _refresh_visual(self) -> None:
        runs = []
        for seg in self.visual.doc:
            style = "bold black on yellow" if seg.type == EXPR else "dim"
            runs.append(f"[{style}]{escape(seg.text)}[/]")
        self.query_one("#visual-segments", Static).update("".join(runs) or "[dim](empty)[/dim]")

        folds = [
            f"#{n} [*] → {escape(self.visual.placeholder_text(n) or '')}"
            for n in range(len(self.visual.state.pieces))
        ]
        self.query_one("#fold-table", Static).update("\n".join(folds))
        self.query_one("#visual-compiled", Static).update(
            escape(self.visual.compiled_template) or "(empty)"
        )

    def _refresh_preview(self) -> None:
        self.query_one("#preview-pane", PreviewPane).refresh_preview()


def launch_tui(
    seed_text: str = "",
    config: Optional[CiteCraftConfig] = None,
) -> None:
    """Entry point for --ui mode."""
    app = CiteCraftApp(seed_text=seed_text, config=config)
    app.run()
