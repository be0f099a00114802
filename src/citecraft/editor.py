"""Editing sessions — the glue between a text surface and the template core.

Two sessions mirror the two ways of authoring a template:

  - :class:`TemplateEditor` keeps a :class:`CitationTemplate` of parts.
    The user types a citation, highlights spans and converts them to
    literals or variables, then groups adjacent parts into expressions.
  - :class:`VisualEditor` keeps a folded buffer with marked expression
    ranges.  The user marks spans as expressions, folds finished spans
    away and sends the compiled template to the builder.

Both talk to the text widget only through :class:`EditingSurface`, so the
algorithms work on plain offsets and strings.  Rejected edits never raise
out of a session: the user-facing reason is stored in ``error`` and the
state is left as it was.
"""

from __future__ import annotations

import logging
import re
from typing import Callable, Iterator, List, Optional, Protocol, Set, Tuple

from citecraft.sync import TemplateSync
from citecraft.template.addends import Addend, Literal, Variable, addend_kind
from citecraft.template.builder import DEFAULT_HISTORY_LIMIT, CitationTemplate, WrapRangeError
from citecraft.template.folding import (
    FoldState,
    SelectionError,
    compile_folded,
    expanded_doc,
    fold_selection,
    mark_expression,
    mark_literal,
    placeholder_text,
    replace_range,
    unfold_all,
)
from citecraft.template.segments import EXPR, Doc
from citecraft.template.tokenizer import tokenize_citation_template

logger = logging.getLogger(__name__)

Offsets = Tuple[int, int]


# ═══════════════════════════════════════════════════════════════════
# Surface
# ═══════════════════════════════════════════════════════════════════

class EditingSurface(Protocol):
    """The narrow slice of a text widget the sessions rely on."""

    def get_selection_offsets(self) -> Optional[Offsets]:
        ...

    def replace_range(self, start: int, end: int, text: str) -> None:
        ...

    def get_text(self) -> str:
        ...


class StringSurface:
    """In-memory :class:`EditingSurface` for headless sessions and tests."""

    def __init__(self, text: str = "") -> None:
        self.text = text
        self.selection: Optional[Offsets] = None

    def select(self, start: int, end: int) -> None:
        self.selection = (start, end)

    def get_selection_offsets(self) -> Optional[Offsets]:
        return self.selection

    def replace_range(self, start: int, end: int, text: str) -> None:
        self.text = self.text[:start] + text + self.text[end:]
        self.selection = None

    def get_text(self) -> str:
        return self.text


def _set_surface_text(surface: Optional[EditingSurface], text: str) -> None:
    if surface is None:
        return
    current = surface.get_text()
    if current != text:
        surface.replace_range(0, len(current), text)


def _ordered(offsets: Offsets) -> Offsets:
    start, end = offsets
    return (start, end) if start <= end else (end, start)


def _edit_alignments(old: str, new: str) -> Iterator[Tuple[int, int, str]]:
    """Every minimal ``(start, end, inserted)`` edit turning *old* into *new*.

    The first one keeps the longest common prefix; each following one
    moves the replaced span one character left, which is only possible
    while the common suffix is long enough to absorb it.
    """
    limit = min(len(old), len(new))
    prefix = 0
    while prefix < limit and old[prefix] == new[prefix]:
        prefix += 1
    suffix = 0
    while suffix < limit and old[len(old) - 1 - suffix] == new[len(new) - 1 - suffix]:
        suffix += 1
    kept = min(limit, prefix + suffix)
    for head in range(prefix, -1, -1):
        tail = kept - head
        if tail > suffix:
            break
        yield head, len(old) - tail, new[head:len(new) - tail]


# ═══════════════════════════════════════════════════════════════════
# Part-based builder
# ═══════════════════════════════════════════════════════════════════

class TemplateEditor:
    """Session for building a template out of typed parts.

    Every successful change publishes ``(variables, compiled)`` on the
    :class:`TemplateSync`.
    """

    def __init__(
        self,
        surface: Optional[EditingSurface] = None,
        sync: Optional[TemplateSync] = None,
        history_limit: Optional[int] = DEFAULT_HISTORY_LIMIT,
    ) -> None:
        self.template = CitationTemplate(history_limit=history_limit)
        self.surface = surface
        self.sync = sync if sync is not None else TemplateSync()
        self.text_input = ""
        self.selected_indices: Set[int] = set()
        self.error: Optional[str] = None
        self.input_locked = False
        self._refresh()

    # ── Views ────────────────────────────────────────────────────

    @property
    def parts(self) -> List[Addend]:
        return self.template.get_parts()

    @property
    def output(self) -> str:
        return self.template.compiled()

    def get_variables(self) -> List[str]:
        return self.template.get_variables()

    def part_kinds(self) -> List[str]:
        return [addend_kind(part) for part in self.template.get_parts()]

    def can_undo(self) -> bool:
        return self.template.can_undo()

    # ── Text input ───────────────────────────────────────────────

    def handle_text_input(self, value: str) -> bool:
        """Accept typed text unless input is locked.  Returns True if applied."""
        if self.input_locked:
            return False
        self.apply_text_input(value)
        return True

    def apply_text_input(self, value: str) -> None:
        """Replace the template with the typed text as one literal.

        History is reset: typing starts a new tagging session.
        """
        self.text_input = value
        if not value.strip():
            self.template.replace_parts([], record_history=False, reset_history=True)
        else:
            self.template.replace_parts(
                [Literal(value)], record_history=False, reset_history=True,
            )
        self.clear_selection()
        self._set_error(None)
        self._refresh()

    def load_template(self, text: str) -> None:
        """Tokenize a citation template and make its parts current."""
        parts = tokenize_citation_template(text)
        self.template.replace_parts(parts, record_history=False, reset_history=True)
        self.text_input = self.template.display()
        _set_surface_text(self.surface, self.text_input)
        self.clear_selection()
        self._set_error(None)
        self._refresh()

    def toggle_input_lock(self) -> None:
        self.input_locked = not self.input_locked

    def remove_brackets_from_input(self) -> None:
        if self.input_locked or not self.text_input:
            return
        cleaned = re.sub(r"[\[\]]", "", self.text_input)
        if cleaned == self.text_input:
            return
        _set_surface_text(self.surface, cleaned)
        self.apply_text_input(cleaned)

    # ── Converting highlighted text ──────────────────────────────

    def convert_selection_to_literal(self, selection: Optional[Offsets] = None) -> bool:
        return self.convert_selection("literal", selection)

    def convert_selection_to_variable(self, selection: Optional[Offsets] = None) -> bool:
        return self.convert_selection("variable", selection)

    def convert_selection(self, kind: str, selection: Optional[Offsets] = None) -> bool:
        """Turn the highlighted literal text into one addend of *kind*.

        The selection may span several literal parts; the parts it cuts
        are split and the selected text becomes a single new part.
        Returns True if the template changed.
        """
        if selection is None and self.surface is not None:
            selection = self.surface.get_selection_offsets()
        if selection is None:
            return self._reject("Highlight text in the editor above before converting.")
        start, end = _ordered(selection)
        if start == end:
            return self._reject("Please select at least one character.")
        if not self.text_input:
            return self._reject("Type a citation above before tagging parts.")
        if start < 0 or end > len(self.text_input):
            return self._reject("Selection is out of bounds.")

        next_parts: List[Addend] = []
        cursor = 0
        collecting = False
        buffer = ""
        applied = False

        for addend in self.template.get_parts():
            text = addend.display
            part_start = cursor
            part_end = cursor + len(text)
            cursor = part_end

            if not (end > part_start and start < part_end):
                next_parts.append(addend)
                continue

            if not isinstance(addend, Literal):
                return self._reject(
                    "Selection can only include literal text. Adjust your highlight and try again."
                )

            local_start = max(start, part_start) - part_start
            local_end = min(end, part_end) - part_start

            if not collecting and local_start > 0:
                next_parts.append(Literal(text[:local_start]))

            collecting = True
            buffer += text[local_start:local_end]

            if end <= part_end:
                next_parts.append(self._create_addend(kind, buffer))
                buffer = ""
                applied = True
                collecting = False
                if local_end < len(text):
                    next_parts.append(Literal(text[local_end:]))

        if not applied:
            return self._reject("Selection must overlap literal text.")

        self.template.replace_parts(next_parts)
        logger.debug("Converted %d..%d to %s", start, end, kind)
        self.clear_selection()
        self._set_error(None)
        self._refresh()
        return True

    @staticmethod
    def _create_addend(kind: str, value: str) -> Addend:
        if kind == "literal":
            return Literal(value)
        if kind == "variable":
            return Variable(value)
        raise ValueError(f"Unknown part kind: {kind!r}")

    # ── Part selection and grouping ──────────────────────────────

    def toggle_selection(self, index: int) -> None:
        if index in self.selected_indices:
            self.selected_indices.discard(index)
        else:
            self.selected_indices.add(index)

    def set_selection(self, indices) -> None:
        self.selected_indices = set(indices)

    def clear_selection(self) -> None:
        self.selected_indices = set()

    def is_selected(self, index: int) -> bool:
        return index in self.selected_indices

    def can_wrap_selection(self) -> bool:
        """At least two selected parts, forming one contiguous run."""
        ordered = sorted(self.selected_indices)
        if len(ordered) < 2:
            return False
        return ordered[-1] - ordered[0] == len(ordered) - 1

    def wrap_selection(self) -> bool:
        if not self.can_wrap_selection():
            return False
        ordered = sorted(self.selected_indices)
        try:
            self.template.wrap_expression(ordered[0], ordered[-1])
        except WrapRangeError as exc:
            return self._reject(str(exc))
        self.clear_selection()
        self._set_error(None)
        self._refresh()
        return True

    def undo_last_change(self) -> bool:
        if not self.template.undo():
            return False
        self.clear_selection()
        self._set_error(None)
        self._refresh()
        return True

    # ── Export ───────────────────────────────────────────────────

    def copy_output(self, clipboard: Optional[Callable[[str], None]]) -> bool:
        output = self.output
        if not output:
            return self._reject("Nothing to copy yet.")
        if clipboard is None:
            return self._reject("Clipboard not available.")
        try:
            clipboard(output)
        except Exception as exc:
            logger.warning("Clipboard write failed: %s", exc)
            return self._reject("Failed to copy to clipboard. Please try again.")
        self._set_error(None)
        return True

    # ── Internals ────────────────────────────────────────────────

    def _reject(self, message: str) -> bool:
        logger.info("Rejected edit: %s", message)
        self._set_error(message)
        return False

    def _set_error(self, message: Optional[str]) -> None:
        self.error = message

    def _refresh(self) -> None:
        self.sync.set_data(self.template.get_variables(), self.template.compiled())


# ═══════════════════════════════════════════════════════════════════
# Segment / fold builder
# ═══════════════════════════════════════════════════════════════════

class VisualEditor:
    """Session for marking expressions directly in free text.

    Args:
        surface: The text widget holding the folded buffer.
        seed_text: Initial buffer content, all literal.
        on_apply: Called with ``(template, arg_names)`` by
            :meth:`send_to_builder`.
    """

    def __init__(
        self,
        surface: Optional[EditingSurface] = None,
        seed_text: str = "",
        on_apply: Optional[Callable[[str, List[str]], None]] = None,
    ) -> None:
        self.surface = surface
        self.on_apply = on_apply
        self.state = FoldState(buffer=seed_text)
        self.error: Optional[str] = None
        _set_surface_text(self.surface, self.state.buffer)

    # ── Views ────────────────────────────────────────────────────

    @property
    def buffer(self) -> str:
        return self.state.buffer

    @property
    def ranges(self) -> Tuple[Offsets, ...]:
        return self.state.ranges

    @property
    def doc(self) -> Doc:
        """Segments of the fully expanded text."""
        return expanded_doc(self.state)

    @property
    def plain_text(self) -> str:
        return "".join(seg.text for seg in self.doc)

    @property
    def compiled_template(self) -> str:
        return compile_folded(self.state)

    @property
    def arg_names(self) -> List[str]:
        count = sum(1 for seg in self.doc if seg.type == EXPR)
        return [f"Arg{i + 1}" for i in range(count)]

    def placeholder_text(self, ordinal: int) -> Optional[str]:
        """What folded token *ordinal* stands for (hover/preview)."""
        return placeholder_text(self.state, ordinal)

    # ── Typing ───────────────────────────────────────────────────

    def on_input_text(self, text: str) -> bool:
        """Reconcile the widget's new text with the folded buffer.

        The change is reduced to one replaced span (common prefix and
        suffix kept).  When characters next to the edit repeat, the span
        is slid left until it no longer cuts a placeholder.  Edits that
        would still break a placeholder are refused and the widget is
        reset to the last good buffer.
        """
        old = self.state.buffer
        if text == old:
            return False
        first_error: Optional[SelectionError] = None
        for start, end, inserted in _edit_alignments(old, text):
            try:
                self.state = replace_range(self.state, start, end, inserted)
            except SelectionError as exc:
                first_error = first_error or exc
                continue
            self.error = None
            return True
        _set_surface_text(self.surface, old)
        return self._reject(str(first_error))

    # ── Toolbar actions ──────────────────────────────────────────

    def to_expr(self, selection: Optional[Offsets] = None) -> bool:
        return self._apply_selection(mark_expression, selection)

    def to_lit(self, selection: Optional[Offsets] = None) -> bool:
        return self._apply_selection(mark_literal, selection)

    def fold(self, selection: Optional[Offsets] = None) -> bool:
        if self._apply_selection(fold_selection, selection):
            _set_surface_text(self.surface, self.state.buffer)
            return True
        return False

    def unfold(self) -> bool:
        if not self.state.pieces:
            return self._reject("Nothing is folded.")
        self.state = unfold_all(self.state)
        _set_surface_text(self.surface, self.state.buffer)
        self.error = None
        return True

    def clear_all(self) -> None:
        self.state = FoldState()
        _set_surface_text(self.surface, "")
        self.error = None

    def send_to_builder(self) -> Tuple[str, List[str]]:
        template, names = self.compiled_template, self.arg_names
        if self.on_apply is not None:
            self.on_apply(template, names)
        return template, names

    # ── Internals ────────────────────────────────────────────────

    def _apply_selection(self, operation, selection: Optional[Offsets]) -> bool:
        if selection is None and self.surface is not None:
            selection = self.surface.get_selection_offsets()
        if selection is None:
            return self._reject("Highlight text in the editor before converting.")
        start, end = _ordered(selection)
        try:
            self.state = operation(self.state, start, end)
        except SelectionError as exc:
            return self._reject(str(exc))
        self.error = None
        return True

    def _reject(self, message: str) -> bool:
        logger.info("Rejected edit: %s", message)
        self.error = message
        return False
