"""Tests for the editing sessions (part builder and visual/fold editor)."""

from __future__ import annotations

import pytest

from citecraft.editor import StringSurface, TemplateEditor, VisualEditor
from citecraft.sync import TemplateSync
from citecraft.template.addends import Literal, Variable


@pytest.fixture
def editor():
    ed = TemplateEditor(surface=StringSurface("Smith 2020"))
    ed.apply_text_input("Smith 2020")
    return ed


# ═══════════════════════════════════════════════════════════════════
# TemplateEditor
# ═══════════════════════════════════════════════════════════════════

class TestTextInput:
    def test_typed_text_is_one_literal(self, editor):
        assert editor.part_kinds() == ["literal"]
        assert editor.output == "{Smith 2020}"
        assert not editor.can_undo()

    def test_blank_input_clears(self, editor):
        editor.apply_text_input("   ")
        assert editor.parts == []
        assert editor.output == ""

    def test_input_lock(self, editor):
        editor.toggle_input_lock()
        assert not editor.handle_text_input("Jones")
        assert editor.text_input == "Smith 2020"
        editor.toggle_input_lock()
        assert editor.handle_text_input("Jones")
        assert editor.output == "{Jones}"

    def test_remove_brackets(self):
        surface = StringSurface("[Smith] 2020")
        ed = TemplateEditor(surface=surface)
        ed.apply_text_input("[Smith] 2020")
        ed.remove_brackets_from_input()
        assert ed.text_input == "Smith 2020"
        assert surface.text == "Smith 2020"

    def test_load_template(self):
        surface = StringSurface()
        ed = TemplateEditor(surface=surface)
        ed.load_template("[Author], [Year]")
        assert ed.part_kinds() == ["variable", "literal", "literal", "variable"]
        assert ed.get_variables() == ["Author", "Year"]
        assert ed.text_input == "Author, Year"
        assert surface.text == "Author, Year"


class TestConvertSelection:
    def test_variable_from_explicit_offsets(self, editor):
        assert editor.convert_selection_to_variable((6, 10))
        parts = editor.parts
        assert isinstance(parts[0], Literal) and parts[0].text == "Smith "
        assert isinstance(parts[1], Variable) and parts[1].name == "2020"
        assert editor.output == "{Smith }[%s]"
        assert editor.can_undo()

    def test_selection_from_surface(self, editor):
        editor.surface.select(0, 5)
        assert editor.convert_selection_to_variable()
        assert editor.get_variables() == ["Smith"]

    def test_reversed_selection(self, editor):
        assert editor.convert_selection_to_variable((10, 6))
        assert editor.get_variables() == ["2020"]

    def test_selection_spanning_literal_parts(self):
        ed = TemplateEditor()
        ed.apply_text_input("abcdef")
        assert ed.convert_selection_to_literal((2, 4))
        assert [p.display for p in ed.parts] == ["ab", "cd", "ef"]
        assert ed.convert_selection_to_variable((1, 5))
        assert [p.display for p in ed.parts] == ["a", "bcde", "f"]
        assert ed.part_kinds() == ["literal", "variable", "literal"]

    def test_selection_over_variable_rejected(self, editor):
        editor.convert_selection_to_variable((6, 10))
        before = editor.output
        assert not editor.convert_selection_to_literal((4, 8))
        assert editor.error.startswith("Selection can only include literal text.")
        assert editor.output == before

    def test_empty_selection_rejected(self, editor):
        assert not editor.convert_selection_to_variable((3, 3))
        assert editor.error == "Please select at least one character."

    def test_missing_selection_rejected(self):
        ed = TemplateEditor()
        ed.apply_text_input("abc")
        assert not ed.convert_selection_to_variable()
        assert ed.error == "Highlight text in the editor above before converting."

    def test_out_of_bounds_rejected(self, editor):
        assert not editor.convert_selection_to_variable((6, 40))
        assert editor.error == "Selection is out of bounds."

    def test_no_text_rejected(self):
        ed = TemplateEditor()
        assert not ed.convert_selection_to_variable((0, 1))
        assert ed.error == "Type a citation above before tagging parts."

    def test_success_clears_error(self, editor):
        editor.convert_selection_to_variable((3, 3))
        assert editor.convert_selection_to_variable((6, 10))
        assert editor.error is None


class TestWrapAndUndo:
    def test_wrap_contiguous(self, editor):
        editor.convert_selection_to_variable((6, 10))
        editor.set_selection([0, 1])
        assert editor.can_wrap_selection()
        assert editor.wrap_selection()
        assert editor.output == "[{Smith }+[%s]]"
        assert editor.selected_indices == set()

    def test_non_contiguous_cannot_wrap(self):
        ed = TemplateEditor()
        ed.apply_text_input("abcdef")
        ed.convert_selection_to_variable((2, 4))
        ed.toggle_selection(0)
        ed.toggle_selection(2)
        assert not ed.can_wrap_selection()
        assert not ed.wrap_selection()

    def test_single_part_cannot_wrap(self, editor):
        editor.set_selection([0])
        assert not editor.can_wrap_selection()

    def test_undo(self, editor):
        editor.convert_selection_to_variable((6, 10))
        editor.set_selection([0, 1])
        editor.wrap_selection()
        assert editor.undo_last_change()
        assert editor.output == "{Smith }[%s]"
        assert editor.undo_last_change()
        assert editor.output == "{Smith 2020}"
        assert not editor.undo_last_change()

    def test_sync_receives_every_change(self):
        sync = TemplateSync()
        seen = []
        sync.subscribe(lambda v, t: seen.append((v, t)), replay=False)
        ed = TemplateEditor(sync=sync)
        ed.apply_text_input("Smith 2020")
        ed.convert_selection_to_variable((6, 10))
        assert seen[-1] == (["2020"], "{Smith }[%s]")


class TestCopyOutput:
    def test_nothing_to_copy(self):
        ed = TemplateEditor()
        assert not ed.copy_output(lambda text: None)
        assert ed.error == "Nothing to copy yet."

    def test_no_clipboard(self, editor):
        assert not editor.copy_output(None)
        assert editor.error == "Clipboard not available."

    def test_clipboard_failure(self, editor):
        def broken(text):
            raise OSError("no display")

        assert not editor.copy_output(broken)
        assert editor.error == "Failed to copy to clipboard. Please try again."

    def test_copies_compiled_output(self, editor):
        copied = []
        assert editor.copy_output(copied.append)
        assert copied == ["{Smith 2020}"]


# ═══════════════════════════════════════════════════════════════════
# VisualEditor
# ═══════════════════════════════════════════════════════════════════

class TestVisualEditor:
    def test_seed_reaches_surface(self):
        surface = StringSurface()
        VisualEditor(surface=surface, seed_text="Smith 2020")
        assert surface.text == "Smith 2020"

    def test_mark_expression(self):
        v = VisualEditor(seed_text="Smith 2020")
        assert v.to_expr((6, 10))
        assert v.compiled_template == "[{Smith }+[%s]]"
        assert v.arg_names == ["Arg1"]

    def test_mark_literal(self):
        v = VisualEditor(seed_text="Smith 2020")
        v.to_expr((0, 10))
        assert v.to_lit((0, 6))
        assert v.compiled_template == "[{Smith }+[%s]]"

    def test_bad_selection(self):
        v = VisualEditor(seed_text="abc")
        assert not v.to_expr((1, 1))
        assert v.error == "Please select at least one character."

    def test_fold_updates_surface(self):
        surface = StringSurface()
        v = VisualEditor(surface=surface, seed_text="Smith [abc] 2020")
        assert v.fold((6, 11))
        assert v.buffer == "Smith [*] 2020"
        assert surface.text == "Smith [*] 2020"
        assert v.placeholder_text(0) == "[abc]"
        assert v.plain_text == "Smith [abc] 2020"

    def test_unfold(self):
        surface = StringSurface()
        v = VisualEditor(surface=surface, seed_text="a[b]c")
        v.fold((1, 4))
        assert v.unfold()
        assert surface.text == "a[b]c"

    def test_unfold_nothing(self):
        v = VisualEditor(seed_text="abc")
        assert not v.unfold()
        assert v.error == "Nothing is folded."

    def test_typing_keeps_folds(self):
        v = VisualEditor(seed_text="a[x]b")
        v.fold((1, 4))
        assert v.on_input_text("a[*]bc")
        assert v.buffer == "a[*]bc"
        assert v.state.pieces == ("[x]",)

    def test_typing_into_token_is_reverted(self):
        surface = StringSurface()
        v = VisualEditor(surface=surface, seed_text="a[x]b")
        v.fold((1, 4))
        assert not v.on_input_text("a[]b")
        assert v.error == "Edits cannot cut through folded text."
        assert v.buffer == "a[*]b"
        assert surface.text == "a[*]b"

    def test_typing_bracket_before_token_keeps_fold(self):
        surface = StringSurface()
        v = VisualEditor(surface=surface, seed_text="a[x]")
        v.fold((1, 4))
        assert v.on_input_text("a[[*]")
        assert v.error is None
        assert v.buffer == "a[[*]"
        assert v.state.pieces == ("[x]",)
        assert v.plain_text == "a[[x]"

    def test_deleting_bracket_before_token_keeps_fold(self):
        v = VisualEditor(seed_text="a[[x]")
        v.fold((2, 5))
        assert v.buffer == "a[[*]"
        assert v.on_input_text("a[*]")
        assert v.state.pieces == ("[x]",)
        assert v.plain_text == "a[x]"

    def test_typing_open_star_before_token_keeps_fold(self):
        v = VisualEditor(seed_text="a[x]")
        v.fold((1, 4))
        assert v.on_input_text("a[*[*]")
        assert v.state.pieces == ("[x]",)
        assert v.plain_text == "a[*[x]"

    def test_unchanged_text_is_ignored(self):
        v = VisualEditor(seed_text="abc")
        assert not v.on_input_text("abc")

    def test_send_to_builder(self):
        received = []
        v = VisualEditor(
            seed_text="Smith 2020",
            on_apply=lambda template, names: received.append((template, names)),
        )
        v.to_expr((6, 10))
        assert v.send_to_builder() == ("[{Smith }+[%s]]", ["Arg1"])
        assert received == [("[{Smith }+[%s]]", ["Arg1"])]

    def test_clear_all(self):
        surface = StringSurface()
        v = VisualEditor(surface=surface, seed_text="a[b]c")
        v.fold((1, 4))
        v.clear_all()
        assert v.buffer == ""
        assert v.state.pieces == ()
        assert surface.text == ""
