"""Tests for folding: placeholders, index maps, marked ranges and edits."""

from __future__ import annotations

import random

import pytest

from citecraft.template.folding import (
    PLACEHOLDER,
    FoldState,
    SelectionError,
    compile_folded,
    expand,
    expand_with_index_map,
    expanded_doc,
    find_placeholders,
    fold_selection,
    is_balanced_span,
    mark_expression,
    mark_literal,
    merge_ranges,
    placeholder_text,
    replace_range,
    subtract_range,
    translate_range,
    unfold_all,
)
from citecraft.template.segments import EXPR, LITERAL


class TestPlaceholders:
    def test_find_placeholders(self):
        assert find_placeholders("a[*]b[*]") == [1, 5]
        assert find_placeholders("no tokens") == []

    def test_index_map(self):
        expanded, index_map = expand_with_index_map("a[*]c", ("XYZW",))
        assert expanded == "aXYZWc"
        assert index_map == [0, 1, 1, 1, 5, 6]

    def test_index_map_is_monotonic(self):
        folded = "[*] and [*]."
        _, index_map = expand_with_index_map(folded, ("[first]", "{second}"))
        assert len(index_map) == len(folded) + 1
        assert all(a <= b for a, b in zip(index_map, index_map[1:]))

    def test_orphan_token_stays_literal(self):
        expanded, index_map = expand_with_index_map("[*]", ())
        assert expanded == PLACEHOLDER
        assert index_map == [0, 1, 2, 3]

    def test_translate_range(self):
        _, index_map = expand_with_index_map("a[*]c", ("XYZW",))
        assert translate_range((1, 4), index_map, 6) == (1, 5)
        assert translate_range((4, 99), index_map, 6) == (5, 6)


class TestBalancedSpan:
    @pytest.mark.parametrize("text", ["abc", "[a]", "{[x]}", "[a{b}c]", "a\\[b"])
    def test_balanced(self, text):
        assert is_balanced_span(text)

    @pytest.mark.parametrize("text", ["[a", "a}", "][", "{[}"])
    def test_unbalanced(self, text):
        assert not is_balanced_span(text)


class TestRanges:
    def test_merge(self):
        assert merge_ranges([(5, 7), (1, 3), (3, 4), (8, 8)]) == ((1, 4), (5, 7))

    def test_subtract(self):
        assert subtract_range([(0, 10)], 3, 5) == ((0, 3), (5, 10))
        assert subtract_range([(0, 3)], 5, 8) == ((0, 3),)


class TestFoldSelection:
    def test_fold_and_expand(self):
        state = fold_selection(FoldState("a[b]c"), 1, 4)
        assert state.buffer == "a[*]c"
        assert state.pieces == ("[b]",)
        assert expand(state.buffer, state.pieces) == "a[b]c"

    def test_unfold_restores_text(self):
        state = fold_selection(FoldState("a[b]c"), 1, 4)
        unfolded = unfold_all(state)
        assert unfolded.buffer == "a[b]c"
        assert unfolded.pieces == ()

    def test_nested_fold(self):
        state = fold_selection(FoldState("x[a[b]c]y"), 3, 6)
        assert state.buffer == "x[a[*]c]y"
        state = fold_selection(state, 1, 8)
        assert state.buffer == "x[*]y"
        assert state.pieces == ("[a[b]c]",)
        assert unfold_all(state).buffer == "x[a[b]c]y"

    def test_fold_table_ordinals(self):
        state = fold_selection(FoldState("[a] [b]"), 4, 7)
        state = fold_selection(state, 0, 3)
        assert state.buffer == "[*] [*]"
        assert state.pieces == ("[a]", "[b]")
        assert placeholder_text(state, 0) == "[a]"
        assert placeholder_text(state, 1) == "[b]"
        assert placeholder_text(state, 2) is None
        assert state.fold_count == 2

    def test_inverted_selection(self):
        assert fold_selection(FoldState("a[b]c"), 4, 1).buffer == "a[*]c"

    def test_unbalanced_rejected(self):
        with pytest.raises(SelectionError, match="balanced"):
            fold_selection(FoldState("a[bc"), 1, 3)

    def test_empty_selection_rejected(self):
        with pytest.raises(SelectionError, match="at least one character"):
            fold_selection(FoldState("abc"), 1, 1)

    def test_out_of_bounds_rejected(self):
        with pytest.raises(SelectionError, match="out of bounds"):
            fold_selection(FoldState("abc"), 1, 9)

    def test_state_untouched_on_error(self):
        state = FoldState("a[bc")
        with pytest.raises(SelectionError):
            fold_selection(state, 1, 3)
        assert state.buffer == "a[bc"

    def test_range_containing_selection_shrinks(self):
        state = FoldState("Smith 2020", ranges=((0, 10),))
        folded = fold_selection(state, 0, 5)
        assert folded.buffer == "[*] 2020"
        assert folded.ranges == ((0, 8),)

    def test_partial_overlap_rejected(self):
        state = FoldState("abcdefgh", ranges=((0, 3),))
        with pytest.raises(SelectionError, match="marked expression"):
            fold_selection(state, 2, 6)

    def test_ranges_after_fold_shift(self):
        state = FoldState("[abc] 2020", ranges=((6, 10),))
        folded = fold_selection(state, 0, 5)
        assert folded.ranges == ((4, 8),)

    def test_selection_inside_token_rejected(self):
        state = fold_selection(FoldState("a[x]b"), 1, 4)
        with pytest.raises(SelectionError, match="cuts through folded text"):
            fold_selection(state, 2, 3)
        assert unfold_all(state).buffer == "a[x]b"

    @pytest.mark.parametrize("start,end", [(7, 8), (8, 7)])
    def test_selection_inside_second_token_rejected(self, start, end):
        state = fold_selection(FoldState("[a] b [c]"), 6, 9)
        state = fold_selection(state, 0, 3)
        with pytest.raises(SelectionError, match="cuts through folded text"):
            fold_selection(state, start, end)
        assert state.pieces == ("[a]", "[c]")

    def test_random_folds_unfold_to_original_text(self):
        rng = random.Random(7)
        nested = 0
        for _ in range(400):
            text = "".join(rng.choice("ab[]{}* ") for _ in range(rng.randint(1, 16)))
            if PLACEHOLDER in text:
                continue
            state = FoldState(text)
            for _ in range(10):
                start = rng.randint(0, len(state.buffer))
                end = rng.randint(0, len(state.buffer))
                try:
                    folded = fold_selection(state, start, end)
                except SelectionError:
                    continue
                if PLACEHOLDER in state.buffer[min(start, end):max(start, end)]:
                    nested += 1
                state = folded
                assert len(state.pieces) == state.fold_count
                assert expand(state.buffer, state.pieces) == text
                assert unfold_all(state).buffer == text
        assert nested > 0


class TestMarking:
    def test_mark_and_compile(self):
        state = mark_expression(FoldState("Smith 2020"), 6, 10)
        assert state.ranges == ((6, 10),)
        assert compile_folded(state) == "[{Smith }+[%s]]"

    def test_mark_literal_removes(self):
        state = mark_expression(FoldState("Smith 2020"), 0, 10)
        state = mark_literal(state, 5, 6)
        assert state.ranges == ((0, 5), (6, 10))
        assert compile_folded(state) == "[[%s]+{ }+[%s]]"

    def test_mark_widens_to_whole_token(self):
        state = FoldState("a[*]b", pieces=("[x]",))
        state = mark_expression(state, 2, 3)
        assert state.ranges == ((1, 4),)
        assert compile_folded(state) == "[{a}+[%s]+{b}]"

    def test_compile_translates_through_folds(self):
        state = fold_selection(FoldState("Smith [abc] 2020"), 6, 11)
        assert state.buffer == "Smith [*] 2020"
        state = mark_expression(state, 10, 14)
        doc = expanded_doc(state)
        assert [(s.type, s.text) for s in doc] == [
            (LITERAL, "Smith [abc] "),
            (EXPR, "2020"),
        ]
        assert compile_folded(state) == "[{Smith [abc] }+[%s]]"

    def test_unfold_translates_ranges(self):
        state = fold_selection(FoldState("Smith [abc] 2020"), 6, 11)
        state = mark_expression(state, 10, 14)
        unfolded = unfold_all(state)
        assert unfolded.ranges == ((12, 16),)

    def test_compile_empty(self):
        assert compile_folded(FoldState()) == ""


class TestReplaceRange:
    state = FoldState("a[*]b", pieces=("[x]",))

    def test_edit_outside_token(self):
        edited = replace_range(self.state, 4, 5, "cd")
        assert edited.buffer == "a[*]cd"
        assert edited.pieces == ("[x]",)

    def test_cut_through_token_rejected(self):
        with pytest.raises(SelectionError, match="cut through"):
            replace_range(self.state, 2, 3, "")

    def test_removing_token_drops_piece(self):
        edited = replace_range(self.state, 0, 5, "z")
        assert edited.buffer == "z"
        assert edited.pieces == ()

    def test_typing_placeholder_rejected(self):
        with pytest.raises(SelectionError, match="reserved"):
            replace_range(self.state, 0, 0, PLACEHOLDER)

    def test_completing_placeholder_rejected(self):
        with pytest.raises(SelectionError, match="reserved"):
            replace_range(FoldState("[* x"), 2, 2, "]")

    def test_ranges_shift_with_insert(self):
        edited = replace_range(FoldState("ab", ranges=((1, 2),)), 0, 0, "zz")
        assert edited.ranges == ((3, 4),)

    def test_range_grows_with_edit_inside(self):
        edited = replace_range(FoldState("abcd", ranges=((0, 4),)), 1, 3, "XYZW")
        assert edited.buffer == "aXYZWd"
        assert edited.ranges == ((0, 6),)
