"""Folding — collapse balanced spans of a buffer into opaque ``[*]`` tokens.

A :class:`FoldState` holds:

  - ``buffer`` — the folded text the user sees, with zero or more ``[*]``
    placeholder tokens
  - ``pieces`` — the fold table; ``pieces[n]`` is the expanded text of the
    n-th token counted left to right
  - ``ranges`` — marked expression spans, half-open, in folded
    coordinates, kept sorted, disjoint and non-adjacent

Every operation returns a new state.  Semantic problems with a selection
raise :class:`SelectionError` whose message is meant for the user; the
input state is never touched.

Compilation expands all folds, translates the marked ranges through the
fold-to-expanded index map and emits one ``[%s]`` per marked run and one
``{...}`` per literal run.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Sequence, Tuple

from .segments import compile_segments, segments_from_ranges

logger = logging.getLogger(__name__)

PLACEHOLDER = "[*]"

Range = Tuple[int, int]


class SelectionError(ValueError):
    """A selection cannot be applied.  The message is user-facing."""


@dataclass(frozen=True)
class FoldState:
    """Folded buffer, fold table and marked ranges of one session."""

    buffer: str = ""
    pieces: Tuple[str, ...] = ()
    ranges: Tuple[Range, ...] = field(default_factory=tuple)

    @property
    def fold_count(self) -> int:
        return len(find_placeholders(self.buffer))


# ═══════════════════════════════════════════════════════════════════
# Placeholders and index maps
# ═══════════════════════════════════════════════════════════════════

def find_placeholders(text: str) -> List[int]:
    """Start offsets of the non-overlapping ``[*]`` tokens in *text*."""
    positions: List[int] = []
    i = text.find(PLACEHOLDER)
    while i != -1:
        positions.append(i)
        i = text.find(PLACEHOLDER, i + len(PLACEHOLDER))
    return positions


def expand_with_index_map(folded: str, pieces: Sequence[str]) -> Tuple[str, List[int]]:
    """Replace each token by its piece and map folded to expanded offsets.

    Returns ``(expanded, fold_to_expanded)`` where ``fold_to_expanded`` has
    ``len(folded) + 1`` entries and never decreases.  Offsets inside a
    token map to the start of its piece.  A token with no table entry is
    left as literal text.
    """
    out: List[str] = []
    index_map = [0] * (len(folded) + 1)
    length = 0
    ordinal = 0
    i = 0
    n = len(folded)
    width = len(PLACEHOLDER)
    while i < n:
        if folded.startswith(PLACEHOLDER, i):
            if ordinal < len(pieces):
                piece = pieces[ordinal]
                ordinal += 1
                for k in range(width):
                    index_map[i + k] = length
                out.append(piece)
                length += len(piece)
                i += width
                continue
            ordinal += 1
            # Orphan token: copy it through character by character
            for k in range(width):
                index_map[i + k] = length + k
            out.append(PLACEHOLDER)
            length += width
            i += width
            continue
        index_map[i] = length
        out.append(folded[i])
        length += 1
        i += 1
    index_map[n] = length
    return "".join(out), index_map


def expand(folded: str, pieces: Sequence[str]) -> str:
    return expand_with_index_map(folded, pieces)[0]


def translate_range(span: Range, index_map: Sequence[int], expanded_length: int) -> Range:
    """Map a folded-coordinate range onto expanded coordinates.

    Bounds past the last known offset default to the expanded length.
    """
    start, end = span
    new_start = index_map[start] if 0 <= start < len(index_map) else expanded_length
    new_end = index_map[end] if 0 <= end < len(index_map) else expanded_length
    return new_start, max(new_start, new_end)


def is_balanced_span(text: str) -> bool:
    """True if ``[]`` and ``{}`` nesting both return to zero.

    Neither depth may go negative.  A backslash escapes the next
    character.
    """
    square = 0
    curly = 0
    i = 0
    while i < len(text):
        ch = text[i]
        if ch == "\\":
            i += 2
            continue
        if ch == "[":
            square += 1
        elif ch == "]":
            square -= 1
            if square < 0:
                return False
        elif ch == "{":
            curly += 1
        elif ch == "}":
            curly -= 1
            if curly < 0:
                return False
        i += 1
    return square == 0 and curly == 0


# ═══════════════════════════════════════════════════════════════════
# Range bookkeeping
# ═══════════════════════════════════════════════════════════════════

def merge_ranges(ranges: Iterable[Range]) -> Tuple[Range, ...]:
    """Sort and coalesce overlapping or adjacent ranges; drop empty ones."""
    merged: List[Range] = []
    for start, end in sorted((s, e) for s, e in ranges if e > s):
        if merged and start <= merged[-1][1]:
            merged[-1] = (merged[-1][0], max(merged[-1][1], end))
        else:
            merged.append((start, end))
    return tuple(merged)


def subtract_range(ranges: Iterable[Range], start: int, end: int) -> Tuple[Range, ...]:
    """Remove ``[start, end)`` from every range."""
    out: List[Range] = []
    for s, e in ranges:
        if e <= start or s >= end:
            out.append((s, e))
            continue
        if s < start:
            out.append((s, start))
        if e > end:
            out.append((end, e))
    return merge_ranges(out)


def _remap_ranges(ranges: Iterable[Range], start: int, end: int, new_length: int) -> Tuple[Range, ...]:
    """Adjust ranges after ``[start, end)`` is replaced by *new_length* chars.

    A range covering the whole edited span stretches or shrinks with it;
    partial overlaps keep only their parts outside the edit.
    """
    delta = new_length - (end - start)
    out: List[Range] = []
    for s, e in ranges:
        if e <= start:
            out.append((s, e))
        elif s >= end:
            out.append((s + delta, e + delta))
        elif s <= start and e >= end:
            out.append((s, e + delta))
        else:
            if s < start:
                out.append((s, start))
            if e > end:
                out.append((end + delta, e + delta))
    return merge_ranges(out)


def _padded_pieces(state: FoldState) -> Tuple[str, ...]:
    """The fold table with orphan tokens mapped to themselves."""
    missing = len(find_placeholders(state.buffer)) - len(state.pieces)
    if missing > 0:
        return state.pieces + (PLACEHOLDER,) * missing
    return state.pieces


def _check_selection(state: FoldState, start: int, end: int) -> Range:
    if end < start:
        start, end = end, start
    if start == end:
        raise SelectionError("Please select at least one character.")
    if start < 0 or end > len(state.buffer):
        raise SelectionError("Selection is out of bounds.")
    return start, end


def _snap_to_tokens(buffer: str, start: int, end: int) -> Range:
    """Widen a range so it never cuts through a placeholder token."""
    width = len(PLACEHOLDER)
    for pos in find_placeholders(buffer):
        if pos < start < pos + width:
            start = pos
        if pos < end < pos + width:
            end = pos + width
    return start, end


# ═══════════════════════════════════════════════════════════════════
# Operations
# ═══════════════════════════════════════════════════════════════════

def fold_selection(state: FoldState, start: int, end: int) -> FoldState:
    """Collapse ``buffer[start:end]`` into a single ``[*]`` token.

    Placeholders already inside the span are expanded into the new piece,
    and the fold table is spliced so that ordinals stay aligned.

    Raises:
        SelectionError: Empty, out of bounds, unbalanced, cutting
            through a placeholder, or cutting across a marked expression.
    """
    start, end = _check_selection(state, start, end)
    span = state.buffer[start:end]
    if not is_balanced_span(span):
        raise SelectionError("Only balanced bracket and brace spans can be folded.")
    if _snap_to_tokens(state.buffer, start, end) != (start, end):
        raise SelectionError("Selection cuts through folded text.")
    for s, e in state.ranges:
        if s < end and e > start and not (s <= start and e >= end):
            raise SelectionError("Selection overlaps part of a marked expression.")

    tokens = find_placeholders(state.buffer)
    width = len(PLACEHOLDER)
    before = sum(1 for pos in tokens if pos < start)
    inside = sum(1 for pos in tokens if pos >= start and pos + width <= end)

    pieces = _padded_pieces(state)
    piece = expand(span, pieces[before:before + inside])
    new_pieces = pieces[:before] + (piece,) + pieces[before + inside:]
    new_buffer = state.buffer[:start] + PLACEHOLDER + state.buffer[end:]
    logger.debug(
        "Folded %d chars at %d (%d nested fold(s)) into placeholder #%d",
        end - start, start, inside, before,
    )
    return FoldState(
        buffer=new_buffer,
        pieces=new_pieces,
        ranges=_remap_ranges(state.ranges, start, end, width),
    )


def unfold_all(state: FoldState) -> FoldState:
    """Expand every placeholder and clear the fold table."""
    expanded, index_map = expand_with_index_map(state.buffer, state.pieces)
    ranges = [translate_range(r, index_map, len(expanded)) for r in state.ranges]
    return FoldState(buffer=expanded, pieces=(), ranges=merge_ranges(ranges))


def mark_expression(state: FoldState, start: int, end: int) -> FoldState:
    """Mark ``[start, end)`` as an expression (widened to whole tokens)."""
    start, end = _check_selection(state, start, end)
    start, end = _snap_to_tokens(state.buffer, start, end)
    return FoldState(
        buffer=state.buffer,
        pieces=state.pieces,
        ranges=merge_ranges(state.ranges + ((start, end),)),
    )


def mark_literal(state: FoldState, start: int, end: int) -> FoldState:
    """Unmark ``[start, end)``."""
    start, end = _check_selection(state, start, end)
    start, end = _snap_to_tokens(state.buffer, start, end)
    return FoldState(
        buffer=state.buffer,
        pieces=state.pieces,
        ranges=subtract_range(state.ranges, start, end),
    )


def replace_range(state: FoldState, start: int, end: int, text: str) -> FoldState:
    """Apply a text edit to the folded buffer.

    Placeholders removed by the edit drop their table entries.  Edits may
    not cut through a placeholder or type a new one.
    """
    if end < start:
        start, end = end, start
    if start < 0 or end > len(state.buffer):
        raise SelectionError("Selection is out of bounds.")
    if PLACEHOLDER in text:
        raise SelectionError(f"{PLACEHOLDER} is reserved for folded text.")
    if _snap_to_tokens(state.buffer, start, end) != (start, end):
        raise SelectionError("Edits cannot cut through folded text.")

    tokens = find_placeholders(state.buffer)
    width = len(PLACEHOLDER)
    removed = {n for n, pos in enumerate(tokens) if pos >= start and pos + width <= end}
    pieces = tuple(p for n, p in enumerate(state.pieces) if n not in removed)
    new_buffer = state.buffer[:start] + text + state.buffer[end:]
    # Typing next to "[*" or "*]" can complete a new token
    if len(find_placeholders(new_buffer)) != len(tokens) - len(removed):
        raise SelectionError(f"{PLACEHOLDER} is reserved for folded text.")
    return FoldState(
        buffer=new_buffer,
        pieces=pieces,
        ranges=_remap_ranges(state.ranges, start, end, len(text)),
    )


def placeholder_text(state: FoldState, ordinal: int) -> Optional[str]:
    """The text folded into token *ordinal*, or None."""
    if 0 <= ordinal < len(state.pieces):
        return state.pieces[ordinal]
    return None


def expanded_doc(state: FoldState):
    """Segment Doc of the fully expanded buffer."""
    expanded, index_map = expand_with_index_map(state.buffer, state.pieces)
    ranges = [translate_range(r, index_map, len(expanded)) for r in state.ranges]
    return segments_from_ranges(expanded, ranges)


def compile_folded(state: FoldState) -> str:
    """Compile the expanded text with its marked expressions."""
    return compile_segments(expanded_doc(state))
