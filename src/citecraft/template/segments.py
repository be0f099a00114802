"""Segment documents — the flat, run-length view of an edited buffer.

A Doc is a list of :class:`Segment` runs that together cover the whole
buffer.  Adjacent segments never share a type and, apart from the seed
segment of a fresh document, no segment is empty.  All functions here are
pure: they return a new list and never modify the segments they are given.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field, replace
from typing import Iterable, List, Sequence, Tuple


LITERAL = "literal"
EXPR = "expr"

SEGMENT_TYPES = (LITERAL, EXPR)


def _uid() -> str:
    return uuid.uuid4().hex[:7]


@dataclass
class Segment:
    """A maximal run of same-typed characters."""

    type: str
    text: str
    id: str = field(default_factory=_uid, compare=False)


Doc = List[Segment]


def new_doc(text: str = "") -> Doc:
    """A fresh document holding *text* as a single literal segment."""
    return [Segment(LITERAL, text)]


def plain_text(doc: Sequence[Segment]) -> str:
    return "".join(seg.text for seg in doc)


def normalize(doc: Sequence[Segment]) -> Doc:
    """Drop empty segments and merge adjacent ones of equal type."""
    out: Doc = []
    for seg in doc:
        if not seg.text:
            continue
        if out and out[-1].type == seg.type:
            out[-1] = replace(out[-1], text=out[-1].text + seg.text)
        else:
            out.append(replace(seg))
    return out


def is_normalized(doc: Sequence[Segment]) -> bool:
    """True if no segment is empty and no neighbours share a type."""
    for i, seg in enumerate(doc):
        if not seg.text:
            return False
        if i and doc[i - 1].type == seg.type:
            return False
    return True


def locate(doc: Sequence[Segment], offset: int) -> Tuple[int, int]:
    """Map an absolute offset to ``(segment_index, offset_in_segment)``.

    An offset on a boundary resolves to the end of the earlier segment.
    Offsets past the end clamp to the end of the last segment.
    """
    acc = 0
    for i, seg in enumerate(doc):
        length = len(seg.text)
        if offset <= acc + length:
            return i, max(offset - acc, 0)
        acc += length
    if not doc:
        return 0, 0
    return len(doc) - 1, len(doc[-1].text)


def split_at(
    doc: Sequence[Segment],
    segment_index: int,
    offset_in_segment: int,
    normalize_result: bool = True,
) -> Doc:
    """Divide one segment into two of the same type.

    A split on an existing boundary is a no-op.  With *normalize_result*
    the document is re-normalized, which merges the two halves back
    together; :func:`mark_range` splits without normalizing so that the
    new boundary survives until the retyping step.
    """
    if segment_index < 0 or segment_index >= len(doc):
        return list(doc)
    seg = doc[segment_index]
    if offset_in_segment <= 0 or offset_in_segment >= len(seg.text):
        return list(doc)
    head = Segment(seg.type, seg.text[:offset_in_segment])
    tail = Segment(seg.type, seg.text[offset_in_segment:])
    result = list(doc[:segment_index]) + [head, tail] + list(doc[segment_index + 1:])
    return normalize(result) if normalize_result else result


def mark_range(doc: Sequence[Segment], start: int, end: int, seg_type: str) -> Doc:
    """Retype every character in ``[start, end)`` to *seg_type*.

    Inverted bounds are swapped.  The end boundary is split first so the
    start split never shifts the index it was computed against; both
    splits happen on the unnormalized document.
    """
    if seg_type not in SEGMENT_TYPES:
        raise ValueError(f"Unknown segment type: {seg_type!r}")
    if end < start:
        start, end = end, start
    total = len(plain_text(doc))
    start = max(0, min(start, total))
    end = max(0, min(end, total))
    if start == end:
        return normalize(doc)

    d = list(doc)
    index, offset = locate(d, end)
    d = split_at(d, index, offset, normalize_result=False)
    index, offset = locate(d, start)
    d = split_at(d, index, offset, normalize_result=False)

    out: Doc = []
    cursor = 0
    for seg in d:
        seg_start, seg_end = cursor, cursor + len(seg.text)
        if seg.text and seg_start >= start and seg_end <= end:
            out.append(replace(seg, type=seg_type))
        else:
            out.append(seg)
        cursor = seg_end
    return normalize(out)


def segments_from_ranges(text: str, ranges: Iterable[Tuple[int, int]]) -> Doc:
    """Build a normalized Doc: characters inside any range are ``expr``."""
    inside = [False] * len(text)
    for start, end in ranges:
        for i in range(max(start, 0), min(end, len(text))):
            inside[i] = True
    doc: Doc = []
    for i, ch in enumerate(text):
        seg_type = EXPR if inside[i] else LITERAL
        if doc and doc[-1].type == seg_type:
            doc[-1].text += ch
        else:
            doc.append(Segment(seg_type, ch))
    return doc


def compile_segment(seg: Segment) -> str:
    """Compile one run.

    Literal runs neutralize ``}`` by substituting ``)``; no backslash
    escaping happens here, unlike :class:`~citecraft.template.addends.Literal`.
    """
    if seg.type == EXPR:
        return "[%s]"
    return "{" + seg.text.replace("}", ")") + "}"


def compile_segments(doc: Sequence[Segment]) -> str:
    """Compile a Doc to ``[part+part+...]``; an empty buffer gives ``""``."""
    runs = normalize(doc)
    if not runs:
        return ""
    return "[" + "+".join(compile_segment(seg) for seg in runs) + "]"


def expression_count(doc: Sequence[Segment]) -> int:
    return sum(1 for seg in normalize(doc) if seg.type == EXPR)
