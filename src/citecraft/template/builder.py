"""CitationTemplate — the mutable owner of a template's parts.

Holds the current top-level addends and a bounded stack of prior
snapshots for linear undo.  Snapshots are immutable tuples, so taking one
is cheap and comparing them is done by identity of their elements:
replacing a part with a value-equal but newly built addend still counts
as a change and pushes history.
"""

from __future__ import annotations

import logging
from typing import Callable, List, Optional, Sequence, Tuple

from .addends import (
    Addend,
    Expression,
    Literal,
    Variable,
    collect_variables,
    compiled_text,
    display_text,
)

logger = logging.getLogger(__name__)

DEFAULT_HISTORY_LIMIT = 100

Parts = Tuple[Addend, ...]


class WrapRangeError(ValueError):
    """Base class for rejected ``wrap_expression`` ranges."""


class NonIntegerIndexError(WrapRangeError):
    """A wrap index is not an integer."""


class InvertedRangeError(WrapRangeError):
    """The end index is before the start index."""


class IndexOutOfRangeError(WrapRangeError):
    """A wrap index lies outside the template."""


def _is_int(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


class CitationTemplate:
    """Ordered addends plus undo history.

    Args:
        history_limit: Maximum number of snapshots kept; the oldest is
            dropped first.  ``None`` keeps everything.
    """

    def __init__(self, history_limit: Optional[int] = DEFAULT_HISTORY_LIMIT) -> None:
        self._parts: Parts = ()
        self._history: List[Parts] = []
        self._history_limit = history_limit

    # ── Mutations ────────────────────────────────────────────────

    def add_literal(self, text: str) -> None:
        self._update(lambda parts: parts + [Literal(text)])

    def add_variable(self, name: str) -> None:
        self._update(lambda parts: parts + [Variable(name)])

    def replace_parts(
        self,
        parts: Sequence[Addend],
        record_history: bool = True,
        reset_history: bool = False,
    ) -> None:
        """Atomically replace the whole sequence."""
        self._set_parts(parts, record_history=record_history, reset_history=reset_history)

    def wrap_expression(self, start_index: int, end_index: int) -> None:
        """Replace parts ``start_index..end_index`` (inclusive) with one Expression.

        Raises:
            NonIntegerIndexError: Either index is not an integer.
            InvertedRangeError: ``end_index < start_index``.
            IndexOutOfRangeError: Either index is outside ``[0, len - 1]``.
        """
        self._validate_wrap(start_index, end_index)

        def _wrap(parts: List[Addend]) -> List[Addend]:
            replacement = Expression(parts[start_index:end_index + 1])
            parts[start_index:end_index + 1] = [replacement]
            return parts

        self._update(_wrap)
        logger.debug("Wrapped parts %d..%d as an expression", start_index, end_index)

    def undo(self) -> bool:
        """Restore the most recent snapshot.  Returns False if there is none."""
        if not self._history:
            return False
        self._parts = self._history.pop()
        return True

    def can_undo(self) -> bool:
        return bool(self._history)

    # ── Views ────────────────────────────────────────────────────

    @property
    def history_size(self) -> int:
        return len(self._history)

    def get_parts(self) -> List[Addend]:
        """A copy of the current parts; edits to it do not reach the template."""
        return list(self._parts)

    def get_variables(self) -> List[str]:
        return collect_variables(self._parts)

    def display(self) -> str:
        return display_text(self._parts)

    def compiled(self) -> str:
        return compiled_text(self._parts)

    def __len__(self) -> int:
        return len(self._parts)

    def __str__(self) -> str:
        return self.display()

    # ── Internals ────────────────────────────────────────────────

    def _validate_wrap(self, start_index, end_index) -> None:
        if not _is_int(start_index):
            raise NonIntegerIndexError("Start index must be integer.")
        if not _is_int(end_index):
            raise NonIntegerIndexError("End index must be integer.")
        if end_index < start_index:
            raise InvertedRangeError(
                "End index must be greater than or equal to the start index."
            )
        if start_index < 0 or end_index >= len(self._parts):
            raise IndexOutOfRangeError(
                "Start and end index must be within the range of the template size."
            )

    def _update(self, mutator: Callable[[List[Addend]], List[Addend]]) -> None:
        self._set_parts(mutator(list(self._parts)))

    def _set_parts(
        self,
        parts: Sequence[Addend],
        record_history: bool = True,
        reset_history: bool = False,
    ) -> None:
        if self._same_parts(parts):
            if reset_history:
                self._history.clear()
            return

        if reset_history:
            self._history.clear()
        elif record_history:
            self._push_history(self._parts)

        self._parts = tuple(parts)

    def _push_history(self, snapshot: Parts) -> None:
        self._history.append(snapshot)
        if self._history_limit is not None and len(self._history) > self._history_limit:
            del self._history[0]

    def _same_parts(self, parts: Sequence[Addend]) -> bool:
        if len(parts) != len(self._parts):
            return False
        return all(a is b for a, b in zip(parts, self._parts))
