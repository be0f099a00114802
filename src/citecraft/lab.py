"""CombinationLab — preview a template against subsets of its arguments.

For n selected arguments there are ``2**n - 1`` non-empty subsets, so the
enumeration is capped.  Past the cap the lab either returns one advisory
row (``overflow="refuse"``) or a random sample of subsets drawn without
replacement (``overflow="sample"``).
"""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass, field
from typing import Callable, Iterable, List, Optional, Sequence

from citecraft.renderers.base import Renderer
from citecraft.sync import TemplateSync

logger = logging.getLogger(__name__)

DEFAULT_MAX_COMBINATIONS = 4096
DEFAULT_SAMPLE_BUDGET = 256


@dataclass
class ComboRow:
    """One rendered subset: which arguments were present and the output."""

    label: str
    inputs: List[Optional[str]] = field(default_factory=list)
    output: str = ""
    advisory: bool = False


class CombinationLab:
    """Argument state plus renderer previews for one template.

    Args:
        renderer: Anything with ``format(template, *values)``.
        sync: Optional :class:`TemplateSync`; when given, the lab follows
            its template and variable list.
        max_combinations: Largest subset count enumerated in full.
        overflow: ``"refuse"`` or ``"sample"``.
        sample_budget: Number of subsets drawn in ``"sample"`` mode.
        seed: Seed for sampling, for reproducible previews.
    """

    def __init__(
        self,
        renderer: Renderer,
        sync: Optional[TemplateSync] = None,
        max_combinations: int = DEFAULT_MAX_COMBINATIONS,
        overflow: str = "refuse",
        sample_budget: int = DEFAULT_SAMPLE_BUDGET,
        seed: Optional[int] = None,
    ) -> None:
        if overflow not in ("refuse", "sample"):
            raise ValueError(f"Unknown overflow mode: {overflow!r}")
        self.renderer = renderer
        self.max_combinations = max_combinations
        self.overflow = overflow
        self.sample_budget = sample_budget
        self._rng = random.Random(seed)
        self.template = ""
        self.arg_names: List[str] = []
        self.combo_select_mask: List[bool] = []
        self._unsubscribe: Optional[Callable[[], None]] = None
        if sync is not None:
            self._unsubscribe = sync.subscribe(self._on_sync)

    def close(self) -> None:
        """Stop following the sync source."""
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    def _on_sync(self, variables: List[str], template: str) -> None:
        self.set_arguments(variables)
        self.template = template

    # ── Arguments ────────────────────────────────────────────────

    def set_arguments(self, names: Iterable[str]) -> None:
        """Replace the argument list; blank names are dropped."""
        self.arg_names = [str(n).strip() for n in names if str(n).strip()]
        self._sync_combo_mask()

    def _sync_combo_mask(self) -> None:
        old = self.combo_select_mask
        self.combo_select_mask = [
            old[i] if i < len(old) else True for i in range(len(self.arg_names))
        ]

    def toggle_argument(self, index: int) -> None:
        self.combo_select_mask[index] = not self.combo_select_mask[index]

    def selected_indices(self) -> List[int]:
        return [i for i in range(len(self.arg_names)) if self.combo_select_mask[i]]

    @property
    def prepared_values(self) -> List[Optional[str]]:
        """Preview values mirror the argument names."""
        return list(self.arg_names)

    @property
    def combo_count(self) -> int:
        k = len(self.selected_indices())
        return (1 << k) - 1 if k else 0

    # ── Rendering ────────────────────────────────────────────────

    def render(self, values: Sequence[Optional[str]]) -> str:
        """Format the template, turning renderer failures into inline text."""
        try:
            return self.renderer.format(self.template, *values) or ""
        except Exception as exc:
            logger.warning("Renderer failed on %r: %s", self.template, exc)
            return f"Renderer error: {exc}"

    @property
    def result(self) -> str:
        """The template rendered with every argument present."""
        if not self.template.strip():
            return ""
        return self.render(self.prepared_values)

    def compute_combo_rows(self) -> List[ComboRow]:
        """Render every non-empty subset of the selected arguments."""
        if not self.template.strip():
            return []
        idxs = self.selected_indices()
        if not idxs:
            return []

        total = (1 << len(idxs)) - 1
        if total > self.max_combinations:
            if self.overflow == "refuse":
                logger.info("Refusing %d combinations (cap %d)", total, self.max_combinations)
                return [ComboRow(
                    label="—",
                    output=(
                        f"Too many combinations selected ({total}). "
                        f"Reduce selection to ≤ {self.max_combinations}."
                    ),
                    advisory=True,
                )]
            budget = min(self.sample_budget, total)
            masks = sorted(self._rng.sample(range(1, total + 1), budget))
            logger.info("Sampling %d of %d combinations", budget, total)
        else:
            masks = range(1, total + 1)

        return [self._row(self._subset(idxs, mask)) for mask in masks]

    @staticmethod
    def _subset(idxs: Sequence[int], mask: int) -> List[int]:
        return [idxs[b] for b in range(len(idxs)) if mask & (1 << b)]

    def _row(self, subset: List[int]) -> ComboRow:
        chosen = set(subset)
        inputs = [
            name if i in chosen else None for i, name in enumerate(self.arg_names)
        ]
        label = ", ".join(self.arg_names[i] for i in subset)
        return ComboRow(label=label, inputs=inputs, output=self.render(inputs))
