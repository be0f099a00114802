"""Reference renderer for the compiled bracket grammar.

Values fill ``[%s]`` placeholders left to right.  A ``None`` value drops
its nearest enclosing group; a placeholder outside every group renders as
the empty string.  Values are consumed in order whether or not their group
is kept, so later placeholders always receive the value meant for them.
"""

from __future__ import annotations

import logging
from typing import Iterator, Optional, Sequence

from ..template.addends import Addend, Expression, Literal, Variable
from ..template.tokenizer import CompiledTemplateError, parse_compiled
from .base import RenderError

logger = logging.getLogger(__name__)


class BracketRenderer:
    """Render compiled citation templates."""

    name = "bracket"

    def format(self, template: str, *values: Optional[str]) -> str:
        try:
            parts = parse_compiled(template)
        except CompiledTemplateError as exc:
            raise RenderError(str(exc)) from exc

        needed = sum(len(part.variables()) for part in parts)
        if len(values) < needed:
            raise RenderError(
                f"Template has {needed} placeholder(s) but only {len(values)} value(s) were given."
            )
        if len(values) > needed:
            logger.debug("Ignoring %d extra value(s)", len(values) - needed)

        stream = iter(values)
        return "".join(self._render_top(part, stream) for part in parts)

    def _render_top(self, part: Addend, stream: Iterator[Optional[str]]) -> str:
        if isinstance(part, Expression):
            return self._render_group(part.children, stream) or ""
        if isinstance(part, Variable):
            return next(stream) or ""
        return part.text

    def _render_group(self, children: Sequence[Addend], stream: Iterator[Optional[str]]) -> Optional[str]:
        """Render a group, or return None if one of its own values is absent."""
        out: list[str] = []
        dropped = False
        for child in children:
            if isinstance(child, Literal):
                out.append(child.text)
            elif isinstance(child, Variable):
                value = next(stream)
                if value is None:
                    dropped = True
                else:
                    out.append(value)
            else:
                out.append(self._render_group(child.children, stream) or "")
        if dropped:
            return None
        return "".join(out)
