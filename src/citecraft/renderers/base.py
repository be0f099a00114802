"""Renderer protocol.

A renderer substitutes argument values into the ``[%s]`` placeholders of a
compiled template.  ``None`` marks an absent value; what happens to the
surrounding group is up to the renderer.
"""

from __future__ import annotations

from typing import Optional, Protocol, runtime_checkable


class RenderError(ValueError):
    """Raised by a renderer that cannot format a template."""


@runtime_checkable
class Renderer(Protocol):
    """Anything with a ``format(template, *values)`` method."""

    def format(self, template: str, *values: Optional[str]) -> str:
        ...
