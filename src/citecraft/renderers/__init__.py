"""Renderers for compiled citation templates.

The core only needs ``format(template, *values)``; the bracket renderer
ships so the CLI and TUI can preview output without an external engine.
"""

from .base import RenderError, Renderer
from .bracket import BracketRenderer
from .registry import resolve_renderer

__all__ = [
    "BracketRenderer",
    "RenderError",
    "Renderer",
    "resolve_renderer",
]
