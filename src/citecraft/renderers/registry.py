"""Renderer registry — resolve renderer names to instances."""

from __future__ import annotations

import importlib
from typing import Callable, Dict

from .base import Renderer
from .bracket import BracketRenderer


BUILTIN_RENDERERS: Dict[str, Callable[[], Renderer]] = {
    "bracket": BracketRenderer,
}


def resolve_renderer(name_or_path: str) -> Renderer:
    """Resolve a renderer by built-in name or dotted import path.

    ``"my_package.CslRenderer"`` is imported and instantiated with no
    arguments.  Raises ValueError if the name cannot be resolved.
    """
    factory = BUILTIN_RENDERERS.get(name_or_path)
    if factory is not None:
        return factory()

    module_path, _, class_name = name_or_path.rpartition(".")
    if not module_path:
        raise ValueError(
            f"Unknown renderer '{name_or_path}'. "
            f"Built-in renderers: {', '.join(sorted(BUILTIN_RENDERERS))}."
        )
    try:
        renderer_cls = getattr(importlib.import_module(module_path), class_name)
    except (ImportError, AttributeError) as exc:
        raise ValueError(f"Cannot import renderer '{name_or_path}': {exc}") from exc
    return renderer_cls()
