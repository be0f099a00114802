"""TemplateSync — hands the current template from the editor to the preview.

One instance per editing session.  The editor calls :meth:`set_data` after
every change; consumers subscribe with a callback.
"""

from __future__ import annotations

from typing import Callable, List, Optional, Sequence


SyncCallback = Callable[[List[str], str], None]


class TemplateSync:
    """Observable pair of (variables, compiled template)."""

    def __init__(self) -> None:
        self._variables: List[str] = []
        self._template = ""
        self._subscribers: List[SyncCallback] = []

    @property
    def variables(self) -> List[str]:
        return list(self._variables)

    @property
    def template(self) -> str:
        return self._template

    def set_data(self, variables: Optional[Sequence[str]], template: Optional[str]) -> None:
        self._variables = list(variables or [])
        self._template = template or ""
        for callback in list(self._subscribers):
            callback(self.variables, self._template)

    def subscribe(self, callback: SyncCallback, replay: bool = True) -> Callable[[], None]:
        """Register *callback*; returns a function that unsubscribes it.

        With *replay* the callback immediately receives the current data.
        """
        self._subscribers.append(callback)
        if replay:
            callback(self.variables, self._template)

        def _unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return _unsubscribe
