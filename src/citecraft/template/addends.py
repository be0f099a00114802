"""Addend model — the typed parts of a citation template.

Every addend carries two derived strings:

  - ``display``  — what the user sees in the editor
  - ``compiled`` — what the renderer consumes

and an ordered list of the variable names it contributes.  Addends are
immutable; a structural change replaces a node instead of editing it.

Compiled forms::

    Literal("Smith")                      → {Smith}
    Variable("Year")                      → [%s]
    Expression([Literal, Variable])       → [{Smith}+[%s]]
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Tuple, Union


PLACEHOLDER_TOKEN = "[%s]"

# Characters that would make a literal ambiguous inside the compiled grammar.
_ESCAPED_CHARS = frozenset("\\[]{}")


def escape_literal_text(text: str) -> str:
    """Backslash-escape brackets, braces and backslashes."""
    return "".join("\\" + ch if ch in _ESCAPED_CHARS else ch for ch in text)


def unescape_literal_text(text: str) -> str:
    """Drop one level of backslash escaping.

    A trailing lone backslash is kept as-is.
    """
    out: list[str] = []
    i = 0
    while i < len(text):
        ch = text[i]
        if ch == "\\" and i + 1 < len(text):
            out.append(text[i + 1])
            i += 2
            continue
        out.append(ch)
        i += 1
    return "".join(out)


def unescape_literal(compiled: str) -> str:
    """Recover the display text from a Literal's compiled form ``{...}``."""
    if len(compiled) < 2 or compiled[0] != "{" or compiled[-1] != "}":
        raise ValueError(f"Not a compiled literal: {compiled!r}")
    return unescape_literal_text(compiled[1:-1])


@dataclass(frozen=True, eq=False)
class Literal:
    """Raw text.  Contributes no variables."""

    text: str

    @property
    def display(self) -> str:
        return self.text

    @property
    def compiled(self) -> str:
        return "{" + escape_literal_text(self.text) + "}"

    def variables(self) -> List[str]:
        return []


@dataclass(frozen=True, eq=False)
class Variable:
    """A single-value placeholder.

    The name never reaches the compiled string; it only exists for the
    authoring UI and for enumerating arguments.
    """

    name: str

    @property
    def display(self) -> str:
        return self.name

    @property
    def compiled(self) -> str:
        return PLACEHOLDER_TOKEN

    def variables(self) -> List[str]:
        return [self.name]


@dataclass(frozen=True, eq=False)
class Expression:
    """An ordered group of addends rendered (or dropped) as a unit.

    Callers must not build an Expression from an empty child range; the
    check lives where the range is formed.
    """

    children: Tuple["Addend", ...]

    def __init__(self, children) -> None:
        object.__setattr__(self, "children", tuple(children))

    @property
    def display(self) -> str:
        return "".join(child.display for child in self.children)

    @property
    def compiled(self) -> str:
        return "[" + "+".join(child.compiled for child in self.children) + "]"

    def variables(self) -> List[str]:
        names: List[str] = []
        for child in self.children:
            names.extend(child.variables())
        return names


Addend = Union[Literal, Variable, Expression]


def addend_kind(addend: Addend) -> str:
    """Return ``"literal"``, ``"variable"`` or ``"expression"``."""
    match addend:
        case Literal():
            return "literal"
        case Variable():
            return "variable"
        case Expression():
            return "expression"
    raise TypeError(f"Not an addend: {addend!r}")


def display_text(parts) -> str:
    """Concatenate the display forms of a sequence of addends."""
    return "".join(part.display for part in parts)


def compiled_text(parts) -> str:
    """Concatenate the compiled forms of a sequence of addends."""
    return "".join(part.compiled for part in parts)


def collect_variables(parts) -> List[str]:
    """Flatten the variable names of a sequence of addends, in order."""
    names: List[str] = []
    for part in parts:
        names.extend(part.variables())
    return names
