"""Tokenizer — turn template strings back into addends.

Two entry points:

  - :func:`tokenize_citation_template` reads the human citation syntax
    (``[Author], [Year].``): every bracket span becomes a Variable and the
    text around it is split into punctuation-aligned Literals.  Bracket
    spans are never read as Expressions, so a compiled string containing
    groups does not round-trip through this function.
  - :func:`parse_compiled` inverts the compiled grammar exactly, including
    nested Expressions and escaped literals.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import List, Optional, Sequence

from .addends import (
    PLACEHOLDER_TOKEN,
    Addend,
    Expression,
    Literal,
    Variable,
    unescape_literal_text,
)

logger = logging.getLogger(__name__)

PUNCTUATION = frozenset(',:;#()"')

_PARENTHESIZED = re.compile(r"\([^)]*\)")


class CompiledTemplateError(ValueError):
    """Raised when a compiled template does not follow the grammar."""


@dataclass
class Token:
    """A raw token: ``arg`` (bracket span) or ``lit`` (literal run)."""

    type: str
    value: str


# ═══════════════════════════════════════════════════════════════════
# Citation syntax
# ═══════════════════════════════════════════════════════════════════

def split_literal(chunk: str) -> List[str]:
    """Split literal text at punctuation, one token per punctuation char.

    Newlines become spaces.  Spaces and periods stay with the run they
    are in.
    """
    if not chunk:
        return []
    chunk = chunk.replace("\n", " ").replace("\r", " ")
    runs: List[str] = []
    current = ""
    for ch in chunk:
        if ch in PUNCTUATION:
            if current:
                runs.append(current)
                current = ""
            runs.append(ch)
        else:
            current += ch
    if current:
        runs.append(current)
    return runs


def _find_closing_bracket(text: str, start: int) -> int:
    """Index of the ``]`` closing the ``[`` at *start*, or -1."""
    depth = 0
    for j in range(start, len(text)):
        if text[j] == "[":
            depth += 1
        elif text[j] == "]":
            depth -= 1
            if depth == 0:
                return j
    return -1


def scan_citation_template(template: str) -> List[Token]:
    """Split a citation template into ``arg`` and ``lit`` tokens."""
    tokens: List[Token] = []
    i = 0
    n = len(template)
    while i < n:
        if template[i] == "[":
            j = _find_closing_bracket(template, i)
            if j == -1:
                # Unterminated: the rest is literal text
                tokens.extend(Token("lit", run) for run in split_literal(template[i:]))
                break
            # Parenthesized annotations inside brackets are not part of the name
            name = _PARENTHESIZED.sub("", template[i + 1:j]).strip()
            tokens.append(Token("arg", name))
            i = j + 1
        else:
            k = template.find("[", i)
            end = n if k == -1 else k
            tokens.extend(Token("lit", run) for run in split_literal(template[i:end]))
            i = end
    return tokens


def tokenize_citation_template(template: str) -> List[Addend]:
    """Parse a citation template into a flat list of addends.

    ``[Author], [Year]`` → ``Variable("Author"), Literal(","), Literal(" "),
    Variable("Year")``.  Empty or whitespace-only input gives ``[]``.
    """
    if not template.strip():
        return []
    addends: List[Addend] = []
    for token in scan_citation_template(template):
        if token.type == "arg":
            addends.append(Variable(token.value))
        elif token.value:
            addends.append(Literal(token.value))
    return addends


parse = tokenize_citation_template


# ═══════════════════════════════════════════════════════════════════
# Compiled grammar
# ═══════════════════════════════════════════════════════════════════

class _CompiledParser:
    """Recursive-descent parser for the compiled grammar."""

    def __init__(self, text: str, names: Optional[Sequence[str]]) -> None:
        self.text = text
        self.pos = 0
        self.names = list(names or [])
        self.arg_count = 0

    def error(self, message: str) -> CompiledTemplateError:
        return CompiledTemplateError(f"{message} at offset {self.pos} in {self.text!r}")

    def peek(self) -> str:
        return self.text[self.pos] if self.pos < len(self.text) else ""

    def parse_top(self) -> List[Addend]:
        parts: List[Addend] = []
        while self.pos < len(self.text):
            parts.append(self.parse_part())
            # Top-level parts may be joined with '+' or simply concatenated
            if self.peek() == "+":
                self.pos += 1
        return parts

    def parse_part(self) -> Addend:
        ch = self.peek()
        if ch == "{":
            return self.parse_literal()
        if ch == "[":
            if self.text.startswith(PLACEHOLDER_TOKEN, self.pos):
                self.pos += len(PLACEHOLDER_TOKEN)
                return self.next_variable()
            return self.parse_group()
        raise self.error(f"Unexpected {ch!r}")

    def parse_literal(self) -> Literal:
        self.pos += 1  # '{'
        start = self.pos
        while self.pos < len(self.text):
            ch = self.text[self.pos]
            if ch == "\\":
                self.pos += 2
                continue
            if ch == "}":
                raw = self.text[start:self.pos]
                self.pos += 1
                return Literal(unescape_literal_text(raw))
            self.pos += 1
        raise self.error("Unterminated literal")

    def parse_group(self) -> Expression:
        self.pos += 1  # '['
        children: List[Addend] = []
        while True:
            if self.pos >= len(self.text):
                raise self.error("Unterminated group")
            if self.peek() == "]":
                self.pos += 1
                break
            children.append(self.parse_part())
            if self.peek() == "+":
                self.pos += 1
            elif self.peek() != "]":
                raise self.error("Expected '+' or ']'")
        if not children:
            raise self.error("Empty group")
        return Expression(children)

    def next_variable(self) -> Variable:
        index = self.arg_count
        self.arg_count += 1
        if index < len(self.names):
            return Variable(self.names[index])
        return Variable(f"Arg{index + 1}")


def parse_compiled(compiled: str, names: Optional[Sequence[str]] = None) -> List[Addend]:
    """Parse a compiled template back into addends, groups included.

    Placeholders take their names from *names* in order; missing names
    default to ``Arg1``, ``Arg2``, …

    Raises:
        CompiledTemplateError: If *compiled* is not valid compiled syntax.
    """
    if not compiled.strip():
        return []
    parser = _CompiledParser(compiled, names)
    parts = parser.parse_top()
    if names is not None and parser.arg_count != len(names):
        logger.debug(
            "Compiled template has %d placeholders but %d names were given",
            parser.arg_count, len(names),
        )
    return parts
