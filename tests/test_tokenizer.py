"""Tests for the citation-template tokenizer and the compiled-grammar parser."""

from __future__ import annotations

import pytest

from citecraft.template.addends import (
    Expression,
    Literal,
    Variable,
    addend_kind,
    compiled_text,
)
from citecraft.template.tokenizer import (
    CompiledTemplateError,
    parse,
    parse_compiled,
    scan_citation_template,
    split_literal,
    tokenize_citation_template,
)


def _summary(parts):
    return [(addend_kind(p), p.display) for p in parts]


class TestSplitLiteral:
    def test_punctuation_is_its_own_run(self):
        assert split_literal(", ") == [",", " "]
        assert split_literal("a:b;c") == ["a", ":", "b", ";", "c"]

    def test_periods_and_spaces_stay_in_run(self):
        assert split_literal("J. Smith. ") == ["J. Smith. "]

    def test_newlines_become_spaces(self):
        assert split_literal("a\nb") == ["a b"]

    def test_empty(self):
        assert split_literal("") == []


class TestTokenizeCitationTemplate:
    def test_author_year(self):
        parts = parse("[Author], [Year]")
        assert _summary(parts) == [
            ("variable", "Author"),
            ("literal", ","),
            ("literal", " "),
            ("variable", "Year"),
        ]

    def test_trailing_text(self):
        parts = tokenize_citation_template("[Author] ([Year]). [Title].")
        assert [p.display for p in parts] == [
            "Author", " ", "(", "Year", ")", ". ", "Title", ".",
        ]

    def test_parenthesized_annotation_removed_from_name(self):
        parts = tokenize_citation_template("[Author (Last, First)]")
        assert _summary(parts) == [("variable", "Author")]

    def test_unterminated_bracket_becomes_literal(self):
        parts = tokenize_citation_template("[Author, 2020")
        assert all(isinstance(p, Literal) for p in parts)
        assert "".join(p.display for p in parts) == "[Author, 2020"

    def test_nested_brackets_form_one_name(self):
        parts = tokenize_citation_template("[A [B]]")
        assert _summary(parts) == [("variable", "A [B]")]

    @pytest.mark.parametrize("text", ["", "   ", "\n\t"])
    def test_blank_input(self, text):
        assert tokenize_citation_template(text) == []

    def test_compiled_groups_are_not_read_as_expressions(self):
        parts = tokenize_citation_template("[{Smith}+[%s]]")
        assert not any(isinstance(p, Expression) for p in parts)

    def test_scan_tokens(self):
        tokens = scan_citation_template("[A]:")
        assert [(t.type, t.value) for t in tokens] == [("arg", "A"), ("lit", ":")]


class TestParseCompiled:
    def test_group_with_names(self):
        parts = parse_compiled("[{Smith}+[%s]]", ["Year"])
        assert len(parts) == 1
        expr = parts[0]
        assert isinstance(expr, Expression)
        assert isinstance(expr.children[0], Literal)
        assert expr.children[0].text == "Smith"
        assert isinstance(expr.children[1], Variable)
        assert expr.children[1].name == "Year"

    def test_default_names(self):
        parts = parse_compiled("{a}[%s][%s]")
        assert [p.display for p in parts] == ["a", "Arg1", "Arg2"]

    def test_top_level_plus_separator(self):
        parts = parse_compiled("{a}+[%s]")
        assert _summary(parts) == [("literal", "a"), ("variable", "Arg1")]

    def test_flat_round_trip_preserves_display(self):
        original = [Literal("Smith, "), Variable("Year"), Literal(". {ed.}")]
        parsed = parse_compiled(compiled_text(original), ["Year"])
        assert [p.display for p in parsed] == [p.display for p in original]
        assert _summary(parsed) == _summary(original)

    def test_round_trip_with_escapes_and_nesting(self):
        original = [
            Literal("x[1]"),
            Expression([Variable("A"), Literal("\\"), Expression([Literal("}"), Variable("B")])]),
        ]
        compiled = compiled_text(original)
        parsed = parse_compiled(compiled, ["A", "B"])
        assert compiled_text(parsed) == compiled
        assert parsed[0].text == "x[1]"
        assert parsed[1].variables() == ["A", "B"]

    def test_blank(self):
        assert parse_compiled("") == []

    @pytest.mark.parametrize("bad", [
        "[]",
        "{abc",
        "[{a}",
        "Smith",
        "[{a}{b}]",
    ])
    def test_malformed(self, bad):
        with pytest.raises(CompiledTemplateError):
            parse_compiled(bad)

    def test_error_is_value_error(self):
        with pytest.raises(ValueError):
            parse_compiled("[]")
