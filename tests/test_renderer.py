"""Tests for the bracket renderer and renderer resolution."""

from __future__ import annotations

import pytest

from citecraft.renderers import BracketRenderer, RenderError, Renderer, resolve_renderer
from citecraft.renderers.registry import BUILTIN_RENDERERS


@pytest.fixture
def renderer():
    return BracketRenderer()


class TestBracketRenderer:
    def test_group_kept(self, renderer):
        assert renderer.format("[{Smith, }+[%s]]", "2020") == "Smith, 2020"

    def test_group_dropped_on_missing_value(self, renderer):
        assert renderer.format("[{Smith, }+[%s]]", None) == ""

    def test_top_level_values_and_literals(self, renderer):
        assert renderer.format("[%s][{, }+[%s]]", "A", "B") == "A, B"
        assert renderer.format("[%s][{, }+[%s]]", "A", None) == "A"
        assert renderer.format("[%s][{, }+[%s]]", None, "B") == ", B"

    def test_only_nearest_group_dropped(self, renderer):
        template = "[[%s]+[{, }+[%s]]]"
        assert renderer.format(template, "A", None) == "A"
        assert renderer.format(template, None, "B") == ""

    def test_escaped_literal(self, renderer):
        assert renderer.format("{\\[}[%s]{\\]}", "x") == "[x]"

    def test_too_few_values(self, renderer):
        with pytest.raises(RenderError):
            renderer.format("[%s][%s]", "A")

    def test_extra_values_ignored(self, renderer):
        assert renderer.format("{A}[%s]", "1", "2") == "A1"

    def test_malformed_template(self, renderer):
        with pytest.raises(RenderError):
            renderer.format("[{Smith}")

    def test_empty_template(self, renderer):
        assert renderer.format("") == ""

    def test_satisfies_protocol(self, renderer):
        assert isinstance(renderer, Renderer)


class TestResolveRenderer:
    def test_builtin(self):
        assert isinstance(resolve_renderer("bracket"), BracketRenderer)

    def test_dotted_path(self):
        r = resolve_renderer("citecraft.renderers.bracket.BracketRenderer")
        assert isinstance(r, BracketRenderer)

    def test_unknown_name(self):
        with pytest.raises(ValueError, match="Unknown renderer 'nope'. Built-in renderers: bracket."):
            resolve_renderer("nope")

    @pytest.mark.parametrize("name", ["nope.Missing", "citecraft.renderers.Missing"])
    def test_unimportable_path(self, name):
        with pytest.raises(ValueError, match="Cannot import renderer"):
            resolve_renderer(name)

    def test_builtin_table_lists_bracket(self):
        assert BUILTIN_RENDERERS == {"bracket": BracketRenderer}
