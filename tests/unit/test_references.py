"""Tests for variable and asset reference scanning."""

from __future__ import annotations

import pytest

from storyprobe.models.story import Choice, Passage, Story
from storyprobe.validation.references import (
    asset_references,
    content_references,
    expression_references,
    infer_variable_type,
    iter_asset_references,
    iter_variable_references,
    strip_literals,
)


def _story_with(
    content: str = "", condition: str | None = None, action: str | None = None
) -> Story:
    story = Story(start_passage="p")
    passage = Passage(id="p", title="P", content=content)
    passage.add_choice(Choice(id="c", target="END", condition=condition, action=action))
    story.add_passage(passage)
    return story


class TestContentReferences:
    """Tests for interpolation patterns in passage content."""

    def test_mustache_dollar_and_expression(self) -> None:
        content = "You carry {{gold}} coins, $name. Next: ${score + 1}"

        assert content_references(content) == ["gold", "name", "score"]

    def test_mustache_with_spaces(self) -> None:
        assert content_references("{{ health }}") == ["health"]

    def test_underscore_names_are_private(self) -> None:
        assert content_references("{{_internal}} $_tmp") == []

    def test_deduplicates(self) -> None:
        assert content_references("{{gold}} {{gold}} $gold") == ["gold"]

    def test_empty(self) -> None:
        assert content_references(None) == []
        assert content_references("plain prose") == []


class TestContentMacros:
    """Tests for block and inline macros in passage content."""

    def test_if_else_end(self) -> None:
        assert content_references("{{if gold}}Rich!{{else}}Poor.{{end}}") == ["gold"]

    def test_elseif_condition(self) -> None:
        content = "{{if gold > 10 and has_key}}A{{elseif torch}}B{{else if lamp}}C{{end}}"

        assert content_references(content) == ["gold", "has_key", "torch", "lamp"]

    def test_each_binds_item(self) -> None:
        content = "{{each item in inventory}}{{item}} ({{var item.weight}}){{end}}"

        assert content_references(content) == ["inventory"]

    def test_each_key_value(self) -> None:
        assert content_references("{{each key, value in stats}}{{key}}={{value}}{{end}}") == ["stats"]

    def test_for_range(self) -> None:
        assert content_references("{{for i in range(1, count)}}{{i}}{{end}}") == ["count"]

    def test_loop_name_is_free_after_end(self) -> None:
        content = "{{each item in bag}}{{item}}{{end}} Held: {{item}}"

        assert content_references(content) == ["bag", "item"]

    def test_var_and_call(self) -> None:
        assert content_references("{{var score}} {{call heal(amount)}}") == ["score", "amount"]

    def test_handlebars_sigils(self) -> None:
        assert content_references("{{#if ready}}Go{{/if}}") == ["ready"]

    def test_nested_blocks(self) -> None:
        content = "{{each room in rooms}}{{if room.lit and candles}}{{room}}{{end}}{{end}}"

        assert content_references(content) == ["rooms", "candles"]

    def test_condition_informs_type(self) -> None:
        story = _story_with(content="{{if gold > 5}}Rich{{end}}")

        assert infer_variable_type(story, "gold") == "number"


class TestExpressionReferences:
    """Tests for free identifiers in Lua-like expressions."""

    def test_comparison(self) -> None:
        assert expression_references("has_key == true and not door_open") == [
            "has_key",
            "door_open",
        ]

    def test_locals_are_bound(self) -> None:
        assert expression_references("local x = 1\ncount = count + x") == ["count"]

    def test_member_access_and_calls(self) -> None:
        assert expression_references("math.floor(y) + player.health") == ["y", "player"]

    def test_function_call_name_skipped(self) -> None:
        assert expression_references("heal(amount)") == ["amount"]

    def test_strings_and_comments_ignored(self) -> None:
        expression = "name == 'hello world' -- compare with greeting"

        assert expression_references(expression) == ["name"]

    def test_for_loop_and_function_params(self) -> None:
        script = "for i = 1, 3 do total = total + i end\nlocal function f(a, b) return a + b end"

        assert expression_references(script) == ["total"]

    def test_string_concat_is_not_member_access(self) -> None:
        assert expression_references("greeting .. name") == ["greeting", "name"]

    @pytest.mark.parametrize("expression", [None, "", "   ", "true", "1 + 2"])
    def test_no_references(self, expression: str | None) -> None:
        assert expression_references(expression) == []

    def test_strip_literals(self) -> None:
        assert "secret" not in strip_literals('x = "secret" --[[ block ]]')


class TestAssetReferences:
    """Tests for asset:// scanning."""

    def test_finds_ids(self) -> None:
        text = "![map](asset://map_1) and <img src='asset://logo.png'>."

        assert asset_references(text) == ["map_1", "logo.png"]

    def test_trailing_period_trimmed(self) -> None:
        assert asset_references("See asset://intro.") == ["intro"]

    def test_iter_once_per_passage(self) -> None:
        story = Story()
        story.add_passage(
            Passage(
                id="a",
                content="asset://bg asset://bg",
                choices=[Choice(target="END", action="play('asset://bg')")],
            )
        )
        story.add_passage(Passage(id="b", content="asset://bg"))

        assert list(iter_asset_references(story)) == [("bg", "a"), ("bg", "b")]


class TestIterVariableReferences:
    """Tests for the story-wide reference walk."""

    def test_sources_in_order(self) -> None:
        story = Story()
        passage = Passage(id="p", content="{{gold}}", on_enter_script="visits = visits + 1")
        passage.add_choice(Choice(id="c1", target="END", condition="has_key", action="door = true"))
        story.add_passage(passage)

        refs = [(r.name, r.source, r.choice_id) for r in iter_variable_references(story)]

        assert refs == [
            ("gold", "content", None),
            ("visits", "script", None),
            ("has_key", "condition", "c1"),
            ("door", "action", "c1"),
        ]


class TestInferVariableType:
    """Tests for infer_variable_type."""

    def test_boolean_comparison(self) -> None:
        assert infer_variable_type(_story_with(condition="has_key == true"), "has_key") == "boolean"

    def test_boolean_negation(self) -> None:
        assert infer_variable_type(_story_with(condition="not door_open"), "door_open") == "boolean"

    def test_bare_truthiness(self) -> None:
        assert infer_variable_type(_story_with(condition="visited"), "visited") == "boolean"

    def test_string_comparison(self) -> None:
        assert infer_variable_type(_story_with(condition='name == "Bob"'), "name") == "string"

    def test_number_arithmetic(self) -> None:
        assert infer_variable_type(_story_with(action="gold = gold + 5"), "gold") == "number"

    def test_number_comparison(self) -> None:
        assert infer_variable_type(_story_with(condition="health >= 10"), "health") == "number"

    def test_expression_in_content(self) -> None:
        assert infer_variable_type(_story_with(content="${score * 2}"), "score") == "number"

    def test_no_hint(self) -> None:
        assert infer_variable_type(_story_with(content="{{gold}}"), "gold") is None
