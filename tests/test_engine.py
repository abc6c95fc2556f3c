"""Unit tests for dialect translation and the Jinja execution engine."""

from __future__ import annotations

import pytest

from storefront_pages.rendering.blocks import BlockCollection
from storefront_pages.rendering.context import RenderContext
from storefront_pages.rendering.dialect import translate_liquid
from storefront_pages.rendering.engine import (
    JinjaTemplateEngine,
    active_context,
    handleize,
    money,
    to_json,
)


@pytest.mark.parametrize(
    ("source", "expected"),
    [
        ("{% assign x = 1 %}", "{% set x = 1 %}"),
        ("{% unless a %}b{% endunless %}", "{% if not (a) %}b{% endif %}"),
        ("{% if a %}1{% elsif b %}2{% endif %}", "{% if a %}1{% elif b %}2{% endif %}"),
        ("{{ name | append: '!' }}", "{{ name | append('!') }}"),
        ("{% if tags contains 'sale' %}", "{% if 'sale' in tags %}"),
        ("{% for i in (1..3) %}", "{% for i in range(1, 3 + 1) %}"),
        ("{{ forloop.index }}", "{{ loop.index }}"),
        ("{% section 'header' %}", "{{ render_section('header') }}"),
        ("{% sections 'footer-group' %}", "{{ render_section_group('footer-group') }}"),
        ("{% render 'icon', name: 'cart' %}", "{{ render_snippet('icon', name='cart') }}"),
        ("{% render block %}", "{{ block.shopify_attributes }}"),
        ("{% layout none %}", ""),
        (
            "{% for b in section.blocks limit: 2 %}",
            "{% for b in ((section.blocks or []) | list)[:2] %}",
        ),
        ("{% increment n %}", "{{ liquid_counter('n', 1) }}"),
    ],
)
def test_translate_liquid(source: str, expected: str) -> None:
    assert translate_liquid(source) == expected


def test_translate_render_with_and_for() -> None:
    assert translate_liquid("{% render 'card' with product as item %}") == (
        "{{ render_snippet('card', item=product) }}"
    )
    assert translate_liquid("{% render 'card' for products %}") == (
        "{% for card in products %}{{ render_snippet('card', card=card) }}{% endfor %}"
    )


def test_raw_blocks_are_left_alone() -> None:
    source = "{% raw %}{{ x | append: 1 }}{% endraw %}"
    assert translate_liquid(source) == source


def test_engine_renders_liquid_dialect() -> None:
    engine = JinjaTemplateEngine()
    context = RenderContext({"title": "shirt", "tags": ["sale"]})
    source = (
        "{% assign label = title | upcase %}{{ label }}"
        "{% if tags contains 'sale' %} on sale{% endif %}"
        "{% unless missing %}!{% endunless %}"
    )
    assert engine.render(source, context) == "SHIRT on sale!"


def test_engine_publishes_active_context_during_execution() -> None:
    """Globals see the context being rendered; nothing leaks afterwards."""
    engine = JinjaTemplateEngine()
    context = RenderContext({"name": "x"})
    seen: list[object] = []
    engine.register_global("spy", lambda: seen.append(active_context()) or "")
    engine.render("{{ spy() }}", context)
    assert seen == [context]
    assert active_context() is None


def test_undefined_chains_render_empty() -> None:
    engine = JinjaTemplateEngine()
    assert engine.render("[{{ product.variants.first.title }}]", RenderContext()) == "[]"


def test_money_uses_shop_format() -> None:
    assert money(123456, "R$ {{amount_with_comma_separator}}") == "R$ 1.234,56"
    assert money(1999, "${{amount}}") == "$19.99"
    assert money(None) == ""


def test_money_filter_reads_shop_from_context() -> None:
    engine = JinjaTemplateEngine()
    context = RenderContext({"shop": {"money_format": "€{{amount_no_decimals}}"}, "p": 2500})
    assert engine.render("{{ p | money }}", context) == "€25"


def test_handleize_and_json() -> None:
    assert handleize("Blue Shirt & Co.") == "blue-shirt-co"
    assert to_json({"a": [1, "b"]}) == '{"a":[1,"b"]}'


@pytest.mark.parametrize(
    ("value", "expected"),
    [("a", "A"), ("b", "BC"), ("c", "BC"), ("z", "other")],
)
def test_case_when_chains(value: str, expected: str) -> None:
    engine = JinjaTemplateEngine()
    source = (
        "{% case k %}{% when 'a' %}A{% when 'b', 'c' %}BC"
        "{% else %}other{% endcase %}"
    )
    assert engine.render(source, RenderContext({"k": value})) == expected


def test_case_when_accepts_or_and_nests() -> None:
    engine = JinjaTemplateEngine()
    source = (
        "{% case a %}{% when 1 or 2 %}"
        "{% case b %}{% when 'x' %}low-x{% endcase %}"
        "{% when 3 %}three{% endcase %}"
    )
    assert engine.render(source, RenderContext({"a": 2, "b": "x"})) == "low-x"
    assert engine.render(source, RenderContext({"a": 3, "b": "x"})) == "three"


def test_liquid_tag_expands_statements() -> None:
    engine = JinjaTemplateEngine()
    source = (
        "{%- liquid\n"
        "  # greeting shown on the banner\n"
        "  assign greeting = 'hi' | upcase\n"
        "  comment\n"
        "    echo 'hidden'\n"
        "  endcomment\n"
        "  if show\n"
        "    echo greeting | append: '!'\n"
        "  endif\n"
        "-%}"
    )
    assert engine.render(source, RenderContext({"show": True})) == "HI!"
    assert engine.render(source, RenderContext({"show": False})) == ""
    assert engine.render("{%- liquid assign x = 'hi' -%}{{ x }}", RenderContext()) == "hi"


@pytest.mark.parametrize(
    ("parameters", "expected"),
    [
        ("limit: 2", "12"),
        ("offset: 1", "234"),
        ("limit: 2 offset: 1", "23"),
        ("reversed", "4321"),
        ("reversed limit: 2", "43"),
        ("limit: count", "123"),
    ],
)
def test_for_loop_parameters(parameters: str, expected: str) -> None:
    engine = JinjaTemplateEngine()
    context = RenderContext({"items": [1, 2, 3, 4], "count": 3})
    source = f"{{% for i in items {parameters} %}}{{{{ i }}}}{{% endfor %}}"
    assert engine.render(source, context) == expected


def test_for_loop_limit_over_blocks() -> None:
    blocks = BlockCollection([{"id": "a"}, {"id": "b"}, {"id": "c"}])
    engine = JinjaTemplateEngine()
    source = "{% for block in section.blocks limit: 2 %}{{ block.id }}{% endfor %}"
    assert engine.render(source, RenderContext({"section": {"blocks": blocks}})) == "ab"


def test_break_and_continue() -> None:
    engine = JinjaTemplateEngine()
    source = (
        "{% for i in items %}{% if i == 1 %}{% continue %}{% endif %}"
        "{% if i == 3 %}{% break %}{% endif %}{{ i }}{% endfor %}"
    )
    assert engine.render(source, RenderContext({"items": [1, 2, 3, 4]})) == "2"


def test_cycle_increment_and_decrement() -> None:
    engine = JinjaTemplateEngine()
    context = RenderContext()
    cycle = "{% for i in (1..3) %}{% cycle 'odd', 'even' %}{% endfor %}"
    assert engine.render(cycle, context) == "oddevenodd"
    grouped = "{% cycle 'g': 'x', 'y' %}{% cycle 'g': 'x', 'y' %}"
    assert engine.render(grouped, context) == "xy"
    counters = "{% increment n %}{% increment n %}{% decrement m %}{% decrement m %}"
    assert engine.render(counters, context) == "01-1-2"


def test_tablerow_emits_rows_and_cells() -> None:
    engine = JinjaTemplateEngine()
    source = "{% tablerow i in items cols: 2 %}{{ i }}{% endtablerow %}"
    assert engine.render(source, RenderContext({"items": [1, 2, 3]})) == (
        '<tr class="row1"><td class="col1">1</td><td class="col2">2</td></tr>'
        '<tr class="row2"><td class="col1">3</td></tr>'
    )
