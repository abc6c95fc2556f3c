"""Behaviour tests for composing pages from JSON templates using pytest-bdd.

These scenarios render small in-memory themes end-to-end through
``StorefrontRenderer`` and inspect the resulting HTML with BeautifulSoup.

Usage
-----
Run ``pytest tests/bdd/test_page_composition.py -v``.
"""

from __future__ import annotations

import typing as typ
from pathlib import Path

from bs4 import BeautifulSoup
from pytest_bdd import given, parsers, scenarios, then

FEATURE_FILE = Path(__file__).resolve().parents[2] / "features" / "page_composition.feature"
scenarios(FEATURE_FILE)

ScenarioState = dict[str, typ.Any]

PRODUCT_TEMPLATE = (
    '{"sections": {"main-product": {"type": "product-details",'
    ' "settings": {"show_price": true}}}, "order": ["main-product"]}'
)
PRODUCT_SECTION = (
    '{% if section.settings.show_price %}<p class="price">{{ 1990 | money }}</p>{% endif %}'
    '{% schema %}{"settings": [{"type": "checkbox", "id": "show_price", "default": false}]}'
    "{% endschema %}"
)


def _soup(scenario_state: ScenarioState) -> BeautifulSoup:
    return BeautifulSoup(scenario_state["page"].html, "html.parser")


@given("a theme with a product template and a product details section")
def given_product_theme(scenario_state: ScenarioState) -> None:
    """Register a product template and its section."""
    scenario_state["files"].update(
        {
            "templates/product.json": PRODUCT_TEMPLATE,
            "sections/product-details.liquid": PRODUCT_SECTION,
        }
    )


@given(parsers.parse('a theme whose home template lists "{ids}"'))
def given_home_template(scenario_state: ScenarioState, ids: str) -> None:
    """Register a home template whose order lists ``ids``; ``ghost`` is undefined."""
    order = [item.strip() for item in ids.split(",")]
    sections = {
        section_id: {"type": section_id} for section_id in order if section_id != "ghost"
    }
    order_json = ", ".join(f'"{section_id}"' for section_id in order)
    sections_json = ", ".join(
        f'"{section_id}": {{"type": "{data["type"]}"}}' for section_id, data in sections.items()
    )
    scenario_state["files"]["templates/index.json"] = (
        f'{{"sections": {{{sections_json}}}, "order": [{order_json}]}}'
    )
    for section_id in sections:
        scenario_state["files"][f"sections/{section_id}.liquid"] = (
            f'<p class="marker">{section_id}</p>'
        )


@then(parsers.parse('the section "{section_id}" is wrapped with type "{section_type}"'))
def then_section_wrapped(
    scenario_state: ScenarioState, section_id: str, section_type: str
) -> None:
    """Verify the section wrapper attributes."""
    wrapper = _soup(scenario_state).select_one(f'[data-section-id="{section_id}"]')
    assert wrapper is not None, f"expected a wrapper for section {section_id!r}"
    assert f"section--{section_type}" in wrapper["class"], (
        f"expected class section--{section_type}, got {wrapper['class']!r}"
    )


@then("the product price is shown")
def then_price_shown(scenario_state: ScenarioState) -> None:
    """Verify ``show_price`` reached the section as ``True``."""
    price = _soup(scenario_state).select_one(".price")
    assert price is not None, "expected the price paragraph to render"
    assert price.get_text() == "R$ 19.90", f"unexpected price text {price.get_text()!r}"


@then(parsers.parse('the sections appear in the order "{ids}"'))
def then_section_order(scenario_state: ScenarioState, ids: str) -> None:
    """Verify rendered section order."""
    expected = [item.strip() for item in ids.split(",")]
    rendered = [p.get_text() for p in _soup(scenario_state).select("p.marker")]
    assert rendered == expected, f"expected {expected!r}, got {rendered!r}"
