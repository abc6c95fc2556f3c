"""Behaviour tests for recursion bounds and layout slot patching using pytest-bdd.

Usage
-----
Run ``pytest tests/bdd/test_render_safety.py -v``.
"""

from __future__ import annotations

import typing as typ
from pathlib import Path

from pytest_bdd import given, scenarios, then

FEATURE_FILE = Path(__file__).resolve().parents[2] / "features" / "render_safety.feature"
scenarios(FEATURE_FILE)

ScenarioState = dict[str, typ.Any]

DEPTH_DIAGNOSTIC = "<!-- Maximum template rendering depth (10) exceeded -->"
PAGE_CONTENT = '<p class="only-once">content</p>'


@given("a theme whose home section renders a self-recursive snippet")
def given_recursive_theme(scenario_state: ScenarioState) -> None:
    """Register a section that starts an unbounded snippet recursion."""
    scenario_state["files"].update(
        {
            "templates/index.json": '{"sections": {"main": {"type": "main"}}}',
            "sections/main.liquid": "{% render 'again' %}",
            "snippets/again.liquid": "<i></i>{% render 'again' %}",
        }
    )


@given("a theme whose layout prints the content slot literally")
def given_broken_layout(scenario_state: ScenarioState) -> None:
    """Register a layout whose slot never reaches the engine as a variable."""
    scenario_state["files"].update(
        {
            "templates/index.liquid": PAGE_CONTENT,
            "layout/theme.liquid": (
                "<html><body>{% raw %}{{ content_for_layout }}{% endraw %}</body></html>"
            ),
        }
    )


@then("the page contains exactly one depth diagnostic")
def then_one_diagnostic(scenario_state: ScenarioState) -> None:
    """Verify the recursion was cut once, at the innermost level."""
    html = scenario_state["page"].html
    assert html.count(DEPTH_DIAGNOSTIC) == 1, "expected a single depth diagnostic"
    # page template and section take two of the ten levels
    assert html.count("<i></i>") == 8, f"unexpected snippet depth: {html.count('<i></i>')}"


@then("the page content appears exactly once")
def then_content_once(scenario_state: ScenarioState) -> None:
    """Verify the layout was patched with the page content."""
    html = scenario_state["page"].html
    assert html.count(PAGE_CONTENT) == 1, f"expected content once in {html!r}"
    assert "content_for_layout" not in html


@given("a theme whose home section quotes the content slot")
def given_quoting_section(scenario_state: ScenarioState) -> None:
    """Register a section whose output contains the literal slot text."""
    scenario_state["files"].update(
        {
            "templates/index.json": '{"sections": {"doc": {"type": "doc"}}}',
            "sections/doc.liquid": (
                "<p class='only'>Use {% raw %}{{ content_for_layout }}{% endraw %}"
                " in layouts</p>"
            ),
        }
    )


@then("the quoting section appears exactly once")
def then_quoting_section_once(scenario_state: ScenarioState) -> None:
    """Verify the layout did not paste the content into itself."""
    html = scenario_state["page"].html
    assert html.count("class='only'") == 1, f"expected the section once in {html!r}"
    assert html.count('id="shopify-section-doc"') == 1
    assert "Use {{ content_for_layout }} in layouts" in html
