"""Shared state and steps for the storefront behaviour scenarios."""

from __future__ import annotations

import typing as typ

import pytest
from pytest_bdd import parsers, then, when

from storefront_pages import PageRequest, StorefrontRenderer
from storefront_pages.config import EngineConfig
from storefront_pages.theme import MappingThemeFileProvider, Theme

ScenarioState = dict[str, typ.Any]

STORE_ID = "bdd-store"
THEME_ID = "bdd-theme"


@pytest.fixture
def scenario_state() -> ScenarioState:
    """Share mutable scenario data across pytest-bdd steps.

    Returns
    -------
    ScenarioState
        Dictionary holding the theme files registered by ``given`` steps and
        the rendered page produced by ``when`` steps.
    """
    return {"files": {}}


@when(parsers.parse('I render the path "{path}"'))
def when_render_path(scenario_state: ScenarioState, path: str) -> None:
    """Render ``path`` for the scenario theme in development mode."""
    provider = MappingThemeFileProvider(
        themes={(STORE_ID, THEME_ID): scenario_state["files"]}
    )
    renderer = StorefrontRenderer(provider, EngineConfig(environment="development"))
    scenario_state["page"] = renderer.render(
        Theme(STORE_ID, THEME_ID, store_name="BDD Store"), PageRequest(path=path)
    )


@then(parsers.parse("the response status is {status:d}"))
def then_status(scenario_state: ScenarioState, status: int) -> None:
    """Verify the rendered page status code."""
    page = scenario_state["page"]
    assert page.status == status, f"expected status {status}, got {page.status}"
