"""Unit tests for engine configuration loading."""

from __future__ import annotations

import typing as typ
from textwrap import dedent

import pytest

from storefront_pages.config import (
    PRODUCTION,
    EngineConfig,
    EngineConfigError,
    build_engine_config,
    load_engine_config,
)

if typ.TYPE_CHECKING:
    from pathlib import Path


def test_defaults_without_a_file() -> None:
    """A bare config should carry the production defaults."""
    config = EngineConfig()
    assert config.environment == PRODUCTION
    assert config.max_render_depth == 10
    assert config.default_locale == "pt-BR"
    assert config.template_suffix == ".liquid"
    assert not config.debug, "production must not render diagnostics"
    assert config.path_aliases["products/*"] == "product"


def test_load_nested_engine_mapping(tmp_path: Path) -> None:
    """Values nested under ``engine`` are merged over the defaults."""
    path = tmp_path / "storefront.yaml"
    path.write_text(
        dedent(
            """
            engine:
              environment: development
              max_render_depth: 4
              asset_base_url: https://cdn.example
              template_suffix: liquid
              reserved_templates: [index, cart]
              path_aliases:
                ofertas/*: collection
            """
        ),
        encoding="utf-8",
    )
    config = load_engine_config(path)
    assert config.debug, "development should enable diagnostics"
    assert config.max_render_depth == 4
    assert config.asset_base_url == "https://cdn.example"
    assert config.template_suffix == ".liquid", "suffix should gain a leading dot"
    assert config.reserved_templates == ("index", "cart")
    assert config.path_aliases["ofertas/*"] == "collection"
    assert config.path_aliases["carrinho"] == "cart", "defaults should survive"


def test_missing_file_raises(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        load_engine_config(tmp_path / "absent.yaml")


def test_non_mapping_document_raises(tmp_path: Path) -> None:
    path = tmp_path / "list.yaml"
    path.write_text("- one\n- two\n", encoding="utf-8")
    with pytest.raises(TypeError):
        load_engine_config(path)


@pytest.mark.parametrize(
    "raw",
    [
        {"environment": "staging"},
        {"max_render_depth": 0},
        {"max_render_depth": "deep"},
        {"path_aliases": ["products/*"]},
    ],
)
def test_invalid_values_raise_config_error(raw: dict[str, object]) -> None:
    """Invalid values surface as :class:`EngineConfigError`."""
    with pytest.raises(EngineConfigError):
        build_engine_config(raw)
