"""Shared fixtures for storefront rendering tests."""

from __future__ import annotations

import typing as typ
from textwrap import dedent

import pytest

from storefront_pages.config import EngineConfig
from storefront_pages.rendering.assets import AssetUrlBuilder
from storefront_pages.rendering.context import build_page_context
from storefront_pages.storefront import StorefrontRenderer
from storefront_pages.theme import MappingThemeFileProvider, Theme, ThemeFiles

if typ.TYPE_CHECKING:
    from storefront_pages.rendering.context import RenderContext

STORE_ID = "store-1"
THEME_ID = "theme-7"

PRODUCT_SECTION = dedent(
    """\
    <h1>{{ product.title }}</h1>
    {% if section.settings.show_price %}<p class="price">{{ product.price | money }}</p>{% endif %}
    {% for block in section.blocks %}<div class="block-{{ block.type }}" {{ block.shopify_attributes }}>{{ block.settings.text }}</div>{% endfor %}
    {% schema %}
    {
      "name": "Product details",
      "settings": [
        {"type": "checkbox", "id": "show_price", "default": false},
        {"type": "text", "id": "heading", "default": "Details"}
      ],
      "blocks": [
        {"type": "text", "name": "Text", "settings": [{"type": "text", "id": "text", "default": "Block text"}]}
      ]
    }
    {% endschema %}
    """
)

PRODUCT_TEMPLATE = """
{
  "sections": {
    "main-product": {
      "type": "product-details",
      "settings": {"show_price": true},
      "blocks": {
        "b1": {"type": "text", "settings": {"text": "First"}},
        "b2": {"type": "text"}
      },
      "block_order": ["b2", "b1"]
    }
  },
  "order": ["main-product"]
}
"""

LAYOUT = dedent(
    """\
    <!doctype html>
    <html lang="{{ locale }}">
    <head>{{ content_for_header }}<link href="base.css" rel="stylesheet"></head>
    <body>{{ content_for_layout }}</body>
    </html>
    """
)


def default_theme_files() -> dict[str, str]:
    """Return the files of a small theme used across tests."""
    return {
        "layout/theme.liquid": LAYOUT,
        "templates/index.json": (
            '{"sections": {"hero": {"type": "hero"}}, "order": ["hero"]}'
        ),
        "templates/product.json": PRODUCT_TEMPLATE,
        "templates/404.liquid": "<h1>{{ 'general.not_found' | t }}</h1>",
        "sections/hero.liquid": (
            "<h2>{{ section.settings.title }}</h2>"
            '{% schema %}{"name": "Hero", "settings": '
            '[{"type": "text", "id": "title", "default": "Welcome"}]}{% endschema %}'
        ),
        "sections/product-details.liquid": PRODUCT_SECTION,
        "locales/en.default.json": (
            '{"general": {"not_found": "Not here"}, "products": {"add": "Add {{ name }}"}}'
        ),
        "locales/pt-BR.json": '{"general": {"not_found": "Nada aqui"}}',
        "config/settings_schema.json": (
            '[{"name": "theme_info", "theme_name": "Tiny"},'
            ' {"name": "Colors", "settings": [{"type": "color", "id": "accent", "default": "#000"}]}]'
        ),
        "config/settings_data.json": '{"current": {"accent": "#ff0000"}}',
    }


@pytest.fixture
def theme() -> Theme:
    """Return the store and theme the test files are registered for."""
    return Theme(STORE_ID, THEME_ID, name="Tiny", store_name="Loja Teste")


@pytest.fixture
def theme_files_map() -> dict[str, str]:
    """Return a fresh, mutable copy of the default theme files."""
    return default_theme_files()


@pytest.fixture
def provider(theme_files_map: dict[str, str]) -> MappingThemeFileProvider:
    """Serve the default theme files; tests override entries with ``add``."""
    return MappingThemeFileProvider(theme_files_map)


@pytest.fixture
def files(provider: MappingThemeFileProvider, theme: Theme) -> ThemeFiles:
    """Bind the provider to the test theme."""
    return ThemeFiles(provider, theme)


@pytest.fixture
def config() -> EngineConfig:
    """Return a development configuration so diagnostics are rendered."""
    return EngineConfig(environment="development")


@pytest.fixture
def renderer(provider: MappingThemeFileProvider, config: EngineConfig) -> StorefrontRenderer:
    """Return a storefront renderer over the default theme."""
    return StorefrontRenderer(provider, config)


@pytest.fixture
def root_context(theme: Theme, files: ThemeFiles) -> RenderContext:
    """Return a page-level context with the registers renderers rely on."""
    context = build_page_context(theme, path="/", template_name="index")
    context.registers.update(
        {
            "files": files,
            "asset_urls": AssetUrlBuilder(STORE_ID, THEME_ID),
            "theme_settings": {},
            "settings": {},
        }
    )
    return context
