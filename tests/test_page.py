"""Unit tests for template resolution and page composition."""

from __future__ import annotations

import typing as typ

import pytest
from bs4 import BeautifulSoup

from storefront_pages.config import EngineConfig
from storefront_pages.rendering.engine import JinjaTemplateEngine
from storefront_pages.rendering.guard import RenderDepthGuard
from storefront_pages.rendering.page import PageComposer, TemplateResolver, wrap_content
from storefront_pages.rendering.section import SectionRenderer
from storefront_pages.theme import JsonTemplate, LiquidTemplate, parse_json_template

if typ.TYPE_CHECKING:
    from storefront_pages.rendering.context import RenderContext
    from storefront_pages.theme import MappingThemeFileProvider, Theme, ThemeFiles


@pytest.fixture
def composer(provider: MappingThemeFileProvider, config: EngineConfig) -> PageComposer:
    engine = JinjaTemplateEngine()
    guard = RenderDepthGuard(config.max_render_depth)
    sections = SectionRenderer(provider, engine, config, guard)
    page = PageComposer(engine, config, guard, sections)
    engine.register_global("render_section", page.render_section)
    engine.register_global("render_section_group", page.render_section_group)
    return page


@pytest.mark.parametrize(
    ("path", "expected"),
    [
        ("/", "index"),
        ("", "index"),
        ("/carrinho", "cart"),
        ("/products/blue-shirt", "product"),
        ("/produtos/camisa?variant=2", "product"),
        ("/collections", "list-collections"),
        ("/collections/summer", "collection"),
        ("/blogs/news/launch", "article"),
        ("/account/login", "customers/login"),
        ("/search", "search"),
    ],
)
def test_resolve_name(path: str, expected: str) -> None:
    assert TemplateResolver(EngineConfig()).resolve_name(path) == expected


def test_resolve_prefers_json_templates(files: ThemeFiles, provider: MappingThemeFileProvider) -> None:
    provider.add("templates/index.liquid", "<p>markup</p>")
    template = TemplateResolver(EngineConfig()).resolve("/", files)
    assert isinstance(template, JsonTemplate)


def test_invalid_json_template_falls_back_to_markup(
    files: ThemeFiles, provider: MappingThemeFileProvider
) -> None:
    provider.add("templates/page.json", "{broken")
    provider.add("templates/page.liquid", "<p>page</p>")
    template = TemplateResolver(EngineConfig()).resolve("/pages/about", files)
    assert template == LiquidTemplate(name="page", source="<p>page</p>")


def test_unknown_paths_resolve_to_not_found(files: ThemeFiles) -> None:
    template = TemplateResolver(EngineConfig()).resolve("/nowhere", files)
    assert template.name == "404"


def test_missing_reserved_template_is_under_construction(files: ThemeFiles) -> None:
    template = TemplateResolver(EngineConfig()).resolve("/carrinho", files)
    assert isinstance(template, LiquidTemplate)
    assert template.name == "cart"
    assert "page-under-construction" in template.source


def test_builtin_not_found_page(files: ThemeFiles) -> None:
    config = EngineConfig(not_found_template="missing-404")
    template = TemplateResolver(config).resolve("/nowhere", files)
    assert isinstance(template, LiquidTemplate)
    assert "page-not-found" in template.source


def test_sections_render_in_declared_order_and_skip_missing(
    composer: PageComposer,
    provider: MappingThemeFileProvider,
    theme: Theme,
    root_context: RenderContext,
) -> None:
    provider.add("sections/a.liquid", "<p>A</p>")
    provider.add("sections/b.liquid", "<p>B</p>")
    template = parse_json_template(
        "index",
        {
            "sections": {
                "first": {"type": "a"},
                "second": {"type": "b"},
                "off": {"type": "a", "disabled": True},
                "untyped": {"settings": {}},
            },
            "order": ["second", "ghost", "first", "off", "untyped"],
        },
    )
    results = composer.render_sections(template, theme, root_context)
    assert [result.section_id for result in results] == ["second", "first"]

    soup = BeautifulSoup(composer.compose(template, theme, root_context), "html.parser")
    assert [p.get_text() for p in soup.find_all("p")] == ["B", "A"]


def test_template_wrapper_surrounds_sections(
    composer: PageComposer, theme: Theme, root_context: RenderContext
) -> None:
    template = parse_json_template(
        "index",
        {"sections": {"hero": {"type": "hero"}}, "wrapper": "main#MainContent.content"},
    )
    soup = BeautifulSoup(composer.compose(template, theme, root_context), "html.parser")
    main = soup.find("main")
    assert main["id"] == "MainContent"
    assert main.find("h2").get_text() == "Welcome"


def test_markup_template_can_render_static_sections_and_groups(
    composer: PageComposer,
    provider: MappingThemeFileProvider,
    theme: Theme,
    root_context: RenderContext,
) -> None:
    provider.add("sections/header.liquid", "<header>{{ shop.name }}</header>")
    provider.add(
        "sections/footer-group.json",
        '{"sections": {"f": {"type": "hero", "settings": {"title": "Bye"}}}, "order": ["f"]}',
    )
    template = LiquidTemplate(
        "page", "{% section 'header' %}<p>body</p>{% sections 'footer-group' %}"
    )
    soup = BeautifulSoup(composer.compose(template, theme, root_context), "html.parser")
    assert soup.find("header").get_text() == "Loja Teste"
    group = soup.select_one("[data-section-group=footer-group]")
    assert group is not None
    assert group.find("h2").get_text() == "Bye"


def test_markup_template_errors_are_contained(
    composer: PageComposer, theme: Theme, root_context: RenderContext
) -> None:
    output = composer.compose(LiquidTemplate("page", "{% for %}"), theme, root_context)
    assert output.startswith("<!-- Error rendering section 'templates/page'")


def test_wrap_content() -> None:
    assert wrap_content("div.a.b[data-x='1']", "x") == '<div class="a b" data-x="1">x</div>'
    assert wrap_content("not a wrapper!", "x") == "x"
