"""Render complete storefront pages for a store's theme.

:class:`StorefrontRenderer` wires the rendering pipeline together: resolve the
template for the request path, load theme settings and translations, compose
sections or the single-file template, bind the layout, and resolve leftover
translation tokens.

Examples
--------
>>> from storefront_pages.theme import MappingThemeFileProvider, Theme
>>> provider = MappingThemeFileProvider(
...     themes={("s1", "t1"): {"templates/index.liquid": "<h1>{{ shop.name }}</h1>"}}
... )
>>> page = StorefrontRenderer(provider).render(
...     Theme("s1", "t1", store_name="Loja"), PageRequest(path="/")
... )
>>> page.status, "<h1>Loja</h1>" in page.html
(200, True)
"""

from __future__ import annotations

import dataclasses as dc
import html
import logging
import typing as typ

from ._constants import CONTENT_TYPE
from .config import EngineConfig
from .rendering.assets import ASSET_FILTERS, AssetUrlBuilder
from .rendering.context import build_page_context
from .rendering.engine import JinjaTemplateEngine
from .rendering.guard import RenderDepthGuard
from .rendering.layout import LayoutBinder, build_content_for_header
from .rendering.page import PageComposer, TemplateResolver
from .rendering.section import SectionRenderer
from .rendering.settings import ThemeSettingsLoader, theme_variables
from .rendering.snippets import SnippetRenderer
from .rendering.translations import (
    TranslationInjector,
    available_locales,
    choose_locale,
    finalize_translations,
    translation_filter,
)
from .theme.files import ThemeFiles
from .theme.models import JsonTemplate

if typ.TYPE_CHECKING:
    import collections.abc as cabc

    from .rendering.engine import TemplateEngine
    from .theme.files import ThemeFileProvider
    from .theme.models import TemplateSpec, Theme

logger = logging.getLogger(__name__)

ERROR_PAGE = (
    "<!doctype html><html><head><meta charset=\"utf-8\"><title>Error</title></head>"
    "<body><h1>Something went wrong</h1>{detail}</body></html>"
)


@dc.dataclass(frozen=True, slots=True)
class PageRequest:
    """Describe the storefront request being rendered.

    Attributes
    ----------
    path : str
        Request path such as ``/products/shirt``.
    query : Mapping[str, str]
        Query string parameters.
    locale : str or None
        Explicitly requested locale; overrides ``accept_language``.
    accept_language : str or None
        Raw ``Accept-Language`` header value.
    """

    path: str = "/"
    query: cabc.Mapping[str, str] = dc.field(default_factory=dict)
    locale: str | None = None
    accept_language: str | None = None


@dc.dataclass(frozen=True, slots=True)
class RenderedPage:
    """Final HTML document and response metadata."""

    html: str
    status: int
    template_name: str
    content_type: str = CONTENT_TYPE


class StorefrontRenderer:
    """Render pages for any store and theme served by ``provider``.

    Parameters
    ----------
    provider : ThemeFileProvider
        Source of theme files.
    config : EngineConfig, optional
        Engine configuration; defaults to :class:`EngineConfig`.
    engine : TemplateEngine, optional
        Template engine; defaults to :class:`JinjaTemplateEngine`.
    """

    def __init__(
        self,
        provider: ThemeFileProvider,
        config: EngineConfig | None = None,
        engine: TemplateEngine | None = None,
    ) -> None:
        self.provider = provider
        self.config = config or EngineConfig()
        self.engine = engine or JinjaTemplateEngine()
        self.guard = RenderDepthGuard(self.config.max_render_depth)
        self.resolver = TemplateResolver(self.config)
        self.sections = SectionRenderer(provider, self.engine, self.config, self.guard)
        self.composer = PageComposer(self.engine, self.config, self.guard, self.sections)
        self.layouts = LayoutBinder(self.engine, self.config, self.guard)
        self.settings_loader = ThemeSettingsLoader()
        self._register_extensions()

    def _register_extensions(self) -> None:
        for name, func in ASSET_FILTERS.items():
            self.engine.register_filter(name, func)
        self.engine.register_filter("t", translation_filter)
        self.engine.register_filter("translate", translation_filter)
        self.engine.register_global(
            "render_snippet", SnippetRenderer(self.engine, self.config, self.guard)
        )
        self.engine.register_global("render_section", self.composer.render_section)
        self.engine.register_global(
            "render_section_group", self.composer.render_section_group
        )

    def _layout_name(self, template: TemplateSpec) -> str | None:
        if isinstance(template, JsonTemplate):
            if template.layout is False:
                return None
            if isinstance(template.layout, str) and template.layout:
                return template.layout
        return self.config.layout

    def render(self, theme: Theme, request: PageRequest | None = None) -> RenderedPage:
        """Render the page for ``request``.

        Parameters
        ----------
        theme : Theme
            Store and theme to render.
        request : PageRequest, optional
            Request descriptor; defaults to the home page.

        Returns
        -------
        RenderedPage
            The document with status 404 when the not-found template was
            used, or a minimal error page with status 500 if the pipeline
            itself failed.
        """
        request = request or PageRequest()
        try:
            return self._render(theme, request)
        except Exception as exc:
            logger.exception(
                "Page render failed", extra={"path": request.path, "theme": theme.label}
            )
            detail = (
                f"<pre>{html.escape(f'{type(exc).__name__}: {exc}')}</pre>"
                if self.config.debug
                else ""
            )
            return RenderedPage(ERROR_PAGE.format(detail=detail), 500, "")

    def _render(self, theme: Theme, request: PageRequest) -> RenderedPage:
        files = ThemeFiles(self.provider, theme)
        template = self.resolver.resolve(request.path, files)
        locale = choose_locale(
            available_locales(files),
            requested=request.locale or request.query.get("locale"),
            accept_language=request.accept_language,
            default=self.config.default_locale,
        )
        theme_settings = self.settings_loader.load(files)
        builder = AssetUrlBuilder(theme.store_id, theme.theme_id, self.config.asset_base_url)
        header = build_content_for_header(
            theme, path=request.path, locale=locale, builder=builder
        )

        root = build_page_context(
            theme,
            path=request.path,
            template_name=template.name,
            query=request.query,
            locale=locale,
            content_for_header=header,
        )
        root.set("settings", theme_settings)
        for name, value in theme_variables(theme_settings).items():
            root.set(name, value)
        root.registers.update(
            {
                "asset_urls": builder,
                "files": files,
                "theme_settings": theme_settings,
                "settings": theme_settings,
            }
        )
        translations = TranslationInjector().inject(root, files, locale)

        content = self.composer.compose(template, theme, root)
        layout_name = self._layout_name(template)
        document = (
            self.layouts.bind(theme, content, root, layout_name)
            if layout_name is not None
            else content
        )
        document = finalize_translations(document, translations)

        status = 404 if template.name == self.config.not_found_template else 200
        logger.info(
            "Rendered page",
            extra={
                "path": request.path,
                "theme": theme.label,
                "template": template.name,
                "status": status,
            },
        )
        return RenderedPage(document, status, template.name)


__all__ = ["PageRequest", "RenderedPage", "StorefrontRenderer"]
