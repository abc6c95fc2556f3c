"""Render one section instance into its wrapped HTML fragment.

A section render never raises. Missing sources, execution faults and
recursion overflows are logged and produce an empty string (or, outside
production, an HTML comment); the structured outcome is available through
:meth:`SectionRenderer.render_result`.
"""

from __future__ import annotations

import dataclasses as dc
import html
import logging
import typing as typ

from storefront_pages._constants import SECTION_ID_TEMPLATE, SECTIONS_DIR, SNIPPETS_DIR
from storefront_pages.theme.files import ThemeFiles

from .assets import AssetUrlBuilder, rewrite_asset_directives, rewrite_asset_references
from .blocks import assemble_blocks
from .context import create_child_scope
from .errors import (
    RecursionLimitExceeded,
    RenderError,
    SectionExecutionError,
    SectionSourceMissing,
)
from .preprocess import has_unprocessed_markers, prepare_source, resolve_unprocessed_markers
from .schema import extract_schema
from .settings import merge_section_settings

if typ.TYPE_CHECKING:
    from storefront_pages.config import EngineConfig
    from storefront_pages.theme.files import ThemeFileProvider
    from storefront_pages.theme.models import SectionInstance, Theme

    from .context import RenderContext
    from .engine import TemplateEngine
    from .guard import RenderDepthGuard

logger = logging.getLogger(__name__)


@dc.dataclass(slots=True)
class SectionResult:
    """Outcome of rendering one section.

    Attributes
    ----------
    section_id : str
        Instance id from the page template.
    section_type : str
        Section type (``sections/<type>`` source name).
    html : str
        Wrapped output, a diagnostic comment, or ``""``.
    error : RenderError or None
        The contained failure, if any.
    """

    section_id: str
    section_type: str
    html: str
    error: RenderError | None = None

    @property
    def ok(self) -> bool:
        """Return ``True`` when the section rendered without a failure."""
        return self.error is None


def wrap_section(section_id: str, section_type: str, content: str) -> str:
    """Wrap ``content`` in the section container element.

    Examples
    --------
    >>> wrap_section("main", "product", "<p>x</p>")  # doctest: +NORMALIZE_WHITESPACE
    '<div id="shopify-section-main" class="shopify-section section section--product"
    data-section-id="main" data-section-type="product"><p>x</p></div>'
    """
    element_id = html.escape(SECTION_ID_TEMPLATE.format(id=section_id), quote=True)
    sid = html.escape(section_id, quote=True)
    stype = html.escape(section_type, quote=True)
    return (
        f'<div id="{element_id}" class="shopify-section section section--{stype}" '
        f'data-section-id="{sid}" data-section-type="{stype}">{content}</div>'
    )


class SectionRenderer:
    """Load, prepare, execute, and wrap section sources."""

    def __init__(
        self,
        provider: ThemeFileProvider,
        engine: TemplateEngine,
        config: EngineConfig,
        guard: RenderDepthGuard,
    ) -> None:
        self.provider = provider
        self.engine = engine
        self.config = config
        self.guard = guard

    def _diagnostic(self, error: RenderError) -> str:
        return error.diagnostic() if self.config.debug else ""

    def render(
        self,
        section_type: str,
        instance: SectionInstance,
        theme: Theme,
        parent: RenderContext,
    ) -> str:
        """Return the wrapped HTML for ``instance``; never raises."""
        return self.render_result(section_type, instance, theme, parent).html

    def render_result(
        self,
        section_type: str,
        instance: SectionInstance,
        theme: Theme,
        parent: RenderContext,
    ) -> SectionResult:
        """Render ``instance`` and report the outcome.

        Parameters
        ----------
        section_type : str
            Name of the ``sections/`` source to execute.
        instance : SectionInstance
            Instance data from the page template or section group.
        theme : Theme
            Store and theme the section belongs to.
        parent : RenderContext
            Page-level context; it is never modified.

        Returns
        -------
        SectionResult
            Wrapped markup or the contained failure.
        """
        files = parent.registers.get("files") or ThemeFiles(self.provider, theme)
        suffix = self.config.template_suffix
        source = files.read_text(f"{SECTIONS_DIR}/{section_type}{suffix}")
        if source is None:
            error = SectionSourceMissing(section_type)
            logger.warning(
                str(error),
                extra={"section_id": instance.id, "section_type": section_type},
            )
            return SectionResult(instance.id, section_type, self._diagnostic(error), error)

        schema = extract_schema(
            source,
            section_type=section_type,
            translations=parent.registers.get("translations"),
        )
        prepared = prepare_source(
            source,
            max_size=self.config.max_content_size,
            has_block_snippet=files.exists(f"{SNIPPETS_DIR}/block{suffix}"),
        )
        builder: AssetUrlBuilder = parent.registers.get("asset_urls") or AssetUrlBuilder(
            theme.store_id, theme.theme_id, self.config.asset_base_url
        )
        prepared = rewrite_asset_directives(prepared, builder, files)

        theme_settings = parent.registers.get("theme_settings") or {}
        settings = merge_section_settings(schema, theme_settings, instance)
        schema_data = schema.raw if schema is not None else {}
        section_view = instance.as_view()
        section_view.update(
            {
                "type": section_type,
                "settings": settings,
                "blocks": assemble_blocks(
                    instance.blocks, instance.block_order, schema=schema
                ),
                "schema": schema_data,
            }
        )
        child = create_child_scope(
            parent,
            {
                "section": section_view,
                "settings": settings,
                "section_schema": schema_data,
            },
        )
        child.registers["settings"] = settings
        child.registers["section_schema"] = schema_data
        child.registers["files"] = files
        child.registers["asset_urls"] = builder

        try:
            with self.guard.enter(f"section:{instance.id}"):
                output = self.engine.execute(self.engine.compile(prepared), child)
        except RecursionLimitExceeded as exc:
            return SectionResult(instance.id, section_type, exc.diagnostic(), exc)
        except Exception as exc:  # noqa: BLE001 - a faulty section never breaks the page
            error = SectionExecutionError(section_type, str(exc))
            logger.error(  # noqa: TRY400 - traceback attached via exc_info
                str(error),
                exc_info=exc,
                extra={"section_id": instance.id, "section_type": section_type},
            )
            return SectionResult(instance.id, section_type, self._diagnostic(error), error)

        if has_unprocessed_markers(output):
            output = resolve_unprocessed_markers(output, child)
        output = rewrite_asset_references(output, builder)
        return SectionResult(
            instance.id, section_type, wrap_section(instance.id, section_type, output)
        )


__all__ = ["SectionRenderer", "SectionResult", "wrap_section"]
