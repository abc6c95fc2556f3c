"""Resolve request paths to templates and compose page content.

:class:`TemplateResolver` maps a request path onto a template name and loads
either ``templates/<name>.json`` or the single-file markup template, falling
back to the not-found template. :class:`PageComposer` turns the resolved
template into the markup bound to ``content_for_layout``; it also backs the
``render_section`` and ``render_section_group`` template globals.
"""

from __future__ import annotations

import fnmatch
import html
import logging
import re
import typing as typ

from storefront_pages._constants import (
    NOT_FOUND_MARKUP,
    SECTIONS_DIR,
    TEMPLATES_DIR,
    UNDER_CONSTRUCTION_MARKUP,
)
from storefront_pages.theme.decoding import (
    ThemeDocumentError,
    decode_json_document,
    parse_json_template,
)
from storefront_pages.theme.models import JsonTemplate, LiquidTemplate, SectionInstance

from .assets import AssetUrlBuilder, rewrite_asset_directives, rewrite_asset_references
from .engine import active_context
from .errors import RecursionLimitExceeded, SectionExecutionError, TemplateNotFound
from .preprocess import has_unprocessed_markers, prepare_source, resolve_unprocessed_markers

if typ.TYPE_CHECKING:
    from storefront_pages.config import EngineConfig
    from storefront_pages.theme.files import ThemeFiles
    from storefront_pages.theme.models import TemplateSpec, Theme

    from .context import RenderContext
    from .engine import TemplateEngine
    from .guard import RenderDepthGuard
    from .section import SectionRenderer, SectionResult

logger = logging.getLogger(__name__)

GROUP_WRAPPER = (
    '<div class="shopify-section-group shopify-section-group-{name}" '
    'data-section-group="{name}">{content}</div>'
)
WRAPPER_PATTERN = re.compile(
    r"^(?P<tag>[a-zA-Z][\w-]*)(?P<selectors>(?:[#.][\w-]+)*)(?P<attributes>(?:\[[^\]]+\])*)$"
)
QUOTES = "\"'"


def wrap_content(wrapper: str, content: str) -> str:
    """Wrap ``content`` in the element described by a template ``wrapper``.

    The wrapper uses selector syntax: a tag name followed by ``#id``,
    ``.class`` and ``[attribute=value]`` parts. Invalid wrappers are ignored.

    Examples
    --------
    >>> wrap_content("main#content.page[data-kind=product]", "x")
    '<main id="content" class="page" data-kind="product">x</main>'
    """
    match = WRAPPER_PATTERN.match(wrapper.strip())
    if match is None:
        logger.warning("Ignoring invalid template wrapper", extra={"wrapper": wrapper})
        return content
    tag = match.group("tag")
    attributes: list[str] = []
    classes: list[str] = []
    for selector in re.findall(r"[#.][\w-]+", match.group("selectors")):
        if selector.startswith("#"):
            attributes.append(f'id="{html.escape(selector[1:], quote=True)}"')
        else:
            classes.append(selector[1:])
    if classes:
        attributes.append(f'class="{html.escape(" ".join(classes), quote=True)}"')
    for raw in re.findall(r"\[([^\]]+)\]", match.group("attributes")):
        key, _, value = raw.partition("=")
        value = value.strip().strip(QUOTES)
        attributes.append(
            f'{html.escape(key.strip(), quote=True)}="{html.escape(value, quote=True)}"'
        )
    opening = " ".join([tag, *attributes])
    return f"<{opening}>{content}</{tag}>"


class TemplateResolver:
    """Map request paths to page templates.

    Examples
    --------
    >>> from storefront_pages.config import EngineConfig
    >>> resolver = TemplateResolver(EngineConfig())
    >>> [resolver.resolve_name(p) for p in ("/", "/carrinho", "/products/shirt")]
    ['index', 'cart', 'product']
    """

    def __init__(self, config: EngineConfig) -> None:
        self.config = config

    def resolve_name(self, path: str) -> str:
        """Return the template name for ``path``."""
        stripped = path.split("?", 1)[0].strip("/")
        if not stripped:
            return "index"
        for pattern, name in self.config.path_aliases.items():
            if fnmatch.fnmatchcase(stripped, pattern):
                return name
        return stripped.split("/", 1)[0]

    def load(self, name: str, files: ThemeFiles) -> TemplateSpec:
        """Load template ``name``, JSON first.

        Raises
        ------
        TemplateNotFound
            If neither ``<name>.json`` nor the markup template exists.
        """
        json_path = f"{TEMPLATES_DIR}/{name}.json"
        text = files.read_text(json_path)
        if text is not None:
            try:
                return parse_json_template(name, decode_json_document(text))
            except ThemeDocumentError as exc:
                logger.warning(
                    "Invalid JSON template, trying markup template",
                    extra={"path": json_path, "error": str(exc)},
                )
        source = files.read_text(f"{TEMPLATES_DIR}/{name}{self.config.template_suffix}")
        if source is not None:
            return LiquidTemplate(name=name, source=source)
        raise TemplateNotFound(name)

    def resolve(self, path: str, files: ThemeFiles) -> TemplateSpec:
        """Return the template to render for ``path``; never raises.

        Reserved template names that are missing render an under-construction
        page. Other missing names render the not-found template, or a built-in
        not-found page when the theme has none.
        """
        name = self.resolve_name(path)
        not_found = self.config.not_found_template
        try:
            return self.load(name, files)
        except TemplateNotFound as exc:
            logger.warning(
                str(exc), extra={"path": path, "theme": files.theme.label}
            )
            if name in self.config.reserved_templates and name != not_found:
                return LiquidTemplate(name=name, source=UNDER_CONSTRUCTION_MARKUP)
        try:
            return self.load(not_found, files)
        except TemplateNotFound:
            logger.warning(
                "Not-found template missing, using built-in page",
                extra={"theme": files.theme.label},
            )
            return LiquidTemplate(name=not_found, source=NOT_FOUND_MARKUP)


class PageComposer:
    """Compose the markup bound to ``content_for_layout``."""

    def __init__(
        self,
        engine: TemplateEngine,
        config: EngineConfig,
        guard: RenderDepthGuard,
        section_renderer: SectionRenderer,
    ) -> None:
        self.engine = engine
        self.config = config
        self.guard = guard
        self.sections = section_renderer

    def compose(self, template: TemplateSpec, theme: Theme, root: RenderContext) -> str:
        """Render ``template`` against ``root``.

        Parameters
        ----------
        template : TemplateSpec
            Resolved page template.
        theme : Theme
            Store and theme being rendered.
        root : RenderContext
            Page-level context carrying ``files`` and ``asset_urls`` registers.

        Returns
        -------
        str
            Page content with asset references rewritten.
        """
        builder: AssetUrlBuilder = root.registers["asset_urls"]
        try:
            with self.guard.enter(f"template:{template.name}"):
                if isinstance(template, JsonTemplate):
                    content = self.compose_sections(template, theme, root)
                else:
                    content = self._execute_markup(template.source, root)
        except RecursionLimitExceeded as exc:
            return exc.diagnostic()
        except Exception as exc:  # noqa: BLE001 - the layout still renders
            error = SectionExecutionError(f"templates/{template.name}", str(exc))
            logger.error(  # noqa: TRY400 - traceback attached via exc_info
                str(error), exc_info=exc, extra={"template": template.name}
            )
            return error.diagnostic() if self.config.debug else ""
        return rewrite_asset_references(content, builder)

    def _execute_markup(self, source: str, root: RenderContext) -> str:
        files = root.registers.get("files")
        builder: AssetUrlBuilder = root.registers["asset_urls"]
        prepared = prepare_source(source, max_size=self.config.max_content_size)
        prepared = rewrite_asset_directives(prepared, builder, files)
        output = self.engine.execute(self.engine.compile(prepared), root)
        if has_unprocessed_markers(output):
            output = resolve_unprocessed_markers(output, root)
        return output

    def render_sections(
        self, template: JsonTemplate, theme: Theme, root: RenderContext
    ) -> list[SectionResult]:
        """Render the sections of ``template`` in declared order.

        Ids missing from ``sections``, sections without a type, and disabled
        sections are skipped.
        """
        results: list[SectionResult] = []
        for section_id in template.order:
            instance = template.sections.get(section_id)
            if instance is None:
                logger.warning(
                    "Section listed in order not found in template",
                    extra={"section_id": section_id, "template": template.name},
                )
                continue
            if not instance.type:
                logger.warning(
                    "Section has no type", extra={"section_id": section_id}
                )
                continue
            if instance.disabled:
                continue
            results.append(
                self.sections.render_result(instance.type, instance, theme, root)
            )
        return results

    def compose_sections(self, template: JsonTemplate, theme: Theme, root: RenderContext) -> str:
        """Concatenate section output; failed sections are logged and dropped."""
        parts: list[str] = []
        for result in self.render_sections(template, theme, root):
            if result.error is not None:
                logger.info(
                    "Section rendered with error",
                    extra={
                        "section_id": result.section_id,
                        "section_type": result.section_type,
                        "error_kind": result.error.kind,
                    },
                )
            parts.append(result.html)
        content = "".join(parts)
        if template.wrapper:
            content = wrap_content(template.wrapper, content)
        return content

    def render_section(self, section_type: object) -> str:
        """Implement ``render_section(type)``: a static section with id = type."""
        context = active_context()
        if context is None:
            msg = "render_section called outside of a template render"
            raise RuntimeError(msg)
        name = str(section_type).strip("'\"")
        theme: Theme = context.registers["theme_ref"]
        instance = SectionInstance(id=name, type=name)
        return self.sections.render(name, instance, theme, context)

    def render_section_group(self, group: object) -> str:
        """Implement ``render_section_group(name)`` for ``sections/<name>.json``."""
        context = active_context()
        if context is None:
            msg = "render_section_group called outside of a template render"
            raise RuntimeError(msg)
        name = str(group).strip("'\"")
        theme: Theme = context.registers["theme_ref"]
        files: ThemeFiles = context.registers["files"]
        path = f"{SECTIONS_DIR}/{name}.json"
        text = files.read_text(path)
        if text is None:
            logger.warning("Section group not found", extra={"group": name})
            return f"<!-- Section group '{name}' not found -->" if self.config.debug else ""
        try:
            group_template = parse_json_template(name, decode_json_document(text))
        except ThemeDocumentError as exc:
            logger.error(  # noqa: TRY400 - invalid files are reported, not raised
                "Invalid section group", extra={"group": name, "error": str(exc)}
            )
            return ""
        try:
            with self.guard.enter(f"group:{name}"):
                content = self.compose_sections(group_template, theme, context)
        except RecursionLimitExceeded as exc:
            return exc.diagnostic()
        return GROUP_WRAPPER.format(name=name, content=content)


__all__ = ["GROUP_WRAPPER", "PageComposer", "TemplateResolver", "wrap_content"]
