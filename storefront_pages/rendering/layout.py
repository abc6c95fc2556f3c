"""Bind composed page content into the theme layout.

The layout receives the page markup through ``content_for_layout`` and the
head markup through ``content_for_header``. Whatever the engine does with
those variables, the finished document never contains an unsubstituted
slot: :meth:`LayoutBinder.bind` checks the output and patches any literal
placeholder left behind.
"""

from __future__ import annotations

import html
import logging
import re
import secrets
import typing as typ

import msgspec

from storefront_pages._constants import CONTENT_SLOT, FALLBACK_LAYOUT, HEADER_SLOT, LAYOUT_DIR

from .assets import AssetUrlBuilder, rewrite_asset_directives, rewrite_asset_references
from .errors import LayoutSubstitutionFault, RecursionLimitExceeded
from .preprocess import prepare_source

if typ.TYPE_CHECKING:
    from storefront_pages.config import EngineConfig
    from storefront_pages.theme.files import ThemeFiles
    from storefront_pages.theme.models import Theme

    from .context import RenderContext
    from .engine import TemplateEngine
    from .guard import RenderDepthGuard

logger = logging.getLogger(__name__)

SLOT_PATTERN = re.compile(r"\{\{-?\s*(content_for_(?:layout|header))\s*-?\}\}")


def _script_json(value: object) -> str:
    return msgspec.json.encode(value).decode("utf-8").replace("</", "<\\/")


def build_content_for_header(
    theme: Theme,
    *,
    path: str,
    locale: str,
    builder: AssetUrlBuilder,
) -> str:
    """Return the markup bound to ``content_for_header``.

    Parameters
    ----------
    theme : Theme
        Store and theme being rendered.
    path : str
        Request path, published as ``window.themeCurrentPath``.
    locale : str
        Selected locale, published as ``Shopify.locale``.
    builder : AssetUrlBuilder
        Asset URL builder whose prefix is published as a meta tag.

    Returns
    -------
    str
        Meta tags and an inline script describing the storefront.

    Examples
    --------
    >>> from storefront_pages.theme.models import Theme
    >>> header = build_content_for_header(
    ...     Theme("s1", "t1", name="Dawn"),
    ...     path="/",
    ...     locale="en",
    ...     builder=AssetUrlBuilder("s1", "t1"),
    ... )
    >>> '<meta name="theme-id" content="t1">' in header
    True
    """
    shop = {
        "shop": theme.store_domain or theme.store_id,
        "locale": locale,
        "theme": {"id": theme.theme_id, "name": theme.name, "role": theme.role},
        "currency": {"active": theme.currency},
    }
    return "".join(
        [
            '<meta charset="utf-8">',
            '<meta name="viewport" content="width=device-width, initial-scale=1">',
            f'<meta name="theme-id" content="{html.escape(theme.theme_id, quote=True)}">',
            f'<meta name="theme-name" content="{html.escape(theme.name, quote=True)}">',
            f'<meta name="asset-base-url" content="{html.escape(builder.prefix, quote=True)}">',
            "<script>",
            f"window.Shopify = window.Shopify || {{}};Object.assign(window.Shopify, {_script_json(shop)});",
            f"window.themeCurrentPath = {_script_json(path)};",
            "</script>",
        ]
    )


def slot_token(slot: str) -> str:
    """Return a unique placeholder token for ``slot``.

    Examples
    --------
    >>> slot_token("content_for_layout").startswith("<!--storefront-slot:content_for_layout:")
    True
    """
    return f"<!--storefront-slot:{slot}:{secrets.token_hex(8)}-->"


def patch_unsubstituted_slots(
    output: str, values: typ.Mapping[str, str]
) -> tuple[str, list[str]]:
    """Replace literal slot placeholders in ``output``.

    Returns the patched text and the names of the slots that were patched.

    Examples
    --------
    >>> patch_unsubstituted_slots("<b>{{ content_for_layout }}</b>", {"content_for_layout": "x"})
    ('<b>x</b>', ['content_for_layout'])
    """
    patched: list[str] = []

    def _replace(match: re.Match[str]) -> str:
        slot = match.group(1)
        if slot not in patched:
            patched.append(slot)
        return values.get(slot, "")

    return SLOT_PATTERN.sub(_replace, output), patched


class LayoutBinder:
    """Execute the theme layout around the composed page content."""

    def __init__(
        self, engine: TemplateEngine, config: EngineConfig, guard: RenderDepthGuard
    ) -> None:
        self.engine = engine
        self.config = config
        self.guard = guard

    def load(self, files: ThemeFiles, layout_name: str) -> str:
        """Return the layout source, or the built-in layout when missing."""
        source = files.read_text(f"{LAYOUT_DIR}/{layout_name}{self.config.template_suffix}")
        if source is None:
            logger.warning(
                "Layout not found, using built-in layout",
                extra={"layout": layout_name, "theme": files.theme.label},
            )
            return FALLBACK_LAYOUT
        return source

    def bind(
        self,
        theme: Theme,
        content: str,
        root: RenderContext,
        layout_name: str | None = None,
    ) -> str:
        """Render the layout with ``content`` bound to ``content_for_layout``.

        The layout executes with placeholder tokens bound to both slots. Any
        literal slot left in the layout output is replaced by its token, and
        only then are the tokens swapped for the real values, so page content
        that happens to contain slot text is never expanded a second time.

        Parameters
        ----------
        theme : Theme
            Store and theme being rendered.
        content : str
            Composed page content.
        root : RenderContext
            Page-level context; ``content_for_layout`` and
            ``content_for_header`` are bound into it.
        layout_name : str, optional
            Layout to use; defaults to the configured layout.

        Returns
        -------
        str
            The complete document with asset references rewritten.
        """
        name = layout_name or self.config.layout
        files: ThemeFiles = root.registers["files"]
        builder: AssetUrlBuilder = root.registers.get("asset_urls") or AssetUrlBuilder(
            theme.store_id, theme.theme_id, self.config.asset_base_url
        )
        content = rewrite_asset_references(content, builder)
        header = str(root.get(HEADER_SLOT) or "")
        values = {CONTENT_SLOT: content, HEADER_SLOT: header}
        tokens = {slot: slot_token(slot) for slot in values}
        root.set(CONTENT_SLOT, tokens[CONTENT_SLOT])
        root.set(HEADER_SLOT, tokens[HEADER_SLOT])

        source = self.load(files, name)
        try:
            with self.guard.enter(f"layout:{name}"):
                prepared = prepare_source(source, max_size=self.config.max_content_size)
                prepared = rewrite_asset_directives(prepared, builder, files)
                output = self.engine.execute(self.engine.compile(prepared), root)
        except RecursionLimitExceeded as exc:
            output = exc.diagnostic() + tokens[CONTENT_SLOT]
        except Exception as exc:  # noqa: BLE001 - the page content must still be delivered
            logger.error(  # noqa: TRY400 - traceback attached via exc_info
                "Error rendering layout, substituting slots in the raw source",
                exc_info=exc,
                extra={"layout": name, "theme": theme.label},
            )
            output = source
        finally:
            root.set(CONTENT_SLOT, content)
            root.set(HEADER_SLOT, header)

        output, patched = patch_unsubstituted_slots(output, tokens)
        if patched:
            fault = LayoutSubstitutionFault(name, patched)
            logger.error(
                str(fault),
                extra={"layout": name, "theme": theme.label, "slots": patched},
            )
        output = rewrite_asset_references(output, builder)
        for slot, token in tokens.items():
            output = output.replace(token, values[slot])
        return output


__all__ = [
    "LayoutBinder",
    "build_content_for_header",
    "patch_unsubstituted_slots",
    "slot_token",
]
