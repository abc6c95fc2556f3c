"""Rewrite theme asset references into tenant-scoped URLs.

Every asset a theme references resolves to
``<asset_base_url>/assets/<store_id>/<theme_id>/<file>``. Two passes exist:

- :func:`rewrite_asset_directives` runs on sources before execution and
  expands literal stylesheet, placeholder graphic and inline SVG directives;
- :func:`rewrite_asset_references` runs on rendered output and fixes
  leftover directives, bare ``svg-wrapper`` icons and relative stylesheet
  and script URLs.

The output pass never touches absolute, protocol-relative, root-relative or
already rewritten URLs, so applying it repeatedly is harmless.
"""

from __future__ import annotations

import dataclasses as dc
import html
import logging
import re
import typing as typ

from storefront_pages._constants import ASSETS_DIR

from .engine import active_context

if typ.TYPE_CHECKING:
    from storefront_pages.theme.files import ThemeFiles

logger = logging.getLogger(__name__)

EXTERNAL_URL_PATTERN = re.compile(r"^(?:[a-zA-Z][a-zA-Z0-9+.-]*:|//|/|#)")
STYLESHEET_DIRECTIVE_PATTERN = re.compile(
    r"""\{\{-?\s*['"]([^'"}]+\.css)['"]\s*\|\s*asset_url\s*\|\s*stylesheet_tag\s*-?\}\}""",
    re.IGNORECASE,
)
PLACEHOLDER_DIRECTIVE_PATTERN = re.compile(
    r"""\{\{-?\s*['"]([^'"}]+)['"]\s*\|\s*placeholder_svg_tag"""
    r"""(?:\s*[:(]\s*['"]([^'"]*)['"]\s*\)?)?\s*-?\}\}""",
    re.IGNORECASE,
)
INLINE_SVG_DIRECTIVE_PATTERN = re.compile(
    r"""\{\{-?\s*['"]([^'"}]+\.svg)['"]\s*\|\s*inline_asset_content\s*-?\}\}""",
    re.IGNORECASE,
)
ASSET_MARKER_PATTERN = re.compile(
    r"""\{\{-?\s*['"]?([^'"}\s]+\.(?:css|js|jpe?g|png|gif|svg|webp))['"]?\s*"""
    r"""\|\s*asset_url(\s*\|\s*stylesheet_tag)?\s*-?\}\}""",
    re.IGNORECASE,
)
SVG_WRAPPER_PATTERN = re.compile(
    r'<span class="svg-wrapper">([\w\-.]+\.svg)</span>', re.IGNORECASE
)
STYLESHEET_HREF_PATTERN = re.compile(r'href="([^"]+\.css)"', re.IGNORECASE)
SCRIPT_SRC_PATTERN = re.compile(r'src="([^"]+\.js)"', re.IGNORECASE)
SVG_CLASS_PATTERN = re.compile(r"""class=(["'])(.*?)\1""", re.IGNORECASE)
SVG_OPEN_PATTERN = re.compile(r"<svg\s", re.IGNORECASE)

PLACEHOLDER_CLASS = "placeholder-svg"
_PLACEHOLDER_OPEN = (
    f'<svg class="{PLACEHOLDER_CLASS}" xmlns="http://www.w3.org/2000/svg" '
    'viewBox="0 0 525 525"><rect width="525" height="525" fill="#F6F6F6"/>'
)
PLACEHOLDER_FALLBACKS: dict[str, str] = {
    "hero-apparel-1": _PLACEHOLDER_OPEN
    + '<path d="M375,375H150V150H375Z" fill="#D8D8D8"/>'
    '<path d="M262.5,336.6V188.4a37.4,37.4,0,0,1,37.4-37.4h0A37.4,37.4,0,0,1,'
    '337.3,188.4V336.6" fill="none" stroke="#A4A4A4" stroke-width="4"/></svg>',
    "hero-apparel-2": _PLACEHOLDER_OPEN
    + '<path d="M375,375H150V150H375Z" fill="#D8D8D8"/>'
    '<path d="M262.5,337.5a75,75,0,0,1,0-150h0a75,75,0,0,1,0,150Z" fill="none" '
    'stroke="#A4A4A4" stroke-width="4"/></svg>',
    "collection-1": _PLACEHOLDER_OPEN
    + '<rect x="141" y="276" width="243" height="110" fill="#EEEEEE"/>'
    '<rect x="141" y="138" width="243" height="110" fill="#EEEEEE"/></svg>',
    "collection-2": _PLACEHOLDER_OPEN
    + '<rect x="137" y="138" width="251" height="246" fill="#EEEEEE"/></svg>',
    "image": _PLACEHOLDER_OPEN
    + '<path d="M324.5,323.5H200.5V200.5H324.5Z" fill="#EEEEEE"/></svg>',
    "product-1": _PLACEHOLDER_OPEN
    + '<path d="M151.5,339.5L229,243.5,286,302.5,394.5,193.5" fill="none" '
    'stroke="#C4C4C4" stroke-width="5"/><circle cx="395" cy="193" r="13" '
    'fill="#C4C4C4"/><circle cx="151" cy="340" r="13" fill="#C4C4C4"/></svg>',
}


def is_external_url(url: str) -> bool:
    """Return ``True`` for URLs the rewriter must leave alone.

    Examples
    --------
    >>> [is_external_url(u) for u in ("https://x/a.css", "//cdn/a.js", "/a.css", "a.css")]
    [True, True, True, False]
    """
    return bool(EXTERNAL_URL_PATTERN.match(url))


@dc.dataclass(frozen=True, slots=True)
class AssetUrlBuilder:
    """Build asset URLs for one store and theme.

    Examples
    --------
    >>> AssetUrlBuilder("s1", "t9").url("base.css")
    '/assets/s1/t9/base.css'
    >>> AssetUrlBuilder("s1", "t9", "https://cdn.example").url("'app.js'")
    'https://cdn.example/assets/s1/t9/app.js'
    """

    store_id: str
    theme_id: str
    base_url: str = ""

    @property
    def prefix(self) -> str:
        """Return the URL prefix shared by every asset of the theme."""
        return f"{self.base_url.rstrip('/')}/{ASSETS_DIR}/{self.store_id}/{self.theme_id}"

    def url(self, name: object) -> str:
        """Return the URL for asset ``name``; external URLs pass through."""
        text = str(name or "").strip().strip("'\"")
        if not text:
            return ""
        if self.is_rewritten(text) or is_external_url(text):
            return text
        return f"{self.prefix}/{text.removeprefix(f'{ASSETS_DIR}/')}"

    def is_rewritten(self, url: str) -> bool:
        """Return ``True`` when ``url`` already points at this theme's assets."""
        return url.startswith(f"{self.prefix}/")


def stylesheet_link(url: str) -> str:
    """Return a deferred stylesheet ``<link>`` for ``url``."""
    if not url:
        return ""
    href = html.escape(url, quote=True)
    return (
        f'<link rel="stylesheet" href="{href}" media="print" '
        "onload=\"this.media='all'\">"
    )


def script_element(url: str) -> str:
    """Return a deferred ``<script>`` element for ``url``."""
    if not url:
        return ""
    return f'<script src="{html.escape(url, quote=True)}" defer="defer"></script>'


def add_svg_class(svg: str, css_class: str = "") -> str:
    """Ensure ``svg`` carries ``placeholder-svg`` plus ``css_class``."""
    wanted = [PLACEHOLDER_CLASS]
    if css_class and css_class != PLACEHOLDER_CLASS:
        wanted.extend(css_class.split())
    match = SVG_CLASS_PATTERN.search(svg)
    if match is not None:
        existing = match.group(2).split()
        merged = " ".join(dict.fromkeys([*existing, *wanted]))
        return svg[: match.start()] + f'class="{merged}"' + svg[match.end() :]
    return SVG_OPEN_PATTERN.sub(f'<svg class="{" ".join(wanted)}" ', svg, count=1)


def placeholder_svg(name: str, css_class: str = "", files: ThemeFiles | None = None) -> str:
    """Return placeholder SVG markup for ``name``.

    The theme's own ``assets/<name>.svg`` wins, then a built-in shape, then
    a generic labelled placeholder.
    """
    base_name = name.strip().strip("'\"").removesuffix(".svg")
    if files is not None:
        content = files.read_text(f"{ASSETS_DIR}/{base_name}.svg")
        if content and "<svg" in content.lower():
            return add_svg_class(content, css_class)
    svg = PLACEHOLDER_FALLBACKS.get(base_name)
    if svg is None:
        label = html.escape(base_name)
        svg = (
            f"{_PLACEHOLDER_OPEN}<text x=\"50%\" y=\"50%\" text-anchor=\"middle\" "
            f'dy="0.3em" fill="#A4A4A4">{label}</text></svg>'
        )
    return add_svg_class(svg, css_class)


def inline_svg(name: str, builder: AssetUrlBuilder, files: ThemeFiles | None) -> str:
    """Return the SVG asset text, or an ``<img>`` pointing at it when missing."""
    content = files.read_text(f"{ASSETS_DIR}/{name}") if files is not None else None
    if content:
        return content
    logger.warning("Inline asset not found", extra={"asset": name})
    return f'<img src="{html.escape(builder.url(name), quote=True)}" alt="">'


def rewrite_asset_directives(
    source: str, builder: AssetUrlBuilder, files: ThemeFiles | None = None
) -> str:
    """Expand literal asset directives in a source before execution.

    Examples
    --------
    >>> builder = AssetUrlBuilder("s", "t")
    >>> rewrite_asset_directives("{{ 'a.css' | asset_url | stylesheet_tag }}", builder)
    '<link rel="stylesheet" href="/assets/s/t/a.css" media="print" onload="this.media=\\'all\\'">'
    """
    source = STYLESHEET_DIRECTIVE_PATTERN.sub(
        lambda match: stylesheet_link(builder.url(match.group(1))), source
    )
    source = PLACEHOLDER_DIRECTIVE_PATTERN.sub(
        lambda match: placeholder_svg(match.group(1), match.group(2) or "", files),
        source,
    )
    return INLINE_SVG_DIRECTIVE_PATTERN.sub(
        lambda match: inline_svg(match.group(1), builder, files), source
    )


def _rewrite_relative(pattern: re.Pattern[str], attribute: str, builder: AssetUrlBuilder, content: str) -> str:
    def _replace(match: re.Match[str]) -> str:
        url = match.group(1)
        if is_external_url(url) or builder.is_rewritten(url) or "{{" in url:
            return match.group(0)
        if url.lower().startswith(f"{ASSETS_DIR}/"):
            return match.group(0)
        return f'{attribute}="{builder.url(url)}"'

    return pattern.sub(_replace, content)


def rewrite_asset_references(content: str, builder: AssetUrlBuilder) -> str:
    """Rewrite asset references left in rendered output.

    Applying the function to its own output returns it unchanged.

    Examples
    --------
    >>> builder = AssetUrlBuilder("s", "t")
    >>> once = rewrite_asset_references('<link href="base.css">', builder)
    >>> once
    '<link href="/assets/s/t/base.css">'
    >>> rewrite_asset_references(once, builder) == once
    True
    """

    def _marker(match: re.Match[str]) -> str:
        url = builder.url(match.group(1))
        return stylesheet_link(url) if match.group(2) else url

    content = ASSET_MARKER_PATTERN.sub(_marker, content)
    content = SVG_WRAPPER_PATTERN.sub(
        lambda match: (
            '<span class="svg-wrapper">'
            f'<img src="{builder.url(match.group(1))}" alt=""></span>'
        ),
        content,
    )
    content = _rewrite_relative(STYLESHEET_HREF_PATTERN, "href", builder, content)
    return _rewrite_relative(SCRIPT_SRC_PATTERN, "src", builder, content)


def _context_builder() -> tuple[AssetUrlBuilder | None, ThemeFiles | None]:
    context = active_context()
    if context is None:
        return None, None
    return context.registers.get("asset_urls"), context.registers.get("files")


def asset_url_filter(value: object) -> str:
    """Implement the ``asset_url`` filter."""
    builder, _ = _context_builder()
    if builder is None:
        return str(value or "")
    return builder.url(value)


def image_url_filter(value: object, size: str = "") -> str:  # noqa: ARG001 - size is accepted for theme compatibility
    """Implement the ``img_url``/``asset_img_url`` filters."""
    return asset_url_filter(value)


def stylesheet_tag_filter(value: object) -> str:
    """Implement the ``stylesheet_tag`` filter."""
    return stylesheet_link(str(value or ""))


def script_tag_filter(value: object) -> str:
    """Implement the ``script_tag`` filter."""
    return script_element(str(value or ""))


def placeholder_svg_tag_filter(value: object, css_class: str = "") -> str:
    """Implement the ``placeholder_svg_tag`` filter."""
    _, files = _context_builder()
    return placeholder_svg(str(value or ""), css_class, files)


def inline_asset_content_filter(value: object) -> str:
    """Implement the ``inline_asset_content`` filter."""
    name = str(value or "").strip().strip("'\"")
    if not name:
        return ""
    _, files = _context_builder()
    content = files.read_text(f"{ASSETS_DIR}/{name}") if files is not None else None
    if content is None:
        logger.warning("Inline asset not found", extra={"asset": name})
        return f"<!-- Asset {html.escape(name)} not found -->"
    return content


ASSET_FILTERS = {
    "asset_url": asset_url_filter,
    "asset_img_url": image_url_filter,
    "img_url": image_url_filter,
    "stylesheet_tag": stylesheet_tag_filter,
    "script_tag": script_tag_filter,
    "placeholder_svg_tag": placeholder_svg_tag_filter,
    "inline_asset_content": inline_asset_content_filter,
}


__all__ = [
    "ASSET_FILTERS",
    "AssetUrlBuilder",
    "add_svg_class",
    "inline_svg",
    "is_external_url",
    "placeholder_svg",
    "rewrite_asset_directives",
    "rewrite_asset_references",
    "script_element",
    "stylesheet_link",
]
