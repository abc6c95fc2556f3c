"""Source clean-up before execution and the corrective pass after it.

Theme sources carry editor and linter directives that have no meaning at
render time. :func:`prepare_source` strips them, converts the ``style`` and
``javascript`` wrapper tags into plain HTML elements, and truncates oversized
sources. :func:`resolve_unprocessed_markers` runs after execution when the
output still contains template delimiters.
"""

from __future__ import annotations

import logging
import re
import typing as typ

from storefront_pages.theme.models import MISSING

if typ.TYPE_CHECKING:
    from .context import RenderContext

logger = logging.getLogger(__name__)

SCHEMA_BLOCK_PATTERN = re.compile(
    r"\{%-?\s*schema\s*-?%\}.*?\{%-?\s*endschema\s*-?%\}", re.DOTALL
)
THEME_CHECK_PATTERN = re.compile(
    r"\{%-?\s*#\s*theme-check-(enable|disable).*?-?%\}", re.DOTALL
)
INLINE_COMMENT_PATTERN = re.compile(r"\{%-?\s*#.*?-?%\}", re.DOTALL)
COMMENT_BLOCK_PATTERN = re.compile(
    r"\{%-?\s*comment\s*-?%\}.*?\{%-?\s*endcomment\s*-?%\}", re.DOTALL
)
DOC_BLOCK_PATTERN = re.compile(r"\{%-?\s*doc\s*-?%\}.*?\{%-?\s*enddoc\s*-?%\}", re.DOTALL)
WRAPPER_TAGS: tuple[tuple[re.Pattern[str], str], ...] = (
    (re.compile(r"\{%-?\s*style\s*-?%\}"), "<style data-shopify>"),
    (re.compile(r"\{%-?\s*endstyle\s*-?%\}"), "</style>"),
    (re.compile(r"\{%-?\s*stylesheet\s*-?%\}"), "<style>"),
    (re.compile(r"\{%-?\s*endstylesheet\s*-?%\}"), "</style>"),
    (re.compile(r"\{%-?\s*javascript\s*-?%\}"), "<script>"),
    (re.compile(r"\{%-?\s*endjavascript\s*-?%\}"), "</script>"),
)
BLOCK_SNIPPET_PATTERN = re.compile(
    r"""\{%-?\s*render\s+['"]block['"][^%]*-?%\}"""
)
SIMPLE_MARKER_PATTERN = re.compile(r"\{\{\s*([a-zA-Z0-9_\.]+)\s*\}\}")
TEMPLATE_DELIMITERS = ("{{", "{%")
TRUNCATION_NOTICE = "\n<!-- Content truncated due to size limitations -->"


def strip_editor_directives(source: str) -> str:
    """Remove schema, comment, doc and theme-check directives from ``source``.

    Examples
    --------
    >>> strip_editor_directives("a{% comment %}x{% endcomment %}b{% # note %}c")
    'abc'
    """
    source = SCHEMA_BLOCK_PATTERN.sub("", source)
    source = THEME_CHECK_PATTERN.sub("", source)
    source = COMMENT_BLOCK_PATTERN.sub("", source)
    source = DOC_BLOCK_PATTERN.sub("", source)
    return INLINE_COMMENT_PATTERN.sub("", source)


def convert_wrapper_tags(source: str) -> str:
    """Replace ``{% style %}``/``{% javascript %}`` wrappers with HTML elements."""
    for pattern, replacement in WRAPPER_TAGS:
        source = pattern.sub(replacement, source)
    return source


def replace_block_snippet(source: str) -> str:
    """Render ``{% render 'block' %}`` as the block's editor attributes."""
    return BLOCK_SNIPPET_PATTERN.sub("{{ block.shopify_attributes }}", source)


def truncate_source(source: str, limit: int) -> str:
    """Cut ``source`` to ``limit`` characters, appending a notice comment."""
    if len(source) <= limit:
        return source
    logger.warning(
        "Template source truncated", extra={"size": len(source), "limit": limit}
    )
    return source[:limit] + TRUNCATION_NOTICE


def prepare_source(source: str, *, max_size: int, has_block_snippet: bool = True) -> str:
    """Apply every pre-execution clean-up step to ``source``.

    Parameters
    ----------
    source : str
        Raw section, snippet, or template source.
    max_size : int
        Maximum number of characters kept.
    has_block_snippet : bool, optional
        ``False`` when the theme lacks ``snippets/block``; calls to it are then
        replaced by the block's editor attributes.

    Returns
    -------
    str
        Source ready for the asset directive pre-pass and execution.
    """
    source = truncate_source(source, max_size)
    source = strip_editor_directives(source)
    source = convert_wrapper_tags(source)
    if not has_block_snippet:
        source = replace_block_snippet(source)
    return source


def has_unprocessed_markers(output: str) -> bool:
    """Return ``True`` when ``output`` still contains template delimiters."""
    return any(marker in output for marker in TEMPLATE_DELIMITERS)


def _stringify(value: object) -> str | None:
    match value:
        case bool():
            return "true" if value else "false"
        case None:
            return ""
        case str():
            return value
        case int() | float():
            return str(value)
        case _:
            return None


def resolve_unprocessed_markers(output: str, context: RenderContext) -> str:
    """Resolve leftover ``{{ dotted.name }}`` markers against ``context``.

    Strings and numbers become text, booleans ``true``/``false`` and ``None``
    the empty string. Unknown names and other values are left untouched.

    Examples
    --------
    >>> from storefront_pages.rendering.context import RenderContext
    >>> ctx = RenderContext({"shop": {"name": "Acme"}, "flag": True})
    >>> resolve_unprocessed_markers("{{ shop.name }} {{flag}} {{ nope }}", ctx)
    'Acme true {{ nope }}'
    """

    def _replace(match: re.Match[str]) -> str:
        value = context.resolve(match.group(1))
        if value is MISSING:
            return match.group(0)
        text = _stringify(value)
        return match.group(0) if text is None else text

    resolved = SIMPLE_MARKER_PATTERN.sub(_replace, output)
    if resolved != output:
        logger.warning(
            "Resolved template markers left in rendered output",
            extra={"markers": SIMPLE_MARKER_PATTERN.findall(output)[:20]},
        )
    return resolved


__all__ = [
    "convert_wrapper_tags",
    "has_unprocessed_markers",
    "prepare_source",
    "replace_block_snippet",
    "resolve_unprocessed_markers",
    "strip_editor_directives",
    "truncate_source",
]
