"""Locale selection, loading, and lookup of theme translations.

Translations live in ``locales/<locale>.json`` inside the theme, optionally
complemented by ``locales/<locale>.schema.json`` (editor strings used by
section schemas) and per-section files under
``locales/<locale>/sections/``. The loaded dictionary is stored in
``registers["translations"]`` and looked up with dotted keys such as
``products.product.add_to_cart``.
"""

from __future__ import annotations

import logging
import re
import typing as typ

from storefront_pages._constants import LOCALES_DIR
from storefront_pages.theme.decoding import ThemeDocumentError, decode_json_document

from .engine import active_context

if typ.TYPE_CHECKING:
    import collections.abc as cabc

    from storefront_pages.theme.files import ThemeFiles

    from .context import RenderContext

logger = logging.getLogger(__name__)

PARAM_PATTERN = re.compile(r"\{\{\s*(\w+)\s*\}\}")
FINAL_KEY_PATTERN = re.compile(r"(?<![\w-])t:([a-zA-Z0-9_-]+(?:\.[a-zA-Z0-9_-]+)+)")
TRANSLATION_PREFIX = "t:"
DEFAULT_MARKER = ".default"


def translate(
    key: str,
    params: cabc.Mapping[str, typ.Any] | None,
    translations: cabc.Mapping[str, typ.Any] | None,
) -> str:
    """Look up ``key`` in ``translations`` and substitute ``params``.

    Parameters
    ----------
    key : str
        Dotted translation key, optionally prefixed with ``t:``.
    params : Mapping[str, Any] or None
        Values substituted for ``{{ name }}`` placeholders. A ``count``
        parameter selects between ``one`` and ``other`` plural forms.
    translations : Mapping[str, Any] or None
        Locale dictionary.

    Returns
    -------
    str
        The translated text, or ``key`` unchanged when the lookup fails or
        does not end on a string.

    Examples
    --------
    >>> data = {"cart": {"items": "{{ count }} items", "title": "Cart"}}
    >>> translate("t:cart.title", None, data)
    'Cart'
    >>> translate("cart.items", {"count": 3}, data)
    '3 items'
    >>> translate("cart.missing", None, data)
    'cart.missing'
    """
    if not key:
        return ""
    if not translations:
        return key
    lookup = key.removeprefix(TRANSLATION_PREFIX)
    value: typ.Any = translations
    for part in lookup.split("."):
        if not isinstance(value, dict) or part not in value:
            logger.debug("Translation key not found", extra={"key": lookup})
            return key
        value = value[part]
    params = dict(params or {})
    if isinstance(value, dict) and "count" in params:
        value = value.get("one" if params["count"] == 1 else "other", value)
    if not isinstance(value, str):
        return key
    return PARAM_PATTERN.sub(
        lambda match: str(params.get(match.group(1), match.group(0))), value
    )


def localize_values(
    data: typ.Any,  # noqa: ANN401 - arbitrary decoded JSON
    translations: cabc.Mapping[str, typ.Any],
) -> typ.Any:  # noqa: ANN401
    """Translate every ``t:`` prefixed string nested in ``data``."""
    match data:
        case str() if data.startswith(TRANSLATION_PREFIX):
            return translate(data, None, translations)
        case dict():
            return {key: localize_values(value, translations) for key, value in data.items()}
        case list():
            return [localize_values(item, translations) for item in data]
        case _:
            return data


def translation_filter(
    value: object, params: cabc.Mapping[str, typ.Any] | None = None, **kwargs: object
) -> object:
    """Implement the ``t`` filter against the active context's translations."""
    if not isinstance(value, str):
        return value
    context = active_context()
    translations = context.registers.get("translations") if context else None
    merged = {**dict(params or {}), **kwargs}
    return translate(value, merged, translations)


def finalize_translations(content: str, translations: cabc.Mapping[str, typ.Any]) -> str:
    """Resolve literal ``t:dotted.key`` tokens left in ``content``."""
    if not translations:
        return content
    return FINAL_KEY_PATTERN.sub(
        lambda match: translate(match.group(0), None, translations), content
    )


def deep_merge(base: dict[str, typ.Any], extra: cabc.Mapping[str, typ.Any]) -> dict[str, typ.Any]:
    """Merge ``extra`` into a copy of ``base`` recursively."""
    merged = dict(base)
    for key, value in extra.items():
        current = merged.get(key)
        if isinstance(current, dict) and isinstance(value, dict):
            merged[key] = deep_merge(current, value)
        else:
            merged[key] = value
    return merged


def _parse_accept_language(header: str) -> list[str]:
    ranked: list[tuple[float, int, str]] = []
    for index, item in enumerate(header.split(",")):
        tag, _, params = item.strip().partition(";")
        if not tag or tag == "*":
            continue
        quality = 1.0
        if params.strip().startswith("q="):
            try:
                quality = float(params.strip()[2:])
            except ValueError:
                quality = 0.0
        ranked.append((-quality, index, tag.strip()))
    return [tag for _, _, tag in sorted(ranked)]


def available_locales(files: ThemeFiles) -> list[str]:
    """Return locale codes with a translation file in the theme."""
    locales: list[str] = []
    for path in files.list(LOCALES_DIR):
        filename = path.rsplit("/", 1)[-1]
        if not filename.endswith(".json") or filename.endswith(".schema.json"):
            continue
        code = filename.removesuffix(".json").removesuffix(DEFAULT_MARKER)
        if code not in locales:
            locales.append(code)
    return locales


def choose_locale(
    available: cabc.Sequence[str],
    *,
    requested: str | None = None,
    accept_language: str | None = None,
    default: str = "pt-BR",
) -> str:
    """Pick the locale for a request.

    An explicit ``requested`` locale always wins. Otherwise each
    ``Accept-Language`` entry is matched exactly (case-insensitive), then by
    language prefix, against ``available``. ``default`` is the fallback.

    Examples
    --------
    >>> choose_locale(["en", "pt-BR"], accept_language="pt-br,en;q=0.5")
    'pt-BR'
    >>> choose_locale(["en", "pt-BR"], accept_language="en-GB")
    'en'
    >>> choose_locale(["en"], requested="fr")
    'fr'
    """
    if requested:
        return requested
    lowered = {code.lower(): code for code in available}
    for tag in _parse_accept_language(accept_language or ""):
        exact = lowered.get(tag.lower())
        if exact:
            return exact
        language = tag.split("-", 1)[0].lower()
        for code in available:
            if code.split("-", 1)[0].lower() == language:
                return code
    return default


class TranslationInjector:
    """Load locale dictionaries and publish them into render contexts.

    Each instance caches the dictionaries it loads; the storefront renderer
    creates one per page render.
    """

    def __init__(self) -> None:
        self._cache: dict[tuple[str, str, str], dict[str, typ.Any]] = {}

    def _read(self, files: ThemeFiles, path: str) -> dict[str, typ.Any] | None:
        text = files.read_text(path)
        if text is None:
            return None
        try:
            data = decode_json_document(text)
        except ThemeDocumentError as exc:
            logger.warning(
                "Invalid locale file", extra={"path": path, "error": str(exc)}
            )
            return None
        return data if isinstance(data, dict) else None

    def _fallback_default(self, files: ThemeFiles) -> dict[str, typ.Any] | None:
        for path in files.list(LOCALES_DIR):
            if path.endswith(f"{DEFAULT_MARKER}.json"):
                return self._read(files, path)
        return None

    def load(self, files: ThemeFiles, locale: str) -> dict[str, typ.Any]:
        """Return the merged translation dictionary for ``locale``."""
        theme = files.theme
        key = (theme.store_id, theme.theme_id, locale)
        if key in self._cache:
            return self._cache[key]

        base = (
            self._read(files, f"{LOCALES_DIR}/{locale}.json")
            or self._read(files, f"{LOCALES_DIR}/{locale}{DEFAULT_MARKER}.json")
            or self._fallback_default(files)
        )
        if base is None:
            logger.warning(
                "No translation file found",
                extra={"locale": locale, "theme": theme.label},
            )
            base = {}
        schema = self._read(files, f"{LOCALES_DIR}/{locale}.schema.json") or self._read(
            files, f"{LOCALES_DIR}/{locale}{DEFAULT_MARKER}.schema.json"
        )
        translations = deep_merge(base, schema) if schema else dict(base)

        for path in files.list(f"{LOCALES_DIR}/{locale}/sections"):
            section_data = self._read(files, path) if path.endswith(".json") else None
            if section_data is not None:
                section_name = path.rsplit("/", 1)[-1].removesuffix(".json")
                sections = dict(translations.get("sections") or {})
                sections[section_name] = deep_merge(
                    sections.get(section_name) or {}, section_data
                )
                translations["sections"] = sections

        self._cache[key] = translations
        return translations

    def inject(self, context: RenderContext, files: ThemeFiles, locale: str) -> dict[str, typ.Any]:
        """Load ``locale`` and bind it into ``context``.

        Sets ``registers["translations"]``, ``registers["current_locale"]``
        and the ``locale`` variable, and returns the dictionary.
        """
        translations = self.load(files, locale)
        context.registers["translations"] = translations
        context.registers["current_locale"] = locale
        context.set("locale", locale)
        return translations


__all__ = [
    "TranslationInjector",
    "available_locales",
    "choose_locale",
    "deep_merge",
    "finalize_translations",
    "localize_values",
    "translate",
    "translation_filter",
]
