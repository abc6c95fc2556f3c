"""Merge schema defaults, instance values, and theme-wide settings.

Effective settings are recomputed for every render and never mutate the
theme-wide dictionary. Precedence for each setting a schema declares, highest
first:

1. the instance's ``settings`` mapping;
2. a flat top-level key on the instance with the same id;
3. the schema ``default``;
4. whatever the theme-wide settings already hold.
"""

from __future__ import annotations

import logging
import re
import typing as typ

from storefront_pages._constants import SETTINGS_DATA_PATH, SETTINGS_SCHEMA_PATH
from storefront_pages.theme.decoding import ThemeDocumentError, decode_json_document

from .schema import parse_setting_definitions

if typ.TYPE_CHECKING:
    import collections.abc as cabc

    from storefront_pages.theme.files import ThemeFiles
    from storefront_pages.theme.models import (
        BlockInstance,
        SectionInstance,
        SectionSchema,
        SettingDefinition,
    )

logger = logging.getLogger(__name__)

THEME_INFO_GROUP = "theme_info"
THEME_INFO_FIELDS = (
    "theme_name",
    "theme_version",
    "theme_author",
    "theme_documentation_url",
    "theme_support_url",
    "theme_support_email",
)
HEX_COLOR_PATTERN = re.compile(r"^#([0-9a-fA-F]{3}|[0-9a-fA-F]{6})$")
NUMERIC_TYPES = frozenset({"range", "number"})


def _fallback(definition: SettingDefinition) -> typ.Any:  # noqa: ANN401
    return definition.default if definition.has_default else None


def _as_number(value: object) -> int | float | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int | float):
        return value
    if isinstance(value, str):
        try:
            number = float(value)
        except ValueError:
            return None
        return int(number) if number.is_integer() and "." not in value else number
    return None


def coerce_setting(definition: SettingDefinition, value: object) -> typ.Any:  # noqa: ANN401
    """Coerce ``value`` to the type the schema declares for it.

    Examples
    --------
    >>> from storefront_pages.theme.models import SettingDefinition
    >>> coerce_setting(SettingDefinition("show", "checkbox"), "false")
    False
    >>> coerce_setting(SettingDefinition("cols", "range", default=4), "x")
    4
    >>> coerce_setting(SettingDefinition("size", "select", "m", ("s", "m")), "xl")
    'm'
    """
    match definition.type:
        case "checkbox":
            if isinstance(value, str):
                return value.strip().lower() not in {"", "false", "0", "no", "off"}
            return bool(value)
        case kind if kind in NUMERIC_TYPES:
            number = _as_number(value)
            return _fallback(definition) if number is None else number
        case "select" | "radio":
            if definition.options and str(value) not in definition.options:
                if definition.has_default:
                    return definition.default
                return definition.options[0]
            return value
        case _:
            return value


def _merge_declared(
    merged: dict[str, typ.Any],
    definitions: cabc.Iterable[SettingDefinition],
    own: cabc.Mapping[str, typ.Any],
    flat: cabc.Mapping[str, typ.Any],
) -> None:
    for definition in definitions:
        key = definition.id
        if key in own:
            merged[key] = coerce_setting(definition, own[key])
        elif key in flat:
            merged[key] = coerce_setting(definition, flat[key])
        elif definition.has_default:
            merged[key] = coerce_setting(definition, definition.default)


def merge_section_settings(
    schema: SectionSchema | None,
    theme_settings: cabc.Mapping[str, typ.Any],
    instance: SectionInstance,
) -> dict[str, typ.Any]:
    """Return the effective settings for one section render.

    Parameters
    ----------
    schema : SectionSchema or None
        Decoded section schema; ``None`` when the section declares none.
    theme_settings : Mapping[str, Any]
        Theme-wide settings; copied, never mutated.
    instance : SectionInstance
        The section as placed by the page template.

    Returns
    -------
    dict[str, Any]
        Theme-wide values overlaid with the instance's values and schema
        defaults. Instance settings the schema does not declare are copied
        through unchanged.

    Examples
    --------
    >>> from storefront_pages.theme.models import (
    ...     SectionInstance, SectionSchema, SettingDefinition,
    ... )
    >>> schema = SectionSchema("Hero", [SettingDefinition("title", default="Hi")])
    >>> merge_section_settings(schema, {"accent": "red"}, SectionInstance("h", "hero"))
    {'accent': 'red', 'title': 'Hi'}
    """
    merged = dict(theme_settings)
    declared = {definition.id for definition in schema.settings} if schema else set()
    for key, value in instance.settings.items():
        if key not in declared:
            merged[key] = value
    if schema is not None:
        _merge_declared(merged, schema.settings, instance.settings, instance.extra)
    return merged


def merge_block_settings(
    schema: SectionSchema | None, block: BlockInstance
) -> dict[str, typ.Any]:
    """Return a block's settings overlaid on its block-type schema defaults."""
    merged = dict(block.settings)
    block_schema = schema.block_schema(block.type) if schema else None
    if block_schema is not None:
        _merge_declared(merged, block_schema.settings, block.settings, {})
    return merged


def _hex_to_rgb(value: str) -> dict[str, typ.Any]:
    digits = value.lstrip("#")
    if len(digits) == 3:
        digits = "".join(char * 2 for char in digits)
    red, green, blue = (int(digits[index : index + 2], 16) for index in (0, 2, 4))
    return {
        "red": red,
        "green": green,
        "blue": blue,
        "rgb": f"{red},{green},{blue}",
        "hex": value,
    }


def normalize_color_schemes(schemes: object) -> dict[str, typ.Any]:
    """Expand hex colours in ``color_schemes`` into RGB component mappings."""
    if not isinstance(schemes, dict):
        return {}
    normalized: dict[str, typ.Any] = {}
    for scheme_id, scheme in schemes.items():
        if not isinstance(scheme, dict):
            normalized[str(scheme_id)] = {"id": str(scheme_id), "settings": {}}
            continue
        settings = {
            key: _hex_to_rgb(value)
            if isinstance(value, str) and HEX_COLOR_PATTERN.match(value)
            else value
            for key, value in dict(scheme.get("settings") or {}).items()
        }
        settings.setdefault("background_gradient", "")
        normalized[str(scheme_id)] = {**scheme, "id": str(scheme_id), "settings": settings}
    return normalized


def parse_font(value: object) -> dict[str, typ.Any] | None:
    """Return a font mapping for a ``font_picker`` value.

    Handles such as ``assistant_n4`` carry the family and an ``n<weight/100>``
    variant; mappings are copied with ``weight`` defaulting to 400.

    Examples
    --------
    >>> parse_font("assistant_n6")["weight"]
    600
    >>> parse_font("") is None
    True
    """
    if isinstance(value, dict):
        return {"weight": 400, "style": "normal", **value}
    if not isinstance(value, str) or not value:
        return None
    family, _, variant = value.partition("_")
    weight = 400
    if variant.startswith("n") and variant[1:].isdigit():
        weight = int(variant[1:]) * 100
    return {
        "family": family,
        "fallback_families": "sans-serif",
        "weight": weight,
        "style": "normal",
    }


def theme_variables(settings: cabc.Mapping[str, typ.Any]) -> dict[str, typ.Any]:
    """Return page-level variables derived from theme-wide ``settings``.

    ``color_schemes`` is published at the top level, and a ``type_body_font``
    yields ``body_font_bold``, ``body_font_italic`` and
    ``body_font_bold_italic`` variants. Bold adds 300 to the weight, capped
    at 900.

    Examples
    --------
    >>> variables = theme_variables({"type_body_font": "assistant_n4"})
    >>> variables["body_font_bold"]["weight"], variables["body_font_italic"]["style"]
    (700, 'italic')
    """
    variables: dict[str, typ.Any] = {}
    if "color_schemes" in settings:
        variables["color_schemes"] = settings["color_schemes"]
    body_font = parse_font(settings.get("type_body_font"))
    if body_font is not None:
        bold_weight = min(int(_as_number(body_font.get("weight")) or 400) + 300, 900)
        variables["body_font_bold"] = {**body_font, "weight": bold_weight}
        variables["body_font_italic"] = {**body_font, "style": "italic"}
        variables["body_font_bold_italic"] = {
            **body_font,
            "weight": bold_weight,
            "style": "italic",
        }
    return variables


class ThemeSettingsLoader:
    """Build theme-wide settings from ``config/settings_*.json``."""

    def _decode(self, files: ThemeFiles, path: str) -> typ.Any:  # noqa: ANN401
        text = files.read_text(path)
        if text is None:
            logger.info("Theme settings file not found", extra={"path": path})
            return None
        try:
            return decode_json_document(text)
        except ThemeDocumentError as exc:
            logger.error(  # noqa: TRY400 - invalid files are reported, not raised
                "Invalid theme settings file",
                extra={"path": path, "error": str(exc), "json_sample": text[:200]},
            )
            return None

    def _defaults(self, groups: object) -> dict[str, typ.Any]:
        defaults: dict[str, typ.Any] = {}
        if not isinstance(groups, list):
            return defaults
        for group in groups:
            if not isinstance(group, dict):
                continue
            if group.get("name") == THEME_INFO_GROUP:
                defaults.update(
                    {field: group[field] for field in THEME_INFO_FIELDS if field in group}
                )
                continue
            for definition in parse_setting_definitions(group.get("settings")):
                if definition.has_default:
                    defaults[definition.id] = definition.default
        return defaults

    def _values(self, data: object) -> dict[str, typ.Any]:
        if not isinstance(data, dict):
            return {}
        current = data.get("current")
        if isinstance(current, dict):
            return dict(current)
        presets = data.get("presets")
        if not isinstance(presets, dict) or not presets:
            return {}
        name = current if isinstance(current, str) else "Default"
        preset = presets.get(name)
        if not isinstance(preset, dict):
            fallback = next(iter(presets))
            logger.warning(
                "Unknown settings preset, using fallback",
                extra={"preset": name, "fallback": fallback},
            )
            preset = presets[fallback]
        return dict(preset) if isinstance(preset, dict) else {}

    def load(self, files: ThemeFiles) -> dict[str, typ.Any]:
        """Return theme-wide settings; ``{}`` when nothing can be loaded."""
        settings = self._defaults(self._decode(files, SETTINGS_SCHEMA_PATH))
        settings.update(self._values(self._decode(files, SETTINGS_DATA_PATH)))
        if "color_schemes" in settings:
            settings["color_schemes"] = normalize_color_schemes(settings["color_schemes"])
        return settings


__all__ = [
    "ThemeSettingsLoader",
    "coerce_setting",
    "merge_block_settings",
    "merge_section_settings",
    "normalize_color_schemes",
    "parse_font",
    "theme_variables",
]
