"""Extract and decode the ``{% schema %}`` block embedded in section sources."""

from __future__ import annotations

import logging
import re
import typing as typ

import msgspec

from storefront_pages.theme.models import (
    MISSING,
    BlockSchema,
    SectionSchema,
    SettingDefinition,
)

from .errors import SchemaParseError
from .translations import localize_values

if typ.TYPE_CHECKING:
    import collections.abc as cabc

logger = logging.getLogger(__name__)

SCHEMA_PATTERN = re.compile(
    r"\{%-?\s*schema\s*-?%\}(.*?)\{%-?\s*endschema\s*-?%\}", re.DOTALL
)
SAMPLE_LENGTH = 200
VALUELESS_SETTING_TYPES = frozenset({"header", "paragraph"})


def _option_values(raw: object) -> tuple[str, ...]:
    if not isinstance(raw, list):
        return ()
    values: list[str] = []
    for option in raw:
        value = option.get("value") if isinstance(option, dict) else option
        if value is not None:
            values.append(str(value))
    return tuple(values)


def _optional_float(value: object) -> float | None:
    if isinstance(value, int | float) and not isinstance(value, bool):
        return float(value)
    return None


def parse_setting_definitions(raw: object) -> list[SettingDefinition]:
    """Convert a schema ``settings`` array into :class:`SettingDefinition` items.

    Entries without an ``id`` and informational entries (``header``,
    ``paragraph``) are skipped.
    """
    if not isinstance(raw, list):
        return []
    definitions: list[SettingDefinition] = []
    for entry in raw:
        if not isinstance(entry, dict) or not entry.get("id"):
            continue
        setting_type = str(entry.get("type", "text"))
        if setting_type in VALUELESS_SETTING_TYPES:
            continue
        definitions.append(
            SettingDefinition(
                id=str(entry["id"]),
                type=setting_type,
                default=entry.get("default", MISSING),
                options=_option_values(entry.get("options")),
                minimum=_optional_float(entry.get("min")),
                maximum=_optional_float(entry.get("max")),
            )
        )
    return definitions


def _parse_blocks(raw: object) -> list[BlockSchema]:
    if not isinstance(raw, list):
        return []
    return [
        BlockSchema(
            type=str(entry.get("type", "")),
            name=str(entry.get("name", "")),
            settings=parse_setting_definitions(entry.get("settings")),
        )
        for entry in raw
        if isinstance(entry, dict)
    ]


def build_section_schema(data: dict[str, typ.Any], *, section_type: str) -> SectionSchema:
    """Map a decoded schema object onto :class:`SectionSchema`."""
    return SectionSchema(
        name=str(data.get("name") or section_type),
        settings=parse_setting_definitions(data.get("settings")),
        blocks=_parse_blocks(data.get("blocks")),
        raw=data,
    )


def extract_schema(
    source: str,
    *,
    section_type: str,
    translations: cabc.Mapping[str, typ.Any] | None = None,
) -> SectionSchema | None:
    """Return the schema declared by a section source, if any.

    Parameters
    ----------
    source : str
        Raw section source, schema block included.
    section_type : str
        Section type, used in log records.
    translations : Mapping[str, Any], optional
        Locale dictionary used to resolve ``t:`` prefixed strings.

    Returns
    -------
    SectionSchema or None
        ``None`` when the source declares no schema, the body is not valid
        JSON, or the body is not a JSON object. Failures are logged, never
        raised.

    Examples
    --------
    >>> source = '{% schema %}{"name": "Hero", "settings": []}{% endschema %}'
    >>> extract_schema(source, section_type="hero").name
    'Hero'
    >>> extract_schema("<p>plain</p>", section_type="plain") is None
    True
    """
    match = SCHEMA_PATTERN.search(source)
    if match is None:
        logger.debug("Section declares no schema", extra={"section_type": section_type})
        return None
    body = match.group(1).strip()
    try:
        data = msgspec.json.decode(body.encode("utf-8"))
    except msgspec.DecodeError as exc:
        error = SchemaParseError(section_type, body[:SAMPLE_LENGTH], str(exc))
        logger.error(  # noqa: TRY400 - the decode failure is expected input
            str(error),
            extra={"section_type": section_type, "json_sample": error.sample},
        )
        return None
    if not isinstance(data, dict):
        logger.warning(
            "Section schema is not a JSON object", extra={"section_type": section_type}
        )
        return None
    if translations:
        data = localize_values(data, translations)
    return build_section_schema(data, section_type=section_type)


__all__ = [
    "build_section_schema",
    "extract_schema",
    "parse_setting_definitions",
]
