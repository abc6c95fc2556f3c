"""Decode theme JSON documents (page templates, section groups, settings).

Theme JSON files are decoded with :mod:`msgspec.json` into plain Python
values and then mapped onto the dataclasses in :mod:`.models`. Editors often
prepend a ``/* ... */`` banner to generated files; it is stripped before
decoding.
"""

from __future__ import annotations

import re
import typing as typ

import msgspec

from .models import BlockInstance, JsonTemplate, SectionInstance

LEADING_COMMENT_PATTERN = re.compile(r"\A\s*/\*.*?\*/", re.DOTALL)
_SECTION_KEYS = frozenset({"id", "type", "settings", "blocks", "block_order", "disabled"})


class ThemeDocumentError(ValueError):
    """Raised when a theme JSON document cannot be decoded."""


def strip_leading_comment(text: str) -> str:
    """Remove a leading ``/* ... */`` block comment from ``text``."""
    return LEADING_COMMENT_PATTERN.sub("", text, count=1)


def decode_json_document(text: str | bytes) -> typ.Any:  # noqa: ANN401 - arbitrary JSON
    """Decode a theme JSON document into Python values.

    Parameters
    ----------
    text : str or bytes
        Raw document contents, optionally prefixed with a block comment.

    Returns
    -------
    Any
        The decoded JSON value.

    Raises
    ------
    ThemeDocumentError
        If the document is not valid JSON.
    """
    if isinstance(text, bytes):
        text = text.decode("utf-8", errors="replace")
    cleaned = strip_leading_comment(text).strip()
    if not cleaned:
        msg = "Theme document is empty."
        raise ThemeDocumentError(msg)
    try:
        return msgspec.json.decode(cleaned.encode("utf-8"))
    except msgspec.DecodeError as exc:
        msg = f"Theme document is not valid JSON: {exc}"
        raise ThemeDocumentError(msg) from exc


def _as_mapping(value: object) -> dict[str, typ.Any]:
    return dict(value) if isinstance(value, dict) else {}


def _as_order(value: object, fallback: typ.Iterable[str]) -> list[str]:
    if isinstance(value, list):
        return [str(item) for item in value]
    return list(fallback)


def _parse_blocks(raw: object) -> dict[str, BlockInstance]:
    match raw:
        case dict():
            entries = [(str(key), value) for key, value in raw.items()]
        case list():
            entries = [
                (str(item.get("id", index)) if isinstance(item, dict) else str(index), item)
                for index, item in enumerate(raw)
            ]
        case _:
            return {}
    blocks: dict[str, BlockInstance] = {}
    for block_id, data in entries:
        if not isinstance(data, dict):
            continue
        blocks[block_id] = BlockInstance(
            id=block_id,
            type=str(data.get("type", "")),
            settings=_as_mapping(data.get("settings")),
            disabled=bool(data.get("disabled", False)),
        )
    return blocks


def parse_section_instance(section_id: str, data: typ.Mapping[str, typ.Any]) -> SectionInstance:
    """Build a :class:`SectionInstance` from one entry of a ``sections`` map.

    Unknown top-level keys are preserved in ``extra``.
    """
    blocks = _parse_blocks(data.get("blocks"))
    raw_type = data.get("type")
    return SectionInstance(
        id=section_id,
        type=str(raw_type) if raw_type else None,
        settings=_as_mapping(data.get("settings")),
        blocks=blocks,
        block_order=_as_order(data.get("block_order"), blocks),
        disabled=bool(data.get("disabled", False)),
        extra={key: value for key, value in data.items() if key not in _SECTION_KEYS},
    )


def parse_json_template(name: str, document: object) -> JsonTemplate:
    """Map a decoded JSON template (or section group) onto :class:`JsonTemplate`.

    Parameters
    ----------
    name : str
        Template name the document was loaded for.
    document : object
        Decoded JSON value.

    Returns
    -------
    JsonTemplate
        Template with ``order`` defaulting to the key order of ``sections``.

    Raises
    ------
    ThemeDocumentError
        If ``document`` is not a JSON object.
    """
    if not isinstance(document, dict):
        msg = f"Template '{name}' must be a JSON object."
        raise ThemeDocumentError(msg)
    sections: dict[str, SectionInstance] = {}
    for section_id, data in _as_mapping(document.get("sections")).items():
        if isinstance(data, dict):
            sections[str(section_id)] = parse_section_instance(str(section_id), data)
    layout = document.get("layout")
    if layout is not False and layout is not None:
        layout = str(layout)
    wrapper = document.get("wrapper")
    return JsonTemplate(
        name=name,
        sections=sections,
        order=_as_order(document.get("order"), sections),
        layout=layout,
        wrapper=str(wrapper) if wrapper else None,
    )


__all__ = [
    "ThemeDocumentError",
    "decode_json_document",
    "parse_json_template",
    "parse_section_instance",
    "strip_leading_comment",
]
