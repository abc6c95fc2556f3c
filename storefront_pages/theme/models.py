"""Dataclasses describing themes, page templates, and section schemas."""

from __future__ import annotations

import dataclasses as dc
import enum
import typing as typ

SettingValue: typ.TypeAlias = (
    "bool | int | float | str | list[typ.Any] | dict[str, typ.Any] | None"
)


class _Missing(enum.Enum):
    MISSING = enum.auto()

    def __repr__(self) -> str:
        return "MISSING"


MISSING = _Missing.MISSING


@dc.dataclass(frozen=True, slots=True)
class Theme:
    """Identify the store and theme a page is rendered for.

    Attributes
    ----------
    store_id : str
        Tenant identifier; the first segment of every theme file path.
    theme_id : str
        Theme identifier within the store.
    name : str
        Human readable theme name exposed as ``theme.name``.
    role : str
        Theme role (``main`` for the published theme).
    store_name : str
        Store display name exposed as ``shop.name``.
    store_domain : str
        Primary domain exposed as ``shop.domain``.
    currency : str
        ISO currency code exposed as ``shop.currency``.
    money_format : str
        Money format string exposed as ``shop.money_format``.
    """

    store_id: str
    theme_id: str
    name: str = ""
    role: str = "main"
    store_name: str = ""
    store_domain: str = ""
    currency: str = "BRL"
    money_format: str = "R$ {{amount}}"

    @property
    def label(self) -> str:
        """Return ``store/theme`` for log records."""
        return f"{self.store_id}/{self.theme_id}"


@dc.dataclass(slots=True)
class BlockInstance:
    """A block placed inside a section by a JSON template."""

    id: str
    type: str
    settings: dict[str, typ.Any] = dc.field(default_factory=dict)
    disabled: bool = False


@dc.dataclass(slots=True)
class SectionInstance:
    """A section placed on a page by a JSON template.

    ``extra`` keeps any top-level keys the template declared next to
    ``type``/``settings``/``blocks``; they take part in settings merging as
    flat values.
    """

    id: str
    type: str | None
    settings: dict[str, typ.Any] = dc.field(default_factory=dict)
    blocks: dict[str, BlockInstance] = dc.field(default_factory=dict)
    block_order: list[str] = dc.field(default_factory=list)
    disabled: bool = False
    extra: dict[str, typ.Any] = dc.field(default_factory=dict)

    def as_view(self) -> dict[str, typ.Any]:
        """Return the raw instance data as a template-facing mapping."""
        view: dict[str, typ.Any] = dict(self.extra)
        view.update(
            {
                "id": self.id,
                "type": self.type,
                "settings": dict(self.settings),
                "block_order": list(self.block_order),
                "disabled": self.disabled,
            }
        )
        return view


@dc.dataclass(slots=True)
class LiquidTemplate:
    """A page template stored as a single markup source."""

    name: str
    source: str


@dc.dataclass(slots=True)
class JsonTemplate:
    """A page template composed of ordered sections.

    Attributes
    ----------
    name : str
        Template name (``product``, ``index``...).
    sections : dict[str, SectionInstance]
        Section instances keyed by id.
    order : list[str]
        Render order of section ids.
    layout : str or None or bool
        ``None`` for the configured layout, ``False`` for no layout, or the
        name of an alternative ``layout/`` file.
    wrapper : str or None
        Optional wrapper element declared by the template.
    """

    name: str
    sections: dict[str, SectionInstance] = dc.field(default_factory=dict)
    order: list[str] = dc.field(default_factory=list)
    layout: str | bool | None = None
    wrapper: str | None = None


TemplateSpec: typ.TypeAlias = "LiquidTemplate | JsonTemplate"


@dc.dataclass(slots=True)
class SettingDefinition:
    """A single entry from a schema ``settings`` array."""

    id: str
    type: str = "text"
    default: typ.Any = MISSING
    options: tuple[str, ...] = ()
    minimum: float | None = None
    maximum: float | None = None

    @property
    def has_default(self) -> bool:
        """Return ``True`` when the schema declares a default."""
        return self.default is not MISSING


@dc.dataclass(slots=True)
class BlockSchema:
    """A block type declared by a section schema."""

    type: str
    name: str = ""
    settings: list[SettingDefinition] = dc.field(default_factory=list)


@dc.dataclass(slots=True)
class SectionSchema:
    """Decoded ``{% schema %}`` metadata for one section type."""

    name: str
    settings: list[SettingDefinition] = dc.field(default_factory=list)
    blocks: list[BlockSchema] = dc.field(default_factory=list)
    raw: dict[str, typ.Any] = dc.field(default_factory=dict)

    def block_schema(self, block_type: str) -> BlockSchema | None:
        """Return the schema for ``block_type`` if declared."""
        for block in self.blocks:
            if block.type == block_type:
                return block
        return None


__all__ = [
    "MISSING",
    "BlockInstance",
    "BlockSchema",
    "JsonTemplate",
    "LiquidTemplate",
    "SectionInstance",
    "SectionSchema",
    "SettingDefinition",
    "SettingValue",
    "TemplateSpec",
    "Theme",
]
