"""Theme records, JSON template decoding, and theme file providers."""

from .decoding import (
    ThemeDocumentError,
    decode_json_document,
    parse_json_template,
    parse_section_instance,
)
from .files import (
    DirectoryThemeFileProvider,
    MappingThemeFileProvider,
    ThemeFileProvider,
    ThemeFiles,
)
from .models import (
    MISSING,
    BlockInstance,
    BlockSchema,
    JsonTemplate,
    LiquidTemplate,
    SectionInstance,
    SectionSchema,
    SettingDefinition,
    SettingValue,
    TemplateSpec,
    Theme,
)

__all__ = [
    "MISSING",
    "BlockInstance",
    "BlockSchema",
    "DirectoryThemeFileProvider",
    "JsonTemplate",
    "LiquidTemplate",
    "MappingThemeFileProvider",
    "SectionInstance",
    "SectionSchema",
    "SettingDefinition",
    "SettingValue",
    "TemplateSpec",
    "Theme",
    "ThemeDocumentError",
    "ThemeFileProvider",
    "ThemeFiles",
    "decode_json_document",
    "parse_json_template",
    "parse_section_instance",
]
