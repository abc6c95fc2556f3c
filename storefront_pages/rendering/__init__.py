"""Rendering pipeline: templates, sections, snippets, layouts and assets."""

from .assets import ASSET_FILTERS, AssetUrlBuilder, rewrite_asset_references
from .blocks import BlockCollection, assemble_blocks
from .context import RenderContext, build_page_context, create_child_scope
from .engine import JinjaTemplateEngine, TemplateEngine, active_context
from .errors import (
    LayoutSubstitutionFault,
    RecursionLimitExceeded,
    RenderError,
    SchemaParseError,
    SectionExecutionError,
    SectionSourceMissing,
    TemplateNotFound,
)
from .guard import RenderDepthGuard
from .layout import LayoutBinder, build_content_for_header
from .page import PageComposer, TemplateResolver
from .schema import extract_schema
from .section import SectionRenderer, SectionResult
from .settings import ThemeSettingsLoader, merge_section_settings
from .snippets import SnippetRenderer
from .translations import TranslationInjector, translate

__all__ = [
    "ASSET_FILTERS",
    "AssetUrlBuilder",
    "BlockCollection",
    "JinjaTemplateEngine",
    "LayoutBinder",
    "LayoutSubstitutionFault",
    "PageComposer",
    "RecursionLimitExceeded",
    "RenderContext",
    "RenderDepthGuard",
    "RenderError",
    "SchemaParseError",
    "SectionExecutionError",
    "SectionRenderer",
    "SectionResult",
    "SectionSourceMissing",
    "SnippetRenderer",
    "TemplateEngine",
    "TemplateNotFound",
    "TemplateResolver",
    "ThemeSettingsLoader",
    "TranslationInjector",
    "active_context",
    "assemble_blocks",
    "build_content_for_header",
    "build_page_context",
    "create_child_scope",
    "extract_schema",
    "merge_section_settings",
    "rewrite_asset_references",
    "translate",
]
