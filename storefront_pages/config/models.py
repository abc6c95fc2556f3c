"""Typed dataclasses describing storefront engine configuration."""

from __future__ import annotations

import dataclasses as dc

from .helpers import DEFAULT_PATH_ALIASES, DEFAULT_RESERVED_TEMPLATES

PRODUCTION = "production"
ENVIRONMENTS = ("production", "development", "local", "testing")


class EngineConfigError(ValueError):
    """Raised when the engine configuration is invalid or incomplete."""


@dc.dataclass(slots=True)
class EngineConfig:
    """Runtime knobs for the theme rendering engine.

    Attributes
    ----------
    environment : str
        Deployment environment. Diagnostics (HTML comments describing missing
        sections or execution faults) are only emitted outside ``production``.
    max_render_depth : int
        Ceiling for nested template renders (page, section, snippet).
    asset_base_url : str
        Prefix joined in front of ``/assets/<store>/<theme>/<file>`` URLs.
    template_suffix : str
        File extension of template, section, snippet, and layout sources.
    default_locale : str
        Locale used when neither the request nor ``Accept-Language`` selects one.
    layout : str
        Name of the layout file under ``layout/`` wrapping every page.
    not_found_template : str
        Template rendered when a request path has no template of its own.
    reserved_templates : tuple[str, ...]
        Template names that never escalate to the not-found template.
    path_aliases : dict[str, str]
        Glob pattern to template name mapping applied to request paths.
    max_content_size : int
        Maximum number of characters of template source handed to the
        execution engine; longer sources are truncated.
    """

    environment: str = PRODUCTION
    max_render_depth: int = 10
    asset_base_url: str = ""
    template_suffix: str = ".liquid"
    default_locale: str = "pt-BR"
    layout: str = "theme"
    not_found_template: str = "404"
    reserved_templates: tuple[str, ...] = DEFAULT_RESERVED_TEMPLATES
    path_aliases: dict[str, str] = dc.field(
        default_factory=lambda: dict(DEFAULT_PATH_ALIASES)
    )
    max_content_size: int = 2_000_000

    @property
    def debug(self) -> bool:
        """Return ``True`` when diagnostics should be rendered into the page."""
        return self.environment != PRODUCTION


__all__ = ["ENVIRONMENTS", "PRODUCTION", "EngineConfig", "EngineConfigError"]
