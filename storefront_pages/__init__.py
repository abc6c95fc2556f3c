"""Render multi-tenant storefront pages from section-based themes.

This package composes a theme (templates, sections, snippets, locale files and
a settings schema) into final HTML for a store and request path. The
``storefront`` console script wraps :class:`StorefrontRenderer` for local
previews of a theme checked out on disk.

Exports
-------
- ``StorefrontRenderer``: Facade that renders one page for a theme.
- ``PageRequest``: Request descriptor (path, query, locale preferences).
- ``app``: Cyclopts application entry for subcommands.
- ``main``: Convenience function that invokes the Cyclopts app.

Examples
--------
>>> from storefront_pages import StorefrontRenderer  # doctest: +SKIP
>>> renderer = StorefrontRenderer(provider)  # doctest: +SKIP
>>> renderer.render(theme, PageRequest(path="/products/shirt")).status  # doctest: +SKIP
200
"""

from __future__ import annotations

from .cli import app, main
from .storefront import PageRequest, RenderedPage, StorefrontRenderer

__all__ = ["PageRequest", "RenderedPage", "StorefrontRenderer", "app", "main"]
