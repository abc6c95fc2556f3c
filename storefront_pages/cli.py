"""Cyclopts CLI entrypoint for previewing storefront themes from disk.

The ``storefront`` console script renders pages of a theme checked out under
``<themes-root>/<store-id>/<theme-id>/``. ``storefront render`` prints or
writes the complete HTML document for a request path, and
``storefront sections`` lists the sections a JSON page template renders, in
order, which helps when debugging template ``order`` lists.

Examples
--------
Render the home page of a local theme:

>>> from storefront_pages.cli import app
>>> app.run(
...     ["render", "--themes-root", "themes", "--store-id", "s1", "--theme-id", "t1"]
... )  # doctest: +SKIP

Write a product page to a file:

>>> app.run(
...     [
...         "render", "--themes-root", "themes", "--store-id", "s1",
...         "--theme-id", "t1", "--path", "/products/shirt", "--output", "out.html",
...     ]
... )  # doctest: +SKIP
"""

from __future__ import annotations

import logging
import typing as typ
from pathlib import Path

import cyclopts
from cyclopts import App, Parameter

from .config import EngineConfig, load_engine_config
from .rendering.page import TemplateResolver
from .storefront import PageRequest, StorefrontRenderer
from .theme.files import DirectoryThemeFileProvider, ThemeFiles
from .theme.models import JsonTemplate, Theme

logger = logging.getLogger(__name__)

app = App(name="storefront", config=cyclopts.config.Env("INPUT_", command=False))  # type: ignore[unknown-argument]


def _format_path(path: Path) -> str:
    """Return a cwd-relative path when possible, otherwise the absolute path."""
    if path.is_absolute():
        try:
            return str(path.relative_to(Path.cwd()))
        except ValueError:  # pragma: no cover - fallback for different roots
            return str(path)
    return str(path)


def _load_config(config: Path | None, environment: str | None) -> EngineConfig:
    engine_config = load_engine_config(config) if config else EngineConfig()
    if environment:
        engine_config.environment = environment
    return engine_config


def _configure_logging(*, verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


@app.command(help="Render one storefront page and print or write the HTML.")
def render(
    *,
    themes_root: typ.Annotated[
        Path, Parameter(help="Directory holding <store>/<theme> checkouts", env_var="INPUT_THEMES_ROOT")
    ],
    store_id: typ.Annotated[str, Parameter(help="Store identifier", env_var="INPUT_STORE_ID")],
    theme_id: typ.Annotated[str, Parameter(help="Theme identifier", env_var="INPUT_THEME_ID")],
    path: typ.Annotated[str, Parameter(help="Request path", env_var="INPUT_PATH")] = "/",
    locale: typ.Annotated[
        str | None, Parameter(help="Locale to render", env_var="INPUT_LOCALE")
    ] = None,
    config: typ.Annotated[
        Path | None, Parameter(help="Path to engine config YAML", env_var="INPUT_CONFIG")
    ] = None,
    environment: typ.Annotated[
        str | None,
        Parameter(help="Override the configured environment", env_var="INPUT_ENVIRONMENT"),
    ] = None,
    output: typ.Annotated[
        Path | None, Parameter(help="Write the HTML to this file", env_var="INPUT_OUTPUT")
    ] = None,
    verbose: typ.Annotated[bool, Parameter(help="Log debug output")] = False,
) -> None:
    """Render the page for ``path`` from a theme on disk.

    Parameters
    ----------
    themes_root : Path
        Directory containing ``<store_id>/<theme_id>/`` theme checkouts.
    store_id : str
        Store whose theme is rendered.
    theme_id : str
        Theme to render.
    path : str, optional
        Request path; defaults to the home page.
    locale : str or None, optional
        Explicit locale; otherwise the configured default is used.
    config : Path or None, optional
        Engine configuration YAML; defaults to built-in settings.
    environment : str or None, optional
        Override for ``environment`` (``development`` shows diagnostics).
    output : Path or None, optional
        Destination file; when omitted the HTML is printed.
    verbose : bool, optional
        Enable debug logging.

    Returns
    -------
    None
        Prints the document, or writes it and prints the written path.
    """
    _configure_logging(verbose=verbose)
    renderer = StorefrontRenderer(
        DirectoryThemeFileProvider(themes_root), _load_config(config, environment)
    )
    page = renderer.render(Theme(store_id, theme_id), PageRequest(path=path, locale=locale))
    if output is None:
        print(page.html)
    else:
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_text(page.html, encoding="utf-8")
        print(f"wrote {_format_path(output)}")
    if page.status != 200:
        logger.warning(
            "Page rendered with status %s", page.status, extra={"path": path}
        )


@app.command(help="List the sections a page template renders, in order.")
def sections(
    *,
    themes_root: typ.Annotated[
        Path, Parameter(help="Directory holding <store>/<theme> checkouts", env_var="INPUT_THEMES_ROOT")
    ],
    store_id: typ.Annotated[str, Parameter(help="Store identifier", env_var="INPUT_STORE_ID")],
    theme_id: typ.Annotated[str, Parameter(help="Theme identifier", env_var="INPUT_THEME_ID")],
    path: typ.Annotated[str, Parameter(help="Request path", env_var="INPUT_PATH")] = "/",
    config: typ.Annotated[
        Path | None, Parameter(help="Path to engine config YAML", env_var="INPUT_CONFIG")
    ] = None,
) -> None:
    """Print ``<id>: <type>`` for each section the template for ``path`` renders.

    Sections listed in ``order`` without a definition are reported as
    ``missing``; disabled sections are reported as ``disabled``.
    """
    engine_config = _load_config(config, None)
    files = ThemeFiles(DirectoryThemeFileProvider(themes_root), Theme(store_id, theme_id))
    template = TemplateResolver(engine_config).resolve(path, files)
    print(f"template: {template.name}")
    if not isinstance(template, JsonTemplate):
        print("(single-file template, no sections)")
        return
    for section_id in template.order:
        instance = template.sections.get(section_id)
        if instance is None:
            print(f"{section_id}: missing")
        elif instance.disabled:
            print(f"{section_id}: {instance.type} (disabled)")
        else:
            print(f"{section_id}: {instance.type}")


def main() -> None:
    """Run the storefront CLI application."""
    app()


__all__ = ["app", "main"]


if __name__ == "__main__":  # pragma: no cover - manual invocation helper
    main()
