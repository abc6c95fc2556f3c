"""Render ``snippets/`` partials called from templates."""

from __future__ import annotations

import logging
import typing as typ

from storefront_pages._constants import SNIPPETS_DIR

from .assets import AssetUrlBuilder, rewrite_asset_directives
from .context import create_child_scope
from .engine import active_context
from .errors import RecursionLimitExceeded, SectionExecutionError
from .preprocess import prepare_source

if typ.TYPE_CHECKING:
    from storefront_pages.config import EngineConfig

    from .engine import TemplateEngine
    from .guard import RenderDepthGuard

logger = logging.getLogger(__name__)


class SnippetRenderer:
    """Implement the ``render_snippet(name, **variables)`` template global.

    The snippet runs in a child of the calling template's scope with
    ``variables`` bound locally, under the shared recursion guard.
    """

    def __init__(
        self, engine: TemplateEngine, config: EngineConfig, guard: RenderDepthGuard
    ) -> None:
        self.engine = engine
        self.config = config
        self.guard = guard

    def __call__(self, name: object, /, **variables: typ.Any) -> str:
        return self.render(str(name), **variables)

    def _diagnostic(self, message: str) -> str:
        return f"<!-- {message} -->" if self.config.debug else ""

    def render(self, name: str, /, **variables: typ.Any) -> str:
        """Render ``snippets/<name>`` against the active context."""
        context = active_context()
        if context is None:
            msg = "render_snippet called outside of a template render"
            raise RuntimeError(msg)
        snippet = name.strip().strip("'\"").removesuffix(self.config.template_suffix)
        files = context.registers.get("files")
        path = f"{SNIPPETS_DIR}/{snippet}{self.config.template_suffix}"
        source = files.read_text(path) if files is not None else None
        if source is None:
            logger.warning("Snippet not found", extra={"snippet": snippet})
            return self._diagnostic(f"Snippet '{snippet}' not found")

        try:
            with self.guard.enter(f"snippet:{snippet}"):
                prepared = prepare_source(source, max_size=self.config.max_content_size)
                builder: AssetUrlBuilder | None = context.registers.get("asset_urls")
                if builder is not None:
                    prepared = rewrite_asset_directives(prepared, builder, files)
                child = create_child_scope(context, variables)
                return self.engine.execute(self.engine.compile(prepared), child)
        except RecursionLimitExceeded as exc:
            return exc.diagnostic()
        except Exception as exc:  # noqa: BLE001 - snippet faults stay inside the snippet
            error = SectionExecutionError(f"snippets/{snippet}", str(exc))
            logger.error(  # noqa: TRY400 - traceback attached via exc_info
                str(error), exc_info=exc, extra={"snippet": snippet}
            )
            return error.diagnostic() if self.config.debug else ""


__all__ = ["SnippetRenderer"]
