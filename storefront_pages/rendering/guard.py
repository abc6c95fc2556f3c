"""Bound the nesting depth of page, section, and snippet renders.

The depth counter lives in a :class:`contextvars.ContextVar` so concurrent
renders (threads or asyncio tasks) never share it.
"""

from __future__ import annotations

import contextlib
import logging
import typing as typ
from contextvars import ContextVar

from .errors import RecursionLimitExceeded

if typ.TYPE_CHECKING:
    import collections.abc as cabc

logger = logging.getLogger(__name__)

_render_depth: ContextVar[int] = ContextVar("storefront_render_depth", default=0)


def current_depth() -> int:
    """Return the nesting depth of the render in progress."""
    return _render_depth.get()


class RenderDepthGuard:
    """Count nested renders and refuse to go deeper than ``limit``.

    Examples
    --------
    >>> guard = RenderDepthGuard(limit=2)
    >>> with guard.enter("page"):
    ...     current_depth()
    1
    >>> current_depth()
    0
    """

    def __init__(self, limit: int = 10) -> None:
        self.limit = limit

    @contextlib.contextmanager
    def enter(self, label: str = "") -> cabc.Iterator[int]:
        """Increment the depth for the duration of the ``with`` block.

        Raises
        ------
        RecursionLimitExceeded
            If entering would exceed ``limit``. The counter is left untouched.
        """
        depth = _render_depth.get() + 1
        if depth > self.limit:
            logger.warning(
                "Maximum template rendering depth exceeded",
                extra={"limit": self.limit, "label": label},
            )
            raise RecursionLimitExceeded(self.limit, label)
        token = _render_depth.set(depth)
        try:
            yield depth
        finally:
            _render_depth.reset(token)

    def diagnostic(self) -> str:
        """Return the comment that replaces output beyond the limit."""
        return RecursionLimitExceeded(self.limit).diagnostic()


__all__ = ["RenderDepthGuard", "current_depth"]
