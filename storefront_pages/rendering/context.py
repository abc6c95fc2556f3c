"""Layered rendering scopes with a register side channel.

A :class:`RenderContext` pairs template-visible variables with ``registers``,
a dictionary for engine-internal state (translations, merged settings, the
current section schema). Child scopes are built on
:class:`collections.ChainMap`: lookups fall through to the parent, writes stay
local, and registers are shallow-copied so siblings never see each other's
``settings``.
"""

from __future__ import annotations

import collections.abc as cabc
import typing as typ
from collections import ChainMap

from storefront_pages._constants import HEADER_SLOT
from storefront_pages.theme.models import MISSING

from .blocks import BlockCollection

if typ.TYPE_CHECKING:
    from storefront_pages.theme.models import Theme


class RenderContext:
    """Template variables (chained scopes) plus registers for one page render."""

    __slots__ = ("registers", "scope")

    def __init__(
        self,
        variables: cabc.Mapping[str, typ.Any] | None = None,
        registers: dict[str, typ.Any] | None = None,
        *,
        scope: ChainMap[str, typ.Any] | None = None,
    ) -> None:
        self.scope: ChainMap[str, typ.Any] = (
            scope if scope is not None else ChainMap(dict(variables or {}))
        )
        self.registers: dict[str, typ.Any] = registers if registers is not None else {}

    def __contains__(self, name: object) -> bool:
        return name in self.scope

    def get(self, name: str, default: typ.Any = None) -> typ.Any:  # noqa: ANN401
        """Return the variable ``name`` from the nearest scope."""
        return self.scope.get(name, default)

    def set(self, name: str, value: typ.Any) -> None:  # noqa: ANN401
        """Bind ``name`` in the innermost scope only."""
        self.scope[name] = value

    def update(self, values: cabc.Mapping[str, typ.Any]) -> None:
        """Bind several variables in the innermost scope."""
        self.scope.update(values)

    def resolve(self, dotted: str) -> typ.Any:  # noqa: ANN401
        """Resolve ``a.b.c`` against the scope, returning ``MISSING`` if absent.

        Each segment is looked up as a mapping key, a sequence or block
        position, an attribute, and finally through a ``get`` accessor (which
        is how block collections expose blocks by id).
        """
        head, *rest = dotted.split(".")
        if head not in self.scope:
            return MISSING
        current = self.scope[head]
        for part in rest:
            current = _step(current, part)
            if current is MISSING:
                return MISSING
        return current

    def flatten(self) -> dict[str, typ.Any]:
        """Return a plain dictionary of every visible variable."""
        return dict(self.scope)


def _step(current: object, part: str) -> typ.Any:  # noqa: ANN401
    if isinstance(current, BlockCollection) and part.isdigit():
        found = current.at(int(part))
        return MISSING if found is None else found
    if isinstance(current, cabc.Mapping):
        return current.get(part, MISSING)
    if isinstance(current, cabc.Sequence) and not isinstance(current, str):
        if part.isdigit() and int(part) < len(current):
            return current[int(part)]
        return MISSING
    if part.startswith("_"):
        return MISSING
    if hasattr(current, part):
        return getattr(current, part)
    getter = getattr(current, "get", None)
    if callable(getter):
        found = getter(part)
        return MISSING if found is None else found
    return MISSING


def create_child_scope(
    parent: RenderContext, overrides: cabc.Mapping[str, typ.Any] | None = None
) -> RenderContext:
    """Return a child of ``parent`` with ``overrides`` bound locally.

    Unset names delegate to the parent. Registers are copied one level deep:
    replacing ``settings`` in the child leaves the parent untouched while the
    translation dictionary object stays shared.
    """
    child = RenderContext(
        scope=parent.scope.new_child(dict(overrides or {})),
        registers=dict(parent.registers),
    )
    return child


def shop_view(theme: Theme) -> dict[str, typ.Any]:
    """Return the ``shop`` variable for ``theme``."""
    domain = theme.store_domain
    return {
        "id": theme.store_id,
        "name": theme.store_name or theme.store_id,
        "domain": domain,
        "url": f"https://{domain}" if domain else "",
        "currency": theme.currency,
        "money_format": theme.money_format,
    }


def theme_view(theme: Theme) -> dict[str, typ.Any]:
    """Return the ``theme`` variable for ``theme``."""
    return {
        "id": theme.theme_id,
        "name": theme.name,
        "role": theme.role,
        "store_id": theme.store_id,
    }


def build_page_context(
    theme: Theme,
    *,
    path: str,
    template_name: str,
    query: cabc.Mapping[str, str] | None = None,
    locale: str = "",
    content_for_header: str = "",
) -> RenderContext:
    """Build the root context for one page render.

    Parameters
    ----------
    theme : Theme
        Store and theme being rendered.
    path : str
        Request path as received (leading slash preserved).
    template_name : str
        Resolved template name, also used as ``request.page_type``.
    query : Mapping[str, str], optional
        Query string parameters.
    locale : str, optional
        Selected locale.
    content_for_header : str, optional
        Markup injected into the layout head.

    Returns
    -------
    RenderContext
        Root context with ``shop``, ``theme``, ``request``, ``template`` and
        ``content_for_header`` bound.
    """
    page_type = template_name.rsplit("/", 1)[-1]
    variables: dict[str, typ.Any] = {
        "shop": shop_view(theme),
        "theme": theme_view(theme),
        "request": {
            "path": path,
            "query": dict(query or {}),
            "locale": locale,
            "page_type": page_type,
        },
        "template": {"name": template_name, "directory": None, "suffix": None},
        HEADER_SLOT: content_for_header,
    }
    return RenderContext(variables, {"theme_ref": theme, "counters": {}, "cycles": {}})


__all__ = [
    "RenderContext",
    "build_page_context",
    "create_child_scope",
    "shop_view",
    "theme_view",
]
