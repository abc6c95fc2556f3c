"""Template execution engine boundary and its Jinja2 implementation.

The renderers only depend on the :class:`TemplateEngine` protocol: compile a
source, execute it against a :class:`~.context.RenderContext`, and register
filters and globals. :class:`JinjaTemplateEngine` is the shipped
implementation. While a template executes, the active render context is
published through a :class:`~contextvars.ContextVar` so filters can reach the
register side channel (translations, asset URL builder, theme files).
"""

from __future__ import annotations

import re
import typing as typ
from contextvars import ContextVar

import msgspec
from jinja2 import ChainableUndefined, Environment
from jinja2.runtime import Undefined

from .dialect import translate_liquid

if typ.TYPE_CHECKING:
    import collections.abc as cabc

    from jinja2 import Template
    from jinja2.runtime import LoopContext

    from .context import RenderContext

_active_context: ContextVar[RenderContext | None] = ContextVar(
    "storefront_active_context", default=None
)

HANDLE_PATTERN = re.compile(r"[^a-z0-9]+")
AMOUNT_PATTERN = re.compile(r"\{\{\s*(amount\w*)\s*\}\}")


def active_context() -> RenderContext | None:
    """Return the render context of the template currently executing."""
    return _active_context.get()


class TemplateEngine(typ.Protocol):
    """Compile and execute theme sources."""

    def compile(self, source: str) -> typ.Any:  # noqa: ANN401 - engine specific
        """Compile ``source`` into an executable template."""
        ...

    def execute(self, compiled: typ.Any, context: RenderContext) -> str:  # noqa: ANN401
        """Execute ``compiled`` against ``context`` and return the output."""
        ...

    def register_filter(self, name: str, func: cabc.Callable[..., typ.Any]) -> None:
        """Expose ``func`` to templates as the ``name`` filter."""
        ...

    def register_global(self, name: str, value: object) -> None:
        """Expose ``value`` to every template as ``name``."""
        ...


def _is_blank(value: object) -> bool:
    return value is None or isinstance(value, Undefined) or value == ""


def money(value: object, money_format: str | None = None) -> str:
    """Format an amount in cents using the shop money format.

    Examples
    --------
    >>> money(123456, "R$ {{amount_with_comma_separator}}")
    'R$ 1.234,56'
    >>> money(1999, "${{amount}}")
    '$19.99'
    """
    if _is_blank(value):
        return ""
    try:
        cents = float(str(value))
    except (TypeError, ValueError):
        return str(value)
    if money_format is None:
        context = active_context()
        shop = context.get("shop", {}) if context is not None else {}
        money_format = shop.get("money_format") or "{{amount}}"
    amount = cents / 100

    def _format(match: re.Match[str]) -> str:
        match match.group(1):
            case "amount_no_decimals":
                return f"{amount:,.0f}"
            case "amount_with_comma_separator":
                text = f"{amount:,.2f}"
                return text.replace(",", "_").replace(".", ",").replace("_", ".")
            case "amount_no_decimals_with_comma_separator":
                return f"{amount:,.0f}".replace(",", ".")
            case _:
                return f"{amount:,.2f}"

    return AMOUNT_PATTERN.sub(_format, money_format)


def handleize(value: object) -> str:
    """Return ``value`` as a URL handle (``"Blue Shirt"`` -> ``"blue-shirt"``)."""
    if _is_blank(value):
        return ""
    return HANDLE_PATTERN.sub("-", str(value).lower()).strip("-")


def to_json(value: object) -> str:
    """Serialize ``value`` as JSON, stringifying unsupported objects."""
    if isinstance(value, Undefined):
        value = None
    return msgspec.json.encode(value, enc_hook=str).decode("utf-8")


def _append(value: object, suffix: object) -> str:
    return f"{'' if _is_blank(value) else value}{'' if _is_blank(suffix) else suffix}"


def _prepend(value: object, prefix: object) -> str:
    return _append(prefix, value)


def _split(value: object, separator: str = " ") -> list[str]:
    return [] if _is_blank(value) else str(value).split(separator)


def _number(value: object) -> float | int:
    if isinstance(value, int | float) and not isinstance(value, bool):
        return value
    try:
        number = float(str(value))
    except ValueError:
        return 0
    return int(number) if number.is_integer() else number


def _state_register(name: str) -> dict[str, typ.Any]:
    context = active_context()
    if context is None:
        return {}
    return context.registers.setdefault(name, {})


def liquid_counter(name: str, step: int) -> int:
    """Return the next value of the ``increment``/``decrement`` counter ``name``.

    Counters start at zero. ``increment`` outputs the current value and then
    adds one; ``decrement`` subtracts one first.
    """
    counters = _state_register("counters")
    value = counters.get(name, 0)
    counters[name] = value + step
    return value + step if step < 0 else value


def liquid_cycle(group: object, values: cabc.Sequence[object]) -> object:
    """Return the next of ``values`` for the ``cycle`` group ``group``."""
    if not values:
        return ""
    cycles = _state_register("cycles")
    position = cycles.get(str(group), 0)
    cycles[str(group)] = position + 1
    return values[position % len(values)]


def tablerow_state(loop: LoopContext, columns: object = None) -> dict[str, typ.Any]:
    """Describe the ``tablerowloop`` position of the current ``tablerow`` item.

    Examples
    --------
    >>> from types import SimpleNamespace
    >>> loop = SimpleNamespace(index0=2, index=3, length=5, first=False, last=False)
    >>> state = tablerow_state(loop, 2)
    >>> state["row"], state["col"], state["col_first"]
    (2, 1, True)
    """
    width = int(_number(columns)) if not _is_blank(columns) else loop.length
    width = max(width, 1)
    col0 = loop.index0 % width
    return {
        "col": col0 + 1,
        "col0": col0,
        "row": loop.index0 // width + 1,
        "col_first": col0 == 0,
        "col_last": col0 == width - 1,
        "index": loop.index,
        "index0": loop.index0,
        "first": loop.first,
        "last": loop.last,
        "length": loop.length,
    }


LIQUID_FILTERS: dict[str, cabc.Callable[..., typ.Any]] = {
    "money": money,
    "handleize": handleize,
    "handle": handleize,
    "json": to_json,
    "upcase": lambda value: "" if _is_blank(value) else str(value).upper(),
    "downcase": lambda value: "" if _is_blank(value) else str(value).lower(),
    "size": lambda value: 0 if _is_blank(value) else len(value),
    "strip_html": lambda value: "" if _is_blank(value) else re.sub(r"<[^>]+>", "", str(value)),
    "append": _append,
    "prepend": _prepend,
    "split": _split,
    "plus": lambda value, other: _number(value) + _number(other),
    "minus": lambda value, other: _number(value) - _number(other),
    "times": lambda value, other: _number(value) * _number(other),
    "divided_by": lambda value, other: _number(value) / (_number(other) or 1),
}

LIQUID_GLOBALS: dict[str, object] = {
    "blank": "",
    "empty": "",
    "nil": None,
    "liquid_counter": liquid_counter,
    "liquid_cycle": liquid_cycle,
    "tablerow_state": tablerow_state,
}


class JinjaTemplateEngine:
    """Execute theme sources with Jinja2 after translating the Liquid dialect.

    Parameters
    ----------
    environment : Environment, optional
        Preconfigured environment. The default one disables autoescaping
        (themes emit raw HTML), tolerates undefined attribute chains and trims
        block whitespace.
    """

    def __init__(self, environment: Environment | None = None) -> None:
        self.environment = environment or Environment(
            autoescape=False,
            undefined=ChainableUndefined,
            trim_blocks=True,
            lstrip_blocks=True,
        )
        self.environment.add_extension("jinja2.ext.loopcontrols")
        self.environment.filters.update(LIQUID_FILTERS)
        self.environment.globals.update(LIQUID_GLOBALS)

    def compile(self, source: str) -> Template:
        """Translate and compile ``source``.

        Raises
        ------
        jinja2.TemplateSyntaxError
            If the translated source is not valid template syntax.
        """
        return self.environment.from_string(translate_liquid(source))

    def execute(self, compiled: Template, context: RenderContext) -> str:
        """Render ``compiled`` with ``context`` published as the active context."""
        token = _active_context.set(context)
        try:
            return compiled.render(context.flatten())
        finally:
            _active_context.reset(token)

    def render(self, source: str, context: RenderContext) -> str:
        """Compile and execute ``source`` in one step."""
        return self.execute(self.compile(source), context)

    def register_filter(self, name: str, func: cabc.Callable[..., typ.Any]) -> None:
        """Expose ``func`` as a filter."""
        self.environment.filters[name] = func

    def register_global(self, name: str, value: object) -> None:
        """Expose ``value`` as a global."""
        self.environment.globals[name] = value


__all__ = [
    "LIQUID_FILTERS",
    "JinjaTemplateEngine",
    "TemplateEngine",
    "active_context",
    "handleize",
    "liquid_counter",
    "liquid_cycle",
    "money",
    "tablerow_state",
    "to_json",
]
