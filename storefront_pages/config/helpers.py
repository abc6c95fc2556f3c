"""Utility helpers shared by the engine configuration loader."""

from __future__ import annotations

import typing as typ

DEFAULT_RESERVED_TEMPLATES: tuple[str, ...] = ("index", "cart", "404")
DEFAULT_PATH_ALIASES: dict[str, str] = {
    "carrinho": "cart",
    "busca": "search",
    "404": "404",
    "products/*": "product",
    "produtos/*": "product",
    "collections": "list-collections",
    "collections/*": "collection",
    "pages/*": "page",
    "blogs/*/*": "article",
    "blogs/*": "blog",
    "account": "customers/account",
    "account/login": "customers/login",
    "account/register": "customers/register",
    "account/*": "customers/account",
}


def _merge_path_aliases(
    override: typ.Mapping[str, typ.Any] | None,
) -> dict[str, str]:
    """Merge configured path aliases over the built-in defaults.

    Configured aliases are checked first so they can shadow a default pattern
    that would otherwise match the same path.
    """
    merged: dict[str, str] = {}
    if override:
        for pattern, name in override.items():
            text = str(name).strip()
            if text:
                merged[str(pattern).strip("/")] = text
    for pattern, name in DEFAULT_PATH_ALIASES.items():
        merged.setdefault(pattern, name)
    return merged


def _normalize_names(value: str | list[object] | None) -> tuple[str, ...] | None:
    """Normalize a list (or whitespace separated string) of template names."""
    match value:
        case None:
            return None
        case str() as text:
            return tuple(segment for segment in text.split() if segment)
        case list():
            return tuple(str(item).strip() for item in value if str(item).strip())
        case _:
            return None


def _positive_int(value: object, *, field: str, default: int) -> int:
    """Return ``value`` as a positive integer or raise ``ValueError``."""
    if value is None:
        return default
    if isinstance(value, bool) or not isinstance(value, int | str):
        msg = f"'{field}' must be an integer, got {value!r}."
        raise ValueError(msg)
    try:
        number = int(value)
    except ValueError as exc:
        msg = f"'{field}' must be an integer, got {value!r}."
        raise ValueError(msg) from exc
    if number < 1:
        msg = f"'{field}' must be at least 1, got {number}."
        raise ValueError(msg)
    return number


def _normalize_suffix(value: object | None, default: str) -> str:
    """Return a template suffix that always starts with a dot."""
    if value is None:
        return default
    text = str(value).strip()
    if not text:
        return default
    return text if text.startswith(".") else f".{text}"


__all__ = [
    "DEFAULT_PATH_ALIASES",
    "DEFAULT_RESERVED_TEMPLATES",
    "_merge_path_aliases",
    "_normalize_names",
    "_normalize_suffix",
    "_positive_int",
]
