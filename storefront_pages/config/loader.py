"""Load engine configuration YAML into typed dataclasses."""

from __future__ import annotations

import typing as typ

from ruamel.yaml import YAML

from .helpers import (
    DEFAULT_RESERVED_TEMPLATES,
    _merge_path_aliases,
    _normalize_names,
    _normalize_suffix,
    _positive_int,
)
from .models import ENVIRONMENTS, EngineConfig, EngineConfigError

if typ.TYPE_CHECKING:
    from pathlib import Path


def load_engine_config(path: Path) -> EngineConfig:
    """Load the YAML configuration describing rendering behaviour.

    Parameters
    ----------
    path : Path
        Filesystem path to the YAML configuration file (for example,
        ``storefront.yaml``).

    Returns
    -------
    EngineConfig
        Parsed configuration with defaults applied for every missing key.

    Raises
    ------
    FileNotFoundError
        If the configuration file does not exist at ``path``.
    TypeError
        If the top-level YAML structure is not a mapping.
    EngineConfigError
        If a value is present but invalid (unknown environment, non-positive
        render depth, malformed alias table).
    YAMLError
        If the YAML content cannot be parsed by the underlying loader.

    Examples
    --------
    >>> from pathlib import Path
    >>> from storefront_pages.config import load_engine_config
    >>> config = load_engine_config(Path("storefront.yaml"))  # doctest: +SKIP
    >>> config.max_render_depth  # doctest: +SKIP
    10
    """
    if not path.exists():
        msg = f"Configuration file '{path}' not found."
        raise FileNotFoundError(msg)

    loader = YAML(typ="safe")
    loader.version = (1, 2)
    with path.open("r", encoding="utf-8") as handle:
        loaded = loader.load(handle) or {}
    if not isinstance(loaded, dict):
        msg = "Top-level YAML structure must be a mapping."
        raise TypeError(msg)
    raw: dict[str, typ.Any] = dict(loaded.get("engine", loaded) or {})
    return build_engine_config(raw)


def build_engine_config(raw: typ.Mapping[str, typ.Any]) -> EngineConfig:
    """Build an :class:`EngineConfig` from an already parsed mapping."""
    defaults = EngineConfig()

    environment = str(raw.get("environment", defaults.environment)).strip().lower()
    if environment not in ENVIRONMENTS:
        known = ", ".join(ENVIRONMENTS)
        msg = f"Unknown environment '{environment}'. Expected one of: {known}"
        raise EngineConfigError(msg)

    try:
        max_depth = _positive_int(
            raw.get("max_render_depth"),
            field="max_render_depth",
            default=defaults.max_render_depth,
        )
        max_content_size = _positive_int(
            raw.get("max_content_size"),
            field="max_content_size",
            default=defaults.max_content_size,
        )
    except ValueError as exc:
        raise EngineConfigError(str(exc)) from exc

    aliases_raw = raw.get("path_aliases")
    if aliases_raw is not None and not isinstance(aliases_raw, dict):
        msg = "'path_aliases' must be a mapping of glob pattern to template name."
        raise EngineConfigError(msg)

    reserved = _normalize_names(raw.get("reserved_templates"))

    return EngineConfig(
        environment=environment,
        max_render_depth=max_depth,
        asset_base_url=str(raw.get("asset_base_url", "") or "").rstrip("/"),
        template_suffix=_normalize_suffix(
            raw.get("template_suffix"), defaults.template_suffix
        ),
        default_locale=str(raw.get("default_locale") or defaults.default_locale),
        layout=str(raw.get("layout") or defaults.layout),
        not_found_template=str(
            raw.get("not_found_template") or defaults.not_found_template
        ),
        reserved_templates=reserved or DEFAULT_RESERVED_TEMPLATES,
        path_aliases=_merge_path_aliases(aliases_raw),
        max_content_size=max_content_size,
    )


__all__ = ["build_engine_config", "load_engine_config"]
