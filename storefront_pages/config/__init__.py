"""Load and validate engine configuration YAML for storefront rendering.

This subpackage parses the ``storefront.yaml`` file (either a flat mapping or a
mapping nested under an ``engine`` key), merges configured values over the
built-in defaults, and produces an :class:`EngineConfig` dataclass that the
renderers consume. The primary entry point is :func:`load_engine_config`.

Examples
--------
>>> from storefront_pages.config import EngineConfig
>>> EngineConfig().debug
False
>>> EngineConfig(environment="development").max_render_depth
10
"""

from .loader import build_engine_config, load_engine_config
from .models import PRODUCTION, EngineConfig, EngineConfigError

__all__ = [
    "PRODUCTION",
    "EngineConfig",
    "EngineConfigError",
    "build_engine_config",
    "load_engine_config",
]
