"""Read-only access to theme files for a given store and theme.

The renderers never touch storage directly; they go through a
:class:`ThemeFileProvider`. Two adapters ship with the package: one backed by
a directory tree laid out as ``<root>/<store_id>/<theme_id>/<path>`` and one
backed by an in-memory mapping, which the tests and the CLI preview use.
"""

from __future__ import annotations

import dataclasses as dc
import logging
import typing as typ
from pathlib import Path, PurePosixPath

if typ.TYPE_CHECKING:
    import collections.abc as cabc

    from .models import Theme

logger = logging.getLogger(__name__)


class ThemeFileProvider(typ.Protocol):
    """Storage boundary for theme sources, settings, locales, and assets."""

    def read(self, store_id: str, theme_id: str, path: str) -> bytes | None:
        """Return the file contents, or ``None`` when the file is absent."""
        ...

    def exists(self, store_id: str, theme_id: str, path: str) -> bool:
        """Return ``True`` when ``path`` exists for the theme."""
        ...

    def list(self, store_id: str, theme_id: str, directory: str) -> list[str]:
        """Return theme-relative paths of the files directly under ``directory``."""
        ...


def normalize_theme_path(path: str) -> str | None:
    """Return ``path`` as a clean relative POSIX path, or ``None`` if unsafe."""
    pure = PurePosixPath(path.replace("\\", "/").lstrip("/"))
    if not pure.parts or any(part in {"..", ""} for part in pure.parts):
        return None
    return pure.as_posix()


class DirectoryThemeFileProvider:
    """Serve theme files from ``<root>/<store_id>/<theme_id>/``."""

    def __init__(self, root: Path) -> None:
        self.root = Path(root)

    def _resolve(self, store_id: str, theme_id: str, path: str) -> Path | None:
        relative = normalize_theme_path(path)
        if relative is None:
            logger.warning(
                "Rejected theme path outside the theme root",
                extra={"store_id": store_id, "theme_id": theme_id, "path": path},
            )
            return None
        base = (self.root / store_id / theme_id).resolve()
        candidate = (base / relative).resolve()
        if not candidate.is_relative_to(base):
            return None
        return candidate

    def read(self, store_id: str, theme_id: str, path: str) -> bytes | None:
        """Return the bytes stored at ``path`` or ``None`` when missing."""
        candidate = self._resolve(store_id, theme_id, path)
        if candidate is None or not candidate.is_file():
            return None
        return candidate.read_bytes()

    def exists(self, store_id: str, theme_id: str, path: str) -> bool:
        """Return ``True`` when ``path`` names a regular file."""
        candidate = self._resolve(store_id, theme_id, path)
        return candidate is not None and candidate.is_file()

    def list(self, store_id: str, theme_id: str, directory: str) -> list[str]:
        """List files directly inside ``directory``, sorted by name."""
        candidate = self._resolve(store_id, theme_id, directory)
        if candidate is None or not candidate.is_dir():
            return []
        prefix = directory.strip("/")
        return sorted(
            f"{prefix}/{entry.name}" for entry in candidate.iterdir() if entry.is_file()
        )


class MappingThemeFileProvider:
    """Serve theme files from in-memory mappings.

    Parameters
    ----------
    files : Mapping[str, str | bytes], optional
        Files visible to every store and theme, keyed by theme-relative path.
    themes : Mapping[tuple[str, str], Mapping[str, str | bytes]], optional
        Files visible only to a ``(store_id, theme_id)`` pair. They shadow
        entries of ``files`` with the same path.
    """

    def __init__(
        self,
        files: cabc.Mapping[str, str | bytes] | None = None,
        *,
        themes: cabc.Mapping[tuple[str, str], cabc.Mapping[str, str | bytes]]
        | None = None,
    ) -> None:
        self._shared: dict[str, str | bytes] = dict(files or {})
        self._themes: dict[tuple[str, str], dict[str, str | bytes]] = {
            key: dict(value) for key, value in (themes or {}).items()
        }

    def add(self, path: str, content: str | bytes) -> None:
        """Add or replace a shared file."""
        self._shared[path.lstrip("/")] = content

    def _files(self, store_id: str, theme_id: str) -> dict[str, str | bytes]:
        merged = dict(self._shared)
        merged.update(self._themes.get((store_id, theme_id), {}))
        return merged

    def read(self, store_id: str, theme_id: str, path: str) -> bytes | None:
        """Return the encoded file contents or ``None`` when missing."""
        relative = normalize_theme_path(path)
        if relative is None:
            return None
        content = self._files(store_id, theme_id).get(relative)
        if content is None:
            return None
        return content.encode("utf-8") if isinstance(content, str) else content

    def exists(self, store_id: str, theme_id: str, path: str) -> bool:
        """Return ``True`` when ``path`` has an entry."""
        relative = normalize_theme_path(path)
        return relative is not None and relative in self._files(store_id, theme_id)

    def list(self, store_id: str, theme_id: str, directory: str) -> list[str]:
        """List entries whose parent directory is ``directory``."""
        prefix = directory.strip("/")
        return sorted(
            path
            for path in self._files(store_id, theme_id)
            if str(PurePosixPath(path).parent) == prefix
        )


@dc.dataclass(frozen=True, slots=True)
class ThemeFiles:
    """A provider bound to one theme, decoding text as UTF-8."""

    provider: ThemeFileProvider
    theme: Theme

    def read_text(self, path: str) -> str | None:
        """Return ``path`` decoded as UTF-8, or ``None`` when missing."""
        data = self.provider.read(self.theme.store_id, self.theme.theme_id, path)
        if data is None:
            return None
        return data.decode("utf-8", errors="replace")

    def exists(self, path: str) -> bool:
        """Return ``True`` when ``path`` exists for the bound theme."""
        return self.provider.exists(self.theme.store_id, self.theme.theme_id, path)

    def list(self, directory: str) -> list[str]:
        """List files directly under ``directory`` for the bound theme."""
        return self.provider.list(self.theme.store_id, self.theme.theme_id, directory)


__all__ = [
    "DirectoryThemeFileProvider",
    "MappingThemeFileProvider",
    "ThemeFileProvider",
    "ThemeFiles",
    "normalize_theme_path",
]
