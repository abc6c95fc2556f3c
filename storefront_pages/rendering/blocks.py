"""Assemble the ordered block collection exposed to section templates."""

from __future__ import annotations

import typing as typ

from storefront_pages._constants import BLOCK_EDITOR_ATTRIBUTE

from .settings import merge_block_settings

if typ.TYPE_CHECKING:
    import collections.abc as cabc

    from storefront_pages.theme.models import BlockInstance, SectionSchema


class BlockCollection:
    """Blocks in render order, addressable by position and by id.

    Templates iterate the collection (``{% for block in section.blocks %}``),
    ask for ``size``/``first``/``last``, or index it with an integer position
    or a block id.

    Examples
    --------
    >>> blocks = BlockCollection([{"id": "a", "type": "text"}])
    >>> blocks.size, blocks.first["id"], blocks["a"]["type"]
    (1, 'a', 'text')
    >>> BlockCollection().first is None
    True
    """

    __slots__ = ("_by_id", "_items")

    def __init__(self, items: cabc.Iterable[dict[str, typ.Any]] = ()) -> None:
        self._items: list[dict[str, typ.Any]] = list(items)
        self._by_id: dict[str, dict[str, typ.Any]] = {
            str(item["id"]): item for item in self._items if "id" in item
        }

    @property
    def size(self) -> int:
        """Return the number of blocks."""
        return len(self._items)

    @property
    def first(self) -> dict[str, typ.Any] | None:
        """Return the first block or ``None`` when empty."""
        return self._items[0] if self._items else None

    @property
    def last(self) -> dict[str, typ.Any] | None:
        """Return the last block or ``None`` when empty."""
        return self._items[-1] if self._items else None

    def at(self, index: int) -> dict[str, typ.Any] | None:
        """Return the block at ``index`` or ``None`` when out of range."""
        if -len(self._items) <= index < len(self._items):
            return self._items[index]
        return None

    def get(self, block_id: str, default: dict[str, typ.Any] | None = None) -> dict[str, typ.Any] | None:
        """Return the block with ``block_id``."""
        return self._by_id.get(block_id, default)

    def ids(self) -> list[str]:
        """Return block ids in render order."""
        return [str(item.get("id")) for item in self._items]

    def __iter__(self) -> cabc.Iterator[dict[str, typ.Any]]:
        return iter(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def __bool__(self) -> bool:
        return bool(self._items)

    def __contains__(self, block_id: object) -> bool:
        return block_id in self._by_id

    def __getitem__(self, key: int | str) -> dict[str, typ.Any]:
        if isinstance(key, int):
            return self._items[key]
        return self._by_id[key]

    def __repr__(self) -> str:
        return f"BlockCollection({self.ids()!r})"


def assemble_blocks(
    blocks: cabc.Mapping[str, BlockInstance] | None,
    block_order: cabc.Sequence[str] | None,
    *,
    schema: SectionSchema | None = None,
) -> BlockCollection:
    """Build a :class:`BlockCollection` following ``block_order``.

    Ids listed in ``block_order`` without a matching block are dropped, as
    are disabled blocks. Each block view carries ``id``, ``type``, merged
    ``settings`` and its ``shopify_attributes`` editor marker.

    Parameters
    ----------
    blocks : Mapping[str, BlockInstance] or None
        Blocks declared by the section instance.
    block_order : Sequence[str] or None
        Render order of block ids.
    schema : SectionSchema, optional
        Section schema providing per-block-type defaults.

    Returns
    -------
    BlockCollection
        Possibly empty collection; never ``None``.
    """
    if not blocks or not block_order:
        return BlockCollection()
    views: list[dict[str, typ.Any]] = []
    for block_id in block_order:
        block = blocks.get(block_id)
        if block is None or block.disabled:
            continue
        views.append(
            {
                "id": block_id,
                "type": block.type,
                "settings": merge_block_settings(schema, block),
                "shopify_attributes": BLOCK_EDITOR_ATTRIBUTE.format(id=block_id),
            }
        )
    return BlockCollection(views)


__all__ = ["BlockCollection", "assemble_blocks"]
