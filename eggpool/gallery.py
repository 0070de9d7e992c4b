"""Read-only gallery workflow: fetch the egg document and order it for display."""

from __future__ import annotations

from dataclasses import dataclass

from eggpool.records import EggRecord
from eggpool.store import VersionedDocumentStore


def count_text(count: int) -> str:
    return f"{count} egg{'' if count == 1 else 's'} submitted"


@dataclass(frozen=True)
class GalleryView:
    eggs: tuple[EggRecord, ...]

    @property
    def count(self) -> int:
        return len(self.eggs)

    @property
    def is_empty(self) -> bool:
        return not self.eggs

    @property
    def count_text(self) -> str:
        return count_text(self.count)


async def load_gallery(store: VersionedDocumentStore) -> GalleryView:
    """Read the current document; newest submissions first.

    Never writes.  Store failures propagate as ``TransportError``.
    """
    document = await store.read()
    return GalleryView(eggs=tuple(reversed(document.records)))
