# mashnet/index/spatial.py
from collections.abc import Callable, Iterable
from dataclasses import dataclass

from rtree import index as rindex

from mashnet.domain.entities.geography import BBox, Coord, Id


@dataclass(frozen=True)
class IndexItem:
    min_x: float
    min_y: float
    max_x: float
    max_y: float
    id: Id

    @classmethod
    def point(cls, item_id: Id, coord: Coord) -> "IndexItem":
        return cls(coord[0], coord[1], coord[0], coord[1], item_id)

    @classmethod
    def box(cls, item_id: Id, bbox: BBox) -> "IndexItem":
        return cls(bbox.min_x, bbox.min_y, bbox.max_x, bbox.max_y, item_id)

    @property
    def bounds(self) -> tuple[float, float, float, float]:
        return (self.min_x, self.min_y, self.max_x, self.max_y)


Predicate = Callable[[IndexItem, IndexItem], bool]


def same_id(a: IndexItem, b: IndexItem) -> bool:
    return a.id == b.id


class SpatialIndex:
    """
    R-tree over 2D boxes keyed by graph ids.

    rtree wants integer ids, so every entry gets a private slot number; slots
    grow monotonically and give search results a stable insertion order.
    """

    def __init__(self, items: Iterable[IndexItem] | None = None):
        self._items: dict[int, IndexItem] = {}
        self._seq = 0
        self._tree = rindex.Index()
        if items is not None:
            self.load(items)

    def __len__(self) -> int:
        return len(self._items)

    def load(self, items: Iterable[IndexItem]) -> None:
        """Bulk-build from a batch, replacing the current contents."""
        batch = list(items)
        self._items = dict(enumerate(batch))
        self._seq = len(batch)
        if batch:
            stream = ((slot, it.bounds, None) for slot, it in self._items.items())
            self._tree = rindex.Index(stream)
        else:
            self._tree = rindex.Index()

    def insert(self, item: IndexItem) -> None:
        slot = self._seq
        self._seq += 1
        self._tree.insert(slot, item.bounds)
        self._items[slot] = item

    def remove(self, item: IndexItem, predicate: Predicate = same_id) -> int:
        """Remove entries overlapping `item` for which predicate(item, entry) holds."""
        doomed = [
            slot
            for slot in self._tree.intersection(item.bounds)
            if predicate(item, self._items[slot])
        ]
        for slot in doomed:
            self._tree.delete(slot, self._items.pop(slot).bounds)
        return len(doomed)

    def search(self, bbox: BBox | tuple[float, float, float, float]) -> list[IndexItem]:
        bounds = bbox.as_tuple() if isinstance(bbox, BBox) else tuple(bbox)
        return [self._items[slot] for slot in sorted(self._tree.intersection(bounds))]

    def all(self) -> list[IndexItem]:
        return [self._items[slot] for slot in sorted(self._items)]

    # -------- persistence

    def to_persisted(self) -> list[list]:
        return [[it.min_x, it.min_y, it.max_x, it.max_y, it.id] for it in self.all()]

    @classmethod
    def from_persisted(cls, data: Iterable[Iterable]) -> "SpatialIndex":
        return cls(IndexItem(*row) for row in data)
