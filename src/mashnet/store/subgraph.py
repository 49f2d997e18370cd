# mashnet/store/subgraph.py
from dataclasses import dataclass, field

from mashnet.domain.entities.geography import Coord, Id, Properties
from mashnet.index.spatial import SpatialIndex


@dataclass
class Subgraph:
    """
    Working copy of the graph around one bounding box.

    Every container is a fresh copy, so callers may read or scribble on it
    without coordinating with the live store.
    """

    vertices: dict[Id, Coord] = field(default_factory=dict)
    nodes: dict[Id, set[Id]] = field(default_factory=dict)
    edges: dict[Id, list[Id]] = field(default_factory=dict)
    metadata: dict[Id, Properties] = field(default_factory=dict)
    node_index: SpatialIndex = field(default_factory=SpatialIndex)
    edge_index: SpatialIndex = field(default_factory=SpatialIndex)

    def edge_coordinates(self, edge_id: Id) -> list[Coord]:
        return [self.vertices[ref] for ref in self.edges[edge_id]]

    def __len__(self) -> int:
        return len(self.edges)
