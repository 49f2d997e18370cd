# mashnet/store/graph.py
"""
Road graph store.

Responsibilities:
  • Own the four maps (vertices, nodes, edges, metadata), both spatial indexes
    and the id counter.
  • Offer read access (subgraph extraction, edge geometry) under a shared lock.
  • Apply every structural change through `insert_edge`, which touches maps and
    indexes together under the exclusive lock.
"""

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field

from mashnet.domain.entities.geography import BBox, Coord, Id, Properties, Way, as_coord
from mashnet.domain.errors import GraphInvariantError
from mashnet.index.spatial import IndexItem, SpatialIndex
from mashnet.store.locking import ReadWriteLock
from mashnet.store.subgraph import Subgraph

log = logging.getLogger("mashnet.store")

PROPERTY_TYPES = (str, int, float, bool)


def validate_properties(properties: Mapping[str, object]) -> None:
    for key, value in properties.items():
        if not isinstance(key, str):
            raise TypeError(f"property keys must be str, got {key!r}")
        if not isinstance(value, PROPERTY_TYPES):
            raise TypeError(
                f"property {key!r} must be str, int, float or bool, got {type(value).__name__}"
            )


def _int_id(x) -> int | None:
    if isinstance(x, bool):
        return None
    return x if isinstance(x, int) else None


@dataclass(frozen=True)
class EdgeInsert:
    """Everything one create-chunk adds, resolved before the store is touched."""

    edge_id: int
    refs: list[Id]
    new_vertices: dict[Id, Coord] = field(default_factory=dict)
    # refs that must end up as nodes owning the new edge (endpoints and anchors)
    nodes: tuple[Id, ...] = ()
    properties: Properties = field(default_factory=dict)


class GraphStore:
    def __init__(self):
        self.vertices: dict[Id, Coord] = {}
        self.nodes: dict[Id, set[Id]] = {}
        self.edges: dict[Id, list[Id]] = {}
        self.metadata: dict[Id, Properties] = {}
        self.node_index = SpatialIndex()
        self.edge_index = SpatialIndex()
        self.next_id = 0
        self.lock = ReadWriteLock()

    # -------- construction

    @classmethod
    def from_ways(cls, ways: Iterable[Way | Mapping]) -> "GraphStore":
        store = cls()
        skipped = 0
        top = -1
        for raw in ways:
            way = raw if isinstance(raw, Way) else Way.from_record(raw)
            if not way.is_well_formed or way.id in store.edges:
                skipped += 1
                continue
            for ref, coord in zip(way.refs, way.coordinates):
                store.vertices[ref] = coord
            for end in (way.refs[0], way.refs[-1]):
                store.nodes.setdefault(end, set()).add(way.id)
            store.edges[way.id] = list(way.refs)
            store.metadata[way.id] = dict(way.properties)
            for x in (way.id, *way.refs):
                n = _int_id(x)
                if n is not None and n > top:
                    top = n
        if skipped:
            log.debug("skipped malformed ways", extra={"extra": {"skipped": skipped}})

        store.next_id = top + 1
        store.node_index.load(IndexItem.point(n, store.vertices[n]) for n in store.nodes)
        store.edge_index.load(store._edge_item(e) for e in store.edges)
        return store

    def _edge_item(self, edge_id: Id) -> IndexItem:
        return IndexItem.box(edge_id, BBox.of(self.vertices[r] for r in self.edges[edge_id]))

    # -------- reads

    def query(self, bbox: BBox) -> Subgraph:
        """Copy every edge and node whose index entry intersects `bbox`."""
        with self.lock.read():
            sub = Subgraph()
            edge_items = self.edge_index.search(bbox)
            for item in edge_items:
                refs = list(self.edges[item.id])
                sub.edges[item.id] = refs
                sub.metadata[item.id] = dict(self.metadata.get(item.id, {}))
                for ref in refs:
                    sub.vertices[ref] = self.vertices[ref]
            node_items = self.node_index.search(bbox)
            for item in node_items:
                sub.nodes[item.id] = set(self.nodes[item.id])
                sub.vertices[item.id] = self.vertices[item.id]
            sub.edge_index.load(edge_items)
            sub.node_index.load(node_items)
            return sub

    def candidates(self, bbox: BBox) -> list[tuple[Id, list[Coord]]]:
        """(edge id, polyline) for every edge whose box intersects `bbox`."""
        with self.lock.read():
            return [(item.id, self._coords(item.id)) for item in self.edge_index.search(bbox)]

    def _coords(self, edge_id: Id) -> list[Coord]:
        return [self.vertices[r] for r in self.edges[edge_id]]

    def edge_coordinates(self, edge_id: Id) -> list[Coord]:
        with self.lock.read():
            return self._coords(edge_id)

    def edge_bbox(self, edge_id: Id) -> BBox:
        with self.lock.read():
            return BBox.of(self._coords(edge_id))

    def vertex(self, vertex_id: Id) -> Coord:
        with self.lock.read():
            return self.vertices[vertex_id]

    def node_ids(self) -> list[Id]:
        with self.lock.read():
            return list(self.nodes)

    def stats(self) -> dict[str, int]:
        with self.lock.read():
            return {
                "vertices": len(self.vertices),
                "nodes": len(self.nodes),
                "edges": len(self.edges),
                "node_index": len(self.node_index),
                "edge_index": len(self.edge_index),
                "next_id": self.next_id,
            }

    # -------- mutations

    def merge(self, edge_id: Id, properties: Mapping[str, object]) -> Properties:
        """Overlay `properties` onto the edge's metadata; new keys win."""
        validate_properties(properties)
        with self.lock.write():
            if edge_id not in self.edges:
                raise KeyError(edge_id)
            merged = self.metadata.setdefault(edge_id, {})
            merged.update(properties)
            return dict(merged)

    def fresh_ids(self, count: int) -> list[int]:
        """The next `count` ids `insert_edge` may consume; nothing is reserved."""
        return list(range(self.next_id, self.next_id + count))

    def insert_edge(self, plan: EdgeInsert) -> None:
        """Apply one new edge to maps and indexes together, or raise before touching either."""
        with self.lock.write():
            self._validate(plan)

            self.vertices.update(plan.new_vertices)
            for node_id in plan.nodes:
                adjacent = self.nodes.get(node_id)
                if adjacent is None:
                    self.nodes[node_id] = {plan.edge_id}
                    self.node_index.insert(IndexItem.point(node_id, self.vertices[node_id]))
                else:
                    adjacent.add(plan.edge_id)
            self.edges[plan.edge_id] = list(plan.refs)
            self.metadata[plan.edge_id] = dict(plan.properties)
            self.edge_index.insert(self._edge_item(plan.edge_id))

            minted = [plan.edge_id, *(_int_id(v) for v in plan.new_vertices)]
            self.next_id = max(self.next_id, *(m + 1 for m in minted if m is not None))

    def _validate(self, plan: EdgeInsert) -> None:
        if len(plan.refs) < 2:
            raise GraphInvariantError(f"edge {plan.edge_id} needs at least 2 refs")
        if plan.edge_id in self.edges or plan.edge_id < self.next_id:
            raise GraphInvariantError(f"edge id {plan.edge_id} is not fresh")
        for vid in plan.new_vertices:
            if vid in self.vertices:
                raise GraphInvariantError(f"vertex id {vid} already exists")
        for ref in plan.refs:
            if ref not in self.vertices and ref not in plan.new_vertices:
                raise GraphInvariantError(f"edge {plan.edge_id} references missing vertex {ref}")
        for end in (plan.refs[0], plan.refs[-1]):
            if end not in plan.nodes:
                raise GraphInvariantError(f"endpoint {end} of edge {plan.edge_id} is not a node")
        for node_id in plan.nodes:
            if node_id not in plan.refs:
                raise GraphInvariantError(f"node {node_id} is not on edge {plan.edge_id}")

    # -------- invariants

    def check(self) -> None:
        """Raise GraphInvariantError if maps and indexes disagree."""
        with self.lock.read():
            for edge_id, refs in self.edges.items():
                if len(refs) < 2:
                    raise GraphInvariantError(f"edge {edge_id} has {len(refs)} refs")
                for ref in refs:
                    if ref not in self.vertices:
                        raise GraphInvariantError(f"edge {edge_id} references missing {ref}")
                for end in (refs[0], refs[-1]):
                    if edge_id not in self.nodes.get(end, ()):
                        raise GraphInvariantError(f"endpoint {end} of {edge_id} is not its node")
            node_keys = [it.id for it in self.node_index.all()]
            edge_keys = [it.id for it in self.edge_index.all()]
            if sorted(map(repr, node_keys)) != sorted(map(repr, self.nodes)):
                raise GraphInvariantError("node index diverged from node map")
            if sorted(map(repr, edge_keys)) != sorted(map(repr, self.edges)):
                raise GraphInvariantError("edge index diverged from edge map")

    # -------- persistence

    def to_persisted(self) -> dict:
        with self.lock.read():
            return {
                "edges": [[e, list(refs)] for e, refs in self.edges.items()],
                "vertices": [[v, list(c)] for v, c in self.vertices.items()],
                "nodes": [[n, list(adj)] for n, adj in self.nodes.items()],
                "metadata": [[e, dict(p)] for e, p in self.metadata.items()],
                "nodetree": self.node_index.to_persisted(),
                "edgetree": self.edge_index.to_persisted(),
                "id": self.next_id,
            }

    @classmethod
    def from_persisted(cls, doc: Mapping) -> "GraphStore":
        store = cls()
        store.edges = {e: list(refs) for e, refs in doc["edges"]}
        store.vertices = {v: as_coord(c) for v, c in doc["vertices"]}
        store.nodes = {n: set(adj) for n, adj in doc["nodes"]}
        store.metadata = {e: dict(p) for e, p in doc["metadata"]}
        store.node_index = SpatialIndex.from_persisted(doc["nodetree"])
        store.edge_index = SpatialIndex.from_persisted(doc["edgetree"])
        store.next_id = int(doc["id"])
        store.check()
        return store
