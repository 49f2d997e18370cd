# mashnet/engine/snap.py
"""
Classify the sample points of an incoming line against existing structure.

Each phantom point resolves, in strict priority order, to the closest node,
else the closest vertex, else the closest anchor (interpolated point on an
existing edge), else void. Thresholds shrink in the same order.
"""

import time
from collections import Counter
from collections.abc import Sequence

import numpy as np

from mashnet.domain.entities.geography import BBox, Coord, Id, Line
from mashnet.domain.entities.snaps import AnchorSnap, NodeSnap, SnapPoint, VertexSnap, VoidSnap, same_target
from mashnet.domain.errors import DegenerateGeometryError
from mashnet.domain.geodesy import densify, distances_km, expand_bbox
from mashnet.engine.hooks import EngineHooks, NoopHooks
from mashnet.engine.scan import line_coords
from mashnet.store.graph import GraphStore
from mashnet.store.subgraph import Subgraph

MAX_NODE_SHIFT_KM = 0.01
MAX_VERTEX_SHIFT_KM = 0.0075
MAX_PHANTOM_SHIFT_KM = 0.005
QUERY_BUFFER_FACTOR = 1.5  # subgraph window, in node-shift units


class _Targets:
    """Flat coordinate arrays for one kind of snap target."""

    def __init__(self, keys: list, coords: list[Coord]):
        self.keys = keys
        arr = np.asarray(coords, dtype=float).reshape(-1, 2)
        self.lons, self.lats = arr[:, 0], arr[:, 1]

    def closest(self, p: Coord, limit_km: float) -> int | None:
        if not self.keys:
            return None
        d = distances_km(p, self.lons, self.lats)
        i = int(np.argmin(d))
        return i if d[i] < limit_km else None


class Snapper:
    def __init__(
        self,
        store: GraphStore,
        *,
        node_shift_km: float = MAX_NODE_SHIFT_KM,
        vertex_shift_km: float = MAX_VERTEX_SHIFT_KM,
        phantom_shift_km: float = MAX_PHANTOM_SHIFT_KM,
        hooks: EngineHooks | None = None,
    ):
        self.store = store
        self.node_shift_km = node_shift_km
        self.vertex_shift_km = vertex_shift_km
        self.phantom_shift_km = phantom_shift_km
        self.hooks: EngineHooks = hooks or NoopHooks()

    def _targets(self, sub: Subgraph) -> tuple[_Targets, _Targets, _Targets]:
        nodes = _Targets(list(sub.nodes), [sub.vertices[n] for n in sub.nodes])
        vertices = _Targets(list(sub.vertices), list(sub.vertices.values()))
        anchor_keys: list[tuple[Id, Coord]] = []
        for edge_id in sub.edges:
            for pt in densify(sub.edge_coordinates(edge_id), self.phantom_shift_km):
                anchor_keys.append((edge_id, pt))
        anchors = _Targets(anchor_keys, [pt for _, pt in anchor_keys])
        return nodes, vertices, anchors

    def _classify(self, p: Coord, nodes: _Targets, vertices: _Targets, anchors: _Targets) -> SnapPoint:
        i = nodes.closest(p, self.node_shift_km)
        if i is not None:
            return NodeSnap(nodes.keys[i])
        i = vertices.closest(p, self.vertex_shift_km)
        if i is not None:
            return VertexSnap(vertices.keys[i])
        i = anchors.closest(p, self.phantom_shift_km)
        if i is not None:
            edge_id, pt = anchors.keys[i]
            return AnchorSnap(edge_id, pt)
        return VoidSnap(p)

    def snap(self, line: Line | Sequence[Coord]) -> list[SnapPoint]:
        t0 = time.perf_counter()
        coords = line_coords(line)
        if len(coords) < 2:
            raise DegenerateGeometryError(f"cannot snap a line of {len(coords)} coordinates")
        phantoms = densify(coords, self.phantom_shift_km)
        window = expand_bbox(BBox.of(coords), QUERY_BUFFER_FACTOR * self.node_shift_km)
        nodes, vertices, anchors = self._targets(self.store.query(window))

        snaps: list[SnapPoint] = []
        for p in phantoms:
            snap = self._classify(p, nodes, vertices, anchors)
            if snaps and same_target(snaps[-1], snap):
                continue
            snaps.append(snap)

        self.hooks.snap(
            phantoms=len(phantoms),
            snaps=len(snaps),
            counts=dict(Counter(type(s).__name__ for s in snaps)),
            ms=(time.perf_counter() - t0) * 1000.0,
        )
        return snaps
