# mashnet/engine/scan.py
import time
from collections.abc import Mapping, Sequence

import numpy as np

from mashnet.domain.entities.geography import BBox, Coord, Line, as_coord
from mashnet.domain.entities.scores import Match
from mashnet.domain.geodesy import expand_bbox
from mashnet.domain.heuristics import DEFAULT_BUFFER_KM, DEFAULT_ZOOM, compare, heuristics
from mashnet.engine.hooks import EngineHooks, NoopHooks
from mashnet.store.graph import GraphStore

DEFAULT_SCAN_BUFFER_KM = 0.1


def softmax(x: np.ndarray) -> np.ndarray:
    z = np.exp(x - np.max(x))
    return z / z.sum()


def line_coords(line: Line | Sequence[Coord]) -> list[Coord]:
    if isinstance(line, Line):
        return list(line.coordinates)
    return [as_coord(c) for c in line]


class Scanner:
    """Rank existing edges by similarity to a query line."""

    def __init__(
        self,
        store: GraphStore,
        *,
        buffer_km: float = DEFAULT_SCAN_BUFFER_KM,
        weights: Mapping[str, float] | None = None,
        heuristic_buffer_km: float = DEFAULT_BUFFER_KM,
        zoom: int = DEFAULT_ZOOM,
        hooks: EngineHooks | None = None,
    ):
        self.store = store
        self.buffer_km = buffer_km
        self.weights = dict(weights or {})
        self.heuristic_buffer_km = heuristic_buffer_km
        self.zoom = zoom
        self.hooks: EngineHooks = hooks or NoopHooks()

    def _heuristics(self, coords: Sequence[Coord]):
        return heuristics(coords, buffer_km=self.heuristic_buffer_km, zoom=self.zoom)

    def scan(self, line: Line | Sequence[Coord]) -> list[Match]:
        t0 = time.perf_counter()
        coords = line_coords(line)
        query = self._heuristics(coords)
        window = expand_bbox(BBox.of(coords), self.buffer_km)
        candidates = self.store.candidates(window)

        matches: list[Match] = []
        for edge_id, edge_coords in candidates:
            scores = compare(query, self._heuristics(edge_coords))
            total = scores.total(self.weights)
            if total > 0:
                matches.append(Match(edge_id, Line(edge_coords), total, scores))

        if matches:
            probs = softmax(np.array([m.score for m in matches], dtype=float))
            for m, p in zip(matches, probs):
                m.softmax = float(p)
            # sort is stable, ties keep index order
            matches.sort(key=lambda m: m.softmax, reverse=True)

        self.hooks.scan(
            candidates=len(candidates),
            survivors=len(matches),
            ms=(time.perf_counter() - t0) * 1000.0,
        )
        return matches
