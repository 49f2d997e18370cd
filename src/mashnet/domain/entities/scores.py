# mashnet/domain/entities/scores.py
from collections.abc import Mapping
from dataclasses import astuple, dataclass

from mashnet.domain.entities.geography import Id, Line

# Order matters: it is the classifier's per-slot feature layout.
SCORE_FIELDS = ("distance", "scale", "straight", "curve", "scan", "terminal", "bearing")


@dataclass(frozen=True)
class Heuristics:
    length: float  # km, geodesic arc length
    straight: float  # km, first -> last
    curve: float  # straight / length, 0.0 for zero-length lines
    scan: frozenset[str]  # quadkeys covering the buffered line
    terminal: frozenset[str]  # quadkeys covering the buffered endpoints
    bearing: float  # degrees in (-180, 180]
    buffer_km: float
    zoom: int


@dataclass(frozen=True)
class Scores:
    distance: float
    scale: float
    straight: float
    curve: float
    scan: float
    terminal: float
    bearing: float

    def as_vector(self) -> tuple[float, ...]:
        return astuple(self)

    def total(self, weights: Mapping[str, float]) -> float:
        return sum(getattr(self, f) * weights.get(f, 1.0) for f in SCORE_FIELDS)


@dataclass
class Match:
    edge_id: Id
    line: Line
    score: float  # weighted sum of the per-dimension scores
    scores: Scores
    softmax: float = 0.0  # confidence relative to the other survivors of one scan
