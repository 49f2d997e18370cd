# mashnet/domain/heuristics.py
"""
Shape features of a line and the pairwise similarity used to rank candidates.

Responsibilities:
  • Summarize a line as a fixed feature set (length, straightness, coverage, bearing).
  • Compare two feature sets into a 7-dimensional score vector.
"""

import math
from collections.abc import Sequence

import numpy as np
import shapely
from shapely.geometry import LineString, MultiPoint, Point

from mashnet.domain.entities.geography import Coord
from mashnet.domain.entities.scores import Heuristics, Scores
from mashnet.domain.errors import DegenerateGeometryError
from mashnet.domain.geodesy import bearing, distance_km, line_length_km, local_projection
from mashnet.domain.tiles import cover

DEFAULT_BUFFER_KM = 0.05
DEFAULT_ZOOM = 23
SCALE_KM = 100.0  # combined length at which the scale score saturates


def heuristics(
    coords: Sequence[Coord], *, buffer_km: float = DEFAULT_BUFFER_KM, zoom: int = DEFAULT_ZOOM
) -> Heuristics:
    if len(coords) < 2:
        raise DegenerateGeometryError(f"need at least 2 coordinates, got {len(coords)}")
    start, end = tuple(coords[0]), tuple(coords[-1])

    length = line_length_km(coords)
    straight = distance_km(start, end)
    curve = straight / length if length > 0.0 else 0.0

    # buffer in a local metric frame, tile in lon/lat
    to_local, to_lonlat = local_projection(start)
    arr = np.asarray(coords, dtype=float)
    xs, ys = to_local.transform(arr[:, 0], arr[:, 1])
    body = LineString(list(zip(xs, ys))) if length > 0.0 else Point(xs[0], ys[0])
    body_zone = shapely.transform(
        body.buffer(buffer_km * 1000.0), to_lonlat.transform, interleaved=False
    )
    ends = MultiPoint([(xs[0], ys[0]), (xs[-1], ys[-1])])
    ends_zone = shapely.transform(
        ends.buffer(2.0 * buffer_km * 1000.0), to_lonlat.transform, interleaved=False
    )

    return Heuristics(
        length=length,
        straight=straight,
        curve=curve,
        scan=cover(body_zone, zoom),
        terminal=cover(ends_zone, zoom),
        bearing=bearing(start, end),
        buffer_km=buffer_km,
        zoom=zoom,
    )


def _ratio(a: float, b: float) -> float:
    hi = max(a, b)
    return min(a, b) / hi if hi > 0.0 else 0.0


def similarity(a: frozenset | set, b: frozenset | set) -> float:
    """Jaccard index; two empty sets score 0."""
    union = len(a | b)
    return len(a & b) / union if union else 0.0


def bearing_distance(b1: float, b2: float) -> float:
    """Signed angle (degrees) between two headings: positive when the cross product is."""
    r1, r2 = math.radians(b1), math.radians(b2)
    b1y, b1x = math.cos(r1), math.sin(r1)
    b2y, b2x = math.cos(r2), math.sin(r2)
    crossp = b1y * b2x - b2y * b1x
    dotp = min(1.0, max(-1.0, b1x * b2x + b1y * b2y))
    angle = math.degrees(math.acos(dotp))
    return angle if crossp > 0 else -angle


def compare(a: Heuristics, b: Heuristics) -> Scores:
    if (a.buffer_km, a.zoom) != (b.buffer_km, b.zoom):
        raise ValueError(
            f"heuristics built with different settings: "
            f"({a.buffer_km}, {a.zoom}) vs ({b.buffer_km}, {b.zoom})"
        )
    forward = bearing_distance(a.bearing, b.bearing)
    back = bearing_distance(b.bearing, a.bearing)
    delta = max(forward, back)
    return Scores(
        distance=_ratio(a.length, b.length),
        scale=min(max((a.length + b.length) / SCALE_KM, 0.0), 1.0),
        straight=_ratio(a.straight, b.straight),
        curve=_ratio(a.curve, b.curve),
        scan=similarity(a.scan, b.scan),
        terminal=similarity(a.terminal, b.terminal),
        # |delta| folds exactly antiparallel headings (zero cross product) onto 180
        bearing=abs(abs(delta) - 180.0) / 180.0,
    )
