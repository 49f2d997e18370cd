# mashnet/domain/geodesy.py
"""
Geodesic helpers on the WGS84 ellipsoid.

All distances are kilometres, all angles degrees. Coordinates are (lon, lat).
"""

from collections.abc import Sequence
from functools import lru_cache

import numpy as np
from pyproj import CRS, Geod, Transformer

from mashnet.domain.entities.geography import BBox, Coord

GEOD = Geod(ellps="WGS84")


def distance_km(a: Coord, b: Coord) -> float:
    _, _, d = GEOD.inv(a[0], a[1], b[0], b[1])
    return float(d) / 1000.0


def distances_km(origin: Coord, lons: np.ndarray, lats: np.ndarray) -> np.ndarray:
    """Distance from one point to many (vectorized)."""
    n = len(lons)
    if n == 0:
        return np.empty(0, dtype=float)
    _, _, d = GEOD.inv(np.full(n, origin[0]), np.full(n, origin[1]), lons, lats)
    return np.asarray(d, dtype=float) / 1000.0


def bearing(a: Coord, b: Coord) -> float:
    """Initial azimuth from a to b in (-180, 180]."""
    az, _, _ = GEOD.inv(a[0], a[1], b[0], b[1])
    az = float(az)
    return 180.0 if az <= -180.0 else az


def destination(origin: Coord, dist_km: float, bearing_deg: float) -> Coord:
    lon, lat, _ = GEOD.fwd(origin[0], origin[1], bearing_deg, dist_km * 1000.0)
    return (float(lon), float(lat))


def segment_lengths_km(coords: Sequence[Coord]) -> np.ndarray:
    arr = np.asarray(coords, dtype=float)
    if len(arr) < 2:
        return np.empty(0, dtype=float)
    _, _, d = GEOD.inv(arr[:-1, 0], arr[:-1, 1], arr[1:, 0], arr[1:, 1])
    return np.asarray(d, dtype=float) / 1000.0


def line_length_km(coords: Sequence[Coord]) -> float:
    return float(segment_lengths_km(coords).sum())


def along(coords: Sequence[Coord], dists_km: Sequence[float]) -> list[Coord]:
    """Points at the given arc-length offsets from the start of a line."""
    if len(dists_km) == 0:
        return []
    arr = np.asarray(coords, dtype=float)
    seg = segment_lengths_km(coords)
    cum = np.concatenate([[0.0], np.cumsum(seg)])
    d = np.asarray(dists_km, dtype=float)
    idx = np.clip(np.searchsorted(cum, d, side="right") - 1, 0, len(seg) - 1)
    remain_m = (d - cum[idx]) * 1000.0
    starts, ends = arr[idx], arr[idx + 1]
    az, _, _ = GEOD.inv(starts[:, 0], starts[:, 1], ends[:, 0], ends[:, 1])
    lons, lats, _ = GEOD.fwd(starts[:, 0], starts[:, 1], az, remain_m)
    return [(float(x), float(y)) for x, y in zip(np.atleast_1d(lons), np.atleast_1d(lats))]


def densify(coords: Sequence[Coord], spacing_km: float) -> list[Coord]:
    """
    Sample a line every `spacing_km` of arc length.

    The first and last coordinates are always included; a zero-length line
    yields just those two.
    """
    first, last = tuple(coords[0]), tuple(coords[-1])
    total = line_length_km(coords)
    if total <= 0.0:
        return [first, last]
    step = spacing_km / total
    progress = 0.0
    targets = []
    while progress + step < 1.0:
        progress += step
        targets.append(progress * total)
    return [first, *along(coords, targets), last]


def expand_bbox(bbox: BBox, buffer_km: float) -> BBox:
    """Grow a box by pushing its corners out diagonally (SW at 225, NE at 45 degrees)."""
    sw = destination((bbox.min_x, bbox.min_y), buffer_km, 225.0)
    ne = destination((bbox.max_x, bbox.max_y), buffer_km, 45.0)
    return BBox(sw[0], sw[1], ne[0], ne[1])


@lru_cache(maxsize=64)
def _local_projection(lon0: float, lat0: float) -> tuple[Transformer, Transformer]:
    crs = CRS.from_dict(
        {"proj": "aeqd", "lat_0": lat0, "lon_0": lon0, "datum": "WGS84", "units": "m"}
    )
    to_local = Transformer.from_crs("EPSG:4326", crs, always_xy=True)
    to_lonlat = Transformer.from_crs(crs, "EPSG:4326", always_xy=True)
    return to_local, to_lonlat


def local_projection(center: Coord) -> tuple[Transformer, Transformer]:
    """Azimuthal-equidistant (metres) transformers around `center`, cached per ~1 km cell."""
    return _local_projection(round(center[0], 2), round(center[1], 2))
