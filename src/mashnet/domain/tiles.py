# mashnet/domain/tiles.py
"""
Web-Mercator tiling used to discretize line coverage into quadkey sets.
"""

import math

import numpy as np
import shapely
from shapely.geometry.base import BaseGeometry

COARSE_TILES = 16  # max tiles in the starting bbox grid


def lonlat_to_tile(lon: float, lat: float, zoom: int) -> tuple[int, int]:
    n = 2**zoom
    x = int((lon + 180.0) / 360.0 * n)
    lat_rad = math.radians(lat)
    y = int((1.0 - math.asinh(math.tan(lat_rad)) / math.pi) / 2.0 * n)
    return (min(max(x, 0), n - 1), min(max(y, 0), n - 1))


def _tile_lat(y: np.ndarray, n: int) -> np.ndarray:
    return np.degrees(np.arctan(np.sinh(np.pi * (1.0 - 2.0 * y / n))))


def tile_bounds(x: np.ndarray, y: np.ndarray, zoom: int):
    """(west, south, east, north) arrays for tile columns/rows."""
    n = 2**zoom
    west = x / n * 360.0 - 180.0
    east = (x + 1) / n * 360.0 - 180.0
    north = _tile_lat(y, n)
    south = _tile_lat(y + 1, n)
    return west, south, east, north


def tile_to_quadkey(z: int, x: int, y: int) -> str:
    digits = []
    for i in range(z, 0, -1):
        mask = 1 << (i - 1)
        digit = 0
        if x & mask:
            digit += 1
        if y & mask:
            digit += 2
        digits.append(str(digit))
    return "".join(digits)


def quadkey_to_tile(quadkey: str) -> tuple[int, int, int]:
    z = len(quadkey)
    x = y = 0
    for i, ch in enumerate(quadkey):
        mask = 1 << (z - i - 1)
        d = int(ch)
        if d & 1:
            x |= mask
        if d & 2:
            y |= mask
    return (z, x, y)


def _span(bounds, zoom: int) -> tuple[int, int, int, int]:
    min_x, min_y, max_x, max_y = bounds
    x0, y1 = lonlat_to_tile(min_x, min_y, zoom)
    x1, y0 = lonlat_to_tile(max_x, max_y, zoom)
    return x0, x1, y0, y1


def _hits(geom: BaseGeometry, xs: np.ndarray, ys: np.ndarray, zoom: int):
    boxes = shapely.box(*tile_bounds(xs.astype(float), ys.astype(float), zoom))
    hit = shapely.intersects(geom, boxes)
    return xs[hit], ys[hit]


def cover(geom: BaseGeometry, zoom: int) -> frozenset[str]:
    """
    Quadkeys of every tile at `zoom` that intersects `geom` (lon/lat).

    Starts from a bbox grid of at most COARSE_TILES tiles at a coarser zoom and
    descends one level at a time through the children of intersecting tiles.
    """
    if geom.is_empty:
        return frozenset()
    z = zoom
    x0, x1, y0, y1 = _span(geom.bounds, z)
    while z > 0 and (x1 - x0 + 1) * (y1 - y0 + 1) > COARSE_TILES:
        z -= 1
        x0, x1, y0, y1 = _span(geom.bounds, z)
    xs, ys = np.meshgrid(np.arange(x0, x1 + 1), np.arange(y0, y1 + 1))

    shapely.prepare(geom)
    xs, ys = _hits(geom, xs.ravel(), ys.ravel(), z)
    while z < zoom:
        z += 1
        # a child tile lies inside its parent, so only children of hits can hit
        xs = np.concatenate([2 * xs, 2 * xs + 1, 2 * xs, 2 * xs + 1])
        ys = np.concatenate([2 * ys, 2 * ys, 2 * ys + 1, 2 * ys + 1])
        xs, ys = _hits(geom, xs, ys, z)
    return frozenset(tile_to_quadkey(zoom, int(x), int(y)) for x, y in zip(xs, ys))
