# mashnet/domain/perturb.py
from collections.abc import Sequence

import numpy as np

from mashnet.domain.entities.geography import Coord
from mashnet.domain.geodesy import GEOD

DEFAULT_SHIFT_KM = 0.003
DEFAULT_JITTER_KM = 0.0005


def _move(arr: np.ndarray, dist_km: np.ndarray, az: np.ndarray) -> np.ndarray:
    lons, lats, _ = GEOD.fwd(arr[:, 0], arr[:, 1], az, dist_km * 1000.0)
    return np.column_stack([lons, lats])


def perturb(
    coords: Sequence[Coord],
    rng: np.random.Generator,
    *,
    shift_km: float = DEFAULT_SHIFT_KM,
    jitter_km: float = DEFAULT_JITTER_KM,
) -> list[Coord]:
    """
    A noisy re-observation of a line.

    The whole line moves by |N(0, shift_km)| in one random direction, then every
    vertex moves independently by |N(0, jitter_km)| in its own direction.
    """
    arr = np.asarray(coords, dtype=float).reshape(-1, 2)
    n = len(arr)
    shift = np.full(n, abs(rng.normal()) * shift_km)
    heading = np.full(n, rng.uniform(0.0, 360.0))
    arr = _move(arr, shift, heading)
    arr = _move(arr, np.abs(rng.normal(size=n)) * jitter_km, rng.uniform(0.0, 360.0, size=n))
    return [(float(x), float(y)) for x, y in arr]
