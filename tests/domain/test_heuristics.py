# tests/domain/test_heuristics.py
import pytest

from mashnet.domain.errors import DegenerateGeometryError
from mashnet.domain.heuristics import bearing_distance, compare, heuristics, similarity

NORTH = [(0.0, 0.0), (0.0, 0.002)]
SOUTH = [(0.0, 0.002), (0.0, 0.0)]


def test_heuristics_of_straight_line():
    h = heuristics(NORTH)
    assert h.length == pytest.approx(0.2211, rel=1e-3)
    assert h.straight == pytest.approx(h.length)
    assert h.curve == pytest.approx(1.0)
    assert h.bearing == pytest.approx(0.0, abs=1e-9)
    assert h.scan and h.terminal
    assert all(len(q) == 23 for q in h.scan)


def test_curve_drops_for_a_hairpin():
    h = heuristics([(0.0, 0.0), (0.0, 0.002), (0.0001, 0.0)])
    assert h.curve < 0.1


def test_zero_length_line_is_guarded():
    h = heuristics([(1.0, 1.0), (1.0, 1.0)])
    assert h.length == 0.0
    assert h.curve == 0.0
    assert h.scan  # the buffered point still covers tiles
    s = compare(h, h)
    assert s.distance == 0.0
    assert s.straight == 0.0
    assert s.curve == 0.0


@pytest.mark.filterwarnings("error::DeprecationWarning")
def test_zones_are_built_without_deprecated_shapely_calls():
    h = heuristics([(13.4, 52.5), (13.401, 52.501)])
    assert h.scan and h.terminal
    assert h.terminal - h.scan


def test_single_coordinate_is_rejected():
    with pytest.raises(DegenerateGeometryError):
        heuristics([(0.0, 0.0)])


def test_compare_with_itself():
    h = heuristics(NORTH)
    s = compare(h, h)
    assert s.distance == 1.0
    assert s.straight == 1.0
    assert s.curve == 1.0
    assert s.scan == 1.0
    assert s.terminal == 1.0
    assert s.bearing == pytest.approx(1.0)
    assert s.scale == pytest.approx(2 * h.length / 100.0)


def test_opposite_headings_score_zero_bearing():
    s = compare(heuristics(NORTH), heuristics(SOUTH))
    assert s.bearing == pytest.approx(0.0, abs=1e-6)
    # same footprint either way round
    assert s.scan > 0.99


def test_perpendicular_headings_score_half():
    east = [(0.0, 0.0), (0.002, 0.0)]
    s = compare(heuristics(NORTH), heuristics(east))
    assert s.bearing == pytest.approx(0.5, abs=1e-3)


def test_scale_saturates():
    long_line = [(0.0, 0.0), (0.0, 0.5)]  # ~55 km each
    a = heuristics(long_line, zoom=12)
    assert compare(a, a).scale == 1.0


def test_compare_refuses_mixed_settings():
    with pytest.raises(ValueError):
        compare(heuristics(NORTH), heuristics(NORTH, zoom=20))


def test_similarity():
    assert similarity(set(), set()) == 0.0
    assert similarity({"a"}, {"a"}) == 1.0
    assert similarity({"a", "b"}, {"b", "c"}) == pytest.approx(1 / 3)


def test_bearing_distance_sign():
    assert bearing_distance(0.0, 90.0) == pytest.approx(90.0)
    assert bearing_distance(90.0, 0.0) == pytest.approx(-90.0)
    assert bearing_distance(10.0, 10.0) == pytest.approx(0.0, abs=1e-6)
