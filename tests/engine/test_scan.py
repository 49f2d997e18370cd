# tests/engine/test_scan.py
import pytest

from mashnet.domain.entities.geography import Line
from mashnet.engine.scan import Scanner, softmax
from mashnet.store.graph import GraphStore

METRE = 1.0 / 111_319.49  # degrees of longitude per metre at the equator


@pytest.fixture
def parallel_store():
    # E1 and a parallel E3 about 20 m to the east
    return GraphStore.from_ways(
        [
            {"id": "E1", "refs": ["N1", "N2"], "coordinates": [[0.0, 0.0], [0.0, 0.01]]},
            {
                "id": "E3",
                "refs": ["N5", "N6"],
                "coordinates": [[20 * METRE, 0.0], [20 * METRE, 0.01]],
            },
        ]
    )


def test_offset_line_finds_its_edge(store):
    line = Line([(METRE, 0.0), (METRE, 0.01)])
    matches = Scanner(store).scan(line)
    assert [m.edge_id for m in matches] == ["E1"]
    top = matches[0]
    assert top.scores.distance > 0.9
    assert top.scores.straight > 0.9
    assert top.scores.curve > 0.9
    assert top.scores.scan > 0
    assert top.scores.terminal > 0
    assert top.softmax == pytest.approx(1.0)
    assert top.line.coordinates == [(0.0, 0.0), (0.0, 0.01)]


def test_softmax_sums_to_one_and_sorts(parallel_store):
    line = [(2 * METRE, 0.0), (2 * METRE, 0.01)]
    matches = Scanner(parallel_store).scan(line)
    assert {m.edge_id for m in matches} == {"E1", "E3"}
    assert sum(m.softmax for m in matches) == pytest.approx(1.0)
    assert matches[0].edge_id == "E1"
    assert matches[0].softmax >= matches[1].softmax
    assert matches[0].score == pytest.approx(sum(matches[0].scores.as_vector()))


def test_far_away_line_has_no_candidates(store):
    assert Scanner(store).scan([(1.0, 1.0), (1.0, 1.01)]) == []


def test_weights_can_silence_every_dimension(store):
    zero = dict.fromkeys(
        ["distance", "scale", "straight", "curve", "scan", "terminal", "bearing"], 0.0
    )
    scanner = Scanner(store, weights=zero)
    assert scanner.scan([(METRE, 0.0), (METRE, 0.01)]) == []


def test_softmax_is_shift_invariant():
    import numpy as np

    a = softmax(np.array([1.0, 2.0, 3.0]))
    b = softmax(np.array([1001.0, 1002.0, 1003.0]))
    assert np.allclose(a, b)
    assert a.sum() == pytest.approx(1.0)
