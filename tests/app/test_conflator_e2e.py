# tests/app/test_conflator_e2e.py
"""End-to-end scenarios on a one-edge graph with the bundled match model."""

import numpy as np
import pytest

from mashnet.app.conflator import Conflator
from mashnet.domain.entities.geography import BBox, Line
from mashnet.domain.entities.snaps import AnchorSnap, NodeSnap, VoidSnap
from mashnet.domain.perturb import perturb
from mashnet.engine.classifier import FeedForwardClassifier

METRE = 1.0 / 111_319.49


@pytest.fixture(scope="module")
def model():
    return FeedForwardClassifier()


@pytest.fixture
def net(store, model):
    return Conflator(store, model)


def test_offset_line_scans_and_matches(net):
    line = Line([(METRE, 0.0), (METRE, 0.01)])
    matches = net.scan(line)
    assert matches[0].edge_id == "E1"
    s = matches[0].scores
    assert s.distance > 0.9 and s.straight > 0.9 and s.curve > 0.9
    assert s.scan > 0 and s.terminal > 0
    assert net.match(matches) > 0.5


def test_snap_through_node(net):
    snaps = net.snap([(0.0, 0.0), (0.001, 0.0)])
    assert snaps[0] == NodeSnap("N1")


def test_merge_keeps_prior_keys(net):
    net.merge("E1", {"max_speed": 70})
    assert net.query(BBox(-0.001, -0.001, 0.001, 0.011)).metadata["E1"] == {
        "highway": "residential",
        "max_speed": 70,
    }


def test_propose_follows_the_existing_edge(net):
    chunks = net.propose([(0.0, 0.0), (0.0, 0.01)])
    assert chunks[0][0] == NodeSnap("N1")
    assert chunks[-1][-1] == NodeSnap("N2")
    assert all(isinstance(s, (NodeSnap, AnchorSnap)) for c in chunks for s in c)
    assert [ln.action for ln in net.materialize(chunks)] == ["merge"] * len(chunks)


def test_apply_merges_a_re_observed_road(net):
    before = net.store.stats()
    results = net.apply([(0.0, 0.0), (0.0, 0.01)], {"surface": "asphalt"})

    merged = [r for r in results if r.outcome == "merged"]
    assert merged and all(r.edge_id == "E1" for r in merged)
    assert all(r.confidence > 0.95 for r in merged)
    assert net.store.metadata["E1"]["surface"] == "asphalt"
    assert net.store.stats() == before


def test_apply_perturbed_observation_never_breaks_the_graph(net):
    observed = perturb(
        [(0.0, 0.0), (0.0, 0.005), (0.0, 0.01)], np.random.default_rng(11), shift_km=0.002
    )
    net.apply(observed, {"surface": "gravel"})
    net.store.check()


def test_apply_new_road_creates_structure(net):
    before = net.store.stats()
    # leaves N1 heading east into empty space
    results = net.apply([(0.0, 0.0), (0.001, 0.0)], {"highway": "service"})

    assert [r.outcome for r in results] == ["created"]
    edge_id = results[0].edge_id
    refs = net.store.edges[edge_id]
    assert refs[0] == "N1"
    assert net.store.nodes["N1"] == {"E1", edge_id}
    assert net.store.metadata[edge_id] == {"highway": "service"}
    after = net.store.stats()
    assert after["edges"] == before["edges"] + 1
    assert after["nodes"] == before["nodes"] + 1
    net.store.check()


def test_all_void_two_point_chunk(net):
    before = net.store.stats()
    net.commit([[VoidSnap((3.0, 3.0)), VoidSnap((3.0, 3.001))]], {})
    after = net.store.stats()
    assert after["edges"] - before["edges"] == 1
    assert after["vertices"] - before["vertices"] == 2
    assert after["nodes"] - before["nodes"] == 2
    assert after["edge_index"] - before["edge_index"] == 1
    # one node-index entry per new node
    assert after["node_index"] - before["node_index"] == 2


def test_persisted_round_trip_through_facade(net, model):
    net.apply([(0.0, 0.0), (0.001, 0.0)], {"highway": "service"})
    back = Conflator.from_persisted(net.to_persisted(), model)
    probe = BBox(-0.001, -0.001, 0.002, 0.011)
    assert back.query(probe).edges == net.query(probe).edges
    assert back.store.next_id == net.store.next_id
