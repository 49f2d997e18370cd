# tests/engine/test_classifier.py
import json

import numpy as np
import pytest

from mashnet.domain.entities.geography import Line
from mashnet.domain.entities.scores import Match, Scores
from mashnet.domain.errors import ModelLoadError
from mashnet.engine.classifier import (
    ConstantClassifier,
    FeedForwardClassifier,
    match,
    match_features,
)

PERFECT = Scores(distance=1.0, scale=0.0, straight=1.0, curve=1.0, scan=1.0, terminal=1.0, bearing=1.0)
POOR = Scores(distance=0.1, scale=0.0, straight=0.1, curve=1.0, scan=0.05, terminal=0.2, bearing=1.0)


def _m(scores: Scores, edge_id="E1") -> Match:
    return Match(edge_id, Line([(0.0, 0.0), (0.0, 0.01)]), sum(scores.as_vector()), scores)


def test_features_are_flattened_and_zero_filled():
    f = match_features([_m(PERFECT), _m(POOR)], depth=5)
    assert f.dtype == np.float32
    assert f.shape == (35,)
    assert list(f[:7]) == [1.0, 0.0, 1.0, 1.0, 1.0, 1.0, 1.0]
    assert f[7] == pytest.approx(0.1)
    assert not f[14:].any()


def test_features_truncate_to_depth():
    f = match_features([_m(PERFECT)] * 8, depth=5)
    assert f.shape == (35,)


def test_bundled_model_scores_a_clear_match_high():
    clf = FeedForwardClassifier()
    assert clf.depth == 5
    assert match([_m(PERFECT)], clf) > 0.95
    assert match([_m(POOR)], clf) < 0.5


def test_ambiguous_runner_up_lowers_confidence():
    clf = FeedForwardClassifier()
    alone = match([_m(PERFECT)], clf)
    contested = match([_m(PERFECT), _m(PERFECT, "E2")], clf)
    assert contested < alone
    assert contested < 0.95


def test_match_contract():
    clf = ConstantClassifier(0.7)
    assert match([], clf) == 0.0
    assert match([_m(POOR)], clf) == 0.7
    for bad in ({"a": 1}, "abc", 3, None):
        with pytest.raises(TypeError):
            match(bad, clf)
    with pytest.raises(TypeError):
        match([PERFECT], clf)


def test_output_is_clamped():
    assert match([_m(PERFECT)], ConstantClassifier(7.0)) == 1.0


def test_missing_weights_fail_at_construction(tmp_path):
    with pytest.raises(ModelLoadError):
        FeedForwardClassifier(str(tmp_path / "nope.json"))


def test_corrupt_weights_fail_at_construction(tmp_path):
    path = tmp_path / "bad.json"
    path.write_text("{not json")
    with pytest.raises(ModelLoadError):
        FeedForwardClassifier(str(path))


def test_misshaped_weights_fail_at_construction():
    artifact = {
        "depth": 5,
        "features": 7,
        "layers": [{"weight": [[1.0, 2.0]], "bias": [0.0]}],  # expects 35 inputs
    }
    with pytest.raises(ModelLoadError):
        FeedForwardClassifier(artifact=artifact)
    with pytest.raises(ModelLoadError):
        FeedForwardClassifier(artifact={"layers": []})


def test_custom_artifact_file(tmp_path):
    artifact = {
        "depth": 1,
        "features": 7,
        "layers": [{"weight": [[0.0] * 7], "bias": [0.0]}],
    }
    path = tmp_path / "flat.json"
    path.write_text(json.dumps(artifact))
    clf = FeedForwardClassifier(str(path))
    assert clf.depth == 1
    assert match([_m(PERFECT)], clf) == pytest.approx(0.5)
