# mashnet/engine/classifier.py
"""
Frozen match classifier.

The network sees the per-dimension scores of the top `depth` scan results,
flattened slot by slot and zero-filled, and answers with one confidence that
the query line is the top candidate.
"""

from collections.abc import Mapping, Sequence

import numpy as np
import torch
from torch import nn

from mashnet.domain.entities.scores import SCORE_FIELDS, Match
from mashnet.domain.errors import ModelLoadError
from mashnet.runtime.resources import DEFAULT_MODEL_PATH, load_model_artifact

MATCH_DEPTH = 5
N_FEATURES = len(SCORE_FIELDS)


def match_features(matches: Sequence[Match], depth: int = MATCH_DEPTH) -> np.ndarray:
    out = np.zeros(depth * N_FEATURES, dtype=np.float32)
    for slot, m in enumerate(matches[:depth]):
        out[slot * N_FEATURES : (slot + 1) * N_FEATURES] = m.scores.as_vector()
    return out


class MatchNet(nn.Module):
    """Stack of Linear -> Sigmoid layers."""

    def __init__(self, sizes: Sequence[int]):
        super().__init__()
        layers: list[nn.Module] = []
        for n_in, n_out in zip(sizes[:-1], sizes[1:]):
            layers += [nn.Linear(n_in, n_out), nn.Sigmoid()]
        self.net = nn.Sequential(*layers)

    def forward(self, x: torch.Tensor) -> torch.Tensor:
        return self.net(x)

    @classmethod
    def from_artifact(cls, doc: Mapping) -> "MatchNet":
        layers = doc["layers"]
        sizes = [int(doc["depth"]) * int(doc.get("features", N_FEATURES))]
        sizes += [len(layer["bias"]) for layer in layers]
        if sizes[-1] != 1:
            raise ValueError(f"output layer must have 1 unit, has {sizes[-1]}")
        net = cls(sizes)
        state = {}
        for i, layer in enumerate(layers):
            state[f"net.{2 * i}.weight"] = torch.tensor(layer["weight"], dtype=torch.float32)
            state[f"net.{2 * i}.bias"] = torch.tensor(layer["bias"], dtype=torch.float32)
        net.load_state_dict(state)
        return net


class FeedForwardClassifier:
    def __init__(self, path: str | None = None, *, artifact: Mapping | None = None):
        source = str(path or DEFAULT_MODEL_PATH)
        doc = artifact if artifact is not None else load_model_artifact(source)
        try:
            if doc.get("activation", "sigmoid") != "sigmoid":
                raise ValueError(f"unsupported activation {doc['activation']!r}")
            if int(doc.get("features", N_FEATURES)) != N_FEATURES:
                raise ValueError(f"expected {N_FEATURES} features per slot")
            self.depth = int(doc["depth"])
            self.net = MatchNet.from_artifact(doc)
        except (KeyError, TypeError, ValueError, RuntimeError) as exc:
            raise ModelLoadError(f"unable to load model from {source}: {exc}") from exc
        self.net.eval()
        self.net.requires_grad_(False)

    def predict(self, features: np.ndarray) -> float:
        with torch.no_grad():
            x = torch.from_numpy(np.asarray(features, dtype=np.float32)).unsqueeze(0)
            return float(self.net(x)[0, 0])


class ConstantClassifier:
    """Deterministic stand-in that answers the same confidence for any input."""

    def __init__(self, confidence: float = 1.0, depth: int = MATCH_DEPTH):
        self.confidence = confidence
        self.depth = depth

    def predict(self, features: np.ndarray) -> float:
        return self.confidence


def match(matches: Sequence[Match], classifier, depth: int | None = None) -> float:
    """Confidence in [0, 1] that the top-ranked match is the query's road."""
    if isinstance(matches, (str, bytes)) or not isinstance(matches, Sequence):
        raise TypeError(f"match expects a sequence of scan matches, got {type(matches).__name__}")
    if not matches:
        return 0.0
    for m in matches:
        if not isinstance(m, Match):
            raise TypeError(f"match expects Match entries, got {type(m).__name__}")
    features = match_features(matches, depth or classifier.depth)
    return min(max(float(classifier.predict(features)), 0.0), 1.0)
