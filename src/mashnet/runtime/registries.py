# runtime/registries.py
from collections.abc import Callable

from mashnet.app.protocols import MatchClassifier
from mashnet.config.models import (
    ClassifierUnion,
    ConstantClassifierModel,
    FeedForwardClassifierModel,
)
from mashnet.engine.classifier import ConstantClassifier, FeedForwardClassifier

ClassifierFactory = Callable[[ClassifierUnion, dict], MatchClassifier]

_classifier_registry: dict[str, ClassifierFactory] = {}


# ------------------- Match classifiers ---------------------------


def register_classifier(kind: str):
    def deco(fn: ClassifierFactory):
        _classifier_registry[kind] = fn
        return fn

    return deco


def make_classifier(cfg: ClassifierUnion, *, deps: dict | None = None) -> MatchClassifier:
    try:
        factory = _classifier_registry[cfg.kind]
    except KeyError:
        raise ValueError(f"Unknown classifier kind {cfg.kind!r}")
    return factory(cfg, deps or {})


@register_classifier("feedforward")
def _make_feedforward(cfg: FeedForwardClassifierModel, deps):
    return FeedForwardClassifier(cfg.path)


@register_classifier("constant")
def _make_constant(cfg: ConstantClassifierModel, deps):
    return ConstantClassifier(cfg.confidence, depth=cfg.depth)
