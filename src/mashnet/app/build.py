# mashnet/app/build.py
from collections.abc import Iterable, Mapping
from dataclasses import dataclass

from mashnet.app.conflator import Conflator
from mashnet.app.protocols import MatchClassifier
from mashnet.config.models import EngineModel
from mashnet.domain.entities.geography import Way
from mashnet.io.engine_logging import EngineLogging, JournalHooks  # JSON logs
from mashnet.io.recorder import JsonlSink, MemorySink, Recorder
from mashnet.runtime.registries import make_classifier
from mashnet.store.graph import GraphStore


@dataclass
class App:
    conflator: Conflator
    store: GraphStore
    classifier: MatchClassifier
    hooks: object
    journal: MemorySink | None


def build(
    cfg: EngineModel | Mapping | None,
    ways: Iterable[Way | Mapping] = (),
    *,
    use_logging: bool = True,
    persisted: Mapping | None = None,
) -> App:
    # 0) Validate config
    if cfg is None:
        model = EngineModel()
    else:
        model = cfg if isinstance(cfg, EngineModel) else EngineModel.model_validate(cfg)

    # 1) Classifier (fails fast on bad weights)
    classifier = make_classifier(model.match.classifier)

    # 2) Journal + hooks
    journal = MemorySink() if model.journal.enabled else None
    sinks = [journal] if journal else []
    if model.journal.jsonl:
        sinks.append(JsonlSink())
    recorder = Recorder(*sinks) if sinks else None

    hooks = (
        EngineLogging(
            run_id=model.run_id,
            recorder=recorder,
            level=model.log.level,
            debug=model.log.debug,
            sample_every=model.log.sample_every,
        )
        if use_logging
        else JournalHooks(recorder)
    )

    # 3) Store
    store = GraphStore.from_persisted(persisted) if persisted is not None else GraphStore.from_ways(ways)

    conflator = Conflator(store, classifier, model, hooks=hooks)
    return App(conflator, store, classifier, hooks, journal)
