# tests/app/test_build_and_run.py
import io
import json
import logging

from mashnet.app.build import build
from mashnet.engine.classifier import ConstantClassifier, FeedForwardClassifier
from mashnet.io.change_events import EdgeCreated
from mashnet.io.engine_logging import EngineLogging


def _ways():
    return [
        {
            "id": "E1",
            "refs": ["N1", "N2"],
            "coordinates": [[0.0, 0.0], [0.0, 0.01]],
            "properties": {"highway": "residential"},
        }
    ]


def test_build_runs():
    cfg = {
        "name": "test",
        "run_id": "t-1",
        "match": {"classifier": {"kind": "constant", "confidence": 1.0}},
    }
    app = build(cfg, _ways(), use_logging=False)
    assert isinstance(app.classifier, ConstantClassifier)

    results = app.conflator.apply([(1.0, 1.0), (1.0, 1.001)], {"highway": "path"})
    assert [r.outcome for r in results] == ["created"]
    [ev] = app.journal.events
    assert isinstance(ev, EdgeCreated) and ev.run_id == "t-1"
    app.store.check()


def test_build_defaults_to_bundled_model():
    app = build(None, _ways(), use_logging=False)
    assert isinstance(app.classifier, FeedForwardClassifier)
    assert app.store.stats()["edges"] == 1


def test_build_from_persisted_document():
    first = build({"match": {"classifier": {"kind": "constant"}}}, _ways(), use_logging=False)
    first.conflator.apply([(1.0, 1.0), (1.0, 1.001)], {})
    doc = first.conflator.to_persisted()

    second = build({"match": {"classifier": {"kind": "constant"}}}, persisted=doc, use_logging=False)
    assert second.store.stats() == first.store.stats()


def test_engine_logging_emits_json_lines():
    buf = io.StringIO()
    logger = logging.getLogger("mashnet.test.build")
    logger.handlers.clear()
    logger.propagate = False
    handler = logging.StreamHandler(buf)
    logger.addHandler(handler)
    logger.setLevel("DEBUG")
    # reuse the JSON formatter of the default logger
    from mashnet.io.engine_logging import _default_json_logger

    handler.setFormatter(_default_json_logger().handlers[0].formatter)

    app = build(
        {"run_id": "t-log", "match": {"classifier": {"kind": "constant"}}, "log": {"debug": True}},
        _ways(),
    )
    assert isinstance(app.hooks, EngineLogging)
    app.hooks.log = logger
    app.conflator.apply([(1.0, 1.0), (1.0, 1.001)], {})

    records = [json.loads(line) for line in buf.getvalue().splitlines()]
    msgs = [r["msg"] for r in records]
    assert "snap" in msgs and "commit_chunk" in msgs
    commit = next(r for r in records if r["msg"] == "commit_chunk")
    assert commit["run_id"] == "t-log" and commit["outcome"] == "created"
