# tests/conftest.py
import pytest

from mashnet.app.conflator import Conflator
from mashnet.engine.classifier import ConstantClassifier
from mashnet.store.graph import GraphStore


def one_edge_ways():
    # E1 runs north from N1 (0, 0) to N2 (0, 0.01), about 1.1 km
    return [
        {
            "id": "E1",
            "refs": ["N1", "N2"],
            "coordinates": [[0.0, 0.0], [0.0, 0.01]],
            "properties": {"highway": "residential"},
        }
    ]


@pytest.fixture
def store():
    return GraphStore.from_ways(one_edge_ways())


@pytest.fixture
def stub_classifier():
    return ConstantClassifier(1.0)


@pytest.fixture
def conflator(store, stub_classifier):
    return Conflator(store, stub_classifier)
