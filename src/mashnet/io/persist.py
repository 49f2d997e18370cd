# src/mashnet/io/persist.py
import json
from pathlib import Path

from mashnet.store.graph import GraphStore


def save_store(store: GraphStore, file: str | Path) -> None:
    doc = store.to_persisted()
    with open(file, "w", encoding="utf-8") as f:
        json.dump(doc, f)


def load_store(file: str | Path) -> GraphStore:
    with open(file, encoding="utf-8") as f:
        return GraphStore.from_persisted(json.load(f))
