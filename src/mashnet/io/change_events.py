# mashnet/io/change_events.py

from dataclasses import dataclass, field
from typing import Literal

from mashnet.domain.entities.geography import Id


# Base type for journaled graph changes (one per committed chunk)
@dataclass
class ChangeEvent:
    run_id: str
    seq: int  # commit order within this engine instance
    name: str  # stable event name
    changeset: int


@dataclass
class EdgeCreated(ChangeEvent):
    edge_id: Id
    refs: list[Id] = field(default_factory=list)
    new_vertices: int = 0
    new_nodes: int = 0


@dataclass
class EdgeMerged(ChangeEvent):
    edge_id: Id
    confidence: float
    properties: dict = field(default_factory=dict)


@dataclass
class ChunkDropped(ChangeEvent):
    reason: Literal["no_candidates", "below_threshold"]
    confidence: float = 0.0
    candidate: Id | None = None
