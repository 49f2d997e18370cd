# mashnet/engine/commit.py
"""
Apply materialized chunks to the live graph.

Merge chunks are scanned and classified; only a confident top match receives
the caller's properties. Create chunks are resolved into one `EdgeInsert`
plan and handed to the store in a single call, so a stale reference fails
before anything is written.
"""

import itertools
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Literal

from mashnet.domain.entities.geography import Action, Coord, Id
from mashnet.domain.entities.snaps import AnchorSnap, Chunk, NodeSnap, VertexSnap, is_void
from mashnet.domain.errors import GraphInvariantError
from mashnet.engine.changes import materialize
from mashnet.engine.classifier import match
from mashnet.engine.hooks import EngineHooks, NoopHooks
from mashnet.engine.scan import Scanner
from mashnet.io.change_events import ChunkDropped, EdgeCreated, EdgeMerged
from mashnet.store.graph import EdgeInsert, GraphStore, validate_properties

ACCEPT_THRESHOLD = 0.95

Outcome = Literal["created", "merged", "dropped"]


@dataclass(frozen=True)
class CommitResult:
    changeset: int
    action: Action
    outcome: Outcome
    edge_id: Id | None = None
    confidence: float | None = None


class Committer:
    def __init__(
        self,
        store: GraphStore,
        scanner: Scanner,
        classifier,
        *,
        threshold: float = ACCEPT_THRESHOLD,
        hooks: EngineHooks | None = None,
        run_id: str = "local",
    ):
        self.store = store
        self.scanner = scanner
        self.classifier = classifier
        self.threshold = threshold
        self.hooks: EngineHooks = hooks or NoopHooks()
        self.run_id = run_id
        self._seq = itertools.count()

    def commit(self, chunks: Sequence[Chunk], properties: Mapping[str, object]) -> list[CommitResult]:
        validate_properties(properties)
        results = []
        for i, chunk in enumerate(chunks):
            with self.store.lock.write():
                try:
                    if any(is_void(s) for s in chunk):
                        result = self._create(i, chunk, properties)
                    else:
                        result = self._merge(i, chunk, properties)
                except GraphInvariantError as exc:
                    self.hooks.error(reason="commit_chunk", exc=exc, changeset=i)
                    raise
            self.hooks.commit_chunk(result, points=len(chunk))
            results.append(result)
        return results

    # -------- merge path

    def _merge(self, i: int, chunk: Chunk, properties: Mapping) -> CommitResult:
        line = materialize([chunk], self.store)[0]
        matches = self.scanner.scan(line)
        confidence = match(matches, self.classifier)
        top = matches[0].edge_id if matches else None
        if top is not None and confidence > self.threshold:
            self.store.merge(top, properties)
            self.hooks.journal(
                EdgeMerged(
                    self.run_id, next(self._seq), "EdgeMerged", i,
                    edge_id=top, confidence=confidence, properties=dict(properties),
                )
            )
            return CommitResult(i, "merge", "merged", top, confidence)

        reason = "no_candidates" if top is None else "below_threshold"
        self.hooks.journal(
            ChunkDropped(
                self.run_id, next(self._seq), "ChunkDropped", i,
                reason=reason, confidence=confidence, candidate=top,
            )
        )
        return CommitResult(i, "merge", "dropped", top, confidence)

    # -------- create path

    def plan(self, chunk: Chunk, properties: Mapping) -> EdgeInsert:
        """Resolve a create chunk against the live store without mutating it."""
        fresh = sum(1 for s in chunk if isinstance(s, AnchorSnap) or is_void(s))
        ids = iter(self.store.fresh_ids(1 + fresh))
        edge_id = next(ids)

        refs: list[Id] = []
        new_vertices: dict[Id, Coord] = {}
        nodes: list[Id] = []
        for s in chunk:
            if isinstance(s, NodeSnap):
                if s.node_id not in self.store.nodes:
                    raise GraphInvariantError(f"snap references missing node {s.node_id!r}")
                refs.append(s.node_id)
            elif isinstance(s, VertexSnap):
                if s.vertex_id not in self.store.vertices:
                    raise GraphInvariantError(f"snap references missing vertex {s.vertex_id!r}")
                refs.append(s.vertex_id)
            else:
                vid = next(ids)
                new_vertices[vid] = s.coord
                refs.append(vid)
                if isinstance(s, AnchorSnap):
                    nodes.append(vid)

        for end in (refs[0], refs[-1]):
            if end not in nodes:
                nodes.append(end)
        return EdgeInsert(
            edge_id=edge_id,
            refs=refs,
            new_vertices=new_vertices,
            nodes=tuple(nodes),
            properties=dict(properties),
        )

    def _create(self, i: int, chunk: Chunk, properties: Mapping) -> CommitResult:
        plan = self.plan(chunk, properties)
        new_nodes = sum(1 for n in plan.nodes if n not in self.store.nodes)
        self.store.insert_edge(plan)
        self.hooks.journal(
            EdgeCreated(
                self.run_id, next(self._seq), "EdgeCreated", i,
                edge_id=plan.edge_id, refs=list(plan.refs),
                new_vertices=len(plan.new_vertices), new_nodes=new_nodes,
            )
        )
        return CommitResult(i, "create", "created", plan.edge_id)
