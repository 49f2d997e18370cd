# mashnet/app/conflator.py
from collections.abc import Iterable, Mapping, Sequence

from mashnet.app.protocols import MatchClassifier
from mashnet.config.models import EngineModel
from mashnet.domain.entities.geography import BBox, Coord, Line, Properties, Way
from mashnet.domain.entities.scores import Match
from mashnet.domain.entities.snaps import Chunk, SnapPoint
from mashnet.engine.changes import materialize, split
from mashnet.engine.classifier import match
from mashnet.engine.commit import CommitResult, Committer
from mashnet.engine.hooks import EngineHooks, NoopHooks
from mashnet.engine.scan import Scanner
from mashnet.engine.snap import Snapper
from mashnet.store.graph import GraphStore
from mashnet.store.subgraph import Subgraph


class Conflator:
    """
    Public face of the engine: one graph store plus the scan, snap and commit
    machinery configured from an `EngineModel`.
    """

    def __init__(
        self,
        store: GraphStore,
        classifier: MatchClassifier,
        cfg: EngineModel | None = None,
        *,
        hooks: EngineHooks | None = None,
    ):
        cfg = cfg or EngineModel()
        self.cfg = cfg
        self.store = store
        self.classifier = classifier
        self.hooks: EngineHooks = hooks or NoopHooks()
        self.scanner = Scanner(
            store,
            buffer_km=cfg.scan.buffer_km,
            weights=cfg.scan.weights.model_dump(),
            heuristic_buffer_km=cfg.heuristics.buffer_km,
            zoom=cfg.heuristics.zoom,
            hooks=self.hooks,
        )
        self.snapper = Snapper(
            store,
            node_shift_km=cfg.snap.max_node_shift_km,
            vertex_shift_km=cfg.snap.max_vertex_shift_km,
            phantom_shift_km=cfg.snap.max_phantom_shift_km,
            hooks=self.hooks,
        )
        self.committer = Committer(
            store,
            self.scanner,
            classifier,
            threshold=cfg.match.threshold,
            hooks=self.hooks,
            run_id=cfg.run_id,
        )

    @classmethod
    def from_ways(
        cls, ways: Iterable[Way | Mapping], classifier: MatchClassifier, cfg: EngineModel | None = None, **kw
    ) -> "Conflator":
        return cls(GraphStore.from_ways(ways), classifier, cfg, **kw)

    # -------- reads

    def scan(self, line: Line | Sequence[Coord]) -> list[Match]:
        return self.scanner.scan(line)

    def match(self, matches: Sequence[Match]) -> float:
        return match(matches, self.classifier)

    def query(self, bbox: BBox | Sequence[float]) -> Subgraph:
        return self.store.query(bbox if isinstance(bbox, BBox) else BBox(*bbox))

    # -------- pipeline

    def snap(self, line: Line | Sequence[Coord]) -> list[SnapPoint]:
        return self.snapper.snap(line)

    def split(self, snaps: Sequence[SnapPoint]) -> list[Chunk]:
        return split(snaps)

    def materialize(self, chunks: Sequence[Chunk]) -> list[Line]:
        return materialize(chunks, self.store)

    def commit(self, chunks: Sequence[Chunk], properties: Mapping[str, object]) -> list[CommitResult]:
        return self.committer.commit(chunks, properties)

    def propose(self, line: Line | Sequence[Coord]) -> list[Chunk]:
        return split(self.snap(line))

    def apply(self, line: Line | Sequence[Coord], properties: Mapping[str, object]) -> list[CommitResult]:
        return self.commit(self.propose(line), properties)

    # -------- writes

    def merge(self, edge_id, properties: Mapping[str, object]) -> Properties:
        return self.store.merge(edge_id, properties)

    # -------- persistence

    def to_persisted(self) -> dict:
        return self.store.to_persisted()

    @classmethod
    def from_persisted(
        cls, doc: Mapping, classifier: MatchClassifier, cfg: EngineModel | None = None, **kw
    ) -> "Conflator":
        return cls(GraphStore.from_persisted(doc), classifier, cfg, **kw)
