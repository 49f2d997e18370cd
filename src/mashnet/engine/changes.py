# mashnet/engine/changes.py
from collections.abc import Sequence

from mashnet.domain.entities.geography import Coord, Line
from mashnet.domain.entities.snaps import AnchorSnap, Chunk, NodeSnap, SnapPoint, VertexSnap, is_void
from mashnet.domain.errors import GraphInvariantError
from mashnet.store.graph import GraphStore


def _continues(snap: SnapPoint, nxt: SnapPoint | None) -> bool:
    # consecutive anchors on one edge stay in one chunk
    return (
        isinstance(snap, AnchorSnap)
        and isinstance(nxt, AnchorSnap)
        and snap.edge_id == nxt.edge_id
    )


def split(snaps: Sequence[SnapPoint]) -> list[Chunk]:
    """
    Cut a snap sequence into chunks at every closing point.

    A closing point is any non-void snap that does not continue an anchor run;
    it ends the current chunk and also opens the next one. Chunks of fewer
    than two points carry no geometry and are dropped.
    """
    if not snaps:
        return []
    chunks: list[Chunk] = [[snaps[0]]]
    for i in range(1, len(snaps)):
        snap = snaps[i]
        chunks[-1].append(snap)
        nxt = snaps[i + 1] if i + 1 < len(snaps) else None
        if is_void(snap) or _continues(snap, nxt):
            continue
        chunks.append([snap])
    return [c for c in chunks if len(c) >= 2]


def resolve(snap: SnapPoint, store: GraphStore) -> Coord:
    if isinstance(snap, (NodeSnap, VertexSnap)):
        ref = snap.node_id if isinstance(snap, NodeSnap) else snap.vertex_id
        try:
            return store.vertex(ref)
        except KeyError:
            raise GraphInvariantError(f"snap references missing vertex {ref!r}") from None
    return snap.coord


def materialize(chunks: Sequence[Chunk], store: GraphStore) -> list[Line]:
    lines = []
    for i, chunk in enumerate(chunks):
        action = "create" if any(is_void(s) for s in chunk) else "merge"
        lines.append(Line([resolve(s, store) for s in chunk], action=action, changeset=i))
    return lines
