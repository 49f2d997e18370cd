# mashnet/domain/entities/snaps.py
from dataclasses import dataclass

from mashnet.domain.entities.geography import Coord, Id


# Classification of one phantom point against existing structure.
@dataclass(frozen=True)
class NodeSnap:
    node_id: Id


@dataclass(frozen=True)
class VertexSnap:
    vertex_id: Id


@dataclass(frozen=True)
class AnchorSnap:
    edge_id: Id  # edge the interpolated point lies on
    coord: Coord


@dataclass(frozen=True)
class VoidSnap:
    coord: Coord  # phantom coordinate, outside all structure


SnapPoint = NodeSnap | VertexSnap | AnchorSnap | VoidSnap
Chunk = list[SnapPoint]


def is_void(s: SnapPoint) -> bool:
    return isinstance(s, VoidSnap)


def same_target(a: SnapPoint, b: SnapPoint) -> bool:
    """True when two consecutive snaps point at the same node, vertex or anchor.

    Void snaps never compare equal here, even when their coordinates match.
    """
    if isinstance(a, VoidSnap) or isinstance(b, VoidSnap):
        return False
    return a == b
