# mashnet/domain/entities/geography.py
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Literal

# Core geometry types shared by the store and the engine
Id = int | str  # ingested ids may be OSM ints or split ids like "123!0"
Coord = tuple[float, float]  # (lon, lat) in degrees
PropertyValue = str | int | float | bool
Properties = dict[str, PropertyValue]

Action = Literal["create", "merge"]


def as_coord(pair) -> Coord:
    return (float(pair[0]), float(pair[1]))


@dataclass(frozen=True)
class BBox:
    min_x: float
    min_y: float
    max_x: float
    max_y: float

    @classmethod
    def of(cls, coords: Iterable[Coord]) -> "BBox":
        xs, ys = [], []
        for x, y in coords:
            xs.append(x)
            ys.append(y)
        if not xs:
            raise ValueError("bbox of empty coordinate sequence")
        return cls(min(xs), min(ys), max(xs), max(ys))

    def as_tuple(self) -> tuple[float, float, float, float]:
        return (self.min_x, self.min_y, self.max_x, self.max_y)

    def intersects(self, other: "BBox") -> bool:
        return not (
            other.min_x > self.max_x
            or other.max_x < self.min_x
            or other.min_y > self.max_y
            or other.max_y < self.min_y
        )


@dataclass
class Line:
    """An ordered coordinate path, optionally tagged as a changeset."""

    coordinates: list[Coord]
    action: Action | None = None
    changeset: int | None = None

    @property
    def bbox(self) -> BBox:
        return BBox.of(self.coordinates)

    @property
    def start(self) -> Coord:
        return self.coordinates[0]

    @property
    def end(self) -> Coord:
        return self.coordinates[-1]


@dataclass
class Way:
    """One normalized way record handed over by the upstream normalizer."""

    id: Id
    refs: list[Id]
    coordinates: list[Coord]
    properties: Properties = field(default_factory=dict)

    @property
    def is_well_formed(self) -> bool:
        return len(self.refs) >= 2 and len(self.refs) == len(self.coordinates)

    @classmethod
    def from_record(cls, rec: Mapping) -> "Way":
        # GeoJSON feature: id/refs live in properties, everything else is metadata
        if rec.get("type") == "Feature":
            props = dict(rec.get("properties") or {})
            way_id = props.pop("id")
            refs = list(props.pop("refs"))
            coords = rec["geometry"]["coordinates"]
        else:
            way_id = rec["id"]
            refs = list(rec["refs"])
            coords = rec["coordinates"]
            props = {k: v for k, v in (rec.get("properties") or {}).items() if k not in ("id", "refs")}
        return cls(id=way_id, refs=refs, coordinates=[as_coord(c) for c in coords], properties=props)
