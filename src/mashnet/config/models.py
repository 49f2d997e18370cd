import os
from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator, model_validator


class LogModel(BaseModel):
    model_config = ConfigDict(extra="forbid")
    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    debug: bool = False
    sample_every: int = 1


class JournalModel(BaseModel):
    model_config = ConfigDict(extra="forbid")
    enabled: bool = True
    jsonl: bool = False  # also write change events to stdout as JSON lines


# ----------------- GEOMETRY ---------------------


class SnapModel(BaseModel):
    """Snap thresholds in kilometres, smallest to largest: anchor < vertex < node."""

    model_config = ConfigDict(extra="forbid")
    max_node_shift_km: float = 0.01
    max_vertex_shift_km: float = 0.0075
    max_phantom_shift_km: float = 0.005

    @field_validator("max_node_shift_km", "max_vertex_shift_km", "max_phantom_shift_km")
    def _positive(cls, v: float, info: ValidationInfo) -> float:
        if v <= 0:
            raise ValueError(f"{info.field_name} must be > 0")
        return v

    @model_validator(mode="after")
    def _ordered(self):
        if not (self.max_phantom_shift_km < self.max_vertex_shift_km < self.max_node_shift_km):
            raise ValueError("snap thresholds must satisfy phantom < vertex < node")
        return self


class HeuristicsModel(BaseModel):
    model_config = ConfigDict(extra="forbid")
    buffer_km: float = Field(0.05, gt=0)
    zoom: int = Field(23, ge=1, le=30)


class ScoreWeights(BaseModel):
    model_config = ConfigDict(extra="forbid")
    distance: float = 1.0
    scale: float = 1.0
    straight: float = 1.0
    curve: float = 1.0
    scan: float = 1.0
    terminal: float = 1.0
    bearing: float = 1.0


class ScanModel(BaseModel):
    model_config = ConfigDict(extra="forbid")
    buffer_km: float = Field(0.1, gt=0)
    weights: ScoreWeights = ScoreWeights()


# ----------------- CLASSIFIERS ---------------------


class FeedForwardClassifierModel(BaseModel):
    model_config = ConfigDict(extra="forbid")
    kind: Literal["feedforward"] = "feedforward"
    path: str | None = None  # None -> bundled weights

    @field_validator("path")
    @classmethod
    def _expand(cls, v: str | None) -> str | None:
        return os.path.expandvars(os.path.expanduser(v)) if v else v


class ConstantClassifierModel(BaseModel):
    """Test stub with a fixed confidence."""

    model_config = ConfigDict(extra="forbid")
    kind: Literal["constant"] = "constant"
    confidence: float = Field(1.0, ge=0.0, le=1.0)
    depth: int = Field(5, ge=1)


ClassifierUnion = Annotated[
    FeedForwardClassifierModel | ConstantClassifierModel, Field(discriminator="kind")
]


class MatchModel(BaseModel):
    model_config = ConfigDict(extra="forbid")
    threshold: float = Field(0.95, ge=0.0, le=1.0)
    classifier: ClassifierUnion = Field(default_factory=FeedForwardClassifierModel)


# ------------------------------------------------------------------


class EngineModel(BaseModel):
    model_config = ConfigDict(extra="forbid")
    name: str = "mashnet"
    run_id: str = "local"
    log: LogModel = LogModel()
    journal: JournalModel = JournalModel()
    snap: SnapModel = SnapModel()
    heuristics: HeuristicsModel = HeuristicsModel()
    scan: ScanModel = ScanModel()
    match: MatchModel = MatchModel()
