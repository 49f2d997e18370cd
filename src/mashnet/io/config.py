# src/mashnet/io/config.py
import json
from collections.abc import Mapping
from pathlib import Path

from mashnet.config.models import EngineModel


def load_engine_config(source: EngineModel | Mapping | str | Path | None = None) -> EngineModel:
    """Validate an engine config given as a model, a mapping or a JSON file path."""
    if source is None:
        return EngineModel()
    if isinstance(source, EngineModel):
        return source
    if isinstance(source, Mapping):
        return EngineModel.model_validate(source)
    with open(source, encoding="utf-8") as f:
        return EngineModel.model_validate_json(f.read())
