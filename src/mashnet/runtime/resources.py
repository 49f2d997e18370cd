# mashnet/runtime/resources.py
import json
from functools import lru_cache
from pathlib import Path

from mashnet.domain.errors import ModelLoadError

DEFAULT_MODEL_PATH = Path(__file__).resolve().parent.parent / "model" / "match.json"


@lru_cache(maxsize=8)
def load_model_artifact(file: str) -> dict:
    """Read a match-model weight artifact once per path."""
    try:
        with open(file, encoding="utf-8") as f:
            doc = json.load(f)
    except (OSError, json.JSONDecodeError) as exc:
        raise ModelLoadError(f"unable to load model from {file}: {exc}") from exc
    if not isinstance(doc, dict):
        raise ModelLoadError(f"model artifact {file} is not a JSON object")
    return doc
