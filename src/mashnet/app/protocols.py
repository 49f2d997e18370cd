from typing import Protocol, runtime_checkable

import numpy as np


@runtime_checkable
class MatchClassifier(Protocol):
    """
    Responsibilities:
      • Map the flattened score vector of the top `depth` matches
        (7 values per slot, zero-filled) to one confidence.
    Output is expected in [0, 1]; callers clamp anyway.
    """

    depth: int

    def predict(self, features: np.ndarray) -> float: ...
