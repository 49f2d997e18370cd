# mashnet/domain/errors.py


class MashnetError(Exception):
    """Base class for conflation engine errors."""


class ModelLoadError(MashnetError, RuntimeError):
    """The pretrained match model could not be loaded."""


class GraphInvariantError(MashnetError, RuntimeError):
    """A mutation would leave maps and indexes out of step, or reference missing structure."""


class DegenerateGeometryError(MashnetError, ValueError):
    """A line without enough coordinates to define a path."""
