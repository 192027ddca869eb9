"""
shape_evolution/errors.py - Exception hierarchy
"""


class ShapeEvolutionError(Exception):
    """Base class for all errors raised by shape_evolution"""


class DimensionMismatchError(ShapeEvolutionError, ValueError):
    """Two canvases of different size were compared"""


class UnknownShapeKindError(ShapeEvolutionError, ValueError):
    """A shape kind name or record tag is not one of the known variants"""


class ShapeIndexError(ShapeEvolutionError, IndexError):
    """A shape index is outside the genome's shape list"""


class FitnessNotComputedError(ShapeEvolutionError, RuntimeError):
    """Fitness was read before the genome was evaluated"""


class ConfigurationError(ShapeEvolutionError, ValueError):
    """Run configuration rejected before evolution starts"""
