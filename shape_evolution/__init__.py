"""
shape_evolution - Approximate images with evolved translucent shapes

A genetic algorithm where genomes are ordered lists of triangles, circles and
rectangles, alpha-composited onto a canvas and scored by their pixel distance
to a target image.
"""

__version__ = "0.1.0"
__author__ = "Shape Evolution Project"

from .errors import (
    ShapeEvolutionError, DimensionMismatchError, UnknownShapeKindError,
    ShapeIndexError, FitnessNotComputedError, ConfigurationError
)
from .canvas import Canvas
from .shapes import (
    Color, Point, Line, Triangle, Circle, Rectangle,
    random_shape, mutate_shape, rasterize, shape_to_dict, shape_from_dict,
    SHAPE_KINDS
)
from .genome import Genome
from .config import EvolutionConfig
from .evaluator import Evaluator
from .population import Population
from .archive import EvolutionArchive, should_save

__all__ = [
    'ShapeEvolutionError', 'DimensionMismatchError', 'UnknownShapeKindError',
    'ShapeIndexError', 'FitnessNotComputedError', 'ConfigurationError',
    'Canvas',
    'Color', 'Point', 'Line', 'Triangle', 'Circle', 'Rectangle',
    'random_shape', 'mutate_shape', 'rasterize', 'shape_to_dict', 'shape_from_dict',
    'SHAPE_KINDS',
    'Genome',
    'EvolutionConfig',
    'Evaluator',
    'Population',
    'EvolutionArchive', 'should_save'
]
