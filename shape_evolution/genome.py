"""
shape_evolution/genome.py - Genome representation and JSON serialization
"""
import json
import random
from collections import Counter
from typing import Any, Dict, List, Optional

from .canvas import Canvas
from .errors import FitnessNotComputedError, ShapeIndexError
from .shapes import (Color, Shape, SHAPE_KINDS, mutate_shape, random_shape,
                     rasterize, shape_from_dict, shape_to_dict)


class Genome:
    """An ordered list of shapes painted over an opaque background.

    Later shapes are drawn on top of earlier ones. Fitness is cached and
    cleared by every change to the shape list.
    """

    def __init__(self, height: int, width: int, background: Optional[Color] = None,
                 shapes: Optional[List[Shape]] = None):
        self.height = int(height)
        self.width = int(width)
        self.background = background.copy() if background is not None else Color(0.0, 0.0, 0.0, 1.0)
        self.shapes: List[Shape] = list(shapes) if shapes is not None else []
        self._fitness: Optional[float] = None

    @property
    def canvas_size(self) -> int:
        """Short side of the canvas, the scale of position mutations"""
        return min(self.height, self.width)

    @property
    def n_shapes(self) -> int:
        return len(self.shapes)

    @property
    def is_evaluated(self) -> bool:
        return self._fitness is not None

    @property
    def fitness(self) -> float:
        if self._fitness is None:
            raise FitnessNotComputedError("Genome has not been evaluated since its last change")
        return self._fitness

    @fitness.setter
    def fitness(self, value: float) -> None:
        self._fitness = float(value)

    def invalidate(self) -> None:
        self._fitness = None

    def add_shape(self, kind: str, rng: random.Random) -> Shape:
        """Append a random shape of the given kind"""
        shape = random_shape(kind, self.height, self.width, rng)
        self.shapes.append(shape)
        self.invalidate()
        return shape

    def mutate_shape(self, index: int, canvas_size: int, amplitude: float,
                     rng: random.Random) -> None:
        """Mutate the shape at ``index`` in place"""
        if not 0 <= index < len(self.shapes):
            raise ShapeIndexError(f"Shape index {index} out of range for {len(self.shapes)} shapes")
        mutate_shape(self.shapes[index], canvas_size, amplitude, rng)
        self.invalidate()

    def render(self) -> Canvas:
        """Paint every shape, in order, onto a fresh background canvas"""
        canvas = Canvas.new(self.height, self.width, self.background)
        for shape in self.shapes:
            rasterize(shape, canvas)
        return canvas

    def evaluate(self, target: Canvas) -> float:
        """Compute and cache the distance to the target; no-op when cached"""
        if self._fitness is None:
            self._fitness = Canvas.distance(self.render(), target)
        return self._fitness

    def shape_counts(self) -> Dict[str, int]:
        counts = Counter(shape.kind for shape in self.shapes)
        return {kind: counts.get(kind, 0) for kind in SHAPE_KINDS}

    def copy(self) -> 'Genome':
        """Create a deep copy of this genome"""
        new_genome = Genome(self.height, self.width, self.background,
                            [shape.copy() for shape in self.shapes])
        new_genome._fitness = self._fitness
        return new_genome

    def to_dict(self) -> Dict[str, Any]:
        """Serialize genome to dictionary"""
        return {
            'height': self.height,
            'width': self.width,
            'background': self.background.to_dict(),
            'shapes': [shape_to_dict(shape) for shape in self.shapes],
            'fitness': self._fitness,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Genome':
        """Deserialize genome from dictionary.

        A stored fitness is informational only and is not restored: it is only
        meaningful against the target it was computed for.
        """
        background = data.get('background')
        return cls(
            data['height'],
            data['width'],
            Color.from_dict(background) if background is not None else None,
            [shape_from_dict(record) for record in data.get('shapes', [])],
        )

    def to_json(self, filename: str = None) -> str:
        """Serialize to JSON string or file"""
        json_str = json.dumps(self.to_dict(), indent=2)
        if filename:
            with open(filename, 'w') as f:
                f.write(json_str)
        return json_str

    @classmethod
    def from_json(cls, json_data: str = None, filename: str = None) -> 'Genome':
        """Deserialize from JSON string or file"""
        if filename:
            with open(filename, 'r') as f:
                json_data = f.read()

        data = json.loads(json_data)
        return cls.from_dict(data)

    def __str__(self) -> str:
        fitness = f"{self._fitness:.4f}" if self._fitness is not None else "not evaluated"
        counts = ', '.join(f"{kind}={n}" for kind, n in self.shape_counts().items())
        return f"Genome {self.height}x{self.width}: {self.n_shapes} shapes ({counts}), fitness {fitness}"
