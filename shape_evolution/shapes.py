"""
shape_evolution/shapes.py - Colors, points and the three drawable primitives

Shapes form a closed set: Triangle, Circle and Rectangle. The operations that
behave differently per kind (random construction, mutation, rasterization,
serialization) are module-level functions that switch over that set, so a new
kind has to be added to all of them at once.

Coordinates follow one convention everywhere: ``Point.x`` runs along the
canvas height (rows) and ``Point.y`` along the width (columns).
"""
import math
import random
from dataclasses import dataclass
from typing import Any, Dict, Union

from .canvas import Canvas
from .errors import UnknownShapeKindError

SHAPE_KINDS = ('triangle', 'circle', 'rectangle')

# Mutation noise, as 1-sigma of a normal distribution
POSITION_SIGMA_RATIO = 0.03     # fraction of the canvas' short side
COLOR_SIGMA = 20.0
ALPHA_SIGMA = 0.03
MIN_RADIUS = 1.0
MAX_RADIUS_RATIO = 0.1


def _mutate_value(value: float, sigma: float, rng: random.Random,
                  low: float = -math.inf, high: float = math.inf) -> float:
    """Add N(0, sigma) noise and clamp; a NaN result keeps the old value"""
    mutated = value + rng.gauss(0.0, 1.0) * sigma
    if math.isnan(mutated):
        return value
    return min(max(mutated, low), high)


@dataclass
class Color:
    """RGBA color: r, g, b in [0, 255], a in [0, 1]"""
    r: float
    g: float
    b: float
    a: float = 1.0

    @classmethod
    def create_random(cls, rng: random.Random) -> 'Color':
        return cls(
            r=rng.uniform(0.0, 255.0),
            g=rng.uniform(0.0, 255.0),
            b=rng.uniform(0.0, 255.0),
            a=rng.uniform(0.0, 1.0),
        )

    def mutate(self, amplitude: float, rng: random.Random) -> None:
        """Perturb every channel in place, keeping it in range"""
        self.r = _mutate_value(self.r, COLOR_SIGMA * amplitude, rng, 0.0, 255.0)
        self.g = _mutate_value(self.g, COLOR_SIGMA * amplitude, rng, 0.0, 255.0)
        self.b = _mutate_value(self.b, COLOR_SIGMA * amplitude, rng, 0.0, 255.0)
        self.a = _mutate_value(self.a, ALPHA_SIGMA * amplitude, rng, 0.0, 1.0)

    def copy(self) -> 'Color':
        return Color(self.r, self.g, self.b, self.a)

    def to_dict(self) -> Dict[str, float]:
        return {'r': self.r, 'g': self.g, 'b': self.b, 'a': self.a}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Color':
        return cls(float(data['r']), float(data['g']), float(data['b']), float(data.get('a', 1.0)))


@dataclass
class Point:
    """2D coordinate; may lie outside the canvas"""
    x: float
    y: float

    @classmethod
    def create_random(cls, height: float, width: float, rng: random.Random) -> 'Point':
        return cls(rng.uniform(0.0, height), rng.uniform(0.0, width))

    def mutate(self, sigma: float, rng: random.Random) -> None:
        self.x = _mutate_value(self.x, sigma, rng)
        self.y = _mutate_value(self.y, sigma, rng)

    def copy(self) -> 'Point':
        return Point(self.x, self.y)

    def to_dict(self) -> Dict[str, float]:
        return {'x': self.x, 'y': self.y}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Point':
        return cls(float(data['x']), float(data['y']))


class Line:
    """Straight line y = k * x + b through two points.

    Two points with the same x have no such form; ``at`` then returns NaN
    and the caller decides what to draw.
    """

    def __init__(self, p1: Point, p2: Point):
        dx = p2.x - p1.x
        if dx == 0:
            self.k = math.nan
            self.b = math.nan
        else:
            self.k = (p2.y - p1.y) / dx
            self.b = p1.y - self.k * p1.x

    def at(self, x: float) -> float:
        return self.k * x + self.b


@dataclass
class Triangle:
    p1: Point
    p2: Point
    p3: Point
    color: Color

    kind = 'triangle'

    def copy(self) -> 'Triangle':
        return Triangle(self.p1.copy(), self.p2.copy(), self.p3.copy(), self.color.copy())


@dataclass
class Circle:
    center: Point
    radius: float
    color: Color

    kind = 'circle'

    def copy(self) -> 'Circle':
        return Circle(self.center.copy(), self.radius, self.color.copy())


@dataclass
class Rectangle:
    """Axis-aligned rectangle spanned by two opposite corners"""
    p1: Point
    p2: Point
    color: Color

    kind = 'rectangle'

    def copy(self) -> 'Rectangle':
        return Rectangle(self.p1.copy(), self.p2.copy(), self.color.copy())


Shape = Union[Triangle, Circle, Rectangle]


def random_shape(kind: str, height: int, width: int, rng: random.Random) -> Shape:
    """Create a shape of the given kind with random geometry and color"""
    name = kind.lower()
    if name == 'triangle':
        return Triangle(
            p1=Point.create_random(height, width, rng),
            p2=Point.create_random(height, width, rng),
            p3=Point.create_random(height, width, rng),
            color=Color.create_random(rng),
        )
    elif name == 'circle':
        center = Point.create_random(height, width, rng)
        radius = rng.uniform(0.0, MAX_RADIUS_RATIO * min(height, width))
        return Circle(center=center, radius=max(radius, MIN_RADIUS), color=Color.create_random(rng))
    elif name == 'rectangle':
        return Rectangle(
            p1=Point.create_random(height, width, rng),
            p2=Point.create_random(height, width, rng),
            color=Color.create_random(rng),
        )
    else:
        raise UnknownShapeKindError(f"Unknown shape kind: {kind!r} (expected one of {SHAPE_KINDS})")


def mutate_shape(shape: Shape, canvas_size: int, amplitude: float, rng: random.Random) -> None:
    """Perturb geometry and color in place.

    ``canvas_size`` is the short side of the canvas. Positions and radius are
    left unclamped; rasterization clamps them.
    """
    sigma = canvas_size * POSITION_SIGMA_RATIO * amplitude
    if isinstance(shape, Triangle):
        shape.p1.mutate(sigma, rng)
        shape.p2.mutate(sigma, rng)
        shape.p3.mutate(sigma, rng)
    elif isinstance(shape, Circle):
        shape.center.mutate(sigma, rng)
        shape.radius = _mutate_value(shape.radius, sigma, rng)
    elif isinstance(shape, Rectangle):
        shape.p1.mutate(sigma, rng)
        shape.p2.mutate(sigma, rng)
    else:
        raise UnknownShapeKindError(f"Cannot mutate {type(shape).__name__}")
    shape.color.mutate(amplitude, rng)


def _to_index(value: float, upper: int) -> int:
    """Clamp to [0, upper] and round half up; NaN maps to 0"""
    if math.isnan(value):
        return 0
    value = min(max(value, 0.0), float(upper))
    return int(math.floor(value + 0.5))


def _draw_edge_span(canvas: Canvas, row: int, left: float, right: float, color: Color) -> None:
    max_col = canvas.width - 1
    left_ok, right_ok = not math.isnan(left), not math.isnan(right)
    if left_ok and right_ok:
        canvas.draw_horizontal_span(row, _to_index(left, max_col), _to_index(right, max_col), color)
    elif left_ok or right_ok:
        col = _to_index(left if left_ok else right, max_col)
        canvas.draw_horizontal_span(row, col, col, color)


def _rasterize_triangle(shape: Triangle, canvas: Canvas) -> None:
    # Order the vertices by row so that A.x <= B.x <= C.x:
    #
    #       A                  A           <- i_start  \
    #      / \                / \                       } part I
    #     /   \      or      /   \                     /
    #   B `--_ \            /_-- ^` B      <- i_mid    \
    #          `C         C                <- i_end    /  part II
    p_a, p_b, p_c = sorted((shape.p1, shape.p2, shape.p3), key=lambda p: p.x)
    l_ab, l_ac, l_bc = Line(p_a, p_b), Line(p_a, p_c), Line(p_b, p_c)

    max_row = canvas.height - 1
    i_start = _to_index(p_a.x, max_row)
    i_mid = _to_index(p_b.x, max_row)
    i_end = _to_index(p_c.x, max_row)

    for i in range(i_start, i_mid):
        _draw_edge_span(canvas, i, l_ab.at(i), l_ac.at(i), shape.color)
    for i in range(i_mid, i_end + 1):
        _draw_edge_span(canvas, i, l_bc.at(i), l_ac.at(i), shape.color)


def _rasterize_circle(shape: Circle, canvas: Canvas) -> None:
    cx, cy, r = shape.center.x, shape.center.y, shape.radius
    if not r >= 0 or not (math.isfinite(cx) and math.isfinite(cy)):
        return
    max_row, max_col = canvas.height - 1, canvas.width - 1
    for i in range(_to_index(cx - r, max_row), _to_index(cx + r, max_row) + 1):
        offset = i - cx
        if abs(offset) > r:
            continue
        half_chord = math.sqrt(r * r - offset * offset)
        if math.isnan(half_chord):
            # inf - inf once the radius squared overflows
            continue
        canvas.draw_horizontal_span(
            i, _to_index(cy - half_chord, max_col), _to_index(cy + half_chord, max_col), shape.color)


def _rasterize_rectangle(shape: Rectangle, canvas: Canvas) -> None:
    max_row, max_col = canvas.height - 1, canvas.width - 1
    i_start = _to_index(min(shape.p1.x, shape.p2.x), max_row)
    i_end = _to_index(max(shape.p1.x, shape.p2.x), max_row)
    j_left = _to_index(min(shape.p1.y, shape.p2.y), max_col)
    j_right = _to_index(max(shape.p1.y, shape.p2.y), max_col)
    for i in range(i_start, i_end + 1):
        canvas.draw_horizontal_span(i, j_left, j_right, shape.color)


def rasterize(shape: Shape, canvas: Canvas) -> None:
    """Scan-convert a shape into horizontal span fills on the canvas"""
    if isinstance(shape, Triangle):
        _rasterize_triangle(shape, canvas)
    elif isinstance(shape, Circle):
        _rasterize_circle(shape, canvas)
    elif isinstance(shape, Rectangle):
        _rasterize_rectangle(shape, canvas)
    else:
        raise UnknownShapeKindError(f"Cannot rasterize {type(shape).__name__}")


def shape_to_dict(shape: Shape) -> Dict[str, Any]:
    """Serialize to a tagged record: {'type': <variant>, 'data': {...}}"""
    if isinstance(shape, Triangle):
        data = {'p1': shape.p1.to_dict(), 'p2': shape.p2.to_dict(), 'p3': shape.p3.to_dict()}
    elif isinstance(shape, Circle):
        data = {'center': shape.center.to_dict(), 'radius': shape.radius}
    elif isinstance(shape, Rectangle):
        data = {'p1': shape.p1.to_dict(), 'p2': shape.p2.to_dict()}
    else:
        raise UnknownShapeKindError(f"Cannot serialize {type(shape).__name__}")
    data['color'] = shape.color.to_dict()
    return {'type': type(shape).__name__, 'data': data}


def _radius_from(value) -> float:
    # Older records store the radius as a one-element list
    if isinstance(value, (list, tuple)):
        value = value[0]
    return float(value)


def shape_from_dict(record: Dict[str, Any]) -> Shape:
    """Create a shape from its tagged record"""
    shape_type = record.get('type')
    data = record.get('data', {})

    if shape_type == 'Triangle':
        return Triangle(Point.from_dict(data['p1']), Point.from_dict(data['p2']),
                        Point.from_dict(data['p3']), Color.from_dict(data['color']))
    elif shape_type == 'Circle':
        return Circle(Point.from_dict(data['center']), _radius_from(data['radius']),
                      Color.from_dict(data['color']))
    elif shape_type == 'Rectangle':
        return Rectangle(Point.from_dict(data['p1']), Point.from_dict(data['p2']),
                         Color.from_dict(data['color']))
    else:
        raise UnknownShapeKindError(f"Unknown shape type: {shape_type!r}")


def validate_kind(kind: str) -> str:
    """Normalize a kind name, rejecting unknown ones"""
    name = kind.lower()
    if name not in SHAPE_KINDS:
        raise UnknownShapeKindError(f"Unknown shape kind: {kind!r} (expected one of {SHAPE_KINDS})")
    return name
