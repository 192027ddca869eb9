"""
shape_evolution/canvas.py - RGB pixel buffer with alpha compositing and diffing
"""
import math
from typing import Optional, Sequence, Tuple, Union

import numpy as np
from PIL import Image

from .errors import DimensionMismatchError

RGB = Tuple[float, float, float]


def _rgb_of(color) -> RGB:
    """Accept a Color-like object or a plain (r, g, b[, a]) sequence"""
    if color is None:
        return (0.0, 0.0, 0.0)
    if hasattr(color, 'r'):
        return (float(color.r), float(color.g), float(color.b))
    return (float(color[0]), float(color[1]), float(color[2]))


class Canvas:
    """A height x width grid of RGB float pixels, stored row-major.

    The background is always opaque. Alpha only exists transiently while a
    translucent color is composited onto a span of pixels.
    """

    def __init__(self, height: int, width: int, background=None):
        if height <= 0 or width <= 0:
            raise ValueError(f"Canvas size must be positive, got {height}x{width}")
        self.height = int(height)
        self.width = int(width)
        self.data = np.empty((self.height, self.width, 3), dtype=np.float64)
        self.data[:, :] = _rgb_of(background)

    @classmethod
    def new(cls, height: int, width: int, background=None) -> 'Canvas':
        """Allocate a canvas filled with the (opaque) background color"""
        return cls(height, width, background)

    @classmethod
    def from_array(cls, array: np.ndarray) -> 'Canvas':
        """Wrap an (H, W, 3) array, copying it as float pixels"""
        array = np.asarray(array)
        if array.ndim != 3 or array.shape[2] != 3:
            raise ValueError(f"Expected an (H, W, 3) array, got shape {array.shape}")
        canvas = cls(array.shape[0], array.shape[1])
        canvas.data[...] = array.astype(np.float64)
        return canvas

    @classmethod
    def from_rgb_bytes(cls, height: int, width: int, data: Union[bytes, Sequence[int]]) -> 'Canvas':
        """Build a canvas from a flat sequence of RGB byte triples"""
        flat = np.frombuffer(bytes(data), dtype=np.uint8)
        if flat.size != height * width * 3:
            raise ValueError(
                f"Expected {height * width * 3} bytes for a {height}x{width} RGB image, got {flat.size}")
        return cls.from_array(flat.reshape(height, width, 3))

    @classmethod
    def from_image(cls, image: Image.Image) -> 'Canvas':
        """Decode a Pillow image (any mode) into a canvas"""
        rgb = np.asarray(image.convert('RGB'), dtype=np.uint8)
        return cls.from_array(rgb)

    @classmethod
    def load(cls, filename: str, max_size: Optional[int] = None) -> 'Canvas':
        """Load an image file, optionally shrinking it so neither side exceeds max_size"""
        with Image.open(filename) as image:
            image = image.convert('RGB')
            if max_size is not None and max(image.size) > max_size:
                image.thumbnail((max_size, max_size))
            return cls.from_image(image)

    @property
    def shape(self) -> Tuple[int, int]:
        return self.height, self.width

    @property
    def pixels(self) -> np.ndarray:
        """Flattened (H*W, 3) view of the pixel buffer"""
        return self.data.reshape(-1, 3)

    def copy(self) -> 'Canvas':
        return Canvas.from_array(self.data)

    def get_pixel(self, row: int, col: int) -> RGB:
        r, g, b = self.data[row, col]
        return (float(r), float(g), float(b))

    def draw_horizontal_span(self, row: int, col_a: int, col_b: int, color) -> None:
        """Composite color over the inclusive column range of a row"""
        col_left, col_right = min(col_a, col_b), max(col_a, col_b)
        if not 0 <= row < self.height:
            raise IndexError(f"Row {row} outside canvas of height {self.height}")
        if col_left < 0 or col_right >= self.width:
            raise IndexError(
                f"Columns [{col_left}, {col_right}] outside canvas of width {self.width}")

        alpha = float(color.a)
        span = self.data[row, col_left:col_right + 1]
        span *= 1.0 - alpha
        span += np.array(_rgb_of(color)) * alpha

    @staticmethod
    def distance(a: 'Canvas', b: 'Canvas') -> float:
        """Root-mean-square per-channel difference of two equally sized canvases"""
        if a.shape != b.shape:
            raise DimensionMismatchError(
                f"Cannot compare canvases of size {a.height}x{a.width} and {b.height}x{b.width}")
        diff = a.data - b.data
        return math.sqrt(float(np.sum(diff * diff)) / (a.height * a.width * 3))

    def array_equal(self, other: 'Canvas') -> bool:
        return self.shape == other.shape and bool(np.array_equal(self.data, other.data))

    def to_uint8(self) -> np.ndarray:
        """Narrow channels to 8 bits by truncation"""
        return np.clip(self.data, 0, 255).astype(np.uint8)

    def to_rgb_bytes(self) -> bytes:
        return self.to_uint8().tobytes()

    def to_image(self) -> Image.Image:
        return Image.fromarray(self.to_uint8())

    def save(self, filename: str) -> Image.Image:
        """Write the canvas as an image; the format follows the file extension"""
        img = self.to_image()
        img.save(filename)
        return img

    def dump_ascii(self) -> str:
        """Plain-text dump of raw channel values, one pixel per line"""
        lines = [f"h={self.height} w={self.width}"]
        for r, g, b in self.pixels.tolist():
            lines.append(f"{r} {g} {b}")
        return '\n'.join(lines) + '\n'

    def __eq__(self, other) -> bool:
        if not isinstance(other, Canvas):
            return NotImplemented
        return self.array_equal(other)

    __hash__ = None

    def __repr__(self) -> str:
        return f"Canvas(height={self.height}, width={self.width})"
