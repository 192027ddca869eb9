"""Shared fixtures for shape_evolution tests."""

import random

import pytest

from shape_evolution.canvas import Canvas
from shape_evolution.shapes import Color


@pytest.fixture
def rng() -> random.Random:
    return random.Random(1234)


@pytest.fixture
def white() -> Color:
    return Color(255.0, 255.0, 255.0, 1.0)


@pytest.fixture
def black_canvas() -> Canvas:
    return Canvas.new(8, 8, Color(0.0, 0.0, 0.0, 1.0))
