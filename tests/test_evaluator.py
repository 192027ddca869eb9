"""Tests for population scoring and rendering."""

import random

from PIL import Image

from shape_evolution.canvas import Canvas
from shape_evolution.evaluator import Evaluator
from shape_evolution.genome import Genome


def _random_genomes(n: int, rng: random.Random) -> list:
    genomes = []
    for _ in range(n):
        genome = Genome(12, 14)
        for _ in range(4):
            genome.add_shape(rng.choice(['triangle', 'circle', 'rectangle']), rng)
        genomes.append(genome)
    return genomes


def test_evaluate_population_scores_only_dirty_genomes(monkeypatch) -> None:
    rng = random.Random(3)
    target = Canvas.new(12, 14, (30.0, 40.0, 50.0))
    genomes = _random_genomes(4, rng)
    genomes[0].evaluate(target)
    cached = genomes[0].fitness

    rendered = []
    for genome in genomes:
        render = genome.render
        monkeypatch.setattr(genome, 'render', lambda render=render: rendered.append(1) or render())

    Evaluator().evaluate_population(genomes, target)

    assert len(rendered) == 3
    assert genomes[0].fitness == cached
    assert all(g.is_evaluated for g in genomes)


def test_parallel_scoring_matches_serial() -> None:
    rng = random.Random(17)
    target = Canvas.new(12, 14, (200.0, 10.0, 90.0))
    serial = _random_genomes(6, rng)
    parallel = [g.copy() for g in serial]

    Evaluator().evaluate_population(serial, target)
    with Evaluator(workers=2) as evaluator:
        evaluator.evaluate_population(parallel, target)

    assert [g.fitness for g in parallel] == [g.fitness for g in serial]


def test_parallel_pool_is_reused_for_the_same_target() -> None:
    rng = random.Random(5)
    target = Canvas.new(12, 14, (10.0, 20.0, 30.0))
    with Evaluator(workers=2) as evaluator:
        evaluator.evaluate_population(_random_genomes(3, rng), target)
        pool = evaluator._pool
        evaluator.evaluate_population(_random_genomes(3, rng), target)
        assert evaluator._pool is pool
    assert evaluator._pool is None


def test_parallel_scoring_follows_a_new_target() -> None:
    rng = random.Random(23)
    first = Canvas.new(12, 14, (0.0, 0.0, 0.0))
    second = Canvas.new(12, 14, (250.0, 120.0, 5.0))
    genomes = _random_genomes(4, rng)
    expected = [g.copy() for g in genomes]
    Evaluator().evaluate_population(expected, second)

    with Evaluator(workers=2) as evaluator:
        evaluator.evaluate_population([g.copy() for g in genomes], first)
        evaluator.evaluate_population(genomes, second)
        assert evaluator._pool_target is second

    assert [g.fitness for g in genomes] == [g.fitness for g in expected]


def test_load_target_and_render_image(tmp_path) -> None:
    filename = str(tmp_path / "target.png")
    Image.new('RGB', (14, 12), (5, 6, 7)).save(filename)
    evaluator = Evaluator()

    target = evaluator.load_target(filename)
    assert target.shape == (12, 14)

    genome = _random_genomes(1, random.Random(1))[0]
    out = str(tmp_path / "render.png")
    image = evaluator.render_image(genome, out)

    assert image.size == (14, 12)
    assert Canvas.load(out) == Canvas.from_image(evaluator.render_image(genome))
