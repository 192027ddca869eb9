"""Tests for the evolutionary driver."""

import random

import pytest

from shape_evolution.canvas import Canvas
from shape_evolution.config import EvolutionConfig
from shape_evolution.errors import ConfigurationError, DimensionMismatchError
from shape_evolution.evaluator import Evaluator
from shape_evolution.genome import Genome
from shape_evolution.population import Population
from shape_evolution.shapes import Color


@pytest.fixture
def gray_target() -> Canvas:
    return Canvas.new(12, 10, (128.0, 128.0, 128.0))


@pytest.fixture
def gradient_target() -> Canvas:
    target = Canvas.new(16, 16)
    for i in range(16):
        target.data[i, :] = (i * 16.0, 255.0 - i * 16.0, 100.0)
    return target


def _fitnesses(population: Population) -> list:
    return [g.fitness for g in population.genomes]


def test_one_generation_from_empty_genomes(gray_target) -> None:
    config = EvolutionConfig(population_size=4, offspring_per_parent=4, elite_count=2, seed=3)
    population = Population(config, gray_target)
    assert len(population.genomes) == 4
    assert all(g.n_shapes == 0 for g in population.genomes)

    population.evolve_generation()

    assert population.generation == 1
    assert len(population.genomes) == 4
    assert all(g.is_evaluated for g in population.genomes)
    fitnesses = _fitnesses(population)
    assert fitnesses == sorted(fitnesses)


def test_best_fitness_never_regresses_with_elitism(gradient_target) -> None:
    config = EvolutionConfig(population_size=5, offspring_per_parent=2, elite_count=1,
                             initial_shapes=3, add_shape_probability=0.5,
                             mutation_amplitude=3.0, seed=11)
    population = Population(config, gradient_target)
    best = population.best.fitness

    for _ in range(15):
        new_best = population.evolve_generation().fitness
        assert new_best <= best
        best = new_best


def test_evolution_improves_on_the_initial_population(gradient_target) -> None:
    config = EvolutionConfig(population_size=6, offspring_per_parent=3, elite_count=2,
                             add_shape_probability=0.8, seed=5)
    population = Population(config, gradient_target)
    start = population.best.fitness

    population.run(20)

    assert population.best.fitness < start
    assert population.best.n_shapes > 0


def test_elite_survives_when_children_are_worse(gray_target) -> None:
    config = EvolutionConfig(population_size=3, offspring_per_parent=1, elite_count=1,
                             add_shape_probability=1.0, seed=2)
    perfect = Genome(12, 10, Color(128.0, 128.0, 128.0))
    population = Population(config, gray_target,
                            genomes=[Genome(12, 10), perfect, Genome(12, 10)])
    assert population.best is perfect

    population.evolve_generation()

    assert population.best is perfect
    assert perfect.n_shapes == 0
    assert population.best.fitness == 0.0


def test_initial_population_is_ranked(gradient_target) -> None:
    config = EvolutionConfig(population_size=6, initial_shapes=4, seed=8)
    population = Population(config, gradient_target)

    assert all(g.n_shapes == 4 for g in population.genomes)
    fitnesses = _fitnesses(population)
    assert fitnesses == sorted(fitnesses)
    assert population.get_best(2) == population.genomes[:2]


def test_breed_leaves_parent_untouched(gradient_target) -> None:
    config = EvolutionConfig(population_size=2, initial_shapes=5, mutate_ratio=1.0,
                             add_shape_probability=1.0, seed=4)
    population = Population(config, gradient_target)
    parent = population.best
    snapshot = [shape.copy() for shape in parent.shapes]

    child = population.breed(parent)

    assert parent.shapes == snapshot
    assert parent.is_evaluated
    assert child.n_shapes == parent.n_shapes + 1
    assert not child.is_evaluated


def test_breed_without_changes_keeps_cached_fitness(gray_target) -> None:
    config = EvolutionConfig(population_size=1, add_shape_probability=0.0, seed=1)
    population = Population(config, gray_target)

    child = population.breed(population.best)

    assert child is not population.best
    assert child.is_evaluated
    assert child.fitness == population.best.fitness


def test_mutation_count_is_bounded(gradient_target, monkeypatch) -> None:
    config = EvolutionConfig(population_size=1, initial_shapes=10, mutate_ratio=0.2,
                             add_shape_probability=0.0, seed=6)
    population = Population(config, gradient_target)
    counts = []
    original = Genome.mutate_shape

    def counting(self, *args, **kwargs):
        counts[-1] += 1
        return original(self, *args, **kwargs)

    monkeypatch.setattr(Genome, 'mutate_shape', counting)
    for _ in range(200):
        counts.append(0)
        population.breed(population.best)

    assert max(counts) <= 3
    assert min(counts) == 0
    assert set(counts) == {0, 1, 2, 3}


def test_shape_kind_follows_weights(gray_target) -> None:
    config = EvolutionConfig(population_size=1, add_shape_probability=1.0,
                             shape_weights={'triangle': 0.0, 'circle': 1.0, 'rectangle': 0.0},
                             seed=9)
    population = Population(config, gray_target)
    kinds = {population.choose_kind() for _ in range(100)}
    assert kinds == {'circle'}

    child = population.breed(population.best)
    assert child.shape_counts()['circle'] == 1


def test_invalid_configuration_is_rejected_before_the_run(gray_target) -> None:
    config = EvolutionConfig(shape_weights={'triangle': 0.0, 'circle': 0.0, 'rectangle': 0.0})
    with pytest.raises(ConfigurationError):
        Population(config, gray_target)


def test_supplied_genomes_must_match_the_target(gray_target) -> None:
    config = EvolutionConfig(population_size=2)
    with pytest.raises(DimensionMismatchError):
        Population(config, gray_target, genomes=[Genome(5, 5), Genome(5, 5)])


def test_run_reports_each_generation(gray_target) -> None:
    config = EvolutionConfig(population_size=3, offspring_per_parent=2, seed=12)
    population = Population(config, gray_target)
    seen = []

    best = population.run(4, callback=lambda generation, genome: seen.append((generation, genome)))

    assert [generation for generation, _ in seen] == [1, 2, 3, 4]
    assert best is population.best
    assert seen[-1][1] is best


def test_runs_with_the_same_seed_are_identical(gradient_target) -> None:
    def run(seed: int) -> list:
        config = EvolutionConfig(population_size=4, offspring_per_parent=2,
                                 add_shape_probability=0.7, initial_shapes=1)
        population = Population(config, gradient_target, rng=random.Random(seed))
        population.run(5)
        return _fitnesses(population)

    assert run(21) == run(21)


def test_population_closes_the_evaluator_it_created(gray_target) -> None:
    config = EvolutionConfig(population_size=3, offspring_per_parent=2, elite_count=1,
                             initial_shapes=2, workers=2, seed=8)
    with Population(config, gray_target) as population:
        population.evolve_generation()
        assert population.evaluator._pool is not None
    assert population.evaluator._pool is None


def test_population_leaves_a_supplied_evaluator_open(gray_target) -> None:
    config = EvolutionConfig(population_size=3, offspring_per_parent=2, elite_count=1,
                             initial_shapes=2, workers=2, seed=8)
    with Evaluator(workers=2) as evaluator:
        with Population(config, gray_target, evaluator=evaluator) as population:
            population.evolve_generation()
        assert evaluator._pool is not None
    assert evaluator._pool is None


def test_stats(gradient_target) -> None:
    config = EvolutionConfig(population_size=4, initial_shapes=2, seed=13)
    population = Population(config, gradient_target)

    stats = population.get_stats()

    assert stats['generation'] == 0
    assert stats['population_size'] == 4
    assert stats['fitness']['min'] == population.best.fitness
    assert stats['fitness']['min'] <= stats['fitness']['mean'] <= stats['fitness']['max']
    assert stats['shapes']['mean'] == 2.0
    assert sum(stats['kinds'].values()) == 8
