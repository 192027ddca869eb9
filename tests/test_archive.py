"""Tests for the save schedule and run archive."""

import json
import os

import pytest

from shape_evolution.archive import EvolutionArchive, should_save
from shape_evolution.canvas import Canvas
from shape_evolution.config import EvolutionConfig
from shape_evolution.population import Population


@pytest.mark.parametrize("generation,expected", [
    (0, True), (1, True), (9, True), (10, True), (11, False), (20, True), (99, False),
    (100, True), (110, False), (150, False), (300, True), (1000, True), (2500, False),
    (7000, True),
])
def test_save_schedule_thins_out_over_time(generation, expected) -> None:
    assert should_save(generation) is expected


@pytest.fixture
def population() -> Population:
    target = Canvas.new(10, 10, (90.0, 180.0, 30.0))
    config = EvolutionConfig(population_size=3, offspring_per_parent=2, initial_shapes=2, seed=4)
    return Population(config, target)


def test_archive_generation_writes_render_genome_and_log(tmp_path, population) -> None:
    archive = EvolutionArchive(str(tmp_path))
    population.run(2)

    entry = archive.archive_generation(population)

    assert entry['generation'] == 2
    assert entry['best_fitness'] == population.best.fitness
    assert os.path.exists(tmp_path / 'renders' / 'gen_000002.png')
    assert os.path.exists(tmp_path / 'genomes' / 'gen_000002.json')
    assert os.path.exists(tmp_path / 'best.png')
    assert Canvas.load(str(tmp_path / 'best.png')).to_rgb_bytes() == population.best.render().to_rgb_bytes()

    with open(archive.log_file) as f:
        log = json.load(f)
    assert [item['generation'] for item in log] == [2]


def test_archived_genome_round_trips(tmp_path, population) -> None:
    archive = EvolutionArchive(str(tmp_path))
    archive.archive_generation(population)

    assert archive.list_archived_genomes() == ['gen_000000.json']
    restored = archive.load_genome('gen_000000.json')
    assert restored.shapes == population.best.shapes


def test_log_reloads_and_summarizes(tmp_path, population) -> None:
    archive = EvolutionArchive(str(tmp_path))
    archive.archive_generation(population)
    population.run(3)
    archive.archive_generation(population)

    reloaded = EvolutionArchive(str(tmp_path))
    assert len(reloaded.load_log()) == 2

    report = reloaded.export_summary_report()
    assert "EVOLUTION SUMMARY REPORT" in report
    assert "Last generation: 3" in report
    assert os.path.exists(tmp_path / 'evolution_summary.txt')


def test_empty_archive_summary(tmp_path) -> None:
    archive = EvolutionArchive(str(tmp_path))
    assert archive.load_log() == []
    assert archive.export_summary_report() == "No evolution data to summarize"
