"""
shape_evolution/cli.py - Command-line interface
"""
import json
import os
import random
import time
from typing import Dict, Optional, Tuple

import click

from .archive import EvolutionArchive, should_save
from .config import EvolutionConfig
from .errors import ShapeEvolutionError
from .evaluator import Evaluator
from .genome import Genome
from .log import setup_default_logging
from .population import Population


def _parse_weights(ctx, param, value: Optional[str]) -> Optional[Dict[str, float]]:
    """Parse 'triangle=2,circle=1' into a weight mapping"""
    if value is None:
        return None
    weights = {}
    for item in value.split(','):
        kind, sep, weight = item.partition('=')
        if not sep:
            raise click.BadParameter(f"expected KIND=WEIGHT, got {item!r}")
        try:
            weights[kind.strip()] = float(weight)
        except ValueError:
            raise click.BadParameter(f"weight for {kind.strip()!r} is not a number: {weight!r}")
    return weights


def _parse_rgb(ctx, param, value: Optional[str]) -> Optional[Tuple[float, float, float]]:
    if value is None:
        return None
    parts = value.split(',')
    if len(parts) != 3:
        raise click.BadParameter(f"expected R,G,B, got {value!r}")
    try:
        return tuple(float(p) for p in parts)
    except ValueError:
        raise click.BadParameter(f"expected three numbers, got {value!r}")


@click.group()
def cli():
    """Shape Evolution - approximate an image with evolved translucent shapes"""
    pass


@cli.command()
@click.argument('target', type=click.Path(exists=True, dir_okay=False))
@click.option('--generations', '-g', default=1000, help='Generations to run (0 = until interrupted)')
@click.option('--population', '-p', type=int, help='Population size')
@click.option('--offspring', type=int, help='Children produced per population member')
@click.option('--elite', type=int, help='Best members carried over unchanged')
@click.option('--mutate-ratio', type=float, help='Upper bound of mutated shapes, as a fraction of the shape count')
@click.option('--add-probability', type=float, help='Probability that a child gains a new shape')
@click.option('--amplitude', type=float, help='Mutation amplitude')
@click.option('--weights', callback=_parse_weights, help='Shape kind weights, e.g. triangle=2,circle=1,rectangle=1')
@click.option('--initial-shapes', type=int, help='Random shapes in each initial genome')
@click.option('--background', callback=_parse_rgb, help='Background color as R,G,B')
@click.option('--seed', type=int, help='Random seed')
@click.option('--workers', type=int, help='Processes used for fitness evaluation')
@click.option('--max-size', type=int, help='Shrink the target so neither side exceeds this')
@click.option('--config', 'config_file', type=click.Path(exists=True, dir_okay=False),
              help='JSON configuration file; command-line options take precedence')
@click.option('--out', '-o', default='out/', help='Output directory')
@click.option('--verbose', '-v', is_flag=True, help='Verbose output')
def evolve(target, generations, population, offspring, elite, mutate_ratio, add_probability,
           amplitude, weights, initial_shapes, background, seed, workers, max_size,
           config_file, out, verbose):
    """Evolve shapes that approximate TARGET"""
    setup_default_logging('DEBUG' if verbose else 'WARNING')

    try:
        base = EvolutionConfig.from_json(config_file) if config_file else EvolutionConfig()
        config = base.replace(
            population_size=population,
            offspring_per_parent=offspring,
            elite_count=elite,
            mutate_ratio=mutate_ratio,
            add_shape_probability=add_probability,
            mutation_amplitude=amplitude,
            shape_weights=weights,
            initial_shapes=initial_shapes,
            background=background,
            seed=seed,
            workers=workers,
        ).validate()
    except ShapeEvolutionError as e:
        raise click.ClickException(f"Invalid configuration: {e}")

    archive = EvolutionArchive(out)
    _write_config(config, os.path.join(out, 'config.json'))

    with Evaluator(config.workers) as evaluator:
        target_canvas = evaluator.load_target(target, max_size=max_size)
        click.echo(f"Target: {target} ({target_canvas.height}x{target_canvas.width})")
        click.echo(f"Population {config.population_size}, {config.offspring_per_parent} offspring each, "
                   f"elite {config.elite_count}, output {out}")

        pop = Population(config, target_canvas, rng=random.Random(config.seed), evaluator=evaluator)
        start_time = time.time()

        def report(generation: int, best: Genome) -> None:
            if not should_save(generation):
                return
            archive.archive_generation(pop)
            elapsed = time.time() - start_time
            click.echo(f"Gen {generation:6d}: Best={best.fitness:.4f} "
                       f"Shapes={best.n_shapes} Time={elapsed:.1f}s")

        try:
            pop.run(generations or None, callback=report)
        except KeyboardInterrupt:
            click.echo("\nInterrupted, saving best genome")
        except ShapeEvolutionError as e:
            raise click.ClickException(str(e))

        if not archive.evolution_log or archive.evolution_log[-1]['generation'] != pop.generation:
            archive.archive_generation(pop)

    total_time = time.time() - start_time
    click.echo(f"\nEvolution completed in {total_time:.1f}s ({total_time / 60:.1f} min)")
    summary = archive.export_summary_report()
    if verbose:
        click.echo(summary)
    click.echo(f"Best image saved to {os.path.join(out, 'best.png')}")


def _write_config(config: EvolutionConfig, filename: str) -> None:
    with open(filename, 'w') as f:
        json.dump(config.to_dict(), f, indent=2)


@cli.command()
@click.argument('genome', type=click.Path(exists=True, dir_okay=False))
@click.option('--out', '-o', help='Output image filename (default: <genome>.png)')
@click.option('--ascii', 'ascii_file', help='Also write a plain-text dump of the pixel values')
@click.option('--target', type=click.Path(exists=True, dir_okay=False),
              help='Report the distance of the rendering to this image')
@click.option('--verbose', '-v', is_flag=True, help='Verbose output')
def render(genome, out, ascii_file, target, verbose):
    """Render a genome from JSON file"""
    setup_default_logging('DEBUG' if verbose else 'WARNING')

    try:
        g = Genome.from_json(filename=genome)
    except (ValueError, KeyError) as e:
        raise click.ClickException(f"Error loading genome {genome}: {e}")
    click.echo(f"Loaded {g}")

    if not out:
        out = os.path.splitext(genome)[0] + '.png'

    canvas = g.render()
    canvas.save(out)
    click.echo(f"Image saved: {out}")

    if ascii_file:
        with open(ascii_file, 'w') as f:
            f.write(canvas.dump_ascii())
        click.echo(f"Pixel dump saved: {ascii_file}")

    if target:
        try:
            fitness = g.evaluate(Evaluator().load_target(target))
        except ShapeEvolutionError as e:
            raise click.ClickException(str(e))
        click.echo(f"Distance to {target}: {fitness:.4f}")


@cli.command()
@click.option('--archive', '-a', 'archive_dir', default='out', help='Archive directory path')
def analyze(archive_dir):
    """Analyze evolution results from archive"""
    arch = EvolutionArchive(archive_dir)
    if not arch.load_log():
        raise click.ClickException(f"No evolution log found at {arch.log_file}")

    click.echo(arch.export_summary_report())

    genome_files = arch.list_archived_genomes()
    if genome_files:
        click.echo("\nRecent genome files:")
        for name in genome_files[-10:]:
            click.echo(f"  {name}")


if __name__ == '__main__':
    cli()
