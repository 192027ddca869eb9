"""
shape_evolution/population.py - Population management and the generational loop
"""
import itertools
import logging
import math
import random
from typing import Any, Callable, Dict, List, Optional

import numpy as np

from .canvas import Canvas
from .config import EvolutionConfig
from .evaluator import Evaluator
from .genome import Genome
from .shapes import SHAPE_KINDS

logger = logging.getLogger(__name__)

GenerationCallback = Callable[[int, Genome], None]


class Population:
    """Evolves genomes toward a target with mutation, elitism and truncation.

    Members are kept sorted by ascending fitness (lower is better), so the
    first member is always the best one found so far.
    """

    def __init__(self, config: EvolutionConfig, target: Canvas,
                 rng: Optional[random.Random] = None,
                 genomes: Optional[List[Genome]] = None,
                 evaluator: Optional[Evaluator] = None):
        self.config = config.validate()
        self.target = target
        self.rng = rng if rng is not None else random.Random(config.seed)
        self._owns_evaluator = evaluator is None
        self.evaluator = evaluator if evaluator is not None else Evaluator(config.workers)
        self.generation = 0

        weights = config.normalized_weights()
        self._kinds = [kind for kind in SHAPE_KINDS if weights.get(kind, 0.0) > 0]
        self._weights = [weights[kind] for kind in self._kinds]

        if genomes is None:
            genomes = [self._new_genome() for _ in range(config.population_size)]
        try:
            self.genomes = self._rank(list(genomes))
        except BaseException:
            self.close()
            raise

    def close(self) -> None:
        """Shut down the evaluator if this population created it"""
        if self._owns_evaluator:
            self.evaluator.close()

    def __enter__(self) -> 'Population':
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    @property
    def size(self) -> int:
        return self.config.population_size

    @property
    def best(self) -> Genome:
        return self.genomes[0]

    def _new_genome(self) -> Genome:
        genome = Genome(self.target.height, self.target.width, self.config.background_color())
        for _ in range(self.config.initial_shapes):
            genome.add_shape(self.choose_kind(), self.rng)
        return genome

    def _rank(self, genomes: List[Genome]) -> List[Genome]:
        self.evaluator.evaluate_population(genomes, self.target)
        # sorted is stable: ties keep pool order
        return sorted(genomes, key=lambda g: g.fitness)

    def choose_kind(self) -> str:
        """Weighted random choice among the configured shape kinds"""
        return self.rng.choices(self._kinds, weights=self._weights)[0]

    def breed(self, parent: Genome) -> Genome:
        """Clone a parent, mutate some of its shapes, maybe append a new one"""
        child = parent.copy()
        cfg = self.config

        if child.n_shapes:
            upper = math.floor(child.n_shapes * cfg.mutate_ratio) + 1
            for _ in range(self.rng.randint(0, upper)):
                index = self.rng.randrange(child.n_shapes)
                child.mutate_shape(index, child.canvas_size, cfg.mutation_amplitude, self.rng)

        if self.rng.random() < cfg.add_shape_probability:
            child.add_shape(self.choose_kind(), self.rng)
        return child

    def evolve_generation(self) -> Genome:
        """Advance one generation and return the new best genome"""
        cfg = self.config
        pool = [self.breed(parent)
                for parent in self.genomes
                for _ in range(cfg.offspring_per_parent)]
        pool.extend(self.genomes[:cfg.elite_count])

        self.genomes = self._rank(pool)[:cfg.population_size]
        self.generation += 1

        logger.debug("Generation %d: best fitness %.4f with %d shapes",
                     self.generation, self.best.fitness, self.best.n_shapes)
        return self.best

    def run(self, generations: Optional[int] = None,
            callback: Optional[GenerationCallback] = None) -> Genome:
        """Evolve for ``generations`` generations, or forever when None.

        ``callback(generation, best)`` is called after every generation; it is
        where reporting and persistence hook in.
        """
        steps = itertools.count() if generations is None else range(generations)
        for _ in steps:
            best = self.evolve_generation()
            if callback is not None:
                callback(self.generation, best)
        return self.best

    def get_best(self, n: int = 1) -> List[Genome]:
        """Get the best n genomes"""
        return self.genomes[:n]

    def get_stats(self) -> Dict[str, Any]:
        """Get population statistics"""
        if not self.genomes:
            return {}

        fitnesses = [g.fitness for g in self.genomes]
        n_shapes = [g.n_shapes for g in self.genomes]
        kind_totals = {kind: 0 for kind in SHAPE_KINDS}
        for genome in self.genomes:
            for kind, count in genome.shape_counts().items():
                kind_totals[kind] += count

        return {
            'generation': self.generation,
            'population_size': len(self.genomes),
            'fitness': {
                'min': float(np.min(fitnesses)),
                'max': float(np.max(fitnesses)),
                'mean': float(np.mean(fitnesses)),
                'std': float(np.std(fitnesses))
            },
            'shapes': {
                'min': int(np.min(n_shapes)),
                'max': int(np.max(n_shapes)),
                'mean': float(np.mean(n_shapes)),
                'best': self.best.n_shapes
            },
            'kinds': kind_totals
        }
