"""
shape_evolution/evaluator.py - Target loading, fitness scoring and rendering
"""
import logging
from concurrent.futures import ProcessPoolExecutor
from typing import Iterable, List, Optional

from PIL import Image

from .canvas import Canvas
from .genome import Genome

logger = logging.getLogger(__name__)


# Set once per worker process by the pool initializer
_worker_target: Optional[Canvas] = None


def _init_worker(target: Canvas) -> None:
    global _worker_target
    _worker_target = target


def _score(genome: Genome) -> float:
    return genome.evaluate(_worker_target)


class Evaluator:
    """Handles evaluation and rendering of genomes.

    Genomes own their shapes exclusively, so scoring distinct genomes is
    independent. With ``workers > 1`` the genomes that need scoring are
    sent to a process pool and the results copied back. The target is
    shipped to each worker once, when the pool starts; scoring against a
    different target object restarts the pool.
    """

    def __init__(self, workers: int = 1):
        self.workers = max(1, int(workers))
        self._pool: Optional[ProcessPoolExecutor] = None
        self._pool_target: Optional[Canvas] = None

    def close(self) -> None:
        """Shut down the worker pool, if one was started"""
        if self._pool is not None:
            self._pool.shutdown()
            self._pool = None
            self._pool_target = None

    def __enter__(self) -> 'Evaluator':
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def load_target(self, filename: str, max_size: Optional[int] = None) -> Canvas:
        """Decode the target image into a canvas"""
        target = Canvas.load(filename, max_size=max_size)
        logger.info("Loaded target %s (%dx%d)", filename, target.height, target.width)
        return target

    def evaluate_population(self, genomes: Iterable[Genome], target: Canvas) -> List[Genome]:
        """Make sure every genome carries a fitness; cached values are kept"""
        genomes = list(genomes)
        pending = [g for g in genomes if not g.is_evaluated]
        logger.debug("Scoring %d of %d genomes", len(pending), len(genomes))

        if self.workers > 1 and len(pending) > 1:
            scores = list(self._pool_for(target).map(_score, pending, chunksize=4))
            for genome, score in zip(pending, scores):
                genome.fitness = score
        else:
            for genome in pending:
                genome.evaluate(target)
        return genomes

    def _pool_for(self, target: Canvas) -> ProcessPoolExecutor:
        if self._pool is not None and self._pool_target is not target:
            self.close()
        if self._pool is None:
            self._pool = ProcessPoolExecutor(max_workers=self.workers, initializer=_init_worker,
                                             initargs=(target,))
            self._pool_target = target
        return self._pool

    def render_image(self, genome: Genome, filename: str = None) -> Image.Image:
        """Render genome as an image"""
        canvas = genome.render()
        if filename:
            return canvas.save(filename)
        return canvas.to_image()
