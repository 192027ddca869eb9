"""
shape_evolution/archive.py - Evolution archive and persistence
"""
import json
import logging
import os
import time
from datetime import datetime
from typing import Any, Dict, List, Optional

from .genome import Genome
from .population import Population

logger = logging.getLogger(__name__)


def should_save(generation: int) -> bool:
    """Default persistence cadence.

    Every generation below 10, every 10th below 100, every 100th below 1000,
    and so on.
    """
    if generation < 10:
        return True
    interval = 10 ** (len(str(generation)) - 1)
    return generation % interval == 0


class EvolutionArchive:
    """Archive the best render and genome of selected generations, plus a run log"""

    def __init__(self, base_path: str):
        self.base_path = base_path
        self.evolution_log: List[Dict[str, Any]] = []

        self.dirs = {
            'renders': os.path.join(base_path, 'renders'),
            'genomes': os.path.join(base_path, 'genomes'),
            'logs': os.path.join(base_path, 'logs'),
        }

        for dir_path in self.dirs.values():
            os.makedirs(dir_path, exist_ok=True)

    @property
    def log_file(self) -> str:
        return os.path.join(self.dirs['logs'], 'evolution_log.json')

    def save_best(self, genome: Genome, generation: int) -> Dict[str, str]:
        """Write the genome's rendering and JSON record for one generation"""
        stem = f"gen_{generation:06d}"
        render_file = os.path.join(self.dirs['renders'], f"{stem}.png")
        genome_file = os.path.join(self.dirs['genomes'], f"{stem}.json")

        canvas = genome.render()
        canvas.save(render_file)
        genome.to_json(genome_file)

        # Latest best, overwritten each time
        canvas.save(os.path.join(self.base_path, 'best.png'))
        genome.to_json(os.path.join(self.base_path, 'best.json'))

        logger.debug("Archived generation %d to %s", generation, render_file)
        return {'render': os.path.basename(render_file), 'genome': os.path.basename(genome_file)}

    def archive_generation(self, population: Population,
                           stats: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """Archive a generation's best genome and statistics"""
        timestamp = time.time()
        stats = stats if stats is not None else population.get_stats()
        files = self.save_best(population.best, population.generation)

        generation_data = {
            'generation': population.generation,
            'timestamp': timestamp,
            'datetime': datetime.fromtimestamp(timestamp).isoformat(),
            'best_fitness': population.best.fitness,
            'stats': stats,
            'files': files,
        }
        self.evolution_log.append(generation_data)

        with open(self.log_file, 'w') as f:
            json.dump(self.evolution_log, f, indent=2)
        return generation_data

    def load_log(self) -> List[Dict[str, Any]]:
        """Load the run log written by a previous run, if any"""
        if os.path.exists(self.log_file):
            with open(self.log_file, 'r') as f:
                self.evolution_log = json.load(f)
        return self.evolution_log

    def list_archived_genomes(self) -> List[str]:
        return sorted(name for name in os.listdir(self.dirs['genomes']) if name.endswith('.json'))

    def load_genome(self, name: str) -> Genome:
        return Genome.from_json(filename=os.path.join(self.dirs['genomes'], name))

    def export_summary_report(self) -> str:
        """Generate and save a summary report of the evolution run"""
        if not self.evolution_log:
            return "No evolution data to summarize"

        first_gen = self.evolution_log[0]
        last_gen = self.evolution_log[-1]

        report_lines = []
        report_lines.append("=" * 60)
        report_lines.append("EVOLUTION SUMMARY REPORT")
        report_lines.append("=" * 60)
        report_lines.append(f"Archived generations: {len(self.evolution_log)}")
        report_lines.append(f"Last generation: {last_gen['generation']}")
        report_lines.append(f"Start time: {first_gen['datetime']}")
        report_lines.append(f"End time: {last_gen['datetime']}")

        duration = last_gen['timestamp'] - first_gen['timestamp']
        report_lines.append(f"Duration: {duration:.1f}s ({duration / 60:.1f} min)")
        report_lines.append("")

        report_lines.append("FITNESS PROGRESSION (lower is better):")
        report_lines.append(f"  First archived best: {first_gen['best_fitness']:.4f}")
        report_lines.append(f"  Final best: {last_gen['best_fitness']:.4f}")
        improvement = first_gen['best_fitness'] - last_gen['best_fitness']
        report_lines.append(f"  Improvement: {improvement:.4f}")

        shapes = last_gen.get('stats', {}).get('shapes')
        kinds = last_gen.get('stats', {}).get('kinds')
        if shapes:
            report_lines.append("")
            report_lines.append("FINAL POPULATION:")
            report_lines.append(f"  Shapes in best genome: {shapes['best']}")
            report_lines.append(f"  Mean shapes per genome: {shapes['mean']:.1f}")
        if kinds:
            report_lines.append("  Shape kinds: " + ", ".join(f"{k}={v}" for k, v in kinds.items()))

        report_lines.append("")
        report_lines.append(f"Best image: {os.path.join(self.base_path, 'best.png')}")

        report = '\n'.join(report_lines)
        with open(os.path.join(self.base_path, 'evolution_summary.txt'), 'w') as f:
            f.write(report)
        return report
