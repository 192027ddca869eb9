"""
shape_evolution/config.py - Validated evolution run configuration
"""
import json
from dataclasses import asdict, dataclass, field, fields
from typing import Any, Dict, Optional, Tuple

from .errors import ConfigurationError
from .shapes import SHAPE_KINDS, Color, validate_kind


def _default_weights() -> Dict[str, float]:
    return {kind: 1.0 for kind in SHAPE_KINDS}


@dataclass
class EvolutionConfig:
    """Hyperparameters of an evolution run.

    Call ``validate`` (``Population`` does) before a run starts; invalid
    values raise ``ConfigurationError``.
    """

    population_size: int = 20
    offspring_per_parent: int = 4
    elite_count: int = 2
    mutate_ratio: float = 0.1
    add_shape_probability: float = 0.3
    mutation_amplitude: float = 1.0
    shape_weights: Dict[str, float] = field(default_factory=_default_weights)
    initial_shapes: int = 0
    background: Tuple[float, float, float] = (0.0, 0.0, 0.0)
    seed: Optional[int] = None
    workers: int = 1

    def validate(self) -> 'EvolutionConfig':
        if self.population_size < 1:
            raise ConfigurationError(f"population_size must be >= 1, got {self.population_size}")
        if self.offspring_per_parent < 1:
            raise ConfigurationError(f"offspring_per_parent must be >= 1, got {self.offspring_per_parent}")
        if self.elite_count < 0:
            raise ConfigurationError(f"elite_count must be >= 0, got {self.elite_count}")
        if self.mutate_ratio < 0:
            raise ConfigurationError(f"mutate_ratio must be >= 0, got {self.mutate_ratio}")
        if not 0.0 <= self.add_shape_probability <= 1.0:
            raise ConfigurationError(
                f"add_shape_probability must be within [0, 1], got {self.add_shape_probability}")
        if self.mutation_amplitude < 0:
            raise ConfigurationError(f"mutation_amplitude must be >= 0, got {self.mutation_amplitude}")
        if self.initial_shapes < 0:
            raise ConfigurationError(f"initial_shapes must be >= 0, got {self.initial_shapes}")
        if self.workers < 1:
            raise ConfigurationError(f"workers must be >= 1, got {self.workers}")
        if len(self.background) != 3 or not all(0 <= c <= 255 for c in self.background):
            raise ConfigurationError(f"background must be three values in [0, 255], got {self.background}")

        weights = self.normalized_weights()
        if any(w < 0 for w in weights.values()):
            raise ConfigurationError(f"Shape weights must not be negative: {weights}")
        if not any(w > 0 for w in weights.values()):
            raise ConfigurationError(f"At least one shape weight must be positive: {weights}")
        return self

    def normalized_weights(self) -> Dict[str, float]:
        """Shape weights keyed by lower-case kind; unknown kinds are rejected"""
        return {validate_kind(kind): float(w) for kind, w in self.shape_weights.items()}

    def background_color(self) -> Color:
        r, g, b = self.background
        return Color(float(r), float(g), float(b), 1.0)

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data['background'] = list(self.background)
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'EvolutionConfig':
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ConfigurationError(f"Unknown configuration keys: {', '.join(unknown)}")
        values = dict(data)
        if 'background' in values:
            values['background'] = tuple(values['background'])
        return cls(**values)

    @classmethod
    def from_json(cls, filename: str) -> 'EvolutionConfig':
        with open(filename, 'r') as f:
            try:
                data = json.load(f)
            except json.JSONDecodeError as exc:
                raise ConfigurationError(f"Invalid JSON in {filename}: {exc}") from exc
        if not isinstance(data, dict):
            raise ConfigurationError(f"{filename} must contain a JSON object")
        return cls.from_dict(data)

    def replace(self, **overrides: Any) -> 'EvolutionConfig':
        """Copy with the given fields changed; ``None`` values are ignored"""
        data = self.to_dict()
        data.update({k: v for k, v in overrides.items() if v is not None})
        return EvolutionConfig.from_dict(data)
