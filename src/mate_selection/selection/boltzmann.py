"""Boltzmann (temperature-scaled) selection."""

from __future__ import annotations

import math
from dataclasses import dataclass, replace

import numpy as np

from mate_selection.distribution import boltzmann_weights
from mate_selection.errors import InvalidParameterError
from mate_selection.selection.base import WeightedSelection


@dataclass(frozen=True)
class Boltzmann(WeightedSelection):
    """Roulette wheel selection over exponentially scaled scores.

    Probability of selecting individual i is:

        p_i = exp(s_i / T) / Σ exp(s_j / T)

    A high temperature flattens the distribution (exploration), a low one
    concentrates it on the best individuals (exploitation). The temperature
    schedule belongs to the caller: build a new strategy each generation,
    for example with ``with_temperature``.

    Args:
        temperature: Positive, finite temperature T. Default 1.0.

    Example:
        >>> schedule = [Boltzmann(10.0).with_temperature(10.0 * 0.9**g) for g in range(3)]
        >>> [round(s.temperature, 2) for s in schedule]
        [10.0, 9.0, 8.1]
    """

    temperature: float = 1.0

    def __post_init__(self) -> None:
        if not self.temperature > 0 or not math.isfinite(self.temperature):
            raise InvalidParameterError(f"temperature must be positive, got {self.temperature}")

    def with_temperature(self, temperature: float) -> Boltzmann:
        """Copy of this strategy at another temperature."""
        return replace(self, temperature=temperature)

    def sample_weight(self, scores: np.ndarray) -> np.ndarray:
        return boltzmann_weights(scores, self.temperature)
