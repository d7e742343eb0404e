"""Uniform random selection."""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np

from mate_selection.distribution import uniform_weights
from mate_selection.selection.base import WeightedRound, WeightedSelection, check_amount


class UniformRound(WeightedRound):
    """Uniform round whose batches spread evenly over the population.

    A batch of m draws contains every individual floor(m / n) times, with the
    remainder drawn without replacement, in random order. Every individual
    therefore mates as evenly as the batch size allows. Each chunk of
    ``iter_select`` is balanced on its own.
    """

    batch = True

    def select(self, amount: int, rng: np.random.Generator) -> np.ndarray:
        amount = check_amount(amount)
        n = len(self)
        full, rest = divmod(amount, n)
        parts = [np.tile(np.arange(n, dtype=np.intp), full)]
        if rest:
            parts.append(rng.choice(n, size=rest, replace=False).astype(np.intp))
        return rng.permutation(np.concatenate(parts))


@dataclass(frozen=True)
class Uniform(WeightedSelection):
    """Select parents with uniform probability, ignoring the scores.

    Example:
        >>> Uniform().pdf([3.0, -1.0, 7.0, 0.0])
        array([0.25, 0.25, 0.25, 0.25])
    """

    round_type = UniformRound

    def sample_weight(self, scores: np.ndarray) -> np.ndarray:
        return uniform_weights(scores.size)
