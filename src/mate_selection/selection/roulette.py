"""Roulette wheel (fitness-proportionate) selection."""

from __future__ import annotations

import math
from dataclasses import dataclass

import numpy as np

from mate_selection.distribution import DEFAULT_EPSILON, NegativeScorePolicy, proportional_weights
from mate_selection.errors import InvalidParameterError
from mate_selection.selection.base import WeightedSelection


def check_proportional_params(strategy) -> None:
    try:
        policy = NegativeScorePolicy(strategy.negative_policy)
    except ValueError as exc:
        raise InvalidParameterError(f"unknown negative score policy '{strategy.negative_policy}'") from exc
    object.__setattr__(strategy, "negative_policy", policy)
    if not strategy.epsilon >= 0 or not math.isfinite(strategy.epsilon):
        raise InvalidParameterError(f"epsilon must be a non-negative finite number, got {strategy.epsilon}")


@dataclass(frozen=True)
class RouletteWheel(WeightedSelection):
    """Select individuals with probability proportional to their score.

    For non-negative scores s_i the selection probability is:
        p_i = s_i / Σ(s_j)

    Negative scores are handled by ``negative_policy`` (see
    NegativeScorePolicy): by default they are clamped to zero weight and
    those individuals never mate. If no individual has positive weight the
    selection is uniform.

    This method is sensitive to the magnitude of the fitness function: a
    single outlier can dominate the whole population.

    Args:
        negative_policy: CLAMP, SHIFT or REJECT. Default CLAMP.
        epsilon: Weight floor added under SHIFT. Default 1e-10.

    Example:
        >>> strategy = RouletteWheel()
        >>> strategy.pdf([3.0, 1.0, 0.0])
        array([0.75, 0.25, 0.  ])
    """

    negative_policy: NegativeScorePolicy = NegativeScorePolicy.CLAMP
    epsilon: float = DEFAULT_EPSILON

    def __post_init__(self) -> None:
        check_proportional_params(self)

    def sample_weight(self, scores: np.ndarray) -> np.ndarray:
        return proportional_weights(scores, self.negative_policy, self.epsilon)
