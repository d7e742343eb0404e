"""Rank-based selection."""

from __future__ import annotations

import math
from dataclasses import dataclass

import numpy as np

from mate_selection.distribution import RankScheme, rank_weights
from mate_selection.errors import InvalidParameterError
from mate_selection.selection.base import WeightedSelection


@dataclass(frozen=True)
class RankBased(WeightedSelection):
    """Select individuals by their rank in the population.

    Only the ordering of the scores matters, so outliers cannot dominate the
    sample. Three weighting schemes are available:

    - POSITION: weight equals ascending rank (worst 1, best n).
    - LINEAR: ``probability(rank) = (1/N) * (1 + SP - 2 * SP * (rank-1)/(N-1))``
      with rank 1 the best. At SP = 0 all members are equally likely; at
      SP = 1 the worst member is never selected.
    - EXPONENTIAL: weight halves every ``median`` ranks, so roughly half of
      the draws come from the ``median`` best individuals. Applies more
      pressure than LINEAR, which helps with very large populations.

    Equal scores are ranked by position: the earlier index ranks lower.

    Args:
        scheme: RankScheme member or its name. Default POSITION.
        selection_pressure: LINEAR pressure in [0, 1]. Default 1.0.
        median: EXPONENTIAL half-weight rank, at least 1. Default 1.0.

    Example:
        >>> RankBased().pdf([10.0, 30.0, 20.0])
        array([0.16666667, 0.5       , 0.33333333])
    """

    scheme: RankScheme = RankScheme.POSITION
    selection_pressure: float = 1.0
    median: float = 1.0

    def __post_init__(self) -> None:
        try:
            object.__setattr__(self, "scheme", RankScheme(self.scheme))
        except ValueError as exc:
            raise InvalidParameterError(f"unknown rank scheme '{self.scheme}'") from exc
        if not 0.0 <= self.selection_pressure <= 1.0:
            raise InvalidParameterError(f"selection_pressure must be in [0, 1], got {self.selection_pressure}")
        if not self.median >= 1 or not math.isfinite(self.median):
            raise InvalidParameterError(f"median must be at least 1, got {self.median}")

    def sample_weight(self, scores: np.ndarray) -> np.ndarray:
        return rank_weights(scores, self.scheme, self.selection_pressure, self.median)
