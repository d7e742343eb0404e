"""Selection strategies that bar part of the population from mating."""

from __future__ import annotations

import math
from dataclasses import dataclass

import numpy as np

from mate_selection.distribution import normalized_weights, percentile_weights
from mate_selection.errors import InvalidParameterError
from mate_selection.selection.base import WeightedSelection


@dataclass(frozen=True)
class Normalized(WeightedSelection):
    """Proportional selection on standard scores.

    Scores are normalized to zero mean and unit standard deviation, shifted
    by ``cutoff`` (measured in standard deviations) and clamped at zero.
    Individuals scoring below the cutoff are not permitted to mate; the rest
    are selected in proportion to how far above the cutoff they are. Unlike
    RouletteWheel this is insensitive to the magnitude and offset of the
    fitness function, and it accepts negative scores.

    Args:
        cutoff: Minimum standard score required for mating. Default 0.0
            (only above-average individuals mate).

    Example:
        >>> Normalized(cutoff=0.0).pdf([1.0, 2.0, 3.0])
        array([0., 0., 1.])
    """

    cutoff: float = 0.0

    def __post_init__(self) -> None:
        if not math.isfinite(self.cutoff):
            raise InvalidParameterError(f"cutoff must be finite, got {self.cutoff}")

    def sample_weight(self, scores: np.ndarray) -> np.ndarray:
        return normalized_weights(scores, self.cutoff)


@dataclass(frozen=True)
class Percentile(WeightedSelection):
    """Truncation selection with uniform mating among the survivors.

    The ``percentile`` fraction of the population with the lowest scores is
    denied the chance to mate. The rest are selected with equal probability.
    At 0 everyone may mate; at 1 only the single best individual (and anyone
    tied with it) may mate.

    Args:
        percentile: Fraction of the population excluded, in [0, 1].

    Example:
        >>> Percentile(0.5).pdf([4.0, 1.0, 3.0, 2.0])
        array([0.5, 0. , 0.5, 0. ])
    """

    percentile: float = 0.5

    def __post_init__(self) -> None:
        if not 0.0 <= self.percentile <= 1.0:
            raise InvalidParameterError(f"percentile must be in [0, 1], got {self.percentile}")

    def sample_weight(self, scores: np.ndarray) -> np.ndarray:
        return percentile_weights(scores, self.percentile)
