"""Stochastic universal sampling."""

from __future__ import annotations

import logging
from collections.abc import Iterator
from dataclasses import dataclass

import numpy as np

from mate_selection.distribution import DEFAULT_EPSILON, NegativeScorePolicy, proportional_weights
from mate_selection.selection.base import WeightedRound, WeightedSelection, check_amount
from mate_selection.selection.roulette import check_proportional_params

logger = logging.getLogger(__name__)


class SusRound(WeightedRound):
    """Selection round placing evenly spaced pointers over the weight line.

    For a batch of m draws a single offset u in [0, 1) is drawn and pointer j
    sits at ``(u + j) / m`` of the total weight. Every individual with
    expected count e_i = m * p_i is selected either floor(e_i) or ceil(e_i)
    times, which is far less variance than m independent roulette spins.

    Pointers are visited in a random order so that consecutive outputs are
    not sorted by index; this matters when consecutive outputs are paired as
    mates. Single draws (``select_one``) are plain roulette spins.
    """

    batch = True

    def select(self, amount: int, rng: np.random.Generator) -> np.ndarray:
        amount = check_amount(amount)
        if amount == 0:
            return np.empty(0, dtype=np.intp)
        offset = rng.random()
        order = rng.permutation(amount)
        return self.sampler.draw_many((offset + order) / amount)

    def _iter_chunks(self, amount: int, rng: np.random.Generator, chunk_size: int) -> Iterator[np.ndarray]:
        # Same random stream as select(), so chunked and whole batches agree.
        if amount == 0:
            return
        offset = rng.random()
        order = rng.permutation(amount)
        logger.debug("sampling %d pointers in chunks of %d", amount, chunk_size)
        for start in range(0, amount, chunk_size):
            yield self.sampler.draw_many((offset + order[start : start + chunk_size]) / amount)


@dataclass(frozen=True)
class StochasticUniversalSampling(WeightedSelection):
    """Fitness-proportionate batch selection with minimal spread.

    Uses the same weights as RouletteWheel, so the expected number of times
    each individual is selected is identical, but a batch of m draws uses m
    evenly spaced pointers with one shared random offset. Exactly m indices
    are returned per batch. The fairness guarantee holds across the batch,
    not per draw.

    Args:
        negative_policy: CLAMP, SHIFT or REJECT. Default CLAMP.
        epsilon: Weight floor added under SHIFT. Default 1e-10.

    Example:
        >>> rng = np.random.default_rng(0)
        >>> picks = StochasticUniversalSampling().select([1.0, 1.0, 2.0], 4, rng)
        >>> sorted(picks.tolist())
        [0, 1, 2, 2]
    """

    negative_policy: NegativeScorePolicy = NegativeScorePolicy.CLAMP
    epsilon: float = DEFAULT_EPSILON

    round_type = SusRound

    def __post_init__(self) -> None:
        check_proportional_params(self)

    def sample_weight(self, scores: np.ndarray) -> np.ndarray:
        return proportional_weights(scores, self.negative_policy, self.epsilon)
