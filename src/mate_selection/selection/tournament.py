"""Tournament selection."""

from __future__ import annotations

import math
from collections.abc import Sequence
from dataclasses import dataclass

import numpy as np

from mate_selection.distribution import as_scores
from mate_selection.errors import (
    EmptyPopulationError,
    IndexOutOfRangeError,
    InsufficientPopulationError,
    InvalidParameterError,
)
from mate_selection.sampler import SamplerKind
from mate_selection.selection.base import ChunkedSelectMixin, StrategyBase, check_amount


def tournament_pdf(scores: np.ndarray, size: int, replace: bool = True) -> np.ndarray:
    """Exact probability that a tournament of ``size`` is won by each individual.

    Individuals sharing a score form a group. With a_g individuals scoring at
    most the group's score and b_g scoring strictly less, the group wins with
    probability (a_g/n)^k - (b_g/n)^k when contestants are drawn with
    replacement, or (C(a_g, k) - C(b_g, k)) / C(n, k) without. Ties are broken
    uniformly, so each member gets an equal share.

    Args:
        scores: Validated scores, shape (n,).
        size: Tournament size k.
        replace: Whether contestants are drawn with replacement.

    Returns:
        Probabilities with shape (n,), summing to one.
    """
    n = scores.size
    if not replace and size > n:
        raise InvalidParameterError(f"tournament size {size} exceeds population size {n} without replacement")
    _, inverse, counts = np.unique(scores, return_inverse=True, return_counts=True)
    inverse = inverse.reshape(-1)
    at_most = np.cumsum(counts)
    below = at_most - counts

    if replace:
        group = (at_most / n) ** size - (below / n) ** size
    else:
        contests = math.comb(n, size)
        group = np.array(
            [(math.comb(int(a), size) - math.comb(int(b), size)) / contests for a, b in zip(at_most, below)],
            dtype=np.float64,
        )
    return group[inverse] / counts[inverse]


class TournamentRound(ChunkedSelectMixin):
    """Selection round running tournaments over a fixed population."""

    batch = False

    def __init__(self, scores: np.ndarray, size: int, replace: bool) -> None:
        if not replace and size > scores.size:
            raise InvalidParameterError(
                f"tournament size {size} exceeds population size {scores.size} without replacement"
            )
        self.scores = scores
        self.size = size
        self.replace = replace

    @property
    def min_excluding_population(self) -> int:
        # Without replacement the other n - 1 individuals must fill a tournament.
        return 2 if self.replace else max(2, self.size + 1)

    def __len__(self) -> int:
        return self.scores.size

    def winner(self, candidates: np.ndarray, rng: np.random.Generator) -> int:
        """Highest scoring candidate, ties broken uniformly among distinct individuals."""
        contest = self.scores[candidates]
        tied = np.unique(candidates[contest == contest.max()])
        if tied.size == 1:
            return int(tied[0])
        return int(tied[rng.integers(tied.size)])

    def contestants(self, pool_size: int, rng: np.random.Generator) -> np.ndarray:
        """Positions of one tournament's contestants within a pool of ``pool_size``."""
        if self.replace:
            return rng.integers(0, pool_size, size=self.size)
        return rng.choice(pool_size, size=min(self.size, pool_size), replace=False)

    def select_one(self, rng: np.random.Generator) -> int:
        return self.winner(self.contestants(len(self), rng), rng)

    def select_one_excluding(self, rng: np.random.Generator, excluded: int) -> int:
        n = len(self)
        if not 0 <= excluded < n:
            raise IndexOutOfRangeError(f"excluded index {excluded} is out of bounds for population with {n} individuals")
        if n < 2:
            raise InsufficientPopulationError("need at least 2 individuals to exclude one")
        if n < self.min_excluding_population:
            raise InsufficientPopulationError(
                f"tournament size {self.size} needs {self.size + 1} individuals to exclude one, got {n}"
            )
        # Draw from the n - 1 others by skipping over the excluded slot.
        candidates = self.contestants(n - 1, rng)
        candidates = candidates + (candidates >= excluded)
        return self.winner(candidates, rng)

    def select(self, amount: int, rng: np.random.Generator) -> np.ndarray:
        amount = check_amount(amount)
        return np.fromiter((self.select_one(rng) for _ in range(amount)), dtype=np.intp, count=amount)

    def without_replacement(self) -> TournamentRemovalRound:
        return TournamentRemovalRound(self)


class TournamentRemovalRound:
    """Tournaments among the individuals not yet removed.

    Remaining indices live in a pool with swap-remove, so removal is O(1).
    When fewer individuals remain than the tournament size without
    replacement, every remaining individual competes.
    """

    def __init__(self, tournament: TournamentRound) -> None:
        n = len(tournament)
        self.tournament = tournament
        self._pool = np.arange(n, dtype=np.intp)
        self._position = np.arange(n, dtype=np.intp)
        self._remaining = n

    def __len__(self) -> int:
        return self._remaining

    def select_one(self, rng: np.random.Generator) -> int:
        if self._remaining == 0:
            raise EmptyPopulationError("every individual has already been selected")
        picks = self.tournament.contestants(self._remaining, rng)
        return self.tournament.winner(self._pool[picks], rng)

    def remove(self, index: int) -> None:
        n = self._pool.size
        if not 0 <= index < n:
            raise IndexOutOfRangeError(f"index {index} is out of bounds for population with {n} individuals")
        pos = self._position[index]
        if pos >= self._remaining:
            raise InvalidParameterError(f"individual {index} was already removed")
        last = self._pool[self._remaining - 1]
        self._pool[pos], self._pool[self._remaining - 1] = last, index
        self._position[last], self._position[index] = pos, self._remaining - 1
        self._remaining -= 1


@dataclass(frozen=True)
class Tournament(StrategyBase):
    """Best of k uniformly drawn contestants.

    Each draw picks ``size`` contestants uniformly at random (with
    replacement unless ``replace=False``) and returns the one with the
    highest score. Ties are broken uniformly among the tied individuals.
    A tournament of size 1 is uniform random selection; a tournament over the
    whole population without replacement always returns the best.

    Args:
        size: Number of contestants k, at least 1. Default 2.
        replace: Draw contestants with replacement. Default True.

    Example:
        >>> rng = np.random.default_rng(0)
        >>> Tournament(size=3, replace=False).select_one([1.0, 5.0, 2.0], rng)
        1
    """

    size: int = 2
    replace: bool = True

    def __post_init__(self) -> None:
        if isinstance(self.size, bool) or not isinstance(self.size, (int, np.integer)):
            raise InvalidParameterError(f"tournament size must be an integer, got {type(self.size).__name__}")
        if self.size < 1:
            raise InvalidParameterError(f"tournament size must be at least 1, got {self.size}")

    def sample_weight(self, scores: np.ndarray) -> np.ndarray:
        return tournament_pdf(scores, int(self.size), self.replace)

    def pdf(self, scores: Sequence[float] | np.ndarray) -> np.ndarray:
        return self.sample_weight(as_scores(scores))

    def prepare(
        self,
        scores: Sequence[float] | np.ndarray,
        sampler: SamplerKind | str = SamplerKind.CUMULATIVE,
    ) -> TournamentRound:
        """Build a tournament round. The sampler kind is validated but unused."""
        SamplerKind(sampler)
        return TournamentRound(as_scores(scores), int(self.size), self.replace)
