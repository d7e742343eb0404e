"""Protocol definitions for mate selection strategies.

Selection happens in two steps so that the sampling structure is built once
per generation and reused for every draw:

1. **Prepare**: A strategy validates the population's scores and builds a
   selection round (``strategy.prepare(scores)``). Building costs O(n) or
   O(n log n) depending on the strategy.

2. **Draw**: The round answers any number of draws, each taking an explicit
   random number generator. Rounds are read-only, so several workers may
   share one round as long as each holds its own generator.

The one-shot methods on SelectionStrategy (``select_one`` and friends) are
shortcuts that prepare a throwaway round.

Example usage:
    ```python
    def mate(strategy: SelectionStrategy, scores, rng):
        round_ = strategy.prepare(scores)
        first = round_.select_one(rng)
        second = round_.select_one_excluding(rng, first)
        return first, second
    ```
"""

from __future__ import annotations

from collections.abc import Iterator, Sequence
from typing import Protocol, runtime_checkable

import numpy as np


@runtime_checkable
class RemovalRound(Protocol):
    """Selection round sampling without replacement.

    Each individual can be drawn at most once after it is removed. Used for
    pairings where nobody mates twice in a generation.
    """

    def __len__(self) -> int:
        """Number of individuals still available."""
        ...

    def select_one(self, rng: np.random.Generator) -> int:
        """Draw one of the remaining individuals."""
        ...

    def remove(self, index: int) -> None:
        """Exclude an individual from all further draws."""
        ...


@runtime_checkable
class SelectionRound(Protocol):
    """Per-generation selection state built from one population's scores.

    Attributes:
        batch: True when the strategy's guarantee holds across a whole batch
            (stochastic universal sampling, uniform cycling) rather than per
            draw. Pair generation draws batch strategies through ``select``.
        min_excluding_population: Smallest population for which
            ``select_one_excluding`` can succeed.
    """

    batch: bool
    min_excluding_population: int

    def __len__(self) -> int:
        """Population size."""
        ...

    def select_one(self, rng: np.random.Generator) -> int:
        """Draw one individual index in [0, n)."""
        ...

    def select_one_excluding(self, rng: np.random.Generator, excluded: int) -> int:
        """Draw one individual index in [0, n) other than ``excluded``."""
        ...

    def select(self, amount: int, rng: np.random.Generator) -> np.ndarray:
        """Draw ``amount`` indices, shape (amount,), dtype np.intp."""
        ...

    def iter_select(self, amount: int, rng: np.random.Generator, chunk_size: int) -> Iterator[np.ndarray]:
        """Yield ``amount`` indices in chunks of at most ``chunk_size``."""
        ...

    def without_replacement(self) -> RemovalRound:
        """Start a fresh sampling-without-replacement round."""
        ...


@runtime_checkable
class SelectionStrategy(Protocol):
    """Protocol for mate selection strategies.

    Strategies are immutable configuration objects. All per-generation state
    lives in the SelectionRound returned by ``prepare``. Higher scores are
    better.

    Example implementations:
        - RouletteWheel: probability proportional to score
        - RankBased: probability from rank position
        - Tournament: best of k uniform draws
        - StochasticUniversalSampling: evenly spaced pointers over the weights
        - Boltzmann: probability proportional to exp(score / T)
    """

    def sample_weight(self, scores: np.ndarray) -> np.ndarray:
        """Transform validated scores into non-negative sampling weights."""
        ...

    def pdf(self, scores: Sequence[float] | np.ndarray) -> np.ndarray:
        """Probability that a single draw selects each individual."""
        ...

    def prepare(self, scores: Sequence[float] | np.ndarray, sampler: str = "cumulative") -> SelectionRound:
        """Validate scores and build the selection round for one generation."""
        ...

    def select_one(self, scores: Sequence[float] | np.ndarray, rng: np.random.Generator) -> int:
        """Draw a single individual."""
        ...

    def select_one_excluding(
        self,
        scores: Sequence[float] | np.ndarray,
        rng: np.random.Generator,
        excluded: int,
    ) -> int:
        """Draw a single individual other than ``excluded``."""
        ...

    def select(self, scores: Sequence[float] | np.ndarray, amount: int, rng: np.random.Generator) -> np.ndarray:
        """Draw ``amount`` individuals."""
        ...
