"""Shared machinery for selection strategies and their per-generation rounds."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Iterator, Sequence

import numpy as np

from mate_selection.distribution import as_scores, ensure_selectable, probabilities
from mate_selection.errors import InvalidParameterError
from mate_selection.protocols import RemovalRound, SelectionRound
from mate_selection.sampler import AliasSampler, CumulativeSampler, FenwickSampler, SamplerKind

logger = logging.getLogger(__name__)

DEFAULT_CHUNK_SIZE = 4096


def check_amount(amount: int) -> int:
    """Validate a requested number of draws."""
    if isinstance(amount, bool) or not isinstance(amount, (int, np.integer)):
        raise InvalidParameterError(f"amount must be an integer, got {type(amount).__name__}")
    if amount < 0:
        raise InvalidParameterError(f"amount must be non-negative, got {amount}")
    return int(amount)


def check_chunk_size(chunk_size: int) -> int:
    if isinstance(chunk_size, bool) or not isinstance(chunk_size, (int, np.integer)) or chunk_size <= 0:
        raise InvalidParameterError(f"chunk_size must be a positive integer, got {chunk_size}")
    return int(chunk_size)


class ChunkedSelectMixin:
    """Provides ``iter_select`` on top of a round's ``select``."""

    def iter_select(
        self,
        amount: int,
        rng: np.random.Generator,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
    ) -> Iterator[np.ndarray]:
        """Yield ``amount`` draws in chunks of at most ``chunk_size``.

        Arguments are validated immediately; draws happen lazily, so a caller
        that stops iterating wastes at most one chunk of work.
        """
        amount = check_amount(amount)
        chunk_size = check_chunk_size(chunk_size)
        return self._iter_chunks(amount, rng, chunk_size)

    def _iter_chunks(self, amount: int, rng: np.random.Generator, chunk_size: int) -> Iterator[np.ndarray]:
        for start in range(0, amount, chunk_size):
            yield self.select(min(chunk_size, amount - start), rng)


class WeightedRound(ChunkedSelectMixin):
    """Selection round for strategies defined by a weight vector.

    Single draws use the cumulative sampler, or alias tables when requested.
    Exclusion draws always use the cumulative sampler, which supports them
    exactly.

    Attributes:
        weights: Selectable weights, shape (n,).
        sampler: Prefix-sum sampler over the weights.
        alias: Alias tables, or None when the cumulative sampler is used.
    """

    batch = False
    min_excluding_population = 2

    def __init__(self, weights: np.ndarray, sampler: SamplerKind | str = SamplerKind.CUMULATIVE) -> None:
        kind = SamplerKind(sampler)
        self.weights = ensure_selectable(weights)
        self.sampler = CumulativeSampler.build(self.weights)
        self.alias = AliasSampler.build(self.weights) if kind is SamplerKind.ALIAS else None

    def __len__(self) -> int:
        return len(self.sampler)

    def probabilities(self) -> np.ndarray:
        return self.sampler.probabilities()

    def select_one(self, rng: np.random.Generator) -> int:
        u = rng.random()
        if self.alias is not None:
            return self.alias.draw(u)
        return self.sampler.draw(u)

    def select_one_excluding(self, rng: np.random.Generator, excluded: int) -> int:
        return self.sampler.draw_excluding(rng.random(), int(excluded))

    def select(self, amount: int, rng: np.random.Generator) -> np.ndarray:
        """Draw ``amount`` independent indices."""
        amount = check_amount(amount)
        u = rng.random(amount)
        if self.alias is not None:
            return self.alias.draw_many(u)
        return self.sampler.draw_many(u)

    def without_replacement(self) -> RemovalRound:
        logger.debug("starting removal round over %d individuals", len(self))
        return WeightedRemovalRound(FenwickSampler.build(self.weights))


class WeightedRemovalRound:
    """Weighted draws without replacement backed by a Fenwick tree."""

    def __init__(self, sampler: FenwickSampler) -> None:
        self.sampler = sampler

    def __len__(self) -> int:
        return self.sampler.remaining

    def select_one(self, rng: np.random.Generator) -> int:
        return self.sampler.draw(rng.random())

    def remove(self, index: int) -> None:
        self.sampler.remove(int(index))


class StrategyBase(ABC):
    """One-shot shortcuts shared by every strategy.

    Each shortcut prepares a throwaway round; callers drawing more than once
    per generation should call ``prepare`` themselves and reuse the round.
    """

    @abstractmethod
    def prepare(self, scores: Sequence[float] | np.ndarray, sampler: SamplerKind | str = SamplerKind.CUMULATIVE) -> SelectionRound:
        """Build the per-generation round for these scores."""

    def select_one(self, scores: Sequence[float] | np.ndarray, rng: np.random.Generator) -> int:
        return self.prepare(scores).select_one(rng)

    def select_one_excluding(
        self,
        scores: Sequence[float] | np.ndarray,
        rng: np.random.Generator,
        excluded: int,
    ) -> int:
        return self.prepare(scores).select_one_excluding(rng, excluded)

    def select(self, scores: Sequence[float] | np.ndarray, amount: int, rng: np.random.Generator) -> np.ndarray:
        return self.prepare(scores).select(amount, rng)


class WeightedSelection(StrategyBase):
    """Base for strategies that only differ in their score to weight transform.

    Subclasses implement ``sample_weight`` and may set ``round_type`` to a
    WeightedRound subclass with different batch behaviour.
    """

    round_type: type[WeightedRound] = WeightedRound

    @abstractmethod
    def sample_weight(self, scores: np.ndarray) -> np.ndarray:
        """Weight of each individual before the uniform fallback."""

    def weights(self, scores: Sequence[float] | np.ndarray) -> np.ndarray:
        """Validated scores transformed into selectable weights."""
        return ensure_selectable(self.sample_weight(as_scores(scores)))

    def pdf(self, scores: Sequence[float] | np.ndarray) -> np.ndarray:
        return probabilities(self.weights(scores))

    def prepare(self, scores: Sequence[float] | np.ndarray, sampler: SamplerKind | str = SamplerKind.CUMULATIVE) -> WeightedRound:
        return self.round_type(self.weights(scores), sampler)
