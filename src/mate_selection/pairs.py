"""Mate pair generation.

This module turns a selection strategy into a stream of mate pairs for one
generation:

- PairGenerator: strategy plus pairing options, producing lazy pair streams
- generate / pairs: function API accepting a config, strategy, or name
- reduce_repeats: greedy swap that breaks up (i, i) pairs in a batch

Scores and options are validated when ``generate`` is called; the pairs
themselves are drawn lazily, so a caller can stop consuming at any point.

Example:
    >>> from mate_selection.selection import RouletteWheel
    >>> rng = np.random.default_rng(42)
    >>> generator = PairGenerator(RouletteWheel(), distinctness="distinct_within_pair")
    >>> mates = generator.pairs([1.0, 2.0, 3.0, 4.0], rng, count=3)
    >>> mates.shape
    (3, 2)
    >>> bool(np.all(mates[:, 0] != mates[:, 1]))
    True
"""

from __future__ import annotations

import logging
from collections.abc import Iterator, Sequence
from dataclasses import dataclass, replace
from typing import NamedTuple

import numpy as np
from joblib import Parallel, cpu_count, delayed

from mate_selection.config import Distinctness, SelectionConfig, as_distinctness, as_sampler_kind
from mate_selection.distribution import as_scores
from mate_selection.errors import InsufficientPopulationError, InvalidParameterError
from mate_selection.protocols import SelectionRound, SelectionStrategy
from mate_selection.random_source import SeedLike, spawn
from mate_selection.registry import SelectionRegistry
from mate_selection.sampler import SamplerKind
from mate_selection.selection.base import DEFAULT_CHUNK_SIZE, check_chunk_size

logger = logging.getLogger(__name__)


class MatePair(NamedTuple):
    """Two population indices selected to mate."""

    first: int
    second: int


def reduce_repeats(flat: np.ndarray) -> np.ndarray:
    """Break up repeated pairs in a flat array of pair members, in place.

    ``flat`` holds pairs as consecutive elements (2i, 2i + 1). For every pair
    (v, v) the first member is swapped with the first member of another pair
    containing no v, searching later pairs before earlier ones. Every swap
    keeps both pairs distinct, and the multiset of selected individuals is
    unchanged. Repeats that cannot be fixed (for example when v dominates the
    batch) are left in place.

    Args:
        flat: Even-length array of indices.

    Returns:
        The same array, for chaining.
    """
    if flat.size % 2:
        raise InvalidParameterError(f"pair array must have even length, got {flat.size}")
    data = flat.tolist()
    size = len(data)
    for cursor in range(0, size, 2):
        value = data[cursor]
        if value != data[cursor + 1]:
            continue
        for search in (*range(cursor + 2, size, 2), *range(0, cursor, 2)):
            if data[search] != value and data[search + 1] != value:
                data[cursor], data[search] = data[search], data[cursor]
                break
    flat[:] = data
    return flat


def _check_count(count: int) -> int:
    if isinstance(count, bool) or not isinstance(count, (int, np.integer)):
        raise InvalidParameterError(f"count must be an integer, got {type(count).__name__}")
    if count < 0:
        raise InvalidParameterError(f"count must be non-negative, got {count}")
    return int(count)


@dataclass(frozen=True)
class PairGenerator:
    """Draws mate pairs from a population with a selection strategy.

    Args:
        strategy: Selection strategy used for every draw.
        distinctness: Pairing constraint, see Distinctness. Default
            DISTINCT_WITHIN_PAIR.
        elitism: Make the best individual (lowest index among ties) the first
            parent of the first pair. Default False.
        sampler: Sampling structure for weighted strategies. Default CUMULATIVE.
        chunk_size: Pairs drawn per chunk by batch strategies. Default 4096.

    Batch strategies (stochastic universal sampling, uniform) draw 2 * count
    individuals in chunks, shuffle them, and pair consecutive ones. Other
    strategies draw each pair independently: the first parent with
    ``select_one``, the second with ``select_one_excluding`` when pairs must
    be distinct. DISTINCT_ACROSS_GENERATION removes each selected individual
    from later draws.
    """

    strategy: SelectionStrategy
    distinctness: Distinctness = Distinctness.DISTINCT_WITHIN_PAIR
    elitism: bool = False
    sampler: SamplerKind = SamplerKind.CUMULATIVE
    chunk_size: int = DEFAULT_CHUNK_SIZE

    def __post_init__(self) -> None:
        if not isinstance(self.strategy, SelectionStrategy):
            raise InvalidParameterError(f"strategy must be a SelectionStrategy, got {type(self.strategy).__name__}")
        object.__setattr__(self, "distinctness", as_distinctness(self.distinctness))
        object.__setattr__(self, "sampler", as_sampler_kind(self.sampler))
        object.__setattr__(self, "chunk_size", check_chunk_size(self.chunk_size))

    @classmethod
    def from_config(cls, config: SelectionConfig, chunk_size: int = DEFAULT_CHUNK_SIZE) -> PairGenerator:
        """Build a generator from a validated SelectionConfig."""
        return cls(
            strategy=config.build(),
            distinctness=config.distinctness,
            elitism=config.elitism,
            sampler=config.sampler,
            chunk_size=chunk_size,
        )

    def _prepare(self, scores: Sequence[float] | np.ndarray, count: int) -> tuple[SelectionRound, int | None]:
        arr = as_scores(scores)
        round_ = self.strategy.prepare(arr, self.sampler)
        n = len(round_)
        if self.distinctness is not Distinctness.ALLOW_SELF_PAIR and count > 0 and n < 2:
            raise InsufficientPopulationError(f"distinct pairs need at least 2 individuals, got {n}")
        if self.distinctness is Distinctness.DISTINCT_ACROSS_GENERATION and count > n // 2:
            raise InsufficientPopulationError(
                f"cannot draw {count} pairs without reusing individuals from a population of {n} "
                f"(at most {n // 2})"
            )
        if (
            self.distinctness is Distinctness.DISTINCT_WITHIN_PAIR
            and count > 0
            and n < round_.min_excluding_population
        ):
            raise InsufficientPopulationError(
                f"distinct pairs from {self.strategy!r} need at least "
                f"{round_.min_excluding_population} individuals, got {n}"
            )
        elite = int(np.argmax(arr)) if self.elitism else None
        return round_, elite

    def generate(
        self,
        scores: Sequence[float] | np.ndarray,
        rng: np.random.Generator,
        count: int,
    ) -> Iterator[MatePair]:
        """Lazily draw ``count`` mate pairs for one generation.

        Args:
            scores: Fitness score of each individual.
            rng: Random number generator. Re-running with a generator in the
                same state reproduces the same pairs.
            count: Number of pairs to draw.

        Returns:
            Iterator yielding exactly ``count`` MatePair values.

        Raises:
            EmptyPopulationError: If scores is empty.
            InvalidParameterError: If scores contain NaN or count is negative.
            InsufficientPopulationError: If the population is too small for
                the distinctness mode.
        """
        count = _check_count(count)
        round_, elite = self._prepare(scores, count)
        if self.distinctness is Distinctness.DISTINCT_ACROSS_GENERATION:
            return self._across_generation(round_, rng, count, elite)
        if round_.batch:
            return self._batched(round_, rng, count, elite)
        return self._independent(round_, rng, count, elite)

    def pairs(self, scores: Sequence[float] | np.ndarray, rng: np.random.Generator, count: int) -> np.ndarray:
        """Draw ``count`` mate pairs eagerly.

        Returns:
            Array of shape (count, 2) and dtype np.intp; row i is pair i.
        """
        return _stack(self.generate(scores, rng, count))

    def parallel_pairs(
        self,
        scores: Sequence[float] | np.ndarray,
        seed: SeedLike,
        count: int,
        n_workers: int,
    ) -> np.ndarray:
        """Draw ``count`` independent mate pairs across worker threads.

        The round is built once and shared read-only; each worker gets its own
        generator spawned from ``seed`` and draws a contiguous block of pairs.
        Results are reproducible for a fixed seed and worker count.

        Args:
            scores: Fitness score of each individual.
            seed: Root seed for the worker generators.
            count: Number of pairs to draw.
            n_workers: Number of workers, or -1 for all CPU cores.

        Returns:
            Array of shape (count, 2) and dtype np.intp.

        Raises:
            InvalidParameterError: If the distinctness mode is
                DISTINCT_ACROSS_GENERATION, whose draws depend on each other,
                or n_workers is invalid.
        """
        if self.distinctness is Distinctness.DISTINCT_ACROSS_GENERATION:
            raise InvalidParameterError(
                "distinct_across_generation pairs depend on each other and cannot be drawn in parallel"
            )
        if n_workers == -1:
            n_workers = cpu_count()
        if isinstance(n_workers, bool) or not isinstance(n_workers, (int, np.integer)) or n_workers <= 0:
            raise InvalidParameterError(f"n_workers must be a positive integer or -1, got {n_workers}")

        count = _check_count(count)
        round_, elite = self._prepare(scores, count)
        blocks = [len(b) for b in np.array_split(np.arange(count), n_workers)]
        generators = spawn(seed, n_workers)

        def draw_block(rng: np.random.Generator, size: int, block_elite: int | None) -> np.ndarray:
            if round_.batch:
                return _stack(self._batched(round_, rng, size, block_elite))
            return _stack(self._independent(round_, rng, size, block_elite))

        results: list[np.ndarray] = Parallel(n_jobs=n_workers, prefer="threads")(  # type: ignore[assignment]
            delayed(draw_block)(rng, size, elite if i == 0 else None)
            for i, (rng, size) in enumerate(zip(generators, blocks))
        )
        return np.concatenate(results).reshape(count, 2)

    def _independent(
        self,
        round_: SelectionRound,
        rng: np.random.Generator,
        count: int,
        elite: int | None,
    ) -> Iterator[MatePair]:
        distinct = self.distinctness is Distinctness.DISTINCT_WITHIN_PAIR
        for k in range(count):
            first = elite if k == 0 and elite is not None else round_.select_one(rng)
            second = round_.select_one_excluding(rng, first) if distinct else round_.select_one(rng)
            yield MatePair(int(first), int(second))

    def _batched(
        self,
        round_: SelectionRound,
        rng: np.random.Generator,
        count: int,
        elite: int | None,
    ) -> Iterator[MatePair]:
        distinct = self.distinctness is Distinctness.DISTINCT_WITHIN_PAIR
        for k, chunk in enumerate(round_.iter_select(2 * count, rng, 2 * self.chunk_size)):
            if distinct:
                reduce_repeats(chunk)
            if k == 0 and elite is not None and chunk.size:
                chunk[0] = elite
            if distinct:
                repeated = np.flatnonzero(chunk[0::2] == chunk[1::2])
                if repeated.size:
                    logger.debug("redrawing %d repeated pairs", repeated.size)
                for i in repeated:
                    chunk[2 * i + 1] = round_.select_one_excluding(rng, int(chunk[2 * i]))
            for first, second in chunk.reshape(-1, 2):
                yield MatePair(int(first), int(second))

    def _across_generation(
        self,
        round_: SelectionRound,
        rng: np.random.Generator,
        count: int,
        elite: int | None,
    ) -> Iterator[MatePair]:
        if count == 0:
            return
        removal = round_.without_replacement()
        for k in range(count):
            first = elite if k == 0 and elite is not None else removal.select_one(rng)
            removal.remove(first)
            second = removal.select_one(rng)
            removal.remove(second)
            yield MatePair(int(first), int(second))


def _stack(mates: Iterator[MatePair]) -> np.ndarray:
    return np.array(list(mates), dtype=np.intp).reshape(-1, 2)


def _as_generator(
    selection: SelectionConfig | SelectionStrategy | str,
    distinctness: Distinctness | str | None,
    elitism: bool | None,
    chunk_size: int,
) -> PairGenerator:
    if isinstance(selection, SelectionConfig):
        generator = PairGenerator.from_config(selection, chunk_size)
    elif isinstance(selection, str):
        try:
            generator = PairGenerator(SelectionRegistry.get(selection), chunk_size=chunk_size)
        except KeyError as exc:
            raise InvalidParameterError(exc.args[0]) from exc
    else:
        generator = PairGenerator(selection, chunk_size=chunk_size)
    overrides = {}
    if distinctness is not None:
        overrides["distinctness"] = distinctness
    if elitism is not None:
        overrides["elitism"] = elitism
    if not overrides:
        return generator
    return replace(generator, **overrides)


def generate(
    scores: Sequence[float] | np.ndarray,
    selection: SelectionConfig | SelectionStrategy | str,
    rng: np.random.Generator,
    count: int,
    distinctness: Distinctness | str | None = None,
    elitism: bool | None = None,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
) -> Iterator[MatePair]:
    """Lazily draw ``count`` mate pairs.

    Args:
        scores: Fitness score of each individual.
        selection: SelectionConfig, strategy instance, or registered strategy
            name (built with default parameters).
        rng: Random number generator.
        count: Number of pairs.
        distinctness: Overrides the config's mode; strategies and names
            default to DISTINCT_WITHIN_PAIR.
        elitism: Overrides the config's elitism flag.
        chunk_size: Pairs drawn per chunk by batch strategies.

    Returns:
        Iterator yielding exactly ``count`` MatePair values.
    """
    return _as_generator(selection, distinctness, elitism, chunk_size).generate(scores, rng, count)


def pairs(
    scores: Sequence[float] | np.ndarray,
    selection: SelectionConfig | SelectionStrategy | str,
    rng: np.random.Generator,
    count: int,
    distinctness: Distinctness | str | None = None,
    elitism: bool | None = None,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
) -> np.ndarray:
    """Eager form of ``generate`` returning an array of shape (count, 2)."""
    return _stack(generate(scores, selection, rng, count, distinctness, elitism, chunk_size))
