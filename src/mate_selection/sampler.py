"""Sampling structures built once per generation from a weight vector.

- CumulativeSampler: prefix sums with binary search, O(log n) per draw
- AliasSampler: Vose's alias tables, O(1) per draw
- FenwickSampler: binary indexed tree supporting removal, O(log n) per draw
  and per removal, used for sampling without replacement

All samplers map a uniform variate u in [0, 1) to an index, so the caller's
``np.random.Generator`` stays the only source of randomness. A sampler whose
weights are all zero draws uniformly.

Prefix sums below NAIVE_SUM_THRESHOLD elements use ``np.cumsum`` directly.
Accumulated rounding error of sequential summation grows with n, so larger
populations use a blocked cumulative sum whose block offsets are Kahan
compensated.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from enum import Enum

import numpy as np

from mate_selection.distribution import rescale
from mate_selection.errors import (
    EmptyPopulationError,
    IndexOutOfRangeError,
    InsufficientPopulationError,
    InvalidParameterError,
)

logger = logging.getLogger(__name__)

NAIVE_SUM_THRESHOLD = 100_000
COMPENSATION_BLOCK = 1024
# Relative tree error tolerated before a FenwickSampler rebuilds its sums.
DRIFT_TOLERANCE = 1e-9


class SamplerKind(str, Enum):
    """Structure used for single draws from a static distribution."""

    CUMULATIVE = "cumulative"
    ALIAS = "alias"


def _as_weights(weights: np.ndarray) -> np.ndarray:
    arr = np.array(weights, dtype=np.float64)
    if arr.ndim != 1:
        raise InvalidParameterError(f"weights must be 1D, got shape {arr.shape}")
    if arr.size == 0:
        raise EmptyPopulationError("cannot build a sampler over an empty population")
    if not np.isfinite(arr).all():
        raise InvalidParameterError("weights must be finite")
    if (arr < 0).any():
        raise InvalidParameterError(f"weights must be non-negative, got minimum {arr.min()}")
    return rescale(arr)


def compensated_cumsum(weights: np.ndarray, block_size: int = COMPENSATION_BLOCK) -> np.ndarray:
    """Cumulative sum with error bounded by the block size rather than n.

    Each block is summed with ``np.cumsum``; the running offset between blocks
    is accumulated with Kahan summation. The result is forced non-decreasing
    so it stays valid for binary search.

    Args:
        weights: Non-negative weights, shape (n,).
        block_size: Number of elements summed sequentially per block.

    Returns:
        Prefix sums with shape (n,).
    """
    n = weights.size
    n_blocks = -(-n // block_size)
    padded = np.zeros(n_blocks * block_size, dtype=np.float64)
    padded[:n] = weights
    blocks = padded.reshape(n_blocks, block_size)

    inner = np.cumsum(blocks, axis=1)
    offsets = np.empty(n_blocks, dtype=np.float64)
    running = 0.0
    compensation = 0.0
    for b, block_total in enumerate(blocks.sum(axis=1)):
        offsets[b] = running
        y = float(block_total) - compensation
        t = running + y
        compensation = (t - running) - y
        running = t

    result = (inner + offsets[:, None]).ravel()[:n]
    return np.maximum.accumulate(result)


def prefix_sums(weights: np.ndarray) -> np.ndarray:
    """Prefix sums of weights, compensated for large populations."""
    if weights.size < NAIVE_SUM_THRESHOLD:
        return np.cumsum(weights)
    logger.debug("using compensated prefix sums for %d weights", weights.size)
    return compensated_cumsum(weights)


@dataclass(frozen=True)
class CumulativeSampler:
    """Prefix-sum sampling structure.

    ``draw(u)`` returns the smallest index whose prefix sum exceeds
    ``u * total``, so index i is drawn with probability weight_i / total.

    Attributes:
        weights: Weights the sampler was built from, shape (n,).
        cumulative: Non-decreasing prefix sums, shape (n,).
        total: Sum of all weights (the last prefix sum).
        last_index: Highest index with positive weight, or n - 1 if none.

    Example:
        >>> sampler = CumulativeSampler.build(np.array([1.0, 0.0, 3.0]))
        >>> sampler.draw(0.1), sampler.draw(0.5)
        (0, 2)
    """

    weights: np.ndarray
    cumulative: np.ndarray
    total: float
    last_index: int

    @classmethod
    def build(cls, weights: np.ndarray) -> CumulativeSampler:
        """Build the sampler.

        Raises:
            EmptyPopulationError: If weights is empty.
            InvalidParameterError: If weights are not 1D, finite and non-negative.
        """
        arr = _as_weights(weights)
        cumulative = prefix_sums(arr)
        positive = np.flatnonzero(arr > 0)
        last_index = int(positive[-1]) if positive.size else arr.size - 1
        arr.flags.writeable = False
        cumulative.flags.writeable = False
        return cls(weights=arr, cumulative=cumulative, total=float(cumulative[-1]), last_index=last_index)

    def __len__(self) -> int:
        return self.weights.size

    def probabilities(self) -> np.ndarray:
        """Probability of drawing each index."""
        if self.total <= 0:
            return np.full(len(self), 1.0 / len(self))
        return self.weights / self.total

    def draw(self, u: float) -> int:
        """Map a uniform variate in [0, 1) to an index."""
        n = len(self)
        if self.total <= 0:
            return min(int(u * n), n - 1)
        idx = int(np.searchsorted(self.cumulative, u * self.total, side="right"))
        return min(idx, self.last_index)

    def draw_many(self, u: np.ndarray) -> np.ndarray:
        """Vectorized ``draw`` over an array of uniform variates."""
        u = np.asarray(u, dtype=np.float64)
        n = len(self)
        if self.total <= 0:
            return np.minimum((u * n).astype(np.intp), n - 1)
        idx = np.searchsorted(self.cumulative, u * self.total, side="right")
        return np.minimum(idx, self.last_index).astype(np.intp)

    def draw_excluding(self, u: float, excluded: int) -> int:
        """Draw from the distribution conditioned on index != excluded.

        The excluded slice of the weight line is skipped, so a single binary
        search gives an exact conditional draw. If every other individual has
        zero weight the draw is uniform over the others.

        Raises:
            IndexOutOfRangeError: If excluded is not in [0, n).
            InsufficientPopulationError: If the population has one individual.
        """
        n = len(self)
        if not 0 <= excluded < n:
            raise IndexOutOfRangeError(f"excluded index {excluded} is out of bounds for population with {n} individuals")
        if n < 2:
            raise InsufficientPopulationError("need at least 2 individuals to exclude one")

        w_excluded = float(self.weights[excluded])
        others_positive = self.total > 0 and bool(
            (self.weights[:excluded] > 0).any() or (self.weights[excluded + 1 :] > 0).any()
        )
        if not others_positive:
            j = min(int(u * (n - 1)), n - 2)
            return j + 1 if j >= excluded else j

        before = float(self.cumulative[excluded]) - w_excluded
        target = u * (self.total - w_excluded)
        if target >= before:
            target += w_excluded
        idx = min(int(np.searchsorted(self.cumulative, target, side="right")), n - 1)
        if idx == excluded or self.weights[idx] <= 0:
            idx = self._nearest_selectable(idx, excluded)
        return idx

    def _nearest_selectable(self, idx: int, excluded: int) -> int:
        # Rounding at a block edge can land on a zero-width slot.
        candidates = np.flatnonzero(self.weights > 0)
        candidates = candidates[candidates != excluded]
        after = candidates[candidates >= idx]
        return int(after[0]) if after.size else int(candidates[-1])


@dataclass(frozen=True)
class AliasSampler:
    """Walker/Vose alias tables for O(1) draws from a static distribution.

    Marginal probabilities equal those of CumulativeSampler built from the
    same weights, up to floating point tolerance.

    Attributes:
        probability: Probability of keeping column i, shape (n,).
        alias: Fallback index of column i, shape (n,).
    """

    probability: np.ndarray
    alias: np.ndarray

    @classmethod
    def build(cls, weights: np.ndarray) -> AliasSampler:
        """Build alias tables in O(n)."""
        arr = _as_weights(weights)
        n = arr.size
        total = math.fsum(arr)
        scaled = (arr * (n / total)).tolist() if total > 0 else [1.0] * n
        logger.debug("building alias tables for %d weights", n)

        probability = np.zeros(n, dtype=np.float64)
        alias = np.arange(n, dtype=np.intp)
        small = [i for i, p in enumerate(scaled) if p < 1.0]
        large = [i for i, p in enumerate(scaled) if p >= 1.0]

        while small and large:
            s = small.pop()
            g = large.pop()
            probability[s] = scaled[s]
            alias[s] = g
            scaled[g] = (scaled[g] + scaled[s]) - 1.0
            if scaled[g] < 1.0:
                small.append(g)
            else:
                large.append(g)
        # Whatever is left is 1.0 up to rounding.
        for i in large + small:
            probability[i] = 1.0

        probability.flags.writeable = False
        alias.flags.writeable = False
        return cls(probability=probability, alias=alias)

    def __len__(self) -> int:
        return self.probability.size

    def probabilities(self) -> np.ndarray:
        """Marginal probability of drawing each index, recovered from the tables."""
        n = len(self)
        marginal = self.probability.copy()
        np.add.at(marginal, self.alias, 1.0 - self.probability)
        return marginal / n

    def draw(self, u: float) -> int:
        """Map a uniform variate in [0, 1) to an index.

        The integer part of u * n picks a column and the fractional part
        decides between the column and its alias.
        """
        n = len(self)
        x = u * n
        column = min(int(x), n - 1)
        if x - column < self.probability[column]:
            return column
        return int(self.alias[column])

    def draw_many(self, u: np.ndarray) -> np.ndarray:
        """Vectorized ``draw`` over an array of uniform variates."""
        n = len(self)
        x = np.asarray(u, dtype=np.float64) * n
        column = np.minimum(x.astype(np.intp), n - 1)
        keep = (x - column) < self.probability[column]
        return np.where(keep, column, self.alias[column]).astype(np.intp)


class FenwickSampler:
    """Weighted sampler without replacement over a fixed set of indices.

    Weights live in a binary indexed tree, so drawing and removing an
    individual are both O(log n). Removed individuals keep their original
    index; they simply stop being drawn. Once every remaining individual has
    zero weight, draws are uniform over the remaining ones.

    Unlike the other samplers this one is mutable and owned by a single
    caller for the duration of one selection round.

    Example:
        >>> sampler = FenwickSampler.build(np.array([1.0, 2.0, 3.0]))
        >>> idx = sampler.draw(0.99)
        >>> sampler.remove(idx)
        >>> sampler.remaining
        2
    """

    def __init__(self, weights: np.ndarray) -> None:
        self._weights = _as_weights(weights)
        self._n = self._weights.size
        self._live = np.ones(self._n, dtype=bool)
        self._tree = self._build_tree(self._weights.tolist())
        self._counts = self._build_tree([1.0] * self._n)
        self._remaining = self._n
        self._positive = int(np.count_nonzero(self._weights > 0))
        self._drift = 0.0

    @classmethod
    def build(cls, weights: np.ndarray) -> FenwickSampler:
        return cls(weights)

    def _build_tree(self, values: list[float]) -> list[float]:
        tree = [0.0] + values
        for i in range(1, self._n + 1):
            parent = i + (i & -i)
            if parent <= self._n:
                tree[parent] += tree[i]
        return tree

    def _add(self, tree: list[float], index: int, delta: float) -> None:
        i = index + 1
        while i <= self._n:
            tree[i] += delta
            i += i & -i

    def _prefix(self, tree: list[float], count: int) -> float:
        total = 0.0
        i = count
        while i > 0:
            total += tree[i]
            i -= i & -i
        return total

    def _search(self, tree: list[float], target: float) -> int:
        # Smallest index whose inclusive prefix sum exceeds target.
        pos = 0
        step = 1 << (self._n.bit_length() - 1)
        while step:
            nxt = pos + step
            if nxt <= self._n and tree[nxt] <= target:
                pos = nxt
                target -= tree[nxt]
            step >>= 1
        return min(pos, self._n - 1)

    def __len__(self) -> int:
        return self._n

    @property
    def remaining(self) -> int:
        """Number of individuals that have not been removed."""
        return self._remaining

    @property
    def total(self) -> float:
        """Total weight of the remaining individuals."""
        return self._prefix(self._tree, self._n)

    def is_removed(self, index: int) -> bool:
        return not self._live[index]

    def draw(self, u: float) -> int:
        """Map a uniform variate in [0, 1) to a remaining index.

        Raises:
            EmptyPopulationError: If every individual has been removed.
        """
        if self._remaining == 0:
            raise EmptyPopulationError("every individual has already been selected")
        if self._positive == 0:
            return self._search(self._counts, u * self._remaining)

        total = self.total
        if not total > 0:
            # Subtraction wiped out the small weights that remain.
            self._rebuild()
            total = self.total
        idx = self._search(self._tree, u * total)
        if not self._live[idx] or self._weights[idx] <= 0:
            idx = self._nearest_live(idx)
        return idx

    def remove(self, index: int) -> None:
        """Exclude an individual from all future draws.

        Raises:
            IndexOutOfRangeError: If index is not in [0, n).
            InvalidParameterError: If the individual was already removed.
        """
        if not 0 <= index < self._n:
            raise IndexOutOfRangeError(f"index {index} is out of bounds for population with {self._n} individuals")
        if not self._live[index]:
            raise InvalidParameterError(f"individual {index} was already removed")
        self._live[index] = False
        weight = float(self._weights[index])
        if weight > 0:
            self._add(self._tree, index, -weight)
            self._positive -= 1
            self._drift += weight * np.finfo(np.float64).eps
        self._add(self._counts, index, -1.0)
        self._remaining -= 1
        if self._positive and self._drift > DRIFT_TOLERANCE * self.total:
            self._rebuild()

    def _rebuild(self) -> None:
        # Removing a weight that dominated the tree cancels the small weights
        # sharing its nodes.
        logger.debug("rebuilding weight tree with %d individuals remaining", self._remaining)
        self._tree = self._build_tree(np.where(self._live, self._weights, 0.0).tolist())
        self._drift = 0.0

    def _nearest_live(self, idx: int) -> int:
        candidates = np.flatnonzero(self._live & (self._weights > 0))
        after = candidates[candidates >= idx]
        return int(after[0]) if after.size else int(candidates[-1])
