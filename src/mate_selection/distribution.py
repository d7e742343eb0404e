"""Score to weight transforms.

This module turns a population's raw fitness scores into non-negative
sampling weights. Higher scores are better. Every transform returns a fresh
float64 array aligned with the input scores:

- proportional_weights: the score itself, with an explicit negative-score policy
- rank_weights: position, linear, or exponential rank weighting
- boltzmann_weights: exp(score / T)
- normalized_weights: standard score shifted by a cutoff
- percentile_weights: 0/1 truncation at a percentile
- uniform_weights: every individual weighted equally

If every weight produced by a transform is zero the population falls back to
uniform weights (see ``ensure_selectable``), so selection never fails because
of a degenerate fitness landscape.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Sequence
from enum import Enum

import numpy as np

from mate_selection.errors import EmptyPopulationError, InvalidParameterError

logger = logging.getLogger(__name__)

DEFAULT_EPSILON = 1e-10
MAX_FLOAT = float(np.finfo(np.float64).max)


class NegativeScorePolicy(str, Enum):
    """How fitness-proportionate transforms treat negative scores.

    CLAMP gives negative scores zero weight, so those individuals never mate.
    SHIFT subtracts the minimum score and adds epsilon, so everyone keeps a
    non-zero chance. REJECT raises InvalidParameterError.
    """

    CLAMP = "clamp"
    SHIFT = "shift"
    REJECT = "reject"


class RankScheme(str, Enum):
    """Weighting applied to ranks by ``rank_weights``."""

    POSITION = "position"
    LINEAR = "linear"
    EXPONENTIAL = "exponential"


class WeightTransform(str, Enum):
    """Names accepted by ``normalize``."""

    UNIFORM = "uniform"
    PROPORTIONAL = "proportional"
    RANK = "rank"
    BOLTZMANN = "boltzmann"
    NORMALIZED = "normalized"
    PERCENTILE = "percentile"


def as_scores(scores: Sequence[float] | np.ndarray) -> np.ndarray:
    """Validate scores and return them as a new 1D float64 array.

    Args:
        scores: Fitness score of each individual.

    Returns:
        Copy of the scores with shape (n,).

    Raises:
        EmptyPopulationError: If there are no scores.
        InvalidParameterError: If scores are not 1D, contain NaN, or are infinite.
    """
    try:
        arr = np.array(scores, dtype=np.float64)
    except (TypeError, ValueError) as exc:
        raise InvalidParameterError(f"scores must be real numbers: {exc}") from exc
    if arr.ndim != 1:
        raise InvalidParameterError(f"scores must be 1D, got shape {arr.shape}")
    if arr.size == 0:
        raise EmptyPopulationError("cannot select from an empty population")
    if np.isnan(arr).any():
        bad = int(np.flatnonzero(np.isnan(arr))[0])
        raise InvalidParameterError(f"scores must not contain NaN, found one at index {bad}")
    if not np.isfinite(arr).all():
        bad = int(np.flatnonzero(~np.isfinite(arr))[0])
        raise InvalidParameterError(f"scores must be finite, got {arr[bad]} at index {bad}")
    return arr


def rescale(weights: np.ndarray) -> np.ndarray:
    """Divide weights by their maximum when their sum could overflow.

    The distribution is unchanged and the rescaled total is at most n. Weights
    whose sum is safely representable are returned as they are.
    """
    peak = float(weights.max())
    if peak > MAX_FLOAT / weights.size:
        logger.debug("rescaling %d weights by their maximum %g", weights.size, peak)
        return weights / peak
    return weights


def ensure_selectable(weights: np.ndarray) -> np.ndarray:
    """Check weights and apply the uniform fallback.

    Args:
        weights: Candidate weights, shape (n,).

    Returns:
        The weights as float64 with a representable sum, or an array of ones
        if every weight is zero.

    Raises:
        InvalidParameterError: If any weight is negative, NaN, or infinite.
    """
    weights = np.asarray(weights, dtype=np.float64)
    if not np.isfinite(weights).all():
        raise InvalidParameterError("weights must be finite")
    if (weights < 0).any():
        raise InvalidParameterError(f"weights must be non-negative, got minimum {weights.min()}")
    if not (weights > 0).any():
        logger.debug("all %d weights are zero, falling back to uniform selection", weights.size)
        return np.ones_like(weights)
    return rescale(weights)


def probabilities(weights: np.ndarray) -> np.ndarray:
    """Normalize weights into a probability vector summing to one."""
    weights = ensure_selectable(weights)
    return weights / math.fsum(weights)


def uniform_weights(n: int) -> np.ndarray:
    """Equal weight for each of n individuals."""
    if n <= 0:
        raise EmptyPopulationError("cannot select from an empty population")
    return np.ones(n, dtype=np.float64)


def proportional_weights(
    scores: np.ndarray,
    negative_policy: NegativeScorePolicy = NegativeScorePolicy.CLAMP,
    epsilon: float = DEFAULT_EPSILON,
) -> np.ndarray:
    """Fitness-proportionate weights.

    Non-negative populations use their scores directly. Populations with a
    negative score are handled by ``negative_policy``:

        CLAMP:  weight_i = max(score_i, 0)
        SHIFT:  weight_i = score_i - min(score) + epsilon
        REJECT: raise InvalidParameterError

    Args:
        scores: Validated scores, shape (n,).
        negative_policy: Treatment of negative scores.
        epsilon: Offset added under SHIFT so the worst individual keeps a
            non-zero chance. Must be non-negative.

    Returns:
        Weights with shape (n,).
    """
    policy = NegativeScorePolicy(negative_policy)
    if epsilon < 0 or not math.isfinite(epsilon):
        raise InvalidParameterError(f"epsilon must be a non-negative finite number, got {epsilon}")

    min_score = scores.min()
    if min_score >= 0:
        return scores.copy()
    if policy is NegativeScorePolicy.REJECT:
        bad = int(np.argmin(scores))
        raise InvalidParameterError(f"negative score {scores[bad]} at index {bad} rejected by policy")
    if policy is NegativeScorePolicy.SHIFT:
        if scores.max() / 2 - min_score / 2 > MAX_FLOAT / 2:
            # The spread itself would overflow, halve both terms first.
            return scores / 2 - min_score / 2 + epsilon
        return scores - min_score + epsilon
    return np.maximum(scores, 0.0)


def rank_order(scores: np.ndarray) -> np.ndarray:
    """Ascending rank of each individual, 0 for the worst and n - 1 for the best.

    Ties are broken by original position: among equal scores the earlier index
    gets the lower rank.
    """
    order = np.argsort(scores, kind="stable")
    ranks = np.empty(scores.size, dtype=np.intp)
    ranks[order] = np.arange(scores.size)
    return ranks


def rank_weights(
    scores: np.ndarray,
    scheme: RankScheme = RankScheme.POSITION,
    selection_pressure: float = 1.0,
    median: float = 1.0,
) -> np.ndarray:
    """Rank-based weights, independent of score magnitudes.

    With r the descending rank scaled so the best individual has r = 0:

        POSITION:    weight = ascending rank, 1 for the worst up to n for the best
        LINEAR:      weight = 1 + sp - 2 * sp * r / (n - 1)
        EXPONENTIAL: weight = exp(-ln(2) * r / median)

    Under LINEAR, sp = 0 is uniform and sp = 1 never selects the worst
    individual. Under EXPONENTIAL roughly half the draws come from the
    ``median`` best individuals.

    Args:
        scores: Validated scores, shape (n,).
        scheme: Rank weighting scheme.
        selection_pressure: LINEAR pressure in [0, 1].
        median: EXPONENTIAL half-weight rank, at least 1.

    Returns:
        Weights with shape (n,).
    """
    scheme = RankScheme(scheme)
    ascending = rank_order(scores)
    n = scores.size

    if scheme is RankScheme.POSITION:
        return (ascending + 1).astype(np.float64)

    descending = (n - 1 - ascending).astype(np.float64)
    if scheme is RankScheme.LINEAR:
        if not 0.0 <= selection_pressure <= 1.0:
            raise InvalidParameterError(f"selection_pressure must be in [0, 1], got {selection_pressure}")
        # A single individual has no spread, any scale works.
        scaled = descending / (n - 1) if n > 1 else descending
        return 1.0 + selection_pressure - 2.0 * selection_pressure * scaled

    if not median >= 1 or not math.isfinite(median):
        raise InvalidParameterError(f"median must be at least 1, got {median}")
    return np.exp(-math.log(2.0) * descending / median)


def boltzmann_weights(scores: np.ndarray, temperature: float) -> np.ndarray:
    """Exponential weights exp(score / T).

    The maximum score is subtracted before exponentiation, which leaves the
    normalized distribution unchanged and keeps the best weight at 1.0.

    Raises:
        InvalidParameterError: If temperature is not a positive finite number.
    """
    if not temperature > 0 or not math.isfinite(temperature):
        raise InvalidParameterError(f"temperature must be positive, got {temperature}")
    return np.exp((scores - scores.max()) / temperature)


def normalized_weights(scores: np.ndarray, cutoff: float) -> np.ndarray:
    """Standard-score weights with a cutoff measured in standard deviations.

    Scores are shifted to zero mean and unit variance, then ``cutoff`` is
    subtracted and negative values are clamped to zero. Individuals scoring
    more than ``cutoff`` deviations below the mean never mate. A population
    with zero variance gets uniform weights.
    """
    if not math.isfinite(cutoff):
        raise InvalidParameterError(f"cutoff must be finite, got {cutoff}")
    centered = scores - scores.mean()
    std = math.sqrt(float(np.mean(centered**2)))
    if std == 0.0:
        return np.ones_like(scores)
    return np.maximum(centered / std - cutoff, 0.0)


def percentile_weights(scores: np.ndarray, percentile: float) -> np.ndarray:
    """Truncation weights: 1.0 at or above the percentile score, else 0.0.

    At 0 everyone may mate, at 1 only the best individual (and any ties with
    it) may mate.
    """
    if not 0.0 <= percentile <= 1.0:
        raise InvalidParameterError(f"percentile must be in [0, 1], got {percentile}")
    n = scores.size
    # Round half away from zero, not to even.
    position = min(math.floor(percentile * n + 0.5), n - 1)
    threshold = np.partition(scores, position)[position]
    return (scores >= threshold).astype(np.float64)


def normalize(
    scores: Sequence[float] | np.ndarray,
    kind: WeightTransform | str,
    **params,
) -> np.ndarray:
    """Validate scores and transform them into selectable weights.

    Args:
        scores: Fitness score of each individual.
        kind: Transform name, one of WeightTransform.
        **params: Keyword arguments of the matching ``*_weights`` function
            (for example ``temperature`` for BOLTZMANN).

    Returns:
        Weights with shape (n,) and a positive sum.

    Example:
        >>> normalize([1.0, -2.0, 3.0], "proportional")
        array([1., 0., 3.])
        >>> normalize([0.0, 0.0], "proportional")
        array([1., 1.])
    """
    try:
        kind = WeightTransform(kind)
    except ValueError as exc:
        available = ", ".join(t.value for t in WeightTransform)
        raise InvalidParameterError(f"unknown weight transform '{kind}', expected one of: {available}") from exc

    arr = as_scores(scores)
    if kind is WeightTransform.UNIFORM:
        weights = uniform_weights(arr.size)
    elif kind is WeightTransform.PROPORTIONAL:
        weights = proportional_weights(arr, **params)
    elif kind is WeightTransform.RANK:
        weights = rank_weights(arr, **params)
    elif kind is WeightTransform.BOLTZMANN:
        weights = boltzmann_weights(arr, **params)
    elif kind is WeightTransform.NORMALIZED:
        weights = normalized_weights(arr, **params)
    else:
        weights = percentile_weights(arr, **params)
    return ensure_selectable(weights)
