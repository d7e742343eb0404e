"""Random number sources for reproducible selection.

Every sampling call in this package takes an explicit ``np.random.Generator``.
This module builds those generators from seeds and splits them into
independent streams for parallel workers. Nothing here reads the wall clock
or operating system entropy unless ``from_entropy`` is called.

Example:
    >>> rng = make_rng(42)
    >>> workers = spawn(42, 4)
    >>> len(workers)
    4
"""

from __future__ import annotations

import numpy as np

from mate_selection.errors import InvalidParameterError

SeedLike = int | np.random.SeedSequence | np.random.Generator


def make_rng(seed: SeedLike) -> np.random.Generator:
    """Create a generator from an explicit seed.

    Args:
        seed: Non-negative integer, SeedSequence, or an existing Generator
            (returned unchanged).

    Returns:
        A numpy Generator.

    Raises:
        InvalidParameterError: If seed is None, negative, or of an unsupported type.
    """
    if isinstance(seed, np.random.Generator):
        return seed
    if isinstance(seed, np.random.SeedSequence):
        return np.random.default_rng(seed)
    if seed is None:
        raise InvalidParameterError(
            "an explicit seed is required, use from_entropy() to seed from the environment"
        )
    if isinstance(seed, bool) or not isinstance(seed, (int, np.integer)):
        raise InvalidParameterError(f"seed must be an integer, SeedSequence or Generator, got {type(seed).__name__}")
    if seed < 0:
        raise InvalidParameterError(f"seed must be non-negative, got {seed}")
    return np.random.default_rng(int(seed))


def from_entropy() -> np.random.Generator:
    """Create a generator seeded from operating system entropy."""
    return np.random.default_rng()


def spawn(seed: SeedLike, n_streams: int) -> list[np.random.Generator]:
    """Split a seed into independent generators, one per worker.

    The streams are derived with ``SeedSequence.spawn`` so they never overlap
    and the split is reproducible for a fixed seed and stream count.

    Args:
        seed: Root seed (see ``make_rng``). A Generator is split with its own
            ``spawn`` method, which advances its internal seed sequence.
        n_streams: Number of generators to create. Must be positive.

    Returns:
        List of n_streams independent generators.

    Raises:
        InvalidParameterError: If n_streams is not positive or seed is invalid.
    """
    if n_streams <= 0:
        raise InvalidParameterError(f"n_streams must be positive, got {n_streams}")
    if isinstance(seed, np.random.Generator):
        return seed.spawn(n_streams)
    if isinstance(seed, np.random.SeedSequence):
        root = seed
    else:
        # Validate through make_rng so both paths accept the same seeds.
        make_rng(seed)
        root = np.random.SeedSequence(int(seed))
    return [np.random.default_rng(child) for child in root.spawn(n_streams)]
