"""Shared test fixtures for mate-selection tests.

This module provides common fixtures used across test modules:
- rng: Seeded random number generator
- distinct_scores: Small population with distinct scores
- assert_fits: Chi-square goodness of fit check for draws
"""

from collections.abc import Callable

import numpy as np
import pytest

# Chi-square critical values at p = 0.001, indexed by degrees of freedom.
CHI_SQUARE_CRITICAL = {1: 10.83, 2: 13.82, 3: 16.27, 4: 18.47, 5: 20.52, 6: 22.46, 7: 24.32, 8: 26.12, 9: 27.88}


@pytest.fixture
def rng() -> np.random.Generator:
    """Provide a seeded random number generator for deterministic tests."""
    return np.random.default_rng(42)


@pytest.fixture
def distinct_scores() -> np.ndarray:
    """Eight individuals with distinct scores; index 4 is the best, index 7 the worst."""
    return np.array([3.0, 1.0, 4.0, 1.5, 9.0, 2.6, 5.3, 0.5])


@pytest.fixture
def assert_fits() -> Callable[[np.ndarray, np.ndarray], None]:
    """Assert that draws follow a distribution, at significance level 0.001.

    Individuals with zero probability must never be drawn.
    """

    def check(draws: np.ndarray, probabilities: np.ndarray) -> None:
        probabilities = np.asarray(probabilities, dtype=np.float64)
        observed = np.bincount(draws, minlength=probabilities.size)
        expected = probabilities * len(draws)
        mask = expected > 0
        assert np.all(observed[~mask] == 0), "drew an individual with zero probability"

        statistic = float(np.sum((observed[mask] - expected[mask]) ** 2 / expected[mask]))
        dof = int(mask.sum()) - 1
        assert statistic < CHI_SQUARE_CRITICAL[dof], f"chi-square {statistic:.2f} with {dof} dof"

    return check
