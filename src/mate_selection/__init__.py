"""mate-selection: Mate selection strategies for evolutionary algorithms.

A numpy implementation of fitness-based parent selection. Given the fitness
scores of a population (higher is better), strategies draw individuals and
the pair generator turns those draws into mate pairs for one generation.
Every draw takes an explicit ``np.random.Generator`` so runs are reproducible.

Example (pairs for one generation):
    >>> import numpy as np
    >>> from mate_selection import PairGenerator, Tournament
    >>> rng = np.random.default_rng(42)
    >>> scores = [3.0, 1.0, 4.0, 1.5, 9.0, 2.6]
    >>> generator = PairGenerator(Tournament(size=2), distinctness="distinct_across_generation")
    >>> mates = generator.pairs(scores, rng, count=3)
    >>> sorted(mates.ravel().tolist())
    [0, 1, 2, 3, 4, 5]

Example (configuration by name):
    >>> from mate_selection import SelectionConfig, pairs
    >>> config = SelectionConfig("boltzmann", {"temperature": 0.5})
    >>> pairs([0.1, 0.2, 0.9, 0.4], config, rng, count=2).shape
    (2, 2)
"""

from mate_selection.config import Distinctness, SelectionConfig
from mate_selection.distribution import (
    NegativeScorePolicy,
    RankScheme,
    WeightTransform,
    normalize,
)
from mate_selection.errors import (
    EmptyPopulationError,
    IndexOutOfRangeError,
    InsufficientPopulationError,
    InvalidParameterError,
    MateSelectionError,
)
from mate_selection.pairs import MatePair, PairGenerator, generate, pairs, reduce_repeats
from mate_selection.protocols import RemovalRound, SelectionRound, SelectionStrategy
from mate_selection.random_source import from_entropy, make_rng, spawn
from mate_selection.registry import SelectionRegistry, list_selections
from mate_selection.sampler import AliasSampler, CumulativeSampler, FenwickSampler, SamplerKind
from mate_selection.selection import (
    Boltzmann,
    Normalized,
    Percentile,
    RankBased,
    RouletteWheel,
    StochasticUniversalSampling,
    Tournament,
    Uniform,
)

__all__ = [
    # Strategies
    "Boltzmann",
    "Normalized",
    "Percentile",
    "RankBased",
    "RouletteWheel",
    "StochasticUniversalSampling",
    "Tournament",
    "Uniform",
    # Pair generation
    "Distinctness",
    "MatePair",
    "PairGenerator",
    "generate",
    "pairs",
    "reduce_repeats",
    # Configuration
    "SelectionConfig",
    "SelectionRegistry",
    "list_selections",
    # Weights and sampling
    "AliasSampler",
    "CumulativeSampler",
    "FenwickSampler",
    "NegativeScorePolicy",
    "RankScheme",
    "SamplerKind",
    "WeightTransform",
    "normalize",
    # Random sources
    "from_entropy",
    "make_rng",
    "spawn",
    # Protocols
    "RemovalRound",
    "SelectionRound",
    "SelectionStrategy",
    # Errors
    "EmptyPopulationError",
    "IndexOutOfRangeError",
    "InsufficientPopulationError",
    "InvalidParameterError",
    "MateSelectionError",
]

__version__ = "0.1.0"
