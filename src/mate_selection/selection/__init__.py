"""Mate selection strategies."""

from mate_selection.registry import SelectionRegistry
from mate_selection.selection.boltzmann import Boltzmann
from mate_selection.selection.rank import RankBased
from mate_selection.selection.roulette import RouletteWheel
from mate_selection.selection.sus import StochasticUniversalSampling
from mate_selection.selection.threshold import Normalized, Percentile
from mate_selection.selection.tournament import Tournament, tournament_pdf
from mate_selection.selection.uniform import Uniform

# Register built-in selection strategies
SelectionRegistry.register("uniform", Uniform)
SelectionRegistry.register("roulette", RouletteWheel)
SelectionRegistry.register("rank", RankBased)
SelectionRegistry.register("tournament", Tournament)
SelectionRegistry.register("sus", StochasticUniversalSampling)
SelectionRegistry.register("boltzmann", Boltzmann)
SelectionRegistry.register("normalized", Normalized)
SelectionRegistry.register("percentile", Percentile)

__all__ = [
    "Boltzmann",
    "Normalized",
    "Percentile",
    "RankBased",
    "RouletteWheel",
    "StochasticUniversalSampling",
    "Tournament",
    "Uniform",
    "tournament_pdf",
]
