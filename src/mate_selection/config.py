"""Selection configuration.

A SelectionConfig names a registered strategy, its parameters, and the
pairing options used by the pair generator. It is validated when it is
created, so a bad configuration fails before any generation runs.

Example:
    >>> config = SelectionConfig("tournament", {"size": 3}, distinctness="distinct_within_pair")
    >>> config.build()
    Tournament(size=3, replace=True)
    >>> SelectionConfig.from_dict(config.to_dict()) == config
    True
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any

import mate_selection.selection  # noqa: F401
from mate_selection.errors import InvalidParameterError
from mate_selection.protocols import SelectionStrategy
from mate_selection.registry import SelectionRegistry
from mate_selection.sampler import SamplerKind


class Distinctness(str, Enum):
    """Constraint on repeated individuals in generated mate pairs.

    ALLOW_SELF_PAIR: pairs are drawn independently; (i, i) may occur.
    DISTINCT_WITHIN_PAIR: never (i, i); individuals may appear in many pairs.
    DISTINCT_ACROSS_GENERATION: every individual appears at most once in the
        whole generation, so at most n // 2 pairs can be drawn.
    """

    ALLOW_SELF_PAIR = "allow_self_pair"
    DISTINCT_WITHIN_PAIR = "distinct_within_pair"
    DISTINCT_ACROSS_GENERATION = "distinct_across_generation"


def as_distinctness(value: Distinctness | str) -> Distinctness:
    try:
        return Distinctness(value)
    except ValueError as exc:
        available = ", ".join(d.value for d in Distinctness)
        raise InvalidParameterError(f"unknown distinctness mode '{value}', expected one of: {available}") from exc


def as_sampler_kind(value: SamplerKind | str) -> SamplerKind:
    try:
        return SamplerKind(value)
    except ValueError as exc:
        available = ", ".join(k.value for k in SamplerKind)
        raise InvalidParameterError(f"unknown sampler '{value}', expected one of: {available}") from exc


@dataclass(frozen=True)
class SelectionConfig:
    """Validated selection strategy and pairing options.

    Attributes:
        strategy: Name of a registered strategy (see ``list_selections``).
        params: Keyword parameters for the strategy. Stored read-only.
        distinctness: Pairing constraint. Default DISTINCT_WITHIN_PAIR.
        elitism: Always include the best individual as the first parent of
            the first pair. Default False.
        sampler: Sampling structure for weighted strategies. Default CUMULATIVE.

    Raises:
        InvalidParameterError: If the strategy is unknown, a parameter is
            rejected, or an option has an unknown value.
    """

    strategy: str
    params: Mapping[str, Any] = field(default_factory=dict)
    distinctness: Distinctness = Distinctness.DISTINCT_WITHIN_PAIR
    elitism: bool = False
    sampler: SamplerKind = SamplerKind.CUMULATIVE

    def __post_init__(self) -> None:
        object.__setattr__(self, "params", MappingProxyType(dict(self.params)))
        object.__setattr__(self, "distinctness", as_distinctness(self.distinctness))
        object.__setattr__(self, "sampler", as_sampler_kind(self.sampler))
        if not isinstance(self.elitism, bool):
            raise InvalidParameterError(f"elitism must be a boolean, got {type(self.elitism).__name__}")
        # Build once so bad names and parameters fail here.
        self.build()

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, SelectionConfig):
            return NotImplemented
        return self.to_dict() == other.to_dict()

    def __hash__(self) -> int:
        return hash((self.strategy, tuple(sorted(self.params.items())), self.distinctness, self.elitism, self.sampler))

    def build(self) -> SelectionStrategy:
        """Create the configured strategy."""
        try:
            return SelectionRegistry.get(self.strategy, **self.params)
        except KeyError as exc:
            raise InvalidParameterError(exc.args[0]) from exc

    def to_dict(self) -> dict[str, Any]:
        """Plain mapping suitable for JSON, TOML or YAML configuration files."""
        return {
            "strategy": self.strategy,
            "params": {k: v.value if isinstance(v, Enum) else v for k, v in self.params.items()},
            "distinctness": self.distinctness.value,
            "elitism": self.elitism,
            "sampler": self.sampler.value,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> SelectionConfig:
        """Build a config from a plain mapping, as produced by ``to_dict``.

        Raises:
            InvalidParameterError: If keys are missing or unknown, or the
                configuration is invalid.
        """
        known = {"strategy", "params", "distinctness", "elitism", "sampler"}
        unknown = set(data) - known
        if unknown:
            raise InvalidParameterError(f"unknown selection config keys: {', '.join(sorted(unknown))}")
        if "strategy" not in data:
            raise InvalidParameterError("selection config requires 'strategy'")
        return cls(**dict(data))
