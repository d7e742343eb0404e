"""Tests for the selection strategy registry.

- Test behavior, not implementation
- Each test should fail for one reason
- Assert both exception type and message fragment for error tests
"""

import importlib

import numpy as np
import pytest

from mate_selection.errors import InvalidParameterError
from mate_selection.registry import SelectionRegistry, list_selections
from mate_selection.selection import RankBased, RouletteWheel, Tournament


@pytest.fixture(autouse=True)
def isolate_registry():
    """Save and restore the registry to ensure test isolation."""
    saved = SelectionRegistry._registry.copy()
    SelectionRegistry._registry = {}
    yield
    SelectionRegistry._registry = saved


class TestSelectionRegistry:
    """Tests for SelectionRegistry class."""

    def test_register_adds_factory_to_registry(self) -> None:
        """Registering a factory adds it to the registry."""
        SelectionRegistry.register("test", RouletteWheel)
        assert "test" in SelectionRegistry.list()

    def test_register_overwrites_existing_strategy(self) -> None:
        """Registering with same name overwrites previous factory."""
        SelectionRegistry.register("test", RouletteWheel)
        SelectionRegistry.register("test", Tournament)

        assert SelectionRegistry.list() == ["test"]
        assert isinstance(SelectionRegistry.get("test"), Tournament)

    def test_get_returns_configured_strategy(self, rng) -> None:
        """Getting a strategy passes the parameters to its factory."""
        SelectionRegistry.register("test", Tournament)
        strategy = SelectionRegistry.get("test", size=4, replace=False)

        assert strategy == Tournament(size=4, replace=False)
        assert strategy.select_one([1.0, 2.0, 9.0, 3.0], rng) == 2

    def test_get_with_default_kwargs(self) -> None:
        """Getting a strategy with no kwargs uses factory defaults."""
        SelectionRegistry.register("test", Tournament)
        assert SelectionRegistry.get("test") == Tournament(size=2, replace=True)

    def test_lambda_factory(self) -> None:
        """Any callable returning a strategy can be registered."""
        SelectionRegistry.register("steep_rank", lambda: RankBased(scheme="exponential", median=5))
        strategy = SelectionRegistry.get("steep_rank")

        np.testing.assert_allclose(strategy.pdf([0.0, 1.0]), np.array([2**-0.2, 1.0]) / (1 + 2**-0.2))

    def test_get_raises_keyerror_for_unknown_strategy(self) -> None:
        """Getting an unregistered strategy raises KeyError with helpful message."""
        with pytest.raises(KeyError, match="Selection strategy 'unknown' not found"):
            SelectionRegistry.get("unknown")

    def test_keyerror_message_lists_available_strategies(self) -> None:
        """KeyError message includes list of available strategies."""
        SelectionRegistry.register("strategy1", RouletteWheel)
        SelectionRegistry.register("strategy2", Tournament)

        with pytest.raises(KeyError, match="Available strategies: strategy1, strategy2"):
            SelectionRegistry.get("unknown")

    def test_keyerror_message_shows_none_when_empty(self) -> None:
        """KeyError message shows 'none' when no strategies registered."""
        with pytest.raises(KeyError, match="Available strategies: none"):
            SelectionRegistry.get("unknown")

    def test_unknown_parameter_raises_invalid_parameter(self) -> None:
        """Keyword arguments the factory does not accept are reported by name."""
        SelectionRegistry.register("tournament", Tournament)
        with pytest.raises(InvalidParameterError, match="invalid parameters for selection strategy 'tournament'"):
            SelectionRegistry.get("tournament", temperature=0.5)

    def test_invalid_parameter_value_propagates(self) -> None:
        """Validation errors from the strategy reach the caller unchanged."""
        SelectionRegistry.register("tournament", Tournament)
        with pytest.raises(InvalidParameterError, match="tournament size must be at least 1"):
            SelectionRegistry.get("tournament", size=0)

    def test_list_returns_empty_for_new_registry(self) -> None:
        """List returns empty list when no strategies registered."""
        assert SelectionRegistry.list() == []

    def test_list_returns_sorted_strategy_names(self) -> None:
        """List returns all registered strategies in sorted order."""
        SelectionRegistry.register("zebra", RouletteWheel)
        SelectionRegistry.register("alpha", RouletteWheel)
        SelectionRegistry.register("beta", RouletteWheel)

        assert SelectionRegistry.list() == ["alpha", "beta", "zebra"]

    def test_factory_receives_all_kwargs(self) -> None:
        """Factory receives all keyword arguments passed to get()."""
        received_kwargs = {}

        def factory(**kwargs):
            received_kwargs.update(kwargs)
            return RouletteWheel()

        SelectionRegistry.register("test", factory)
        SelectionRegistry.get("test", size=5, temperature=0.5, custom=True)

        assert received_kwargs == {"size": 5, "temperature": 0.5, "custom": True}


class TestConvenienceFunctions:
    """Tests for module-level convenience functions."""

    def test_list_selections_returns_registry_list(self) -> None:
        """list_selections() returns same as SelectionRegistry.list()."""
        SelectionRegistry.register("test1", RouletteWheel)
        SelectionRegistry.register("test2", Tournament)

        assert list_selections() == SelectionRegistry.list()
        assert list_selections() == ["test1", "test2"]


class TestBuiltinRegistration:
    """Tests that importing the selection package registers the built-ins."""

    def test_builtin_strategies_registered(self) -> None:
        """Reloading the selection package registers every built-in strategy."""
        importlib.reload(importlib.import_module("mate_selection.selection"))

        assert list_selections() == [
            "boltzmann",
            "normalized",
            "percentile",
            "rank",
            "roulette",
            "sus",
            "tournament",
            "uniform",
        ]
