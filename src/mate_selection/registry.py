"""Registry of mate selection strategies.

Strategies are registered by name together with a factory (usually the
strategy class itself) so they can be chosen from configuration files and
discovered programmatically. Built-in strategies are registered when
``mate_selection.selection`` is imported.

Basic usage:
    ```python
    from mate_selection.registry import SelectionRegistry, list_selections

    strategy = SelectionRegistry.get("tournament", size=3)
    available = list_selections()  # ["boltzmann", "normalized", ...]
    ```

Registering a custom strategy:
    ```python
    SelectionRegistry.register("steep_rank", lambda: RankBased(scheme="exponential", median=5))
    ```
"""

from collections.abc import Callable

from mate_selection.errors import InvalidParameterError
from mate_selection.protocols import SelectionStrategy


class SelectionRegistry:
    """Class-level registry of selection strategy factories.

    Class Attributes:
        _registry: Dictionary mapping strategy names to factories. A factory
            accepts the strategy's parameters as keyword arguments and returns
            a SelectionStrategy.

    Example:
        ```python
        SelectionRegistry.register("roulette", RouletteWheel)
        strategy = SelectionRegistry.get("roulette", negative_policy="shift")
        SelectionRegistry.list()  # ["roulette"]
        ```
    """

    _registry: dict[str, Callable[..., SelectionStrategy]] = {}

    @classmethod
    def register(cls, name: str, factory: Callable[..., SelectionStrategy]) -> None:
        """Register a strategy factory.

        Args:
            name: Unique name for the strategy. Will overwrite if already exists.
            factory: Callable accepting keyword parameters and returning a
                SelectionStrategy.
        """
        cls._registry[name] = factory

    @classmethod
    def get(cls, name: str, **kwargs) -> SelectionStrategy:
        """Build a configured strategy by name.

        Args:
            name: Name of the registered strategy.
            **kwargs: Parameters passed to the factory.

        Returns:
            The configured strategy.

        Raises:
            KeyError: If the strategy name is not registered. The message lists
                the available strategies.
            InvalidParameterError: If the factory rejects the parameters.
        """
        if name not in cls._registry:
            available = ", ".join(sorted(cls._registry.keys())) or "none"
            raise KeyError(f"Selection strategy '{name}' not found. Available strategies: {available}")
        factory = cls._registry[name]
        try:
            return factory(**kwargs)
        except TypeError as exc:
            # Unknown keyword arguments for the factory.
            raise InvalidParameterError(f"invalid parameters for selection strategy '{name}': {exc}") from exc

    @classmethod
    def list(cls) -> list[str]:
        """Return the sorted list of registered strategy names."""
        return sorted(cls._registry.keys())


def list_selections() -> list[str]:
    """List all registered selection strategies.

    Convenience function that returns SelectionRegistry.list().
    """
    return SelectionRegistry.list()
