"""
Strategy registry.

Lets a host framework look strategies up by name, e.g. to route
``/auth/envato`` to the Envato strategy.
"""
from typing import Any, Dict, List, Optional

import structlog

from envato_auth.core.exceptions import ConfigurationError

logger = structlog.get_logger(__name__)


class StrategyRegistry:
    """Named collection of authentication strategies."""

    def __init__(self) -> None:
        self._strategies: Dict[str, Any] = {}

    def use(self, strategy: Any, name: Optional[str] = None) -> "StrategyRegistry":
        """
        Register a strategy.

        Args:
            strategy: Strategy instance
            name: Registration name, defaults to ``strategy.name``

        Returns:
            The registry, so calls can be chained

        Raises:
            ConfigurationError: If no name can be determined
        """
        name = name or getattr(strategy, "name", None)
        if not name:
            raise ConfigurationError("Authentication strategies must have a name", option="name")

        if name in self._strategies:
            logger.warning("strategy_replaced", strategy=name)
        self._strategies[name] = strategy
        logger.info("strategy_registered", strategy=name)
        return self

    def unuse(self, name: str) -> "StrategyRegistry":
        self._strategies.pop(name, None)
        return self

    def get(self, name: str) -> Any:
        """
        Look up a registered strategy.

        Raises:
            ConfigurationError: If no strategy is registered under ``name``
        """
        try:
            return self._strategies[name]
        except KeyError:
            raise ConfigurationError(
                f"Unknown authentication strategy '{name}'", option="strategy"
            ) from None

    def names(self) -> List[str]:
        return sorted(self._strategies)

    def __contains__(self, name: object) -> bool:
        return name in self._strategies

    def __len__(self) -> int:
        return len(self._strategies)


default_registry = StrategyRegistry()
