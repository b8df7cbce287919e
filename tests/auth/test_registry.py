"""
Tests for the strategy registry.
"""
import pytest

from envato_auth.core.exceptions import ConfigurationError
from envato_auth.services.oauth.envato import EnvatoStrategy
from envato_auth.services.oauth.registry import StrategyRegistry, default_registry


class TestStrategyRegistry:
    """Test registering and looking up strategies."""

    def test_use_registers_by_name(self, strategy):
        """Strategies are registered under their own name."""
        registry = StrategyRegistry()

        registry.use(strategy)

        assert "envato" in registry
        assert registry.get("envato") is strategy
        assert registry.names() == ["envato"]

    def test_use_with_explicit_name(self, strategy):
        """An explicit name overrides the strategy name."""
        registry = StrategyRegistry().use(strategy, name="envato-sandbox")

        assert registry.get("envato-sandbox") is strategy
        assert "envato" not in registry

    def test_use_replaces_existing(self, strategy, envato_options, verify):
        """Registering the same name again replaces the strategy."""
        replacement = EnvatoStrategy(envato_options, verify)
        registry = StrategyRegistry().use(strategy).use(replacement)

        assert registry.get("envato") is replacement
        assert len(registry) == 1

    def test_unnamed_strategy_rejected(self):
        """Strategies without a name cannot be registered."""
        with pytest.raises(ConfigurationError):
            StrategyRegistry().use(object())

    def test_unknown_strategy(self):
        """Looking up an unknown name raises ConfigurationError."""
        with pytest.raises(ConfigurationError) as exc:
            StrategyRegistry().get("github")

        assert "github" in str(exc.value)

    def test_unuse(self, strategy):
        """Strategies can be removed."""
        registry = StrategyRegistry().use(strategy)

        registry.unuse("envato")

        assert "envato" not in registry

    def test_default_registry(self):
        """A shared registry is available at module level."""
        assert isinstance(default_registry, StrategyRegistry)
