"""
OAuth integration for Envato authentication.

Provides a generic OAuth2 client and the Envato strategy built on it.
"""

from .base import (
    OAuth2Client,
    OAuthError,
    OAuthRequestError,
    OAuthTokens,
)
from .envato import AuthenticationResult, EnvatoStrategy
from .registry import StrategyRegistry, default_registry

__all__ = [
    # OAuth2 engine
    "OAuth2Client",
    "OAuthError",
    "OAuthRequestError",
    "OAuthTokens",

    # Strategies
    "AuthenticationResult",
    "EnvatoStrategy",

    # Registry
    "StrategyRegistry",
    "default_registry",
]
