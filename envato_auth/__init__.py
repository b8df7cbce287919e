"""
Envato OAuth 2.0 authentication strategy.
"""

from envato_auth.core.exceptions import (
    ConfigurationError,
    EnvatoAuthException,
    MalformedResponseError,
    UpstreamFetchError,
)
from envato_auth.domain.schemas.envato import EnvatoProfile, EnvatoStrategyOptions
from envato_auth.services.oauth import (
    AuthenticationResult,
    EnvatoStrategy,
    OAuth2Client,
    OAuthError,
    OAuthRequestError,
    OAuthTokens,
    StrategyRegistry,
    default_registry,
)

__version__ = "0.1.0"

# Alias matching the common "Strategy" export of passport-style packages
Strategy = EnvatoStrategy

__all__ = [
    "AuthenticationResult",
    "ConfigurationError",
    "EnvatoAuthException",
    "EnvatoProfile",
    "EnvatoStrategy",
    "EnvatoStrategyOptions",
    "MalformedResponseError",
    "OAuth2Client",
    "OAuthError",
    "OAuthRequestError",
    "OAuthTokens",
    "Strategy",
    "StrategyRegistry",
    "UpstreamFetchError",
    "default_registry",
]
