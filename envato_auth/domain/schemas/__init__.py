"""
Domain schemas for the Envato strategy.
"""

from .envato import (
    DEFAULT_ACCOUNT_URL,
    DEFAULT_AUTHORIZATION_URL,
    DEFAULT_EMAIL_URL,
    DEFAULT_TOKEN_URL,
    DEFAULT_USER_AGENT,
    DEFAULT_USERNAME_URL,
    PROVIDER_NAME,
    EnvatoProfile,
    EnvatoStrategyOptions,
)

__all__ = [
    "DEFAULT_ACCOUNT_URL",
    "DEFAULT_AUTHORIZATION_URL",
    "DEFAULT_EMAIL_URL",
    "DEFAULT_TOKEN_URL",
    "DEFAULT_USER_AGENT",
    "DEFAULT_USERNAME_URL",
    "PROVIDER_NAME",
    "EnvatoProfile",
    "EnvatoStrategyOptions",
]
