"""
Custom exceptions for the Envato strategy.
"""
from typing import Any, Dict, Optional


class EnvatoAuthException(Exception):
    """Base exception for all envato-auth exceptions."""

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


class ConfigurationError(EnvatoAuthException):
    """Strategy or OAuth2 client options were rejected."""

    def __init__(self, message: str, option: Optional[str] = None):
        details = {"option": option} if option else {}
        super().__init__(message, details=details)


class UpstreamFetchError(EnvatoAuthException):
    """
    A request to Envato failed at the transport level.

    ``message`` names the stage that failed and ``oauth_error`` holds the
    underlying error reported by the HTTP layer.
    """

    def __init__(self, message: str, oauth_error: Optional[BaseException] = None):
        self.oauth_error = oauth_error
        details: Dict[str, Any] = {}
        if oauth_error is not None:
            details["cause"] = str(oauth_error)
            status_code = getattr(oauth_error, "status_code", None)
            if status_code is not None:
                details["status_code"] = status_code
        super().__init__(message, details=details)

    def __str__(self) -> str:
        if self.oauth_error is None:
            return self.message
        return f"{self.message}: {self.oauth_error}"


class MalformedResponseError(EnvatoAuthException):
    """An Envato response body could not be parsed into the expected shape."""

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        self.cause = cause
        details = {"cause": str(cause)} if cause is not None else {}
        super().__init__(message, details=details)
