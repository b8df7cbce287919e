"""
OAuth 2.0 Client

Generic authorization-code engine used by provider strategies: builds the
authorization redirect, exchanges codes and refresh tokens at the token
endpoint and issues bearer-authenticated GET requests.
"""
import asyncio
import json
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict, Mapping, Optional, Sequence, Tuple
from urllib.parse import parse_qsl, urlencode

import aiohttp
import structlog
from pydantic import BaseModel, Field, ValidationError, field_validator

from envato_auth.core.exceptions import ConfigurationError, MalformedResponseError
from envato_auth.core.logging import token_hint

logger = structlog.get_logger(__name__)


class OAuthTokens(BaseModel):
    """OAuth token information."""
    access_token: str
    token_type: str = "Bearer"
    expires_in: Optional[int] = None
    refresh_token: Optional[str] = None
    scope: Optional[str] = None

    # Full token endpoint response
    params: Dict[str, Any] = Field(default_factory=dict)

    @field_validator("expires_in", mode="before")
    @classmethod
    def parse_expires_in(cls, v: Any) -> Any:
        # Servers send seconds as int, float or numeric string
        if v is None or v == "":
            return None
        if isinstance(v, (str, float)):
            try:
                return int(float(v))
            except OverflowError as e:
                raise ValueError(f"expires_in out of range: {v!r}") from e
        return v


class OAuthError(Exception):
    """Error payload returned by the authorization server."""
    def __init__(self, error: str, description: Optional[str] = None):
        self.error = error
        self.description = description
        super().__init__(f"{error}: {description}" if description else error)


class OAuthRequestError(Exception):
    """An HTTP request made by the client failed or returned a non-2xx status."""
    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        data: Optional[str] = None,
    ):
        self.status_code = status_code
        self.data = data
        super().__init__(message)


class OAuth2Client:
    """Authorization-code OAuth 2.0 client."""

    def __init__(
        self,
        client_id: str,
        client_secret: str,
        authorization_url: str,
        token_url: str,
        callback_url: Optional[str] = None,
        custom_headers: Optional[Mapping[str, str]] = None,
        scope_separator: str = " ",
        timeout: float = 30.0,
        session: Optional[aiohttp.ClientSession] = None,
    ):
        """
        Initialize the client.

        Args:
            client_id: Application client ID
            client_secret: Application client secret
            authorization_url: Authorization endpoint
            token_url: Token endpoint
            callback_url: Redirect URI registered with the provider
            custom_headers: Headers added to every request
            scope_separator: Separator used to join requested scopes
            timeout: Total timeout in seconds for each request
            session: Optional shared session; one is opened per request otherwise

        Raises:
            ConfigurationError: If a required option is missing
        """
        if not client_id:
            raise ConfigurationError("OAuth2 client requires a client_id option", option="client_id")
        if not client_secret:
            raise ConfigurationError(
                "OAuth2 client requires a client_secret option", option="client_secret"
            )
        if not authorization_url:
            raise ConfigurationError(
                "OAuth2 client requires an authorization_url option", option="authorization_url"
            )
        if not token_url:
            raise ConfigurationError("OAuth2 client requires a token_url option", option="token_url")

        self.client_id = client_id
        self.client_secret = client_secret
        self.authorization_url = authorization_url
        self.token_url = token_url
        self.callback_url = callback_url
        self.custom_headers: Dict[str, str] = dict(custom_headers or {})
        self.scope_separator = scope_separator
        self.timeout = aiohttp.ClientTimeout(total=timeout)
        self._session = session

    def generate_authorization_url(
        self,
        state: Optional[str] = None,
        scope: Optional[Sequence[str]] = None,
        redirect_uri: Optional[str] = None,
        **kwargs: str,
    ) -> str:
        """
        Generate the authorization redirect URL.

        Args:
            state: CSRF protection state parameter
            scope: Scopes to request
            redirect_uri: Overrides the configured callback URL
            **kwargs: Additional provider-specific parameters

        Returns:
            Authorization URL
        """
        params: Dict[str, str] = {"response_type": "code", "client_id": self.client_id}
        redirect_uri = redirect_uri or self.callback_url
        if redirect_uri:
            params["redirect_uri"] = redirect_uri
        if scope:
            params["scope"] = self.scope_separator.join(scope)
        if state:
            params["state"] = state
        params.update(kwargs)

        separator = "&" if "?" in self.authorization_url else "?"
        return f"{self.authorization_url}{separator}{urlencode(params)}"

    async def exchange_code_for_tokens(
        self, code: str, redirect_uri: Optional[str] = None
    ) -> OAuthTokens:
        """
        Exchange an authorization code for tokens.

        Args:
            code: Authorization code from the OAuth callback
            redirect_uri: Overrides the configured callback URL

        Returns:
            OAuth tokens

        Raises:
            OAuthError: If the provider rejects the code
            OAuthRequestError: If the token request fails
            MalformedResponseError: If the token response cannot be read
        """
        payload = {
            "grant_type": "authorization_code",
            "code": code,
            "client_id": self.client_id,
            "client_secret": self.client_secret,
        }
        redirect_uri = redirect_uri or self.callback_url
        if redirect_uri:
            payload["redirect_uri"] = redirect_uri

        tokens = await self._request_token(payload, context="exchange_code")
        logger.info(
            "oauth_tokens_obtained",
            has_refresh_token=bool(tokens.refresh_token),
            expires_in=tokens.expires_in,
        )
        return tokens

    async def refresh_access_token(self, refresh_token: str) -> OAuthTokens:
        """
        Refresh an access token.

        Args:
            refresh_token: OAuth refresh token

        Returns:
            New OAuth tokens; the given refresh token is kept when the
            provider does not issue a new one

        Raises:
            OAuthError: If the provider rejects the refresh token
            OAuthRequestError: If the token request fails
            MalformedResponseError: If the token response cannot be read
        """
        payload = {
            "grant_type": "refresh_token",
            "refresh_token": refresh_token,
            "client_id": self.client_id,
            "client_secret": self.client_secret,
        }
        tokens = await self._request_token(payload, context="refresh_token")
        if not tokens.refresh_token:
            tokens = tokens.model_copy(update={"refresh_token": refresh_token})

        logger.info("oauth_token_refreshed", expires_in=tokens.expires_in)
        return tokens

    async def get(self, url: str, access_token: str) -> bytes:
        """
        Issue a GET request authenticated with a bearer token.

        Args:
            url: Resource URL
            access_token: OAuth access token

        Returns:
            Raw response body

        Raises:
            OAuthRequestError: On transport failure or a non-2xx status
        """
        headers = {"Authorization": f"Bearer {access_token}"}
        status, body = await self._request("GET", url, headers=headers)
        if not 200 <= status < 300:
            logger.warning(
                "oauth_resource_request_rejected",
                url=url,
                status=status,
                token=token_hint(access_token),
            )
            raise OAuthRequestError(
                f"GET {url} returned {status}", status_code=status, data=_preview(body)
            )
        return body

    async def _request_token(self, payload: Dict[str, str], context: str) -> OAuthTokens:
        status, body = await self._request(
            "POST",
            self.token_url,
            headers={"Content-Type": "application/x-www-form-urlencoded"},
            data=payload,
        )
        params = self._parse_token_body(body)

        if "error" in params:
            error = str(params["error"])
            description = params.get("error_description")
            logger.error("oauth_token_error", context=context, error=error, description=description)
            raise OAuthError(error, description)

        if not 200 <= status < 300:
            logger.error("oauth_token_request_failed", context=context, status=status)
            raise OAuthRequestError(
                f"token endpoint returned {status}", status_code=status, data=_preview(body)
            )

        access_token = params.get("access_token")
        if not access_token:
            logger.error("oauth_token_missing", context=context)
            raise OAuthError("invalid_grant", "No access_token in response")

        try:
            return OAuthTokens.model_validate(
                {
                    "access_token": access_token,
                    "token_type": params.get("token_type") or "Bearer",
                    "expires_in": params.get("expires_in"),
                    "refresh_token": params.get("refresh_token"),
                    "scope": params.get("scope"),
                    "params": params,
                }
            )
        except ValidationError as e:
            logger.error("oauth_token_response_invalid", context=context, error=str(e))
            raise MalformedResponseError("token endpoint returned a malformed response", e) from e

    @staticmethod
    def _parse_token_body(body: bytes) -> Dict[str, Any]:
        try:
            text = body.decode("utf-8")
        except UnicodeDecodeError:
            return {}
        # Some servers answer with form encoding instead of JSON
        try:
            parsed = json.loads(text)
        except ValueError:
            return dict(parse_qsl(text))
        return parsed if isinstance(parsed, dict) else {}

    async def _request(
        self,
        method: str,
        url: str,
        headers: Optional[Dict[str, str]] = None,
        data: Optional[Dict[str, str]] = None,
    ) -> Tuple[int, bytes]:
        request_headers = {**self.custom_headers, **(headers or {})}
        try:
            async with self._client_session() as session:
                async with session.request(
                    method,
                    url,
                    headers=request_headers,
                    data=data,
                    timeout=self.timeout,
                ) as response:
                    body = await response.read()
                    return response.status, body
        except asyncio.TimeoutError as e:
            logger.error("oauth_request_timeout", method=method, url=url)
            raise OAuthRequestError(f"{method} {url} timed out") from e
        except aiohttp.ClientError as e:
            logger.error("oauth_request_failed", method=method, url=url, error=str(e))
            raise OAuthRequestError(f"{method} {url} failed: {e}") from e

    @asynccontextmanager
    async def _client_session(self) -> AsyncIterator[aiohttp.ClientSession]:
        if self._session is not None:
            yield self._session
            return
        async with aiohttp.ClientSession(timeout=self.timeout) as session:
            yield session


def _preview(body: bytes, limit: int = 512) -> str:
    """Printable excerpt of a response body for error reports."""
    return body[:limit].decode("utf-8", errors="replace")
