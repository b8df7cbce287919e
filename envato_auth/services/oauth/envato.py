"""
Envato OAuth Strategy

Authenticates users against the Envato marketplace. Protocol mechanics are
delegated to an OAuth2Client; this module adds the Envato endpoints, the
mandatory User-Agent header and the profile lookup, which needs three
calls to the market API (account, username and email).
"""
import inspect
import json
from typing import Any, Awaitable, Callable, Dict, Mapping, Optional, Sequence, Union

import aiohttp
import structlog
from pydantic import BaseModel, ConfigDict, ValidationError

from envato_auth.core.config import Settings, get_settings
from envato_auth.core.exceptions import (
    ConfigurationError,
    MalformedResponseError,
    UpstreamFetchError,
)
from envato_auth.core.logging import log_error_details, token_hint
from envato_auth.domain.schemas.envato import (
    PROVIDER_NAME,
    EnvatoProfile,
    EnvatoStrategyOptions,
)
from .base import OAuth2Client, OAuthRequestError, OAuthTokens

logger = structlog.get_logger(__name__)

# verify(access_token, refresh_token, profile) -> user, may be a coroutine function
VerifyCallback = Callable[[str, Optional[str], Optional[EnvatoProfile]], Union[Any, Awaitable[Any]]]

PROFILE_STAGE = "failed to fetch user profile"
USERNAME_STAGE = "failed to fetch username"
EMAIL_STAGE = "failed to fetch email"
TOKEN_STAGE = "failed to obtain access token"
REFRESH_STAGE = "failed to refresh access token"


class _EnvatoAccount(BaseModel):
    """`account` object of the account.json response."""

    model_config = ConfigDict(extra="ignore", coerce_numbers_to_str=True)

    image: Optional[str] = None
    firstname: Optional[str] = None
    surname: Optional[str] = None
    available_earnings: Optional[str] = None
    total_deposits: Optional[str] = None
    balance: Optional[str] = None
    country: Optional[str] = None


class _EnvatoAccountResponse(BaseModel):
    model_config = ConfigDict(extra="ignore")

    account: _EnvatoAccount


class _EnvatoUsernameResponse(BaseModel):
    model_config = ConfigDict(extra="ignore", coerce_numbers_to_str=True)

    username: Optional[str] = None


class _EnvatoEmailResponse(BaseModel):
    model_config = ConfigDict(extra="ignore")

    email: Optional[str] = None


class AuthenticationResult(BaseModel):
    """Outcome of a completed authorization-code callback."""

    user: Any = None
    tokens: OAuthTokens
    profile: Optional[EnvatoProfile] = None

    @property
    def authenticated(self) -> bool:
        return bool(self.user)


class EnvatoStrategy:
    """
    Envato authentication strategy.

    Applications supply a ``verify`` callback which receives the access
    token, refresh token and normalized profile and returns the application
    user, or a falsy value if the credentials are not acceptable.

    Example::

        strategy = EnvatoStrategy(
            {
                "clientID": "123-456-789",
                "clientSecret": "shhh-its-a-secret",
                "callbackURL": "https://www.example.net/auth/envato/callback",
                "userAgent": "example.net",
            },
            verify,
        )
    """

    name = PROVIDER_NAME

    def __init__(
        self,
        options: Union[EnvatoStrategyOptions, Mapping[str, Any]],
        verify: VerifyCallback,
        session: Optional[aiohttp.ClientSession] = None,
    ):
        """
        Initialize the strategy.

        Args:
            options: Strategy options, as a model or a mapping
            verify: Callback resolving the application user
            session: Optional shared aiohttp session for the OAuth2 client

        Raises:
            ConfigurationError: If the options are rejected
        """
        if not callable(verify):
            raise ConfigurationError("Envato strategy requires a verify callback", option="verify")

        if isinstance(options, EnvatoStrategyOptions):
            self.options = options
        else:
            try:
                self.options = EnvatoStrategyOptions.model_validate(dict(options or {}))
            except ValidationError as e:
                raise ConfigurationError(f"Invalid Envato strategy options: {e}") from e

        self._verify = verify
        self._headers = self.options.effective_headers()
        self._oauth2 = OAuth2Client(
            client_id=self.options.client_id,
            client_secret=self.options.client_secret,
            authorization_url=self.options.authorization_url,
            token_url=self.options.token_url,
            callback_url=self.options.callback_url,
            custom_headers=self._headers,
            scope_separator=self.options.scope_separator,
            timeout=self.options.timeout,
            session=session,
        )

    @classmethod
    def from_settings(
        cls,
        verify: VerifyCallback,
        settings: Optional[Settings] = None,
        **overrides: Any,
    ) -> "EnvatoStrategy":
        """
        Build a strategy from package settings.

        Args:
            verify: Callback resolving the application user
            settings: Settings to read, defaults to the cached settings
            **overrides: Option values taking precedence over settings
        """
        settings = settings or get_settings()
        options: Dict[str, Any] = {
            "client_id": settings.ENVATO_CLIENT_ID or "",
            "client_secret": settings.ENVATO_CLIENT_SECRET or "",
            "callback_url": settings.ENVATO_CALLBACK_URL,
            "user_agent": settings.ENVATO_USER_AGENT,
            "scope": settings.ENVATO_SCOPE,
            "timeout": settings.ENVATO_HTTP_TIMEOUT_SECONDS,
        }
        options.update(overrides)
        return cls(options, verify)

    @property
    def oauth2(self) -> OAuth2Client:
        return self._oauth2

    @property
    def headers(self) -> Dict[str, str]:
        return dict(self._headers)

    @property
    def authorization_url_base(self) -> str:
        return self.options.authorization_url

    @property
    def token_url(self) -> str:
        return self.options.token_url

    @property
    def user_profile_url(self) -> str:
        return self.options.user_profile_url

    @property
    def user_profile_username(self) -> str:
        return self.options.user_profile_username

    @property
    def user_profile_email(self) -> str:
        return self.options.user_profile_email

    def authorization_url(
        self,
        state: Optional[str] = None,
        scope: Optional[Sequence[str]] = None,
        **kwargs: str,
    ) -> str:
        """Build the URL the user agent is redirected to for consent."""
        return self._oauth2.generate_authorization_url(
            state=state,
            scope=scope if scope is not None else self.options.scope,
            **kwargs,
        )

    async def exchange_code(self, code: str) -> OAuthTokens:
        """
        Exchange an authorization code for tokens.

        Raises:
            UpstreamFetchError: If the token endpoint cannot be reached
            OAuthError: If Envato rejects the code
            MalformedResponseError: If the token response cannot be read
        """
        try:
            return await self._oauth2.exchange_code_for_tokens(code)
        except OAuthRequestError as e:
            raise UpstreamFetchError(TOKEN_STAGE, e) from e

    async def refresh(self, refresh_token: str) -> OAuthTokens:
        """
        Refresh an access token.

        Raises:
            UpstreamFetchError: If the token endpoint cannot be reached
            OAuthError: If Envato rejects the refresh token
            MalformedResponseError: If the token response cannot be read
        """
        try:
            return await self._oauth2.refresh_access_token(refresh_token)
        except OAuthRequestError as e:
            raise UpstreamFetchError(REFRESH_STAGE, e) from e

    async def fetch_profile(self, access_token: str) -> EnvatoProfile:
        """
        Retrieve the user profile from Envato.

        Account details, username and email are fetched one after the
        other; the first failure aborts the lookup and nothing is returned.

        Args:
            access_token: Access token issued by Envato

        Returns:
            Normalized profile

        Raises:
            UpstreamFetchError: If a request fails
            MalformedResponseError: If a response is not the expected JSON
        """
        body = self._decode(
            await self._get(self.options.user_profile_url, access_token, PROFILE_STAGE), PROFILE_STAGE
        )
        data = self._parse_json(body, PROFILE_STAGE)
        account = self._validate(_EnvatoAccountResponse, data, PROFILE_STAGE).account

        profile = EnvatoProfile(
            **account.model_dump(),
            raw=body,
            raw_data=data,
        )

        body = self._decode(
            await self._get(self.options.user_profile_username, access_token, USERNAME_STAGE),
            USERNAME_STAGE,
        )
        profile.username = self._validate(
            _EnvatoUsernameResponse, self._parse_json(body, USERNAME_STAGE), USERNAME_STAGE
        ).username

        body = self._decode(
            await self._get(self.options.user_profile_email, access_token, EMAIL_STAGE), EMAIL_STAGE
        )
        profile.email = self._validate(
            _EnvatoEmailResponse, self._parse_json(body, EMAIL_STAGE), EMAIL_STAGE
        ).email

        logger.info(
            "envato_profile_fetched",
            username=profile.username,
            country=profile.country,
            has_email=bool(profile.email),
        )
        return profile

    async def authenticate(self, code: str) -> AuthenticationResult:
        """
        Complete the authorization-code callback.

        Exchanges the code, loads the profile unless ``skip_user_profile``
        is set and hands everything to the verify callback.
        """
        tokens = await self.exchange_code(code)

        profile = None
        if not self.options.skip_user_profile:
            profile = await self.fetch_profile(tokens.access_token)

        user = self._verify(tokens.access_token, tokens.refresh_token, profile)
        if inspect.isawaitable(user):
            user = await user

        username = profile.username if profile else None
        if user:
            logger.info("envato_authentication_succeeded", username=username)
        else:
            logger.warning("envato_authentication_denied", username=username)

        return AuthenticationResult(user=user, tokens=tokens, profile=profile)

    async def _get(self, url: str, access_token: str, stage: str) -> bytes:
        try:
            return await self._oauth2.get(url, access_token)
        except OAuthRequestError as e:
            logger.error(
                "envato_request_failed",
                **log_error_details(e, stage=stage, url=url, status=e.status_code),
                token=token_hint(access_token),
            )
            raise UpstreamFetchError(stage, e) from e

    @staticmethod
    def _decode(body: bytes, stage: str) -> str:
        try:
            return body.decode("utf-8")
        except UnicodeDecodeError as e:
            logger.error("envato_response_not_utf8", stage=stage, error=str(e))
            raise MalformedResponseError(f"{stage}: response is not valid UTF-8", e) from e

    @staticmethod
    def _parse_json(body: str, stage: str) -> Any:
        try:
            return json.loads(body)
        except ValueError as e:
            logger.error("envato_response_not_json", stage=stage, error=str(e))
            raise MalformedResponseError(f"{stage}: response is not valid JSON", e) from e

    @staticmethod
    def _validate(model: type, data: Any, stage: str) -> Any:
        try:
            return model.model_validate(data)
        except ValidationError as e:
            logger.error("envato_response_invalid", stage=stage, error=str(e))
            raise MalformedResponseError(f"{stage}: unexpected response shape", e) from e
