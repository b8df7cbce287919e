"""
Envato strategy schemas.

Options accepted by the strategy and the normalized profile it produces.
"""
from typing import Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

PROVIDER_NAME = "envato"

DEFAULT_AUTHORIZATION_URL = "https://api.envato.com/authorization"
DEFAULT_TOKEN_URL = "https://api.envato.com/token"
DEFAULT_ACCOUNT_URL = "https://api.envato.com/v1/market/private/user/account.json"
DEFAULT_USERNAME_URL = "https://api.envato.com/v1/market/private/user/username.json"
DEFAULT_EMAIL_URL = "https://api.envato.com/v1/market/private/user/email.json"

# Envato rejects API requests without a User-Agent
DEFAULT_USER_AGENT = "envato-auth"
USER_AGENT_HEADER = "User-Agent"


class EnvatoStrategyOptions(BaseModel):
    """
    Options for the Envato strategy.

    Field names may be given in snake_case or with the camelCase aliases
    used by passport-style configuration (``clientID``, ``callbackURL``, ...).
    """
    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    client_id: str = Field(default="", alias="clientID")
    client_secret: str = Field(default="", alias="clientSecret")
    callback_url: Optional[str] = Field(default=None, alias="callbackURL")
    scope: List[str] = Field(default_factory=list)
    scope_separator: str = Field(default=" ", alias="scopeSeparator")
    user_agent: Optional[str] = Field(default=None, alias="userAgent")

    authorization_url: str = Field(default=DEFAULT_AUTHORIZATION_URL, alias="authorizationURL")
    token_url: str = Field(default=DEFAULT_TOKEN_URL, alias="tokenURL")
    user_profile_url: str = Field(default=DEFAULT_ACCOUNT_URL, alias="userProfileURL")
    user_profile_username: str = Field(default=DEFAULT_USERNAME_URL, alias="userProfileUsername")
    user_profile_email: str = Field(default=DEFAULT_EMAIL_URL, alias="userProfileEmail")

    custom_headers: Dict[str, str] = Field(default_factory=dict, alias="customHeaders")
    skip_user_profile: bool = Field(default=False, alias="skipUserProfile")
    timeout: float = Field(default=30.0, gt=0)

    @field_validator("scope", mode="before")
    @classmethod
    def normalize_scope(cls, v: Union[str, List[str], None]) -> List[str]:
        if v is None:
            return []
        if isinstance(v, str):
            return [v] if v else []
        return list(v)

    @field_validator(
        "authorization_url",
        "token_url",
        "user_profile_url",
        "user_profile_username",
        "user_profile_email",
        mode="before",
    )
    @classmethod
    def empty_url_means_default(cls, v: Optional[str], info) -> Any:
        # Unset and empty values fall back to the field default
        if v:
            return v
        return cls.model_fields[info.field_name].default

    def effective_headers(self) -> Dict[str, str]:
        """
        Compute the headers sent with every request.

        Returns a new dict; ``custom_headers`` is never modified.
        """
        headers = dict(self.custom_headers)
        has_user_agent = any(
            key.lower() == USER_AGENT_HEADER.lower() and value
            for key, value in headers.items()
        )
        if not has_user_agent:
            # Drop empty variants so only one User-Agent is sent
            for key in [k for k in headers if k.lower() == USER_AGENT_HEADER.lower()]:
                del headers[key]
            headers[USER_AGENT_HEADER] = self.user_agent or DEFAULT_USER_AGENT
        return headers


class EnvatoProfile(BaseModel):
    """Normalized user profile assembled from the Envato market API."""
    model_config = ConfigDict(coerce_numbers_to_str=True)

    provider: Literal["envato"] = PROVIDER_NAME
    image: Optional[str] = None
    firstname: Optional[str] = None
    surname: Optional[str] = None
    available_earnings: Optional[str] = None
    total_deposits: Optional[str] = None
    balance: Optional[str] = None
    country: Optional[str] = None
    username: Optional[str] = None
    email: Optional[str] = None

    # Account call body, kept for diagnostics
    raw: str = ""
    raw_data: Dict[str, Any] = Field(default_factory=dict)

    @property
    def display_name(self) -> str:
        """Full name if known, otherwise the username."""
        name = " ".join(part for part in (self.firstname, self.surname) if part)
        return name or self.username or ""
