# Copyright (c) 2025 CoReason, Inc.
#
# This software is proprietary and dual-licensed.
# Licensed under the Prosperity Public License 3.0 (the "License").
# A copy of the license is available at https://prosperitylicense.com/versions/3.0.0
# For details, see the LICENSE file.
# Commercial use beyond a 30-day trial requires a separate license.
#
# Source Code: https://github.com/CoReason-AI/coreason_webauth

"""
Configuration for the coreason-webauth package.
"""

from typing import Any
from urllib.parse import urlparse

from pydantic import BaseModel, ConfigDict, Field, SecretStr, ValidationError, ValidationInfo, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from coreason_webauth.exceptions import ConfigurationError
from coreason_webauth.models import CredentialKind

REQUIRED_FIELDS = ("domain", "client_id", "client_secret", "redirect_uri")


def normalize_domain(v: str) -> str:
    """
    Ensures domain is just the hostname (e.g. tenant.auth0.com).
    Strips scheme and path if present.

    Args:
        v: The domain string to normalize.

    Returns:
        The normalized hostname string.

    Raises:
        ValueError: If the domain is empty or has no hostname.
    """
    v = v.strip().lower()
    if not v:
        raise ValueError("domain must not be empty")
    if "://" not in v:
        v = f"https://{v}"

    parsed = urlparse(v)
    if not parsed.netloc:
        raise ValueError("domain must contain a hostname")
    return parsed.netloc


class PersistencePolicy(BaseModel):
    """
    Which credential kinds are written to the credential store.
    Fixed at construction; a kind is never removed from the policy afterwards.
    """

    model_config = ConfigDict(frozen=True)

    user: bool = True
    access_token: bool = False
    id_token: bool = False

    def persists(self, kind: CredentialKind) -> bool:
        return bool(getattr(self, kind.value))


class WebAuthConfig(BaseSettings):
    """
    Configuration settings for coreason-webauth.

    Attributes:
        domain (str): The Auth0 tenant domain (e.g. tenant.auth0.com).
        client_id (str): The application's Client ID.
        client_secret (SecretStr): The application's Client Secret. Also the ID token signing key.
        redirect_uri (str): The callback URI registered for the application.
        debug (bool): Enables the debugger callback.
        persist_user (bool): Persist the user profile in the store.
        persist_access_token (bool): Persist the access token in the store.
        persist_id_token (bool): Persist the ID token in the store.
        http_timeout (float): Timeout in seconds for every IdP network operation.
        secret_base64_encoded (bool): Whether the client secret is base64url encoded.
        leeway (int): Accepted clock skew in seconds when decoding the ID token.
    """

    model_config = SettingsConfigDict(
        env_prefix="COREASON_WEBAUTH_",
        case_sensitive=False,
        extra="ignore",
    )

    domain: str
    client_id: str
    client_secret: SecretStr
    redirect_uri: str
    debug: bool = False
    persist_user: bool = True
    persist_access_token: bool = False
    persist_id_token: bool = False
    http_timeout: float = Field(default=10.0, gt=0, description="Timeout in seconds for all IdP network operations.")
    secret_base64_encoded: bool = False
    leeway: int = Field(default=0, ge=0)

    @field_validator("client_id", "redirect_uri")
    @classmethod
    def require_non_empty(cls, v: str, info: ValidationInfo) -> str:
        """Rejects empty or whitespace-only values."""
        v = v.strip()
        if not v:
            raise ValueError(f"{info.field_name} must not be empty")
        return v

    @field_validator("client_secret")
    @classmethod
    def require_secret(cls, v: SecretStr) -> SecretStr:
        if not v.get_secret_value():
            raise ValueError("client_secret must not be empty")
        return v

    @field_validator("domain")
    @classmethod
    def validate_domain(cls, v: str) -> str:
        return normalize_domain(v)

    @property
    def persistence_policy(self) -> PersistencePolicy:
        return PersistencePolicy(
            user=self.persist_user,
            access_token=self.persist_access_token,
            id_token=self.persist_id_token,
        )

    @classmethod
    def build(cls, **values: Any) -> "WebAuthConfig":
        """
        Builds a configuration, reporting missing or invalid fields as ConfigurationError.

        Raises:
            ConfigurationError: If a required field is missing or empty, or a value is invalid.
        """
        try:
            return cls(**values)
        except ValidationError as e:
            fields = sorted({str(err["loc"][0]) for err in e.errors() if err.get("loc")})
            missing = [f for f in fields if f in REQUIRED_FIELDS]
            if missing:
                raise ConfigurationError(f"Invalid {', '.join(missing)}") from e
            raise ConfigurationError(f"Invalid configuration: {', '.join(fields) or e}") from e
