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
Data models for the coreason-webauth package.
"""

from enum import StrEnum

from pydantic import BaseModel, ConfigDict


class CredentialKind(StrEnum):
    """Credential kinds, doubling as the credential store keys."""

    ACCESS_TOKEN = "access_token"
    ID_TOKEN = "id_token"
    USER = "user"


class TokenResponse(BaseModel):
    """
    Response from the token endpoint after an authorization code exchange.

    Both tokens are optional here; their absence is reported by the session
    with a dedicated error message.

    Attributes:
        access_token (str | None): The access token issued by the authorization server.
        id_token (str | None): The ID token. Only issued when the `openid` scope was requested.
        token_type (str | None): The type of the token (e.g. "Bearer").
        expires_in (int | None): The lifetime in seconds of the access token.
        refresh_token (str | None): The refresh token, if issued.
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    access_token: str | None = None
    id_token: str | None = None
    token_type: str | None = None
    expires_in: int | None = None
    refresh_token: str | None = None
